"""
Parcel notifications.

Residents are told about arrivals and handoffs through this collaborator.
Delivery (SMS, push) is not implemented; notifications are logged.
"""

import logging

from icondo.app.models.parcel import Parcel

logger = logging.getLogger("icondo.notifications")


class ParcelNotifier:
    """Fire-and-forget; callers invoke it only after their commit."""

    def parcel_arrived(self, parcel: Parcel) -> None:
        logger.info(
            "Notify room %s: new parcel %s from %s has arrived",
            parcel.room_number, parcel.tracking_number, parcel.carrier_name,
        )

    def parcel_collected(self, parcel: Parcel) -> None:
        logger.info(
            "Notify room %s: parcel %s was collected",
            parcel.room_number, parcel.tracking_number,
        )
