"""
Pickup code codec.

A pickup code is a QR image wrapping {"parcel_id": <id>, "type": "parcel_collection"}.
It is a pointer to the parcel, not a credential: it carries no signature, and
collection is authorized from the scanning staff member's token and the
parcel's state at scan time.
"""

import base64
import io
import json
from dataclasses import dataclass

import qrcode
from qrcode.constants import ERROR_CORRECT_M
from qrcode.image.pil import PilImage

from icondo.app.core.exceptions import PickupCodeError
from icondo.app.db.session import MAX_ROW_ID

PICKUP_PURPOSE = "parcel_collection"


@dataclass(frozen=True)
class PickupPayload:
    parcel_id: int
    purpose: str = PICKUP_PURPOSE


def encode_payload(parcel_id: int) -> str:
    return json.dumps({"parcel_id": parcel_id, "type": PICKUP_PURPOSE}, separators=(",", ":"))


def render_png(text: str) -> bytes:
    qr = qrcode.QRCode(error_correction=ERROR_CORRECT_M, box_size=8, border=2)
    qr.add_data(text)
    qr.make(fit=True)
    img = qr.make_image(image_factory=PilImage)
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def encode(parcel_id: int) -> bytes:
    """PNG QR image for the parcel's pickup code."""
    return render_png(encode_payload(parcel_id))


def png_data_url(png: bytes) -> str:
    return "data:image/png;base64," + base64.b64encode(png).decode("ascii")


def _parse_parcel_id(value) -> int:
    # Older printed codes carry the id as a digit string
    if isinstance(value, bool):
        raise PickupCodeError("parcel_id must be an integer")
    if isinstance(value, str) and value.isascii() and value.isdigit():
        value = int(value)
    if not isinstance(value, int) or value <= 0:
        raise PickupCodeError("parcel_id must be a positive integer")
    if value > MAX_ROW_ID:
        raise PickupCodeError("parcel_id is out of range")
    return value


def decode(scanned_text: str) -> PickupPayload:
    """
    Parse text read from a pickup QR code.

    Raises:
        PickupCodeError: not a JSON object, wrong purpose, or bad parcel id
    """
    try:
        data = json.loads(scanned_text)
    except (TypeError, ValueError):
        raise PickupCodeError("code is not valid JSON")

    if not isinstance(data, dict):
        raise PickupCodeError("code is not a JSON object")
    if data.get("type") != PICKUP_PURPOSE:
        raise PickupCodeError("code is not a parcel collection code")
    if "parcel_id" not in data:
        raise PickupCodeError("parcel_id is missing")

    return PickupPayload(parcel_id=_parse_parcel_id(data["parcel_id"]))
