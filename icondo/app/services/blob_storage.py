"""
Photo blob storage on the local filesystem.

Files live under <root>/parcels/<parcel key>/<kind>-<unique>.<ext> and are
referenced by the URL path they are served from.
"""

import base64
import binascii
import logging
import os
import re
import uuid

import aiofiles

from icondo.app.core.exceptions import InvalidRequestError, StorageFailureError
from icondo.app.models.enums import PhotoKind

logger = logging.getLogger("icondo.storage")

DATA_URL_PATTERN = re.compile(r"^data:image/([a-zA-Z0-9.+-]+);base64,(.+)$", re.DOTALL)

# content type subtype -> file extension
IMAGE_EXTENSIONS = {
    "jpeg": "jpg",
    "jpg": "jpg",
    "png": "png",
    "gif": "gif",
    "webp": "webp",
    "heic": "heic",
}


def extension_for(subtype: str) -> str:
    return IMAGE_EXTENSIONS.get(subtype.lower(), "jpg")


def decode_data_url(image_data: str, max_bytes: int) -> tuple:
    """
    Split a data:image/...;base64 URL into (bytes, extension).

    Raises:
        InvalidRequestError: not an image data URL, bad base64, empty or too large
    """
    match = DATA_URL_PATTERN.match(image_data.strip())
    if not match:
        raise InvalidRequestError("Invalid image format, expected a data:image/...;base64 URL")

    subtype, encoded = match.groups()
    try:
        data = base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError):
        raise InvalidRequestError("Invalid base64 image data")

    if not data:
        raise InvalidRequestError("Image data is empty")
    if len(data) > max_bytes:
        raise InvalidRequestError(
            "Image exceeds the upload size limit",
            details={"max_bytes": max_bytes, "size_bytes": len(data)}
        )
    return data, extension_for(subtype)


class LocalBlobStorage:

    def __init__(self, root_dir: str, url_prefix: str = "/uploads"):
        self.root_dir = root_dir
        self.url_prefix = url_prefix.rstrip("/")

    async def save(self, parcel_key, kind: PhotoKind, data: bytes, extension: str = "jpg") -> str:
        """
        Write photo bytes and return their reference.

        Raises:
            StorageFailureError: the directory or file could not be written
        """
        parcel_key = str(parcel_key)
        filename = f"{kind.value}-{uuid.uuid4().hex}.{extension}"
        directory = os.path.join(self.root_dir, "parcels", parcel_key)
        path = os.path.join(directory, filename)

        try:
            os.makedirs(directory, exist_ok=True)
            async with aiofiles.open(path, "wb") as f:
                await f.write(data)
        except OSError as exc:
            logger.error("Photo write failed for parcel %s: %s", parcel_key, exc)
            raise StorageFailureError("Could not store photo", details={"parcel": parcel_key})

        logger.info("Stored %s photo for parcel %s (%d bytes)", kind.value, parcel_key, len(data))
        return f"{self.url_prefix}/parcels/{parcel_key}/{filename}"

    def path_for(self, reference: str) -> str:
        """Map a reference back to its file path; rejects foreign or escaping references."""
        prefix = f"{self.url_prefix}/"
        if not reference.startswith(prefix):
            raise InvalidRequestError("Not a stored photo reference")
        relative = reference[len(prefix):]
        root = os.path.abspath(self.root_dir)
        path = os.path.abspath(os.path.join(root, *relative.split("/")))
        if os.path.commonpath([root, path]) != root:
            raise InvalidRequestError("Not a stored photo reference")
        return path

    def require_stored(self, reference: str) -> str:
        """
        Check that a client-supplied reference names a photo in this storage.

        Raises:
            InvalidRequestError: foreign reference, or no such stored photo
        """
        if not os.path.isfile(self.path_for(reference)):
            raise InvalidRequestError("Photo reference does not match a stored photo",
                                      details={"reference": reference})
        return reference

    async def delete(self, reference: str) -> None:
        path = self.path_for(reference)
        try:
            os.remove(path)
        except FileNotFoundError:
            return
        except OSError as exc:
            raise StorageFailureError("Could not remove photo", details={"reference": reference}) from exc
        logger.info("Removed photo %s", reference)
