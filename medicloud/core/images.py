"""
Image payload helpers.

Face and signature images travel as data URIs ("data:<mime>;base64,<data>"),
the same form in which they are stored and sent to the face model.
"""
import base64
import binascii
import re
from typing import Optional, Tuple

from fastapi import UploadFile

from ..auth.exceptions import InvalidImageError
from ..config import settings

ACCEPTED_IMAGE_TYPES = {"image/jpeg", "image/jpg", "image/png", "image/webp"}

DATA_URI_PATTERN = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+);base64,(?P<data>.*)$", re.DOTALL)


def to_data_uri(content: bytes, content_type: str, max_bytes: Optional[int] = None) -> str:
    """
    Encode raw image bytes as a data URI after checking type and size.

    Raises:
        InvalidImageError: If the image is empty, too large or of an unaccepted type
    """
    max_bytes = max_bytes or settings.max_image_bytes
    content_type = (content_type or "").lower()
    if content_type not in ACCEPTED_IMAGE_TYPES:
        raise InvalidImageError(".jpg, .jpeg, .png and .webp files are accepted.")
    if not content:
        raise InvalidImageError("Image is empty.")
    if len(content) > max_bytes:
        raise InvalidImageError(f"Max file size is {max_bytes // (1024 * 1024)}MB.")
    encoded = base64.b64encode(content).decode("utf-8")
    return f"data:{content_type};base64,{encoded}"


def read_upload(upload: UploadFile, max_bytes: Optional[int] = None) -> str:
    """
    Read an uploaded image into a data URI.

    At most one byte past the size limit is read, which is enough to reject
    an oversized file without buffering all of it.
    """
    max_bytes = max_bytes or settings.max_image_bytes
    content = upload.file.read(max_bytes + 1)
    return to_data_uri(content, upload.content_type, max_bytes)


def parse_data_uri(data_uri: str) -> Tuple[str, bytes]:
    """
    Split a data URI into its MIME type and decoded bytes.

    Raises:
        InvalidImageError: If the value is not a base64 data URI
    """
    match = DATA_URI_PATTERN.match(data_uri or "")
    if not match:
        raise InvalidImageError("Image must be a base64 data URI.")
    try:
        content = base64.b64decode(match.group("data"), validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidImageError("Image data is not valid base64.") from e
    return match.group("mime").lower(), content


def validate_data_uri(data_uri: str, max_bytes: Optional[int] = None) -> str:
    """Check that a data URI holds an accepted image and return it unchanged."""
    mime, content = parse_data_uri(data_uri)
    to_data_uri(content, mime, max_bytes)
    return data_uri
