"""
Tests for data-URI image handling.
"""
import base64
from io import BytesIO
from types import SimpleNamespace

import pytest

from medicloud.auth.exceptions import InvalidImageError
from medicloud.core.images import parse_data_uri, read_upload, to_data_uri, validate_data_uri


def test_to_data_uri(png_bytes):
    data_uri = to_data_uri(png_bytes, "image/png")

    assert data_uri == "data:image/png;base64," + base64.b64encode(png_bytes).decode("utf-8")


def test_content_type_is_lowercased(png_bytes):
    assert to_data_uri(png_bytes, "IMAGE/JPEG").startswith("data:image/jpeg;base64,")


@pytest.mark.parametrize("content_type", ["image/gif", "application/pdf", "", None])
def test_unaccepted_types(png_bytes, content_type):
    with pytest.raises(InvalidImageError):
        to_data_uri(png_bytes, content_type)


def test_empty_image():
    with pytest.raises(InvalidImageError):
        to_data_uri(b"", "image/png")


def test_image_too_large():
    """
    Test uploads above the size limit are refused.
    """
    with pytest.raises(InvalidImageError) as exc_info:
        to_data_uri(b"x" * (2 * 1024 * 1024 + 1), "image/png", max_bytes=2 * 1024 * 1024)
    assert "2MB" in str(exc_info.value)


def test_read_upload(png_bytes, face_image):
    upload = SimpleNamespace(file=BytesIO(png_bytes), content_type="image/png", filename="face.png")

    assert read_upload(upload) == face_image


def test_read_upload_stops_past_the_size_limit():
    """
    Test an oversized upload is refused after reading one byte past the limit.
    """
    upload = SimpleNamespace(file=BytesIO(b"x" * 100), content_type="image/png", filename="big.png")

    with pytest.raises(InvalidImageError):
        read_upload(upload, max_bytes=10)
    assert upload.file.tell() == 11


def test_parse_data_uri(png_bytes, face_image):
    mime, content = parse_data_uri(face_image)

    assert mime == "image/png"
    assert content == png_bytes


@pytest.mark.parametrize("value", [
    "",
    "not a data uri",
    "data:image/png,rawdata",
    "data:image/png;base64,@@@@",
])
def test_parse_rejects_malformed_values(value):
    with pytest.raises(InvalidImageError):
        parse_data_uri(value)


def test_validate_data_uri(live_image):
    assert validate_data_uri(live_image) == live_image


def test_validate_rejects_unaccepted_type():
    data_uri = "data:image/gif;base64," + base64.b64encode(b"GIF89a").decode("utf-8")

    with pytest.raises(InvalidImageError):
        validate_data_uri(data_uri)
