"""Helpers for data-URI encoded images."""

import base64
import binascii
import io

from PIL import Image, UnidentifiedImageError

from .errors import ValidationError

DEFAULT_MIME_TYPE = "image/jpeg"
MAX_UPLOAD_SIZE = 1024
UPLOAD_JPEG_QUALITY = 80


def split_data_uri(value: str) -> tuple[str, str]:
    """
    Split a data URI into its MIME type and base64 payload.

    Bare base64 strings are accepted and assumed to be JPEG.

    Returns:
        (mime_type, base64_payload)
    """
    if value.startswith("data:") and "," in value:
        header, payload = value.split(",", 1)
        mime_type = header[len("data:"):].split(";")[0] or DEFAULT_MIME_TYPE
        return mime_type, payload
    return DEFAULT_MIME_TYPE, value


def decode_data_uri(value: str) -> tuple[bytes, str]:
    """Decode a data URI (or bare base64) into raw bytes and MIME type."""
    mime_type, payload = split_data_uri(value)
    try:
        data = base64.b64decode(payload, validate=False)
    except (binascii.Error, ValueError) as e:
        raise ValidationError(f"Image is not valid base64: {e}") from e
    if not data:
        raise ValidationError("Image data is empty")
    return data, mime_type


def to_data_uri(data: bytes, mime_type: str = "image/png") -> str:
    """Encode raw image bytes as a data URI."""
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('utf-8')}"


def prepare_upload(raw_bytes: bytes, max_size: int = MAX_UPLOAD_SIZE) -> str:
    """
    Downscale an uploaded photo and re-encode it as a JPEG data URI.

    The longest side is capped at ``max_size``; smaller images keep their size.
    """
    try:
        img = Image.open(io.BytesIO(raw_bytes))
        img.load()
    except (UnidentifiedImageError, OSError) as e:
        raise ValidationError(f"Could not read image: {e}") from e

    if img.mode != "RGB":
        img = img.convert("RGB")

    width, height = img.size
    if width > height:
        if width > max_size:
            height = round(height * max_size / width)
            width = max_size
    elif height > max_size:
        width = round(width * max_size / height)
        height = max_size

    if (width, height) != img.size:
        img = img.resize((max(width, 1), max(height, 1)), Image.LANCZOS)

    output = io.BytesIO()
    img.save(output, format="JPEG", quality=UPLOAD_JPEG_QUALITY)
    return to_data_uri(output.getvalue(), "image/jpeg")
