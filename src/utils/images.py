"""Helpers for incoming image payloads and storage keys."""

import base64
import binascii
import io
import re
import uuid
from datetime import datetime, timezone

from src.config.constants import IMAGE_EXTENSIONS, ImageKind

_DATA_URL = re.compile(r"^data:(?P<mime>[\w/+.-]+)?(?:;[\w=-]+)*;base64,(?P<data>.*)$", re.DOTALL)

# Magic numbers of the formats Image Analysis accepts
_SIGNATURES: tuple[tuple[bytes, str], ...] = (
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
    (b"BM", "image/bmp"),
    (b"II*\x00", "image/tiff"),
    (b"MM\x00*", "image/tiff"),
)


def sniff_content_type(data: bytes) -> str | None:
    """Guess the image content type from its leading bytes."""
    for signature, content_type in _SIGNATURES:
        if data.startswith(signature):
            return content_type
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp"
    return None


def decode_data_url(data_url: str) -> tuple[bytes, str]:
    """
    Decode a ``data:image/...;base64,`` URL as produced by ``canvas.toDataURL``.

    Returns:
        Tuple of (image bytes, content type)

    Raises:
        ValueError: If the payload is not a base64 image data URL
    """
    match = _DATA_URL.match(data_url.strip())
    if not match:
        raise ValueError("Image must be a base64 data URL")

    try:
        data = base64.b64decode(match.group("data"), validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValueError(f"Invalid base64 image data: {e}") from e

    content_type = match.group("mime") or sniff_content_type(data) or ""
    if not content_type.startswith("image/"):
        raise ValueError(f"Unsupported content type: {content_type or 'unknown'}")
    return data, content_type


def validate_image(data: bytes, max_bytes: int) -> str:
    """
    Reject empty, oversized or unrecognised image payloads.

    Returns:
        Content type detected from the image bytes
    """
    if not data:
        raise ValueError("Image is empty")
    if len(data) > max_bytes:
        raise ValueError(f"Image exceeds maximum size of {max_bytes} bytes")
    content_type = sniff_content_type(data)
    if content_type is None:
        raise ValueError("Unrecognised image format")
    return content_type


def to_stream(data: bytes) -> io.BytesIO:
    return io.BytesIO(data)


def build_blob_name(kind: ImageKind, content_type: str | None = None) -> str:
    """Storage key: ``{kind}/{YYYYMMDDHHMMSS}_{uuid}.{ext}``."""
    ext = IMAGE_EXTENSIONS.get((content_type or "").lower(), "jpg")
    stamp = datetime.now(timezone.utc).strftime("%Y%m%d%H%M%S")
    return f"{kind.value}/{stamp}_{uuid.uuid4().hex}.{ext}"
