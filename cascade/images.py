"""
CASCADE Images - Image references passed between restoration steps.

An image reference is a ``data:<mime>;base64,<payload>`` string. It can be
dropped straight into an ``<img src>`` and is never modified in place.
"""

import base64
import binascii
import io
from pathlib import Path
from typing import Optional, Tuple

from PIL import Image

DEFAULT_MEDIA_TYPE = 'image/png'

_EXTENSIONS = {
    'image/jpeg': '.jpg',
    'image/png': '.png',
    'image/gif': '.gif',
    'image/webp': '.webp',
}


def get_image_media_type(image_path: Path) -> str:
    """Get the media type for an image from its file suffix."""
    suffix = image_path.suffix.lower()
    if suffix in ['.jpg', '.jpeg']:
        return "image/jpeg"
    elif suffix == '.png':
        return "image/png"
    elif suffix == '.gif':
        return "image/gif"
    elif suffix == '.webp':
        return "image/webp"
    return "image/jpeg"  # default


def extension_for(media_type: str) -> str:
    """File extension (with dot) to use when saving an image of this type."""
    return _EXTENSIONS.get(media_type.lower(), '.png')


def to_data_url(data: bytes, media_type: str = DEFAULT_MEDIA_TYPE) -> str:
    """Wrap raw image bytes in a data URL."""
    encoded = base64.standard_b64encode(data).decode('utf-8')
    return f"data:{media_type};base64,{encoded}"


def parse_data_url(image_ref: str) -> Tuple[str, bytes]:
    """
    Split an image reference into its media type and raw bytes.

    Raises:
        ValueError: If the reference is not a base64 data URL
    """
    if not isinstance(image_ref, str) or not image_ref.startswith('data:'):
        raise ValueError("Image reference must be a data URL")

    header, sep, payload = image_ref.partition(',')
    if not sep or not header.endswith(';base64'):
        raise ValueError("Image reference must be base64 encoded")

    media_type = header[len('data:'):-len(';base64')] or DEFAULT_MEDIA_TYPE
    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValueError(f"Image reference payload is not valid base64: {e}") from e

    return media_type, data


def detect_media_type(data: bytes) -> Optional[str]:
    """Return the media type Pillow detects for the bytes, or None if they are not an image."""
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.verify()
            image_format = img.format
    except Exception:
        return None
    if not image_format:
        return None
    return Image.MIME.get(image_format.upper())


def load_image_ref(data: bytes, declared_type: Optional[str] = None) -> str:
    """
    Build an image reference from uploaded bytes.

    The declared media type is used when it names an image; otherwise the
    type Pillow detects wins.

    Raises:
        ValueError: If the bytes are not a readable image
    """
    detected = detect_media_type(data)
    if detected is None:
        raise ValueError("Uploaded file is not a readable image")

    media_type = declared_type if declared_type and declared_type.startswith('image/') else detected
    return to_data_url(data, media_type)


def file_to_data_url(image_path: Path) -> str:
    """Read an image file from disk into an image reference."""
    data = image_path.read_bytes()
    if detect_media_type(data) is None:
        raise ValueError(f"Not a readable image: {image_path}")
    return to_data_url(data, get_image_media_type(image_path))


def save_image_ref(image_ref: str, output_stem: Path) -> Path:
    """Write an image reference to ``output_stem`` plus the matching extension."""
    media_type, data = parse_data_url(image_ref)
    output_path = output_stem.with_suffix(extension_for(media_type))
    output_path.write_bytes(data)
    return output_path
