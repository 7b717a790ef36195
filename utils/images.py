"""Avatar image validation and normalization with Pillow."""

import io
import re

from PIL import Image, UnidentifiedImageError

MAX_AVATAR_BYTES = 1 * 1024 * 1024
AVATAR_SIZE = (250, 250)
ALLOWED_FILENAME = re.compile(r"\.(jpg|jpeg|png)$", re.IGNORECASE)


class InvalidImageError(ValueError):
    """Raised when an upload is not an acceptable avatar image"""


def check_avatar_upload(filename: str, size: int) -> None:
    """Reject uploads over the size limit or without an image extension."""
    if not filename or not ALLOWED_FILENAME.search(filename):
        raise InvalidImageError("Please upload an image")
    if size > MAX_AVATAR_BYTES:
        raise InvalidImageError("File too large")


def normalize_avatar(data: bytes) -> bytes:
    """Resize image bytes to the avatar size and re-encode them as PNG."""
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            resized = img.convert("RGBA").resize(AVATAR_SIZE)
    except (UnidentifiedImageError, OSError) as e:
        raise InvalidImageError("Please upload an image") from e

    buffer = io.BytesIO()
    resized.save(buffer, format="PNG")
    return buffer.getvalue()
