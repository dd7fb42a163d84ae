"""
Image Encoder - turns local image files into self-describing data blobs.

The media type comes from the image content (Pillow), falling back to the
file extension for anything Pillow cannot identify.
"""

import mimetypes
from io import BytesIO
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from .models import ImageBlob, UploadedImage


def detect_mime_type(raw: bytes, filename: str = "") -> str:
    """Return the media type of raw image bytes."""
    try:
        with Image.open(BytesIO(raw)) as img:
            mime = Image.MIME.get(img.format or "")
            if mime:
                return mime
    except UnidentifiedImageError:
        pass
    guessed, _ = mimetypes.guess_type(filename)
    return guessed or "application/octet-stream"


def encode_bytes(raw: bytes, filename: str = "") -> ImageBlob:
    return ImageBlob.from_bytes(raw, detect_mime_type(raw, filename))


def load_upload(path: Path) -> UploadedImage:
    """
    Read a local file and encode it. Fails only if the read fails.

    The byte size is kept so callers can enforce upload caps.
    """
    path = Path(path)
    raw = path.read_bytes()
    return UploadedImage(path=path, size=len(raw), blob=encode_bytes(raw, path.name))
