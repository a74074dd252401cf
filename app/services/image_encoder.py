from __future__ import annotations

import base64
from pathlib import Path
from typing import Optional, Union

from PIL import Image, UnidentifiedImageError

from app.core.logger import get_logger

log = get_logger(__name__)

_MIME_BY_EXTENSION = {
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
}


# Formats OpenAI-compatible endpoints accept in image data URLs. MPO is the
# multi-picture JPEG many phone cameras write; its first frame is plain JPEG.
_SUPPORTED_FORMATS = {
    "JPEG": "image/jpeg",
    "MPO": "image/jpeg",
    "PNG": "image/png",
    "GIF": "image/gif",
    "WEBP": "image/webp",
}


def encode_image(path: Union[str, Path]) -> Optional[str]:
    """Base64 of the raw file bytes, or None when the file cannot be read."""
    try:
        return base64.b64encode(Path(path).read_bytes()).decode()
    except OSError as e:
        log.error("Error encoding image %s: %s", path, e)
        return None


def detect_mime_type(path: Union[str, Path], extension: str = "") -> str:
    """MIME type from the image header, falling back to the declared extension.

    Only types the chat endpoint accepts are returned; any other sniffed
    format uses the extension's type instead.
    """
    try:
        with Image.open(path) as im:
            mime = _SUPPORTED_FORMATS.get(im.format or "")
            if mime:
                return mime
            log.info("Unsupported image format %s for %s; using extension", im.format, path)
    except (OSError, UnidentifiedImageError):
        log.debug("Pillow could not identify %s; using extension", path)
    return _MIME_BY_EXTENSION.get(extension.lower(), "image/jpeg")
