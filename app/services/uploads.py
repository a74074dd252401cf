"""
Transient storage for files attached to a chat request.

- Validates the declared extension against the allow-list.
- Streams the upload to `<UPLOAD_DIR>/<epoch-ms>-<random>-<name>` so that
  concurrent requests never collide.
- Enforces the size limit while streaming; partial files are removed.

The saved file belongs to one request only and is removed by the context
builder once it has been read.
"""

from __future__ import annotations

import random
import time
from dataclasses import dataclass
from pathlib import Path

from fastapi import UploadFile

from app.core.config import get_settings
from app.core.errors import UploadRejected
from app.core.logger import get_logger

log = get_logger(__name__)

CHUNK_SIZE = 1024 * 1024


@dataclass
class UploadedFile:
    path: Path
    original_name: str
    extension: str


def upload_dir() -> Path:
    base = Path(get_settings().UPLOAD_DIR)
    base.mkdir(parents=True, exist_ok=True)
    return base


def file_extension(filename: str) -> str:
    """Lower-case extension without the dot ('' when there is none)."""
    return Path(filename).suffix.lower().lstrip(".")


def unique_name(original_name: str) -> str:
    stamp = int(time.time() * 1000)
    suffix = round(random.random() * 1e9)
    return f"{stamp}-{suffix}-{Path(original_name).name}"


async def save_upload(file: UploadFile) -> UploadedFile:
    settings = get_settings()
    original_name = Path(file.filename or "upload").name
    ext = file_extension(original_name)
    if ext not in settings.ALLOWED_EXTENSIONS:
        raise UploadRejected("Format file tidak didukung")

    dest = upload_dir() / unique_name(original_name)
    limit = settings.max_upload_bytes
    size = 0
    try:
        with dest.open("wb") as f:
            while True:
                chunk = await file.read(CHUNK_SIZE)
                if not chunk:
                    break
                size += len(chunk)
                if size > limit:
                    raise UploadRejected(f"File terlalu besar. Maksimal {settings.MAX_UPLOAD_MB}MB")
                f.write(chunk)
    except BaseException:
        dest.unlink(missing_ok=True)
        raise

    log.info("Saved upload %s (%d bytes) -> %s", original_name, size, dest)
    return UploadedFile(path=dest, original_name=original_name, extension=ext)


def discard_upload(upload: UploadedFile) -> None:
    """Delete the stored upload. Failures are logged, never raised."""
    try:
        upload.path.unlink()
    except OSError as e:
        log.warning("Failed to delete upload %s: %s", upload.path, e)
