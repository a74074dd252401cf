"""
Turns an uploaded attachment into a `ContextPayload` for the AI gateway.

Dispatch is by declared extension:
- pdf / txt      -> text (failures degrade to placeholder text)
- png / jpg / jpeg -> image (unreadable file aborts with ContextError)
- mp4 / mov / avi  -> video_frames (no frames aborts with ContextError)
- anything else  -> none

The upload is deleted before this function returns or raises.
"""

from __future__ import annotations

import asyncio
from typing import Optional

from app.core.errors import ContextError
from app.core.logger import get_logger
from app.schemas.chat import ContextKind, ContextPayload
from app.services import document_extractor, frame_sampler, image_encoder
from app.services.frame_sampler import SampleStatus
from app.services.uploads import UploadedFile, discard_upload

log = get_logger(__name__)

DOCUMENT_EXTENSIONS = frozenset({"pdf"})
TEXT_EXTENSIONS = frozenset({"txt"})
IMAGE_EXTENSIONS = frozenset({"png", "jpg", "jpeg"})
VIDEO_EXTENSIONS = frozenset({"mp4", "mov", "avi"})

VIDEO_ERROR = "❌ Gagal membaca video"
_VIDEO_DETAIL = {
    SampleStatus.UNPROBABLE: "Durasi video tidak dapat dibaca",
    SampleStatus.NO_FRAMES_EXTRACTED: "Tidak ada frame yang berhasil diambil dari video",
}


async def build_context(upload: Optional[UploadedFile], frame_count: Optional[int] = None) -> ContextPayload:
    if upload is None:
        return ContextPayload.empty()
    try:
        return await _dispatch(upload, frame_count)
    finally:
        discard_upload(upload)


async def _dispatch(upload: UploadedFile, frame_count: Optional[int]) -> ContextPayload:
    ext = upload.extension

    if ext in DOCUMENT_EXTENSIONS:
        result = await asyncio.to_thread(document_extractor.extract_pdf_text, upload.path)
        return ContextPayload(kind=ContextKind.TEXT, content=result.text)

    if ext in TEXT_EXTENSIONS:
        result = await asyncio.to_thread(document_extractor.read_text_file, upload.path)
        return ContextPayload(kind=ContextKind.TEXT, content=result.text)

    if ext in IMAGE_EXTENSIONS:
        encoded = await asyncio.to_thread(image_encoder.encode_image, upload.path)
        if not encoded:
            raise ContextError("Gagal membaca gambar")
        mime = await asyncio.to_thread(image_encoder.detect_mime_type, upload.path, ext)
        return ContextPayload(kind=ContextKind.IMAGE, content=encoded, mime_type=mime)

    if ext in VIDEO_EXTENSIONS:
        sampled = await frame_sampler.sample_frames(upload.path, frame_count)
        if not sampled.frames:
            log.warning("Video %s rejected: %s", upload.original_name, sampled.status.value)
            raise ContextError(VIDEO_ERROR, _VIDEO_DETAIL.get(sampled.status))
        return ContextPayload(kind=ContextKind.VIDEO_FRAMES, content=sampled.frames)

    log.info("No context handler for .%s (%s)", ext, upload.original_name)
    return ContextPayload.empty()
