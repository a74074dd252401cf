"""
Video frame sampling for chat attachments.

A video is represented to the model by a handful of stills taken at evenly
spaced points strictly inside its duration (the first and last frames are
often black or mid-transition):

    t_i = duration * (i + 1) / (count + 1),  i = 0 .. count - 1

Each still is grabbed with OpenCV in a worker thread, downscaled, written as
JPEG into a per-request temp directory, base64-encoded and removed. All
grabs run concurrently; a failed grab is logged and skipped. Frames come back
in timestamp order regardless of which grab finished first.
"""

from __future__ import annotations

import asyncio
import base64
import enum
import shutil
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple, Union

import cv2  # type: ignore

from app.core.config import get_settings
from app.core.logger import get_logger
from app.services.uploads import upload_dir

log = get_logger(__name__)

PathLike = Union[str, Path]


class SampleStatus(str, enum.Enum):
    OK = "ok"
    UNPROBABLE = "unprobable"
    NO_FRAMES_EXTRACTED = "no_frames_extracted"


@dataclass
class FrameSampleResult:
    status: SampleStatus
    frames: List[str] = field(default_factory=list)
    duration: Optional[float] = None


def probe_duration(video_path: PathLike) -> Optional[float]:
    """Duration in seconds, or None when OpenCV cannot determine it."""
    cap = cv2.VideoCapture(str(video_path))
    try:
        if not cap.isOpened():
            log.error("Error probing video %s: unable to open", video_path)
            return None
        fps = cap.get(cv2.CAP_PROP_FPS) or 0.0
        frame_count = cap.get(cv2.CAP_PROP_FRAME_COUNT) or 0.0
    finally:
        cap.release()

    if fps <= 0 or frame_count <= 0:
        log.error("Video %s has no duration (fps=%s, frames=%s)", video_path, fps, frame_count)
        return None
    return frame_count / fps


def compute_timestamps(duration: float, count: int) -> List[float]:
    if count < 1:
        raise ValueError("count must be >= 1")
    return [duration * (i + 1) / (count + 1) for i in range(count)]


def _extract_frame(video_path: str, timestamp: float, out_path: Path, size: Tuple[int, int]) -> Path:
    cap = cv2.VideoCapture(video_path)
    try:
        if not cap.isOpened():
            raise RuntimeError("Unable to open video for reading")
        cap.set(cv2.CAP_PROP_POS_MSEC, timestamp * 1000.0)
        ret, frame = cap.read()
        if not ret or frame is None:
            raise RuntimeError(f"No frame decoded at {timestamp:.2f}s")
    finally:
        cap.release()

    frame = cv2.resize(frame, size, interpolation=cv2.INTER_AREA)
    if not cv2.imwrite(str(out_path), frame):
        raise RuntimeError(f"cv2.imwrite returned False for {out_path}")
    return out_path


async def _grab_frame(
    video_path: str, index: int, timestamp: float, out_dir: Path, size: Tuple[int, int], timeout: float
) -> Tuple[int, str]:
    out_path = out_dir / f"frame_{index}.jpg"
    await asyncio.wait_for(asyncio.to_thread(_extract_frame, video_path, timestamp, out_path, size), timeout)
    try:
        encoded = base64.b64encode(out_path.read_bytes()).decode()
    finally:
        out_path.unlink(missing_ok=True)
    return index, encoded


async def sample_frames(video_path: PathLike, count: Optional[int] = None) -> FrameSampleResult:
    """Sample up to `count` base64 JPEG stills from a video.

    Returns an empty result with status `unprobable` when the duration cannot
    be read (nothing is extracted in that case) and `no_frames_extracted` when
    every grab failed.
    """
    settings = get_settings()
    if count is None:
        count = settings.VIDEO_FRAME_COUNT
    try:
        duration = await asyncio.wait_for(
            asyncio.to_thread(probe_duration, video_path), settings.FRAME_TIMEOUT_SEC
        )
    except asyncio.TimeoutError:
        log.error("Probing %s timed out after %.1fs", video_path, settings.FRAME_TIMEOUT_SEC)
        duration = None
    if not duration:
        return FrameSampleResult(status=SampleStatus.UNPROBABLE)

    timestamps = compute_timestamps(duration, count)
    size = (settings.FRAME_WIDTH, settings.FRAME_HEIGHT)
    frames_root = upload_dir() / "frames"
    frames_root.mkdir(parents=True, exist_ok=True)
    tmp_dir = Path(tempfile.mkdtemp(prefix="req_", dir=frames_root))

    try:
        outcomes = await asyncio.gather(
            *(
                _grab_frame(str(video_path), i, ts, tmp_dir, size, settings.FRAME_TIMEOUT_SEC)
                for i, ts in enumerate(timestamps)
            ),
            return_exceptions=True,
        )
    finally:
        try:
            shutil.rmtree(tmp_dir)
        except OSError as e:
            log.warning("Failed to remove frame dir %s: %s", tmp_dir, e)

    grabbed: List[Tuple[int, str]] = []
    for ts, outcome in zip(timestamps, outcomes):
        if isinstance(outcome, BaseException):
            log.error("Error extracting frame at %.2fs from %s: %r", ts, video_path, outcome)
            continue
        grabbed.append(outcome)

    grabbed.sort(key=lambda item: item[0])
    frames = [encoded for _, encoded in grabbed]
    log.info("Sampled %d/%d frames from %s (%.2fs)", len(frames), count, video_path, duration)
    status = SampleStatus.OK if frames else SampleStatus.NO_FRAMES_EXTRACTED
    return FrameSampleResult(status=status, frames=frames, duration=duration)
