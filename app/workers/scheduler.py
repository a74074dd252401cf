from __future__ import annotations

import asyncio
import time
from pathlib import Path
from typing import Awaitable, Callable, Optional

from app.core.config import get_settings
from app.core.logger import get_logger

log = get_logger(__name__)


PeriodicCallable = Callable[[], Awaitable[None]]


class PeriodicScheduler:
    """Very small periodic task scheduler.

    schedule(coro_func, interval) will run the coroutine indefinitely at
    approximately the given interval until stop() is called.
    """

    def __init__(self) -> None:
        self._tasks: list[asyncio.Task] = []
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        self._running = True

    async def stop(self) -> None:
        self._running = False
        for t in self._tasks:
            t.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks.clear()

    def schedule(self, func: PeriodicCallable, interval_sec: float) -> None:
        async def _loop() -> None:
            while self._running:
                start = time.time()
                try:
                    await func()
                except Exception:
                    log.exception("Periodic task failed")
                # maintain approximate interval
                elapsed = time.time() - start
                await asyncio.sleep(max(0.0, interval_sec - elapsed))

        task = asyncio.create_task(_loop())
        self._tasks.append(task)


_scheduler: Optional[PeriodicScheduler] = None


def get_scheduler() -> PeriodicScheduler:
    global _scheduler
    if _scheduler is None:
        _scheduler = PeriodicScheduler()
    return _scheduler


def _sweep(base: Path, max_age_sec: float) -> int:
    now = time.time()
    removed = 0
    for p in base.rglob("*"):
        if not p.is_file():
            continue
        try:
            if now - p.stat().st_mtime > max_age_sec:
                p.unlink(missing_ok=True)
                removed += 1
        except OSError as e:
            log.warning("Cleanup skipped %s: %s", p, e)

    # deepest first so nested frame dirs empty out before their parents
    for d in sorted((p for p in base.rglob("*") if p.is_dir()), key=lambda p: len(p.parts), reverse=True):
        if d.name == "frames" and d.parent == base:
            continue
        try:
            if not any(d.iterdir()) and now - d.stat().st_mtime > max_age_sec:
                d.rmdir()
        except OSError as e:
            log.warning("Cleanup skipped %s: %s", d, e)
    return removed


async def cleanup_uploads(max_age_sec: Optional[float] = None, base: Optional[Path] = None) -> int:
    """Remove uploads and frame files older than max_age_sec.

    Requests delete their own files; this sweeps what a crashed request or a
    timed-out frame worker left behind. The filesystem walk runs in a worker
    thread. Returns the number of files removed.
    """
    settings = get_settings()
    if max_age_sec is None:
        max_age_sec = settings.UPLOAD_MAX_AGE_SEC
    base = base or Path(settings.UPLOAD_DIR)
    if not base.exists():
        return 0

    removed = await asyncio.to_thread(_sweep, base, max_age_sec)
    if removed:
        log.info("Cleaned %d stale upload files from %s", removed, base)
    return removed
