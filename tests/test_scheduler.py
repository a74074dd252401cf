import asyncio
import os
import threading
import time

import pytest

from app.workers.scheduler import PeriodicScheduler, cleanup_uploads


def _age(path, seconds):
    old = time.time() - seconds
    os.utime(path, (old, old))


@pytest.mark.asyncio
async def test_cleanup_removes_only_stale_files(upload_root):
    stale_dir = upload_root / "frames" / "req_abc"
    stale_dir.mkdir(parents=True)
    stale_frame = stale_dir / "frame_0.jpg"
    stale_frame.write_bytes(b"x")
    stale_upload = upload_root / "1-2-old.mp4"
    stale_upload.write_bytes(b"x")
    fresh_upload = upload_root / "3-4-new.jpg"
    fresh_upload.write_bytes(b"x")
    _age(stale_frame, 7200)
    _age(stale_upload, 7200)
    _age(stale_dir, 7200)

    removed = await cleanup_uploads(max_age_sec=3600)

    assert removed == 2
    assert fresh_upload.exists()
    assert not stale_upload.exists()
    assert (upload_root / "frames").exists()


@pytest.mark.asyncio
async def test_cleanup_missing_dir_is_noop(tmp_path):
    assert await cleanup_uploads(max_age_sec=0, base=tmp_path / "nope") == 0


@pytest.mark.asyncio
async def test_scheduler_runs_until_stopped():
    runs = []

    async def job():
        runs.append(1)

    sched = PeriodicScheduler()
    await sched.start()
    sched.schedule(job, interval_sec=0.01)
    await asyncio.sleep(0.05)
    await sched.stop()
    count = len(runs)
    assert count >= 1
    await asyncio.sleep(0.03)
    assert len(runs) == count
    assert sched.running is False


@pytest.mark.asyncio
async def test_cleanup_walks_filesystem_off_the_loop(upload_root, monkeypatch):
    from app.workers import scheduler

    upload_root.mkdir(parents=True, exist_ok=True)
    loop_thread = threading.get_ident()
    seen = {}
    real_sweep = scheduler._sweep

    def _recording_sweep(base, max_age_sec):
        seen["thread"] = threading.get_ident()
        return real_sweep(base, max_age_sec)

    monkeypatch.setattr(scheduler, "_sweep", _recording_sweep)
    assert await cleanup_uploads(max_age_sec=3600) == 0
    assert seen["thread"] != loop_thread
