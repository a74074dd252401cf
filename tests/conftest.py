import pytest

from app.core.config import get_settings


@pytest.fixture(autouse=True)
def upload_root(tmp_path, monkeypatch):
    """Point uploads at a per-test directory and start from fresh settings."""
    root = tmp_path / "uploads"
    monkeypatch.setenv("UPLOAD_DIR", str(root))
    monkeypatch.setenv("KOLOSAL_API_KEY", "")
    get_settings.cache_clear()
    yield root
    get_settings.cache_clear()


@pytest.fixture
def leftover_files(upload_root):
    """Callable listing every regular file still under the upload root."""

    def _list():
        if not upload_root.exists():
            return []
        return [p for p in upload_root.rglob("*") if p.is_file()]

    return _list
