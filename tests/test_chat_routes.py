import io

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from app.main import app
from app.schemas.chat import ContextKind
from app.services import frame_sampler
from app.services.ai_gateway import NOT_CONFIGURED_REPLY, AIGateway, get_ai_gateway


class FakeGateway:
    def __init__(self, reply="Saran: catat semua pengeluaran.", configured=True):
        self._reply = reply
        self.configured = configured
        self.calls = []

    async def reply(self, user_text, context=None):
        self.calls.append((user_text, context))
        return self._reply


@pytest.fixture
def gateway():
    fake = FakeGateway()
    app.dependency_overrides[get_ai_gateway] = lambda: fake
    yield fake
    app.dependency_overrides.clear()


@pytest.fixture
def client():
    return TestClient(app)


def _jpeg():
    buf = io.BytesIO()
    Image.new("RGB", (16, 16), (250, 250, 250)).save(buf, format="JPEG")
    return buf.getvalue()


def test_scenario_a_receipt_image(client, gateway, leftover_files):
    r = client.post(
        "/api/chat",
        data={"message": "Analisa struk ini"},
        files={"file": ("receipt.jpg", _jpeg(), "image/jpeg")},
    )
    assert r.status_code == 200
    assert r.json() == {"reply": "Saran: catat semua pengeluaran."}
    text, ctx = gateway.calls[0]
    assert text == "Analisa struk ini"
    assert ctx.kind is ContextKind.IMAGE
    assert ctx.mime_type == "image/jpeg"
    assert leftover_files() == []


def test_scenario_b_broken_pdf_still_replies(client, gateway, leftover_files):
    r = client.post(
        "/api/chat",
        data={"message": "cek dokumen"},
        files={"file": ("report.pdf", b"not really a pdf", "application/pdf")},
    )
    assert r.status_code == 200
    assert "reply" in r.json()
    _, ctx = gateway.calls[0]
    assert ctx.kind is ContextKind.TEXT
    assert "[Error membaca PDF:" in ctx.content
    assert leftover_files() == []


def test_scenario_c_zero_duration_video(client, gateway, monkeypatch, leftover_files):
    monkeypatch.setattr(frame_sampler, "probe_duration", lambda path: 0.0)
    r = client.post(
        "/api/chat",
        data={"message": "lihat video"},
        files={"file": ("clip.mp4", b"\x00\x00\x00\x18ftypmp42", "video/mp4")},
    )
    assert r.status_code == 400
    assert r.json()["error"] == "❌ Gagal membaca video"
    assert gateway.calls == []
    assert leftover_files() == []


def test_scenario_d_empty_message(client, gateway, monkeypatch):
    def _boom(*args, **kwargs):
        raise AssertionError("pipeline must not run")

    monkeypatch.setattr("app.api.routes_chat.save_upload", _boom)
    monkeypatch.setattr("app.api.routes_chat.build_context", _boom)
    r = client.post("/api/chat", data={"message": ""})
    assert r.status_code == 400
    assert r.json() == {"error": "Pesan tidak boleh kosong"}
    assert gateway.calls == []


def test_message_without_file(client, gateway):
    r = client.post("/api/chat", data={"message": "Bagaimana cara menghemat biaya listrik?"})
    assert r.status_code == 200
    _, ctx = gateway.calls[0]
    assert ctx.kind is ContextKind.NONE


def test_disallowed_extension_rejected(client, gateway, leftover_files):
    r = client.post(
        "/api/chat",
        data={"message": "cek"},
        files={"file": ("macro.docm", b"PK", "application/octet-stream")},
    )
    assert r.status_code == 400
    assert r.json() == {"error": "Format file tidak didukung"}
    assert gateway.calls == []
    assert leftover_files() == []


def test_unexpected_fault_is_500(client, gateway, monkeypatch):
    async def _explode(upload):
        raise RuntimeError("disk on fire")

    monkeypatch.setattr("app.api.routes_chat.build_context", _explode)
    r = client.post("/api/chat", data={"message": "halo"})
    assert r.status_code == 500
    assert r.json() == {"error": "Terjadi kesalahan pada server", "message": "disk on fire"}


def test_unconfigured_gateway_reply_is_200(client):
    gw = AIGateway("", "https://api.example.test/v1", "m")
    app.dependency_overrides[get_ai_gateway] = lambda: gw
    try:
        r = client.post("/api/chat", data={"message": "halo"})
    finally:
        app.dependency_overrides.clear()
    assert r.status_code == 200
    assert r.json() == {"reply": NOT_CONFIGURED_REPLY}


def test_health_reports_gateway_state(client, gateway):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "healthy", "api_configured": True, "api_key_set": False}

    assert client.get("/health/ready").json() == {"status": "ready"}
    assert client.get("/health/live").json() == {"status": "alive"}


def test_blank_message_rejected(client, gateway):
    r = client.post("/api/chat", data={"message": "   \n"})
    assert r.status_code == 400
    assert r.json() == {"error": "Pesan tidak boleh kosong"}
    assert gateway.calls == []
