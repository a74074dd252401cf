"""
Kolosal AI gateway (async, httpx) for the UMKM finance assistant.

Builds an OpenAI-compatible chat completion request from the user's message
and the attachment context, sends it once, and always hands back a reply
string. A missing API key or any transport/HTTP/decoding failure becomes a
user-facing warning instead of an exception.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx

from app.core.config import get_settings
from app.core.logger import get_logger
from app.schemas.chat import ContextKind, ContextPayload

log = get_logger(__name__)

SYSTEM_INSTRUCTION = (
    "Anda adalah Asisten Keuangan UMKM ahli. Analisis dokumen, gambar struk, atau video kondisi toko "
    "yang diberikan. Berikan saran praktis, hemat, dan ramah. Respon dalam Bahasa Indonesia."
)
DOCUMENT_MARKER = "\n\nISI DOKUMEN:\n"
VIDEO_FRAMES_INTRO = "Berikut adalah beberapa frame dari video yang diunggah user:"

NOT_CONFIGURED_REPLY = (
    "⚠️ Maaf, sistem AI belum terkonfigurasi dengan benar. "
    "Pastikan API Key telah diatur di environment variables."
)
FAILURE_REPLY_PREFIX = "⚠️ Maaf, terjadi kesalahan saat menghubungi AI: "


def _image_part(b64: str, mime_type: str = "image/jpeg") -> Dict[str, Any]:
    return {"type": "image_url", "image_url": {"url": f"data:{mime_type};base64,{b64}"}}


def compose_user_content(user_text: str, context: ContextPayload) -> List[Dict[str, Any]]:
    """Ordered content parts: the user's text first, then the attachment."""
    parts: List[Dict[str, Any]] = [{"type": "text", "text": user_text}]

    if context.kind is ContextKind.TEXT:
        parts.append({"type": "text", "text": f"{DOCUMENT_MARKER}{context.content}"})
    elif context.kind is ContextKind.IMAGE:
        if context.content:
            parts.append(_image_part(context.content, context.mime_type or "image/jpeg"))
    elif context.kind is ContextKind.VIDEO_FRAMES:
        if context.content:
            parts.append({"type": "text", "text": VIDEO_FRAMES_INTRO})
            parts.extend(_image_part(frame) for frame in context.content)

    return parts


class AIGateway:
    def __init__(
        self,
        api_key: Optional[str],
        base_url: str,
        model: str,
        *,
        max_tokens: int = 2048,
        temperature: float = 0.7,
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.api_key = api_key or ""
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self._timeout = timeout
        self._transport = transport
        self._aclient: Optional[httpx.AsyncClient] = None
        if not self.api_key:
            log.warning("KOLOSAL_API_KEY is not set; AI replies are disabled")

    @classmethod
    def from_settings(cls) -> "AIGateway":
        s = get_settings()
        return cls(
            s.KOLOSAL_API_KEY,
            s.KOLOSAL_BASE_URL,
            s.KOLOSAL_MODEL,
            max_tokens=s.AI_MAX_TOKENS,
            temperature=s.AI_TEMPERATURE,
            timeout=s.AI_TIMEOUT_SEC,
        )

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def _get_async_client(self) -> httpx.AsyncClient:
        if self._aclient is None:
            self._aclient = httpx.AsyncClient(timeout=self._timeout, transport=self._transport)
        return self._aclient

    def build_request(self, user_text: str, context: ContextPayload) -> Dict[str, Any]:
        return {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_INSTRUCTION},
                {"role": "user", "content": compose_user_content(user_text, context)},
            ],
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
        }

    async def reply(self, user_text: str, context: Optional[ContextPayload] = None) -> str:
        """Ask the model and return its text, or a warning string on any failure."""
        if not self.configured:
            return NOT_CONFIGURED_REPLY

        payload = self.build_request(user_text, context or ContextPayload.empty())
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        try:
            client = self._get_async_client()
            resp = await client.post(f"{self.base_url}/chat/completions", json=payload, headers=headers)
            resp.raise_for_status()
            data = resp.json()
            return data["choices"][0]["message"]["content"] or ""
        except Exception as e:
            log.exception("Kolosal AI request failed: %s", e)
            return f"{FAILURE_REPLY_PREFIX}{e}"

    async def aclose(self) -> None:
        if self._aclient is not None:
            await self._aclient.aclose()
            self._aclient = None


_gateway: Optional[AIGateway] = None


def get_ai_gateway() -> AIGateway:
    global _gateway
    if _gateway is None:
        _gateway = AIGateway.from_settings()
    return _gateway
