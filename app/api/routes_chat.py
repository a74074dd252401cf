from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import JSONResponse

from app.core.errors import PipelineError
from app.core.logger import get_logger
from app.services.ai_gateway import AIGateway, get_ai_gateway
from app.services.context_builder import build_context
from app.services.uploads import save_upload

router = APIRouter()
log = get_logger(__name__)


@router.post("/chat")
async def chat(
    message: str = Form(""),
    file: Optional[UploadFile] = File(None),
    gateway: AIGateway = Depends(get_ai_gateway),
):
    """Answer a chat message, optionally grounded on one attached file.

    Returns `{"reply": ...}`. Empty messages and unusable images/videos are
    rejected with 400; AI failures still come back as a reply.
    """
    if not message.strip():
        return JSONResponse(status_code=400, content={"error": "Pesan tidak boleh kosong"})

    try:
        upload = await save_upload(file) if file is not None and file.filename else None
        context = await build_context(upload)
        reply = await gateway.reply(message, context)
        return {"reply": reply}
    except PipelineError as e:
        log.warning("Chat request rejected: %s", e.message)
        return JSONResponse(status_code=e.status_code, content=e.to_payload())
    except Exception as e:
        log.exception("Error in chat endpoint: %s", e)
        return JSONResponse(
            status_code=500,
            content={"error": "Terjadi kesalahan pada server", "message": str(e)},
        )
