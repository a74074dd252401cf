from fastapi import APIRouter, Depends

from app.core.config import get_settings
from app.schemas.chat import HealthStatus
from app.services.ai_gateway import AIGateway, get_ai_gateway

router = APIRouter()


@router.get("", response_model=HealthStatus)
def health(gateway: AIGateway = Depends(get_ai_gateway)):
    return HealthStatus(
        api_configured=gateway.configured,
        api_key_set=bool(get_settings().KOLOSAL_API_KEY),
    )


@router.get("/ready")
def readiness_probe():
    return {"status": "ready"}


@router.get("/live")
def liveness_probe():
    return {"status": "alive"}
