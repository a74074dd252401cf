from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api import routes_chat, routes_health
from app.core.config import get_settings
from app.core.logger import get_logger
from app.services.ai_gateway import get_ai_gateway
from app.services.uploads import upload_dir
from app.workers.scheduler import cleanup_uploads, get_scheduler

log = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    settings = get_settings()
    upload_dir()
    gateway = get_ai_gateway()
    log.info("Kolosal AI configured: %s (model=%s)", gateway.configured, gateway.model)
    sched = get_scheduler()
    await sched.start()
    sched.schedule(cleanup_uploads, interval_sec=settings.CLEANUP_INTERVAL_SEC)
    try:
        yield
    finally:
        # Shutdown
        await get_scheduler().stop()
        await get_ai_gateway().aclose()


app = FastAPI(
    title="UMKM Assistant API",
    description="Multi-modal finance assistant for small businesses",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    msg = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    return JSONResponse(status_code=400, content={"error": msg})


# Routers
app.include_router(routes_chat.router, prefix="/api", tags=["Chat"])
app.include_router(routes_health.router, prefix="/health", tags=["Health"])


@app.get("/")
def root():
    return {"status": "UMKM Assistant backend running"}
