from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded

from app.config import get_settings
from app.logging_config import get_logger, setup_logging
from app.errors import (
    DependencyError,
    ValidationError,
    dependency_error_handler,
    request_validation_error_handler,
    unhandled_error_handler,
    validation_error_handler,
)
from app.rate_limit import limiter, rate_limit_exceeded_handler
from app.broadcast.router import router as broadcast_router
from app.broadcast.router import debug_router as broadcast_debug_router
from app.dependencies import get_supabase_client

settings = get_settings()

setup_logging(
    level="DEBUG" if settings.debug else settings.log_level.upper(),
    json_format=settings.log_json,
)
logger = get_logger(__name__)

app = FastAPI(
    title="Broadcast Notification Server",
    description="Push broadcast dispatcher for admin announcements",
    version="1.0.0",
    debug=settings.debug
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
app.add_exception_handler(ValidationError, validation_error_handler)
app.add_exception_handler(RequestValidationError, request_validation_error_handler)
app.add_exception_handler(DependencyError, dependency_error_handler)
app.add_exception_handler(Exception, unhandled_error_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(broadcast_router)
if settings.enable_debug_routes:
    app.include_router(broadcast_debug_router)


@app.on_event("startup")
async def _log_startup():
    logger.info("Notification server started")


@app.on_event("shutdown")
async def _close_supabase():
    await get_supabase_client().close()


@app.get("/health")
async def health_check():
    return {"status": "ok"}


@app.get("/")
async def root():
    endpoints = {
        "sendBroadcast": "POST /api/send-broadcast",
        "history": "GET /api/broadcast-history",
        "stats": "GET /api/stats",
    }
    if settings.enable_debug_routes:
        endpoints["debugCollections"] = "GET /api/debug/collections"
    return {
        "status": "ok",
        "message": "Notification server is running",
        "endpoints": endpoints,
    }
