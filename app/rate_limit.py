from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from fastapi import Request
from fastapi.responses import JSONResponse

from app.config import get_settings

settings = get_settings()


limiter = Limiter(
    key_func=get_remote_address,
    storage_uri=settings.redis_url if settings.redis_url else "memory://",
    strategy="fixed-window",
    enabled=settings.rate_limit_enabled,
)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Обработчик превышения лимита запросов."""
    return JSONResponse(
        status_code=429,
        content={
            "error": "Too many requests, please wait.",
            "retry_after": exc.detail
        }
    )


def get_broadcast_rate_limit() -> str:
    """Лимит для отправки рассылок, читается на каждый запрос."""
    return settings.broadcast_rate_limit
