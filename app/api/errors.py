from fastapi import Request, status
from fastapi.responses import JSONResponse
import logging

from app.core.errors import (
    ConflictError,
    ExpiredError,
    InvalidCodeError,
    InvalidURLError,
    NotFoundError,
    ShortenerError,
)

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    InvalidURLError: status.HTTP_400_BAD_REQUEST,
    InvalidCodeError: status.HTTP_400_BAD_REQUEST,
    ConflictError: status.HTTP_409_CONFLICT,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    ExpiredError: status.HTTP_410_GONE,
}


def status_for(exc: ShortenerError) -> int:
    for error_type, status_code in ERROR_STATUS.items():
        if isinstance(exc, error_type):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def shortener_exception_handler(request: Request, exc: ShortenerError):
    status_code = status_for(exc)
    if status_code >= 500:
        logger.error(f"Unmapped service error on {request.url.path}: {exc}", exc_info=exc)
        return JSONResponse(status_code=status_code, content={"detail": "Internal server error"})
    logger.warning(f"{request.method} {request.url.path} -> {status_code}: {exc}")
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})
