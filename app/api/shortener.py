from fastapi import APIRouter, Depends, status, BackgroundTasks, Request
from fastapi.responses import RedirectResponse
import logging

from app.api.deps import get_clock, get_url_service
from app.core.config import settings
from app.db.Connection import database
from app.schemas.URLCreateRequest import URLCreateRequest
from app.schemas.URLInfoResponse import URLInfoResponse
from app.services import RedisURLCache, metrics
from app.services.shortener import URLService
from app.utils.validation import is_valid_code

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/api/shorten", response_model=URLInfoResponse, status_code=status.HTTP_201_CREATED)
def shorten_url_endpoint(url_request: URLCreateRequest, service: URLService = Depends(get_url_service)):
    record = service.shorten(
        url_request.original_url,
        url_request.custom_alias,
        url_request.expires_at,
    )
    logger.info(f"API success: Shortened {record.destination[:50]}... to {record.code}")
    return URLInfoResponse.from_record(record, settings.BASE_URL)


@router.get("/api/{code}", response_model=URLInfoResponse, tags=["metadata"])
def link_metadata_endpoint(code: str, service: URLService = Depends(get_url_service)):
    """Link details including whether it has expired. Never served from cache."""
    meta = service.metadata(code)
    return URLInfoResponse.from_record(meta.record, settings.BASE_URL, expired=meta.expired)


@router.get("/{code}", tags=["redirect"])
def redirect_to_url_endpoint(
    code: str,
    request: Request,
    background_tasks: BackgroundTasks,
    service: URLService = Depends(get_url_service),
    clock=Depends(get_clock),
    cache=Depends(database.get_redis),
    session_factory=Depends(database.get_session_factory),
):
    # 1. Check cache; entries never outlive the link but expiry is rechecked here
    if is_valid_code(code):
        cached = RedisURLCache.get(cache, code)
        if cached and not cached.is_expired(clock()):
            metrics.update_stat(request, background_tasks, session_factory, code)
            return RedirectResponse(url=cached.url, status_code=status.HTTP_302_FOUND)

    # 2. Check database; raises on invalid, missing or expired codes
    record = service.resolve(code)

    # 3. Count the hit after the response is sent
    metrics.update_stat(request, background_tasks, session_factory, code)

    RedisURLCache.put(cache, record, clock())
    logger.info(f"Redirect cache MISS/DB HIT for {code} -> {record.destination[:50]}...")
    return RedirectResponse(url=record.destination, status_code=status.HTTP_302_FOUND)
