from fastapi import APIRouter, Depends
import logging

from app.api.deps import get_url_service
from app.schemas.CleanupResponse import CleanupResponse
from app.services.shortener import URLService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/admin", tags=["admin"])


@router.post("/cleanup", response_model=CleanupResponse)
def cleanup_expired_endpoint(service: URLService = Depends(get_url_service)):
    """Delete every link whose expiry has passed."""
    removed = service.cleanup_expired()
    logger.info(f"Admin cleanup removed {removed} expired links")
    return CleanupResponse(removed=removed)
