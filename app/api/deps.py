from fastapi import Depends
from sqlalchemy.orm import Session

from app.core.config import settings
from app.db.Connection import database
from app.db.repository import LinkRepository
from app.services.shortener import URLService
from app.utils.clock import utc_now
from app.utils.encoding import ShortCodeGenerator

# Single-segment GET paths matched before GET /{code}: FastAPI's docs pages and the health router
RESERVED_CODES = frozenset({"docs", "redoc", "health", "ready"})


def get_clock():
    return utc_now


def get_url_service(db: Session = Depends(database.get_db), clock=Depends(get_clock)) -> URLService:
    return URLService(
        LinkRepository(db),
        generator=ShortCodeGenerator(settings.CODE_LENGTH),
        clock=clock,
        reserved=RESERVED_CODES,
    )
