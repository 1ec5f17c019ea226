from sqlalchemy.exc import SQLAlchemyError
import logging

from app.core.errors import ShortenerError
from app.db.repository import LinkRepository
from app.services.shortener import URLService

logger = logging.getLogger(__name__)


def record_hit(session_factory, code: str):
    """Best-effort hit accounting; failures are logged, never raised."""
    db = session_factory()
    try:
        URLService(LinkRepository(db)).record_hit(code)
        logger.info("metrics.record_hit: hit counted for %s", code)
    except ShortenerError as e:
        logger.warning("metrics.record_hit: %s for %s", e, code)
    except SQLAlchemyError:
        logger.exception("metrics.record_hit: failed to update DB for %s", code)
    finally:
        db.close()


def update_stat(request, background_tasks, session_factory, code):
    if not getattr(request.state, "metrics_scheduled", False):
        background_tasks.add_task(record_hit, session_factory, code)
        request.state.metrics_scheduled = True
