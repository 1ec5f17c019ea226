import asyncio
import logging

from app.db.repository import LinkRepository
from app.services.shortener import URLService
from app.utils.clock import utc_now

logger = logging.getLogger(__name__)


def purge_expired_links(session_factory, clock=utc_now) -> int:
    db = session_factory()
    try:
        return URLService(LinkRepository(db), clock=clock).cleanup_expired()
    finally:
        db.close()


async def run_periodic_cleanup(session_factory, interval_seconds: float, stop_event: asyncio.Event):
    """Purge expired links every interval until stop_event is set."""
    logger.info("Expired-link cleanup running every %ss", interval_seconds)
    while not stop_event.is_set():
        try:
            await asyncio.wait_for(stop_event.wait(), timeout=interval_seconds)
            break
        except asyncio.TimeoutError:
            pass
        try:
            await asyncio.to_thread(purge_expired_links, session_factory)
        except Exception:
            logger.exception("Periodic cleanup failed; retrying next interval")
    logger.info("Expired-link cleanup stopped")
