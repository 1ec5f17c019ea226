from datetime import datetime
from typing import Protocol
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import ConflictError, NotFoundError
from app.db.Models.models import ShortLink
from app.schemas.LinkRecord import LinkRecord

logger = logging.getLogger(__name__)


class LinkStore(Protocol):
    """Persistence capability the shortening service depends on."""

    def create(self, record: LinkRecord) -> LinkRecord:
        """Insert a record; raise ConflictError if the code is taken."""

    def find_by_code(self, code: str) -> LinkRecord:
        """Return the record for code, expired or not; raise NotFoundError if absent."""

    def increment_hits(self, code: str) -> None:
        """Add one hit; raise NotFoundError if the code does not exist."""

    def purge_expired(self, cutoff: datetime) -> int:
        """Delete records expiring at or before cutoff; return how many were removed."""


def _is_unique_violation(error: IntegrityError) -> bool:
    message = str(error.orig).lower() if getattr(error, "orig", None) is not None else str(error).lower()
    return "unique" in message or "duplicate" in message


class LinkRepository:
    """SQLAlchemy implementation of LinkStore bound to one session."""

    def __init__(self, db: Session):
        self.db = db

    def create(self, record: LinkRecord) -> LinkRecord:
        db_link = ShortLink(
            code=record.code,
            destination=record.destination,
            created_at=record.created_at,
            expires_at=record.expires_at,
            hits=0,
        )
        try:
            self.db.add(db_link)
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            if _is_unique_violation(e):
                logger.info("Code already taken: %s", record.code)
                raise ConflictError() from e
            logger.warning("IntegrityError creating link code=%s: %s", record.code, e)
            raise
        self.db.refresh(db_link)
        return LinkRecord.model_validate(db_link)

    def find_by_code(self, code: str) -> LinkRecord:
        db_link = (
            self.db.query(ShortLink)
            .filter(ShortLink.code == code)
            .populate_existing()
            .first()
        )
        if db_link is None:
            raise NotFoundError()
        return LinkRecord.model_validate(db_link)

    def increment_hits(self, code: str) -> None:
        updated = (
            self.db.query(ShortLink)
            .filter(ShortLink.code == code)
            .update({ShortLink.hits: ShortLink.hits + 1}, synchronize_session=False)
        )
        self.db.commit()
        if not updated:
            raise NotFoundError()

    def purge_expired(self, cutoff: datetime) -> int:
        removed = (
            self.db.query(ShortLink)
            .filter(ShortLink.expires_at.is_not(None), ShortLink.expires_at <= cutoff)
            .delete(synchronize_session=False)
        )
        self.db.commit()
        return removed
