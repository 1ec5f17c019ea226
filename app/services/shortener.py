from datetime import datetime
from typing import Callable, Iterable, Optional
import logging

from app.core.errors import ConflictError, ExpiredError, InvalidCodeError, InvalidURLError
from app.db.repository import LinkStore
from app.schemas.LinkRecord import LinkMetadata, LinkRecord
from app.utils.clock import as_utc, utc_now
from app.utils.encoding import ShortCodeGenerator
from app.utils.validation import is_valid_code, normalize_url


logger = logging.getLogger(__name__)

GENERATE_ATTEMPTS = 6


class URLService:
    """
    Creates and resolves short links on top of a LinkStore.

    Holds no state of its own, so one instance per request is fine and so is
    sharing one across threads. Expiry is computed on every read from
    expires_at and the clock; it is never stored.
    """

    def __init__(
        self,
        store: LinkStore,
        generator: Optional[ShortCodeGenerator] = None,
        clock: Callable[[], datetime] = utc_now,
        reserved: Iterable[str] = (),
    ):
        self.store = store
        self.generator = generator or ShortCodeGenerator()
        self.clock = clock
        # Codes shadowed by other top-level routes
        self.reserved = frozenset(reserved)

    def shorten(
        self,
        url: str,
        custom_alias: Optional[str] = None,
        expires_at: Optional[datetime] = None,
    ) -> LinkRecord:
        has_alias = custom_alias is not None and custom_alias.strip() != ""
        if has_alias and not is_valid_code(custom_alias):
            raise InvalidCodeError()
        if has_alias and custom_alias in self.reserved:
            raise ConflictError("code is reserved")

        destination = normalize_url(url)

        expires_at = as_utc(expires_at)
        if expires_at is not None and expires_at <= self.clock():
            raise InvalidURLError("expiry must be in the future")

        if has_alias:
            # The caller picked this code, so a conflict goes straight back to them
            record = self.store.create(self._new_record(custom_alias, destination, expires_at))
            logger.info("Shortened %s to custom alias %s", destination[:50], record.code)
            return record

        for attempt in range(1, GENERATE_ATTEMPTS + 1):
            code = self.generator.generate()
            if not is_valid_code(code):
                logger.warning("Generator produced an invalid code on attempt %d/%d", attempt, GENERATE_ATTEMPTS)
                continue
            if code in self.reserved:
                logger.info("Generator produced reserved code %s on attempt %d/%d", code, attempt, GENERATE_ATTEMPTS)
                continue
            try:
                record = self.store.create(self._new_record(code, destination, expires_at))
            except ConflictError:
                logger.info("Short code collision on attempt %d/%d", attempt, GENERATE_ATTEMPTS)
                continue
            logger.info("Shortened %s to %s", destination[:50], record.code)
            return record

        logger.error("Failed to generate a unique short code after %d attempts", GENERATE_ATTEMPTS)
        raise ConflictError(f"could not generate a unique code after {GENERATE_ATTEMPTS} attempts")

    def resolve(self, code: str) -> LinkRecord:
        record = self._lookup(code)
        if record.is_expired(self.clock()):
            raise ExpiredError()
        return record

    def metadata(self, code: str) -> LinkMetadata:
        record = self._lookup(code)
        return LinkMetadata(record=record, expired=record.is_expired(self.clock()))

    def record_hit(self, code: str) -> None:
        if not is_valid_code(code):
            raise InvalidCodeError()
        self.store.increment_hits(code)

    def cleanup_expired(self, now: Optional[datetime] = None) -> int:
        cutoff = as_utc(now) if now is not None else self.clock()
        removed = self.store.purge_expired(cutoff)
        logger.info("Purged %d expired links (cutoff %s)", removed, cutoff.isoformat())
        return removed

    def _lookup(self, code: str) -> LinkRecord:
        if not is_valid_code(code):
            raise InvalidCodeError()
        return self.store.find_by_code(code)

    def _new_record(self, code: str, destination: str, expires_at: Optional[datetime]) -> LinkRecord:
        return LinkRecord(
            code=code,
            destination=destination,
            created_at=self.clock(),
            expires_at=expires_at,
            hits=0,
        )
