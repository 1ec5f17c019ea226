from pydantic import BaseModel, field_validator
from datetime import datetime
from typing import Optional

from app.utils.clock import as_utc, is_expired


class LinkRecord(BaseModel):
    id: Optional[int] = None
    code: str
    destination: str
    created_at: datetime
    expires_at: Optional[datetime] = None
    hits: int = 0

    model_config = {"from_attributes": True}

    # SQLite hands back naive datetimes; everything in process is aware UTC
    @field_validator('created_at', 'expires_at')
    def ensure_utc(cls, v):
        return as_utc(v)

    def is_expired(self, now: datetime) -> bool:
        return is_expired(self.expires_at, now)


class LinkMetadata(BaseModel):
    record: LinkRecord
    expired: bool
