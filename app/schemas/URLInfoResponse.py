from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional

from app.schemas.LinkRecord import LinkRecord


# Response DTOs
class URLInfoResponse(BaseModel):
    code: str
    short_url: str
    # destination is the Python field, 'url' is the JSON key
    destination: str = Field(..., alias="url")
    created_at: datetime
    expires_at: Optional[datetime] = None
    hits: int = 0
    expired: bool = False

    model_config = {"populate_by_name": True}

    @classmethod
    def from_record(cls, record: LinkRecord, base_url: str, expired: bool = False) -> "URLInfoResponse":
        return cls(
            code=record.code,
            short_url=f"{base_url}/{record.code}",
            destination=record.destination,
            created_at=record.created_at,
            expires_at=record.expires_at,
            hits=record.hits,
            expired=expired,
        )
