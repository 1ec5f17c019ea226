from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import Optional

from app.utils.clock import as_utc


# Request DTOs
class URLCreateRequest(BaseModel):
    # original_url is the Python field, 'url' is the JSON key.
    # Kept as a plain string: the service owns URL validation and normalization.
    original_url: str = Field(..., alias="url")
    custom_alias: Optional[str] = Field(None, alias="custom")
    # UTC when no offset is given
    expires_at: Optional[datetime] = None

    model_config = {"populate_by_name": True}

    @field_validator('expires_at')
    def validate_expires_at(cls, v):
        return as_utc(v)
