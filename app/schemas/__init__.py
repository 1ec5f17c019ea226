# re-export common schemas for simpler imports
from .LinkRecord import LinkRecord, LinkMetadata
from .URLCreateRequest import URLCreateRequest
from .URLInfoResponse import URLInfoResponse
from .CleanupResponse import CleanupResponse

__all__ = [
    "LinkRecord",
    "LinkMetadata",
    "URLCreateRequest",
    "URLInfoResponse",
    "CleanupResponse",
]
