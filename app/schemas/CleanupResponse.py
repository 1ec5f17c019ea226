from pydantic import BaseModel


class CleanupResponse(BaseModel):
    removed: int
