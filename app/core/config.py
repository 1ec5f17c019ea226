import re
from typing import FrozenSet, Optional, Tuple

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_BASE_URL = "http://localhost:8080"
DEFAULT_RATE_LIMIT_RPS = 10

# Accepts "10", "10rps" or "10:20" (rps:burst)
_RATE_LIMIT_RE = re.compile(r"^\s*(\d+)\s*(?:rps)?\s*(?::\s*(\d+)\s*)?$")


def parse_rate_limit(value: str) -> Tuple[int, int]:
    """Parse a RATE_LIMIT value into (rps, burst). Returns (0, 0) if unparsable."""
    match = _RATE_LIMIT_RE.match((value or "").strip().lower())
    if not match:
        return 0, 0
    rps = int(match.group(1))
    burst = int(match.group(2)) if match.group(2) else rps
    return rps, burst


class Settings(BaseSettings):
    PROJECT_NAME: str = "URL Shortener"

    HOST: str = "0.0.0.0"
    PORT: int = 8080
    BASE_URL: str = DEFAULT_BASE_URL

    DATABASE_URL: str = "sqlite:///./data/urlshorty.db"

    # Redirect cache is disabled when no Redis URL is configured
    REDIS_URL: Optional[str] = None
    CACHE_TTL: int = Field(86400, gt=0)

    CODE_LENGTH: int = Field(7, ge=3, le=64)
    RATE_LIMIT: str = str(DEFAULT_RATE_LIMIT_RPS)
    # Comma-separated peer addresses whose X-Forwarded-For header is believed
    TRUSTED_PROXIES: str = ""
    CLEANUP_INTERVAL_SECONDS: float = Field(0, ge=0)

    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @field_validator("BASE_URL")
    def sanitize_base_url(cls, v):
        v = (v or "").strip().rstrip("/")
        return v or DEFAULT_BASE_URL

    @property
    def RATE_LIMIT_RPS(self) -> int:
        if self.RATE_LIMIT.strip() == "0":
            return 0
        rps, _ = parse_rate_limit(self.RATE_LIMIT)
        return rps if rps > 0 else DEFAULT_RATE_LIMIT_RPS

    @property
    def RATE_LIMIT_BURST(self) -> int:
        rps = self.RATE_LIMIT_RPS
        _, burst = parse_rate_limit(self.RATE_LIMIT)
        return max(burst, rps)

    @property
    def TRUSTED_PROXY_SET(self) -> FrozenSet[str]:
        return frozenset(p.strip() for p in self.TRUSTED_PROXIES.split(",") if p.strip())


settings = Settings()
