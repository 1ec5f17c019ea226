import re
import string
from urllib.parse import quote, urlsplit, urlunsplit

from app.core.errors import InvalidURLError

MAX_URL_LENGTH = 2048
MIN_CODE_LENGTH = 3
MAX_CODE_LENGTH = 64
ALLOWED_SCHEMES = ("http", "https")

_CODE_RE = re.compile(r"[A-Za-z0-9_-]+")

# '%' not starting a two-digit hex escape
_BAD_ESCAPE_RE = re.compile(r"%(?![0-9A-Fa-f]{2})")

# RFC 3986 reg-name (unreserved, sub-delims, pct-encoded) and IP-literal characters
_REG_NAME_CHARS = frozenset(string.ascii_letters + string.digits + "-._~!$&'()*+,;=%")
_IP_LITERAL_RE = re.compile(r"[0-9A-Fa-f:.]+")

# Characters left untouched when re-encoding the path; '%' keeps existing escapes
_PATH_SAFE = "/%:@!$&'()*+,;=-._~"


def is_valid_code(code) -> bool:
    if not isinstance(code, str):
        return False
    if len(code) < MIN_CODE_LENGTH or len(code) > MAX_CODE_LENGTH:
        return False
    return _CODE_RE.fullmatch(code) is not None


def _has_control_chars(value: str) -> bool:
    return any(ord(ch) < 0x20 or ord(ch) == 0x7F for ch in value)


def _is_valid_host(parts) -> bool:
    host = parts.hostname
    if not host:
        return False
    if "[" in parts.netloc:
        return _IP_LITERAL_RE.fullmatch(host) is not None
    # Non-ASCII letters are allowed through for internationalized names
    for ch in host:
        if ch.isspace():
            return False
        if ord(ch) < 0x80 and ch not in _REG_NAME_CHARS:
            return False
    return True


def normalize_url(raw: str) -> str:
    """
    Validate a destination URL and return its canonical form.

    The URL must be absolute http/https with a host. The path and fragment are
    percent-encoded so the stored value is safe to put in a Location header.
    Raises InvalidURLError for anything else.
    """
    if not isinstance(raw, str):
        raise InvalidURLError()
    candidate = raw.strip()
    if not candidate or len(candidate) > MAX_URL_LENGTH:
        raise InvalidURLError()
    if _has_control_chars(candidate):
        raise InvalidURLError()
    if _BAD_ESCAPE_RE.search(candidate):
        raise InvalidURLError()

    try:
        parts = urlsplit(candidate)
        # accessing .port validates it
        parts.port
    except ValueError:
        raise InvalidURLError()

    if parts.scheme not in ALLOWED_SCHEMES:
        raise InvalidURLError()
    if not _is_valid_host(parts):
        raise InvalidURLError()

    normalized = urlunsplit((
        parts.scheme,
        parts.netloc,
        quote(parts.path, safe=_PATH_SAFE),
        parts.query,
        quote(parts.fragment, safe=_PATH_SAFE + "?"),
    ))
    if len(normalized) > MAX_URL_LENGTH:
        raise InvalidURLError()
    return normalized
