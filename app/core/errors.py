"""Error kinds raised by the shortening service and the link store.

None of these are fatal: each one describes a condition the caller can
recover from or report. The HTTP layer maps them onto status codes.
"""


class ShortenerError(Exception):
    default_message = "url shortener error"

    def __init__(self, message: str = None):
        super().__init__(message or self.default_message)


class InvalidURLError(ShortenerError, ValueError):
    default_message = "invalid url"


class InvalidCodeError(ShortenerError, ValueError):
    default_message = "invalid code"


class ConflictError(ShortenerError):
    default_message = "code already exists"


class NotFoundError(ShortenerError, LookupError):
    default_message = "not found"


class ExpiredError(ShortenerError):
    default_message = "link expired"
