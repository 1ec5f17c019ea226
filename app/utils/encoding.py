import secrets
import string

# Base62 alphabet: digits, uppercase, lowercase
ALPHABET = string.digits + string.ascii_uppercase + string.ascii_lowercase
SHORT_CODE_LENGTH = 7


def generate_short_code(length: int = SHORT_CODE_LENGTH) -> str:
    """Generate a cryptographically secure random Base62 code."""
    if length <= 0:
        length = SHORT_CODE_LENGTH
    return ''.join(secrets.choice(ALPHABET) for _ in range(length))


class ShortCodeGenerator:
    """Fixed-length random code source used by the shortening service."""

    def __init__(self, length: int = SHORT_CODE_LENGTH):
        self.length = length if length > 0 else SHORT_CODE_LENGTH

    def generate(self) -> str:
        return generate_short_code(self.length)
