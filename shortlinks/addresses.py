"""Random public addresses for new links.

Addresses are drawn with nanoid, which reads from ``os.urandom``, so they
cannot be predicted from previously issued ones. Uniqueness is not checked
here: the ``links.address`` unique constraint rejects duplicates and the
service retries with a fresh address.
"""

from nanoid import generate

from shortlinks.config import get_settings

__all__ = ["ALPHABET", "generate_address"]

settings = get_settings()

ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ"


def generate_address(length: int = settings.ADDRESS_LENGTH) -> str:
    if not isinstance(length, int) or length <= 0:
        raise ValueError(f"length must be a positive integer, got {length!r}")
    return generate(ALPHABET, length)
