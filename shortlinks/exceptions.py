"""Exceptions raised by the link lifecycle engine."""

__all__ = ["ShortLinksError", "AddressCollisionError", "ExpiryOutOfRangeError"]


class ShortLinksError(Exception):
    """Base class for errors raised by this package."""


class AddressCollisionError(ShortLinksError):
    """The address is already used by another link."""

    def __init__(self, address: str) -> None:
        super().__init__(f"Address '{address}' is already taken")
        self.address = address


class ExpiryOutOfRangeError(ShortLinksError):
    """The requested lifetime puts the expiry outside the representable date range."""

    def __init__(self, expire_in: str | None) -> None:
        super().__init__(f"Expiry '{expire_in}' is out of range")
        self.expire_in = expire_in
