"""
Ratecache exception hierarchy.

All custom exceptions inherit from RateCacheException so callers can
catch a single base type when they want a broad safety net.
"""


class RateCacheException(Exception):
    """Base exception for all ratecache errors."""


class ConfigurationError(RateCacheException, ValueError):
    """Raised when configuration is invalid or cannot be loaded."""


class WriteUnsupportedError(RateCacheException):
    """Raised when ``write`` is called on a tier whose ``can_write`` is False."""


class StorageIOError(RateCacheException):
    """Raised when a tier cannot read or persist its backing store."""


class TransientFailureError(RateCacheException):
    """Raised when a tier is temporarily unreachable (network, timeout)."""


class CorruptDataError(RateCacheException):
    """Raised when a durable tier holds data that cannot be decoded.

    Attributes:
        tier: Name of the tier holding the corrupt data.
    """

    def __init__(self, message: str, tier: str = "") -> None:
        super().__init__(message)
        self.tier = tier
