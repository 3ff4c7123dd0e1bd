"""
Defines custom exceptions for the application to allow for more specific error handling.
"""


class KapeBinsError(Exception):
    """Base exception for all application-specific errors."""


class ConfigurationError(KapeBinsError):
    """Raised for issues related to configuration loading or validation."""


class FetchError(KapeBinsError):
    """Raised when a binary cannot be fetched or written to the cache."""

    def __init__(self, url: str, reason: str):
        super().__init__(f"{reason} ({url})")
        self.url = url
        self.reason = reason


class ExtractError(KapeBinsError):
    """Raised when a downloaded archive is corrupt, unreadable or unsafe."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"{reason} ({path})")
        self.path = path
        self.reason = reason


class CopyError(KapeBinsError):
    """Raised when promoting an executable to the cache root fails."""
