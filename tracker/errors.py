"""Errors raised while syncing shipment tracking."""

from typing import Optional


class TrackingError(Exception):
    """Base class for tracking sync failures. Never clears cached data."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NetworkError(TrackingError):
    """The tracking endpoint could not be reached."""


class RateLimitError(TrackingError):
    """The tracking provider refused the lookup for now."""


class ProviderError(TrackingError):
    """The tracking endpoint answered with an error."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
