"""
Domain errors for DoseTrack
"""

from typing import Any, Optional


class DoseTrackError(Exception):
    """Base class for errors raised by the dose tracking core"""

    retryable: bool = False

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(DoseTrackError):
    """Malformed input: bad date range, non-positive frequency, unknown occurrence"""


class NotFoundError(DoseTrackError):
    """Requested record does not exist"""


class AuthorizationError(DoseTrackError):
    """Acting user does not own the record. Never retried."""


class DuplicateLogError(DoseTrackError):
    """A dose log already exists for this medication and scheduled instant"""

    def __init__(self, message: str, existing: Optional[Any] = None):
        super().__init__(message)
        self.existing = existing


class TransientStoreError(DoseTrackError):
    """The store failed for infrastructural reasons; safe to retry"""

    retryable = True


__all__ = [
    "DoseTrackError",
    "ValidationError",
    "NotFoundError",
    "AuthorizationError",
    "DuplicateLogError",
    "TransientStoreError",
]
