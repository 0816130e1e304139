"""
Defines custom exceptions for the application to allow for more specific error handling.
"""


class QzoneSyncError(Exception):
    """Base exception for all application-specific errors."""


class ConfigurationError(QzoneSyncError):
    """Raised for issues related to configuration loading or validation."""


class AuthenticationError(QzoneSyncError):
    """Raised when the cookie does not identify a logged-in account."""


class RemoteAPIError(QzoneSyncError):
    """Raised when the photo service answers with an error envelope."""

    def __init__(self, message: str, code: int | None = None):
        super().__init__(message)
        self.code = code


class SyncStalledError(QzoneSyncError):
    """
    Raised when item pagination stops moving forward (the source keeps echoing
    the same page).
    """


class TrackStoreError(QzoneSyncError):
    """Raised when the track file exists but cannot be read or written."""
