"""
Error taxonomy shared by the pipeline, the store and the HTTP layer.

Each class maps to one HTTP status; the app turns them into the
``{success: false, message, error?}`` envelope.
"""
from typing import Optional


class JalRakshakError(Exception):
    status_code = 500

    def __init__(self, message: str, error: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.error = error


class ValidationError(JalRakshakError):
    """Reading or request payload rejected before any state change."""
    status_code = 400


class NotFound(JalRakshakError):
    status_code = 404


class StorageUnavailable(JalRakshakError):
    """The backing database call failed; nothing is retried."""
    status_code = 500
