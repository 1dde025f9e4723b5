"""
Error types shared by the repositories, the booking flow and the upload relay.

Every error carries the HTTP status the API answers with, so route handlers
only need to raise; ``main.py`` renders them as ``{"error": message}``.
"""

import logging
from contextlib import contextmanager

from pymongo.errors import (
    AutoReconnect,
    NetworkTimeout,
    OperationFailure,
    PyMongoError,
    ServerSelectionTimeoutError,
)

logger = logging.getLogger(__name__)


class RentalError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidInputError(RentalError):
    status_code = 400


class NotFoundError(RentalError):
    status_code = 404


class CarNotFoundError(NotFoundError):
    def __init__(self, car_id: str, field: str = "ID"):
        super().__init__(f'Car with {field} "{car_id}" not found')
        self.car_id = car_id


class BookingNotFoundError(NotFoundError):
    def __init__(self, booking_id: str):
        super().__init__(f'Booking with ID "{booking_id}" not found')
        self.booking_id = booking_id


class BackendError(RentalError):
    status_code = 500


class DatabaseUnavailableError(BackendError):
    def __init__(self):
        super().__init__("Database not available. Check DATABASE_URL and DATABASE_NAME.")


class InvalidDocumentError(BackendError):
    def __init__(self, kind: str, key):
        super().__init__(f'Stored {kind} "{key}" is invalid')
        self.kind = kind
        self.key = key


# Upload relay

class UploadError(RentalError):
    status_code = 400


class NoFileProvidedError(UploadError):
    pass


class FileTooLargeError(UploadError):
    def __init__(self, max_size_mb: float):
        super().__init__(f"File too large. Maximum size is {max_size_mb:g}MB")
        self.max_size_mb = max_size_mb


class NotAnImageError(UploadError):
    def __init__(self, filename: str = ""):
        label = f'"{filename}" ' if filename else ""
        super().__init__(f"File {label}is not an image. Please select an image file.")
        self.filename = filename


class TooManyFilesError(UploadError):
    def __init__(self, max_files: int):
        super().__init__(f"Too many files. Maximum is {max_files} files")
        self.max_files = max_files


class ServerMisconfiguredError(UploadError):
    status_code = 502

    def __init__(self):
        super().__init__(
            "Server error: Received HTML response instead of JSON. Please check server logs."
        )


class UploadNetworkError(UploadError):
    status_code = 503


PERMISSION_MARKERS = ("permission", "insufficient", "not authorized", "unauthorized")
NETWORK_MARKERS = ("network", "offline", "timed out", "timeout", "connection refused")


def describe_backend_error(exc: Exception, action: str) -> str:
    """Turn a document-store failure into the message shown to the user."""
    text = str(exc)
    lowered = text.lower()
    if isinstance(exc, OperationFailure) and exc.code == 13:
        return "Permission denied. Please check the database access rules."
    if any(marker in lowered for marker in PERMISSION_MARKERS):
        return "Permission denied. Please check the database access rules."
    if isinstance(exc, (AutoReconnect, NetworkTimeout, ServerSelectionTimeoutError)):
        return "Network error. Please check your connection and try again."
    if any(marker in lowered for marker in NETWORK_MARKERS):
        return "Network error. Please check your connection and try again."
    return f"Failed to {action}: {text}"


@contextmanager
def backend_errors(action: str):
    """Rethrow document-store errors as BackendError, keeping our own errors intact."""
    try:
        yield
    except RentalError:
        raise
    except PyMongoError as exc:
        logger.error(f"Backend failure while trying to {action}: {exc}")
        raise BackendError(describe_backend_error(exc, action)) from exc
