"""
Typed outcomes raised by the event and booking repositories.

Every error carries a stable ``code``, the HTTP ``status`` the presentation layer should answer
with, and a user-safe ``message``. Internal details never go into the message.
"""

from enum import StrEnum
from http import HTTPStatus
from typing import ClassVar


class ErrorCode(StrEnum):
    """Domain error codes."""

    VALIDATION_FAILED = "VALIDATION_FAILED"
    EVENT_NOT_FOUND = "EVENT_NOT_FOUND"
    BOOKING_NOT_FOUND = "BOOKING_NOT_FOUND"
    DUPLICATE_SLUG = "DUPLICATE_SLUG"
    DUPLICATE_BOOKING = "DUPLICATE_BOOKING"
    EVENT_FULL = "EVENT_FULL"
    STORE_UNAVAILABLE = "STORE_UNAVAILABLE"
    UPLOAD_FAILED = "UPLOAD_FAILED"
    UNEXPECTED = "UNEXPECTED"


class EventHubError(Exception):
    """Base domain error with code, HTTP status and user-safe message."""

    code: ClassVar[ErrorCode] = ErrorCode.UNEXPECTED
    status: ClassVar[HTTPStatus] = HTTPStatus.INTERNAL_SERVER_ERROR
    default_message: ClassVar[str] = "An unexpected error occurred"

    def __init__(self, message: str | None = None) -> None:
        """
        Initialize the error.

        Args:
            message: Optional override of the class default message

        """
        self.message = message or self.default_message
        super().__init__(self.message)

    def __str__(self) -> str:
        """Return ``CODE: message``."""
        return f"{self.code}: {self.message}"


class FieldValidationError(EventHubError):
    """One or more fields violate the validation rules."""

    code = ErrorCode.VALIDATION_FAILED
    status = HTTPStatus.BAD_REQUEST
    default_message = "Validation failed"

    def __init__(self, errors: dict[str, list[str]]) -> None:
        """
        Initialize the error.

        Args:
            errors: Mapping of field name to every message reported for that field

        """
        self.errors = errors
        super().__init__()


class EventNotFoundError(EventHubError):
    """The referenced event does not exist."""

    code = ErrorCode.EVENT_NOT_FOUND
    status = HTTPStatus.NOT_FOUND
    default_message = "Event not found"

    def __init__(self, lookup: object) -> None:
        """Remember the slug or id that was looked up."""
        self.lookup = lookup
        super().__init__()


class BookingNotFoundError(EventHubError):
    """The referenced booking does not exist."""

    code = ErrorCode.BOOKING_NOT_FOUND
    status = HTTPStatus.NOT_FOUND
    default_message = "Booking not found"

    def __init__(self, booking_id: object) -> None:
        """Remember the id that was looked up."""
        self.booking_id = booking_id
        super().__init__()


class DuplicateSlugError(EventHubError):
    """Another event already uses the slug derived from this title."""

    code = ErrorCode.DUPLICATE_SLUG
    status = HTTPStatus.CONFLICT
    default_message = "An event with this title already exists"

    def __init__(self, slug: str) -> None:
        """Remember the colliding slug."""
        self.slug = slug
        super().__init__()


class DuplicateBookingError(EventHubError):
    """The e-mail address is already registered for the event."""

    code = ErrorCode.DUPLICATE_BOOKING
    status = HTTPStatus.CONFLICT
    default_message = "Already registered for this event"


class CapacityError(EventHubError):
    """The event has no confirmed seats left."""

    code = ErrorCode.EVENT_FULL
    status = HTTPStatus.CONFLICT
    default_message = "Event is at full capacity"


class StoreConnectivityError(EventHubError):
    """The database is unreachable or timed out."""

    code = ErrorCode.STORE_UNAVAILABLE
    status = HTTPStatus.SERVICE_UNAVAILABLE
    default_message = "The event store is unavailable. Please try again later."


class ImageUploadError(EventHubError):
    """The image store could not accept the upload."""

    code = ErrorCode.UPLOAD_FAILED
    status = HTTPStatus.INTERNAL_SERVER_ERROR
    default_message = "Image upload failed"
