"""
Validation rules for event and booking field sets.

Each ``validate_*`` field validator raises :class:`django.core.exceptions.ValidationError` on
failure, the same way Django field validators do. :func:`validate_event` and
:func:`validate_booking` run every rule and report all violated fields together.
"""

import re
from collections.abc import Callable, Mapping
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from django.core.exceptions import ValidationError
from django.core.validators import URLValidator

from bookings.models import MAX_EMAIL_LENGTH, MAX_FULL_NAME_LENGTH
from events.models import (
    MAX_AUDIENCE_LENGTH,
    MAX_DESCRIPTION_LENGTH,
    MAX_LOCATION_LENGTH,
    MAX_ORGANIZER_LENGTH,
    MAX_OVERVIEW_LENGTH,
    MAX_TAG_LENGTH,
    MAX_TITLE_LENGTH,
    MAX_URL_LENGTH,
    MAX_VENUE_LENGTH,
    Event,
)


MAX_PRICE = Decimal("99999999.99")
MAX_CAPACITY = 2_147_483_647

DATE_PATTERN = re.compile(r"^[0-9]{4}-[0-9]{2}-[0-9]{2}$")
TIME_PATTERN = re.compile(r"^([01]?[0-9]|2[0-3]):[0-5][0-9]$")
EMAIL_PATTERN = re.compile(
    r"^[a-zA-Z0-9.!#$%&'*+/=?^_`{|}~-]+"
    r"@[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
    r"(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)*$",
)

# (field, label used in messages, maximum length)
EVENT_TEXT_FIELDS: tuple[tuple[str, str, int], ...] = (
    ("title", "Title", MAX_TITLE_LENGTH),
    ("description", "Description", MAX_DESCRIPTION_LENGTH),
    ("overview", "Overview", MAX_OVERVIEW_LENGTH),
    ("venue", "Venue name", MAX_VENUE_LENGTH),
    ("location", "Location", MAX_LOCATION_LENGTH),
    ("audience", "Audience description", MAX_AUDIENCE_LENGTH),
    ("organizer", "Organizer name", MAX_ORGANIZER_LENGTH),
)
EVENT_FIELDS = frozenset(
    {
        *(name for name, _, _ in EVENT_TEXT_FIELDS),
        "image",
        "date",
        "time",
        "mode",
        "agenda",
        "tags",
        "price",
        "capacity",
        "registration_url",
    },
)
BOOKING_FIELDS = frozenset({"event_id", "email", "full_name"})

_absolute_url = URLValidator(schemes=["http", "https"])


# --------------------------------------------------------------------------------------------------
# Normalization
# --------------------------------------------------------------------------------------------------


def _clean_items(value: Any) -> Any:
    """Strip every item of a list and drop the blank ones. Non-lists are returned untouched."""
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list | tuple):
        return value
    return [str(item).strip() for item in value if str(item).strip()]


def clean_event_fields(data: Mapping[str, Any]) -> dict[str, Any]:
    """
    Normalize raw event input.

    Unknown keys are dropped, strings are trimmed, blank agenda items and tags are removed and
    duplicate tags are collapsed keeping the first occurrence.
    """
    cleaned: dict[str, Any] = {}
    for key, value in data.items():
        if key not in EVENT_FIELDS:
            continue
        if isinstance(value, str):
            value = value.strip()
        if key in {"agenda", "tags"}:
            value = _clean_items(value)
        if key == "tags" and isinstance(value, list):
            value = list(dict.fromkeys(value))
        if key == "mode" and isinstance(value, str):
            value = value.lower()
        cleaned[key] = value
    return cleaned


def clean_booking_fields(data: Mapping[str, Any]) -> dict[str, Any]:
    """Normalize raw booking input: trim strings and lowercase the e-mail address."""
    cleaned = {key: value for key, value in data.items() if key in BOOKING_FIELDS}
    for key in ("email", "full_name"):
        if isinstance(cleaned.get(key), str):
            cleaned[key] = cleaned[key].strip()
    if isinstance(cleaned.get("email"), str):
        cleaned["email"] = cleaned["email"].lower()
    return cleaned


# --------------------------------------------------------------------------------------------------
# Field validators
# --------------------------------------------------------------------------------------------------


def parse_event_date(value: str | date) -> date:
    """Return the calendar date for a ``YYYY-MM-DD`` string or a date instance."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not DATE_PATTERN.match(value):
        raise ValidationError("Date must be in YYYY-MM-DD format")
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()  # noqa: DTZ007
    except ValueError as exc:
        raise ValidationError("Date must be a valid calendar date") from exc


def validate_date_string(value: str | date, *, today: date | None = None) -> date:
    """
    Validate an event date and return it parsed.

    When ``today`` is given, dates before it are rejected.
    """
    parsed = parse_event_date(value)
    if today is not None and parsed < today:
        raise ValidationError("Event date cannot be in the past")
    return parsed


def validate_time_string(value: str) -> None:
    """Validate an ``HH:MM`` 24-hour time."""
    if not isinstance(value, str) or not TIME_PATTERN.match(value):
        raise ValidationError("Time must be in HH:MM format (24-hour)")


def validate_mode(value: str) -> None:
    """Validate that the mode is one of the supported attendance modes."""
    if value not in Event.Mode.values:
        raise ValidationError("Event mode must be online, offline, or hybrid")


def validate_absolute_url(value: str, label: str = "URL") -> None:
    """Validate a well-formed absolute http(s) URL."""
    if not isinstance(value, str) or len(value) > MAX_URL_LENGTH:
        raise ValidationError(f"Invalid {label} format")
    try:
        _absolute_url(value)
    except ValidationError as exc:
        raise ValidationError(f"Invalid {label} format") from exc


def validate_email_address(value: str) -> None:
    """Validate an e-mail address against the accepted grammar."""
    valid = isinstance(value, str) and len(value) <= MAX_EMAIL_LENGTH and EMAIL_PATTERN.match(value)
    if not valid:
        raise ValidationError("Please provide a valid email address")


def _validate_price(value: Any) -> None:
    if isinstance(value, bool):
        raise ValidationError("Price must be a number")
    try:
        price = Decimal(str(value))
    except InvalidOperation as exc:
        raise ValidationError("Price must be a number") from exc
    if not price.is_finite():
        raise ValidationError("Price must be a number")
    if price < 0:
        raise ValidationError("Price cannot be negative")
    if price > MAX_PRICE:
        msg = f"Price cannot exceed {MAX_PRICE}"
        raise ValidationError(msg)


def _validate_capacity(value: Any) -> None:
    if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        raise ValidationError("Capacity must be a whole number")
    try:
        capacity = int(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError("Capacity must be a whole number") from exc
    if capacity < 1:
        raise ValidationError("Capacity must be at least 1")
    if capacity > MAX_CAPACITY:
        msg = f"Capacity cannot exceed {MAX_CAPACITY}"
        raise ValidationError(msg)


def _validate_items(value: Any, message: str, max_length: int | None = None) -> None:
    if not isinstance(value, list) or not value:
        raise ValidationError(message)
    if max_length is not None:
        too_long = [item for item in value if len(item) > max_length]
        if too_long:
            msg = f"Tags cannot exceed {max_length} characters"
            raise ValidationError(msg)


# --------------------------------------------------------------------------------------------------
# Aggregated validation
# --------------------------------------------------------------------------------------------------


def _collect(errors: dict[str, list[str]], field: str, check: Callable[[], Any]) -> None:
    """Run ``check`` and record its messages under ``field``."""
    try:
        check()
    except ValidationError as exc:
        errors.setdefault(field, []).extend(exc.messages)


def _is_blank(value: Any) -> bool:
    return value is None or value == "" or value == []


def collect_event_errors(
    data: Mapping[str, Any],
    *,
    today: date,
    check_date: bool = True,
) -> dict[str, list[str]]:
    """
    Return every validation error of a cleaned event field set.

    Args:
        data: Cleaned event fields (see :func:`clean_event_fields`)
        today: Store-local current day, used by the past-date rule
        check_date: Whether the past-date rule applies (creation or date change)

    """
    errors: dict[str, list[str]] = {}

    for name, label, max_length in EVENT_TEXT_FIELDS:
        value = data.get(name)
        if _is_blank(value):
            errors[name] = [f"{label} is required"]
        elif not isinstance(value, str):
            errors[name] = [f"{label} must be text"]
        elif len(value) > max_length:
            errors[name] = [f"{label} cannot exceed {max_length} characters"]

    required_checks: dict[str, tuple[str, Callable[[Any], Any]]] = {
        "image": ("Event image is required", lambda v: validate_absolute_url(v, "image URL")),
        "date": (
            "Event date is required",
            lambda v: validate_date_string(v, today=today if check_date else None),
        ),
        "time": ("Event time is required", validate_time_string),
        "mode": ("Event mode is required", validate_mode),
        "agenda": (
            "Event agenda is required",
            lambda v: _validate_items(v, "At least one agenda item is required"),
        ),
        "tags": (
            "Event tags are required",
            lambda v: _validate_items(v, "At least one tag is required", MAX_TAG_LENGTH),
        ),
    }
    for name, (required_message, check) in required_checks.items():
        value = data.get(name)
        if value is None or value == "":
            errors[name] = [required_message]
            continue
        _collect(errors, name, lambda check=check, value=value: check(value))

    optional_checks: dict[str, Callable[[Any], Any]] = {
        "price": _validate_price,
        "capacity": _validate_capacity,
        "registration_url": lambda v: validate_absolute_url(v, "registration URL"),
    }
    for name, check in optional_checks.items():
        if _is_blank(data.get(name)):
            continue
        _collect(errors, name, lambda check=check, value=data[name]: check(value))

    return errors


def validate_event(
    data: Mapping[str, Any],
    *,
    today: date,
    check_date: bool = True,
) -> None:
    """Raise a ValidationError listing every invalid event field."""
    errors = collect_event_errors(data, today=today, check_date=check_date)
    if errors:
        raise ValidationError(errors)


def collect_booking_errors(data: Mapping[str, Any]) -> dict[str, list[str]]:
    """Return every validation error of a cleaned booking field set."""
    errors: dict[str, list[str]] = {}

    email = data.get("email")
    if _is_blank(email):
        errors["email"] = ["Attendee email is required"]
    else:
        _collect(errors, "email", lambda: validate_email_address(email))

    full_name = data.get("full_name")
    if _is_blank(full_name):
        errors["full_name"] = ["Attendee full name is required"]
    elif not isinstance(full_name, str):
        errors["full_name"] = ["Full name must be text"]
    elif len(full_name) > MAX_FULL_NAME_LENGTH:
        errors["full_name"] = [f"Full name cannot exceed {MAX_FULL_NAME_LENGTH} characters"]

    return errors


def validate_booking(data: Mapping[str, Any]) -> None:
    """Raise a ValidationError listing every invalid booking field."""
    errors = collect_booking_errors(data)
    if errors:
        raise ValidationError(errors)
