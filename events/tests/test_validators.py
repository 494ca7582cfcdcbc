"""Tests for event and booking validation rules."""
# ruff: noqa: PLR2004

from datetime import date, timedelta
from typing import Any

import pytest
from django.core.exceptions import ValidationError

from events.validators import (
    clean_booking_fields,
    clean_event_fields,
    collect_booking_errors,
    collect_event_errors,
    validate_absolute_url,
    validate_booking,
    validate_date_string,
    validate_email_address,
    validate_event,
    validate_mode,
    validate_time_string,
)


TODAY = date(2030, 6, 15)


@pytest.fixture()
def valid_event() -> dict[str, Any]:
    """Return a cleaned event field set that passes every rule on TODAY."""
    return {
        "title": "Data Science Summit",
        "description": "A day about data.",
        "overview": "Talks and workshops.",
        "image": "https://example.com/summit.png",
        "venue": "Main Hall",
        "location": "Munich",
        "date": "2030-07-01",
        "time": "09:00",
        "mode": "hybrid",
        "audience": "Data scientists",
        "agenda": ["Keynote"],
        "organizer": "Data Society",
        "tags": ["data"],
    }


class TestCleanEventFields:
    """Verify raw event input is normalized before validation."""

    def test_strips_strings_and_drops_unknown_keys(self) -> None:
        """Trim text fields and ignore keys that are not event fields."""
        cleaned = clean_event_fields({"title": "  Summit  ", "slug": "forged", "extra": 1})
        assert cleaned == {"title": "Summit"}

    def test_cleans_lists(self) -> None:
        """Drop blank list items, trim the rest and de-duplicate tags in order."""
        cleaned = clean_event_fields(
            {"agenda": [" Intro ", "", "  "], "tags": ["python", " data ", "python", ""]},
        )
        assert cleaned["agenda"] == ["Intro"]
        assert cleaned["tags"] == ["python", "data"]

    def test_lowercases_mode(self) -> None:
        """Mode is compared case-insensitively."""
        assert clean_event_fields({"mode": " Online "})["mode"] == "online"


class TestCleanBookingFields:
    """Verify raw booking input is normalized before validation."""

    def test_email_trimmed_and_lowercased(self) -> None:
        """Store e-mail addresses in canonical form."""
        cleaned = clean_booking_fields(
            {"event_id": 1, "email": "  Ada@Example.COM ", "full_name": " Ada Lovelace "},
        )
        assert cleaned == {"event_id": 1, "email": "ada@example.com", "full_name": "Ada Lovelace"}


class TestFieldValidators:
    """Verify the individual field validators."""

    def test_date_today_accepted(self) -> None:
        """An event may take place today."""
        assert validate_date_string(TODAY.isoformat(), today=TODAY) == TODAY

    def test_date_yesterday_rejected(self) -> None:
        """An event may not take place in the past."""
        with pytest.raises(ValidationError, match="Event date cannot be in the past"):
            validate_date_string((TODAY - timedelta(days=1)).isoformat(), today=TODAY)

    def test_date_without_today_skips_past_rule(self) -> None:
        """Past dates are only rejected when a reference day is given."""
        assert validate_date_string("2000-01-01") == date(2000, 1, 1)

    @pytest.mark.parametrize(
        "value",
        [
            "2030/07/01",
            "01-07-2030",
            "2030-7-1",
            "tomorrow",
            "",
            "\uff12\uff10\uff13\uff10-07-01",
            "\u0662\u0660\u0663\u0660-07-01",
        ],
    )
    def test_date_format(self, value: str) -> None:
        """Only YYYY-MM-DD written with ASCII digits is accepted."""
        with pytest.raises(ValidationError, match="YYYY-MM-DD"):
            validate_date_string(value, today=TODAY)

    @pytest.mark.parametrize("value", ["2030-02-30", "2030-13-01", "2030-00-10"])
    def test_date_must_exist(self, value: str) -> None:
        """Well-formed strings naming no calendar day are rejected."""
        with pytest.raises(ValidationError, match="valid calendar date"):
            validate_date_string(value, today=TODAY)

    @pytest.mark.parametrize("value", ["00:00", "9:05", "09:05", "23:59"])
    def test_time_valid(self, value: str) -> None:
        """Accept 24-hour times."""
        validate_time_string(value)

    @pytest.mark.parametrize("value", ["24:00", "12:60", "noon", "12:5", "1200"])
    def test_time_invalid(self, value: str) -> None:
        """Reject anything that is not HH:MM."""
        with pytest.raises(ValidationError, match="HH:MM"):
            validate_time_string(value)

    @pytest.mark.parametrize("value", ["online", "offline", "hybrid"])
    def test_mode_valid(self, value: str) -> None:
        """Accept the three attendance modes."""
        validate_mode(value)

    def test_mode_invalid(self) -> None:
        """Reject unknown modes."""
        with pytest.raises(ValidationError, match="online, offline, or hybrid"):
            validate_mode("virtual")

    @pytest.mark.parametrize("value", ["ftp://example.com/a.png", "example.com/a.png", "not a url"])
    def test_url_invalid(self, value: str) -> None:
        """Only absolute http(s) URLs are accepted."""
        with pytest.raises(ValidationError, match="Invalid image URL format"):
            validate_absolute_url(value, "image URL")

    @pytest.mark.parametrize("value", ["ada@example.com", "first.last+tag@sub.example.org"])
    def test_email_valid(self, value: str) -> None:
        """Accept common address shapes."""
        validate_email_address(value)

    @pytest.mark.parametrize(
        "value",
        ["ada", "ada@", "@example.com", "ada@-example.com", "a b@x.com"],
    )
    def test_email_invalid(self, value: str) -> None:
        """Reject malformed addresses."""
        with pytest.raises(ValidationError, match="valid email address"):
            validate_email_address(value)


class TestEventValidation:
    """Verify aggregated event validation."""

    def test_valid_event(self, valid_event: dict[str, Any]) -> None:
        """A complete field set produces no errors."""
        assert collect_event_errors(valid_event, today=TODAY) == {}
        validate_event(valid_event, today=TODAY)

    def test_title_length_boundary(self, valid_event: dict[str, Any]) -> None:
        """Titles of 120 characters pass and 121 characters fail."""
        valid_event["title"] = "a" * 120
        assert "title" not in collect_event_errors(valid_event, today=TODAY)

        valid_event["title"] = "a" * 121
        errors = collect_event_errors(valid_event, today=TODAY)
        assert errors["title"] == ["Title cannot exceed 120 characters"]

    def test_agenda_boundary(self, valid_event: dict[str, Any]) -> None:
        """An empty agenda fails and a single item passes."""
        valid_event["agenda"] = []
        errors = collect_event_errors(valid_event, today=TODAY)
        assert errors["agenda"] == ["At least one agenda item is required"]

        valid_event["agenda"] = ["Only item"]
        assert "agenda" not in collect_event_errors(valid_event, today=TODAY)

    def test_reports_every_invalid_field(self) -> None:
        """All violated fields are reported together."""
        errors = collect_event_errors({"title": "x" * 200, "mode": "virtual"}, today=TODAY)
        assert {
            "title",
            "description",
            "overview",
            "image",
            "venue",
            "location",
            "date",
            "time",
            "mode",
            "audience",
            "agenda",
            "organizer",
            "tags",
        } <= set(errors)
        assert errors["description"] == ["Description is required"]

    def test_check_date_disabled(self, valid_event: dict[str, Any]) -> None:
        """The past-date rule can be switched off for unchanged dates."""
        valid_event["date"] = "2020-01-01"
        assert "date" in collect_event_errors(valid_event, today=TODAY)
        assert "date" not in collect_event_errors(valid_event, today=TODAY, check_date=False)

    def test_tag_too_long(self, valid_event: dict[str, Any]) -> None:
        """Each tag is limited to 50 characters."""
        valid_event["tags"] = ["t" * 51]
        errors = collect_event_errors(valid_event, today=TODAY)
        assert errors["tags"] == ["Tags cannot exceed 50 characters"]

    @pytest.mark.parametrize(
        ("price", "message"),
        [(-1, "Price cannot be negative"), ("free", "Price must be a number")],
    )
    def test_price_invalid(self, valid_event: dict[str, Any], price: object, message: str) -> None:
        """Price must be a non-negative number."""
        valid_event["price"] = price
        assert collect_event_errors(valid_event, today=TODAY)["price"] == [message]

    @pytest.mark.parametrize("price", [0, "0", 12.5, "99.99"])
    def test_price_valid(self, valid_event: dict[str, Any], price: object) -> None:
        """Zero and positive prices are accepted."""
        valid_event["price"] = price
        assert "price" not in collect_event_errors(valid_event, today=TODAY)

    @pytest.mark.parametrize(
        ("capacity", "message"),
        [
            (0, "Capacity must be at least 1"),
            (-5, "Capacity must be at least 1"),
            (2.5, "Capacity must be a whole number"),
            ("many", "Capacity must be a whole number"),
            (True, "Capacity must be a whole number"),
        ],
    )
    def test_capacity_invalid(
        self,
        valid_event: dict[str, Any],
        capacity: object,
        message: str,
    ) -> None:
        """Capacity must be a whole number of at least one."""
        valid_event["capacity"] = capacity
        assert collect_event_errors(valid_event, today=TODAY)["capacity"] == [message]

    @pytest.mark.parametrize("capacity", [None, "", 1, "25"])
    def test_capacity_valid(self, valid_event: dict[str, Any], capacity: object) -> None:
        """Absent capacity means unlimited; present capacity is at least one."""
        valid_event["capacity"] = capacity
        assert "capacity" not in collect_event_errors(valid_event, today=TODAY)

    def test_validate_event_raises_with_all_fields(self) -> None:
        """validate_event raises a ValidationError keyed by field."""
        with pytest.raises(ValidationError) as exc_info:
            validate_event({}, today=TODAY)
        assert "title" in exc_info.value.message_dict
        assert "tags" in exc_info.value.message_dict


class TestBookingValidation:
    """Verify aggregated booking validation."""

    def test_valid_booking(self) -> None:
        """A well-formed booking produces no errors."""
        assert collect_booking_errors({"email": "ada@example.com", "full_name": "Ada"}) == {}

    def test_missing_fields(self) -> None:
        """Both attendee fields are required."""
        errors = collect_booking_errors({})
        assert errors == {
            "email": ["Attendee email is required"],
            "full_name": ["Attendee full name is required"],
        }

    def test_full_name_boundary(self) -> None:
        """Full names are limited to 100 characters."""
        assert collect_booking_errors({"email": "a@b.co", "full_name": "n" * 100}) == {}
        errors = collect_booking_errors({"email": "a@b.co", "full_name": "n" * 101})
        assert errors["full_name"] == ["Full name cannot exceed 100 characters"]

    def test_validate_booking_raises(self) -> None:
        """validate_booking raises a ValidationError for invalid e-mail addresses."""
        with pytest.raises(ValidationError) as exc_info:
            validate_booking({"email": "nope", "full_name": "Ada"})
        assert exc_info.value.message_dict == {"email": ["Please provide a valid email address"]}
