"""Tests for BookingRepository."""

from collections.abc import Callable
from datetime import timedelta
from unittest.mock import patch

import pytest
from django.db import OperationalError
from django.utils import timezone
from model_bakery import baker

from bookings.models import Booking
from bookings.repositories import BookingRepository
from events.errors import (
    BookingNotFoundError,
    CapacityError,
    DuplicateBookingError,
    EventNotFoundError,
    FieldValidationError,
    StoreConnectivityError,
)
from events.models import Event


pytestmark = pytest.mark.django_db


def attendee(event: Event, email: str = "ada@example.com", name: str = "Ada Lovelace") -> dict:
    """Return a booking payload for ``event``."""
    return {"event_id": event.pk, "email": email, "full_name": name}


class TestCreate:
    """Verify the registration pipeline."""

    def test_creates_confirmed_booking(
        self,
        booking_repository: BookingRepository,
        make_event: Callable[..., Event],
    ) -> None:
        """A valid registration is confirmed and counted."""
        event = make_event(capacity=10)

        booking = booking_repository.create(attendee(event, email="  Ada@Example.com "))

        assert booking.status == Booking.Status.CONFIRMED
        assert booking.email == "ada@example.com"
        assert booking.full_name == "Ada Lovelace"
        event.refresh_from_db()
        assert event.confirmed_bookings == 1

    def test_event_id_as_string(
        self,
        booking_repository: BookingRepository,
        make_event: Callable[..., Event],
    ) -> None:
        """Numeric strings reference events too."""
        event = make_event()
        booking = booking_repository.create({**attendee(event), "event_id": str(event.pk)})
        assert booking.event_id == event.pk

    def test_capacity_is_enforced(
        self,
        booking_repository: BookingRepository,
        make_event: Callable[..., Event],
    ) -> None:
        """Once every seat is taken further registrations fail."""
        event = make_event(capacity=2)
        booking_repository.create(attendee(event, "one@example.com"))
        booking_repository.create(attendee(event, "two@example.com"))

        with pytest.raises(CapacityError) as exc_info:
            booking_repository.create(attendee(event, "three@example.com"))

        assert exc_info.value.message == "Event is at full capacity"
        assert booking_repository.count_confirmed(event.pk) == 2
        event.refresh_from_db()
        assert event.confirmed_bookings == 2

    def test_seat_claim_guards_stale_capacity_check(
        self,
        booking_repository: BookingRepository,
        make_event: Callable[..., Event],
    ) -> None:
        """The conditional seat claim rejects a booking the pre-check let through."""
        event = make_event(capacity=1)
        Event.objects.filter(pk=event.pk).update(confirmed_bookings=1)

        with pytest.raises(CapacityError):
            booking_repository.create(attendee(event))
        assert not Booking.objects.exists()

    def test_unlimited_capacity(
        self,
        booking_repository: BookingRepository,
        make_event: Callable[..., Event],
    ) -> None:
        """Events without capacity accept any number of bookings."""
        event = make_event(capacity=None)
        for index in range(5):
            booking_repository.create(attendee(event, f"guest{index}@example.com"))
        event.refresh_from_db()
        assert event.confirmed_bookings == 5

    def test_duplicate_email(
        self,
        booking_repository: BookingRepository,
        make_event: Callable[..., Event],
    ) -> None:
        """The same address cannot register twice for one event."""
        event = make_event(capacity=5)
        booking_repository.create(attendee(event))

        with pytest.raises(DuplicateBookingError):
            booking_repository.create(attendee(event, email="ADA@example.com"))

        event.refresh_from_db()
        assert event.confirmed_bookings == 1
        assert Booking.objects.count() == 1

    def test_same_email_other_event(
        self,
        booking_repository: BookingRepository,
        make_event: Callable[..., Event],
    ) -> None:
        """An address may register for several events."""
        booking_repository.create(attendee(make_event()))
        booking_repository.create(attendee(make_event()))
        assert Booking.objects.count() == 2

    @pytest.mark.parametrize("event_id", [999_999, "abc", None, True, ""])
    def test_unknown_event(self, booking_repository: BookingRepository, event_id: object) -> None:
        """Missing or malformed event references write nothing."""
        with pytest.raises(EventNotFoundError):
            booking_repository.create(
                {"event_id": event_id, "email": "a@b.co", "full_name": "A"},
            )
        assert not Booking.objects.exists()

    def test_invalid_attendee(
        self,
        booking_repository: BookingRepository,
        make_event: Callable[..., Event],
    ) -> None:
        """Invalid attendee fields are reported together."""
        event = make_event()
        with pytest.raises(FieldValidationError) as exc_info:
            booking_repository.create({"event_id": event.pk, "email": "nope", "full_name": ""})
        assert set(exc_info.value.errors) == {"email", "full_name"}
        event.refresh_from_db()
        assert event.confirmed_bookings == 0

    def test_full_event_reported_before_validation(
        self,
        booking_repository: BookingRepository,
        make_event: Callable[..., Event],
    ) -> None:
        """A full event is reported even when the attendee fields are invalid."""
        event = make_event(capacity=1)
        booking_repository.create(attendee(event))
        with pytest.raises(CapacityError):
            booking_repository.create({"event_id": event.pk, "email": "bad", "full_name": ""})

    def test_store_unavailable(
        self,
        booking_repository: BookingRepository,
        make_event: Callable[..., Event],
    ) -> None:
        """Connectivity failures on insert surface as StoreConnectivityError."""
        event = make_event()
        with (
            patch.object(BookingRepository, "_insert", side_effect=OperationalError("gone")),
            pytest.raises(StoreConnectivityError),
        ):
            booking_repository.create(attendee(event))


class TestCancel:
    """Verify cancellation."""

    def test_cancel_releases_seat(
        self,
        booking_repository: BookingRepository,
        make_event: Callable[..., Event],
    ) -> None:
        """Cancelling a confirmed booking frees its seat."""
        event = make_event(capacity=1)
        booking = booking_repository.create(attendee(event))

        cancelled = booking_repository.cancel(booking.pk)

        assert cancelled.status == Booking.Status.CANCELLED
        event.refresh_from_db()
        assert event.confirmed_bookings == 0
        assert booking_repository.count_confirmed(event.pk) == 0
        booking_repository.create(attendee(event, "next@example.com"))

    def test_cancel_twice_is_noop(
        self,
        booking_repository: BookingRepository,
        make_event: Callable[..., Event],
    ) -> None:
        """A second cancellation changes nothing."""
        event = make_event()
        first = booking_repository.create(attendee(event, "one@example.com"))
        booking_repository.create(attendee(event, "two@example.com"))

        booking_repository.cancel(first.pk)
        again = booking_repository.cancel(str(first.pk))

        assert again.status == Booking.Status.CANCELLED
        event.refresh_from_db()
        assert event.confirmed_bookings == 1

    def test_cancelled_slot_stays_taken(
        self,
        booking_repository: BookingRepository,
        make_event: Callable[..., Event],
    ) -> None:
        """The same address cannot register again after cancelling."""
        event = make_event()
        booking = booking_repository.create(attendee(event))
        booking_repository.cancel(booking.pk)

        with pytest.raises(DuplicateBookingError):
            booking_repository.create(attendee(event))

    def test_waitlisted_booking_does_not_release(
        self,
        booking_repository: BookingRepository,
        make_event: Callable[..., Event],
    ) -> None:
        """Only confirmed bookings hold a seat."""
        event = make_event(confirmed_bookings=1)
        booking = baker.make(Booking, event=event, status=Booking.Status.WAITLISTED)

        booking_repository.cancel(booking.pk)

        event.refresh_from_db()
        assert event.confirmed_bookings == 1

    @pytest.mark.parametrize("booking_id", [424242, "x", None])
    def test_unknown_booking(self, booking_repository: BookingRepository, booking_id: object) -> None:
        """Unknown ids raise BookingNotFoundError."""
        with pytest.raises(BookingNotFoundError):
            booking_repository.cancel(booking_id)


class TestReads:
    """Verify listing and counting."""

    def test_list_by_event(
        self,
        booking_repository: BookingRepository,
        make_event: Callable[..., Event],
    ) -> None:
        """Confirmed bookings are listed newest first and paginated."""
        event = make_event()
        other = make_event()
        now = timezone.now()
        for index in range(3):
            baker.make(
                Booking,
                event=event,
                email=f"guest{index}@example.com",
                created_at=now - timedelta(minutes=index),
            )
        baker.make(Booking, event=event, status=Booking.Status.CANCELLED)
        baker.make(Booking, event=other)

        first = booking_repository.list_by_event(event.pk, page=1, page_size=2)
        second = booking_repository.list_by_event(event.pk, page=2, page_size=2)

        assert [booking.email for booking in first.items] == [
            "guest0@example.com",
            "guest1@example.com",
        ]
        assert [booking.email for booking in second.items] == ["guest2@example.com"]
        assert first.total == 3
        assert first.total_pages == 2

    def test_list_unknown_event(self, booking_repository: BookingRepository) -> None:
        """Malformed ids give an empty page."""
        page = booking_repository.list_by_event("abc")
        assert page.items == []
        assert page.total == 0

    def test_count_confirmed(
        self,
        booking_repository: BookingRepository,
        make_event: Callable[..., Event],
    ) -> None:
        """Only confirmed bookings are counted."""
        event = make_event()
        baker.make(Booking, event=event, _quantity=2)
        baker.make(Booking, event=event, status=Booking.Status.CANCELLED)
        assert booking_repository.count_confirmed(event.pk) == 2
        assert booking_repository.count_confirmed("nope") == 0

    def test_count_degrades_on_store_failure(
        self,
        booking_repository: BookingRepository,
        make_event: Callable[..., Event],
    ) -> None:
        """A failing store counts zero."""
        event = make_event()
        baker.make(Booking, event=event)
        with patch("django.db.models.query.QuerySet.count", side_effect=OperationalError("gone")):
            assert booking_repository.count_confirmed(event.pk) == 0
