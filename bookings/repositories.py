"""
Booking persistence.

Registration runs as an ordered pipeline: resolve the event, check remaining capacity, validate
the attendee fields, then claim a seat and insert the booking in one transaction. The seat claim
is a conditional update of ``Event.confirmed_bookings`` so concurrent registrations can never
exceed capacity, and the ``(event, email)`` unique constraint rejects duplicate registrations.
"""

from collections.abc import Mapping
from typing import Any

import structlog
from django.conf import settings
from django.db import IntegrityError, transaction
from django.db.models import F, Q

from bookings.models import Booking
from events.errors import (
    BookingNotFoundError,
    CapacityError,
    DuplicateBookingError,
    FieldValidationError,
)
from events.models import Event
from events.repositories import EventRepository, Page, paginate
from events.validators import clean_booking_fields, collect_booking_errors
from utils.email_utils import loggable_email
from utils.store import StoreConnection, get_store


logger = structlog.get_logger(__name__)


def _parse_id(value: object) -> int | None:
    if isinstance(value, bool):
        return None
    try:
        return int(str(value).strip())
    except ValueError:
        return None


class BookingRepository:
    """Create, cancel and list bookings."""

    def __init__(
        self,
        store: StoreConnection | None = None,
        events: EventRepository | None = None,
    ) -> None:
        """
        Initialize the repository.

        Args:
            store: Store handle; defaults to the shared process-wide handle
            events: Event repository used to resolve the booked event

        """
        self.store = store or get_store()
        self.events = events or EventRepository(self.store)

    def create(self, fields: Mapping[str, Any]) -> Booking:
        """
        Register an attendee for an event.

        Raises:
            EventNotFoundError: ``event_id`` does not reference an existing event
            CapacityError: The event has no confirmed seats left
            FieldValidationError: E-mail or full name is invalid
            DuplicateBookingError: The e-mail address is already registered for the event
            StoreConnectivityError: The store is unreachable

        """
        data = clean_booking_fields(fields)
        event = self.events.get_by_id(data.get("event_id"))

        if event.capacity is not None and self.count_confirmed(event.pk) >= event.capacity:
            logger.info("Booking rejected, event full", event_id=event.pk)
            raise CapacityError

        errors = collect_booking_errors(data)
        if errors:
            logger.info("Booking rejected", event_id=event.pk, fields=sorted(errors))
            raise FieldValidationError(errors)

        try:
            booking = self.store.run("booking.create", lambda: self._insert(event, data))
        except IntegrityError as exc:
            logger.info(
                "Duplicate booking",
                event_id=event.pk,
                email=loggable_email(data["email"]),
            )
            raise DuplicateBookingError from exc

        logger.info(
            "Booking created",
            booking_id=booking.pk,
            event_id=event.pk,
            email=loggable_email(booking.email),
        )
        return booking

    def _insert(self, event: Event, data: Mapping[str, Any]) -> Booking:
        with transaction.atomic(using=self.store.alias):
            claimed = (
                Event.objects.filter(pk=event.pk)
                .filter(Q(capacity__isnull=True) | Q(confirmed_bookings__lt=F("capacity")))
                .update(confirmed_bookings=F("confirmed_bookings") + 1)
            )
            if not claimed:
                logger.info("Booking rejected at seat claim, event full", event_id=event.pk)
                raise CapacityError
            return Booking.objects.create(
                event=event,
                email=data["email"],
                full_name=data["full_name"],
                status=Booking.Status.CONFIRMED,
            )

    def cancel(self, booking_id: object) -> Booking:
        """
        Cancel a booking and release its seat.

        Cancelling an already cancelled booking returns it unchanged. The ``(event, email)``
        slot stays taken after cancellation.
        """
        pk = _parse_id(booking_id)
        if pk is None:
            raise BookingNotFoundError(booking_id)

        def cancel() -> Booking:
            with transaction.atomic(using=self.store.alias):
                booking = Booking.objects.select_for_update().get(pk=pk)
                if booking.status == Booking.Status.CANCELLED:
                    return booking
                released = booking.is_confirmed
                booking.status = Booking.Status.CANCELLED
                booking.save(update_fields=["status", "updated_at"])
                if released:
                    Event.objects.filter(pk=booking.event_id, confirmed_bookings__gt=0).update(
                        confirmed_bookings=F("confirmed_bookings") - 1,
                    )
                return booking

        try:
            booking = self.store.run("booking.cancel", cancel)
        except Booking.DoesNotExist as exc:
            raise BookingNotFoundError(booking_id) from exc

        logger.info("Booking cancelled", booking_id=booking.pk, event_id=booking.event_id)
        return booking

    def list_by_event(
        self,
        event_id: object,
        page: int = 1,
        page_size: int | None = None,
    ) -> Page[Booking]:
        """Return one page of confirmed bookings of an event, newest first."""
        empty = Page([], 0, max(page, 1), 0)
        pk = _parse_id(event_id)
        if pk is None:
            return empty
        queryset = Booking.objects.filter(
            event_id=pk,
            status=Booking.Status.CONFIRMED,
        ).order_by("-created_at", "-pk")
        return self.store.read(
            "booking.list_by_event",
            lambda: paginate(queryset, page, page_size or settings.BOOKINGS_PAGE_SIZE),
            empty,
        )

    def count_confirmed(self, event_id: object) -> int:
        """Return the number of confirmed bookings of an event."""
        pk = _parse_id(event_id)
        if pk is None:
            return 0
        return self.store.read(
            "booking.count_confirmed",
            Booking.objects.filter(event_id=pk, status=Booking.Status.CONFIRMED).count,
            0,
        )
