"""Shared test fixtures for the events and bookings apps."""

from collections.abc import Callable, Sequence
from datetime import date, timedelta
from decimal import Decimal
from typing import Any

import pytest
from django.utils import timezone
from model_bakery import baker

from bookings.repositories import BookingRepository
from events.models import Event, EventTag
from events.repositories import EventRepository
from utils.store import get_store


@pytest.fixture()
def today() -> date:
    """Return the store-local current day."""
    return timezone.localdate()


@pytest.fixture()
def event_payload(today: date) -> dict[str, Any]:
    """Return a complete, valid event creation payload dated one month ahead."""
    return {
        "title": "Berlin Python Meetup",
        "description": "Monthly gathering of Python developers in Berlin.",
        "overview": "Talks, pizza and networking.",
        "image": "https://res.cloudinary.com/demo/image/upload/eventhub/meetup.png",
        "venue": "Betahaus",
        "location": "Berlin, Germany",
        "date": (today + timedelta(days=30)).isoformat(),
        "time": "18:30",
        "mode": "offline",
        "audience": "Python developers",
        "agenda": ["Welcome", "Lightning talks", "Networking"],
        "organizer": "Berlin Python Group",
        "tags": ["python", "meetup"],
    }


@pytest.fixture()
def make_event(today: date) -> Callable[..., Event]:
    """
    Return a factory for persisted events.

    The factory accepts ``tags`` and ``days_ahead`` plus any Event field. Tags are stored in
    the given order.
    """

    def _make_event(
        tags: Sequence[str] = ("python",),
        days_ahead: int = 10,
        **kwargs: Any,
    ) -> Event:
        kwargs.setdefault("date", today + timedelta(days=days_ahead))
        kwargs.setdefault("mode", Event.Mode.OFFLINE)
        kwargs.setdefault("price", Decimal(0))
        kwargs.setdefault("agenda", ["Opening"])
        kwargs.setdefault("time", "10:00")
        event = baker.make(Event, **kwargs)
        for position, name in enumerate(tags):
            EventTag.objects.create(event=event, name=name, position=position)
        return event

    return _make_event


@pytest.fixture()
def event_repository() -> EventRepository:
    """Return an event repository bound to the default store."""
    return EventRepository(get_store())


@pytest.fixture()
def booking_repository(event_repository: EventRepository) -> BookingRepository:
    """Return a booking repository sharing the event repository's store."""
    return BookingRepository(event_repository.store, event_repository)
