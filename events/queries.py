"""
Query building for event listings.

A listing request is described by an :class:`EventFilter` and an :class:`EventSort`; this module
is the only place that turns them into ORM lookups.
"""

from dataclasses import dataclass
from datetime import date
from enum import StrEnum
from typing import Self

from django.db.models import Q

from events.models import EventTag


class EventSort(StrEnum):
    """Supported orderings of an event listing."""

    SOONEST = "date"
    LATEST = "date-desc"
    RECENT = "created"
    POPULAR = "popular"

    @classmethod
    def parse(cls, value: str | None) -> Self:
        """Return the sort matching ``value``, falling back to the soonest-first order."""
        try:
            return cls((value or "").strip().lower())
        except ValueError:
            return cls.SOONEST


ORDERINGS: dict[EventSort, tuple[str, ...]] = {
    EventSort.SOONEST: ("date", "pk"),
    EventSort.LATEST: ("-date", "pk"),
    EventSort.RECENT: ("-created_at", "pk"),
    # Confirmed bookings are the maintained popularity signal
    EventSort.POPULAR: ("-confirmed_bookings", "date", "pk"),
}

# Used by free-text search and similar-event lookups
SOONEST_THEN_NEWEST: tuple[str, ...] = ("date", "-created_at", "pk")


@dataclass(frozen=True)
class EventFilter:
    """
    Filter criteria of an event listing.

    Blank values are treated as absent.
    """

    search: str | None = None
    mode: str | None = None
    tag: str | None = None
    date_floor: date | None = None


def _tagged_events(**lookup: str | list[str]) -> Q:
    """Match events having at least one tag satisfying ``lookup``."""
    return Q(pk__in=EventTag.objects.filter(**lookup).values("event_id"))


def search_query(term: str) -> Q:
    """Case-insensitive substring match across title, description, tags, organizer and location."""
    return (
        Q(title__icontains=term)
        | Q(description__icontains=term)
        | _tagged_events(name__icontains=term)
        | Q(organizer__icontains=term)
        | Q(location__icontains=term)
    )


def shares_tag_query(tag_names: list[str]) -> Q:
    """Match events carrying any of ``tag_names`` exactly."""
    return _tagged_events(name__in=tag_names)


def build_event_query(event_filter: EventFilter) -> Q:
    """Translate an :class:`EventFilter` into a single ``Q`` object."""
    query = Q()

    if event_filter.date_floor is not None:
        query &= Q(date__gte=event_filter.date_floor)

    search = (event_filter.search or "").strip()
    if search:
        query &= search_query(search)

    mode = (event_filter.mode or "").strip().lower()
    if mode:
        query &= Q(mode=mode)

    tag = (event_filter.tag or "").strip()
    if tag:
        query &= _tagged_events(name__icontains=tag)

    return query


def ordering_for(sort: EventSort | str | None) -> tuple[str, ...]:
    """Return the ``order_by`` arguments for ``sort``; unknown values sort soonest first."""
    return ORDERINGS[EventSort.parse(sort)]
