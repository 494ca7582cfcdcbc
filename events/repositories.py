"""
Event persistence and retrieval.

:class:`EventRepository` writes :class:`~events.models.Event` rows for the API; the admin form
applies the same validation rules. Creation and update run an explicit pipeline (clean, validate, derive slug, check uniqueness, persist) instead
of model save hooks. List and aggregate reads degrade to empty results when the store fails;
single-object reads and writes raise :class:`~events.errors.StoreConnectivityError`.
"""

import math
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Any, Generic, TypeVar

import structlog
from django.conf import settings
from django.db import IntegrityError, transaction
from django.db.models import Count, Q, QuerySet
from django.utils import timezone

from events.errors import DuplicateSlugError, EventNotFoundError, FieldValidationError
from events.models import Event, EventTag
from events.queries import (
    SOONEST_THEN_NEWEST,
    EventFilter,
    EventSort,
    build_event_query,
    ordering_for,
    search_query,
    shares_tag_query,
)
from events.slugs import generate_slug
from events.validators import clean_event_fields, collect_event_errors, parse_event_date
from utils.store import StoreConnection, get_store


logger = structlog.get_logger(__name__)

T = TypeVar("T")

# Event attributes written straight from cleaned input (tags and derived fields excluded)
ASSIGNABLE_FIELDS = (
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
    "price",
    "capacity",
    "registration_url",
)

EMPTY_SLUG_MESSAGE = "Title must contain at least one letter or number"


@dataclass
class Page(Generic[T]):
    """One page of a paginated result."""

    items: list[T] = field(default_factory=list)
    total: int = 0
    current_page: int = 1
    total_pages: int = 0

    @property
    def has_next(self) -> bool:
        """Return whether a later page holds results."""
        return self.current_page < self.total_pages

    @property
    def has_previous(self) -> bool:
        """Return whether an earlier page exists."""
        return self.current_page > 1


def paginate(queryset: QuerySet, page: int, page_size: int) -> Page:
    """
    Slice ``queryset`` into one page.

    ``page`` below 1 is treated as 1 and ``page_size`` is at least 1. Pages past the end are
    returned empty with the real ``total`` and ``total_pages``.
    """
    page = max(page, 1)
    page_size = max(page_size, 1)
    total = queryset.count()
    if total == 0:
        return Page([], 0, page, 0)
    total_pages = math.ceil(total / page_size)
    offset = (page - 1) * page_size
    if offset >= total:
        return Page([], total, page, total_pages)
    items = list(queryset[offset : offset + page_size])
    return Page(items, total, page, total_pages)


def _store_values(data: Mapping[str, Any]) -> dict[str, Any]:
    """Convert validated input into model attribute values."""
    values = {name: data[name] for name in ASSIGNABLE_FIELDS if name in data}
    if "date" in values:
        values["date"] = parse_event_date(values["date"])
    if "price" in values:
        price = values["price"]
        values["price"] = Decimal(0) if price in (None, "") else Decimal(str(price))
    if "capacity" in values:
        capacity = values["capacity"]
        values["capacity"] = None if capacity in (None, "") else int(capacity)
    if "registration_url" in values and values["registration_url"] is None:
        values["registration_url"] = ""
    return values


def _current_fields(event: Event) -> dict[str, Any]:
    """Return the stored state of ``event`` in input form, for validating partial updates."""
    current = {name: getattr(event, name) for name in ASSIGNABLE_FIELDS}
    current["date"] = event.date.isoformat()
    current["tags"] = event.tag_names
    return current


class EventRepository:
    """Create, update and query events."""

    def __init__(self, store: StoreConnection | None = None) -> None:
        """
        Initialize the repository.

        Args:
            store: Store handle; defaults to the shared process-wide handle

        """
        self.store = store or get_store()

    def _base_queryset(self) -> QuerySet[Event]:
        return Event.objects.prefetch_related("tags")

    # ----------------------------------------------------------------------------------------------
    # Writes
    # ----------------------------------------------------------------------------------------------

    def create(self, fields: Mapping[str, Any]) -> Event:
        """
        Validate and persist a new event.

        Raises:
            FieldValidationError: One or more fields are invalid
            DuplicateSlugError: Another event already uses the slug derived from the title
            StoreConnectivityError: The store is unreachable

        """
        data = clean_event_fields(fields)
        errors = collect_event_errors(data, today=timezone.localdate())

        slug = generate_slug(data["title"]) if isinstance(data.get("title"), str) else ""
        if "title" not in errors and not slug:
            errors["title"] = [EMPTY_SLUG_MESSAGE]
        if errors:
            logger.info("Event rejected", fields=sorted(errors))
            raise FieldValidationError(errors)

        self._ensure_slug_free(slug)
        event = Event(slug=slug, **_store_values(data))
        event = self._persist("event.create", event, data["tags"])
        logger.info("Event created", event_id=event.pk, slug=event.slug)
        return event

    def update(self, slug: str, changes: Mapping[str, Any]) -> Event:
        """
        Apply a partial update to the event identified by ``slug``.

        The past-date rule only applies when the date changes, the slug is only regenerated when
        the title changes, and tags are replaced as a whole when given.
        """
        event = self.get_by_slug(slug)
        data = clean_event_fields(changes)
        merged = {**_current_fields(event), **data}

        date_changed = "date" in data and data["date"] != event.date.isoformat()
        errors = collect_event_errors(
            merged,
            today=timezone.localdate(),
            check_date=date_changed,
        )

        new_slug = event.slug
        if ("title" in data and data["title"] != event.title) or not event.slug:
            new_slug = generate_slug(merged["title"]) if isinstance(merged["title"], str) else ""
            if "title" not in errors and not new_slug:
                errors["title"] = [EMPTY_SLUG_MESSAGE]
        if errors:
            logger.info("Event update rejected", slug=event.slug, fields=sorted(errors))
            raise FieldValidationError(errors)

        if new_slug != event.slug:
            self._ensure_slug_free(new_slug, exclude_pk=event.pk)
            event.slug = new_slug
        for name, value in _store_values(data).items():
            setattr(event, name, value)

        event = self._persist("event.update", event, data.get("tags"))
        logger.info("Event updated", event_id=event.pk, slug=event.slug, fields=sorted(data))
        return event

    def _ensure_slug_free(self, slug: str, exclude_pk: int | None = None) -> None:
        queryset = Event.objects.filter(slug=slug)
        if exclude_pk is not None:
            queryset = queryset.exclude(pk=exclude_pk)
        if self.store.run("event.slug_exists", queryset.exists):
            logger.info("Duplicate event slug", slug=slug)
            raise DuplicateSlugError(slug)

    def _persist(self, operation: str, event: Event, tags: list[str] | None) -> Event:
        """Save ``event`` and replace its tags in one transaction, then reload it."""

        def save() -> Event:
            with transaction.atomic(using=self.store.alias):
                event.save()
                if tags is not None:
                    EventTag.objects.filter(event=event).delete()
                    EventTag.objects.bulk_create(
                        EventTag(event=event, name=name, position=position)
                        for position, name in enumerate(tags)
                    )
            return self._base_queryset().get(pk=event.pk)

        try:
            return self.store.run(operation, save)
        except IntegrityError as exc:
            # A concurrent writer took the slug between the check and the insert
            logger.warning("Event slug collision on save", slug=event.slug, error=str(exc))
            raise DuplicateSlugError(event.slug) from exc

    # ----------------------------------------------------------------------------------------------
    # Single-object reads
    # ----------------------------------------------------------------------------------------------

    def get_by_slug(self, slug: str | None) -> Event:
        """Return the event with ``slug`` (trimmed, case-insensitive)."""
        normalized = (slug or "").strip().lower()
        if not normalized:
            raise EventNotFoundError(slug)
        try:
            return self.store.run(
                "event.get_by_slug",
                lambda: self._base_queryset().get(slug=normalized),
            )
        except Event.DoesNotExist as exc:
            raise EventNotFoundError(normalized) from exc

    def get_by_id(self, event_id: object) -> Event:
        """Return the event with primary key ``event_id``; malformed ids are simply not found."""
        if isinstance(event_id, bool):
            raise EventNotFoundError(event_id)
        try:
            pk = int(str(event_id).strip())
        except ValueError as exc:
            raise EventNotFoundError(event_id) from exc
        try:
            return self.store.run("event.get_by_id", lambda: self._base_queryset().get(pk=pk))
        except Event.DoesNotExist as exc:
            raise EventNotFoundError(event_id) from exc

    # ----------------------------------------------------------------------------------------------
    # List and aggregate reads
    # ----------------------------------------------------------------------------------------------

    def list_upcoming(
        self,
        page: int = 1,
        page_size: int | None = None,
        event_filter: EventFilter | None = None,
        sort: EventSort | str | None = EventSort.SOONEST,
    ) -> Page[Event]:
        """Return one page of events dated today or later, filtered and sorted."""
        today = timezone.localdate()
        event_filter = event_filter or EventFilter()
        floor = today if event_filter.date_floor is None else max(event_filter.date_floor, today)
        query = build_event_query(replace(event_filter, date_floor=floor))
        queryset = self._base_queryset().filter(query).order_by(*ordering_for(sort))
        return self.store.read(
            "event.list_upcoming",
            lambda: paginate(queryset, page, page_size or settings.EVENTS_PAGE_SIZE),
            Page([], 0, max(page, 1), 0),
        )

    def search(self, query: str | None, page: int = 1, page_size: int | None = None) -> Page[Event]:
        """
        Return one page of events matching ``query`` in any searchable field.

        Past events are included. A blank query matches every event.
        """
        term = (query or "").strip()
        condition = search_query(term) if term else Q()
        queryset = self._base_queryset().filter(condition).order_by(*SOONEST_THEN_NEWEST)
        return self.store.read(
            "event.search",
            lambda: paginate(queryset, page, page_size or settings.EVENTS_PAGE_SIZE),
            Page([], 0, max(page, 1), 0),
        )

    def find_similar(self, slug: str | None, limit: int | None = None) -> list[Event]:
        """Return other upcoming events sharing at least one tag with the event at ``slug``."""
        limit = settings.SIMILAR_EVENTS_LIMIT if limit is None else limit
        normalized = (slug or "").strip().lower()

        def query() -> list[Event]:
            reference = Event.objects.filter(slug=normalized).first()
            if reference is None:
                logger.warning("Reference event not found for similar events", slug=normalized)
                return []
            tag_names = list(reference.tags.values_list("name", flat=True))
            if not tag_names or limit < 1:
                return []
            queryset = (
                self._base_queryset()
                .filter(shares_tag_query(tag_names), date__gte=timezone.localdate())
                .exclude(pk=reference.pk)
                .order_by(*SOONEST_THEN_NEWEST)
            )
            return list(queryset[:limit])

        return self.store.read("event.find_similar", query, [])

    def list_distinct_tags(self) -> set[str]:
        """Return every tag name in use, blank names excluded."""

        def query() -> set[str]:
            names = EventTag.objects.values_list("name", flat=True).distinct()
            return {name for name in names if name and name.strip()}

        return self.store.read("event.list_distinct_tags", query, set())

    def count_by_mode_for_upcoming(self) -> dict[str, int]:
        """Return the number of upcoming events in total and per mode."""
        empty = {"total": 0, **{mode: 0 for mode in Event.Mode.values}}

        def query() -> dict[str, int]:
            rows = (
                Event.objects.filter(date__gte=timezone.localdate())
                .order_by()
                .values("mode")
                .annotate(count=Count("pk"))
            )
            counts = dict(empty)
            for row in rows:
                if row["mode"] in counts:
                    counts[row["mode"]] = row["count"]
                counts["total"] += row["count"]
            return counts

        return self.store.read("event.count_by_mode_for_upcoming", query, empty)
