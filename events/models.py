"""Event catalogue models: published events and their tags."""

from typing import TYPE_CHECKING, ClassVar

from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _


if TYPE_CHECKING:
    from django_stubs_ext.db.models.manager import RelatedManager

    from bookings.models import Booking

MAX_TITLE_LENGTH = 120
MAX_DESCRIPTION_LENGTH = 2000
MAX_OVERVIEW_LENGTH = 500
MAX_VENUE_LENGTH = 100
MAX_LOCATION_LENGTH = 200
MAX_AUDIENCE_LENGTH = 100
MAX_ORGANIZER_LENGTH = 100
MAX_URL_LENGTH = 500
MAX_TAG_LENGTH = 50
TIME_LENGTH = 5


class Event(models.Model):
    """Represents a published event that visitors can browse and register for."""

    class Mode(models.TextChoices):
        """Attendance modality of an event."""

        ONLINE = "online", _("Online")
        OFFLINE = "offline", _("In-Person")
        HYBRID = "hybrid", _("Hybrid")

    title = models.CharField(
        max_length=MAX_TITLE_LENGTH,
        help_text=_("Title of the event"),
    )
    slug = models.SlugField(
        max_length=MAX_TITLE_LENGTH,
        unique=True,
        help_text=_("URL identifier derived from the title"),
    )
    description = models.TextField(
        help_text=_("Full description of the event"),
    )
    overview = models.CharField(
        max_length=MAX_OVERVIEW_LENGTH,
        help_text=_("Short summary shown on event cards"),
    )
    image = models.URLField(
        max_length=MAX_URL_LENGTH,
        help_text=_("Public URL of the event image"),
    )
    venue = models.CharField(
        max_length=MAX_VENUE_LENGTH,
        help_text=_("Name of the venue"),
    )
    location = models.CharField(
        max_length=MAX_LOCATION_LENGTH,
        help_text=_("City or address of the event"),
    )
    date = models.DateField(
        help_text=_("Calendar day of the event"),
    )
    time = models.CharField(
        max_length=TIME_LENGTH,
        help_text=_("Start time, HH:MM in 24-hour format"),
    )
    mode = models.CharField(
        max_length=10,
        choices=Mode.choices,
        help_text=_("Whether the event is online, in person or both"),
    )
    audience = models.CharField(
        max_length=MAX_AUDIENCE_LENGTH,
        help_text=_("Target audience"),
    )
    agenda = models.JSONField(
        default=list,
        help_text=_("Ordered list of agenda items"),
    )
    organizer = models.CharField(
        max_length=MAX_ORGANIZER_LENGTH,
        help_text=_("Name of the organizer"),
    )
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=0,
        help_text=_("Ticket price, 0 for free events"),
    )
    capacity = models.PositiveIntegerField(
        null=True,
        blank=True,
        help_text=_("Maximum number of confirmed bookings. Leave blank for unlimited."),
    )
    registration_url = models.URLField(
        max_length=MAX_URL_LENGTH,
        blank=True,
        default="",
        help_text=_("External registration page. Replaces internal booking in the UI."),
    )
    confirmed_bookings = models.PositiveIntegerField(
        default=0,
        editable=False,
        help_text=_("Number of confirmed bookings, maintained by the booking repository"),
    )
    created_at = models.DateTimeField(
        default=timezone.now,
        help_text=_("When this event was published"),
    )
    updated_at = models.DateTimeField(
        auto_now=True,
        help_text=_("When this event was last modified"),
    )

    if TYPE_CHECKING:
        tags: RelatedManager[EventTag]
        bookings: RelatedManager[Booking]

    class Meta:
        """Metadata for the Event model."""

        verbose_name = _("Event")
        verbose_name_plural = _("Events")
        ordering: ClassVar[list[str]] = ["date", "-created_at"]
        indexes: ClassVar[list[models.Index]] = [
            models.Index(fields=["date", "mode"], name="events_even_date_3c4f0e_idx"),
            models.Index(fields=["-created_at"], name="events_even_created_9b1a2d_idx"),
        ]
        constraints: ClassVar[list[models.CheckConstraint]] = [
            models.CheckConstraint(
                condition=models.Q(price__gte=0),
                name="event_price_not_negative",
            ),
        ]

    def __str__(self) -> str:
        """Return the event title."""
        return self.title

    @property
    def tag_names(self) -> list[str]:
        """Return the tag names in display order."""
        return [tag.name for tag in self.tags.all()]

    @property
    def spots_left(self) -> int | None:
        """Return the remaining confirmed seats, or None for unlimited events."""
        if self.capacity is None:
            return None
        return max(self.capacity - self.confirmed_bookings, 0)


class EventTag(models.Model):
    """A single tag attached to an event."""

    event = models.ForeignKey(
        Event,
        on_delete=models.CASCADE,
        related_name="tags",
        help_text=_("Event this tag belongs to"),
    )
    name = models.CharField(
        max_length=MAX_TAG_LENGTH,
        help_text=_("Tag text as entered by the organizer"),
    )
    position = models.PositiveSmallIntegerField(
        default=0,
        help_text=_("Display order of the tag on the event"),
    )

    class Meta:
        """Metadata for the EventTag model."""

        verbose_name = _("Event tag")
        verbose_name_plural = _("Event tags")
        ordering: ClassVar[list[str]] = ["position"]
        indexes: ClassVar[list[models.Index]] = [
            models.Index(fields=["name"], name="events_even_name_5e7d21_idx"),
        ]
        constraints: ClassVar[list[models.UniqueConstraint]] = [
            models.UniqueConstraint(fields=("event", "name"), name="unique_tag_per_event"),
        ]

    def __str__(self) -> str:
        """Return the tag name."""
        return self.name
