"""Registration records tying an attendee to an event."""

from typing import ClassVar

from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from events.models import Event


MAX_EMAIL_LENGTH = 254
MAX_FULL_NAME_LENGTH = 100


class Booking(models.Model):
    """An attendee's registration for one event."""

    class Status(models.TextChoices):
        """Lifecycle state of a booking."""

        CONFIRMED = "confirmed", _("Confirmed")
        CANCELLED = "cancelled", _("Cancelled")
        WAITLISTED = "waitlisted", _("Waitlisted")

    event = models.ForeignKey(
        Event,
        on_delete=models.CASCADE,
        related_name="bookings",
        help_text=_("Event this booking registers for"),
    )
    email = models.EmailField(
        max_length=MAX_EMAIL_LENGTH,
        help_text=_("Attendee e-mail address, stored lowercased"),
    )
    full_name = models.CharField(
        max_length=MAX_FULL_NAME_LENGTH,
        help_text=_("Attendee full name"),
    )
    status = models.CharField(
        max_length=10,
        choices=Status.choices,
        default=Status.CONFIRMED,
        help_text=_("Current state of the booking"),
    )
    created_at = models.DateTimeField(
        default=timezone.now,
        help_text=_("When the attendee registered"),
    )
    updated_at = models.DateTimeField(
        auto_now=True,
        help_text=_("When this booking was last modified"),
    )

    class Meta:
        """Metadata for the Booking model."""

        verbose_name = _("Booking")
        verbose_name_plural = _("Bookings")
        ordering: ClassVar[list[str]] = ["-created_at"]
        indexes: ClassVar[list[models.Index]] = [
            models.Index(fields=["event", "status"], name="bookings_bo_event_i_4a8c1f_idx"),
            models.Index(fields=["email"], name="bookings_bo_email_7d2e90_idx"),
        ]
        constraints: ClassVar[list[models.UniqueConstraint]] = [
            # Holds regardless of status: a cancelled booking keeps the slot
            models.UniqueConstraint(
                fields=("event", "email"),
                name="unique_booking_per_event_email",
            ),
        ]

    def __str__(self) -> str:
        """Return the attendee name and event."""
        return f"{self.full_name} - {self.event}"

    @property
    def is_confirmed(self) -> bool:
        """Return whether the booking holds a seat."""
        return self.status == self.Status.CONFIRMED
