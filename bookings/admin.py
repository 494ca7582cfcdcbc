"""Admin interface for bookings."""

from typing import ClassVar

from django.contrib import admin
from django.db.models import QuerySet
from django.http import HttpRequest
from django.utils.translation import gettext_lazy as _

from events.errors import StoreConnectivityError

from .models import Booking
from .repositories import BookingRepository


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    """
    Admin configuration for the Booking model.

    Bookings are created through the API only and are never deleted here. The seat counter of the
    event is kept in sync by cancelling through the repository.
    """

    list_display = ("full_name", "email", "event", "status", "created_at")
    list_filter = ("status", "event")
    search_fields = ("full_name", "email", "event__title")
    readonly_fields = ("event", "email", "full_name", "status", "created_at", "updated_at")
    actions: ClassVar[list[str]] = ["cancel_bookings"]

    def has_add_permission(self, request: HttpRequest) -> bool:  # noqa: ARG002
        """Disallow creating bookings by hand."""
        return False

    def has_delete_permission(
        self,
        request: HttpRequest,  # noqa: ARG002
        obj: Booking | None = None,  # noqa: ARG002
    ) -> bool:
        """Disallow deleting bookings; cancelling releases the seat instead."""
        return False

    @admin.action(description=_("Cancel selected bookings"))
    def cancel_bookings(self, request: HttpRequest, queryset: QuerySet[Booking]) -> None:
        """Cancel the selected bookings and release their seats."""
        repository = BookingRepository()
        try:
            for booking in queryset:
                repository.cancel(booking.pk)
        except StoreConnectivityError as exc:
            self.message_user(request, exc.message, level="error")
            return
        self.message_user(request, _("Bookings have been cancelled."))
