"""JSON representations of events, bookings and result pages."""

from typing import Any

from bookings.models import Booking
from events.models import Event
from events.repositories import Page


def serialize_event(event: Event) -> dict[str, Any]:
    """Return the public representation of an event."""
    return {
        "id": event.pk,
        "title": event.title,
        "slug": event.slug,
        "description": event.description,
        "overview": event.overview,
        "image": event.image,
        "venue": event.venue,
        "location": event.location,
        "date": event.date.isoformat(),
        "time": event.time,
        "mode": event.mode,
        "audience": event.audience,
        "agenda": list(event.agenda),
        "organizer": event.organizer,
        "tags": event.tag_names,
        "price": str(event.price),
        "capacity": event.capacity,
        "spots_left": event.spots_left,
        "registration_url": event.registration_url,
        "confirmed_bookings": event.confirmed_bookings,
        "created_at": event.created_at.isoformat(),
        "updated_at": event.updated_at.isoformat(),
    }


def serialize_booking(booking: Booking) -> dict[str, Any]:
    """Return the representation of a booking."""
    return {
        "id": booking.pk,
        "event_id": booking.event_id,
        "email": booking.email,
        "full_name": booking.full_name,
        "status": booking.status,
        "created_at": booking.created_at.isoformat(),
        "updated_at": booking.updated_at.isoformat(),
    }


def serialize_pagination(page: Page, page_size: int) -> dict[str, Any]:
    """Return the pagination block of a list response."""
    return {
        "page": page.current_page,
        "limit": page_size,
        "total": page.total,
        "total_pages": page.total_pages,
        "has_next": page.has_next,
        "has_previous": page.has_previous,
    }
