"""JSON endpoints for registering, cancelling and listing bookings."""

from http import HTTPStatus

from django.conf import settings
from django.http import HttpRequest, JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_POST

from bookings.repositories import BookingRepository
from events.repositories import EventRepository
from events.serializers import serialize_booking, serialize_pagination
from utils.http import int_param, json_errors, parse_body
from utils.store import get_store


def get_booking_repository() -> BookingRepository:
    """Return a booking repository bound to the shared store."""
    store = get_store()
    return BookingRepository(store, EventRepository(store))


@csrf_exempt
@require_POST
@json_errors
def booking_create(request: HttpRequest) -> JsonResponse:
    """Register an attendee for an event."""
    booking = get_booking_repository().create(parse_body(request))
    return JsonResponse(
        {"message": "Booking confirmed successfully", "booking": serialize_booking(booking)},
        status=HTTPStatus.CREATED,
    )


@csrf_exempt
@require_POST
@json_errors
def booking_cancel(_: HttpRequest, booking_id: int) -> JsonResponse:
    """Cancel a booking."""
    booking = get_booking_repository().cancel(booking_id)
    return JsonResponse(
        {"message": "Booking cancelled successfully", "booking": serialize_booking(booking)},
    )


@require_GET
@json_errors
def event_bookings(request: HttpRequest, event_id: int) -> JsonResponse:
    """List the confirmed bookings of an event, newest first."""
    repository = get_booking_repository()
    event = repository.events.get_by_id(event_id)
    page = int_param(request, "page", 1)
    limit = int_param(request, "limit", settings.BOOKINGS_PAGE_SIZE, maximum=100)
    result = repository.list_by_event(event.pk, page, limit)
    return JsonResponse(
        {
            "bookings": [serialize_booking(booking) for booking in result.items],
            "pagination": serialize_pagination(result, limit),
        },
    )
