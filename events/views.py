"""
JSON endpoints for browsing, searching, creating and updating events.

Views are thin: they parse the request, call :class:`~events.repositories.EventRepository` and
render the result. Domain errors are rendered by :func:`utils.http.json_errors`.
"""

from http import HTTPStatus

import structlog
from django.conf import settings
from django.http import HttpRequest, JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_http_methods

from events.errors import FieldValidationError
from events.images import get_image_store
from events.queries import EventFilter, EventSort
from events.repositories import EventRepository
from events.serializers import serialize_event, serialize_pagination
from utils.http import int_param, json_errors, parse_body
from utils.store import get_store


logger = structlog.get_logger(__name__)


def get_event_repository() -> EventRepository:
    """Return an event repository bound to the shared store."""
    return EventRepository(get_store())


def _page_params(request: HttpRequest) -> tuple[int, int]:
    page = int_param(request, "page", 1)
    limit = int_param(
        request,
        "limit",
        settings.EVENTS_PAGE_SIZE,
        maximum=settings.EVENTS_MAX_PAGE_SIZE,
    )
    return page, limit


@csrf_exempt
@require_http_methods(["GET", "POST"])
@json_errors
def events_collection(request: HttpRequest) -> JsonResponse:
    """List upcoming events (GET) or create one (POST)."""
    repository = get_event_repository()

    if request.method == "POST":
        fields = parse_body(request)
        image_file = request.FILES.get("image")
        if image_file is not None:
            stored = get_image_store().upload(
                image_file.read(),
                image_file.content_type or "",
                image_file.name or "",
            )
            fields["image"] = stored.url
        event = repository.create(fields)
        return JsonResponse(
            {"message": "Event created successfully", "event": serialize_event(event)},
            status=HTTPStatus.CREATED,
        )

    page, limit = _page_params(request)
    event_filter = EventFilter(
        search=request.GET.get("search"),
        mode=request.GET.get("mode"),
        tag=request.GET.get("tag"),
    )
    sort = EventSort.parse(request.GET.get("sort"))
    result = repository.list_upcoming(page, limit, event_filter, sort)
    return JsonResponse(
        {
            "message": "Events fetched successfully",
            "events": [serialize_event(event) for event in result.items],
            "pagination": serialize_pagination(result, limit),
        },
    )


@require_GET
@json_errors
def event_search(request: HttpRequest) -> JsonResponse:
    """Search all events, past ones included."""
    query = request.GET.get("q", "")
    page, limit = _page_params(request)
    result = get_event_repository().search(query, page, limit)
    return JsonResponse(
        {
            "query": query,
            "events": [serialize_event(event) for event in result.items],
            "pagination": serialize_pagination(result, limit),
        },
    )


@require_GET
@json_errors
def event_tags(_: HttpRequest) -> JsonResponse:
    """Return every tag in use, alphabetically."""
    tags = get_event_repository().list_distinct_tags()
    return JsonResponse({"tags": sorted(tags, key=str.lower)})


@require_GET
@json_errors
def event_stats(_: HttpRequest) -> JsonResponse:
    """Return the number of upcoming events per mode."""
    return JsonResponse({"stats": get_event_repository().count_by_mode_for_upcoming()})


@csrf_exempt
@require_http_methods(["GET", "PATCH"])
@json_errors
def event_detail(request: HttpRequest, slug: str) -> JsonResponse:
    """Return (GET) or partially update (PATCH) one event."""
    repository = get_event_repository()
    if request.method == "PATCH":
        event = repository.update(slug, parse_body(request))
        return JsonResponse(
            {"message": "Event updated successfully", "event": serialize_event(event)},
        )
    event = repository.get_by_slug(slug)
    return JsonResponse({"message": "Event fetched successfully", "event": serialize_event(event)})


@require_GET
@json_errors
def similar_events(request: HttpRequest, slug: str) -> JsonResponse:
    """Return upcoming events sharing a tag with the event at ``slug``."""
    limit = int_param(request, "limit", settings.SIMILAR_EVENTS_LIMIT, minimum=0, maximum=12)
    events = get_event_repository().find_similar(slug, limit)
    return JsonResponse({"events": [serialize_event(event) for event in events]})


@csrf_exempt
@require_http_methods(["GET", "POST"])
@json_errors
def image_upload(request: HttpRequest) -> JsonResponse:
    """Upload an event image (POST) or describe the accepted uploads (GET)."""
    store = get_image_store()
    if request.method == "GET":
        return JsonResponse(
            {"allowed_types": sorted(store.allowed_types), "max_size": store.max_bytes},
        )

    upload = request.FILES.get("file")
    if upload is None:
        raise FieldValidationError({"file": ["No file provided"]})
    stored = store.upload(upload.read(), upload.content_type or "", upload.name or "")
    return JsonResponse(
        {
            "message": "File uploaded successfully",
            "url": stored.url,
            "public_id": stored.public_id,
            "format": stored.format,
            "size": stored.size,
        },
    )
