"""Operational endpoints."""

from http import HTTPStatus

from django.http import HttpRequest, JsonResponse
from django.views.decorators.http import require_GET

from utils.store import get_store


@require_GET
def health(_: HttpRequest) -> JsonResponse:
    """Report whether the event store is reachable."""
    if get_store().is_healthy():
        return JsonResponse({"status": "ok", "store": "ok"})
    return JsonResponse(
        {"status": "unavailable", "store": "unreachable"},
        status=HTTPStatus.SERVICE_UNAVAILABLE,
    )
