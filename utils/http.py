"""
Helpers shared by the JSON views.

Domain errors are rendered as ``{"message", "code", "errors"?}`` bodies with the status the error
carries. Anything else is logged and answered with a generic 500.
"""

import json
from collections.abc import Callable
from functools import wraps
from http import HTTPStatus
from typing import Any

import structlog
from django.conf import settings
from django.http import HttpRequest, HttpResponse, JsonResponse

from events.errors import ErrorCode, EventHubError, FieldValidationError


logger = structlog.get_logger(__name__)

#: Form fields that carry a JSON-encoded list
JSON_LIST_FIELDS = ("agenda", "tags")
FORM_CONTENT_TYPES = ("multipart/form-data", "application/x-www-form-urlencoded")


def error_response(error: EventHubError) -> JsonResponse:
    """Render a domain error."""
    body: dict[str, Any] = {"message": error.message, "code": error.code}
    if isinstance(error, FieldValidationError):
        body["errors"] = error.errors
    return JsonResponse(body, status=error.status)


def unexpected_error_response(exc: Exception) -> JsonResponse:
    """Render an uncategorized failure; details are only exposed with DEBUG on."""
    body: dict[str, Any] = {
        "message": "An unexpected error occurred",
        "code": ErrorCode.UNEXPECTED,
    }
    if settings.DEBUG:
        body["error"] = str(exc)
    return JsonResponse(body, status=HTTPStatus.INTERNAL_SERVER_ERROR)


def json_errors(view: Callable[..., HttpResponse]) -> Callable[..., HttpResponse]:
    """Turn exceptions raised by ``view`` into JSON error responses."""

    @wraps(view)
    def wrapper(request: HttpRequest, *args: Any, **kwargs: Any) -> HttpResponse:
        try:
            return view(request, *args, **kwargs)
        except EventHubError as exc:
            logger.info(
                "Request failed",
                path=request.path,
                code=str(exc.code),
                status=int(exc.status),
            )
            return error_response(exc)
        except Exception as exc:
            logger.exception("Unexpected error handling request", path=request.path)
            return unexpected_error_response(exc)

    return wrapper


def _decode_list(name: str, raw: str) -> Any:
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        logger.info("Form list field is not JSON", field=name)
        return [] if name == "tags" else [raw]


def parse_body(request: HttpRequest) -> dict[str, Any]:
    """
    Return the request payload as a dict.

    JSON bodies are decoded as-is. Form bodies are flattened to single values, except for
    ``agenda`` and ``tags`` which are sent as JSON arrays.
    """
    if request.content_type not in FORM_CONTENT_TYPES:
        if not request.body:
            return {}
        try:
            payload = json.loads(request.body)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise FieldValidationError({"body": ["Request body must be valid JSON"]}) from exc
        if not isinstance(payload, dict):
            raise FieldValidationError({"body": ["Request body must be a JSON object"]})
        return payload

    payload = {key: request.POST.get(key) for key in request.POST}
    for name in JSON_LIST_FIELDS:
        if name not in request.POST:
            continue
        values = request.POST.getlist(name)
        payload[name] = _decode_list(name, values[0]) if len(values) == 1 else values
    return payload


def int_param(
    request: HttpRequest,
    name: str,
    default: int,
    minimum: int = 1,
    maximum: int | None = None,
) -> int:
    """Read an integer query parameter, falling back to ``default`` and clamping to the bounds."""
    try:
        value = int(request.GET.get(name, default))
    except (TypeError, ValueError):
        value = default
    value = max(value, minimum)
    if maximum is not None:
        value = min(value, maximum)
    return value
