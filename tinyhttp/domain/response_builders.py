"""Pure HTTP response builders."""

from typing import Iterable

from tinyhttp.domain.http_types import HttpResponse

SUPPORTED_METHODS = ("DELETE", "GET", "POST", "PUT")


def error_response(status_code: int, reason: str) -> HttpResponse:
    """Return a text/plain response whose body names the status."""
    body = f"Error: {status_code} {reason}".encode()
    return HttpResponse(status_code, reason, {"Content-Type": "text/plain"}, body)


def file_contents_response(payload: bytes, content_type: str) -> HttpResponse:
    """Return a 200 response carrying a file's contents."""
    return HttpResponse(200, "OK", {"Content-Type": content_type}, payload)


def created_response() -> HttpResponse:
    """Return a 201 response without an entity."""
    return HttpResponse(201, "Created")


def no_content_response() -> HttpResponse:
    """Return a 204 response without an entity."""
    return HttpResponse(204, "No Content")


def forbidden_response() -> HttpResponse:
    """Produce a 403 response for paths outside the store root."""
    return error_response(403, "Forbidden")


def not_found_response() -> HttpResponse:
    """Produce a 404 response."""
    return error_response(404, "Not Found")


def method_not_allowed_response(
    allowed_methods: Iterable[str] = SUPPORTED_METHODS,
) -> HttpResponse:
    """Produce a 405 response enumerating the supported HTTP methods."""
    response = error_response(405, "Method Not Allowed")
    response.headers["Allow"] = ", ".join(sorted(allowed_methods))
    return response
