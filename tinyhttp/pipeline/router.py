"""Dispatch a parsed request to the file store by method."""

import logging
from typing import BinaryIO

from tinyhttp.domain.connection_context import ConnectionLoggerAdapter
from tinyhttp.domain.http_types import HttpRequest, HttpResponse
from tinyhttp.domain.response_builders import method_not_allowed_response
from tinyhttp.handlers.file_handler import delete_file, save_file, serve_file
from tinyhttp.pipeline.body import read_body
from tinyhttp.transport.context import WorkerContext

ROUTER_LOGGER = ConnectionLoggerAdapter("tinyhttp.pipeline.router")

WRITE_METHODS = {"POST", "PUT"}


def route_request(
    request: HttpRequest, stream: BinaryIO, context: WorkerContext
) -> HttpResponse:
    """Run the file store operation for ``request`` and return its response.

    For POST and PUT the body is read from ``stream`` here, after the method
    is known to need one.
    """
    if ROUTER_LOGGER.logger.isEnabledFor(logging.DEBUG):
        ROUTER_LOGGER.debug(
            "Routing request",
            extra={
                "event": "route_matched",
                "method": request.method,
                "route": request.path,
            },
        )

    if request.method == "GET":
        return serve_file(context.store, request.path, context.path_locks)

    if request.method in WRITE_METHODS:
        body = read_body(
            stream,
            request.content_length,
            context.config.buffer_size,
            context.config.strict_content_length,
        )
        return save_file(
            context.store, request.path, body, context.path_locks, request.method
        )

    if request.method == "DELETE":
        return delete_file(context.store, request.path, context.path_locks)

    ROUTER_LOGGER.warning(
        "Unsupported method",
        extra={
            "event": "method_not_allowed",
            "method": request.method,
            "route": request.path,
        },
    )
    return method_not_allowed_response()
