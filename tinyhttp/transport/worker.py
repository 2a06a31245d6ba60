"""Worker thread logic for handling a single client connection."""

import logging
import socket
import threading
import time

from tinyhttp.domain.connection_context import (
    ConnectionLoggerAdapter,
    bind_connection,
    release_connection,
)
from tinyhttp.pipeline.io import ProtocolError, receive_request, send_response
from tinyhttp.pipeline.router import route_request
from tinyhttp.transport.context import WorkerContext

WORKER_LOGGER = ConnectionLoggerAdapter("tinyhttp.transport.worker")

LINGER_SECONDS = 0.5
LINGER_MAX_BYTES = 64 * 1024


def _apply_timeout(context: WorkerContext, client_socket: socket.socket) -> None:
    timeout = context.config.socket_timeout
    client_socket.settimeout(timeout if timeout > 0 else None)


def _serve_connection(context: WorkerContext, client_socket: socket.socket) -> None:
    started = time.monotonic()
    with client_socket.makefile("rb") as stream:
        request = receive_request(stream, context.config.max_line_bytes)
        if request is None:
            if WORKER_LOGGER.logger.isEnabledFor(logging.DEBUG):
                WORKER_LOGGER.debug(
                    "Connection closed without a request",
                    extra={"event": "empty_connection"},
                )
            return

        response = route_request(request, stream, context)

    if not send_response(client_socket, response):
        WORKER_LOGGER.error(
            "Response could not be delivered",
            extra={"event": "response_failed", "status_code": response.status_code},
        )
        return

    WORKER_LOGGER.info(
        "%s %s %d",
        request.method,
        request.path,
        response.status_code,
        extra={
            "event": "request_complete",
            "method": request.method,
            "route": request.path,
            "status_code": response.status_code,
            "duration_ms": round((time.monotonic() - started) * 1000, 3),
        },
    )


def _discard_unread_input(client_socket: socket.socket) -> None:
    """Read and drop what the peer is still sending so close() does not reset it."""
    discarded = 0
    try:
        client_socket.settimeout(LINGER_SECONDS)
        while discarded < LINGER_MAX_BYTES:
            chunk = client_socket.recv(4096)
            if not chunk:
                break
            discarded += len(chunk)
    except OSError:
        pass


def _close_connection(
    context: WorkerContext, client_socket: socket.socket, thread: threading.Thread
) -> None:
    if context.lifecycle is not None:
        context.lifecycle.cleanup_worker(thread)

    try:
        client_socket.shutdown(socket.SHUT_WR)
    except OSError:
        pass
    _discard_unread_input(client_socket)
    client_socket.close()

    WORKER_LOGGER.debug("Socket closed", extra={"event": "socket_closed"})
    release_connection()


def handle_client(
    client_socket: socket.socket,
    client_address: tuple[str, int],
    context: WorkerContext,
) -> None:
    """Read one request, answer it and close the connection."""
    bind_connection(client_address)

    try:
        _apply_timeout(context, client_socket)
        _serve_connection(context, client_socket)
    except ProtocolError as error:
        WORKER_LOGGER.warning(
            "Dropping connection after protocol error",
            extra={
                "event": "protocol_error",
                "error_type": type(error).__name__,
                "error": str(error),
            },
        )
    except (
        ConnectionError,
        TimeoutError,
        OSError,
        UnicodeDecodeError,
    ) as error:
        WORKER_LOGGER.error(
            "Error handling client connection",
            extra={
                "event": "connection_error",
                "error_type": type(error).__name__,
                "error": str(error),
            },
        )
    except Exception as error:  # pylint: disable=broad-except
        WORKER_LOGGER.error(
            "Unexpected error in worker",
            extra={
                "event": "worker_error",
                "error_type": type(error).__name__,
                "error": str(error),
            },
            exc_info=True,
        )
    finally:
        _close_connection(context, client_socket, threading.current_thread())
