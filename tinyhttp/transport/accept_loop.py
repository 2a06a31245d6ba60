"""Main connection acceptance loop."""

import logging
import socket
import threading

from tinyhttp.bootstrap.socket_factory import create_server_socket
from tinyhttp.domain.connection_context import ConnectionLoggerAdapter, format_peer
from tinyhttp.lifecycle.state import ServerLifecycle
from tinyhttp.transport.context import WorkerContext
from tinyhttp.transport.worker import handle_client

ACCEPT_LOGGER = ConnectionLoggerAdapter("tinyhttp.transport.accept")


def _spawn_worker(
    client_socket: socket.socket,
    client_address: tuple[str, int],
    context: WorkerContext,
    lifecycle: ServerLifecycle,
) -> threading.Thread:
    """Hand an accepted connection to a dedicated worker thread."""
    if ACCEPT_LOGGER.logger.isEnabledFor(logging.DEBUG):
        ACCEPT_LOGGER.debug(
            "Client connection accepted",
            extra={"event": "client_accepted", "client": format_peer(client_address)},
        )
    thread = threading.Thread(
        target=handle_client,
        args=(client_socket, client_address, context),
        daemon=False,
    )
    lifecycle.register_worker(thread)
    thread.start()
    return thread


def serve_forever(
    server_socket: socket.socket, context: WorkerContext, lifecycle: ServerLifecycle
) -> None:
    """Accept connections until the lifecycle asks to stop."""
    while not lifecycle.should_stop():
        try:
            client_socket, client_address = server_socket.accept()
        except socket.timeout:
            continue
        except OSError as error:
            if lifecycle.should_stop():
                break
            ACCEPT_LOGGER.error(
                "Socket accept failed",
                extra={"event": "accept_error", "error_type": type(error).__name__},
            )
            continue

        _spawn_worker(client_socket, client_address, context, lifecycle)


def run_server(
    host: str,
    port: int,
    context: WorkerContext,
    lifecycle: ServerLifecycle,
) -> None:
    """Create the listening socket and run the accept loop until shutdown."""
    server_socket = create_server_socket(host, port)

    ACCEPT_LOGGER.info(
        "Server listening for connections on port %d",
        port,
        extra={"event": "server_listening", "host": host, "port": port},
    )

    try:
        serve_forever(server_socket, context, lifecycle)
    finally:
        server_socket.close()
        ACCEPT_LOGGER.info(
            "Waiting for active connections to complete",
            extra={
                "event": "shutdown_waiting",
                "shutdown_grace_seconds": context.config.shutdown_grace_seconds,
            },
        )
        lifecycle.wait_for_workers(context.config.shutdown_grace_seconds)
        ACCEPT_LOGGER.info(
            "Server shutdown complete", extra={"event": "server_stopped"}
        )
