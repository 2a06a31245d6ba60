"""HTTP/1.1 file server: serve, store and delete files under a root directory."""

import signal
import sys
from pathlib import Path
from typing import Optional

from tinyhttp.bootstrap.config import (
    build_server_config,
    build_store_config,
    parse_cli_args,
)
from tinyhttp.bootstrap.logging_setup import configure_logging
from tinyhttp.domain.connection_context import ConnectionLoggerAdapter
from tinyhttp.domain.path_locks import PathLockRegistry
from tinyhttp.lifecycle.state import ServerLifecycle
from tinyhttp.transport.accept_loop import run_server
from tinyhttp.transport.context import WorkerContext

SERVER_LOGGER = ConnectionLoggerAdapter("tinyhttp.server")


def main(argv: Optional[list[str]] = None) -> None:
    """Start the HTTP server and spawn worker threads per connection."""
    args = parse_cli_args(sys.argv[1:] if argv is None else argv)
    configure_logging(
        args.log_level, args.log_destination, use_json=args.log_format == "json"
    )

    config = build_server_config(args)
    store = build_store_config(args)
    Path(store.root).mkdir(parents=True, exist_ok=True)
    lifecycle = ServerLifecycle()
    context = WorkerContext(
        store=store,
        config=config,
        path_locks=PathLockRegistry() if args.path_locking else None,
        lifecycle=lifecycle,
    )

    def shutdown_handler(signum: int, _frame) -> None:
        SERVER_LOGGER.info(
            "Received shutdown signal", extra={"event": "signal", "signal": signum}
        )
        lifecycle.begin_draining()

    signal.signal(signal.SIGTERM, shutdown_handler)
    signal.signal(signal.SIGINT, shutdown_handler)

    SERVER_LOGGER.info(
        "Starting HTTP server",
        extra={
            "event": "server_starting",
            "host": args.host,
            "port": args.port,
            "directory": str(Path(store.root).resolve()),
            "log_destination": args.log_destination,
            "log_level": args.log_level,
            "socket_timeout": config.socket_timeout,
            "shutdown_grace_seconds": config.shutdown_grace_seconds,
            "confine_paths": store.confine_paths,
            "path_locking": args.path_locking,
            "strict_content_length": config.strict_content_length,
        },
    )
    run_server(args.host, args.port, context, lifecycle)


if __name__ == "__main__":
    main()
