"""Server configuration and CLI argument parsing."""

import argparse
import os
from dataclasses import dataclass, field
from typing import Mapping

from tinyhttp.domain.media_types import MEDIA_TYPES


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    return int(value) if value is not None else default


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.lower() in {"1", "true", "yes", "on"}


DEFAULT_DIRECTORY = os.getenv("HTTP_SERVER_DIRECTORY", "web_root")
DEFAULT_HOST = os.getenv("HTTP_SERVER_HOST", "0.0.0.0")
DEFAULT_PORT = _env_int("HTTP_SERVER_PORT", 8080)
DEFAULT_SOCKET_TIMEOUT = _env_int("HTTP_SERVER_SOCKET_TIMEOUT", 60)
DEFAULT_SHUTDOWN_GRACE_SECONDS = _env_int("HTTP_SERVER_SHUTDOWN_GRACE_SECONDS", 30)
DEFAULT_BUFFER_SIZE = _env_int("HTTP_SERVER_BUFFER_SIZE", 8192)
DEFAULT_MAX_LINE_BYTES = _env_int("HTTP_SERVER_MAX_LINE_BYTES", 64 * 1024)
DEFAULT_STRICT_CONTENT_LENGTH = _env_bool("HTTP_SERVER_STRICT_CONTENT_LENGTH", False)
DEFAULT_CONFINE_PATHS = _env_bool("HTTP_SERVER_CONFINE_PATHS", True)
DEFAULT_PATH_LOCKING = _env_bool("HTTP_SERVER_PATH_LOCKING", True)

INDEX_DOCUMENT = "/index.html"


@dataclass
class ServerConfig:
    """Connection handling settings shared by every worker."""

    socket_timeout: int = DEFAULT_SOCKET_TIMEOUT
    shutdown_grace_seconds: int = DEFAULT_SHUTDOWN_GRACE_SECONDS
    buffer_size: int = DEFAULT_BUFFER_SIZE
    max_line_bytes: int = DEFAULT_MAX_LINE_BYTES
    strict_content_length: bool = DEFAULT_STRICT_CONTENT_LENGTH


@dataclass(frozen=True)
class StoreConfig:
    """Where files live and how request paths map onto them."""

    root: str
    confine_paths: bool = DEFAULT_CONFINE_PATHS
    media_types: Mapping[str, str] = field(default_factory=lambda: MEDIA_TYPES)


def build_server_config(args: argparse.Namespace) -> ServerConfig:
    """Collect connection settings from parsed CLI arguments."""
    return ServerConfig(
        socket_timeout=args.socket_timeout,
        shutdown_grace_seconds=args.shutdown_grace_seconds,
        buffer_size=args.buffer_size,
        max_line_bytes=args.max_line_bytes,
        strict_content_length=args.strict_content_length,
    )


def build_store_config(args: argparse.Namespace) -> StoreConfig:
    """Collect file store settings from parsed CLI arguments."""
    return StoreConfig(root=args.directory, confine_paths=args.confine_paths)


def _positive_int(value: str) -> int:
    number = int(value)
    if number <= 0:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {value}")
    return number


def parse_cli_args(argv: list[str]) -> argparse.Namespace:
    """Return parsed CLI arguments for server configuration."""
    parser = argparse.ArgumentParser(
        description="Serve, store and delete files under a root directory over HTTP/1.1"
    )
    parser.add_argument(
        "--directory",
        default=DEFAULT_DIRECTORY,
        help="Root directory requests are resolved against",
    )
    parser.add_argument("--host", default=DEFAULT_HOST)
    parser.add_argument("--port", type=int, default=DEFAULT_PORT)
    default_log_level = os.getenv("HTTP_SERVER_LOG_LEVEL", "INFO").upper()
    default_destination = os.getenv("HTTP_SERVER_LOG_DESTINATION", "stdout")
    default_log_format = os.getenv("HTTP_SERVER_LOG_FORMAT", "text").lower()
    parser.add_argument(
        "--log-level",
        default=default_log_level,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        type=str.upper,
    )
    parser.add_argument(
        "--log-destination",
        default=default_destination,
        help="stdout or a file path",
    )
    parser.add_argument(
        "--log-format",
        default=default_log_format,
        choices=["text", "json"],
        type=str.lower,
    )
    parser.add_argument(
        "--socket-timeout",
        type=int,
        default=DEFAULT_SOCKET_TIMEOUT,
        help="Read timeout in seconds for client connections (0 to wait forever)",
    )
    parser.add_argument(
        "--shutdown-grace-seconds",
        type=int,
        default=DEFAULT_SHUTDOWN_GRACE_SECONDS,
        help="Grace period in seconds for graceful shutdown",
    )
    parser.add_argument(
        "--buffer-size",
        type=_positive_int,
        default=DEFAULT_BUFFER_SIZE,
        help="Largest single read when receiving a request body",
    )
    parser.add_argument(
        "--max-line-bytes",
        type=_positive_int,
        default=DEFAULT_MAX_LINE_BYTES,
        help="Longest accepted request or header line",
    )
    parser.add_argument(
        "--strict-content-length",
        action=argparse.BooleanOptionalAction,
        default=DEFAULT_STRICT_CONTENT_LENGTH,
        help="Drop requests whose body ends before Content-Length bytes",
    )
    parser.add_argument(
        "--confine-paths",
        action=argparse.BooleanOptionalAction,
        default=DEFAULT_CONFINE_PATHS,
        help="Reject request paths that resolve outside the root directory",
    )
    parser.add_argument(
        "--path-locking",
        action=argparse.BooleanOptionalAction,
        default=DEFAULT_PATH_LOCKING,
        help="Serialize concurrent operations on the same file",
    )
    return parser.parse_args(argv)
