"""File store operations behind GET, POST/PUT and DELETE."""

import logging
from pathlib import Path, PurePosixPath
from typing import Optional

from tinyhttp.bootstrap.config import INDEX_DOCUMENT, StoreConfig
from tinyhttp.domain.connection_context import ConnectionLoggerAdapter
from tinyhttp.domain.http_types import HttpResponse
from tinyhttp.domain.media_types import content_type_for
from tinyhttp.domain.path_locks import PathLockRegistry, guard
from tinyhttp.domain.response_builders import (
    created_response,
    file_contents_response,
    forbidden_response,
    no_content_response,
    not_found_response,
)
from tinyhttp.domain.sandbox import ForbiddenPath, resolve_request_path

FILE_LOGGER = ConnectionLoggerAdapter("tinyhttp.handlers.file")


def _resolve(store: StoreConfig, request_path: str, method: str) -> Optional[Path]:
    try:
        return resolve_request_path(store.root, request_path, store.confine_paths)
    except ForbiddenPath:
        FILE_LOGGER.warning(
            "Forbidden path access blocked",
            extra={"event": "forbidden_path", "path": request_path, "method": method},
        )
        return None


def serve_file(
    store: StoreConfig,
    request_path: str,
    path_locks: Optional[PathLockRegistry] = None,
) -> HttpResponse:
    """Return the contents of the file at ``request_path`` or a 404."""
    if request_path == "/":
        request_path = INDEX_DOCUMENT
    resolved_path = _resolve(store, request_path, "GET")
    if resolved_path is None:
        return forbidden_response()

    with guard(path_locks, resolved_path):
        if not resolved_path.is_file():
            FILE_LOGGER.info(
                "File not found",
                extra={"event": "file_not_found", "path": resolved_path.as_posix()},
            )
            return not_found_response()
        payload = resolved_path.read_bytes()

    FILE_LOGGER.info(
        "File read operation complete",
        extra={
            "event": "file_read_complete",
            "path": resolved_path.as_posix(),
            "bytes_out": len(payload),
        },
    )
    requested_name = PurePosixPath(request_path).name
    return file_contents_response(
        payload, content_type_for(requested_name, store.media_types)
    )


def save_file(
    store: StoreConfig,
    request_path: str,
    body: bytes,
    path_locks: Optional[PathLockRegistry] = None,
    method: str = "PUT",
) -> HttpResponse:
    """Create or overwrite the file at ``request_path`` with ``body``.

    Filesystem errors propagate to the caller.
    """
    resolved_path = _resolve(store, request_path, method)
    if resolved_path is None:
        return forbidden_response()

    if FILE_LOGGER.logger.isEnabledFor(logging.DEBUG):
        FILE_LOGGER.debug(
            "File write started",
            extra={
                "event": "file_write_started",
                "path": resolved_path.as_posix(),
                "bytes_in": len(body),
            },
        )
    with guard(path_locks, resolved_path):
        resolved_path.parent.mkdir(parents=True, exist_ok=True)
        with open(resolved_path, "wb") as file_handle:
            file_handle.write(body)
    FILE_LOGGER.info(
        "File write complete",
        extra={
            "event": "file_write_complete",
            "path": resolved_path.as_posix(),
            "bytes_in": len(body),
        },
    )
    return created_response()


def _remove(path: Path) -> bool:
    try:
        if path.is_dir() and not path.is_symlink():
            path.rmdir()
        else:
            path.unlink()
    except (OSError, ValueError) as error:
        FILE_LOGGER.info(
            "File could not be removed",
            extra={
                "event": "file_remove_failed",
                "path": path.as_posix(),
                "error_type": type(error).__name__,
            },
        )
        return False
    return True


def delete_file(
    store: StoreConfig,
    request_path: str,
    path_locks: Optional[PathLockRegistry] = None,
) -> HttpResponse:
    """Remove the file (or empty directory) at ``request_path``.

    Missing and unremovable entries both produce 404.
    """
    resolved_path = _resolve(store, request_path, "DELETE")
    if resolved_path is None:
        return forbidden_response()

    with guard(path_locks, resolved_path):
        removed = _remove(resolved_path)
    if not removed:
        return not_found_response()
    FILE_LOGGER.info(
        "File delete complete",
        extra={"event": "file_delete_complete", "path": resolved_path.as_posix()},
    )
    return no_content_response()
