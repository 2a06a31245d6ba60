"""Reading requests off, and writing responses onto, a client connection."""

import logging
import socket
from typing import BinaryIO, Optional

from tinyhttp.bootstrap.config import DEFAULT_MAX_LINE_BYTES
from tinyhttp.domain.connection_context import ConnectionLoggerAdapter
from tinyhttp.domain.http_types import HttpRequest, HttpResponse

IO_LOGGER = ConnectionLoggerAdapter("tinyhttp.pipeline.io")

CRLF = b"\r\n"
CONTENT_LENGTH_PREFIX = "content-length:"


class ProtocolError(Exception):
    """Raised when the bytes on the wire do not frame an HTTP request."""


class MalformedRequest(ProtocolError):
    """Raised for a request line without method and path, or an oversized line."""


class TruncatedRequest(ProtocolError):
    """Raised when the peer closes the stream before the request is complete."""


class InvalidContentLength(ProtocolError, ValueError):
    """Raised when a Content-Length header is not a non-negative integer."""


def _read_line(stream: BinaryIO, max_line_bytes: int) -> Optional[str]:
    """Return the next line without its terminator, or None at end of stream."""
    raw = stream.readline(max_line_bytes + 1)
    if not raw:
        return None
    if len(raw) > max_line_bytes:
        raise MalformedRequest("Line exceeds maximum length")
    return raw.decode().rstrip("\r\n")


def parse_request_line(request_line: str) -> tuple[str, str]:
    """Split a request line into method and path; the version is ignored."""
    parts = request_line.split()
    if len(parts) < 2:
        raise MalformedRequest("Invalid request line")
    return parts[0], parts[1]


def parse_content_length(header_line: str) -> Optional[int]:
    """Return the declared length if ``header_line`` is a Content-Length header."""
    if not header_line.lower().startswith(CONTENT_LENGTH_PREFIX):
        return None
    raw_value = header_line.split(":", 1)[1].strip()
    # ASCII digits only: int() would also take signs, underscores and other scripts
    if not (raw_value.isascii() and raw_value.isdigit()):
        raise InvalidContentLength(f"Invalid Content-Length: {raw_value!r}")
    return int(raw_value)


def receive_request(
    stream: BinaryIO, max_line_bytes: int = DEFAULT_MAX_LINE_BYTES
) -> Optional[HttpRequest]:
    """Read the request line and headers of a single request.

    Returns ``None`` when the peer sent nothing, or only a blank line, before
    closing. The body, if any, is left unread on ``stream``.
    """
    request_line = _read_line(stream, max_line_bytes)
    if not request_line:
        return None
    method, path = parse_request_line(request_line)

    content_length = 0
    while True:
        header_line = _read_line(stream, max_line_bytes)
        if header_line is None:
            raise TruncatedRequest("Stream ended before end of headers")
        if not header_line:
            break
        declared = parse_content_length(header_line)
        if declared is not None:
            content_length = declared

    if IO_LOGGER.logger.isEnabledFor(logging.DEBUG):
        IO_LOGGER.debug(
            "Parsed request",
            extra={
                "event": "request_parsed",
                "method": method,
                "route": path,
                "content_length": content_length,
            },
        )
    return HttpRequest(method, path, content_length)


def serialize_response(response: HttpResponse) -> bytes:
    """Render the status line, headers, blank line and body as wire bytes."""
    headers = dict(response.headers)
    if response.body is not None:
        headers["Content-Length"] = str(len(response.body))
    headers["Connection"] = "close"
    header_lines = [response.status_line]
    header_lines.extend(f"{name}: {value}" for name, value in headers.items())
    header_block = "\r\n".join(header_lines).encode() + CRLF + CRLF
    return header_block + (response.body or b"")


def send_response(client_socket: socket.socket, response: HttpResponse) -> bool:
    """Write ``response`` to the client; False if the write failed."""
    try:
        client_socket.sendall(serialize_response(response))
    except OSError as error:
        IO_LOGGER.warning(
            "Failed to send response",
            extra={
                "event": "response_send_failed",
                "status_code": response.status_code,
                "error_type": type(error).__name__,
            },
        )
        return False
    if IO_LOGGER.logger.isEnabledFor(logging.DEBUG):
        IO_LOGGER.debug(
            "Sent response",
            extra={
                "event": "response_sent",
                "status_code": response.status_code,
                "bytes_out": len(response.body or b""),
            },
        )
    return True
