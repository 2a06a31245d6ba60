"""Reading a Content-Length delimited request body."""

import io
from typing import BinaryIO

from tinyhttp.bootstrap.config import DEFAULT_BUFFER_SIZE
from tinyhttp.domain.connection_context import ConnectionLoggerAdapter
from tinyhttp.pipeline.io import TruncatedRequest

BODY_LOGGER = ConnectionLoggerAdapter("tinyhttp.pipeline.body")


def copy_body(
    stream: BinaryIO,
    sink: BinaryIO,
    content_length: int,
    buffer_size: int = DEFAULT_BUFFER_SIZE,
    strict: bool = False,
) -> int:
    """Copy up to ``content_length`` bytes from ``stream`` into ``sink``.

    Each read asks for at most ``buffer_size`` bytes and may return fewer.
    If the stream ends early the bytes received so far are kept, unless
    ``strict`` is set, in which case ``TruncatedRequest`` is raised before
    anything reaches ``sink``.
    """
    staged: BinaryIO = io.BytesIO() if strict else sink
    total = 0
    while total < content_length:
        chunk = stream.read1(min(buffer_size, content_length - total))
        if not chunk:
            break
        staged.write(chunk)
        total += len(chunk)

    if total < content_length:
        if strict:
            raise TruncatedRequest(
                f"Body ended after {total} of {content_length} bytes"
            )
        BODY_LOGGER.warning(
            "Request body shorter than declared, keeping partial body",
            extra={
                "event": "short_body_accepted",
                "bytes_in": total,
                "content_length": content_length,
            },
        )
    elif strict:
        sink.write(staged.getvalue())
    return total


def read_body(
    stream: BinaryIO,
    content_length: int,
    buffer_size: int = DEFAULT_BUFFER_SIZE,
    strict: bool = False,
) -> bytes:
    """Return the request body as bytes."""
    sink = io.BytesIO()
    copy_body(stream, sink, content_length, buffer_size, strict)
    return sink.getvalue()
