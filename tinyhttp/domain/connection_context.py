"""The connection a worker thread is serving, as seen by log records."""

import contextvars
import logging
import uuid
from dataclasses import dataclass
from typing import Any, MutableMapping, Optional

LOGGER_PREFIX = "tinyhttp."
UNBOUND = "-"


@dataclass(frozen=True)
class ConnectionTag:
    correlation_id: str
    client: str


_current_tag: contextvars.ContextVar[Optional[ConnectionTag]] = contextvars.ContextVar(
    "connection_tag", default=None
)


def format_peer(address: tuple[str, int]) -> str:
    return f"{address[0]}:{address[1]}"


def bind_connection(client_address: tuple[str, int]) -> ConnectionTag:
    """Give this thread's records a fresh correlation ID and the peer address."""
    tag = ConnectionTag(str(uuid.uuid4()), format_peer(client_address))
    _current_tag.set(tag)
    return tag


def current_connection() -> Optional[ConnectionTag]:
    return _current_tag.get()


def release_connection() -> None:
    _current_tag.set(None)


class ConnectionLoggerAdapter(logging.LoggerAdapter):
    """Logger for one component, stamping records with the bound connection.

    Every record gets ``component`` (the logger name below ``tinyhttp.``) and
    ``correlation_id``. While a connection is bound it also gets ``client``,
    unless the caller already passed one.
    """

    def __init__(self, name: str) -> None:
        super().__init__(logging.getLogger(name), {})
        if name.startswith(LOGGER_PREFIX):
            self.component = name[len(LOGGER_PREFIX) :]
        else:
            self.component = name

    def process(
        self, msg: str, kwargs: MutableMapping[str, Any]
    ) -> tuple[str, MutableMapping[str, Any]]:
        extra = dict(kwargs.get("extra") or {})
        extra["component"] = self.component
        tag = _current_tag.get()
        if tag is None:
            extra["correlation_id"] = UNBOUND
        else:
            extra["correlation_id"] = tag.correlation_id
            extra.setdefault("client", tag.client)
        kwargs["extra"] = extra
        return msg, kwargs
