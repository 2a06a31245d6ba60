"""Request and response value types shared across the pipeline."""

from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class HttpRequest:
    """The parts of a request line and header block the server acts on."""

    method: str
    path: str
    content_length: int = 0


@dataclass
class HttpResponse:
    """A response ready to be serialized onto a connection.

    ``body`` is ``None`` for responses without an entity (201, 204); an empty
    ``bytes`` object is still an entity and gets a ``Content-Length: 0``.
    """

    status_code: int
    reason: str
    headers: dict[str, str] = field(default_factory=dict)
    body: Optional[bytes] = None

    @property
    def status_line(self) -> str:
        return f"HTTP/1.1 {self.status_code} {self.reason}"
