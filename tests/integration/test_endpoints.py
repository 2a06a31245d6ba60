"""Integration tests exercising the file endpoints over real HTTP."""

from __future__ import annotations

import json
import time
from pathlib import Path
from typing import TYPE_CHECKING

import pytest
import requests

pytestmark = pytest.mark.integration

if TYPE_CHECKING:
    from tests.conftest import ServerProcessInfo


def _root(server_process: "ServerProcessInfo") -> Path:
    return Path(server_process["directory"])


def test_get_existing_file_returns_contents(
    base_url: str, server_process: "ServerProcessInfo"
) -> None:
    """Existing files come back byte-for-byte with the table's content type."""
    (_root(server_process) / "index.html").write_bytes(b"<h1>Hello</h1>")

    response = requests.get(f"{base_url}/index.html", timeout=5)
    assert response.status_code == 200
    assert response.content == b"<h1>Hello</h1>"
    assert response.headers["Content-Type"] == "text/html"
    assert response.headers["Content-Length"] == "14"


def test_root_serves_index_document(
    base_url: str, server_process: "ServerProcessInfo"
) -> None:
    """GET / is the same as GET /index.html."""
    (_root(server_process) / "index.html").write_bytes(b"home")

    root = requests.get(f"{base_url}/", timeout=5)
    index = requests.get(f"{base_url}/index.html", timeout=5)
    assert root.status_code == index.status_code == 200
    assert root.content == index.content == b"home"


def test_missing_file_returns_404(base_url: str) -> None:
    """Unknown paths are reported as plain-text 404s."""
    response = requests.get(f"{base_url}/does/not/exist.png", timeout=5)
    assert response.status_code == 404
    assert response.headers["Content-Type"] == "text/plain"
    assert response.text == "Error: 404 Not Found"


@pytest.mark.parametrize("method", ["post", "put"])
def test_upload_then_download_round_trips(
    method: str, base_url: str, server_process: "ServerProcessInfo"
) -> None:
    """Uploaded bytes are stored and served back unchanged."""
    payload = bytes(range(256)) * 64
    upload = getattr(requests, method)(
        f"{base_url}/a/b/{method}.bin", data=payload, timeout=5
    )
    assert upload.status_code == 201
    assert (_root(server_process) / "a").is_dir()
    assert (_root(server_process) / "a" / "b").is_dir()
    assert (_root(server_process) / "a" / "b" / f"{method}.bin").read_bytes() == payload

    download = requests.get(f"{base_url}/a/b/{method}.bin", timeout=5)
    assert download.status_code == 200
    assert download.content == payload
    assert download.headers["Content-Type"] == "application/octet-stream"


def test_repeated_put_is_idempotent(
    base_url: str, server_process: "ServerProcessInfo"
) -> None:
    """The same PUT twice leaves the same file behind."""
    for _ in range(2):
        response = requests.put(f"{base_url}/same.txt", data=b"v1", timeout=5)
        assert response.status_code == 201
    assert (_root(server_process) / "same.txt").read_bytes() == b"v1"


def test_put_overwrites_existing_content(
    base_url: str, server_process: "ServerProcessInfo"
) -> None:
    """Overwrites truncate the previous version."""
    requests.put(f"{base_url}/notes.txt", data=b"first long version", timeout=5)
    requests.put(f"{base_url}/notes.txt", data=b"second", timeout=5)
    assert (_root(server_process) / "notes.txt").read_bytes() == b"second"
    assert requests.get(f"{base_url}/notes.txt", timeout=5).text == "second"


def test_delete_then_delete_again(
    base_url: str, server_process: "ServerProcessInfo"
) -> None:
    """Deleting removes the file; repeating the delete is a 404."""
    target = _root(server_process) / "gone.txt"
    target.write_bytes(b"bye")

    first = requests.delete(f"{base_url}/gone.txt", timeout=5)
    assert first.status_code == 204
    assert first.content == b""
    assert not target.exists()

    assert requests.delete(f"{base_url}/gone.txt", timeout=5).status_code == 404
    assert requests.delete(f"{base_url}/gone.txt", timeout=5).status_code == 404


def test_unsupported_method_returns_405_without_side_effects(
    base_url: str, server_process: "ServerProcessInfo"
) -> None:
    """PATCH is refused and nothing on disk changes."""
    target = _root(server_process) / "keep.txt"
    target.write_bytes(b"original")

    response = requests.patch(f"{base_url}/keep.txt", data=b"changed", timeout=5)
    assert response.status_code == 405
    assert response.headers["Allow"] == "DELETE, GET, POST, PUT"
    assert target.read_bytes() == b"original"


def _read_log_events(log_file: Path, event: str, timeout: float = 3.0) -> list[dict]:
    """Poll the JSON log until ``event`` shows up or the timeout passes."""
    deadline = time.monotonic() + timeout
    while True:
        complete_lines = log_file.read_text().split("\n")[:-1]
        events = [json.loads(line) for line in complete_lines]
        if any(e.get("event") == event for e in events) or time.monotonic() > deadline:
            return events
        time.sleep(0.05)


def test_startup_and_requests_are_logged(
    base_url: str, server_process: "ServerProcessInfo"
) -> None:
    """The log file records the listening port and each request."""
    requests.get(f"{base_url}/missing", timeout=5)

    events = _read_log_events(Path(server_process["log_file"]), "request_complete")
    listening = [e for e in events if e.get("event") == "server_listening"]
    assert listening and listening[0]["port"] == server_process["port"]
    assert any(
        e.get("event") == "request_complete" and e.get("status_code") == 404
        for e in events
    )
