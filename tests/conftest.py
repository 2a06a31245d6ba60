"""Shared pytest fixtures for integration and unit tests."""

from __future__ import annotations

import subprocess
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Generator, TypedDict

import pytest

from tests.utils.http import reserve_port, wait_for_port
from tinyhttp.bootstrap.config import ServerConfig, StoreConfig
from tinyhttp.domain.path_locks import PathLockRegistry
from tinyhttp.transport.context import WorkerContext

if TYPE_CHECKING:
    from _pytest.tmpdir import TempPathFactory

PROJECT_ROOT = Path(__file__).resolve().parent.parent
SERVER_ENTRYPOINT = PROJECT_ROOT / "main.py"


class ServerProcessInfo(TypedDict):
    """Metadata describing a running server fixture instance."""

    base_url: str
    host: str
    port: int
    directory: Path
    process: subprocess.Popen[bytes]
    log_file: Path


def _launch_server(
    host: str,
    port: int,
    directory: Path,
    log_file: Path,
    extra_args: list[str] | None = None,
) -> Generator[ServerProcessInfo, None, None]:
    args = [
        sys.executable,
        str(SERVER_ENTRYPOINT),
        "--directory",
        str(directory),
        "--host",
        host,
        "--port",
        str(port),
        "--log-destination",
        str(log_file),
        "--log-format",
        "json",
        "--shutdown-grace-seconds",
        "5",
    ]
    if extra_args:
        args.extend(extra_args)

    with subprocess.Popen(
        args,
        cwd=PROJECT_ROOT,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
    ) as process:
        try:
            wait_for_port(host, port)
        except Exception:
            process.terminate()
            stdout, stderr = process.communicate(timeout=5)
            print(f"\nServer stdout:\n{stdout.decode(errors='replace')}")
            print(f"\nServer stderr:\n{stderr.decode(errors='replace')}")
            raise

        yield {
            "base_url": f"http://{host}:{port}",
            "host": host,
            "port": port,
            "directory": directory,
            "process": process,
            "log_file": log_file,
        }

        if process.poll() is None:
            process.terminate()
            try:
                process.wait(timeout=10)
            except subprocess.TimeoutExpired:
                process.kill()


@pytest.fixture(scope="session")
def project_root() -> Path:
    """Expose the repository root path to tests."""

    return PROJECT_ROOT


@pytest.fixture(name="server_process")
def _server_process(
    tmp_path_factory: "TempPathFactory",
) -> Generator[ServerProcessInfo, None, None]:
    """Launch the HTTP server in a background process for integration tests."""

    host = "127.0.0.1"
    port = reserve_port(host)
    directory = tmp_path_factory.mktemp("web-root")
    log_file = tmp_path_factory.mktemp("logs") / "server.log"
    yield from _launch_server(host, port, directory, log_file)


@pytest.fixture(name="legacy_server_process")
def _legacy_server_process(
    tmp_path_factory: "TempPathFactory",
) -> Generator[ServerProcessInfo, None, None]:
    """Launch the server with literal path resolution and no path locks."""

    host = "127.0.0.1"
    port = reserve_port(host)
    base = tmp_path_factory.mktemp("legacy")
    directory = base / "web_root"
    log_file = tmp_path_factory.mktemp("logs") / "server.log"
    yield from _launch_server(
        host,
        port,
        directory,
        log_file,
        ["--no-confine-paths", "--no-path-locking"],
    )


@pytest.fixture()
def base_url(server_process: ServerProcessInfo) -> str:
    """Expose the running server base URL to integration tests."""

    return server_process["base_url"]


@pytest.fixture()
def web_root(tmp_path: Path) -> Path:
    """Provide an empty store root for in-process tests."""

    root = tmp_path / "web_root"
    root.mkdir()
    return root


@pytest.fixture()
def store(web_root: Path) -> StoreConfig:
    """Store configuration confined to ``web_root``."""

    return StoreConfig(root=str(web_root))


@pytest.fixture()
def worker_context(store: StoreConfig) -> WorkerContext:
    """Worker context with short timeouts and path locking enabled."""

    return WorkerContext(
        store=store,
        config=ServerConfig(socket_timeout=2, shutdown_grace_seconds=1),
        path_locks=PathLockRegistry(),
    )
