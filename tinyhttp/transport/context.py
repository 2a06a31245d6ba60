"""Context object shared across worker threads."""

from dataclasses import dataclass, field
from typing import Optional

from tinyhttp.bootstrap.config import ServerConfig, StoreConfig
from tinyhttp.domain.path_locks import PathLockRegistry
from tinyhttp.lifecycle.state import ServerLifecycle


@dataclass
class WorkerContext:
    """Dependencies shared across handler threads."""

    store: StoreConfig
    config: ServerConfig = field(default_factory=ServerConfig)
    path_locks: Optional[PathLockRegistry] = None
    lifecycle: Optional[ServerLifecycle] = None
