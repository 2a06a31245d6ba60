"""Map request paths onto the store root."""

from pathlib import Path


class ForbiddenPath(Exception):
    """Raised when a requested path escapes the configured root."""


def _inside(directory_root: Path, candidate: Path) -> bool:
    return candidate == directory_root or directory_root in candidate.parents


def resolve_sandbox_path(directory: str, user_path: str) -> Path:
    """Resolve a user-supplied path inside the configured root.

    Symlinks are followed for the confinement check only. The returned path
    keeps the requested final name, so a DELETE removes a link rather than
    its target.
    """
    if "\x00" in user_path:
        raise ForbiddenPath

    directory_root = Path(directory).resolve()
    parts = Path(user_path.lstrip("/")).parts
    if not parts or ".." in parts:
        raise ForbiddenPath

    parent = directory_root.joinpath(*parts[:-1]).resolve()
    if not _inside(directory_root, parent):
        raise ForbiddenPath

    target = parent / parts[-1]
    if directory_root not in target.resolve().parents:
        raise ForbiddenPath

    return target


def resolve_literal_path(directory: str, user_path: str) -> Path:
    """Append the request path to the root verbatim, ``..`` segments included."""
    return Path(directory + user_path)


def resolve_request_path(directory: str, user_path: str, confine: bool) -> Path:
    """Resolve ``user_path`` against ``directory`` using the configured policy."""
    if confine:
        return resolve_sandbox_path(directory, user_path)
    return resolve_literal_path(directory, user_path)
