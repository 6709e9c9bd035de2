"""Utility functions for arknotes."""

from __future__ import annotations

import json
import threading
import time
from typing import TYPE_CHECKING, Any

import fsspec

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path


def get_fs_and_path(
    path: str | Path,
    fs: fsspec.AbstractFileSystem | None = None,
) -> tuple[fsspec.AbstractFileSystem, str]:
    """Return an fsspec filesystem and the protocol-stripped path for ``path``.

    Args:
        path: Local path or fsspec URL (``memory://``, ``file://`` ...).
        fs: Optional filesystem to use instead of inferring one from ``path``.

    Returns:
        Tuple of filesystem object and path usable with that filesystem.

    """
    path_str = str(path)
    if fs is not None:
        return fs, fs._strip_protocol(path_str)  # noqa: SLF001
    fs_obj, stripped = fsspec.core.url_to_fs(path_str)
    return fs_obj, stripped


def fs_join(base: str, *parts: str) -> str:
    """Join path components with forward slashes."""
    joined = base.rstrip("/")
    for part in parts:
        joined = f"{joined}/{part.strip('/')}"
    return joined


def fs_exists(fs: fsspec.AbstractFileSystem, path: str) -> bool:
    """Return whether ``path`` exists on ``fs``."""
    try:
        return bool(fs.exists(path))
    except FileNotFoundError:
        return False


def fs_makedirs(
    fs: fsspec.AbstractFileSystem,
    path: str,
    *,
    exist_ok: bool = True,
) -> None:
    """Create ``path`` and its parents on ``fs``."""
    fs.makedirs(path, exist_ok=exist_ok)


def fs_read_json(fs: fsspec.AbstractFileSystem, path: str) -> Any:  # noqa: ANN401
    """Read and decode a JSON file from ``fs``.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
        json.JSONDecodeError: If the file is not valid JSON.

    """
    with fs.open(path, "r", encoding="utf-8") as handle:
        return json.load(handle)


def fs_write_json(
    fs: fsspec.AbstractFileSystem,
    path: str,
    payload: Any,  # noqa: ANN401
) -> None:
    """Write ``payload`` as indented JSON to ``path`` on ``fs``."""
    parent = path.rsplit("/", 1)[0] if "/" in path else ""
    if parent and not fs_exists(fs, parent):
        fs_makedirs(fs, parent)
    with fs.open(path, "w", encoding="utf-8") as handle:
        json.dump(payload, handle, indent=2)


class IdAllocator:
    """Hands out millisecond-timestamp ids that are never reused.

    Ids are strictly increasing even when the clock stalls or goes backwards,
    and start above every id the allocator has been told about via ``observe``.
    """

    def __init__(self, clock: Any = None) -> None:  # noqa: ANN401
        """Create an allocator reading wall time from ``clock`` (seconds)."""
        self._clock = clock or time.time
        self._last = 0
        self._lock = threading.Lock()

    def observe(self, ids: Iterable[int]) -> None:
        """Make sure future ids are greater than every id in ``ids``."""
        with self._lock:
            for existing in ids:
                self._last = max(self._last, int(existing))

    def next_id(self) -> int:
        """Return the next unique id."""
        with self._lock:
            candidate = int(self._clock() * 1000)
            self._last = max(candidate, self._last + 1)
            return self._last


def is_blank(value: str | None) -> bool:
    """Return True when ``value`` is None or whitespace only."""
    return value is None or not value.strip()
