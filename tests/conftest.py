"""Test configuration for arknotes."""

import uuid
from collections.abc import Iterator
from pathlib import Path

import fsspec
import pytest

from arknotes.geometry import Point
from arknotes.notes import NoteStore
from arknotes.schemas import DEFAULT_LIST_ID, Document, View
from arknotes.viewport import ScrollViewport
from arknotes.workspace import AppState, Workspace


class FakeClock:
    """Monotonic seconds that only move when told to."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def memory_root() -> Iterator[str]:
    """A fresh ``memory://`` storage root, removed afterwards."""
    root = f"memory://arknotes-{uuid.uuid4().hex}"
    yield root
    fs = fsspec.filesystem("memory")
    path = fs._strip_protocol(root)  # noqa: SLF001
    if fs.exists(path):
        fs.rm(path, recursive=True)


@pytest.fixture(params=["memory", "local"])
def fs_impl(
    request: pytest.FixtureRequest,
    tmp_path: Path,
) -> Iterator[tuple[fsspec.AbstractFileSystem, str]]:
    """Run a test against the in-memory and the local filesystem."""
    if request.param == "memory":
        fs = fsspec.filesystem("memory")
        root = f"/arknotes-{uuid.uuid4().hex}"
        yield fs, root
        if fs.exists(root):
            fs.rm(root, recursive=True)
    else:
        yield fsspec.filesystem("file"), str(tmp_path / "store")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def workspace() -> Workspace:
    """Workspace showing the notes view through an 800x600 viewport."""
    state = AppState(view=View.NOTES)
    return Workspace(state, viewport=ScrollViewport(800, 600, origin=Point(0, 0)))


@pytest.fixture
def store() -> NoteStore:
    """Note store over a default document with an 800x600 viewport."""
    viewport = ScrollViewport(800, 600)
    return NoteStore(Document(), viewport_size=viewport.size)


@pytest.fixture
def notebook_id() -> str:
    return DEFAULT_LIST_ID
