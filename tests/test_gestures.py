"""Drag and resize controllers and the listener scope."""

import logging

import pytest

from arknotes.geometry import MIN_NOTE_HEIGHT, MIN_NOTE_WIDTH, Point, ViewportTransform
from arknotes.gestures import (
    POINTER_LEAVE,
    POINTER_MOVE,
    POINTER_UP,
    DragController,
    Dragging,
    Idle,
    InteractionMode,
    ListenerRegistry,
    ListenerScope,
    ResizeController,
    Resizing,
)
from arknotes.notes import NoteStore


@pytest.fixture
def surface() -> ListenerRegistry:
    return ListenerRegistry()


@pytest.fixture
def transform() -> dict[str, ViewportTransform]:
    return {"current": ViewportTransform()}


@pytest.fixture
def drag(
    store: NoteStore,
    surface: ListenerRegistry,
    transform: dict[str, ViewportTransform],
) -> DragController:
    return DragController(store, lambda: transform["current"], surface)


@pytest.fixture
def resize(
    store: NoteStore,
    surface: ListenerRegistry,
    transform: dict[str, ViewportTransform],
) -> ResizeController:
    return ResizeController(store, lambda: transform["current"], surface)


def test_listener_scope_attaches_and_detaches(surface: ListenerRegistry) -> None:
    seen: list[Point] = []
    with ListenerScope(surface, {POINTER_MOVE: seen.append}) as scope:
        assert scope.is_open
        surface.dispatch(POINTER_MOVE, Point(1, 2))
    assert not scope.is_open
    assert surface.dispatch(POINTER_MOVE, Point(3, 4)) == 0
    assert seen == [Point(1, 2)]
    scope.close()


def test_drag_moves_note_and_commits_once(
    drag: DragController,
    store: NoteStore,
    notebook_id: str,
    surface: ListenerRegistry,
) -> None:
    note = store.create(notebook_id, "a")
    drag.begin(notebook_id, 0, Point(300, 200))
    assert isinstance(drag.state, Dragging)
    assert surface.listener_count() == 3

    surface.dispatch(POINTER_MOVE, Point(350, 260))
    # Store is untouched until pointer-up.
    assert store.get(notebook_id, 0) == note
    assert drag.state.visual_position == Point(250, 210)

    surface.dispatch(POINTER_UP, Point(350, 260))
    moved = store.get(notebook_id, 0)
    assert (moved.x, moved.y) == (250, 210)
    assert isinstance(drag.state, Idle)
    assert surface.listener_count() == 0


def test_drag_delta_is_scaled(
    drag: DragController,
    store: NoteStore,
    notebook_id: str,
    transform: dict[str, ViewportTransform],
) -> None:
    store.create(notebook_id, "a")
    origin = store.get(notebook_id, 0).model_copy(update={"x": 0, "y": 0})
    store.update(notebook_id, 0, origin)
    transform["current"] = ViewportTransform(scale=2.0)
    drag.begin(notebook_id, 0, Point(10, 10))
    drag.move(Point(110, 10))
    note = drag.end()
    assert (note.x, note.y) == (50, 0)


def test_drag_is_clamped_to_workspace(
    drag: DragController,
    store: NoteStore,
    notebook_id: str,
) -> None:
    store.create(notebook_id, "a")
    drag.begin(notebook_id, 0, Point(300, 200))
    assert drag.move(Point(-5000, -5000)) == Point(0, 0)
    assert drag.move(Point(90000, 90000)) == Point(4600, 4700)
    note = drag.end()
    assert (note.x, note.y) == (4600, 4700)


def test_drag_without_movement_keeps_position(
    drag: DragController,
    store: NoteStore,
    notebook_id: str,
) -> None:
    note = store.create(notebook_id, "a")
    drag.begin(notebook_id, 0, Point(300, 200))
    assert drag.end() == note
    assert store.get(notebook_id, 0) == note


def test_pointer_leave_commits_like_pointer_up(
    drag: DragController,
    store: NoteStore,
    notebook_id: str,
    surface: ListenerRegistry,
) -> None:
    store.create(notebook_id, "a")
    drag.begin(notebook_id, 0, Point(300, 200))
    surface.dispatch(POINTER_MOVE, Point(310, 200))
    surface.dispatch(POINTER_LEAVE, Point(310, 200))
    assert store.get(notebook_id, 0).x == 210
    assert not drag.active
    assert surface.listener_count() == 0


def test_second_begin_is_ignored_while_active(
    drag: DragController,
    store: NoteStore,
    notebook_id: str,
) -> None:
    store.create(notebook_id, "a")
    store.create(notebook_id, "b")
    first = drag.begin(notebook_id, 0, Point(0, 0))
    assert drag.begin(notebook_id, 1, Point(0, 0)) is None
    assert drag.state == first


def test_begin_on_missing_note_does_nothing(
    drag: DragController,
    notebook_id: str,
    surface: ListenerRegistry,
) -> None:
    assert drag.begin(notebook_id, 3, Point(0, 0)) is None
    assert surface.listener_count() == 0


def test_note_deleted_mid_drag_drops_commit(
    drag: DragController,
    store: NoteStore,
    notebook_id: str,
    surface: ListenerRegistry,
    caplog: pytest.LogCaptureFixture,
) -> None:
    store.create(notebook_id, "a")
    other = store.create(notebook_id, "b")
    drag.begin(notebook_id, 0, Point(0, 0))
    drag.move(Point(20, 20))
    store.delete(notebook_id, 0)
    with caplog.at_level(logging.WARNING):
        assert drag.end() is None
    assert store.notes(notebook_id) == [other]
    assert "vanished" in caplog.text
    assert surface.listener_count() == 0


def test_earlier_note_deleted_mid_drag_commits_to_dragged_note(
    drag: DragController,
    store: NoteStore,
    notebook_id: str,
) -> None:
    first = store.create(notebook_id, "a")
    store.create(notebook_id, "b")
    drag.begin(notebook_id, 1, Point(0, 0))
    drag.move(Point(40, 0))
    store.delete(notebook_id, 0)
    moved = drag.end()
    assert store.notes(notebook_id) == [moved]
    assert moved.x == first.x + 40 + 40


def test_listeners_released_when_commit_raises(
    store: NoteStore,
    notebook_id: str,
    surface: ListenerRegistry,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    drag = DragController(store, ViewportTransform, surface)
    store.create(notebook_id, "a")
    drag.begin(notebook_id, 0, Point(0, 0))

    def boom(*_: object) -> bool:
        raise RuntimeError("disk full")

    monkeypatch.setattr(store, "update", boom)
    with pytest.raises(RuntimeError):
        drag.end()
    assert surface.listener_count() == 0
    assert not drag.active


def test_mode_changes_are_reported(store: NoteStore, notebook_id: str) -> None:
    modes: list[InteractionMode] = []
    drag = DragController(store, ViewportTransform, on_mode_change=modes.append)
    store.create(notebook_id, "a")
    drag.begin(notebook_id, 0, Point(0, 0))
    drag.move(Point(5, 5))
    drag.end()
    assert [type(mode) for mode in modes] == [Dragging, Dragging, Idle]


def test_resize_grows_note(
    resize: ResizeController,
    store: NoteStore,
    notebook_id: str,
    surface: ListenerRegistry,
) -> None:
    store.create(notebook_id, "a")
    resize.begin(notebook_id, 0, Point(600, 450))
    assert isinstance(resize.state, Resizing)
    surface.dispatch(POINTER_MOVE, Point(700, 470))
    surface.dispatch(POINTER_UP, Point(700, 470))
    note = store.get(notebook_id, 0)
    assert (note.width, note.height) == (500, 320)
    assert (note.x, note.y) == (200, 150)
    assert surface.listener_count() == 0


def test_resize_enforces_minimum(
    resize: ResizeController,
    store: NoteStore,
    notebook_id: str,
) -> None:
    store.create(notebook_id, "a")
    resize.begin(notebook_id, 0, Point(600, 450))
    resize.move(Point(0, 0))
    note = resize.end()
    assert (note.width, note.height) == (MIN_NOTE_WIDTH, MIN_NOTE_HEIGHT)


def test_resize_uses_raw_screen_pixels_when_zoomed(
    resize: ResizeController,
    store: NoteStore,
    notebook_id: str,
    transform: dict[str, ViewportTransform],
) -> None:
    store.create(notebook_id, "a")
    transform["current"] = ViewportTransform(scale=2.0)
    resize.begin(notebook_id, 0, Point(0, 0))
    resize.move(Point(100, 100))
    note = resize.end()
    assert (note.width, note.height) == (500, 400)
