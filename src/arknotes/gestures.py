"""Pointer gestures on notes: drag and resize.

A gesture runs from pointer-down to pointer-up (or pointer-leave, which is
handled exactly like pointer-up). While it runs, the controller listens to
global pointer-move/up/leave events through a :class:`ListenerScope`; the scope
is released when the gesture ends, whatever happens during the commit.

During a gesture only a *visual* position/size is tracked; the note store is
written once, at commit time. The controllers remember the note by id, not by
index, so deleting an earlier note mid-gesture cannot redirect the commit to
the wrong note. If the note itself is gone, the commit is dropped.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Protocol

from .geometry import (
    Point,
    Size,
    ViewportTransform,
    clamp_position,
    clamp_size,
    screen_delta_to_resize_delta,
    screen_delta_to_workspace_delta,
)

if TYPE_CHECKING:
    from types import TracebackType

    from .notes import NoteStore
    from .schemas import Note

logger = logging.getLogger(__name__)

POINTER_MOVE = "pointermove"
POINTER_UP = "pointerup"
POINTER_LEAVE = "pointerleave"

PointerHandler = Callable[[Point], None]
TransformProvider = Callable[[], ViewportTransform]


# ---------------------------------------------------------------------------
# Interaction modes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Idle:
    """No gesture in progress."""


@dataclass(frozen=True)
class Dragging:
    """A note is being moved."""

    notebook_id: str
    note_id: int
    start_pointer: Point
    start_position: Point
    size: Size
    visual_position: Point


@dataclass(frozen=True)
class Resizing:
    """A note's bottom-right corner is being moved."""

    notebook_id: str
    note_id: int
    start_pointer: Point
    start_size: Size
    visual_size: Size


@dataclass(frozen=True)
class Panning:
    """The canvas is being scrolled by dragging empty space."""

    anchor: Point


InteractionMode = Idle | Dragging | Resizing | Panning
ModeListener = Callable[[InteractionMode], None]

IDLE = Idle()


# ---------------------------------------------------------------------------
# Listener registration
# ---------------------------------------------------------------------------


class EventSurface(Protocol):
    """Something global pointer listeners can be attached to."""

    def add_listener(self, event: str, handler: PointerHandler) -> None:
        """Register ``handler`` for ``event``."""

    def remove_listener(self, event: str, handler: PointerHandler) -> None:
        """Unregister ``handler`` for ``event``."""


class ListenerRegistry:
    """In-process :class:`EventSurface` that dispatches events synchronously."""

    def __init__(self) -> None:
        self._handlers: dict[str, list[PointerHandler]] = defaultdict(list)

    def add_listener(self, event: str, handler: PointerHandler) -> None:
        self._handlers[event].append(handler)

    def remove_listener(self, event: str, handler: PointerHandler) -> None:
        handlers = self._handlers.get(event, [])
        if handler in handlers:
            handlers.remove(handler)

    def listener_count(self, event: str | None = None) -> int:
        """Return how many handlers are attached (for one event or overall)."""
        if event is not None:
            return len(self._handlers.get(event, []))
        return sum(len(handlers) for handlers in self._handlers.values())

    def dispatch(self, event: str, pointer: Point) -> int:
        """Call every handler for ``event``; return how many were called."""
        handlers = list(self._handlers.get(event, []))
        for handler in handlers:
            handler(pointer)
        return len(handlers)


class ListenerScope:
    """Attaches a set of handlers to a surface for the lifetime of a gesture.

    Usable as a context manager or opened/closed explicitly; ``close`` is
    idempotent.
    """

    def __init__(
        self,
        surface: EventSurface,
        handlers: dict[str, PointerHandler],
    ) -> None:
        self._surface = surface
        self._handlers = dict(handlers)
        self._open = False

    @property
    def is_open(self) -> bool:
        """Whether the handlers are currently attached."""
        return self._open

    def open(self) -> ListenerScope:
        """Attach every handler."""
        if not self._open:
            for event, handler in self._handlers.items():
                self._surface.add_listener(event, handler)
            self._open = True
        return self

    def close(self) -> None:
        """Detach every handler."""
        if self._open:
            for event, handler in self._handlers.items():
                self._surface.remove_listener(event, handler)
            self._open = False

    def __enter__(self) -> ListenerScope:
        return self.open()

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


# ---------------------------------------------------------------------------
# Controllers
# ---------------------------------------------------------------------------


class GestureController:
    """Shared lifecycle for gestures: listener scope and mode reporting."""

    def __init__(
        self,
        surface: EventSurface | None = None,
        on_mode_change: ModeListener | None = None,
    ) -> None:
        self._surface = surface
        self._on_mode_change = on_mode_change
        self._scope: ListenerScope | None = None
        self._state: InteractionMode = IDLE

    @property
    def state(self) -> InteractionMode:
        """Current state of this controller."""
        return self._state

    @property
    def active(self) -> bool:
        """Whether a gesture is in progress."""
        return not isinstance(self._state, Idle)

    def _set_state(self, state: InteractionMode) -> None:
        self._state = state
        if self._on_mode_change is not None:
            self._on_mode_change(state)

    def _start(self, state: InteractionMode) -> None:
        self._set_state(state)
        if self._surface is not None:
            self._scope = ListenerScope(
                self._surface,
                {
                    POINTER_MOVE: self.move,
                    POINTER_UP: self._finish_from_event,
                    POINTER_LEAVE: self._finish_from_event,
                },
            ).open()

    def _stop(self) -> None:
        try:
            if self._scope is not None:
                self._scope.close()
        finally:
            self._scope = None
            self._set_state(IDLE)

    def _finish_from_event(self, pointer: Point) -> None:  # noqa: ARG002
        self.end()

    def move(self, pointer: Point) -> object:
        """Handle a pointer-move while the gesture runs."""
        raise NotImplementedError

    def end(self) -> Note | None:
        """Finish the gesture and commit its result."""
        raise NotImplementedError


class DragController(GestureController):
    """Moves a note with the pointer, compensating for the zoom factor."""

    def __init__(
        self,
        store: NoteStore,
        transform: TransformProvider,
        surface: EventSurface | None = None,
        on_mode_change: ModeListener | None = None,
    ) -> None:
        super().__init__(surface, on_mode_change)
        self._store = store
        self._transform = transform

    def begin(self, notebook_id: str, index: int, pointer: Point) -> Dragging | None:
        """Start dragging the note at ``index`` from screen point ``pointer``."""
        if self.active:
            return None
        note = self._store.get(notebook_id, index)
        if note is None:
            return None
        state = Dragging(
            notebook_id=notebook_id,
            note_id=note.id,
            start_pointer=pointer,
            start_position=note.position,
            size=note.size,
            visual_position=note.position,
        )
        self._start(state)
        logger.debug("Drag started on note %s at %s", note.id, pointer)
        return state

    def move(self, pointer: Point) -> Point | None:
        """Update the visual position; returns it (clamped)."""
        state = self._state
        if not isinstance(state, Dragging):
            return None
        raw = pointer - state.start_pointer
        delta = screen_delta_to_workspace_delta(self._transform(), raw.x, raw.y)
        visual = clamp_position(state.start_position + delta, state.size)
        self._set_state(replace(state, visual_position=visual))
        return visual

    def end(self) -> Note | None:
        """Commit the visual position to the store and return the stored note."""
        state = self._state
        if not isinstance(state, Dragging):
            return None
        try:
            return _commit(
                self._store,
                state.notebook_id,
                state.note_id,
                x=state.visual_position.x,
                y=state.visual_position.y,
            )
        finally:
            self._stop()


class ResizeController(GestureController):
    """Moves a note's bottom-right corner, enforcing the minimum size."""

    def __init__(
        self,
        store: NoteStore,
        transform: TransformProvider,
        surface: EventSurface | None = None,
        on_mode_change: ModeListener | None = None,
    ) -> None:
        super().__init__(surface, on_mode_change)
        self._store = store
        self._transform = transform

    def begin(self, notebook_id: str, index: int, pointer: Point) -> Resizing | None:
        """Start resizing the note at ``index`` from screen point ``pointer``."""
        if self.active:
            return None
        note = self._store.get(notebook_id, index)
        if note is None:
            return None
        state = Resizing(
            notebook_id=notebook_id,
            note_id=note.id,
            start_pointer=pointer,
            start_size=note.size,
            visual_size=note.size,
        )
        self._start(state)
        logger.debug("Resize started on note %s at %s", note.id, pointer)
        return state

    def move(self, pointer: Point) -> Size | None:
        """Update the visual size; returns it (clamped to the minimum)."""
        state = self._state
        if not isinstance(state, Resizing):
            return None
        raw = pointer - state.start_pointer
        delta = screen_delta_to_resize_delta(self._transform(), raw.x, raw.y)
        visual = clamp_size(
            Size(state.start_size.width + delta.x, state.start_size.height + delta.y),
        )
        self._set_state(replace(state, visual_size=visual))
        return visual

    def end(self) -> Note | None:
        """Commit the visual size to the store and return the stored note."""
        state = self._state
        if not isinstance(state, Resizing):
            return None
        try:
            return _commit(
                self._store,
                state.notebook_id,
                state.note_id,
                width=state.visual_size.width,
                height=state.visual_size.height,
            )
        finally:
            self._stop()


def _commit(
    store: NoteStore,
    notebook_id: str,
    note_id: int,
    **changes: float,
) -> Note | None:
    index = store.index_of(notebook_id, note_id)
    current = store.get(notebook_id, index) if index is not None else None
    if index is None or current is None:
        logger.warning("Note %s vanished mid-gesture; dropping commit", note_id)
        return None
    updated = current.model_copy(update=changes)
    if not store.update(notebook_id, index, updated):
        return None
    logger.debug("Committed %s to note %s", changes, note_id)
    return updated
