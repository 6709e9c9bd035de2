"""Canvas panning and zooming.

Panning does not touch the viewport transform: it drives the scroll offset of
the container the workspace sits in, as a scrollbar would. Zoom multiplies the
transform's scale by a fixed step and is anchored at the workspace origin, so
the point under the cursor is *not* kept fixed while zooming.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .geometry import (
    ZOOM_IN_FACTOR,
    ZOOM_OUT_FACTOR,
    Point,
    Size,
    ViewportTransform,
)
from .gestures import GestureController, Panning

if TYPE_CHECKING:
    from .gestures import EventSurface, ModeListener

logger = logging.getLogger(__name__)


@dataclass
class ScrollViewport:
    """The visible, scrollable window onto the workspace.

    ``origin`` is the container's top-left corner in screen space. Scroll
    offsets are not clamped.
    """

    width: float
    height: float
    scroll_left: float = 0.0
    scroll_top: float = 0.0
    origin: Point = Point(0.0, 0.0)

    @property
    def scroll(self) -> Point:
        """Current scroll offset."""
        return Point(self.scroll_left, self.scroll_top)

    def scroll_to(self, offset: Point) -> None:
        """Set both scroll offsets."""
        self.scroll_left = offset.x
        self.scroll_top = offset.y

    def size(self) -> Size:
        """Visible size; doubles as the note store's viewport size provider."""
        return Size(self.width, self.height)


class PanController(GestureController):
    """Scrolls the container by dragging on empty canvas."""

    def __init__(
        self,
        container: ScrollViewport,
        surface: EventSurface | None = None,
        on_mode_change: ModeListener | None = None,
    ) -> None:
        super().__init__(surface, on_mode_change)
        self._container = container

    def begin(self, pointer: Point) -> Panning | None:
        """Anchor the pan at ``pointer`` plus the current scroll offset."""
        if self.active:
            return None
        state = Panning(anchor=pointer + self._container.scroll)
        self._start(state)
        return state

    def move(self, pointer: Point) -> Point | None:
        """Scroll so the anchored content point stays under the pointer."""
        state = self._state
        if not isinstance(state, Panning):
            return None
        offset = state.anchor - pointer
        self._container.scroll_to(offset)
        return offset

    def end(self) -> None:
        """Stop panning. The scroll offset itself is the result."""
        if isinstance(self._state, Panning):
            self._stop()


def zoom_step(transform: ViewportTransform, factor: float) -> ViewportTransform:
    """Multiply the scale by ``factor``, clamped to the allowed range."""
    return transform.with_scale(transform.scale * factor)


def zoom_in(transform: ViewportTransform) -> ViewportTransform:
    """One zoom-in step (x1.1)."""
    return zoom_step(transform, ZOOM_IN_FACTOR)


def zoom_out(transform: ViewportTransform) -> ViewportTransform:
    """One zoom-out step (x0.9)."""
    return zoom_step(transform, ZOOM_OUT_FACTOR)


def wheel_zoom(
    transform: ViewportTransform,
    delta_y: float,
    *,
    modifier: bool,
) -> ViewportTransform | None:
    """Apply a wheel event; return the new transform, or None if not a zoom.

    Only wheel events with the zoom modifier held zoom. Scrolling forward
    (positive ``delta_y``) zooms out.
    """
    if not modifier:
        return None
    factor = ZOOM_OUT_FACTOR if delta_y > 0 else ZOOM_IN_FACTOR
    return zoom_step(transform, factor)
