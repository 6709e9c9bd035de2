"""Coordinate transforms between screen, viewport and workspace space.

Three coordinate spaces are involved when the notes canvas is manipulated:

* **screen** - raw pointer coordinates as delivered by the host toolkit.
* **viewport** - screen coordinates relative to the scroll container's
  top-left corner, shifted by its current scroll offset.
* **workspace** - the fixed ``WORKSPACE_SIZE`` x ``WORKSPACE_SIZE`` logical plane
  notes live in. The workspace is scaled about its origin ``(0, 0)``.

Everything in this module is pure: no function mutates its arguments.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .schemas import Note

WORKSPACE_SIZE = 5000
MIN_NOTE_WIDTH = 380
MIN_NOTE_HEIGHT = 280
MIN_SCALE = 0.1
MAX_SCALE = 5.0
ZOOM_IN_FACTOR = 1.1
ZOOM_OUT_FACTOR = 0.9
RESIZE_HANDLE_SIZE = 16
NOTE_PADDING = 16
NOTE_HEADER_HEIGHT = 36


@dataclass(frozen=True)
class Point:
    """A 2-D coordinate pair or displacement."""

    x: float
    y: float

    def __add__(self, other: Point) -> Point:
        return Point(self.x + other.x, self.y + other.y)

    def __sub__(self, other: Point) -> Point:
        return Point(self.x - other.x, self.y - other.y)

    def __iter__(self):  # noqa: ANN204
        """Allow tuple unpacking: ``x, y = point``."""
        return iter((self.x, self.y))


@dataclass(frozen=True)
class Size:
    """Width/height of a note in workspace pixels."""

    width: float
    height: float

    def __iter__(self):  # noqa: ANN204
        return iter((self.width, self.height))


@dataclass(frozen=True)
class ViewportTransform:
    """Pan offset and zoom factor mapping workspace space to the viewport."""

    pan_x: float = 0.0
    pan_y: float = 0.0
    scale: float = 1.0

    def __post_init__(self) -> None:
        if not MIN_SCALE <= self.scale <= MAX_SCALE:
            msg = f"scale {self.scale} outside [{MIN_SCALE}, {MAX_SCALE}]"
            raise ValueError(msg)

    def with_scale(self, scale: float) -> ViewportTransform:
        """Return a copy with ``scale`` clamped into the allowed range."""
        return replace(self, scale=clamp_scale(scale))


class HitRegion(StrEnum):
    """Part of the canvas a pointer-down landed on."""

    CANVAS = "canvas"
    NOTE_BODY = "note_body"
    NOTE_CONTROL = "note_control"
    RESIZE_HANDLE = "resize_handle"


@dataclass(frozen=True)
class Hit:
    """Result of a hit test: the region and, for note regions, the note index."""

    region: HitRegion
    index: int | None = None


def clamp_scale(scale: float) -> float:
    """Clamp a zoom factor into ``[MIN_SCALE, MAX_SCALE]``."""
    return min(max(scale, MIN_SCALE), MAX_SCALE)


def screen_delta_to_workspace_delta(
    transform: ViewportTransform,
    dx: float,
    dy: float,
) -> Point:
    """Convert a pointer displacement to a workspace displacement.

    Dividing by the scale keeps the dragged note locked under the pointer at
    every zoom level.
    """
    return Point(dx / transform.scale, dy / transform.scale)


def screen_delta_to_resize_delta(
    transform: ViewportTransform,  # noqa: ARG001
    dx: float,
    dy: float,
) -> Point:
    """Convert a pointer displacement to a size change.

    Resize deltas are applied in raw screen pixels regardless of zoom, unlike
    drag deltas. The transform is accepted so both conversions share a call
    shape.
    """
    return Point(dx, dy)


def screen_to_viewport(pointer: Point, container_origin: Point, scroll: Point) -> Point:
    """Map a screen pointer into the scroll container's content coordinates."""
    return pointer - container_origin + scroll


def viewport_to_workspace(point: Point, transform: ViewportTransform) -> Point:
    """Map viewport content coordinates into workspace space."""
    return Point(
        (point.x - transform.pan_x) / transform.scale,
        (point.y - transform.pan_y) / transform.scale,
    )


def workspace_to_viewport(point: Point, transform: ViewportTransform) -> Point:
    """Inverse of :func:`viewport_to_workspace`."""
    return Point(
        point.x * transform.scale + transform.pan_x,
        point.y * transform.scale + transform.pan_y,
    )


def _clamp_axis(value: float, extent: float) -> float:
    # An extent wider than the workspace pins the note to 0.
    return max(0.0, min(value, WORKSPACE_SIZE - extent))


def clamp_position(position: Point, size: Size) -> Point:
    """Clamp a note position so the note stays inside the workspace."""
    return Point(
        _clamp_axis(position.x, size.width),
        _clamp_axis(position.y, size.height),
    )


def clamp_size(size: Size) -> Size:
    """Apply the minimum note dimensions. There is no maximum."""
    return Size(max(MIN_NOTE_WIDTH, size.width), max(MIN_NOTE_HEIGHT, size.height))


def _contains(note: Note, point: Point) -> bool:
    return (
        note.x <= point.x <= note.x + note.width
        and note.y <= point.y <= note.y + note.height
    )


def stacking_order(notes: Sequence[Note]) -> list[int]:
    """Return note indices bottom-to-top.

    Higher ``z_index`` draws on top; equal values keep insertion order, so the
    later note wins.
    """
    return sorted(range(len(notes)), key=lambda i: (notes[i].z_index, i))


def _region_inside(note: Note, point: Point) -> HitRegion:
    right = note.x + note.width
    bottom = note.y + note.height
    if point.x >= right - RESIZE_HANDLE_SIZE and point.y >= bottom - RESIZE_HANDLE_SIZE:
        return HitRegion.RESIZE_HANDLE
    inner_left = note.x + NOTE_PADDING
    inner_top = note.y + NOTE_PADDING
    if not (
        inner_left <= point.x <= right - NOTE_PADDING
        and inner_top <= point.y <= bottom - NOTE_PADDING
    ):
        return HitRegion.NOTE_BODY
    if point.y < inner_top + NOTE_HEADER_HEIGHT:
        return HitRegion.NOTE_CONTROL
    # The text editor swallows presses; the rendered preview does not.
    if note.view_mode == "edit":
        return HitRegion.NOTE_CONTROL
    return HitRegion.NOTE_BODY


def hit_test(notes: Sequence[Note], point: Point) -> Hit:
    """Find what lies under ``point`` (workspace space).

    The top-most note containing the point wins. Within a note the bottom-right
    ``RESIZE_HANDLE_SIZE`` square is the resize handle, the padding ring is the
    drag surface, and the header strip holds the title input and buttons.
    """
    for index in reversed(stacking_order(notes)):
        note = notes[index]
        if _contains(note, point):
            return Hit(_region_inside(note, point), index)
    return Hit(HitRegion.CANVAS)
