"""Application state and the headless notes canvas host.

:class:`AppState` is the single owner of everything that changes while the
app runs. :class:`Workspace` receives pointer and wheel events (from a GUI or
the CLI), hit-tests them and routes them to the drag, resize and pan
controllers. Controllers report their mode back into the state, which is how
an incoming synced document is held back until a gesture finishes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

from . import lists
from .geometry import (
    Hit,
    HitRegion,
    Point,
    ViewportTransform,
    hit_test,
    screen_to_viewport,
    viewport_to_workspace,
)
from .gestures import (
    IDLE,
    POINTER_LEAVE,
    POINTER_MOVE,
    POINTER_UP,
    DragController,
    Idle,
    InteractionMode,
    ListenerRegistry,
    ResizeController,
)
from .notes import NoteStore
from .schemas import DEFAULT_LIST_ID, Document, Note, Settings, View, ViewMode
from .viewport import PanController, ScrollViewport, wheel_zoom, zoom_in, zoom_out

if TYPE_CHECKING:
    from .attachments import ImageAttachment
    from .utils import IdAllocator

logger = logging.getLogger(__name__)

DEFAULT_VIEWPORT_WIDTH = 800
DEFAULT_VIEWPORT_HEIGHT = 600


class Modal(StrEnum):
    """Dialogs that can be open on top of the views."""

    SETTINGS = "settings"
    AUTH = "auth"
    PROMPT = "prompt"
    CONFIRM = "confirm"


def _default_active_lists() -> dict[View, str]:
    return dict.fromkeys(View, DEFAULT_LIST_ID)


@dataclass
class AppState:
    """Everything the running app mutates, in one place."""

    document: Document = field(default_factory=Document)
    settings: Settings = field(default_factory=Settings)
    view: View = View.TODO
    active_lists: dict[View, str] = field(default_factory=_default_active_lists)
    interaction: InteractionMode = IDLE
    transform: ViewportTransform = field(default_factory=ViewportTransform)
    modals: set[Modal] = field(default_factory=set)
    status_message: str | None = None
    pending_document: Document | None = None

    def __post_init__(self) -> None:
        lists.ensure_lists(self.document)
        self.revalidate_lists()

    @property
    def idle(self) -> bool:
        """Whether no gesture is in progress."""
        return isinstance(self.interaction, Idle)

    def active_list(self, view: View | None = None) -> str:
        """Return the active list id of ``view`` (the current view by default)."""
        return self.active_lists[view or self.view]

    def select_list(self, view: View, list_id: str) -> None:
        """Make ``list_id`` the active list of ``view``.

        Raises:
            ListNotFoundError: If the list does not exist.

        """
        lists.get_list(self.document, view, list_id)
        self.active_lists[view] = list_id

    def revalidate_lists(self) -> None:
        """Point every active-list reference at an existing list."""
        for view in View:
            self.active_lists[view] = lists.resolve_active(
                self.document,
                view,
                self.active_lists.get(view),
            )

    def replace_document(self, document: Document) -> bool:
        """Swap in a new document, or defer it while a gesture runs.

        Returns:
            True if the document was applied now, False if it was deferred.

        """
        lists.ensure_lists(document)
        if not self.idle:
            logger.info("Gesture in progress; deferring incoming document")
            self.pending_document = document
            return False
        self.document = document
        self.pending_document = None
        self.revalidate_lists()
        return True

    def set_interaction(self, mode: InteractionMode) -> None:
        """Record the controller mode and flush a deferred document on idle."""
        self.interaction = mode
        if isinstance(mode, Idle) and self.pending_document is not None:
            self.replace_document(self.pending_document)

    def open_modal(self, modal: Modal) -> None:
        self.modals.add(modal)

    def close_modal(self, modal: Modal) -> None:
        self.modals.discard(modal)

    def notify(self, message: str | None) -> None:
        """Set (or clear) the status line."""
        self.status_message = message


class Workspace:
    """Routes canvas events to controllers and exposes document operations."""

    def __init__(
        self,
        state: AppState | None = None,
        *,
        viewport: ScrollViewport | None = None,
        surface: ListenerRegistry | None = None,
        ids: IdAllocator | None = None,
    ) -> None:
        """Create a workspace.

        Args:
            state: State to operate on; a fresh default state when omitted.
            viewport: Scroll container; 800x600 at the origin when omitted.
            surface: Global pointer-event surface controllers attach to.
            ids: Id allocator shared by new notes.

        """
        self.state = state or AppState()
        self.viewport = viewport or ScrollViewport(
            DEFAULT_VIEWPORT_WIDTH,
            DEFAULT_VIEWPORT_HEIGHT,
        )
        self.surface = surface or ListenerRegistry()
        self.store = NoteStore(
            lambda: self.state.document,
            viewport_size=self.viewport.size,
            ids=ids,
        )
        self.drag = DragController(
            self.store,
            self._transform,
            self.surface,
            self.state.set_interaction,
        )
        self.resize = ResizeController(
            self.store,
            self._transform,
            self.surface,
            self.state.set_interaction,
        )
        self.pan = PanController(
            self.viewport,
            self.surface,
            self.state.set_interaction,
        )

    def _transform(self) -> ViewportTransform:
        return self.state.transform

    @property
    def notebook_id(self) -> str:
        """Id of the active notebook."""
        return self.state.active_list(View.NOTES)

    def notes(self) -> list[Note]:
        """Notes of the active notebook."""
        return self.store.notes(self.notebook_id)

    # -- pointer events ---------------------------------------------------

    def to_workspace(self, pointer: Point) -> Point:
        """Map a screen pointer to workspace coordinates."""
        local = screen_to_viewport(pointer, self.viewport.origin, self.viewport.scroll)
        return viewport_to_workspace(local, self.state.transform)

    def hit(self, pointer: Point) -> Hit:
        """Hit-test a screen pointer against the active notebook."""
        return hit_test(self.notes(), self.to_workspace(pointer))

    def pointer_down(self, pointer: Point) -> Hit | None:
        """Start the gesture that matches what lies under ``pointer``.

        Returns the hit, or None when the press was ignored (another gesture
        is running or the notes view is not shown).
        """
        if not self.state.idle or self.state.view is not View.NOTES:
            return None
        hit = self.hit(pointer)
        if hit.region is HitRegion.NOTE_BODY and hit.index is not None:
            self.drag.begin(self.notebook_id, hit.index, pointer)
        elif hit.region is HitRegion.RESIZE_HANDLE and hit.index is not None:
            self.resize.begin(self.notebook_id, hit.index, pointer)
        elif hit.region is HitRegion.CANVAS:
            self.pan.begin(pointer)
        return hit

    def pointer_move(self, pointer: Point) -> None:
        self.surface.dispatch(POINTER_MOVE, pointer)

    def pointer_up(self, pointer: Point) -> None:
        self.surface.dispatch(POINTER_UP, pointer)

    def pointer_leave(self, pointer: Point) -> None:
        self.surface.dispatch(POINTER_LEAVE, pointer)

    def wheel(self, delta_y: float, *, modifier: bool = False) -> bool:
        """Handle a wheel event; return True if it zoomed the canvas."""
        if self.state.view is not View.NOTES:
            return False
        transform = wheel_zoom(self.state.transform, delta_y, modifier=modifier)
        if transform is None:
            return False
        self.state.transform = transform
        return True

    def zoom_in(self) -> float:
        self.state.transform = zoom_in(self.state.transform)
        return self.state.transform.scale

    def zoom_out(self) -> float:
        self.state.transform = zoom_out(self.state.transform)
        return self.state.transform.scale

    def reset_zoom(self) -> float:
        self.state.transform = self.state.transform.with_scale(1.0)
        return self.state.transform.scale

    # -- notes --------------------------------------------------------------

    def create_note(self, title: str) -> Note | None:
        return self.store.create(self.notebook_id, title)

    def delete_note(self, index: int) -> bool:
        return self.store.delete(self.notebook_id, index)

    def toggle_note(self, index: int) -> ViewMode | None:
        return self.store.toggle_view_mode(self.notebook_id, index)

    def attach_image(self, index: int, image: ImageAttachment) -> bool:
        return self.store.attach_image(self.notebook_id, index, image)

    # -- views and lists ----------------------------------------------------

    def switch_view(self, view: View) -> None:
        """Show another view. Any running gesture is finished first."""
        for controller in (self.drag, self.resize, self.pan):
            if controller.active:
                controller.end()
        self.state.view = view

    def create_list(self, view: View, name: str) -> str | None:
        """Create a list in ``view`` and make it active."""
        list_id = lists.create_list(self.state.document, view, name)
        if list_id is not None:
            self.state.active_lists[view] = list_id
        return list_id

    def rename_list(self, view: View, list_id: str, name: str) -> bool:
        return lists.rename_list(self.state.document, view, list_id, name)

    def delete_list(self, view: View, list_id: str) -> str:
        """Delete a list of ``view``; return the list that is active afterwards.

        Raises:
            LastListError: If it is the only list of the view.
            ListNotFoundError: If the list does not exist.

        """
        active = lists.delete_list(
            self.state.document,
            view,
            list_id,
            self.state.active_list(view),
        )
        self.state.active_lists[view] = active
        return active
