"""ArkNotes package: a spatial notes canvas with todo lists and boards."""

from .attachments import ImageAttachment, NotAnImageError, ingest_image, load_image
from .document import InvalidBackupError, LocalStore, read_backup, write_backup
from .geometry import (
    HitRegion,
    Point,
    Size,
    ViewportTransform,
    hit_test,
    screen_delta_to_workspace_delta,
)
from .gestures import (
    DragController,
    Dragging,
    Idle,
    InteractionMode,
    ListenerRegistry,
    ListenerScope,
    Panning,
    ResizeController,
    Resizing,
)
from .lists import LastListError, ListNotFoundError
from .notes import NoteStore
from .rendering import render_markdown
from .schemas import Document, Note, Notebook, Settings, View, ViewMode
from .sync import AutoSync, NotLoggedInError, RemoteStore, RemoteStoreError, SyncService
from .viewport import PanController, ScrollViewport
from .workspace import AppState, Workspace

__all__ = [
    "AppState",
    "AutoSync",
    "Document",
    "DragController",
    "Dragging",
    "HitRegion",
    "Idle",
    "ImageAttachment",
    "InteractionMode",
    "InvalidBackupError",
    "LastListError",
    "ListNotFoundError",
    "ListenerRegistry",
    "ListenerScope",
    "LocalStore",
    "NotAnImageError",
    "NotLoggedInError",
    "Note",
    "NoteStore",
    "Notebook",
    "PanController",
    "Panning",
    "Point",
    "RemoteStore",
    "RemoteStoreError",
    "ResizeController",
    "Resizing",
    "ScrollViewport",
    "Settings",
    "Size",
    "SyncService",
    "View",
    "ViewMode",
    "ViewportTransform",
    "Workspace",
    "hit_test",
    "ingest_image",
    "load_image",
    "read_backup",
    "render_markdown",
    "screen_delta_to_workspace_delta",
    "write_backup",
]
