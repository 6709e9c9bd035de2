"""Pydantic models for the persisted document and settings.

The JSON field names (``zIndex``, ``viewMode``, ``gridSize`` ...) match the
files written by earlier releases, so backups stay importable. Python code
uses the snake_case attribute names.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from .geometry import Point, Size

DEFAULT_NOTE_WIDTH = 400
DEFAULT_NOTE_HEIGHT = 300
DEFAULT_LIST_ID = "default"


class View(StrEnum):
    """The three top-level views over the document."""

    TODO = "todo"
    NOTES = "notes"
    KANBAN = "kanban"


class ViewMode(StrEnum):
    """Whether a note shows its raw source or rendered markdown."""

    EDIT = "edit"
    PREVIEW = "preview"


class _Model(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class Note(_Model):
    """A positioned, resizable note on the notes canvas."""

    id: int
    title: str
    content: str = ""
    x: float = 0.0
    y: float = 0.0
    width: float = DEFAULT_NOTE_WIDTH
    height: float = DEFAULT_NOTE_HEIGHT
    z_index: int = Field(default=1, alias="zIndex")
    view_mode: ViewMode = Field(default=ViewMode.EDIT, alias="viewMode")

    @property
    def position(self) -> Point:
        """Top-left corner in workspace space."""
        return Point(self.x, self.y)

    @property
    def size(self) -> Size:
        """Current width/height."""
        return Size(self.width, self.height)


class Notebook(_Model):
    """Named ordered collection of notes."""

    name: str
    items: list[Note] = Field(default_factory=list)


class TodoItem(_Model):
    """One task in a todo list."""

    id: int
    text: str
    completed: bool = False


class TodoList(_Model):
    """Named ordered list of tasks."""

    name: str
    items: list[TodoItem] = Field(default_factory=list)


class KanbanCard(_Model):
    """One card on a kanban board."""

    id: int
    text: str


class KanbanColumn(_Model):
    """Named ordered list of cards."""

    name: str
    items: list[KanbanCard] = Field(default_factory=list)


def default_columns() -> dict[str, KanbanColumn]:
    """Return the three columns every new board starts with."""
    return {
        "todo": KanbanColumn(name="To Do"),
        "doing": KanbanColumn(name="In Progress"),
        "done": KanbanColumn(name="Done"),
    }


class KanbanBoard(_Model):
    """Named board of columns keyed by column id."""

    name: str
    columns: dict[str, KanbanColumn] = Field(default_factory=default_columns)


class Document(_Model):
    """The whole locally persisted document: every list of every view."""

    todo: dict[str, TodoList] = Field(
        default_factory=lambda: {DEFAULT_LIST_ID: TodoList(name="My ToDo List")},
    )
    notes: dict[str, Notebook] = Field(
        default_factory=lambda: {DEFAULT_LIST_ID: Notebook(name="My Notes")},
    )
    kanban: dict[str, KanbanBoard] = Field(
        default_factory=lambda: {DEFAULT_LIST_ID: KanbanBoard(name="My Project")},
    )

    def lists(self, view: View) -> dict[str, TodoList | Notebook | KanbanBoard]:
        """Return the id -> list mapping for ``view``."""
        return getattr(self, view.value)


class Settings(_Model):
    """User preferences stored next to the document."""

    grid_size: int = Field(default=50, ge=20, le=100, alias="gridSize")
    font_size: int = Field(default=14, ge=12, le=20, alias="fontSize")
    accent_color: str = Field(
        default="#6750a4",
        pattern=r"^#[0-9a-fA-F]{6}$",
        alias="accentColor",
    )
    dark_mode: bool = Field(default=False, alias="darkMode")


class Backup(_Model):
    """Export/import envelope. Either half may be missing on import."""

    data: Document | None = None
    settings: Settings | None = None


def dump(model: BaseModel) -> dict:
    """Serialize a model with its on-disk (camelCase) field names."""
    return model.model_dump(mode="json", by_alias=True)
