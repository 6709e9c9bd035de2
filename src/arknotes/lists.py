"""Named-list management shared by the todo, notes and kanban views.

Each view keeps an id -> list mapping inside the document. Every view must
always hold at least one list, and the active-list reference must always
point at an existing list.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .schemas import (
    DEFAULT_LIST_ID,
    Document,
    KanbanBoard,
    Notebook,
    TodoList,
    View,
)
from .utils import IdAllocator, is_blank

if TYPE_CHECKING:
    from pydantic import BaseModel

logger = logging.getLogger(__name__)

_DEFAULT_NAMES = {
    View.TODO: "My ToDo List",
    View.NOTES: "My Notes",
    View.KANBAN: "My Project",
}

_id_allocator = IdAllocator()


class LastListError(Exception):
    """Raised when deleting the only remaining list of a view."""


class ListNotFoundError(Exception):
    """Raised when a list id does not exist in the given view."""


def _new_list(view: View, name: str) -> BaseModel:
    if view is View.TODO:
        return TodoList(name=name)
    if view is View.NOTES:
        return Notebook(name=name)
    return KanbanBoard(name=name)


def get_list(document: Document, view: View, list_id: str) -> BaseModel:
    """Return the list ``list_id`` of ``view``.

    Raises:
        ListNotFoundError: If the id is unknown.

    """
    lists = document.lists(view)
    if list_id not in lists:
        msg = f"{view.value} list {list_id} not found"
        raise ListNotFoundError(msg)
    return lists[list_id]


def create_list(
    document: Document,
    view: View,
    name: str,
    ids: IdAllocator | None = None,
) -> str | None:
    """Add an empty list to ``view`` and return its id.

    Blank names are ignored and return None. New boards come with the
    default ``To Do / In Progress / Done`` columns.
    """
    if is_blank(name):
        return None
    allocator = ids or _id_allocator
    list_id = str(allocator.next_id())
    while list_id in document.lists(view):
        list_id = str(allocator.next_id())
    document.lists(view)[list_id] = _new_list(view, name)
    logger.info("Created %s list %s", view.value, list_id)
    return list_id


def rename_list(document: Document, view: View, list_id: str, name: str) -> bool:
    """Rename a list. Blank names are ignored; the new name is trimmed."""
    if is_blank(name):
        return False
    get_list(document, view, list_id).name = name.strip()
    return True


def delete_list(document: Document, view: View, list_id: str, active_id: str) -> str:
    """Delete ``list_id`` from ``view`` and return the id that is active afterwards.

    Raises:
        ListNotFoundError: If the id is unknown.
        LastListError: If ``list_id`` is the only list of the view.

    """
    lists = document.lists(view)
    if list_id not in lists:
        msg = f"{view.value} list {list_id} not found"
        raise ListNotFoundError(msg)
    if len(lists) <= 1:
        msg = f"Cannot delete the last {view.value} list"
        raise LastListError(msg)
    del lists[list_id]
    logger.info("Deleted %s list %s", view.value, list_id)
    if active_id == list_id or active_id not in lists:
        return next(iter(lists))
    return active_id


def ensure_lists(document: Document) -> None:
    """Give every view without lists its default list back."""
    for view in View:
        lists = document.lists(view)
        if not lists:
            logger.warning("No %s lists found; restoring default", view.value)
            lists[DEFAULT_LIST_ID] = _new_list(view, _DEFAULT_NAMES[view])


def resolve_active(document: Document, view: View, active_id: str | None) -> str:
    """Return ``active_id`` if it still exists in ``view``, else the first list id."""
    lists = document.lists(view)
    if active_id in lists:
        return active_id
    return next(iter(lists))
