"""Task-list operations for the todo view."""

from __future__ import annotations

import logging

from .schemas import TodoItem, TodoList
from .utils import IdAllocator, is_blank

logger = logging.getLogger(__name__)

_ids = IdAllocator()


def _item(todo: TodoList, index: int) -> TodoItem | None:
    if not 0 <= index < len(todo.items):
        logger.warning("Ignoring missing task %s in %r", index, todo.name)
        return None
    return todo.items[index]


def add_task(
    todo: TodoList,
    text: str,
    ids: IdAllocator | None = None,
) -> TodoItem | None:
    """Append an uncompleted task. Blank text is ignored."""
    if is_blank(text):
        return None
    allocator = ids or _ids
    allocator.observe(item.id for item in todo.items)
    item = TodoItem(id=allocator.next_id(), text=text, completed=False)
    todo.items.append(item)
    return item


def toggle_task(todo: TodoList, index: int) -> bool | None:
    """Flip a task's completed flag; return the new value."""
    item = _item(todo, index)
    if item is None:
        return None
    item.completed = not item.completed
    return item.completed


def edit_task(todo: TodoList, index: int, text: str) -> bool:
    """Replace a task's text."""
    item = _item(todo, index)
    if item is None:
        return False
    item.text = text
    return True


def delete_task(todo: TodoList, index: int) -> bool:
    """Remove a task; later tasks shift down."""
    if _item(todo, index) is None:
        return False
    todo.items.pop(index)
    return True


def move_task(todo: TodoList, from_index: int, to_index: int) -> bool:
    """Move a task so it ends up at ``to_index`` (drag-and-drop reorder)."""
    if from_index == to_index:
        return False
    if _item(todo, from_index) is None or not 0 <= to_index < len(todo.items):
        return False
    item = todo.items.pop(from_index)
    todo.items.insert(to_index, item)
    return True


def remaining(todo: TodoList) -> int:
    """Count uncompleted tasks."""
    return sum(1 for item in todo.items if not item.completed)
