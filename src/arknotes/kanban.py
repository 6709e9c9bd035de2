"""Board operations for the kanban view.

Columns are keyed by id. The built-in ``todo``, ``doing`` and ``done`` columns
always display first; user-added columns (timestamp ids) follow in id order.
"""

from __future__ import annotations

import logging

from .schemas import KanbanBoard, KanbanCard, KanbanColumn
from .utils import IdAllocator, is_blank

logger = logging.getLogger(__name__)

BUILTIN_COLUMN_ORDER = ("todo", "doing", "done")

_ids = IdAllocator()


class ColumnNotFoundError(KeyError):
    """Raised when a column id does not exist on the board."""


def get_column(board: KanbanBoard, column_id: str) -> KanbanColumn:
    """Return a column.

    Raises:
        ColumnNotFoundError: If the id is unknown.

    """
    try:
        return board.columns[column_id]
    except KeyError as exc:
        msg = f"Column {column_id} not found"
        raise ColumnNotFoundError(msg) from exc


def ordered_columns(board: KanbanBoard) -> list[tuple[str, KanbanColumn]]:
    """Return ``(column_id, column)`` pairs in display order."""

    def key(column_id: str) -> tuple[int, str]:
        if column_id in BUILTIN_COLUMN_ORDER:
            return BUILTIN_COLUMN_ORDER.index(column_id), ""
        return len(BUILTIN_COLUMN_ORDER), column_id

    return [(cid, board.columns[cid]) for cid in sorted(board.columns, key=key)]


def add_column(
    board: KanbanBoard,
    name: str,
    ids: IdAllocator | None = None,
) -> str | None:
    """Add an empty column and return its id. Blank names are ignored."""
    if is_blank(name):
        return None
    allocator = ids or _ids
    column_id = str(allocator.next_id())
    while column_id in board.columns:
        column_id = str(allocator.next_id())
    board.columns[column_id] = KanbanColumn(name=name)
    return column_id


def delete_column(board: KanbanBoard, column_id: str) -> bool:
    """Remove a column together with its cards."""
    if board.columns.pop(column_id, None) is None:
        logger.warning("Ignoring delete of missing column %s", column_id)
        return False
    return True


def add_card(
    board: KanbanBoard,
    column_id: str,
    text: str,
    ids: IdAllocator | None = None,
) -> KanbanCard | None:
    """Append a card to a column. Blank text is ignored."""
    if is_blank(text):
        return None
    column = get_column(board, column_id)
    allocator = ids or _ids
    allocator.observe(
        card.id for col in board.columns.values() for card in col.items
    )
    card = KanbanCard(id=allocator.next_id(), text=text)
    column.items.append(card)
    return card


def _has_card(column: KanbanColumn, index: int) -> bool:
    return 0 <= index < len(column.items)


def edit_card(board: KanbanBoard, column_id: str, index: int, text: str) -> bool:
    """Replace a card's text."""
    column = get_column(board, column_id)
    if not _has_card(column, index):
        return False
    column.items[index].text = text
    return True


def delete_card(board: KanbanBoard, column_id: str, index: int) -> bool:
    """Remove a card from a column."""
    column = get_column(board, column_id)
    if not _has_card(column, index):
        return False
    column.items.pop(index)
    return True


def move_card(
    board: KanbanBoard,
    source_id: str,
    index: int,
    target_id: str,
) -> KanbanCard | None:
    """Move a card to the end of ``target_id`` and return it.

    Dropping a card on its own column sends it to the bottom of that column.

    Raises:
        ColumnNotFoundError: If either column is unknown.

    """
    source = get_column(board, source_id)
    target = get_column(board, target_id)
    if not _has_card(source, index):
        return None
    card = source.items.pop(index)
    target.items.append(card)
    return card
