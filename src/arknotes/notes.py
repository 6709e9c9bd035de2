"""Note entity store for the notes canvas.

Notes are addressed by ``(notebook_id, index)``. Indices shift when an earlier
note is deleted, so long-lived references (gesture state in particular) should
keep the note id and resolve it with :meth:`NoteStore.index_of` when they need
to write.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING

from .geometry import Size
from .lists import ListNotFoundError
from .schemas import (
    DEFAULT_NOTE_HEIGHT,
    DEFAULT_NOTE_WIDTH,
    Document,
    Note,
    Notebook,
    ViewMode,
)
from .utils import IdAllocator, is_blank

if TYPE_CHECKING:
    from .attachments import ImageAttachment

logger = logging.getLogger(__name__)

CASCADE_STEP = 40
FALLBACK_ORIGIN = 100
NEW_NOTE_BODY = "Start writing..."

ViewportSizeProvider = Callable[[], Size | None]
DocumentSource = Document | Callable[[], Document]


def image_markdown(filename: str, data_uri: str) -> str:
    """Return the markdown snippet appended to a note for an embedded image."""
    return f"\n![{filename}]({data_uri})\n"


class NoteStore:
    """Create, update and delete notes of the notebooks in a document."""

    def __init__(
        self,
        document: DocumentSource,
        *,
        viewport_size: ViewportSizeProvider | None = None,
        ids: IdAllocator | None = None,
    ) -> None:
        """Create a store.

        Args:
            document: The document to operate on, or a callable returning the
                current document (so the owner can swap documents).
            viewport_size: Returns the visible canvas size used to place new
                notes, or None when no canvas is available.
            ids: Id allocator; a private one is created when omitted.

        """
        self._document = document
        self._viewport_size = viewport_size
        self._ids = ids or IdAllocator()

    @property
    def document(self) -> Document:
        """The document currently operated on."""
        if isinstance(self._document, Document):
            return self._document
        return self._document()

    def notebook(self, notebook_id: str) -> Notebook:
        """Return a notebook.

        Raises:
            ListNotFoundError: If the notebook does not exist.

        """
        try:
            return self.document.notes[notebook_id]
        except KeyError as exc:
            msg = f"Notebook {notebook_id} not found"
            raise ListNotFoundError(msg) from exc

    def notes(self, notebook_id: str) -> list[Note]:
        """Return the notes of a notebook in insertion order."""
        return self.notebook(notebook_id).items

    def get(self, notebook_id: str, index: int) -> Note | None:
        """Return the note at ``index`` or None if out of range."""
        items = self.document.notes.get(notebook_id)
        if items is None or not 0 <= index < len(items.items):
            return None
        return items.items[index]

    def index_of(self, notebook_id: str, note_id: int) -> int | None:
        """Return the current index of the note with ``note_id``."""
        notebook = self.document.notes.get(notebook_id)
        if notebook is None:
            return None
        for index, note in enumerate(notebook.items):
            if note.id == note_id:
                return index
        return None

    def _default_origin(self) -> tuple[float, float]:
        size = self._viewport_size() if self._viewport_size else None
        if size is None:
            return FALLBACK_ORIGIN, FALLBACK_ORIGIN
        return (
            size.width / 2 - DEFAULT_NOTE_WIDTH / 2,
            size.height / 2 - DEFAULT_NOTE_HEIGHT / 2,
        )

    def create(self, notebook_id: str, title: str) -> Note | None:
        """Add a note centred in the viewport and return it.

        Successive notes cascade diagonally by ``CASCADE_STEP`` pixels. Blank
        titles are ignored and return None.
        """
        if is_blank(title):
            return None
        notebook = self.notebook(notebook_id)
        self._ids.observe(
            note.id for book in self.document.notes.values() for note in book.items
        )
        count = len(notebook.items)
        origin_x, origin_y = self._default_origin()
        note = Note(
            id=self._ids.next_id(),
            title=title,
            content=f"# {title}\n\n{NEW_NOTE_BODY}",
            x=origin_x + count * CASCADE_STEP,
            y=origin_y + count * CASCADE_STEP,
            width=DEFAULT_NOTE_WIDTH,
            height=DEFAULT_NOTE_HEIGHT,
            z_index=count + 1,
            view_mode=ViewMode.EDIT,
        )
        notebook.items.append(note)
        logger.info("Created note %s in notebook %s", note.id, notebook_id)
        return note

    def update(self, notebook_id: str, index: int, note: Note) -> bool:
        """Replace the note at ``index`` with ``note`` (whole-record write).

        Out-of-range indices and unknown notebooks are ignored, since gesture
        commits may race with deletions.
        """
        if self.get(notebook_id, index) is None:
            logger.warning(
                "Ignoring write to missing note %s[%s]",
                notebook_id,
                index,
            )
            return False
        self.document.notes[notebook_id].items[index] = note
        return True

    def delete(self, notebook_id: str, index: int) -> bool:
        """Remove the note at ``index``; later notes shift down by one."""
        if self.get(notebook_id, index) is None:
            logger.warning("Ignoring delete of missing note %s[%s]", notebook_id, index)
            return False
        removed = self.document.notes[notebook_id].items.pop(index)
        logger.info("Deleted note %s from notebook %s", removed.id, notebook_id)
        return True

    def _patch(self, notebook_id: str, index: int, **changes: object) -> bool:
        current = self.get(notebook_id, index)
        if current is None:
            logger.warning("Ignoring write to missing note %s[%s]", notebook_id, index)
            return False
        return self.update(notebook_id, index, current.model_copy(update=changes))

    def set_content(self, notebook_id: str, index: int, content: str) -> bool:
        """Replace a note's markdown/HTML source."""
        return self._patch(notebook_id, index, content=content)

    def set_title(self, notebook_id: str, index: int, title: str) -> bool:
        """Replace a note's title."""
        return self._patch(notebook_id, index, title=title)

    def toggle_view_mode(self, notebook_id: str, index: int) -> ViewMode | None:
        """Flip a note between edit and preview; return the new mode."""
        current = self.get(notebook_id, index)
        if current is None:
            return None
        mode = ViewMode.PREVIEW if current.view_mode is ViewMode.EDIT else ViewMode.EDIT
        self._patch(notebook_id, index, view_mode=mode)
        return mode

    def bring_to_front(self, notebook_id: str, index: int) -> int | None:
        """Raise a note above every other note; return its new ``z_index``."""
        current = self.get(notebook_id, index)
        if current is None:
            return None
        top = max(note.z_index for note in self.notes(notebook_id))
        if current.z_index == top and sum(
            note.z_index == top for note in self.notes(notebook_id)
        ) == 1:
            return top
        self._patch(notebook_id, index, z_index=top + 1)
        return top + 1

    def append_image_markdown(
        self,
        notebook_id: str,
        index: int,
        data_uri: str,
        filename: str,
    ) -> bool:
        """Append a markdown image tag embedding ``data_uri`` to the note content."""
        current = self.get(notebook_id, index)
        if current is None:
            logger.warning("Ignoring image for missing note %s[%s]", notebook_id, index)
            return False
        return self._patch(
            notebook_id,
            index,
            content=current.content + image_markdown(filename, data_uri),
        )

    def attach_image(
        self,
        notebook_id: str,
        index: int,
        image: ImageAttachment,
    ) -> bool:
        """Append an ingested image to a note."""
        return self.append_image_markdown(
            notebook_id,
            index,
            image.data_uri,
            image.filename,
        )
