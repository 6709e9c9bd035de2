"""Note entity store: creation, cascade placement, writes and deletes."""

import logging

import pytest

from arknotes.attachments import ingest_image
from arknotes.geometry import Size
from arknotes.lists import ListNotFoundError
from arknotes.notes import NoteStore, image_markdown
from arknotes.schemas import Document, ViewMode
from arknotes.utils import IdAllocator


def test_create_centres_first_note_in_viewport(store: NoteStore, notebook_id: str) -> None:
    note = store.create(notebook_id, "Ideas")
    assert note is not None
    assert (note.x, note.y) == (200, 150)
    assert (note.width, note.height) == (400, 300)
    assert note.z_index == 1
    assert note.view_mode is ViewMode.EDIT
    assert note.content == "# Ideas\n\nStart writing..."


def test_create_cascades_successive_notes(store: NoteStore, notebook_id: str) -> None:
    notes = [store.create(notebook_id, title) for title in ("a", "b", "c")]
    assert [(n.x, n.y) for n in notes] == [(200, 150), (240, 190), (280, 230)]
    assert [n.z_index for n in notes] == [1, 2, 3]
    assert len({n.id for n in notes}) == 3


def test_create_without_viewport_uses_fallback_origin(notebook_id: str) -> None:
    store = NoteStore(Document())
    note = store.create(notebook_id, "x")
    assert (note.x, note.y) == (100, 100)


def test_create_ignores_blank_title(store: NoteStore, notebook_id: str) -> None:
    assert store.create(notebook_id, "   ") is None
    assert store.notes(notebook_id) == []


def test_create_in_unknown_notebook_raises(store: NoteStore) -> None:
    with pytest.raises(ListNotFoundError):
        store.create("missing", "title")


def test_ids_stay_above_existing_ids(notebook_id: str) -> None:
    document = Document()
    store = NoteStore(document, ids=IdAllocator(clock=lambda: 1.0))
    first = store.create(notebook_id, "a")
    document.notes[notebook_id].items[0] = first.model_copy(update={"id": 10**15})
    second = store.create(notebook_id, "b")
    assert second.id > 10**15


def test_update_replaces_whole_record(store: NoteStore, notebook_id: str) -> None:
    note = store.create(notebook_id, "a")
    moved = note.model_copy(update={"x": 10, "y": 20, "title": "renamed"})
    assert store.update(notebook_id, 0, moved)
    assert store.get(notebook_id, 0) == moved


def test_update_out_of_range_is_ignored(
    store: NoteStore,
    notebook_id: str,
    caplog: pytest.LogCaptureFixture,
) -> None:
    note = store.create(notebook_id, "a")
    with caplog.at_level(logging.WARNING):
        assert not store.update(notebook_id, 5, note)
    assert "missing note" in caplog.text
    assert store.notes(notebook_id) == [note]


def test_delete_shifts_later_indices(store: NoteStore, notebook_id: str) -> None:
    a, b, c = (store.create(notebook_id, t) for t in "abc")
    assert store.delete(notebook_id, 0)
    assert [n.id for n in store.notes(notebook_id)] == [b.id, c.id]
    assert store.index_of(notebook_id, c.id) == 1
    assert store.index_of(notebook_id, a.id) is None
    assert not store.delete(notebook_id, 7)


def test_toggle_view_mode(store: NoteStore, notebook_id: str) -> None:
    store.create(notebook_id, "a")
    assert store.toggle_view_mode(notebook_id, 0) is ViewMode.PREVIEW
    assert store.toggle_view_mode(notebook_id, 0) is ViewMode.EDIT
    assert store.toggle_view_mode(notebook_id, 3) is None


def test_set_title_and_content(store: NoteStore, notebook_id: str) -> None:
    store.create(notebook_id, "a")
    assert store.set_title(notebook_id, 0, "b")
    assert store.set_content(notebook_id, 0, "**bold**")
    note = store.get(notebook_id, 0)
    assert (note.title, note.content) == ("b", "**bold**")


def test_append_image_markdown(store: NoteStore, notebook_id: str) -> None:
    note = store.create(notebook_id, "a")
    image = ingest_image(b"\x89PNG", "cat.png")
    assert store.attach_image(notebook_id, 0, image)
    content = store.get(notebook_id, 0).content
    assert content == note.content + image_markdown("cat.png", image.data_uri)
    assert content.endswith(f"\n![cat.png]({image.data_uri})\n")
    assert not store.append_image_markdown(notebook_id, 9, image.data_uri, "x.png")


def test_document_callable_follows_swaps(notebook_id: str) -> None:
    holder = {"doc": Document()}
    store = NoteStore(lambda: holder["doc"], viewport_size=lambda: Size(800, 600))
    store.create(notebook_id, "a")
    holder["doc"] = Document()
    assert store.notes(notebook_id) == []


def test_bring_to_front(store: NoteStore, notebook_id: str) -> None:
    for title in "abc":
        store.create(notebook_id, title)
    assert store.bring_to_front(notebook_id, 0) == 4
    assert store.bring_to_front(notebook_id, 0) == 4
    assert [n.z_index for n in store.notes(notebook_id)] == [4, 2, 3]
    assert store.bring_to_front(notebook_id, 9) is None
