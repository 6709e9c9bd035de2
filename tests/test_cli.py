"""CLI commands end to end on a memory:// root."""

import json

import fsspec
import pytest
from fastapi.testclient import TestClient
from typer.testing import CliRunner

from arknotes import cli
from arknotes.cli import app
from arknotes.document import LocalStore
from arknotes.schemas import DEFAULT_LIST_ID, Document
from arknotes.sync import RemoteStore
from arknotes.sync_server import create_app

runner = CliRunner()


def _run(root: str, *args: str) -> str:
    result = runner.invoke(app, ["--root", root, *args], catch_exceptions=False)
    assert result.exit_code == 0, result.output
    return result.stdout


def test_note_add_and_list(memory_root: str) -> None:
    out = _run(memory_root, "note", "add", "Groceries")
    assert "[0] Groceries at (200, 150) 400x300 z=1" in out
    _run(memory_root, "note", "add", "Errands")
    out = _run(memory_root, "note", "list")
    assert "[1] Errands at (240, 190)" in out
    assert len(LocalStore(memory_root).load_document().notes[DEFAULT_LIST_ID].items) == 2


def test_blank_title_fails(memory_root: str) -> None:
    result = runner.invoke(app, ["--root", memory_root, "note", "add", "  "])
    assert result.exit_code == 1


def test_note_move_replays_drag(memory_root: str) -> None:
    _run(memory_root, "note", "add", "a")
    out = _run(memory_root, "note", "move", "0", "--", "100", "-40")
    assert "at (300, 110)" in out
    out = _run(memory_root, "note", "move", "0", "100", "0", "--scale", "2")
    assert "at (350, 110)" in out


def test_note_resize_replays_handle_drag(memory_root: str) -> None:
    _run(memory_root, "note", "add", "a")
    out = _run(memory_root, "note", "resize", "0", "--", "-500", "50")
    assert "380x350" in out


def test_note_toggle_show_and_delete(memory_root: str) -> None:
    _run(memory_root, "note", "add", "a")
    assert "preview mode" in _run(memory_root, "note", "toggle", "0")
    assert "<h1>a</h1>" in _run(memory_root, "note", "show", "0", "--html")
    _run(memory_root, "note", "delete", "0")
    assert "No notes found." in _run(memory_root, "note", "list")


def test_missing_note_exits_with_error(memory_root: str) -> None:
    result = runner.invoke(app, ["--root", memory_root, "note", "delete", "4"])
    assert result.exit_code == 1
    assert "Note 4 not found" in result.output


def test_note_attach(memory_root: str) -> None:
    fs = fsspec.filesystem("memory")
    image_path = f"{memory_root}-img/pic.png"
    with fs.open(fs._strip_protocol(image_path), "wb") as handle:  # noqa: SLF001
        handle.write(b"\x89PNG")
    _run(memory_root, "note", "add", "a")
    assert "Attached pic.png" in _run(memory_root, "note", "attach", "0", image_path)
    document = LocalStore(memory_root).load_document()
    content = document.notes[DEFAULT_LIST_ID].items[0].content
    assert "![pic.png](data:image/png;base64," in content


def test_lists(memory_root: str) -> None:
    out = _run(memory_root, "list", "add", "Work", "--view", "todo")
    list_id = out.split("'")[1]
    assert f"- {list_id}: Work" in _run(memory_root, "list", "--view", "todo")
    _run(memory_root, "list", "rename", list_id, "Office", "--view", "todo")
    assert "Office" in _run(memory_root, "list", "--view", "todo")
    out = _run(memory_root, "list", "delete", list_id, "--view", "todo")
    assert f"Active list is now '{DEFAULT_LIST_ID}'" in out


def test_deleting_last_list_fails(memory_root: str) -> None:
    result = runner.invoke(
        app,
        ["--root", memory_root, "list", "delete", DEFAULT_LIST_ID, "--view", "notes"],
    )
    assert result.exit_code == 1
    assert "Cannot delete the last notes list" in result.output


def test_todo_commands(memory_root: str) -> None:
    _run(memory_root, "todo", "add", "milk")
    _run(memory_root, "todo", "add", "eggs")
    _run(memory_root, "todo", "toggle", "1")
    _run(memory_root, "todo", "move", "1", "0")
    out = _run(memory_root, "todo", "list")
    assert out.splitlines() == ["[0] [x] eggs", "[1] [ ] milk"]


def test_kanban_commands(memory_root: str) -> None:
    _run(memory_root, "kanban", "add-card", "todo", "design")
    _run(memory_root, "kanban", "move-card", "todo", "0", "done")
    out = _run(memory_root, "kanban", "show")
    lines = out.splitlines()
    assert lines[0] == "To Do (todo)"
    assert lines[-2:] == ["Done (done)", "  [0] design"]


def test_zoom_command() -> None:
    assert _run("memory://unused", "zoom", "3").strip() == "133%"
    assert _run("memory://unused", "zoom", "--", "-100").strip() == "10%"


def test_export_and_import(memory_root: str) -> None:
    _run(memory_root, "note", "add", "keep me")
    backup = f"{memory_root}-backup/backup.json"
    _run(memory_root, "export", backup)
    fs = fsspec.filesystem("memory")
    with fs.open(fs._strip_protocol(backup), "r") as handle:  # noqa: SLF001
        assert set(json.load(handle)) == {"data", "settings"}

    other = f"{memory_root}-other"
    _run(other, "import", backup)
    assert "keep me" in _run(other, "note", "list")


def test_import_invalid_backup_fails(memory_root: str) -> None:
    fs = fsspec.filesystem("memory")
    bad = f"{memory_root}-bad.json"
    with fs.open(fs._strip_protocol(bad), "w") as handle:  # noqa: SLF001
        handle.write("nope")
    result = runner.invoke(app, ["--root", memory_root, "import", bad])
    assert result.exit_code == 1
    assert "Invalid file format" in result.output


def test_sync_commands(memory_root: str, monkeypatch: pytest.MonkeyPatch) -> None:
    client = TestClient(create_app())
    monkeypatch.setattr(
        cli,
        "RemoteStore",
        lambda base_url: RemoteStore(base_url, client=client),
    )
    assert "Account created" in _run(
        memory_root, "sync", "register", "ada", "--password", "pw",
    )
    assert "Logged in as ada" in _run(
        memory_root, "sync", "login", "ada", "--password", "pw",
    )
    _run(memory_root, "note", "add", "cloud")
    assert "Synced to cloud" in _run(memory_root, "sync", "upload")

    LocalStore(memory_root).save_document(Document())
    assert "Data loaded from cloud" in _run(memory_root, "sync", "download")
    assert "cloud" in _run(memory_root, "note", "list")

    _run(memory_root, "sync", "logout")
    result = runner.invoke(app, ["--root", memory_root, "sync", "upload"])
    assert result.exit_code == 1
    assert "Not logged in" in result.output


def test_todo_move_out_of_range_fails(memory_root: str) -> None:
    _run(memory_root, "todo", "add", "milk")
    result = runner.invoke(app, ["--root", memory_root, "todo", "move", "0", "99"])
    assert result.exit_code == 1
    assert "Cannot move task 0 to 99" in result.output
    assert "milk" in _run(memory_root, "todo", "list")


def test_note_front(memory_root: str) -> None:
    _run(memory_root, "note", "add", "a")
    _run(memory_root, "note", "add", "b")
    assert "z-index 3" in _run(memory_root, "note", "front", "0")
