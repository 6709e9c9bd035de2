"""CLI entry point using Typer."""

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from functools import wraps
from typing import Annotated, Any, TypeVar

import typer

from arknotes import kanban, todo
from arknotes.attachments import load_image
from arknotes.config import get_api_base, get_root_path
from arknotes.document import LocalStore, read_backup, write_backup
from arknotes.geometry import Point, ViewportTransform, workspace_to_viewport
from arknotes.logging_utils import setup_logging
from arknotes.rendering import render_markdown
from arknotes.schemas import KanbanBoard, Note, TodoList, View
from arknotes.sync import RemoteStore, SessionStore, SyncService
from arknotes.workspace import AppState, Workspace

app = typer.Typer(help="ArkNotes CLI - notes canvas, todo lists and boards")
list_app = typer.Typer(help="Manage the lists of a view")
note_app = typer.Typer(help="Notes on the active notebook's canvas")
todo_app = typer.Typer(help="Tasks of a todo list")
kanban_app = typer.Typer(help="Columns and cards of a board")
sync_app = typer.Typer(help="Cloud sync")

app.add_typer(list_app, name="list")
app.add_typer(note_app, name="note")
app.add_typer(todo_app, name="todo")
app.add_typer(kanban_app, name="kanban")
app.add_typer(sync_app, name="sync")

ViewOption = Annotated[View, typer.Option("--view", "-v", help="View to operate on")]
ListOption = Annotated[
    str | None,
    typer.Option("--list", "-l", help="List id (defaults to the first list)"),
]
IndexArgument = Annotated[int, typer.Argument(help="Position of the item (0-based)")]

R = TypeVar("R")


def handle_cli_errors(func: Callable[..., R]) -> Callable[..., R]:
    """Handle common CLI errors."""

    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> R:  # noqa: ANN401
        try:
            return func(*args, **kwargs)
        except typer.Exit:
            raise
        except Exception as e:
            typer.echo(f"Error: {e}", err=True)
            raise typer.Exit(code=1) from e

    return wrapper


@dataclass
class CliContext:
    """Per-invocation storage root and remote store location."""

    root: str
    api_base: str

    def local(self) -> LocalStore:
        return LocalStore(self.root)

    def open(self) -> tuple[LocalStore, Workspace]:
        """Load the persisted state into a headless workspace."""
        local = self.local()
        state = AppState(document=local.load_document(), settings=local.load_settings())
        return local, Workspace(state)

    @contextmanager
    def sync_service(
        self,
        workspace: Workspace,
        local: LocalStore,
    ) -> Iterator[SyncService]:
        """Yield a sync service whose HTTP client is closed afterwards."""
        with RemoteStore(self.api_base) as remote:
            yield SyncService(workspace.state, remote, SessionStore(local))


def _save(local: LocalStore, workspace: Workspace) -> None:
    local.save_document(workspace.state.document)
    local.save_settings(workspace.state.settings)


def _select(workspace: Workspace, view: View, list_id: str | None) -> str:
    if list_id is not None:
        workspace.state.select_list(view, list_id)
    return workspace.state.active_list(view)


def _require(found: object, what: str) -> None:
    if not found:
        msg = f"{what} not found"
        raise LookupError(msg)


@app.callback()
def main_callback(
    ctx: typer.Context,
    root: Annotated[
        str | None,
        typer.Option(help="Storage root (path or fsspec URL)"),
    ] = None,
    api_base: Annotated[
        str | None,
        typer.Option(help="Base URL of the sync server"),
    ] = None,
) -> None:
    """Configure logging and locate the storage root."""
    setup_logging()
    ctx.obj = CliContext(root=root or get_root_path(), api_base=api_base or get_api_base())


# ---------------------------------------------------------------------------
# Lists
# ---------------------------------------------------------------------------


@list_app.callback(invoke_without_command=True)
@handle_cli_errors
def cmd_list_show(ctx: typer.Context, view: ViewOption = View.NOTES) -> None:
    """Show the lists of a view."""
    if ctx.invoked_subcommand is not None:
        return
    _, workspace = ctx.obj.open()
    for list_id, item in workspace.state.document.lists(view).items():
        typer.echo(f"- {list_id}: {item.name}")


@list_app.command("add")
@handle_cli_errors
def cmd_list_add(
    ctx: typer.Context,
    name: Annotated[str, typer.Argument(help="Name of the new list")],
    view: ViewOption = View.NOTES,
) -> None:
    """Create a list."""
    local, workspace = ctx.obj.open()
    list_id = workspace.create_list(view, name)
    if list_id is None:
        typer.echo("Name must not be blank.", err=True)
        raise typer.Exit(code=1)
    _save(local, workspace)
    typer.echo(f"Created list '{list_id}'.")


@list_app.command("rename")
@handle_cli_errors
def cmd_list_rename(
    ctx: typer.Context,
    list_id: Annotated[str, typer.Argument(help="Id of the list")],
    name: Annotated[str, typer.Argument(help="New name")],
    view: ViewOption = View.NOTES,
) -> None:
    """Rename a list."""
    local, workspace = ctx.obj.open()
    if not workspace.rename_list(view, list_id, name):
        typer.echo("Name must not be blank.", err=True)
        raise typer.Exit(code=1)
    _save(local, workspace)
    typer.echo(f"Renamed list '{list_id}'.")


@list_app.command("delete")
@handle_cli_errors
def cmd_list_delete(
    ctx: typer.Context,
    list_id: Annotated[str, typer.Argument(help="Id of the list")],
    view: ViewOption = View.NOTES,
) -> None:
    """Delete a list and everything in it."""
    local, workspace = ctx.obj.open()
    active = workspace.delete_list(view, list_id)
    _save(local, workspace)
    typer.echo(f"Deleted list '{list_id}'. Active list is now '{active}'.")


# ---------------------------------------------------------------------------
# Notes
# ---------------------------------------------------------------------------


def _describe(index: int, note: Note) -> str:
    return (
        f"[{index}] {note.title} at ({note.x:g}, {note.y:g}) "
        f"{note.width:g}x{note.height:g} z={note.z_index} {note.view_mode}"
    )


def _grab_point(workspace: Workspace, position: Point) -> Point:
    """Screen coordinates of a workspace point under the current transform."""
    viewport = workspace.viewport
    local = workspace_to_viewport(position, workspace.state.transform)
    return local + viewport.origin - viewport.scroll


@note_app.command("add")
@handle_cli_errors
def cmd_note_add(
    ctx: typer.Context,
    title: Annotated[str, typer.Argument(help="Title of the note")],
    notebook: ListOption = None,
) -> None:
    """Add a note to the canvas."""
    local, workspace = ctx.obj.open()
    _select(workspace, View.NOTES, notebook)
    note = workspace.create_note(title)
    if note is None:
        typer.echo("Title must not be blank.", err=True)
        raise typer.Exit(code=1)
    _save(local, workspace)
    typer.echo(_describe(len(workspace.notes()) - 1, note))


@note_app.command("list")
@handle_cli_errors
def cmd_note_list(ctx: typer.Context, notebook: ListOption = None) -> None:
    """List the notes of a notebook."""
    _, workspace = ctx.obj.open()
    _select(workspace, View.NOTES, notebook)
    notes = workspace.notes()
    if not notes:
        typer.echo("No notes found.")
    for index, note in enumerate(notes):
        typer.echo(_describe(index, note))


@note_app.command("show")
@handle_cli_errors
def cmd_note_show(
    ctx: typer.Context,
    index: IndexArgument,
    notebook: ListOption = None,
    html: Annotated[bool, typer.Option(help="Render markdown to HTML")] = False,
) -> None:
    """Print a note's content."""
    _, workspace = ctx.obj.open()
    notebook_id = _select(workspace, View.NOTES, notebook)
    note = workspace.store.get(notebook_id, index)
    _require(note, f"Note {index}")
    typer.echo(render_markdown(note.content) if html else note.content)


@note_app.command("move")
@handle_cli_errors
def cmd_note_move(
    ctx: typer.Context,
    index: IndexArgument,
    dx: Annotated[float, typer.Argument(help="Pointer travel in screen pixels")],
    dy: Annotated[float, typer.Argument(help="Pointer travel in screen pixels")],
    notebook: ListOption = None,
    scale: Annotated[float, typer.Option(help="Zoom factor during the drag")] = 1.0,
) -> None:
    """Drag a note by a pointer displacement."""
    local, workspace = ctx.obj.open()
    notebook_id = _select(workspace, View.NOTES, notebook)
    workspace.state.transform = ViewportTransform(scale=scale)
    note = workspace.store.get(notebook_id, index)
    _require(note, f"Note {index}")
    start = _grab_point(workspace, note.position)
    workspace.drag.begin(notebook_id, index, start)
    workspace.pointer_move(start + Point(dx, dy))
    workspace.pointer_up(start + Point(dx, dy))
    _save(local, workspace)
    typer.echo(_describe(index, workspace.store.get(notebook_id, index)))


@note_app.command("resize")
@handle_cli_errors
def cmd_note_resize(
    ctx: typer.Context,
    index: IndexArgument,
    dw: Annotated[float, typer.Argument(help="Pointer travel in screen pixels")],
    dh: Annotated[float, typer.Argument(help="Pointer travel in screen pixels")],
    notebook: ListOption = None,
) -> None:
    """Drag a note's resize handle by a pointer displacement."""
    local, workspace = ctx.obj.open()
    notebook_id = _select(workspace, View.NOTES, notebook)
    note = workspace.store.get(notebook_id, index)
    _require(note, f"Note {index}")
    corner = Point(note.x + note.width, note.y + note.height)
    start = _grab_point(workspace, corner)
    workspace.resize.begin(notebook_id, index, start)
    workspace.pointer_move(start + Point(dw, dh))
    workspace.pointer_up(start + Point(dw, dh))
    _save(local, workspace)
    typer.echo(_describe(index, workspace.store.get(notebook_id, index)))


@note_app.command("delete")
@handle_cli_errors
def cmd_note_delete(
    ctx: typer.Context,
    index: IndexArgument,
    notebook: ListOption = None,
) -> None:
    """Delete a note."""
    local, workspace = ctx.obj.open()
    _select(workspace, View.NOTES, notebook)
    _require(workspace.delete_note(index), f"Note {index}")
    _save(local, workspace)
    typer.echo(f"Deleted note {index}.")


@note_app.command("toggle")
@handle_cli_errors
def cmd_note_toggle(
    ctx: typer.Context,
    index: IndexArgument,
    notebook: ListOption = None,
) -> None:
    """Switch a note between edit and preview mode."""
    local, workspace = ctx.obj.open()
    _select(workspace, View.NOTES, notebook)
    mode = workspace.toggle_note(index)
    _require(mode, f"Note {index}")
    _save(local, workspace)
    typer.echo(f"Note {index} is now in {mode} mode.")


@note_app.command("front")
@handle_cli_errors
def cmd_note_front(
    ctx: typer.Context,
    index: IndexArgument,
    notebook: ListOption = None,
) -> None:
    """Raise a note above all others."""
    local, workspace = ctx.obj.open()
    notebook_id = _select(workspace, View.NOTES, notebook)
    z_index = workspace.store.bring_to_front(notebook_id, index)
    _require(z_index, f"Note {index}")
    _save(local, workspace)
    typer.echo(f"Note {index} now has z-index {z_index}.")


@note_app.command("attach")
@handle_cli_errors
def cmd_note_attach(
    ctx: typer.Context,
    index: IndexArgument,
    path: Annotated[str, typer.Argument(help="Image file (path or fsspec URL)")],
    notebook: ListOption = None,
) -> None:
    """Embed an image into a note."""
    local, workspace = ctx.obj.open()
    _select(workspace, View.NOTES, notebook)
    image = load_image(path)
    _require(workspace.attach_image(index, image), f"Note {index}")
    _save(local, workspace)
    typer.echo(f"Attached {image.filename} to note {index}.")


@app.command("zoom")
@handle_cli_errors
def cmd_zoom(
    steps: Annotated[
        int,
        typer.Argument(help="Zoom button presses; negative zooms out"),
    ],
) -> None:
    """Show the zoom factor reached after a number of zoom steps."""
    workspace = Workspace()
    for _ in range(abs(steps)):
        if steps > 0:
            workspace.zoom_in()
        else:
            workspace.zoom_out()
    typer.echo(f"{workspace.state.transform.scale * 100:.0f}%")


# ---------------------------------------------------------------------------
# Todo and kanban
# ---------------------------------------------------------------------------


def _todo_list(workspace: Workspace, list_id: str | None) -> TodoList:
    return workspace.state.document.todo[_select(workspace, View.TODO, list_id)]


def _board(workspace: Workspace, list_id: str | None) -> KanbanBoard:
    return workspace.state.document.kanban[_select(workspace, View.KANBAN, list_id)]


@todo_app.command("add")
@handle_cli_errors
def cmd_todo_add(
    ctx: typer.Context,
    text: Annotated[str, typer.Argument(help="Task text")],
    list_id: ListOption = None,
) -> None:
    """Add a task."""
    local, workspace = ctx.obj.open()
    if todo.add_task(_todo_list(workspace, list_id), text) is None:
        typer.echo("Task must not be blank.", err=True)
        raise typer.Exit(code=1)
    _save(local, workspace)
    typer.echo("Task added.")


@todo_app.command("list")
@handle_cli_errors
def cmd_todo_list(ctx: typer.Context, list_id: ListOption = None) -> None:
    """List tasks."""
    _, workspace = ctx.obj.open()
    tasks = _todo_list(workspace, list_id)
    if not tasks.items:
        typer.echo("No tasks yet. Add one to get started!")
    for index, item in enumerate(tasks.items):
        typer.echo(f"[{index}] [{'x' if item.completed else ' '}] {item.text}")


@todo_app.command("toggle")
@handle_cli_errors
def cmd_todo_toggle(
    ctx: typer.Context,
    index: IndexArgument,
    list_id: ListOption = None,
) -> None:
    """Mark a task done or not done."""
    local, workspace = ctx.obj.open()
    completed = todo.toggle_task(_todo_list(workspace, list_id), index)
    _require(completed is not None, f"Task {index}")
    _save(local, workspace)
    typer.echo(f"Task {index} is {'done' if completed else 'open'}.")


@todo_app.command("delete")
@handle_cli_errors
def cmd_todo_delete(
    ctx: typer.Context,
    index: IndexArgument,
    list_id: ListOption = None,
) -> None:
    """Delete a task."""
    local, workspace = ctx.obj.open()
    _require(todo.delete_task(_todo_list(workspace, list_id), index), f"Task {index}")
    _save(local, workspace)
    typer.echo(f"Deleted task {index}.")


@todo_app.command("move")
@handle_cli_errors
def cmd_todo_move(
    ctx: typer.Context,
    source: IndexArgument,
    target: IndexArgument,
    list_id: ListOption = None,
) -> None:
    """Reorder a task."""
    local, workspace = ctx.obj.open()
    tasks = _todo_list(workspace, list_id)
    in_range = 0 <= source < len(tasks.items) and 0 <= target < len(tasks.items)
    if not in_range:
        msg = f"Cannot move task {source} to {target}"
        raise IndexError(msg)
    todo.move_task(tasks, source, target)
    _save(local, workspace)
    typer.echo(f"Moved task {source} to {target}.")


@kanban_app.command("show")
@handle_cli_errors
def cmd_kanban_show(ctx: typer.Context, list_id: ListOption = None) -> None:
    """Show a board column by column."""
    _, workspace = ctx.obj.open()
    for column_id, column in kanban.ordered_columns(_board(workspace, list_id)):
        typer.echo(f"{column.name} ({column_id})")
        for index, card in enumerate(column.items):
            typer.echo(f"  [{index}] {card.text}")


@kanban_app.command("add-column")
@handle_cli_errors
def cmd_kanban_add_column(
    ctx: typer.Context,
    name: Annotated[str, typer.Argument(help="Column name")],
    list_id: ListOption = None,
) -> None:
    """Add a column."""
    local, workspace = ctx.obj.open()
    column_id = kanban.add_column(_board(workspace, list_id), name)
    if column_id is None:
        typer.echo("Name must not be blank.", err=True)
        raise typer.Exit(code=1)
    _save(local, workspace)
    typer.echo(f"Created column '{column_id}'.")


@kanban_app.command("delete-column")
@handle_cli_errors
def cmd_kanban_delete_column(
    ctx: typer.Context,
    column_id: Annotated[str, typer.Argument(help="Column id")],
    list_id: ListOption = None,
) -> None:
    """Delete a column and its cards."""
    local, workspace = ctx.obj.open()
    _require(kanban.delete_column(_board(workspace, list_id), column_id), column_id)
    _save(local, workspace)
    typer.echo(f"Deleted column '{column_id}'.")


@kanban_app.command("add-card")
@handle_cli_errors
def cmd_kanban_add_card(
    ctx: typer.Context,
    column_id: Annotated[str, typer.Argument(help="Column id")],
    text: Annotated[str, typer.Argument(help="Card text")],
    list_id: ListOption = None,
) -> None:
    """Add a card to a column."""
    local, workspace = ctx.obj.open()
    if kanban.add_card(_board(workspace, list_id), column_id, text) is None:
        typer.echo("Card text must not be blank.", err=True)
        raise typer.Exit(code=1)
    _save(local, workspace)
    typer.echo("Card added.")


@kanban_app.command("move-card")
@handle_cli_errors
def cmd_kanban_move_card(
    ctx: typer.Context,
    source: Annotated[str, typer.Argument(help="Source column id")],
    index: IndexArgument,
    target: Annotated[str, typer.Argument(help="Target column id")],
    list_id: ListOption = None,
) -> None:
    """Move a card to the end of another column."""
    local, workspace = ctx.obj.open()
    card = kanban.move_card(_board(workspace, list_id), source, index, target)
    _require(card, f"Card {index}")
    _save(local, workspace)
    typer.echo(f"Moved '{card.text}' to '{target}'.")


@kanban_app.command("delete-card")
@handle_cli_errors
def cmd_kanban_delete_card(
    ctx: typer.Context,
    column_id: Annotated[str, typer.Argument(help="Column id")],
    index: IndexArgument,
    list_id: ListOption = None,
) -> None:
    """Delete a card."""
    local, workspace = ctx.obj.open()
    board = _board(workspace, list_id)
    _require(kanban.delete_card(board, column_id, index), f"Card {index}")
    _save(local, workspace)
    typer.echo(f"Deleted card {index}.")


# ---------------------------------------------------------------------------
# Backup
# ---------------------------------------------------------------------------


@app.command("export")
@handle_cli_errors
def cmd_export(
    ctx: typer.Context,
    target: Annotated[
        str,
        typer.Argument(help="Backup file or directory (path or fsspec URL)"),
    ] = ".",
) -> None:
    """Write a backup of the document and settings."""
    _, workspace = ctx.obj.open()
    path = write_backup(target, workspace.state.document, workspace.state.settings)
    typer.echo(f"Backup written to '{path}'.")


@app.command("import")
@handle_cli_errors
def cmd_import(
    ctx: typer.Context,
    source: Annotated[str, typer.Argument(help="Backup file (path or fsspec URL)")],
) -> None:
    """Restore the document and/or settings from a backup."""
    local, workspace = ctx.obj.open()
    backup = read_backup(source)
    if backup.data is not None:
        workspace.state.replace_document(backup.data)
    if backup.settings is not None:
        workspace.state.settings = backup.settings
    _save(local, workspace)
    typer.echo(f"Imported '{source}'.")


# ---------------------------------------------------------------------------
# Sync
# ---------------------------------------------------------------------------

PasswordOption = Annotated[
    str,
    typer.Option(prompt=True, hide_input=True, help="Account password"),
]


@sync_app.command("register")
@handle_cli_errors
def cmd_sync_register(
    ctx: typer.Context,
    username: Annotated[str, typer.Argument(help="Account name")],
    password: PasswordOption,
) -> None:
    """Create a cloud account."""
    local, workspace = ctx.obj.open()
    with ctx.obj.sync_service(workspace, local) as service:
        service.register(username, password)
    typer.echo(workspace.state.status_message)


@sync_app.command("login")
@handle_cli_errors
def cmd_sync_login(
    ctx: typer.Context,
    username: Annotated[str, typer.Argument(help="Account name")],
    password: PasswordOption,
) -> None:
    """Log in and load the cloud copy."""
    local, workspace = ctx.obj.open()
    with ctx.obj.sync_service(workspace, local) as service:
        session = service.login(username, password)
    _save(local, workspace)
    typer.echo(f"Logged in as {session.username}.")


@sync_app.command("logout")
@handle_cli_errors
def cmd_sync_logout(ctx: typer.Context) -> None:
    """Forget the saved session."""
    local, workspace = ctx.obj.open()
    with ctx.obj.sync_service(workspace, local) as service:
        service.logout()
    typer.echo("Logged out.")


@sync_app.command("upload")
@handle_cli_errors
def cmd_sync_upload(ctx: typer.Context) -> None:
    """Push the local copy to the cloud."""
    local, workspace = ctx.obj.open()
    with ctx.obj.sync_service(workspace, local) as service:
        service.upload()
    typer.echo(workspace.state.status_message)


@sync_app.command("download")
@handle_cli_errors
def cmd_sync_download(ctx: typer.Context) -> None:
    """Replace the local copy with the cloud copy."""
    local, workspace = ctx.obj.open()
    with ctx.obj.sync_service(workspace, local) as service:
        service.download()
    _save(local, workspace)
    typer.echo(workspace.state.status_message)


def main() -> None:
    """Entry point for the ArkNotes CLI."""
    app()


if __name__ == "__main__":
    main()
