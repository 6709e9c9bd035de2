"""Local persistence of the document and settings, plus backup files.

Everything goes through fsspec so the storage root can be a local directory or
any fsspec URL (``memory://`` is used by the tests). Loading never raises: a
missing, unreadable or invalid file yields the default document/settings.
"""

from __future__ import annotations

import json
import logging
from datetime import date
from pathlib import Path
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from .lists import ensure_lists
from .schemas import Backup, Document, Settings, dump
from .utils import (
    fs_exists,
    fs_join,
    fs_makedirs,
    fs_read_json,
    fs_write_json,
    get_fs_and_path,
)

if TYPE_CHECKING:
    import fsspec

logger = logging.getLogger(__name__)

DATA_FILE = "data.json"
SETTINGS_FILE = "settings.json"
SESSION_FILE = "session.json"
BACKUP_PREFIX = "ark-notes-backup-"


class InvalidBackupError(ValueError):
    """Raised when a backup file cannot be parsed."""


def document_from_payload(payload: Any) -> Document:  # noqa: ANN401
    """Validate a raw document payload, falling back to the default document."""
    try:
        document = Document.model_validate(payload)
    except ValidationError as exc:
        logger.warning("Stored document is invalid, using defaults: %s", exc)
        return Document()
    ensure_lists(document)
    return document


def settings_from_payload(payload: Any) -> Settings:  # noqa: ANN401
    """Validate a raw settings payload, falling back to default settings."""
    try:
        return Settings.model_validate(payload)
    except ValidationError as exc:
        logger.warning("Stored settings are invalid, using defaults: %s", exc)
        return Settings()


class LocalStore:
    """Reads and writes the JSON files under the storage root."""

    def __init__(
        self,
        root: str | Path,
        *,
        fs: fsspec.AbstractFileSystem | None = None,
    ) -> None:
        """Create a store rooted at ``root`` (created lazily on first write)."""
        self._fs, self._root = get_fs_and_path(root, fs)

    @property
    def root(self) -> str:
        """Protocol-stripped storage root."""
        return self._root

    def path(self, name: str) -> str:
        """Return the full path of a file in the root."""
        return fs_join(self._root, name)

    def read_json(self, name: str) -> Any | None:  # noqa: ANN401
        """Read a JSON file from the root; None if missing or unreadable."""
        path = self.path(name)
        if not fs_exists(self._fs, path):
            return None
        try:
            return fs_read_json(self._fs, path)
        except (json.JSONDecodeError, UnicodeDecodeError, OSError) as exc:
            logger.warning("Could not read %s: %s", path, exc)
            return None

    def write_json(self, name: str, payload: Any) -> None:  # noqa: ANN401
        """Write a JSON file into the root."""
        fs_makedirs(self._fs, self._root, exist_ok=True)
        fs_write_json(self._fs, self.path(name), payload)

    def delete(self, name: str) -> None:
        """Remove a file from the root if it exists."""
        path = self.path(name)
        if fs_exists(self._fs, path):
            self._fs.rm(path)

    def load_document(self) -> Document:
        """Load the document, or the default document if none is usable."""
        payload = self.read_json(DATA_FILE)
        if payload is None:
            return Document()
        return document_from_payload(payload)

    def save_document(self, document: Document) -> None:
        """Persist the document."""
        self.write_json(DATA_FILE, dump(document))

    def load_settings(self) -> Settings:
        """Load settings, or defaults if none are usable."""
        payload = self.read_json(SETTINGS_FILE)
        if payload is None:
            return Settings()
        return settings_from_payload(payload)

    def save_settings(self, settings: Settings) -> None:
        """Persist settings."""
        self.write_json(SETTINGS_FILE, dump(settings))


def backup_filename(day: date | None = None) -> str:
    """Return the default backup file name for ``day`` (today by default)."""
    return f"{BACKUP_PREFIX}{(day or date.today()).isoformat()}.json"


def backup_payload(document: Document, settings: Settings) -> dict[str, Any]:
    """Return the ``{"data": ..., "settings": ...}`` export envelope."""
    return {"data": dump(document), "settings": dump(settings)}


def write_backup(
    target: str | Path,
    document: Document,
    settings: Settings,
    *,
    fs: fsspec.AbstractFileSystem | None = None,
) -> str:
    """Write a backup file and return its path.

    If ``target`` is an existing directory the dated default file name is used
    inside it.
    """
    fs_obj, path = get_fs_and_path(target, fs)
    if fs_exists(fs_obj, path) and fs_obj.isdir(path):
        path = fs_join(path, backup_filename())
    fs_write_json(fs_obj, path, backup_payload(document, settings))
    logger.info("Wrote backup to %s", path)
    return path


def parse_backup(text: str) -> Backup:
    """Parse backup file contents.

    Raises:
        InvalidBackupError: If the text is not JSON or does not match the
            backup envelope.

    """
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        msg = "Invalid file format"
        raise InvalidBackupError(msg) from exc
    if not isinstance(payload, dict):
        msg = "Invalid file format"
        raise InvalidBackupError(msg)
    try:
        backup = Backup.model_validate(payload)
    except ValidationError as exc:
        msg = f"Invalid file format: {exc.error_count()} validation error(s)"
        raise InvalidBackupError(msg) from exc
    if backup.data is not None:
        ensure_lists(backup.data)
    return backup


def read_backup(
    source: str | Path,
    *,
    fs: fsspec.AbstractFileSystem | None = None,
) -> Backup:
    """Read and parse a backup file."""
    fs_obj, path = get_fs_and_path(source, fs)
    with fs_obj.open(path, "r", encoding="utf-8") as handle:
        return parse_backup(handle.read())
