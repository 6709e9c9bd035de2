"""Image ingestion: binary blobs become inline data URIs.

Images are never stored as separate files; the data URI is embedded straight
into the note's markdown.
"""

from __future__ import annotations

import base64
import mimetypes
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import fsspec

from .utils import get_fs_and_path


class NotAnImageError(ValueError):
    """Raised when the blob to ingest is not an image."""


@dataclass(frozen=True)
class ImageAttachment:
    """An image ready to be appended to a note."""

    filename: str
    mime_type: str
    data_uri: str


def to_data_uri(data: bytes, mime_type: str) -> str:
    """Encode ``data`` as a base64 ``data:`` URI."""
    encoded = base64.b64encode(data).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"


def ingest_image(
    data: bytes,
    filename: str,
    mime_type: str | None = None,
) -> ImageAttachment:
    """Convert an image blob into an :class:`ImageAttachment`.

    Args:
        data: Raw image bytes.
        filename: Uploaded file name, used as the markdown alt text.
        mime_type: Explicit MIME type; guessed from ``filename`` when omitted.

    Raises:
        NotAnImageError: If the MIME type is not ``image/*``.

    """
    resolved = mime_type or mimetypes.guess_type(filename)[0] or ""
    if not resolved.startswith("image/"):
        msg = f"{filename} is not an image ({resolved or 'unknown type'})"
        raise NotAnImageError(msg)
    return ImageAttachment(
        filename=filename,
        mime_type=resolved,
        data_uri=to_data_uri(data, resolved),
    )


def load_image(
    path: str | Path,
    *,
    fs: fsspec.AbstractFileSystem | None = None,
) -> ImageAttachment:
    """Read an image file (any fsspec location) and ingest it."""
    fs_obj, fs_path = get_fs_and_path(path, fs)
    with fs_obj.open(fs_path, "rb") as handle:
        data = handle.read()
    return ingest_image(data, Path(fs_path).name)
