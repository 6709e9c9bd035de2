"""Image ingestion into data URIs."""

import base64

import fsspec
import pytest

from arknotes.attachments import NotAnImageError, ingest_image, load_image, to_data_uri
from arknotes.utils import fs_join


def test_ingest_guesses_mime_type() -> None:
    image = ingest_image(b"\x89PNG\r\n", "shot.png")
    assert image.mime_type == "image/png"
    assert image.data_uri == "data:image/png;base64," + base64.b64encode(
        b"\x89PNG\r\n",
    ).decode("ascii")


def test_explicit_mime_type_wins() -> None:
    image = ingest_image(b"GIF89a", "blob", mime_type="image/gif")
    assert image.data_uri.startswith("data:image/gif;base64,")


@pytest.mark.parametrize(
    ("filename", "mime_type"),
    [("notes.txt", None), ("unknown", None), ("a.png", "application/pdf")],
)
def test_non_images_are_rejected(filename: str, mime_type: str | None) -> None:
    with pytest.raises(NotAnImageError):
        ingest_image(b"data", filename, mime_type=mime_type)


def test_to_data_uri_empty_payload() -> None:
    assert to_data_uri(b"", "image/png") == "data:image/png;base64,"


def test_load_image_from_any_filesystem(
    fs_impl: tuple[fsspec.AbstractFileSystem, str],
) -> None:
    fs, root = fs_impl
    fs.makedirs(root, exist_ok=True)
    path = fs_join(root, "cat.jpg")
    with fs.open(path, "wb") as handle:
        handle.write(b"\xff\xd8\xff")
    image = load_image(path, fs=fs)
    assert image.filename == "cat.jpg"
    assert image.mime_type == "image/jpeg"
