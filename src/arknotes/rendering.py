"""Markdown to HTML rendering for notes in preview mode."""

from __future__ import annotations

import re

import markdown
import nh3

EMPTY_NOTE_PLACEHOLDER = "*Empty note*"
MARKDOWN_EXTENSIONS = ["fenced_code", "tables", "sane_lists", "nl2br"]

# Notes embed pasted images as data URIs.
URL_SCHEMES = nh3.ALLOWED_URL_SCHEMES | {"data"}
ATTRIBUTES = {tag: set(attrs) for tag, attrs in nh3.ALLOWED_ATTRIBUTES.items()}
ATTRIBUTES["*"] = ATTRIBUTES.get("*", set()) | {"class", "style", "title"}


def sanitize_html(html: str) -> str:
    """Reduce ``html`` to an allow-list of tags, attributes and URL schemes."""
    return nh3.clean(
        html,
        attributes=ATTRIBUTES,
        url_schemes=URL_SCHEMES,
        link_rel=None,
    )


def render_markdown(text: str) -> str:
    """Render note content (markdown with inline HTML) to safe HTML.

    Line breaks are preserved and GitHub-style tables and fences are
    supported. Empty content renders a placeholder.
    """
    html = markdown.markdown(text or EMPTY_NOTE_PLACEHOLDER, extensions=MARKDOWN_EXTENSIONS)
    html = sanitize_html(html)
    return re.sub(
        r'<a href="(https?://[^"]+)"',
        r'<a href="\1" target="_blank" rel="noopener noreferrer"',
        html,
    )
