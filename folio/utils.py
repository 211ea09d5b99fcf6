"""Utility functions for Folio.

This module contains small helpers shared by the content, builder and CLI
modules: path classification, item path derivation, and filename helpers.

Key functions:
    slugify: Convert titles or filenames to URL slugs.
    is_markdown: Check if a path has a Markdown extension.
    is_internal_path: Check if a path lives under an internal directory.
    derive_item_path: Turn a source file location into an item path.
    item_url: Build the output URL for an item path.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from pathlib import PurePosixPath

DEFAULT_EXTENSIONS = (".md", ".markdown")
DRAFT_PREFIX = "_"


def slugify(name: str) -> str:
    """Convert a title or filename stem to a slug.

    Args:
        name: Text to convert.

    Returns:
        Lowercase, hyphen-separated slug.

    Examples:
        >>> slugify("Hello, World!")
        'hello-world'
    """
    cleaned = re.sub(r"[^a-zA-Z0-9]+", "-", name)
    cleaned = cleaned.strip("-").lower()
    return cleaned or "index"


def is_markdown(path: PurePosixPath, extensions: Iterable[str] = DEFAULT_EXTENSIONS) -> bool:
    """Check if a path is a Markdown-eligible file.

    Args:
        path: Path to check.
        extensions: Accepted suffixes, compared case-insensitively.
    """
    return path.suffix.lower() in {ext.lower() for ext in extensions}


def is_internal_path(path: PurePosixPath) -> bool:
    """Check if a path sits under an internal or hidden directory.

    Directories starting with ``_`` (layouts, partials) or ``.`` are never
    scanned for content. Hidden files are skipped as well.
    """
    *dirs, name = path.parts
    if name.startswith("."):
        return True
    return any(part.startswith(("_", ".")) for part in dirs)


def is_draft_name(path: PurePosixPath) -> bool:
    """Check if a file name carries the draft prefix."""
    return path.name.startswith(DRAFT_PREFIX)


def derive_item_path(rel: PurePosixPath) -> str:
    """Derive the item path for a source file.

    The extension and draft prefix are dropped, and a trailing ``index``
    collapses into its directory.

    Examples:
        >>> derive_item_path(PurePosixPath("posts/hello.md"))
        'posts/hello'
        >>> derive_item_path(PurePosixPath("about/index.md"))
        'about'
        >>> derive_item_path(PurePosixPath("index.md"))
        ''
    """
    stem = rel.stem
    if stem.startswith(DRAFT_PREFIX):
        stem = stem[len(DRAFT_PREFIX) :]
    segments = [p for p in rel.parent.parts if p not in ("", ".")]
    if stem != "index":
        segments.append(stem)
    return "/".join(segments)


def item_url(path: str) -> str:
    """Build the output URL for an item path.

    Examples:
        >>> item_url("posts/hello")
        '/posts/hello/'
        >>> item_url("")
        '/'
    """
    return f"/{path}/" if path else "/"

