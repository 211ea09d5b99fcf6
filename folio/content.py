"""Content model for Folio.

This module defines the immutable ContentItem value object, the content
sources that enumerate and read Markdown files, and the default item builder
that turns one file into a ContentItem.

Key classes:
- ContentItem: Frozen value object for one page or post.
- FileContentSource: Implementation of the ContentSource protocol for a directory.
- MemoryContentSource: Implementation of the ContentSource protocol for a dict.
- DefaultItemBuilder: Implementation of the ItemBuilder protocol.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone, tzinfo
from pathlib import Path, PurePosixPath
from types import MappingProxyType
from typing import Any

from .frontmatter import CompositeFieldExtractor, FieldContext, parse_frontmatter
from .utils import (
    DEFAULT_EXTENSIONS,
    derive_item_path,
    is_draft_name,
    is_internal_path,
    is_markdown,
    item_url,
)

DEFAULT_POST_SECTIONS = ("posts",)


@dataclass(frozen=True, eq=False)
class ContentItem:
    """Represents one page or post.

    Items compare and hash by ``path`` only.

    Attributes:
        path: Unique item path, the basis of the output URL.
        title: Human-readable title.
        source: Source file the item was parsed from.
        body: Raw Markdown body.
        kind: "post" or "page".
        date: Timezone-aware publication date, if any.
        tags: Tags in authored order.
        menu: Menu key, if the item is a menu entry.
        weight: Explicit menu position, if any.
        draft: Whether the item is a draft.
        extra: Unrecognized front matter keys.
    """

    path: str
    title: str
    source: str
    body: str
    kind: str = "page"
    date: datetime | None = None
    tags: tuple[str, ...] = ()
    menu: str | None = None
    weight: int | None = None
    draft: bool = False
    extra: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ContentItem):
            return NotImplemented
        return self.path == other.path

    def __hash__(self) -> int:
        return hash(self.path)

    def is_published(self) -> bool:
        return not self.draft

    @property
    def url(self) -> str:
        return item_url(self.path)

    def __repr__(self) -> str:  # pragma: no cover - for debugging
        return f"ContentItem(path={self.path!r}, title={self.title!r})"


class FileContentSource:
    """Enumerates content files under a directory.

    Internal directories (``_layouts``, ``_partials``) and hidden entries are
    skipped. Files are returned sorted so that discovery order never depends
    on the filesystem.

    Attributes:
        root: Directory containing the content.
        extensions: Accepted Markdown suffixes.
    """

    def __init__(self, root: Path, extensions: Iterable[str] = DEFAULT_EXTENSIONS):
        self.root = root
        self.extensions = tuple(extensions)

    @property
    def label(self) -> str:
        return str(self.root)

    def iter_files(self) -> list[PurePosixPath]:
        files: list[PurePosixPath] = []
        for path in self.root.rglob("*"):
            if not path.is_file():
                continue
            rel = PurePosixPath(path.relative_to(self.root).as_posix())
            if is_internal_path(rel):
                continue
            if is_markdown(rel, self.extensions):
                files.append(rel)
        return sorted(files, key=lambda rel: rel.as_posix())

    def read(self, rel: PurePosixPath) -> str:
        with open(self.root / rel, encoding="utf-8") as f:
            return f.read()


class MemoryContentSource:
    """Serves content from a mapping of relative path to file text."""

    def __init__(
        self,
        files: Mapping[str, str],
        label: str = "memory",
        extensions: Iterable[str] = DEFAULT_EXTENSIONS,
    ):
        self._files = dict(files)
        self._label = label
        self.extensions = tuple(extensions)

    @property
    def label(self) -> str:
        return self._label

    def iter_files(self) -> list[PurePosixPath]:
        files = [PurePosixPath(name) for name in self._files]
        files = [rel for rel in files if not is_internal_path(rel) and is_markdown(rel, self.extensions)]
        return sorted(files, key=lambda rel: rel.as_posix())

    def read(self, rel: PurePosixPath) -> str:
        try:
            return self._files[rel.as_posix()]
        except KeyError:
            raise FileNotFoundError(f"No such content file: {rel}") from None


class DefaultItemBuilder:
    """Builds ContentItem objects from source text.

    Attributes:
        post_sections: Top-level directories whose items are posts.
        timezone: Zone applied to dates written without an offset.
        field_extractor: Front matter field extractor.
    """

    def __init__(
        self,
        post_sections: Iterable[str] = DEFAULT_POST_SECTIONS,
        tz: tzinfo = timezone.utc,
        field_extractor: CompositeFieldExtractor | None = None,
    ):
        self.post_sections = frozenset(post_sections)
        self.timezone = tz
        self.field_extractor = field_extractor

    def item_path(self, rel: PurePosixPath) -> str:
        return derive_item_path(rel)

    def build(self, rel: PurePosixPath, source: str, text: str) -> ContentItem:
        """Build a ContentItem from the text of one file.

        Args:
            rel: File location relative to its content root.
            source: Name of the file used in messages and on the item.
            text: Full file contents.

        Returns:
            ContentItem for the file.

        Raises:
            ContentError: If the front matter is missing or invalid.
        """
        path = self.item_path(rel)
        is_post = len(rel.parts) > 1 and rel.parts[0] in self.post_sections and rel.stem != "index"
        context = FieldContext(is_post=is_post, timezone=self.timezone)
        meta = parse_frontmatter(text, context, self.field_extractor)
        kind = meta.kind or ("post" if is_post else "page")
        return ContentItem(
            path=path,
            title=meta.title,
            source=source,
            body=meta.body,
            kind=kind,
            date=meta.date,
            tags=meta.tags,
            menu=meta.menu,
            weight=meta.weight,
            draft=meta.draft or is_draft_name(rel),
            extra=meta.extra,
        )
