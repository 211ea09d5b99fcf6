"""Immutable collections of content items.

Collection is the full, path-keyed set of items produced by one build.
ItemList and ItemIndex are the read-only sequences and mappings the site
assembler derives from it.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping, Sequence

from .content import ContentItem
from .errors import DuplicatePathError


def sort_chronological(items: Iterable[ContentItem]) -> list[ContentItem]:
    """Sort dated items newest first, breaking ties by path ascending.

    Undated items are dropped.
    """
    dated = sorted((item for item in items if item.date is not None), key=lambda i: i.path)
    # Stable sort keeps the path order among equal dates.
    return sorted(dated, key=lambda i: i.date, reverse=True)


def sort_by_date_then_path(items: Iterable[ContentItem]) -> list[ContentItem]:
    """Like sort_chronological, but undated items follow in path order."""
    items = list(items)
    undated = sorted((item for item in items if item.date is None), key=lambda i: i.path)
    return sort_chronological(items) + undated


class ItemList(Sequence[ContentItem]):
    """Read-only sequence of items with kind and draft filters."""

    def __init__(self, items: Iterable[ContentItem] = ()):
        self._items = tuple(items)

    def __iter__(self) -> Iterator[ContentItem]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __getitem__(self, index):
        if isinstance(index, slice):
            return ItemList(self._items[index])
        return self._items[index]

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ItemList):
            return self._items == other._items
        if isinstance(other, (list, tuple)):
            return list(self._items) == list(other)
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def posts(self) -> ItemList:
        return ItemList(i for i in self._items if i.kind == "post")

    def pages(self) -> ItemList:
        return ItemList(i for i in self._items if i.kind == "page")

    def drafts(self) -> ItemList:
        return ItemList(i for i in self._items if i.draft)

    def paths(self) -> list[str]:
        return [i.path for i in self._items]

    def titles(self) -> list[str]:
        return [i.title for i in self._items]

    def __repr__(self) -> str:  # pragma: no cover - for debugging
        return f"ItemList({len(self._items)} items)"


class ItemIndex(Mapping[str, ItemList]):
    """Read-only mapping of key to ItemList; keys iterate in sorted order."""

    def __init__(self, mapping: Mapping[str, Iterable[ContentItem]]):
        self._mapping = {key: ItemList(mapping[key]) for key in sorted(mapping)}

    def __getitem__(self, key: str) -> ItemList:
        return self._mapping[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._mapping)

    def __len__(self) -> int:
        return len(self._mapping)

    def counts(self) -> dict[str, int]:
        return {key: len(items) for key, items in self._mapping.items()}

    def __repr__(self) -> str:  # pragma: no cover - for debugging
        return f"{type(self).__name__}({len(self._mapping)} keys)"


class TagIndex(ItemIndex):
    """Tag name to items, newest first."""


class MenuTree(ItemIndex):
    """Menu key to menu entries, in menu order."""


class Collection(Mapping[str, ContentItem]):
    """All items of one build keyed by path, in discovery order.

    Raises:
        DuplicatePathError: If two items share a path.
    """

    def __init__(self, items: Iterable[ContentItem] = ()):
        self._items: dict[str, ContentItem] = {}
        for item in items:
            existing = self._items.get(item.path)
            if existing is not None:
                raise DuplicatePathError(item.path, [existing.source, item.source])
            self._items[item.path] = item

    def __getitem__(self, path: str) -> ContentItem:
        return self._items[path]

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def to_list(self) -> ItemList:
        return ItemList(self._items.values())

    def __repr__(self) -> str:  # pragma: no cover - for debugging
        return f"Collection({len(self._items)} items)"
