"""Site assembly for Folio.

The SiteAssembler derives the navigable indices from a Collection: the
chronological post list, the tag index and the menu tree. The resulting Site
is read-only and is what a rendering layer queries.

Ordering rules:
- Chronological: dated items, date descending, ties by path ascending.
- Tags: same as chronological, undated items last by path. Tag keys sorted.
- Menus: discovery order, or weight ascending under the ``weight`` strategy
  with unweighted entries after weighted ones in discovery order.

Drafts are left out of every index unless drafts are included.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from .collections import Collection, ItemList, MenuTree, TagIndex, sort_by_date_then_path, sort_chronological
from .content import ContentItem
from .errors import UnresolvableMenuReferenceError

logger = logging.getLogger(__name__)

MENU_ORDER_DISCOVERY = "discovery-order"
MENU_ORDER_WEIGHT = "weight"
MENU_ORDER_STRATEGIES = (MENU_ORDER_DISCOVERY, MENU_ORDER_WEIGHT)


@dataclass(frozen=True)
class SiteIndices:
    """The derived indices for one draft mode."""

    chronological: ItemList
    tags: TagIndex
    menus: MenuTree


@dataclass(frozen=True)
class Site:
    """Assembled site model: the Collection and its derived indices.

    Attributes:
        collection: Every item of the build, drafts included.
        include_drafts: Draft mode used when a query does not specify one.
        published: Indices without drafts.
        complete: Indices with drafts.
        warnings: Menu references downgraded to warnings.
    """

    collection: Collection
    include_drafts: bool
    published: SiteIndices
    complete: SiteIndices
    warnings: tuple[UnresolvableMenuReferenceError, ...] = field(default=())

    def _indices(self, include_drafts: bool | None) -> SiteIndices:
        if include_drafts is None:
            include_drafts = self.include_drafts
        return self.complete if include_drafts else self.published

    @property
    def items(self) -> ItemList:
        return self.collection.to_list()

    @property
    def tags(self) -> TagIndex:
        return self._indices(None).tags

    @property
    def menus(self) -> MenuTree:
        return self._indices(None).menus

    def get_item_by_path(self, path: str) -> ContentItem | None:
        """Look up an item by path; leading and trailing slashes are ignored.

        Drafts are returned regardless of draft mode.
        """
        return self.collection.get(path.strip("/"))

    def list_chronological(self, include_drafts: bool | None = None) -> ItemList:
        """Dated items, newest first.

        Args:
            include_drafts: Override the site's draft mode.
        """
        return self._indices(include_drafts).chronological

    def list_by_tag(self, tag: str, include_drafts: bool | None = None) -> ItemList:
        """Items carrying ``tag``, newest first; empty for unknown tags."""
        return self._indices(include_drafts).tags.get(tag, ItemList())

    def list_menu(self, key: str, include_drafts: bool | None = None) -> ItemList:
        """Entries of menu ``key`` in menu order; empty for unknown keys."""
        return self._indices(include_drafts).menus.get(key, ItemList())


class SiteAssembler:
    """Builds a Site from a Collection.

    Attributes:
        include_drafts: Default draft mode of the assembled site.
        menu_order: "discovery-order" or "weight".
        reserved_menus: Menu keys no item may use.
        menus: Allowed menu keys, or None to accept any key.
        strict: Raise on unresolvable menu references instead of warning.
    """

    def __init__(
        self,
        include_drafts: bool = False,
        menu_order: str = MENU_ORDER_DISCOVERY,
        reserved_menus: Iterable[str] = (),
        menus: Iterable[str] | None = None,
        strict: bool = False,
    ):
        if menu_order not in MENU_ORDER_STRATEGIES:
            raise ValueError(f"Unknown menu order strategy: {menu_order!r}")
        self.include_drafts = include_drafts
        self.menu_order = menu_order
        self.reserved_menus = frozenset(reserved_menus)
        self.menus = frozenset(menus) if menus is not None else None
        self.strict = strict

    def assemble(self, collection: Collection) -> Site:
        """Derive all indices for ``collection``.

        Raises:
            UnresolvableMenuReferenceError: Under strict mode, for the first
                item whose menu key is reserved or unknown.
        """
        items = list(collection.values())
        warnings, rejected = self._check_menus(items)
        published = [item for item in items if item.is_published()]
        site = Site(
            collection=collection,
            include_drafts=self.include_drafts,
            published=self._index(published, rejected),
            complete=self._index(items, rejected),
            warnings=tuple(warnings),
        )
        logger.info(
            "Assembled %d items: %d tags, %d menus",
            len(collection),
            len(site.tags),
            len(site.menus),
        )
        return site

    def _check_menus(
        self, items: list[ContentItem]
    ) -> tuple[list[UnresolvableMenuReferenceError], set[str]]:
        warnings: list[UnresolvableMenuReferenceError] = []
        rejected: set[str] = set()
        for item in items:
            if item.menu is None:
                continue
            if item.menu in self.reserved_menus:
                reason = "is reserved"
            elif self.menus is not None and item.menu not in self.menus:
                reason = "is not a configured menu"
            else:
                continue
            error = UnresolvableMenuReferenceError(item.menu, item.source, reason)
            if self.strict:
                raise error
            logger.warning("%s", error)
            warnings.append(error)
            rejected.add(item.path)
        return warnings, rejected

    def _index(self, items: list[ContentItem], rejected: set[str]) -> SiteIndices:
        tags: dict[str, list[ContentItem]] = {}
        menus: dict[str, list[ContentItem]] = {}
        for item in items:
            for tag in item.tags:
                tags.setdefault(tag, []).append(item)
            if item.menu is not None and item.path not in rejected:
                menus.setdefault(item.menu, []).append(item)
        return SiteIndices(
            chronological=ItemList(sort_chronological(items)),
            tags=TagIndex({tag: sort_by_date_then_path(tagged) for tag, tagged in tags.items()}),
            menus=MenuTree({key: self._order_menu(entries) for key, entries in menus.items()}),
        )

    def _order_menu(self, entries: list[ContentItem]) -> list[ContentItem]:
        if self.menu_order == MENU_ORDER_DISCOVERY:
            return entries
        # Stable sort keeps discovery order among equal and missing weights.
        return sorted(entries, key=lambda i: (i.weight is None, i.weight or 0))
