"""Collection building for Folio.

The CollectionBuilder walks one or more content sources, parses every file,
and joins the results into a Collection. A file that fails to parse becomes
a ContentError in the returned error list; it never stops the other files
from being collected. Two files resolving to the same item path abort the
build with DuplicatePathError before anything is parsed.

Parsing may run on a thread pool. Each file's result is written to its own
slot and the join happens on the calling thread, so the outcome does not
depend on the number of workers.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import PurePosixPath

from .collections import Collection
from .content import ContentItem, DefaultItemBuilder
from .errors import BuildCancelledError, ContentError, DuplicatePathError, UnreadableFileError
from .protocols import ContentSource, ItemBuilder

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SourceFile:
    """One discovered content file.

    Attributes:
        source: Content source the file belongs to.
        rel: Location relative to the source root.
        name: Display name used on items and in error messages.
        path: Item path the file resolves to.
    """

    source: ContentSource
    rel: PurePosixPath
    name: str
    path: str


class CollectionBuilder:
    """Builds a Collection from content sources.

    Attributes:
        sources: Content sources, processed in order.
        item_builder: Turns file text into ContentItems.
        workers: Parser threads; 1 parses on the calling thread.
        cancel_event: When set, remaining files are skipped and the build
            raises BuildCancelledError.
    """

    def __init__(
        self,
        sources: Sequence[ContentSource],
        item_builder: ItemBuilder | None = None,
        workers: int = 1,
        cancel_event: threading.Event | None = None,
    ):
        if not sources:
            raise ValueError("CollectionBuilder needs at least one content source")
        self.sources = list(sources)
        self.item_builder = item_builder or DefaultItemBuilder()
        self.workers = max(1, workers)
        self.cancel_event = cancel_event or threading.Event()

    def discover(self) -> list[SourceFile]:
        """List every content file across all sources, in discovery order.

        Raises:
            DuplicatePathError: If two files resolve to the same item path.
        """
        qualify = len(self.sources) > 1
        files: list[SourceFile] = []
        seen: dict[str, SourceFile] = {}
        for source in self.sources:
            for rel in source.iter_files():
                name = f"{source.label}/{rel.as_posix()}" if qualify else rel.as_posix()
                entry = SourceFile(source, rel, name, self.item_builder.item_path(rel))
                previous = seen.get(entry.path)
                if previous is not None:
                    logger.error("Duplicate path %r: %s and %s", entry.path, previous.name, name)
                    raise DuplicatePathError(entry.path, [previous.name, name])
                seen[entry.path] = entry
                files.append(entry)
                logger.debug("Discovered %s -> %r", name, entry.path)
        return files

    def build(self) -> tuple[Collection, list[ContentError]]:
        """Parse every discovered file and assemble the Collection.

        Returns:
            Tuple of (Collection of valid items, per-file errors in
            discovery order).

        Raises:
            DuplicatePathError: If two files resolve to the same item path.
            BuildCancelledError: If the cancel event was set during the build.
        """
        files = self.discover()
        results = self._parse_all(files)
        if self.cancel_event.is_set():
            raise BuildCancelledError(
                f"Build cancelled after {sum(r is not None for r in results)} of {len(files)} files"
            )

        items: list[ContentItem] = []
        errors: list[ContentError] = []
        for result in results:
            if isinstance(result, ContentError):
                logger.warning("%s: %s: %s", result.source, result.kind, result.message)
                errors.append(result)
            else:
                items.append(result)
        logger.info("Collected %d items, %d errors", len(items), len(errors))
        return Collection(items), errors

    def _parse_all(self, files: list[SourceFile]) -> list[ContentItem | ContentError | None]:
        if self.workers == 1 or len(files) < 2:
            return [self._parse_one(entry) for entry in files]

        with ThreadPoolExecutor(max_workers=self.workers, thread_name_prefix="folio-parse") as executor:
            futures = [executor.submit(self._parse_one, entry) for entry in files]
            try:
                return [future.result() for future in futures]
            except KeyboardInterrupt:
                self.cancel_event.set()
                for future in futures:
                    future.cancel()
                raise

    def _parse_one(self, entry: SourceFile) -> ContentItem | ContentError | None:
        if self.cancel_event.is_set():
            return None
        try:
            text = entry.source.read(entry.rel)
        except (OSError, UnicodeDecodeError) as exc:
            return UnreadableFileError(f"Cannot read file: {exc}", source=entry.name)
        try:
            return self.item_builder.build(entry.rel, entry.name, text)
        except ContentError as exc:
            return exc.with_source(entry.name)
