"""Protocol definitions for Folio.

These protocols are the seams of the pipeline: the collection builder only
depends on them, so tests and callers can inject their own content sources,
field extractors or item builders.
"""

from __future__ import annotations

from abc import abstractmethod
from collections.abc import Mapping
from pathlib import PurePosixPath
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .content import ContentItem
    from .frontmatter import FieldContext


@runtime_checkable
class ContentSource(Protocol):
    """Protocol for enumerating and reading content files.

    Implementations must return files in a deterministic order; the
    collection builder relies on it for discovery order.
    """

    @property
    @abstractmethod
    def label(self) -> str:
        """Return a short name identifying this source in messages."""
        ...

    @abstractmethod
    def iter_files(self) -> list[PurePosixPath]:
        """List Markdown-eligible files, relative to the source root.

        Returns:
            Relative paths in lexicographic order.
        """
        ...

    @abstractmethod
    def read(self, rel: PurePosixPath) -> str:
        """Read the full text of one file.

        Raises:
            OSError: If the file cannot be read.
            UnicodeDecodeError: If the file is not valid UTF-8.
        """
        ...


@runtime_checkable
class FieldExtractor(Protocol):
    """Protocol for coercing one front matter field into its typed value."""

    keys: tuple[str, ...]

    @abstractmethod
    def extract(self, meta: Mapping[str, Any], context: FieldContext) -> dict[str, Any]:
        """Extract and validate a field from parsed front matter.

        Args:
            meta: Raw front matter mapping.
            context: Per-file parsing context.

        Returns:
            Dictionary of record attributes to set.

        Raises:
            InvalidFieldError: If the value is missing or has the wrong type.
        """
        ...


@runtime_checkable
class ItemBuilder(Protocol):
    """Protocol for turning a source file into a ContentItem."""

    @abstractmethod
    def item_path(self, rel: PurePosixPath) -> str:
        """Return the item path a source file resolves to."""
        ...

    @abstractmethod
    def build(self, rel: PurePosixPath, source: str, text: str) -> ContentItem:
        """Build a ContentItem from the text of one file.

        Raises:
            ContentError: If the file's front matter is missing or invalid.
        """
        ...
