"""Error taxonomy for Folio.

Per-file errors (subclasses of ContentError) are collected by the collection
builder and reported in the build summary without stopping the build. The
remaining errors are fatal: they abort the build that raised them.
"""

from __future__ import annotations

from collections.abc import Sequence


class FolioError(Exception):
    """Base class for every error raised by Folio."""

    kind = "FolioError"


class ConfigError(FolioError):
    """Invalid build configuration value."""


class ContentError(FolioError):
    """Error tied to a single content file.

    Attributes:
        source: Source file (relative to its content root), if known.
        message: Human-readable error message.
        field: Front matter field involved, if any.
    """

    kind = "ContentError"

    def __init__(self, message: str, source: str | None = None, field: str | None = None):
        self.message = message
        self.source = source
        self.field = field
        super().__init__(f"{source}: {message}" if source else message)

    def with_source(self, source: str) -> ContentError:
        """Return a copy of this error bound to a source file."""
        return type(self)(self.message, source=source, field=self.field)


class MissingFrontMatterError(ContentError):
    kind = "MissingFrontMatterError"


class MalformedFrontMatterError(ContentError):
    kind = "MalformedFrontMatterError"


class InvalidFieldError(ContentError):
    kind = "InvalidFieldError"


class UnreadableFileError(ContentError):
    kind = "UnreadableFileError"


class DuplicatePathError(FolioError):
    """Two sources resolve to the same item path.

    Attributes:
        path: The contested item path.
        sources: The conflicting source files, in discovery order.
    """

    kind = "DuplicatePathError"

    def __init__(self, path: str, sources: Sequence[str]):
        self.path = path
        self.sources = tuple(sources)
        joined = " and ".join(self.sources)
        super().__init__(f"Duplicate path '{path or '/'}' produced by {joined}")


class UnresolvableMenuReferenceError(FolioError):
    """A content item references a reserved or unknown menu key.

    Attributes:
        menu: The offending menu key.
        source: Source file of the item.
    """

    kind = "UnresolvableMenuReferenceError"

    def __init__(self, menu: str, source: str, reason: str):
        self.menu = menu
        self.source = source
        self.reason = reason
        super().__init__(f"{source}: menu '{menu}' {reason}")


class BuildCancelledError(FolioError):
    """The build was cancelled before all files were parsed."""

    kind = "BuildCancelledError"
