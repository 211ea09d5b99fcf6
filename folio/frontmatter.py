"""Front matter parsing for Folio.

This module splits a content file into its YAML front matter block and its
Markdown body, then coerces the recognized fields into a typed record.
Each recognized field is handled by a small extractor class; the composite
extractor runs them all and collects the unrecognized keys as extras.

Key classes:
- FrontMatter: Typed record of one file's metadata plus its body.
- CompositeFieldExtractor: Runs the per-field extractors.

Key functions:
- split_frontmatter: Separate the metadata block from the body.
- parse_frontmatter: Parse and validate a full file.
- dump_document: Serialize a record back to front matter and body.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date, datetime, time, timezone, tzinfo
from types import MappingProxyType
from typing import Any

import yaml

from .errors import InvalidFieldError, MalformedFrontMatterError, MissingFrontMatterError


OPENING_MARKER = "---"
CLOSING_MARKERS = ("---", "...")
ITEM_KINDS = ("post", "page")


class FrontMatterLoader(yaml.SafeLoader):
    """SafeLoader that leaves impossible timestamps as plain strings.

    PyYAML raises ValueError for values such as ``2024-02-30``. Keeping the
    scalar lets the field extractors report the offending field instead.
    """


def _construct_timestamp(loader: FrontMatterLoader, node: yaml.Node) -> Any:
    try:
        return loader.construct_yaml_timestamp(node)
    except ValueError:
        return loader.construct_scalar(node)


FrontMatterLoader.add_constructor("tag:yaml.org,2002:timestamp", _construct_timestamp)


@dataclass(frozen=True)
class FieldContext:
    """Per-file context handed to field extractors.

    Attributes:
        is_post: Whether the file lives in a post section.
        timezone: Zone applied to dates written without an offset.
    """

    is_post: bool = False
    timezone: tzinfo = timezone.utc


@dataclass(frozen=True)
class FrontMatter:
    """Typed front matter of a single content file.

    Attributes:
        title: Item title.
        body: Markdown text following the metadata block.
        date: Timezone-aware publication date, if given.
        tags: Tags in authored order, without duplicates.
        menu: Menu key, if the item belongs to a menu.
        weight: Explicit menu position, if given.
        draft: Whether the item is a draft.
        kind: Authored ``type`` value ("post" or "page"), if given.
        extra: Unrecognized keys, preserved as-is.
    """

    title: str
    body: str = ""
    date: datetime | None = None
    tags: tuple[str, ...] = ()
    menu: str | None = None
    weight: int | None = None
    draft: bool = False
    kind: str | None = None
    extra: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))


def split_frontmatter(text: str) -> tuple[str, str]:
    """Split raw file text into the metadata block and the body.

    Args:
        text: Raw file content.

    Returns:
        Tuple of (metadata block text, body text).

    Raises:
        MissingFrontMatterError: If the file does not start with ``---``.
        MalformedFrontMatterError: If the block is never closed.
    """
    clean = text.lstrip("\ufeff")
    lines = clean.splitlines(keepends=True)
    if not lines or lines[0].rstrip() != OPENING_MARKER:
        raise MissingFrontMatterError("No front matter block found")
    for index in range(1, len(lines)):
        if lines[index].rstrip() in CLOSING_MARKERS:
            return "".join(lines[1:index]), "".join(lines[index + 1 :])
    raise MalformedFrontMatterError("Front matter block is not terminated")


def load_metadata(block: str) -> dict[str, Any]:
    """Parse a metadata block as a YAML mapping.

    Raises:
        MalformedFrontMatterError: If the block is not valid YAML or is not
            a mapping with string keys.
    """
    try:
        data = yaml.load(block, Loader=FrontMatterLoader)
    except yaml.YAMLError as exc:
        problem = getattr(exc, "problem", None) or str(exc)
        mark = getattr(exc, "problem_mark", None)
        where = f" (line {mark.line + 2})" if mark is not None else ""
        raise MalformedFrontMatterError(f"Invalid YAML{where}: {problem}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise MalformedFrontMatterError(
            f"Front matter must be a mapping, got {type(data).__name__}"
        )
    bad_keys = [key for key in data if not isinstance(key, str)]
    if bad_keys:
        raise MalformedFrontMatterError(f"Front matter keys must be strings: {bad_keys!r}")
    return data


def _parse_timestamp(value: Any, tz: tzinfo) -> datetime:
    """Coerce a YAML date value to an aware datetime.

    Raises:
        ValueError: If the value is not a date, datetime or ISO 8601 string.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, time())
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
    else:
        raise ValueError(f"expected a date, got {type(value).__name__}")
    if parsed.tzinfo is None or parsed.utcoffset() is None:
        parsed = parsed.replace(tzinfo=tz)
    return parsed


class TitleField:
    """Required, non-empty string title."""

    keys = ("title",)

    def extract(self, meta: Mapping[str, Any], context: FieldContext) -> dict[str, Any]:
        value = meta.get("title")
        if value is None:
            raise InvalidFieldError("Missing required field 'title'", field="title")
        if not isinstance(value, str) or not value.strip():
            raise InvalidFieldError("Field 'title' must be a non-empty string", field="title")
        return {"title": value.strip()}


class KindField:
    """Optional ``type`` override: "post" or "page"."""

    keys = ("type",)

    def extract(self, meta: Mapping[str, Any], context: FieldContext) -> dict[str, Any]:
        value = meta.get("type")
        if value is None:
            return {"kind": None}
        if value not in ITEM_KINDS:
            raise InvalidFieldError(
                f"Field 'type' must be one of {', '.join(ITEM_KINDS)}", field="type"
            )
        return {"kind": value}


class DateField:
    """Publication date, required for posts.

    Dates without an offset are placed in the context timezone.
    """

    keys = ("date",)

    def extract(self, meta: Mapping[str, Any], context: FieldContext) -> dict[str, Any]:
        value = meta.get("date")
        kind = meta.get("type")
        required = kind == "post" or (context.is_post and kind != "page")
        if value is None:
            if required:
                raise InvalidFieldError("Missing required field 'date' for a post", field="date")
            return {"date": None}
        if isinstance(value, bool):
            raise InvalidFieldError("Field 'date' must be a date-time", field="date")
        try:
            return {"date": _parse_timestamp(value, context.timezone)}
        except ValueError as exc:
            raise InvalidFieldError(f"Field 'date' is not a valid date-time: {exc}", field="date") from exc


class TagsField:
    """Sequence of tag strings; duplicates dropped, authored order kept."""

    keys = ("tags",)

    def extract(self, meta: Mapping[str, Any], context: FieldContext) -> dict[str, Any]:
        value = meta.get("tags")
        if value is None:
            return {"tags": ()}
        if not isinstance(value, (list, tuple)):
            raise InvalidFieldError("Field 'tags' must be a list of strings", field="tags")
        tags: list[str] = []
        for tag in value:
            if not isinstance(tag, str) or not tag.strip():
                raise InvalidFieldError(
                    f"Field 'tags' must contain only non-empty strings, got {tag!r}",
                    field="tags",
                )
            tag = tag.strip()
            if tag not in tags:
                tags.append(tag)
        return {"tags": tuple(tags)}


class MenuField:
    keys = ("menu",)

    def extract(self, meta: Mapping[str, Any], context: FieldContext) -> dict[str, Any]:
        value = meta.get("menu")
        if value is None:
            return {"menu": None}
        if not isinstance(value, str) or not value.strip():
            raise InvalidFieldError("Field 'menu' must be a non-empty string", field="menu")
        return {"menu": value.strip()}


class WeightField:
    keys = ("weight",)

    def extract(self, meta: Mapping[str, Any], context: FieldContext) -> dict[str, Any]:
        value = meta.get("weight")
        if value is None:
            return {"weight": None}
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidFieldError("Field 'weight' must be an integer", field="weight")
        return {"weight": value}


class DraftField:
    keys = ("draft",)

    def extract(self, meta: Mapping[str, Any], context: FieldContext) -> dict[str, Any]:
        value = meta.get("draft", False)
        if value is None:
            return {"draft": False}
        if not isinstance(value, bool):
            raise InvalidFieldError("Field 'draft' must be true or false", field="draft")
        return {"draft": value}


class CompositeFieldExtractor:
    """Combines the per-field extractors.

    Every extractor runs against the raw mapping and their results are
    merged; keys no extractor claims are returned under ``extra``.
    """

    def __init__(self, extractors: list | None = None):
        """Initialize with a list of extractors.

        Args:
            extractors: FieldExtractor implementations. If None, uses the
                default set for title, type, date, tags, menu, weight and draft.
        """
        if extractors is None:
            self._extractors = [
                TitleField(),
                KindField(),
                DateField(),
                TagsField(),
                MenuField(),
                WeightField(),
                DraftField(),
            ]
        else:
            self._extractors = list(extractors)

    def add_extractor(self, extractor) -> None:
        self._extractors.append(extractor)

    @property
    def recognized_keys(self) -> frozenset[str]:
        return frozenset(key for extractor in self._extractors for key in extractor.keys)

    def extract(self, meta: Mapping[str, Any], context: FieldContext) -> dict[str, Any]:
        """Extract all recognized fields and collect the rest.

        Raises:
            InvalidFieldError: From the first extractor that rejects its field.
        """
        result: dict[str, Any] = {}
        for extractor in self._extractors:
            result.update(extractor.extract(meta, context))
        recognized = self.recognized_keys
        result["extra"] = MappingProxyType(
            {key: value for key, value in meta.items() if key not in recognized}
        )
        return result


default_field_extractor = CompositeFieldExtractor()


def parse_frontmatter(
    text: str,
    context: FieldContext | None = None,
    extractor: CompositeFieldExtractor | None = None,
) -> FrontMatter:
    """Parse a content file into a FrontMatter record.

    Args:
        text: Full file contents.
        context: Parsing context; defaults to a page in UTC.
        extractor: Field extractor; defaults to the standard field set.

    Returns:
        FrontMatter record with the untouched body.

    Raises:
        MissingFrontMatterError: No leading metadata block.
        MalformedFrontMatterError: Unterminated block or invalid YAML.
        InvalidFieldError: A recognized field is missing or has a bad value.
    """
    block, body = split_frontmatter(text)
    meta = load_metadata(block)
    fields = (extractor or default_field_extractor).extract(meta, context or FieldContext())
    return FrontMatter(body=body, **fields)


def dump_document(record) -> str:
    """Serialize a record as a front matter block followed by its body.

    Accepts a FrontMatter or a ContentItem. Parsing the result with
    parse_frontmatter reproduces the record's field values.
    """
    meta: dict[str, Any] = {"title": record.title}
    if record.date is not None:
        meta["date"] = record.date.isoformat()
    if record.kind is not None:
        meta["type"] = record.kind
    if record.tags:
        meta["tags"] = list(record.tags)
    if record.menu is not None:
        meta["menu"] = record.menu
    if record.weight is not None:
        meta["weight"] = record.weight
    if record.draft:
        meta["draft"] = True
    for key, value in record.extra.items():
        meta.setdefault(key, value)
    block = yaml.safe_dump(meta, sort_keys=False, allow_unicode=True, default_flow_style=False)
    return f"{OPENING_MARKER}\n{block}{OPENING_MARKER}\n{record.body}"
