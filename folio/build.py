"""Build orchestration for Folio.

This module loads the project configuration, runs the collection builder and
the site assembler, and reports the outcome as a BuildSummary.

Key functions:
- load_config: Loads raw configuration from folio.yaml.
- build_site: Runs parse -> collect -> assemble for a project.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import timezone, tzinfo
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml

from .builder import CollectionBuilder
from .content import DefaultItemBuilder, FileContentSource
from .errors import (
    ConfigError,
    ContentError,
    DuplicatePathError,
    FolioError,
    UnresolvableMenuReferenceError,
)
from .site import MENU_ORDER_STRATEGIES, Site, SiteAssembler

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "folio.yaml"

DEFAULT_CONFIG: dict[str, Any] = {
    "content_root": "content",
    "extra_roots": [],
    "include_drafts": False,
    "menu_order": "discovery-order",
    "strict": False,
    "post_sections": ["posts"],
    "reserved_menus": [],
    "menus": None,
    "extensions": [".md", ".markdown"],
    "timezone": "UTC",
    "workers": 1,
}


@dataclass(frozen=True)
class BuildConfig:
    """Validated configuration of one build.

    A fresh instance is created for every build and passed explicitly.

    Attributes:
        content_roots: Content directories, primary root first.
        include_drafts: Include drafts in the published indices.
        menu_order: "discovery-order" or "weight".
        strict: Treat per-file errors and menu warnings as fatal.
        post_sections: Top-level directories holding posts.
        reserved_menus: Menu keys items may not use.
        menus: Allowed menu keys, or None for any.
        extensions: Markdown file suffixes.
        timezone: Zone for dates written without an offset.
        workers: Parser threads.
    """

    content_roots: tuple[Path, ...]
    include_drafts: bool = False
    menu_order: str = "discovery-order"
    strict: bool = False
    post_sections: tuple[str, ...] = ("posts",)
    reserved_menus: tuple[str, ...] = ()
    menus: tuple[str, ...] | None = None
    extensions: tuple[str, ...] = (".md", ".markdown")
    timezone: tzinfo = timezone.utc
    workers: int = 1

    @classmethod
    def from_mapping(cls, project_root: Path, raw: Mapping[str, Any]) -> BuildConfig:
        """Validate a raw configuration mapping.

        Relative content roots are resolved against ``project_root``.

        Raises:
            ConfigError: If a value has the wrong type or is out of range.
        """
        merged = {**DEFAULT_CONFIG, **raw}
        roots = [_as_str(merged, "content_root")] + _as_str_list(merged, "extra_roots")
        menu_order = merged["menu_order"]
        if menu_order not in MENU_ORDER_STRATEGIES:
            raise ConfigError(
                f"menu_order must be one of {', '.join(MENU_ORDER_STRATEGIES)}, got {menu_order!r}"
            )
        workers = merged["workers"]
        if isinstance(workers, bool) or not isinstance(workers, int) or workers < 1:
            raise ConfigError(f"workers must be a positive integer, got {workers!r}")
        menus = merged["menus"]
        return cls(
            content_roots=tuple(project_root / root for root in roots),
            include_drafts=_as_bool(merged, "include_drafts"),
            menu_order=menu_order,
            strict=_as_bool(merged, "strict"),
            post_sections=tuple(_as_str_list(merged, "post_sections")),
            reserved_menus=tuple(_as_str_list(merged, "reserved_menus")),
            menus=None if menus is None else tuple(_as_str_list(merged, "menus")),
            extensions=tuple(
                ext if ext.startswith(".") else f".{ext}" for ext in _as_str_list(merged, "extensions")
            ),
            timezone=_as_timezone(merged["timezone"]),
            workers=workers,
        )


def _as_bool(config: Mapping[str, Any], key: str) -> bool:
    value = config[key]
    if not isinstance(value, bool):
        raise ConfigError(f"{key} must be true or false, got {value!r}")
    return value


def _as_str(config: Mapping[str, Any], key: str) -> str:
    value = config[key]
    if not isinstance(value, str) or not value:
        raise ConfigError(f"{key} must be a non-empty string, got {value!r}")
    return value


def _as_str_list(config: Mapping[str, Any], key: str) -> list[str]:
    value = config[key]
    if not isinstance(value, (list, tuple)) or not all(isinstance(v, str) for v in value):
        raise ConfigError(f"{key} must be a list of strings, got {value!r}")
    return list(value)


def _as_timezone(value: Any) -> tzinfo:
    if not isinstance(value, str):
        raise ConfigError(f"timezone must be a string, got {value!r}")
    if value.upper() == "UTC":
        return timezone.utc
    try:
        return ZoneInfo(value)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ConfigError(f"Unknown timezone: {value!r}") from exc


def load_config(project_root: Path) -> dict[str, Any]:
    """Load raw configuration from folio.yaml.

    Args:
        project_root: Root directory of the project.

    Returns:
        Dictionary of configuration values with defaults applied.

    Raises:
        ConfigError: If the file is not valid YAML or not a mapping.
    """
    config_path = project_root / CONFIG_FILENAME
    config = dict(DEFAULT_CONFIG)
    if config_path.exists():
        with open(config_path, encoding="utf-8") as f:
            try:
                loaded = yaml.safe_load(f) or {}
            except yaml.YAMLError as exc:
                raise ConfigError(f"{config_path}: invalid YAML: {exc}") from exc
        if not isinstance(loaded, dict):
            raise ConfigError(f"{config_path}: expected a mapping at the top level")
        config.update(loaded)
        logger.info("Loaded config from %s", config_path)
    return config


@dataclass
class BuildSummary:
    """Outcome of one build.

    Attributes:
        site: The assembled site, or None when a fatal error stopped the build.
        errors: Per-file errors, in discovery order.
        menu_warnings: Menu references downgraded to warnings.
        fatal: Errors that aborted the build.
        strict: Whether the build ran in strict mode.
    """

    site: Site | None
    errors: list[ContentError] = field(default_factory=list)
    menu_warnings: list[UnresolvableMenuReferenceError] = field(default_factory=list)
    fatal: list[FolioError] = field(default_factory=list)
    strict: bool = False

    @property
    def ok(self) -> bool:
        """Success iff no fatal errors; in strict mode, also no warnings."""
        if self.fatal or self.site is None:
            return False
        if self.strict and self.warnings:
            return False
        return True

    @property
    def warnings(self) -> list[FolioError]:
        """Non-fatal problems: per-file errors, then menu warnings."""
        return [*self.errors, *self.menu_warnings]

    @property
    def problems(self) -> list[FolioError]:
        """Every reported error, fatal ones first."""
        return [*self.fatal, *self.warnings]


def build_site(
    project_root: Path,
    include_drafts: bool | None = None,
    strict: bool | None = None,
    workers: int | None = None,
    content_root: str | None = None,
    cancel_event: threading.Event | None = None,
) -> BuildSummary:
    """Collect and assemble the site of a project.

    Arguments left as None fall back to folio.yaml and then to the defaults.

    Args:
        project_root: Root directory of the project.
        include_drafts: Include drafts in the published indices.
        strict: Make per-file errors and menu warnings fatal.
        workers: Number of parser threads.
        content_root: Content directory, relative to the project root.
        cancel_event: Event that cancels the build when set.

    Returns:
        BuildSummary with the site and every reported error.

    Raises:
        ConfigError: If the configuration is invalid or a content root is missing.
        BuildCancelledError: If the build was cancelled.
    """
    raw = load_config(project_root)
    overrides = {
        "include_drafts": include_drafts,
        "strict": strict,
        "workers": workers,
        "content_root": content_root,
    }
    raw.update({key: value for key, value in overrides.items() if value is not None})
    config = BuildConfig.from_mapping(project_root, raw)

    for root in config.content_roots:
        if not root.is_dir():
            raise ConfigError(f"Expected content directory at {root}")

    sources = [FileContentSource(root, config.extensions) for root in config.content_roots]
    builder = CollectionBuilder(
        sources,
        DefaultItemBuilder(config.post_sections, config.timezone),
        workers=config.workers,
        cancel_event=cancel_event,
    )
    try:
        collection, errors = builder.build()
    except DuplicatePathError as exc:
        return BuildSummary(site=None, fatal=[exc], strict=config.strict)

    assembler = SiteAssembler(
        include_drafts=config.include_drafts,
        menu_order=config.menu_order,
        reserved_menus=config.reserved_menus,
        menus=config.menus,
        strict=config.strict,
    )
    try:
        site = assembler.assemble(collection)
    except UnresolvableMenuReferenceError as exc:
        logger.error("%s", exc)
        return BuildSummary(site=None, errors=errors, fatal=[exc], strict=config.strict)

    summary = BuildSummary(
        site=site,
        errors=errors,
        menu_warnings=list(site.warnings),
        strict=config.strict,
    )
    logger.info(
        "Build %s: %d items, %d errors, %d menu warnings",
        "succeeded" if summary.ok else "failed",
        len(collection),
        len(errors),
        len(summary.menu_warnings),
    )
    return summary
