"""Command-line interface for Folio.

This module defines the CLI commands using the Click framework.

Commands:
- build: Collect and assemble the content tree and print a build summary.
- tags: List tags with their item counts.
- new: Create a new content file with front matter, interactively or from options.
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path, PurePosixPath

import click
import questionary

from . import __version__
from .build import BuildConfig, BuildSummary, build_site, load_config
from .content import FileContentSource
from .errors import FolioError
from .frontmatter import FrontMatter, dump_document
from .utils import derive_item_path, slugify

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


@click.group()
@click.version_option(version=__version__, prog_name="folio")
@click.option("-v", "--verbose", count=True, help="Log progress (-vv for debug output)")
def cli(verbose: int):
    """Folio content collector."""
    if verbose:
        level = logging.DEBUG if verbose > 1 else logging.INFO
        logging.basicConfig(level=level, format=LOG_FORMAT)


@cli.command()
@click.option("--drafts", is_flag=True, help="Include draft content")
@click.option("--strict", is_flag=True, help="Fail on any per-file error")
@click.option("--workers", type=click.IntRange(min=1), help="Parser threads (overrides folio.yaml)")
@click.option("--content-root", help="Content directory (overrides folio.yaml)")
def build(drafts: bool, strict: bool, workers: int | None, content_root: str | None):
    """Collect and assemble the content tree."""
    project_root = Path.cwd()
    try:
        summary = build_site(
            project_root,
            include_drafts=drafts or None,
            strict=strict or None,
            workers=workers,
            content_root=content_root,
        )
    except FolioError as exc:
        raise click.ClickException(str(exc)) from None
    _print_summary(summary)
    if not summary.ok:
        raise SystemExit(1)


@cli.command()
@click.option("--drafts", is_flag=True, help="Count draft content")
def tags(drafts: bool):
    """List tags with the number of items carrying each."""
    try:
        summary = build_site(Path.cwd(), include_drafts=drafts or None)
    except FolioError as exc:
        raise click.ClickException(str(exc)) from None
    if summary.site is None:
        _print_summary(summary)
        raise SystemExit(1)
    counts = summary.site.tags.counts()
    if not counts:
        click.echo("No tags found")
        return
    width = max(len(tag) for tag in counts)
    for tag, count in counts.items():
        click.echo(f"{tag.ljust(width)}  {count}")


@cli.command()
@click.option("--title", help="Title of the new item (prompts when omitted)")
@click.option("--section", help="Content folder, e.g. posts ('.' for the root)")
@click.option("--tags", "tag_list", help="Comma-separated tags")
@click.option("--menu", help="Menu key")
@click.option("--draft", is_flag=True, help="Mark the item as a draft")
def new(title: str | None, section: str | None, tag_list: str | None, menu: str | None, draft: bool):
    """Create a new Markdown file with front matter."""
    project_root = Path.cwd()
    try:
        config = BuildConfig.from_mapping(project_root, load_config(project_root))
    except FolioError as exc:
        raise click.ClickException(str(exc)) from None
    content_dir = config.content_roots[0]
    if not content_dir.exists():
        raise click.ClickException(
            f"No {content_dir.name}/ directory found. Run this command from a Folio project root."
        )
    post_sections = set(config.post_sections)

    if title is None:
        section, title, tag_list, draft = _prompt_new_item(content_dir)

    section = (section or ".").strip("/") or "."
    target_dir = content_dir if section == "." else content_dir / section
    filename = f"{slugify(title)}.md"
    rel = PurePosixPath(filename) if section == "." else PurePosixPath(section) / filename
    target_path = target_dir / filename

    if target_path.exists():
        raise click.ClickException(f"File already exists: {target_path.relative_to(project_root)}")
    clash = _find_path_clash(FileContentSource(content_dir, config.extensions), derive_item_path(rel))
    if clash is not None:
        raise click.ClickException(f"A file with path '{derive_item_path(rel)}' already exists: {clash}")

    is_post = rel.parts[0] in post_sections and len(rel.parts) > 1
    record = FrontMatter(
        title=title.strip(),
        body=f"\n# {title.strip()}\n",
        date=datetime.now().astimezone() if is_post else None,
        tags=tuple(_split_tags(tag_list)),
        menu=menu or None,
        draft=draft,
    )
    target_dir.mkdir(parents=True, exist_ok=True)
    target_path.write_text(dump_document(record), encoding="utf-8")
    click.echo(f"Created {target_path.relative_to(project_root)}")


def _prompt_new_item(content_dir: Path) -> tuple[str, str, str, bool]:
    """Ask for section, title, tags and draft status."""
    section = questionary.select(
        "Select folder:",
        choices=_get_content_folders(content_dir),
        style=_questionary_style(),
    ).ask()
    if section is None:
        raise click.Abort()

    title = questionary.text(
        "Title:",
        validate=lambda x: len(x.strip()) > 0 or "Title cannot be empty",
        style=_questionary_style(),
    ).ask()
    if title is None:
        raise click.Abort()

    tag_list = questionary.text("Tags (comma-separated):", style=_questionary_style()).ask()
    if tag_list is None:
        raise click.Abort()

    draft = questionary.confirm("Save as draft?", default=True, style=_questionary_style()).ask()
    if draft is None:
        raise click.Abort()

    return ("." if section == ". (root)" else section), title, tag_list, draft


def _get_content_folders(content_dir: Path) -> list[str]:
    """Get content folders, excluding internal ones, root option first."""
    folders = sorted(
        path.name
        for path in content_dir.iterdir()
        if path.is_dir() and not path.name.startswith(("_", "."))
    )
    folders.insert(0, ". (root)")
    return folders


def _find_path_clash(source: FileContentSource, item_path: str) -> str | None:
    """Return the existing content file resolving to ``item_path``, if any."""
    for rel in source.iter_files():
        if derive_item_path(rel) == item_path:
            return rel.as_posix()
    return None


def _split_tags(tag_list: str | None) -> list[str]:
    if not tag_list:
        return []
    tags: list[str] = []
    for tag in tag_list.split(","):
        tag = tag.strip()
        if tag and tag not in tags:
            tags.append(tag)
    return tags


def _print_summary(summary: BuildSummary) -> None:
    """Print a build summary: counts, then every error and warning."""
    if summary.site is not None:
        items = summary.site.items
        click.echo(
            f"Collected {len(items)} items "
            f"({len(items.posts())} posts, {len(items.pages())} pages, "
            f"{len(items.drafts())} drafts), "
            f"{len(summary.site.tags)} tags, {len(summary.site.menus)} menus"
        )
    for error in summary.fatal:
        click.echo(click.style("Build failed:", fg="red", bold=True), err=True)
        click.echo(click.style(f"  {error.kind}: {error}", fg="red"), err=True)
    if summary.warnings:
        color = "red" if summary.strict else "yellow"
        click.echo(click.style(f"{len(summary.warnings)} problem(s):", fg=color), err=True)
        for error in summary.errors:
            field = f" [{error.field}]" if error.field else ""
            click.echo(click.style(f"  {error.source}: {error.kind}{field}: {error.message}", fg=color), err=True)
        for warning in summary.menu_warnings:
            click.echo(click.style(f"  {warning.source}: {warning.kind}: menu '{warning.menu}' {warning.reason}", fg=color), err=True)
    if summary.strict and not summary.ok and not summary.fatal:
        click.echo(click.style("Build failed: strict mode", fg="red", bold=True), err=True)


def _questionary_style():
    """Return consistent questionary style."""
    return questionary.Style(
        [
            ("qmark", "fg:cyan bold"),
            ("question", "bold"),
            ("answer", "fg:cyan"),
            ("pointer", "fg:cyan bold"),
            ("highlighted", "fg:cyan bold"),
            ("selected", "fg:cyan"),
        ]
    )


def main():
    """Entry point for the CLI application."""
    cli()
