import dataclasses
from datetime import datetime, timezone
from pathlib import Path, PurePosixPath

import pytest

from folio.content import ContentItem, DefaultItemBuilder, FileContentSource, MemoryContentSource
from folio.errors import InvalidFieldError, MissingFrontMatterError
from folio.protocols import ContentSource, ItemBuilder


def create_content(tmp_path: Path) -> Path:
    content = tmp_path / "content"
    (content / "_layouts").mkdir(parents=True)
    (content / ".cache").mkdir()
    (content / "posts").mkdir()
    (content / "about").mkdir()
    (content / "_layouts" / "default.md").write_text("---\ntitle: Layout\n---\n", encoding="utf-8")
    (content / ".cache" / "stale.md").write_text("---\ntitle: Stale\n---\n", encoding="utf-8")
    (content / ".hidden.md").write_text("---\ntitle: Hidden\n---\n", encoding="utf-8")
    (content / "index.md").write_text("---\ntitle: Home\n---\nWelcome", encoding="utf-8")
    (content / "about" / "index.md").write_text("---\ntitle: About\n---\n", encoding="utf-8")
    (content / "posts" / "b-second.markdown").write_text(
        "---\ntitle: Second\ndate: 2024-01-02\n---\n", encoding="utf-8"
    )
    (content / "posts" / "a-first.md").write_text(
        "---\ntitle: First\ndate: 2024-01-01\n---\n", encoding="utf-8"
    )
    (content / "posts" / "_wip.md").write_text(
        "---\ntitle: Work in progress\ndate: 2024-02-01\n---\n", encoding="utf-8"
    )
    (content / "notes.txt").write_text("ignore", encoding="utf-8")
    return content


def test_file_source_lists_markdown_in_sorted_order(tmp_path):
    content = create_content(tmp_path)
    source = FileContentSource(content)
    assert [rel.as_posix() for rel in source.iter_files()] == [
        "about/index.md",
        "index.md",
        "posts/_wip.md",
        "posts/a-first.md",
        "posts/b-second.markdown",
    ]
    assert source.read(PurePosixPath("index.md")).endswith("Welcome")
    assert source.label == str(content)


def test_file_source_respects_extensions(tmp_path):
    content = create_content(tmp_path)
    source = FileContentSource(content, extensions=[".markdown"])
    assert [rel.as_posix() for rel in source.iter_files()] == ["posts/b-second.markdown"]


def test_memory_source_filters_and_sorts():
    source = MemoryContentSource(
        {
            "z.md": "---\ntitle: Z\n---\n",
            "a/b.md": "---\ntitle: B\n---\n",
            "_partials/x.md": "---\ntitle: X\n---\n",
            "readme.txt": "text",
        },
        label="mem",
    )
    assert [rel.as_posix() for rel in source.iter_files()] == ["a/b.md", "z.md"]
    assert source.label == "mem"
    with pytest.raises(FileNotFoundError):
        source.read(PurePosixPath("missing.md"))


def test_sources_and_builder_satisfy_protocols(tmp_path):
    assert isinstance(FileContentSource(tmp_path), ContentSource)
    assert isinstance(MemoryContentSource({}), ContentSource)
    assert isinstance(DefaultItemBuilder(), ItemBuilder)


def test_item_builder_builds_post():
    builder = DefaultItemBuilder()
    item = builder.build(
        PurePosixPath("posts/hello.md"),
        "posts/hello.md",
        "---\ntitle: Hello\ndate: 2024-01-15\ntags: [python]\nauthor: Jane\n---\nBody",
    )
    assert item.path == "posts/hello"
    assert item.url == "/posts/hello/"
    assert item.kind == "post"
    assert item.date == datetime(2024, 1, 15, tzinfo=timezone.utc)
    assert item.tags == ("python",)
    assert item.extra["author"] == "Jane"
    assert item.body == "Body"
    assert item.source == "posts/hello.md"
    assert item.is_published()


def test_item_builder_paths_for_index_files():
    builder = DefaultItemBuilder()
    home = builder.build(PurePosixPath("index.md"), "index.md", "---\ntitle: Home\n---\n")
    assert home.path == ""
    assert home.url == "/"
    about = builder.build(PurePosixPath("about/index.md"), "about/index.md", "---\ntitle: About\n---\n")
    assert about.path == "about"
    assert about.kind == "page"


def test_section_index_is_a_page_without_date():
    builder = DefaultItemBuilder()
    listing = builder.build(PurePosixPath("posts/index.md"), "posts/index.md", "---\ntitle: Posts\n---\n")
    assert listing.kind == "page"
    assert listing.path == "posts"


def test_posts_need_a_date_and_pages_do_not():
    builder = DefaultItemBuilder()
    with pytest.raises(InvalidFieldError) as excinfo:
        builder.build(PurePosixPath("posts/undated.md"), "posts/undated.md", "---\ntitle: U\n---\n")
    assert excinfo.value.field == "date"

    page = builder.build(PurePosixPath("guide.md"), "guide.md", "---\ntitle: Guide\n---\n")
    assert page.date is None


def test_type_front_matter_overrides_section():
    builder = DefaultItemBuilder(post_sections=["articles"])
    item = builder.build(
        PurePosixPath("notes/one.md"), "notes/one.md", "---\ntitle: One\ntype: post\ndate: 2024-01-01\n---\n"
    )
    assert item.kind == "post"
    article = builder.build(
        PurePosixPath("articles/two.md"), "articles/two.md", "---\ntitle: Two\ndate: 2024-01-01\n---\n"
    )
    assert article.kind == "post"


def test_underscore_file_is_a_draft():
    builder = DefaultItemBuilder()
    item = builder.build(
        PurePosixPath("posts/_wip.md"), "posts/_wip.md", "---\ntitle: WIP\ndate: 2024-01-01\n---\n"
    )
    assert item.draft is True
    assert item.path == "posts/wip"
    assert not item.is_published()


def test_missing_front_matter_propagates():
    with pytest.raises(MissingFrontMatterError):
        DefaultItemBuilder().build(PurePosixPath("c.md"), "c.md", "# No front matter")


def test_content_items_compare_by_path_and_are_immutable():
    first = ContentItem(path="about", title="About", source="about.md", body="")
    second = ContentItem(path="about", title="Other", source="about/index.md", body="x")
    third = ContentItem(path="contact", title="About", source="contact.md", body="")
    assert first == second
    assert hash(first) == hash(second)
    assert first != third
    assert len({first, second, third}) == 2
    with pytest.raises(dataclasses.FrozenInstanceError):
        first.title = "Changed"
