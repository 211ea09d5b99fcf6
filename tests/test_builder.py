import threading
from pathlib import PurePosixPath

import pytest

from folio.builder import CollectionBuilder
from folio.content import FileContentSource, MemoryContentSource
from folio.errors import (
    BuildCancelledError,
    DuplicatePathError,
    InvalidFieldError,
    MalformedFrontMatterError,
    MissingFrontMatterError,
    UnreadableFileError,
)

SCENARIO = {
    "a.md": "---\ntitle: A\ndate: 2024-01-01\ntags: [x]\n---\nAlpha",
    "b.md": "---\ntitle: B\ndate: 2024-01-02\ntags: [x, y]\n---\nBeta",
    "c.md": "# C has no front matter",
}


def test_broken_file_is_reported_and_siblings_are_collected():
    collection, errors = CollectionBuilder([MemoryContentSource(SCENARIO)]).build()
    assert list(collection) == ["a", "b"]
    assert len(errors) == 1
    assert isinstance(errors[0], MissingFrontMatterError)
    assert errors[0].source == "c.md"
    assert errors[0].kind == "MissingFrontMatterError"


def test_every_error_is_collected_in_discovery_order():
    files = {
        "1-missing.md": "no front matter",
        "2-malformed.md": "---\ntitle: [\n---\n",
        "3-unterminated.md": "---\ntitle: A\n",
        "4-invalid.md": "---\ntitle: A\ntags: nope\n---\n",
        "5-good.md": "---\ntitle: Good\n---\n",
        "posts/6-undated.md": "---\ntitle: Undated post\n---\n",
    }
    collection, errors = CollectionBuilder([MemoryContentSource(files)]).build()
    assert list(collection) == ["5-good"]
    assert [type(e) for e in errors] == [
        MissingFrontMatterError,
        MalformedFrontMatterError,
        MalformedFrontMatterError,
        InvalidFieldError,
        InvalidFieldError,
    ]
    assert [e.source for e in errors] == [
        "1-missing.md",
        "2-malformed.md",
        "3-unterminated.md",
        "4-invalid.md",
        "posts/6-undated.md",
    ]
    assert errors[3].field == "tags"
    assert errors[4].field == "date"


def test_zero_valid_items_is_a_reportable_state():
    collection, errors = CollectionBuilder([MemoryContentSource({"a.md": "x", "b.md": "y"})]).build()
    assert len(collection) == 0
    assert len(errors) == 2


def test_duplicate_path_within_one_source():
    files = {
        "about.md": "---\ntitle: About\n---\n",
        "about/index.md": "---\ntitle: About again\n---\n",
    }
    with pytest.raises(DuplicatePathError) as excinfo:
        CollectionBuilder([MemoryContentSource(files)]).build()
    assert excinfo.value.path == "about"
    assert excinfo.value.sources == ("about.md", "about/index.md")
    assert "about.md" in str(excinfo.value)
    assert "about/index.md" in str(excinfo.value)


def test_duplicate_path_across_sources_names_both_roots():
    main = MemoryContentSource({"about.md": "---\ntitle: About\n---\n"}, label="main")
    extra = MemoryContentSource({"about.md": "---\ntitle: Other\n---\n"}, label="extra")
    with pytest.raises(DuplicatePathError) as excinfo:
        CollectionBuilder([main, extra]).build()
    assert excinfo.value.sources == ("main/about.md", "extra/about.md")


def test_duplicate_detected_even_when_a_file_is_broken():
    files = {"about.md": "broken", "_about.md": "---\ntitle: Draft about\n---\n"}
    with pytest.raises(DuplicatePathError):
        CollectionBuilder([MemoryContentSource(files)]).build()


def test_multiple_sources_are_processed_in_order():
    main = MemoryContentSource({"z.md": "---\ntitle: Z\n---\n"}, label="main")
    extra = MemoryContentSource({"a.md": "---\ntitle: A\n---\n", "bad.md": "nope"}, label="extra")
    collection, errors = CollectionBuilder([main, extra]).build()
    assert list(collection) == ["z", "a"]
    assert collection["a"].source == "extra/a.md"
    assert errors[0].source == "extra/bad.md"


def test_thread_pool_gives_the_same_result():
    files = {f"posts/{i:03d}.md": f"---\ntitle: Post {i}\ndate: 2024-01-{i % 28 + 1:02d}\n---\n" for i in range(60)}
    files["posts/broken.md"] = "broken"
    sequential, seq_errors = CollectionBuilder([MemoryContentSource(files)]).build()
    threaded, thr_errors = CollectionBuilder([MemoryContentSource(files)], workers=8).build()
    assert list(sequential) == list(threaded)
    assert [sequential[p].title for p in sequential] == [threaded[p].title for p in threaded]
    assert [e.source for e in seq_errors] == [e.source for e in thr_errors] == ["posts/broken.md"]


@pytest.mark.parametrize("workers", [1, 4])
@pytest.mark.parametrize("value", ["2024-02-30", "2024-01-01 25:00:00"])
def test_impossible_date_is_a_per_file_error(workers, value):
    files = dict(SCENARIO)
    files["bad.md"] = f"---\ntitle: Bad\ndate: {value}\n---\n"
    collection, errors = CollectionBuilder([MemoryContentSource(files)], workers=workers).build()
    assert list(collection) == ["a", "b"]
    assert [(e.source, type(e)) for e in errors] == [
        ("bad.md", InvalidFieldError),
        ("c.md", MissingFrontMatterError),
    ]
    assert errors[0].field == "date"


def test_preset_cancel_event_discards_results():
    event = threading.Event()
    event.set()
    builder = CollectionBuilder([MemoryContentSource(SCENARIO)], cancel_event=event)
    with pytest.raises(BuildCancelledError):
        builder.build()


def test_cancel_between_files():
    event = threading.Event()

    class CancellingSource(MemoryContentSource):
        def read(self, rel):
            event.set()
            return super().read(rel)

    builder = CollectionBuilder([CancellingSource(SCENARIO)], cancel_event=event)
    with pytest.raises(BuildCancelledError, match="1 of 3"):
        builder.build()


def test_unreadable_files_are_per_file_errors(tmp_path):
    (tmp_path / "good.md").write_text("---\ntitle: Good\n---\n", encoding="utf-8")
    (tmp_path / "binary.md").write_bytes(b"---\ntitle: \xff\xfe\n---\n")

    class FailingSource(MemoryContentSource):
        def read(self, rel):
            if rel == PurePosixPath("gone.md"):
                raise PermissionError("denied")
            return super().read(rel)

    _, errors = CollectionBuilder([FileContentSource(tmp_path)]).build()
    assert len(errors) == 1
    assert isinstance(errors[0], UnreadableFileError)
    assert errors[0].source == "binary.md"

    source = FailingSource({"gone.md": "", "ok.md": "---\ntitle: Ok\n---\n"})
    collection, errors = CollectionBuilder([source]).build()
    assert list(collection) == ["ok"]
    assert isinstance(errors[0], UnreadableFileError)
    assert "denied" in errors[0].message


def test_builder_requires_a_source():
    with pytest.raises(ValueError):
        CollectionBuilder([])
