"""
Tests for blob collection (traversal, exclusion, reading and chunking).
"""

import os
import pytest

from ctxsync.chunkers import LineChunker
from ctxsync.config import DEFAULT_EXCLUDE_PATTERNS, DEFAULT_TEXT_EXTENSIONS
from ctxsync.encoding import EncodingReader
from ctxsync.scanner import BlobCollector


def make_collector(**kwargs) -> BlobCollector:
    kwargs.setdefault("exclude_patterns", DEFAULT_EXCLUDE_PATTERNS)
    return BlobCollector(
        EncodingReader(DEFAULT_TEXT_EXTENSIONS),
        kwargs.pop("chunker", LineChunker(max_lines_per_blob=800)),
        **kwargs,
    )


def test_collects_text_files_in_path_order(sample_codebase):
    """Included text files are collected, sorted by relative path."""
    result = make_collector().collect(sample_codebase)

    assert [blob.path for blob in result.blobs] == ["README.md", "src/main.py", "src/utils.py"]
    assert result.files_read == 3


def test_gitignore_and_excludes_applied(sample_codebase):
    """Ignored files, excluded directories and non-text files are left out."""
    result = make_collector().collect(sample_codebase)
    paths = {blob.path for blob in result.blobs}

    assert "debug.log" not in paths
    assert "generated/schema.py" not in paths
    assert "node_modules/lib/index.js" not in paths
    assert "logo.png" not in paths
    assert result.excluded >= 3


def test_blob_content_matches_file(sample_codebase):
    """Blob content is the decoded file content."""
    result = make_collector().collect(sample_codebase)
    readme = next(blob for blob in result.blobs if blob.path == "README.md")

    assert readme.content == (sample_codebase / "README.md").read_text()


def test_large_files_chunked(sample_project):
    """Files over the line limit are split into numbered chunks."""
    result = make_collector().collect(sample_project)

    assert [blob.path for blob in result.blobs] == [
        "a.txt",
        "b.txt#chunk1of3",
        "b.txt#chunk2of3",
        "b.txt#chunk3of3",
    ]


def test_unreadable_file_skipped(project_dir):
    """Binary content under a text extension is skipped and counted."""
    (project_dir / "good.txt").write_text("hello\n")
    (project_dir / "bad.txt").write_bytes(b"\x00\x01\x02\x03")

    result = make_collector().collect(project_dir)

    assert [blob.path for blob in result.blobs] == ["good.txt"]
    assert result.files_skipped == 1


def test_oversized_file_skipped(project_dir):
    """Files above max_file_size are skipped and counted."""
    (project_dir / "small.txt").write_text("x\n")
    (project_dir / "huge.txt").write_text("y" * 2048)

    result = make_collector(max_file_size=1024).collect(project_dir)

    assert [blob.path for blob in result.blobs] == ["small.txt"]
    assert result.files_skipped == 1


def test_empty_project(project_dir):
    """A project without text files yields no blobs."""
    (project_dir / "image.png").write_bytes(b"\x89PNG")

    result = make_collector().collect(project_dir)

    assert result.blobs == []
    assert result.files_read == 0


def test_collection_is_deterministic(sample_codebase):
    """Two collections of an unchanged tree are identical."""
    collector = make_collector(max_workers=4)

    assert collector.collect(sample_codebase).blobs == collector.collect(sample_codebase).blobs


def test_progress_events(sample_codebase):
    """One collect event is emitted per candidate file."""
    events = []

    make_collector(progress_callback=events.append).collect(sample_codebase)

    assert [event.stage for event in events] == ["collect"] * 3
    assert events[-1].current == events[-1].total == 3


@pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks not supported")
def test_symlink_outside_root_skipped(temp_dir, project_dir):
    """Symlinks resolving outside the project are not followed."""
    outside = temp_dir / "outside.txt"
    outside.write_text("secret\n")
    (project_dir / "inside.txt").write_text("visible\n")
    os.symlink(outside, project_dir / "link.txt")

    result = make_collector().collect(project_dir)

    assert [blob.path for blob in result.blobs] == ["inside.txt"]


@pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks not supported")
def test_symlink_inside_root_collected(project_dir):
    """File symlinks that stay inside the project are read under the link path."""
    (project_dir / "real.txt").write_text("shared\n")
    os.symlink(project_dir / "real.txt", project_dir / "alias.txt")

    result = make_collector().collect(project_dir)

    assert [blob.path for blob in result.blobs] == ["alias.txt", "real.txt"]


@pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks not supported")
def test_directory_symlink_not_followed(project_dir):
    """Directory symlinks are not descended into."""
    src = project_dir / "src"
    src.mkdir()
    (src / "main.py").write_text("print('hi')\n")
    os.symlink(src, project_dir / "src_link", target_is_directory=True)

    result = make_collector().collect(project_dir)

    assert [blob.path for blob in result.blobs] == ["src/main.py"]
