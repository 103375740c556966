"""Tests for bluesand.scan.walker."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from bluesand.scan.path_filter import PathFilter
from bluesand.scan.walker import FileWalker, discover_files
from tests._fixtures.corpus_builder import CorpusBuilder


def _relative(paths, root: Path) -> set[str]:
    return {Path(path).relative_to(root).as_posix() for path in paths}


def test_walk_filters_by_extension_case_insensitively(corpus_builder: CorpusBuilder) -> None:
    corpus_builder.write(
        {
            "alpha/README.MD": "TODO\n",
            "alpha/src/app.py": "TODO\n",
            "alpha/src/app.js": "TODO\n",
            "beta/notes.txt": "TODO\n",
        }
    )

    walker = FileWalker([str(corpus_builder.path())], [".md", ".py"])

    assert _relative(walker, corpus_builder.path()) == {"alpha/README.MD", "alpha/src/app.py"}


def test_excluded_directories_are_pruned(
    corpus_builder: CorpusBuilder, monkeypatch: pytest.MonkeyPatch
) -> None:
    corpus_builder.write(
        {
            "alpha/bin/Debug/out.md": "TODO\n",
            "alpha/docs/guide.md": "TODO\n",
            "alpha/node_modules/pkg/readme.md": "TODO\n",
        }
    )
    path_filter = PathFilter(exclude_dir_pattern=r"[\\/](bin|node_modules)([\\/]|$)")
    visited: list[str] = []
    original_walk = os.walk

    def _recording_walk(top, *args, **kwargs):
        for dirpath, dirnames, filenames in original_walk(top, *args, **kwargs):
            visited.append(Path(dirpath).name)
            yield dirpath, dirnames, filenames

    monkeypatch.setattr("bluesand.scan.walker.os.walk", _recording_walk)

    files = list(FileWalker([str(corpus_builder.path())], [".md"], path_filter).walk())

    assert _relative(files, corpus_builder.path()) == {"alpha/docs/guide.md"}
    assert "bin" not in visited
    assert "Debug" not in visited
    assert "node_modules" not in visited


def test_missing_roots_are_skipped(corpus_builder: CorpusBuilder, tmp_path: Path) -> None:
    corpus_builder.write({"alpha/a.md": "TODO\n"})

    walker = FileWalker([str(tmp_path / "missing"), str(corpus_builder.path())], [".md"])

    assert _relative(walker, corpus_builder.path()) == {"alpha/a.md"}


def test_generated_reports_and_output_dir_are_skipped(corpus_builder: CorpusBuilder) -> None:
    corpus_builder.write(
        {
            "alpha/SUMMARY.md": "TODO\n",
            "alpha/wordmap_table.md": "TODO\n",
            "alpha/keep.md": "TODO\n",
            "reports/anything.md": "TODO\n",
        }
    )

    walker = FileWalker(
        [str(corpus_builder.path())],
        [".md", ".csv"],
        output_dir=corpus_builder.path("reports"),
    )

    assert _relative(walker, corpus_builder.path()) == {"alpha/keep.md"}


def test_file_pattern_ignore_rules_and_size_cap(corpus_builder: CorpusBuilder) -> None:
    corpus_builder.write(
        {
            "alpha/site.min.md": "TODO\n",
            "alpha/vendor/lib.md": "TODO\n",
            "alpha/vendor/keep.md": "TODO\n",
            "alpha/big.md": "TODO " * 100,
            "alpha/small.md": "TODO\n",
        }
    )
    path_filter = PathFilter(
        exclude_file_pattern=r"\.min\.",
        ignore_lines=["**/vendor/**", "!**/vendor/keep.md"],
        max_file_size_bytes=64,
    )

    walker = FileWalker([str(corpus_builder.path())], [".md"], path_filter)

    assert _relative(walker, corpus_builder.path()) == {"alpha/vendor/keep.md", "alpha/small.md"}


def test_files_are_only_stat_checked_when_a_size_cap_is_set(
    corpus_builder: CorpusBuilder, monkeypatch: pytest.MonkeyPatch
) -> None:
    corpus_builder.write({"alpha/a.md": "TODO\n", "alpha/b.md": "TODO\n"})
    stat_calls: list[str] = []
    original_stat = Path.stat
    original_isfile = os.path.isfile

    def _recording_stat(self: Path, *args, **kwargs):
        stat_calls.append(self.name)
        return original_stat(self, *args, **kwargs)

    def _recording_isfile(path) -> bool:
        stat_calls.append(os.path.basename(os.fspath(path)))
        return original_isfile(path)

    monkeypatch.setattr(Path, "stat", _recording_stat)
    monkeypatch.setattr(os.path, "isfile", _recording_isfile)

    uncapped = list(FileWalker([str(corpus_builder.path())], [".md"]).walk())
    uncapped_calls = [name for name in stat_calls if name.endswith(".md")]
    stat_calls.clear()
    capped = list(
        FileWalker(
            [str(corpus_builder.path())], [".md"], PathFilter(max_file_size_bytes=1024)
        ).walk()
    )
    monkeypatch.undo()

    assert len(uncapped) == len(capped) == 2
    assert uncapped_calls == []
    assert sorted(name for name in stat_calls if name.endswith(".md")) == ["a.md", "b.md"]


def test_symlink_cycles_do_not_recurse(corpus_builder: CorpusBuilder) -> None:
    corpus_builder.write({"alpha/a.md": "TODO\n"})
    try:
        os.symlink(corpus_builder.path(), corpus_builder.path("alpha/loop"), target_is_directory=True)
    except (OSError, NotImplementedError):
        pytest.skip("symlinks are not available on this platform")

    files = list(FileWalker([str(corpus_builder.path())], [".md"]).walk())

    assert _relative(files, corpus_builder.path()) == {"alpha/a.md"}


def test_discover_files_respects_limit(corpus_builder: CorpusBuilder) -> None:
    corpus_builder.write({f"alpha/{index}.md": "TODO\n" for index in range(5)})
    walker = FileWalker([str(corpus_builder.path())], [".md"])

    assert len(discover_files(walker, limit=2)) == 2
    assert len(discover_files(walker)) == 5
