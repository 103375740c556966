"""End-to-end tests for bluesand.coordinator."""

from __future__ import annotations

import threading

import pytest

from bluesand.config import ConfigError
from bluesand.coordinator import ProcessingOptions, ScanCoordinator
from bluesand.models import Bucket, Tier
from tests._fixtures.corpus_builder import CorpusBuilder


def _corpus(corpus_builder: CorpusBuilder) -> None:
    corpus_builder.write(
        {
            "alpha/docs/plan.md": """
                # Roadmap
                Crest work is planned. Crest again.
                """,
            "alpha/src/app.py": """
                def crest():
                    return "Crest Slopes"
                """,
            "beta/notes.md": "Slopes and crest in the roadmap; def sketch\n",
            "beta/bin/out.md": "Crest Crest Crest Crest\n",
            "beta/skip.txt": "Crest\n",
        }
    )


def test_full_scan_produces_hits_tiers_and_summaries(corpus_builder: CorpusBuilder) -> None:
    _corpus(corpus_builder)
    config = corpus_builder.config(
        anchor_terms=("Crest", "Slopes", "Base"),
        exclude_dir_pattern=r"[\\/]bin([\\/]|$)",
    )

    result = corpus_builder.scan(config)

    assert result.files_scanned == 3
    assert result.cancelled is False
    assert all(hit.frequency >= 1 for hit in result.hits)
    assert all(isinstance(hit.bucket, Bucket) for hit in result.hits)
    assert not any("/bin/" in hit.file_path for hit in result.hits)

    by_file = {(hit.file_path.rsplit("/", 1)[-1], hit.term): hit for hit in result.hits}
    assert by_file[("plan.md", "Crest")].bucket is Bucket.PLANNED
    assert by_file[("plan.md", "Crest")].frequency == 2
    assert by_file[("app.py", "Crest")].bucket is Bucket.CODE
    assert by_file[("notes.md", "Slopes")].bucket is Bucket.OVERLAP
    assert by_file[("notes.md", "Slopes")].repo == "beta"

    assert [(t.term, t.total, t.tier) for t in result.tiers] == [
        ("Crest", 5, Tier.CREST),
        ("Slopes", 2, Tier.BASE),
    ]
    assert sum(t.total for t in result.tiers) == sum(h.frequency for h in result.hits)
    assert result.top_examples["crest"].frequency == 2
    assert {row.repo for row in result.summaries.top_repos} == {"alpha", "beta"}


def test_scan_is_idempotent(corpus_builder: CorpusBuilder) -> None:
    _corpus(corpus_builder)
    config = corpus_builder.config(anchor_terms=("Crest", "Slopes"))

    first = corpus_builder.scan(config, max_parallelism=4)
    second = corpus_builder.scan(config, max_parallelism=1)

    assert first.tiers == second.tiers
    assert sorted(first.hits, key=repr) == sorted(second.hits, key=repr)


def test_no_matches_is_an_empty_result(corpus_builder: CorpusBuilder) -> None:
    _corpus(corpus_builder)

    result = corpus_builder.scan(corpus_builder.config(anchor_terms=("Nowhere",)))

    assert result.is_empty
    assert result.tiers == []
    assert result.summaries.is_empty()


def test_oversized_files_are_excluded(corpus_builder: CorpusBuilder) -> None:
    corpus_builder.write({"alpha/small.md": "Crest\n", "alpha/huge.md": "Crest " * 200})

    result = corpus_builder.scan(
        corpus_builder.config(anchor_terms=("Crest",), max_file_size_bytes=100)
    )

    assert [hit.file_path.rsplit("/", 1)[-1] for hit in result.hits] == ["small.md"]
    assert result.tiers[0].total == 1


def test_root_ignore_file_and_config_rules_combine(corpus_builder: CorpusBuilder) -> None:
    corpus_builder.write(
        {
            ".bluesandignore": "**/drafts/**\n",
            "alpha/drafts/x.md": "Crest\n",
            "alpha/archive/y.md": "Crest\n",
            "alpha/live/z.md": "Crest\n",
        }
    )

    result = corpus_builder.scan(
        corpus_builder.config(anchor_terms=("Crest",), ignore_rules=("**/archive/**",))
    )

    assert [hit.file_path.rsplit("/", 1)[-1] for hit in result.hits] == ["z.md"]


def test_sample_limits_scanned_files(corpus_builder: CorpusBuilder) -> None:
    corpus_builder.write({f"alpha/{index}.md": "Crest\n" for index in range(6)})

    result = corpus_builder.scan(corpus_builder.config(anchor_terms=("Crest",)), sample=2)

    assert result.files_scanned == 2
    assert result.tiers[0].total == 2


def test_output_dir_inside_root_is_not_scanned(corpus_builder: CorpusBuilder) -> None:
    corpus_builder.write({"alpha/a.md": "Crest\n", "docs/WORDMAP_TABLE.md": "Crest\n", "docs/b.md": "Crest\n"})

    result = corpus_builder.scan(
        corpus_builder.config(anchor_terms=("Crest",)), output_dir=corpus_builder.path("docs")
    )

    assert result.files_scanned == 1


def test_invalid_config_raises_before_scanning(corpus_builder: CorpusBuilder) -> None:
    config = corpus_builder.config(crest_threshold=0.5, slopes_threshold=0.8)

    with pytest.raises(ConfigError):
        corpus_builder.scan(config)


def test_relative_root_still_names_repos(
    corpus_builder: CorpusBuilder, monkeypatch: pytest.MonkeyPatch
) -> None:
    corpus_builder.write({"alpha/a.md": "Crest\n", "beta/nested/b.md": "Crest\n"})
    monkeypatch.chdir(corpus_builder.path().parent)

    result = corpus_builder.scan(
        corpus_builder.config(include_roots=("corpus",), anchor_terms=("Crest",))
    )

    assert sorted(hit.repo for hit in result.hits) == ["alpha", "beta"]


def test_root_with_parent_segments_still_names_repos(corpus_builder: CorpusBuilder) -> None:
    corpus_builder.write({"alpha/a.md": "Crest\n"})
    root = corpus_builder.path("alpha") / ".." / ".." / "corpus"

    result = corpus_builder.scan(
        corpus_builder.config(include_roots=(str(root),), anchor_terms=("Crest",))
    )

    assert [hit.repo for hit in result.hits] == ["alpha"]


def test_progress_sink_and_cancel_event_are_forwarded(corpus_builder: CorpusBuilder) -> None:
    corpus_builder.write({f"alpha/{index}.md": "Crest\n" for index in range(4)})
    events: list[tuple[int, int]] = []
    cancel = threading.Event()
    cancel.set()

    result = ScanCoordinator().execute(
        corpus_builder.config(anchor_terms=("Crest",)),
        ProcessingOptions(show_progress=True),
        progress=lambda done, total: events.append((done, total)),
        cancel_event=cancel,
    )

    assert result.cancelled is True
    assert result.hits == ()
    assert events == []

    result = ScanCoordinator().execute(
        corpus_builder.config(anchor_terms=("Crest",)),
        ProcessingOptions(show_progress=True),
        progress=lambda done, total: events.append((done, total)),
    )
    assert events[-1] == (4, 4)
    assert result.tiers[0].total == 4
