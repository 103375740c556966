"""Pipeline orchestration for a full corpus scan."""

from __future__ import annotations

import os
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

from .aggregator import aggregate
from .config import (
    IGNORE_FILENAME,
    ScanConfig,
    normalize_extensions,
    normalize_terms,
    read_ignore_file,
    validate_config,
)
from .logging import get_logger
from .models import ScanResult
from .scan.engine import ProgressSink, ScanEngine
from .scan.matching import BucketClassifier, TermMatcher
from .scan.path_filter import PathFilter
from .scan.walker import FileWalker, discover_files


@dataclass
class ProcessingOptions:
    """Per-run knobs that are not part of the scan configuration."""

    output_dir: Optional[Path] = None
    max_parallelism: Optional[int] = None
    show_progress: bool = True
    sample: int = 0


class ScanCoordinator:
    """Walks the corpus, scans it concurrently and aggregates the hits.

    Writing or printing results is left to the caller.
    """

    def __init__(self) -> None:
        self.logger = get_logger("coordinator")

    def execute(
        self,
        config: ScanConfig,
        options: ProcessingOptions | None = None,
        *,
        progress: ProgressSink | None = None,
        cancel_event: threading.Event | None = None,
    ) -> ScanResult:
        validate_config(config)
        options = options or ProcessingOptions()
        roots = [root for root in config.include_roots if root and root.strip()]

        walker = self.build_walker(config, roots, output_dir=options.output_dir)
        files = discover_files(walker, limit=options.sample if options.sample > 0 else None)
        self.logger.info("Files to scan: %d", len(files))

        engine = ScanEngine(
            TermMatcher(normalize_terms(config.anchor_terms)),
            BucketClassifier(config.planned_hint_pattern, config.code_hint_pattern),
            roots=[os.path.abspath(os.path.expanduser(root)) for root in roots],
            max_parallelism=options.max_parallelism,
        )
        sink = progress if options.show_progress else None
        outcome = engine.scan(files, progress=sink, cancel_event=cancel_event)
        self.logger.debug(
            "Scanned %d/%d files, %d hit records", outcome.processed, outcome.total, len(outcome.hits)
        )

        aggregation = aggregate(outcome.hits, config.crest_threshold, config.slopes_threshold)
        return ScanResult(
            hits=outcome.hits,
            tiers=aggregation.tiers,
            summaries=aggregation.summaries,
            top_examples=aggregation.top_examples,
            files_scanned=outcome.processed,
            cancelled=outcome.cancelled,
        )

    def build_walker(
        self,
        config: ScanConfig,
        roots: Sequence[str],
        *,
        output_dir: Optional[Path] = None,
    ) -> FileWalker:
        path_filter = PathFilter(
            exclude_dir_pattern=config.exclude_dir_pattern,
            exclude_file_pattern=config.exclude_file_pattern,
            ignore_lines=[*config.ignore_rules, *self._root_ignore_lines(roots)],
            max_file_size_bytes=config.max_file_size_bytes,
        )
        return FileWalker(
            roots,
            normalize_extensions(config.extensions),
            path_filter,
            output_dir=output_dir,
        )

    def _root_ignore_lines(self, roots: Sequence[str]) -> List[str]:
        lines: List[str] = []
        for root in roots:
            candidate = Path(root).expanduser() / IGNORE_FILENAME
            if not candidate.is_file():
                continue
            try:
                lines.extend(read_ignore_file(candidate))
            except (OSError, UnicodeDecodeError) as exc:
                self.logger.warning("Could not read %s: %s", candidate, exc)
        return lines


__all__ = ["ProcessingOptions", "ScanCoordinator"]
