"""Concurrent per-file scanning of the corpus for anchor terms."""

from __future__ import annotations

import os
import threading
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import Callable, Dict, Iterator, List, Optional, Sequence, Tuple

from ..logging import get_logger
from ..models import HitRecord
from .matching import BucketClassifier, TermMatcher, extract_context
from .repo import repo_from_path

logger = get_logger("scan.engine")

ProgressSink = Callable[[int, int], None]

BINARY_PROBE_BYTES = 8192
MAX_PROGRESS_STEP = 250
# How often the coordinating thread rechecks the cancel event while files are in flight.
CANCEL_POLL_SECONDS = 0.05


@dataclass(frozen=True)
class ScanOutcome:
    """Hits collected by a scan plus how far it got."""

    hits: Tuple[HitRecord, ...]
    processed: int
    total: int
    cancelled: bool = False


def progress_step(total: int) -> int:
    """Notification interval: roughly every 0.5% of the corpus, at most every 250 files."""
    return max(1, min(MAX_PROGRESS_STEP, total // 200))


def read_text(path: str) -> Optional[str]:
    """Read ``path`` as UTF-8 without raising on invalid bytes; None for binary content."""
    with open(path, "rb") as handle:
        data = handle.read()
    if b"\x00" in data[:BINARY_PROBE_BYTES]:
        return None
    return data.decode("utf-8-sig", errors="replace")


class ScanEngine:
    """Scans files in parallel, producing one HitRecord per matched (file, term) pair."""

    def __init__(
        self,
        matcher: TermMatcher,
        classifier: BucketClassifier,
        *,
        roots: Sequence[str] = (),
        max_parallelism: Optional[int] = None,
    ) -> None:
        self.matcher = matcher
        self.classifier = classifier
        self.roots = list(roots)
        self.max_parallelism = max_parallelism if max_parallelism and max_parallelism > 0 else None

    @property
    def workers(self) -> int:
        return self.max_parallelism or os.cpu_count() or 1

    def scan_file(self, path: str) -> List[HitRecord]:
        """Scan a single file. Any failure skips the file rather than the run."""
        try:
            text = read_text(path)
        except OSError as exc:
            logger.debug("Skipping unreadable file %s: %s", path, exc)
            return []
        if not text:
            return []

        try:
            return list(self._records_for(path, text))
        except Exception as exc:  # pragma: no cover - per-file best effort
            logger.debug("Skipping %s after scan failure: %s", path, exc)
            return []

    def _records_for(self, path: str, text: str) -> Iterator[HitRecord]:
        bucket = self.classifier.classify(text)
        repo: Optional[str] = None
        extension = os.path.splitext(path)[1].lower()
        for term, match in self.matcher.iter_matches(text):
            if repo is None:
                repo = repo_from_path(path, self.roots)
            yield HitRecord(
                term=term,
                repo=repo,
                file_path=path,
                extension=extension,
                bucket=bucket,
                frequency=match.count,
                context=extract_context(text, match.first_index),
            )

    def scan(
        self,
        files: Sequence[str],
        *,
        progress: ProgressSink | None = None,
        cancel_event: threading.Event | None = None,
    ) -> ScanOutcome:
        """Scan ``files`` with at most ``workers`` threads.

        Each worker returns its own record list; results are merged on the calling
        thread, so the only shared state is the executor's queue. When
        ``cancel_event`` is set no further files are submitted and queued files
        that have not started are cancelled. Running files finish, and the
        partial result is returned with ``cancelled=True``.
        """
        total = len(files)
        if total == 0:
            if progress is not None:
                progress(0, 0)
            return ScanOutcome(hits=(), processed=0, total=0)

        step = progress_step(total)
        workers = min(self.workers, total)
        # Bounded in-flight window so cancellation stops dispatch promptly.
        window = workers * 2
        results: List[Optional[List[HitRecord]]] = [None] * total
        processed = 0
        next_index = 0

        def _cancelled() -> bool:
            return cancel_event is not None and cancel_event.is_set()

        logger.debug("Scanning %d files with %d workers", total, workers)
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="bluesand-scan") as executor:
            pending: Dict[Future[List[HitRecord]], int] = {}

            def _fill() -> None:
                nonlocal next_index
                while len(pending) < window and next_index < total and not _cancelled():
                    future = executor.submit(self.scan_file, files[next_index])
                    pending[future] = next_index
                    next_index += 1

            _fill()
            while pending:
                done, _ = wait(pending, timeout=CANCEL_POLL_SECONDS, return_when=FIRST_COMPLETED)
                for future in done:
                    index = pending.pop(future)
                    results[index] = future.result()
                    processed += 1
                    if progress is not None and (processed % step == 0 or processed == total):
                        progress(processed, total)
                if _cancelled():
                    for future in [queued for queued in pending if queued.cancel()]:
                        del pending[future]
                _fill()

        cancelled = processed < total
        if cancelled:
            logger.info("Scan cancelled after %d of %d files", processed, total)
            if progress is not None and processed % step != 0:
                progress(processed, total)

        hits = tuple(record for batch in results if batch for record in batch)
        return ScanOutcome(hits=hits, processed=processed, total=total, cancelled=cancelled)


def scan(
    files: Sequence[str],
    matcher: TermMatcher,
    classifier: BucketClassifier,
    *,
    roots: Sequence[str] = (),
    max_parallelism: Optional[int] = None,
    progress: ProgressSink | None = None,
    cancel_event: threading.Event | None = None,
) -> ScanOutcome:
    """Convenience wrapper building a ScanEngine for a single run."""
    engine = ScanEngine(matcher, classifier, roots=roots, max_parallelism=max_parallelism)
    return engine.scan(files, progress=progress, cancel_event=cancel_event)


__all__ = [
    "BINARY_PROBE_BYTES",
    "ProgressSink",
    "ScanEngine",
    "ScanOutcome",
    "progress_step",
    "read_text",
    "scan",
]
