"""Raw hit export as RFC 4180 CSV."""

from __future__ import annotations

import csv
from pathlib import Path
from typing import Iterable

from ..models import HitRecord

RAW_HEADER = ("Term", "Repo", "File", "Ext", "Bucket", "Frequency", "Context")


def write_raw_csv(path: Path, hits: Iterable[HitRecord]) -> Path:
    """Write one row per hit, sorted by term then repo."""
    ordered = sorted(hits, key=lambda hit: (hit.term, hit.repo))
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8", newline="") as handle:
        writer = csv.writer(handle, quoting=csv.QUOTE_MINIMAL, lineterminator="\r\n")
        writer.writerow(RAW_HEADER)
        for hit in ordered:
            writer.writerow(
                (
                    hit.term,
                    hit.repo,
                    hit.file_path,
                    hit.extension,
                    hit.bucket.value,
                    hit.frequency,
                    hit.context,
                )
            )
    return path


__all__ = ["RAW_HEADER", "write_raw_csv"]
