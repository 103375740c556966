"""Report writers that render a ScanResult to disk."""

from __future__ import annotations

from pathlib import Path
from typing import List

from ..constants import RAW_CSV_FILENAME, SUMMARY_FILENAME, WORD_MAP_FILENAME
from ..models import ScanResult
from .csv_writer import write_raw_csv
from .markdown import write_summary, write_word_map


def write_reports(output_dir: Path, result: ScanResult, *, csv_only: bool = False) -> List[Path]:
    """Write the raw CSV and, unless ``csv_only``, the word map and summary."""
    output_dir.mkdir(parents=True, exist_ok=True)
    written = [write_raw_csv(output_dir / RAW_CSV_FILENAME, result.hits)]
    if not csv_only:
        written.append(write_word_map(output_dir / WORD_MAP_FILENAME, result.tiers, result.top_examples))
        written.append(write_summary(output_dir / SUMMARY_FILENAME, result.summaries))
    return written


__all__ = ["write_raw_csv", "write_reports", "write_summary", "write_word_map"]
