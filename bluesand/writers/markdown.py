"""Markdown word map and summary reports."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Sequence

from ..models import HitRecord, ScanSummaries, TermTier


def escape_cell(value: str) -> str:
    """Keep table cells on one row and stop pipes from splitting columns."""
    return value.replace("\r", " ").replace("\n", " ").replace("|", "\\|")


def format_score(score: float) -> str:
    """Render up to three decimals without trailing zeros (``1.0`` -> ``1``)."""
    text = f"{score:.3f}".rstrip("0").rstrip(".")
    return text or "0"


def render_word_map(tiers: Sequence[TermTier], examples: Dict[str, HitRecord]) -> str:
    lines = [
        "# BlueSand Word Map",
        "",
        "| Term | Tier | Total | Top Example |",
        "|---|---:|---:|---|",
    ]
    for tier in tiers:
        example = examples.get(tier.term.casefold())
        context = escape_cell(example.context) if example is not None else ""
        lines.append(f"| {escape_cell(tier.term)} | {tier.tier.value} | {tier.total} | {context} |")
    return "\n".join(lines) + "\n"


def render_summary(summaries: ScanSummaries) -> str:
    lines: List[str] = ["# BlueSand Summary", ""]

    lines.extend(["## Bucket Distribution", "", "| Bucket | Items |", "|---|---:|"])
    lines.extend(f"| {row.bucket.value} | {row.items} |" for row in summaries.buckets)
    lines.append("")

    lines.extend(["## Tier Distribution (per term)", "", "| Tier | Terms |", "|---|---:|"])
    lines.extend(f"| {row.tier.value} | {row.terms} |" for row in summaries.tiers)
    lines.append("")

    lines.extend(["## Top Repos (by occurrences)", "", "| Repo | Items |", "|---|---:|"])
    lines.extend(f"| {escape_cell(row.repo)} | {row.items} |" for row in summaries.top_repos)
    lines.append("")

    lines.extend(["## Top Terms", "", "| Term | Tier | Total | Score |", "|---|---|---:|---:|"])
    lines.extend(
        f"| {escape_cell(row.term)} | {row.tier.value} | {row.total} | {format_score(row.score)} |"
        for row in summaries.top_terms
    )
    return "\n".join(lines) + "\n"


def _write(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


def write_word_map(
    path: Path, tiers: Sequence[TermTier], examples: Dict[str, HitRecord]
) -> Path:
    return _write(path, render_word_map(tiers, examples))


def write_summary(path: Path, summaries: ScanSummaries) -> Path:
    return _write(path, render_summary(summaries))


__all__ = [
    "escape_cell",
    "format_score",
    "render_summary",
    "render_word_map",
    "write_summary",
    "write_word_map",
]
