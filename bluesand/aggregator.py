"""Reduces hit records into tiered term totals and summary tables."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Hashable, Iterable, List, Sequence, Tuple, TypeVar

from .constants import TOP_REPO_LIMIT, TOP_TERM_LIMIT
from .models import (
    BucketCount,
    HitRecord,
    RepoCount,
    ScanSummaries,
    Tier,
    TermTier,
    TierCount,
)

K = TypeVar("K", bound=Hashable)

SCORE_DECIMALS = 3


@dataclass
class Aggregation:
    """Tiers, summaries and per-term top examples for one scan."""

    tiers: List[TermTier] = field(default_factory=list)
    summaries: ScanSummaries = field(default_factory=ScanSummaries)
    top_examples: Dict[str, HitRecord] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not self.tiers


def assign_tier(score: float, crest_threshold: float, slopes_threshold: float) -> Tier:
    if score >= crest_threshold:
        return Tier.CREST
    if score >= slopes_threshold:
        return Tier.SLOPES
    return Tier.BASE


def term_totals(hits: Iterable[HitRecord]) -> List[Tuple[str, int]]:
    """Sum frequencies per term (case-insensitive), ordered by total descending.

    Ties keep first-encountered order; the first spelling seen names the group.
    """
    names: Dict[str, str] = {}
    totals: Dict[str, int] = {}
    for hit in hits:
        key = hit.term.casefold()
        names.setdefault(key, hit.term)
        totals[key] = totals.get(key, 0) + hit.frequency
    ordered = sorted(totals.items(), key=lambda item: item[1], reverse=True)
    return [(names[key], total) for key, total in ordered]


def compute_tiers(
    hits: Iterable[HitRecord], crest_threshold: float, slopes_threshold: float
) -> List[TermTier]:
    totals = term_totals(hits)
    if not totals:
        return []
    max_total = totals[0][1]
    tiers: List[TermTier] = []
    for term, total in totals:
        score = round(total / max_total, SCORE_DECIMALS) if max_total > 0 else 0.0
        tiers.append(
            TermTier(
                term=term,
                total=total,
                score=score,
                tier=assign_tier(score, crest_threshold, slopes_threshold),
            )
        )
    return tiers


def top_examples(hits: Iterable[HitRecord]) -> Dict[str, HitRecord]:
    """Highest-frequency hit per term (keyed by casefolded term); ties keep the first seen."""
    best: Dict[str, HitRecord] = {}
    for hit in hits:
        key = hit.term.casefold()
        current = best.get(key)
        if current is None or hit.frequency > current.frequency:
            best[key] = hit
    return best


def _count_desc(keys: Iterable[K]) -> List[Tuple[K, int]]:
    counts: Dict[K, int] = {}
    for key in keys:
        counts[key] = counts.get(key, 0) + 1
    return sorted(counts.items(), key=lambda item: item[1], reverse=True)


def build_summaries(hits: Sequence[HitRecord], tiers: Sequence[TermTier]) -> ScanSummaries:
    """Bucket, tier, top-repo and top-term tables.

    Repo ties are broken by the order repos first appear in ``hits``.
    """
    if not hits:
        return ScanSummaries()
    return ScanSummaries(
        buckets=[BucketCount(bucket, items) for bucket, items in _count_desc(h.bucket for h in hits)],
        tiers=[TierCount(tier, terms) for tier, terms in _count_desc(t.tier for t in tiers)],
        top_repos=[
            RepoCount(repo, items) for repo, items in _count_desc(h.repo for h in hits)
        ][:TOP_REPO_LIMIT],
        top_terms=sorted(tiers, key=lambda t: t.total, reverse=True)[:TOP_TERM_LIMIT],
    )


def aggregate(
    hits: Sequence[HitRecord], crest_threshold: float, slopes_threshold: float
) -> Aggregation:
    """Return tiers and summaries; an empty hit set yields an empty Aggregation."""
    if not hits:
        return Aggregation()
    tiers = compute_tiers(hits, crest_threshold, slopes_threshold)
    return Aggregation(
        tiers=tiers,
        summaries=build_summaries(hits, tiers),
        top_examples=top_examples(hits),
    )


__all__ = [
    "Aggregation",
    "aggregate",
    "assign_tier",
    "build_summaries",
    "compute_tiers",
    "term_totals",
    "top_examples",
]
