"""Core data models shared across bluesand components."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Tuple


class Bucket(str, Enum):
    """Coarse content classification derived from whole-file hint patterns."""

    PLANNED = "Planned"
    CODE = "Code"
    OVERLAP = "Overlap"
    UNKNOWN = "Unknown"

    def __str__(self) -> str:
        return self.value


class Tier(str, Enum):
    """Relative-prominence band assigned to an anchor term."""

    CREST = "Crest"
    SLOPES = "Slopes"
    BASE = "Base"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class HitRecord:
    """One (file, anchor term) pair with at least one match."""

    term: str
    repo: str
    file_path: str
    extension: str
    bucket: Bucket
    frequency: int
    context: str


@dataclass(frozen=True)
class TermTier:
    """Aggregated total, normalised score and tier for an anchor term."""

    term: str
    total: int
    score: float
    tier: Tier


@dataclass(frozen=True)
class BucketCount:
    bucket: Bucket
    items: int


@dataclass(frozen=True)
class TierCount:
    tier: Tier
    terms: int


@dataclass(frozen=True)
class RepoCount:
    repo: str
    items: int


@dataclass
class ScanSummaries:
    """Derived presentation tables computed from the full hit set."""

    buckets: List[BucketCount] = field(default_factory=list)
    tiers: List[TierCount] = field(default_factory=list)
    top_repos: List[RepoCount] = field(default_factory=list)
    top_terms: List[TermTier] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.buckets or self.tiers or self.top_repos or self.top_terms)


@dataclass
class ScanResult:
    """In-memory bundle handed to report writers."""

    hits: Tuple[HitRecord, ...]
    tiers: List[TermTier]
    summaries: ScanSummaries
    top_examples: Dict[str, HitRecord] = field(default_factory=dict)
    files_scanned: int = 0
    cancelled: bool = False

    @property
    def is_empty(self) -> bool:
        """True when no anchor term matched anywhere in the corpus."""
        return not self.hits
