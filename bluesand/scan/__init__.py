"""Corpus discovery and concurrent anchor-term scanning."""

from .engine import ScanEngine, ScanOutcome, scan
from .matching import BucketClassifier, TermMatcher, extract_context
from .path_filter import PathFilter
from .walker import FileWalker, discover_files

__all__ = [
    "BucketClassifier",
    "FileWalker",
    "PathFilter",
    "ScanEngine",
    "ScanOutcome",
    "TermMatcher",
    "discover_files",
    "extract_context",
    "scan",
]
