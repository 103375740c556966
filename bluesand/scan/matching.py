"""Anchor-term matching, bucket classification and context extraction.

Compiled ``re.Pattern`` objects are immutable once built, so a single
``TermMatcher`` and ``BucketClassifier`` instance is shared by every worker
thread without locking.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, Iterator, List, Mapping, Optional, Pattern, Sequence, Tuple

from ..models import Bucket
from .path_filter import compile_user_pattern

CONTEXT_MAX_LENGTH = 240

_WHITESPACE_RE = re.compile(r"\s+")

_BUCKET_TABLE: Mapping[Tuple[bool, bool], Bucket] = {
    (True, True): Bucket.OVERLAP,
    (True, False): Bucket.PLANNED,
    (False, True): Bucket.CODE,
    (False, False): Bucket.UNKNOWN,
}


@dataclass(frozen=True)
class TermMatch:
    """Occurrences of one anchor term within a text."""

    count: int
    first_index: Optional[int]


class TermMatcher:
    """Holds one case-insensitive literal pattern per anchor term."""

    def __init__(self, terms: Sequence[str]) -> None:
        self._patterns: Dict[str, Pattern[str]] = {}
        seen: set[str] = set()
        for term in terms:
            if term is None or not term.strip():
                continue
            key = term.casefold()
            if key in seen:
                continue
            seen.add(key)
            self._patterns[term] = re.compile(re.escape(term), re.IGNORECASE)

    @property
    def terms(self) -> List[str]:
        """Anchor terms in declaration order."""
        return list(self._patterns)

    def __len__(self) -> int:
        return len(self._patterns)

    def find(self, text: str, term: str) -> TermMatch:
        """Count non-overlapping occurrences of ``term`` and locate the first one."""
        pattern = self._patterns.get(term)
        if pattern is None:
            raise KeyError(f"Unknown anchor term: {term!r}")
        count = 0
        first_index: Optional[int] = None
        for match in pattern.finditer(text):
            if first_index is None:
                first_index = match.start()
            count += 1
        return TermMatch(count=count, first_index=first_index)

    def iter_matches(self, text: str) -> Iterator[Tuple[str, TermMatch]]:
        """Yield ``(term, match)`` for every term present in ``text``, in declaration order."""
        for term in self._patterns:
            result = self.find(text, term)
            if result.count:
                yield term, result


class BucketClassifier:
    """Classifies whole-file text using the planned and code hint patterns."""

    def __init__(
        self,
        planned_hint_pattern: Optional[str] = None,
        code_hint_pattern: Optional[str] = None,
    ) -> None:
        self._planned = compile_user_pattern(planned_hint_pattern, label="planned_hints_regex")
        self._code = compile_user_pattern(code_hint_pattern, label="code_hints_regex")

    def classify(self, text: str) -> Bucket:
        is_planned = self._planned is not None and self._planned.search(text) is not None
        is_code = self._code is not None and self._code.search(text) is not None
        return _BUCKET_TABLE[(is_planned, is_code)]


def extract_context(text: str, index: Optional[int], max_length: int = CONTEXT_MAX_LENGTH) -> str:
    """Return the line enclosing ``index`` with whitespace collapsed, capped at ``max_length``."""
    if index is None or index < 0 or index >= len(text):
        return ""
    start = text.rfind("\n", 0, index) + 1
    end = text.find("\n", index)
    if end < 0:
        end = len(text)
    line = _WHITESPACE_RE.sub(" ", text[start:end]).strip()
    return line[:max_length]


__all__ = [
    "BucketClassifier",
    "CONTEXT_MAX_LENGTH",
    "TermMatch",
    "TermMatcher",
    "extract_context",
]
