"""Path exclusion rules: directory/file regexes, glob ignore rules and size caps."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Pattern, Sequence

from ..logging import get_logger

logger = get_logger("scan.path_filter")

# Matches nothing; substituted for patterns that fail to compile.
NEVER_MATCH: Pattern[str] = re.compile(r"(?!)")


def compile_user_pattern(pattern: Optional[str], *, label: str) -> Optional[Pattern[str]]:
    """Compile a user-supplied regex case-insensitively, or NEVER_MATCH when malformed."""
    if pattern is None or not pattern.strip():
        return None
    try:
        return re.compile(pattern, re.IGNORECASE)
    except re.error as exc:
        logger.warning("Invalid %s pattern %r (%s); it will match nothing", label, pattern, exc)
        return NEVER_MATCH


def glob_to_regex(glob: str) -> Pattern[str]:
    """Translate an ignore glob into an anchored, case-insensitive regex.

    ``**`` spans any number of path segments, ``*`` stays inside one segment and
    ``?`` matches a single non-separator character. Everything else is literal.
    """
    parts: List[str] = ["^"]
    index = 0
    while index < len(glob):
        char = glob[index]
        if char == "*":
            if index + 1 < len(glob) and glob[index + 1] == "*":
                parts.append(".*")
                index += 1
            else:
                parts.append("[^/]*")
        elif char == "?":
            parts.append("[^/]")
        else:
            parts.append(re.escape(char))
        index += 1
    parts.append("$")
    return re.compile("".join(parts), re.IGNORECASE)


@dataclass(frozen=True)
class IgnoreRule:
    """A single glob ignore line; ``negate`` re-includes paths an earlier rule excluded."""

    pattern: str
    regex: Pattern[str]
    negate: bool

    def matches(self, path: str) -> bool:
        return self.regex.match(path) is not None


def parse_ignore_rules(lines: Iterable[str]) -> List[IgnoreRule]:
    """Parse ignore-file lines, skipping blanks and ``#`` comments."""
    rules: List[IgnoreRule] = []
    for raw_line in lines:
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        negate = line.startswith("!")
        pattern = line[1:].strip() if negate else line
        if not pattern:
            continue
        rules.append(IgnoreRule(pattern=pattern, regex=glob_to_regex(pattern), negate=negate))
    return rules


def to_match_path(path: str | os.PathLike[str]) -> str:
    """Normalise separators so rules written with ``/`` work on every platform."""
    return os.fspath(path).replace("\\", "/")


class PathFilter:
    """Decides whether directories and files are excluded from the corpus."""

    def __init__(
        self,
        *,
        exclude_dir_pattern: Optional[str] = None,
        exclude_file_pattern: Optional[str] = None,
        ignore_lines: Sequence[str] = (),
        max_file_size_bytes: Optional[int] = None,
    ) -> None:
        self._dir_regex = compile_user_pattern(exclude_dir_pattern, label="exclude_dir_regex")
        self._file_regex = compile_user_pattern(exclude_file_pattern, label="exclude_file_regex")
        self._rules = parse_ignore_rules(ignore_lines)
        self._max_size = max_file_size_bytes if max_file_size_bytes and max_file_size_bytes > 0 else None

    @property
    def rules(self) -> Sequence[IgnoreRule]:
        return tuple(self._rules)

    def is_dir_excluded(self, full_path: str | os.PathLike[str]) -> bool:
        if self._dir_regex is None:
            return False
        return self._dir_regex.search(os.fspath(full_path)) is not None

    def is_file_excluded(self, full_path: str | os.PathLike[str]) -> bool:
        path = os.fspath(full_path)
        if self._file_regex is not None and self._file_regex.search(path):
            return True
        return self.is_ignored(path)

    def is_ignored(self, full_path: str | os.PathLike[str]) -> bool:
        """Return True when the last matching ignore rule is a non-negated one."""
        target = to_match_path(full_path)
        ignored = False
        for rule in self._rules:
            if rule.matches(target):
                ignored = not rule.negate
        return ignored

    def is_too_large(self, full_path: str | os.PathLike[str]) -> bool:
        if self._max_size is None:
            return False
        try:
            return Path(full_path).stat().st_size > self._max_size
        except OSError:
            # Unstat-able files are left for the reader to skip.
            return False

    def is_excluded(self, full_path: str | os.PathLike[str]) -> bool:
        """Full exclusion check for a file path; the size check runs last."""
        if self.is_dir_excluded(full_path) or self.is_file_excluded(full_path):
            return True
        return self.is_too_large(full_path)


__all__ = [
    "IgnoreRule",
    "NEVER_MATCH",
    "PathFilter",
    "compile_user_pattern",
    "glob_to_regex",
    "parse_ignore_rules",
    "to_match_path",
]
