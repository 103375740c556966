"""Corpus discovery: walks include roots and yields candidate files."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Sequence

from ..constants import REPORT_FILENAMES
from ..logging import get_logger
from .path_filter import PathFilter

logger = get_logger("scan.walker")


class FileWalker:
    """Lazily enumerates files under include roots, honouring PathFilter and extensions."""

    def __init__(
        self,
        roots: Sequence[str],
        extensions: Iterable[str],
        path_filter: PathFilter | None = None,
        *,
        output_dir: str | os.PathLike[str] | None = None,
    ) -> None:
        self.roots = list(roots)
        self.extensions = frozenset(ext.lower() for ext in extensions)
        self.path_filter = path_filter or PathFilter()
        self._output_dir = _normalise_dir(output_dir) if output_dir is not None else None

    def walk(self) -> Iterator[str]:
        """Yield absolute file paths; missing roots and unreadable entries are skipped."""
        for root in self.roots:
            root_path = Path(root).expanduser()
            if not root_path.is_dir():
                logger.debug("Include root %s does not exist; skipping", root)
                continue
            root_str = os.path.abspath(root_path)
            if self.path_filter.is_dir_excluded(root_str):
                logger.debug("Include root %s matches exclude_dir_regex; skipping", root_str)
                continue
            yield from self._walk_root(root_str)

    def __iter__(self) -> Iterator[str]:
        return self.walk()

    def _walk_root(self, root: str) -> Iterator[str]:
        def _on_error(error: OSError) -> None:
            logger.debug("Skipping unreadable path %s: %s", error.filename, error)

        # followlinks=False keeps symlinked directory cycles out of the walk.
        for dirpath, dirnames, filenames in os.walk(root, onerror=_on_error, followlinks=False):
            kept: List[str] = []
            for name in dirnames:
                full = os.path.join(dirpath, name)
                if self.path_filter.is_dir_excluded(full) or self._is_output_dir(full):
                    continue
                kept.append(name)
            dirnames[:] = kept

            for filename in filenames:
                full = os.path.join(dirpath, filename)
                if self._accepts(full, filename):
                    yield full

    def _accepts(self, full_path: str, filename: str) -> bool:
        if os.path.splitext(filename)[1].lower() not in self.extensions:
            return False
        if filename.lower() in REPORT_FILENAMES:
            return False
        if self.path_filter.is_dir_excluded(full_path) or self.path_filter.is_file_excluded(full_path):
            return False
        # Only stats when a size cap is configured.
        return not self.path_filter.is_too_large(full_path)

    def _is_output_dir(self, path: str) -> bool:
        return self._output_dir is not None and _normalise_dir(path) == self._output_dir


def _normalise_dir(path: str | os.PathLike[str]) -> str:
    return os.path.normcase(os.path.abspath(os.fspath(path))).rstrip("\\/")


def discover_files(walker: FileWalker, *, limit: Optional[int] = None) -> List[str]:
    """Materialise the walk, keeping only the first ``limit`` files when given."""
    files: List[str] = []
    for path in walker.walk():
        files.append(path)
        if limit and len(files) >= limit:
            break
    return files


__all__ = ["FileWalker", "discover_files"]
