"""Heuristic for naming the repository a scanned file belongs to."""

from __future__ import annotations

import os
from typing import Sequence

ROOT_REPO_NAME = "(root)"


def _split(path: str) -> list[str]:
    return path.replace("\\", "/").split("/")


def repo_from_path(full_path: str, roots: Sequence[str]) -> str:
    """Return the first path segment beneath the first include root containing ``full_path``.

    Roots are compared case-insensitively and only on whole segments, so
    ``/src/app`` does not claim ``/src/application``. Files outside every root
    fall back to the third separator-delimited segment (``/home/user/x`` ->
    ``user``), or the last segment for shallow paths.
    """
    normalised = full_path.replace("\\", "/")
    lowered = normalised.casefold()
    for root in roots:
        root_norm = root.replace("\\", "/").rstrip("/")
        if not root_norm:
            continue
        prefix = root_norm.casefold()
        if not lowered.startswith(prefix):
            continue
        remainder = normalised[len(root_norm):]
        if remainder and not remainder.startswith("/"):
            continue
        remainder = remainder.lstrip("/")
        if not remainder:
            return ROOT_REPO_NAME
        return remainder.split("/")[0]

    parts = _split(os.fspath(full_path))
    return parts[2] if len(parts) >= 3 else parts[-1]


__all__ = ["ROOT_REPO_NAME", "repo_from_path"]
