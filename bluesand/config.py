"""Configuration loading for bluesand (bluesand.yaml)."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import yaml

from .logging import get_logger

DEFAULT_CONFIG_PATH = Path("config") / "bluesand.yaml"
DEFAULT_CREST_THRESHOLD = 0.90
DEFAULT_SLOPES_THRESHOLD = 0.60
IGNORE_FILENAME = ".bluesandignore"

_BYTES_PER_MB = 1024 * 1024


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be loaded or is invalid."""


@dataclass(frozen=True)
class ScanConfig:
    """Validated, read-only settings for a single scan run."""

    include_roots: Tuple[str, ...]
    extensions: Tuple[str, ...]
    anchor_terms: Tuple[str, ...]
    exclude_dir_pattern: Optional[str] = None
    exclude_file_pattern: Optional[str] = None
    planned_hint_pattern: Optional[str] = None
    code_hint_pattern: Optional[str] = None
    crest_threshold: float = DEFAULT_CREST_THRESHOLD
    slopes_threshold: float = DEFAULT_SLOPES_THRESHOLD
    max_file_size_bytes: Optional[int] = None
    ignore_rules: Tuple[str, ...] = ()


def load_config(config_path: Path | str = DEFAULT_CONFIG_PATH) -> ScanConfig:
    """Load and validate configuration from disk."""
    if not str(config_path).strip():
        raise ConfigError("Config path is empty.")
    path = Path(config_path).expanduser()
    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    data = _read_config(path)
    if not isinstance(data, dict):
        raise ConfigError(f"{path.name} must contain a mapping at the root")

    crest = _as_float(data.get("crest_threshold"))
    slopes = _as_float(data.get("slopes_threshold"))
    include_roots = [
        _expand_path(item) for item in _as_str_list(data.get("include_paths"), key="include_paths")
    ]

    config = ScanConfig(
        include_roots=tuple(root for root in include_roots if root),
        extensions=tuple(
            normalize_extensions(_as_str_list(data.get("extensions"), key="extensions"))
        ),
        anchor_terms=tuple(
            normalize_terms(_as_str_list(data.get("anchor_terms"), key="anchor_terms"))
        ),
        exclude_dir_pattern=_as_pattern(data.get("exclude_dir_regex")),
        exclude_file_pattern=_as_pattern(data.get("exclude_file_regex")),
        planned_hint_pattern=_as_pattern(data.get("planned_hints_regex")),
        code_hint_pattern=_as_pattern(data.get("code_hints_regex")),
        crest_threshold=crest if crest is not None and crest > 0 else DEFAULT_CREST_THRESHOLD,
        slopes_threshold=slopes if slopes is not None and slopes > 0 else DEFAULT_SLOPES_THRESHOLD,
        max_file_size_bytes=_resolve_size_cap(data),
        ignore_rules=tuple(
            _collect_ignore_rules(
                _as_str_list(data.get("exclusion_patterns"), key="exclusion_patterns"),
                _as_str_list(data.get("exclusion_files"), key="exclusion_files"),
                base_dir=path.resolve().parent,
            )
        ),
    )
    validate_config(config, source=str(path))
    return config


def validate_config(config: ScanConfig, *, source: str = "config") -> None:
    """Raise ConfigError when the configuration cannot drive a scan."""
    if not config.include_roots:
        raise ConfigError(f"Config {source} has no include_paths.")
    if not config.extensions:
        raise ConfigError(f"Config {source} has no extensions.")
    if not config.anchor_terms:
        raise ConfigError(f"Config {source} has no anchor_terms.")
    if config.crest_threshold <= 0 or config.crest_threshold > 1:
        raise ConfigError(f"crest_threshold must be in (0,1]: {config.crest_threshold}")
    if config.slopes_threshold < 0 or config.slopes_threshold >= config.crest_threshold:
        raise ConfigError(
            f"slopes_threshold must be >= 0 and < crest_threshold ({config.crest_threshold})."
        )


def normalize_extensions(values: Iterable[str]) -> List[str]:
    """Return lower-cased, dot-prefixed, de-duplicated extensions ("*.MD" -> ".md")."""
    seen: Dict[str, None] = {}
    for value in values:
        if value is None:
            continue
        ext = value.strip().lstrip("*").strip().lower()
        if not ext or ext == ".":
            continue
        if not ext.startswith("."):
            ext = f".{ext}"
        seen.setdefault(ext, None)
    return list(seen)


def normalize_terms(values: Iterable[str]) -> List[str]:
    """Drop blank terms and collapse case-insensitive duplicates, keeping first spelling."""
    terms: List[str] = []
    seen: set[str] = set()
    for value in values:
        if value is None:
            continue
        term = value.strip()
        if not term:
            continue
        key = term.casefold()
        if key in seen:
            continue
        seen.add(key)
        terms.append(term)
    return terms


def read_ignore_file(path: Path) -> List[str]:
    """Return the raw lines of an ignore file."""
    return path.read_text(encoding="utf-8-sig").splitlines()


def _read_config(path: Path) -> Any:
    try:
        text = path.read_text(encoding="utf-8-sig")
    except OSError as exc:
        raise ConfigError(f"Could not read config file {path}: {exc}") from exc
    if not text.strip():
        return {}

    try:
        loaded = yaml.safe_load(text)
    except yaml.MarkedYAMLError as exc:
        mark = exc.problem_mark
        where = f" (at line {mark.line + 1}, col {mark.column + 1})" if mark is not None else ""
        raise ConfigError(f"YAML parse error in {path}{where}: {exc.problem}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"YAML parse error in {path}: {exc}") from exc
    return loaded if loaded is not None else {}


def _collect_ignore_rules(
    patterns: Sequence[str], files: Sequence[str], *, base_dir: Path
) -> List[str]:
    logger = get_logger("config")
    lines = list(patterns)
    for entry in files:
        candidate = Path(_expand_path(entry))
        if not candidate.is_absolute():
            candidate = base_dir / candidate
        if not candidate.is_file():
            logger.debug("Ignore file %s does not exist; skipping", candidate)
            continue
        try:
            lines.extend(read_ignore_file(candidate))
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Could not read ignore file %s: %s", candidate, exc)
    return lines


def _resolve_size_cap(data: Dict[str, Any]) -> Optional[int]:
    max_bytes = _as_int(data.get("max_file_bytes"))
    if max_bytes is not None and max_bytes > 0:
        return max_bytes
    max_mb = _as_float(data.get("max_file_mb"))
    if max_mb is not None and max_mb > 0:
        return int(max_mb * _BYTES_PER_MB)
    return None


def _expand_path(value: str) -> str:
    return os.path.expanduser(os.path.expandvars(value.strip()))


def _as_pattern(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    return value if value.strip() else None


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_str_list(value: Any, *, key: str = "value") -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if not isinstance(value, Sequence):
        return []
    items: List[str] = []
    for item in value:
        # YAML 1.1 reads unquoted yes/no/on/off as booleans.
        if isinstance(item, bool):
            get_logger("config").warning(
                "Ignoring boolean entry %r in %s; quote it to use it as text", item, key
            )
            continue
        if isinstance(item, (str, int, float)):
            items.append(str(item))
    return items


__all__ = [
    "ConfigError",
    "DEFAULT_CONFIG_PATH",
    "IGNORE_FILENAME",
    "ScanConfig",
    "load_config",
    "normalize_extensions",
    "normalize_terms",
    "validate_config",
]
