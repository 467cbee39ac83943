"""Load and expose the link/status vocabulary from YAML (with fallbacks).

Jira instances name the same relationship differently depending on locale and
admin customisation ("Inclusion", "consists of", "включает", ...). Every label
the pipeline reacts to is looked up here so a deployment can extend the lists
through ``timeline.yaml`` without code changes.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from types import MappingProxyType

import yaml

DEFAULT_VOCABULARY: dict[str, list[str]] = {
    # Parent lists child (outward side of the link)
    "inclusion_links": ["consists of", "includes", "Inclusion", "включает", "состоит из"],
    # Child lists parent (inward side of the link)
    "part_of_links": ["is part of", "является частью", "входит в состав"],
    "blocks_links": ["Blocks", "Блокирует"],
    "blocked_statuses": ["Blocked", "Заблокировано"],
    "unblocked_statuses": ["Unblocked", "Блокировка снята"],
    "flag_fields": ["Flagged"],
    "impediment_markers": ["Impediment"],
}

Vocabulary = Mapping[str, frozenset[str]]

_DEFAULT_PATH = Path(__file__).resolve().parent.parent.parent / "timeline.yaml"
_CACHE: dict[str, Vocabulary] = {}


def normalize_term(value: str | None) -> str:
    """Case-fold a label and collapse internal whitespace for comparison."""
    if not value:
        return ""
    return " ".join(str(value).split()).casefold()


def _freeze(data: dict[str, list[str]]) -> Vocabulary:
    return MappingProxyType({name: frozenset(normalize_term(t) for t in terms if t) for name, terms in data.items()})


def _resolve(base_path: str | Path | None) -> Path:
    if base_path is None:
        return _DEFAULT_PATH
    base = Path(base_path)
    return base / "timeline.yaml" if base.is_dir() else base


def _read(yaml_path: Path) -> Vocabulary:
    if not yaml_path.exists():
        return _freeze(DEFAULT_VOCABULARY)
    try:
        data = yaml.safe_load(yaml_path.read_text(encoding="utf-8")) or {}
        overrides = data.get("vocabulary", {}) or {}
        merged = {name: list(overrides.get(name) or terms) for name, terms in DEFAULT_VOCABULARY.items()}
        return _freeze(merged)
    except (OSError, yaml.YAMLError, AttributeError, TypeError) as exc:
        logging.getLogger(__name__).warning("Ignoring unreadable vocabulary file %s: %s", yaml_path, exc)
        return _freeze(DEFAULT_VOCABULARY)


def load_vocabulary(base_path: str | Path | None = None) -> Vocabulary:
    """Return the read-only vocabulary stored at ``base_path``.

    ``base_path`` may be a directory holding ``timeline.yaml`` or the YAML
    file itself; ``None`` means the project-level ``timeline.yaml``. Results
    are cached per resolved path, so loading a custom file never changes what
    other callers see.
    """
    yaml_path = _resolve(base_path)
    cache_key = str(yaml_path.resolve())
    if cache_key not in _CACHE:
        _CACHE[cache_key] = _read(yaml_path)
    return _CACHE[cache_key]


def reset_vocabulary() -> None:
    """Drop every cached vocabulary so the next lookup re-reads the YAML files."""
    _CACHE.clear()


def get_terms(name: str, vocabulary: Vocabulary | None = None) -> frozenset[str]:
    return (vocabulary if vocabulary is not None else load_vocabulary()).get(name, frozenset())


def matches(name: str, value: str | None, vocabulary: Vocabulary | None = None) -> bool:
    """Return True when ``value`` is one of the ``name`` labels of ``vocabulary``.

    Without an explicit ``vocabulary`` the project default is used.
    """
    return normalize_term(value) in get_terms(name, vocabulary)
