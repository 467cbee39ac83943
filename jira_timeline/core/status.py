"""Status and link-type classification utilities.

This module centralises every string comparison the pipeline performs on
Jira status names and link type labels, so the analytics modules never
compare raw strings directly. Vocabulary lookups go through
``jira_timeline.core.vocabulary``.
"""

from __future__ import annotations

import re

from .config import FINAL_STATUSES, STATUS_LABEL_SEPARATOR
from .vocabulary import Vocabulary, matches

_WHITESPACE = re.compile(r"\s+")

FINAL_STATUSES_LOWER: frozenset[str] = frozenset(s.casefold() for s in FINAL_STATUSES)


def clean_status_name(value: str | None) -> str | None:
    """Strip surrounding whitespace; return None for empty or null-like values.

    Parameters
    ----------
    value : str | None
        Raw status string from a changelog item.

    Returns
    -------
    str | None
        Cleaned status string, or None when nothing meaningful remains.
    """
    if value is None:
        return None
    text = str(value).strip()
    if not text or text.lower() in {"nan", "none", "null"}:
        return None
    return text


def normalize_status_label(value: str | None, separator: str = STATUS_LABEL_SEPARATOR) -> str:
    """Normalise a status name into a stable label for cross-issue comparison.

    The label is case-folded and every whitespace run becomes ``separator``.
    Applying the function to its own output returns the same string.

    Examples
    --------
    >>> normalize_status_label("In  Progress")
    'in_progress'
    >>> normalize_status_label("in_progress")
    'in_progress'
    """
    if not value:
        return ""
    return _WHITESPACE.sub(separator, str(value).strip().casefold())


def is_final_status(value: str | None) -> bool:
    """Check whether a status marks an issue as completed."""
    if not value:
        return False
    return str(value).strip().casefold() in FINAL_STATUSES_LOWER


def is_blocked_status(value: str | None, vocabulary: Vocabulary | None = None) -> bool:
    return matches("blocked_statuses", value, vocabulary)


def is_unblocked_status(value: str | None, vocabulary: Vocabulary | None = None) -> bool:
    return matches("unblocked_statuses", value, vocabulary)


def is_blocks_link(link_type: str | None, vocabulary: Vocabulary | None = None) -> bool:
    return matches("blocks_links", link_type, vocabulary)


def is_inclusion_link(link_type: str | None, vocabulary: Vocabulary | None = None) -> bool:
    """Parent-lists-child relationship ("includes", "consists of", ...)."""
    return matches("inclusion_links", link_type, vocabulary)


def is_part_of_link(link_type: str | None, vocabulary: Vocabulary | None = None) -> bool:
    """Child-lists-parent relationship ("is part of", ...)."""
    return matches("part_of_links", link_type, vocabulary)


def is_flag_field(field_name: str | None, vocabulary: Vocabulary | None = None) -> bool:
    return matches("flag_fields", field_name, vocabulary)


def is_impediment(value: str | None, vocabulary: Vocabulary | None = None) -> bool:
    return matches("impediment_markers", value, vocabulary)


def is_status_field(field_name: str | None) -> bool:
    return str(field_name or "").strip().lower() == "status"
