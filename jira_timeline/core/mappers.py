"""Mapping raw Jira issue JSON into RawIssue instances, and pipeline output into plain data."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import asdict, is_dataclass
from datetime import datetime
from typing import Any

import pandas as pd

from .config import FIELD_IDS
from .models import FieldChange, GanttTask, HistoryEntry, IssueLink, ProcessedIssue, RawIssue


def parse_dt(val: Any) -> datetime | None:
    """Parse a Jira timestamp into a timezone-aware datetime (UTC when naive)."""
    if val is None or isinstance(val, (dict, list, bool)) or val == "":
        return None
    try:
        ts = pd.to_datetime(val, utc=True, errors="coerce")
    except (TypeError, ValueError, OverflowError):
        return None
    if ts is None or pd.isna(ts):
        return None
    return ts.to_pydatetime()


def _as_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


def _text(value: Any) -> str | None:
    if value is None or isinstance(value, (dict, list)):
        return None
    text = str(value).strip()
    return text or None


def _name(value: Any, attr: str = "name") -> str | None:
    # Jira nests most references as {"name": ...}; tolerate bare strings too
    if isinstance(value, dict):
        return _text(value.get(attr))
    return _text(value)


def _option_value(value: Any) -> str | None:
    # Select-list custom fields arrive as {"value": ...}; text fields as plain strings
    if isinstance(value, dict):
        return _text(value.get("value") or value.get("name"))
    return _text(value)


def _map_link(link: dict[str, Any]) -> IssueLink | None:
    link_type = _name(link.get("type"))
    if not link_type:
        return None
    if isinstance(link.get("outwardIssue"), dict):
        direction, target = "outward", link["outwardIssue"]
    elif isinstance(link.get("inwardIssue"), dict):
        direction, target = "inward", link["inwardIssue"]
    else:
        return None
    key = _text(target.get("key"))
    if not key:
        return None
    target_fields = _as_dict(target.get("fields"))
    return IssueLink(
        link_type=link_type,
        direction=direction,
        key=key,
        summary=_text(target_fields.get("summary")),
        status=_name(target_fields.get("status")),
    )


def _map_history(h: dict[str, Any]) -> HistoryEntry:
    items = [
        FieldChange(
            field=_text(item.get("field") or item.get("fieldId")),
            from_value=_text(item.get("fromString")),
            to_value=_text(item.get("toString")),
        )
        for item in _as_list(h.get("items"))
        if isinstance(item, dict)
    ]
    return HistoryEntry(
        author=_name(h.get("author"), "displayName"),
        created=parse_dt(h.get("created")),
        items=items,
    )


def map_issue(raw: dict[str, Any]) -> RawIssue:
    """Map one Jira payload, skipping any individual field that is malformed.

    Only the issue key is required; every other field degrades to ``None``
    or an empty list when it is missing or has an unexpected shape.
    """
    fields = _as_dict(raw.get("fields"))
    histories = [
        _map_history(h) for h in _as_list(_as_dict(raw.get("changelog")).get("histories")) if isinstance(h, dict)
    ]

    links = []
    for link in _as_list(fields.get("issuelinks")):
        mapped = _map_link(link) if isinstance(link, dict) else None
        if mapped is not None:
            links.append(mapped)

    lead_time = fields.get(FIELD_IDS["blocker_lead_time"])
    return RawIssue(
        key=_text(raw.get("key")),
        summary=_text(fields.get("summary")),
        created=parse_dt(fields.get("created")),
        status=_name(fields.get("status")),
        issue_type=_name(fields.get("issuetype")),
        parent_key=_name(fields.get("parent"), "key"),
        links=links,
        histories=histories,
        blocker_type=_option_value(fields.get(FIELD_IDS["blocker_type"])),
        blocker_lead_time=lead_time if isinstance(lead_time, (int, float, str)) else None,
    )


def _plain_value(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: _plain_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain_value(v) for v in value]
    return value


def to_plain(obj: Any) -> Any:
    """Convert pipeline dataclasses into JSON-ready dicts with ISO timestamps."""
    if is_dataclass(obj) and not isinstance(obj, type):
        return _plain_value(asdict(obj))
    if isinstance(obj, (list, tuple)):
        return [to_plain(o) for o in obj]
    return _plain_value(obj)


def issues_to_dataframe(issues: Iterable[ProcessedIssue]) -> pd.DataFrame:
    rows = []
    for i in issues:
        rows.append(
            {
                "key": i.key,
                "summary": i.summary,
                "status": i.status,
                "issue_type": i.issue_type,
                "parent_key": i.parent_key,
                "created": i.created,
                "is_completed": i.is_completed,
                "completion_date": i.completion_date,
                "is_blocked": i.is_blocked,
                "current_blockers": len(i.current_blockers),
                "total_duration_hours": i.total_duration_hours,
                "status_durations": [asdict(d) for d in i.status_durations],
            }
        )
    df = pd.DataFrame(rows)
    for col in ("created", "completion_date"):
        if col in df.columns:
            df[col] = pd.to_datetime(df[col], utc=True, errors="coerce")
    return df


def tasks_to_dataframe(tasks: Iterable[GanttTask]) -> pd.DataFrame:
    """Long-form frame with one row per task phase (tasks without phases keep one row)."""
    rows = []
    for t in tasks:
        base = {"id": t.id, "source_key": t.source_key, "name": t.name, "parent_id": t.parent_id}
        if not t.phases:
            rows.append({**base, "status": None, "start": pd.NaT, "end": pd.NaT})
            continue
        for phase in t.phases:
            rows.append({**base, "status": phase.status, "start": phase.start, "end": phase.end})
    return pd.DataFrame(rows, columns=["id", "source_key", "name", "parent_id", "status", "start", "end"])
