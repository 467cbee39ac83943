"""TimelineService: orchestrates mapping, per-issue processing, hierarchy, and Gantt output."""

from __future__ import annotations

import copy
import logging
from collections.abc import Iterable, Mapping
from dataclasses import replace
from datetime import datetime
from typing import Any

import pytz

from jira_timeline.analytics.blockers import analyze_blockers
from jira_timeline.analytics.changelog import extract_flag_events, extract_status_movements
from jira_timeline.analytics.durations import (
    calculate_status_durations,
    format_duration,
    get_completion_date,
    total_duration_hours,
)
from jira_timeline.analytics.gantt import convert_to_gantt
from jira_timeline.analytics.hierarchy import build_hierarchy

from .config import SETTINGS, UNTITLED_SUMMARY, PipelineSettings
from .mappers import map_issue
from .models import HistoryEntry, PipelineResult, ProcessedIssue, RawIssue
from .status import is_final_status
from .vocabulary import load_vocabulary

logger = logging.getLogger(__name__)

IssueInput = RawIssue | Mapping[str, Any]


class TimelineService:
    def __init__(self, now: datetime | None = None, settings: PipelineSettings | None = None):
        self.settings = settings or SETTINGS
        self._tz = pytz.timezone(self.settings.timezone)
        self.now = datetime.now(tz=self._tz) if now is None else self._aware(now)
        # Per-service vocabulary; the module default stays untouched
        self.vocabulary = load_vocabulary(self.settings.vocabulary_path)

    # ------------------ Pipeline ------------------
    def run(self, raw_issues: Iterable[IssueInput]) -> PipelineResult:
        issues = self.map_issues(raw_issues)
        lookup = {issue.key: issue for issue in issues}
        processed = [self.process_issue(issue, lookup) for issue in issues]
        # Nodes own their copies so the forest and the flat list can be edited independently
        hierarchy = build_hierarchy(copy.deepcopy(processed), vocabulary=self.vocabulary)
        tasks = convert_to_gantt(hierarchy, now=self.now, separator=self.settings.label_separator)
        logger.debug(
            "Pipeline produced %s issues, %s roots, %s tasks", len(processed), len(hierarchy.roots), len(tasks)
        )
        return PipelineResult(processed_issues=processed, hierarchy=hierarchy, tasks=tasks)

    def map_issues(self, raw_issues: Iterable[IssueInput]) -> list[RawIssue]:
        out: list[RawIssue] = []
        for raw in raw_issues or []:
            if isinstance(raw, RawIssue):
                issue = self._localize(raw)
            else:
                try:
                    issue = map_issue(dict(raw))
                except (AttributeError, TypeError, ValueError) as exc:
                    key = raw.get("key") if isinstance(raw, Mapping) else None
                    if not isinstance(key, str) or not key.strip():
                        logger.warning("Skipping unreadable issue payload: %s", exc)
                        continue
                    logger.warning("Keeping only the key of unreadable issue %s: %s", key, exc)
                    issue = RawIssue(key=key.strip(), summary=None, created=None, status=None)
            if not issue.key:
                logger.warning("Skipping issue without a key")
                continue
            out.append(issue)
        return out

    def process_issue(self, issue: RawIssue, lookup: Mapping[str, RawIssue] | None = None) -> ProcessedIssue:
        """Derive timeline and blocker data for one issue.

        Any failure while deriving degrades the issue to a minimal record
        (identity fields only) instead of aborting the batch.
        """
        lookup = lookup if lookup is not None else {issue.key: issue}
        try:
            return self._process(issue, lookup)
        except Exception as exc:
            logger.warning("Failed to process issue %s: %s", issue.key, exc)
            return self._minimal(issue)

    # ------------------ Internal Helpers ------------------
    def _aware(self, value: datetime | None) -> datetime | None:
        if not isinstance(value, datetime) or value.tzinfo is not None:
            return value
        return self._tz.localize(value)

    def _localize(self, issue: RawIssue) -> RawIssue:
        """Return a copy of ``issue`` whose naive timestamps are read in the configured timezone."""
        histories = [
            replace(h, created=self._aware(h.created)) if isinstance(h, HistoryEntry) else h
            for h in issue.histories or []
        ]
        return replace(issue, created=self._aware(issue.created), histories=histories)

    def _process(self, issue: RawIssue, lookup: Mapping[str, RawIssue]) -> ProcessedIssue:
        movements = extract_status_movements(issue.histories)
        flags = extract_flag_events(issue.histories, vocabulary=self.vocabulary)
        durations = calculate_status_durations(
            movements, issue.created, self.now, created_status=self.settings.created_status
        )
        total = total_duration_hours(durations)
        is_completed = is_final_status(issue.status)
        blockers = analyze_blockers(
            issue,
            flags,
            lookup,
            self.now,
            tz=self.settings.timezone,
            created_status=self.settings.created_status,
            vocabulary=self.vocabulary,
        )

        out = self._minimal(issue)
        out.status_movements = movements
        out.flag_events = flags
        out.status_durations = durations
        out.total_duration_hours = total
        out.total_duration_formatted = format_duration(total)
        out.is_completed = is_completed
        out.completion_date = get_completion_date(movements) if is_completed else None
        out.is_blocked = blockers.is_blocked
        out.blocker_history = blockers.blocker_history
        out.current_blockers = blockers.current_blockers
        return out

    def _minimal(self, issue: RawIssue) -> ProcessedIssue:
        return ProcessedIssue(
            key=issue.key,
            summary=issue.summary or UNTITLED_SUMMARY,
            created=issue.created,
            status=issue.status,
            issue_type=issue.issue_type,
            parent_key=issue.parent_key,
            links=list(issue.links or []),
            blocker_type=issue.blocker_type,
            blocker_lead_time=issue.blocker_lead_time,
            is_completed=is_final_status(issue.status),
        )


def build_timeline(raw_issues: Iterable[IssueInput], now: datetime | None = None) -> PipelineResult:
    """Run the full pipeline with default settings."""
    return TimelineService(now=now).run(raw_issues)
