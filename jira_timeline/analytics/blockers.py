"""Blocker detection from blocking links and impediment flags.

Two independent signals describe when an issue was impeded:

* inward *Blocks* links, whose period is read from the blocking issue's own
  status timeline (first *Blocked* interval up to the *Unblocked* one that
  follows it);
* manual *Impediment* flags raised and cleared on the issue itself.

A flag raised on the same calendar day a link blocker started is considered
the same incident and is not counted twice. Calendar days are evaluated in
the configured timezone, so events either side of local midnight count as
different days.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import replace
from datetime import datetime

import pytz

from jira_timeline.core.config import CREATED_STATUS, NOT_SPECIFIED, TIMEZONE, UNTITLED_SUMMARY
from jira_timeline.core.models import BlockerAnalysis, BlockerPeriod, FlagEvent, IssueLink, RawIssue
from jira_timeline.core.status import is_blocked_status, is_blocks_link, is_impediment, is_unblocked_status
from jira_timeline.core.vocabulary import Vocabulary

from .changelog import extract_status_movements
from .durations import calculate_status_durations

logger = logging.getLogger(__name__)


def same_calendar_day(first: datetime, second: datetime, tz: str = TIMEZONE) -> bool:
    zone = pytz.timezone(tz)
    return first.astimezone(zone).date() == second.astimezone(zone).date()


def blocking_interval(
    blocker: RawIssue,
    now: datetime,
    *,
    created_status: str = CREATED_STATUS,
    vocabulary: Vocabulary | None = None,
) -> tuple[datetime | None, datetime | None]:
    """Return ``(start, end)`` of the span the blocking issue spent blocked.

    Without any *Blocked* interval the blocker is assumed to block from its
    creation onwards; without a following *Unblocked* interval ``end`` is None.
    """
    movements = extract_status_movements(blocker.histories)
    durations = calculate_status_durations(movements, blocker.created, now, created_status=created_status)

    blocked_at = next((i for i, d in enumerate(durations) if is_blocked_status(d.status, vocabulary)), None)
    if blocked_at is None:
        return blocker.created, None
    start = durations[blocked_at].start
    unblocked = next(
        (d for d in durations[blocked_at + 1 :] if is_unblocked_status(d.status, vocabulary)),
        None,
    )
    return start, unblocked.start if unblocked else None


def _link_period(
    link: IssueLink,
    blocker: RawIssue | None,
    now: datetime,
    created_status: str,
    vocabulary: Vocabulary | None,
) -> BlockerPeriod:
    if blocker is None:
        logger.debug("Blocking issue %s not in working set; using link data only", link.key)
        return BlockerPeriod(
            source="link",
            start=None,
            key=link.key,
            summary=link.summary or UNTITLED_SUMMARY,
            blocker_type=NOT_SPECIFIED,
            blocker_lead_time=NOT_SPECIFIED,
        )
    start, end = blocking_interval(blocker, now, created_status=created_status, vocabulary=vocabulary)
    return BlockerPeriod(
        source="link",
        start=start,
        end=end,
        key=blocker.key,
        summary=blocker.summary or link.summary or UNTITLED_SUMMARY,
        blocker_type=blocker.blocker_type or NOT_SPECIFIED,
        blocker_lead_time=blocker.blocker_lead_time if blocker.blocker_lead_time is not None else NOT_SPECIFIED,
    )


def link_blockers(
    issue_key: str,
    links: Iterable[IssueLink],
    lookup: Mapping[str, RawIssue],
    now: datetime,
    *,
    visited: set[str] | None = None,
    created_status: str = CREATED_STATUS,
    vocabulary: Vocabulary | None = None,
) -> list[BlockerPeriod]:
    """Blocker periods from inward *Blocks* links, in link order.

    ``visited`` holds every key already evaluated during this call (seeded
    with the issue itself), so self-references and repeated links to the
    same blocker are evaluated once.
    """
    seen = set(visited or ())
    seen.add(issue_key)
    periods: list[BlockerPeriod] = []
    for link in links:
        if link.direction != "inward" or not is_blocks_link(link.link_type, vocabulary):
            continue
        if link.key in seen:
            logger.debug("Skipping already evaluated blocker %s for %s", link.key, issue_key)
            continue
        seen.add(link.key)
        periods.append(_link_period(link, lookup.get(link.key), now, created_status, vocabulary))
    return periods


def flag_blockers(
    flag_events: Iterable[FlagEvent],
    link_periods: Sequence[BlockerPeriod],
    *,
    tz: str = TIMEZONE,
    vocabulary: Vocabulary | None = None,
) -> list[BlockerPeriod]:
    """Blocker periods from impediment flags, deduplicated against link blockers.

    A new ``Added`` flag replaces a candidate that is still open, so a
    ``Removed`` flag always closes the most recently raised one.
    """
    link_starts = [p.start for p in link_periods if p.start is not None]
    periods: list[BlockerPeriod] = []
    current: BlockerPeriod | None = None

    for event in flag_events:
        if not is_impediment(event.comment, vocabulary):
            continue
        if event.action == "Added":
            if any(same_calendar_day(start, event.timestamp, tz) for start in link_starts):
                logger.debug("Flag at %s matches a link blocker on the same day", event.timestamp)
                continue
            current = BlockerPeriod(source="flag", start=event.timestamp, actor=event.actor, comment=event.comment)
        elif current is not None:
            current.end = event.timestamp
            periods.append(current)
            current = None

    # Still flagged: only report it when no link blocker is already active
    if current is not None and not any(p.is_active for p in link_periods):
        periods.append(current)
    return periods


def analyze_blockers(
    issue: RawIssue,
    flag_events: Iterable[FlagEvent],
    lookup: Mapping[str, RawIssue],
    now: datetime,
    *,
    tz: str = TIMEZONE,
    created_status: str = CREATED_STATUS,
    visited: set[str] | None = None,
    vocabulary: Vocabulary | None = None,
) -> BlockerAnalysis:
    """Merge link and flag blockers of one issue into a sorted history.

    Parameters
    ----------
    issue : RawIssue
        The issue under analysis (its key and links are used).
    flag_events : Iterable[FlagEvent]
        The issue's flag events in chronological order.
    lookup : Mapping[str, RawIssue]
        Working set of issues by key, for resolving blocking issues.
    now : datetime
        Evaluation instant.
    vocabulary : Vocabulary | None
        Labels to match links, statuses and flags against; the project
        default when omitted.

    Returns
    -------
    BlockerAnalysis
        History sorted by start (unknown starts last); current blockers are
        copies of the periods without an end.
    """
    links = link_blockers(
        issue.key,
        issue.links,
        lookup,
        now,
        visited=visited,
        created_status=created_status,
        vocabulary=vocabulary,
    )
    flags = flag_blockers(flag_events, links, tz=tz, vocabulary=vocabulary)

    history = sorted([*flags, *links], key=lambda p: (p.start is None, p.start or now))
    current = [replace(p) for p in history if p.is_active]
    return BlockerAnalysis(is_blocked=bool(current), blocker_history=history, current_blockers=current)
