"""Status occupancy timelines and duration formatting.

This module turns an issue's ordered status movements into a contiguous
list of intervals: the first starts at the creation instant, each following
one starts where the previous ended, and the last one runs until the
supplied evaluation instant. The clock is never read here.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from datetime import datetime

from jira_timeline.core.config import CREATED_STATUS, UNKNOWN_STATUS
from jira_timeline.core.models import StatusDuration, StatusMovement
from jira_timeline.core.status import is_final_status

MINUTES_PER_HOUR = 60
MINUTES_PER_DAY = 24 * MINUTES_PER_HOUR
MINUTES_PER_WEEK = 7 * MINUTES_PER_DAY


def hours_between(start: datetime, end: datetime) -> float:
    return (end - start).total_seconds() / 3600.0


def format_duration(duration_hours: float) -> str:
    """Render a duration as weeks/days/hours/minutes, skipping zero parts.

    Parameters
    ----------
    duration_hours : float
        Length of the interval in hours. Negative or NaN values render as zero.

    Returns
    -------
    str
        Text such as ``"2w 3d 1h"`` or ``"0m"`` for an empty interval.

    Examples
    --------
    >>> format_duration(409.0)
    '2w 3d 1h'
    >>> format_duration(0.5)
    '30m'
    """
    if duration_hours is None or math.isnan(duration_hours) or duration_hours <= 0:
        return "0m"
    total_minutes = round(duration_hours * MINUTES_PER_HOUR)
    weeks, rest = divmod(total_minutes, MINUTES_PER_WEEK)
    days, rest = divmod(rest, MINUTES_PER_DAY)
    hours, minutes = divmod(rest, MINUTES_PER_HOUR)

    parts = []
    if weeks > 0:
        parts.append(f"{weeks}w")
    if days > 0:
        parts.append(f"{days}d")
    if hours > 0:
        parts.append(f"{hours}h")
    if minutes > 0:
        parts.append(f"{minutes}m")
    return " ".join(parts) or "0m"


def _interval(status: str, start: datetime, end: datetime) -> StatusDuration:
    hours = hours_between(start, end)
    return StatusDuration(
        status=status,
        start=start,
        end=end,
        duration_hours=round(hours, 2),
        duration_formatted=format_duration(hours),
    )


def calculate_status_durations(
    movements: Sequence[StatusMovement],
    created: datetime | None,
    now: datetime,
    *,
    created_status: str = CREATED_STATUS,
) -> list[StatusDuration]:
    """Build the contiguous status intervals of a single issue.

    Parameters
    ----------
    movements : Sequence[StatusMovement]
        Status changes in chronological order.
    created : datetime | None
        Creation instant. When missing, the first movement (or ``now``)
        stands in so the timeline still has an anchor.
    now : datetime
        Evaluation instant closing the final interval.
    created_status : str
        Status reported for the first interval when there are no movements.

    Returns
    -------
    list[StatusDuration]
        Intervals where ``durations[i].end == durations[i + 1].start``.
    """
    if created is None:
        created = movements[0].timestamp if movements else now

    if not movements:
        return [_interval(created_status, created, now)]

    durations = [_interval(movements[0].from_status or created_status, created, movements[0].timestamp)]
    for index, movement in enumerate(movements):
        end = movements[index + 1].timestamp if index + 1 < len(movements) else now
        durations.append(_interval(movement.to_status or UNKNOWN_STATUS, movement.timestamp, end))
    return durations


def total_duration_hours(durations: Iterable[StatusDuration]) -> float:
    return round(sum(d.duration_hours for d in durations), 2)


def get_completion_date(movements: Iterable[StatusMovement]) -> datetime | None:
    """Latest instant the issue moved into a final status, if any."""
    dates = [m.timestamp for m in movements if is_final_status(m.to_status)]
    return max(dates) if dates else None
