"""Extract status transitions and impediment flag events from a changelog."""

from __future__ import annotations

from collections.abc import Iterable

from jira_timeline.core.config import UNKNOWN_ACTOR
from jira_timeline.core.models import FlagEvent, HistoryEntry, StatusMovement
from jira_timeline.core.status import (
    clean_status_name,
    is_flag_field,
    is_impediment,
    is_status_field,
)
from jira_timeline.core.vocabulary import Vocabulary


def extract_status_movements(histories: Iterable[HistoryEntry] | None) -> list[StatusMovement]:
    """Collect every status change in changelog order.

    Histories are expected to be chronological already (Jira returns them
    that way); they are not re-sorted here. Entries lacking a timestamp are
    skipped since they cannot be placed on the timeline.
    """
    movements: list[StatusMovement] = []
    for entry in histories or []:
        if entry.created is None:
            continue
        for item in entry.items:
            if not is_status_field(item.field):
                continue
            movements.append(
                StatusMovement(
                    from_status=clean_status_name(item.from_value),
                    to_status=clean_status_name(item.to_value),
                    timestamp=entry.created,
                )
            )
    return movements


def extract_flag_events(
    histories: Iterable[HistoryEntry] | None,
    *,
    vocabulary: Vocabulary | None = None,
) -> list[FlagEvent]:
    """Collect impediment flag additions and removals in changelog order.

    A change to the flag field counts as ``Added`` when the new value is the
    impediment marker, and ``Removed`` when the marker is cleared. Any other
    flag value change is ignored.
    """
    events: list[FlagEvent] = []
    for entry in histories or []:
        if entry.created is None:
            continue
        actor = entry.author or UNKNOWN_ACTOR
        for item in entry.items:
            if not is_flag_field(item.field, vocabulary):
                continue
            if is_impediment(item.to_value, vocabulary):
                events.append(FlagEvent("Added", actor, entry.created, item.to_value))
            elif is_impediment(item.from_value, vocabulary) and not clean_status_name(item.to_value):
                events.append(FlagEvent("Removed", actor, entry.created, item.from_value))
    return events
