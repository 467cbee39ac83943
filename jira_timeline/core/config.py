"""Central configuration, constants, and tuning knobs for the timeline pipeline."""

from __future__ import annotations

from dataclasses import dataclass

# =============================================================================
# Time Settings
# =============================================================================
# Calendar-day comparisons (flag vs. link blocker dedup) happen in this zone.
TIMEZONE = "UTC"

# =============================================================================
# Workflow Status Configuration
# =============================================================================
# Status used for the first interval when an issue never changed status
CREATED_STATUS = "Created"

# Statuses that mark an issue as completed
FINAL_STATUSES: frozenset[str] = frozenset(
    {
        "Done",
        "Closed",
        "Resolved",
    }
)

# Join character used when normalising status labels for the Gantt phases
STATUS_LABEL_SEPARATOR = "_"

# =============================================================================
# Placeholders for missing data
# =============================================================================
UNTITLED_SUMMARY = "Untitled"
NOT_SPECIFIED = "Not specified"
UNKNOWN_ACTOR = "Unknown"
UNKNOWN_STATUS = "Unknown"

# =============================================================================
# Jira Custom Field IDs
# =============================================================================
FIELD_IDS = {
    "blocker_type": "customfield_31724",
    "blocker_lead_time": "customfield_38310",
}

# Issue type treated as the natural root when picking the main issue
EPIC_ISSUE_TYPE = "Epic"


@dataclass(slots=True)
class PipelineSettings:
    timezone: str = TIMEZONE
    created_status: str = CREATED_STATUS
    label_separator: str = STATUS_LABEL_SEPARATOR
    vocabulary_path: str | None = None


SETTINGS = PipelineSettings()
