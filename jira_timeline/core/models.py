"""Domain data models for raw issues, derived timelines, blockers, and Gantt tasks."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal

FlagAction = Literal["Added", "Removed"]
BlockerSource = Literal["link", "flag"]
LinkDirection = Literal["inward", "outward"]


@dataclass(slots=True)
class FieldChange:
    field: str | None
    from_value: str | None
    to_value: str | None


@dataclass(slots=True)
class HistoryEntry:
    author: str | None
    created: datetime | None
    items: list[FieldChange] = field(default_factory=list)


@dataclass(slots=True)
class IssueLink:
    link_type: str
    direction: LinkDirection
    key: str
    summary: str | None = None
    status: str | None = None


@dataclass(slots=True)
class RawIssue:
    key: str
    summary: str | None
    created: datetime | None
    status: str | None
    issue_type: str | None = None
    parent_key: str | None = None
    links: list[IssueLink] = field(default_factory=list)
    histories: list[HistoryEntry] = field(default_factory=list)
    blocker_type: str | None = None
    blocker_lead_time: str | float | None = None


@dataclass(slots=True)
class StatusMovement:
    from_status: str | None
    to_status: str | None
    timestamp: datetime


@dataclass(slots=True)
class FlagEvent:
    action: FlagAction
    actor: str
    timestamp: datetime
    comment: str | None


@dataclass(slots=True)
class StatusDuration:
    status: str
    start: datetime
    end: datetime | None
    duration_hours: float
    duration_formatted: str


@dataclass(slots=True)
class BlockerPeriod:
    """A span during which an issue was impeded.

    Link periods carry the blocking issue's ``key``/``summary`` and its
    classification; flag periods carry the ``actor`` who raised the flag.
    ``start`` is ``None`` only for a blocking issue missing from the working
    set, and ``end`` is ``None`` while the period is still active.
    """

    source: BlockerSource
    start: datetime | None
    end: datetime | None = None
    key: str | None = None
    summary: str | None = None
    actor: str | None = None
    comment: str | None = None
    blocker_type: str | None = None
    blocker_lead_time: str | float | None = None

    @property
    def is_active(self) -> bool:
        return self.end is None


@dataclass(slots=True)
class BlockerAnalysis:
    is_blocked: bool
    blocker_history: list[BlockerPeriod] = field(default_factory=list)
    current_blockers: list[BlockerPeriod] = field(default_factory=list)


@dataclass(slots=True)
class ProcessedIssue:
    key: str
    summary: str
    created: datetime | None
    status: str | None
    issue_type: str | None = None
    parent_key: str | None = None
    links: list[IssueLink] = field(default_factory=list)
    blocker_type: str | None = None
    blocker_lead_time: str | float | None = None

    # Derived timeline
    status_movements: list[StatusMovement] = field(default_factory=list)
    flag_events: list[FlagEvent] = field(default_factory=list)
    status_durations: list[StatusDuration] = field(default_factory=list)
    total_duration_hours: float = 0.0
    total_duration_formatted: str = "0m"
    is_completed: bool = False
    completion_date: datetime | None = None

    # Derived blockers
    is_blocked: bool = False
    blocker_history: list[BlockerPeriod] = field(default_factory=list)
    current_blockers: list[BlockerPeriod] = field(default_factory=list)


@dataclass(slots=True)
class HierarchyNode:
    issue: ProcessedIssue
    parent_key: str | None = None
    children: list[str] = field(default_factory=list)
    depth: int = 0

    @property
    def key(self) -> str:
        return self.issue.key


@dataclass(slots=True)
class Hierarchy:
    """Forest stored as an index-addressable node list with key references."""

    nodes: list[HierarchyNode] = field(default_factory=list)
    index: dict[str, int] = field(default_factory=dict)
    roots: list[str] = field(default_factory=list)

    def get(self, key: str) -> HierarchyNode | None:
        pos = self.index.get(key)
        return self.nodes[pos] if pos is not None else None

    def children_of(self, key: str) -> list[HierarchyNode]:
        node = self.get(key)
        if node is None:
            return []
        return [self.nodes[self.index[child]] for child in node.children]

    @property
    def root_nodes(self) -> list[HierarchyNode]:
        return [self.nodes[self.index[key]] for key in self.roots]


@dataclass(slots=True)
class GanttPhase:
    status: str
    start: datetime
    end: datetime


@dataclass(slots=True)
class GanttTask:
    id: int
    source_key: str
    name: str
    parent_id: int | None = None
    child_ids: list[int] = field(default_factory=list)
    phases: list[GanttPhase] = field(default_factory=list)
    is_parent: bool = False


@dataclass(slots=True)
class PipelineResult:
    processed_issues: list[ProcessedIssue] = field(default_factory=list)
    hierarchy: Hierarchy = field(default_factory=Hierarchy)
    tasks: list[GanttTask] = field(default_factory=list)
