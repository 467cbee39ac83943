"""Flatten the issue forest into an id-indexed Gantt task list."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import replace
from datetime import datetime

from jira_timeline.core.config import STATUS_LABEL_SEPARATOR
from jira_timeline.core.models import GanttPhase, GanttTask, Hierarchy, HierarchyNode
from jira_timeline.core.status import normalize_status_label


def _phases(node: HierarchyNode, now: datetime | None, separator: str) -> list[GanttPhase]:
    phases = []
    for duration in node.issue.status_durations:
        end = duration.end if duration.end is not None else (now or duration.start)
        phases.append(
            GanttPhase(
                status=normalize_status_label(duration.status, separator),
                start=duration.start,
                end=end,
            )
        )
    return phases


def convert_to_gantt(
    hierarchy: Hierarchy,
    *,
    now: datetime | None = None,
    separator: str = STATUS_LABEL_SEPARATOR,
) -> list[GanttTask]:
    """Assign dense ids depth-first and emit one task per forest node.

    Roots are numbered from 1 in encounter order; each root's subtree is
    numbered pre-order before the next root. ``now`` only closes intervals
    left open in the durations.
    """
    tasks: list[GanttTask] = []
    by_id: dict[int, GanttTask] = {}
    visited: set[str] = set()

    for root in hierarchy.root_nodes:
        stack: list[tuple[HierarchyNode, int | None]] = [(root, None)]
        while stack:
            node, parent_id = stack.pop()
            if node.key in visited:
                continue
            visited.add(node.key)

            task = GanttTask(
                id=len(tasks) + 1,
                source_key=node.key,
                name=node.issue.summary,
                parent_id=parent_id,
                phases=_phases(node, now, separator),
                is_parent=bool(node.children),
            )
            tasks.append(task)
            by_id[task.id] = task
            if parent_id is not None:
                by_id[parent_id].child_ids.append(task.id)

            children = hierarchy.children_of(node.key)
            stack.extend((child, task.id) for child in reversed(children))
    return tasks


def filter_tasks_by_statuses(tasks: Sequence[GanttTask], statuses: Iterable[str] | None) -> list[GanttTask]:
    """Keep only the phases whose label is among ``statuses``.

    Tasks left without phases are dropped unless they are parents. An empty
    selection returns the tasks unchanged.
    """
    selected = {normalize_status_label(s) for s in statuses or [] if s}
    if not tasks or not selected:
        return list(tasks)

    out = []
    for task in tasks:
        if task.is_parent and not task.phases:
            out.append(replace(task, child_ids=list(task.child_ids)))
            continue
        phases = [p for p in task.phases if normalize_status_label(p.status) in selected]
        if task.is_parent or phases:
            out.append(replace(task, child_ids=list(task.child_ids), phases=phases))
    return out
