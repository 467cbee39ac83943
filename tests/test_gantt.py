from datetime import UTC, datetime, timedelta

from jira_timeline.analytics.durations import calculate_status_durations
from jira_timeline.analytics.gantt import convert_to_gantt, filter_tasks_by_statuses
from jira_timeline.analytics.hierarchy import build_hierarchy
from jira_timeline.core.models import IssueLink, ProcessedIssue, StatusMovement
from jira_timeline.core.status import normalize_status_label

T0 = datetime(2024, 9, 2, 9, 0, tzinfo=UTC)
NOW = T0 + timedelta(days=5)


def _issue(key, parent_key=None, links=(), movements=()):
    movements = list(movements)
    return ProcessedIssue(
        key=key,
        summary=f"Issue {key}",
        created=T0,
        status="To Do",
        parent_key=parent_key,
        links=list(links),
        status_movements=movements,
        status_durations=calculate_status_durations(movements, T0, NOW),
    )


def _forest():
    return build_hierarchy(
        [
            _issue("ROOT-1", movements=[StatusMovement("Backlog", "In  Progress", T0 + timedelta(days=1))]),
            _issue("CHILD-1", parent_key="ROOT-1"),
            _issue("ROOT-2"),
            _issue("GRANDCHILD-1", parent_key="CHILD-1"),
            _issue("CHILD-2", links=[IssueLink("is part of", "inward", "ROOT-1")]),
        ]
    )


def test_ids_assigned_depth_first():
    tasks = convert_to_gantt(_forest())
    assert [(t.id, t.source_key, t.parent_id) for t in tasks] == [
        (1, "ROOT-1", None),
        (2, "CHILD-1", 1),
        (3, "GRANDCHILD-1", 2),
        (4, "CHILD-2", 1),
        (5, "ROOT-2", None),
    ]
    assert tasks[0].child_ids == [2, 4]
    assert tasks[1].child_ids == [3]
    assert [t.is_parent for t in tasks] == [True, True, False, False, False]


def test_child_ids_consistent_with_parent_ids():
    tasks = convert_to_gantt(_forest())
    by_id = {t.id: t for t in tasks}
    assert len(by_id) == len(tasks)
    for task in tasks:
        for child_id in task.child_ids:
            assert by_id[child_id].parent_id == task.id
        if task.parent_id is not None:
            assert task.id in by_id[task.parent_id].child_ids


def test_phases_follow_durations_with_normalized_labels():
    tasks = convert_to_gantt(_forest())
    root = tasks[0]
    assert [p.status for p in root.phases] == ["backlog", "in_progress"]
    assert root.phases[0].start == T0
    assert root.phases[0].end == root.phases[1].start == T0 + timedelta(days=1)
    assert root.phases[-1].end == NOW
    assert tasks[1].phases[0].status == "created"


def test_status_label_normalization_idempotent():
    for label in ["In Progress", "  Code   Review ", "DONE", "ready_for_qa", "Блокировка снята", ""]:
        once = normalize_status_label(label)
        assert normalize_status_label(once) == once
    assert normalize_status_label("Code \t Review") == "code_review"


def test_filter_tasks_by_statuses():
    tasks = convert_to_gantt(_forest())
    filtered = filter_tasks_by_statuses(tasks, ["In Progress"])

    assert [t.source_key for t in filtered] == ["ROOT-1", "CHILD-1"]
    assert [p.status for p in filtered[0].phases] == ["in_progress"]
    assert filtered[1].phases == []
    # Source list untouched
    assert len(tasks[0].phases) == 2


def test_filter_without_selection_returns_all():
    tasks = convert_to_gantt(_forest())
    assert filter_tasks_by_statuses(tasks, []) == tasks
    assert filter_tasks_by_statuses(tasks, None) == tasks
