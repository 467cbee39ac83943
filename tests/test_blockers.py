from datetime import UTC, datetime, timedelta

from jira_timeline.analytics.blockers import analyze_blockers, blocking_interval, same_calendar_day
from jira_timeline.core.models import FieldChange, FlagEvent, HistoryEntry, IssueLink, RawIssue

T0 = datetime(2024, 9, 2, 9, 0, tzinfo=UTC)
T1 = T0 + timedelta(days=1)
T2 = T0 + timedelta(days=3)
NOW = T0 + timedelta(days=10)


def _status_change(when, old, new):
    return HistoryEntry(author="Alice", created=when, items=[FieldChange("status", old, new)])


def _blocker(key, *histories, blocker_type=None, lead_time=None):
    return RawIssue(
        key=key,
        summary=f"Blocker {key}",
        created=T0,
        status="In Progress",
        histories=list(histories),
        blocker_type=blocker_type,
        blocker_lead_time=lead_time,
    )


def _blocked(key="A", *blocking_keys):
    links = [IssueLink("Blocks", "inward", k, summary=f"Link {k}") for k in blocking_keys]
    return RawIssue(key=key, summary="Blocked issue", created=T0, status="In Progress", links=links)


def test_link_blocker_closed_by_unblocked_status():
    b = _blocker(
        "B",
        _status_change(T1, "To Do", "Blocked"),
        _status_change(T2, "Blocked", "Unblocked"),
        blocker_type="External",
        lead_time=5,
    )
    a = _blocked("A", "B")
    result = analyze_blockers(a, [], {"A": a, "B": b}, NOW)

    assert len(result.blocker_history) == 1
    period = result.blocker_history[0]
    assert (period.source, period.key, period.start, period.end) == ("link", "B", T1, T2)
    assert period.blocker_type == "External"
    assert period.blocker_lead_time == 5
    assert result.is_blocked is False
    assert result.current_blockers == []


def test_link_blocker_without_unblocked_stays_open():
    b = _blocker("B", _status_change(T1, "To Do", "Blocked"))
    a = _blocked("A", "B")
    result = analyze_blockers(a, [], {"A": a, "B": b}, NOW)

    assert result.blocker_history[0].start == T1
    assert result.blocker_history[0].end is None
    assert [p.key for p in result.current_blockers] == ["B"]
    assert result.is_blocked is True
    # Missing classification falls back to the placeholder
    assert result.current_blockers[0].blocker_type == "Not specified"
    assert result.current_blockers[0].blocker_lead_time == "Not specified"


def test_localized_blocked_statuses_recognized():
    b = _blocker(
        "B",
        _status_change(T1, "К выполнению", "Заблокировано"),
        _status_change(T2, "Заблокировано", "Блокировка снята"),
    )
    assert blocking_interval(b, NOW) == (T1, T2)


def test_unblocked_before_blocked_is_not_an_end():
    b = _blocker(
        "B",
        _status_change(T0 + timedelta(hours=1), "To Do", "Unblocked"),
        _status_change(T1, "Unblocked", "Blocked"),
    )
    assert blocking_interval(b, NOW) == (T1, None)


def test_blocker_without_blocked_status_uses_creation():
    b = _blocker("B", _status_change(T1, "To Do", "In Progress"))
    assert blocking_interval(b, NOW) == (T0, None)


def test_unresolved_blocker_uses_link_data():
    a = _blocked("A", "EXT-1")
    result = analyze_blockers(a, [], {"A": a}, NOW)

    period = result.blocker_history[0]
    assert period.key == "EXT-1"
    assert period.summary == "Link EXT-1"
    assert period.start is None
    assert result.is_blocked is True


def test_outward_and_other_links_ignored():
    a = RawIssue(
        key="A",
        summary="x",
        created=T0,
        status="To Do",
        links=[IssueLink("Blocks", "outward", "B"), IssueLink("Relates", "inward", "C")],
    )
    result = analyze_blockers(a, [], {"A": a}, NOW)
    assert result.blocker_history == []
    assert result.is_blocked is False


def test_flag_period_opened_and_closed():
    a = _blocked("A")
    flags = [
        FlagEvent("Added", "Bob", T1, "Impediment"),
        FlagEvent("Removed", "Bob", T2, "Impediment"),
    ]
    result = analyze_blockers(a, flags, {"A": a}, NOW)

    assert len(result.blocker_history) == 1
    period = result.blocker_history[0]
    assert (period.source, period.actor, period.start, period.end) == ("flag", "Bob", T1, T2)
    assert result.is_blocked is False


def test_open_flag_becomes_current_blocker():
    a = _blocked("A")
    result = analyze_blockers(a, [FlagEvent("Added", "Bob", T1, "Impediment")], {"A": a}, NOW)
    assert result.is_blocked is True
    assert result.current_blockers[0].source == "flag"


def test_repeated_added_flag_replaces_open_period():
    a = _blocked("A")
    flags = [
        FlagEvent("Added", "Bob", T0 + timedelta(days=1), "Impediment"),
        FlagEvent("Added", "Eve", T0 + timedelta(days=2), "Impediment"),
        FlagEvent("Removed", "Eve", T0 + timedelta(days=3), "Impediment"),
    ]
    result = analyze_blockers(a, flags, {"A": a}, NOW)

    assert len(result.blocker_history) == 1
    period = result.blocker_history[0]
    assert (period.actor, period.start, period.end) == ("Eve", T0 + timedelta(days=2), T0 + timedelta(days=3))


def test_current_blockers_are_copies_of_history():
    a = _blocked("A")
    result = analyze_blockers(a, [FlagEvent("Added", "Bob", T1, "Impediment")], {"A": a}, NOW)

    current = result.current_blockers[0]
    assert current == result.blocker_history[0]
    assert current is not result.blocker_history[0]
    current.end = NOW
    assert result.blocker_history[0].end is None


def test_flag_on_same_day_as_link_blocker_is_deduplicated():
    b = _blocker("B", _status_change(T1, "To Do", "Blocked"), _status_change(T2, "Blocked", "Unblocked"))
    a = _blocked("A", "B")
    flags = [
        FlagEvent("Added", "Bob", T1 + timedelta(hours=2), "Impediment"),
        FlagEvent("Removed", "Bob", T2, "Impediment"),
    ]
    result = analyze_blockers(a, flags, {"A": a, "B": b}, NOW)
    assert [p.source for p in result.blocker_history] == ["link"]


def test_open_flag_suppressed_while_link_blocker_active():
    b = _blocker("B", _status_change(T1, "To Do", "Blocked"))
    a = _blocked("A", "B")
    flags = [FlagEvent("Added", "Bob", T2, "Impediment")]
    result = analyze_blockers(a, flags, {"A": a, "B": b}, NOW)

    assert [p.source for p in result.blocker_history] == ["link"]
    assert len(result.current_blockers) == 1


def test_history_sorted_by_start():
    b = _blocker("B", _status_change(T2, "To Do", "Blocked"), _status_change(T2 + timedelta(days=1), "Blocked", "Unblocked"))
    a = _blocked("A", "B", "EXT-9")
    flags = [
        FlagEvent("Added", "Bob", T1, "Impediment"),
        FlagEvent("Removed", "Bob", T1 + timedelta(hours=5), "Impediment"),
    ]
    result = analyze_blockers(a, flags, {"A": a, "B": b}, NOW)

    assert [p.source for p in result.blocker_history] == ["flag", "link", "link"]
    assert [p.key for p in result.blocker_history[1:]] == ["B", "EXT-9"]


def test_self_and_mutual_blocking_terminate():
    a = RawIssue(
        key="A",
        summary="a",
        created=T0,
        status="Blocked",
        links=[IssueLink("Blocks", "inward", "A"), IssueLink("Blocks", "inward", "B"), IssueLink("Blocks", "inward", "B")],
        histories=[_status_change(T1, "To Do", "Blocked")],
    )
    b = RawIssue(
        key="B",
        summary="b",
        created=T0,
        status="Blocked",
        links=[IssueLink("Blocks", "inward", "A")],
        histories=[_status_change(T2, "To Do", "Blocked")],
    )
    lookup = {"A": a, "B": b}

    result_a = analyze_blockers(a, [], lookup, NOW)
    result_b = analyze_blockers(b, [], lookup, NOW)

    assert [p.key for p in result_a.blocker_history] == ["B"]
    assert result_a.blocker_history[0].start == T2
    assert [p.key for p in result_b.blocker_history] == ["A"]
    assert result_b.blocker_history[0].start == T1


def test_same_calendar_day_uses_timezone():
    late = datetime(2024, 9, 2, 23, 30, tzinfo=UTC)
    early = datetime(2024, 9, 3, 0, 30, tzinfo=UTC)
    assert same_calendar_day(late, early) is False
    assert same_calendar_day(late, early, tz="Europe/Berlin") is True
