"""Jira timeline pipeline: status timelines, blockers, hierarchy, and Gantt tasks."""

from jira_timeline.analytics.blockers import analyze_blockers
from jira_timeline.analytics.changelog import extract_flag_events, extract_status_movements
from jira_timeline.analytics.durations import calculate_status_durations, format_duration
from jira_timeline.analytics.gantt import convert_to_gantt, filter_tasks_by_statuses
from jira_timeline.analytics.hierarchy import build_hierarchy, determine_main_issue
from jira_timeline.core.mappers import map_issue, to_plain
from jira_timeline.core.service import TimelineService, build_timeline

__all__ = [
    "TimelineService",
    "analyze_blockers",
    "build_hierarchy",
    "build_timeline",
    "calculate_status_durations",
    "convert_to_gantt",
    "determine_main_issue",
    "extract_flag_events",
    "extract_status_movements",
    "filter_tasks_by_statuses",
    "format_duration",
    "map_issue",
    "to_plain",
]
