"""Parent/child forest construction over processed issues."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from jira_timeline.core.config import EPIC_ISSUE_TYPE
from jira_timeline.core.models import Hierarchy, HierarchyNode, ProcessedIssue
from jira_timeline.core.status import is_inclusion_link, is_part_of_link
from jira_timeline.core.vocabulary import Vocabulary

logger = logging.getLogger(__name__)


def _is_descendant(hierarchy: Hierarchy, start_key: str, target_key: str) -> bool:
    """Check whether ``target_key`` is ``start_key`` or lies below it."""
    visited: set[str] = set()
    stack = [start_key]
    while stack:
        key = stack.pop()
        if key in visited:
            continue
        visited.add(key)
        if key == target_key:
            return True
        node = hierarchy.get(key)
        if node is not None:
            stack.extend(node.children)
    return False


def _attach(hierarchy: Hierarchy, parent_key: str, child_key: str, source: str) -> bool:
    parent = hierarchy.get(parent_key)
    child = hierarchy.get(child_key)
    if parent is None or child is None:
        return False
    if child.parent_key is not None:
        # First writer wins
        return False
    if _is_descendant(hierarchy, child_key, parent_key):
        logger.warning("Rejected cyclic %s edge: %s -> %s", source, parent_key, child_key)
        return False
    parent.children.append(child_key)
    child.parent_key = parent_key
    return True


def _assign_depths(hierarchy: Hierarchy) -> None:
    for root in hierarchy.roots:
        visited: set[str] = set()
        stack = [(root, 0)]
        while stack:
            key, depth = stack.pop()
            if key in visited:
                continue
            visited.add(key)
            node = hierarchy.get(key)
            if node is None:
                continue
            node.depth = depth
            stack.extend((child, depth + 1) for child in node.children)


def build_hierarchy(issues: Sequence[ProcessedIssue], *, vocabulary: Vocabulary | None = None) -> Hierarchy:
    """Relate issues into a cycle-free forest.

    Edges come from the explicit parent field first, then from inclusion
    ("parent includes child") and part-of ("child is part of parent") links.
    A child keeps the first parent it receives, and an edge that would make
    a node its own descendant is dropped with a warning.
    """
    hierarchy = Hierarchy()
    for issue in issues:
        if issue.key in hierarchy.index:
            logger.warning("Duplicate issue key %s ignored in hierarchy", issue.key)
            continue
        hierarchy.index[issue.key] = len(hierarchy.nodes)
        hierarchy.nodes.append(HierarchyNode(issue=issue))

    for node in hierarchy.nodes:
        if node.issue.parent_key:
            _attach(hierarchy, node.issue.parent_key, node.key, "parent")

    for node in hierarchy.nodes:
        for link in node.issue.links:
            if is_inclusion_link(link.link_type, vocabulary) and link.direction == "outward":
                _attach(hierarchy, node.key, link.key, "inclusion")
            elif is_part_of_link(link.link_type, vocabulary) and link.direction == "inward":
                _attach(hierarchy, link.key, node.key, "part-of")

    hierarchy.roots = [node.key for node in hierarchy.nodes if node.parent_key is None]
    _assign_depths(hierarchy)
    return hierarchy


def determine_main_issue(issues: Sequence[ProcessedIssue], main_key: str | None = None) -> str | None:
    """Pick the issue the timeline is centred on.

    An explicit ``main_key`` present in ``issues`` wins; otherwise the first
    Epic, then the issue referenced by the most other issues (as parent or
    link target), then the first issue.
    """
    if main_key and any(issue.key == main_key for issue in issues):
        return main_key
    if not issues:
        return None

    for issue in issues:
        if issue.issue_type == EPIC_ISSUE_TYPE:
            return issue.key

    def connections(key: str) -> int:
        return sum(
            1 for other in issues if other.parent_key == key or any(link.key == key for link in other.links)
        )

    return max(issues, key=lambda issue: connections(issue.key)).key
