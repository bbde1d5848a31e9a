"""Board grouping of tasks by status, priority, or category."""

import re
from functools import cmp_to_key
from typing import Dict, Iterable, List, Sequence, Union

from tasktimeline.models import GroupBy, TaskRecord

ALL_TASKS_GROUP = "All Tasks"
NO_STATUS = "No Status"
NO_PRIORITY = "No Priority"
NO_CATEGORY = "No Category"

STATUS_ORDER = [
    "Not Started",
    "In Progress",
    "Blocked",
    "Review",
    "Completed",
    "Cancelled",
    NO_STATUS,
]

_PRIORITY_LABEL_RE = re.compile(r"Priority ([0-9]+)")

GroupCriterion = Union[GroupBy, str]


def _criterion(group_by: GroupCriterion) -> str:
    if isinstance(group_by, GroupBy):
        return group_by.value
    return group_by or GroupBy.NONE.value


def get_group_value(task: TaskRecord, group_by: GroupCriterion) -> str:
    """Label of the group a task belongs to."""
    criterion = _criterion(group_by)
    if criterion == GroupBy.STATUS.value:
        return task.status or NO_STATUS
    if criterion == GroupBy.PRIORITY.value:
        return f"Priority {task.priority}" if task.priority else NO_PRIORITY
    if criterion == GroupBy.CATEGORY.value:
        return task.category or NO_CATEGORY
    return "default"


def group_tasks(tasks: Iterable[TaskRecord], group_by: GroupCriterion) -> Dict[str, List[TaskRecord]]:
    """Bucket tasks by group label, keeping task order within each group."""
    criterion = _criterion(group_by)
    if criterion == GroupBy.NONE.value:
        return {ALL_TASKS_GROUP: list(tasks)}

    grouped: Dict[str, List[TaskRecord]] = {}
    for task in tasks:
        grouped.setdefault(get_group_value(task, criterion), []).append(task)
    return grouped


def sort_groups(groups: Iterable[str], group_by: GroupCriterion) -> List[str]:
    """Default group order for a criterion.

    Priority groups run from highest number to lowest with "No Priority"
    last. Status groups follow STATUS_ORDER with unknown labels after it,
    alphabetically. Everything else sorts alphabetically.
    """
    criterion = _criterion(group_by)
    if criterion == GroupBy.PRIORITY.value:
        return sorted(groups, key=cmp_to_key(_compare_priority_groups))
    if criterion == GroupBy.STATUS.value:
        return sorted(groups, key=cmp_to_key(_compare_status_groups))
    return sorted(groups, key=str.casefold)


def discover_groups(tasks: Iterable[TaskRecord], group_by: GroupCriterion) -> List[str]:
    """Distinct group labels present in a task list, in default order."""
    criterion = _criterion(group_by)
    if criterion == GroupBy.NONE.value:
        return [ALL_TASKS_GROUP]
    return sort_groups({get_group_value(task, criterion) for task in tasks}, criterion)


def stable_group_order(
    discovered: Sequence[str], stored_order: Sequence[str], group_by: GroupCriterion
) -> List[str]:
    """Merge discovered labels into a manually arranged order.

    Labels that still exist keep their stored position; new labels are
    appended in default order. Without a stored order the default applies.
    """
    present = set(discovered)
    ordered = [group for group in stored_order if group in present]
    known = set(ordered)
    new_groups = [group for group in discovered if group not in known]
    return ordered + sort_groups(new_groups, group_by)


def move_group(order: Sequence[str], source_index: int, target_index: int) -> List[str]:
    """Move one label within an order.

    Raises:
        IndexError: If either index is out of range
    """
    if not 0 <= source_index < len(order) or not 0 <= target_index < len(order):
        raise IndexError(
            f"Group index out of range: {source_index} -> {target_index} (of {len(order)})"
        )
    reordered = list(order)
    group = reordered.pop(source_index)
    reordered.insert(target_index, group)
    return reordered


def _priority_value(group: str) -> int:
    if group == NO_PRIORITY:
        return -1
    match = _PRIORITY_LABEL_RE.search(group)
    return int(match.group(1)) if match else -1


def _compare_priority_groups(a: str, b: str) -> int:
    pa, pb = _priority_value(a), _priority_value(b)
    if pa == -1 and pb == -1:
        return 0
    if pa == -1:
        return 1
    if pb == -1:
        return -1
    return pb - pa


def _compare_status_groups(a: str, b: str) -> int:
    ia = STATUS_ORDER.index(a) if a in STATUS_ORDER else -1
    ib = STATUS_ORDER.index(b) if b in STATUS_ORDER else -1
    if ia != -1 and ib != -1:
        return ia - ib
    if ia == -1 and ib != -1:
        return 1
    if ia != -1 and ib == -1:
        return -1
    return (a.casefold() > b.casefold()) - (a.casefold() < b.casefold())
