"""Derived task lists and board grouping."""

from tasktimeline.derivation.grouping import (
    ALL_TASKS_GROUP,
    STATUS_ORDER,
    discover_groups,
    get_group_value,
    group_tasks,
    move_group,
    sort_groups,
    stable_group_order,
)
from tasktimeline.derivation.task_list import TaskListDeriver, TaskListSnapshot

__all__ = [
    "TaskListDeriver",
    "TaskListSnapshot",
    "ALL_TASKS_GROUP",
    "STATUS_ORDER",
    "get_group_value",
    "group_tasks",
    "sort_groups",
    "discover_groups",
    "stable_group_order",
    "move_group",
]
