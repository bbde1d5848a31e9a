"""Task list derivation for board and timeline views."""

from typing import TYPE_CHECKING, Any, Dict, List, Optional, Union

import structlog
from pydantic import BaseModel, Field

from tasktimeline.aggregation import MinimapBucket, aggregate
from tasktimeline.derivation.grouping import (
    discover_groups,
    move_group,
    stable_group_order,
)
from tasktimeline.models import Granularity, GroupBy, TaskRecord, TimelineSettings

if TYPE_CHECKING:
    from tasktimeline.incremental.index import TaskIndex

logger = structlog.get_logger(__name__)


class TaskListSnapshot(BaseModel):
    """Filtered task list and its group labels at one version."""

    version: int = Field(..., description="Monotonic recomputation counter")
    project: str = Field(..., description="Project selector the list was derived for")
    group_by: GroupBy = Field(GroupBy.NONE, description="Active grouping criterion")
    tasks: List[TaskRecord] = Field(default_factory=list, description="Tasks in the project")
    groups: List[str] = Field(default_factory=list, description="Group labels in display order")


class TaskListDeriver:
    """Derives the project task list and board groups from a TaskIndex.

    Manual group orderings are kept per project and criterion so that a
    label keeps its position across recomputations while it exists.
    """

    def __init__(
        self,
        index: "TaskIndex",
        settings: Optional[TimelineSettings] = None,
        project: Optional[str] = None,
        group_by: Union[GroupBy, str, None] = None,
    ) -> None:
        """Initialize the deriver.

        Args:
            index: Task index to read from
            settings: Timeline settings (defaults to the index's settings)
            project: Initial project selector (defaults to all projects)
            group_by: Initial grouping criterion (defaults to settings)
        """
        self.index = index
        self.settings = settings or index.settings
        self.project = project or self.settings.all_projects_label
        self.group_by = GroupBy(group_by) if group_by else self.settings.default_group_by
        self.group_orderings: Dict[str, Dict[str, List[str]]] = {}
        self.version = 0
        self._snapshot: Optional[TaskListSnapshot] = None

    @property
    def snapshot(self) -> TaskListSnapshot:
        """Latest snapshot, computing one on first access."""
        if self._snapshot is None:
            return self.recompute()
        return self._snapshot

    def recompute(self) -> TaskListSnapshot:
        """Re-read the index and regroup. Always bumps the version."""
        tasks = self.index.get_tasks(self.project)

        groups: List[str] = []
        if self.group_by is not GroupBy.NONE:
            discovered = discover_groups(tasks, self.group_by)
            stored = self._stored_order()
            groups = stable_group_order(discovered, stored, self.group_by)
            # Keep labels missing from this list so they return to their slot
            known = set(stored)
            self._store_order(list(stored) + [group for group in groups if group not in known])

        self.version += 1
        self._snapshot = TaskListSnapshot(
            version=self.version,
            project=self.project,
            group_by=self.group_by,
            tasks=tasks,
            groups=groups,
        )
        logger.debug(
            "task_list_recomputed",
            version=self.version,
            project=self.project,
            tasks=len(tasks),
            groups=len(groups),
        )
        return self._snapshot

    def set_project(self, project: Optional[str]) -> TaskListSnapshot:
        self.project = project or self.settings.all_projects_label
        return self.recompute()

    def set_grouping(self, group_by: Union[GroupBy, str]) -> TaskListSnapshot:
        self.group_by = GroupBy(group_by)
        return self.recompute()

    def move_group(self, source_index: int, target_index: int) -> TaskListSnapshot:
        """Reorder board groups by hand and persist the order.

        Raises:
            IndexError: If either index is outside the current group list
        """
        moved = move_group(self.snapshot.groups, source_index, target_index)
        self._store_order(moved + [group for group in self._stored_order() if group not in moved])
        return self.recompute()

    def minimap(
        self,
        granularity: Union[Granularity, str, None],
        bucket_range_start: Any,
        bucket_range_end: Any,
        clamp_range_start: Any,
        clamp_range_end: Any,
    ) -> List[MinimapBucket]:
        """Aggregate the current task list for the minimap."""
        return aggregate(
            self.snapshot.tasks,
            granularity or self.settings.default_granularity,
            bucket_range_start,
            bucket_range_end,
            clamp_range_start,
            clamp_range_end,
        )

    def _stored_order(self) -> List[str]:
        return self.group_orderings.get(self.project, {}).get(self.group_by.value, [])

    def _store_order(self, groups: List[str]) -> None:
        self.group_orderings.setdefault(self.project, {})[self.group_by.value] = list(groups)
