"""Date extent of a task collection."""

from typing import Any, Iterable, Optional

from tasktimeline.aggregation.minimap import task_interval
from tasktimeline.models import DateBounds


def compute_date_bounds(tasks: Iterable[Any]) -> Optional[DateBounds]:
    """Earliest start and latest effective end over tasks with a valid start.

    Returns:
        DateBounds, or None when no task has a usable start date
    """
    earliest = None
    latest = None
    for task in tasks:
        interval = task_interval(task)
        if interval is None:
            continue
        start, end = interval
        if earliest is None or start < earliest:
            earliest = start
        if latest is None or end > latest:
            latest = end

    if earliest is None or latest is None:
        return None
    return DateBounds(earliest=earliest, latest=latest)
