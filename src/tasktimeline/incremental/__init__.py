"""Incremental task indexing.

This package keeps an in-memory index of task files current by applying
vault file events to only the affected paths, avoiding full rescans.
"""

from tasktimeline.incremental.events import EventKind, VaultEvent
from tasktimeline.incremental.index import TaskIndex
from tasktimeline.incremental.manager import IndexUpdateManager, IndexUpdateResult

__all__ = [
    "TaskIndex",
    "EventKind",
    "VaultEvent",
    "IndexUpdateManager",
    "IndexUpdateResult",
]
