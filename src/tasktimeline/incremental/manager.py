"""Index update manager - routes vault events and refreshes derived views."""

import asyncio
from typing import Dict, Iterable, List, Optional

import structlog

from tasktimeline.derivation.task_list import TaskListDeriver, TaskListSnapshot
from tasktimeline.incremental.events import EventKind, VaultEvent
from tasktimeline.incremental.index import TaskIndex

logger = structlog.get_logger(__name__)


class IndexUpdateResult:
    """Result of applying one vault event."""

    def __init__(
        self,
        event: VaultEvent,
        changed: bool = False,
        version: int = 0,
    ):
        self.event = event
        self.changed = changed
        self.version = version

    @property
    def path(self) -> str:
        return self.event.path

    def __repr__(self) -> str:
        return (
            f"IndexUpdateResult(kind={self.event.kind.value!r}, path={self.path!r}, "
            f"changed={self.changed}, version={self.version})"
        )


class IndexUpdateManager:
    """Applies vault events to a TaskIndex one at a time.

    A single lock serializes event handling so that create, modify, delete
    and rename for the same path are applied in delivery order even when
    callers schedule them concurrently. After each event that changed the
    index the task list is re-derived.
    """

    def __init__(
        self,
        index: TaskIndex,
        deriver: Optional[TaskListDeriver] = None,
    ) -> None:
        """Initialize the manager.

        Args:
            index: Task index to keep current
            deriver: Task list deriver to refresh (optional)
        """
        self.index = index
        self.deriver = deriver or TaskListDeriver(index)
        self._lock = asyncio.Lock()

    async def initialize(self) -> TaskListSnapshot:
        """Full scan, then derive the first task list."""
        async with self._lock:
            await self.index.initialize()
            return self.deriver.recompute()

    async def apply(self, event: VaultEvent) -> IndexUpdateResult:
        """Apply one event.

        Args:
            event: Vault event to apply

        Returns:
            IndexUpdateResult with the deriver version after the event
        """
        async with self._lock:
            changed = await self._dispatch(event)
            if changed:
                self.deriver.recompute()

        logger.debug(
            "vault_event_applied",
            kind=event.kind.value,
            path=event.path,
            changed=changed,
            version=self.deriver.version,
        )
        return IndexUpdateResult(event=event, changed=changed, version=self.deriver.version)

    async def apply_batch(self, events: Iterable[VaultEvent]) -> List[IndexUpdateResult]:
        """Apply events in order."""
        return [await self.apply(event) for event in events]

    def get_status(self) -> Dict[str, object]:
        """Summary of the index and derived list."""
        return {
            "initialized": self.index.is_initialized(),
            "root": self.index.root,
            "tasks": self.index.size(),
            "project": self.deriver.project,
            "version": self.deriver.version,
            "scan_failures": len(self.index.last_scan_failures),
        }

    async def _dispatch(self, event: VaultEvent) -> bool:
        if event.kind is EventKind.CREATE:
            return await self.index.handle_create(event.path)
        if event.kind is EventKind.MODIFY:
            return await self.index.handle_modify(event.path)
        if event.kind is EventKind.DELETE:
            return self.index.handle_delete(event.path)
        return await self.index.handle_rename(event.old_path, event.path)
