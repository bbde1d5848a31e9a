"""Incremental task index.

Keeps a path-keyed map of parsed task records in sync with vault file events
instead of rescanning the task directory on every change.
"""

from typing import Dict, List, Optional

import structlog

from tasktimeline.extraction import parse_task
from tasktimeline.models import ScanFailure, TaskRecord, TimelineSettings
from tasktimeline.storage.base import VaultStorage

logger = structlog.get_logger(__name__)


class TaskIndex:
    """Path-keyed store of task records.

    The index is the only writer of its mapping. Parse and read failures are
    contained per file: the path is dropped from the index and the failure is
    logged, never raised to callers.
    """

    def __init__(
        self,
        storage: VaultStorage,
        root: Optional[str] = None,
        settings: Optional[TimelineSettings] = None,
    ) -> None:
        """Initialize the index.

        Args:
            storage: Vault storage to read task files from
            root: Task directory; defaults to settings.task_directory
            settings: Timeline settings. If None, loads from environment.
        """
        self.storage = storage
        self.settings = settings or TimelineSettings()
        self.root = (root if root is not None else self.settings.task_directory).strip("/")

        self._tasks_by_path: Dict[str, TaskRecord] = {}
        # Per-path ticket; a read whose ticket was superseded is discarded
        self._generations: Dict[str, int] = {}
        self._initialized = False
        self.last_scan_failures: List[ScanFailure] = []

    # ============================================================================
    # Lifecycle
    # ============================================================================

    async def initialize(self) -> None:
        """Rebuild the index from a full scan of the task directory.

        Safe to call repeatedly. A missing task directory yields an empty index.
        """
        self._tasks_by_path.clear()
        self._generations.clear()
        self.last_scan_failures = []

        await self._scan_directory(self.root)
        self._initialized = True

        logger.info(
            "index_initialized",
            root=self.root,
            tasks=len(self._tasks_by_path),
            failures=len(self.last_scan_failures),
        )

    def is_initialized(self) -> bool:
        return self._initialized

    async def set_root(self, root: str) -> None:
        """Point the index at another task directory, rebuilding if it changed."""
        root = root.strip("/")
        if root != self.root:
            self.root = root
            await self.initialize()

    def clear(self) -> None:
        """Drop every record and return to the uninitialized state."""
        self._tasks_by_path.clear()
        self._generations.clear()
        self._initialized = False

    # ============================================================================
    # Queries
    # ============================================================================

    def get_tasks(self, project: Optional[str] = None) -> List[TaskRecord]:
        """Get all tasks, optionally restricted to one project folder.

        Args:
            project: Project folder name. None or the all-projects label
                returns every task.

        Returns:
            List of task records
        """
        if not project or project == self.settings.all_projects_label:
            return list(self._tasks_by_path.values())

        prefix = f"{self.root}/{project}/"
        return [task for path, task in self._tasks_by_path.items() if path.startswith(prefix)]

    def get(self, path: str) -> Optional[TaskRecord]:
        return self._tasks_by_path.get(path)

    def paths(self) -> List[str]:
        return list(self._tasks_by_path)

    def size(self) -> int:
        return len(self._tasks_by_path)

    def __len__(self) -> int:
        return len(self._tasks_by_path)

    def __contains__(self, path: object) -> bool:
        return path in self._tasks_by_path

    # ============================================================================
    # Event handlers
    # ============================================================================

    async def handle_create(self, path: str) -> bool:
        """Index a newly created file.

        Returns:
            True if the index changed
        """
        return await self._reindex(path)

    async def handle_modify(self, path: str) -> bool:
        """Re-parse a modified file, replacing its record.

        Returns:
            True if the index changed
        """
        return await self._reindex(path)

    def handle_delete(self, path: str) -> bool:
        """Remove a deleted file from the index.

        Returns:
            True if a record was removed
        """
        if not self.is_relevant_path(path):
            return False

        self._next_generation(path)
        if self._tasks_by_path.pop(path, None) is not None:
            logger.debug("task_removed", path=path)
            return True
        return False

    async def handle_rename(self, old_path: str, new_path: str) -> bool:
        """Move a record to its new path.

        The old key is dropped and the file is re-parsed under the new key
        when the new location is indexable. Renames into or out of the task
        directory are covered.

        Returns:
            True if either the old or the new path is relevant
        """
        was_relevant = self.is_relevant_path(old_path)
        is_relevant = self.is_relevant_path(new_path)

        if was_relevant:
            self._next_generation(old_path)
            if self._tasks_by_path.pop(old_path, None) is not None:
                logger.debug("task_removed", path=old_path, renamed_to=new_path)

        if is_relevant and self.is_task_file(new_path):
            await self._index_file(new_path)

        return was_relevant or is_relevant

    # ============================================================================
    # Path rules
    # ============================================================================

    def is_relevant_path(self, path: str) -> bool:
        """Check that a path lies inside the task directory and outside templates.

        Paths with a '..' segment are never relevant.
        """
        prefix = self.root + "/"
        if not path.startswith(prefix):
            return False
        segments = path[len(prefix):].split("/")
        if ".." in segments:
            return False
        return self.settings.templates_folder not in segments

    def is_task_file(self, path: str) -> bool:
        """Check the markdown extension."""
        return path.lower().endswith(self.settings.markdown_extension.lower())

    # ============================================================================
    # Internals
    # ============================================================================

    def _next_generation(self, path: str) -> int:
        generation = self._generations.get(path, 0) + 1
        self._generations[path] = generation
        return generation

    async def _reindex(self, path: str) -> bool:
        if not self.is_relevant_path(path) or not self.is_task_file(path):
            return False

        before = self._tasks_by_path.get(path)
        after = await self._index_file(path)
        return before is not None or after is not None

    async def _index_file(self, path: str) -> Optional[TaskRecord]:
        """Read and parse one file, upserting or dropping its record.

        Returns:
            The stored record, or None if the file was dropped
        """
        generation = self._next_generation(path)
        try:
            content = await self.storage.read(path)
            task = parse_task(content, path)
        except (OSError, ValueError) as e:
            logger.warning("task_parse_failed", path=path, error=str(e))
            if self._generations.get(path) == generation:
                self._tasks_by_path.pop(path, None)
            return None

        if self._generations.get(path) != generation:
            logger.debug("stale_read_discarded", path=path)
            return None

        self._tasks_by_path[path] = task
        logger.debug("task_indexed", path=path, name=task.name)
        return task

    async def _scan_directory(self, folder: str) -> None:
        try:
            children = await self.storage.list_children(folder)
        except OSError as e:
            logger.warning("task_folder_unreadable", path=folder, error=str(e))
            self.last_scan_failures.append(ScanFailure(path=folder, reason=str(e)))
            return

        for child in children:
            if child.is_folder:
                if child.name == self.settings.templates_folder:
                    continue
                await self._scan_directory(child.path)
            elif self.is_task_file(child.path):
                await self._scan_file(child.path)

    async def _scan_file(self, path: str) -> None:
        try:
            content = await self.storage.read(path)
            task = parse_task(content, path)
        except (OSError, ValueError) as e:
            logger.warning("task_parse_failed", path=path, error=str(e))
            self.last_scan_failures.append(ScanFailure(path=path, reason=str(e)))
            return
        self._tasks_by_path[path] = task
