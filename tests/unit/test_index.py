"""Tests for the incremental task index."""

import asyncio

import pytest

from fakes import FakeVault, task_file
from tasktimeline.incremental import TaskIndex


def _names(tasks):
    return sorted(task.name for task in tasks)


class TestInitialize:
    """Test full scans."""

    @pytest.mark.asyncio
    async def test_scan_indexes_task_files(self, vault, settings):
        """Test markdown files under the root are indexed."""
        index = TaskIndex(vault, settings=settings)
        assert not index.is_initialized()

        await index.initialize()

        assert index.is_initialized()
        assert index.size() == 3
        assert _names(index.get_tasks()) == ["Blog", "Launch", "Migrate"]

    @pytest.mark.asyncio
    async def test_scan_skips_templates_and_other_files(self, vault, settings):
        """Test templates, non-markdown and out-of-root files are skipped."""
        index = TaskIndex(vault, settings=settings)
        await index.initialize()

        assert "Taskdown/templates/Task.md" not in index
        assert "Taskdown/Backend/notes.txt" not in index
        assert "Other/20250101_Elsewhere.md" not in index
        assert "Taskdown/templates/Task.md" not in vault.reads

    @pytest.mark.asyncio
    async def test_scan_failures_are_reported(self, vault, settings):
        """Test broken files become notices instead of errors."""
        index = TaskIndex(vault, settings=settings)
        await index.initialize()

        assert "Taskdown/Backend/broken.md" not in index
        assert [failure.path for failure in index.last_scan_failures] == [
            "Taskdown/Backend/broken.md"
        ]
        assert "No frontmatter" in index.last_scan_failures[0].reason

    @pytest.mark.asyncio
    async def test_unreadable_file_is_reported(self, vault, settings):
        """Test read errors are contained per file."""
        vault.read_errors["Taskdown/Website/20250103_Launch.md"] = PermissionError("denied")
        index = TaskIndex(vault, settings=settings)
        await index.initialize()

        assert index.size() == 2
        assert len(index.last_scan_failures) == 2

    @pytest.mark.asyncio
    async def test_unreadable_folder_is_reported(self, vault, settings):
        """Test a folder that cannot be listed does not stop the scan."""
        vault.list_errors["Taskdown/Website"] = PermissionError("denied")
        index = TaskIndex(vault, settings=settings)
        await index.initialize()

        assert index.is_initialized()
        assert index.paths() == ["Taskdown/Backend/20250105_Migrate.md"]
        assert sorted(failure.path for failure in index.last_scan_failures) == [
            "Taskdown/Backend/broken.md",
            "Taskdown/Website",
        ]

    @pytest.mark.asyncio
    async def test_read_value_error_is_contained(self, vault, settings):
        """Test a read rejecting the path is reported like any other read error."""
        vault.read_errors["Taskdown/Website/20250103_Launch.md"] = ValueError("bad path")
        index = TaskIndex(vault, settings=settings)
        await index.initialize()

        assert "Taskdown/Website/20250103_Launch.md" not in index
        assert index.size() == 2

    @pytest.mark.asyncio
    async def test_missing_root(self, settings):
        """Test a missing task directory gives an empty index."""
        index = TaskIndex(FakeVault(), settings=settings)
        await index.initialize()

        assert index.is_initialized()
        assert index.size() == 0

    @pytest.mark.asyncio
    async def test_initialize_is_idempotent(self, vault, settings):
        """Test repeated scans give the same records."""
        index = TaskIndex(vault, settings=settings)
        await index.initialize()
        first = {task.file_path: task for task in index.get_tasks()}

        await index.initialize()
        second = {task.file_path: task for task in index.get_tasks()}

        assert first == second
        assert len(index.last_scan_failures) == 1

    @pytest.mark.asyncio
    async def test_indexed_records_hold_invariants(self, vault, settings):
        """Test date order and subtask bounds on every record."""
        index = TaskIndex(vault, settings=settings)
        await index.initialize()

        for task in index.get_tasks():
            assert not task.end or task.start <= task.end
            assert 0 <= task.completed_subtasks <= task.total_subtasks

    @pytest.mark.asyncio
    async def test_clear(self, vault, settings):
        """Test clear returns to the uninitialized state."""
        index = TaskIndex(vault, settings=settings)
        await index.initialize()
        index.clear()

        assert not index.is_initialized()
        assert index.size() == 0

    @pytest.mark.asyncio
    async def test_set_root_rebuilds(self, settings):
        """Test pointing the index at another directory."""
        vault = FakeVault(
            {
                "Taskdown/A/one.md": task_file("One", "2025-01-01"),
                "Work/B/two.md": task_file("Two", "2025-01-02"),
            }
        )
        index = TaskIndex(vault, settings=settings)
        await index.initialize()
        assert index.paths() == ["Taskdown/A/one.md"]

        await index.set_root("/Work/")

        assert index.root == "Work"
        assert index.paths() == ["Work/B/two.md"]


class TestQueries:
    """Test project filtering and lookups."""

    @pytest.mark.asyncio
    async def test_get_tasks_by_project(self, vault, settings):
        """Test project filtering by folder prefix."""
        index = TaskIndex(vault, settings=settings)
        await index.initialize()

        assert _names(index.get_tasks("Website")) == ["Blog", "Launch"]
        assert _names(index.get_tasks("Backend")) == ["Migrate"]
        assert _names(index.get_tasks("All Projects")) == ["Blog", "Launch", "Migrate"]
        assert index.get_tasks("Missing") == []

    @pytest.mark.asyncio
    async def test_project_prefix_is_exact(self, settings):
        """Test a project does not match a longer folder name."""
        vault = FakeVault(
            {
                "Taskdown/Web/a.md": task_file("A", "2025-01-01"),
                "Taskdown/Website/b.md": task_file("B", "2025-01-01"),
            }
        )
        index = TaskIndex(vault, settings=settings)
        await index.initialize()

        assert _names(index.get_tasks("Web")) == ["A"]

    @pytest.mark.asyncio
    async def test_get(self, vault, settings):
        """Test lookup by path."""
        index = TaskIndex(vault, settings=settings)
        await index.initialize()

        task = index.get("Taskdown/Website/20250103_Launch.md")
        assert task is not None
        assert task.total_subtasks == 2
        assert task.completed_subtasks == 1
        assert index.get("Taskdown/Website/nope.md") is None


class TestPathRules:
    """Test relevance checks."""

    @pytest.mark.parametrize(
        "path,relevant",
        [
            ("Taskdown/Website/a.md", True),
            ("Taskdown/a.md", True),
            ("Taskdown", False),
            ("TaskdownArchive/a.md", False),
            ("Other/Taskdown/a.md", False),
            ("Taskdown/templates/a.md", False),
            ("Taskdown/Website/templates/a.md", False),
            ("Taskdown/../evil.md", False),
            ("Taskdown/Website/../../evil.md", False),
        ],
    )
    def test_is_relevant_path(self, settings, path, relevant):
        """Test the root prefix and templates exclusion."""
        index = TaskIndex(FakeVault(), settings=settings)
        assert index.is_relevant_path(path) is relevant

    def test_is_task_file(self, settings):
        """Test the markdown extension check."""
        index = TaskIndex(FakeVault(), settings=settings)
        assert index.is_task_file("Taskdown/p/a.md")
        assert index.is_task_file("Taskdown/p/A.MD")
        assert not index.is_task_file("Taskdown/p/a.txt")


class TestEventHandlers:
    """Test create, modify, delete and rename handling."""

    @pytest.fixture
    def index(self, vault, settings):
        return TaskIndex(vault, settings=settings)

    @pytest.mark.asyncio
    async def test_create(self, index, vault):
        """Test a new task file is indexed."""
        await index.initialize()
        path = "Taskdown/Website/20250201_Launch_v2.md"
        vault.write(path, task_file("Launch v2", "2025-02-01"))

        assert await index.handle_create(path) is True
        assert index.get(path).name == "Launch v2"
        assert index.size() == 4

    @pytest.mark.asyncio
    async def test_create_outside_root(self, index, vault):
        """Test files outside the root are ignored."""
        await index.initialize()
        path = "Other/20250301_Outside.md"
        vault.write(path, task_file("Outside", "2025-03-01"))

        assert await index.handle_create(path) is False
        assert index.size() == 3
        assert path not in vault.reads

    @pytest.mark.asyncio
    async def test_create_in_templates(self, index, vault):
        """Test template files are ignored."""
        await index.initialize()
        path = "Taskdown/Website/templates/Tpl.md"
        vault.write(path, task_file("Tpl", "2025-03-01"))

        assert await index.handle_create(path) is False
        assert path not in index

    @pytest.mark.asyncio
    async def test_create_non_markdown(self, index, vault):
        """Test non-markdown files are ignored."""
        await index.initialize()
        vault.write("Taskdown/Website/image.png", "binary")

        assert await index.handle_create("Taskdown/Website/image.png") is False

    @pytest.mark.asyncio
    async def test_create_invalid_file(self, index, vault):
        """Test an invalid new file leaves the index unchanged."""
        await index.initialize()
        path = "Taskdown/Website/draft.md"
        vault.write(path, "# draft without metadata")

        assert await index.handle_create(path) is False
        assert path not in index
        assert index.size() == 3

    @pytest.mark.asyncio
    async def test_modify_replaces_record(self, index, vault):
        """Test a modified file produces a new record."""
        await index.initialize()
        path = "Taskdown/Website/20250110_Blog.md"
        before = index.get(path)
        vault.write(path, task_file("Blog", "2025-01-10", "2025-01-14", status="Completed"))

        assert await index.handle_modify(path) is True
        after = index.get(path)
        assert after.status == "Completed"
        assert after.end == "2025-01-14"
        assert before.status == "Not Started"

    @pytest.mark.asyncio
    async def test_modify_to_invalid_removes_stale_record(self, index, vault):
        """Test an edit that breaks the file drops it."""
        await index.initialize()
        path = "Taskdown/Website/20250110_Blog.md"
        vault.write(path, task_file("Blog", "2025-01-10", priority=9))

        assert await index.handle_modify(path) is True
        assert path not in index
        assert index.size() == 2

    @pytest.mark.asyncio
    async def test_modify_fixes_broken_file(self, index, vault):
        """Test a broken file is indexed once repaired."""
        await index.initialize()
        path = "Taskdown/Backend/broken.md"
        vault.write(path, task_file("Repaired", "2025-01-07"))

        assert await index.handle_modify(path) is True
        assert index.get(path).name == "Repaired"

    @pytest.mark.asyncio
    async def test_modify_read_failure(self, index, vault):
        """Test a failed read drops the stale record."""
        await index.initialize()
        path = "Taskdown/Website/20250110_Blog.md"
        vault.read_errors[path] = OSError("disk error")

        assert await index.handle_modify(path) is True
        assert path not in index

    @pytest.mark.asyncio
    async def test_modify_read_value_error(self, index, vault):
        """Test a read raising ValueError is contained like a parse failure."""
        await index.initialize()
        path = "Taskdown/Website/20250110_Blog.md"
        vault.read_errors[path] = ValueError("bad path")

        assert await index.handle_modify(path) is True
        assert path not in index
        assert await index.handle_create(path) is False

    @pytest.mark.asyncio
    async def test_delete(self, index):
        """Test a deleted file is removed."""
        await index.initialize()
        path = "Taskdown/Website/20250110_Blog.md"

        assert index.handle_delete(path) is True
        assert all(task.file_path != path for task in index.get_tasks())
        assert index.handle_delete(path) is False

    @pytest.mark.asyncio
    async def test_delete_untracked(self, index):
        """Test deleting unknown or irrelevant paths."""
        await index.initialize()

        assert index.handle_delete("Taskdown/Backend/broken.md") is False
        assert index.handle_delete("Other/20250101_Elsewhere.md") is False
        assert index.size() == 3

    @pytest.mark.asyncio
    async def test_rename_within_root(self, index, vault):
        """Test a move between projects re-keys the record."""
        await index.initialize()
        old = "Taskdown/Website/20250110_Blog.md"
        new = "Taskdown/Backend/20250110_Blog.md"
        vault.move(old, new)

        assert await index.handle_rename(old, new) is True
        assert old not in index
        assert index.get(new).file_path == new
        assert [task.name for task in index.get_tasks("Backend")].count("Blog") == 1

    @pytest.mark.asyncio
    async def test_rename_out_of_root(self, index, vault):
        """Test moving a task out of the root removes it."""
        await index.initialize()
        old = "Taskdown/Website/20250110_Blog.md"
        new = "Archive/20250110_Blog.md"
        vault.move(old, new)

        assert await index.handle_rename(old, new) is True
        assert old not in index
        assert new not in index
        assert index.size() == 2

    @pytest.mark.asyncio
    async def test_rename_into_root(self, index, vault):
        """Test moving a task into the root indexes it."""
        await index.initialize()
        old = "Other/20250101_Elsewhere.md"
        new = "Taskdown/Backend/20250101_Elsewhere.md"
        vault.move(old, new)

        assert await index.handle_rename(old, new) is True
        assert index.get(new).name == "Elsewhere"

    @pytest.mark.asyncio
    async def test_rename_into_templates(self, index, vault):
        """Test moving a task into templates removes it."""
        await index.initialize()
        old = "Taskdown/Website/20250110_Blog.md"
        new = "Taskdown/templates/20250110_Blog.md"
        vault.move(old, new)

        assert await index.handle_rename(old, new) is True
        assert old not in index
        assert new not in index

    @pytest.mark.asyncio
    async def test_rename_outside_root(self, index, vault):
        """Test renames entirely outside the root."""
        await index.initialize()
        vault.move("Other/20250101_Elsewhere.md", "Other/renamed.md")

        assert await index.handle_rename("Other/20250101_Elsewhere.md", "Other/renamed.md") is False
        assert index.size() == 3

    @pytest.mark.asyncio
    async def test_rename_to_non_markdown(self, index, vault):
        """Test renaming a task to another extension drops it."""
        await index.initialize()
        old = "Taskdown/Website/20250110_Blog.md"
        new = "Taskdown/Website/20250110_Blog.txt"
        vault.move(old, new)

        assert await index.handle_rename(old, new) is True
        assert old not in index
        assert new not in index


class TestStaleReads:
    """Test in-flight reads superseded by later events."""

    @pytest.mark.asyncio
    async def test_delete_during_read_wins(self, vault, settings):
        """Test a delete that arrives while a modify read is pending."""
        index = TaskIndex(vault, settings=settings)
        await index.initialize()
        path = "Taskdown/Website/20250110_Blog.md"
        vault.write(path, task_file("Blog", "2025-01-10", status="Review"))
        vault.gates[path] = asyncio.Event()

        pending = asyncio.create_task(index.handle_modify(path))
        await asyncio.sleep(0)
        assert index.handle_delete(path) is True
        vault.gates[path].set()
        await pending

        assert path not in index

    @pytest.mark.asyncio
    async def test_newer_modify_wins(self, vault, settings):
        """Test an older read does not overwrite a newer one."""
        index = TaskIndex(vault, settings=settings)
        await index.initialize()
        path = "Taskdown/Website/20250110_Blog.md"
        vault.write(path, task_file("Blog", "2025-01-10", status="Review"))
        gate = asyncio.Event()
        vault.gates[path] = gate

        older = asyncio.create_task(index.handle_modify(path))
        await asyncio.sleep(0)

        del vault.gates[path]
        vault.write(path, task_file("Blog", "2025-01-10", status="Completed"))
        await index.handle_modify(path)
        assert index.get(path).status == "Completed"

        gate.set()
        await older

        assert index.get(path).status == "Completed"
