"""Shared fixtures."""

import pytest

from fakes import FakeVault, task_file
from tasktimeline.models import TimelineSettings


@pytest.fixture
def settings(monkeypatch):
    """Default settings, isolated from TASKTIMELINE_* variables."""
    for name in ("TASK_DIRECTORY", "TEMPLATES_FOLDER", "DEFAULT_GRANULARITY", "DEFAULT_GROUP_BY"):
        monkeypatch.delenv(f"TASKTIMELINE_{name}", raising=False)
    return TimelineSettings(_env_file=None)


@pytest.fixture
def vault():
    """Vault with two projects, a template and one broken file."""
    return FakeVault(
        {
            "Taskdown/Website/20250103_Launch.md": task_file(
                "Launch", "2025-01-03", status="In Progress", priority=1, category="web",
                body="- [x] Copy\n- [ ] Deploy\n",
            ),
            "Taskdown/Website/20250110_Blog.md": task_file(
                "Blog", "2025-01-10", "2025-01-12", status="Not Started", priority=3
            ),
            "Taskdown/Backend/20250105_Migrate.md": task_file(
                "Migrate", "2025-01-05", "2025-01-20", status="In Progress", priority=3,
                category="infra",
            ),
            "Taskdown/Backend/notes.txt": "not a task",
            "Taskdown/Backend/broken.md": "no metadata here",
            "Taskdown/templates/Task.md": task_file("Template", "2025-01-01"),
            "Other/20250101_Elsewhere.md": task_file("Elsewhere", "2025-01-01"),
        }
    )
