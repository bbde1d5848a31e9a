"""Creating new task files inside a project folder."""

import re
from typing import List

import structlog

from tasktimeline.models import TaskDraft, TimelineSettings
from tasktimeline.storage.base import VaultStorage

logger = structlog.get_logger(__name__)

IDENTIFIER_LENGTH = 20

TASK_BODY_TEMPLATE = """# {name}

Task description and notes go here.

## Subtasks
- [ ] Add your subtasks here
"""


class TaskCreationError(ValueError):
    """Raised when a task file cannot be created."""


def build_task_filename(draft: TaskDraft, counter: int = 0) -> str:
    """Build the file name for a draft.

    The name is the compact start date followed by up to 20 characters of
    the title with punctuation removed and whitespace runs turned into
    underscores. A non-zero counter is appended to make the name unique.

    Args:
        draft: Task being created
        counter: Uniqueness suffix, 0 for none

    Returns:
        File name such as ``20250103_Write_report.md``
    """
    date_prefix = draft.start.replace("-", "")
    safe_name = re.sub(r"[^a-zA-Z0-9\s]", "", draft.name)
    identifier = re.sub(r"\s+", "_", safe_name)[:IDENTIFIER_LENGTH]
    if counter:
        return f"{date_prefix}_{identifier}_{counter}.md"
    return f"{date_prefix}_{identifier}.md"


def render_task_file(draft: TaskDraft) -> str:
    """Render the metadata block and starter body for a draft."""
    lines: List[str] = [f"name: {draft.name}", f"start: {draft.start}"]
    if draft.end:
        lines.append(f"end: {draft.end}")
    if draft.category:
        lines.append(f"category: {draft.category}")
    if draft.status:
        lines.append(f"status: {draft.status}")
    lines.append(f"priority: {draft.priority}")

    metadata = "\n".join(lines)
    return f"---\n{metadata}\n---\n\n" + TASK_BODY_TEMPLATE.format(name=draft.name)


async def create_task_file(
    storage: VaultStorage,
    settings: TimelineSettings,
    project: str,
    draft: TaskDraft,
) -> str:
    """Write a new task file into a project folder.

    The index is not touched here; the file is picked up through the
    regular create event.

    Args:
        storage: Vault storage
        settings: Timeline settings
        project: Project folder name
        draft: Validated task input

    Returns:
        Vault path of the new file

    Raises:
        TaskCreationError: If no specific project is selected, the project
            folder is missing, or the file cannot be written
    """
    if not project or project == settings.all_projects_label:
        raise TaskCreationError(
            "Please select a specific project before creating tasks. "
            f"You cannot create tasks when '{settings.all_projects_label}' is selected."
        )

    target_directory = f"{settings.root}/{project}"
    if not storage.is_folder(target_directory):
        raise TaskCreationError(
            f"Project directory '{project}' not found. "
            f"Please ensure the project folder exists in {settings.root}."
        )

    counter = 0
    filename = build_task_filename(draft)
    while storage.exists(f"{target_directory}/{filename}"):
        counter += 1
        filename = build_task_filename(draft, counter)

    path = f"{target_directory}/{filename}"
    try:
        await storage.create(path, render_task_file(draft))
    except FileExistsError as e:
        raise TaskCreationError(f"A file named {filename} already exists.") from e
    except PermissionError as e:
        raise TaskCreationError(
            f"Permission denied. Check write access to {target_directory}."
        ) from e
    except OSError as e:
        raise TaskCreationError(f"Failed to create task file: {e}") from e

    logger.info("task_file_created", project=project, path=path)
    return path
