"""Project folders under the task directory."""

import re
from typing import List

import structlog

from tasktimeline.models import TimelineSettings
from tasktimeline.storage.base import VaultStorage

logger = structlog.get_logger(__name__)

# Characters not allowed in folder names on common filesystems
_UNSAFE_FOLDER_CHARS = re.compile(r'[/\\:*?"<>|]')


class ProjectError(ValueError):
    """Raised when a project folder cannot be created."""


async def list_projects(storage: VaultStorage, settings: TimelineSettings) -> List[str]:
    """List project selectors for the task directory.

    Args:
        storage: Vault storage
        settings: Timeline settings

    Returns:
        The all-projects label followed by each project folder name
    """
    projects = [settings.all_projects_label]
    if not settings.root or not storage.is_folder(settings.root):
        return projects

    for entry in await storage.list_children(settings.root):
        if entry.is_folder and entry.name != settings.templates_folder:
            projects.append(entry.name)
    return projects


def sanitize_project_name(name: str) -> str:
    return _UNSAFE_FOLDER_CHARS.sub("", name).strip()


async def create_project(storage: VaultStorage, settings: TimelineSettings, name: str) -> str:
    """Create a project folder under the task directory.

    Args:
        storage: Vault storage
        settings: Timeline settings
        name: Requested folder name

    Returns:
        The sanitized folder name that was created

    Raises:
        ProjectError: If the name is empty after sanitizing or the folder exists
    """
    folder_name = sanitize_project_name(name)
    if not folder_name:
        raise ProjectError("Invalid folder name after sanitization.")

    path = f"{settings.root}/{folder_name}"
    if storage.exists(path):
        raise ProjectError(f'Folder "{folder_name}" already exists.')

    try:
        await storage.create_folder(path)
    except FileExistsError as e:
        raise ProjectError(f'Folder "{folder_name}" already exists.') from e
    except OSError as e:
        raise ProjectError(f"Error creating folder: {e}") from e

    logger.info("project_created", project=folder_name, path=path)
    return folder_name
