"""Vault storage backends and task file authoring."""

from tasktimeline.storage.authoring import (
    TaskCreationError,
    build_task_filename,
    create_task_file,
    render_task_file,
)
from tasktimeline.storage.base import VaultEntry, VaultStorage
from tasktimeline.storage.local import LocalVault
from tasktimeline.storage.projects import (
    ProjectError,
    create_project,
    list_projects,
    sanitize_project_name,
)

__all__ = [
    "VaultStorage",
    "VaultEntry",
    "LocalVault",
    "list_projects",
    "create_project",
    "sanitize_project_name",
    "ProjectError",
    "create_task_file",
    "build_task_filename",
    "render_task_file",
    "TaskCreationError",
]
