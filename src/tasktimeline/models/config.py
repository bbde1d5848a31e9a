"""Configuration models."""

from enum import Enum

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Granularity(str, Enum):
    """Time unit used to bucket tasks on the timeline minimap."""

    DAY = "day"
    WEEK = "week"
    MONTH = "month"


class GroupBy(str, Enum):
    """Board grouping criteria."""

    NONE = "none"
    STATUS = "status"
    PRIORITY = "priority"
    CATEGORY = "category"


class TimelineSettings(BaseSettings):
    """Settings for the task index and timeline views.

    Settings can be loaded from environment variables or .env file.
    All settings are prefixed with TASKTIMELINE_ (e.g., TASKTIMELINE_TASK_DIRECTORY).
    """

    model_config = SettingsConfigDict(
        env_prefix="TASKTIMELINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Vault layout
    task_directory: str = Field(
        default="Taskdown",
        description="Vault-relative folder holding one subfolder per project",
    )
    templates_folder: str = Field(
        default="templates",
        description="Folder name excluded from indexing at any depth below the root",
    )
    markdown_extension: str = Field(
        default=".md",
        description="Extension of task files",
    )

    # Views
    all_projects_label: str = Field(
        default="All Projects",
        description="Project selector value meaning 'no project filter'",
    )
    default_granularity: Granularity = Field(
        default=Granularity.DAY,
        description="Minimap bucketing unit (day, week, month)",
    )
    default_group_by: GroupBy = Field(
        default=GroupBy.NONE,
        description="Board grouping criterion (none, status, priority, category)",
    )

    # Logging
    log_level: str = "INFO"

    @property
    def root(self) -> str:
        """Task directory without surrounding slashes."""
        return self.task_directory.strip("/")
