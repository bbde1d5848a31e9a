"""Data models for task files and their derived views."""

import re
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

DATE_PATTERN = r"^[0-9]{4}-[0-9]{2}-[0-9]{2}$"
_DATE_RE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")


class TaskRecord(BaseModel):
    """Validated representation of one task file.

    Records are never patched in place; a modified file produces a new record.
    """

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "name": "Write release notes",
                "start": "2025-01-15",
                "end": "2025-01-20",
                "category": "docs",
                "status": "In Progress",
                "priority": 3,
                "file_path": "Taskdown/Website/20250115_Write_release_notes.md",
                "content": "# Write release notes\n\n- [x] Draft\n- [ ] Review",
                "total_subtasks": 2,
                "completed_subtasks": 1,
            }
        },
    )

    name: str = Field(..., min_length=1, description="Display title")
    start: str = Field(..., pattern=DATE_PATTERN, description="Start date (YYYY-MM-DD)")
    end: str = Field("", description="End date (YYYY-MM-DD), empty when absent")
    category: str = Field("default", description="Free-form category")
    status: str = Field("planned", description="Free-form status")
    priority: int = Field(5, ge=1, le=5, description="Priority from 1 to 5")
    file_path: str = Field(..., description="Vault path of the task file, unique key in the index")
    content: str = Field("", description="Markdown body after the metadata block")
    total_subtasks: int = Field(0, ge=0, description="Checkbox items in the body")
    completed_subtasks: int = Field(0, ge=0, description="Checked checkbox items in the body")

    @field_validator("end")
    @classmethod
    def _end_format(cls, value: str) -> str:
        if value and not is_iso_date(value):
            raise ValueError("End date must be in YYYY-MM-DD format")
        return value

    @model_validator(mode="after")
    def _check_invariants(self) -> "TaskRecord":
        if self.end and self.start > self.end:
            raise ValueError(f"Start date ({self.start}) cannot be after end date ({self.end})")
        if self.completed_subtasks > self.total_subtasks:
            raise ValueError("completed_subtasks cannot exceed total_subtasks")
        return self

    @property
    def effective_end(self) -> str:
        """End date, falling back to the start date for single-day tasks."""
        return self.end or self.start


class TaskDraft(BaseModel):
    """Input for creating a new task file."""

    name: str = Field(..., description="Display title")
    start: str = Field(..., pattern=DATE_PATTERN, description="Start date (YYYY-MM-DD)")
    end: Optional[str] = Field(None, description="End date (YYYY-MM-DD)")
    category: Optional[str] = Field(None, description="Category")
    status: Optional[str] = Field(None, description="Status")
    priority: int = Field(5, ge=1, le=5, description="Priority from 1 to 5")

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Task must have a valid name field")
        return value

    @field_validator("end")
    @classmethod
    def _end_format(cls, value: Optional[str]) -> Optional[str]:
        if value and not is_iso_date(value):
            raise ValueError("End date must be in YYYY-MM-DD format")
        return value or None

    @model_validator(mode="after")
    def _check_order(self) -> "TaskDraft":
        if self.end and self.start > self.end:
            raise ValueError(f"Start date ({self.start}) cannot be after end date ({self.end})")
        return self


class ScanFailure(BaseModel):
    """A file skipped during a full scan, surfaced to the user as a notice."""

    path: str = Field(..., description="Vault path of the skipped file")
    reason: str = Field(..., description="Parse or read error message")


class DateBounds(BaseModel):
    """Earliest start and latest end over a task collection."""

    earliest: datetime
    latest: datetime


def is_iso_date(value: str) -> bool:
    """Check a string against the fixed-width YYYY-MM-DD layout."""
    return _DATE_RE.fullmatch(value) is not None
