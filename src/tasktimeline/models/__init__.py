"""Data models for task files and timeline settings."""

from tasktimeline.models.config import Granularity, GroupBy, TimelineSettings
from tasktimeline.models.task import DateBounds, ScanFailure, TaskDraft, TaskRecord

__all__ = [
    "TaskRecord",
    "TaskDraft",
    "ScanFailure",
    "DateBounds",
    "Granularity",
    "GroupBy",
    "TimelineSettings",
]
