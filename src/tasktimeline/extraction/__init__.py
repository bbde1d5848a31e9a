"""Task extraction from markdown files."""

from tasktimeline.extraction.task_parser import (
    MissingMetadataError,
    ParseError,
    TaskValidationError,
    count_subtasks,
    parse_task,
    scan_metadata,
    split_metadata,
    validate_metadata,
)

__all__ = [
    "ParseError",
    "MissingMetadataError",
    "TaskValidationError",
    "parse_task",
    "split_metadata",
    "scan_metadata",
    "validate_metadata",
    "count_subtasks",
]
