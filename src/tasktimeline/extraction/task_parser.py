"""Task file parsing.

A task file is markdown with a leading metadata block::

    ---
    name: Write release notes
    start: 2025-01-15
    end: 2025-01-20
    priority: 3
    ---

    - [x] Draft
    - [ ] Review

Parsing runs in two passes: ``scan_metadata`` turns the block into a flat
string mapping, ``validate_metadata`` checks it before the record is built.
"""

import re
from typing import Dict, Optional, Tuple

from tasktimeline.models.task import TaskRecord, is_iso_date

METADATA_MARKER = "---"

_METADATA_RE = re.compile(r"\A---\n(.*?)\n---[ \t]*(?:\n|\Z)", re.DOTALL)
_SUBTASK_RE = re.compile(r"^\s*-\s*\[( |x)\]", re.IGNORECASE | re.MULTILINE)
# Leading signed integer; trailing text such as ".5" or " (high)" is ignored
_PRIORITY_RE = re.compile(r"[+-]?[0-9]+")

DEFAULT_CATEGORY = "default"
DEFAULT_STATUS = "planned"
DEFAULT_PRIORITY = 5


class ParseError(ValueError):
    """Raised when a task file cannot be turned into a TaskRecord."""

    def __init__(self, message: str, path: str = "") -> None:
        super().__init__(message)
        self.message = message
        self.path = path

    def __str__(self) -> str:
        if self.path:
            return f"{self.path}: {self.message}"
        return self.message


class MissingMetadataError(ParseError):
    """No metadata block at the start of the file."""


class TaskValidationError(ParseError):
    """A metadata field is missing or malformed."""

    def __init__(self, message: str, field: str, path: str = "") -> None:
        super().__init__(message, path)
        self.field = field


def split_metadata(content: str) -> Tuple[Optional[str], str]:
    """Split file content into its metadata block and body.

    Args:
        content: Raw file content

    Returns:
        Tuple of (metadata block text or None, trimmed body)
    """
    text = content.replace("\r\n", "\n")
    match = _METADATA_RE.match(text)
    if match is None:
        return None, text.strip()
    return match.group(1), text[match.end():].strip()


def scan_metadata(block: str) -> Dict[str, str]:
    """Read flat ``key: value`` lines.

    The first colon splits key from value and both sides are trimmed. Lines
    without a colon, or with an empty key or value, are ignored.

    Args:
        block: Metadata block text without the markers

    Returns:
        Mapping of raw string values
    """
    raw: Dict[str, str] = {}
    for line in block.split("\n"):
        key, sep, value = line.partition(":")
        if not sep:
            continue
        key = key.strip()
        value = value.strip()
        if key and value:
            raw[key] = value
    return raw


def validate_metadata(raw: Dict[str, str]) -> None:
    """Check a raw metadata mapping.

    Args:
        raw: Output of scan_metadata

    Raises:
        TaskValidationError: On the first invalid field
    """
    name = raw.get("name")
    if not isinstance(name, str) or not name.strip():
        raise TaskValidationError("Task must have a valid name field", field="name")

    start = raw.get("start")
    if not isinstance(start, str) or not start:
        raise TaskValidationError("Task must have a valid start date field", field="start")
    if not is_iso_date(start):
        raise TaskValidationError("Start date must be in YYYY-MM-DD format", field="start")

    end = raw.get("end")
    if end and not is_iso_date(end):
        raise TaskValidationError("End date must be in YYYY-MM-DD format", field="end")

    if "priority" in raw:
        priority = _coerce_priority(raw["priority"])
        if priority is None or not 1 <= priority <= 5:
            raise TaskValidationError(
                "Priority must be a number between 1 and 5", field="priority"
            )


def count_subtasks(body: str) -> Tuple[int, int]:
    """Count checkbox list items in a markdown body.

    Returns:
        Tuple of (total, completed)
    """
    marks = _SUBTASK_RE.findall(body)
    completed = sum(1 for mark in marks if mark.lower() == "x")
    return len(marks), completed


def parse_task(content: str, path: str) -> TaskRecord:
    """Parse a task file.

    Args:
        content: Raw file content
        path: Vault path of the file, used as the record key

    Returns:
        TaskRecord

    Raises:
        MissingMetadataError: If the file has no metadata block
        TaskValidationError: If a field is missing or malformed
    """
    block, body = split_metadata(content)
    if block is None:
        raise MissingMetadataError(f"No frontmatter found in {path}", path=path)

    raw = scan_metadata(block)
    try:
        validate_metadata(raw)
    except TaskValidationError as e:
        e.path = path
        raise

    start = raw["start"]
    end = raw.get("end", "")
    if end and start > end:
        raise TaskValidationError(
            f"Start date ({start}) cannot be after end date ({end})", field="end", path=path
        )

    total, completed = count_subtasks(body)
    priority = _coerce_priority(raw["priority"]) if "priority" in raw else DEFAULT_PRIORITY

    return TaskRecord(
        name=raw["name"],
        start=start,
        end=end,
        category=raw.get("category", DEFAULT_CATEGORY),
        status=raw.get("status", DEFAULT_STATUS),
        priority=priority,
        file_path=path,
        content=body,
        total_subtasks=total,
        completed_subtasks=completed,
    )


def _coerce_priority(value: str) -> Optional[int]:
    match = _PRIORITY_RE.match(value.strip())
    return int(match.group()) if match else None
