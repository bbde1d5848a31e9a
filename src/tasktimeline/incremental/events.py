"""Vault file events consumed by the task index."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, model_validator


class EventKind(str, Enum):
    """Kinds of vault file notifications."""

    CREATE = "create"
    MODIFY = "modify"
    DELETE = "delete"
    RENAME = "rename"


class VaultEvent(BaseModel):
    """One file notification from the vault."""

    kind: EventKind = Field(..., description="Type of change")
    path: str = Field(..., description="Vault path after the change")
    old_path: Optional[str] = Field(None, description="Previous path for renames")

    @model_validator(mode="after")
    def _rename_needs_old_path(self) -> "VaultEvent":
        if self.kind is EventKind.RENAME and not self.old_path:
            raise ValueError("rename events require old_path")
        return self

    @classmethod
    def created(cls, path: str) -> "VaultEvent":
        return cls(kind=EventKind.CREATE, path=path)

    @classmethod
    def modified(cls, path: str) -> "VaultEvent":
        return cls(kind=EventKind.MODIFY, path=path)

    @classmethod
    def deleted(cls, path: str) -> "VaultEvent":
        return cls(kind=EventKind.DELETE, path=path)

    @classmethod
    def renamed(cls, old_path: str, new_path: str) -> "VaultEvent":
        return cls(kind=EventKind.RENAME, path=new_path, old_path=old_path)
