"""Base class for vault storage backends."""

from abc import ABC, abstractmethod
from typing import List

from pydantic import BaseModel, Field


class VaultEntry(BaseModel):
    """A file or folder inside the vault."""

    name: str = Field(..., description="Last path segment")
    path: str = Field(..., description="Vault-relative path with '/' separators")
    is_folder: bool = Field(False, description="Whether the entry is a folder")

    @property
    def extension(self) -> str:
        """File extension including the dot, empty for folders."""
        if self.is_folder or "." not in self.name:
            return ""
        return "." + self.name.rsplit(".", 1)[1]


class VaultStorage(ABC):
    """Abstract file storage the task index reads from.

    Paths are vault-relative and use '/' as separator regardless of platform.
    """

    @abstractmethod
    async def read(self, path: str) -> str:
        """Read a file's text content.

        Args:
            path: Vault path of the file

        Returns:
            File content

        Raises:
            OSError: If the file is missing or unreadable
        """
        pass

    @abstractmethod
    async def list_children(self, folder: str) -> List[VaultEntry]:
        """List the direct children of a folder.

        Args:
            folder: Vault path of the folder

        Returns:
            Entries in the folder, empty if the folder does not exist
        """
        pass

    @abstractmethod
    def exists(self, path: str) -> bool:
        """Check whether a file or folder exists at a path."""
        pass

    @abstractmethod
    def is_folder(self, path: str) -> bool:
        """Check whether a folder exists at a path."""
        pass

    @abstractmethod
    async def create(self, path: str, content: str) -> None:
        """Create a new file.

        Args:
            path: Vault path of the new file
            content: Text to write

        Raises:
            FileExistsError: If a file already exists at the path
            OSError: If the file cannot be written
        """
        pass

    @abstractmethod
    async def create_folder(self, path: str) -> None:
        """Create a folder, including missing parents.

        Raises:
            FileExistsError: If anything already exists at the path
        """
        pass
