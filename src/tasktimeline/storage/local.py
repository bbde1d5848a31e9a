"""Filesystem-backed vault storage."""

import asyncio
from pathlib import Path, PurePosixPath
from typing import List

import structlog

from tasktimeline.storage.base import VaultEntry, VaultStorage

logger = structlog.get_logger(__name__)


class LocalVault(VaultStorage):
    """Vault rooted at a directory on the local filesystem."""

    def __init__(self, base_dir: Path, encoding: str = "utf-8") -> None:
        """Initialize the vault.

        Args:
            base_dir: Directory that vault paths are resolved against
            encoding: Text encoding of task files
        """
        self.base_dir = Path(base_dir)
        self.encoding = encoding

    def resolve(self, path: str) -> Path:
        """Map a vault path to a filesystem path.

        Raises:
            ValueError: If the path escapes the vault
        """
        parts = PurePosixPath(path.strip("/")).parts
        if ".." in parts:
            raise ValueError(f"Path escapes the vault: {path}")
        return self.base_dir.joinpath(*parts)

    async def read(self, path: str) -> str:
        return await asyncio.to_thread(self.resolve(path).read_text, encoding=self.encoding)

    async def list_children(self, folder: str) -> List[VaultEntry]:
        directory = self.resolve(folder)
        if not directory.is_dir():
            return []

        entries = await asyncio.to_thread(lambda: sorted(directory.iterdir()))
        prefix = folder.strip("/")
        return [
            VaultEntry(
                name=child.name,
                path=f"{prefix}/{child.name}" if prefix else child.name,
                is_folder=child.is_dir(),
            )
            for child in entries
        ]

    def exists(self, path: str) -> bool:
        return self.resolve(path).exists()

    def is_folder(self, path: str) -> bool:
        return self.resolve(path).is_dir()

    async def create(self, path: str, content: str) -> None:
        target = self.resolve(path)

        def _write() -> None:
            target.parent.mkdir(parents=True, exist_ok=True)
            # "x" mode fails instead of clobbering an existing file
            with open(target, "x", encoding=self.encoding) as f:
                f.write(content)

        await asyncio.to_thread(_write)
        logger.info("vault_file_created", path=path)

    async def create_folder(self, path: str) -> None:
        target = self.resolve(path)
        await asyncio.to_thread(target.mkdir, parents=True, exist_ok=False)
        logger.info("vault_folder_created", path=path)
