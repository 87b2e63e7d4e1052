"""
Local Filesystem Storage Backend

Reads answer media from the local filesystem. Suitable for development and
single-server deployments.

Directory Structure:
-------------------
{base_path}/
└── user-files/
    └── {user_id}/
        └── speaking/
            └── {random}.{ext}
"""

import logging
import aiofiles
from pathlib import Path

from assessment.storage.base import (
    StorageBackend,
    StorageError,
    StoredFileNotFoundError,
)

logger = logging.getLogger(__name__)


class LocalStorage(StorageBackend):
    """
    Local filesystem storage implementation.

    Uses async file I/O to avoid blocking the event loop while graders
    for other answers are running.
    """

    def __init__(self, base_path: str):
        self.base_path = Path(base_path)
        self.base_path.mkdir(parents=True, exist_ok=True)

        logger.info(f"LocalStorage initialized at: {self.base_path.absolute()}")

    def _get_full_path(self, relative_path: str) -> Path:
        """
        Convert a storage key to an absolute path under base_path.

        Raises:
            StorageError: If the key would escape base_path
        """
        resolved = (self.base_path / relative_path).resolve()

        try:
            resolved.relative_to(self.base_path.resolve())
        except ValueError:
            logger.warning(f"Path traversal attempt detected: {relative_path}")
            raise StorageError(f"Invalid path: {relative_path}")

        return resolved

    async def get(self, path: str) -> bytes:
        full_path = self._get_full_path(path)

        if not full_path.exists():
            logger.warning(f"File not found: {path}")
            raise StoredFileNotFoundError(f"File not found: {path}")

        if not full_path.is_file():
            raise StorageError(f"Path is not a file: {path}")

        try:
            async with aiofiles.open(full_path, 'rb') as f:
                content = await f.read()

            logger.debug(f"File read: {path} ({len(content)} bytes)")
            return content

        except OSError as e:
            logger.error(f"Failed to read file {path}: {e}")
            raise StorageError(f"Failed to read file: {e}") from e
