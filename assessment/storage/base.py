"""
Storage Backend Abstract Base Class

This module defines the interface every storage backend implements.
Answer media (speaking recordings) are uploaded by the client through a
separate upload service; grading only needs to read them back by key.

Pattern: Strategy Pattern
-------------------------
Backends are interchangeable: the speaking grader depends on
StorageBackend, never on a concrete implementation.
"""
from abc import ABC, abstractmethod


class StorageError(Exception):
    """
    Base exception for storage operations.

    Callers can catch storage errors generically:

        try:
            audio = await storage.get(key)
        except StorageError as e:
            ...
    """
    pass


class StoredFileNotFoundError(StorageError):
    """Raised when a requested file doesn't exist."""
    pass


class StorageBackend(ABC):
    """
    Abstract base class for file storage backends.

    Usage:
    ------
        storage = LocalStorage(base_path="/uploads")
        audio = await storage.get("user-files/42/speaking/ab12.webm")
    """

    @abstractmethod
    async def get(self, path: str) -> bytes:
        """
        Retrieve file content from storage.

        Args:
            path: Storage key, relative to the backend root

        Returns:
            Raw bytes of the file content

        Raises:
            StoredFileNotFoundError: If the file doesn't exist
            StorageError: If the file cannot be retrieved
        """
        pass
