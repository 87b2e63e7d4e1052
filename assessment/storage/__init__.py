"""
Storage Module

File storage abstraction using the Strategy Pattern.
The active backend is determined by configuration (STORAGE_BACKEND setting).
"""

from assessment.storage.base import (
    StorageBackend,
    StorageError,
    StoredFileNotFoundError,
)
from assessment.storage.local import LocalStorage
from assessment.core.config import settings


def create_storage_backend() -> StorageBackend:
    """
    Build the configured storage backend.

    Called once from the application lifespan; the instance is injected
    into the grading adapter rather than kept as module state.

    Raises:
        ValueError: If STORAGE_BACKEND is not a valid option
    """
    backend = settings.STORAGE_BACKEND.lower()

    if backend == "local":
        return LocalStorage(base_path=settings.UPLOAD_DIR)

    raise ValueError(
        f"Unknown storage backend: {backend}. "
        f"Valid options: local"
    )


__all__ = [
    "create_storage_backend",
    "StorageBackend",
    "StorageError",
    "StoredFileNotFoundError",
    "LocalStorage",
]
