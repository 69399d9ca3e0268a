"""Service definition storage backends."""

from src.infrastructure.storage.filesystem_service_repository import (
    FilesystemServiceRepository,
)
from src.infrastructure.storage.keyed_lock import KeyedLock

__all__ = [
    "FilesystemServiceRepository",
    "KeyedLock",
]
