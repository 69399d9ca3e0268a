"""Filesystem implementation of ServiceRepositoryInterface.

One YAML file per service at ``<directory>/<name>.yaml``. The directory is
the index: listing enumerates it, skipping hidden entries (including the
``.history`` and ``.git`` directories). Writes go to ``<name>.yaml.tmp``
and are renamed over the target so readers never observe a torn file.
Blocking file I/O runs in worker threads.
"""

import asyncio
import logging
import os
from pathlib import Path

from src.domain.entities.service import Service
from src.domain.entities.service_query import ServiceFilter
from src.domain.exceptions import (
    BackendUnavailableError,
    ServiceAlreadyExistsError,
    ServiceConflictError,
    ServiceNotFoundError,
    ServiceValidationError,
)
from src.domain.repositories.service_repository import ServiceRepositoryInterface
from src.infrastructure.storage.keyed_lock import KeyedLock
from src.infrastructure.storage.service_document import dump_service, load_service

logger = logging.getLogger(__name__)

SERVICE_FILE_SUFFIX = ".yaml"
TEMP_FILE_SUFFIX = ".tmp"


class FilesystemServiceRepository(ServiceRepositoryInterface):
    """YAML file per service, serialized per name by a keyed lock."""

    def __init__(self, directory: str | Path, locks: KeyedLock | None = None):
        """Initialize repository.

        Args:
            directory: Storage directory
            locks: Keyed lock shared by every writer of this directory
        """
        self._directory = Path(directory)
        self._locks = locks or KeyedLock()

    @property
    def directory(self) -> Path:
        return self._directory

    async def initialize(self) -> None:
        """Create the storage directory if needed."""
        try:
            await asyncio.to_thread(self._directory.mkdir, parents=True, exist_ok=True)
        except OSError as e:
            raise BackendUnavailableError("storage", "initialize", e) from e
        logger.info(f"Service catalog storage ready at {self._directory}")

    async def create(self, service: Service) -> Service:
        name = service.metadata.name
        async with self._locks.hold(name):
            path = self._path(name)
            try:
                if await asyncio.to_thread(path.exists):
                    raise ServiceAlreadyExistsError(name)
                await asyncio.to_thread(self._write_atomic, path, dump_service(service))
            except OSError as e:
                raise BackendUnavailableError("storage", "create", e) from e
        return service

    async def get_by_name(self, name: str) -> Service:
        return await self._read(name, "get")

    async def update(
        self, service: Service, expected_version: int | None = None
    ) -> Service:
        name = service.metadata.name
        async with self._locks.hold(name):
            current = await self._read(name, "update")
            if (
                expected_version is not None
                and current.metadata.version != expected_version
            ):
                raise ServiceConflictError(
                    name, expected_version, current.metadata.version
                )
            try:
                await asyncio.to_thread(
                    self._write_atomic, self._path(name), dump_service(service)
                )
            except OSError as e:
                raise BackendUnavailableError("storage", "update", e) from e
        return service

    async def delete(self, name: str) -> None:
        async with self._locks.hold(name):
            try:
                await asyncio.to_thread(self._path(name).unlink)
            except FileNotFoundError as e:
                raise ServiceNotFoundError(name) from e
            except OSError as e:
                raise BackendUnavailableError("storage", "delete", e) from e

    async def list(self, service_filter: ServiceFilter | None = None) -> list[Service]:
        try:
            return await asyncio.to_thread(self._scan)
        except OSError as e:
            raise BackendUnavailableError("storage", "list", e) from e

    async def exists(self, name: str) -> bool:
        try:
            return await asyncio.to_thread(self._path(name).is_file)
        except OSError as e:
            raise BackendUnavailableError("storage", "exists", e) from e

    async def _read(self, name: str, operation: str) -> Service:
        path = self._path(name)
        try:
            text = await asyncio.to_thread(path.read_text, encoding="utf-8")
        except FileNotFoundError as e:
            raise ServiceNotFoundError(name) from e
        except OSError as e:
            raise BackendUnavailableError("storage", operation, e) from e

        try:
            return load_service(text)
        except ServiceValidationError as e:
            raise BackendUnavailableError(
                "storage", operation, f"corrupt service file {path.name}: {e}"
            ) from e

    def _scan(self) -> "list[Service]":
        if not self._directory.is_dir():
            return []

        services: list[Service] = []
        for entry in sorted(self._directory.iterdir()):
            if entry.name.startswith(".") or not entry.is_file():
                continue
            if entry.suffix != SERVICE_FILE_SUFFIX:
                continue
            try:
                services.append(load_service(entry.read_text(encoding="utf-8")))
            except ServiceValidationError as e:
                logger.warning(f"Skipping invalid service file {entry.name}: {e}")
        return sorted(services, key=lambda service: service.metadata.name)

    def _path(self, name: str) -> Path:
        return self._directory / f"{name}{SERVICE_FILE_SUFFIX}"

    @staticmethod
    def _write_atomic(path: Path, content: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = path.with_name(path.name + TEMP_FILE_SUFFIX)
        try:
            with open(temp_path, "w", encoding="utf-8") as handle:
                handle.write(content)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(temp_path, path)
        except OSError:
            temp_path.unlink(missing_ok=True)
            raise
