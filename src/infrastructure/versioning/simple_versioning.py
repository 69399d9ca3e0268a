"""JSON-file versioning provider.

Keeps ``<directory>/.history/<name>.json``: an array of change records,
newest first, capped at the most recent 100 entries.
"""

import asyncio
import logging
import uuid
from datetime import datetime, timezone
from pathlib import Path

from pydantic import TypeAdapter, ValidationError

from src.domain.entities.service import Service, ServiceAction, UserContext
from src.domain.entities.service_change import FieldChange, ServiceChange
from src.domain.repositories.versioning_provider import VersioningProviderInterface
from src.infrastructure.storage.keyed_lock import KeyedLock
from src.infrastructure.versioning.change_message import (
    acting_user,
    build_change_message,
    build_deletion_message,
)

logger = logging.getLogger(__name__)

HISTORY_DIRECTORY = ".history"
MAX_HISTORY_ENTRIES = 100

_history_adapter = TypeAdapter(list[ServiceChange])


class SimpleVersioningProvider(VersioningProviderInterface):
    """Per-service JSON history files with read-modify-write appends."""

    name = "simple"

    def __init__(self, directory: str | Path, max_entries: int = MAX_HISTORY_ENTRIES):
        self._history_dir = Path(directory) / HISTORY_DIRECTORY
        self._max_entries = max_entries
        self._locks = KeyedLock()

    @property
    def history_directory(self) -> Path:
        return self._history_dir

    async def initialize(self) -> None:
        await asyncio.to_thread(self._history_dir.mkdir, parents=True, exist_ok=True)
        logger.info(f"Simple versioning using {self._history_dir}")

    async def record_change(
        self,
        service: Service,
        user: UserContext | None,
        action: ServiceAction,
        field_changes: list[FieldChange] | None = None,
    ) -> None:
        actor = acting_user(user)
        now = datetime.now(timezone.utc)
        change = ServiceChange(
            id=self._change_id(service.metadata.name, action, now),
            author=actor.display_name,
            email=actor.email,
            timestamp=now,
            message=build_change_message(service, actor, action, now, field_changes),
            action=action.value,
            version=service.metadata.version or None,
            field_changes=list(field_changes or []),
        )
        await self._append(service.metadata.name, change)

    async def record_deletion(self, service_name: str, user: UserContext | None) -> None:
        actor = acting_user(user)
        now = datetime.now(timezone.utc)
        change = ServiceChange(
            id=self._change_id(service_name, ServiceAction.DELETE, now),
            author=actor.display_name,
            email=actor.email,
            timestamp=now,
            message=build_deletion_message(service_name, actor, now),
            action=ServiceAction.DELETE.value,
        )
        await self._append(service_name, change)

    async def get_service_history(self, service_name: str) -> list[ServiceChange]:
        history = await asyncio.to_thread(self._read, service_name)
        return sorted(history, key=lambda change: change.timestamp, reverse=True)

    def is_enabled(self) -> bool:
        return True

    async def get_status(self) -> str:
        if not self._history_dir.is_dir():
            return "History directory not found"
        count = await asyncio.to_thread(
            lambda: sum(1 for path in self._history_dir.glob("*.json") if path.is_file())
        )
        return f"Simple versioning active, tracking {count} services"

    async def _append(self, service_name: str, change: ServiceChange) -> None:
        async with self._locks.hold(service_name):
            await asyncio.to_thread(self._append_sync, service_name, change)

    def _append_sync(self, service_name: str, change: ServiceChange) -> None:
        history = [change, *self._read(service_name)]
        history.sort(key=lambda entry: entry.timestamp, reverse=True)
        history = history[: self._max_entries]

        path = self._path(service_name)
        path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = path.with_name(path.name + ".tmp")
        temp_path.write_bytes(_history_adapter.dump_json(history, indent=2))
        temp_path.replace(path)

    def _read(self, service_name: str) -> list[ServiceChange]:
        path = self._path(service_name)
        try:
            data = path.read_bytes()
        except FileNotFoundError:
            return []
        try:
            return _history_adapter.validate_json(data)
        except ValidationError as e:
            raise ValueError(f"Corrupt history file {path}: {e}") from e

    def _path(self, service_name: str) -> Path:
        return self._history_dir / f"{service_name}.json"

    @staticmethod
    def _change_id(service_name: str, action: ServiceAction, now: datetime) -> str:
        return f"{service_name}-{action.value}-{int(now.timestamp())}-{uuid.uuid4().hex[:8]}"
