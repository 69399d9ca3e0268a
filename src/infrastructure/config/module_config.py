"""Service catalog module configuration.

The catalog is built from one explicit ModuleConfig value. It comes either
from the ``service_catalog`` block of the dash-ops YAML config file or, when
no file is configured, from environment settings.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from src.domain.exceptions import CatalogConfigurationError
from src.infrastructure.config.settings import Settings

logger = logging.getLogger(__name__)

DEFAULT_DIRECTORY = "../services"
VERSIONING_PROVIDERS = ("git", "simple", "none")


@dataclass(frozen=True)
class ModuleConfig:
    """Bootstrap configuration of the service catalog.

    Attributes:
        directory: Storage directory (one YAML file per service)
        storage_provider: Storage backend name
        versioning_provider: git, simple or none
    """

    directory: str = DEFAULT_DIRECTORY
    storage_provider: str = "filesystem"
    versioning_provider: str = "simple"

    def __post_init__(self):
        if self.storage_provider != "filesystem":
            raise CatalogConfigurationError(
                f"Unsupported storage provider: {self.storage_provider}"
            )
        if self.versioning_provider not in VERSIONING_PROVIDERS:
            raise CatalogConfigurationError(
                f"Unsupported versioning provider: {self.versioning_provider} "
                f"(expected one of {', '.join(VERSIONING_PROVIDERS)})"
            )

    @property
    def path(self) -> Path:
        return Path(self.directory)

    @classmethod
    def from_mapping(cls, data: dict[str, Any] | None) -> "ModuleConfig":
        """Build from a parsed ``service_catalog`` block.

        Example block::

            storage:
              provider: filesystem
              filesystem:
                directory: ../services
            versioning:
              enabled: true
              provider: git
        """
        data = data or {}
        storage = data.get("storage") or {}
        versioning = data.get("versioning") or {}

        directory = (storage.get("filesystem") or {}).get("directory") or DEFAULT_DIRECTORY
        provider = str(versioning.get("provider") or "simple").lower()
        if versioning.get("enabled") is False:
            provider = "none"

        return cls(
            directory=str(directory),
            storage_provider=str(storage.get("provider") or "filesystem").lower(),
            versioning_provider=provider,
        )

    @classmethod
    def from_yaml(cls, path: str | Path) -> "ModuleConfig":
        """Load the ``service_catalog`` block from a dash-ops config file.

        Raises:
            CatalogConfigurationError: If the file cannot be read or parsed
        """
        try:
            document = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
        except (OSError, yaml.YAMLError) as e:
            raise CatalogConfigurationError(f"Cannot load config file {path}: {e}") from e

        if not isinstance(document, dict):
            raise CatalogConfigurationError(f"Config file {path} is not a mapping")
        return cls.from_mapping(document.get("service_catalog"))

    @classmethod
    def from_settings(cls, settings: Settings) -> "ModuleConfig":
        """Resolve the module config, preferring the YAML config file."""
        if settings.config_file:
            logger.info(f"Loading service catalog config from {settings.config_file}")
            return cls.from_yaml(settings.config_file)

        catalog = settings.service_catalog
        provider = catalog.versioning_provider.lower()
        if not catalog.versioning_enabled:
            provider = "none"
        return cls(
            directory=catalog.directory or DEFAULT_DIRECTORY,
            storage_provider=catalog.storage_provider.lower(),
            versioning_provider=provider,
        )
