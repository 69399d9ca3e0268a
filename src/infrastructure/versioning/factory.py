"""Versioning provider selection."""

import logging

from src.domain.exceptions import CatalogConfigurationError
from src.domain.repositories.versioning_provider import VersioningProviderInterface
from src.infrastructure.config.module_config import ModuleConfig
from src.infrastructure.versioning.git_versioning import GitVersioningProvider
from src.infrastructure.versioning.none_versioning import NoneVersioningProvider
from src.infrastructure.versioning.simple_versioning import (
    HISTORY_DIRECTORY,
    SimpleVersioningProvider,
)

logger = logging.getLogger(__name__)


def create_versioning_provider(config: ModuleConfig) -> VersioningProviderInterface:
    """Build the configured versioning provider.

    Switching providers over existing history is refused: the simple
    provider will not start in a directory that is a Git repository, and the
    git provider will not start over a populated ``.history`` directory.

    Raises:
        CatalogConfigurationError: If the provider is unknown or another
            provider's history already exists in the directory
    """
    directory = config.path
    provider = config.versioning_provider

    if provider == "none":
        return NoneVersioningProvider()

    if provider == "simple":
        if (directory / ".git").exists():
            raise CatalogConfigurationError(
                f"{directory} holds git history; refusing to switch to simple versioning"
            )
        return SimpleVersioningProvider(directory)

    if provider == "git":
        history_dir = directory / HISTORY_DIRECTORY
        if history_dir.is_dir() and any(history_dir.glob("*.json")):
            raise CatalogConfigurationError(
                f"{history_dir} holds simple versioning history; "
                "refusing to switch to git versioning"
            )
        return GitVersioningProvider(directory)

    raise CatalogConfigurationError(f"Unsupported versioning provider: {provider}")
