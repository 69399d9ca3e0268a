"""Versioning providers - per-service change history backends."""

from src.infrastructure.versioning.factory import create_versioning_provider
from src.infrastructure.versioning.git_versioning import (
    GitCommandError,
    GitVersioningProvider,
)
from src.infrastructure.versioning.none_versioning import NoneVersioningProvider
from src.infrastructure.versioning.simple_versioning import SimpleVersioningProvider

__all__ = [
    "create_versioning_provider",
    "NoneVersioningProvider",
    "SimpleVersioningProvider",
    "GitVersioningProvider",
    "GitCommandError",
]
