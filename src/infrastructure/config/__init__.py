"""Infrastructure configuration module.

Centralized configuration management using Pydantic Settings.
"""

from src.infrastructure.config.module_config import ModuleConfig
from src.infrastructure.config.settings import (
    ClusterSettings,
    Settings,
    get_settings,
    reset_settings,
)

__all__ = [
    "Settings",
    "ClusterSettings",
    "ModuleConfig",
    "get_settings",
    "reset_settings",
]
