"""Every source module must import cleanly."""

import importlib
import inspect
from pathlib import Path

import pytest

from src.infrastructure.storage.filesystem_service_repository import (
    FilesystemServiceRepository,
)

SRC = Path(__file__).resolve().parents[2] / "src"
MODULES = sorted(
    ".".join(path.relative_to(SRC.parent).with_suffix("").parts)
    for path in SRC.rglob("*.py")
    if path.name != "__init__.py"
)


class TestModuleImports:
    @pytest.mark.parametrize("module", MODULES)
    def test_imports(self, module):
        importlib.import_module(module)

    def test_repository_list_is_a_coroutine(self):
        assert inspect.iscoroutinefunction(FilesystemServiceRepository.list)
