"""Integration test fixtures for the filesystem-backed catalog.

Every test gets its own catalog directory under pytest's tmp_path, so tests
never share on-disk state.
"""

from pathlib import Path

import pytest

from src.domain.services.service_processor import ServiceProcessor


@pytest.fixture
def catalog_dir(tmp_path: Path) -> Path:
    """Empty service catalog directory.

    Returns:
        Path to a directory that does not exist yet
    """
    return tmp_path / "services"


@pytest.fixture
def prepared_service(service_factory, shop_user):
    """Factory for services carrying version 1 and audit fields."""
    processor = ServiceProcessor()

    def build(**kwargs):
        return processor.prepare_for_creation(service_factory(**kwargs), shop_user)

    return build
