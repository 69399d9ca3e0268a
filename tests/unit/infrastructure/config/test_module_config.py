"""Unit tests for ModuleConfig."""

import pytest

from src.domain.exceptions import CatalogConfigurationError
from src.infrastructure.config.module_config import ModuleConfig
from src.infrastructure.config.settings import Settings


class TestModuleConfig:
    """Tests for building the catalog module configuration."""

    def test_defaults(self):
        config = ModuleConfig()

        assert config.directory == "../services"
        assert config.storage_provider == "filesystem"
        assert config.versioning_provider == "simple"

    def test_unsupported_storage_provider(self):
        with pytest.raises(CatalogConfigurationError, match="storage provider"):
            ModuleConfig(storage_provider="s3")

    def test_unsupported_versioning_provider(self):
        with pytest.raises(CatalogConfigurationError, match="versioning provider"):
            ModuleConfig(versioning_provider="svn")

    def test_from_mapping(self):
        config = ModuleConfig.from_mapping(
            {
                "storage": {
                    "provider": "Filesystem",
                    "filesystem": {"directory": "/srv/services"},
                },
                "versioning": {"enabled": True, "provider": "GIT"},
            }
        )

        assert config.directory == "/srv/services"
        assert config.storage_provider == "filesystem"
        assert config.versioning_provider == "git"

    def test_versioning_disabled_means_none(self):
        config = ModuleConfig.from_mapping(
            {"versioning": {"enabled": False, "provider": "git"}}
        )

        assert config.versioning_provider == "none"

    def test_from_empty_mapping(self):
        assert ModuleConfig.from_mapping(None) == ModuleConfig()


class TestModuleConfigFromYaml:
    def test_reads_service_catalog_block(self, tmp_path):
        config_file = tmp_path / "dash-ops.yaml"
        config_file.write_text(
            "port: 8080\n"
            "service_catalog:\n"
            "  storage:\n"
            "    provider: filesystem\n"
            "    filesystem:\n"
            f"      directory: {tmp_path / 'services'}\n"
            "  versioning:\n"
            "    provider: none\n"
        )

        config = ModuleConfig.from_yaml(config_file)

        assert config.path == tmp_path / "services"
        assert config.versioning_provider == "none"

    def test_missing_file(self, tmp_path):
        with pytest.raises(CatalogConfigurationError, match="Cannot load"):
            ModuleConfig.from_yaml(tmp_path / "missing.yaml")

    def test_invalid_yaml(self, tmp_path):
        config_file = tmp_path / "broken.yaml"
        config_file.write_text("service_catalog: [unclosed\n")

        with pytest.raises(CatalogConfigurationError):
            ModuleConfig.from_yaml(config_file)

    def test_non_mapping_document(self, tmp_path):
        config_file = tmp_path / "list.yaml"
        config_file.write_text("- a\n- b\n")

        with pytest.raises(CatalogConfigurationError, match="not a mapping"):
            ModuleConfig.from_yaml(config_file)


class TestModuleConfigFromSettings:
    def test_environment_settings(self, monkeypatch, tmp_path):
        monkeypatch.delenv("DASH_OPS_CONFIG", raising=False)
        monkeypatch.setenv("SERVICE_CATALOG_DIRECTORY", str(tmp_path))
        monkeypatch.setenv("SERVICE_CATALOG_VERSIONING_ENABLED", "false")

        config = ModuleConfig.from_settings(Settings())

        assert config.directory == str(tmp_path)
        assert config.versioning_provider == "none"

    def test_config_file_takes_precedence(self, monkeypatch, tmp_path):
        config_file = tmp_path / "dash-ops.yaml"
        config_file.write_text("service_catalog:\n  versioning:\n    provider: git\n")
        monkeypatch.setenv("DASH_OPS_CONFIG", str(config_file))
        monkeypatch.setenv("SERVICE_CATALOG_VERSIONING_PROVIDER", "none")

        config = ModuleConfig.from_settings(Settings())

        assert config.versioning_provider == "git"
