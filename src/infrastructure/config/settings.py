"""Application configuration using Pydantic Settings.

Centralized configuration management following Clean Architecture principles.
All environment variables should be accessed through this module.
"""

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ServiceCatalogSettings(BaseSettings):
    """Service catalog storage and versioning settings."""

    model_config = SettingsConfigDict(env_prefix="SERVICE_CATALOG_", case_sensitive=False)

    directory: str = Field(
        default="../services",
        description="Directory holding one YAML file per service",
    )
    storage_provider: str = Field(
        default="filesystem",
        description="Storage backend (only 'filesystem' is supported)",
    )
    versioning_enabled: bool = Field(
        default=True,
        description="Record a history entry for every mutation",
    )
    versioning_provider: str = Field(
        default="simple",
        description="Versioning backend: git, simple or none",
    )


class ClusterSettings(BaseModel):
    """Connection details for one Kubernetes cluster context."""

    api_server: str = Field(..., description="Kubernetes API server URL")
    token: str = Field(default="", description="Bearer token for the API server")
    verify_ssl: bool = Field(default=True, description="Verify the API server certificate")


class KubernetesSettings(BaseSettings):
    """Kubernetes facade configuration."""

    model_config = SettingsConfigDict(env_prefix="KUBERNETES_", case_sensitive=False)

    clusters: dict[str, ClusterSettings] = Field(
        default_factory=dict,
        description="Cluster contexts (JSON object: context -> connection settings)",
    )
    request_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Deadline for each cluster call",
    )


class GitHubSettings(BaseSettings):
    """GitHub team enrichment settings."""

    model_config = SettingsConfigDict(env_prefix="GITHUB_", case_sensitive=False)

    enabled: bool = Field(
        default=False,
        description="Enrich service teams with GitHub team members",
    )
    api_url: str = Field(
        default="https://api.github.com",
        description="GitHub REST API base URL",
    )
    org: str = Field(
        default="dash-ops",
        description="GitHub organization owning the teams",
    )
    token: str = Field(
        default="",
        description="GitHub token with read:org scope",
    )
    timeout_seconds: float = Field(
        default=10.0,
        description="Request timeout in seconds",
    )


class APISettings(BaseSettings):
    """API server configuration settings."""

    model_config = SettingsConfigDict(env_prefix="API_", case_sensitive=False)

    host: str = Field(
        default="0.0.0.0",
        description="Host to bind the API server",
    )
    port: int = Field(
        default=8080,
        description="Port to bind the API server",
    )
    trust_identity_headers: bool = Field(
        default=False,
        description=(
            "Read the authenticated user from X-Auth-Request-* headers. Enable "
            "only when every request passes through the OAuth2 proxy, which "
            "strips client-supplied copies; otherwise any client can claim any "
            "team"
        ),
    )
    cors_origins: list[str] = Field(
        default_factory=lambda: ["*"],
        description="Allowed CORS origins",
    )


class ObservabilitySettings(BaseSettings):
    """Observability configuration settings (OpenTelemetry, logging, metrics)."""

    model_config = SettingsConfigDict(env_prefix="OTEL_", case_sensitive=False)

    # OpenTelemetry Tracing
    tracing_enabled: bool = Field(
        default=False,
        description="Export traces over OTLP",
    )
    exporter_otlp_endpoint: str = Field(
        default="http://localhost:4317",
        description="OTLP exporter endpoint (gRPC)",
    )
    service_name: str = Field(
        default="dash-ops-service-catalog",
        description="Service name for traces and metrics",
    )
    trace_sample_rate: float = Field(
        default=0.1,
        ge=0.0,
        le=1.0,
        description="Trace sampling rate (0.0 to 1.0)",
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    log_json_format: bool = Field(
        default=True,
        description="Enable JSON structured logging",
    )


class Settings(BaseSettings):
    """Main application settings.

    Aggregates all configuration modules and provides a single settings object.
    Load from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore extra environment variables
    )

    # Environment
    environment: str = Field(
        default="development",
        description="Application environment (development, staging, production)",
    )
    config_file: str | None = Field(
        default=None,
        alias="DASH_OPS_CONFIG",
        description="Path to the dash-ops YAML config (service_catalog block)",
    )

    # Sub-settings
    service_catalog: ServiceCatalogSettings = Field(default_factory=ServiceCatalogSettings)
    kubernetes: KubernetesSettings = Field(default_factory=KubernetesSettings)
    github: GitHubSettings = Field(default_factory=GitHubSettings)
    api: APISettings = Field(default_factory=APISettings)
    observability: ObservabilitySettings = Field(
        default_factory=ObservabilitySettings
    )


# Global settings instance (singleton)
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get global settings instance (singleton pattern).

    Returns:
        Settings instance loaded from environment
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings (tests and reloads)."""
    global _settings
    _settings = None
