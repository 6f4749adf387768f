"""Configuration management for the model serving platform.

This module centralizes environment-driven configuration for the services in
the platform. It builds on ``pydantic_settings.BaseSettings`` so configuration
can be provided via environment variables, ``.env`` files, or defaults.
Field names map one-to-one to upper-cased environment variables
(``ml_log_level`` <- ``ML_LOG_LEVEL``).

Highlights
- Strongly-typed settings with sensible defaults
- One place to discover commonly used environment variables
- Small service-specific subclasses to keep concerns clear

Usage
- Inject the appropriate config in your service entrypoint:
  ``config = ModelServingConfig()``
- Or select dynamically: ``config = get_config("model-serving")``
"""

from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class for all services.

    Parameters are read from the process environment with the upper-cased
    field names. Defaults keep local development convenient while still being
    explicit.

    Notes
    - Add new shared settings here so downstream services inherit them.
    - Prefer a typed field over reading ``os.environ`` directly.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    ml_env: str = Field(default="local", description="Deployment environment name")

    # MinIO / S3 compatible object storage
    ml_minio_endpoint: str = Field(default="http://localhost:9000")
    ml_minio_access_key: str = Field(default="minioadmin")
    ml_minio_secret_key: str = Field(default="minioadmin123")
    ml_minio_bucket: str = Field(default="models")
    ml_minio_region: Optional[str] = Field(default=None)

    # Observability
    ml_tracing_enabled: bool = Field(default=False)
    ml_otel_exporter: str = Field(default="http://localhost:4318/v1/traces")

    # Logging
    ml_log_level: str = Field(default="INFO")
    ml_log_format: str = Field(default="json")


class ModelServingConfig(BaseConfig):
    """Configuration for the model serving service.

    Extends ``BaseConfig`` with the runtime port, the storage backend used to
    fetch artifacts and the deadlines applied around model loading.
    """

    ml_model_serving_port: int = Field(default=9005)
    ml_storage_backend: Literal["minio", "local"] = Field(default="minio")
    ml_model_storage_path: str = Field(default="/app/models")

    # Seconds a request waits on another request's in-flight load
    ml_model_load_timeout_seconds: float = Field(default=60.0, gt=0)
    ml_storage_connect_timeout_seconds: float = Field(default=5.0, gt=0)
    ml_storage_read_timeout_seconds: float = Field(default=30.0, gt=0)


def get_config(service_name: str) -> BaseConfig:
    """Get configuration for a specific service.

    Parameters
    - service_name: Literal name, currently only ``model-serving``.

    Returns
    - A concrete ``BaseConfig`` subclass pre-wired to read the right env vars.
    """
    config_map = {
        "model-serving": ModelServingConfig,
    }

    # Default to ``BaseConfig`` to avoid surprising crashes for unknown names.
    config_class = config_map.get(service_name, BaseConfig)
    return config_class()
