"""Object store factory.

Centralizes creation of concrete ``ObjectStore`` backends so callers don't
depend on implementation details.
"""

from enum import Enum

import structlog

from libs.common.config import ModelServingConfig

from .base import ObjectStore
from .local import LocalObjectStore
from .minio_store import MinioObjectStore

logger = structlog.get_logger("object_store.factory")


class ObjectStoreType(Enum):
    """Supported object store types."""
    MINIO = "minio"
    LOCAL = "local"


def create_object_store(config: ModelServingConfig) -> ObjectStore:
    """Create the object store selected by ``ML_STORAGE_BACKEND``.

    Parameters
    - config: service configuration carrying backend choice and credentials

    Returns
    - An ``ObjectStore`` ready to serve artifact reads
    """
    try:
        store_type = ObjectStoreType(config.ml_storage_backend)
    except ValueError:
        raise ValueError(f"Unsupported object store type: {config.ml_storage_backend}")

    if store_type == ObjectStoreType.LOCAL:
        logger.info("Using local object store", root=config.ml_model_storage_path)
        return LocalObjectStore(config.ml_model_storage_path)

    logger.info(
        "Using MinIO object store",
        endpoint=config.ml_minio_endpoint,
        bucket=config.ml_minio_bucket
    )
    return MinioObjectStore(
        endpoint=config.ml_minio_endpoint,
        access_key=config.ml_minio_access_key,
        secret_key=config.ml_minio_secret_key,
        bucket=config.ml_minio_bucket,
        region=config.ml_minio_region,
        connect_timeout=config.ml_storage_connect_timeout_seconds,
        read_timeout=config.ml_storage_read_timeout_seconds,
    )
