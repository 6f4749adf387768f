"""Object store gateways for model artifacts.

Primary components:
- ``base``: abstract ``ObjectStore`` interface and storage exceptions.
- ``minio_store``: MinIO / S3 compatible implementation.
- ``local``: filesystem implementation for development and tests.
- ``factory``: helpers to construct a store from typed config.

Guidance:
- Prefer constructing via ``factory.create_object_store`` so runtime
  services remain decoupled from specific backends.
"""

from .base import ObjectNotFoundError, ObjectStore, StorageError, StorageUnavailableError

__all__ = [
    "ObjectStore",
    "StorageError",
    "ObjectNotFoundError",
    "StorageUnavailableError",
]
