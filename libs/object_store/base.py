"""Base object store interface.

Defines the abstract contract the serving runtime depends on, independent of
the backing implementation (MinIO, S3, local disk).

The interface is deliberately tiny: keyed byte retrieval and upload. Callers
that need to tell "the object does not exist" apart from "the backend is
unhealthy" rely on the two exception subclasses below.
"""

from abc import ABC, abstractmethod


class StorageError(Exception):
    """Base error for object store operations."""

    def __init__(self, key: str, message: str):
        super().__init__(message)
        self.key = key


class ObjectNotFoundError(StorageError):
    """The requested key does not exist in the store."""

    def __init__(self, key: str):
        super().__init__(key, f"Object not found: {key}")


class StorageUnavailableError(StorageError):
    """The backend could not be reached or failed to answer."""

    def __init__(self, key: str, reason: str = ""):
        message = f"Storage unavailable while accessing {key}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(key, message)


class ObjectStore(ABC):
    """Abstract base class for object stores.

    Implementations must raise ``ObjectNotFoundError`` for missing keys and
    ``StorageUnavailableError`` for transport or backend failures.
    """

    @abstractmethod
    def get(self, key: str) -> bytes:
        """Return the full content stored under ``key``."""

    @abstractmethod
    def put(self, key: str, data: bytes, content_type: str = "application/octet-stream") -> None:
        """Store ``data`` under ``key``, replacing any existing object."""

    def health_check(self) -> bool:
        """Return ``True`` when the backend is reachable."""
        return True
