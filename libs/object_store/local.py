"""Filesystem implementation of the object store interface.

Keys map to paths below a root directory (``{root}/{model_id}/model.bin``),
which mirrors the bucket layout and keeps local development free of a MinIO
dependency.
"""

from pathlib import Path
from typing import Union

import structlog

from .base import ObjectNotFoundError, ObjectStore, StorageUnavailableError

logger = structlog.get_logger("object_store.local")


class LocalObjectStore(ObjectStore):
    """Object store rooted at a local directory."""

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root).resolve()

    def _path_for(self, key: str) -> Path:
        path = (self.root / key).resolve()
        # Keys must stay inside the root, "../" segments are treated as unknown keys.
        if path != self.root and self.root not in path.parents:
            raise ObjectNotFoundError(key)
        return path

    def get(self, key: str) -> bytes:
        path = self._path_for(key)
        try:
            return path.read_bytes()
        except (FileNotFoundError, IsADirectoryError, NotADirectoryError) as e:
            raise ObjectNotFoundError(key) from e
        except OSError as e:
            logger.error("Local read failed", key=key, path=str(path), error=str(e))
            raise StorageUnavailableError(key, str(e)) from e

    def put(self, key: str, data: bytes, content_type: str = "application/octet-stream") -> None:
        path = self._path_for(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as e:
            logger.error("Local write failed", key=key, path=str(path), error=str(e))
            raise StorageUnavailableError(key, str(e)) from e

        logger.info("Stored object", key=key, path=str(path), size=len(data))

    def health_check(self) -> bool:
        return self.root.is_dir()
