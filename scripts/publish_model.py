#!/usr/bin/env python3
"""Script to publish a model artifact and its schema to model storage."""

import argparse
import json
import sys
from pathlib import Path
from typing import Optional

import structlog

from libs.common.config import ModelServingConfig
from libs.common.logging import configure_logging
from libs.object_store.base import StorageError
from libs.object_store.factory import create_object_store
from libs.object_store.minio_store import MinioObjectStore
from service_model_serving.app.loaders.artifacts import publish_model

logger = structlog.get_logger("publish_model")


def publish_from_files(
    model_id: str,
    artifact_path: Path,
    schema_path: Path,
    config: Optional[ModelServingConfig] = None
) -> bool:
    """Upload ``artifact_path`` and ``schema_path`` under ``model_id``."""
    config = config or ModelServingConfig()

    try:
        artifact = artifact_path.read_bytes()
        metadata = json.loads(schema_path.read_text(encoding="utf-8"))
        store = create_object_store(config)
        if isinstance(store, MinioObjectStore):
            store.ensure_bucket()
        publish_model(store, model_id, artifact, metadata)
    except (OSError, ValueError, StorageError) as e:
        logger.error(
            "Model publication failed",
            model_id=model_id,
            artifact=str(artifact_path),
            schema=str(schema_path),
            error=str(e)
        )
        return False

    logger.info(
        "Model published successfully",
        model_id=model_id,
        backend=config.ml_storage_backend,
        artifact_bytes=len(artifact)
    )
    return True


def main(argv=None) -> int:
    """Main function for CLI."""
    parser = argparse.ArgumentParser(description="Publish a model to model storage")
    parser.add_argument("--model-id", required=True, help="Model id to publish under")
    parser.add_argument("--artifact", required=True, type=Path, help="Path to model.bin")
    parser.add_argument("--schema", required=True, type=Path, help="Path to schema.json")
    parser.add_argument("--backend", choices=["minio", "local"], help="Override ML_STORAGE_BACKEND")
    parser.add_argument("--storage-path", help="Override ML_MODEL_STORAGE_PATH for the local backend")

    args = parser.parse_args(argv)

    configure_logging("publish_model", "INFO", "json")

    overrides = {}
    if args.backend:
        overrides["ml_storage_backend"] = args.backend
    if args.storage_path:
        overrides["ml_model_storage_path"] = args.storage_path
    config = ModelServingConfig(**overrides)

    if publish_from_files(args.model_id, args.artifact, args.schema, config):
        print(f"Model {args.model_id} published successfully")
        return 0
    print(f"Failed to publish model {args.model_id}")
    return 1


if __name__ == "__main__":
    sys.exit(main())
