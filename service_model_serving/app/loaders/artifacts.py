"""Artifact layout in the object store.

Each model lives under its id:

    {model_id}/model.bin     adapter-owned serialized model
    {model_id}/schema.json   metadata document (see ``schema``)

``publish_model`` writes both objects so training jobs and tests produce
exactly what the serving cache reads.
"""

from typing import Any, Dict, Tuple, Union

import structlog

from libs.common.metrics import measure_time
from libs.object_store.base import ObjectStore

from .schema import ModelMetadata

logger = structlog.get_logger("model_serving.artifacts")

MODEL_ARTIFACT = "model.bin"
SCHEMA_DOCUMENT = "schema.json"


def artifact_keys(model_id: str) -> Tuple[str, str]:
    """Return the ``(model.bin, schema.json)`` keys for ``model_id``."""
    return f"{model_id}/{MODEL_ARTIFACT}", f"{model_id}/{SCHEMA_DOCUMENT}"


@measure_time("publish_model")
def publish_model(
    store: ObjectStore,
    model_id: str,
    artifact: bytes,
    metadata: Union[ModelMetadata, Dict[str, Any]]
) -> ModelMetadata:
    """Upload a model artifact and its metadata document.

    The metadata is validated before anything is written, so a malformed
    schema never reaches the bucket. The artifact goes first; the schema is
    written last.
    """
    if not isinstance(metadata, ModelMetadata):
        metadata = ModelMetadata.model_validate(metadata)

    model_key, schema_key = artifact_keys(model_id)
    store.put(model_key, artifact)
    store.put(
        schema_key,
        metadata.model_dump_json(exclude_none=True).encode("utf-8"),
        content_type="application/json",
    )

    logger.info(
        "Published model",
        model_id=model_id,
        framework=metadata.framework,
        feature_count=len(metadata.features)
    )
    return metadata
