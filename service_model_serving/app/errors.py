"""Error taxonomy for the model serving runtime.

Load-time problems (missing artifacts, malformed schemas, unknown frameworks,
broken model files) are normalized by the model cache into the
``ModelLoadFailure`` family. Client input problems are raised where they are
detected and reach the HTTP layer unchanged.
"""

from typing import Any, Optional


class ModelServingError(Exception):
    """Base class for model serving errors."""


class ModelLoadFailure(ModelServingError):
    """A model could not be loaded; surfaced to callers as "not found"."""

    message_template = "Model not found: {model_id}"

    def __init__(self, model_id: str, cause: Optional[BaseException] = None):
        super().__init__(self.message_template.format(model_id=model_id))
        self.model_id = model_id
        self.cause = cause


class ModelStorageUnavailable(ModelLoadFailure):
    """The storage backend failed while fetching a model's artifacts."""

    message_template = "Model storage unavailable: {model_id}"


class ModelLoadTimeout(ModelStorageUnavailable):
    """Waiting on an in-flight load took longer than the configured deadline."""


class FeatureValidationError(ModelServingError, ValueError):
    """Client supplied features do not satisfy the model's declared schema."""

    def __init__(self, name: str, message: str):
        super().__init__(message)
        self.name = name


class MissingFeature(FeatureValidationError):
    def __init__(self, name: str):
        super().__init__(name, f"Missing feature: {name}")


class InvalidFeatureValue(FeatureValidationError):
    def __init__(self, name: str, value: Any):
        super().__init__(name, f"Invalid value for feature: {name}")
        self.value = value


class UnknownFramework(ModelServingError):
    """No registered adapter supports the declared framework."""

    def __init__(self, framework: str):
        super().__init__(f"No adapter for framework {framework}")
        self.framework = framework


class SchemaError(ModelServingError):
    """A ``schema.json`` document could not be decoded."""


class ArtifactError(ModelServingError):
    """A ``model.bin`` artifact is unreadable for its adapter."""
