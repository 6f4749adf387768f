"""scikit-learn adapter.

``model.bin`` is an estimator or pipeline persisted with ``joblib.dump``.
joblib files are pickles: only serve artifacts from a bucket you trust.
"""

import io
from typing import Any, Tuple

import joblib
import numpy as np
import pandas as pd
import structlog

from ..errors import ArtifactError
from ..loaders.schema import ModelMetadata
from .base import ModelAdapter, Predictor

logger = structlog.get_logger("model_serving.adapters.sklearn")


class SklearnPredictor(Predictor):
    """Scores a single row with ``estimator.predict``."""

    def __init__(self, estimator: Any, metadata: ModelMetadata):
        super().__init__(metadata)
        self.estimator = estimator
        # Estimators fitted on DataFrames expect named columns back.
        self._named_columns = hasattr(estimator, "feature_names_in_")

    def predict_row(self, row: Tuple[float, ...]) -> Any:
        if self._named_columns:
            X = pd.DataFrame([row], columns=list(self.metadata.feature_names))
        else:
            X = np.asarray([row], dtype=np.float64)
        return self.estimator.predict(X)[0]


class SklearnAdapter(ModelAdapter):
    """Loads joblib-persisted scikit-learn estimators."""

    frameworks = ("sklearn", "scikit-learn")

    def load(self, raw: bytes, metadata: ModelMetadata) -> SklearnPredictor:
        try:
            estimator = joblib.load(io.BytesIO(raw))
        except Exception as e:
            raise ArtifactError(f"Unreadable joblib artifact: {e}") from e

        if not callable(getattr(estimator, "predict", None)):
            raise ArtifactError(f"Artifact of type {type(estimator).__name__} has no predict()")

        self._check_columns(estimator, metadata)

        logger.info(
            "Loaded sklearn estimator",
            estimator=type(estimator).__name__,
            feature_count=len(metadata.features)
        )
        return SklearnPredictor(estimator, metadata)

    @staticmethod
    def _check_columns(estimator: Any, metadata: ModelMetadata) -> None:
        declared = list(metadata.feature_names)

        n_features = getattr(estimator, "n_features_in_", None)
        if n_features is not None and n_features != len(declared):
            raise ArtifactError(
                f"Estimator expects {n_features} features, schema declares {len(declared)}"
            )

        fitted_names = getattr(estimator, "feature_names_in_", None)
        if fitted_names is not None and list(fitted_names) != declared:
            raise ArtifactError(
                f"Estimator was fitted on columns {list(fitted_names)}, schema declares {declared}"
            )
