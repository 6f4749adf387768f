"""Prediction entry point.

``PredictionService.predict`` is the only operation the transport layer
calls: it resolves the model through the cache, scores the feature map and
turns class indices back into class names.
"""

import numbers
import time
from typing import Any, Mapping, Optional

import structlog

from libs.common.metrics import MetricsCollector
from libs.common.tracing import get_ml_tracer

from ..errors import FeatureValidationError
from ..loaders.schema import LabelSpec
from .model_cache import ModelCache

logger = structlog.get_logger("model_serving.prediction")


def decode_label(raw: Any, label: LabelSpec) -> Any:
    """Map an integer class index onto ``label.classes``.

    Anything else, including indices outside ``classes``, is returned as-is.
    """
    if isinstance(raw, bool) or not isinstance(raw, numbers.Integral):
        return raw
    if 0 <= raw < len(label.classes):
        return label.classes[raw]
    return raw


class PredictionService:
    """Scores feature maps against cached models."""

    def __init__(self, cache: ModelCache, metrics: Optional[MetricsCollector] = None):
        self.cache = cache
        self.metrics = metrics
        self.tracer = get_ml_tracer("model-serving")

    def predict(self, model_id: str, features: Mapping[str, Any]) -> Any:
        """Return the decoded prediction of ``model_id`` for ``features``.

        Raises
        - ModelLoadFailure: the model cannot be loaded
        - MissingFeature / InvalidFeatureValue: ``features`` does not match
          the model's declared inputs
        """
        loaded = self.cache.get(model_id)

        start_time = time.time()
        try:
            with self.tracer.trace_model_inference(model_id):
                raw = loaded.predictor.predict(features)
        except FeatureValidationError as e:
            self._record(model_id, start_time, "invalid_input")
            logger.info("Rejected prediction input", model_id=model_id, feature=e.name, error=str(e))
            raise
        except Exception:
            self._record(model_id, start_time, "error")
            raise

        prediction = decode_label(raw, loaded.metadata.label)
        self._record(model_id, start_time, "success")
        logger.debug("Prediction completed", model_id=model_id, raw=raw, prediction=prediction)
        return prediction

    def _record(self, model_id: str, start_time: float, outcome: str) -> None:
        if self.metrics is not None:
            self.metrics.record_inference(model_id, time.time() - start_time, outcome)
