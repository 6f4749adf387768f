"""Linear model adapter.

A portable, self-describing artifact format for linear models, handy when a
model is trained outside Python or must not be shipped as a pickle:

    {
      "kind": "classification",
      "coefficients": [[...], [...], [...]],
      "intercept": [0.1, -0.2, 0.1]
    }

- ``regression``: ``coefficients`` is one row; the prediction is
  ``coefficients . x + intercept`` as a float.
- ``classification``: one row per class, the prediction is the index of the
  highest score. A single row is read as a binary decision function
  (index 1 when the score is positive), mirroring scikit-learn.
"""

from typing import List, Literal, Tuple, Union

import numpy as np
from pydantic import BaseModel, ValidationError

from ..errors import ArtifactError
from ..loaders.schema import ModelMetadata
from .base import ModelAdapter, Predictor


class LinearArtifact(BaseModel):
    kind: Literal["regression", "classification"] = "regression"
    coefficients: Union[List[float], List[List[float]]]
    intercept: Union[float, List[float]] = 0.0


class LinearPredictor(Predictor):

    def __init__(self, coef: np.ndarray, intercept: np.ndarray, kind: str, metadata: ModelMetadata):
        super().__init__(metadata)
        self.coef = coef
        self.intercept = intercept
        self.kind = kind

    def predict_row(self, row: Tuple[float, ...]) -> Union[int, float]:
        scores = self.coef @ np.asarray(row, dtype=np.float64) + self.intercept
        if self.kind == "regression":
            return float(scores[0])
        if scores.shape[0] == 1:
            return int(scores[0] > 0)
        return int(np.argmax(scores))


class LinearModelAdapter(ModelAdapter):
    """Loads JSON encoded coefficient matrices."""

    frameworks = ("linear",)

    def load(self, raw: bytes, metadata: ModelMetadata) -> LinearPredictor:
        try:
            artifact = LinearArtifact.model_validate_json(raw)
        except ValidationError as e:
            raise ArtifactError(f"Invalid linear model artifact: {e}") from e

        coef = np.atleast_2d(np.asarray(artifact.coefficients, dtype=np.float64))
        intercept = np.atleast_1d(np.asarray(artifact.intercept, dtype=np.float64))

        n_outputs, n_features = coef.shape
        if n_features != len(metadata.features):
            raise ArtifactError(
                f"Linear model has {n_features} coefficients per row, schema declares {len(metadata.features)}"
            )
        if artifact.kind == "regression" and n_outputs != 1:
            raise ArtifactError("Regression artifacts take exactly one coefficient row")
        if intercept.shape[0] not in (1, n_outputs):
            raise ArtifactError(f"Intercept length {intercept.shape[0]} does not match {n_outputs} outputs")

        return LinearPredictor(coef, intercept, artifact.kind, metadata)
