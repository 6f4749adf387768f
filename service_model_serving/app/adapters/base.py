"""Adapter and predictor contracts.

A ``ModelAdapter`` knows how to turn the raw ``model.bin`` bytes of one model
family into a ``Predictor``. Predictors share the request-side work
(vectorizing the feature map in declared order, converting numpy scalars to
plain Python values) and only implement the family-specific evaluation of a
single feature row.
"""

from abc import ABC, abstractmethod
from typing import Any, Mapping, Optional, Tuple

import numpy as np

from ..loaders.schema import ModelMetadata
from ..loaders.vectorizer import FeatureVectorizer


def to_native(value: Any) -> Any:
    """Unwrap numpy scalars and arrays into built-in Python values.

    Multi-output models yield one array per row; those become plain lists.
    """
    if isinstance(value, np.ndarray):
        if value.ndim > 0:
            return value.tolist()
        value = value[()]
    if isinstance(value, np.generic):
        return value.item()
    return value


class Predictor(ABC):
    """A loaded model ready to score one feature map at a time."""

    def __init__(self, metadata: ModelMetadata, vectorizer: Optional[FeatureVectorizer] = None):
        self.metadata = metadata
        self.vectorizer = vectorizer or FeatureVectorizer()

    def predict(self, features: Mapping[str, Any]) -> Any:
        """Score ``features`` and return the raw (undecoded) prediction."""
        row = self.vectorizer.vectorize(features, self.metadata.features)
        return to_native(self.predict_row(row))

    @abstractmethod
    def predict_row(self, row: Tuple[float, ...]) -> Any:
        """Evaluate the model on one ordered feature row."""


class ModelAdapter(ABC):
    """Binds one model family's artifact format to a ``Predictor``.

    Subclasses list the framework names they answer to in ``frameworks``;
    matching is case-insensitive.
    """

    frameworks: Tuple[str, ...] = ()

    def supports_framework(self, framework: str) -> bool:
        return framework.lower() in {name.lower() for name in self.frameworks}

    def supports(self, metadata: ModelMetadata) -> bool:
        return self.supports_framework(metadata.framework)

    @abstractmethod
    def load(self, raw: bytes, metadata: ModelMetadata) -> Predictor:
        """Build a predictor from artifact bytes.

        Raises
        - ArtifactError: the bytes are not a usable model for this family
        """

    def __repr__(self) -> str:
        return f"{type(self).__name__}(frameworks={self.frameworks!r})"
