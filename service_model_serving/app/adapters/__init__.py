"""Model adapters for the frameworks the service can serve.

An adapter turns a stored artifact plus its metadata into a ``Predictor``.
Adding a model family means writing one adapter and registering it; the cache
and the prediction service stay untouched.

Shipped adapters
- ``SklearnAdapter``: joblib-persisted scikit-learn estimators
- ``LinearModelAdapter``: JSON coefficient matrices
- ``TorchScriptAdapter``: TorchScript modules (optional torch extra)
"""

from .base import ModelAdapter, Predictor
from .registry import AdapterRegistry, default_registry

__all__ = ["ModelAdapter", "Predictor", "AdapterRegistry", "default_registry"]
