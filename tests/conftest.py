"""Shared fixtures: an in-memory object store and iris model artifacts."""

import io
import json
import threading
from collections import Counter
from typing import Dict, Optional

import joblib
import pytest
from prometheus_client import CollectorRegistry
from sklearn.datasets import load_iris
from sklearn.tree import DecisionTreeClassifier

from libs.common.metrics import MetricsCollector
from libs.object_store.base import ObjectNotFoundError, ObjectStore, StorageUnavailableError
from service_model_serving.app.adapters.registry import default_registry
from service_model_serving.app.loaders.artifacts import publish_model
from service_model_serving.app.runtime.model_cache import ModelCache

IRIS_FEATURES = ["sepal_length", "sepal_width", "petal_length", "petal_width"]
IRIS_CLASSES = ["setosa", "versicolor", "virginica"]
SETOSA_SAMPLE = {"sepal_length": 5.1, "sepal_width": 3.5, "petal_length": 1.4, "petal_width": 0.2}


class InMemoryObjectStore(ObjectStore):
    """Dict-backed store that counts reads and can be slowed down or broken."""

    def __init__(self):
        self.objects: Dict[str, bytes] = {}
        self.reads: Counter = Counter()
        self.gate: Optional[threading.Event] = None
        self.unavailable = False
        self._lock = threading.Lock()

    def get(self, key: str) -> bytes:
        with self._lock:
            self.reads[key] += 1
        if self.gate is not None:
            self.gate.wait(timeout=10)
        if self.unavailable:
            raise StorageUnavailableError(key, "connection refused")
        try:
            return self.objects[key]
        except KeyError:
            raise ObjectNotFoundError(key) from None

    def put(self, key: str, data: bytes, content_type: str = "application/octet-stream") -> None:
        self.objects[key] = data

    def health_check(self) -> bool:
        return not self.unavailable


def iris_metadata(framework: str) -> dict:
    return {
        "framework": framework,
        "model_type": "classification",
        "features": [{"name": name, "type": "double"} for name in IRIS_FEATURES],
        "label": {"name": "species", "type": "integer", "classes": IRIS_CLASSES},
    }


@pytest.fixture(scope="session")
def sklearn_artifact() -> bytes:
    """A decision tree fitted on the full iris data set, joblib-encoded."""
    iris = load_iris()
    model = DecisionTreeClassifier(random_state=0).fit(iris.data, iris.target)
    buffer = io.BytesIO()
    joblib.dump(model, buffer)
    return buffer.getvalue()


@pytest.fixture
def linear_artifact() -> bytes:
    """Three-class linear model that separates setosa on petal length."""
    return json.dumps({
        "kind": "classification",
        "coefficients": [[0, 0, -1, 0], [0, 0, 0, 0], [0, 0, 1, 0]],
        "intercept": [2.5, 0.0, -5.0],
    }).encode()


@pytest.fixture
def store(sklearn_artifact, linear_artifact) -> InMemoryObjectStore:
    """Store holding ``iris-tree`` (sklearn) and ``iris-linear`` (linear)."""
    store = InMemoryObjectStore()
    publish_model(store, "iris-tree", sklearn_artifact, iris_metadata("sklearn"))
    publish_model(store, "iris-linear", linear_artifact, iris_metadata("linear"))
    store.reads.clear()
    return store


@pytest.fixture
def metrics() -> MetricsCollector:
    """Collector bound to a fresh registry."""
    return MetricsCollector("test-service", registry=CollectorRegistry())


@pytest.fixture
def cache(store, metrics) -> ModelCache:
    """Model cache over the iris store."""
    return ModelCache(store, default_registry(), load_timeout=5.0, metrics=metrics)
