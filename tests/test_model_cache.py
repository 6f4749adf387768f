"""Tests for the single-flight model cache."""

import json
import threading
import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from service_model_serving.app.adapters.registry import default_registry
from service_model_serving.app.adapters.sklearn_adapter import SklearnPredictor
from service_model_serving.app.errors import (
    ModelLoadFailure,
    ModelLoadTimeout,
    ModelStorageUnavailable,
)
from service_model_serving.app.loaders.artifacts import publish_model
from service_model_serving.app.runtime.model_cache import ModelCache

from .conftest import iris_metadata


def _wait_for_reads(store, key, count, timeout=5.0):
    deadline = time.monotonic() + timeout
    while store.reads[key] < count:
        if time.monotonic() > deadline:
            raise AssertionError(f"{key} was read {store.reads[key]} times, expected {count}")
        time.sleep(0.01)


def test_loads_once_and_serves_from_memory(cache, store):
    """A model is fetched once and then served from memory."""
    first = cache.get("iris-tree")
    second = cache.get("iris-tree")

    assert first is second
    assert isinstance(first.predictor, SklearnPredictor)
    assert first.metadata.framework == "sklearn"
    assert store.reads["iris-tree/model.bin"] == 1
    assert store.reads["iris-tree/schema.json"] == 1
    assert "iris-tree" in cache
    assert len(cache) == 1


def test_concurrent_requests_share_one_load(cache, store):
    """Concurrent first requests trigger a single load."""
    store.gate = threading.Event()
    workers = 16

    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = [pool.submit(cache.get, "iris-tree") for _ in range(workers)]
        _wait_for_reads(store, "iris-tree/model.bin", 1)
        # Give the remaining requests time to attach to the in-flight load.
        time.sleep(0.1)
        store.gate.set()
        results = [future.result(timeout=10) for future in futures]

    assert store.reads["iris-tree/model.bin"] == 1
    assert all(result is results[0] for result in results)


def test_distinct_models_load_independently(cache, store):
    """Loads for different models run in parallel."""
    store.gate = threading.Event()

    with ThreadPoolExecutor(max_workers=2) as pool:
        tree = pool.submit(cache.get, "iris-tree")
        linear = pool.submit(cache.get, "iris-linear")
        # Both loads reach storage while neither has finished.
        _wait_for_reads(store, "iris-tree/model.bin", 1)
        _wait_for_reads(store, "iris-linear/model.bin", 1)
        store.gate.set()
        tree.result(timeout=10)
        linear.result(timeout=10)

    assert cache.loaded_model_ids() == ["iris-linear", "iris-tree"]


def test_cached_model_is_served_while_another_loads(cache, store):
    """Cached models are not blocked by an in-flight load."""
    cache.get("iris-linear")
    store.gate = threading.Event()

    with ThreadPoolExecutor(max_workers=1) as pool:
        pending = pool.submit(cache.get, "iris-tree")
        _wait_for_reads(store, "iris-tree/model.bin", 1)

        assert cache.get("iris-linear").metadata.framework == "linear"
        assert not pending.done()

        store.gate.set()
        pending.result(timeout=10)


def test_missing_model_fails_with_model_id(cache):
    """Missing artifacts fail with the model id."""
    with pytest.raises(ModelLoadFailure) as exc_info:
        cache.get("nonexistent-model")

    assert exc_info.value.model_id == "nonexistent-model"
    assert str(exc_info.value) == "Model not found: nonexistent-model"
    assert not isinstance(exc_info.value, ModelStorageUnavailable)


def test_failed_load_is_retried_on_next_request(cache, store, sklearn_artifact):
    """Failures are not cached."""
    with pytest.raises(ModelLoadFailure):
        cache.get("late-model")
    assert "late-model" not in cache

    publish_model(store, "late-model", sklearn_artifact, iris_metadata("sklearn"))

    assert cache.get("late-model").metadata.framework == "sklearn"
    assert store.reads["late-model/model.bin"] == 2


def test_waiters_share_the_loader_failure(cache, store):
    """Waiters see the loader's failure."""
    store.gate = threading.Event()

    with ThreadPoolExecutor(max_workers=4) as pool:
        futures = [pool.submit(cache.get, "missing") for _ in range(4)]
        _wait_for_reads(store, "missing/model.bin", 1)
        time.sleep(0.1)
        store.gate.set()
        errors = [future.exception(timeout=10) for future in futures]

    assert all(isinstance(error, ModelLoadFailure) for error in errors)
    assert store.reads["missing/model.bin"] == 1


def test_storage_outage_is_distinguished(cache, store):
    """Storage outages raise ModelStorageUnavailable."""
    store.unavailable = True

    with pytest.raises(ModelStorageUnavailable) as exc_info:
        cache.get("iris-tree")
    assert str(exc_info.value) == "Model storage unavailable: iris-tree"

    store.unavailable = False
    assert cache.get("iris-tree").metadata.framework == "sklearn"


def test_waiter_times_out(store):
    """Waiting past the load timeout raises ModelLoadTimeout."""
    cache = ModelCache(store, default_registry(), load_timeout=0.1)
    store.gate = threading.Event()

    with ThreadPoolExecutor(max_workers=1) as pool:
        loader = pool.submit(cache.get, "iris-tree")
        _wait_for_reads(store, "iris-tree/model.bin", 1)

        with pytest.raises(ModelLoadTimeout):
            cache.get("iris-tree")

        store.gate.set()
        loader.result(timeout=10)

    assert "iris-tree" in cache


@pytest.mark.parametrize("schema", [
    json.dumps({**iris_metadata("sklearn"), "framework": "xgboost"}).encode(),
    b"{not json",
    json.dumps({"framework": "sklearn", "features": []}).encode(),
])
def test_bad_schema_is_a_load_failure(cache, store, schema):
    """Bad schema documents fail the load."""
    store.objects["iris-tree/schema.json"] = schema

    with pytest.raises(ModelLoadFailure) as exc_info:
        cache.get("iris-tree")
    assert not isinstance(exc_info.value, ModelStorageUnavailable)
    assert exc_info.value.cause is not None


def test_corrupt_artifact_is_a_load_failure(cache, store):
    """Corrupt artifacts fail the load."""
    store.objects["iris-tree/model.bin"] = b"garbage"

    with pytest.raises(ModelLoadFailure, match="Model not found: iris-tree"):
        cache.get("iris-tree")


def test_load_metrics_are_recorded(cache, metrics):
    """Test model load metrics."""
    cache.get("iris-tree")
    cache.get("iris-tree")
    with pytest.raises(ModelLoadFailure):
        cache.get("nonexistent-model")

    output = metrics.get_metrics()
    assert 'ml_model_loads_total{outcome="loaded"} 1.0' in output
    assert 'ml_model_loads_total{outcome="failed"} 1.0' in output
    assert "ml_models_loaded 1.0" in output
    assert 'ml_cache_hits_total{cache_type="model"} 1.0' in output
