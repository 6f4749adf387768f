"""Model cache with single-flight loading.

Responsible for fetching a model's artifacts from the object store, resolving
its adapter, building the predictor, and keeping the result for the lifetime
of the process.

Design
- Loaded models live in a plain dict and are read without locking; entries
  are immutable and never replaced or evicted.
- The first request for an unknown id becomes its only loader. Concurrent
  requests for the same id wait on the loader's ``Future``; requests for
  other ids never wait on it.
- ``_lock`` only guards the bookkeeping dicts and is never held across
  storage I/O or deserialization.
- A failed load is not remembered: every waiter of that attempt sees the same
  failure, and the next request starts a fresh load.
"""

import threading
import time
from concurrent.futures import Future
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

import structlog

from libs.common.metrics import MetricsCollector
from libs.common.tracing import get_ml_tracer
from libs.object_store.base import ObjectStore, StorageUnavailableError

from ..adapters.base import Predictor
from ..adapters.registry import AdapterRegistry
from ..errors import ModelLoadFailure, ModelLoadTimeout, ModelStorageUnavailable
from ..loaders.artifacts import artifact_keys
from ..loaders.schema import ModelMetadata, parse_schema

logger = structlog.get_logger("model_serving.model_cache")


@dataclass(frozen=True)
class LoadedModel:
    """A ready predictor together with the metadata it was built from."""
    predictor: Predictor
    metadata: ModelMetadata


class ModelCache:
    """Lazily loads and caches one ``LoadedModel`` per model id."""

    def __init__(
        self,
        store: ObjectStore,
        registry: AdapterRegistry,
        schema_parser: Callable[[bytes], ModelMetadata] = parse_schema,
        load_timeout: Optional[float] = None,
        metrics: Optional[MetricsCollector] = None
    ):
        """Create a model cache.

        Parameters
        - store: object store holding ``{model_id}/model.bin`` and ``schema.json``
        - registry: adapters used to turn artifacts into predictors
        - schema_parser: decoder for ``schema.json`` payloads
        - load_timeout: seconds a request waits on another request's load;
          ``None`` waits indefinitely
        - metrics: optional collector for cache and load metrics
        """
        self.store = store
        self.registry = registry
        self.schema_parser = schema_parser
        self.load_timeout = load_timeout
        self.metrics = metrics
        self.tracer = get_ml_tracer("model-serving")

        self._models: Dict[str, LoadedModel] = {}
        self._inflight: Dict[str, "Future[LoadedModel]"] = {}
        self._lock = threading.Lock()

    def get(self, model_id: str) -> LoadedModel:
        """Return the loaded model for ``model_id``, loading it on first use.

        Raises
        - ModelLoadFailure: the model could not be loaded (``ModelStorageUnavailable``
          when the storage backend failed, ``ModelLoadTimeout`` when waiting on
          another request's load exceeded ``load_timeout``)
        """
        loaded = self._models.get(model_id)
        if loaded is not None:
            self._record_cache(hit=True)
            return loaded

        with self._lock:
            loaded = self._models.get(model_id)
            if loaded is not None:
                self._record_cache(hit=True)
                return loaded
            future = self._inflight.get(model_id)
            is_loader = future is None
            if is_loader:
                future = Future()
                self._inflight[model_id] = future

        self._record_cache(hit=False)
        if not is_loader:
            return self._wait_for(model_id, future)

        try:
            loaded = self._load(model_id)
        except BaseException as e:
            with self._lock:
                del self._inflight[model_id]
            future.set_exception(e)
            raise

        with self._lock:
            self._models[model_id] = loaded
            del self._inflight[model_id]
            loaded_count = len(self._models)
        future.set_result(loaded)

        if self.metrics is not None:
            self.metrics.set_models_loaded(loaded_count)
        return loaded

    def _wait_for(self, model_id: str, future: "Future[LoadedModel]") -> LoadedModel:
        logger.debug("Waiting on in-flight model load", model_id=model_id)
        try:
            return future.result(timeout=self.load_timeout)
        except FutureTimeoutError:
            logger.warning(
                "Timed out waiting for model load",
                model_id=model_id,
                timeout_seconds=self.load_timeout
            )
            raise ModelLoadTimeout(model_id) from None

    def _load(self, model_id: str) -> LoadedModel:
        """Fetch, decode and assemble one model; every failure becomes ``ModelLoadFailure``."""
        model_key, schema_key = artifact_keys(model_id)
        start_time = time.time()
        logger.info("Loading model", model_id=model_id)

        try:
            with self.tracer.trace_model_load(model_id):
                raw_model = self.store.get(model_key)
                metadata = self.schema_parser(self.store.get(schema_key))
                adapter = self.registry.resolve(metadata)
                predictor = adapter.load(raw_model, metadata)
        except StorageUnavailableError as e:
            self._record_load("storage_unavailable", start_time)
            logger.error("Storage unavailable while loading model", model_id=model_id, error=str(e))
            raise ModelStorageUnavailable(model_id, e) from e
        except Exception as e:
            self._record_load("failed", start_time)
            logger.error(
                "Error loading model",
                model_id=model_id,
                error_type=type(e).__name__,
                error=str(e)
            )
            raise ModelLoadFailure(model_id, e) from e

        duration = self._record_load("loaded", start_time)
        logger.info(
            "Loaded model",
            model_id=model_id,
            framework=metadata.framework,
            feature_count=len(metadata.features),
            adapter=type(adapter).__name__,
            duration_ms=round(duration * 1000, 2)
        )
        return LoadedModel(predictor=predictor, metadata=metadata)

    def _record_load(self, outcome: str, start_time: float) -> float:
        duration = time.time() - start_time
        if self.metrics is not None:
            self.metrics.record_model_load(outcome, duration)
        return duration

    def _record_cache(self, hit: bool) -> None:
        if self.metrics is None:
            return
        if hit:
            self.metrics.record_cache_hit("model")
        else:
            self.metrics.record_cache_miss("model")

    def loaded_model_ids(self) -> List[str]:
        """Snapshot of the ids currently held in the cache."""
        with self._lock:
            return sorted(self._models)

    def __contains__(self, model_id: object) -> bool:
        return model_id in self._models

    def __len__(self) -> int:
        return len(self._models)
