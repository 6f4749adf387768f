"""Framework name -> adapter resolution."""

import threading
from typing import Dict, Iterable, List, Optional, Union

import structlog

from ..errors import UnknownFramework
from ..loaders.schema import ModelMetadata
from .base import ModelAdapter
from .linear import LinearModelAdapter
from .sklearn_adapter import SklearnAdapter
from .torchscript import TorchScriptAdapter

logger = structlog.get_logger("model_serving.adapters")


class AdapterRegistry:
    """Ordered collection of adapters with a per-framework lookup memo.

    The first registered adapter that supports a framework wins. Resolution
    is side-effect free, so the memo is purely an optimization and concurrent
    first lookups may both compute the same answer.
    """

    def __init__(self, adapters: Optional[Iterable[ModelAdapter]] = None):
        self._adapters: List[ModelAdapter] = list(adapters or [])
        self._resolved: Dict[str, ModelAdapter] = {}
        self._lock = threading.Lock()

    @property
    def adapters(self) -> List[ModelAdapter]:
        return list(self._adapters)

    def register(self, adapter: ModelAdapter) -> None:
        """Add an adapter after the existing ones."""
        with self._lock:
            self._adapters = self._adapters + [adapter]
            self._resolved = {}
        logger.info("Registered model adapter", adapter=repr(adapter))

    def resolve(self, target: Union[ModelMetadata, str]) -> ModelAdapter:
        """Find the adapter for a model's metadata or a bare framework name.

        Raises
        - UnknownFramework: no registered adapter supports the framework
        """
        framework = target.framework if isinstance(target, ModelMetadata) else target
        key = framework.upper()

        adapter = self._resolved.get(key)
        if adapter is not None:
            return adapter

        for candidate in self._adapters:
            if isinstance(target, ModelMetadata):
                matches = candidate.supports(target)
            else:
                matches = candidate.supports_framework(target)
            if matches:
                self._resolved[key] = candidate
                return candidate

        raise UnknownFramework(framework)


def default_registry() -> AdapterRegistry:
    """Registry with every adapter shipped by the service."""
    return AdapterRegistry([SklearnAdapter(), LinearModelAdapter(), TorchScriptAdapter()])
