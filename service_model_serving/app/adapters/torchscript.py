"""TorchScript adapter.

``model.bin`` is a module saved with ``torch.jit.save``. TorchScript archives
are loaded without unpickling arbitrary Python objects and need no model
class on the import path. torch is an optional extra (``pip install
.[torch]``) and is imported the first time such a model is loaded.

Outputs with a single element are returned as floats; wider outputs are
treated as class scores and reduced to the index of the largest one.
"""

import io
from typing import Any, Tuple, Union

import structlog

from ..errors import ArtifactError
from ..loaders.schema import ModelMetadata
from .base import ModelAdapter, Predictor

logger = structlog.get_logger("model_serving.adapters.torchscript")


class TorchScriptPredictor(Predictor):

    def __init__(self, module: Any, metadata: ModelMetadata):
        super().__init__(metadata)
        self.module = module

    def predict_row(self, row: Tuple[float, ...]) -> Union[int, float]:
        import torch

        with torch.no_grad():
            output = self.module(torch.tensor([row], dtype=torch.float32))
        output = output.reshape(-1)
        if output.numel() == 1:
            return float(output.item())
        return int(torch.argmax(output).item())


class TorchScriptAdapter(ModelAdapter):
    """Loads TorchScript archives onto the CPU."""

    frameworks = ("torchscript", "pytorch", "torch")

    def load(self, raw: bytes, metadata: ModelMetadata) -> TorchScriptPredictor:
        try:
            import torch
        except ImportError as e:
            raise ArtifactError("torch is not installed; install the 'torch' extra") from e

        try:
            module = torch.jit.load(io.BytesIO(raw), map_location="cpu")
        except Exception as e:
            raise ArtifactError(f"Unreadable TorchScript artifact: {e}") from e

        module.eval()
        logger.info("Loaded TorchScript module", feature_count=len(metadata.features))
        return TorchScriptPredictor(module, metadata)
