"""ONNX-based waste classification engine."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path

import numpy as np
import onnxruntime as ort
from loguru import logger
from PIL import Image
from torchvision import transforms

from eco_sorter.config import WASTE_CATEGORIES
from eco_sorter.errors import EngineNotReadyError
from eco_sorter.inference.base import BaseClassificationEngine, EngineInfo
from eco_sorter.schemas.record import ClassificationOutput
from eco_sorter.schemas.training import TrainingSampleSet, TrainResult
from eco_sorter.types import LabelsMapping


def _softmax(logits: np.ndarray) -> np.ndarray:  # type: ignore[type-arg]
    """Row-wise softmax for 2-D array."""
    exp = np.exp(logits - logits.max(axis=-1, keepdims=True))
    return exp / exp.sum(axis=-1, keepdims=True)


class ONNXClassificationEngine(BaseClassificationEngine):
    """Classify captured images with an exported ONNX model.

    The model is loaded on :meth:`initialize` (or lazily on the first
    :meth:`classify`) together with its ``labels_mapping.json`` sidecar.
    Preprocessing matches evaluation: Resize 256 -> CenterCrop 224 ->
    normalisation from the sidecar.

    If the model cannot be loaded, or inference on an image fails, the
    engine stays usable and returns a degraded random prediction with
    confidence in [0.3, 0.7) so the capture flow never stalls.

    Args:
        model_path: Path to the ``.onnx`` file.
        labels_mapping_path: Path to the ``labels_mapping.json`` sidecar.
        seed: Seed for the degraded fallback generator.
    """

    def __init__(
        self,
        model_path: str | Path,
        labels_mapping_path: str | Path,
        seed: int | None = None,
    ) -> None:
        self.model_path = Path(model_path)
        self.labels_mapping_path = Path(labels_mapping_path)
        self.categories: tuple[str, ...] = WASTE_CATEGORIES
        self.transform: transforms.Compose | None = None
        self.session: ort.InferenceSession | None = None
        self.input_name: str | None = None
        self._ready = False
        self._rng = np.random.default_rng(seed)

    async def initialize(self) -> bool:
        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, self._load)
        except Exception as e:
            logger.error(f"Could not load ONNX model {self.model_path}: {e}")
            self.session = None
            self._ready = True
            return False
        self._ready = True
        logger.info(
            f"Loaded ONNX model {self.model_path.name} "
            f"({len(self.categories)} categories)"
        )
        return True

    def _load(self) -> None:
        with open(self.labels_mapping_path) as f:
            mapping: LabelsMapping = json.load(f)

        idx_to_class = {int(k): v for k, v in mapping["idx_to_class"].items()}
        self.categories = tuple(idx_to_class[i] for i in sorted(idx_to_class))
        norm = mapping["normalization"]
        self.transform = transforms.Compose(
            [
                transforms.Resize(256),
                transforms.CenterCrop(224),
                transforms.ToTensor(),
                transforms.Normalize(mean=norm["mean"], std=norm["std"]),
            ]
        )
        self.session = ort.InferenceSession(
            str(self.model_path),
            providers=ort.get_available_providers(),
        )
        self.input_name = self.session.get_inputs()[0].name

    def is_ready(self) -> bool:
        return self._ready

    def info(self) -> EngineInfo:
        return EngineInfo(ready=self._ready, categories=self.categories)

    async def classify(self, image_ref: str) -> ClassificationOutput:
        if not self._ready:
            await self.initialize()
        loop = asyncio.get_running_loop()
        try:
            probs = await loop.run_in_executor(None, self._predict, image_ref)
        except Exception as e:
            logger.error(f"Classification of {image_ref!r} failed, using fallback: {e}")
            return self._degraded_output()
        return self._probs_to_output(probs)

    def _predict(self, image_ref: str) -> np.ndarray:  # type: ignore[type-arg]
        if self.session is None or self.transform is None:
            raise EngineNotReadyError(f"No ONNX session for {self.model_path}")
        with Image.open(image_ref) as image:
            tensor = self.transform(image.convert("RGB"))
        input_array = tensor.unsqueeze(0).numpy()  # type: ignore[union-attr]
        logits = self.session.run(None, {self.input_name: input_array})[0]
        return _softmax(np.asarray(logits))[0]

    def _probs_to_output(
        self,
        probs: np.ndarray,  # type: ignore[type-arg]
    ) -> ClassificationOutput:
        """Top-1 becomes the category, runner-up the secondary prediction."""
        order = np.argsort(probs)[::-1]
        top = int(order[0])
        secondary = int(order[1]) if len(order) > 1 else None
        return ClassificationOutput(
            category=self._label(top),
            confidence=float(probs[top]),
            secondary_category=None if secondary is None else self._label(secondary),
            secondary_confidence=None if secondary is None else float(probs[secondary]),
            all_probabilities=tuple(float(p) for p in probs),
        )

    def _label(self, idx: int) -> str:
        if idx < len(self.categories):
            return self.categories[idx]
        return str(idx)

    def _degraded_output(self) -> ClassificationOutput:
        idx = int(self._rng.integers(len(self.categories)))
        return ClassificationOutput(
            category=self.categories[idx],
            confidence=float(0.3 + self._rng.random() * 0.4),
            all_probabilities=tuple(
                float(p) for p in self._rng.random(len(self.categories))
            ),
        )

    async def train(self, sample_set: TrainingSampleSet) -> TrainResult:
        """ONNX graphs are inference-only; on-device training is unsupported."""
        logger.warning(
            f"Ignoring training request for {len(sample_set)} samples: "
            "ONNX engine is inference-only"
        )
        return TrainResult(
            success=False,
            error="ONNX engine is inference-only; export a retrained model instead",
        )
