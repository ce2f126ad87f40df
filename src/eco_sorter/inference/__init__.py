"""Classification engine adapters."""

from eco_sorter.inference.base import BaseClassificationEngine, EngineInfo
from eco_sorter.inference.onnx_engine import ONNXClassificationEngine

__all__ = [
    "BaseClassificationEngine",
    "EngineInfo",
    "ONNXClassificationEngine",
]
