"""Type aliases and TypedDicts for eco_sorter inter-module contracts."""

from collections.abc import Callable
from typing import TypedDict

from eco_sorter.schemas.training import TrainingProgress


class Normalization(TypedDict):
    """Per-channel normalization stats stored in the labels sidecar."""

    mean: list[float]
    std: list[float]


class LabelsMapping(TypedDict):
    """Contents of ``labels_mapping.json`` exported next to an ONNX model.

    idx_to_class: JSON object keys are stringified class indices.
    """

    num_classes: int
    class_to_idx: dict[str, int]
    idx_to_class: dict[str, str]
    normalization: Normalization


ProgressCallback = Callable[[TrainingProgress], None]
