"""Core typing contracts for ONNB."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Tuple

import numpy as np

Array = np.ndarray

# (inputs, outputs), both column-major: (features x examples)
Split = Tuple[Array, Array]


class CostFunction(Protocol):
    """Anything exposing a batch loss gradient (and value for reporting)."""

    def value(self, actual: Array, expected: Array) -> float:
        ...

    def prime(self, actual: Array, expected: Array) -> Array:
        ...


class MetricFunction(Protocol):
    """Scores decoded predictions against expected labels."""

    def label(self) -> str:
        ...

    def value(self, actual: Array, expected: Array) -> float:
        ...

    def check(self, actual: Array, expected: Array) -> bool:
        ...


class OutputEncoder(Protocol):
    """Maps raw labels to network outputs and back."""

    def encode(self, y: Array) -> Array:
        ...

    def decode(self, y: Array) -> Array:
        ...


@dataclass
class LayerState:
    """Values recorded by one layer during a single forward/backward pair.

    Returned by :meth:`onnb.core.layer.Layer.feed_forward` and threaded into
    the backward pass and the optimizer update of the same step.
    """

    inputs: Array
    pre_activation: Array
    dropped: Array = field(default_factory=lambda: np.zeros(0, dtype=np.intp))
    delta: Optional[Array] = None

    @property
    def examples(self) -> int:
        return int(self.inputs.shape[1])


@dataclass(frozen=True)
class ModelDescription:
    """Description of the feed-forward network architecture."""

    layer_dims: List[int]
    activations: List[str]
    dropout: List[Optional[float]]

    @property
    def parameter_count(self) -> int:
        dims = self.layer_dims
        return int(sum(dims[i] * dims[i + 1] + dims[i + 1] for i in range(len(dims) - 1)))


@dataclass(frozen=True)
class MetricResult:
    """Final score of a trained network on the validation set."""

    name: str
    value: float
    passed: bool


@dataclass(frozen=True)
class TrainingResult:
    """Outcome of a single training run."""

    run_id: int
    layers: List[Dict[str, Any]]
    metric: MetricResult
    elapsed_time: float
    total_epochs: int
    predicted_output: Array


@dataclass(frozen=True)
class RunResults:
    """All runs sharing one configuration and validation set."""

    all_results: List[TrainingResult]
    validation_inputs: Array
    validation_outputs: Array
    batch_size: Optional[int] = None


__all__ = [
    "Array",
    "CostFunction",
    "LayerState",
    "MetricFunction",
    "OutputEncoder",
    "MetricResult",
    "ModelDescription",
    "RunResults",
    "Split",
    "TrainingResult",
]
