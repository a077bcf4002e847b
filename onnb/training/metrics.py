"""Evaluation metrics used for early stopping and reporting."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, Dict, Iterable, Mapping, Type, Union

import numpy as np

from ..core.types import Array
from ..errors import ConfigurationError


def _check_shapes(actual: Array, expected: Array) -> None:
    if np.shape(actual) != np.shape(expected):
        raise ValueError(
            f"Metric inputs differ in shape: actual {np.shape(actual)} vs "
            f"expected {np.shape(expected)}"
        )


@dataclass(frozen=True)
class Accuracy:
    """Fraction of entries where the prediction equals the expectation."""

    min: float = 1.0
    name: ClassVar[str] = "accuracy"

    def label(self) -> str:
        return "Accuracy"

    def value(self, actual: Array, expected: Array) -> float:
        _check_shapes(actual, expected)
        if np.size(expected) == 0:
            return 0.0
        return float(np.mean(np.asarray(actual) == np.asarray(expected)))

    def check(self, actual: Array, expected: Array) -> bool:
        return self.value(actual, expected) >= self.min


@dataclass(frozen=True)
class Tolerance:
    """Largest absolute error, passing when every entry is within ``epsilon``."""

    epsilon: float = 1e-3
    name: ClassVar[str] = "tolerance"

    def label(self) -> str:
        return "Tolerance"

    def value(self, actual: Array, expected: Array) -> float:
        _check_shapes(actual, expected)
        if np.size(expected) == 0:
            return 0.0
        return float(np.max(np.abs(np.asarray(actual) - np.asarray(expected))))

    def check(self, actual: Array, expected: Array) -> bool:
        return self.value(actual, expected) <= self.epsilon


Metric = Union[Accuracy, Tolerance]

_ALIASES: Dict[str, Type[Metric]] = {
    "accuracy": Accuracy,
    "acc": Accuracy,
    "tolerance": Tolerance,
    "tol": Tolerance,
}


def get_metric(name: str, args: Mapping[str, Any] | None = None) -> Metric:
    """Return the metric registered under ``name`` built from ``args``."""

    key = str(name).strip().lower()
    if key not in _ALIASES:
        available = ", ".join(metric_names())
        raise ConfigurationError(f"Unknown metric {name!r}. Available metrics: {available}")
    cls = _ALIASES[key]
    args = dict(args or {})
    if cls is Accuracy:
        minimum = float(args.pop("min", 1.0))
        if not 0.0 <= minimum <= 1.0:
            raise ConfigurationError(f"Accuracy min must be in [0, 1], got {minimum}")
        metric: Metric = Accuracy(min=minimum)
    else:
        epsilon = float(args.pop("epsilon", 1e-3))
        if epsilon < 0:
            raise ConfigurationError(f"Tolerance epsilon must be >= 0, got {epsilon}")
        metric = Tolerance(epsilon=epsilon)
    if args:
        unknown = ", ".join(sorted(args))
        raise ConfigurationError(f"Unknown arguments for metric {name!r}: {unknown}")
    return metric


def metric_names() -> Iterable[str]:
    return sorted(_ALIASES)


__all__ = ["Accuracy", "Metric", "Tolerance", "get_metric", "metric_names"]
