"""Activation functions for ONNB layers.

The set of activations is closed: every variant is a small frozen dataclass
exposing ``call`` and ``prime`` over a (features x examples) batch, and
:func:`get_activation` resolves configuration names to instances.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Dict, Iterable, Type, Union

import numpy as np

from ..errors import ConfigurationError
from .types import Array


def sigmoid(x: Array) -> Array:
    """Return the logistic sigmoid of ``x``."""

    return 1.0 / (1.0 + np.exp(-x))


def relu(x: Array) -> Array:
    """Return the ReLU activation."""

    return np.maximum(x, 0.0)


def softmax(x: Array) -> Array:
    """Column-wise softmax (one distribution per example)."""

    shifted = x - np.max(x, axis=0, keepdims=True)
    exp = np.exp(shifted)
    return exp / np.sum(exp, axis=0, keepdims=True)


@dataclass(frozen=True)
class Sigmoid:
    name: ClassVar[str] = "sigmoid"

    def call(self, x: Array) -> Array:
        return sigmoid(x)

    def prime(self, x: Array) -> Array:
        y = sigmoid(x)
        return y * (1.0 - y)


@dataclass(frozen=True)
class ReLU:
    name: ClassVar[str] = "relu"

    def call(self, x: Array) -> Array:
        return relu(x)

    def prime(self, x: Array) -> Array:
        return (x > 0).astype(np.float64)


@dataclass(frozen=True)
class LeakyReLU:
    """ReLU that keeps a small slope for negative inputs."""

    slope: float = 0.01
    name: ClassVar[str] = "leaky_relu"

    def call(self, x: Array) -> Array:
        return np.where(x > 0, x, self.slope * x)

    def prime(self, x: Array) -> Array:
        return np.where(x > 0, 1.0, self.slope)


@dataclass(frozen=True)
class Softmax:
    """Softmax over the feature axis.

    ``prime`` is the diagonal of the Jacobian, ``y * (1 - y)``. Under the
    cross-entropy cost the network skips it and uses ``actual - expected`` as
    the output delta, which stays finite when the outputs saturate.
    """

    name: ClassVar[str] = "softmax"

    def call(self, x: Array) -> Array:
        return softmax(x)

    def prime(self, x: Array) -> Array:
        y = softmax(x)
        return y * (1.0 - y)


Activation = Union[Sigmoid, ReLU, LeakyReLU, Softmax]

_ALIASES: Dict[str, Type[Activation]] = {
    "sigmoid": Sigmoid,
    "logistic": Sigmoid,
    "relu": ReLU,
    "leaky relu": LeakyReLU,
    "leaky_relu": LeakyReLU,
    "leakyrelu": LeakyReLU,
    "softmax": Softmax,
}


def get_activation(name: str) -> Activation:
    """Return the activation registered under ``name`` (case-insensitive)."""

    key = str(name).strip().lower()
    if key not in _ALIASES:
        available = ", ".join(activation_names())
        raise ConfigurationError(
            f"Unknown activation {name!r}. Available activations: {available}"
        )
    return _ALIASES[key]()


def activation_names() -> Iterable[str]:
    return sorted(_ALIASES)


__all__ = [
    "Activation",
    "LeakyReLU",
    "ReLU",
    "Sigmoid",
    "Softmax",
    "activation_names",
    "get_activation",
    "relu",
    "sigmoid",
    "softmax",
]
