"""Cost functions used to drive backpropagation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Sequence

import numpy as np

from ..core.types import Array
from ..errors import ConfigurationError

ValueFn = Callable[[Array, Array], float]
PrimeFn = Callable[[Array, Array], Array]


@dataclass(frozen=True)
class Cost:
    """Cost wrapper exposing the gradient and a scalar value for reporting."""

    name: str
    value_fn: ValueFn
    prime_fn: PrimeFn

    def value(self, actual: Array, expected: Array) -> float:
        return self.value_fn(actual, expected)

    def prime(self, actual: Array, expected: Array) -> Array:
        """Return d(cost)/d(actual) for the whole batch."""

        return self.prime_fn(actual, expected)


class CostRegistry:
    """Central registry for cost functions and their configuration aliases."""

    def __init__(self) -> None:
        self._registry: Dict[str, Cost] = {}
        self._aliases: Dict[str, str] = {}

    def register(
        self, name: str, value_fn: ValueFn, prime_fn: PrimeFn, aliases: Sequence[str] = ()
    ) -> None:
        self._registry[name] = Cost(name, value_fn, prime_fn)
        for alias in (name, *aliases):
            self._aliases[alias] = name

    def get(self, name: str) -> Cost:
        key = str(name).strip().lower()
        if key not in self._aliases:
            available = ", ".join(self.names())
            raise ConfigurationError(f"Unknown cost {name!r}. Available costs: {available}")
        return self._registry[self._aliases[key]]

    def names(self) -> Iterable[str]:
        return sorted(self._aliases)


REGISTRY = CostRegistry()


def _mse_value(actual: Array, expected: Array) -> float:
    return float(np.mean(np.square(actual - expected)))


def _mse_prime(actual: Array, expected: Array) -> Array:
    # Unscaled: batch normalisation happens in Layer.update.
    return actual - expected


_CE_EPS = 1e-12


def _cross_entropy_value(actual: Array, expected: Array) -> float:
    clipped = np.clip(actual, _CE_EPS, 1.0)
    return float(-np.mean(np.sum(expected * np.log(clipped), axis=0)))


def _cross_entropy_prime(actual: Array, expected: Array) -> Array:
    denom = np.maximum(actual * (1.0 - actual), _CE_EPS)
    return (actual - expected) / denom


REGISTRY.register(
    "mse", _mse_value, _mse_prime, aliases=("mean squared error", "mean_squared_error")
)
REGISTRY.register(
    "cross_entropy",
    _cross_entropy_value,
    _cross_entropy_prime,
    aliases=("cross entropy", "crossentropy", "ce"),
)

MSE = REGISTRY.get("mse")
CROSS_ENTROPY = REGISTRY.get("cross_entropy")


def get_cost(name: str) -> Cost:
    return REGISTRY.get(name)


__all__ = ["CROSS_ENTROPY", "Cost", "CostRegistry", "MSE", "REGISTRY", "get_cost"]
