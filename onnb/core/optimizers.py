"""Gradient descent optimizers with explicit per-layer state."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar, Dict, List, Mapping, Optional, Sequence, Type, Union

import numpy as np

from ..errors import ConfigurationError, StepOrderError
from .layer import Layer
from .types import Array, LayerState

DEFAULT_GAMMA = 0.9
DEFAULT_BETA = 0.999
EPSILON = 1e-7


@dataclass
class OptimizerState:
    """Moment/velocity accumulators indexed by layer position.

    Slots are created lazily, zero-filled and shaped like the layer's weight
    gradient, the first time an index is updated.
    """

    moments: List[Optional[Array]] = field(default_factory=list)
    velocities: List[Optional[Array]] = field(default_factory=list)
    step: int = 0


def _slot(slots: List[Optional[Array]], index: int, like: Array) -> Array:
    while len(slots) <= index:
        slots.append(None)
    current = slots[index]
    if current is None:
        current = np.zeros_like(like, dtype=np.float64)
        slots[index] = current
    elif current.shape != like.shape:
        raise ValueError(
            f"Optimizer state for layer {index} has shape {current.shape}, "
            f"gradient has {like.shape}"
        )
    return current


class _Optimizer:
    """Shared update loop; subclasses implement :meth:`delta`."""

    learning_rate: float
    state: OptimizerState

    def update(
        self,
        layers: Sequence[Layer],
        states: Sequence[LayerState],
        input_rows: int,
    ) -> None:
        """Apply one optimisation step to every layer.

        ``states`` must come from the forward/backward pass of this step;
        gradients are ``delta @ inputs.T`` for weights and ``delta`` for biases.
        """

        if len(states) != len(layers):
            raise StepOrderError(
                f"Got {len(states)} layer states for {len(layers)} layers"
            )
        self._begin_step()
        for index, (layer, state) in enumerate(zip(layers, states)):
            if state.delta is None:
                raise StepOrderError(f"Layer {index} has no delta; run back_prop first")
            gradient_weights = state.delta @ state.inputs.T
            delta_weights, delta_biases = self.delta(index, gradient_weights, state.delta)
            layer.update(delta_weights, delta_biases, input_rows)

    def reset(self) -> None:
        self.state = OptimizerState()

    def _begin_step(self) -> None:
        pass

    def delta(
        self, index: int, gradient_weights: Array, gradient_biases: Array
    ) -> tuple[Array, Array]:  # pragma: no cover - interface
        raise NotImplementedError


@dataclass
class SGD(_Optimizer):
    """Stochastic gradient descent with classical momentum."""

    learning_rate: float
    gamma: float = DEFAULT_GAMMA
    state: OptimizerState = field(default_factory=OptimizerState, repr=False)
    name: ClassVar[str] = "sgd"

    def __post_init__(self) -> None:
        _check_rate(self.learning_rate)
        _check_decay("gamma", self.gamma)

    def delta(
        self, index: int, gradient_weights: Array, gradient_biases: Array
    ) -> tuple[Array, Array]:
        moment = _slot(self.state.moments, index, gradient_weights)
        moment = self.gamma * moment + self.learning_rate * gradient_weights
        self.state.moments[index] = moment
        return moment, self.learning_rate * gradient_biases

    def describe(self) -> Mapping[str, object]:
        return {"name": self.name, "learning_rate": self.learning_rate, "gamma": self.gamma}


@dataclass
class Adam(_Optimizer):
    """Adaptive moment estimation with bias-corrected moments."""

    learning_rate: float
    gamma: float = DEFAULT_GAMMA
    beta: float = DEFAULT_BETA
    state: OptimizerState = field(default_factory=OptimizerState, repr=False)
    name: ClassVar[str] = "adam"

    def __post_init__(self) -> None:
        _check_rate(self.learning_rate)
        _check_decay("gamma", self.gamma)
        _check_decay("beta", self.beta)

    def _begin_step(self) -> None:
        self.state.step += 1

    def bias_corrections(self) -> tuple[float, float]:
        """Return the ``(1 - gamma^t, 1 - beta^t)`` denominators for the current step."""

        t = self.state.step
        return 1.0 - self.gamma**t, 1.0 - self.beta**t

    def delta(
        self, index: int, gradient_weights: Array, gradient_biases: Array
    ) -> tuple[Array, Array]:
        if self.state.step == 0:
            raise StepOrderError("Adam.delta called before the first update step")
        moment = _slot(self.state.moments, index, gradient_weights)
        velocity = _slot(self.state.velocities, index, gradient_weights)

        moment = self.gamma * moment + (1.0 - self.gamma) * gradient_weights
        velocity = self.beta * velocity + (1.0 - self.beta) * np.square(gradient_weights)
        self.state.moments[index] = moment
        self.state.velocities[index] = velocity

        moment_correction, velocity_correction = self.bias_corrections()
        moment_bar = moment / moment_correction
        velocity_bar = velocity / velocity_correction
        delta_weights = self.learning_rate * moment_bar / (np.sqrt(velocity_bar) + EPSILON)
        return delta_weights, self.learning_rate * gradient_biases

    def describe(self) -> Mapping[str, object]:
        return {
            "name": self.name,
            "learning_rate": self.learning_rate,
            "gamma": self.gamma,
            "beta": self.beta,
        }


Optimizer = Union[SGD, Adam]

_ALIASES: Dict[str, Type[Optimizer]] = {
    "stochastic gradient descent": SGD,
    "gradient descent": SGD,
    "sgd": SGD,
    "adaptive momentum": Adam,
    "adam": Adam,
}


def get_optimizer(
    name: str,
    learning_rate: float,
    *,
    gamma: float | None = None,
    beta: float | None = None,
) -> Optimizer:
    """Build a fresh optimizer (with empty state) from its configuration name."""

    key = str(name).strip().lower()
    if key not in _ALIASES:
        available = ", ".join(sorted(_ALIASES))
        raise ConfigurationError(f"Unknown optimizer {name!r}. Available optimizers: {available}")
    cls = _ALIASES[key]
    gamma = DEFAULT_GAMMA if gamma is None else float(gamma)
    if cls is Adam:
        beta = DEFAULT_BETA if beta is None else float(beta)
        return Adam(learning_rate=float(learning_rate), gamma=gamma, beta=beta)
    return SGD(learning_rate=float(learning_rate), gamma=gamma)


def _check_rate(learning_rate: float) -> None:
    if not learning_rate > 0:
        raise ConfigurationError(f"learning_rate must be positive, got {learning_rate}")


def _check_decay(label: str, value: float) -> None:
    if not 0.0 <= value < 1.0:
        raise ConfigurationError(f"{label} must be in [0, 1), got {value}")


__all__ = [
    "Adam",
    "DEFAULT_BETA",
    "DEFAULT_GAMMA",
    "EPSILON",
    "Optimizer",
    "OptimizerState",
    "SGD",
    "get_optimizer",
]
