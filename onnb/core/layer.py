"""Fully connected layer with optional dropout."""

from __future__ import annotations

from typing import Mapping, Optional

import numpy as np

from ..errors import ConfigurationError, StepOrderError
from .activations import Activation
from .types import Array, LayerState


class Layer:
    """One dense layer: ``activation(weights @ inputs + biases)``.

    Weights have shape ``(neurons, input_width)`` and biases ``(neurons, 1)``
    so that a (features x examples) batch flows through unchanged in layout.
    The layer keeps no per-step values; those live in the :class:`LayerState`
    returned by :meth:`feed_forward`.
    """

    def __init__(
        self,
        neurons: int,
        input_width: int,
        activation: Activation,
        dropout: Optional[float] = None,
        rng: Optional[np.random.Generator] = None,
    ) -> None:
        if neurons <= 0:
            raise ConfigurationError(f"Layer needs a positive neuron count, got {neurons}")
        if input_width <= 0:
            raise ConfigurationError(f"Layer needs a positive input width, got {input_width}")
        if dropout is not None and not 0.0 <= dropout <= 1.0:
            raise ConfigurationError(f"Dropout rate must be in [0, 1], got {dropout}")
        self.neurons = int(neurons)
        self.input_width = int(input_width)
        self.activation = activation
        self.dropout = None if dropout is None else float(dropout)
        self._rng = rng or np.random.default_rng()
        scale = 1.0 / np.sqrt(self.input_width)
        self.weights: Array = self._rng.uniform(-1.0, 1.0, (self.neurons, self.input_width)) * scale
        self.biases: Array = self._rng.uniform(-1.0, 1.0, (self.neurons, 1)) * scale

    def __repr__(self) -> str:
        return (
            f"Layer(neurons={self.neurons}, input_width={self.input_width}, "
            f"activation={self.activation.name!r}, dropout={self.dropout})"
        )

    # ------------------------------------------------------------------
    # Forward

    def feed_forward(self, inputs: Array) -> tuple[Array, LayerState]:
        """Training-time forward pass.

        Returns the activated (and possibly dropout-masked) output together
        with the state the backward pass of this step needs.
        """

        pre_activation = self._pre_activation(inputs)
        output = self.activation.call(pre_activation)
        dropped = np.zeros(0, dtype=np.intp)
        if self.dropout is not None:
            draws = self._rng.random(self.neurons)
            dropped = np.flatnonzero(draws < self.dropout)
            if dropped.size:
                output = output.copy()
                output[dropped, :] = 0.0
        state = LayerState(inputs=inputs, pre_activation=pre_activation, dropped=dropped)
        return output, state

    def predict(self, inputs: Array) -> Array:
        """Inference forward pass: no recorded state, no dropout."""

        return self.activation.call(self._pre_activation(inputs))

    def _pre_activation(self, inputs: Array) -> Array:
        if inputs.ndim != 2 or inputs.shape[0] != self.input_width:
            raise ValueError(
                f"Expected inputs with {self.input_width} rows, got shape {inputs.shape}"
            )
        return self.weights @ inputs + self.biases

    # ------------------------------------------------------------------
    # Backward

    def back_prop(
        self,
        state: LayerState,
        attached_layer: "Layer",
        attached_state: LayerState,
    ) -> Array:
        """Compute this layer's delta from its successor's weights and delta."""

        if attached_state is None or attached_state.delta is None:
            raise StepOrderError("Successor layer has no delta; run its backward pass first")
        upstream = attached_layer.weights.T @ attached_state.delta
        return self.back_prop_with_delta(state, upstream)

    def back_prop_with_delta(
        self, state: LayerState, delta: Array, *, through_activation: bool = True
    ) -> Array:
        """Compute this layer's delta from an upstream error signal.

        With ``through_activation=False`` the signal is already taken with
        respect to the pre-activation and is used as is.
        """

        if state is None:
            raise StepOrderError("back_prop called without a prior feed_forward")
        if state.pre_activation.shape[0] != self.neurons:
            raise StepOrderError(
                f"State has {state.pre_activation.shape[0]} rows but layer has "
                f"{self.neurons} neurons"
            )
        if delta.shape != state.pre_activation.shape:
            raise StepOrderError(
                f"Upstream delta shape {delta.shape} does not match the recorded "
                f"pre-activation shape {state.pre_activation.shape}"
            )
        if through_activation:
            layer_delta = self.activation.prime(state.pre_activation) * delta
        else:
            layer_delta = np.array(delta, dtype=np.float64)
        if state.dropped.size:
            layer_delta[state.dropped, :] = 0.0
        state.delta = layer_delta
        return layer_delta

    # ------------------------------------------------------------------
    # Update

    def update(self, delta_weights: Array, delta_biases: Array, input_rows: int) -> None:
        """Apply optimizer deltas, normalised by the number of examples."""

        if input_rows <= 0:
            raise ValueError(f"input_rows must be positive, got {input_rows}")
        if delta_weights.shape != self.weights.shape:
            raise ValueError(
                f"Weight delta shape {delta_weights.shape} != weights {self.weights.shape}"
            )
        if delta_biases.ndim != 2 or delta_biases.shape[0] != self.neurons:
            raise ValueError(f"Bias delta must have {self.neurons} rows, got {delta_biases.shape}")
        if delta_biases.shape[1] != 1:
            delta_biases = delta_biases.sum(axis=1, keepdims=True)
        self.weights = self.weights - delta_weights / input_rows
        self.biases = self.biases - delta_biases / input_rows

    # ------------------------------------------------------------------
    # Persistence

    def state_dict(self) -> Mapping[str, Array]:
        return {"weights": self.weights.copy(), "biases": self.biases.copy()}

    def load_state_dict(self, state: Mapping[str, Array]) -> None:
        weights = np.asarray(state["weights"], dtype=np.float64)
        biases = np.asarray(state["biases"], dtype=np.float64).reshape(-1, 1)
        if weights.shape != self.weights.shape or biases.shape != self.biases.shape:
            raise ValueError(
                f"State shapes {weights.shape}/{biases.shape} do not match layer "
                f"{self.weights.shape}/{self.biases.shape}"
            )
        self.weights = weights.copy()
        self.biases = biases.copy()


__all__ = ["Layer"]
