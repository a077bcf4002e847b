"""Multi-layer perceptron and its training loop."""

from __future__ import annotations

import warnings
from typing import Iterable, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np

from ..errors import ConfigurationError, StepOrderError
from .activations import Activation, Sigmoid, Softmax, get_activation
from .layer import Layer
from .optimizers import Optimizer
from .types import (
    Array,
    CostFunction,
    LayerState,
    MetricFunction,
    ModelDescription,
    OutputEncoder,
    Split,
)

InputShape = Union[int, Tuple[int, ...]]


class Perceptron:
    """An ordered stack of :class:`Layer` objects.

    Layer ``i`` feeds layer ``i + 1``; the first layer declares the input
    width and every later layer infers it from its predecessor.
    """

    def __init__(self, rng: Optional[np.random.Generator] = None) -> None:
        self.layers: List[Layer] = []
        self._rng = rng or np.random.default_rng()

    def __len__(self) -> int:
        return len(self.layers)

    def __repr__(self) -> str:
        return f"Perceptron(layers={len(self.layers)})"

    # ------------------------------------------------------------------
    # Construction

    def add_layer(
        self,
        neurons: int,
        input_shape: Optional[InputShape] = None,
        activation: Union[Activation, str] = "sigmoid",
        dropout: Optional[float] = None,
    ) -> Layer:
        """Append a layer.

        ``input_shape`` is required for the first layer only; it may be the
        input width or a ``(features, examples)`` tuple.
        """

        if isinstance(activation, str):
            activation = get_activation(activation)
        if input_shape is not None:
            width = int(input_shape[0] if isinstance(input_shape, tuple) else input_shape)
            if self.layers and width != self.layers[-1].neurons:
                raise ConfigurationError(
                    f"Layer {len(self.layers)} declares {width} inputs but the previous "
                    f"layer has {self.layers[-1].neurons} neurons"
                )
        elif self.layers:
            width = self.layers[-1].neurons
        else:
            raise ConfigurationError("The first layer needs an input width")
        layer = Layer(neurons, width, activation, dropout, rng=self._rng)
        self.layers.append(layer)
        return layer

    def describe(self) -> ModelDescription:
        self._require_layers()
        return ModelDescription(
            layer_dims=[self.layers[0].input_width] + [layer.neurons for layer in self.layers],
            activations=[layer.activation.name for layer in self.layers],
            dropout=[layer.dropout for layer in self.layers],
        )

    # ------------------------------------------------------------------
    # Forward / backward

    def feed_forward(self, inputs: Array) -> tuple[Array, List[LayerState]]:
        """Training forward pass returning the output and per-layer states."""

        self._require_layers()
        output = np.asarray(inputs, dtype=np.float64)
        states: List[LayerState] = []
        for layer in self.layers:
            output, state = layer.feed_forward(output)
            states.append(state)
        return output, states

    def back_prop(
        self, states: Sequence[LayerState], delta: Array, *, output_delta: bool = False
    ) -> None:
        """Fill ``state.delta`` for every layer, output layer first.

        ``delta`` is the cost gradient with respect to the network output, or
        with ``output_delta`` the gradient with respect to the output layer's
        pre-activation.
        """

        if len(states) != len(self.layers):
            raise StepOrderError(
                f"Got {len(states)} layer states for {len(self.layers)} layers"
            )
        last = len(self.layers) - 1
        self.layers[last].back_prop_with_delta(
            states[last], delta, through_activation=not output_delta
        )
        for index in range(last - 1, -1, -1):
            self.layers[index].back_prop(
                states[index], self.layers[index + 1], states[index + 1]
            )

    def forward(self, inputs: Array) -> Array:
        """Raw network output without dropout or recorded state."""

        self._require_layers()
        output = np.asarray(inputs, dtype=np.float64)
        for layer in self.layers:
            output = layer.predict(output)
        return output

    def predict(self, inputs: Array, encoder: Optional[OutputEncoder] = None) -> Array:
        """Inference without dropout, decoded through ``encoder`` when given."""

        output = self.forward(inputs)
        return encoder.decode(output) if encoder is not None else output

    # ------------------------------------------------------------------
    # Training

    def fit(
        self,
        training_set: Split,
        validation_set: Split,
        optimizer: Optimizer,
        metric: MetricFunction,
        cost: CostFunction,
        encoder: OutputEncoder,
        epochs: int,
        shuffle: bool = False,
        batch_size: Optional[int] = None,
        *,
        reshuffle: bool = True,
        callbacks: Sequence[object] | None = None,
        rng: Optional[np.random.Generator] = None,
    ) -> int:
        """Train until ``metric`` passes on the validation set or ``epochs`` run out.

        Returns the epoch on which the validation check passed, or ``epochs``
        when it never did. With ``shuffle`` the training columns are permuted
        every epoch (``reshuffle=True``) or once up front (``reshuffle=False``).
        With ``batch_size`` each epoch trains on a window of that many
        consecutive examples; the window advances and wraps every epoch.
        ``rng`` replaces the generator used for shuffling and dropout.
        """

        inputs, expected, validation_inputs, validation_outputs = self._prepare(
            training_set, validation_set, encoder, epochs, batch_size
        )
        if rng is not None:
            self._rng = rng
            for layer in self.layers:
                layer._rng = rng
        n_examples = inputs.shape[1]
        if batch_size is not None and batch_size > n_examples:
            warnings.warn(
                f"batch_size={batch_size} exceeds the {n_examples} training examples; "
                "using the full training set",
                RuntimeWarning,
                stacklevel=2,
            )
            batch_size = None

        callbacks = list(callbacks or [])
        fused = _fuses_with_output(self.layers[-1].activation, cost)
        label = metric.label()
        window = 0

        if shuffle and not reshuffle:
            inputs, expected = self._permute(inputs, expected)

        for epoch in range(1, epochs + 1):
            if shuffle and reshuffle:
                inputs, expected = self._permute(inputs, expected)

            if batch_size is not None:
                columns = (window + np.arange(batch_size)) % n_examples
                window = (window + batch_size) % n_examples
                batch_inputs = inputs[:, columns]
                batch_expected = expected[:, columns]
            else:
                batch_inputs, batch_expected = inputs, expected

            prediction = self.predict(validation_inputs, encoder)
            if metric.check(prediction, validation_outputs):
                if callbacks:
                    score = metric.value(prediction, validation_outputs)
                    _emit_epoch(callbacks, epoch, {label: score})
                return epoch

            actual, states = self.feed_forward(batch_inputs)
            if fused:
                # d(cost)/d(pre-activation) of softmax/sigmoid under cross-entropy.
                delta = actual - batch_expected
            else:
                delta = cost.prime(actual, batch_expected)
            self.back_prop(states, delta, output_delta=fused)
            optimizer.update(self.layers, states, batch_inputs.shape[1])

            if callbacks:
                metrics = {
                    "loss": cost.value(actual, batch_expected),
                    label: metric.value(prediction, validation_outputs),
                }
                _emit_epoch(callbacks, epoch, metrics)

        return epochs

    def _prepare(
        self,
        training_set: Split,
        validation_set: Split,
        encoder: OutputEncoder,
        epochs: int,
        batch_size: Optional[int],
    ) -> tuple[Array, Array, Array, Array]:
        self._require_layers()
        if epochs <= 0:
            raise ConfigurationError(f"epochs must be positive, got {epochs}")
        if batch_size is not None and batch_size <= 0:
            raise ConfigurationError(f"batch_size must be positive, got {batch_size}")

        inputs, outputs = (np.asarray(a, dtype=np.float64) for a in training_set)
        validation_inputs, validation_outputs = (
            np.asarray(a, dtype=np.float64) for a in validation_set
        )
        _check_split("training", inputs, outputs)
        _check_split("validation", validation_inputs, validation_outputs)

        width = self.layers[0].input_width
        for name, array in (("training", inputs), ("validation", validation_inputs)):
            if array.shape[0] != width:
                raise ConfigurationError(
                    f"{name} inputs have {array.shape[0]} features but the network "
                    f"expects {width}"
                )

        expected = encoder.encode(outputs)
        if expected.shape != (self.layers[-1].neurons, inputs.shape[1]):
            raise ConfigurationError(
                f"Encoded outputs have shape {expected.shape} but the output layer "
                f"produces ({self.layers[-1].neurons}, {inputs.shape[1]})"
            )
        return inputs, expected, validation_inputs, validation_outputs

    def _permute(self, inputs: Array, expected: Array) -> tuple[Array, Array]:
        order = self._rng.permutation(inputs.shape[1])
        return inputs[:, order], expected[:, order]

    def _require_layers(self) -> None:
        if not self.layers:
            raise ConfigurationError("The network has no layers")

    # ------------------------------------------------------------------
    # Persistence

    def state_dict(self) -> Mapping[str, Array]:
        state = {}
        for idx, layer in enumerate(self.layers):
            state[f"W{idx}"] = layer.weights.copy()
            state[f"b{idx}"] = layer.biases.copy()
        return state

    def load_state_dict(self, state: Mapping[str, Array]) -> None:
        for idx, layer in enumerate(self.layers):
            for key in (f"W{idx}", f"b{idx}"):
                if key not in state:
                    raise KeyError(f"Missing parameter {key} in state dict")
            layer.load_state_dict({"weights": state[f"W{idx}"], "biases": state[f"b{idx}"]})

    def snapshot(self) -> List[dict]:
        """JSON-friendly weights and biases for every layer."""

        return [
            {"weights": layer.weights.tolist(), "biases": layer.biases.tolist()}
            for layer in self.layers
        ]

    def parameter_count(self) -> int:
        return int(sum(layer.weights.size + layer.biases.size for layer in self.layers))


def _check_split(name: str, inputs: Array, outputs: Array) -> None:
    if inputs.ndim != 2 or outputs.ndim != 2:
        raise ConfigurationError(f"{name} inputs and outputs must be 2-D matrices")
    if inputs.shape[1] != outputs.shape[1]:
        raise ConfigurationError(
            f"Number of {name} input examples ({inputs.shape[1]}) != number of "
            f"{name} output examples ({outputs.shape[1]})"
        )
    if inputs.shape[1] == 0:
        raise ConfigurationError(f"The {name} set is empty")


def _fuses_with_output(activation: Activation, cost: CostFunction) -> bool:
    """Cross-entropy after softmax or sigmoid has the gradient ``actual - expected``.

    Taking it directly keeps the gradient alive on saturated outputs, where
    the separate derivatives would multiply out to zero.
    """

    return (
        isinstance(activation, (Softmax, Sigmoid))
        and getattr(cost, "name", None) == "cross_entropy"
    )


def _emit_epoch(callbacks: Iterable[object], epoch: int, metrics: Mapping[str, float]) -> None:
    for callback in callbacks:
        if hasattr(callback, "on_epoch"):
            callback.on_epoch(epoch, metrics)  # type: ignore[attr-defined]
        elif callable(callback):
            callback(epoch, metrics)


__all__ = ["Perceptron"]
