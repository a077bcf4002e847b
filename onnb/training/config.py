"""Network configuration files: parsing, validation and component factories."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import numpy as np
import yaml

from ..core.activations import get_activation
from ..core.optimizers import Optimizer, get_optimizer
from ..core.perceptron import Perceptron
from ..errors import ConfigurationError
from .encoders import Encoder, get_encoder
from .losses import Cost, get_cost
from .metrics import Metric, get_metric

_REQUIRED = ("cost", "layers", "optimizer", "encoder", "metric")


@dataclass(frozen=True)
class LayerConfig:
    neurons: int
    activation: str
    dropout_rate: Optional[float] = None


@dataclass(frozen=True)
class OptimizerConfig:
    name: str
    learning_rate: float
    beta1: Optional[float] = None
    beta2: Optional[float] = None


@dataclass(frozen=True)
class ComponentConfig:
    """A named component plus its constructor arguments."""

    name: str
    args: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class NetworkConfig:
    """Validated network topology and training hyperparameters.

    Every ``build_*`` method returns a fresh instance so concurrent runs
    never share optimizer state.
    """

    cost: str
    layers: List[LayerConfig]
    optimizer: OptimizerConfig
    encoder: ComponentConfig
    metric: ComponentConfig
    epochs: Optional[int] = None

    def build_network(
        self, input_width: int, rng: Optional[np.random.Generator] = None
    ) -> Perceptron:
        network = Perceptron(rng=rng)
        for index, layer in enumerate(self.layers):
            network.add_layer(
                layer.neurons,
                input_shape=input_width if index == 0 else None,
                activation=layer.activation,
                dropout=layer.dropout_rate,
            )
        return network

    def build_optimizer(self) -> Optimizer:
        return get_optimizer(
            self.optimizer.name,
            self.optimizer.learning_rate,
            gamma=self.optimizer.beta1,
            beta=self.optimizer.beta2,
        )

    def build_cost(self) -> Cost:
        return get_cost(self.cost)

    def build_metric(self) -> Metric:
        return get_metric(self.metric.name, self.metric.args)

    def build_encoder(self) -> Encoder:
        return get_encoder(self.encoder.name, self.encoder.args)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def parse_network_config(data: Mapping[str, Any]) -> NetworkConfig:
    """Validate a decoded configuration mapping and resolve every name.

    Raises :class:`ConfigurationError` naming the first offending field.
    """

    if not isinstance(data, Mapping):
        raise ConfigurationError("Network configuration must be a mapping")
    missing = [key for key in _REQUIRED if key not in data]
    if missing:
        raise ConfigurationError(f"Network configuration is missing: {', '.join(missing)}")

    raw_layers = data["layers"]
    if not isinstance(raw_layers, list) or not raw_layers:
        raise ConfigurationError("layers must be a non-empty list")
    layers = [_parse_layer(index, item) for index, item in enumerate(raw_layers)]

    config = NetworkConfig(
        cost=str(data["cost"]),
        layers=layers,
        optimizer=_parse_optimizer(data["optimizer"]),
        encoder=_parse_component("encoder", data["encoder"]),
        metric=_parse_component("metric", data["metric"]),
        epochs=_parse_epochs(data.get("epochs")),
    )
    # Resolve every name once so unknown names fail before training starts.
    config.build_cost()
    config.build_optimizer()
    config.build_metric()
    config.build_encoder()
    return config


def load_network_config(path: str | Path) -> NetworkConfig:
    """Read a JSON or YAML network configuration file."""

    path = Path(path)
    try:
        text = path.read_text()
    except FileNotFoundError as exc:
        raise ConfigurationError(f"File {path} missing") from exc
    suffix = path.suffix.lower()
    if suffix in {".yaml", ".yml"}:
        try:
            data = yaml.safe_load(text) or {}
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"File {path} is not valid YAML: {exc}") from exc
    elif suffix == ".json":
        try:
            data = json.loads(text or "{}")
        except json.JSONDecodeError as exc:
            raise ConfigurationError(f"File {path} is not valid JSON: {exc}") from exc
    else:
        raise ConfigurationError(f"Unsupported network config file type: {path.suffix}")
    return parse_network_config(data)


def _parse_layer(index: int, item: Any) -> LayerConfig:
    if not isinstance(item, Mapping):
        raise ConfigurationError(f"layers[{index}] must be a mapping")
    try:
        neurons = int(item["neurons"])
        activation = str(item["activation"])
    except KeyError as exc:
        raise ConfigurationError(f"layers[{index}] is missing {exc.args[0]!r}") from exc
    if neurons <= 0:
        raise ConfigurationError(f"layers[{index}].neurons must be positive, got {neurons}")
    get_activation(activation)
    dropout = item.get("dropout_rate", item.get("dropout"))
    if dropout is not None:
        dropout = float(dropout)
        if not 0.0 <= dropout <= 1.0:
            raise ConfigurationError(
                f"layers[{index}].dropout_rate must be in [0, 1], got {dropout}"
            )
    return LayerConfig(neurons=neurons, activation=activation, dropout_rate=dropout)


def _parse_optimizer(item: Any) -> OptimizerConfig:
    if not isinstance(item, Mapping):
        raise ConfigurationError("optimizer must be a mapping")
    if "name" not in item or "learning_rate" not in item:
        raise ConfigurationError("optimizer needs 'name' and 'learning_rate'")
    beta1 = item.get("beta1")
    beta2 = item.get("beta2")
    return OptimizerConfig(
        name=str(item["name"]),
        learning_rate=float(item["learning_rate"]),
        beta1=None if beta1 is None else float(beta1),
        beta2=None if beta2 is None else float(beta2),
    )


def _parse_component(label: str, item: Any) -> ComponentConfig:
    if isinstance(item, str):
        return ComponentConfig(name=item)
    if not isinstance(item, Mapping) or "name" not in item:
        raise ConfigurationError(f"{label} must be a name or a mapping with 'name'")
    args = item.get("args") or {}
    if not isinstance(args, Mapping):
        raise ConfigurationError(f"{label}.args must be a mapping")
    return ComponentConfig(name=str(item["name"]), args=dict(args))


def _parse_epochs(value: Any) -> Optional[int]:
    if value is None:
        return None
    epochs = int(value)
    if epochs <= 0:
        raise ConfigurationError(f"epochs must be positive, got {epochs}")
    return epochs


__all__ = [
    "ComponentConfig",
    "LayerConfig",
    "NetworkConfig",
    "OptimizerConfig",
    "load_network_config",
    "parse_network_config",
]
