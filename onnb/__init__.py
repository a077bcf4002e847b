"""ONNB public API."""

from .core import activations  # noqa: F401
from .core import types  # noqa: F401
from .core.layer import Layer
from .core.optimizers import SGD, Adam, get_optimizer
from .core.perceptron import Perceptron
from .errors import ConfigurationError, StepOrderError
from .training.config import NetworkConfig, load_network_config, parse_network_config
from .training.pipelines import load_preset, presets, run_pipeline, train_single

__all__ = [
    "Adam",
    "ConfigurationError",
    "Layer",
    "NetworkConfig",
    "Perceptron",
    "SGD",
    "StepOrderError",
    "activations",
    "get_optimizer",
    "load_network_config",
    "load_preset",
    "parse_network_config",
    "presets",
    "run_pipeline",
    "train_single",
    "types",
]
