"""Core numerical primitives for ONNB."""

from . import activations, layer, optimizers, perceptron, types
from .layer import Layer
from .optimizers import SGD, Adam, get_optimizer
from .perceptron import Perceptron

__all__ = [
    "Adam",
    "Layer",
    "Perceptron",
    "SGD",
    "activations",
    "get_optimizer",
    "layer",
    "optimizers",
    "perceptron",
    "types",
]
