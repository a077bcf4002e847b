"""Error types raised by ONNB."""

from __future__ import annotations


class ConfigurationError(ValueError):
    """Invalid network, dataset or run configuration.

    Raised before any training starts: unknown component names, mismatched
    example counts, empty layer lists and similar problems.
    """


class StepOrderError(RuntimeError):
    """A training step was driven out of order (e.g. backprop before forward)."""


__all__ = ["ConfigurationError", "StepOrderError"]
