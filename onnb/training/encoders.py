"""Output encoders mapping labels to network outputs and back.

All encoders work on column-major batches: raw labels arrive as a
``(1, examples)`` row (or any ``(k, examples)`` matrix for the pass-through
encoders) and decoded predictions are returned in the same layout.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, Dict, Iterable, Mapping, Type, Union

import numpy as np

from ..core.types import Array
from ..errors import ConfigurationError


@dataclass(frozen=True)
class OneHot:
    """One row per class in ``[0, max]``."""

    max: int = 0
    name: ClassVar[str] = "one_hot"

    def encode(self, y: Array) -> Array:
        labels = np.asarray(y, dtype=np.float64).reshape(-1)
        indices = labels.astype(np.intp)
        if not np.array_equal(indices, labels):
            raise ValueError("One-hot labels must be integer valued")
        if indices.size and (indices.min() < 0 or indices.max() > self.max):
            raise ValueError(
                f"One-hot labels must lie in [0, {self.max}], got "
                f"[{indices.min()}, {indices.max()}]"
            )
        out = np.zeros((self.max + 1, indices.size), dtype=np.float64)
        out[indices, np.arange(indices.size)] = 1.0
        return out

    def decode(self, y: Array) -> Array:
        return np.argmax(y, axis=0).astype(np.float64).reshape(1, -1)


@dataclass(frozen=True)
class Binary:
    """Pass-through encode; decode thresholds each output to 0.0 or 1.0."""

    threshold: float = 0.5
    name: ClassVar[str] = "binary"

    def encode(self, y: Array) -> Array:
        return np.array(y, dtype=np.float64, ndmin=2)

    def decode(self, y: Array) -> Array:
        return (np.asarray(y) >= self.threshold).astype(np.float64)


@dataclass(frozen=True)
class Identity:
    name: ClassVar[str] = "identity"

    def encode(self, y: Array) -> Array:
        return np.array(y, dtype=np.float64, ndmin=2)

    def decode(self, y: Array) -> Array:
        return np.array(y, dtype=np.float64, ndmin=2)


Encoder = Union[OneHot, Binary, Identity]

_ALIASES: Dict[str, Type[Encoder]] = {
    "one hot": OneHot,
    "one_hot": OneHot,
    "onehot": OneHot,
    "binary": Binary,
    "threshold": Binary,
    "identity": Identity,
    "none": Identity,
}


def get_encoder(name: str, args: Mapping[str, Any] | None = None) -> Encoder:
    """Return the encoder registered under ``name`` built from ``args``."""

    key = str(name).strip().lower()
    if key not in _ALIASES:
        available = ", ".join(encoder_names())
        raise ConfigurationError(f"Unknown encoder {name!r}. Available encoders: {available}")
    cls = _ALIASES[key]
    args = dict(args or {})
    if cls is OneHot:
        maximum = args.pop("max", 0)
        if int(maximum) != maximum or int(maximum) < 0:
            raise ConfigurationError(f"One-hot max must be a non-negative integer, got {maximum}")
        encoder: Encoder = OneHot(max=int(maximum))
    elif cls is Binary:
        encoder = Binary(threshold=float(args.pop("threshold", 0.5)))
    else:
        encoder = Identity()
    if args:
        unknown = ", ".join(sorted(args))
        raise ConfigurationError(f"Unknown arguments for encoder {name!r}: {unknown}")
    return encoder


def encoder_names() -> Iterable[str]:
    return sorted(_ALIASES)


__all__ = ["Binary", "Encoder", "Identity", "OneHot", "encoder_names", "get_encoder"]
