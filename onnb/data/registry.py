"""Dataset registry and the :class:`Dataset` container."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, MutableMapping

import numpy as np

from ..core.types import Array, Split
from ..errors import ConfigurationError


@dataclass(frozen=True)
class Dataset:
    """Training and validation matrices in column-major layout.

    Attributes
    ----------
    train_inputs, test_inputs:
        ``(features, examples)`` input matrices.
    train_outputs, test_outputs:
        ``(label_rows, examples)`` raw labels, before any encoding.
    provenance:
        Free-form metadata describing where the data came from.
    """

    name: str
    train_inputs: Array
    train_outputs: Array
    test_inputs: Array
    test_outputs: Array
    provenance: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        _check_pair("training", self.train_inputs, self.train_outputs)
        _check_pair("validation", self.test_inputs, self.test_outputs)
        if self.train_inputs.shape[0] != self.test_inputs.shape[0]:
            raise ConfigurationError(
                f"Training inputs have {self.train_inputs.shape[0]} features but "
                f"validation inputs have {self.test_inputs.shape[0]}"
            )

    @property
    def input_width(self) -> int:
        return int(self.train_inputs.shape[0])

    @property
    def training_set(self) -> Split:
        return self.train_inputs, self.train_outputs

    @property
    def validation_set(self) -> Split:
        return self.test_inputs, self.test_outputs

    def copy(self) -> "Dataset":
        """Deep copy, so concurrent runs never share arrays."""

        return Dataset(
            name=self.name,
            train_inputs=self.train_inputs.copy(),
            train_outputs=self.train_outputs.copy(),
            test_inputs=self.test_inputs.copy(),
            test_outputs=self.test_outputs.copy(),
            provenance=dict(self.provenance),
        )

    @classmethod
    def from_rows(
        cls,
        name: str,
        train_inputs: Any,
        train_outputs: Any,
        test_inputs: Any,
        test_outputs: Any,
        provenance: Dict[str, Any] | None = None,
    ) -> "Dataset":
        """Build from row-per-example matrices (the on-disk layout)."""

        matrices = {
            "train_inputs": train_inputs,
            "train_outputs": train_outputs,
            "test_inputs": test_inputs,
            "test_outputs": test_outputs,
        }
        columns = {key: _as_rows(key, value).T.copy() for key, value in matrices.items()}
        return cls(name=name, provenance=dict(provenance or {}), **columns)


def _as_rows(key: str, value: Any) -> Array:
    try:
        array = np.asarray(value, dtype=np.float64)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"{key} must be a numeric matrix") from exc
    if array.ndim == 1:
        array = array.reshape(-1, 1)
    if array.ndim != 2:
        raise ConfigurationError(f"{key} must be a 2-D matrix, got {array.ndim} dimensions")
    return array


def _check_pair(split: str, inputs: Array, outputs: Array) -> None:
    if inputs.shape[1] != outputs.shape[1]:
        raise ConfigurationError(
            f"Number of rows for {split} inputs ({inputs.shape[1]}) != number of rows "
            f"for {split} outputs ({outputs.shape[1]})"
        )
    if inputs.shape[1] == 0:
        raise ConfigurationError(f"The {split} split is empty")


DatasetFactory = Callable[..., Dataset]


_REGISTRY: MutableMapping[str, DatasetFactory] = {}


def register_dataset(name: str) -> Callable[[DatasetFactory], DatasetFactory]:
    """Register a dataset factory under ``name``::

        @register_dataset("xor")
        def xor_dataset(**kwargs):
            ...
    """

    def _decorator(func: DatasetFactory) -> DatasetFactory:
        _REGISTRY[name] = func
        return func

    return _decorator


def get_dataset(name: str, **options: Any) -> Dataset:
    """Return the :class:`Dataset` produced by the factory registered as ``name``."""

    if name not in _REGISTRY:
        available = ", ".join(available_datasets())
        raise ConfigurationError(f"Unknown dataset {name!r}. Available datasets: {available}")
    return _REGISTRY[name](**options)


def available_datasets() -> Iterable[str]:
    """Return the sorted list of available dataset identifiers."""

    return sorted(_REGISTRY)


__all__ = [
    "Dataset",
    "available_datasets",
    "get_dataset",
    "register_dataset",
]
