"""Built-in dataset sources: JSON and CSV files plus the XOR table."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Mapping

import numpy as np
import pandas as pd
from sklearn.preprocessing import LabelEncoder, StandardScaler

from ..errors import ConfigurationError
from .registry import Dataset, get_dataset, register_dataset
from .utils import holdout_split

_JSON_KEYS = ("train_inputs", "train_outputs", "test_inputs", "test_outputs")


@register_dataset("xor")
def xor_dataset() -> Dataset:
    """The 4-row XOR truth table, used for both training and validation."""

    inputs = [[0.0, 0.0], [0.0, 1.0], [1.0, 0.0], [1.0, 1.0]]
    outputs = [[0.0], [1.0], [1.0], [0.0]]
    return Dataset.from_rows(
        "xor", inputs, outputs, inputs, outputs, provenance={"source": "builtin"}
    )


@register_dataset("json")
def load_json_dataset(*, path: str | Path) -> Dataset:
    """Load ``train_inputs``/``train_outputs``/``test_inputs``/``test_outputs``.

    Each matrix is stored one example per row.
    """

    path = Path(path)
    try:
        payload = json.loads(path.read_text())
    except FileNotFoundError as exc:
        raise ConfigurationError(f"File {path} missing") from exc
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"File {path} is not valid JSON: {exc}") from exc
    if not isinstance(payload, Mapping):
        raise ConfigurationError(f"File {path} must contain a JSON object")
    missing = [key for key in _JSON_KEYS if key not in payload]
    if missing:
        raise ConfigurationError(f"File {path} is missing: {', '.join(missing)}")
    return Dataset.from_rows(
        path.stem,
        *(payload[key] for key in _JSON_KEYS),
        provenance={"path": str(path), "format": "json"},
    )


@register_dataset("csv")
def load_csv_dataset(
    *,
    path: str | Path,
    target_col: str = "target",
    test_split: float = 0.2,
    seed: int = 0,
    standardize_inputs: bool = False,
) -> Dataset:
    """Load a CSV file: ``target_col`` holds labels, other columns are features.

    Non-numeric labels are mapped to class indices ``0..k-1``.
    """

    path = Path(path)
    try:
        df = pd.read_csv(path)
    except FileNotFoundError as exc:
        raise ConfigurationError(f"File {path} missing") from exc
    if target_col not in df.columns:
        raise ConfigurationError(f"Target column {target_col!r} not found in {path}")
    y_raw = df.pop(target_col)
    try:
        X = df.to_numpy(dtype=np.float64)
    except ValueError as exc:
        raise ConfigurationError(f"Feature columns of {path} must be numeric") from exc

    classes: list[Any] | None = None
    if pd.api.types.is_numeric_dtype(y_raw):
        y = y_raw.to_numpy(dtype=np.float64).reshape(-1, 1)
    else:
        encoder = LabelEncoder()
        y = encoder.fit_transform(y_raw.astype(str)).astype(np.float64).reshape(-1, 1)
        classes = encoder.classes_.tolist()

    try:
        holdout = holdout_split(X.shape[0], test_split=test_split, seed=seed)
    except ValueError as exc:
        raise ConfigurationError(str(exc)) from exc
    X_train, X_test = X[holdout.train], X[holdout.test]

    provenance: dict[str, Any] = {
        "path": str(path),
        "format": "csv",
        "target_col": target_col,
        "test_split": test_split,
        "seed": seed,
        "splits": holdout.sizes,
    }
    if classes is not None:
        provenance["classes"] = classes
    if standardize_inputs:
        # Statistics come from the training rows only.
        scaler = StandardScaler().fit(X_train)
        X_train, X_test = scaler.transform(X_train), scaler.transform(X_test)
        provenance["normalization"] = {
            "mean": scaler.mean_.tolist(),
            "std": scaler.scale_.tolist(),
        }

    return Dataset.from_rows(
        path.stem,
        X_train,
        y[holdout.train],
        X_test,
        y[holdout.test],
        provenance=provenance,
    )


def load_dataset(path: str | Path, **options: Any) -> Dataset:
    """Load a dataset file, choosing the reader from its suffix."""

    path = Path(path)
    suffix = path.suffix.lower()
    if suffix == ".json":
        return get_dataset("json", path=path, **options)
    if suffix == ".csv":
        return get_dataset("csv", path=path, **options)
    raise ConfigurationError(f"Unsupported dataset file type: {path.suffix or path.name}")


__all__ = ["load_csv_dataset", "load_dataset", "load_json_dataset", "xor_dataset"]
