"""Split helpers shared by the file loaders."""

from __future__ import annotations

from typing import NamedTuple

import numpy as np


class Holdout(NamedTuple):
    """Sorted row indices of the training and validation partitions."""

    train: np.ndarray
    test: np.ndarray

    @property
    def sizes(self) -> dict[str, int]:
        return {"train": int(self.train.size), "test": int(self.test.size)}


def holdout_split(n_rows: int, *, test_split: float = 0.2, seed: int = 0) -> Holdout:
    """Hold out ``test_split`` of ``n_rows`` (at least one row) for validation."""

    if not 0 < test_split < 1:
        raise ValueError(f"test_split must be in (0, 1), got {test_split}")
    n_test = min(max(int(round(n_rows * test_split)), 1), n_rows)
    if n_rows - n_test <= 0:
        raise ValueError(f"{n_rows} rows are not enough to hold out a validation split")
    order = np.random.default_rng(seed).permutation(n_rows)
    return Holdout(train=np.sort(order[n_test:]), test=np.sort(order[:n_test]))


__all__ = ["Holdout", "holdout_split"]
