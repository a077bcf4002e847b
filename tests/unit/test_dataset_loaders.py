import json

import numpy as np
import pytest

from onnb.data import Dataset, available_datasets, get_dataset, load_dataset
from onnb.data.utils import holdout_split
from onnb.errors import ConfigurationError


def _payload():
    return {
        "train_inputs": [[0, 0], [0, 1], [1, 0]],
        "train_outputs": [[0], [1], [1]],
        "test_inputs": [[1, 1]],
        "test_outputs": [[0]],
    }


def test_builtin_datasets_are_registered():
    assert {"csv", "json", "xor"} <= set(available_datasets())


def test_xor_dataset_is_column_major():
    data = get_dataset("xor")
    assert data.train_inputs.shape == (2, 4)
    assert data.train_outputs.shape == (1, 4)
    assert np.array_equal(data.train_outputs, [[0.0, 1.0, 1.0, 0.0]])
    assert data.input_width == 2


def test_json_loader_transposes_rows(tmp_path):
    path = tmp_path / "data.json"
    path.write_text(json.dumps(_payload()))
    data = load_dataset(path)
    assert data.name == "data"
    assert data.train_inputs.shape == (2, 3)
    assert data.test_inputs.shape == (2, 1)
    assert np.array_equal(data.train_inputs[:, 1], [0.0, 1.0])
    assert data.provenance["format"] == "json"


def test_json_loader_reports_missing_keys(tmp_path):
    payload = _payload()
    del payload["test_outputs"]
    path = tmp_path / "data.json"
    path.write_text(json.dumps(payload))
    with pytest.raises(ConfigurationError, match="test_outputs"):
        load_dataset(path)


def test_example_count_mismatch_is_rejected(tmp_path):
    payload = _payload()
    payload["train_outputs"] = [[0], [1]]
    path = tmp_path / "data.json"
    path.write_text(json.dumps(payload))
    with pytest.raises(ConfigurationError, match="training"):
        load_dataset(path)


def test_csv_loader_encodes_string_labels(tmp_path):
    rows = ["a,b,target"] + [f"{i},{i * 2},{'yes' if i % 2 else 'no'}" for i in range(10)]
    path = tmp_path / "toy.csv"
    path.write_text("\n".join(rows) + "\n")
    data = load_dataset(path, test_split=0.2, seed=1)
    assert data.train_inputs.shape == (2, 8)
    assert data.test_inputs.shape == (2, 2)
    assert data.provenance["classes"] == ["no", "yes"]
    assert set(np.unique(data.train_outputs)) <= {0.0, 1.0}


def test_csv_loader_missing_target(tmp_path):
    path = tmp_path / "toy.csv"
    path.write_text("a,b\n1,2\n3,4\n")
    with pytest.raises(ConfigurationError, match="target"):
        load_dataset(path)


def test_unsupported_suffix():
    with pytest.raises(ConfigurationError):
        load_dataset("data.parquet")


def test_unknown_dataset_name():
    with pytest.raises(ConfigurationError):
        get_dataset("mnist")


def test_dataset_copy_is_independent():
    data = get_dataset("xor")
    clone = data.copy()
    clone.train_inputs[0, 0] = 42.0
    assert data.train_inputs[0, 0] == 0.0
    assert isinstance(clone, Dataset)


def test_holdout_split_is_repeatable():
    first = holdout_split(10, test_split=0.3, seed=5)
    second = holdout_split(10, test_split=0.3, seed=5)
    assert np.array_equal(first.train, second.train)
    assert first.sizes == {"train": 7, "test": 3}
    assert not set(first.train) & set(first.test)


def test_holdout_split_keeps_a_validation_row():
    assert holdout_split(3, test_split=0.01).sizes == {"train": 2, "test": 1}
    with pytest.raises(ValueError):
        holdout_split(1, test_split=0.5)


def test_csv_standardization_uses_training_statistics(tmp_path):
    rows = ["x,target"] + [f"{value},{value % 2}" for value in range(10)]
    path = tmp_path / "scaled.csv"
    path.write_text("\n".join(rows) + "\n")
    data = load_dataset(path, test_split=0.2, seed=0, standardize_inputs=True)
    assert np.mean(data.train_inputs) == pytest.approx(0.0, abs=1e-12)
    assert np.std(data.train_inputs) == pytest.approx(1.0)
    assert len(data.provenance["normalization"]["mean"]) == 1
