import json

import numpy as np
import pytest

from onnb.data import get_dataset
from onnb.errors import ConfigurationError
from onnb.training import pipelines
from onnb.training.config import parse_network_config


def _network(epochs=200):
    return parse_network_config(
        {
            "cost": "mse",
            "layers": [
                {"neurons": 4, "activation": "sigmoid"},
                {"neurons": 1, "activation": "sigmoid"},
            ],
            "optimizer": {"name": "sgd", "learning_rate": 0.5},
            "encoder": "binary",
            "metric": {"name": "accuracy", "args": {"min": 1.0}},
            "epochs": epochs,
        }
    )


def test_presets_include_builtin_and_file_presets():
    names = set(pipelines.presets())
    assert {"xor", "xor-adam", "xor-softmax"} <= names
    preset = pipelines.load_preset("xor")
    preset["network"]["epochs"] = 1
    assert pipelines.load_preset("xor")["network"]["epochs"] == 5000


def test_unknown_preset():
    with pytest.raises(ConfigurationError):
        pipelines.load_preset("does-not-exist")


def test_train_single_reports_run(capsys):
    result = pipelines.train_single(2, _network(), get_dataset("xor"), epochs=50, seed=0)
    assert result.run_id == 2
    assert 1 <= result.total_epochs <= 50
    assert result.metric.name == "Accuracy"
    assert result.predicted_output.shape == (1, 4)
    assert len(result.layers) == 2
    out = capsys.readouterr().out
    assert "starting training cycle for thread 2" in out
    assert "Training finished for thread 2!" in out


def test_seeded_runs_are_reproducible():
    dataset = get_dataset("xor")
    first = pipelines.train_single(0, _network(), dataset, epochs=30, seed=5, verbose=False)
    second = pipelines.train_single(0, _network(), dataset, epochs=30, seed=5, verbose=False)
    assert np.allclose(first.layers[0]["weights"], second.layers[0]["weights"])


def test_run_pipeline_fans_out_runs(tmp_path, capsys):
    results = pipelines.run_pipeline(
        _network(),
        get_dataset("xor"),
        runs=3,
        seed=10,
        batch_size=2,
        metrics_dir=tmp_path / "metrics",
    )
    assert [r.run_id for r in results.all_results] == [0, 1, 2]
    assert results.batch_size == 2
    assert results.validation_inputs.shape == (2, 4)
    for run_id in range(3):
        lines = (tmp_path / "metrics" / f"run{run_id}.jsonl").read_text().splitlines()
        record = json.loads(lines[0])
        assert record["run"] == run_id
        assert record["seed"] == 10 + run_id
    out = capsys.readouterr().out
    assert "=== ONNB run ===" in out
    assert "Parameters    : 17" in out


def test_run_pipeline_accepts_raw_mapping():
    preset = pipelines.load_preset("xor")
    results = pipelines.run_pipeline(
        preset["network"], get_dataset("xor"), epochs=5, seed=0, verbose=False
    )
    assert len(results.all_results) == 1
    assert results.all_results[0].total_epochs <= 5


@pytest.mark.parametrize("kwargs", [{"runs": 0}, {"epochs": -1}])
def test_run_pipeline_validates_arguments(kwargs):
    with pytest.raises(ConfigurationError):
        pipelines.run_pipeline(_network(), get_dataset("xor"), verbose=False, **kwargs)


def test_run_pipeline_plots_need_a_metrics_dir():
    with pytest.raises(ConfigurationError, match="metrics_dir"):
        pipelines.run_pipeline(
            _network(), get_dataset("xor"), enable_plots=True, verbose=False
        )


def test_plot_is_written_when_training_fails(tmp_path):
    def _failing(epoch, metrics):
        raise RuntimeError("callback failed")

    with pytest.raises(RuntimeError, match="callback failed"):
        pipelines.run_pipeline(
            _network(epochs=5),
            get_dataset("xor"),
            metrics_dir=tmp_path,
            enable_plots=True,
            callbacks_factory=lambda run_id, seed: [_failing],
            verbose=False,
        )
    assert (tmp_path / "run0.png").exists()


def test_run_pipeline_needs_epochs():
    config = parse_network_config(
        {
            "cost": "mse",
            "layers": [{"neurons": 1, "activation": "sigmoid"}],
            "optimizer": {"name": "sgd", "learning_rate": 0.5},
            "encoder": "binary",
            "metric": "accuracy",
        }
    )
    with pytest.raises(ConfigurationError, match="epochs"):
        pipelines.run_pipeline(config, get_dataset("xor"), verbose=False)


def test_resolve_dataset_from_path(tmp_path):
    path = tmp_path / "d.json"
    path.write_text(
        json.dumps(
            {
                "train_inputs": [[0], [1]],
                "train_outputs": [[0], [1]],
                "test_inputs": [[1]],
                "test_outputs": [[1]],
            }
        )
    )
    data = pipelines.resolve_dataset({"path": str(path)})
    assert data.input_width == 1
    with pytest.raises(ConfigurationError):
        pipelines.resolve_dataset({"options": {}})
