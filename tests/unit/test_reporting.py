import csv
import json
import re

import numpy as np

from onnb.core.types import MetricResult, RunResults, TrainingResult
from onnb.reporting import (
    CsvSink,
    JsonlSink,
    PlotAdapter,
    default_results_path,
    format_summary,
    summarize,
    write_results,
)


def _results():
    runs = [
        TrainingResult(
            run_id=i,
            layers=[{"weights": [[0.5, -0.5]], "biases": [[0.1]]}],
            metric=MetricResult(name="Accuracy", value=1.0 if i else 0.5, passed=bool(i)),
            elapsed_time=0.1 * (i + 1),
            total_epochs=10 * (i + 1),
            predicted_output=np.array([[0.0, 1.0]]),
        )
        for i in range(2)
    ]
    return RunResults(
        all_results=runs,
        validation_inputs=np.array([[0.0, 1.0], [1.0, 0.0]]),
        validation_outputs=np.array([[0.0, 1.0]]),
        batch_size=2,
    )


def test_jsonl_sink_writes_one_record_per_epoch(tmp_path):
    sink = JsonlSink(tmp_path / "m" / "run0.jsonl", run_id=3, seed=7)
    sink.on_epoch(1, {"loss": 0.5, "Accuracy": 0.25})
    sink(2, {"loss": 0.25, "Accuracy": 0.5})
    lines = [json.loads(line) for line in sink.path.read_text().splitlines()]
    assert [line["epoch"] for line in lines] == [1, 2]
    assert lines[0] == {"epoch": 1, "run": 3, "seed": 7, "loss": 0.5, "Accuracy": 0.25}


def test_csv_sink_writes_header_once(tmp_path):
    sink = CsvSink(tmp_path / "metrics.csv", run_id=1)
    sink.on_epoch(1, {"loss": 1.0})
    sink.on_epoch(2, {"loss": 0.5})
    with sink.path.open() as handle:
        rows = list(csv.DictReader(handle))
    assert [row["epoch"] for row in rows] == ["1", "2"]
    assert rows[1]["loss"] == "0.5"
    assert rows[0]["run"] == "1"


def test_write_results_serializes_every_run(tmp_path):
    path = write_results(tmp_path / "out" / "results.json", _results(), config={"cost": "mse"})
    payload = json.loads(open(path).read())
    assert len(payload["all_results"]) == 2
    first = payload["all_results"][0]
    assert first["network"]["layers"][0]["weights"] == [[0.5, -0.5]]
    assert first["metric"] == {"name": "Accuracy", "value": 0.5, "passed": False}
    assert first["total_epochs"] == 10
    assert first["predicted_output"] == [[0.0, 1.0]]
    assert payload["validation_outputs"] == [[0.0, 1.0]]
    assert payload["batch_size"] == 2
    assert payload["config"] == {"cost": "mse"}
    assert "generated_at" in payload and "git_sha" in payload


def test_default_results_path_is_timestamped():
    path = default_results_path()
    assert path.parent.name == "output"
    assert re.fullmatch(r"\d{12}\.json", path.name)


def test_summarize_counts_passes():
    summary = summarize(_results())
    assert summary["runs"] == 2
    assert summary["passed"] == 1
    assert summary["pass_rate"] == 0.5
    assert summary["epochs"] == {"min": 10, "max": 20, "mean": 15.0}
    text = format_summary(summary)
    assert "Passed" in text and "Accuracy" in text


def test_summarize_empty_results():
    empty = RunResults(all_results=[], validation_inputs=np.zeros((1, 1)), validation_outputs=np.zeros((1, 1)))
    assert summarize(empty)["runs"] == 0
    assert format_summary(summarize(empty)) == "No runs completed"


def test_plot_adapter_disabled_is_a_no_op(tmp_path):
    adapter = PlotAdapter(tmp_path / "plots", enable_plots=False)
    adapter.on_epoch(1, {"loss": 1.0})
    assert adapter.close() is None
    assert not (tmp_path / "plots").exists()


def test_plot_adapter_writes_png(tmp_path):
    adapter = PlotAdapter(tmp_path, enable_plots=True, name="run0")
    for epoch in range(1, 4):
        adapter.on_epoch(epoch, {"Accuracy": epoch / 4})
    path = adapter.close()
    assert path is not None and path.name == "run0.png"
    assert path.exists()
