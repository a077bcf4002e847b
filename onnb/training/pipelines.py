"""Pipeline assembly for ONNB: presets, single runs and multi-run fan-out."""

from __future__ import annotations

import json
import time
from concurrent.futures import ThreadPoolExecutor
from copy import deepcopy
from pathlib import Path
from typing import Callable, Dict, List, Mapping, Optional, Sequence

import numpy as np
import yaml

from ..core.types import MetricResult, RunResults, TrainingResult
from ..data import Dataset, get_dataset, load_dataset
from ..errors import ConfigurationError
from ..reporting.metrics import JsonlSink
from ..reporting.plots import PlotAdapter
from .config import NetworkConfig, parse_network_config

CallbackFactory = Callable[[int, Optional[int]], Sequence[object]]

_PRESETS: Dict[str, Mapping[str, object]] = {
    "xor": {
        "data": {"name": "xor", "options": {}},
        "network": {
            "cost": "mse",
            "layers": [
                {"neurons": 4, "activation": "sigmoid"},
                {"neurons": 1, "activation": "sigmoid"},
            ],
            "optimizer": {"name": "sgd", "learning_rate": 0.5},
            "encoder": {"name": "binary", "args": {"threshold": 0.5}},
            "metric": {"name": "accuracy", "args": {"min": 1.0}},
            "epochs": 5000,
        },
        "train": {"runs": 1, "shuffle": False, "batch_size": None, "seed": 0},
    },
    "xor-adam": {
        "data": {"name": "xor", "options": {}},
        "network": {
            "cost": "mse",
            "layers": [
                {"neurons": 8, "activation": "relu"},
                {"neurons": 1, "activation": "sigmoid"},
            ],
            "optimizer": {"name": "adam", "learning_rate": 0.05, "beta1": 0.9, "beta2": 0.999},
            "encoder": {"name": "binary", "args": {"threshold": 0.5}},
            "metric": {"name": "accuracy", "args": {"min": 1.0}},
            "epochs": 3000,
        },
        "train": {"runs": 1, "shuffle": True, "batch_size": None, "seed": 0},
    },
}

_PRESET_DIR = Path(__file__).resolve().parents[2] / "configs" / "presets"
_REQUIRED_SECTIONS = {"data", "network"}


def _read_preset_file(path: Path) -> Mapping[str, object]:
    text = path.read_text()
    suffix = path.suffix.lower()
    if suffix in {".yaml", ".yml"}:
        data = yaml.safe_load(text) or {}
    elif suffix == ".json":
        data = json.loads(text or "{}")
    else:
        raise ConfigurationError(f"Unsupported preset file type: {path.suffix}")

    if not isinstance(data, Mapping):
        raise ConfigurationError(f"Preset {path.name} must decode to a mapping")
    missing = _REQUIRED_SECTIONS - set(data)
    if missing:
        raise ConfigurationError(
            f"Preset {path.name} is missing required sections: {', '.join(sorted(missing))}"
        )
    return data


def _file_presets() -> Dict[str, Mapping[str, object]]:
    found: Dict[str, Mapping[str, object]] = {}
    if _PRESET_DIR.exists():
        for file in sorted(_PRESET_DIR.iterdir()):
            if file.suffix.lower() in {".yaml", ".yml", ".json"}:
                found[file.stem] = _read_preset_file(file)
    return found


def presets() -> Mapping[str, Mapping[str, object]]:
    combined: Dict[str, Mapping[str, object]] = {}
    combined.update({name: deepcopy(cfg) for name, cfg in _PRESETS.items()})
    combined.update(_file_presets())
    return combined


def load_preset(name: str) -> Mapping[str, object]:
    file_presets = _file_presets()
    if name in file_presets:
        return deepcopy(file_presets[name])
    try:
        return deepcopy(_PRESETS[name])
    except KeyError as exc:
        raise ConfigurationError(
            f"Unknown preset: {name}. Available: {', '.join(sorted(presets()))}"
        ) from exc


def resolve_dataset(data_cfg: Mapping[str, object]) -> Dataset:
    """Build a dataset from a ``{"name"|"path", "options"}`` section."""

    options = dict(data_cfg.get("options") or {})
    if "path" in data_cfg:
        return load_dataset(str(data_cfg["path"]), **options)
    if "name" not in data_cfg:
        raise ConfigurationError("data section needs either 'name' or 'path'")
    return get_dataset(str(data_cfg["name"]), **options)


# ----------------------------------------------------------------------
# Training


def train_single(
    run_id: int,
    config: NetworkConfig,
    dataset: Dataset,
    *,
    epochs: int,
    shuffle: bool = False,
    batch_size: Optional[int] = None,
    reshuffle: bool = True,
    seed: Optional[int] = None,
    callbacks: Sequence[object] | None = None,
    verbose: bool = True,
) -> TrainingResult:
    """Build a fresh network from ``config``, train it and score the validation set."""

    data = dataset.copy()
    network = config.build_network(data.input_width, rng=np.random.default_rng(seed))
    optimizer = config.build_optimizer()
    metric = config.build_metric()
    cost = config.build_cost()
    encoder = config.build_encoder()

    if verbose:
        print(f"Network initialized, starting training cycle for thread {run_id}...")
    start = time.perf_counter()
    total_epochs = network.fit(
        data.training_set,
        data.validation_set,
        optimizer,
        metric,
        cost,
        encoder,
        epochs,
        shuffle,
        batch_size,
        reshuffle=reshuffle,
        callbacks=callbacks,
    )
    elapsed = time.perf_counter() - start

    prediction = network.predict(data.test_inputs, encoder)
    score = MetricResult(
        name=metric.label(),
        value=float(metric.value(prediction, data.test_outputs)),
        passed=bool(metric.check(prediction, data.test_outputs)),
    )
    if verbose:
        print(f"Training finished for thread {run_id}!")
    return TrainingResult(
        run_id=run_id,
        layers=network.snapshot(),
        metric=score,
        elapsed_time=elapsed,
        total_epochs=total_epochs,
        predicted_output=prediction,
    )


def run_pipeline(
    config: NetworkConfig | Mapping[str, object],
    dataset: Dataset,
    *,
    runs: int = 1,
    epochs: Optional[int] = None,
    shuffle: bool = False,
    batch_size: Optional[int] = None,
    reshuffle: bool = True,
    seed: Optional[int] = None,
    metrics_dir: str | Path | None = None,
    enable_plots: bool = False,
    callbacks_factory: CallbackFactory | None = None,
    verbose: bool = True,
) -> RunResults:
    """Train ``runs`` independent networks on a thread pool.

    Run ``i`` is seeded with ``seed + i`` when a seed is given. Per-epoch
    metrics go to ``metrics_dir/run<i>.jsonl`` when a directory is given.
    """

    if not isinstance(config, NetworkConfig):
        config = parse_network_config(config)
    epochs = epochs if epochs is not None else config.epochs
    if epochs is None:
        raise ConfigurationError("epochs must be given either in the network config or explicitly")
    if epochs <= 0:
        raise ConfigurationError(f"epochs must be positive, got {epochs}")
    if runs <= 0:
        raise ConfigurationError(f"runs must be positive, got {runs}")
    if enable_plots and metrics_dir is None:
        raise ConfigurationError("enable_plots needs a metrics_dir to write plots into")

    if verbose:
        _print_startup_summary(config=config, dataset=dataset, runs=runs, epochs=epochs)

    def _job(run_id: int) -> TrainingResult:
        run_seed = None if seed is None else seed + run_id
        callbacks: List[object] = []
        plotter: PlotAdapter | None = None
        if metrics_dir is not None:
            metrics_path = Path(metrics_dir) / f"run{run_id}.jsonl"
            callbacks.append(JsonlSink(metrics_path, run_id=run_id, seed=run_seed))
            plotter = PlotAdapter(metrics_dir, enable_plots, name=f"run{run_id}")
            callbacks.append(plotter)
        if callbacks_factory is not None:
            callbacks.extend(callbacks_factory(run_id, run_seed))
        try:
            return train_single(
                run_id,
                config,
                dataset,
                epochs=epochs,
                shuffle=shuffle,
                batch_size=batch_size,
                reshuffle=reshuffle,
                seed=run_seed,
                callbacks=callbacks,
                verbose=verbose,
            )
        finally:
            if plotter is not None:
                plotter.close()

    with ThreadPoolExecutor(max_workers=runs) as pool:
        all_results = list(pool.map(_job, range(runs)))

    return RunResults(
        all_results=all_results,
        validation_inputs=dataset.test_inputs.copy(),
        validation_outputs=dataset.test_outputs.copy(),
        batch_size=batch_size,
    )


def _print_startup_summary(
    *, config: NetworkConfig, dataset: Dataset, runs: int, epochs: int
) -> None:
    dims = [dataset.input_width] + [layer.neurons for layer in config.layers]
    activations = [layer.activation for layer in config.layers]
    param_count = sum(fan_in * fan_out + fan_out for fan_in, fan_out in zip(dims[:-1], dims[1:]))
    print("=== ONNB run ===")
    print(f"Dataset       : {dataset.name}")
    print(f"Dimensions    : {dims}")
    print(f"Activations   : {activations}")
    print(f"Cost          : {config.build_cost().name}")
    print(f"Metric        : {config.build_metric().label()}")
    print(f"Optimizer     : {config.optimizer.name} (lr={config.optimizer.learning_rate})")
    print(f"Parameters    : {param_count}")
    print(f"Runs x epochs : {runs} x {epochs}")
    print("================")


__all__ = [
    "load_preset",
    "presets",
    "resolve_dataset",
    "run_pipeline",
    "train_single",
]
