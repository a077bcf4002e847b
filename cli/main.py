"""Command line entry point for ONNB training runs."""

from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Iterable

import yaml

from onnb.data import load_dataset
from onnb.errors import ConfigurationError
from onnb.reporting import default_results_path, format_summary, summarize, write_results
from onnb.training import pipelines
from onnb.training.config import load_network_config, parse_network_config


def _format_result(path: str, summary) -> str:
    payload = {
        "results": path,
        "runs": summary.get("runs", 0),
        "passed": summary.get("passed", 0),
    }
    return json.dumps(payload, sort_keys=True)


def parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    preset_names = sorted(pipelines.presets().keys())
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("-d", "--data", type=Path, help="Training/validation data file (JSON or CSV)")
    parser.add_argument("-n", "--network", type=Path, help="Network configuration file (JSON or YAML)")
    parser.add_argument(
        "-o", "--output", type=Path, help="Results file (default: output/<timestamp>.json)"
    )
    parser.add_argument(
        "-t", "--threads", type=int, help="Number of independent training runs (default: 1)"
    )
    parser.add_argument(
        "-s", "--shuffle", action="store_true", default=None, help="Shuffle training data"
    )
    parser.add_argument("-e", "--epochs", type=int, help="Maximum number of epochs")
    parser.add_argument("-b", "--batch-size", type=int, help="Minibatch size")
    parser.add_argument("--preset", choices=preset_names, help="Preset configuration to execute")
    parser.add_argument("--config", type=Path, help="Optional JSON/YAML override for --preset")
    parser.add_argument("--seed", type=int, help="Base seed; run i uses seed + i")
    parser.add_argument(
        "--reshuffle",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Reshuffle every epoch instead of once (with --shuffle)",
    )
    parser.add_argument("--metrics-dir", type=Path, help="Write per-epoch JSONL metrics here")
    parser.add_argument(
        "--enable-plots", action="store_true", help="Plot training curves into --metrics-dir"
    )
    parser.add_argument(
        "--list-presets", action="store_true", help="List available presets and exit"
    )
    return parser.parse_args(argv)


def _load_override(path: Path) -> dict:
    try:
        text = path.read_text()
    except FileNotFoundError as exc:
        raise ConfigurationError(f"File {path} missing") from exc
    if path.suffix in {".yml", ".yaml"}:
        data = yaml.safe_load(text)
    else:
        data = json.loads(text)
    if not isinstance(data, dict):
        raise ConfigurationError(f"Override {path} must decode to a mapping")
    return data


def _merge(base: dict, override: dict) -> dict:
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            base[key] = _merge(dict(base[key]), value)
        else:
            base[key] = value
    return base


def _run(args: argparse.Namespace) -> None:
    if args.enable_plots and args.metrics_dir is None:
        raise ConfigurationError("--enable-plots needs --metrics-dir")

    train_cfg: dict = {}
    network = None
    dataset = None

    if args.preset:
        config = json.loads(json.dumps(pipelines.load_preset(args.preset)))
        if args.config:
            config = _merge(config, _load_override(args.config))
        train_cfg = dict(config.get("train") or {})
        network = parse_network_config(config["network"])
        dataset = pipelines.resolve_dataset(config["data"])
    elif args.config:
        raise ConfigurationError("--config only applies together with --preset")

    if args.network:
        network = load_network_config(args.network)
    if args.data:
        dataset = load_dataset(args.data)
    if network is None or dataset is None:
        raise ConfigurationError("Either --preset or both --data and --network are required")

    runs = args.threads if args.threads is not None else int(train_cfg.get("runs", 1))
    shuffle = args.shuffle if args.shuffle is not None else bool(train_cfg.get("shuffle", False))
    batch_size = args.batch_size if args.batch_size is not None else train_cfg.get("batch_size")
    seed = args.seed if args.seed is not None else train_cfg.get("seed")

    results = pipelines.run_pipeline(
        network,
        dataset,
        runs=runs,
        epochs=args.epochs,
        shuffle=shuffle,
        batch_size=batch_size,
        reshuffle=args.reshuffle,
        seed=seed,
        metrics_dir=args.metrics_dir,
        enable_plots=args.enable_plots,
    )

    output = args.output or default_results_path()
    path = write_results(output, results, config=network.to_dict())
    summary = summarize(results)
    print(format_summary(summary))
    print(_format_result(path, summary))


def main(argv: Iterable[str] | None = None) -> None:
    args = parse_args(argv)

    if args.list_presets:
        for name in sorted(pipelines.presets().keys()):
            print(name)
        raise SystemExit(0)

    try:
        _run(args)
    except ConfigurationError as exc:
        raise SystemExit(f"error: {exc}") from None


if __name__ == "__main__":
    main()
