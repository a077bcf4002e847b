"""Training result serialization."""

from __future__ import annotations

import json
import subprocess
import time
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict, Mapping

import numpy as np

from ..core.types import RunResults, TrainingResult


def _git_sha() -> str:
    try:
        out = subprocess.check_output(["git", "rev-parse", "HEAD"], stderr=subprocess.DEVNULL)
        return out.decode().strip()
    except (OSError, subprocess.CalledProcessError):  # git may be unavailable
        return "unknown"


def default_results_path(output_dir: str | Path = "output") -> Path:
    """Timestamped results file, e.g. ``output/160526142530.json``."""

    return Path(output_dir) / f"{time.strftime('%d%m%y%H%M%S')}.json"


def result_to_dict(result: TrainingResult) -> Dict[str, Any]:
    return {
        "run_id": result.run_id,
        "network": {"layers": result.layers},
        "metric": asdict(result.metric),
        "elapsed_time": result.elapsed_time,
        "total_epochs": result.total_epochs,
        "predicted_output": np.asarray(result.predicted_output).tolist(),
    }


def results_to_dict(
    results: RunResults, config: Mapping[str, object] | None = None
) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "git_sha": _git_sha(),
        "generated_at": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
        "all_results": [result_to_dict(result) for result in results.all_results],
        "validation_inputs": np.asarray(results.validation_inputs).tolist(),
        "validation_outputs": np.asarray(results.validation_outputs).tolist(),
        "batch_size": results.batch_size,
    }
    if config is not None:
        payload["config"] = dict(config)
    return payload


def write_results(
    path: str | Path,
    results: RunResults,
    *,
    config: Mapping[str, object] | None = None,
) -> str:
    """Write all run results (weights, metric, timing, predictions) as JSON."""

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(results_to_dict(results, config), indent=2))
    return str(path)


__all__ = ["default_results_path", "result_to_dict", "results_to_dict", "write_results"]
