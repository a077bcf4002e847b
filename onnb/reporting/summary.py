"""Aggregate statistics across repeated training runs."""

from __future__ import annotations

from typing import Mapping

import numpy as np

from ..core.types import RunResults


def summarize(results: RunResults) -> Mapping[str, object]:
    """Pass rate plus epoch/time statistics over every run."""

    runs = results.all_results
    if not runs:
        return {"runs": 0, "passed": 0, "pass_rate": 0.0, "metric": None}
    epochs = np.asarray([r.total_epochs for r in runs], dtype=np.float64)
    elapsed = np.asarray([r.elapsed_time for r in runs], dtype=np.float64)
    scores = np.asarray([r.metric.value for r in runs], dtype=np.float64)
    passed = sum(1 for r in runs if r.metric.passed)
    return {
        "runs": len(runs),
        "passed": passed,
        "pass_rate": passed / len(runs),
        "metric": runs[0].metric.name,
        "metric_mean": float(np.mean(scores)),
        "epochs": {
            "min": int(np.min(epochs)),
            "max": int(np.max(epochs)),
            "mean": float(np.mean(epochs)),
        },
        "elapsed": {
            "min": float(np.min(elapsed)),
            "max": float(np.max(elapsed)),
            "mean": float(np.mean(elapsed)),
        },
    }


def format_summary(summary: Mapping[str, object]) -> str:
    if not summary.get("runs"):
        return "No runs completed"
    epochs = summary["epochs"]
    elapsed = summary["elapsed"]
    lines = [
        "=== ONNB results ===",
        f"Runs          : {summary['runs']}",
        f"Passed        : {summary['passed']} ({summary['pass_rate']:.0%})",
        f"{summary['metric']:<14}: {summary['metric_mean']:.4f} (mean)",
        f"Epochs        : {epochs['mean']:.1f} mean, {epochs['min']}-{epochs['max']}",  # type: ignore[index]
        f"Elapsed (s)   : {elapsed['mean']:.3f} mean",  # type: ignore[index]
        "====================",
    ]
    return "\n".join(lines)


__all__ = ["format_summary", "summarize"]
