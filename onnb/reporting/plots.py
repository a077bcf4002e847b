"""Training curves rendered with matplotlib's headless backend."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Mapping, Optional


class PlotAdapter:
    """Epoch callback that records the loss and validation metric of one run.

    Nothing is collected unless ``enable_plots`` is set; :meth:`close` then
    writes ``<run_dir>/<name>.png`` with the loss on the left axis and every
    other metric on the right.
    """

    def __init__(self, run_dir: str | Path, enable_plots: bool = False, *, name: str = "training"):
        self.enable_plots = enable_plots
        self.run_dir = Path(run_dir)
        self.name = name
        self._epochs: List[int] = []
        self._series: Dict[str, List[float]] = {}
        if self.enable_plots:
            self.run_dir.mkdir(parents=True, exist_ok=True)

    def on_epoch(self, epoch: int, metrics: Mapping[str, float]) -> None:
        if not self.enable_plots:
            return
        self._epochs.append(int(epoch))
        for key, value in metrics.items():
            series = self._series.setdefault(key, [float("nan")] * (len(self._epochs) - 1))
            series.append(float(value))

    def close(self) -> Optional[Path]:
        if not self.enable_plots or not self._epochs:
            return None
        import matplotlib

        matplotlib.use("Agg", force=True)
        import matplotlib.pyplot as plt  # imported lazily for headless safety

        fig, loss_ax = plt.subplots()
        metric_ax = loss_ax.twinx()
        for key, values in sorted(self._series.items()):
            values = values + [float("nan")] * (len(self._epochs) - len(values))
            ax = loss_ax if key == "loss" else metric_ax
            ax.plot(self._epochs, values, label=key)
        loss_ax.set_xlabel("Epoch")
        loss_ax.set_ylabel("Loss")
        metric_ax.set_ylabel("Validation metric")
        loss_ax.set_title(f"Training curve ({self.name})")
        fig.legend(loc="upper right")
        plot_path = self.run_dir / f"{self.name}.png"
        fig.savefig(plot_path)
        plt.close(fig)
        return plot_path

    __call__ = on_epoch


__all__ = ["PlotAdapter"]
