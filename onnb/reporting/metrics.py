"""Per-epoch metric sinks.

Each sink is a training callback: ``fit`` calls ``on_epoch(epoch, metrics)``
after every epoch and the sink appends one record tagged with the run id.
"""

from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import Dict, List, Mapping, Optional


class _EpochSink:
    def __init__(self, path: str | Path, *, run_id: int = 0) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text("")
        self.run_id = run_id

    def _record(self, epoch: int, metrics: Mapping[str, float]) -> Dict[str, object]:
        record: Dict[str, object] = {"epoch": int(epoch), "run": self.run_id}
        for key, value in metrics.items():
            if isinstance(value, (int, float)):
                record[key] = float(value)
        return record

    def _append(self, record: Dict[str, object]) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    def on_epoch(self, epoch: int, metrics: Mapping[str, float]) -> None:
        self._append(self._record(epoch, metrics))

    __call__ = on_epoch


class JsonlSink(_EpochSink):
    """One JSON object per line; the run seed is stamped on every record."""

    def __init__(self, path: str | Path, *, run_id: int = 0, seed: Optional[int] = None) -> None:
        super().__init__(path, run_id=run_id)
        self.seed = seed

    def _record(self, epoch: int, metrics: Mapping[str, float]) -> Dict[str, object]:
        record = super()._record(epoch, metrics)
        record["seed"] = self.seed
        return record

    def _append(self, record: Dict[str, object]) -> None:
        with self.path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(record) + "\n")


class CsvSink(_EpochSink):
    """CSV rows whose columns are fixed by the first record."""

    def __init__(self, path: str | Path, *, run_id: int = 0) -> None:
        super().__init__(path, run_id=run_id)
        self._columns: Optional[List[str]] = None

    def _append(self, record: Dict[str, object]) -> None:
        first = self._columns is None
        if first:
            self._columns = ["epoch", "run"] + sorted(k for k in record if k not in {"epoch", "run"})
        with self.path.open("a", encoding="utf-8", newline="") as handle:
            writer = csv.DictWriter(
                handle, fieldnames=self._columns, restval="", extrasaction="ignore"
            )
            if first:
                writer.writeheader()
            writer.writerow(record)


__all__ = ["CsvSink", "JsonlSink"]
