"""Reporting utilities for ONNB."""

from .artifacts import default_results_path, write_results
from .metrics import CsvSink, JsonlSink
from .plots import PlotAdapter
from .summary import format_summary, summarize

__all__ = [
    "CsvSink",
    "JsonlSink",
    "PlotAdapter",
    "default_results_path",
    "format_summary",
    "summarize",
    "write_results",
]
