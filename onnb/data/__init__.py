"""Dataset registry and loader helpers."""

# Ensure built-in datasets register themselves when the package is imported.
from .loaders import load_csv_dataset, load_dataset, load_json_dataset, xor_dataset
from .registry import Dataset, available_datasets, get_dataset, register_dataset

__all__ = [
    "Dataset",
    "available_datasets",
    "get_dataset",
    "load_csv_dataset",
    "load_dataset",
    "load_json_dataset",
    "register_dataset",
    "xor_dataset",
]
