"""Training components: costs, metrics, encoders, configuration and pipelines."""

from .config import NetworkConfig, load_network_config, parse_network_config
from .encoders import Binary, Identity, OneHot, get_encoder
from .losses import CROSS_ENTROPY, MSE, Cost, get_cost
from .metrics import Accuracy, Tolerance, get_metric

__all__ = [
    "Accuracy",
    "Binary",
    "CROSS_ENTROPY",
    "Cost",
    "Identity",
    "MSE",
    "NetworkConfig",
    "OneHot",
    "Tolerance",
    "get_cost",
    "get_encoder",
    "get_metric",
    "load_network_config",
    "parse_network_config",
]
