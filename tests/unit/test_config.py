import json

import numpy as np
import pytest

from onnb.core.optimizers import SGD, Adam
from onnb.errors import ConfigurationError
from onnb.training.config import load_network_config, parse_network_config
from onnb.training.encoders import OneHot
from onnb.training.metrics import Accuracy


def _config(**overrides):
    data = {
        "cost": "mean squared error",
        "layers": [
            {"neurons": 3, "activation": "relu", "dropout_rate": 0.2},
            {"neurons": 2, "activation": "sigmoid"},
        ],
        "optimizer": {
            "name": "adaptive momentum",
            "learning_rate": 0.01,
            "beta1": 0.8,
            "beta2": 0.99,
        },
        "encoder": {"name": "one hot", "args": {"max": 1}},
        "metric": {"name": "accuracy", "args": {"min": 0.9}},
    }
    data.update(overrides)
    return data


def test_parse_resolves_every_component():
    config = parse_network_config(_config())
    optimizer = config.build_optimizer()
    assert isinstance(optimizer, Adam)
    assert (optimizer.gamma, optimizer.beta) == (0.8, 0.99)
    assert config.build_cost().name == "mse"
    assert config.build_encoder() == OneHot(max=1)
    assert config.build_metric() == Accuracy(min=0.9)
    assert config.epochs is None


def test_build_network_uses_layer_list():
    config = parse_network_config(_config())
    network = config.build_network(4, rng=np.random.default_rng(0))
    assert network.describe().layer_dims == [4, 3, 2]
    assert network.layers[0].dropout == 0.2
    assert network.layers[1].dropout is None


def test_each_build_returns_fresh_optimizer():
    config = parse_network_config(_config(optimizer={"name": "sgd", "learning_rate": 0.1}))
    first, second = config.build_optimizer(), config.build_optimizer()
    assert isinstance(first, SGD)
    assert first is not second
    assert first.state is not second.state


def test_component_may_be_a_bare_name():
    config = parse_network_config(_config(metric="acc", encoder="binary"))
    assert config.metric.name == "acc"
    assert config.encoder.args == {}


@pytest.mark.parametrize(
    "overrides",
    [
        {"layers": []},
        {"layers": [{"neurons": 0, "activation": "relu"}]},
        {"layers": [{"neurons": 2}]},
        {"layers": [{"neurons": 2, "activation": "swish"}]},
        {"layers": [{"neurons": 2, "activation": "relu", "dropout_rate": 1.5}]},
        {"cost": "hinge"},
        {"optimizer": {"name": "sgd"}},
        {"optimizer": {"name": "nadam", "learning_rate": 0.1}},
        {"metric": {"name": "accuracy", "args": {"min": 3}}},
        {"encoder": {"args": {}}},
        {"epochs": 0},
    ],
)
def test_invalid_configurations_raise(overrides):
    with pytest.raises(ConfigurationError):
        parse_network_config(_config(**overrides))


def test_missing_sections_are_reported():
    data = _config()
    del data["cost"]
    with pytest.raises(ConfigurationError, match="cost"):
        parse_network_config(data)


def test_load_json_and_yaml(tmp_path):
    json_path = tmp_path / "net.json"
    json_path.write_text(json.dumps(_config(epochs=25)))
    assert load_network_config(json_path).epochs == 25

    yaml_path = tmp_path / "net.yaml"
    yaml_path.write_text(
        "cost: mse\n"
        "layers:\n"
        "  - {neurons: 2, activation: sigmoid}\n"
        "optimizer: {name: sgd, learning_rate: 0.5}\n"
        "encoder: binary\n"
        "metric: accuracy\n"
    )
    config = load_network_config(yaml_path)
    assert [layer.neurons for layer in config.layers] == [2]


def test_load_errors(tmp_path):
    with pytest.raises(ConfigurationError, match="missing"):
        load_network_config(tmp_path / "absent.json")
    bad = tmp_path / "bad.json"
    bad.write_text("{not json")
    with pytest.raises(ConfigurationError):
        load_network_config(bad)
    other = tmp_path / "net.toml"
    other.write_text("")
    with pytest.raises(ConfigurationError):
        load_network_config(other)


def test_round_trip_through_dict():
    config = parse_network_config(_config(epochs=10))
    again = parse_network_config(config.to_dict())
    assert again == config
