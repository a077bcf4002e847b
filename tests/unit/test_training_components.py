import numpy as np
import pytest

from onnb.errors import ConfigurationError
from onnb.training.encoders import Binary, Identity, OneHot, get_encoder
from onnb.training.losses import CROSS_ENTROPY, MSE, get_cost
from onnb.training.metrics import Accuracy, Tolerance, get_metric


def test_one_hot_encode_and_decode():
    encoder = OneHot(max=2)
    labels = np.array([[0.0, 2.0, 1.0]])
    encoded = encoder.encode(labels)
    assert encoded.shape == (3, 3)
    assert np.array_equal(encoded, [[1, 0, 0], [0, 0, 1], [0, 1, 0]])
    assert np.array_equal(encoder.decode(encoded), labels)


def test_one_hot_decode_picks_largest_row():
    decoded = OneHot(max=2).decode(np.array([[0.1, 0.7], [0.8, 0.2], [0.1, 0.1]]))
    assert np.array_equal(decoded, [[1.0, 0.0]])


@pytest.mark.parametrize("labels", [[[3.0]], [[-1.0]], [[0.5]]])
def test_one_hot_rejects_bad_labels(labels):
    with pytest.raises(ValueError):
        OneHot(max=2).encode(np.array(labels))


def test_binary_thresholds_on_decode():
    encoder = Binary(threshold=0.5)
    assert np.array_equal(encoder.encode(np.array([[0.0, 1.0]])), [[0.0, 1.0]])
    assert np.array_equal(encoder.decode(np.array([[0.2, 0.5, 0.9]])), [[0.0, 1.0, 1.0]])


def test_identity_passes_values_through():
    values = np.array([[0.25, -1.0]])
    assert np.array_equal(Identity().decode(Identity().encode(values)), values)


def test_get_encoder_builds_from_args():
    encoder = get_encoder("one hot", {"max": 4})
    assert isinstance(encoder, OneHot) and encoder.max == 4
    assert isinstance(get_encoder("onehot"), OneHot)
    with pytest.raises(ConfigurationError):
        get_encoder("one_hot", {"max": 1, "min": 0})
    with pytest.raises(ConfigurationError):
        get_encoder("one_hot", {"max": -1})
    with pytest.raises(ConfigurationError):
        get_encoder("label")


def test_accuracy_value_and_check():
    metric = Accuracy(min=0.75)
    actual = np.array([[1.0, 0.0, 1.0, 1.0]])
    expected = np.array([[1.0, 0.0, 0.0, 1.0]])
    assert metric.value(actual, expected) == pytest.approx(0.75)
    assert metric.check(actual, expected)
    assert not Accuracy(min=1.0).check(actual, expected)
    assert metric.label() == "Accuracy"


def test_accuracy_shape_mismatch_raises():
    with pytest.raises(ValueError):
        Accuracy().value(np.zeros((1, 3)), np.zeros((1, 4)))


def test_tolerance_uses_largest_error():
    metric = Tolerance(epsilon=0.1)
    assert metric.value(np.array([[1.0, 2.05]]), np.array([[1.0, 2.0]])) == pytest.approx(0.05)
    assert metric.check(np.array([[1.0, 2.05]]), np.array([[1.0, 2.0]]))
    assert not metric.check(np.array([[1.5]]), np.array([[1.0]]))


def test_get_metric_validates_args():
    assert get_metric("acc", {"min": 0.5}).min == 0.5
    with pytest.raises(ConfigurationError):
        get_metric("accuracy", {"min": 2.0})
    with pytest.raises(ConfigurationError):
        get_metric("accuracy", {"threshold": 0.5})
    with pytest.raises(ConfigurationError):
        get_metric("f1")


def test_mse_value_and_prime():
    actual = np.array([[1.0, 0.0], [0.5, 0.5]])
    expected = np.array([[0.0, 0.0], [0.5, 1.5]])
    assert MSE.value(actual, expected) == pytest.approx((1.0 + 1.0) / 4)
    assert np.array_equal(MSE.prime(actual, expected), actual - expected)


def test_mse_propagates_nan():
    actual = np.array([[np.nan, 1.0]])
    assert np.isnan(MSE.value(actual, np.zeros((1, 2))))
    assert np.isnan(MSE.prime(actual, np.zeros((1, 2)))[0, 0])


def test_cross_entropy_prime_cancels_softmax_prime():
    actual = np.array([[0.7, 0.2], [0.3, 0.8]])
    expected = np.array([[1.0, 0.0], [0.0, 1.0]])
    combined = CROSS_ENTROPY.prime(actual, expected) * actual * (1.0 - actual)
    assert np.allclose(combined, actual - expected)
    assert CROSS_ENTROPY.value(actual, expected) > 0


@pytest.mark.parametrize("name", ["mean squared error", "mean_squared_error", "MSE"])
def test_get_cost_aliases(name):
    assert get_cost(name) is MSE


def test_unknown_cost_is_a_configuration_error():
    with pytest.raises(ConfigurationError):
        get_cost("hinge")
