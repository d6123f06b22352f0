"""Tests for the network and the neural regressor."""

import math

import numpy as np
import pytest
import torch.nn as nn

from ev_range.exceptions import ShapeError, TrainingError
from ev_range.models import NeuralRangeRegressor, open_scope_count
from ev_range.models.network import build_network, count_params


def linear_data(n: int = 64, width: int = 4, seed: int = 0):
    rng = np.random.default_rng(seed)
    X = rng.normal(size=(n, width))
    y = 300.0 + 60.0 * X[:, 0] - 20.0 * X[:, 1] + rng.normal(0, 5, size=n)
    return X, y


def make_model(**params) -> NeuralRangeRegressor:
    defaults = {"epochs": 3, "learning_rate": 0.01, "seed": 11}
    defaults.update(params)
    return NeuralRangeRegressor(params=defaults)


class TestBuildNetwork:
    """Tests for build_network."""

    def test_layer_layout(self) -> None:
        network = build_network(13)
        names = [name for name, _ in network.named_children()]

        assert names == [
            "hidden1", "relu1", "dropout1", "hidden2", "relu2", "dropout2", "output"
        ]
        assert network.hidden1.in_features == 13
        assert network.hidden1.out_features == 32
        assert network.hidden2.out_features == 16
        assert network.output.out_features == 1
        assert network.dropout1.p == pytest.approx(0.2)
        assert network.dropout2.p == pytest.approx(0.15)

    def test_parameter_count(self) -> None:
        network = build_network(13)
        assert count_params(network) == (13 * 32 + 32) + (32 * 16 + 16) + (16 + 1)

    def test_output_bias_starts_at_zero(self) -> None:
        network = build_network(5)
        assert float(network.output.bias.abs().sum()) == 0.0

    @pytest.mark.parametrize("input_dim", [0, -3, 2.5])
    def test_invalid_input_dim(self, input_dim) -> None:
        with pytest.raises(ValueError, match="Invalid input shape"):
            build_network(input_dim)


class TestNeuralRangeRegressor:
    """Tests for NeuralRangeRegressor."""

    def test_build_sets_input_dim(self) -> None:
        model = make_model()
        network = model.build(4)

        assert isinstance(network, nn.Sequential)
        assert model.input_dim == 4
        assert model.param_count > 0
        assert not model.is_fitted

    def test_fit_iter_yields_every_epoch(self) -> None:
        X, y = linear_data()
        model = make_model(epochs=4)

        metrics = list(model.fit_iter(X[:50], y[:50], X[50:], y[50:]))

        assert [m.epoch for m in metrics] == [1, 2, 3, 4]
        assert all(math.isfinite(m.loss) and math.isfinite(m.val_loss) for m in metrics)
        assert model.is_fitted

    def test_loss_decreases(self) -> None:
        X, y = linear_data()
        model = make_model(epochs=60)

        metrics = list(model.fit_iter(X, y))

        assert metrics[-1].loss < metrics[0].loss
        assert math.isnan(metrics[0].val_loss)

    def test_closing_iterator_releases_scope(self) -> None:
        X, y = linear_data()
        model = make_model(epochs=10)
        before = open_scope_count()

        iterator = model.fit_iter(X, y)
        next(iterator)
        assert open_scope_count() == before + 1

        iterator.close()
        assert open_scope_count() == before
        assert not model.is_fitted

    def test_predict_shape(self) -> None:
        X, y = linear_data()
        model = make_model().fit(X, y)

        predictions = model.predict(X[:5])

        assert predictions.shape == (5,)
        assert predictions.dtype == np.float64

    def test_predict_is_deterministic(self) -> None:
        X, y = linear_data()
        model = make_model().fit(X, y)

        np.testing.assert_array_equal(model.predict(X[:3]), model.predict(X[:3]))

    def test_predict_wrong_width(self) -> None:
        X, y = linear_data()
        model = make_model().fit(X, y)

        with pytest.raises(ShapeError):
            model.predict(np.zeros((1, 7)))

    def test_empty_training_data(self) -> None:
        model = make_model()

        with pytest.raises(TrainingError, match="empty"):
            list(model.fit_iter(np.zeros((0, 4)), np.zeros(0)))

    def test_mismatched_lengths(self) -> None:
        model = make_model()

        with pytest.raises(ShapeError):
            list(model.fit_iter(np.zeros((5, 4)), np.zeros(4)))

    def test_callbacks_receive_metrics(self) -> None:
        X, y = linear_data()
        seen = []

        make_model(epochs=3).fit(X, y, callbacks=[seen.append])

        assert [m.epoch for m in seen] == [1, 2, 3]

    def test_evaluate(self) -> None:
        X, y = linear_data()
        model = make_model().fit(X, y)

        results = model.evaluate(X, y)

        assert set(results) == {"loss", "mae"}
        assert results["loss"] >= 0.0

    def test_seeded_training_is_reproducible(self) -> None:
        X, y = linear_data()

        first = make_model(epochs=5).fit(X, y).predict(X[:4])
        second = make_model(epochs=5).fit(X, y).predict(X[:4])

        np.testing.assert_allclose(first, second)

    def test_payload_round_trip(self) -> None:
        X, y = linear_data()
        model = make_model().fit(X, y)

        loaded = NeuralRangeRegressor.from_payload(model.to_payload())

        assert loaded.is_fitted
        np.testing.assert_allclose(loaded.predict(X[:4]), model.predict(X[:4]), rtol=1e-6)
