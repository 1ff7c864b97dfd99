"""Tests for the logistic-regression risk model."""

import math

import numpy as np
import pytest

from fraudguard.domains.fraud.errors import TrainingDataError
from fraudguard.domains.fraud.features import FeatureVector, extract_features
from fraudguard.domains.fraud.ml.evaluate import compute_metrics
from fraudguard.domains.fraud.ml.model import PRETRAINED_WEIGHTS, RiskModel
from fraudguard.domains.fraud.ml.synthetic import generate_synthetic_dataset


@pytest.fixture
def dataset():
    return generate_synthetic_dataset(num_samples=400, fraud_rate=0.3, seed=7)


class TestPredict:
    def test_pretrained_large_amount(self):
        score = RiskModel.pretrained().predict(extract_features(amount=10_000))
        assert score == pytest.approx(100 / (1 + math.exp(0.1)), rel=1e-9)

    def test_untrained_is_coin_flip(self):
        assert RiskModel.untrained().predict(extract_features(amount=5000)) == 50.0

    def test_deterministic_and_bounded(self):
        model = RiskModel.pretrained()
        vec = extract_features(
            amount=9000, velocity_count=15, is_new_location=True, is_new_device=True
        )
        first = model.predict(vec)
        assert first == model.predict(vec)
        assert 0.0 <= first <= 100.0

    def test_extreme_weights_do_not_overflow(self):
        model = RiskModel(weights=np.full(5, 1e6), bias=-1e6)
        score = model.predict(FeatureVector.from_mapping({"amount": 1.0}))
        assert 0.0 <= score <= 100.0

    def test_weight_map(self):
        assert RiskModel.pretrained().weight_map == PRETRAINED_WEIGHTS

    def test_weights_are_read_only(self):
        with pytest.raises(ValueError):
            RiskModel.pretrained().weights[0] = 1.0


class TestTrain:
    def test_loss_decreases(self, dataset):
        features, labels = dataset
        model, history = RiskModel.untrained().train(
            features, labels, epochs=50, batch_size=32, learning_rate=0.5, seed=1
        )
        assert len(history.losses) == 50
        assert history.final_loss < history.initial_loss
        assert model.trained
        assert history.accuracies[-1] > 0.9

    def test_does_not_mutate_receiver(self, dataset):
        features, labels = dataset
        base = RiskModel.pretrained()
        before = base.weights.copy()

        trained, _ = base.train(features, labels, epochs=5, seed=1)

        np.testing.assert_array_equal(base.weights, before)
        assert base.bias == -0.45
        assert base.version == "1.0.0"
        assert trained is not base
        assert trained.version == "1.0.1"

    def test_same_seed_same_model(self, dataset):
        features, labels = dataset
        a, _ = RiskModel.untrained().train(features, labels, epochs=10, seed=3)
        b, _ = RiskModel.untrained().train(features, labels, epochs=10, seed=3)
        np.testing.assert_array_equal(a.weights, b.weights)
        assert a.bias == b.bias

    def test_accepts_feature_vectors(self):
        vectors = [
            extract_features(amount=9000, is_new_device=True),
            extract_features(amount=50),
        ]
        model, history = RiskModel.untrained().train(vectors, [1, 0], epochs=3, batch_size=1)
        assert len(history.losses) == 3
        assert model.predict(vectors[0]) > model.predict(vectors[1])

    def test_learning_rate_defaults_to_model(self, dataset):
        features, labels = dataset
        model, _ = RiskModel(weights=np.zeros(5), learning_rate=0.2).train(
            features, labels, epochs=1
        )
        assert model.learning_rate == 0.2

    @pytest.mark.parametrize(
        "features, labels",
        [
            (np.zeros((0, 5)), np.zeros(0)),
            (np.zeros((3, 4)), np.zeros(3)),
            (np.zeros((3, 5)), np.zeros(2)),
            (np.zeros((2, 5)), np.array([0.0, 2.0])),
            (np.array([[np.nan, 0, 0, 0, 0]]), np.array([1.0])),
        ],
    )
    def test_rejects_malformed_data(self, features, labels):
        with pytest.raises(TrainingDataError):
            RiskModel.untrained().train(features, labels, epochs=1)

    @pytest.mark.parametrize(
        "kwargs", [{"epochs": 0}, {"batch_size": 0}, {"learning_rate": -0.1}]
    )
    def test_rejects_bad_hyperparameters(self, dataset, kwargs):
        features, labels = dataset
        with pytest.raises(TrainingDataError):
            RiskModel.untrained().train(features, labels, **kwargs)


class TestEvaluate:
    def test_metrics_in_unit_interval(self, dataset):
        features, labels = dataset
        model, _ = RiskModel.untrained().train(features, labels, epochs=30, learning_rate=0.5)
        metrics = model.evaluate(features, labels)

        for value in (metrics.accuracy, metrics.precision, metrics.recall, metrics.f1_score):
            assert 0.0 <= value <= 1.0
        assert (
            metrics.true_positives
            + metrics.false_positives
            + metrics.true_negatives
            + metrics.false_negatives
            == len(labels)
        )

    def test_zero_denominators(self):
        # Untrained model outputs exactly 0.5, never a fraud prediction
        features = np.zeros((4, 5))
        labels = np.array([0.0, 0.0, 1.0, 1.0])
        metrics = RiskModel.untrained().evaluate(features, labels)

        assert metrics.precision == 0.0
        assert metrics.recall == 0.0
        assert metrics.f1_score == 0.0
        assert metrics.accuracy == 0.5

    def test_compute_metrics_counts(self):
        metrics = compute_metrics(
            np.array([1, 1, 0, 0, 1]),
            np.array([0.9, 0.2, 0.7, 0.1, 0.51]),
        )
        assert metrics.true_positives == 2
        assert metrics.false_negatives == 1
        assert metrics.false_positives == 1
        assert metrics.true_negatives == 1
        assert metrics.precision == pytest.approx(2 / 3)
        assert metrics.recall == pytest.approx(2 / 3)


class TestSerialization:
    def test_dict_round_trip(self):
        model = RiskModel.pretrained()
        restored = RiskModel.from_dict(model.to_dict())
        np.testing.assert_array_equal(restored.weights, model.weights)
        assert restored.version == model.version
        assert restored.trained

    def test_from_dict_rejects_non_finite(self):
        data = RiskModel.pretrained().to_dict()
        data["bias"] = float("inf")
        with pytest.raises(ValueError):
            RiskModel.from_dict(data)

    def test_from_dict_ignores_unknown_weights(self):
        model = RiskModel.from_dict({"weights": {"amount": 1.0, "legacy_feature": 3.0}})
        assert model.weight_map["amount"] == 1.0
        assert "legacy_feature" not in model.weight_map
