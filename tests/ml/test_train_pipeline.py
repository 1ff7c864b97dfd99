"""Tests for the offline training pipeline."""

import copy

import numpy as np
import pytest

from fraudguard.domains.fraud.ml.storage import FileModelStorage
from fraudguard.domains.fraud.ml.synthetic import generate_synthetic_dataset
from fraudguard.domains.fraud.ml.train import (
    DEFAULT_CONFIG,
    load_config,
    split_dataset,
    train_model,
)


@pytest.fixture
def small_config(tmp_path):
    config = copy.deepcopy(DEFAULT_CONFIG)
    config["storage_dir"] = str(tmp_path)
    config["dataset"]["num_samples"] = 300
    config["hyperparams"]["epochs"] = 20
    config["hyperparams"]["learning_rate"] = 0.5
    return config


class TestSyntheticDataset:
    def test_shape_and_labels(self):
        features, labels = generate_synthetic_dataset(num_samples=200, fraud_rate=0.25, seed=1)
        assert features.shape == (200, 5)
        assert set(np.unique(labels)) <= {0.0, 1.0}
        assert np.all((features >= 0.0) & (features <= 1.0))

    def test_seeded(self):
        a = generate_synthetic_dataset(num_samples=50, seed=9)
        b = generate_synthetic_dataset(num_samples=50, seed=9)
        np.testing.assert_array_equal(a[0], b[0])
        np.testing.assert_array_equal(a[1], b[1])

    @pytest.mark.parametrize("kwargs", [{"num_samples": 0}, {"num_samples": 10, "fraud_rate": 1.5}])
    def test_invalid_arguments(self, kwargs):
        with pytest.raises(ValueError):
            generate_synthetic_dataset(**kwargs)


class TestSplitDataset:
    def test_sizes(self):
        features, labels = generate_synthetic_dataset(num_samples=100, seed=2)
        x_train, x_test, y_train, y_test = split_dataset(features, labels, test_size=0.2, seed=2)
        assert len(x_train) == len(y_train) == 80
        assert len(x_test) == len(y_test) == 20

    def test_invalid_test_size(self):
        features, labels = generate_synthetic_dataset(num_samples=10, seed=2)
        with pytest.raises(ValueError):
            split_dataset(features, labels, test_size=1.0, seed=2)


class TestLoadConfig:
    def test_defaults(self):
        config = load_config()
        assert config == DEFAULT_CONFIG
        assert config is not DEFAULT_CONFIG

    def test_yaml_overrides_merge(self, tmp_path):
        path = tmp_path / "training.yaml"
        path.write_text("model_name: custom\nhyperparams:\n  epochs: 7\n")

        config = load_config(str(path))

        assert config["model_name"] == "custom"
        assert config["hyperparams"]["epochs"] == 7
        assert config["hyperparams"]["batch_size"] == 32
        assert DEFAULT_CONFIG["hyperparams"]["epochs"] == 100


class TestTrainModel:
    def test_end_to_end(self, small_config, tmp_path):
        result = train_model(small_config)

        assert result["model"].trained
        assert result["history"].final_loss < result["history"].initial_loss
        assert result["metrics"].accuracy > 0.8
        assert result["model_name"] == "fraud-risk-lr"

        loaded = FileModelStorage(tmp_path).load("fraud-risk-lr")
        np.testing.assert_array_equal(loaded.weights, result["model"].weights)
        assert loaded.version == "1.0.1"

    def test_reproducible(self, small_config):
        first = train_model(copy.deepcopy(small_config))
        second = train_model(copy.deepcopy(small_config))
        np.testing.assert_array_equal(first["model"].weights, second["model"].weights)
