"""Risk model training pipeline.

Trains the logistic-regression risk model on a seeded synthetic dataset,
evaluates it on a held-out split and writes it to model storage, where the
service picks it up on its next start or reload.

Usage:
    python -m fraudguard.domains.fraud.ml.train --samples 5000 --epochs 100
    python -m fraudguard.domains.fraud.ml.train --config training.yaml
"""

import argparse
import copy
import time
from typing import Any

import numpy as np
import structlog
import yaml

from fraudguard.shared.logging import setup_logging

from .model import RiskModel
from .storage import FileModelStorage
from .synthetic import generate_synthetic_dataset

logger = structlog.get_logger()

DEFAULT_CONFIG: dict[str, Any] = {
    "model_name": "fraud-risk-lr",
    "storage_dir": "models",
    "random_seed": 42,
    "test_size": 0.2,
    "dataset": {
        "num_samples": 5000,
        "fraud_rate": 0.2,
    },
    "hyperparams": {
        "epochs": 100,
        "batch_size": 32,
        "learning_rate": 0.01,
    },
}


def load_config(config_path: str | None = None) -> dict[str, Any]:
    """Load training configuration, merging with defaults."""
    config = copy.deepcopy(DEFAULT_CONFIG)
    if config_path:
        with open(config_path) as f:
            overrides = yaml.safe_load(f)
        if overrides:
            _deep_merge(config, overrides)
    return config


def _deep_merge(base: dict, override: dict) -> None:
    for k, v in override.items():
        if k in base and isinstance(base[k], dict) and isinstance(v, dict):
            _deep_merge(base[k], v)
        else:
            base[k] = v


def split_dataset(
    features: np.ndarray,
    labels: np.ndarray,
    test_size: float,
    seed: int,
) -> tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """Seeded shuffle split into (x_train, x_test, y_train, y_test)."""
    if not 0.0 < test_size < 1.0:
        raise ValueError(f"test_size must be within (0, 1), got {test_size}")
    order = np.random.default_rng(seed).permutation(len(labels))
    n_test = max(1, int(round(len(labels) * test_size)))
    test_idx, train_idx = order[:n_test], order[n_test:]
    return features[train_idx], features[test_idx], labels[train_idx], labels[test_idx]


def train_model(config: dict[str, Any] | None = None) -> dict[str, Any]:
    """Train, evaluate and persist a risk model end-to-end.

    Returns:
        Dictionary with model, history, metrics, and metadata.
    """
    config = config or copy.deepcopy(DEFAULT_CONFIG)
    seed = config["random_seed"]
    model_name = config["model_name"]
    dataset_cfg = config["dataset"]
    hyperparams = config["hyperparams"]

    logger.info("training_pipeline_started", model_name=model_name, seed=seed)
    start_time = time.time()

    features, labels = generate_synthetic_dataset(
        num_samples=dataset_cfg["num_samples"],
        fraud_rate=dataset_cfg["fraud_rate"],
        seed=seed,
    )
    x_train, x_test, y_train, y_test = split_dataset(
        features, labels, test_size=config["test_size"], seed=seed
    )
    logger.info(
        "data_split",
        train_size=len(y_train),
        test_size=len(y_test),
        train_fraud_rate=float(y_train.mean()),
    )

    base = RiskModel(
        weights=np.zeros(features.shape[1]),
        learning_rate=hyperparams["learning_rate"],
    )
    model, history = base.train(
        x_train,
        y_train,
        epochs=hyperparams["epochs"],
        batch_size=hyperparams["batch_size"],
        seed=seed,
    )
    metrics = model.evaluate(x_test, y_test)

    storage = FileModelStorage(config["storage_dir"])
    storage.save(model_name, model)

    training_duration = time.time() - start_time
    logger.info(
        "training_pipeline_completed",
        model_name=model_name,
        version=model.version,
        f1=metrics.f1_score,
        duration_seconds=round(training_duration, 1),
    )

    return {
        "model": model,
        "history": history,
        "metrics": metrics,
        "model_name": model_name,
        "model_path": str(storage.path_for(model_name)),
        "training_duration_seconds": round(training_duration, 1),
        "config": config,
    }


def main():
    parser = argparse.ArgumentParser(
        description="Train the fraud risk logistic-regression model",
        prog="python -m fraudguard.domains.fraud.ml.train",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to training config YAML (optional)",
    )
    parser.add_argument("--samples", type=int, default=None, help="Synthetic sample count")
    parser.add_argument("--epochs", type=int, default=None, help="Training epochs")
    parser.add_argument("--seed", type=int, default=None, help="Random seed for reproducibility")
    parser.add_argument(
        "--storage-dir",
        type=str,
        default=None,
        help="Directory the trained model is written to",
    )
    parser.add_argument("--model-name", type=str, default=None, help="Override model name")
    parser.add_argument("--log-level", type=str, default="INFO")

    args = parser.parse_args()
    setup_logging(args.log_level, json_logs=False)

    config = load_config(args.config)
    if args.samples:
        config["dataset"]["num_samples"] = args.samples
    if args.epochs:
        config["hyperparams"]["epochs"] = args.epochs
    if args.seed is not None:
        config["random_seed"] = args.seed
    if args.storage_dir:
        config["storage_dir"] = args.storage_dir
    if args.model_name:
        config["model_name"] = args.model_name

    result = train_model(config=config)
    metrics = result["metrics"]
    history = result["history"]

    print(f"\nTraining Complete: {result['model_name']}")
    print(f"  Version: {result['model'].version}")
    print(f"  Saved to: {result['model_path']}")
    print(f"  Loss: {history.initial_loss:.4f} -> {history.final_loss:.4f}")
    print(f"  Accuracy: {metrics.accuracy:.4f}")
    print(f"  Precision: {metrics.precision:.4f}")
    print(f"  Recall: {metrics.recall:.4f}")
    print(f"  F1: {metrics.f1_score:.4f}")
    print(f"  Duration: {result['training_duration_seconds']}s")


if __name__ == "__main__":
    main()
