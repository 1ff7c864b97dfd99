"""Logistic-regression fraud risk model.

A RiskModel is an immutable value. Inference reads it without locks from any
number of concurrent callers; training never mutates it and instead returns a
new, fully formed model that the owner installs in one reference swap.
"""

import math
import time
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

import numpy as np
import structlog

from ..errors import TrainingDataError
from ..features import FEATURE_NAMES, FEATURE_SCHEMA_VERSION, FeatureVector
from ..models import EvaluationMetrics
from .evaluate import compute_metrics

logger = structlog.get_logger()

DEFAULT_VERSION = "1.0.0"
DEFAULT_LEARNING_RATE = 0.01
PROBABILITY_EPSILON = 1e-15

# Calibrated against the feature normalizations in features.py
PRETRAINED_WEIGHTS: dict[str, float] = {
    "amount": 0.35,
    "velocity": 0.28,
    "new_location": 0.18,
    "unusual_hour": 0.12,
    "new_device": 0.07,
}
PRETRAINED_BIAS = -0.45


def _sigmoid(z: np.ndarray | float) -> np.ndarray | float:
    return 1.0 / (1.0 + np.exp(-np.clip(z, -500.0, 500.0)))


def _bump_version(version: str) -> str:
    parts = version.split(".")
    if parts and parts[-1].isdigit():
        parts[-1] = str(int(parts[-1]) + 1)
        return ".".join(parts)
    return f"{version}.1"


@dataclass
class TrainingHistory:
    """Per-epoch average loss and accuracy, measured during the epoch."""

    losses: list[float] = field(default_factory=list)
    accuracies: list[float] = field(default_factory=list)
    duration_seconds: float = 0.0

    @property
    def initial_loss(self) -> float:
        return self.losses[0] if self.losses else math.nan

    @property
    def final_loss(self) -> float:
        return self.losses[-1] if self.losses else math.nan


@dataclass(frozen=True, eq=False)
class RiskModel:
    weights: np.ndarray
    bias: float = 0.0
    learning_rate: float = DEFAULT_LEARNING_RATE
    trained: bool = False
    version: str = DEFAULT_VERSION

    def __post_init__(self):
        weights = np.asarray(self.weights, dtype=np.float64).reshape(-1).copy()
        if weights.shape != (len(FEATURE_NAMES),):
            raise ValueError(f"expected {len(FEATURE_NAMES)} weights, got {weights.shape[0]}")
        weights.setflags(write=False)
        object.__setattr__(self, "weights", weights)
        object.__setattr__(self, "bias", float(self.bias))

    @classmethod
    def untrained(cls) -> "RiskModel":
        return cls(weights=np.zeros(len(FEATURE_NAMES)))

    @classmethod
    def pretrained(cls) -> "RiskModel":
        """Fixed default used whenever no usable persisted model exists."""
        return cls.from_weight_map(
            PRETRAINED_WEIGHTS,
            bias=PRETRAINED_BIAS,
            learning_rate=DEFAULT_LEARNING_RATE,
            trained=True,
            version=DEFAULT_VERSION,
        )

    @classmethod
    def from_weight_map(cls, weights: Mapping[str, float], **kwargs: Any) -> "RiskModel":
        """Unknown feature names are ignored; missing ones get weight 0.0."""
        return cls(
            weights=np.array([float(weights.get(name, 0.0)) for name in FEATURE_NAMES]),
            **kwargs,
        )

    @property
    def weight_map(self) -> dict[str, float]:
        return {name.value: float(w) for name, w in zip(FEATURE_NAMES, self.weights, strict=True)}

    def _probabilities(self, x: np.ndarray) -> np.ndarray:
        return _sigmoid(x @ self.weights + self.bias)

    def predict(self, features: FeatureVector) -> float:
        """Fraud probability scaled to [0, 100]."""
        z = self.bias + float(np.dot(self.weights, features.values))
        return float(_sigmoid(z)) * 100.0

    def train(
        self,
        vectors: Sequence[FeatureVector] | np.ndarray,
        labels: Sequence[float] | np.ndarray,
        epochs: int = 100,
        batch_size: int = 32,
        learning_rate: float | None = None,
        seed: int = 0,
    ) -> tuple["RiskModel", TrainingHistory]:
        """Mini-batch gradient descent on binary cross-entropy.

        Returns a new model and the training history. The receiver is left
        untouched. Shuffling uses a generator seeded from ``seed`` so runs are
        reproducible.
        """
        x, y = _as_dataset(vectors, labels)
        if epochs <= 0:
            raise TrainingDataError(f"epochs must be positive, got {epochs}")
        if batch_size <= 0:
            raise TrainingDataError(f"batch_size must be positive, got {batch_size}")
        lr = self.learning_rate if learning_rate is None else float(learning_rate)
        if lr <= 0:
            raise TrainingDataError(f"learning_rate must be positive, got {lr}")

        rng = np.random.default_rng(seed)
        weights = np.array(self.weights, dtype=np.float64)
        bias = self.bias
        history = TrainingHistory()
        n = len(y)
        start = time.perf_counter()

        logger.info("training_started", samples=n, epochs=epochs, batch_size=batch_size, lr=lr)

        for epoch in range(epochs):
            order = rng.permutation(n)
            epoch_loss = 0.0
            correct = 0

            for offset in range(0, n, batch_size):
                idx = order[offset : offset + batch_size]
                xb, yb = x[idx], y[idx]

                pred = _sigmoid(xb @ weights + bias)
                clipped = np.clip(pred, PROBABILITY_EPSILON, 1.0 - PROBABILITY_EPSILON)
                epoch_loss += float(
                    -np.sum(yb * np.log(clipped) + (1.0 - yb) * np.log(1.0 - clipped))
                )
                correct += int(np.sum((pred > 0.5) == (yb == 1.0)))

                error = pred - yb
                weights -= lr * (xb.T @ error) / len(idx)
                bias -= lr * float(np.sum(error)) / len(idx)

            history.losses.append(epoch_loss / n)
            history.accuracies.append(correct / n)
            if epoch % 10 == 0 or epoch == epochs - 1:
                logger.debug(
                    "training_epoch",
                    epoch=epoch + 1,
                    epochs=epochs,
                    loss=round(history.losses[-1], 6),
                    accuracy=round(history.accuracies[-1], 4),
                )

        history.duration_seconds = time.perf_counter() - start
        trained = RiskModel(
            weights=weights,
            bias=bias,
            learning_rate=lr,
            trained=True,
            version=_bump_version(self.version),
        )
        logger.info(
            "training_completed",
            version=trained.version,
            initial_loss=round(history.initial_loss, 6),
            final_loss=round(history.final_loss, 6),
            duration_seconds=round(history.duration_seconds, 3),
        )
        return trained, history

    def evaluate(
        self,
        vectors: Sequence[FeatureVector] | np.ndarray,
        labels: Sequence[float] | np.ndarray,
    ) -> EvaluationMetrics:
        x, y = _as_dataset(vectors, labels)
        return compute_metrics(y, self._probabilities(x))

    def to_dict(self) -> dict[str, Any]:
        return {
            "weights": self.weight_map,
            "bias": self.bias,
            "learning_rate": self.learning_rate,
            "trained": self.trained,
            "version": self.version,
            "feature_schema_version": FEATURE_SCHEMA_VERSION,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RiskModel":
        schema = str(data.get("feature_schema_version", FEATURE_SCHEMA_VERSION))
        if schema != FEATURE_SCHEMA_VERSION:
            raise ValueError(
                f"model was trained on feature schema {schema}, "
                f"current schema is {FEATURE_SCHEMA_VERSION}"
            )
        weights = data["weights"]
        if not isinstance(weights, Mapping):
            raise ValueError("weights must be a mapping of feature name to weight")
        model = cls.from_weight_map(
            weights,
            bias=float(data.get("bias", 0.0)),
            learning_rate=float(data.get("learning_rate", DEFAULT_LEARNING_RATE)),
            trained=bool(data.get("trained", False)),
            version=str(data.get("version", DEFAULT_VERSION)),
        )
        if not (np.all(np.isfinite(model.weights)) and math.isfinite(model.bias)):
            raise ValueError("model parameters must be finite")
        return model

    def __repr__(self) -> str:
        return (
            f"RiskModel(version={self.version!r}, trained={self.trained}, "
            f"bias={self.bias:.4f}, weights={self.weight_map})"
        )


def _as_dataset(
    vectors: Sequence[FeatureVector] | np.ndarray,
    labels: Sequence[float] | np.ndarray,
) -> tuple[np.ndarray, np.ndarray]:
    if isinstance(vectors, np.ndarray):
        x = np.asarray(vectors, dtype=np.float64)
    else:
        x = np.array([v.values for v in vectors], dtype=np.float64)
    y = np.asarray(labels, dtype=np.float64).reshape(-1)

    if len(y) == 0 or x.shape[0] == 0:
        raise TrainingDataError("dataset is empty")
    if x.ndim != 2 or x.shape[1] != len(FEATURE_NAMES):
        raise TrainingDataError(
            f"expected feature matrix of shape (n, {len(FEATURE_NAMES)}), got {x.shape}"
        )
    if x.shape[0] != len(y):
        raise TrainingDataError(f"got {x.shape[0]} samples and {len(y)} labels")
    if not np.all((y == 0.0) | (y == 1.0)):
        raise TrainingDataError("labels must be 0 or 1")
    if not np.all(np.isfinite(x)):
        raise TrainingDataError("feature values must be finite")
    return x, y
