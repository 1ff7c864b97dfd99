"""Model serving layer: owns the live risk model slot.

Inference reads whatever model is installed at the moment of the call; that
reference is one complete, immutable RiskModel, so no lock is needed on the
read path. Retraining is serialized by a single asyncio lock, runs in a
worker thread, and ends with one reference assignment that installs the new
model.
"""

import asyncio
import time
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

import numpy as np
import structlog

from fraudguard.domains.fraud.errors import ModelStorageError
from fraudguard.domains.fraud.features import FeatureVector
from fraudguard.domains.fraud.ml.model import RiskModel, TrainingHistory
from fraudguard.domains.fraud.ml.storage import ModelStorage
from fraudguard.domains.fraud.models import EvaluationMetrics

logger = structlog.get_logger()


@dataclass
class PredictionResult:
    """Standardized prediction output from the risk model."""

    score: float
    model_version: str
    prediction_latency_ms: float
    feature_vector: dict[str, float] = field(default_factory=dict)


@dataclass
class TrainingRun:
    """Outcome of one retraining cycle."""

    model: RiskModel
    history: TrainingHistory
    metrics: EvaluationMetrics
    persisted: bool


class ModelServer:
    """Manages the risk model lifecycle and serves predictions.

    On startup, loads the named model from storage; storage falls back to the
    pretrained default, so the server always has a model once loaded.
    """

    def __init__(
        self,
        storage: ModelStorage | None = None,
        model_name: str = "fraud-risk-lr",
        model: RiskModel | None = None,
    ) -> None:
        self._storage = storage
        self._model_name = model_name
        self._model: RiskModel | None = model
        self._loaded_at: float = time.time() if model is not None else 0.0
        self._train_lock = asyncio.Lock()
        self._last_metrics: EvaluationMetrics | None = None

    @property
    def is_loaded(self) -> bool:
        return self._model is not None

    @property
    def current(self) -> RiskModel | None:
        """Snapshot of the installed model."""
        return self._model

    @property
    def model_name(self) -> str:
        return self._model_name

    @property
    def model_version(self) -> str:
        return self._model.version if self._model is not None else "unknown"

    @property
    def loaded_at(self) -> float:
        return self._loaded_at

    @property
    def last_metrics(self) -> EvaluationMetrics | None:
        return self._last_metrics

    @property
    def is_training(self) -> bool:
        return self._train_lock.locked()

    def install(self, model: RiskModel) -> None:
        """Atomically replace the live model."""
        self._model = model
        self._loaded_at = time.time()
        logger.info("model_installed", name=self._model_name, version=model.version)

    def load_model(self) -> RiskModel:
        """Load the model from storage, or the pretrained default without storage."""
        model = (
            self._storage.load(self._model_name)
            if self._storage is not None
            else RiskModel.pretrained()
        )
        self.install(model)
        return model

    def predict(self, features: FeatureVector) -> PredictionResult | None:
        """Score one feature vector, or None when no model is installed."""
        model = self._model
        if model is None:
            logger.debug("predict_skipped_no_model")
            return None

        start = time.perf_counter()
        score = model.predict(features)
        latency_ms = (time.perf_counter() - start) * 1000
        return PredictionResult(
            score=score,
            model_version=model.version,
            prediction_latency_ms=round(latency_ms, 4),
            feature_vector=features.as_dict(),
        )

    async def retrain(
        self,
        vectors: Sequence[FeatureVector] | np.ndarray,
        labels: Sequence[float] | np.ndarray,
        epochs: int = 100,
        batch_size: int = 32,
        learning_rate: float | None = None,
        seed: int = 42,
        eval_vectors: Sequence[FeatureVector] | np.ndarray | None = None,
        eval_labels: Sequence[float] | np.ndarray | None = None,
    ) -> TrainingRun:
        """Train from the current model, install the result and persist it.

        Only one retrain runs at a time; concurrent callers queue on the lock.
        A persistence failure is logged and leaves the new model installed.
        """
        async with self._train_lock:
            base = self._model or RiskModel.untrained()
            trained, history = await asyncio.to_thread(
                base.train,
                vectors,
                labels,
                epochs=epochs,
                batch_size=batch_size,
                learning_rate=learning_rate,
                seed=seed,
            )
            if eval_vectors is not None and eval_labels is not None:
                metrics = await asyncio.to_thread(trained.evaluate, eval_vectors, eval_labels)
            else:
                metrics = await asyncio.to_thread(trained.evaluate, vectors, labels)

            self.install(trained)
            self._last_metrics = metrics

            persisted = False
            if self._storage is not None:
                try:
                    await asyncio.to_thread(self._storage.save, self._model_name, trained)
                    persisted = True
                except ModelStorageError:
                    logger.exception("model_persist_failed", name=self._model_name)

            logger.info(
                "model_retrained",
                name=self._model_name,
                previous_version=base.version,
                version=trained.version,
                accuracy=round(metrics.accuracy, 4),
                f1=round(metrics.f1_score, 4),
                persisted=persisted,
            )
            return TrainingRun(model=trained, history=history, metrics=metrics, persisted=persisted)

    def info(self) -> dict[str, Any]:
        model = self._model
        return {
            "name": self._model_name,
            "loaded": model is not None,
            "version": model.version if model else None,
            "trained": model.trained if model else False,
            "weights": model.weight_map if model else {},
            "bias": model.bias if model else None,
            "learning_rate": model.learning_rate if model else None,
            "loaded_at": self._loaded_at,
            "training_in_progress": self.is_training,
            "last_metrics": self._last_metrics.model_dump() if self._last_metrics else None,
        }
