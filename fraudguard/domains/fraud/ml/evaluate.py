"""Evaluation metrics for the fraud risk model."""

import numpy as np
import structlog

from ..models import EvaluationMetrics

logger = structlog.get_logger()

DECISION_THRESHOLD = 0.5


def compute_metrics(y_true: np.ndarray, y_prob: np.ndarray) -> EvaluationMetrics:
    """Confusion-matrix metrics at the 0.5 threshold.

    A probability strictly above the threshold counts as a fraud prediction.
    Precision, recall and F1 are 0.0 when their denominator is zero.
    """
    actual = np.asarray(y_true) > DECISION_THRESHOLD
    predicted = np.asarray(y_prob) > DECISION_THRESHOLD

    tp = int(np.sum(predicted & actual))
    fp = int(np.sum(predicted & ~actual))
    tn = int(np.sum(~predicted & ~actual))
    fn = int(np.sum(~predicted & actual))
    total = tp + fp + tn + fn

    accuracy = (tp + tn) / total if total else 0.0
    precision = tp / (tp + fp) if (tp + fp) else 0.0
    recall = tp / (tp + fn) if (tp + fn) else 0.0
    f1 = 2 * precision * recall / (precision + recall) if (precision + recall) else 0.0

    metrics = EvaluationMetrics(
        accuracy=accuracy,
        precision=precision,
        recall=recall,
        f1_score=f1,
        true_positives=tp,
        false_positives=fp,
        true_negatives=tn,
        false_negatives=fn,
    )
    logger.info("model_evaluated", **metrics.model_dump())
    return metrics
