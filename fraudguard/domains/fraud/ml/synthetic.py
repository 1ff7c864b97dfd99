"""Synthetic labelled data for demos and tests.

Fraud rows (fraud_rate of the sample) are drawn from high-amount,
high-velocity, mostly-new-location/device clusters; normal rows from the low
end of every feature. The two clusters are linearly separable.
"""

import numpy as np

from ..features import FEATURE_NAMES

# (low, width) per feature, in FEATURE_NAMES order
_FRAUD_RANGES = np.array([[0.2, 0.8], [0.4, 0.6], [0.5, 0.5], [0.6, 0.4], [0.7, 0.3]])
_NORMAL_RANGES = np.array([[0.0, 0.5], [0.0, 0.3], [0.0, 0.2], [0.0, 0.3], [0.0, 0.2]])


def generate_synthetic_dataset(
    num_samples: int,
    fraud_rate: float = 0.2,
    seed: int = 42,
) -> tuple[np.ndarray, np.ndarray]:
    """Return (features, labels) with features shaped (num_samples, n_features)."""
    if num_samples <= 0:
        raise ValueError(f"num_samples must be positive, got {num_samples}")
    if not 0.0 <= fraud_rate <= 1.0:
        raise ValueError(f"fraud_rate must be within [0, 1], got {fraud_rate}")

    rng = np.random.default_rng(seed)
    labels = (rng.random(num_samples) < fraud_rate).astype(np.float64)
    noise = rng.random((num_samples, len(FEATURE_NAMES)))

    ranges = np.where(labels[:, None, None] == 1.0, _FRAUD_RANGES, _NORMAL_RANGES)
    features = ranges[:, :, 0] + noise * ranges[:, :, 1]
    return features, labels
