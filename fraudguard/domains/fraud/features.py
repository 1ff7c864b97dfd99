"""Feature extraction for the logistic-regression risk model.

Feature Schema
--------------
| Feature       | Computation                                         |
|---------------|-----------------------------------------------------|
| amount        | min(reference_amount / 10000, 1.0)                  |
| velocity      | min(transactions in trailing hour / 20, 1.0)        |
| new_location  | 1.0 if country is absent from known countries       |
| unusual_hour  | 1.0 if the local hour falls in the suspicious window |
| new_device    | 1.0 if the supplied fingerprint is unknown          |

Model weights are calibrated against exactly these normalizations, so any
change here requires bumping FEATURE_SCHEMA_VERSION and retraining.
"""

import math
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum

import numpy as np

from .config import FraudConfig, default_config
from .models import TransactionSignal
from .signals import HistoricalSignals

FEATURE_SCHEMA_VERSION = "1"

AMOUNT_SCALE = 10_000.0
VELOCITY_SCALE = 20.0


class FeatureName(StrEnum):
    AMOUNT = "amount"
    VELOCITY = "velocity"
    NEW_LOCATION = "new_location"
    UNUSUAL_HOUR = "unusual_hour"
    NEW_DEVICE = "new_device"


FEATURE_NAMES: tuple[FeatureName, ...] = tuple(FeatureName)


@dataclass(frozen=True, eq=False)
class FeatureVector:
    """Normalized features, stored in FEATURE_NAMES order."""

    _values: np.ndarray

    def __post_init__(self):
        values = np.asarray(self._values, dtype=np.float64).reshape(-1).copy()
        if values.shape != (len(FEATURE_NAMES),):
            raise ValueError(
                f"expected {len(FEATURE_NAMES)} feature values, got {values.shape[0]}"
            )
        values.setflags(write=False)
        object.__setattr__(self, "_values", values)

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, float]) -> "FeatureVector":
        """Build from a name->value mapping. Unknown names are ignored, missing ones are 0.0."""
        return cls(np.array([_normalize_unit(mapping.get(name, 0.0)) for name in FEATURE_NAMES]))

    @property
    def values(self) -> np.ndarray:
        return self._values

    def __getitem__(self, name: str) -> float:
        return float(self._values[FEATURE_NAMES.index(FeatureName(name))])

    def as_dict(self) -> dict[str, float]:
        return {name.value: float(v) for name, v in zip(FEATURE_NAMES, self._values, strict=True)}

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FeatureVector):
            return NotImplemented
        return bool(np.array_equal(self._values, other._values))

    def __hash__(self) -> int:
        return hash(self._values.tobytes())

    def __repr__(self) -> str:
        return f"FeatureVector({self.as_dict()})"


def _normalize_unit(value) -> float:
    try:
        v = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(v) or v <= 0:
        return 0.0
    return min(v, 1.0)


def _ratio(value, scale: float) -> float:
    try:
        v = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(v) or v <= 0:
        return 0.0
    return min(v / scale, 1.0)


def extract_features(
    amount: float | None = None,
    velocity_count: int | None = None,
    is_new_location: bool | None = None,
    is_unusual_hour: bool | None = None,
    is_new_device: bool | None = None,
) -> FeatureVector:
    """Map raw inputs to a FeatureVector. Never raises; unknowns are 0.0."""
    return FeatureVector(
        np.array(
            [
                _ratio(amount, AMOUNT_SCALE),
                _ratio(velocity_count, VELOCITY_SCALE),
                1.0 if is_new_location else 0.0,
                1.0 if is_unusual_hour else 0.0,
                1.0 if is_new_device else 0.0,
            ]
        )
    )


def to_reference_amount(amount: float, currency: str, config: FraudConfig) -> float:
    """Convert an amount into the configured reference currency.

    Currencies without a configured rate are taken at par.
    """
    rate = config.amount.reference_rates.get(currency.upper(), 1.0)
    return amount * rate


def transaction_hour(signal: TransactionSignal) -> int:
    """Hour on the timestamp's own clock, or the local wall clock when absent."""
    if signal.initiated_at is not None:
        return signal.initiated_at.hour
    return datetime.now().astimezone().hour


def is_unusual_hour(hour: int, config: FraudConfig) -> bool:
    return config.patterns.unusual_hour_start <= hour <= config.patterns.unusual_hour_end


def is_new_location(signal: TransactionSignal, history: HistoricalSignals) -> bool:
    """New only when the customer has location history that lacks this country."""
    if not history.known_countries:
        return False
    return signal.country.upper() not in {c.upper() for c in history.known_countries}


def is_new_device(signal: TransactionSignal, history: HistoricalSignals) -> bool:
    if not signal.device_fingerprint or history.is_known_device is None:
        return False
    return not history.is_known_device


def extract(
    signal: TransactionSignal,
    history: HistoricalSignals,
    config: FraudConfig | None = None,
) -> FeatureVector:
    """Features for one request from its signal and the fetched history."""
    cfg = config or default_config
    return extract_features(
        amount=to_reference_amount(signal.amount, signal.currency, cfg),
        velocity_count=history.velocity_count,
        is_new_location=is_new_location(signal, history),
        is_unusual_hour=is_unusual_hour(transaction_hour(signal), cfg),
        is_new_device=is_new_device(signal, history),
    )
