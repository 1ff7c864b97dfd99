"""Fraud decisioning configuration with sensible defaults."""

import os
from dataclasses import dataclass, field

SCORING_STRATEGIES = ("rules_only", "max", "weighted_average")


@dataclass
class VelocityThresholds:
    window_minutes: int = 60
    high_count: int = 10
    moderate_count: int = 5
    high_score: int = 40
    moderate_score: int = 20

    def __post_init__(self):
        if self.window_minutes <= 0:
            raise ValueError(f"window_minutes must be positive, got {self.window_minutes}")
        if not 0 <= self.moderate_count < self.high_count:
            raise ValueError(
                f"moderate_count ({self.moderate_count}) must be below "
                f"high_count ({self.high_count})"
            )


@dataclass
class AmountThresholds:
    large_min: float = 10_000.0
    elevated_min: float = 5_000.0
    large_score: int = 30
    elevated_score: int = 15
    reference_currency: str = "USD"
    # Units of reference currency per unit of the keyed currency
    reference_rates: dict[str, float] = field(default_factory=lambda: {"USD": 1.0})

    def __post_init__(self):
        if not 0 <= self.elevated_min < self.large_min:
            raise ValueError(
                f"elevated_min ({self.elevated_min}) must be below large_min ({self.large_min})"
            )
        for currency, rate in self.reference_rates.items():
            if rate <= 0:
                raise ValueError(f"reference rate for {currency} must be positive, got {rate}")


@dataclass
class GeoThresholds:
    location_lookback_days: int = 30
    new_location_score: int = 25
    high_risk_score: int = 35
    high_risk_countries: frozenset[str] = frozenset({"KP", "IR", "SY", "CU"})


@dataclass
class PatternThresholds:
    # Inclusive local-clock window
    unusual_hour_start: int = 2
    unusual_hour_end: int = 5
    unusual_hour_score: int = 10
    new_device_score: int = 15

    def __post_init__(self):
        if not 0 <= self.unusual_hour_start <= self.unusual_hour_end <= 23:
            raise ValueError(
                f"invalid unusual hour window {self.unusual_hour_start}-{self.unusual_hour_end}"
            )


@dataclass
class ScoringPolicy:
    """How rule and model scores are combined.

    - 'rules_only': model score is recorded on the decision but not used
    - 'max': score = max(rule_score, model_score)
    - 'weighted_average': score = rule_weight * rules + ml_weight * model
    """

    strategy: str = "rules_only"
    rule_weight: float = 0.6
    ml_weight: float = 0.4

    def __post_init__(self):
        if self.strategy not in SCORING_STRATEGIES:
            raise ValueError(
                f"Unknown scoring strategy {self.strategy!r}, expected one of {SCORING_STRATEGIES}"
            )
        if self.rule_weight < 0 or self.ml_weight < 0:
            raise ValueError("Scoring weights must be non-negative")
        total = self.rule_weight + self.ml_weight
        if abs(total - 1.0) > 0.01:
            raise ValueError(f"Scoring weights must sum to 1.0, got {total}")


@dataclass
class LatencySettings:
    signal_timeout_seconds: float = 0.25
    decision_deadline_seconds: float | None = 1.0

    def __post_init__(self):
        if self.signal_timeout_seconds <= 0:
            raise ValueError("signal_timeout_seconds must be positive")
        if self.decision_deadline_seconds is not None and self.decision_deadline_seconds <= 0:
            raise ValueError("decision_deadline_seconds must be positive")


@dataclass
class ModelSettings:
    name: str = "fraud-risk-lr"
    epochs: int = 100
    batch_size: int = 32
    learning_rate: float = 0.01
    seed: int = 42

    def __post_init__(self):
        if self.epochs <= 0 or self.batch_size <= 0:
            raise ValueError("epochs and batch_size must be positive")
        if self.learning_rate <= 0:
            raise ValueError(f"learning_rate must be positive, got {self.learning_rate}")


@dataclass
class FraudConfig:
    velocity: VelocityThresholds = field(default_factory=VelocityThresholds)
    amount: AmountThresholds = field(default_factory=AmountThresholds)
    geo: GeoThresholds = field(default_factory=GeoThresholds)
    patterns: PatternThresholds = field(default_factory=PatternThresholds)
    scoring: ScoringPolicy = field(default_factory=ScoringPolicy)
    latency: LatencySettings = field(default_factory=LatencySettings)
    model: ModelSettings = field(default_factory=ModelSettings)

    @classmethod
    def from_env(cls) -> "FraudConfig":
        """Load config with env var overrides. Env vars use FRAUD_ prefix."""
        config = cls()

        if v := os.getenv("FRAUD_HIGH_RISK_COUNTRIES"):
            config.geo.high_risk_countries = frozenset(
                c.strip().upper() for c in v.split(",") if c.strip()
            )

        # Latency overrides
        if v := os.getenv("FRAUD_SIGNAL_TIMEOUT_SECONDS"):
            config.latency.signal_timeout_seconds = float(v)
        if v := os.getenv("FRAUD_DECISION_DEADLINE_SECONDS"):
            config.latency.decision_deadline_seconds = float(v)

        # Scoring policy is rebuilt so the combination is validated as a whole
        strategy = os.getenv("FRAUD_SCORING_STRATEGY", config.scoring.strategy)
        rule_weight = float(os.getenv("FRAUD_RULE_WEIGHT", config.scoring.rule_weight))
        ml_weight = float(os.getenv("FRAUD_ML_WEIGHT", config.scoring.ml_weight))
        config.scoring = ScoringPolicy(
            strategy=strategy, rule_weight=rule_weight, ml_weight=ml_weight
        )

        # Model overrides
        if v := os.getenv("FRAUD_MODEL_NAME"):
            config.model.name = v
        if v := os.getenv("FRAUD_TRAINING_SEED"):
            config.model.seed = int(v)
        if v := os.getenv("FRAUD_TRAINING_EPOCHS"):
            config.model.epochs = int(v)
        if v := os.getenv("FRAUD_TRAINING_LEARNING_RATE"):
            config.model.learning_rate = float(v)

        config.latency.__post_init__()
        config.model.__post_init__()
        return config


# Module-level default instance
default_config = FraudConfig()
