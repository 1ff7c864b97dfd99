"""Tests for fraud decisioning configuration."""

import pytest

from fraudguard.domains.fraud.config import (
    AmountThresholds,
    FraudConfig,
    LatencySettings,
    ModelSettings,
    PatternThresholds,
    ScoringPolicy,
    VelocityThresholds,
)


class TestDefaults:
    def test_default_values(self):
        config = FraudConfig()
        assert config.velocity.window_minutes == 60
        assert config.velocity.high_count == 10
        assert config.velocity.moderate_count == 5
        assert config.amount.large_min == 10_000.0
        assert config.amount.elevated_min == 5_000.0
        assert config.geo.location_lookback_days == 30
        assert (config.patterns.unusual_hour_start, config.patterns.unusual_hour_end) == (2, 5)
        assert config.scoring.strategy == "rules_only"
        assert config.model.seed == 42


class TestValidation:
    def test_unknown_strategy(self):
        with pytest.raises(ValueError, match="Unknown scoring strategy"):
            ScoringPolicy(strategy="vote")

    def test_weights_must_sum_to_one(self):
        with pytest.raises(ValueError, match="sum to 1.0"):
            ScoringPolicy(strategy="weighted_average", rule_weight=0.7, ml_weight=0.7)

    def test_negative_weight(self):
        with pytest.raises(ValueError):
            ScoringPolicy(rule_weight=-0.2, ml_weight=1.2)

    def test_velocity_thresholds_ordered(self):
        with pytest.raises(ValueError):
            VelocityThresholds(moderate_count=10, high_count=5)

    def test_amount_thresholds_ordered(self):
        with pytest.raises(ValueError):
            AmountThresholds(elevated_min=20_000.0)

    def test_non_positive_rate(self):
        with pytest.raises(ValueError):
            AmountThresholds(reference_rates={"EUR": 0.0})

    def test_hour_window(self):
        with pytest.raises(ValueError):
            PatternThresholds(unusual_hour_start=6, unusual_hour_end=2)

    def test_latency(self):
        with pytest.raises(ValueError):
            LatencySettings(signal_timeout_seconds=0)

    @pytest.mark.parametrize(
        "kwargs", [{"epochs": 0}, {"batch_size": 0}, {"learning_rate": 0.0}]
    )
    def test_model_settings(self, kwargs):
        with pytest.raises(ValueError):
            ModelSettings(**kwargs)


class TestFromEnv:
    def test_overrides(self, monkeypatch):
        monkeypatch.setenv("FRAUD_SCORING_STRATEGY", "weighted_average")
        monkeypatch.setenv("FRAUD_RULE_WEIGHT", "0.5")
        monkeypatch.setenv("FRAUD_ML_WEIGHT", "0.5")
        monkeypatch.setenv("FRAUD_HIGH_RISK_COUNTRIES", "xx, yy")
        monkeypatch.setenv("FRAUD_SIGNAL_TIMEOUT_SECONDS", "0.1")
        monkeypatch.setenv("FRAUD_MODEL_NAME", "custom-lr")

        config = FraudConfig.from_env()

        assert config.scoring.strategy == "weighted_average"
        assert config.scoring.rule_weight == 0.5
        assert config.geo.high_risk_countries == frozenset({"XX", "YY"})
        assert config.latency.signal_timeout_seconds == 0.1
        assert config.model.name == "custom-lr"

    def test_invalid_env_strategy(self, monkeypatch):
        monkeypatch.setenv("FRAUD_SCORING_STRATEGY", "bogus")
        with pytest.raises(ValueError):
            FraudConfig.from_env()

    def test_no_env_matches_defaults(self, monkeypatch):
        for var in (
            "FRAUD_SCORING_STRATEGY",
            "FRAUD_RULE_WEIGHT",
            "FRAUD_ML_WEIGHT",
            "FRAUD_HIGH_RISK_COUNTRIES",
            "FRAUD_SIGNAL_TIMEOUT_SECONDS",
            "FRAUD_DECISION_DEADLINE_SECONDS",
            "FRAUD_MODEL_NAME",
            "FRAUD_TRAINING_SEED",
            "FRAUD_TRAINING_EPOCHS",
            "FRAUD_TRAINING_LEARNING_RATE",
        ):
            monkeypatch.delenv(var, raising=False)
        assert FraudConfig.from_env() == FraudConfig()

    def test_training_overrides(self, monkeypatch):
        monkeypatch.setenv("FRAUD_TRAINING_SEED", "7")
        monkeypatch.setenv("FRAUD_TRAINING_EPOCHS", "12")
        monkeypatch.setenv("FRAUD_TRAINING_LEARNING_RATE", "0.3")

        config = FraudConfig.from_env()

        assert config.model.seed == 7
        assert config.model.epochs == 12
        assert config.model.learning_rate == 0.3

    def test_invalid_training_epochs(self, monkeypatch):
        monkeypatch.setenv("FRAUD_TRAINING_EPOCHS", "0")
        with pytest.raises(ValueError):
            FraudConfig.from_env()
