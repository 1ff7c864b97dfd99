"""Unit tests for the rule pipeline."""

import pytest

from fraudguard.domains.fraud.config import FraudConfig
from fraudguard.domains.fraud.errors import DecisioningUnavailableError
from fraudguard.domains.fraud.models import RiskFlag
from fraudguard.domains.fraud.rules import ALL_RULES, AmountThresholdRule, FraudRule
from fraudguard.domains.fraud.rules_engine import RulesEngine
from fraudguard.domains.fraud.signals import LOOKUP_LOCATIONS, HistoricalSignals
from fraudguard.domains.fraud.telemetry import DecisionTelemetry
from tests.conftest import make_signal

NEUTRAL = HistoricalSignals(
    velocity_count=0,
    known_countries=frozenset({"US"}),
    is_blacklisted=False,
    is_known_device=True,
)


class ExplodingRule(FraudRule):
    rule_id = "exploding"

    def evaluate(self, request, history, config):
        raise KeyError("missing field")


class TestRulesEngine:
    def test_one_result_per_rule(self):
        engine = RulesEngine()
        evaluation = engine.evaluate(make_signal(), NEUTRAL)

        assert [r.rule_name for r in evaluation.results] == [r.rule_id for r in ALL_RULES]
        assert evaluation.triggered == []
        assert evaluation.failed_rules == []

    def test_triggered_subset(self):
        engine = RulesEngine()
        history = HistoricalSignals(
            velocity_count=12,
            known_countries=frozenset({"US"}),
            is_blacklisted=False,
            is_known_device=True,
        )
        evaluation = engine.evaluate(make_signal(amount=15_000.0), history)

        assert {r.rule_name for r in evaluation.triggered} == {
            "velocity_check",
            "amount_threshold",
        }
        flags = {f for r in evaluation.triggered for f in r.flags}
        assert flags == {RiskFlag.HIGH_VELOCITY, RiskFlag.LARGE_AMOUNT}

    def test_failed_lookup_fails_open(self):
        telemetry = DecisionTelemetry()
        engine = RulesEngine(telemetry=telemetry)
        history = HistoricalSignals(
            velocity_count=0,
            is_blacklisted=False,
            is_known_device=True,
            failures={LOOKUP_LOCATIONS: "timed out after 0.25s"},
        )
        evaluation = engine.evaluate(make_signal(country="FR"), history)

        geo = next(r for r in evaluation.results if r.rule_name == "geolocation_check")
        assert not geo.triggered
        assert geo.score == 0
        assert "lookup failed" in geo.description
        assert evaluation.failed_rules == ["geolocation_check"]
        assert telemetry.summary()["rule_failures"] == {"geolocation_check": 1}

    def test_rule_exception_aborts(self):
        engine = RulesEngine(rules=[AmountThresholdRule(), ExplodingRule()])
        with pytest.raises(DecisioningUnavailableError):
            engine.evaluate(make_signal(), NEUTRAL)

    def test_explicit_config_overrides_default(self):
        engine = RulesEngine(rules=[AmountThresholdRule()])
        config = FraudConfig()
        config.amount.elevated_min = 50.0
        evaluation = engine.evaluate(make_signal(amount=100.0), NEUTRAL, config)
        assert evaluation.results[0].triggered
