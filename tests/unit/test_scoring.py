"""Unit tests for score aggregation and the decision policy."""

import pytest

from fraudguard.domains.fraud.config import ScoringPolicy
from fraudguard.domains.fraud.models import Decision, RiskFlag, RiskLevel, RuleResult
from fraudguard.domains.fraud.scoring import (
    aggregate,
    classify_risk_level,
    clamp_score,
    combine_scores,
    decide,
    make_decision,
    rule_score,
)


def _result(name: str, score: int, flags: list[RiskFlag] | None = None) -> RuleResult:
    return RuleResult(rule_name=name, triggered=score > 0, score=score, flags=flags or [])


RULES_ONLY = ScoringPolicy()


class TestAggregate:
    def test_sums_triggered_rules(self):
        results = [
            _result("velocity_check", 40, [RiskFlag.HIGH_VELOCITY]),
            _result("amount_threshold", 30, [RiskFlag.LARGE_AMOUNT]),
            _result("time_pattern", 0),
        ]
        assert aggregate(results, None, RULES_ONLY) == 70

    def test_non_triggered_scores_ignored(self):
        results = [RuleResult(rule_name="odd", triggered=False, score=50)]
        assert rule_score(results) == 0
        assert aggregate(results, None, RULES_ONLY) == 0

    def test_capped_at_100(self):
        results = [
            _result("velocity_check", 40),
            _result("amount_threshold", 30),
            _result("high_risk_country", 35),
            _result("geolocation_check", 25),
        ]
        assert aggregate(results, None, RULES_ONLY) == 100

    def test_blacklist_overrides(self):
        results = [
            _result("blacklist_check", 100, [RiskFlag.BLACKLISTED]),
            _result("time_pattern", 10, [RiskFlag.UNUSUAL_HOUR]),
        ]
        assert aggregate(results, 0.0, ScoringPolicy(strategy="weighted_average")) == 100

    def test_empty_results(self):
        assert aggregate([], None, RULES_ONLY) == 0

    def test_rules_only_ignores_model(self):
        results = [_result("amount_threshold", 30)]
        assert aggregate(results, 95.0, RULES_ONLY) == 30

    def test_max_strategy(self):
        results = [_result("amount_threshold", 30)]
        assert aggregate(results, 47.5, ScoringPolicy(strategy="max")) == 48
        assert aggregate(results, 12.0, ScoringPolicy(strategy="max")) == 30

    def test_weighted_average_strategy(self):
        policy = ScoringPolicy(strategy="weighted_average", rule_weight=0.6, ml_weight=0.4)
        results = [_result("amount_threshold", 30)]
        assert aggregate(results, 50.0, policy) == 38

    def test_missing_model_score_falls_back_to_rules(self):
        results = [_result("amount_threshold", 30)]
        assert combine_scores(30, None, ScoringPolicy(strategy="max")) == 30
        assert aggregate(results, None, ScoringPolicy(strategy="weighted_average")) == 30


class TestClampScore:
    @pytest.mark.parametrize(
        "raw, expected",
        [(-5, 0), (0, 0), (39.4, 39), (39.6, 40), (100, 100), (250, 100)],
    )
    def test_clamp(self, raw, expected):
        assert clamp_score(raw) == expected


class TestDecisionPolicy:
    @pytest.mark.parametrize(
        "score, level, decision",
        [
            (0, RiskLevel.LOW, Decision.APPROVE),
            (30, RiskLevel.LOW, Decision.APPROVE),
            (39, RiskLevel.LOW, Decision.APPROVE),
            (40, RiskLevel.MEDIUM, Decision.REVIEW),
            (69, RiskLevel.MEDIUM, Decision.REVIEW),
            (70, RiskLevel.HIGH, Decision.REVIEW),
            (89, RiskLevel.HIGH, Decision.REVIEW),
            (90, RiskLevel.HIGH, Decision.BLOCK),
            (100, RiskLevel.HIGH, Decision.BLOCK),
        ],
    )
    def test_boundaries(self, score, level, decision):
        assert decide(score) == (level, decision)

    def test_total_and_monotonic(self):
        order = {Decision.APPROVE: 0, Decision.REVIEW: 1, Decision.BLOCK: 2}
        levels = {RiskLevel.LOW: 0, RiskLevel.MEDIUM: 1, RiskLevel.HIGH: 2}
        previous = (-1, -1)
        for score in range(0, 101):
            level, decision = decide(score)
            current = (levels[level], order[decision])
            assert current[0] >= previous[0]
            assert current[1] >= previous[1]
            previous = current

    def test_block_requires_high_level(self):
        assert make_decision(RiskLevel.MEDIUM, 95) == Decision.REVIEW
        assert classify_risk_level(95) == RiskLevel.HIGH
