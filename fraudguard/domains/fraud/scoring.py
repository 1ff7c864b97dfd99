"""Scoring aggregation and the score -> risk level -> decision policy."""

from collections.abc import Iterable

from .config import ScoringPolicy
from .models import Decision, RiskFlag, RiskLevel, RuleResult

MIN_SCORE = 0
MAX_SCORE = 100

MEDIUM_THRESHOLD = 40
HIGH_THRESHOLD = 70
BLOCK_THRESHOLD = 90


def clamp_score(score: float) -> int:
    return int(max(MIN_SCORE, min(MAX_SCORE, round(score))))


def rule_score(results: Iterable[RuleResult]) -> int:
    """Sum of triggered rule contributions, before any override."""
    return sum(r.score for r in results if r.triggered)


def is_blacklisted(results: Iterable[RuleResult]) -> bool:
    return any(r.triggered and RiskFlag.BLACKLISTED in r.flags for r in results)


def combine_scores(rules: float, model: float | None, policy: ScoringPolicy) -> float:
    """Blend rule and model scores according to the deployment strategy."""
    if model is None or policy.strategy == "rules_only":
        return rules
    if policy.strategy == "max":
        return max(rules, model)
    return policy.rule_weight * rules + policy.ml_weight * model


def aggregate(
    results: list[RuleResult],
    model_score: float | None,
    policy: ScoringPolicy,
) -> int:
    """Final bounded score. The blacklist override is applied last and always wins."""
    if is_blacklisted(results):
        return MAX_SCORE
    return clamp_score(combine_scores(min(rule_score(results), MAX_SCORE), model_score, policy))


def classify_risk_level(score: int) -> RiskLevel:
    if score >= HIGH_THRESHOLD:
        return RiskLevel.HIGH
    if score >= MEDIUM_THRESHOLD:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def make_decision(risk_level: RiskLevel, score: int) -> Decision:
    if risk_level == RiskLevel.HIGH:
        return Decision.BLOCK if score >= BLOCK_THRESHOLD else Decision.REVIEW
    if risk_level == RiskLevel.MEDIUM:
        return Decision.REVIEW
    return Decision.APPROVE


def decide(score: int) -> tuple[RiskLevel, Decision]:
    level = classify_risk_level(score)
    return level, make_decision(level, score)
