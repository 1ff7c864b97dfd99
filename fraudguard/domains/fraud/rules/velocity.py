"""Velocity and timing rules."""

from ..config import FraudConfig
from ..features import is_unusual_hour, transaction_hour
from ..models import RiskFlag, RuleResult, TransactionSignal
from ..signals import LOOKUP_VELOCITY, HistoricalSignals
from .base import FraudRule


class VelocityRule(FraudRule):
    """Triggers on the customer's transaction count in the trailing window."""

    rule_id = "velocity_check"
    required_lookups = (LOOKUP_VELOCITY,)

    def evaluate(
        self,
        request: TransactionSignal,
        history: HistoricalSignals,
        config: FraudConfig,
    ) -> RuleResult:
        thresholds = config.velocity
        count = history.velocity_count or 0
        description = f"Transaction count in last {thresholds.window_minutes}min: {count}"

        if count > thresholds.high_count:
            return self._triggered(thresholds.high_score, [RiskFlag.HIGH_VELOCITY], description)
        if count > thresholds.moderate_count:
            return self._triggered(
                thresholds.moderate_score, [RiskFlag.MODERATE_VELOCITY], description
            )
        return self._not_triggered(description)


class TimePatternRule(FraudRule):
    """Triggers for transactions during unusual local hours (2-5 AM inclusive)."""

    rule_id = "time_pattern"

    def evaluate(
        self,
        request: TransactionSignal,
        history: HistoricalSignals,
        config: FraudConfig,
    ) -> RuleResult:
        hour = transaction_hour(request)
        description = f"Transaction hour: {hour}"
        if not is_unusual_hour(hour, config):
            return self._not_triggered(description)
        return self._triggered(
            config.patterns.unusual_hour_score, [RiskFlag.UNUSUAL_HOUR], description
        )
