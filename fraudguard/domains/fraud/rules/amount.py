"""Amount-based rules."""

from ..config import FraudConfig
from ..features import to_reference_amount
from ..models import RiskFlag, RuleResult, TransactionSignal
from ..signals import HistoricalSignals
from .base import FraudRule


class AmountThresholdRule(FraudRule):
    """Triggers for large amounts, compared in the reference currency."""

    rule_id = "amount_threshold"

    def evaluate(
        self,
        request: TransactionSignal,
        history: HistoricalSignals,
        config: FraudConfig,
    ) -> RuleResult:
        thresholds = config.amount
        amount = to_reference_amount(request.amount, request.currency, config)
        description = (
            f"Transaction amount: {request.amount:,.2f} {request.currency} "
            f"({amount:,.2f} {thresholds.reference_currency})"
        )

        if amount > thresholds.large_min:
            return self._triggered(thresholds.large_score, [RiskFlag.LARGE_AMOUNT], description)
        if amount > thresholds.elevated_min:
            return self._triggered(
                thresholds.elevated_score, [RiskFlag.ELEVATED_AMOUNT], description
            )
        return self._not_triggered(description)
