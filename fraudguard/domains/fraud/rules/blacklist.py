"""Blacklist rule. A hit forces the final score to 100."""

from ..config import FraudConfig
from ..models import RiskFlag, RuleResult, TransactionSignal
from ..signals import LOOKUP_BLACKLIST, HistoricalSignals
from .base import FraudRule

BLACKLIST_SCORE = 100


class BlacklistRule(FraudRule):
    rule_id = "blacklist_check"
    required_lookups = (LOOKUP_BLACKLIST,)

    def evaluate(
        self,
        request: TransactionSignal,
        history: HistoricalSignals,
        config: FraudConfig,
    ) -> RuleResult:
        if not history.is_blacklisted:
            return self._not_triggered("Customer and card not blacklisted")
        return self._triggered(
            BLACKLIST_SCORE, [RiskFlag.BLACKLISTED], "Customer or card is blacklisted"
        )
