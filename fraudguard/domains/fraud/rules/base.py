"""Abstract base class for fraud decisioning rules."""

from abc import ABC, abstractmethod

from ..config import FraudConfig
from ..models import RiskFlag, RuleResult, TransactionSignal
from ..signals import HistoricalSignals


class FraudRule(ABC):
    """Base class for all fraud rules.

    Rules are pure: they read the request, the history fetched for it and the
    config, and return a RuleResult. They never touch the Signal Store
    directly, so their evaluation order does not matter.
    """

    rule_id: str
    # Lookups whose failure makes this rule fail open
    required_lookups: tuple[str, ...] = ()

    @abstractmethod
    def evaluate(
        self,
        request: TransactionSignal,
        history: HistoricalSignals,
        config: FraudConfig,
    ) -> RuleResult:
        """Evaluate this rule and return a RuleResult."""
        ...

    def _not_triggered(self, description: str = "") -> RuleResult:
        """Convenience: return a non-triggered result for this rule."""
        return RuleResult(rule_name=self.rule_id, triggered=False, description=description)

    def _triggered(self, score: int, flags: list[RiskFlag], description: str) -> RuleResult:
        """Convenience: return a triggered result for this rule."""
        return RuleResult(
            rule_name=self.rule_id,
            triggered=True,
            score=score,
            description=description,
            flags=flags,
        )
