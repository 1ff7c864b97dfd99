"""Rule pipeline: runs every evaluator against one request's history."""

from dataclasses import dataclass

import structlog

from .config import FraudConfig, default_config
from .errors import DecisioningUnavailableError
from .models import RuleResult, TransactionSignal
from .rules import ALL_RULES, FraudRule
from .signals import HistoricalSignals
from .telemetry import DecisionTelemetry

logger = structlog.get_logger()


@dataclass(frozen=True)
class RuleEvaluation:
    results: list[RuleResult]
    failed_rules: list[str]

    @property
    def triggered(self) -> list[RuleResult]:
        return [r for r in self.results if r.triggered]


class RulesEngine:
    """Evaluates a transaction against all fraud rules.

    Each rule is independent. A rule whose lookup failed fails open: it
    contributes zero, is marked non-triggered and is reported to telemetry.
    An exception raised by a rule itself is an engine fault and aborts the
    check.
    """

    def __init__(
        self,
        config: FraudConfig | None = None,
        rules: list[FraudRule] | None = None,
        telemetry: DecisionTelemetry | None = None,
    ) -> None:
        self._rules = list(rules if rules is not None else ALL_RULES)
        self._config = config or default_config
        self._telemetry = telemetry
        logger.info("rules_engine_initialized", rule_count=len(self._rules))

    @property
    def rules(self) -> list[FraudRule]:
        return list(self._rules)

    def evaluate(
        self,
        request: TransactionSignal,
        history: HistoricalSignals,
        config: FraudConfig | None = None,
    ) -> RuleEvaluation:
        cfg = config or self._config
        results: list[RuleResult] = []
        failed: list[str] = []

        for rule in self._rules:
            failed_lookups = [name for name in rule.required_lookups if history.failed(name)]
            if failed_lookups:
                reason = "; ".join(f"{n}: {history.failures[n]}" for n in failed_lookups)
                results.append(
                    RuleResult(
                        rule_name=rule.rule_id,
                        triggered=False,
                        description=f"Rule skipped, lookup failed ({reason})",
                    )
                )
                failed.append(rule.rule_id)
                logger.warning(
                    "rule_failed_open",
                    transaction_id=request.transaction_id,
                    rule_id=rule.rule_id,
                    reason=reason,
                )
                if self._telemetry is not None:
                    self._telemetry.record_rule_failure(rule.rule_id, reason)
                continue

            try:
                results.append(rule.evaluate(request, history, cfg))
            except Exception as exc:
                logger.exception(
                    "rule_evaluation_error",
                    transaction_id=request.transaction_id,
                    rule_id=rule.rule_id,
                )
                raise DecisioningUnavailableError(
                    f"rule {rule.rule_id} raised {type(exc).__name__}"
                ) from exc

        evaluation = RuleEvaluation(results=results, failed_rules=failed)
        logger.debug(
            "rules_evaluated",
            transaction_id=request.transaction_id,
            triggered=[r.rule_name for r in evaluation.triggered],
            failed=failed,
        )
        return evaluation
