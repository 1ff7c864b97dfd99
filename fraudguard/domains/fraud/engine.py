"""Fraud decision pipeline: history -> features -> rules + model -> score -> decision.

Per request the engine moves through Received, FeaturesExtracted,
RulesEvaluated, Scored, Decided and Persisted. Persisted means the result has
been handed to the result sink: the save and any high-risk alert run as
background tasks, so neither holds the response past its deadline. Their
failures are logged and counted and the decision stands.
"""

import asyncio
import time
from datetime import UTC, datetime

import structlog

from fraudguard.serving.server import ModelServer, PredictionResult

from .alerts import AlertChannel
from .config import FraudConfig, default_config
from .errors import DecisioningUnavailableError
from .features import FeatureVector, extract
from .models import DecisionResult, RiskLevel, TransactionSignal
from .results import ResultSink
from .rules_engine import RulesEngine
from .scoring import aggregate, decide
from .signals import SignalStore, gather_history
from .telemetry import DecisionTelemetry

logger = structlog.get_logger()


class DecisionEngine:
    """Orchestrates one fraud check end to end."""

    def __init__(
        self,
        signal_store: SignalStore,
        model_server: ModelServer | None = None,
        result_sink: ResultSink | None = None,
        alert_channel: AlertChannel | None = None,
        config: FraudConfig | None = None,
        telemetry: DecisionTelemetry | None = None,
    ) -> None:
        self._config = config or default_config
        self._store = signal_store
        self._model_server = model_server
        self._result_sink = result_sink
        self._alert_channel = alert_channel
        self._telemetry = telemetry or DecisionTelemetry()
        self._background: set[asyncio.Task] = set()
        self._rules_engine = RulesEngine(config=self._config, telemetry=self._telemetry)

    @property
    def config(self) -> FraudConfig:
        return self._config

    @property
    def telemetry(self) -> DecisionTelemetry:
        return self._telemetry

    @property
    def model_server(self) -> ModelServer | None:
        return self._model_server

    async def check(
        self,
        signal: TransactionSignal,
        deadline: float | None = None,
    ) -> DecisionResult:
        """Decide on one transaction within ``deadline`` seconds.

        Lookups still running at the deadline are abandoned and their rules
        fail open, so an overrun returns a conservative partial decision
        instead of an error. Only engine-internal faults raise
        DecisioningUnavailableError.
        """
        start = time.perf_counter()
        budget = deadline if deadline is not None else self._config.latency.decision_deadline_seconds
        log = logger.bind(transaction_id=signal.transaction_id)
        log.debug("fraud_check_received")

        try:
            history = await gather_history(self._store, signal, self._config, deadline=budget)
            features = extract(signal, history, self._config)
            log.debug("features_extracted", features=features.as_dict())

            evaluation = self._rules_engine.evaluate(signal, history, self._config)
            prediction = self._predict(features, log)

            model_score = round(prediction.score, 4) if prediction else None
            score = aggregate(evaluation.results, model_score, self._config.scoring)
            log.debug("scored", score=score, model_score=model_score)

            risk_level, decision = decide(score)
        except DecisioningUnavailableError:
            raise
        except Exception as exc:
            log.exception("fraud_check_failed")
            raise DecisioningUnavailableError("decisioning temporarily unavailable") from exc

        flags = [flag for r in evaluation.triggered for flag in r.flags]
        result = DecisionResult(
            transaction_id=signal.transaction_id,
            score=score,
            risk_level=risk_level,
            decision=decision,
            flags=list(dict.fromkeys(flags)),
            rules=evaluation.results,
            failed_rules=evaluation.failed_rules,
            model_score=model_score,
            model_version=prediction.model_version if prediction else None,
            scoring_strategy=self._config.scoring.strategy,
            timestamp=datetime.now(UTC),
            processing_ms=round((time.perf_counter() - start) * 1000, 3),
        )
        log.debug("decided", risk_level=risk_level.value, decision=decision.value)

        if self._result_sink is not None:
            self._spawn(self._result_sink.save(result), result, "persist")
        if result.risk_level == RiskLevel.HIGH and self._alert_channel is not None:
            self._spawn(self._alert_channel.send(result), result, "alert")

        self._telemetry.record_decision(result)
        log.info(
            "decision_made",
            score=result.score,
            risk_level=result.risk_level.value,
            decision=result.decision.value,
            flags=[f.value for f in result.flags],
            failed_rules=result.failed_rules,
            model_score=result.model_score,
            processing_ms=result.processing_ms,
        )
        return result

    def _predict(self, features: FeatureVector, log) -> PredictionResult | None:
        if self._model_server is None:
            return None
        try:
            return self._model_server.predict(features)
        except Exception:
            log.warning("model_scoring_fallback", exc_info=True)
            return None

    def _spawn(self, coro, result: DecisionResult, kind: str) -> None:
        """Run a persist or alert call off the response path.

        Each call is still bounded by the lookup timeout so a hung sink or
        channel cannot accumulate tasks indefinitely.
        """
        task = asyncio.create_task(
            asyncio.wait_for(coro, timeout=self._config.latency.signal_timeout_seconds)
        )
        self._background.add(task)
        task.add_done_callback(
            lambda t: self._side_effect_done(t, result.transaction_id, kind)
        )

    def _side_effect_done(self, task: asyncio.Task, transaction_id: str, kind: str) -> None:
        self._background.discard(task)
        if task.cancelled():
            exc: BaseException = asyncio.CancelledError()
        elif (exc := task.exception()) is None:
            return
        if kind == "persist":
            self._telemetry.record_persist_failure()
            event = "decision_persist_failed"
        else:
            self._telemetry.record_alert_failure()
            event = "fraud_alert_failed"
        logger.error(event, transaction_id=transaction_id, exc_info=exc)

    @property
    def pending_side_effects(self) -> int:
        return len(self._background)

    async def drain(self) -> None:
        """Wait for in-flight persist and alert calls, e.g. before shutdown."""
        if self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)
