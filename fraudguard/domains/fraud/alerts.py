"""Alert channels for high-risk decisions.

Delivery is best-effort: the engine logs and counts channel failures but
never lets them change a decision.
"""

import json
from typing import Protocol

import structlog

from .models import DecisionResult

logger = structlog.get_logger()

DEFAULT_ALERT_TOPIC = "fraudguard.fraud.alerts"


class AlertChannel(Protocol):
    async def send(self, result: DecisionResult) -> None: ...


def alert_payload(result: DecisionResult) -> dict:
    return {
        "alert_type": "high_risk_transaction",
        "transaction_id": result.transaction_id,
        "score": result.score,
        "risk_level": result.risk_level.value,
        "decision": result.decision.value,
        "flags": [f.value for f in result.flags],
        "triggered_rules": [
            {"rule_name": r.rule_name, "score": r.score, "description": r.description}
            for r in result.rules
            if r.triggered
        ],
        "model_score": result.model_score,
        "model_version": result.model_version,
        "timestamp": result.timestamp.isoformat(),
    }


class LoggingAlertChannel:
    """Emits high-risk decisions as warning log events."""

    async def send(self, result: DecisionResult) -> None:
        logger.warning(
            "high_risk_transaction_detected",
            transaction_id=result.transaction_id,
            score=result.score,
            decision=result.decision.value,
            flags=[f.value for f in result.flags],
        )


class KafkaAlertChannel:
    """Publishes alerts to a Kafka topic.

    Args:
        producer: A started aiokafka AIOKafkaProducer instance.
        topic: Destination topic.
    """

    def __init__(self, producer, topic: str = DEFAULT_ALERT_TOPIC) -> None:
        self._producer = producer
        self._topic = topic

    async def send(self, result: DecisionResult) -> None:
        payload = alert_payload(result)
        await self._producer.send_and_wait(
            self._topic,
            value=json.dumps(payload).encode("utf-8"),
            key=result.transaction_id.encode("utf-8"),
        )
        logger.info(
            "alert_published_to_kafka",
            transaction_id=result.transaction_id,
            topic=self._topic,
        )
