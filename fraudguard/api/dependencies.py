"""Service wiring shared by the API routes and the application lifespan."""

from dataclasses import dataclass

import structlog

from fraudguard.config import Settings, settings
from fraudguard.domains.fraud.alerts import AlertChannel, LoggingAlertChannel
from fraudguard.domains.fraud.config import FraudConfig
from fraudguard.domains.fraud.engine import DecisionEngine
from fraudguard.domains.fraud.ml.storage import FileModelStorage
from fraudguard.domains.fraud.results import InMemoryResultSink
from fraudguard.domains.fraud.signals import InMemorySignalStore
from fraudguard.domains.fraud.telemetry import DecisionTelemetry
from fraudguard.serving.server import ModelServer

logger = structlog.get_logger()


@dataclass
class Services:
    engine: DecisionEngine
    model_server: ModelServer
    signal_store: InMemorySignalStore
    result_sink: InMemoryResultSink
    telemetry: DecisionTelemetry
    config: FraudConfig


def build_services(
    app_settings: Settings | None = None,
    fraud_config: FraudConfig | None = None,
    alert_channel: AlertChannel | None = None,
    signal_store: InMemorySignalStore | None = None,
) -> Services:
    app_settings = app_settings or settings
    fraud_config = fraud_config or FraudConfig.from_env()

    model_server = ModelServer(
        storage=FileModelStorage(app_settings.storage_dir),
        model_name=fraud_config.model.name,
    )
    model_server.load_model()

    signal_store = signal_store or InMemorySignalStore()
    result_sink = InMemoryResultSink()
    telemetry = DecisionTelemetry()
    engine = DecisionEngine(
        signal_store=signal_store,
        model_server=model_server,
        result_sink=result_sink,
        alert_channel=alert_channel or LoggingAlertChannel(),
        config=fraud_config,
        telemetry=telemetry,
    )
    logger.info(
        "services_built",
        model_version=model_server.model_version,
        scoring_strategy=fraud_config.scoring.strategy,
    )
    return Services(
        engine=engine,
        model_server=model_server,
        signal_store=signal_store,
        result_sink=result_sink,
        telemetry=telemetry,
        config=fraud_config,
    )


_services: Services | None = None


def get_services() -> Services:
    """Get or create the process-wide services."""
    global _services
    if _services is None:
        _services = build_services()
    return _services


def set_services(services: Services | None) -> None:
    global _services
    _services = services
