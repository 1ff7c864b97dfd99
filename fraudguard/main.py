"""FastAPI application entry point for Fraudguard."""

import contextlib
import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from fraudguard.api.dependencies import build_services, set_services
from fraudguard.api.middleware.error_handler import global_exception_handler
from fraudguard.api.middleware.logging import StructuredLoggingMiddleware
from fraudguard.api.routes.fraud import router as fraud_router
from fraudguard.api.routes.health import router as health_router
from fraudguard.config import settings
from fraudguard.domains.fraud.alerts import KafkaAlertChannel
from fraudguard.domains.fraud.errors import DecisioningUnavailableError
from fraudguard.shared.logging import setup_logging

logger = structlog.get_logger()

# Track app start time for uptime calculation
APP_START_TIME: float = time.time()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: startup and shutdown logic."""
    global APP_START_TIME
    APP_START_TIME = time.time()
    setup_logging(settings.log_level, json_logs=settings.log_json and not settings.debug)

    logger.info(
        "fraudguard_starting",
        app_name=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
    )

    producer = None
    alert_channel = None
    if settings.kafka_bootstrap_servers:
        try:
            from aiokafka import AIOKafkaProducer

            producer = AIOKafkaProducer(bootstrap_servers=settings.kafka_bootstrap_servers)
            await producer.start()
            alert_channel = KafkaAlertChannel(producer, topic=settings.kafka_alert_topic)
            logger.info("kafka_alert_producer_started", topic=settings.kafka_alert_topic)
        except Exception:
            producer = None
            logger.warning("kafka_alert_producer_failed_to_start", exc_info=True)

    services = build_services(alert_channel=alert_channel)
    set_services(services)

    yield

    # Flush pending result saves and alerts before the producer goes away
    await services.engine.drain()
    if producer is not None:
        with contextlib.suppress(Exception):
            await producer.stop()
    logger.info("fraudguard_shutting_down")


app = FastAPI(
    title="Fraudguard",
    description="Fraud risk decisioning engine",
    version=settings.app_version,
    lifespan=lifespan,
)

# Structured logging middleware
app.add_middleware(StructuredLoggingMiddleware)

# Global exception handlers
app.add_exception_handler(DecisioningUnavailableError, global_exception_handler)
app.add_exception_handler(ValueError, global_exception_handler)
app.add_exception_handler(Exception, global_exception_handler)

app.include_router(health_router)
app.include_router(fraud_router)


def get_uptime() -> float:
    return round(time.time() - APP_START_TIME, 1)
