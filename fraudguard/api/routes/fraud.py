"""Fraud decisioning endpoints."""

import structlog
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field

from fraudguard.api.dependencies import Services, get_services
from fraudguard.domains.fraud.ml.synthetic import generate_synthetic_dataset
from fraudguard.domains.fraud.ml.train import split_dataset
from fraudguard.domains.fraud.models import DecisionResult, EvaluationMetrics, TransactionSignal

logger = structlog.get_logger()
router = APIRouter(prefix="/api/v1/fraud", tags=["fraud"])


class TrainRequest(BaseModel):
    num_samples: int = Field(default=1000, ge=10, le=100_000)
    fraud_rate: float = Field(default=0.2, ge=0.0, le=1.0)
    test_size: float = Field(default=0.2, gt=0.0, lt=1.0)
    # Unset hyperparameters come from the service's FraudConfig.model
    epochs: int | None = Field(default=None, ge=1, le=1000)
    batch_size: int | None = Field(default=None, ge=1)
    learning_rate: float | None = Field(default=None, gt=0)
    seed: int | None = None


class TrainResponse(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    model_version: str
    initial_loss: float
    final_loss: float
    metrics: EvaluationMetrics
    persisted: bool
    duration_seconds: float


@router.post("/check", response_model=DecisionResult)
async def check_fraud(
    signal: TransactionSignal,
    services: Services = Depends(get_services),  # noqa: B008
) -> DecisionResult:
    result = await services.engine.check(signal)
    services.signal_store.record(signal)
    return result


@router.get("/results/{transaction_id}", response_model=DecisionResult)
async def get_fraud_result(
    transaction_id: str,
    services: Services = Depends(get_services),  # noqa: B008
) -> DecisionResult:
    result = services.result_sink.get(transaction_id)
    if result is None:
        raise HTTPException(status_code=404, detail=f"No decision for {transaction_id}")
    return result


@router.get("/stats")
async def get_fraud_stats(
    services: Services = Depends(get_services),  # noqa: B008
) -> dict:
    return services.telemetry.summary()


@router.get("/model")
async def get_model_info(
    services: Services = Depends(get_services),  # noqa: B008
) -> dict:
    return services.model_server.info()


@router.post("/model/train", response_model=TrainResponse)
async def train_model(
    request: TrainRequest,
    services: Services = Depends(get_services),  # noqa: B008
) -> TrainResponse:
    """Retrain the live model on a seeded synthetic dataset."""
    defaults = services.config.model
    seed = request.seed if request.seed is not None else defaults.seed
    features, labels = generate_synthetic_dataset(
        num_samples=request.num_samples,
        fraud_rate=request.fraud_rate,
        seed=seed,
    )
    x_train, x_test, y_train, y_test = split_dataset(
        features, labels, test_size=request.test_size, seed=seed
    )
    run = await services.model_server.retrain(
        x_train,
        y_train,
        epochs=request.epochs or defaults.epochs,
        batch_size=request.batch_size or defaults.batch_size,
        learning_rate=request.learning_rate or defaults.learning_rate,
        seed=seed,
        eval_vectors=x_test,
        eval_labels=y_test,
    )
    logger.info("model_train_requested", version=run.model.version, persisted=run.persisted)
    return TrainResponse(
        model_version=run.model.version,
        initial_loss=run.history.initial_loss,
        final_loss=run.history.final_loss,
        metrics=run.metrics,
        persisted=run.persisted,
        duration_seconds=round(run.history.duration_seconds, 3),
    )
