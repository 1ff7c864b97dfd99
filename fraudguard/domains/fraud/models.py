"""Pydantic models for the fraud decisioning domain."""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class RiskFlag(StrEnum):
    HIGH_VELOCITY = "high_velocity"
    MODERATE_VELOCITY = "moderate_velocity"
    LARGE_AMOUNT = "large_amount"
    ELEVATED_AMOUNT = "elevated_amount"
    NEW_LOCATION = "new_location"
    HIGH_RISK_COUNTRY = "high_risk_country"
    BLACKLISTED = "blacklisted"
    UNUSUAL_HOUR = "unusual_hour"
    NEW_DEVICE = "new_device"


class RiskLevel(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Decision(StrEnum):
    APPROVE = "approve"
    REVIEW = "review"
    BLOCK = "block"


class TransactionSignal(BaseModel):
    """Raw signals for one fraud check. Validated at the API edge."""

    model_config = ConfigDict(frozen=True)

    transaction_id: str = Field(min_length=1)
    amount: float = Field(gt=0)
    currency: str = Field(default="USD", min_length=3, max_length=3)
    customer_id: str = Field(min_length=1)
    country: str = Field(min_length=2, max_length=3)
    card_last4: str | None = None
    device_fingerprint: str | None = None
    ip_address: str | None = None
    initiated_at: datetime | None = None


class RuleResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    rule_name: str
    triggered: bool
    score: int = Field(default=0, ge=0)
    description: str = ""
    flags: list[RiskFlag] = []


class DecisionResult(BaseModel):
    """Final, auditable outcome of one fraud check."""

    model_config = ConfigDict(frozen=True, protected_namespaces=())

    transaction_id: str
    score: int = Field(ge=0, le=100)
    risk_level: RiskLevel
    decision: Decision
    flags: list[RiskFlag] = []
    rules: list[RuleResult] = []
    failed_rules: list[str] = []
    model_score: float | None = Field(default=None, ge=0, le=100)
    model_version: str | None = None
    scoring_strategy: str = "rules_only"
    timestamp: datetime
    processing_ms: float = Field(default=0.0, ge=0)


class EvaluationMetrics(BaseModel):
    accuracy: float = Field(ge=0.0, le=1.0)
    precision: float = Field(ge=0.0, le=1.0)
    recall: float = Field(ge=0.0, le=1.0)
    f1_score: float = Field(ge=0.0, le=1.0)
    true_positives: int = 0
    false_positives: int = 0
    true_negatives: int = 0
    false_negatives: int = 0
