"""Fraud decisioning domain."""

from .config import FraudConfig
from .engine import DecisionEngine
from .features import FeatureName, FeatureVector, extract, extract_features
from .models import (
    Decision,
    DecisionResult,
    EvaluationMetrics,
    RiskFlag,
    RiskLevel,
    RuleResult,
    TransactionSignal,
)
from .rules import ALL_RULES
from .rules_engine import RulesEngine

__all__ = [
    "ALL_RULES",
    "Decision",
    "DecisionEngine",
    "DecisionResult",
    "EvaluationMetrics",
    "FeatureName",
    "FeatureVector",
    "FraudConfig",
    "RiskFlag",
    "RiskLevel",
    "RuleResult",
    "RulesEngine",
    "TransactionSignal",
    "extract",
    "extract_features",
]
