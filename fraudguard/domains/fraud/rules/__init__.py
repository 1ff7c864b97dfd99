"""Fraud decisioning rules package.

Exports ALL_RULES (list of all rule instances) and individual rule classes
for direct use.
"""

from .amount import AmountThresholdRule
from .base import FraudRule
from .blacklist import BLACKLIST_SCORE, BlacklistRule
from .geo import DeviceFingerprintRule, HighRiskCountryRule, NewLocationRule
from .velocity import TimePatternRule, VelocityRule

# Reporting order; evaluation is order-independent
ALL_RULES: list[FraudRule] = [
    VelocityRule(),
    AmountThresholdRule(),
    NewLocationRule(),
    HighRiskCountryRule(),
    BlacklistRule(),
    TimePatternRule(),
    DeviceFingerprintRule(),
]

__all__ = [
    "ALL_RULES",
    "BLACKLIST_SCORE",
    "FraudRule",
    "AmountThresholdRule",
    "BlacklistRule",
    "DeviceFingerprintRule",
    "HighRiskCountryRule",
    "NewLocationRule",
    "TimePatternRule",
    "VelocityRule",
]
