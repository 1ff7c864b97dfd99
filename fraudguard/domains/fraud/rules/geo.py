"""Geolocation and device rules."""

from ..config import FraudConfig
from ..features import is_new_device, is_new_location
from ..models import RiskFlag, RuleResult, TransactionSignal
from ..signals import LOOKUP_DEVICE, LOOKUP_LOCATIONS, HistoricalSignals
from .base import FraudRule


class NewLocationRule(FraudRule):
    """Triggers when the country is absent from the customer's recent locations.

    Customers without any location history are never flagged.
    """

    rule_id = "geolocation_check"
    required_lookups = (LOOKUP_LOCATIONS,)

    def evaluate(
        self,
        request: TransactionSignal,
        history: HistoricalSignals,
        config: FraudConfig,
    ) -> RuleResult:
        known = sorted(history.known_countries or ())
        description = f"Country: {request.country} (known: {', '.join(known) or 'none'})"
        if not is_new_location(request, history):
            return self._not_triggered(description)
        return self._triggered(
            config.geo.new_location_score, [RiskFlag.NEW_LOCATION], description
        )


class HighRiskCountryRule(FraudRule):
    """Triggers for countries in the configured high-risk set."""

    rule_id = "high_risk_country"

    def evaluate(
        self,
        request: TransactionSignal,
        history: HistoricalSignals,
        config: FraudConfig,
    ) -> RuleResult:
        country = request.country.upper()
        description = f"Country: {country}"
        if country not in config.geo.high_risk_countries:
            return self._not_triggered(description)
        return self._triggered(
            config.geo.high_risk_score, [RiskFlag.HIGH_RISK_COUNTRY], description
        )


class DeviceFingerprintRule(FraudRule):
    """Triggers when a supplied fingerprint has not been seen for this customer."""

    rule_id = "device_fingerprint"
    required_lookups = (LOOKUP_DEVICE,)

    def evaluate(
        self,
        request: TransactionSignal,
        history: HistoricalSignals,
        config: FraudConfig,
    ) -> RuleResult:
        if not request.device_fingerprint:
            return self._not_triggered("No device fingerprint supplied")
        if not is_new_device(request, history):
            return self._not_triggered("Known device")
        return self._triggered(
            config.patterns.new_device_score, [RiskFlag.NEW_DEVICE], "Unrecognized device"
        )
