"""Exception hierarchy for the fraud decisioning domain."""


class FraudguardError(Exception):
    """Base class for all decisioning errors."""


class SignalStoreError(FraudguardError):
    """A historical lookup failed or timed out. Handled fail-open per rule."""

    def __init__(self, lookup: str, reason: str) -> None:
        super().__init__(f"{lookup} lookup failed: {reason}")
        self.lookup = lookup
        self.reason = reason


class TrainingDataError(FraudguardError, ValueError):
    """Training or evaluation input is malformed."""


class ModelStorageError(FraudguardError):
    """Persisting a model blob failed."""


class DecisioningUnavailableError(FraudguardError):
    """The pipeline could not produce a score for this transaction."""
