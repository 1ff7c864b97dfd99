"""Result sinks for decided fraud checks."""

from collections import OrderedDict
from typing import Protocol

from .models import DecisionResult


class ResultSink(Protocol):
    async def save(self, result: DecisionResult) -> None: ...


class InMemoryResultSink:
    """Keeps the most recent decisions, keyed by transaction id."""

    def __init__(self, max_results: int = 10_000) -> None:
        self._max_results = max_results
        self._results: OrderedDict[str, DecisionResult] = OrderedDict()

    async def save(self, result: DecisionResult) -> None:
        self._results[result.transaction_id] = result
        self._results.move_to_end(result.transaction_id)
        while len(self._results) > self._max_results:
            self._results.popitem(last=False)

    def get(self, transaction_id: str) -> DecisionResult | None:
        return self._results.get(transaction_id)

    def __len__(self) -> int:
        return len(self._results)
