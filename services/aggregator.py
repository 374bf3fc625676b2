"""Utilisation aggregation over a sample store."""

from __future__ import annotations

from typing import Iterable

from models.errors import EmptyInputError
from models.records import Reading, UtilisationResult
from services.sample_store import SampleStore


def count_triggered(readings: Iterable[Reading], threshold: float) -> int:
    """Number of readings at or above ``threshold``."""
    return sum(1 for reading in readings if reading.value >= threshold)


class UtilisationAggregator:
    """Pure aggregation component that can be unit tested in isolation.

    Computing a result only reads the store; its count and contents are left
    exactly as they were.
    """

    def compute(self, store: SampleStore, threshold: float) -> UtilisationResult:
        reading_count = len(store)
        if reading_count == 0:
            raise EmptyInputError()

        triggered = count_triggered(store, threshold)
        return UtilisationResult(
            percentage=100.0 * triggered / reading_count,
            triggered_count=triggered,
            reading_count=reading_count,
            threshold=threshold,
        )
