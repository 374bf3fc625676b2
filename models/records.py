"""Domain models shared across services."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Reading:
    """A decoded sensor reading.

    ``token_index`` is the zero-based position of the source token in the
    input and is kept for diagnostics only.
    """

    value: float
    token_index: int = 0


@dataclass(frozen=True, slots=True)
class UtilisationResult:
    """Share of readings at or above ``threshold``, as a percentage."""

    percentage: float
    triggered_count: int
    reading_count: int
    threshold: float
