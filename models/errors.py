"""Exceptions raised by the decoding, storage and aggregation stages."""

from __future__ import annotations

from typing import Optional


class UtilisationError(Exception):
    """Base class for every recoverable error raised by the pipeline."""


class DecodeError(UtilisationError, ValueError):
    """A reversed token could not be turned into a reading."""

    reason = "undecodable token"

    def __init__(self, token: str, token_index: Optional[int] = None) -> None:
        self.token = token
        self.token_index = token_index
        location = f" at index {token_index}" if token_index is not None else ""
        super().__init__(f"{self.reason}{location}: {token!r}")


class MalformedTokenError(DecodeError):
    reason = "malformed token"


class ReadingOutOfRangeError(DecodeError):
    reason = "reading out of range"


class StoreError(UtilisationError):
    """The sample store refused an operation."""


class CapacityExceededError(StoreError):
    reason = "capacity exceeded"

    def __init__(self, capacity: int) -> None:
        self.capacity = capacity
        super().__init__(f"Sample store is full ({capacity} readings).")


class StoreClosedError(StoreError):
    reason = "store closed"

    def __init__(self) -> None:
        super().__init__("Sample store is closed for appends.")


class AggregationError(UtilisationError):
    """A utilisation figure could not be computed."""


class EmptyInputError(AggregationError):
    reason = "no readings"

    def __init__(self) -> None:
        super().__init__("Cannot compute utilisation without readings.")


class PipelinePhaseError(UtilisationError):
    """An operation was attempted in the wrong pipeline phase."""
