"""Bounded, append-only storage for the readings of a single run."""

from __future__ import annotations

from typing import Iterator, List, Tuple

from models.errors import CapacityExceededError, StoreClosedError
from models.records import Reading

DEFAULT_CAPACITY = 255


class SampleStore:
    """Holds at most ``capacity`` readings in insertion order.

    The store never grows past its capacity: a full store rejects appends
    with :class:`CapacityExceededError` and keeps its contents intact.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if isinstance(capacity, bool) or not isinstance(capacity, int) or capacity < 1:
            raise ValueError(f"Capacity must be a positive integer, got {capacity!r}.")
        self._capacity = capacity
        self._readings: List[Reading] = []
        self._closed = False

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def is_full(self) -> bool:
        return len(self._readings) >= self._capacity

    def try_append(self, reading: Reading) -> None:
        if self._closed:
            raise StoreClosedError()
        if self.is_full:
            raise CapacityExceededError(self._capacity)
        self._readings.append(reading)

    def close(self) -> None:
        self._closed = True

    def values(self) -> Tuple[float, ...]:
        return tuple(reading.value for reading in self._readings)

    def __len__(self) -> int:
        return len(self._readings)

    def __iter__(self) -> Iterator[Reading]:
        return iter(tuple(self._readings))

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"SampleStore({len(self)}/{self._capacity}, {state})"
