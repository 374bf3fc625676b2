"""One-shot orchestration: tokens in, utilisation figure out."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Optional, Protocol, Tuple

from models.errors import (
    CapacityExceededError,
    DecodeError,
    EmptyInputError,
    PipelinePhaseError,
)
from models.records import Reading, UtilisationResult
from services.aggregator import UtilisationAggregator
from services.decoder import Decoder
from services.sample_store import SampleStore
from settings import DEFAULT_MAX_ISSUES, get_settings

logger = logging.getLogger(__name__)


class PipelinePhase(str, Enum):
    ingesting = "ingesting"
    closed = "closed"
    aggregated = "aggregated"


class ErrorPolicy(str, Enum):
    """What ingestion does with a token that fails to decode."""

    abort = "abort"
    skip = "skip"


class RunStatus(str, Enum):
    processed = "processed"
    partial = "partial"
    failed = "failed"


class ResultSink(Protocol):
    def write(self, result: UtilisationResult) -> None: ...


@dataclass(frozen=True, slots=True)
class IngestionIssue:
    """A token that was rejected during ingestion."""

    token_index: int
    token: str
    reason: str


@dataclass
class RunReport:
    status: RunStatus
    threshold: float
    capacity: int
    readings: Tuple[Reading, ...] = ()
    result: Optional[UtilisationResult] = None
    issues: List[IngestionIssue] = field(default_factory=list)
    issue_count: int = 0
    terminated_early: bool = False
    failure_reason: Optional[str] = None

    @property
    def reading_count(self) -> int:
        return len(self.readings)


class UtilisationPipeline:
    """Drives a single run through the ingesting, closed and aggregated phases."""

    def __init__(
        self,
        decoder: Decoder,
        aggregator: UtilisationAggregator,
        threshold: float,
        capacity: int,
        error_policy: ErrorPolicy = ErrorPolicy.abort,
        source: str = "<tokens>",
        max_issues: int = DEFAULT_MAX_ISSUES,
    ) -> None:
        if not math.isfinite(threshold):
            raise ValueError(f"Threshold must be a finite number, got {threshold!r}.")
        if max_issues < 0:
            raise ValueError(f"max_issues must not be negative, got {max_issues!r}.")
        self.decoder = decoder
        self.aggregator = aggregator
        self.threshold = threshold
        self.error_policy = ErrorPolicy(error_policy)
        self.source = source
        self.store = SampleStore(capacity)
        self.max_issues = max_issues
        self.issues: List[IngestionIssue] = []
        self.issue_count = 0
        self.terminated_early = False
        self._phase = PipelinePhase.ingesting
        self._result: Optional[UtilisationResult] = None

    @property
    def phase(self) -> PipelinePhase:
        return self._phase

    def ingest(self, tokens: Iterable[str]) -> None:
        """Decode and store every token, then close the store.

        Ingestion stops at the first capacity overflow, and at the first
        undecodable token unless the error policy is ``skip``. Readings stored
        before the stop are kept. If the token source itself raises, the store
        is still closed and the exception propagates.
        """
        if self._phase is not PipelinePhase.ingesting:
            raise PipelinePhaseError(f"Cannot ingest while {self._phase.value}.")

        logger.debug(
            "Starting ingestion",
            extra={"source": self.source, "capacity": self.store.capacity},
        )
        try:
            for token_index, token in enumerate(tokens):
                try:
                    reading = self.decoder.decode(token, token_index)
                except DecodeError as exc:
                    skipping = self.error_policy is ErrorPolicy.skip
                    self._record_issue(token_index, token, exc.reason, stopping=not skipping)
                    if skipping:
                        continue
                    self.terminated_early = True
                    break

                try:
                    self.store.try_append(reading)
                except CapacityExceededError as exc:
                    self._record_issue(token_index, token, exc.reason, stopping=True)
                    self.terminated_early = True
                    break

                logger.debug(
                    "Decoded reading %f",
                    reading.value,
                    extra={"token_index": token_index, "token": token},
                )
        finally:
            self.close()

        logger.info(
            "Read %d readings",
            len(self.store),
            extra={
                "source": self.source,
                "reading_count": len(self.store),
                "error_count": self.issue_count,
            },
        )

    def close(self) -> None:
        if self._phase is PipelinePhase.ingesting:
            self.store.close()
            self._phase = PipelinePhase.closed

    def compute(self) -> UtilisationResult:
        """Aggregate the closed store. Repeated calls return the same result."""
        if self._phase is PipelinePhase.ingesting:
            raise PipelinePhaseError("Close ingestion before computing utilisation.")
        if self._result is None:
            self._result = self.aggregator.compute(self.store, self.threshold)
            self._phase = PipelinePhase.aggregated
            logger.info(
                "Percentage usage computed",
                extra={
                    "source": self.source,
                    "utilisation": self._result.percentage,
                    "triggered_count": self._result.triggered_count,
                    "reading_count": self._result.reading_count,
                    "threshold": self.threshold,
                },
            )
        return self._result

    def run(self, tokens: Iterable[str], sink: Optional[ResultSink] = None) -> RunReport:
        """Ingest ``tokens``, compute the result and hand it to ``sink``."""
        self.ingest(tokens)

        result: Optional[UtilisationResult] = None
        failure_reason: Optional[str] = None
        try:
            result = self.compute()
        except EmptyInputError as exc:
            failure_reason = str(exc)
            logger.warning(
                "No utilisation computed",
                extra={"source": self.source, "reason": exc.reason},
            )

        if result is not None and sink is not None:
            sink.write(result)

        if result is None:
            status = RunStatus.failed
        elif self.issue_count:
            status = RunStatus.partial
        else:
            status = RunStatus.processed

        return RunReport(
            status=status,
            threshold=self.threshold,
            capacity=self.store.capacity,
            readings=tuple(self.store),
            result=result,
            issues=list(self.issues),
            issue_count=self.issue_count,
            terminated_early=self.terminated_early,
            failure_reason=failure_reason,
        )

    def _record_issue(self, token_index: int, token: str, reason: str, stopping: bool) -> None:
        self.issue_count += 1
        # the rejection that stops ingestion is always kept
        if not stopping and len(self.issues) >= self.max_issues:
            if self.issue_count - len(self.issues) == 1:
                logger.warning(
                    "Further ingestion issues are counted but not recorded",
                    extra={"source": self.source, "token_index": token_index},
                )
            return

        self.issues.append(IngestionIssue(token_index=token_index, token=token, reason=reason))
        action = "Stopping ingestion" if stopping else "Skipping token"
        logger.warning(
            "%s: %s",
            action,
            reason,
            extra={
                "source": self.source,
                "token_index": token_index,
                "token": token,
                "reason": reason,
                "capacity": self.store.capacity,
            },
        )


def build_pipeline(
    threshold: Optional[float] = None,
    capacity: Optional[int] = None,
    error_policy: Optional[ErrorPolicy | str] = None,
    source: str = "<tokens>",
) -> UtilisationPipeline:
    """Factory that fills unset parameters from the environment settings."""
    settings = get_settings()
    return UtilisationPipeline(
        decoder=Decoder(),
        aggregator=UtilisationAggregator(),
        threshold=settings.trigger_level if threshold is None else threshold,
        capacity=settings.max_readings if capacity is None else capacity,
        error_policy=ErrorPolicy(error_policy or settings.error_policy),
        source=source,
        max_issues=settings.max_issues,
    )
