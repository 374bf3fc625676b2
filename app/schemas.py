"""Pydantic schemas for the HTTP API layer."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from services.pipeline import RunReport, RunStatus


class IngestionIssueModel(BaseModel):
    """A token rejected while reading the upload."""

    token_index: int = Field(..., ge=0, description="Zero-based position of the token.")
    token: str
    reason: str


class UtilisationResponse(BaseModel):
    """Outcome of one utilisation run over an uploaded reading log."""

    source: str
    status: RunStatus
    utilisation: Optional[float] = Field(
        default=None,
        ge=0.0,
        le=100.0,
        description="Percentage of readings at or above the threshold.",
    )
    triggered_count: Optional[int] = Field(default=None, ge=0)
    reading_count: int = Field(..., ge=0)
    threshold: float
    capacity: int = Field(..., ge=1)
    terminated_early: bool = False
    error_count: int = Field(
        default=0, ge=0, description="All rejected tokens, including those not listed in errors."
    )
    detail: Optional[str] = None
    errors: List[IngestionIssueModel] = Field(default_factory=list)

    @classmethod
    def from_report(cls, report: RunReport, source: str) -> "UtilisationResponse":
        result = report.result
        return cls(
            source=source,
            status=report.status,
            utilisation=result.percentage if result else None,
            triggered_count=result.triggered_count if result else None,
            reading_count=report.reading_count,
            threshold=report.threshold,
            capacity=report.capacity,
            terminated_early=report.terminated_early,
            error_count=report.issue_count,
            detail=report.failure_reason,
            errors=[
                IngestionIssueModel(
                    token_index=issue.token_index, token=issue.token, reason=issue.reason
                )
                for issue in report.issues
            ],
        )


class DecodeRequest(BaseModel):
    tokens: List[str] = Field(..., min_length=1, description="Reversed tokens to decode.")


class DecodeResponse(BaseModel):
    values: List[float]
