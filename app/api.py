"""HTTP route definitions for the service."""

from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import Callable, Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status

from app.schemas import DecodeRequest, DecodeResponse, UtilisationResponse
from models.errors import DecodeError
from services.decoder import Decoder
from services.pipeline import ErrorPolicy, UtilisationPipeline, build_pipeline
from storage.files import iter_tokens

logger = logging.getLogger(__name__)

router = APIRouter()

PipelineFactory = Callable[..., UtilisationPipeline]


def get_pipeline_factory() -> PipelineFactory:
    return build_pipeline


def get_decoder() -> Decoder:
    return Decoder()


@router.post(
    "/utilisation",
    response_model=UtilisationResponse,
    summary="Compute utilisation for an uploaded log of reversed readings.",
)
async def compute_utilisation(
    file: UploadFile = File(..., description="Text file with one reversed reading per token."),
    threshold: Optional[float] = Query(None, description="Trigger level; defaults to settings."),
    capacity: Optional[int] = Query(None, ge=1, description="Maximum readings to accept."),
    on_error: Optional[ErrorPolicy] = Query(None, description="abort or skip undecodable tokens."),
    pipeline_factory: PipelineFactory = Depends(get_pipeline_factory),
) -> UtilisationResponse:
    source = Path(file.filename or "upload.txt").name
    try:
        contents = await file.read()
    finally:
        await file.close()

    if not contents:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Uploaded file is empty.",
        )
    try:
        text = contents.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Uploaded file is not valid UTF-8 text.",
        ) from exc

    try:
        pipeline = pipeline_factory(
            threshold=threshold,
            capacity=capacity,
            error_policy=on_error,
            source=source,
        )
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    report = pipeline.run(iter_tokens(io.StringIO(text)))
    logger.info(
        "Utilisation request finished",
        extra={"source": source, "status": report.status.value},
    )
    return UtilisationResponse.from_report(report, source=source)


@router.post(
    "/decode",
    response_model=DecodeResponse,
    summary="Decode reversed tokens without aggregating them.",
)
async def decode_tokens(
    payload: DecodeRequest,
    decoder: Decoder = Depends(get_decoder),
) -> DecodeResponse:
    values: list[float] = []
    for token_index, token in enumerate(payload.tokens):
        try:
            values.append(decoder.decode(token, token_index).value)
        except DecodeError as exc:
            raise HTTPException(
                status_code=422,
                detail={"token_index": token_index, "token": token, "reason": exc.reason},
            ) from exc
    return DecodeResponse(values=values)


@router.get(
    "/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get(
    "/",
    summary="Root endpoint mirrors health information.",
    status_code=status.HTTP_200_OK,
)
async def root() -> dict[str, str]:
    return {"status": "ok", "detail": "POST a reading log to /utilisation."}
