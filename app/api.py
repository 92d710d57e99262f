"""HTTP route definitions for the service."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from app.schemas import (
    ClassifyRequest,
    ClassifyResponse,
    ReconcileRequest,
    ReconcileResponse,
)
from services.classifier import classify
from services.history import HistoryService, build_default_history_service

router = APIRouter()


def get_history_service() -> HistoryService:
    return build_default_history_service()


@router.post(
    "/history/reconcile",
    response_model=ReconcileResponse,
    summary="Align the fill and battery history of one bin and band each reading.",
)
async def reconcile_history(
    request: ReconcileRequest,
    service: HistoryService = Depends(get_history_service),
) -> ReconcileResponse:
    thresholds = request.thresholds.to_config() if request.thresholds else None
    try:
        history = service.build(
            *request.streams,
            thresholds=thresholds,
            granularity=request.granularity,
            device=request.device,
        )
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    return ReconcileResponse.from_history(history)


@router.post(
    "/classify",
    response_model=ClassifyResponse,
    summary="Band a single reading against a threshold pair.",
)
async def classify_value(request: ClassifyRequest) -> ClassifyResponse:
    band = classify(request.value, request.thresholds.to_pair(), request.polarity)
    return ClassifyResponse(band=band, color=band.color)


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
    return {"status": "ok", "detail": "See /health for service status."}
