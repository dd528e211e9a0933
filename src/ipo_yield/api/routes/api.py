"""JSON API endpoints for return estimation and dataset statistics."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from ipo_yield.analytics.summary import build_dashboard_summary
from ipo_yield.data.loader import load_dataset_file
from ipo_yield.estimation.recommendation import build_breakdown
from ipo_yield.logging import estimation_context, get_logger
from ipo_yield.models import Board

log = get_logger(__name__)

router = APIRouter()


class EstimateBody(BaseModel):
    """Estimate request body. Omitted rate and window use configured defaults."""

    aum: Decimal = Field(description="Capital size in CNY")
    risk_free_rate: Decimal | None = Field(default=None, description="Fraction, e.g. 0.014")
    boards: list[str] = Field(default_factory=list, description="Board labels; empty = all")
    window_start: date | None = None
    window_end: date | None = None


@router.post("/estimate")
async def post_estimate(body: EstimateBody, request: Request) -> JSONResponse:
    """Estimate the blended annualized return and recommended allocation."""
    estimator = request.app.state.estimator
    dataset = request.app.state.dataset

    estimate_request = estimator.build_request(
        aum=body.aum,
        risk_free_rate=body.risk_free_rate,
        boards=body.boards,
        window_start=body.window_start,
        window_end=body.window_end,
    )
    with estimation_context(estimate_request):
        result = estimator.estimate(dataset.records, estimate_request)
        breakdown = build_breakdown(
            estimate_request, result, days_per_year=estimator.settings.days_per_year
        )
        log.info(
            "estimate_served",
            matched=result.matched_record_count,
            allocation=breakdown.recommended_allocation,
        )

    return JSONResponse(
        content={
            "request": {
                "aum": str(estimate_request.aum),
                "risk_free_rate": str(estimate_request.risk_free_rate),
                "boards": sorted(estimate_request.boards),
                "window_start": estimate_request.window_start.isoformat(),
                "window_end": estimate_request.window_end.isoformat(),
            },
            "result": result.to_dict(),
            "breakdown": breakdown.to_dict(),
            "recommended_allocation": breakdown.recommended_allocation,
        }
    )


@router.get("/summary")
async def get_summary(request: Request) -> JSONResponse:
    """Headline statistics for the loaded dataset."""
    summary = build_dashboard_summary(request.app.state.dataset)
    return JSONResponse(content=summary.to_dict())


@router.get("/boards")
async def get_boards() -> JSONResponse:
    """Board identifiers accepted by the estimate endpoint."""
    return JSONResponse(
        content=[{"name": board.name, "label": board.value} for board in Board]
    )


@router.post("/reload")
async def post_reload(request: Request) -> JSONResponse:
    """Reload the dataset from the configured location and swap the snapshot."""
    settings = request.app.state.dataset_settings
    dataset = load_dataset_file(settings.path, settings.candidate_files)
    request.app.state.dataset = dataset
    log.info("dataset_reloaded", records=len(dataset.records))
    return JSONResponse(content={"records": len(dataset.records)})
