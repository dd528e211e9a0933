"""FastAPI application factory for the estimator API."""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from ipo_yield.api.routes import api
from ipo_yield.config import AppSettings
from ipo_yield.data.models import IPODataset
from ipo_yield.estimation.engine import ReturnEstimator
from ipo_yield.exceptions import DatasetNotFound, EstimatorError
from ipo_yield.logging import get_logger

log = get_logger(__name__)


async def _estimator_error_handler(request: Request, exc: EstimatorError) -> JSONResponse:
    """Render estimator errors as JSON; missing datasets are 404, the rest 422."""
    status_code = 404 if isinstance(exc, DatasetNotFound) else 422
    log.warning(
        "request_rejected",
        path=request.url.path,
        error=type(exc).__name__,
        detail=str(exc),
    )
    return JSONResponse(
        status_code=status_code,
        content={"error": type(exc).__name__, "detail": str(exc)},
    )


def create_app(
    dataset: IPODataset,
    settings: AppSettings | None = None,
    lifespan: Any = None,
) -> FastAPI:
    """Create and configure the estimator API application.

    Args:
        dataset: Initial dataset snapshot served by the routes.
        settings: Application settings; defaults are loaded when omitted.
        lifespan: Optional async context manager for startup/shutdown.

    Returns:
        Configured FastAPI application.
    """
    settings = settings or AppSettings()

    app = FastAPI(
        title="IPO Offline Allotment Return Estimator",
        lifespan=lifespan,
    )

    app.state.dataset = dataset
    app.state.dataset_settings = settings.dataset
    app.state.estimator = ReturnEstimator(settings.estimator)

    app.add_exception_handler(EstimatorError, _estimator_error_handler)

    @app.get("/health")
    async def health() -> dict:
        return {"status": "healthy", "records": len(app.state.dataset.records)}

    app.include_router(api.router, prefix="/api")

    return app
