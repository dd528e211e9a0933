"""Entry point for the IPO return estimator API.

Component wiring order:
1. AppSettings (configuration)
2. Logging setup
3. Dataset snapshot (JSON export)
4. FastAPI app with ReturnEstimator
5. uvicorn server
"""

import asyncio

import uvicorn

from ipo_yield.api.app import create_app
from ipo_yield.config import AppSettings
from ipo_yield.data.loader import load_dataset_file
from ipo_yield.data.models import IPODataset
from ipo_yield.exceptions import DatasetNotFound
from ipo_yield.logging import get_logger, setup_logging


def _load_initial_dataset(settings: AppSettings) -> IPODataset:
    """Load the configured dataset, starting empty if none exists yet.

    A missing file is recoverable (POST /api/reload picks it up later);
    a malformed file is not.
    """
    logger = get_logger("ipo_yield.main")
    try:
        return load_dataset_file(settings.dataset.path, settings.dataset.candidate_files)
    except DatasetNotFound as e:
        logger.warning("dataset_unavailable", path=settings.dataset.path, error=str(e))
        return IPODataset()


async def run() -> None:
    """Load settings and data, then serve the API until interrupted."""
    settings = AppSettings()
    setup_logging(settings.log_level)
    logger = get_logger("ipo_yield.main")

    dataset = _load_initial_dataset(settings)

    if not settings.api.enabled:
        logger.info("api_disabled", records=len(dataset.records))
        return

    app = create_app(dataset, settings)

    logger.info(
        "starting_api",
        host=settings.api.host,
        port=settings.api.port,
        records=len(dataset.records),
    )

    config = uvicorn.Config(
        app,
        host=settings.api.host,
        port=settings.api.port,
        log_level="warning",
    )
    server = uvicorn.Server(config)
    await server.serve()
    logger.info("ipo_yield_stopped")


def main() -> None:
    """Synchronous entry point."""
    asyncio.run(run())


if __name__ == "__main__":
    main()
