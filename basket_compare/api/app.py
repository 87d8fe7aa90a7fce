# basket_compare/api/app.py

"""FastAPI boundary for the search engine.

Endpoints:
    GET /search?query=&lat=&lon= - Merged cross-source catalog
    GET /health - Liveness
    GET /health/sources - Per-source connectivity probes
"""

import logging
from datetime import datetime, timezone
from typing import Any

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from basket_compare.models.errors import (
    OrchestratorFault,
    SearchError,
    ValidationError,
)
from basket_compare.models.listing import Coordinates
from basket_compare.scrapers.fetch_gateway import FetchGateway
from basket_compare.services.health_checker import HealthChecker
from basket_compare.services.result_assembler import ResultAssembler
from basket_compare.services.search_orchestrator import SearchOrchestrator

logger = logging.getLogger("basket_compare.api")

_PARAMS_MESSAGE = (
    "Missing or invalid required query parameters: query, lat, lon."
)


def parse_search_params(
    query: str | None,
    lat: str | None,
    lon: str | None,
) -> tuple[str, Coordinates]:
    """Validate raw query-string values.

    Raises:
        ValidationError: blank query, or lat/lon missing or not finite
            floats.
    """
    if query is None or not query.strip():
        raise ValidationError(_PARAMS_MESSAGE)
    try:
        coords = Coordinates(float(lat or ""), float(lon or ""))
    except ValueError:
        raise ValidationError(_PARAMS_MESSAGE) from None
    return query.strip(), coords


def create_app(
    orchestrator: SearchOrchestrator | None = None,
    health_checker: HealthChecker | None = None,
) -> FastAPI:
    """Build the API app.

    Missing collaborators are built from :class:`Settings`, sharing one
    :class:`FetchGateway` (and so one page cache) between them.
    """
    if orchestrator is None or health_checker is None:
        gateway = FetchGateway.from_settings()
        orchestrator = orchestrator or SearchOrchestrator.from_settings(
            gateway
        )
        health_checker = health_checker or HealthChecker(gateway)

    search_orchestrator = orchestrator
    checker = health_checker

    app = FastAPI(
        title="basket_compare",
        description="Quick-commerce grocery price comparison.",
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    @app.exception_handler(SearchError)
    async def handle_search_error(
        _request: Request, exc: SearchError,
    ) -> JSONResponse:
        return JSONResponse(exc.to_body(), status_code=exc.status_code)

    @app.get("/health")
    async def health() -> dict[str, Any]:
        return {
            "status": "UP",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    @app.get("/health/sources")
    async def health_sources() -> dict[str, Any]:
        results = await checker.check_all()
        return {"sources": [r.to_dict() for r in results]}

    @app.get("/search")
    async def search(
        query: str | None = None,
        lat: str | None = None,
        lon: str | None = None,
    ) -> dict[str, Any]:
        """Search all sources and return the merged catalog.

        Returns 200 with products (possibly none), 400 on bad params,
        503 when sources failed and nothing was found, 500 otherwise.
        """
        text, coords = parse_search_params(query, lat, lon)
        try:
            result = await search_orchestrator.search(text, coords)
        except Exception as exc:
            logger.error(
                "Search handler error for '%s': %s",
                text,
                exc,
                exc_info=True,
            )
            raise OrchestratorFault(
                str(exc) or "An unexpected error occurred."
            ) from exc
        return ResultAssembler.build(result)

    return app
