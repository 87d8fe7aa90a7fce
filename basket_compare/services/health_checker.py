# basket_compare/services/health_checker.py

"""Source connectivity health checker."""

import asyncio
import logging
import time
from dataclasses import dataclass

from basket_compare.config.settings import Settings
from basket_compare.scrapers.fetch_gateway import FetchGateway

logger = logging.getLogger("basket_compare.health")


@dataclass
class HealthResult:
    """Result of a single source health check."""

    source_id: str
    status: str  # "ok", "slow", "down"
    latency_ms: float
    message: str
    strategy: str = ""

    def to_dict(self) -> dict[str, object]:
        return {
            "source": self.source_id,
            "status": self.status,
            "latencyMs": round(self.latency_ms, 1),
            "message": self.message,
            "strategy": self.strategy,
        }


async def probe_source(
    source: dict[str, str],
    gateway: FetchGateway,
) -> HealthResult:
    """Probe one source's homepage through the transport race."""
    source_id = source["id"]
    start = time.monotonic()
    try:
        result = await gateway.fetch(source["homepage"], use_cache=False)
    except Exception as exc:
        elapsed_ms = (time.monotonic() - start) * 1000
        logger.error(
            "Health probe for %s raised: %s",
            source_id,
            exc,
            exc_info=True,
        )
        return HealthResult(
            source_id=source_id,
            status="down",
            latency_ms=elapsed_ms,
            message=str(exc)[:80],
        )
    elapsed_ms = (time.monotonic() - start) * 1000

    if not result.ok:
        return HealthResult(
            source_id=source_id,
            status="down",
            latency_ms=elapsed_ms,
            message=(result.error or "unreachable")[:80],
        )

    if elapsed_ms > Settings.HEALTH_SLOW_MS:
        return HealthResult(
            source_id=source_id,
            status="slow",
            latency_ms=elapsed_ms,
            message="High latency",
            strategy=result.strategy or "",
        )

    return HealthResult(
        source_id=source_id,
        status="ok",
        latency_ms=elapsed_ms,
        message="",
        strategy=result.strategy or "",
    )


class HealthChecker:
    """Runs concurrent health probes against all sources."""

    def __init__(self, gateway: FetchGateway | None = None) -> None:
        self.gateway = gateway or FetchGateway.from_settings()
        self.sources = Settings.AVAILABLE_SOURCES

    async def check_all(self) -> list[HealthResult]:
        """Probe every registered source concurrently."""
        results: list[HealthResult] = list(
            await asyncio.gather(
                *(probe_source(src, self.gateway) for src in self.sources)
            )
        )
        for r in results:
            logger.info(
                "Health check %s: %s (%.0fms) %s",
                r.source_id,
                r.status,
                r.latency_ms,
                r.message,
            )
        return results
