# basket_compare/services/search_orchestrator.py

"""Orchestrates concurrent multi-source searches and merging."""

import asyncio
import logging
from collections.abc import Sequence

from basket_compare.config.settings import Settings
from basket_compare.filters.deduplicator import ListingDeduplicator
from basket_compare.filters.listing_validator import ListingValidator
from basket_compare.models.listing import Coordinates, RawListing
from basket_compare.models.outcome import (
    SearchResult,
    SourceOutcome,
    SourceStatus,
)
from basket_compare.scrapers.extractors import build_extractors
from basket_compare.scrapers.fetch_gateway import FetchGateway
from basket_compare.scrapers.source_client import (
    SourceAttempt,
    SourceClient,
    build_source_clients,
)

logger = logging.getLogger("basket_compare.orchestrator")


class SearchOrchestrator:
    """Fans a query out to every source and merges what comes back.

    Sources are settled independently under one global deadline: a
    source that fails or runs late is recorded in the metadata and
    never takes the others down with it.
    """

    def __init__(
        self,
        clients: Sequence[SourceClient],
        deduplicator: ListingDeduplicator | None = None,
        deadline: float | None = None,
    ) -> None:
        self.clients: list[SourceClient] = list(clients)
        self.deduplicator = deduplicator or ListingDeduplicator(
            [c.source for c in self.clients]
        )
        self.deadline: float = (
            deadline if deadline is not None else Settings.SEARCH_DEADLINE
        )

    @classmethod
    def from_settings(
        cls,
        gateway: FetchGateway | None = None,
        sources: list[dict[str, str]] | None = None,
    ) -> "SearchOrchestrator":
        """Default wiring: one shared gateway, one client per source."""
        gateway = gateway or FetchGateway.from_settings()
        clients = build_source_clients(
            gateway, build_extractors(), sources
        )
        return cls(clients)

    # ── Private helpers ──────────────────────────────────

    async def _run_clients(
        self,
        query: str,
        coords: Coordinates,
    ) -> list[SourceAttempt]:
        """Dispatch every client concurrently and settle all of them.

        Clients still running at the deadline are cancelled and come
        back as timed-out attempts.
        """
        tasks: dict[asyncio.Task[SourceAttempt], SourceClient] = {
            asyncio.create_task(
                client.retrieve_detailed(query, coords),
                name=f"search:{client.source.value}",
            ): client
            for client in self.clients
        }
        if not tasks:
            return []

        pending: set[asyncio.Task[SourceAttempt]] = set(tasks)
        try:
            _done, pending = await asyncio.wait(
                set(tasks), timeout=self.deadline
            )
        finally:
            for task in pending:
                task.cancel()

        attempts: list[SourceAttempt] = []
        for task, client in tasks.items():
            if task in pending:
                logger.error(
                    "[%s] Timed out after %.1fs for query '%s'",
                    client.source.value,
                    self.deadline,
                    query,
                )
                attempts.append(
                    SourceAttempt(
                        source=client.source,
                        request_url=client.build_url(query, coords),
                        error=f"Timed out after {self.deadline:.1f}s",
                    )
                )
            elif task.cancelled() or task.exception() is not None:
                exc = (
                    None if task.cancelled() else task.exception()
                )
                logger.error(
                    "Source error for query '%s' (%s): %s",
                    query,
                    client.source.value,
                    exc or "cancelled",
                    exc_info=exc,
                )
                attempts.append(
                    SourceAttempt(
                        source=client.source,
                        request_url=client.build_url(query, coords),
                        error=str(exc) if exc else "Cancelled",
                    )
                )
            else:
                attempts.append(task.result())
        return attempts

    @staticmethod
    def _outcome(
        attempt: SourceAttempt,
        synthetic_count: int,
        invalid_count: int = 0,
    ) -> SourceOutcome:
        count = len(attempt.listings)
        if count > 0:
            status = SourceStatus.SUCCESS
        elif attempt.error:
            status = SourceStatus.FAILED
        else:
            status = SourceStatus.NO_RESULTS
        return SourceOutcome(
            status=status,
            listing_count=count,
            error=attempt.error,
            request_url=attempt.request_url,
            synthetic_count=synthetic_count,
            invalid_count=invalid_count,
        )

    # ── Search entry point ───────────────────────────────

    async def search(
        self,
        query: str,
        coords: Coordinates,
    ) -> SearchResult:
        """Search every source for *query* near *coords*.

        Source-level failures end up in ``result.metadata``; this only
        raises on genuinely unexpected internal errors.
        """
        logger.info(
            "Searching %d sources for '%s' at (%s, %s)",
            len(self.clients),
            query,
            coords.latitude,
            coords.longitude,
        )
        result = SearchResult(query=query, coordinates=coords)
        attempts = await self._run_clients(query, coords)

        to_merge: list[RawListing] = []
        for attempt in attempts:
            real, synthetic = ListingValidator.drop_synthetic(
                attempt.listings
            )
            valid, invalid = ListingValidator.validate(real)
            outcome = self._outcome(attempt, synthetic, invalid)
            result.metadata[attempt.source.value] = outcome
            to_merge.extend(valid)
            logger.info(
                "[%s] %s: %d listings (%d synthetic, %d invalid)",
                attempt.source.value,
                outcome.status.value,
                outcome.listing_count,
                synthetic,
                invalid,
            )

        if to_merge:
            result.products = self.deduplicator.merge(to_merge)
        logger.info(
            "Search for '%s' produced %d merged products",
            query,
            len(result.products),
        )
        return result
