# basket_compare/scrapers/source_client.py

"""Per-source retrieval: build URL, fetch, extract, retry."""

import asyncio
import logging
import urllib.parse
from dataclasses import dataclass, field

from basket_compare.config.settings import Settings
from basket_compare.models.errors import ExtractionEmpty, FetchError
from basket_compare.models.listing import Coordinates, RawListing, SourceId
from basket_compare.scrapers.extractors import Extractor
from basket_compare.scrapers.fetch_gateway import FetchGateway
from basket_compare.scrapers.retry import RetryPolicy

logger = logging.getLogger("basket_compare.source")


@dataclass
class SourceAttempt:
    """Everything one ``retrieve`` call observed for its source."""

    source: SourceId
    request_url: str
    listings: list[RawListing] = field(
        default_factory=lambda: list[RawListing]()
    )
    error: str | None = None
    attempts: int = 0


class SourceClient:
    """Fetch-and-extract for one source, wrapped in a retry policy.

    A zero-listing page is retried like a fetch failure: blocked or
    rate-limited responses often parse to nothing, and the extractor
    cannot tell that apart from a genuine no-match.
    """

    def __init__(
        self,
        source: SourceId,
        search_url: str,
        gateway: FetchGateway,
        extractor: Extractor,
        retry_policy: RetryPolicy | None = None,
    ) -> None:
        self.source = source
        self.search_url = search_url
        self.gateway = gateway
        self.extractor = extractor
        self.retry_policy = retry_policy or RetryPolicy.from_settings()

    def build_url(self, query: str, coords: Coordinates) -> str:
        return self.search_url.format(
            query=urllib.parse.quote(query),
            lat=coords.latitude,
            lon=coords.longitude,
        )

    async def retrieve(
        self, query: str, coords: Coordinates,
    ) -> list[RawListing]:
        """Return the source's listings; empty on any failure."""
        attempt = await self.retrieve_detailed(query, coords)
        return attempt.listings

    async def retrieve_detailed(
        self, query: str, coords: Coordinates,
    ) -> SourceAttempt:
        """Like :meth:`retrieve` but also report errors and the URL used.

        Never raises (cancellation aside).
        """
        url = self.build_url(query, coords)
        result = SourceAttempt(source=self.source, request_url=url)
        fetch_errors: list[str] = []

        def record(_attempt_no: int, exc: BaseException) -> None:
            if isinstance(exc, FetchError):
                fetch_errors.append(str(exc))

        async def attempt() -> list[RawListing]:
            result.attempts += 1
            return await self._attempt_once(url, query)

        try:
            result.listings = await self.retry_policy.run(
                attempt,
                retry_on=(FetchError, ExtractionEmpty),
                label=self.source.value,
                on_error=record,
            )
        except ExtractionEmpty:
            result.error = fetch_errors[0] if fetch_errors else None
        except FetchError as exc:
            result.error = str(exc)
        except Exception as exc:
            logger.error(
                "[%s] Search failed: %s",
                self.source.value,
                exc,
                exc_info=True,
            )
            result.error = f"{type(exc).__name__}: {exc}"

        logger.info(
            "[%s] %d listings after %d attempt(s)%s",
            self.source.value,
            len(result.listings),
            result.attempts,
            f" (error: {result.error})" if result.error else "",
        )
        return result

    async def _attempt_once(
        self, url: str, query: str,
    ) -> list[RawListing]:
        fetched = await self.gateway.fetch(url)
        if fetched.html is None:
            raise FetchError(
                f"Failed to fetch {self.source.value} data: {fetched.error}"
            )
        listings = await asyncio.to_thread(
            self.extractor.extract, fetched.html, query
        )
        if not listings:
            # Force the retry back to the network instead of the cache
            self.gateway.invalidate(url)
            raise ExtractionEmpty(
                f"{self.source.value} page parsed to zero listings"
            )
        return listings


def build_source_clients(
    gateway: FetchGateway,
    extractors: dict[SourceId, Extractor],
    sources: list[dict[str, str]] | None = None,
    retry_policy: RetryPolicy | None = None,
) -> list[SourceClient]:
    """One client per source (default: every registered source)."""
    if sources is None:
        sources = Settings.AVAILABLE_SOURCES
    clients: list[SourceClient] = []
    for src in sources:
        source = SourceId(src["id"])
        clients.append(
            SourceClient(
                source,
                search_url=src["search_url"],
                gateway=gateway,
                extractor=extractors[source],
                retry_policy=retry_policy,
            )
        )
    return clients
