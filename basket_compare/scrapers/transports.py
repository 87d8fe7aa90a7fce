# basket_compare/scrapers/transports.py

"""Transport strategies raced by the fetch gateway.

Each strategy reaches the same upstream URL by a different path:
directly with a browser-impersonating TLS stack, through an HTTP
proxy, through a URL-prefix relay, or via cloudscraper's JS-challenge
solver.  Strategies report whatever the upstream said; deciding
whether a response is usable is the gateway's job.
"""

import asyncio
import logging
import threading
import urllib.parse
from dataclasses import dataclass
from typing import Any, Protocol

import cloudscraper  # type: ignore[import-untyped]
from curl_cffi.requests import AsyncSession, BrowserTypeLiteral

from basket_compare.config.settings import Settings

logger = logging.getLogger("basket_compare.transport")


@dataclass
class TransportResponse:
    """Status and body returned by one transport strategy."""

    status_code: int
    text: str
    strategy: str


class TransportStrategy(Protocol):
    """One way of retrieving a URL."""

    name: str

    async def fetch(
        self,
        url: str,
        headers: dict[str, str],
        timeout: float,
    ) -> TransportResponse: ...


class CurlTransport:
    """curl_cffi with browser impersonation, optionally via a proxy."""

    def __init__(
        self,
        name: str = "direct",
        proxy: str | None = None,
        impersonate: BrowserTypeLiteral | None = None,
    ) -> None:
        self.name = name
        self.proxy = proxy
        self._impersonate: BrowserTypeLiteral = (
            impersonate or Settings.IMPERSONATE_BROWSER
        )

    async def fetch(
        self,
        url: str,
        headers: dict[str, str],
        timeout: float,
    ) -> TransportResponse:
        logger.debug(
            "[%s] GET %s%s",
            self.name,
            url,
            f" via {self.proxy}" if self.proxy else "",
        )
        async with AsyncSession(
            impersonate=self._impersonate
        ) as session:
            resp = await session.get(
                url,
                headers=headers,
                timeout=timeout,
                proxy=self.proxy,
            )
        return TransportResponse(
            status_code=resp.status_code,
            text=resp.text,
            strategy=self.name,
        )


class RelayTransport(CurlTransport):
    """Fetch through a relay that takes the target URL as a suffix."""

    def __init__(
        self,
        prefix: str,
        name: str | None = None,
    ) -> None:
        host = urllib.parse.urlsplit(prefix).netloc or prefix
        super().__init__(name=name or f"relay:{host}")
        self.prefix = prefix

    def relay_url(self, url: str) -> str:
        return self.prefix + urllib.parse.quote(url, safe="")

    async def fetch(
        self,
        url: str,
        headers: dict[str, str],
        timeout: float,
    ) -> TransportResponse:
        return await super().fetch(
            self.relay_url(url), headers, timeout
        )


class CloudscraperTransport:
    """cloudscraper session, run in a worker thread.

    The session is not thread-safe, so requests through one transport
    run one at a time.  Cancelling the awaiting task does not stop the
    thread; its response is simply dropped.
    """

    def __init__(self, name: str = "cloudscraper") -> None:
        self.name = name
        _cs: Any = cloudscraper
        self._scraper: Any = _cs.create_scraper()
        self._lock = threading.Lock()

    async def fetch(
        self,
        url: str,
        headers: dict[str, str],
        timeout: float,
    ) -> TransportResponse:
        logger.debug("[%s] GET %s", self.name, url)
        resp: Any = await asyncio.to_thread(
            self._get, url, headers, timeout
        )
        return TransportResponse(
            status_code=int(resp.status_code),
            text=str(resp.text),
            strategy=self.name,
        )

    def _get(
        self, url: str, headers: dict[str, str], timeout: float,
    ) -> Any:
        with self._lock:
            return self._scraper.get(url, headers=headers, timeout=timeout)


def build_transports() -> list[TransportStrategy]:
    """Build the configured strategy set from :class:`Settings`."""
    transports: list[TransportStrategy] = [CurlTransport()]
    for idx, proxy in enumerate(Settings.PROXY_URLS, 1):
        transports.append(
            CurlTransport(name=f"proxy-{idx}", proxy=proxy)
        )
    for prefix in Settings.RELAY_PREFIXES:
        transports.append(RelayTransport(prefix))
    if Settings.USE_CLOUDSCRAPER:
        transports.append(CloudscraperTransport())
    logger.info(
        "Configured %d transport strategies: %s",
        len(transports),
        ", ".join(t.name for t in transports),
    )
    return transports
