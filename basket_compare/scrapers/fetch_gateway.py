# basket_compare/scrapers/fetch_gateway.py

"""Resilient single-URL retrieval: cache, transport race, validation."""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass

from basket_compare.config.settings import Settings
from basket_compare.scrapers.transports import (
    TransportResponse,
    TransportStrategy,
    build_transports,
)
from basket_compare.storage.fetch_cache import FetchCache

logger = logging.getLogger("basket_compare.gateway")

# Cloudflare challenge page markers (checked before keyword scan)
_CF_CHALLENGE_MARKERS: list[str] = [
    "challenges.cloudflare.com",
    "cdn-cgi/challenge-platform",
    "just a moment",
    "cf-turnstile",
    "cf_chl_opt",
]


@dataclass
class FetchResult:
    """Outcome of one gateway fetch.  Exactly one of html/error is set."""

    url: str
    html: str | None = None
    error: str | None = None
    strategy: str | None = None
    from_cache: bool = False
    elapsed: float = 0.0

    @property
    def ok(self) -> bool:
        return self.html is not None


def check_response(resp: TransportResponse) -> str | None:
    """Return why *resp* is unusable, or ``None`` if it is a real page."""
    if not 200 <= resp.status_code < 300:
        return f"HTTP {resp.status_code}"
    text = resp.text or ""
    if len(text) < Settings.MIN_BODY_LENGTH:
        return f"body too short ({len(text)} chars)"
    lower = text.lower()
    if "<html" not in lower and "<body" not in lower:
        return "no HTML markup"

    for marker in _CF_CHALLENGE_MARKERS:
        if marker in lower:
            return f"Cloudflare challenge (marker: '{marker}')"

    # Content-rich pages skip the keyword scan
    has_body_content = "<body" in lower and len(text) > 5000
    if not has_body_content:
        for keyword in Settings.CAPTCHA_KEYWORDS:
            if keyword in lower:
                return f"CAPTCHA keyword '{keyword}'"
    return None


def _consume_outcome(task: "asyncio.Task[TransportResponse]") -> None:
    """Mark a losing task's exception as retrieved."""
    if not task.cancelled():
        task.exception()


async def first_valid(
    attempts: Sequence[tuple[str, Callable[[], Awaitable[TransportResponse]]]],
    accept: Callable[[TransportResponse], str | None],
    timeout: float,
) -> tuple[TransportResponse | None, list[str]]:
    """Run every attempt concurrently and return the first accepted response.

    *accept* returns a rejection reason or ``None``.  Losers are
    cancelled as soon as a winner is found, when *timeout* expires, or
    when the caller itself is cancelled.  Returns ``(response, [])`` on
    success and ``(None, rejections)`` otherwise.
    """
    order: dict[asyncio.Task[TransportResponse], int] = {}
    names: dict[asyncio.Task[TransportResponse], str] = {}
    for idx, (name, factory) in enumerate(attempts):
        task = asyncio.ensure_future(factory())
        task.add_done_callback(_consume_outcome)
        order[task] = idx
        names[task] = name

    rejections: list[str] = []
    pending = set(order)
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    try:
        while pending:
            remaining = deadline - loop.time()
            if remaining <= 0:
                break
            done, pending = await asyncio.wait(
                pending,
                timeout=remaining,
                return_when=asyncio.FIRST_COMPLETED,
            )
            for task in sorted(done, key=order.__getitem__):
                name = names[task]
                if task.cancelled():
                    rejections.append(f"{name}: cancelled")
                    continue
                exc = task.exception()
                if exc is not None:
                    rejections.append(
                        f"{name}: {type(exc).__name__}: {exc}"
                    )
                    continue
                resp = task.result()
                reason = accept(resp)
                if reason is not None:
                    rejections.append(f"{name}: {reason}")
                    continue
                return resp, []
    finally:
        for task in pending:
            task.cancel()

    if pending:
        waiting = sorted(pending, key=order.__getitem__)
        rejections.append(
            f"timed out after {timeout:.1f}s waiting on "
            + ", ".join(names[t] for t in waiting)
        )
    return None, rejections


class FetchGateway:
    """Cache-fronted, multi-strategy page fetcher.

    Construct one per process and share it; the cache it owns is the
    only state that outlives a search.  No retries happen here: a
    failure is ambiguous between blocked and transient, so the caller
    decides whether to try again.
    """

    def __init__(
        self,
        transports: Sequence[TransportStrategy],
        cache: FetchCache | None = None,
        timeout: float | None = None,
    ) -> None:
        if not transports:
            msg = "FetchGateway needs at least one transport strategy"
            raise ValueError(msg)
        self.transports: list[TransportStrategy] = list(transports)
        self.cache = cache if cache is not None else FetchCache()
        self.timeout: float = (
            timeout if timeout is not None else Settings.FETCH_TIMEOUT
        )

    @classmethod
    def from_settings(cls) -> "FetchGateway":
        """Build a gateway with the configured transports and a fresh cache."""
        return cls(build_transports(), FetchCache())

    async def fetch(self, url: str, use_cache: bool = True) -> FetchResult:
        """Fetch *url*, serving from cache when possible.

        With ``use_cache=False`` the cache is neither read nor written
        (health probes use this).
        """
        start = time.monotonic()
        if not use_cache:
            return await self._race(url, start)

        cached = self.cache.get(url)
        if cached is not None:
            return FetchResult(
                url=url, html=cached, strategy="cache", from_cache=True
            )

        async with self.cache.writer(url):
            # Another fetch may have filled the entry while we waited
            cached = self.cache.get(url)
            if cached is not None:
                return FetchResult(
                    url=url,
                    html=cached,
                    strategy="cache",
                    from_cache=True,
                    elapsed=time.monotonic() - start,
                )
            result = await self._race(url, start)
            if result.html is not None:
                self.cache.store(url, result.html)
        return result

    def invalidate(self, url: str) -> bool:
        return self.cache.invalidate(url)

    def clear(self) -> int:
        return self.cache.clear()

    async def _race(self, url: str, start: float) -> FetchResult:
        """Race every transport against *url*; keep the first valid page."""
        headers = dict(Settings.DEFAULT_HEADERS)
        logger.info(
            "Racing %d transports for %s (timeout %.1fs)",
            len(self.transports),
            url,
            self.timeout,
        )
        attempts = [
            (t.name, self._bind(t, url, headers))
            for t in self.transports
        ]
        resp, rejections = await first_valid(
            attempts, check_response, self.timeout
        )
        elapsed = time.monotonic() - start

        if resp is None:
            error = "; ".join(rejections) or "no transport responded"
            logger.warning(
                "Fetch failed for %s after %.2fs: %s", url, elapsed, error
            )
            return FetchResult(url=url, error=error, elapsed=elapsed)

        logger.info(
            "Fetched %s via %s in %.2fs (%d chars)",
            url,
            resp.strategy,
            elapsed,
            len(resp.text),
        )
        return FetchResult(
            url=url,
            html=resp.text,
            strategy=resp.strategy,
            elapsed=elapsed,
        )

    def _bind(
        self,
        transport: TransportStrategy,
        url: str,
        headers: dict[str, str],
    ) -> Callable[[], Awaitable[TransportResponse]]:
        def start() -> Awaitable[TransportResponse]:
            return transport.fetch(url, headers, self.timeout)

        return start
