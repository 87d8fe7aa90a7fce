# basket_compare/scrapers/extractors.py

"""Turn a source's search-results page into raw listings.

Parsers sit behind the :class:`Extractor` protocol.  The bundled
implementation walks per-source CSS selector lists from
``selectors.json``.
"""

import json
import logging
import urllib.parse
from pathlib import Path
from typing import Any, Protocol

from bs4 import BeautifulSoup, Tag

from basket_compare.config.settings import Settings
from basket_compare.models.listing import RawListing, SourceId

logger = logging.getLogger("basket_compare.extract")

_PRICE_MARKERS: tuple[str, ...] = ("₹", "Rs")
_MISSING_PRICE = "Price not available"


class Extractor(Protocol):
    """Source-specific page parser.  Must not perform I/O."""

    def extract(self, html: str, query: str) -> list[RawListing]: ...


def load_selectors(
    path: Path | None = None,
) -> dict[str, dict[str, list[str]]]:
    """Load all per-source selector sets from selectors.json."""
    with open(path or Settings.SELECTORS_PATH, encoding="utf-8") as f:
        data: dict[str, dict[str, list[str]]] = json.load(f)
    return data


class SelectorExtractor:
    """Extract listings by trying card/field selectors in order.

    A card with both a name and a price becomes a real listing.  A card
    with only one of the two is kept as a placeholder flagged
    ``is_synthetic`` so it is counted but never merged; a card with
    neither is skipped.
    """

    def __init__(
        self,
        source: SourceId,
        homepage: str,
        selectors: dict[str, list[str]],
        label: str | None = None,
    ) -> None:
        self.source = source
        self.homepage = homepage
        self.label = label or source.value.title()
        self.card_selectors: list[str] = selectors.get("cards", [])
        self.name_selectors: list[str] = selectors.get("name", [])
        self.price_selectors: list[str] = selectors.get("price", [])
        self.unit_selectors: list[str] = selectors.get("unit", [])

    def extract(self, html: str, query: str) -> list[RawListing]:
        soup = BeautifulSoup(html, "lxml")
        cards = self._find_cards(soup)
        if not cards:
            logger.info(
                "[%s] No product cards found for '%s'",
                self.source.value,
                query,
            )
            return []

        listings: list[RawListing] = []
        for position, card in enumerate(cards):
            try:
                listing = self._parse_card(card, position)
            except Exception as exc:
                logger.warning(
                    "[%s] Failed to parse card #%d: %s",
                    self.source.value,
                    position,
                    exc,
                    exc_info=True,
                )
                continue
            if listing is not None:
                listings.append(listing)

        synthetic = sum(1 for item in listings if item.is_synthetic)
        logger.info(
            "[%s] Extracted %d listings (%d placeholders) from %d cards",
            self.source.value,
            len(listings),
            synthetic,
            len(cards),
        )
        return listings

    def _find_cards(self, soup: BeautifulSoup) -> list[Tag]:
        for selector in self.card_selectors:
            cards = soup.select(selector)
            if cards:
                logger.debug(
                    "[%s] %d cards matched '%s'",
                    self.source.value,
                    len(cards),
                    selector,
                )
                return cards
        return []

    @staticmethod
    def _first_text(
        card: Tag,
        selectors: list[str],
        markers: tuple[str, ...] = (),
    ) -> str:
        """Text of the first selector hit (optionally containing a marker)."""
        for selector in selectors:
            el = card.select_one(selector)
            if el is None:
                continue
            text = el.get_text(" ", strip=True)
            if not text:
                continue
            if markers and not any(m in text for m in markers):
                continue
            return text
        return ""

    def _resolve(self, href: Any) -> str | None:
        if not href:
            return None
        return urllib.parse.urljoin(self.homepage, str(href))

    def _parse_card(self, card: Tag, position: int) -> RawListing | None:
        name = self._first_text(card, self.name_selectors)
        price = self._first_text(
            card, self.price_selectors, _PRICE_MARKERS
        )
        if not name and not price:
            return None

        anchor = card if card.name == "a" else card.find("a")
        url = (
            self._resolve(anchor.get("href"))
            if isinstance(anchor, Tag)
            else None
        )
        img = card.find("img")
        image_url = (
            str(img.get("src") or img.get("data-src") or "") or None
            if isinstance(img, Tag)
            else None
        )

        return RawListing(
            name=name or f"{self.label} Product {position + 1}",
            raw_price=price or _MISSING_PRICE,
            source=self.source,
            unit=self._first_text(card, self.unit_selectors) or None,
            url=url,
            image_url=image_url,
            is_synthetic=not (name and price),
            position=position,
        )


def build_extractors(
    selectors_path: Path | None = None,
) -> dict[SourceId, Extractor]:
    """One :class:`SelectorExtractor` per registered source."""
    all_selectors = load_selectors(selectors_path)
    extractors: dict[SourceId, Extractor] = {}
    for src in Settings.AVAILABLE_SOURCES:
        source = SourceId(src["id"])
        extractors[source] = SelectorExtractor(
            source,
            homepage=src["homepage"],
            selectors=all_selectors.get(src["id"], {}),
            label=src["label"],
        )
    return extractors
