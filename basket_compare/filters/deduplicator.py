# basket_compare/filters/deduplicator.py

"""Cross-source listing deduplication into merged products."""

import logging
import re
from collections.abc import Sequence

from rapidfuzz.distance import Levenshtein

from basket_compare.config.settings import Settings
from basket_compare.models.listing import RawListing, SourceId
from basket_compare.models.product import MergedProduct, PriceDetail

logger = logging.getLogger("basket_compare.filters")

_UNITS = (
    r"(?:kg|kgs|kilograms?|g|gm|gms|grams?|mg|ml|millilit(?:er|re)s?"
    r"|l|ltrs?|lit(?:er|re)s?|pcs?|pieces?|packs?|dozen)"
)


class ListingDeduplicator:
    """Cluster same-product listings from different sources.

    Listings are walked in a content-derived order (source priority,
    page position, then name/price/url), so the same listing set gives
    the same clusters whatever order it arrives in.
    """

    # "4x100g", "2 x 1.5 l"
    _MULTIPACK_RE = re.compile(
        rf"\b\d+(?:\.\d+)?\s*x\s*\d+(?:\.\d+)?\s*{_UNITS}\b"
    )
    # "1kg", "500 ml", "1.5 l"
    _QUANTITY_RE = re.compile(rf"\b\d+(?:\.\d+)?\s*{_UNITS}\b")
    _BARE_UNIT_RE = re.compile(rf"\b{_UNITS}\b")
    _PUNCT_RE = re.compile(r"[^\w\s]")

    def __init__(
        self,
        sources: Sequence[SourceId] | None = None,
        threshold: float | None = None,
        representative_threshold: float | None = None,
        placeholder_image: str | None = None,
    ) -> None:
        self.sources: list[SourceId] = list(sources or SourceId)
        self._priority = {s: i for i, s in enumerate(self.sources)}
        self.threshold = (
            threshold
            if threshold is not None
            else Settings.SIMILARITY_THRESHOLD
        )
        self.representative_threshold = (
            representative_threshold
            if representative_threshold is not None
            else Settings.REPRESENTATIVE_SIMILARITY
        )
        self.placeholder_image = (
            placeholder_image or Settings.PLACEHOLDER_IMAGE
        )

    @staticmethod
    def normalise_name(name: str) -> str:
        """Normalise a listing name to a comparable key.

        Lowercases, drops quantity/unit tokens, strips punctuation,
        and collapses whitespace.
        """
        if not name:
            return ""
        lowered = name.lower()
        cls = ListingDeduplicator
        stripped = cls._MULTIPACK_RE.sub(" ", lowered)
        stripped = cls._QUANTITY_RE.sub(" ", stripped)
        stripped = cls._BARE_UNIT_RE.sub(" ", stripped)
        stripped = cls._PUNCT_RE.sub("", stripped)
        return " ".join(stripped.split())

    @staticmethod
    def similarity(a: str, b: str) -> float:
        """Normalised Levenshtein similarity in [0, 1]; 1 means identical."""
        if not a and not b:
            return 1.0
        if not a or not b:
            return 0.0
        return float(Levenshtein.normalized_similarity(a, b))

    def _sort_key(
        self, item: tuple[RawListing, str],
    ) -> tuple[int, int, str, str, str, str, str, str]:
        listing, key = item
        return (
            self._priority[listing.source],
            listing.position,
            key,
            listing.name,
            listing.raw_price,
            listing.url or "",
            listing.unit or "",
            listing.image_url or "",
        )

    def merge(self, listings: list[RawListing]) -> list[MergedProduct]:
        """Group similar listings into merged products.

        Every listing ends up in exactly one product; one with no
        match anywhere still gets a single-source product of its own.
        """
        if not listings:
            return []

        keyed: list[tuple[RawListing, str]] = []
        unknown = 0
        for listing in listings:
            if listing.source not in self._priority:
                unknown += 1
                continue
            keyed.append((listing, self.normalise_name(listing.name)))
        if unknown:
            logger.warning(
                "Ignored %d listings from unconfigured sources", unknown
            )
        keyed.sort(key=self._sort_key)

        processed: set[str] = set()
        products: list[MergedProduct] = []

        for seed, seed_key in keyed:
            if seed_key in processed:
                continue
            if not seed_key:
                # Nothing left to compare on; never groups with others
                cluster = [(seed, seed_key)]
            else:
                cluster = [
                    (other, other_key)
                    for other, other_key in keyed
                    if other_key
                    and other_key not in processed
                    and self.similarity(seed_key, other_key)
                    >= self.threshold
                ]
            products.append(self._build_product(len(products), cluster))
            for _listing, key in cluster:
                if key:
                    processed.add(key)

        logger.info(
            "Merged %d listings into %d products",
            len(keyed),
            len(products),
        )
        return products

    def _pick_representative(
        self, cluster: list[tuple[RawListing, str]],
    ) -> tuple[RawListing, str]:
        best, best_key = cluster[0]
        for cand, cand_key in cluster[1:]:
            if cand.image_url and not best.image_url:
                best, best_key = cand, cand_key
            elif (
                bool(cand.image_url) == bool(best.image_url)
                and len(cand_key) < len(best_key)
                and self.similarity(cand_key, best_key)
                >= self.representative_threshold
            ):
                best, best_key = cand, cand_key
        return best, best_key

    def _build_product(
        self,
        index: int,
        cluster: list[tuple[RawListing, str]],
    ) -> MergedProduct:
        rep, rep_key = self._pick_representative(cluster)
        prices: dict[str, PriceDetail | None] = {
            s.value: None for s in self.sources
        }
        for listing, _key in cluster:
            slot = listing.source.value
            # First listing per source wins the price slot
            if prices[slot] is None:
                prices[slot] = PriceDetail(
                    raw_price=listing.raw_price,
                    unit=listing.unit,
                    url=listing.url,
                )

        slug = rep_key.replace(" ", "-")
        return MergedProduct(
            id=f"product-{index}-{slug}" if slug else f"product-{index}",
            canonical_name=rep.name,
            image_url=rep.image_url or self.placeholder_image,
            prices=prices,
        )
