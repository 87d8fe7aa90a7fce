# basket_compare/models/product.py

"""Merged, cross-source product records."""

from dataclasses import dataclass, field


@dataclass
class PriceDetail:
    """Price data for one merged product on one source."""

    raw_price: str
    unit: str | None = None
    url: str | None = None

    def to_dict(self) -> dict[str, str | None]:
        return {
            "rawPrice": self.raw_price,
            "unit": self.unit,
            "url": self.url,
        }


@dataclass
class MergedProduct:
    """One deduplicated catalog entry aggregating same-product listings.

    ``prices`` carries one key per configured source; sources that did
    not list the product map to ``None``.
    """

    id: str
    canonical_name: str
    image_url: str
    prices: dict[str, PriceDetail | None] = field(
        default_factory=lambda: dict[str, PriceDetail | None]()
    )

    @property
    def available_sources(self) -> list[str]:
        """Source IDs with a populated price slot."""
        return [s for s, p in self.prices.items() if p is not None]

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "canonicalName": self.canonical_name,
            "imageUrl": self.image_url,
            "prices": {
                source: (detail.to_dict() if detail else None)
                for source, detail in self.prices.items()
            },
        }
