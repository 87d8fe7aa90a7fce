# basket_compare/models/listing.py

"""Search inputs and raw per-source listings."""

import math
from dataclasses import dataclass
from enum import Enum


class SourceId(str, Enum):
    """Registered grocery sources, in merge priority order."""

    ZEPTO = "zepto"
    BLINKIT = "blinkit"
    INSTAMART = "instamart"


@dataclass(frozen=True)
class Coordinates:
    """Location a search is run against."""

    latitude: float
    longitude: float

    def __post_init__(self) -> None:
        if not (
            math.isfinite(self.latitude)
            and math.isfinite(self.longitude)
        ):
            msg = (
                "Coordinates must be finite, got "
                f"({self.latitude}, {self.longitude})"
            )
            raise ValueError(msg)


@dataclass
class RawListing:
    """One product card extracted from a source's search page.

    ``raw_price`` is kept exactly as displayed (currency symbol and
    all); sources format prices too inconsistently to parse here.
    ``position`` is the card's index on the page.
    """

    name: str
    raw_price: str
    source: SourceId
    unit: str | None = None
    url: str | None = None
    image_url: str | None = None
    is_synthetic: bool = False
    position: int = 0
