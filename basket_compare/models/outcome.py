# basket_compare/models/outcome.py

"""Per-source search outcomes and the orchestrator's result container."""

from dataclasses import dataclass, field
from enum import Enum

from basket_compare.models.listing import Coordinates
from basket_compare.models.product import MergedProduct


class SourceStatus(str, Enum):
    """How a single source fared during one search."""

    SUCCESS = "success"
    NO_RESULTS = "no_results"
    FAILED = "failed"


@dataclass(frozen=True)
class SourceOutcome:
    """Immutable record of one source's part in one search."""

    status: SourceStatus
    listing_count: int
    error: str | None = None
    request_url: str | None = None
    synthetic_count: int = 0
    invalid_count: int = 0

    @property
    def real_count(self) -> int:
        """Listings that survived synthetic and validity filtering."""
        return (
            self.listing_count - self.synthetic_count - self.invalid_count
        )

    def to_dict(self) -> dict[str, object]:
        return {
            "status": self.status.value,
            "listingCount": self.listing_count,
            "syntheticCount": self.synthetic_count,
            "error": self.error,
            "requestUrl": self.request_url,
        }


@dataclass
class SearchResult:
    """Container for a completed search across all sources."""

    query: str
    coordinates: Coordinates
    products: list[MergedProduct] = field(
        default_factory=lambda: list[MergedProduct]()
    )
    metadata: dict[str, SourceOutcome] = field(
        default_factory=lambda: dict[str, SourceOutcome]()
    )

    @property
    def any_failed(self) -> bool:
        return any(
            o.status is SourceStatus.FAILED
            for o in self.metadata.values()
        )

    @property
    def any_real_results(self) -> bool:
        return any(
            o.status is SourceStatus.SUCCESS and o.real_count > 0
            for o in self.metadata.values()
        )
