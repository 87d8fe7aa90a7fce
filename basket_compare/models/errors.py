# basket_compare/models/errors.py

"""Error taxonomy for searches.

``FetchError`` and ``ExtractionEmpty`` never leave a ``SourceClient``:
they drive its retry loop and end up as ``SourceOutcome`` metadata.
The ``SearchError`` subclasses are what the HTTP layer renders.
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from basket_compare.models.outcome import SearchResult


class FetchError(Exception):
    """Every transport failed or timed out for a URL."""


class ExtractionEmpty(Exception):
    """A page was fetched but yielded zero listings."""


class SearchError(Exception):
    """Base for errors surfaced to API callers."""

    status_code: int = 500
    error_type: str = "Server Error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_body(self) -> dict[str, object]:
        return {
            "success": False,
            "error": {
                "type": self.error_type,
                "message": self.message,
            },
        }


class ValidationError(SearchError):
    """Bad request parameters."""

    status_code = 400
    error_type = "Validation Error"


class OrchestratorFault(SearchError):
    """Unexpected internal failure while running a search."""

    status_code = 500
    error_type = "Server Error"


class AllSourcesFailed(SearchError):
    """No products, and at least one source reported a failure."""

    status_code = 503
    error_type = "Scraping Error"

    def __init__(self, result: "SearchResult") -> None:
        super().__init__(
            "Failed to retrieve data from one or more grocery platforms."
        )
        self.result = result

    def to_body(self) -> dict[str, object]:
        body = super().to_body()
        body.update(
            {
                "query": self.result.query,
                "location": {
                    "latitude": self.result.coordinates.latitude,
                    "longitude": self.result.coordinates.longitude,
                },
                "products": [],
                "metadata": {
                    source: outcome.to_dict()
                    for source, outcome in self.result.metadata.items()
                },
            }
        )
        return body
