# basket_compare/services/result_assembler.py

"""Shape orchestrator results into the search response contract."""

import logging

from basket_compare.models.errors import AllSourcesFailed
from basket_compare.models.outcome import SearchResult, SourceStatus

logger = logging.getLogger("basket_compare.assembler")

NO_PRODUCTS_MESSAGE = (
    "No products found matching your query and location "
    "across the platforms."
)


class ResultAssembler:
    """Turn a :class:`SearchResult` into a JSON-ready response body."""

    @staticmethod
    def metadata_dict(result: SearchResult) -> dict[str, object]:
        return {
            source: outcome.to_dict()
            for source, outcome in result.metadata.items()
        }

    @staticmethod
    def build(result: SearchResult) -> dict[str, object]:
        """Build the success body, or raise when the search failed.

        Raises:
            AllSourcesFailed: no products were merged and at least one
                source failed, so "nothing found" cannot be trusted.
        """
        body: dict[str, object] = {
            "success": True,
            "query": result.query,
            "location": {
                "latitude": result.coordinates.latitude,
                "longitude": result.coordinates.longitude,
            },
            "products": [p.to_dict() for p in result.products],
            "metadata": ResultAssembler.metadata_dict(result),
        }
        if result.products:
            return body

        if result.any_failed and not result.any_real_results:
            failed = sorted(
                source
                for source, outcome in result.metadata.items()
                if outcome.status is SourceStatus.FAILED
            )
            logger.warning(
                "Search for '%s' failed on %s with no results elsewhere",
                result.query,
                ", ".join(failed),
            )
            raise AllSourcesFailed(result)

        body["message"] = NO_PRODUCTS_MESSAGE
        return body
