# tests/test_models.py

"""Tests for listing, product, outcome and error models."""

import math
import unittest

from basket_compare.models.errors import (
    OrchestratorFault,
    SearchError,
    ValidationError,
)
from basket_compare.models.listing import Coordinates, RawListing, SourceId
from basket_compare.models.outcome import (
    SearchResult,
    SourceOutcome,
    SourceStatus,
)
from basket_compare.models.product import MergedProduct, PriceDetail


class TestCoordinates(unittest.TestCase):
    """Coordinates validation."""

    def test_finite_values_accepted(self) -> None:
        coords = Coordinates(12.97, 77.59)
        self.assertEqual(coords.latitude, 12.97)

    def test_non_finite_rejected(self) -> None:
        for bad in (math.nan, math.inf, -math.inf):
            with self.subTest(bad=bad):
                with self.assertRaises(ValueError):
                    Coordinates(bad, 0.0)
                with self.assertRaises(ValueError):
                    Coordinates(0.0, bad)


class TestRawListing(unittest.TestCase):
    """RawListing defaults."""

    def test_defaults(self) -> None:
        listing = RawListing("Amul Milk", "₹27", SourceId.ZEPTO)
        self.assertFalse(listing.is_synthetic)
        self.assertIsNone(listing.unit)
        self.assertEqual(listing.position, 0)

    def test_source_id_is_string_enum(self) -> None:
        self.assertEqual(SourceId("blinkit"), SourceId.BLINKIT)
        self.assertEqual(SourceId.BLINKIT.value, "blinkit")


class TestMergedProduct(unittest.TestCase):
    """MergedProduct helpers."""

    def test_available_sources(self) -> None:
        product = MergedProduct(
            id="product-0-milk",
            canonical_name="Milk",
            image_url="/placeholder.svg",
            prices={
                "zepto": None,
                "blinkit": PriceDetail("₹28"),
                "instamart": PriceDetail("₹30"),
            },
        )
        self.assertEqual(product.available_sources, ["blinkit", "instamart"])

    def test_price_detail_to_dict(self) -> None:
        self.assertEqual(
            PriceDetail("₹28", "500 ml", None).to_dict(),
            {"rawPrice": "₹28", "unit": "500 ml", "url": None},
        )


class TestSearchResult(unittest.TestCase):
    """SearchResult status roll-ups."""

    def _result(self, *outcomes: SourceOutcome) -> SearchResult:
        return SearchResult(
            "milk",
            Coordinates(1.0, 2.0),
            metadata={str(i): o for i, o in enumerate(outcomes)},
        )

    def test_real_count_excludes_synthetic(self) -> None:
        outcome = SourceOutcome(
            SourceStatus.SUCCESS, listing_count=5, synthetic_count=2
        )
        self.assertEqual(outcome.real_count, 3)

    def test_real_count_excludes_invalid(self) -> None:
        outcome = SourceOutcome(
            SourceStatus.SUCCESS,
            listing_count=5,
            synthetic_count=1,
            invalid_count=2,
        )
        self.assertEqual(outcome.real_count, 2)
        self.assertNotIn("invalidCount", outcome.to_dict())

    def test_any_failed(self) -> None:
        result = self._result(
            SourceOutcome(SourceStatus.NO_RESULTS, 0),
            SourceOutcome(SourceStatus.FAILED, 0, error="x"),
        )
        self.assertTrue(result.any_failed)
        self.assertFalse(result.any_real_results)

    def test_any_real_results_ignores_synthetic_only(self) -> None:
        result = self._result(
            SourceOutcome(SourceStatus.SUCCESS, 2, synthetic_count=2)
        )
        self.assertFalse(result.any_real_results)
        result = self._result(
            SourceOutcome(SourceStatus.SUCCESS, 2, synthetic_count=1)
        )
        self.assertTrue(result.any_real_results)


class TestErrors(unittest.TestCase):
    """Error taxonomy."""

    def test_status_codes(self) -> None:
        self.assertEqual(ValidationError("x").status_code, 400)
        self.assertEqual(OrchestratorFault("x").status_code, 500)

    def test_to_body(self) -> None:
        self.assertEqual(
            ValidationError("bad lat").to_body(),
            {
                "success": False,
                "error": {"type": "Validation Error", "message": "bad lat"},
            },
        )

    def test_all_search_errors_share_base(self) -> None:
        self.assertTrue(issubclass(ValidationError, SearchError))
        self.assertTrue(issubclass(OrchestratorFault, SearchError))


if __name__ == "__main__":
    unittest.main()
