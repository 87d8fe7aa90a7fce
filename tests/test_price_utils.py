# tests/test_price_utils.py

"""Tests for display-price parsing helpers."""

import unittest

from basket_compare.filters.price_utils import (
    extract_price,
    extract_price_details,
    format_price,
)


class TestExtractPrice(unittest.TestCase):
    """extract_price."""

    def test_rupee_symbol(self) -> None:
        self.assertEqual(extract_price("₹27"), 27.0)

    def test_thousands_separator(self) -> None:
        self.assertEqual(extract_price("₹1,299.50"), 1299.5)

    def test_rs_prefix(self) -> None:
        self.assertEqual(extract_price("Rs. 55.50"), 55.5)

    def test_no_number(self) -> None:
        self.assertEqual(extract_price("Price not available"), 0.0)

    def test_none(self) -> None:
        self.assertEqual(extract_price(None), 0.0)


class TestExtractPriceDetails(unittest.TestCase):
    """extract_price_details."""

    def test_plain_price(self) -> None:
        details = extract_price_details("₹27")
        self.assertEqual(details.price, 27.0)
        self.assertIsNone(details.original_price)
        self.assertIsNone(details.discount_percentage)

    def test_embedded_mrp(self) -> None:
        details = extract_price_details("₹90 MRP ₹100")
        self.assertEqual(details.price, 90.0)
        self.assertEqual(details.original_price, 100.0)
        self.assertEqual(details.discount_percentage, 10)

    def test_mrp_listed_first(self) -> None:
        details = extract_price_details("MRP ₹120 ₹96")
        self.assertEqual(details.price, 96.0)
        self.assertEqual(details.original_price, 120.0)
        self.assertEqual(details.discount_percentage, 20)

    def test_explicit_original(self) -> None:
        details = extract_price_details("₹75", "₹100")
        self.assertEqual(details.original_price, 100.0)
        self.assertEqual(details.discount_percentage, 25)

    def test_original_not_higher_discarded(self) -> None:
        details = extract_price_details("₹100", "₹80")
        self.assertIsNone(details.original_price)
        self.assertIsNone(details.discount_percentage)

    def test_unparseable(self) -> None:
        self.assertEqual(extract_price_details("N/A").price, 0.0)


class TestFormatPrice(unittest.TestCase):
    """format_price."""

    def test_formats_with_symbol(self) -> None:
        self.assertEqual(format_price(1299.5), "₹1,299.50")

    def test_custom_symbol(self) -> None:
        self.assertEqual(format_price(10.0, "Rs "), "Rs 10.00")

    def test_none(self) -> None:
        self.assertEqual(format_price(None), "N/A")


if __name__ == "__main__":
    unittest.main()
