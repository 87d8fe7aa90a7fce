# tests/test_deduplicator.py

"""Tests for fuzzy cross-source listing deduplication."""

import itertools
import unittest

from basket_compare.filters.deduplicator import ListingDeduplicator
from basket_compare.models.listing import RawListing, SourceId
from basket_compare.models.product import MergedProduct

Z, B, I = SourceId.ZEPTO, SourceId.BLINKIT, SourceId.INSTAMART


def _l(
    name: str,
    source: SourceId,
    price: str = "₹10",
    image: str | None = None,
    position: int = 0,
) -> RawListing:
    return RawListing(
        name=name,
        raw_price=price,
        source=source,
        image_url=image,
        position=position,
    )


def _price(product: MergedProduct, source: str) -> str | None:
    detail = product.prices[source]
    return detail.raw_price if detail else None


def _shape(products: list[MergedProduct]) -> list[tuple[str, str, dict]]:
    """Comparable view of a merge result."""
    return [
        (
            p.id,
            p.canonical_name,
            {
                s: (d.raw_price if d else None)
                for s, d in p.prices.items()
            },
        )
        for p in products
    ]


class TestNormaliseName(unittest.TestCase):
    """Name normalisation rules."""

    norm = staticmethod(ListingDeduplicator.normalise_name)

    def test_lowercase_and_units_stripped(self) -> None:
        self.assertEqual(self.norm("Amul Gold Milk 1L"), "amul gold milk")

    def test_spaced_quantity_and_punctuation(self) -> None:
        self.assertEqual(
            self.norm("Amul Gold Milk (1 L)"), "amul gold milk"
        )

    def test_decimal_quantity(self) -> None:
        self.assertEqual(
            self.norm("Coca-Cola Soft Drink 1.5 ltr"), "cocacola soft drink"
        )

    def test_multipack(self) -> None:
        self.assertEqual(
            self.norm("Good Day Biscuits 4 x 100g"), "good day biscuits"
        )

    def test_whitespace_collapsed(self) -> None:
        self.assertEqual(
            self.norm("  Fresh   Tomato  -  Hybrid "), "fresh tomato hybrid"
        )

    def test_empty(self) -> None:
        self.assertEqual(self.norm(""), "")

    def test_only_units_normalises_to_empty(self) -> None:
        self.assertEqual(self.norm("500 g"), "")


class TestSimilarity(unittest.TestCase):
    """Levenshtein similarity properties."""

    sim = staticmethod(ListingDeduplicator.similarity)

    def test_identical_is_one(self) -> None:
        self.assertEqual(self.sim("amul milk", "amul milk"), 1.0)

    def test_both_empty_is_one(self) -> None:
        self.assertEqual(self.sim("", ""), 1.0)

    def test_one_empty_is_zero(self) -> None:
        self.assertEqual(self.sim("amul", ""), 0.0)
        self.assertEqual(self.sim("", "amul"), 0.0)

    def test_symmetric(self) -> None:
        pairs = [("amul milk", "amul taaza milk"), ("bread", "brown bread")]
        for a, b in pairs:
            self.assertEqual(self.sim(a, b), self.sim(b, a))

    def test_bounded(self) -> None:
        for a, b in [("abc", "xyz"), ("milk", "silk"), ("a", "abcdef")]:
            value = self.sim(a, b)
            self.assertGreaterEqual(value, 0.0)
            self.assertLessEqual(value, 1.0)

    def test_distance_over_longer_length(self) -> None:
        # one substitution over four characters
        self.assertAlmostEqual(self.sim("milk", "silk"), 0.75)


class TestMerge(unittest.TestCase):
    """ListingDeduplicator.merge behaviour."""

    def setUp(self) -> None:
        self.dedup = ListingDeduplicator([Z, B, I])

    def test_empty_input(self) -> None:
        self.assertEqual(self.dedup.merge([]), [])

    def test_same_product_across_sources_merged(self) -> None:
        products = self.dedup.merge(
            [
                _l("Amul Gold Milk 1L", Z, "₹68"),
                _l("Amul Gold Milk (1 L)", B, "₹69"),
            ]
        )
        self.assertEqual(len(products), 1)
        product = products[0]
        self.assertEqual(_price(product, "zepto"), "₹68")
        self.assertEqual(_price(product, "blinkit"), "₹69")
        self.assertIsNone(product.prices["instamart"])

    def test_case_and_unit_spacing_ignored_across_sources(self) -> None:
        products = self.dedup.merge(
            [
                _l("Amul Milk 500ml", Z, "₹27"),
                _l("AMUL MILK 500 ML", B, "₹28"),
                _l("Nestle Milk 1L", I, "₹72"),
            ]
        )
        self.assertEqual(len(products), 2)
        by_sources = {
            tuple(sorted(p.available_sources)): p for p in products
        }
        self.assertEqual(
            set(by_sources), {("blinkit", "zepto"), ("instamart",)}
        )
        amul = by_sources[("blinkit", "zepto")]
        self.assertEqual(_price(amul, "zepto"), "₹27")
        self.assertEqual(_price(amul, "blinkit"), "₹28")
        self.assertIsNone(amul.prices["instamart"])
        nestle = by_sources[("instamart",)]
        self.assertEqual(_price(nestle, "instamart"), "₹72")
        self.assertIsNone(nestle.prices["zepto"])
        self.assertIsNone(nestle.prices["blinkit"])

    def test_distinct_products_kept_apart(self) -> None:
        products = self.dedup.merge(
            [
                _l("Amul Gold Milk 1L", Z),
                _l("Britannia Brown Bread", B),
            ]
        )
        self.assertEqual(len(products), 2)

    def test_every_price_slot_keyed_by_configured_source(self) -> None:
        products = self.dedup.merge([_l("Onion", I)])
        self.assertEqual(
            list(products[0].prices), ["zepto", "blinkit", "instamart"]
        )

    def test_every_product_has_a_price(self) -> None:
        products = self.dedup.merge(
            [
                _l("Amul Gold Milk", Z),
                _l("Amul Gold Milk", B),
                _l("Tomato", I),
                _l("Potato", Z, position=1),
            ]
        )
        for product in products:
            self.assertTrue(product.available_sources)

    def test_every_listing_lands_in_one_product(self) -> None:
        listings = [
            _l("Amul Gold Milk", Z),
            _l("Tomato Hybrid", Z, position=1),
            _l("Amul Gold Milk", B),
            _l("Onion", I),
        ]
        products = self.dedup.merge(listings)
        total_slots = sum(len(p.available_sources) for p in products)
        self.assertEqual(total_slots, 4)

    def test_first_listing_per_source_wins_slot(self) -> None:
        products = self.dedup.merge(
            [
                _l("Amul Gold Milk", Z, "₹68", position=0),
                _l("Amul Gold Milk 1L", Z, "₹99", position=5),
            ]
        )
        self.assertEqual(len(products), 1)
        self.assertEqual(_price(products[0], "zepto"), "₹68")

    def test_id_format(self) -> None:
        products = self.dedup.merge(
            [_l("Amul Gold Milk 1L", Z), _l("Tata Salt", B)]
        )
        self.assertEqual(products[0].id, "product-0-amul-gold-milk")
        self.assertEqual(products[1].id, "product-1-tata-salt")

    def test_placeholder_image_when_none(self) -> None:
        products = self.dedup.merge([_l("Tata Salt", Z)])
        self.assertEqual(products[0].image_url, "/placeholder.svg")

    def test_representative_prefers_image(self) -> None:
        products = self.dedup.merge(
            [
                _l("Amul Gold Milk Pouch", Z),
                _l("Amul Gold Milk Pouchh", B, image="https://img/b.png"),
            ]
        )
        self.assertEqual(len(products), 1)
        self.assertEqual(products[0].canonical_name, "Amul Gold Milk Pouchh")
        self.assertEqual(products[0].image_url, "https://img/b.png")

    def test_representative_prefers_shorter_near_identical_name(self) -> None:
        products = self.dedup.merge(
            [
                _l("Amul Gold Full Cream Milks", Z),
                _l("Amul Gold Full Cream Milk", B),
            ]
        )
        self.assertEqual(len(products), 1)
        self.assertEqual(
            products[0].canonical_name, "Amul Gold Full Cream Milk"
        )

    def test_representative_keeps_seed_when_names_diverge(self) -> None:
        products = self.dedup.merge(
            [
                _l("Amul Taaza Toned Milk", Z),
                _l("Amul Taaza Milk", B),
            ]
        )
        self.assertEqual(len(products), 1)
        self.assertEqual(
            products[0].canonical_name, "Amul Taaza Toned Milk"
        )

    def test_unit_only_names_never_group(self) -> None:
        products = self.dedup.merge([_l("500 g", Z), _l("1 kg", B)])
        self.assertEqual(len(products), 2)
        self.assertEqual(products[0].id, "product-0")

    def test_unconfigured_source_ignored(self) -> None:
        dedup = ListingDeduplicator([Z])
        products = dedup.merge([_l("Tata Salt", Z), _l("Tata Salt", B)])
        self.assertEqual(len(products), 1)
        self.assertEqual(list(products[0].prices), ["zepto"])

    def test_threshold_configurable(self) -> None:
        strict = ListingDeduplicator([Z, B], threshold=1.0)
        products = strict.merge(
            [_l("Amul Taaza Toned Milk", Z), _l("Amul Taaza Milk", B)]
        )
        self.assertEqual(len(products), 2)

    def test_permutation_invariant(self) -> None:
        listings = [
            _l("Amul Taaza Toned Milk 500ml", Z, "₹27", position=0),
            _l("Tomato Hybrid 500g", Z, "₹18", position=1),
            _l("Amul Taaza Milk (500 ml)", B, "₹28", position=0),
            _l("Fresh Tomato Hybrid", B, "₹20", position=1),
            _l("Amul Taaza Toned Milk", I, "₹27", position=0),
            _l("Onion 1kg", I, "₹40", position=1),
        ]
        expected = _shape(self.dedup.merge(list(listings)))
        for perm in itertools.permutations(listings):
            self.assertEqual(_shape(self.dedup.merge(list(perm))), expected)


if __name__ == "__main__":
    unittest.main()
