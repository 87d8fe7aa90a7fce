# basket_compare/filters/price_utils.py

"""Best-effort numeric parsing of display prices, for presentation only.

The search contract keeps prices as raw strings; the CLI uses these
helpers to sort and highlight the cheapest source.
"""

import re
from dataclasses import dataclass

_NUMBER_RE = re.compile(r"\d+(?:\.\d+)?")


@dataclass
class PriceDetails:
    """Parsed selling price plus optional strike-through MRP."""

    price: float
    original_price: float | None = None
    discount_percentage: int | None = None


def _numbers(text: str | None) -> list[float]:
    if not text:
        return []
    return [float(n) for n in _NUMBER_RE.findall(text.replace(",", ""))]


def extract_price(text: str | None) -> float:
    """Extract a numeric price from a string like '₹1,299.00'."""
    numbers = _numbers(text)
    return numbers[0] if numbers else 0.0


def extract_price_details(
    raw_price: str | None,
    original_price: str | None = None,
) -> PriceDetails:
    """Parse '₹100', 'Rs. 55.50' or '₹100 MRP ₹120' style strings.

    Without an explicit *original_price*, an MRP embedded in the same
    string is used.  An "original" that is not higher than the selling
    price is discarded.
    """
    numbers = _numbers(raw_price)
    if not numbers:
        return PriceDetails(price=0.0)

    current = numbers[0]
    original: float | None = None
    if original_price is not None:
        parsed = _numbers(original_price)
        original = parsed[0] if parsed else None
    elif raw_price and "mrp" in raw_price.lower() and len(numbers) >= 2:
        current = min(numbers)
        original = max(numbers)

    if original is not None and original <= current:
        original = None

    discount: int | None = None
    if original:
        discount = round((original - current) / original * 100)

    return PriceDetails(
        price=current,
        original_price=original,
        discount_percentage=discount,
    )


def format_price(value: float | None, symbol: str = "₹") -> str:
    """Format a price for display, or 'N/A' when unknown."""
    if value is None:
        return "N/A"
    return f"{symbol}{value:,.2f}"
