# tests/test_cli.py

"""Tests for the headless CLI runner."""

import io
import json
import unittest
from unittest.mock import MagicMock, patch

from basket_compare.cli.runner import cli_search, resolve_sources
from basket_compare.config.settings import Settings
from basket_compare.models.listing import Coordinates
from basket_compare.models.outcome import (
    SearchResult,
    SourceOutcome,
    SourceStatus,
)
from basket_compare.models.product import MergedProduct, PriceDetail

ORCH_PATH = "basket_compare.cli.runner.SearchOrchestrator"


class FakeOrchestrator:
    """Orchestrator stand-in with a canned result."""

    def __init__(self, result: SearchResult) -> None:
        self.result = result

    async def search(self, query: str, coords: Coordinates) -> SearchResult:
        return self.result


def _result(
    products: list[MergedProduct],
    status: SourceStatus,
) -> SearchResult:
    return SearchResult(
        "milk",
        Coordinates(12.97, 77.59),
        products=products,
        metadata={
            "zepto": SourceOutcome(
                status=status,
                listing_count=len(products),
                error="HTTP 403" if status is SourceStatus.FAILED else None,
            ),
        },
    )


def _milk() -> MergedProduct:
    return MergedProduct(
        id="product-0-amul-milk",
        canonical_name="Amul Milk",
        image_url="/placeholder.svg",
        prices={"zepto": PriceDetail("₹27")},
    )


class TestResolveSources(unittest.TestCase):
    """Tests for resolve_sources."""

    def test_none_returns_all(self) -> None:
        self.assertEqual(resolve_sources(None), Settings.AVAILABLE_SOURCES)

    def test_subset_keeps_requested_order(self) -> None:
        sources = resolve_sources("instamart, zepto")
        self.assertEqual([s["id"] for s in sources], ["instamart", "zepto"])

    def test_unknown_source_exits(self) -> None:
        with self.assertRaises(SystemExit):
            resolve_sources("zepto,bigbasket")

    def test_blank_list_exits(self) -> None:
        with self.assertRaises(SystemExit):
            resolve_sources(" , ")


class TestCliSearch(unittest.IsolatedAsyncioTestCase):
    """Tests for cli_search exit codes and output."""

    async def _run(
        self, result: SearchResult, output_format: str = "json",
    ) -> tuple[int, str, MagicMock]:
        with (
            patch(ORCH_PATH) as mock_cls,
            patch("sys.stdout", new_callable=io.StringIO) as out,
        ):
            mock_cls.from_settings.return_value = FakeOrchestrator(result)
            code = await cli_search(
                "milk", 12.97, 77.59, "zepto", output_format
            )
        return code, out.getvalue(), mock_cls

    async def test_products_found_json(self) -> None:
        code, out, mock_cls = await self._run(
            _result([_milk()], SourceStatus.SUCCESS)
        )
        self.assertEqual(code, 0)
        body = json.loads(out)
        self.assertTrue(body["success"])
        self.assertEqual(body["products"][0]["canonicalName"], "Amul Milk")
        _, kwargs = mock_cls.from_settings.call_args
        self.assertEqual([s["id"] for s in kwargs["sources"]], ["zepto"])

    async def test_no_results_exit_one(self) -> None:
        code, out, _ = await self._run(_result([], SourceStatus.NO_RESULTS))
        self.assertEqual(code, 1)
        self.assertEqual(json.loads(out)["products"], [])

    async def test_all_failed_prints_error_body(self) -> None:
        code, out, _ = await self._run(_result([], SourceStatus.FAILED))
        self.assertEqual(code, 1)
        body = json.loads(out)
        self.assertFalse(body["success"])
        self.assertEqual(body["error"]["type"], "Scraping Error")

    async def test_table_format_keeps_stdout_free_of_json(self) -> None:
        code, out, _ = await self._run(
            _result([_milk()], SourceStatus.SUCCESS), output_format="table"
        )
        self.assertEqual(code, 0)
        self.assertNotIn('"success"', out)

    async def test_invalid_coordinates(self) -> None:
        code = await cli_search("milk", float("nan"), 1.0, None, "json")
        self.assertEqual(code, 1)


if __name__ == "__main__":
    unittest.main()
