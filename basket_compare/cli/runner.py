# basket_compare/cli/runner.py

"""Headless CLI search runner that reuses the async orchestrator."""

import json
import logging
import sys

from rich.console import Console
from rich.table import Table

from basket_compare.config.settings import Settings
from basket_compare.filters.price_utils import (
    extract_price_details,
    format_price,
)
from basket_compare.models.errors import AllSourcesFailed
from basket_compare.models.listing import Coordinates
from basket_compare.models.outcome import SearchResult, SourceStatus
from basket_compare.services.result_assembler import ResultAssembler
from basket_compare.services.search_orchestrator import SearchOrchestrator

logger = logging.getLogger("basket_compare.cli")

# Stderr console for status messages so stdout stays clean for JSON
_err = Console(stderr=True)


def resolve_sources(
    source_csv: str | None,
) -> list[dict[str, str]]:
    """Map a comma-separated list of source IDs to their config dicts.

    Returns all sources when *source_csv* is ``None``.
    Raises ``SystemExit`` on unknown IDs.
    """
    available = {
        s["id"]: s for s in Settings.AVAILABLE_SOURCES
    }
    if source_csv is None:
        return Settings.AVAILABLE_SOURCES

    requested = [
        s.strip() for s in source_csv.split(",") if s.strip()
    ]
    unknown = [r for r in requested if r not in available]
    if unknown or not requested:
        valid = ", ".join(sorted(available))
        _err.print(
            f"[red]Unknown source(s): {', '.join(unknown) or '(none)'}"
            "[/red]"
        )
        _err.print(f"[dim]Available: {valid}[/dim]")
        raise SystemExit(1)

    return [available[r] for r in requested]


def _price_cell(raw: str | None, cheapest: float | None) -> str:
    if raw is None:
        return "—"
    details = extract_price_details(raw)
    text = raw
    if details.discount_percentage:
        text = f"{raw} [dim](-{details.discount_percentage}%)[/dim]"
    if cheapest is not None and details.price == cheapest:
        return f"[bold green]{text}[/bold green]"
    return text


def _print_table(result: SearchResult) -> None:
    """Render a Rich table with one price column per source."""
    sources = list(result.metadata)
    table = Table(
        title=f"Results for '{result.query}'",
        show_lines=True,
        title_style="bold cyan",
    )
    table.add_column("#", style="dim", width=4)
    table.add_column("Product", max_width=50)
    for source in sources:
        table.add_column(source, justify="right")
    table.add_column("Best", justify="right", style="green")

    for idx, product in enumerate(result.products, 1):
        parsed = [
            extract_price_details(d.raw_price).price
            for d in product.prices.values()
            if d is not None
        ]
        positive = [p for p in parsed if p > 0]
        cheapest = min(positive) if positive else None
        cells = []
        for source in sources:
            detail = product.prices.get(source)
            cells.append(
                _price_cell(detail.raw_price if detail else None, cheapest)
            )
        table.add_row(
            str(idx),
            product.canonical_name[:50],
            *cells,
            format_price(cheapest),
        )

    Console().print(table)


def _report_sources(result: SearchResult) -> None:
    """Print one status line per source to stderr."""
    for source, outcome in result.metadata.items():
        if outcome.status is SourceStatus.SUCCESS:
            _err.print(
                f"[green]✓ {source}: {outcome.real_count} listings"
                f"[/green]"
            )
        elif outcome.status is SourceStatus.NO_RESULTS:
            _err.print(f"[yellow]- {source}: no results[/yellow]")
        else:
            _err.print(f"[red]✗ {source}: {outcome.error}[/red]")


def _dump_json(body: dict[str, object]) -> None:
    json.dump(body, sys.stdout, ensure_ascii=False, indent=2)
    sys.stdout.write("\n")


async def cli_search(
    query: str,
    lat: float,
    lon: float,
    source_csv: str | None,
    output_format: str,
) -> int:
    """Run a headless search and return an exit code (0=ok, 1=fail)."""
    sources = resolve_sources(source_csv)
    try:
        coords = Coordinates(lat, lon)
    except ValueError as exc:
        _err.print(f"[red]{exc}[/red]")
        return 1

    orchestrator = SearchOrchestrator.from_settings(sources=sources)
    source_labels = ", ".join(s["label"] for s in sources)
    _err.print(
        f"[bold]Searching:[/bold] {query}  "
        f"[dim]sources={source_labels} at ({lat}, {lon})[/dim]"
    )

    result = await orchestrator.search(query, coords)
    _report_sources(result)

    try:
        body = ResultAssembler.build(result)
    except AllSourcesFailed as exc:
        _err.print(f"[red]{exc.message}[/red]")
        if output_format == "json":
            _dump_json(exc.to_body())
        return 1

    if not result.products:
        _err.print("[yellow]No products found.[/yellow]")
        if output_format == "json":
            _dump_json(body)
        return 1

    _err.print(f"[green]✓ {len(result.products)} merged products[/green]")
    if output_format == "table":
        _print_table(result)
    else:
        _dump_json(body)
    return 0


async def run_health_check() -> int:
    """Run connectivity health check on all sources."""
    from basket_compare.services.health_checker import HealthChecker

    _err.print("[bold]Running source health check...[/bold]")
    checker = HealthChecker()
    results = await checker.check_all()

    table = Table(
        title="Source Health Check",
        show_lines=True,
        title_style="bold cyan",
    )
    table.add_column("Source", style="bold")
    table.add_column("Status", justify="center")
    table.add_column("Latency", justify="right")
    table.add_column("Transport")
    table.add_column("Notes", style="dim")

    any_down = False
    for r in results:
        if r.status == "ok":
            status = "[green]✅ OK[/green]"
        elif r.status == "slow":
            status = "[yellow]⚠️  SLOW[/yellow]"
        else:
            status = "[red]❌ DOWN[/red]"
            any_down = True

        latency = (
            f"{r.latency_ms:.0f}ms"
            if r.latency_ms > 0
            else "—"
        )
        table.add_row(
            r.source_id, status, latency, r.strategy or "—", r.message,
        )

    Console().print(table)
    return 1 if any_down else 0


def run_server(host: str | None = None, port: int | None = None) -> None:
    """Serve the HTTP API with uvicorn."""
    import uvicorn

    from basket_compare.api.app import create_app
    from basket_compare.config.logging_config import setup_logging

    host = host or Settings.HOST
    port = port or Settings.PORT
    setup_logging(extra_loggers=["uvicorn"])
    logging.getLogger("uvicorn").setLevel(logging.INFO)
    _err.print(f"[bold]Serving on http://{host}:{port}[/bold]")
    uvicorn.run(create_app(), host=host, port=port, log_config=None)
