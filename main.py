# main.py

"""Entry point for basket_compare (headless CLI, API server, health check)."""

import argparse
import asyncio
import logging
import sys

from basket_compare.config.logging_config import setup_logging
from basket_compare.config.settings import Settings

logger = logging.getLogger("basket_compare.main")


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the CLI."""
    valid_ids = ", ".join(s["id"] for s in Settings.AVAILABLE_SOURCES)

    parser = argparse.ArgumentParser(
        prog="basket_compare",
        description="Quick-commerce grocery price comparison engine.",
        epilog=f"Available sources: {valid_ids}",
    )
    parser.add_argument(
        "query",
        nargs="?",
        default=None,
        help="Search query. Required unless --serve or --health is given.",
    )
    parser.add_argument(
        "--lat",
        type=float,
        default=Settings.DEFAULT_LAT,
        help=f"Latitude (default: {Settings.DEFAULT_LAT}).",
    )
    parser.add_argument(
        "--lon",
        type=float,
        default=Settings.DEFAULT_LON,
        help=f"Longitude (default: {Settings.DEFAULT_LON}).",
    )
    parser.add_argument(
        "-s",
        "--sources",
        default=None,
        help="Comma-separated source IDs (default: all).",
    )
    parser.add_argument(
        "-f",
        "--format",
        choices=["json", "table"],
        default="json",
        dest="output_format",
        help="Output format (default: json).",
    )
    parser.add_argument(
        "--serve",
        action="store_true",
        default=False,
        help="Run the HTTP API server.",
    )
    parser.add_argument(
        "--host",
        default=None,
        help=f"Server bind host (default: {Settings.HOST}).",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help=f"Server port (default: {Settings.PORT}).",
    )
    parser.add_argument(
        "--health",
        action="store_true",
        default=False,
        help="Run a connectivity health check on all sources.",
    )
    return parser


def _run_cli(args: argparse.Namespace) -> None:
    """Run headless CLI search and exit."""
    from basket_compare.cli.runner import cli_search

    exit_code = asyncio.run(
        cli_search(
            query=args.query,
            lat=args.lat,
            lon=args.lon,
            source_csv=args.sources,
            output_format=args.output_format,
        )
    )
    sys.exit(exit_code)


def _run_server(args: argparse.Namespace) -> None:
    """Serve the HTTP API until interrupted."""
    from basket_compare.cli.runner import run_server

    try:
        run_server(args.host, args.port)
    except Exception:
        logger.critical("Fatal error in API server", exc_info=True)
        raise
    finally:
        logger.info("basket_compare server shutting down")


def _run_health_check() -> None:
    """Run source connectivity health check."""
    from basket_compare.cli.runner import run_health_check

    exit_code = asyncio.run(run_health_check())
    sys.exit(exit_code)


def main() -> None:
    """Route to the server, the health check, or a one-shot search."""
    log_file = setup_logging()
    logger.info("basket_compare starting, log file: %s", log_file)

    parser = _build_parser()
    args = parser.parse_args()

    if args.serve:
        _run_server(args)
    elif args.health:
        _run_health_check()
    elif args.query is None or not args.query.strip():
        parser.error("a search query is required")
    else:
        _run_cli(args)


if __name__ == "__main__":
    main()
