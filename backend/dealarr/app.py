"""Typer CLI entrypoint: look up titles and print the price report."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, List, Optional

import structlog
import typer
from pydantic import ValidationError

from dealarr.core.config import STORE_IDS, Settings
from dealarr.core.exceptions import ConfigError, InputError, ReportError
from dealarr.core.input_loader import load_queries, queries_from_titles
from dealarr.core.logging import setup_logging
from dealarr.core.matching import get_matching_config
from dealarr.core.search.models import GameQuery, GameResult
from dealarr.core.search.report import build_report, render_report
from dealarr.core.search.service import PriceSearchService

logger = structlog.get_logger("dealarr.app")

EXIT_TITLE_FAILED = 1
EXIT_BAD_INPUT = 2

app = typer.Typer(
    help="Find the cheapest store for each game title.",
    add_completion=False,
)


def _load_settings(overrides: dict[str, Any]) -> Settings:
    """Build settings with CLI flags taking precedence over every other source."""
    try:
        return Settings(**{key: value for key, value in overrides.items() if value is not None})
    except ValidationError as e:
        raise ConfigError(str(e)) from e


def _load_all_queries(titles: list[str], file: Path | None) -> list[GameQuery]:
    queries = queries_from_titles(titles)
    if file is not None:
        queries.extend(load_queries(file))
        # Titles from both sources still have to be unique
        queries_from_titles([query.title for query in queries])
    return queries


async def run_search(settings: Settings, queries: list[GameQuery]) -> list[GameResult]:
    """Look up every query with a fresh search service."""
    matching_config = get_matching_config(settings)
    async with PriceSearchService(settings, matching_config=matching_config) as service:
        return await service.search_all(queries)


@app.command()
def check(
    titles: Optional[List[str]] = typer.Argument(
        None, help="Game titles to look up", show_default=False
    ),
    file: Optional[Path] = typer.Option(
        None, "--file", "-f", help="CSV file with title[,target_price] rows"
    ),
    target_price: Optional[float] = typer.Option(
        None, "--target-price", "-t", min=0, help="Default target price in USD"
    ),
    parallelism: Optional[int] = typer.Option(
        None, "--parallelism", "-p", min=1, help="Titles looked up concurrently"
    ),
    stores: Optional[List[str]] = typer.Option(
        None, "--store", "-s", help=f"Store to query, repeatable ({', '.join(STORE_IDS)})"
    ),
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
    log_dir: Optional[Path] = typer.Option(
        None, "--log-dir", help="Write JSON logs to this directory"
    ),
) -> None:
    """Look up TITLES (and/or the titles in --file) and print the cheapest offers."""
    try:
        settings = _load_settings(
            {
                "default_target_price": target_price,
                "parallelism": parallelism,
                "enabled_stores": stores or None,
                "logs_dir": log_dir,
                "log_level": "DEBUG" if debug else None,
            }
        )
    except ConfigError as e:
        setup_logging(debug=debug)
        logger.error("Invalid configuration", error=str(e))
        raise typer.Exit(code=EXIT_BAD_INPUT) from e

    setup_logging(debug=settings.is_debug, logs_dir=settings.logs_dir, level=settings.log_level)

    if not titles and file is None:
        logger.error("Nothing to look up: pass titles or --file")
        raise typer.Exit(code=EXIT_BAD_INPUT)

    try:
        get_matching_config(settings)
        queries = _load_all_queries(titles or [], file)
    except (InputError, ConfigError) as e:
        logger.error("Invalid input", error=str(e))
        raise typer.Exit(code=EXIT_BAD_INPUT) from e

    results = asyncio.run(run_search(settings, queries))

    try:
        report = build_report(results, settings.default_target_price)
    except ReportError as e:
        logger.error("Couldn't build report", error=str(e))
        raise typer.Exit(code=EXIT_BAD_INPUT) from e

    typer.echo(render_report(report, settings.default_target_price), nl=False)

    if report.failed:
        raise typer.Exit(code=EXIT_TITLE_FAILED)


def main() -> None:
    """Main entry point."""
    try:
        app()
    except KeyboardInterrupt:
        logger.warning("Interrupted")
        raise SystemExit(130) from None


if __name__ == "__main__":
    main()
