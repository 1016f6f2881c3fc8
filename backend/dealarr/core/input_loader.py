"""Load the titles to look up from CLI arguments or a CSV file.

The CSV format is one title per row with an optional target price:

    title,target_price
    Hades,10
    Celeste

A plain text file with one title per line is a valid single-column CSV.
Blank rows and rows starting with ``#`` are skipped.
"""

from __future__ import annotations

import csv
from collections.abc import Iterable
from pathlib import Path

import structlog

from dealarr.core.exceptions import InputError
from dealarr.core.search.models import GameQuery

logger = structlog.get_logger("dealarr.input")

HEADER = ("title", "target_price")


def _parse_target_price(value: str, path: Path, line: int) -> float | None:
    value = value.strip()
    if not value:
        return None
    try:
        price = float(value.lstrip("$"))
    except ValueError as e:
        raise InputError(f"Invalid target price '{value}'", path, line) from e
    if price < 0:
        raise InputError(f"Negative target price '{value}'", path, line)
    return price


def _check_duplicate(title: str, seen: dict[str, int], path: Path | None, line: int) -> None:
    key = title.lower()
    if key in seen:
        raise InputError(f"Duplicate title '{title}' (first seen at row {seen[key]})", path, line)
    seen[key] = line


def queries_from_titles(titles: Iterable[str], target_price: float | None = None) -> list[GameQuery]:
    """Build queries from a list of titles sharing one target price.

    Raises:
        InputError: If a title is empty or repeated
    """
    queries: list[GameQuery] = []
    seen: dict[str, int] = {}
    for position, raw_title in enumerate(titles, start=1):
        title = raw_title.strip()
        if not title:
            raise InputError(f"Empty title at position {position}")
        _check_duplicate(title, seen, None, position)
        queries.append(GameQuery(title=title, target_price=target_price))
    return queries


def load_queries(path: Path, default_target_price: float | None = None) -> list[GameQuery]:
    """Load queries from a CSV file.

    Args:
        path: CSV file with ``title[,target_price]`` rows
        default_target_price: Target price for rows without one (None keeps
            the configured default)

    Returns:
        Queries in file order

    Raises:
        InputError: If the file is missing or a row is malformed
    """
    try:
        handle = path.open("r", encoding="utf-8", newline="")
    except OSError as e:
        raise InputError(f"Couldn't open file for reading ({e.strerror})", path) from e

    queries: list[GameQuery] = []
    seen: dict[str, int] = {}
    with handle:
        reader = csv.reader(handle, skipinitialspace=True)
        try:
            for row in reader:
                line = reader.line_num
                cells = [cell.strip() for cell in row]
                if not cells or not any(cells) or cells[0].startswith("#"):
                    continue
                if line == 1 and tuple(cell.lower() for cell in cells[:2]) == HEADER[: len(cells)]:
                    continue
                if len(cells) > 2:
                    raise InputError(
                        f"Expected 'title[,target_price]', got {len(cells)} columns", path, line
                    )

                title = cells[0]
                if not title:
                    raise InputError("Empty title", path, line)
                target_price = (
                    _parse_target_price(cells[1], path, line) if len(cells) == 2 else None
                )
                if target_price is None:
                    target_price = default_target_price

                _check_duplicate(title, seen, path, line)
                queries.append(GameQuery(title=title, target_price=target_price))
        except csv.Error as e:
            raise InputError(f"Malformed CSV ({e})", path, reader.line_num) from e

    logger.debug("Loaded titles", path=str(path), count=len(queries))
    return queries
