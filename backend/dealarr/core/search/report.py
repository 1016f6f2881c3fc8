"""Report builder - partitions results against target prices and renders them."""

from __future__ import annotations

from collections.abc import Iterable

from dealarr.core.exceptions import ReportError
from dealarr.core.search.models import GameResult, PriceReport

BANNER = "=" * 50


def target_price_for(result: GameResult, default_target_price: float) -> float:
    if result.query.target_price is not None:
        return result.query.target_price
    return default_target_price


def _price_key(result: GameResult) -> tuple[float, str]:
    cheapest = result.cheapest
    return (cheapest.price if cheapest else 0.0, result.title.lower())


def build_report(results: Iterable[GameResult], default_target_price: float) -> PriceReport:
    """Partition results into report buckets.

    A title is under target when its cheapest offer is strictly below the
    target price. Priced buckets are sorted by price, then title.

    Args:
        results: One result per title
        default_target_price: Target for titles without their own

    Returns:
        PriceReport

    Raises:
        ReportError: If the same title appears twice
    """
    report = PriceReport()
    seen: set[str] = set()

    for result in results:
        key = result.title.lower()
        if key in seen:
            raise ReportError(f"Title classified twice: '{result.title}'")
        seen.add(key)

        if result.failed:
            report.failed.append(result)
            continue

        cheapest = result.cheapest
        if cheapest is None:
            report.not_found.append(result)
        elif cheapest.price < target_price_for(result, default_target_price):
            report.under_target.append(result)
        else:
            report.over_target.append(result)

    report.under_target.sort(key=_price_key)
    report.over_target.sort(key=_price_key)
    report.not_found.sort(key=lambda result: result.title.lower())
    return report


def format_offer_line(result: GameResult) -> str:
    cheapest = result.cheapest
    if cheapest is None:
        return f"{result.title}: no offer"
    return f"{result.title}: {cheapest.price:.2f} ({cheapest.store_name}) - {cheapest.url}"


def render_report(report: PriceReport, default_target_price: float | None = None) -> str:
    """Render a report as plain text, one banner-delimited section per bucket.

    Empty "Not found" and "Failed" sections are omitted.
    """
    target = f" ({default_target_price:.2f})" if default_target_price is not None else ""
    lines: list[str] = []

    def section(title: str, entries: list[str]) -> None:
        if lines:
            lines.append("")
        lines.extend([BANNER, f"{'=' * 12} {title} ".ljust(len(BANNER), "="), BANNER])
        lines.extend(entries)

    section(f"Under target{target}", [format_offer_line(r) for r in report.under_target])
    section(f"Over target{target}", [format_offer_line(r) for r in report.over_target])
    if report.not_found:
        section("Not found", [r.title for r in report.not_found])
    if report.failed:
        section("Failed", [f"{r.title}: {r.error}" for r in report.failed])

    lines.append(BANNER)
    return "\n".join(lines) + "\n"
