"""Helpers for ``YYYY-MM`` reporting periods."""
from __future__ import annotations

import re

_PERIOD_RE = re.compile(r"^(\d{4})-(0[1-9]|1[0-2])$")

QUARTER_MONTHS = {
    "Q1": (1, 2, 3),
    "Q2": (4, 5, 6),
    "Q3": (7, 8, 9),
    "Q4": (10, 11, 12),
}


def parse_period(period: str) -> tuple[int, int]:
    match = _PERIOD_RE.match((period or "").strip())
    if not match:
        raise ValueError(f"Ugyldig periode: {period!r} (forventet YYYY-MM).")
    return int(match.group(1)), int(match.group(2))


def validate_period(period: str) -> str:
    year, month = parse_period(period)
    return f"{year:04d}-{month:02d}"


def is_january(period: str) -> bool:
    return parse_period(period)[1] == 1


def previous_period(period: str) -> str:
    """Return the calendar month before ``period`` (2025-01 -> 2024-12)."""
    year, month = parse_period(period)
    if month == 1:
        return f"{year - 1:04d}-12"
    return f"{year:04d}-{month - 1:02d}"


def periods_in_range(start: str, end: str) -> list[str]:
    """Every period from ``start`` to ``end`` inclusive, ascending."""
    year, month = parse_period(start)
    end_year, end_month = parse_period(end)
    if (year, month) > (end_year, end_month):
        raise ValueError("Startperioden ma vaere for eller lik sluttperioden.")
    periods = []
    while (year, month) <= (end_year, end_month):
        periods.append(f"{year:04d}-{month:02d}")
        month += 1
        if month > 12:
            year, month = year + 1, 1
    return periods


def quarter_periods(quarter: str, year: int) -> list[str]:
    key = (quarter or "").strip().upper()
    if key not in QUARTER_MONTHS:
        raise ValueError(f"Ugyldig kvartal: {quarter!r}.")
    try:
        year = int(year)
    except (TypeError, ValueError):
        raise ValueError(f"Ugyldig ar: {year!r}.")
    return [f"{year:04d}-{m:02d}" for m in QUARTER_MONTHS[key]]


def quarter_note(quarter: str, year: int) -> str:
    return f"Kvartalsimport {quarter.strip().upper()} {int(year)} - fordelt på 3 måneder"
