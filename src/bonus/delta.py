"""Turn reported values into bonus-eligible delta turnover.

Suppliers with ``cumulative_reporting`` send year-to-date figures, so only the
growth since the previous month counts. The growth is computed per
(supplier, brand, product group) bucket and handed out to the rows of the
bucket by their share of the bucket's current total. A manual baseline for a
salon replaces that computation for the salon.

Everything here works on plain data already fetched by the caller.
"""
from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from decimal import Decimal

from .periods import is_january

ZERO = Decimal("0")

MATCHED_STATUSES = frozenset({"matched", "manual_override"})


@dataclass(frozen=True)
class SaleLine:
    sale_id: object
    supplier_id: str
    salon_id: str | None
    raw_identifier: str
    brand: str
    product_group: str
    reported_value: Decimal
    match_status: str = "matched"

    @property
    def is_matched(self) -> bool:
        return self.salon_id is not None


@dataclass(frozen=True)
class DeltaLine:
    sale: SaleLine
    delta_turnover: Decimal
    is_cumulative: bool
    used_baseline: bool = False

    @property
    def supplier_id(self):
        return self.sale.supplier_id

    @property
    def salon_id(self):
        return self.sale.salon_id

    @property
    def brand(self):
        return self.sale.brand

    @property
    def product_group(self):
        return self.sale.product_group


def _bucket(line: SaleLine, owner: str) -> tuple[str, str, str]:
    return (owner, (line.brand or "").lower(), (line.product_group or "").lower())


def matched_key(line: SaleLine) -> tuple[str, str, str]:
    return _bucket(line, str(line.supplier_id))


def unmatched_key(line: SaleLine) -> tuple[str, str, str]:
    return _bucket(line, line.raw_identifier or "")


def _totals(lines, key_func) -> dict[tuple[str, str, str], Decimal]:
    totals: dict[tuple[str, str, str], Decimal] = defaultdict(lambda: ZERO)
    for line in lines:
        totals[key_func(line)] += line.reported_value
    return totals


def _share_delta(line, key, current, previous, january) -> Decimal:
    current_total = current.get(key, ZERO)
    if current_total == 0:
        return ZERO
    aggregate = current_total if january else current_total - previous.get(key, ZERO)
    return aggregate * line.reported_value / current_total


def compute_deltas(
    period: str,
    current: list[SaleLine],
    previous: list[SaleLine],
    baselines: dict[tuple[str, str], Decimal],
    cumulative_supplier_ids: set[str],
    previous_unmatched: list[SaleLine] | None = None,
) -> list[DeltaLine]:
    """Delta turnover for every line of ``current`` (matched and unmatched).

    ``previous`` holds the lines of the month before ``period`` and
    ``baselines`` maps ``(salon_id, supplier_id)`` to the cumulative value
    entered for that month. Both are ignored in January.

    ``previous_unmatched`` holds the prior-month lines looked up by the raw
    identifiers of unmatched current lines, whatever their match status. It
    is kept apart from ``previous`` so a row present in both is only counted
    once per bucket. Defaults to the lines of ``previous``.
    """
    january = is_january(period)
    cumulative = {str(s) for s in cumulative_supplier_ids}

    matched = [line for line in current if line.is_matched]
    unmatched = [
        line for line in current
        if not line.is_matched and str(line.supplier_id) in cumulative
    ]

    current_matched = _totals(matched, matched_key)
    current_unmatched = _totals(unmatched, unmatched_key)
    if january:
        previous_matched = {}
        previous_unmatched_totals = {}
    else:
        previous_matched = _totals(
            (p for p in previous if p.match_status in MATCHED_STATUSES and str(p.supplier_id) in cumulative),
            matched_key,
        )
        wanted = {line.raw_identifier for line in unmatched if line.raw_identifier}
        source = previous if previous_unmatched is None else previous_unmatched
        previous_unmatched_totals = _totals(
            (p for p in source if p.raw_identifier in wanted),
            unmatched_key,
        )

    results: list[DeltaLine] = []
    for line in current:
        supplier_id = str(line.supplier_id)
        if supplier_id not in cumulative:
            results.append(DeltaLine(line, line.reported_value, is_cumulative=False))
            continue

        if line.is_matched:
            baseline = None if january else baselines.get((str(line.salon_id), supplier_id))
            if baseline is not None:
                results.append(
                    DeltaLine(line, line.reported_value - baseline, is_cumulative=True, used_baseline=True)
                )
                continue
            delta = _share_delta(line, matched_key(line), current_matched, previous_matched, january)
        else:
            delta = _share_delta(line, unmatched_key(line), current_unmatched, previous_unmatched_totals, january)
        results.append(DeltaLine(line, delta, is_cumulative=True))
    return results
