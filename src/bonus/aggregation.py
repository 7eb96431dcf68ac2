"""Read-side views over stored bonus calculations.

Nothing in this module writes; every function folds already stored
calculations into report rows.
"""
from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from decimal import Decimal

from django.conf import settings

from core.paging import iter_in_pages

from .models import BonusCalculation, worst_status
from .periods import validate_period

ZERO = Decimal("0.00")
UNMATCHED_KEY = "unmatched"


@dataclass
class SupplierBreakdown:
    supplier_id: str
    supplier_name: str
    turnover: Decimal = ZERO
    loyalty: Decimal = ZERO
    commission: Decimal = ZERO
    periods: set = field(default_factory=set)
    statuses: list = field(default_factory=list)

    def as_dict(self) -> dict:
        return {
            "supplier_id": self.supplier_id,
            "supplier_name": self.supplier_name,
            "turnover": self.turnover,
            "loyalty": self.loyalty,
            "commission": self.commission,
            "total_bonus": self.loyalty + self.commission,
            "periods": sorted(self.periods),
            "worst_status": worst_status(self.statuses),
        }


@dataclass
class SalonAggregate:
    key: str
    salon_id: str | None
    salon_name: str
    member_number: str
    turnover: Decimal = ZERO
    loyalty: Decimal = ZERO
    commission: Decimal = ZERO
    periods: set = field(default_factory=set)
    statuses: list = field(default_factory=list)
    calculation_ids: list = field(default_factory=list)
    suppliers: dict = field(default_factory=dict)

    @property
    def total_bonus(self) -> Decimal:
        return self.loyalty + self.commission

    @property
    def worst_status(self):
        return worst_status(self.statuses)

    @property
    def is_unmatched(self) -> bool:
        return self.salon_id is None

    def as_dict(self) -> dict:
        return {
            "key": self.key,
            "salon_id": self.salon_id,
            "salon_name": self.salon_name,
            "member_number": self.member_number,
            "is_unmatched": self.is_unmatched,
            "turnover": self.turnover,
            "loyalty": self.loyalty,
            "commission": self.commission,
            "total_bonus": self.total_bonus,
            "periods": sorted(self.periods),
            "worst_status": self.worst_status,
            "calculation_ids": self.calculation_ids,
            "suppliers": [s.as_dict() for s in sorted(self.suppliers.values(), key=lambda s: s.supplier_name)],
        }


def fold_calculations(calculations) -> list[SalonAggregate]:
    """Group calculations by salon (unmatched buckets share one group)."""
    groups: dict[str, SalonAggregate] = {}
    for calc in calculations:
        salon = calc.salon
        key = str(calc.salon_id) if calc.salon_id else UNMATCHED_KEY
        group = groups.get(key)
        if group is None:
            group = groups[key] = SalonAggregate(
                key=key,
                salon_id=str(calc.salon_id) if calc.salon_id else None,
                salon_name=salon.name if salon else "Umatchet",
                member_number=(salon.member_number or "") if salon else "",
            )
        group.turnover += calc.total_turnover
        group.loyalty += calc.loyalty_bonus_amount
        group.commission += calc.return_commission_amount
        group.periods.add(calc.period)
        group.statuses.append(calc.status)
        group.calculation_ids.append(str(calc.pk))

        supplier_key = str(calc.supplier_id)
        breakdown = group.suppliers.get(supplier_key)
        if breakdown is None:
            breakdown = group.suppliers[supplier_key] = SupplierBreakdown(
                supplier_id=supplier_key,
                supplier_name=calc.supplier.name,
            )
        breakdown.turnover += calc.total_turnover
        breakdown.loyalty += calc.loyalty_bonus_amount
        breakdown.commission += calc.return_commission_amount
        breakdown.periods.add(calc.period)
        breakdown.statuses.append(calc.status)

    # Real salons by bonus, the unmatched group last.
    return sorted(groups.values(), key=lambda g: (g.is_unmatched, -g.total_bonus, g.salon_name))


def calculations_in_range(start: str, end: str, supplier=None):
    start, end = validate_period(start), validate_period(end)
    if start > end:
        raise ValueError("Startperioden ma vaere for eller lik sluttperioden.")
    qs = BonusCalculation.objects.filter(period__gte=start, period__lte=end).select_related("salon", "supplier")
    if supplier is not None:
        qs = qs.filter(supplier=supplier)
    return qs


def aggregate_calculations(start: str, end: str, supplier=None) -> list[SalonAggregate]:
    return fold_calculations(iter_in_pages(calculations_in_range(start, end, supplier)))


def calculation_summary(start: str, end: str, supplier=None) -> dict:
    """Range totals for the calculation overview cards."""
    turnover = loyalty = commission = ZERO
    salons: set[str] = set()
    unmatched = 0
    count = 0
    status_counts: dict[str, int] = defaultdict(int)
    for calc in iter_in_pages(calculations_in_range(start, end, supplier)):
        count += 1
        turnover += calc.total_turnover
        loyalty += calc.loyalty_bonus_amount
        commission += calc.return_commission_amount
        status_counts[calc.status] += 1
        if calc.salon_id:
            salons.add(str(calc.salon_id))
        else:
            unmatched += 1
    return {
        "calculation_count": count,
        "total_turnover": turnover,
        "total_loyalty": loyalty,
        "total_commission": commission,
        "total_bonus": loyalty + commission,
        "salon_count": len(salons),
        "unmatched_count": unmatched,
        "status_counts": dict(status_counts),
        "currency": settings.BONUS_CURRENCY,
    }


def brand_summary(start: str, end: str, supplier=None) -> list[dict]:
    """Turnover and bonus per brand and product group, largest turnover first."""
    groups: dict[tuple[str, str, str], dict] = {}
    for calc in iter_in_pages(calculations_in_range(start, end, supplier)):
        for line in (calc.calculation_details or {}).get("details", []):
            brand = line.get("brand") or ""
            product_group = line.get("product_group") or ""
            key = (str(calc.supplier_id), brand.lower(), product_group.lower())
            entry = groups.get(key)
            if entry is None:
                entry = groups[key] = {
                    "supplier_id": str(calc.supplier_id),
                    "supplier_name": calc.supplier.name,
                    "brand": brand,
                    "product_group": product_group,
                    "turnover": ZERO,
                    "loyalty": ZERO,
                    "commission": ZERO,
                    "salons": set(),
                }
            entry["turnover"] += Decimal(str(line.get("turnover") or "0"))
            entry["loyalty"] += Decimal(str(line.get("loyalty") or "0"))
            entry["commission"] += Decimal(str(line.get("return") or "0"))
            if calc.salon_id:
                entry["salons"].add(str(calc.salon_id))

    rows = []
    for entry in groups.values():
        salons = entry.pop("salons")
        entry["salon_count"] = len(salons)
        entry["total_bonus"] = entry["loyalty"] + entry["commission"]
        rows.append(entry)
    rows.sort(key=lambda r: r["turnover"], reverse=True)
    return rows
