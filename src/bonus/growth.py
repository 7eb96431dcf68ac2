"""Yearly growth bonus for suppliers that report cumulative figures.

A salon's latest year-to-date value is compared with the same month of the
previous year. Growth above zero pays 2.5% of the year-to-date turnover;
growth of 5% or more pays 5% plus 10% of the turnover above the 5% mark.
New customers (nothing last year) are paid as if they grew past 5%. When only
last year's December value is known, progress against it stands in for
growth.
"""
from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from decimal import Decimal

from django.db.models import Sum

from salons.models import Salon

from .models import BonusCalculation, GrowthBaselineOverride, ImportedSale

ZERO = Decimal("0")
HUNDRED = Decimal("100")
MONEY = Decimal("0.01")

LOW_RATE = Decimal("0.025")
HIGH_RATE = Decimal("0.05")
EXTRA_RATE = Decimal("0.10")
HIGH_THRESHOLD = Decimal("5")


class GrowthTier:
    NONE = ""
    LOW = "2,5%"
    HIGH = "5%"


@dataclass(frozen=True)
class GrowthBonus:
    tier: str
    base_bonus: Decimal
    extra_bonus: Decimal

    @property
    def amount(self) -> Decimal:
        return self.base_bonus + self.extra_bonus

    @property
    def has_extra_tier(self) -> bool:
        return self.tier == GrowthTier.HIGH


NO_BONUS = GrowthBonus(GrowthTier.NONE, ZERO, ZERO)


def growth_bonus(growth_percent: Decimal, current: Decimal, previous: Decimal, is_new: bool = False) -> GrowthBonus:
    """Bonus for ``current`` year-to-date turnover given the growth against ``previous``."""
    if current <= 0:
        return NO_BONUS
    if is_new or growth_percent >= HIGH_THRESHOLD:
        threshold = previous * (1 + HIGH_THRESHOLD / HUNDRED)
        excess = max(ZERO, current - threshold)
        return GrowthBonus(GrowthTier.HIGH, current * HIGH_RATE, excess * EXTRA_RATE)
    if growth_percent > 0:
        return GrowthBonus(GrowthTier.LOW, current * LOW_RATE, ZERO)
    return NO_BONUS


@dataclass
class SalonGrowth:
    salon_id: str
    salon_name: str
    latest_period: str
    current_year_to_date: Decimal
    previous_year_same_period: Decimal
    previous_year_total: Decimal
    used_override: bool
    growth_percent: Decimal
    progress_vs_full_year: Decimal
    bonus: GrowthBonus
    loyalty_bonus: Decimal = ZERO

    @property
    def is_new_customer(self) -> bool:
        return self.previous_year_total == 0 and self.previous_year_same_period == 0

    @property
    def amount_to_reach_last_year(self) -> Decimal:
        return self.previous_year_total - self.current_year_to_date

    @property
    def total_bonus(self) -> Decimal:
        return self.bonus.amount + self.loyalty_bonus

    def as_dict(self) -> dict:
        return {
            "salon_id": self.salon_id,
            "salon_name": self.salon_name,
            "latest_period": self.latest_period,
            "current_year_to_date": _money(self.current_year_to_date),
            "previous_year_same_period": _money(self.previous_year_same_period),
            "previous_year_total": _money(self.previous_year_total),
            "used_override": self.used_override,
            "is_new_customer": self.is_new_customer,
            "growth_percent": self.growth_percent.quantize(MONEY),
            "progress_vs_full_year": self.progress_vs_full_year.quantize(MONEY),
            "amount_to_reach_last_year": _money(self.amount_to_reach_last_year),
            "tier": self.bonus.tier,
            "has_extra_tier": self.bonus.has_extra_tier,
            "base_bonus": _money(self.bonus.base_bonus),
            "extra_bonus": _money(self.bonus.extra_bonus),
            "growth_bonus": _money(self.bonus.amount),
            "loyalty_bonus": _money(self.loyalty_bonus),
            "total_bonus": _money(self.total_bonus),
        }


def _money(value: Decimal) -> Decimal:
    return value.quantize(MONEY)


def _year_periods(year: int) -> list[str]:
    return [f"{year:04d}-{month:02d}" for month in range(1, 13)]


def salon_growth(
    salon_id: str,
    salon_name: str,
    current_by_period: dict[str, Decimal],
    previous_by_period: dict[str, Decimal],
    override: Decimal | None = None,
) -> SalonGrowth | None:
    """Growth for one salon from its per-period cumulative totals.

    Returns None when the salon has nothing reported this year.
    """
    if not current_by_period:
        return None
    latest = max(current_by_period)
    current = current_by_period[latest]
    previous_year = int(latest[:4]) - 1
    same_period = previous_by_period.get(f"{previous_year:04d}-{latest[5:]}", ZERO)
    december = previous_by_period.get(f"{previous_year:04d}-12", ZERO)
    if override is not None:
        same_period = december = override

    growth = (current - same_period) / same_period * HUNDRED if same_period > 0 else ZERO
    progress = current / december * HUNDRED if december > 0 else ZERO

    if same_period == 0 and december == 0:
        bonus = growth_bonus(HUNDRED, current, ZERO, is_new=True)
    elif same_period == 0:
        bonus = growth_bonus(progress - HUNDRED, current, december)
    else:
        bonus = growth_bonus(growth, current, same_period)

    return SalonGrowth(
        salon_id=salon_id,
        salon_name=salon_name,
        latest_period=latest,
        current_year_to_date=current,
        previous_year_same_period=same_period,
        previous_year_total=december,
        used_override=override is not None,
        growth_percent=growth,
        progress_vs_full_year=progress,
        bonus=bonus,
    )


def _totals_by_salon_period(supplier, periods) -> dict[str, dict[str, Decimal]]:
    rows = (
        ImportedSale.objects
        .filter(supplier=supplier, reported_period__in=periods, matched_salon__isnull=False)
        .values("matched_salon_id", "reported_period")
        .annotate(total=Sum("reported_value"))
        .order_by()
    )
    totals: dict[str, dict[str, Decimal]] = defaultdict(dict)
    for row in rows:
        totals[str(row["matched_salon_id"])][row["reported_period"]] = row["total"] or ZERO
    return totals


def compute_growth(year: int, supplier) -> list[SalonGrowth]:
    """Growth bonus per matched salon of ``supplier`` for ``year``, largest YTD first."""
    current = _totals_by_salon_period(supplier, _year_periods(year))
    previous = _totals_by_salon_period(supplier, _year_periods(year - 1))
    overrides = {
        str(o.salon_id): o.override_turnover
        for o in GrowthBaselineOverride.objects.filter(supplier=supplier, year=year - 1)
    }
    loyalty = {
        str(row["salon_id"]): row["total"] or ZERO
        for row in (
            BonusCalculation.objects
            .filter(supplier=supplier, period__in=_year_periods(year), salon__isnull=False)
            .values("salon_id")
            .annotate(total=Sum("loyalty_bonus_amount"))
            .order_by()
        )
    }
    names = {str(pk): name for pk, name in Salon.objects.filter(pk__in=list(current)).values_list("pk", "name")}

    results = []
    for salon_id, by_period in current.items():
        growth = salon_growth(
            salon_id,
            names.get(salon_id, "Ukjent salong"),
            by_period,
            previous.get(salon_id, {}),
            overrides.get(salon_id),
        )
        if growth is None:
            continue
        growth.loyalty_bonus = loyalty.get(salon_id, ZERO)
        results.append(growth)
    results.sort(key=lambda g: g.current_year_to_date, reverse=True)
    return results
