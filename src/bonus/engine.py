"""Bonus calculation runs.

A run walks its periods in ascending order (a cumulative supplier's delta
depends on the month before). For each period the imported sales are read
once, turned into delta turnover, evaluated against the active rules and
written as one BonusCalculation per salon/supplier, plus one per supplier for
sales that could not be matched to a salon.

Imports and calculations for the same supplier + period are serialized with
an advisory lock. Each calculation upsert runs in its own savepoint so a
storage error only loses that one unit.
"""
from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from decimal import Decimal

from django.db import DatabaseError, transaction
from django.utils import timezone

from core.locks import advisory_lock
from core.paging import iter_in_pages
from core.services import create_audit_log
from suppliers.models import Supplier
from suppliers.services import build_brand_index, cumulative_supplier_ids

from .delta import MATCHED_STATUSES, DeltaLine, SaleLine, compute_deltas
from .exceptions import InvalidStatusTransition, NoActiveRulesError
from .models import (
    BonusCalculation,
    CalculationStatus,
    CumulativeBaseline,
    ImportedSale,
    can_transition,
)
from .periods import is_january, periods_in_range, previous_period, validate_period
from .rules import (
    Evaluation,
    RuleLine,
    evaluate,
    get_active_bonus_rules,
    missing_rule_warnings,
)

logger = logging.getLogger(__name__)

MONEY = Decimal("0.01")
IDENTIFIER_CHUNK = 500


class PeriodStatus:
    COMPLETED = "completed"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class PeriodResult:
    period: str
    status: str = PeriodStatus.COMPLETED
    updated: int = 0
    failed: int = 0
    matched_count: int = 0
    unmatched_count: int = 0
    warnings: list = field(default_factory=list)
    message: str = ""

    @property
    def success(self) -> bool:
        return self.status == PeriodStatus.COMPLETED

    def as_dict(self) -> dict:
        return {
            "period": self.period,
            "status": self.status,
            "success": self.success,
            "updated": self.updated,
            "failed": self.failed,
            "matched_count": self.matched_count,
            "unmatched_count": self.unmatched_count,
            "warnings": [w.as_dict() for w in self.warnings],
            "message": self.message,
        }


@dataclass
class RunReport:
    periods: list[PeriodResult] = field(default_factory=list)

    @property
    def updated(self) -> int:
        return sum(p.updated for p in self.periods)

    @property
    def failed(self) -> int:
        return sum(p.failed for p in self.periods)

    @property
    def failed_periods(self) -> list[str]:
        return [p.period for p in self.periods if p.status == PeriodStatus.FAILED]

    @property
    def summary(self) -> str:
        text = f"{self.updated} oppdatert, {self.failed} feilet"
        if self.failed_periods:
            text += f" ({len(self.failed_periods)} perioder feilet)"
        return text

    def as_dict(self) -> dict:
        return {
            "summary": self.summary,
            "updated": self.updated,
            "failed": self.failed,
            "failed_periods": self.failed_periods,
            "periods": [p.as_dict() for p in self.periods],
        }


def _pk(obj):
    return getattr(obj, "pk", obj)


def _money(value: Decimal) -> Decimal:
    return value.quantize(MONEY)


def _sale_line(sale: ImportedSale) -> SaleLine:
    return SaleLine(
        sale_id=sale.pk,
        supplier_id=str(sale.supplier_id),
        salon_id=str(sale.matched_salon_id) if sale.matched_salon_id else None,
        raw_identifier=sale.raw_identifier,
        brand=sale.brand,
        product_group=sale.product_group,
        reported_value=sale.reported_value,
        match_status=sale.match_status,
    )


def _chunks(items, size):
    items = list(items)
    for start in range(0, len(items), size):
        yield items[start:start + size]


def _previous_lines(
    period: str, current: list[SaleLine], cumulative_ids: set[str]
) -> tuple[list[SaleLine], list[SaleLine]]:
    """Prior-month lines: matched rows of cumulative suppliers, and rows
    sharing a raw identifier with an unmatched current line."""
    if is_january(period) or not cumulative_ids:
        return [], []
    prev = previous_period(period)
    matched = [
        _sale_line(sale)
        for sale in iter_in_pages(
            ImportedSale.objects.filter(
                reported_period=prev,
                supplier_id__in=cumulative_ids,
                match_status__in=MATCHED_STATUSES,
            )
        )
    ]
    identifiers = {
        line.raw_identifier
        for line in current
        if not line.is_matched and line.supplier_id in cumulative_ids and line.raw_identifier
    }
    unmatched = []
    for chunk in _chunks(sorted(identifiers), IDENTIFIER_CHUNK):
        unmatched.extend(
            _sale_line(sale)
            for sale in iter_in_pages(
                ImportedSale.objects.filter(reported_period=prev, raw_identifier__in=chunk)
            )
        )
    return matched, unmatched


def _baselines(period: str, cumulative_ids: set[str]) -> dict[tuple[str, str], Decimal]:
    if is_january(period) or not cumulative_ids:
        return {}
    qs = CumulativeBaseline.objects.filter(period=previous_period(period), supplier_id__in=cumulative_ids)
    return {(str(b.salon_id), str(b.supplier_id)): b.cumulative_value for b in qs}


def _rule_lines(deltas: list[DeltaLine], brand_index) -> list[RuleLine]:
    lines = []
    for delta in deltas:
        brand = brand_index.get((delta.supplier_id, (delta.brand or "").strip().lower()))
        lines.append(
            RuleLine(
                supplier_id=delta.supplier_id,
                brand_id=str(brand.pk) if brand else None,
                brand_name=delta.brand,
                product_group=delta.product_group,
                turnover=delta.delta_turnover,
            )
        )
    return lines


def _details(deltas: list[DeltaLine], evaluation: Evaluation, **extra) -> dict:
    rows = []
    for delta, line in zip(deltas, evaluation.lines):
        rows.append(
            {
                "sale_id": str(delta.sale.sale_id),
                "brand": delta.brand,
                "product_group": delta.product_group,
                "reported_value": str(delta.sale.reported_value),
                "turnover": str(_money(line.line.turnover)),
                "loyalty": str(_money(line.loyalty)),
                "return": str(_money(line.commission)),
                "is_cumulative": delta.is_cumulative,
                "used_baseline": delta.used_baseline,
                "rules": [
                    {
                        "id": a.rule_id,
                        "type": str(a.rule_type),
                        "percentage": str(a.percentage),
                        "amount": str(_money(a.amount)),
                    }
                    for a in line.attributions
                ],
            }
        )
    return {**extra, "details": rows}


def upsert_calculation(
    salon,
    supplier,
    period: str,
    totals: Evaluation,
    details: dict,
    status: str,
    actor=None,
) -> BonusCalculation:
    """Write the calculation for (salon or unmatched bucket, supplier, period).

    The only write path for calculations: the stored row is replaced as a
    whole, which also clears any earlier approval.
    """
    if actor is not None and not getattr(actor, "is_authenticated", False):
        actor = None
    calc, _created = BonusCalculation.objects.update_or_create(
        salon_id=_pk(salon),
        supplier_id=_pk(supplier),
        period=period,
        defaults={
            "total_turnover": _money(totals.turnover),
            "loyalty_bonus_amount": _money(totals.loyalty),
            "return_commission_amount": _money(totals.commission),
            "applied_rule_ids": list(totals.applied_rule_ids),
            "calculation_details": details,
            "status": status,
            "calculated_at": timezone.now(),
            "calculated_by": actor,
            "approved_at": None,
            "approved_by": None,
        },
    )
    return calc


def _write_unit(result: PeriodResult, salon_id, supplier_id, period, evaluation, details, status, actor):
    try:
        with transaction.atomic():
            upsert_calculation(salon_id, supplier_id, period, evaluation, details, status, actor)
    except DatabaseError:
        logger.exception(
            "Calculation upsert failed for salon=%s supplier=%s period=%s",
            salon_id, supplier_id, period,
        )
        result.failed += 1
        return
    result.updated += 1


def calculate_period(period: str, supplier: Supplier | None = None, actor=None) -> PeriodResult:
    """Calculate every salon/supplier of ``period`` (optionally one supplier)."""
    period = validate_period(period)
    result = PeriodResult(period=period)

    rules = get_active_bonus_rules(supplier=supplier, period=period)
    if not rules:
        raise NoActiveRulesError("Ingen aktive bonusregler funnet.")

    sales_qs = ImportedSale.objects.filter(reported_period=period)
    if supplier is not None:
        sales_qs = sales_qs.filter(supplier=supplier)

    with transaction.atomic():
        supplier_ids = sorted({str(pk) for pk in sales_qs.order_by().values_list("supplier_id", flat=True).distinct()})
        if not supplier_ids:
            result.status = PeriodStatus.SKIPPED
            result.message = f"Ingen salg funnet for {period}."
            logger.info("No imported sales for %s, skipped", period)
            return result
        for supplier_id in supplier_ids:
            advisory_lock("bonus", supplier_id, period)

        current = [_sale_line(sale) for sale in iter_in_pages(sales_qs)]
        cumulative_ids = cumulative_supplier_ids(supplier_ids)
        previous, previous_unmatched = _previous_lines(period, current, cumulative_ids)
        baselines = _baselines(period, cumulative_ids)

        deltas = compute_deltas(
            period, current, previous, baselines, cumulative_ids, previous_unmatched=previous_unmatched,
        )
        brand_index = build_brand_index(supplier_ids)
        supplier_names = {
            str(pk): name for pk, name in Supplier.objects.filter(pk__in=supplier_ids).values_list("pk", "name")
        }
        result.warnings = missing_rule_warnings(_rule_lines(deltas, brand_index), rules, supplier_names)

        matched_units: dict[tuple[str, str], list[DeltaLine]] = defaultdict(list)
        unmatched_units: dict[str, list[DeltaLine]] = defaultdict(list)
        for delta in deltas:
            if delta.salon_id is not None:
                matched_units[(delta.salon_id, delta.supplier_id)].append(delta)
            else:
                unmatched_units[delta.supplier_id].append(delta)
        result.matched_count = len(matched_units)
        result.unmatched_count = len(unmatched_units)

        for (salon_id, supplier_id), unit in sorted(matched_units.items()):
            evaluation = evaluate(_rule_lines(unit, brand_index), rules)
            status = CalculationStatus.CALCULATED if evaluation.turnover != 0 else CalculationStatus.PENDING
            details = _details(unit, evaluation)
            _write_unit(result, salon_id, supplier_id, period, evaluation, details, status, actor)

        for supplier_id, unit in sorted(unmatched_units.items()):
            evaluation = evaluate(_rule_lines(unit, brand_index), rules)
            details = _details(unit, evaluation, unmatched_count=len(unit))
            _write_unit(
                result, None, supplier_id, period, evaluation, details, CalculationStatus.UNMATCHED, actor,
            )

    logger.info(
        "Calculated %s: %s salons, %s unmatched groups, %s updated, %s failed, %s missing-rule warnings",
        period, result.matched_count, result.unmatched_count, result.updated, result.failed,
        len(result.warnings),
    )
    return result


def calculate_range(start: str, end: str, supplier: Supplier | None = None, actor=None) -> RunReport:
    """Calculate every period from ``start`` to ``end`` in ascending order.

    Raises :class:`NoActiveRulesError` before writing anything when there is
    no active rule at all. A period that fails is recorded and the run moves
    on to the next one.
    """
    periods = periods_in_range(validate_period(start), validate_period(end))
    if not get_active_bonus_rules(supplier=supplier):
        raise NoActiveRulesError("Ingen aktive bonusregler funnet.")

    report = RunReport()
    for period in periods:
        try:
            result = calculate_period(period, supplier=supplier, actor=actor)
        except NoActiveRulesError as exc:
            logger.warning("Period %s not calculated: %s", period, exc)
            result = PeriodResult(period=period, status=PeriodStatus.FAILED, message=str(exc))
        except DatabaseError:
            logger.exception("Calculation of period %s failed", period)
            result = PeriodResult(
                period=period, status=PeriodStatus.FAILED, message="Databasefeil under beregning.",
            )
        report.periods.append(result)

    create_audit_log(
        actor=actor,
        action="bonus.calculate",
        entity_type="BonusCalculation",
        entity_id=f"{periods[0]}..{periods[-1]}",
        after={
            "supplier": str(supplier.pk) if supplier else None,
            "updated": report.updated,
            "failed": report.failed,
            "failed_periods": report.failed_periods,
        },
    )
    logger.info("Calculation run %s..%s: %s", periods[0], periods[-1], report.summary)
    return report


def approve_calculation(calculation: BonusCalculation, actor=None) -> BonusCalculation:
    """Move a calculation from ``calculated`` to ``approved``."""
    if actor is not None and not getattr(actor, "is_authenticated", False):
        actor = None
    target = CalculationStatus.APPROVED
    with transaction.atomic():
        calc = BonusCalculation.objects.select_for_update().get(pk=calculation.pk)
        if not can_transition(calc.status, target):
            raise InvalidStatusTransition(calc.status, target)
        calc.status = target
        calc.approved_by = actor
        calc.approved_at = timezone.now()
        calc.save(update_fields=["status", "approved_by", "approved_at", "updated_at"])
        create_audit_log(
            actor=actor,
            action="bonus.calculation.approve",
            entity_type="BonusCalculation",
            entity_id=str(calc.pk),
            before={"status": CalculationStatus.CALCULATED},
            after={"status": target},
        )
    logger.info("Calculation %s approved by %s", calc.pk, actor)
    return calc
