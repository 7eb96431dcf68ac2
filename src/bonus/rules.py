"""Apply bonus rules to delta turnover lines."""
from __future__ import annotations

import calendar
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from .models import BonusRule
from .periods import parse_period

ZERO = Decimal("0")
HUNDRED = Decimal("100")

LOYALTY = BonusRule.RuleType.LOYALTY
RETURN_COMMISSION = BonusRule.RuleType.RETURN_COMMISSION


def period_bounds(period: str) -> tuple[date, date]:
    year, month = parse_period(period)
    return date(year, month, 1), date(year, month, calendar.monthrange(year, month)[1])


def get_active_bonus_rules(supplier=None, period: str | None = None) -> list[BonusRule]:
    """Active rules, oldest first, optionally limited to a supplier and period.

    A rule with ``valid_from``/``valid_until`` only counts for periods that
    overlap its validity window.
    """
    qs = BonusRule.objects.filter(is_active=True).select_related("brand", "supplier")
    if supplier is not None:
        qs = qs.filter(supplier=supplier)
    rules = list(qs.order_by("created_at", "pk"))
    if period:
        rules = [rule for rule in rules if rule_valid_for_period(rule, period)]
    return rules


def rule_valid_for_period(rule, period: str) -> bool:
    first_day, last_day = period_bounds(period)
    if rule.valid_from and rule.valid_from > last_day:
        return False
    if rule.valid_until and rule.valid_until < first_day:
        return False
    return True


def rule_applies(rule, supplier_id, brand_id) -> bool:
    if str(rule.supplier_id) != str(supplier_id):
        return False
    return rule.brand_id is None or (brand_id is not None and str(rule.brand_id) == str(brand_id))


def _preference(rule):
    # Brand-specific before supplier-wide, then oldest.
    return (rule.brand_id is None, rule.created_at, str(rule.pk))


@dataclass(frozen=True)
class RuleLine:
    supplier_id: str
    brand_id: str | None
    brand_name: str
    product_group: str
    turnover: Decimal


@dataclass(frozen=True)
class Attribution:
    rule_id: str
    rule_type: str
    percentage: Decimal
    amount: Decimal


@dataclass
class LineResult:
    line: RuleLine
    loyalty: Decimal = ZERO
    commission: Decimal = ZERO
    attributions: list[Attribution] = field(default_factory=list)


@dataclass
class Evaluation:
    lines: list[LineResult] = field(default_factory=list)
    turnover: Decimal = ZERO
    loyalty: Decimal = ZERO
    commission: Decimal = ZERO
    applied_rule_ids: list[str] = field(default_factory=list)

    @property
    def total_bonus(self) -> Decimal:
        return self.loyalty + self.commission


def select_rule(rules, rule_type, supplier_id, brand_id):
    candidates = [
        rule for rule in rules
        if rule.rule_type == rule_type and rule_applies(rule, supplier_id, brand_id)
    ]
    if not candidates:
        return None
    return min(candidates, key=_preference)


def evaluate(lines: list[RuleLine], rules) -> Evaluation:
    """Loyalty bonus and return commission for one salon/supplier/period.

    ``amount = turnover * percentage / 100``. Lines without an applicable rule
    contribute nothing.
    """
    result = Evaluation()
    seen: set[str] = set()
    for line in lines:
        line_result = LineResult(line=line)
        for rule_type in (LOYALTY, RETURN_COMMISSION):
            rule = select_rule(rules, rule_type, line.supplier_id, line.brand_id)
            if rule is None:
                continue
            amount = line.turnover * rule.percentage / HUNDRED
            line_result.attributions.append(
                Attribution(
                    rule_id=str(rule.pk),
                    rule_type=rule_type,
                    percentage=rule.percentage,
                    amount=amount,
                )
            )
            if rule_type == LOYALTY:
                line_result.loyalty = amount
            else:
                line_result.commission = amount
            if str(rule.pk) not in seen:
                seen.add(str(rule.pk))
                result.applied_rule_ids.append(str(rule.pk))
        result.lines.append(line_result)
        result.turnover += line.turnover
        result.loyalty += line_result.loyalty
        result.commission += line_result.commission
    return result


@dataclass
class MissingRuleWarning:
    supplier_id: str
    supplier_name: str
    brand: str
    turnover: Decimal

    def as_dict(self) -> dict:
        return {
            "supplier_id": self.supplier_id,
            "supplier": self.supplier_name,
            "brand": self.brand,
            "turnover": str(self.turnover.quantize(Decimal("0.01"))),
        }


def missing_rule_warnings(lines: list[RuleLine], rules, supplier_names=None) -> list[MissingRuleWarning]:
    """Brands with turnover but no applicable rule of any type, largest first."""
    supplier_names = supplier_names or {}
    grouped: dict[tuple[str, str], MissingRuleWarning] = {}
    for line in lines:
        if not line.brand_name:
            continue
        if any(rule_applies(rule, line.supplier_id, line.brand_id) for rule in rules):
            continue
        key = (str(line.supplier_id), line.brand_name.lower())
        warning = grouped.get(key)
        if warning is None:
            grouped[key] = MissingRuleWarning(
                supplier_id=str(line.supplier_id),
                supplier_name=supplier_names.get(str(line.supplier_id), "Ukjent"),
                brand=line.brand_name,
                turnover=line.turnover,
            )
        else:
            warning.turnover += line.turnover
    return sorted(grouped.values(), key=lambda w: w.turnover, reverse=True)
