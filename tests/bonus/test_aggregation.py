from decimal import Decimal

import pytest

from bonus.aggregation import aggregate_calculations, brand_summary, calculation_summary
from bonus.models import BonusCalculation, CalculationStatus, worst_status


def calc(supplier, period, salon=None, turnover="1000", loyalty="50", commission="0", status="calculated", details=None):
    return BonusCalculation.objects.create(
        salon=salon,
        supplier=supplier,
        period=period,
        total_turnover=Decimal(turnover),
        loyalty_bonus_amount=Decimal(loyalty),
        return_commission_amount=Decimal(commission),
        status=status,
        calculation_details={"details": details or []},
    )


def test_worst_status_priority():
    assert worst_status(["paid", "calculated"]) == "calculated"
    assert worst_status(["approved", "unmatched", "pending"]) == "unmatched"
    assert worst_status(["paid", "mystery"]) == "mystery"
    assert worst_status([]) is None


@pytest.mark.django_db
def test_aggregate_sums_periods_and_reports_worst_status(supplier, generic_supplier, salon, other_salon):
    calc(supplier, "2025-01", salon, status=CalculationStatus.PAID)
    calc(supplier, "2025-02", salon, status=CalculationStatus.CALCULATED)
    calc(generic_supplier, "2025-02", salon, turnover="500", loyalty="10", commission="5")
    calc(supplier, "2025-02", other_salon, turnover="9000", loyalty="900")
    calc(supplier, "2025-02", None, turnover="300", loyalty="15", status=CalculationStatus.UNMATCHED)
    calc(supplier, "2025-04", salon, loyalty="999")

    groups = aggregate_calculations("2025-01", "2025-03")

    assert [g.salon_name for g in groups] == ["Salong Sor", "Salong Nord", "Umatchet"]
    nord = groups[1]
    assert nord.turnover == Decimal("2500")
    assert nord.loyalty == Decimal("110")
    assert nord.commission == Decimal("5")
    assert nord.total_bonus == Decimal("115")
    assert sorted(nord.periods) == ["2025-01", "2025-02"]
    assert nord.worst_status == CalculationStatus.CALCULATED
    assert len(nord.calculation_ids) == 3

    payload = nord.as_dict()
    assert [s["supplier_name"] for s in payload["suppliers"]] == ["Generisk Leverandor", "Maria Nila AB"]
    assert payload["suppliers"][1]["worst_status"] == CalculationStatus.CALCULATED

    unmatched = groups[-1]
    assert unmatched.is_unmatched
    assert unmatched.worst_status == CalculationStatus.UNMATCHED


@pytest.mark.django_db
def test_aggregate_filters_supplier(supplier, generic_supplier, salon):
    calc(supplier, "2025-02", salon)
    calc(generic_supplier, "2025-02", salon, loyalty="10")

    groups = aggregate_calculations("2025-02", "2025-02", supplier=generic_supplier)

    assert len(groups) == 1
    assert groups[0].loyalty == Decimal("10")


@pytest.mark.django_db
def test_aggregate_rejects_reversed_range():
    with pytest.raises(ValueError):
        aggregate_calculations("2025-05", "2025-01")


@pytest.mark.django_db
def test_calculation_summary(supplier, salon, other_salon):
    calc(supplier, "2025-02", salon, commission="20")
    calc(supplier, "2025-02", other_salon, status=CalculationStatus.APPROVED)
    calc(supplier, "2025-02", None, status=CalculationStatus.UNMATCHED)

    summary = calculation_summary("2025-02", "2025-02")

    assert summary["calculation_count"] == 3
    assert summary["salon_count"] == 2
    assert summary["unmatched_count"] == 1
    assert summary["total_bonus"] == Decimal("170")
    assert summary["status_counts"] == {"calculated": 1, "approved": 1, "unmatched": 1}
    assert summary["currency"] == "NOK"


@pytest.mark.django_db
def test_brand_summary_groups_detail_lines(supplier, salon, other_salon):
    calc(supplier, "2025-02", salon, details=[
        {"brand": "Redken", "product_group": "produkt", "turnover": "1000.00", "loyalty": "50.00", "return": "0.00"},
        {"brand": "Matrix", "product_group": "kjemi", "turnover": "200.00", "loyalty": "10.00", "return": "2.00"},
    ])
    calc(supplier, "2025-02", other_salon, details=[
        {"brand": "redken", "product_group": "produkt", "turnover": "500.00", "loyalty": "25.00", "return": "0.00"},
    ])

    rows = brand_summary("2025-02", "2025-02")

    assert [(r["brand"], r["turnover"], r["salon_count"]) for r in rows] == [
        ("Redken", Decimal("1500.00"), 2),
        ("Matrix", Decimal("200.00"), 1),
    ]
    assert rows[1]["total_bonus"] == Decimal("12.00")
