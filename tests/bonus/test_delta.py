from decimal import Decimal

from bonus.delta import SaleLine, compute_deltas

SUPPLIER = "sup-1"
SALON = "salon-1"


def line(value, *, salon=SALON, supplier=SUPPLIER, brand="Redken", group="produkt", raw="1001", status="matched"):
    return SaleLine(
        sale_id=f"{raw}-{brand}-{value}",
        supplier_id=supplier,
        salon_id=salon,
        raw_identifier=raw,
        brand=brand,
        product_group=group,
        reported_value=Decimal(value),
        match_status=status,
    )


def test_non_cumulative_supplier_uses_reported_value():
    deltas = compute_deltas("2025-03", [line("500")], [line("400")], {}, cumulative_supplier_ids=set())

    assert [d.delta_turnover for d in deltas] == [Decimal("500")]
    assert deltas[0].is_cumulative is False


def test_january_counts_full_year_to_date_value():
    deltas = compute_deltas("2025-01", [line("1000")], [line("800")], {(SALON, SUPPLIER): Decimal("900")}, {SUPPLIER})

    assert deltas[0].delta_turnover == Decimal("1000")
    assert deltas[0].used_baseline is False


def test_cumulative_delta_is_shared_by_current_value():
    current = [line("700", raw="1001"), line("300", raw="1001-b")]
    previous = [line("600")]

    deltas = compute_deltas("2025-03", current, previous, {}, {SUPPLIER})

    assert [d.delta_turnover for d in deltas] == [Decimal("280"), Decimal("120")]
    assert all(d.is_cumulative for d in deltas)


def test_bucket_is_per_brand_and_product_group_case_insensitive():
    current = [line("1000", brand="Redken"), line("500", brand="Matrix")]
    previous = [line("600", brand="REDKEN"), line("100", brand="Matrix", group="kjemi")]

    deltas = compute_deltas("2025-03", current, previous, {}, {SUPPLIER})

    assert [d.delta_turnover for d in deltas] == [Decimal("400"), Decimal("500")]


def test_unmatched_previous_rows_are_ignored_for_matched_bucket():
    previous = [line("600", salon=None, status="unmatched")]

    deltas = compute_deltas("2025-03", [line("1000")], previous, {}, {SUPPLIER})

    assert deltas[0].delta_turnover == Decimal("1000")


def test_baseline_replaces_previous_month():
    deltas = compute_deltas(
        "2025-03",
        [line("1000")],
        [line("600")],
        {(SALON, SUPPLIER): Decimal("800")},
        {SUPPLIER},
    )

    assert deltas[0].delta_turnover == Decimal("200")
    assert deltas[0].used_baseline is True


def test_unmatched_rows_use_previous_rows_with_same_identifier():
    current = [line("900", salon=None, raw="X-1", status="unmatched")]
    previous = [
        line("500", salon=None, raw="X-1", status="unmatched"),
        line("300", salon=None, raw="X-2", status="unmatched"),
    ]

    deltas = compute_deltas("2025-03", current, previous, {}, {SUPPLIER})

    assert deltas[0].delta_turnover == Decimal("400")
    assert deltas[0].salon_id is None


def test_unmatched_bucket_ignores_non_cumulative_suppliers():
    current = [
        line("1000", salon=None, raw="1", status="unmatched"),
        line("1000", salon=None, raw="1", status="unmatched", supplier="sup-2"),
    ]
    previous = [line("600", salon=None, raw="1", status="unmatched")]

    deltas = compute_deltas("2025-03", current, previous, {}, {SUPPLIER})

    assert [d.delta_turnover for d in deltas] == [Decimal("400"), Decimal("1000")]
    assert [d.is_cumulative for d in deltas] == [True, False]


def test_unmatched_previous_lines_are_counted_once():
    earlier = line("600", raw="5555", status="manual_override")
    current = [line("1000", salon=None, raw="5555", status="unmatched")]

    deltas = compute_deltas("2025-03", current, [earlier], {}, {SUPPLIER}, previous_unmatched=[earlier])

    assert deltas[0].delta_turnover == Decimal("400")


def test_decrease_yields_negative_delta():
    deltas = compute_deltas("2025-03", [line("500")], [line("800")], {}, {SUPPLIER})
    assert deltas[0].delta_turnover == Decimal("-300")


def test_zero_current_total_gives_zero_delta():
    deltas = compute_deltas("2025-03", [line("0")], [line("800")], {}, {SUPPLIER})
    assert deltas[0].delta_turnover == Decimal("0")
