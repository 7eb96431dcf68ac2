from decimal import Decimal

import pytest

from bonus.exceptions import UnknownLayoutError
from bonus.parsers import (
    CHEMISTRY,
    PRODUCT,
    NormalizedRow,
    available_layouts,
    find_generic_header,
    map_generic_columns,
    parse_workbook,
    register_layout,
    to_decimal,
    to_identifier,
)


@pytest.mark.parametrize(
    "raw, expected",
    [
        (1500, Decimal("1500")),
        (1234.5, Decimal("1234.5")),
        ("1 234,50", Decimal("1234.50")),
        ("1.234,50", Decimal("1234.50")),
        ("1,234.50", Decimal("1234.50")),
        ("kr 990,-", Decimal("990")),
        ("-250", Decimal("-250")),
    ],
)
def test_to_decimal_accepts_spreadsheet_formats(raw, expected):
    assert to_decimal(raw) == expected


@pytest.mark.parametrize("raw", [None, "", "abc", float("nan"), True])
def test_to_decimal_rejects_non_numbers(raw):
    assert to_decimal(raw) is None


def test_to_identifier_drops_float_suffix():
    assert to_identifier(12345.0) == "12345"
    assert to_identifier(" 00123 ") == "00123"
    assert to_identifier(None) == ""


def test_maria_nila_layout_drops_noise_rows():
    workbook = {
        "Ark1": [
            ["Salong", "Kundenr", "Omsetning"],
            ["Salong Nord", 1001, 2500],
            ["Salong Sor", "1002", "1 000,50"],
            ["Null", 0, 500],
            ["Tom", None, 500],
            ["Negativ", 1003, -10],
            ["Ingen verdi", 1004, None],
            [],
        ]
    }
    result = parse_workbook(workbook, "maria_nila")

    assert not result.is_empty
    assert [(r.identifier, r.value) for r in result.rows] == [
        ("1001", Decimal("2500")),
        ("1002", Decimal("1000.50")),
    ]
    assert all(r.brand == "Maria Nila" and r.product_group == PRODUCT for r in result.rows)


def test_loreal_layout_splits_brands_and_product_groups():
    header = [None] * 17
    header[2] = "Kundenr"
    row = [None] * 17
    row[2] = 1001
    row[3] = "Salong Nord"
    row[10] = 1000  # L'Oréal retail
    row[14] = 400  # L'Oréal chemistry
    row[5] = 250  # Kérastase
    workbook = {"Rapport": [["L'Oréal rapport"], [], header, row]}

    rows = parse_workbook(workbook, "loreal").rows

    assert {(r.brand, r.product_group, r.value) for r in rows} == {
        ("L'Oréal Professionnel", PRODUCT, Decimal("1000")),
        ("L'Oréal Professionnel", CHEMISTRY, Decimal("400")),
        ("Kérastase", PRODUCT, Decimal("250")),
    }
    assert {r.identifier for r in rows} == {"1001"}


def test_heidenstrom_layout_reads_named_sheets_by_org_number():
    workbook = {
        "matrix": [
            ["Kunde", "Orgnr", "Navn", "Beløp"],
            [1, "912 345 678", "Salong Nord", 800],
            [2, "1234", "For kort", 800],
        ],
        "Vision": [
            ["Kunde", "Orgnr", "Navn", "Beløp"],
            [1, "987654321", "Salong Sor", 300],
        ],
        "Annet": [["x"], [1, "912345678", "Ignoreres", 999]],
    }
    rows = parse_workbook(workbook, "heidenstrom").rows

    assert [(r.identifier, r.brand, r.value) for r in rows] == [
        ("912345678", "Matrix", Decimal("800")),
        ("987654321", "Vision Haircare", Decimal("300")),
    ]


def test_verdant_layout_emits_product_and_chemistry_rows():
    workbook = {"Ark1": [["Nummer", "Kundenavn", "Produkter", "Farge"], [1001, "Salong Nord", 100, 50]]}
    rows = parse_workbook(workbook, "verdant").rows
    assert [(r.product_group, r.value) for r in rows] == [(PRODUCT, Decimal("100")), (CHEMISTRY, Decimal("50"))]


def test_wella_layout_finds_header_in_ghd_sheet():
    workbook = {
        "GHD": [
            ["GHD salg mars"],
            ["Kundenr", None, None, "Salongnavn", None, "Verdi"],
            [1001, None, None, "Salong Nord", None, 1200],
        ]
    }
    rows = parse_workbook(workbook, "wella").rows
    assert [(r.identifier, r.name, r.brand, r.value) for r in rows] == [
        ("1001", "Salong Nord", "GHD", Decimal("1200")),
    ]


def test_saether_layout_fills_missing_name():
    row = [None, None, 1001, None, None, None, None, 700]
    rows = parse_workbook({"Ark1": [["header"], row]}, "saether").rows
    assert rows[0].name == "Salon 1001"


def test_icon_hairspa_layout_columns():
    workbook = {"Ark1": [["Salong", "Kundenr", "Kjøp"], ["Salong Nord", 1001, 450]]}
    rows = parse_workbook(workbook, "icon_hairspa").rows
    assert [(r.identifier, r.name, r.brand, r.value) for r in rows] == [
        ("1001", "Salong Nord", "ICON Hairspa", Decimal("450")),
    ]


def test_ingoodhands_layout_reads_value_from_column_j():
    row = ["Salong Nord", 1001, 11, 22, 33, 44, 55, 66, 77, 880]
    rows = parse_workbook({"Ark1": [["Salong", "Kundenr"], row]}, "ingoodhands").rows
    assert [(r.identifier, r.name, r.brand, r.value) for r in rows] == [
        ("1001", "Salong Nord", "InGoodHands", Decimal("880")),
    ]


def test_we_are_one_layout_reads_brand_sheets_by_org_number():
    workbook = {
        "AVEDA": [["Navn", "Org.nr", "Varekjøp"], ["Salong Nord", "912 345 678", 600]],
        "Bumble and Bumble": [
            ["Navn", "Org.nr", "Varekjøp"],
            ["Salong Sor", 987654321, 250],
            ["For kort", "12345", 100],
        ],
    }
    rows = parse_workbook(workbook, "we_are_one").rows
    assert [(r.identifier, r.name, r.brand, r.value) for r in rows] == [
        ("912345678", "Salong Nord", "AVEDA", Decimal("600")),
        ("987654321", "Salong Sor", "Bumble and Bumble", Decimal("250")),
    ]


def test_proud_production_layout_columns():
    workbook = {"Ark1": [["Salong", "Verdi", None, "Kundenr"], ["Salong Nord", 300, None, 1001], [None, 120, None, 1002]]}
    rows = parse_workbook(workbook, "proud_production").rows
    assert [(r.identifier, r.name, r.brand, r.value) for r in rows] == [
        ("1001", "Salong Nord", "Proud Production", Decimal("300")),
        ("1002", "Salon 1002", "Proud Production", Decimal("120")),
    ]


def test_pretty_good_layout_columns():
    workbook = {"Ark1": [["Salong", "Verdi", None, "Kundenr"], ["Salong Nord", "1 500,00", "x", "1001"]]}
    rows = parse_workbook(workbook, "pretty_good").rows
    assert [(r.identifier, r.name, r.brand, r.value) for r in rows] == [
        ("1001", "Salong Nord", "Pretty Good", Decimal("1500.00")),
    ]


def test_generic_header_detection_skips_title_rows():
    rows = [
        ["Rapport for mars"],
        [],
        ["Kundenummer", "Salongnavn", "Merkevare", "Beløp"],
        [1001, "Salong Nord", "Color Wow", "1 500,00"],
    ]
    assert find_generic_header(rows) == 2
    assert map_generic_columns(rows[2]) == {"identifier": 0, "name": 1, "brand": 2, "value": 3}

    parsed = parse_workbook({"Ark1": rows}, "generic").rows
    assert parsed == [
        NormalizedRow(
            identifier="1001",
            name="Salong Nord",
            brand="Color Wow",
            product_group="",
            value=Decimal("1500.00"),
        )
    ]


def test_generic_columns_are_never_reused():
    mapping = map_generic_columns(["Kundenr", "Navn", "Sum"])
    assert mapping == {"identifier": 0, "name": 1, "value": 2}


def test_generic_layout_without_value_column_is_empty_with_message():
    result = parse_workbook({"Ark1": [["Kundenummer", "Navn"], [1001, "Salong"]]}, "generic")
    assert result.is_empty
    assert "Kundenummer" in result.message


def test_empty_layout_result_carries_supplier_message():
    result = parse_workbook({"Ark1": [["Salong", "Kundenr", "Omsetning"]]}, "maria_nila")
    assert result.is_empty
    assert "Maria Nila" in result.message


def test_unknown_layout_raises():
    with pytest.raises(UnknownLayoutError):
        parse_workbook({"Ark1": []}, "finnes-ikke")


def test_registry_rejects_duplicate_keys():
    assert "generic" in available_layouts()
    with pytest.raises(ValueError):
        register_layout("generic")(lambda workbook: [])


def test_scaled_row_divides_values():
    row = NormalizedRow("1001", "Salong", "Merke", PRODUCT, Decimal("300"), Decimal("900"))
    scaled = row.scaled(3)
    assert scaled.value == Decimal("100")
    assert scaled.cumulative_value == Decimal("300")
