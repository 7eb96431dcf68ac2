"""Supplier feed parsers.

Every supplier sends its sales report in its own fixed spreadsheet layout.
Each layout is a plain function ``(workbook) -> list[NormalizedRow]``
registered under a key; ``Supplier.feed_layout`` selects the function.

Rows that cannot be coerced (no identifier, identifier ``"0"``, blank, zero
or negative amounts) are dropped without error.
"""
from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Callable

from django.conf import settings

from .exceptions import UnknownLayoutError
from .workbooks import Workbook, find_sheet, first_sheet

logger = logging.getLogger(__name__)

PRODUCT = "produkt"
CHEMISTRY = "kjemi"

GENERIC_LAYOUT = "generic"


@dataclass(frozen=True)
class NormalizedRow:
    identifier: str
    name: str
    brand: str
    product_group: str
    value: Decimal
    cumulative_value: Decimal | None = None

    def scaled(self, divisor: int) -> "NormalizedRow":
        cumulative = self.cumulative_value / divisor if self.cumulative_value is not None else None
        return NormalizedRow(
            identifier=self.identifier,
            name=self.name,
            brand=self.brand,
            product_group=self.product_group,
            value=self.value / divisor,
            cumulative_value=cumulative,
        )


@dataclass
class ParseResult:
    layout: str
    rows: list[NormalizedRow]
    message: str = ""

    @property
    def is_empty(self) -> bool:
        return not self.rows


Parser = Callable[[Workbook], list[NormalizedRow]]

_REGISTRY: dict[str, Parser] = {}
_EMPTY_MESSAGES: dict[str, str] = {}


def register_layout(key: str, empty_message: str = ""):
    """Register ``func`` as the parser for feed layout ``key``."""

    def decorator(func: Parser) -> Parser:
        if key in _REGISTRY:
            raise ValueError(f"Layout {key!r} is already registered.")
        _REGISTRY[key] = func
        if empty_message:
            _EMPTY_MESSAGES[key] = empty_message
        return func

    return decorator


def available_layouts() -> list[str]:
    return sorted(_REGISTRY)


def get_parser(layout: str) -> Parser:
    try:
        return _REGISTRY[layout or GENERIC_LAYOUT]
    except KeyError:
        raise UnknownLayoutError(f"Ukjent importformat: {layout!r}.") from None


def parse_workbook(workbook: Workbook, layout: str) -> ParseResult:
    """Run the parser for ``layout``; an empty result carries a diagnostic."""
    layout = layout or GENERIC_LAYOUT
    rows = get_parser(layout)(workbook)
    message = ""
    if not rows:
        message = _EMPTY_MESSAGES.get(
            layout,
            "Kunne ikke finne gyldige rader i filen. Sjekk at filen har riktig format.",
        )
        logger.info("Layout %s produced no rows: %s", layout, message)
    else:
        logger.debug("Layout %s produced %s rows", layout, len(rows))
    return ParseResult(layout=layout, rows=rows, message=message)


# ---------------------------------------------------------------------------
# Cell coercion
# ---------------------------------------------------------------------------

_CURRENCY_RE = re.compile(r"(kr\.?|nok|,-)", re.IGNORECASE)
_NUMBER_JUNK_RE = re.compile(r"[^\d.\-]")


def to_decimal(value) -> Decimal | None:
    """Coerce a spreadsheet cell to Decimal, or None if it is not a number.

    Accepts ``1234.5``, ``"1 234,50"``, ``"kr 1234.5"`` and ``"1.234,50"``.
    When both separators appear the last one is the decimal separator.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value if value.is_finite() else None
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return None
        return Decimal(str(value))

    text = _CURRENCY_RE.sub("", str(value))
    text = "".join(text.split())
    if not text:
        return None
    if "," in text and "." in text:
        if text.rfind(",") > text.rfind("."):
            text = text.replace(".", "").replace(",", ".")
        else:
            text = text.replace(",", "")
    elif text.count(",") == 1:
        text = text.replace(",", ".")
    else:
        text = text.replace(",", "")
    text = _NUMBER_JUNK_RE.sub("", text)
    try:
        result = Decimal(text)
    except InvalidOperation:
        return None
    return result if result.is_finite() else None


def to_identifier(value) -> str:
    """Render an identifier cell as text; ``12345.0`` becomes ``"12345"``."""
    if value is None or isinstance(value, bool):
        return ""
    if isinstance(value, float):
        if math.isnan(value):
            return ""
        if value.is_integer():
            return str(int(value))
    if isinstance(value, Decimal) and value == value.to_integral_value():
        return str(int(value))
    return str(value).strip()


def to_text(value) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and math.isnan(value):
        return ""
    return str(value).strip()


def org_identifier(value) -> str:
    return "".join(to_identifier(value).split())


def cell(row, index: int):
    if row is None or index >= len(row):
        return None
    return row[index]


def _emit(out, identifier, name, brand, product_group, raw_value, raw_cumulative=None):
    if not identifier or identifier == "0":
        return
    value = to_decimal(raw_value)
    if value is None or value <= 0:
        return
    out.append(
        NormalizedRow(
            identifier=identifier,
            name=name,
            brand=brand,
            product_group=product_group,
            value=value,
            cumulative_value=to_decimal(raw_cumulative),
        )
    )


def _simple_layout(rows, *, id_col, name_col, value_col, brand, default_name=False, org_number=False):
    """Header on the first row, one product row per data row."""
    parsed: list[NormalizedRow] = []
    for row in rows[1:]:
        if not row:
            continue
        if org_number:
            identifier = org_identifier(cell(row, id_col))
            if len(identifier) < 9:
                continue
        else:
            identifier = to_identifier(cell(row, id_col))
        name = to_text(cell(row, name_col))
        if default_name and not name:
            name = f"Salon {identifier}"
        _emit(parsed, identifier, name, brand, PRODUCT, cell(row, value_col))
    return parsed


def _find_header_row(rows, column: int, scan: int, require_all: bool) -> int:
    for index, row in enumerate(rows[:scan]):
        text = to_text(cell(row, column)).lower()
        hits = ("kunde" in text, "nr" in text)
        if (all(hits) if require_all else any(hits)):
            return index
    return 0


# ---------------------------------------------------------------------------
# Supplier layouts
# ---------------------------------------------------------------------------

# (brand name, retail column, chemistry column); 0-indexed.
LOREAL_BRANDS = (
    ("L'Oréal Professionnel", 10, 14),
    ("Kérastase", 5, None),
    ("Redken", 11, 15),
    ("Matrix", 12, 16),
    ("Shu Uemura", 8, None),
)
LOREAL_ID_COL = 2
LOREAL_NAME_COL = 3


@register_layout(
    "loreal",
    "Kunne ikke finne gyldige rader i L'Oréal-filen. Sjekk at filen har korrekt format.",
)
def parse_loreal(workbook: Workbook) -> list[NormalizedRow]:
    rows = first_sheet(workbook)
    header = _find_header_row(rows, LOREAL_ID_COL, 20, require_all=True)
    parsed: list[NormalizedRow] = []
    for row in rows[header + 1:]:
        if not row:
            continue
        identifier = to_identifier(cell(row, LOREAL_ID_COL))
        name = to_text(cell(row, LOREAL_NAME_COL))
        for brand, retail_col, chemistry_col in LOREAL_BRANDS:
            _emit(parsed, identifier, name, brand, PRODUCT, cell(row, retail_col))
            if chemistry_col is not None:
                _emit(parsed, identifier, name, brand, CHEMISTRY, cell(row, chemistry_col))
    return parsed


@register_layout(
    "maria_nila",
    "Kunne ikke finne gyldige rader i Maria Nila-filen. "
    "Sjekk at filen har kundenummer i kolonne 2 og omsetning i kolonne 3.",
)
def parse_maria_nila(workbook: Workbook) -> list[NormalizedRow]:
    return _simple_layout(first_sheet(workbook), id_col=1, name_col=0, value_col=2, brand="Maria Nila")


@register_layout(
    "icon_hairspa",
    "Kunne ikke finne gyldige rader i ICON Hairspa-filen. Sjekk at filen har salongnavn "
    "i kolonne 1, kundenummer i kolonne 2 og kjøpsverdi i kolonne 3.",
)
def parse_icon_hairspa(workbook: Workbook) -> list[NormalizedRow]:
    return _simple_layout(first_sheet(workbook), id_col=1, name_col=0, value_col=2, brand="ICON Hairspa")


HEIDENSTROM_SHEETS = {
    "Matrix": "Matrix",
    "Nõberu": "Nõberu of Sweden",
    "Rekvisita": "Rekvisita",
    "Vision": "Vision Haircare",
}


@register_layout(
    "heidenstrom",
    "Kunne ikke finne gyldige rader i Heidenstrøm-filen. Sjekk at filen har ark med navn "
    "Matrix, Nõberu, Rekvisita eller Vision, med orgnummer i kolonne 2 og beløp i kolonne 4.",
)
def parse_heidenstrom(workbook: Workbook) -> list[NormalizedRow]:
    parsed: list[NormalizedRow] = []
    for sheet_name, brand in HEIDENSTROM_SHEETS.items():
        rows = find_sheet(workbook, sheet_name)
        if rows is None:
            continue
        parsed.extend(
            _simple_layout(rows, id_col=1, name_col=2, value_col=3, brand=brand, org_number=True)
        )
    return parsed


@register_layout(
    "verdant",
    "Kunne ikke finne gyldige rader i Verdant-filen. Sjekk at filen har Nummer i kolonne A, "
    "Kundenavn i kolonne B, Produkter i kolonne C og Farge i kolonne D.",
)
def parse_verdant(workbook: Workbook) -> list[NormalizedRow]:
    parsed: list[NormalizedRow] = []
    for row in first_sheet(workbook)[1:]:
        if not row:
            continue
        identifier = to_identifier(cell(row, 0))
        name = to_text(cell(row, 1))
        _emit(parsed, identifier, name, "Verdant", PRODUCT, cell(row, 2))
        _emit(parsed, identifier, name, "Verdant", CHEMISTRY, cell(row, 3))
    return parsed


@register_layout(
    "ingoodhands",
    "Kunne ikke finne gyldige rader i InGoodHands-filen. Sjekk at filen har salongnavn "
    "i kolonne A, kundenummer i kolonne B og verdi i kolonne J.",
)
def parse_ingoodhands(workbook: Workbook) -> list[NormalizedRow]:
    return _simple_layout(first_sheet(workbook), id_col=1, name_col=0, value_col=9, brand="InGoodHands")


WE_ARE_ONE_SHEETS = {
    "AVEDA": "AVEDA",
    "Bumble and Bumble": "Bumble and Bumble",
}


@register_layout(
    "we_are_one",
    'Kunne ikke finne gyldige rader i We Are One-filen. Sjekk at filen har ark med navn '
    '"AVEDA" eller "Bumble and Bumble", med Navn i kolonne A, Org.nr i kolonne B og '
    'Varekjøp i kolonne C.',
)
def parse_we_are_one(workbook: Workbook) -> list[NormalizedRow]:
    parsed: list[NormalizedRow] = []
    for sheet_name, brand in WE_ARE_ONE_SHEETS.items():
        rows = find_sheet(workbook, sheet_name)
        if rows is None:
            continue
        parsed.extend(
            _simple_layout(rows, id_col=1, name_col=0, value_col=2, brand=brand, org_number=True)
        )
    return parsed


WELLA_SHEETS = {"GHD": "GHD"}


@register_layout(
    "wella",
    'Kunne ikke finne gyldige rader i Wella-filen. Sjekk at filen har ark med navn "GHD", '
    "med Kundenr i kolonne A, Salongnavn i kolonne D og Verdi i kolonne F.",
)
def parse_wella(workbook: Workbook) -> list[NormalizedRow]:
    parsed: list[NormalizedRow] = []
    for sheet_name, brand in WELLA_SHEETS.items():
        rows = find_sheet(workbook, sheet_name)
        if rows is None:
            continue
        header = _find_header_row(rows, 0, 10, require_all=False)
        for row in rows[header + 1:]:
            if not row:
                continue
            identifier = to_identifier(cell(row, 0))
            _emit(parsed, identifier, to_text(cell(row, 3)), brand, PRODUCT, cell(row, 5))
    return parsed


@register_layout(
    "saether",
    "Kunne ikke finne gyldige rader i Sæther-filen. Sjekk at filen har kundenummer "
    "i kolonne C og verdi i kolonne H.",
)
def parse_saether(workbook: Workbook) -> list[NormalizedRow]:
    return _simple_layout(
        first_sheet(workbook), id_col=2, name_col=0, value_col=7, brand="Sæther", default_name=True
    )


@register_layout(
    "proud_production",
    "Kunne ikke finne gyldige rader i Proud Production-filen. Sjekk at filen har salongnavn "
    "i kolonne A, verdi i kolonne B og kundenummer i kolonne D.",
)
def parse_proud_production(workbook: Workbook) -> list[NormalizedRow]:
    return _simple_layout(
        first_sheet(workbook), id_col=3, name_col=0, value_col=1, brand="Proud Production", default_name=True
    )


@register_layout(
    "pretty_good",
    "Kunne ikke finne gyldige rader i Pretty Good-filen. Sjekk at filen har salongnavn "
    "i kolonne A, verdi i kolonne B og kundenummer i kolonne D.",
)
def parse_pretty_good(workbook: Workbook) -> list[NormalizedRow]:
    return _simple_layout(
        first_sheet(workbook), id_col=3, name_col=0, value_col=1, brand="Pretty Good", default_name=True
    )


# ---------------------------------------------------------------------------
# Generic layout
# ---------------------------------------------------------------------------

HEADER_KEYWORDS = (
    "kundenummer", "kundenr", "navn", "name", "kunde",
    "beløp", "omsetning", "sum", "total", "verdi", "salg",
)

# Assigned in this order; a column is never used for two fields.
GENERIC_COLUMNS = (
    ("identifier", ("kundenummer", "kundenr", "customer", "id", "nr", "kode", "code")),
    ("name", ("navn", "name", "salon", "kunde", "butikk")),
    ("brand", ("merkevare", "brand", "merke")),
    ("product_group", ("produktgruppe", "gruppe", "group", "kategori", "category")),
    ("cumulative_value", ("kumulativ", "cumulative", "ytd", "hittil")),
    ("value", ("beløp", "omsetning", "verdi", "sum", "total", "amount", "value", "salg")),
)


def _header_cells(row) -> list[str]:
    return [to_text(c).lower() for c in (row or [])]


def find_generic_header(rows, scan: int | None = None) -> int | None:
    """Index of the first row holding at least two known header keywords."""
    scan = scan or getattr(settings, "BONUS_GENERIC_HEADER_SCAN_ROWS", 20)
    for index, row in enumerate(rows[:scan]):
        cells = [c for c in _header_cells(row) if c]
        hits = sum(
            1 for keyword in HEADER_KEYWORDS
            if any(keyword in c or c in keyword for c in cells)
        )
        if hits >= 2:
            return index
    return None


def map_generic_columns(header_row) -> dict[str, int]:
    headers = _header_cells(header_row)
    taken: set[int] = set()
    mapping: dict[str, int] = {}
    for field, patterns in GENERIC_COLUMNS:
        index = _match_column(headers, patterns, taken, lambda p, h: p in h)
        if index is None:
            index = _match_column(headers, patterns, taken, lambda p, h: h in p)
        if index is not None:
            mapping[field] = index
            taken.add(index)
    return mapping


def _match_column(headers, patterns, taken, test):
    for pattern in patterns:
        for index, header in enumerate(headers):
            if index in taken or not header:
                continue
            if test(pattern, header):
                return index
    return None


@register_layout(
    GENERIC_LAYOUT,
    'Kunne ikke finne gyldige rader i filen. Sjekk at filen inneholder kolonner som '
    '"Kundenummer", "Navn" og "Beløp/Omsetning".',
)
def parse_generic(workbook: Workbook) -> list[NormalizedRow]:
    rows = first_sheet(workbook)
    header = find_generic_header(rows)
    if header is None:
        header = 0
    columns = map_generic_columns(cell(rows, header) if rows else None)
    if "identifier" not in columns or "value" not in columns:
        logger.info("Generic layout: missing identifier/value columns (found %s)", sorted(columns))
        return []

    def read(row, field):
        index = columns.get(field)
        return cell(row, index) if index is not None else None

    parsed: list[NormalizedRow] = []
    for row in rows[header + 1:]:
        if not row:
            continue
        _emit(
            parsed,
            to_identifier(read(row, "identifier")),
            to_text(read(row, "name")),
            to_text(read(row, "brand")),
            to_text(read(row, "product_group")),
            read(row, "value"),
            read(row, "cumulative_value"),
        )
    return parsed
