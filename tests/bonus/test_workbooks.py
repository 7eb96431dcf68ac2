import pytest

from bonus.exceptions import FeedFormatError
from bonus.workbooks import find_sheet, first_sheet, load_workbook


def test_load_xlsx_returns_rows_per_sheet(xlsx_bytes):
    raw = xlsx_bytes({"Matrix": [["Orgnr", "Beløp"], ["912345678", 100]], "Vision": [["a"]]})

    workbook = load_workbook(raw, "rapport.xlsx")

    assert list(workbook) == ["Matrix", "Vision"]
    assert workbook["Matrix"][1] == ["912345678", 100]
    assert find_sheet(workbook, " matrix ") is workbook["Matrix"]
    assert find_sheet(workbook, "Rekvisita") is None


def test_load_csv_sniffs_semicolon_and_decodes_latin1():
    raw = "Kundenummer;Navn;Beløp\n1001;Salong Nord;1500\n".encode("latin-1")

    rows = first_sheet(load_workbook(raw, "rapport.csv"))

    assert rows[0] == ["Kundenummer", "Navn", "Beløp"]
    assert rows[1] == ["1001", "Salong Nord", "1500"]


def test_unsupported_extension_is_rejected():
    with pytest.raises(FeedFormatError):
        load_workbook(b"data", "rapport.pdf")


def test_corrupt_xlsx_is_rejected():
    with pytest.raises(FeedFormatError):
        load_workbook(b"not a zip file", "rapport.xlsx")


def test_empty_file_is_rejected():
    with pytest.raises(FeedFormatError):
        load_workbook(b"", "rapport.csv")
