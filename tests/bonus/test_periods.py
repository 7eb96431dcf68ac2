import pytest

from bonus.periods import (
    is_january,
    periods_in_range,
    previous_period,
    quarter_note,
    quarter_periods,
    validate_period,
)


def test_previous_period_wraps_year():
    assert previous_period("2025-01") == "2024-12"
    assert previous_period("2025-03") == "2025-02"


def test_periods_in_range_crosses_year_boundary():
    assert periods_in_range("2024-11", "2025-02") == ["2024-11", "2024-12", "2025-01", "2025-02"]
    assert periods_in_range("2025-03", "2025-03") == ["2025-03"]


def test_periods_in_range_rejects_reversed_range():
    with pytest.raises(ValueError):
        periods_in_range("2025-03", "2025-01")


@pytest.mark.parametrize("value", ["2025-13", "2025-3", "25-03", "", None, "mars"])
def test_validate_period_rejects_bad_values(value):
    with pytest.raises(ValueError):
        validate_period(value)


def test_quarter_helpers():
    assert quarter_periods("q4", 2024) == ["2024-10", "2024-11", "2024-12"]
    assert quarter_note("Q1", 2025) == "Kvartalsimport Q1 2025 - fordelt på 3 måneder"
    assert is_january("2025-01")
    with pytest.raises(ValueError):
        quarter_periods("Q5", 2025)
