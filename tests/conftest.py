import io
from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from openpyxl import Workbook

from bonus.models import BonusRule
from salons.models import Salon
from suppliers.models import Brand, Supplier


@pytest.fixture
def admin_user(db):
    return get_user_model().objects.create_user(
        username="admin",
        email="admin@test.no",
        password="testpass123",
        is_staff=True,
    )


@pytest.fixture
def plain_user(db):
    return get_user_model().objects.create_user(
        username="bruker",
        email="bruker@test.no",
        password="testpass123",
    )


@pytest.fixture
def salon(db):
    return Salon.objects.create(name="Salong Nord", member_number="1001", org_number="912 345 678")


@pytest.fixture
def other_salon(db):
    return Salon.objects.create(name="Salong Sor", member_number="1002", org_number="987654321")


@pytest.fixture
def supplier(db):
    return Supplier.objects.create(name="Maria Nila AB", feed_layout="maria_nila")


@pytest.fixture
def generic_supplier(db):
    return Supplier.objects.create(name="Generisk Leverandor", feed_layout="generic")


@pytest.fixture
def cumulative_supplier(db):
    return Supplier.objects.create(
        name="L'Oreal Norge",
        feed_layout="loreal",
        cumulative_reporting=True,
    )


@pytest.fixture
def brand(supplier):
    return Brand.objects.create(supplier=supplier, name="Maria Nila")


@pytest.fixture
def loyalty_rule(supplier):
    return BonusRule.objects.create(
        supplier=supplier,
        rule_type=BonusRule.RuleType.LOYALTY,
        percentage=Decimal("5.00"),
    )


@pytest.fixture
def xlsx_bytes():
    """Build an .xlsx file from ``{sheet name: rows}`` (or a plain list of rows)."""

    def build(sheets):
        if not isinstance(sheets, dict):
            sheets = {"Ark1": sheets}
        wb = Workbook()
        wb.remove(wb.active)
        for title, rows in sheets.items():
            ws = wb.create_sheet(title=title)
            for row in rows:
                ws.append(list(row))
        buf = io.BytesIO()
        wb.save(buf)
        return buf.getvalue()

    return build
