import pytest

from salons.models import Salon
from salons.services import SalonLookup, normalize_org_number, search_salons


def test_normalize_org_number():
    assert normalize_org_number(" 912 345 678 ") == "912345678"
    assert normalize_org_number("12345") is None
    assert normalize_org_number(None) is None


@pytest.mark.django_db
def test_salon_save_strips_identifiers():
    salon = Salon.objects.create(name="Salong", member_number="  ", org_number="912 345 678")
    salon.refresh_from_db()
    assert salon.member_number is None
    assert salon.org_number == "912345678"


@pytest.mark.django_db
def test_find_by_org_number_prefers_active_salon():
    Salon.objects.create(name="A Nedlagt", org_number="912345678", is_active=False)
    active = Salon.objects.create(name="B Aktiv", org_number="912345678")

    assert SalonLookup().find_by_org_number("912 345 678") == active


@pytest.mark.django_db
def test_find_by_member_number(salon):
    lookup = SalonLookup()
    assert lookup.find_by_member_number("1001") == salon
    assert lookup.find_by_member_number("9999") is None
    assert lookup.find_by_member_number("") is None


@pytest.mark.django_db
def test_search_salons(salon, other_salon):
    assert list(search_salons("nord")) == [salon]
    assert list(search_salons("1002")) == [other_salon]
    assert len(search_salons()) == 2
