import pytest

from bonus.models import ImportedSale
from bonus.resolver import IdentifierCache, IdentifierResolver
from suppliers.models import Supplier, SupplierIdentifier


@pytest.mark.django_db
def test_resolves_member_number_directly(supplier, salon):
    resolver = IdentifierResolver(supplier, IdentifierCache.load([supplier.pk]))

    resolution = resolver.resolve(" 1001 ")

    assert resolution.salon == salon
    assert resolution.confidence == 100
    assert resolution.method == ImportedSale.MatchMethod.IDENTIFIER


@pytest.mark.django_db
def test_learned_mapping_wins_over_member_number(supplier, salon, other_salon):
    SupplierIdentifier.objects.create(supplier=supplier, salon=other_salon, customer_number="1001")
    resolver = IdentifierResolver(supplier, IdentifierCache.load([supplier.pk]))

    assert resolver.resolve("1001").salon == other_salon


@pytest.mark.django_db
def test_mapping_of_other_supplier_is_ignored(supplier, generic_supplier, other_salon):
    SupplierIdentifier.objects.create(supplier=generic_supplier, salon=other_salon, customer_number="X-1")
    resolver = IdentifierResolver(supplier, IdentifierCache.load())

    resolution = resolver.resolve("X-1")

    assert not resolution.matched
    assert resolution.confidence == 0
    assert resolution.method == ImportedSale.MatchMethod.NONE


@pytest.mark.django_db
def test_org_number_supplier_matches_on_normalized_org_number(salon):
    supplier = Supplier.objects.create(
        name="Heidenstrom",
        feed_layout="heidenstrom",
        identifier_type=Supplier.IdentifierType.ORG_NUMBER,
    )
    resolver = IdentifierResolver(supplier, IdentifierCache())

    assert resolver.resolve("912 345 678").salon == salon
    assert resolver.resolve("1001").salon is None
    assert not resolver.resolve("").matched

