"""Resolve a supplier's raw customer identifier to a member salon."""
from __future__ import annotations

from dataclasses import dataclass

from salons.services import SalonLookup
from suppliers.models import Supplier, SupplierIdentifier

from .models import ImportedSale


@dataclass(frozen=True)
class Resolution:
    salon: object | None
    confidence: int
    method: str

    @property
    def matched(self) -> bool:
        return self.salon is not None


UNMATCHED = Resolution(salon=None, confidence=0, method=ImportedSale.MatchMethod.NONE)


class IdentifierCache:
    """Learned ``(supplier, customer number) -> salon`` mappings.

    Built once at the start of an import or rematch run and thrown away at the
    end of it; it is never shared between runs.
    """

    def __init__(self, mappings: dict[tuple[str, str], object] | None = None):
        self._mappings = dict(mappings or {})

    @classmethod
    def load(cls, supplier_ids=None) -> "IdentifierCache":
        qs = SupplierIdentifier.objects.select_related("salon")
        if supplier_ids is not None:
            qs = qs.filter(supplier_id__in=list(supplier_ids))
        return cls({(str(m.supplier_id), m.customer_number.strip()): m.salon for m in qs})

    def get(self, supplier_id, identifier: str):
        return self._mappings.get((str(supplier_id), identifier.strip()))

    def __len__(self):
        return len(self._mappings)


class IdentifierResolver:
    """Exact-match resolution, mapping table first, then salon records.

    Never writes anything. Confidence is 100 for a match and 0 otherwise.
    """

    def __init__(self, supplier: Supplier, cache: IdentifierCache, salon_lookup: SalonLookup | None = None):
        self.supplier = supplier
        self.cache = cache
        self.salon_lookup = salon_lookup or SalonLookup()

    def resolve(self, raw_identifier) -> Resolution:
        identifier = (raw_identifier or "").strip()
        if not identifier:
            return UNMATCHED

        salon = self.cache.get(self.supplier.pk, identifier)
        if salon is None:
            salon = self._direct_lookup(identifier)
        if salon is None:
            return UNMATCHED
        return Resolution(salon=salon, confidence=100, method=ImportedSale.MatchMethod.IDENTIFIER)

    def _direct_lookup(self, identifier: str):
        if self.supplier.identifier_type == Supplier.IdentifierType.ORG_NUMBER:
            return self.salon_lookup.find_by_org_number(identifier)
        return self.salon_lookup.find_by_member_number(identifier)
