"""Services for suppliers and brands."""
from __future__ import annotations

from .models import Brand, Supplier


def build_brand_index(supplier_ids=None) -> dict[tuple[str, str], Brand]:
    """Map ``(supplier_id, lower-cased brand name)`` to a Brand."""
    qs = Brand.objects.all()
    if supplier_ids is not None:
        qs = qs.filter(supplier_id__in=list(supplier_ids))
    return {(str(b.supplier_id), b.name.strip().lower()): b for b in qs}


def cumulative_supplier_ids(supplier_ids=None) -> set[str]:
    qs = Supplier.objects.filter(cumulative_reporting=True)
    if supplier_ids is not None:
        qs = qs.filter(pk__in=list(supplier_ids))
    return {str(pk) for pk in qs.values_list("pk", flat=True)}
