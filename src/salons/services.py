"""Salon lookup used by the identifier resolver."""
from __future__ import annotations

import re

from django.db.models import Q

from .models import Salon

_WHITESPACE_RE = re.compile(r"\s+")

MIN_ORG_NUMBER_DIGITS = 9


def normalize_org_number(value) -> str | None:
    """Strip whitespace; return None unless at least 9 digits remain."""
    if value is None:
        return None
    cleaned = _WHITESPACE_RE.sub("", str(value))
    if sum(ch.isdigit() for ch in cleaned) < MIN_ORG_NUMBER_DIGITS:
        return None
    return cleaned


class SalonLookup:
    """Direct salon lookups by member number or organization number."""

    def find_by_member_number(self, code: str) -> Salon | None:
        code = (code or "").strip()
        if not code:
            return None
        return Salon.objects.filter(member_number=code).first()

    def find_by_org_number(self, org_number: str) -> Salon | None:
        normalized = normalize_org_number(org_number)
        if normalized is None:
            return None
        return (
            Salon.objects
            .filter(org_number=normalized)
            .order_by("-is_active", "name")
            .first()
        )


def search_salons(term: str = "", limit: int | None = None):
    """Salons matching ``term`` on name, member number or org number."""
    qs = Salon.objects.all()
    term = (term or "").strip()
    if term:
        qs = qs.filter(
            Q(name__icontains=term)
            | Q(member_number__icontains=term)
            | Q(org_number__icontains=term)
        )
    qs = qs.order_by("name")
    return qs[:limit] if limit else qs
