"""Explicit pagination for large reads."""
from __future__ import annotations

from django.conf import settings


def iter_in_pages(queryset, page_size: int | None = None):
    """Yield every row of ``queryset`` using keyset pagination on ``pk``.

    Large periods can hold many thousands of imported rows; rows are fetched
    ``page_size`` at a time instead of in one unbounded query.
    """
    page_size = page_size or getattr(settings, "BONUS_FETCH_PAGE_SIZE", 1000)
    last_pk = None
    base = queryset.order_by("pk")
    while True:
        page_qs = base if last_pk is None else base.filter(pk__gt=last_pk)
        page = list(page_qs[:page_size])
        if not page:
            return
        yield from page
        if len(page) < page_size:
            return
        last_pk = page[-1].pk
