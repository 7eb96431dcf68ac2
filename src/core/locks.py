"""Transaction-scoped advisory locks.

Imports and calculation runs for the same supplier + period must not
interleave. On PostgreSQL a ``pg_advisory_xact_lock`` is taken and released
with the surrounding transaction; other engines (sqlite in local tests) run
without a lock.
"""
from __future__ import annotations

import hashlib
import logging

from django.db import connection, transaction

logger = logging.getLogger(__name__)


def make_lock_key(*parts) -> int:
    raw = ":".join(str(p) for p in parts)
    hex_digest = hashlib.md5(raw.encode()).hexdigest()[:8]
    return int(hex_digest, 16) % (2**31)


def advisory_lock(*parts) -> None:
    """Block until the advisory lock for ``parts`` is held by this transaction.

    Must be called inside ``transaction.atomic()``.
    """
    if not transaction.get_connection().in_atomic_block:
        raise RuntimeError("advisory_lock() requires an atomic block.")
    if connection.vendor != "postgresql":
        return
    key = make_lock_key(*parts)
    logger.debug("Waiting for advisory lock %s (%s)", key, parts)
    with connection.cursor() as cursor:
        cursor.execute("SELECT pg_advisory_xact_lock(%s)", [key])
