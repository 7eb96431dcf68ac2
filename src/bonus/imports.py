"""Import supplier feeds into batches of imported sales and keep matches current."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal

from django.db import DatabaseError, transaction
from django.db.models import Exists, OuterRef
from django.utils import timezone

from core.locks import advisory_lock
from core.paging import iter_in_pages
from core.services import create_audit_log
from suppliers.models import Supplier, SupplierIdentifier

from .models import ImportBatch, ImportedSale
from .parsers import NormalizedRow, ParseResult, parse_workbook
from .periods import quarter_note, quarter_periods, validate_period
from .resolver import IdentifierCache, IdentifierResolver
from .workbooks import load_workbook

logger = logging.getLogger("bonus")

VALUE_PLACES = Decimal("0.0001")
QUARTER_MONTHS = 3


@dataclass
class ImportResult:
    parse: ParseResult
    batches: list[ImportBatch] = field(default_factory=list)
    failed_periods: list[str] = field(default_factory=list)

    @property
    def warning(self) -> str:
        return self.parse.message if self.parse.is_empty else ""

    @property
    def row_count(self) -> int:
        return sum(b.row_count for b in self.batches)

    @property
    def matched_count(self) -> int:
        return sum(b.matched_count for b in self.batches)


@dataclass
class RematchResult:
    matched: int = 0
    failed: int = 0
    batches: int = 0
    errors: int = 0

    def __iadd__(self, other: "RematchResult"):
        self.matched += other.matched
        self.failed += other.failed
        self.batches += other.batches
        self.errors += other.errors
        return self


def _lock_for(supplier_id, period: str) -> None:
    advisory_lock("bonus", supplier_id, period)


def _quantize(value: Decimal | None) -> Decimal | None:
    if value is None:
        return None
    return value.quantize(VALUE_PLACES)


def refresh_batch_counts(batch: ImportBatch) -> ImportBatch:
    row_count = batch.sales.count()
    matched = batch.sales.filter(matched_salon__isnull=False).count()
    batch.row_count = row_count
    batch.matched_count = matched
    batch.error_count = row_count - matched
    batch.save(update_fields=["row_count", "matched_count", "error_count", "updated_at"])
    return batch


def import_batch(
    supplier: Supplier,
    period: str,
    rows: list[NormalizedRow],
    file_name: str,
    actor=None,
    notes: str = "",
    cache: IdentifierCache | None = None,
) -> ImportBatch:
    """Replace the batch for (supplier, period) with ``rows``.

    Existing batches for the same key and their sales are deleted first; a
    re-import never appends.
    """
    period = validate_period(period)
    if cache is None:
        cache = IdentifierCache.load([supplier.pk])
    resolver = IdentifierResolver(supplier, cache)
    if actor is not None and not getattr(actor, "is_authenticated", False):
        actor = None

    with transaction.atomic():
        _lock_for(supplier.pk, period)

        existing = ImportBatch.objects.filter(supplier=supplier, period=period)
        replaced = list(existing.values_list("pk", flat=True))
        if replaced:
            ImportedSale.objects.filter(batch_id__in=replaced).delete()
            ImportBatch.objects.filter(pk__in=replaced).delete()
            logger.info("Replaced %s batch(es) for %s %s", len(replaced), supplier, period)

        batch = ImportBatch.objects.create(
            supplier=supplier,
            period=period,
            file_name=file_name or "",
            status=ImportBatch.Status.PENDING,
            notes=notes or "",
            imported_by=actor,
        )

        sales = []
        matched = 0
        for row in rows:
            resolution = resolver.resolve(row.identifier)
            if resolution.matched:
                matched += 1
            sales.append(
                ImportedSale(
                    batch=batch,
                    supplier=supplier,
                    reported_period=period,
                    reported_value=_quantize(row.value),
                    cumulative_value=_quantize(row.cumulative_value),
                    brand=row.brand,
                    product_group=row.product_group,
                    raw_identifier=row.identifier,
                    raw_name=row.name,
                    matched_salon=resolution.salon,
                    match_status=(
                        ImportedSale.MatchStatus.MATCHED
                        if resolution.matched
                        else ImportedSale.MatchStatus.UNMATCHED
                    ),
                    match_confidence=resolution.confidence,
                    match_method=resolution.method,
                )
            )
        ImportedSale.objects.bulk_create(sales, batch_size=500)

        batch.status = ImportBatch.Status.COMPLETED
        batch.row_count = len(sales)
        batch.matched_count = matched
        batch.error_count = len(sales) - matched
        batch.processed_at = timezone.now()
        batch.save(
            update_fields=[
                "status", "row_count", "matched_count", "error_count", "processed_at", "updated_at",
            ]
        )

        create_audit_log(
            actor=actor,
            action="bonus.import",
            entity_type="ImportBatch",
            entity_id=str(batch.pk),
            before={"replaced_batches": [str(pk) for pk in replaced]} if replaced else None,
            after={
                "supplier": str(supplier.pk),
                "period": period,
                "file_name": batch.file_name,
                "row_count": batch.row_count,
                "matched_count": batch.matched_count,
            },
        )

    logger.info(
        "Imported %s for %s %s: %s rows, %s matched",
        file_name, supplier, period, batch.row_count, batch.matched_count,
    )
    return batch


def import_file(
    supplier: Supplier,
    file,
    file_name: str,
    *,
    period: str | None = None,
    quarter: str | None = None,
    year: int | None = None,
    actor=None,
) -> ImportResult:
    """Parse an uploaded feed and persist it for one month or one quarter.

    A quarter import divides every value by 3 and stores the same rows once
    per month, each month as its own batch. An empty parse stores nothing.
    """
    if quarter:
        periods = quarter_periods(quarter, year)
        notes = quarter_note(quarter, year)
        divisor = QUARTER_MONTHS
    elif period:
        periods = [validate_period(period)]
        notes = ""
        divisor = 1
    else:
        raise ValueError("Velg periode eller kvartal.")

    workbook = load_workbook(file, file_name)
    parsed = parse_workbook(workbook, supplier.feed_layout)
    result = ImportResult(parse=parsed)
    if parsed.is_empty:
        logger.warning("Import of %s for %s skipped: %s", file_name, supplier, parsed.message)
        return result

    rows = parsed.rows if divisor == 1 else [row.scaled(divisor) for row in parsed.rows]
    cache = IdentifierCache.load([supplier.pk])
    for target in periods:
        try:
            batch = import_batch(
                supplier, target, rows, file_name, actor=actor, notes=notes, cache=cache,
            )
        except DatabaseError:
            logger.exception("Import of %s for %s %s failed", file_name, supplier, target)
            result.failed_periods.append(target)
            continue
        result.batches.append(batch)
    return result


def rematch(batch: ImportBatch, cache: IdentifierCache | None = None) -> RematchResult:
    """Re-resolve the unmatched sales of ``batch``; matched sales are untouched."""
    if cache is None:
        cache = IdentifierCache.load([batch.supplier_id])
    resolver = IdentifierResolver(batch.supplier, cache)
    result = RematchResult(batches=1)

    with transaction.atomic():
        _lock_for(batch.supplier_id, batch.period)
        unmatched = ImportedSale.objects.filter(batch=batch, matched_salon__isnull=True)
        for sale in iter_in_pages(unmatched):
            resolution = resolver.resolve(sale.raw_identifier)
            if not resolution.matched:
                result.failed += 1
                continue
            sale.matched_salon = resolution.salon
            sale.match_status = ImportedSale.MatchStatus.MATCHED
            sale.match_confidence = resolution.confidence
            sale.match_method = resolution.method
            sale.save(
                update_fields=[
                    "matched_salon", "match_status", "match_confidence", "match_method", "updated_at",
                ]
            )
            result.matched += 1
        refresh_batch_counts(batch)

    logger.info("Rematch %s: %s matched, %s still unmatched", batch, result.matched, result.failed)
    return result


def sync_all_batches() -> RematchResult:
    """Rematch every batch that still has unmatched sales, one after another."""
    batches = (
        ImportBatch.objects
        .filter(Exists(ImportedSale.objects.filter(batch=OuterRef("pk"), matched_salon__isnull=True)))
        .select_related("supplier")
        .order_by("period", "created_at")
    )
    cache = IdentifierCache.load()
    logger.debug("Sync all: %s learned identifiers loaded", len(cache))
    total = RematchResult()
    for batch in batches:
        try:
            total += rematch(batch, cache=cache)
        except DatabaseError:
            logger.exception("Rematch of batch %s failed", batch.pk)
            total.errors += 1
    logger.info(
        "Sync all: %s batches, %s matched, %s unmatched, %s errors",
        total.batches, total.matched, total.failed, total.errors,
    )
    return total


def match_sale(sale: ImportedSale, salon, actor=None) -> ImportedSale:
    """Manually match ``sale`` to ``salon`` and remember the identifier.

    The learned mapping replaces any earlier one for the same supplier and
    customer number, so later imports resolve automatically.
    """
    if actor is not None and not getattr(actor, "is_authenticated", False):
        actor = None
    before = {
        "matched_salon": str(sale.matched_salon_id) if sale.matched_salon_id else None,
        "match_status": sale.match_status,
    }
    identifier = sale.raw_identifier.strip()

    with transaction.atomic():
        _lock_for(sale.supplier_id, sale.reported_period)
        sale.matched_salon = salon
        sale.match_status = ImportedSale.MatchStatus.MANUAL_OVERRIDE
        sale.match_method = ImportedSale.MatchMethod.MANUAL
        sale.match_confidence = 100
        sale.save(
            update_fields=[
                "matched_salon", "match_status", "match_confidence", "match_method", "updated_at",
            ]
        )

        if identifier:
            SupplierIdentifier.objects.filter(
                supplier_id=sale.supplier_id,
                customer_number=identifier,
            ).delete()
            SupplierIdentifier.objects.create(
                supplier_id=sale.supplier_id,
                salon=salon,
                customer_number=identifier,
                identifier_type=SupplierIdentifier.IdentifierType.MANUAL_MATCH,
                created_by=actor,
            )

        refresh_batch_counts(sale.batch)
        create_audit_log(
            actor=actor,
            action="bonus.sale.match",
            entity_type="ImportedSale",
            entity_id=str(sale.pk),
            before=before,
            after={"matched_salon": str(salon.pk), "customer_number": identifier},
        )

    logger.info("Sale %s (%s) matched to %s", sale.pk, identifier, salon)
    return sale


def unmatch_sale(sale: ImportedSale, actor=None) -> ImportedSale:
    before = {
        "matched_salon": str(sale.matched_salon_id) if sale.matched_salon_id else None,
        "match_status": sale.match_status,
    }
    with transaction.atomic():
        _lock_for(sale.supplier_id, sale.reported_period)
        sale.matched_salon = None
        sale.match_status = ImportedSale.MatchStatus.UNMATCHED
        sale.match_method = ImportedSale.MatchMethod.NONE
        sale.match_confidence = 0
        sale.save(
            update_fields=[
                "matched_salon", "match_status", "match_confidence", "match_method", "updated_at",
            ]
        )
        refresh_batch_counts(sale.batch)
        create_audit_log(
            actor=actor,
            action="bonus.sale.unmatch",
            entity_type="ImportedSale",
            entity_id=str(sale.pk),
            before=before,
            after={"matched_salon": None},
        )
    return sale
