"""Models for supplier sales imports and bonus calculations."""
from decimal import Decimal

from django.conf import settings
from django.db import models
from django.db.models import Q

from core.models import TimeStampedModel


class ImportBatch(TimeStampedModel):
    class Status(models.TextChoices):
        PENDING = "pending", "Venter"
        COMPLETED = "completed", "Fullfort"
        ERROR = "error", "Feil"

    supplier = models.ForeignKey(
        "suppliers.Supplier",
        on_delete=models.CASCADE,
        related_name="import_batches",
    )
    period = models.CharField(max_length=7, db_index=True)
    file_name = models.CharField(max_length=255, blank=True, default="")
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING, db_index=True)
    row_count = models.PositiveIntegerField(default=0)
    matched_count = models.PositiveIntegerField(default=0)
    error_count = models.PositiveIntegerField(default=0)
    notes = models.TextField(blank=True, default="")
    processed_at = models.DateTimeField(null=True, blank=True)
    imported_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="bonus_import_batches",
    )

    class Meta:
        verbose_name = "importbatch"
        verbose_name_plural = "importbatcher"
        ordering = ["-period", "supplier__name"]
        indexes = [
            models.Index(fields=["supplier", "period"], name="bonus_batch_supplier_period"),
        ]

    def __str__(self):
        return f"{self.supplier} {self.period} ({self.file_name})"


class ImportedSale(TimeStampedModel):
    class MatchStatus(models.TextChoices):
        MATCHED = "matched", "Matchet"
        UNMATCHED = "unmatched", "Umatchet"
        MANUAL_OVERRIDE = "manual_override", "Manuelt matchet"
        ERROR = "error", "Feil"

    class MatchMethod(models.TextChoices):
        IDENTIFIER = "identifier", "Identifikator"
        MANUAL = "manual", "Manuell"
        NONE = "none", "Ingen"

    batch = models.ForeignKey(
        ImportBatch,
        on_delete=models.CASCADE,
        related_name="sales",
    )
    supplier = models.ForeignKey(
        "suppliers.Supplier",
        on_delete=models.CASCADE,
        related_name="imported_sales",
    )
    reported_period = models.CharField(max_length=7, db_index=True)
    reported_value = models.DecimalField(max_digits=16, decimal_places=4)
    cumulative_value = models.DecimalField(max_digits=16, decimal_places=4, null=True, blank=True)
    brand = models.CharField(max_length=255, blank=True, default="")
    product_group = models.CharField(max_length=100, blank=True, default="")
    raw_identifier = models.CharField(max_length=100, db_index=True)
    raw_name = models.CharField(max_length=255, blank=True, default="")
    matched_salon = models.ForeignKey(
        "salons.Salon",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="imported_sales",
    )
    match_status = models.CharField(
        max_length=20,
        choices=MatchStatus.choices,
        default=MatchStatus.UNMATCHED,
        db_index=True,
    )
    match_confidence = models.PositiveSmallIntegerField(default=0)
    match_method = models.CharField(max_length=20, choices=MatchMethod.choices, default=MatchMethod.NONE)

    class Meta:
        verbose_name = "importert salg"
        verbose_name_plural = "importerte salg"
        ordering = ["raw_identifier", "brand", "product_group"]
        indexes = [
            models.Index(fields=["reported_period", "supplier"], name="bonus_sale_period_supplier"),
            models.Index(fields=["batch", "match_status"], name="bonus_sale_batch_status"),
        ]

    def __str__(self):
        return f"{self.raw_identifier} {self.brand} {self.reported_value}"


class CumulativeBaseline(TimeStampedModel):
    """Manually entered year-to-date value for a salon at the end of a period."""

    salon = models.ForeignKey(
        "salons.Salon",
        on_delete=models.CASCADE,
        related_name="cumulative_baselines",
    )
    supplier = models.ForeignKey(
        "suppliers.Supplier",
        on_delete=models.CASCADE,
        related_name="cumulative_baselines",
    )
    period = models.CharField(max_length=7, db_index=True)
    cumulative_value = models.DecimalField(max_digits=16, decimal_places=4)
    note = models.TextField(blank=True, default="")

    class Meta:
        verbose_name = "kumulativ baseline"
        verbose_name_plural = "kumulative baselines"
        ordering = ["-period"]
        constraints = [
            models.UniqueConstraint(
                fields=["salon", "supplier", "period"],
                name="uniq_baseline_salon_supplier_period",
            ),
        ]

    def __str__(self):
        return f"{self.salon} / {self.supplier} {self.period}: {self.cumulative_value}"


class GrowthBaselineOverride(TimeStampedModel):
    """Full-year turnover for a salon used instead of imported figures.

    Replaces both the previous year's same-month and December values when the
    growth bonus for ``year + 1`` is computed.
    """

    salon = models.ForeignKey(
        "salons.Salon",
        on_delete=models.CASCADE,
        related_name="growth_baseline_overrides",
    )
    supplier = models.ForeignKey(
        "suppliers.Supplier",
        on_delete=models.CASCADE,
        related_name="growth_baseline_overrides",
    )
    year = models.PositiveIntegerField(db_index=True)
    override_turnover = models.DecimalField(max_digits=16, decimal_places=2)
    note = models.TextField(blank=True, default="")

    class Meta:
        verbose_name = "vekstbaseline"
        verbose_name_plural = "vekstbaselines"
        ordering = ["-year"]
        constraints = [
            models.UniqueConstraint(
                fields=["salon", "supplier", "year"],
                name="uniq_growth_override_salon_supplier_year",
            ),
        ]

    def __str__(self):
        return f"{self.salon} / {self.supplier} {self.year}: {self.override_turnover}"


class BonusRule(TimeStampedModel):
    class RuleType(models.TextChoices):
        LOYALTY = "loyalty", "Lojalitetsbonus"
        RETURN_COMMISSION = "return_commission", "Returprovisjon"

    supplier = models.ForeignKey(
        "suppliers.Supplier",
        on_delete=models.CASCADE,
        related_name="bonus_rules",
    )
    brand = models.ForeignKey(
        "suppliers.Brand",
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="bonus_rules",
        help_text="Tom = gjelder alle merker hos leverandoren.",
    )
    rule_type = models.CharField(max_length=30, choices=RuleType.choices)
    percentage = models.DecimalField(
        max_digits=6,
        decimal_places=2,
        help_text="Prosentsats, 5.00 = 5 %.",
    )
    is_active = models.BooleanField(default=True, db_index=True)
    valid_from = models.DateField(null=True, blank=True)
    valid_until = models.DateField(null=True, blank=True)
    description = models.CharField(max_length=255, blank=True, default="")

    class Meta:
        verbose_name = "bonusregel"
        verbose_name_plural = "bonusregler"
        ordering = ["created_at"]

    def __str__(self):
        scope = self.brand.name if self.brand_id else "alle merker"
        return f"{self.supplier} / {scope}: {self.get_rule_type_display()} {self.percentage} %"


class CalculationStatus(models.TextChoices):
    PAID = "paid", "Utbetalt"
    APPROVED = "approved", "Godkjent"
    CALCULATED = "calculated", "Beregnet"
    PENDING = "pending", "Venter"
    UNMATCHED = "unmatched", "Umatchet"


# Higher = less finished. Unknown values sort after everything known.
STATUS_PRIORITY = {
    CalculationStatus.PAID: 0,
    CalculationStatus.APPROVED: 1,
    CalculationStatus.CALCULATED: 2,
    CalculationStatus.PENDING: 3,
    CalculationStatus.UNMATCHED: 4,
}
UNKNOWN_STATUS_PRIORITY = 5

ALLOWED_TRANSITIONS = {
    CalculationStatus.CALCULATED: {CalculationStatus.APPROVED},
}


def status_priority(status) -> int:
    return STATUS_PRIORITY.get(status, UNKNOWN_STATUS_PRIORITY)


def worst_status(statuses):
    """Return the least finished status of ``statuses`` (None when empty)."""
    worst = None
    for status in statuses:
        if worst is None or status_priority(status) > status_priority(worst):
            worst = status
    return worst


def can_transition(current, target) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, set())


class BonusCalculation(TimeStampedModel):
    salon = models.ForeignKey(
        "salons.Salon",
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="bonus_calculations",
        help_text="Tom = umatchede salg for leverandoren.",
    )
    supplier = models.ForeignKey(
        "suppliers.Supplier",
        on_delete=models.CASCADE,
        related_name="bonus_calculations",
    )
    period = models.CharField(max_length=7, db_index=True)
    total_turnover = models.DecimalField(max_digits=16, decimal_places=2, default=Decimal("0.00"))
    loyalty_bonus_amount = models.DecimalField(max_digits=16, decimal_places=2, default=Decimal("0.00"))
    return_commission_amount = models.DecimalField(max_digits=16, decimal_places=2, default=Decimal("0.00"))
    applied_rule_ids = models.JSONField(default=list, blank=True)
    calculation_details = models.JSONField(default=dict, blank=True)
    status = models.CharField(
        max_length=20,
        choices=CalculationStatus.choices,
        default=CalculationStatus.CALCULATED,
        db_index=True,
    )
    calculated_at = models.DateTimeField(null=True, blank=True)
    calculated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="bonus_calculations_run",
    )
    approved_at = models.DateTimeField(null=True, blank=True)
    approved_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="bonus_calculations_approved",
    )

    class Meta:
        verbose_name = "bonusberegning"
        verbose_name_plural = "bonusberegninger"
        ordering = ["-period", "supplier__name"]
        constraints = [
            models.UniqueConstraint(
                fields=["salon", "supplier", "period"],
                condition=Q(salon__isnull=False),
                name="uniq_calc_salon_supplier_period",
            ),
            models.UniqueConstraint(
                fields=["supplier", "period"],
                condition=Q(salon__isnull=True),
                name="uniq_calc_unmatched_supplier_period",
            ),
        ]

    def __str__(self):
        who = self.salon or "Umatchet"
        return f"{who} / {self.supplier} {self.period}"

    @property
    def total_bonus(self) -> Decimal:
        return self.loyalty_bonus_amount + self.return_commission_amount
