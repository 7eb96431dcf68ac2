"""Models for suppliers, their brands and learned customer-number mappings."""
from django.conf import settings
from django.db import models
from django.db.models.functions import Lower

from core.models import TimeStampedModel


class Supplier(TimeStampedModel):
    class IdentifierType(models.TextChoices):
        MEMBER_NUMBER = "member_number", "Medlemsnummer"
        ORG_NUMBER = "org_number", "Organisasjonsnummer"

    name = models.CharField("navn", max_length=255, unique=True)
    is_active = models.BooleanField("aktiv", default=True)
    cumulative_reporting = models.BooleanField(
        "kumulativ rapportering",
        default=False,
        help_text="Leverandoren rapporterer hittil-i-ar tall hver maned.",
    )
    feed_layout = models.CharField(
        "importformat",
        max_length=50,
        default="generic",
        help_text="Nokkel i parserregisteret (bonus.parsers).",
    )
    identifier_type = models.CharField(
        "identifikatortype",
        max_length=20,
        choices=IdentifierType.choices,
        default=IdentifierType.MEMBER_NUMBER,
    )

    class Meta:
        verbose_name = "leverandor"
        verbose_name_plural = "leverandorer"
        ordering = ["name"]

    def __str__(self):
        return self.name


class Brand(TimeStampedModel):
    supplier = models.ForeignKey(
        Supplier,
        on_delete=models.CASCADE,
        related_name="brands",
        verbose_name="leverandor",
    )
    name = models.CharField("navn", max_length=255)

    class Meta:
        verbose_name = "merke"
        verbose_name_plural = "merker"
        ordering = ["name"]
        constraints = [
            models.UniqueConstraint(
                "supplier",
                Lower("name"),
                name="uniq_brand_name_per_supplier",
            ),
        ]

    def __str__(self):
        return self.name


class SupplierIdentifier(TimeStampedModel):
    """A supplier's customer number learned to point at one salon."""

    class IdentifierType(models.TextChoices):
        MANUAL_MATCH = "manual_match", "Manuell match"
        AUTO = "auto", "Automatisk"

    supplier = models.ForeignKey(
        Supplier,
        on_delete=models.CASCADE,
        related_name="identifiers",
    )
    salon = models.ForeignKey(
        "salons.Salon",
        on_delete=models.CASCADE,
        related_name="supplier_identifiers",
    )
    customer_number = models.CharField("kundenummer", max_length=100)
    identifier_type = models.CharField(
        max_length=20,
        choices=IdentifierType.choices,
        default=IdentifierType.MANUAL_MATCH,
    )
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="supplier_identifiers_created",
    )

    class Meta:
        verbose_name = "leverandor-kundenummer"
        verbose_name_plural = "leverandor-kundenumre"
        ordering = ["supplier__name", "customer_number"]
        constraints = [
            models.UniqueConstraint(
                fields=["supplier", "customer_number"],
                name="uniq_supplier_customer_number",
            ),
        ]

    def __str__(self):
        return f"{self.supplier} {self.customer_number} -> {self.salon}"
