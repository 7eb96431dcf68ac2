"""Member salons (the bonus recipients)."""
from django.db import models

from core.models import TimeStampedModel


class Salon(TimeStampedModel):
    name = models.CharField("navn", max_length=255)
    member_number = models.CharField(
        "medlemsnummer",
        max_length=50,
        null=True,
        blank=True,
        unique=True,
    )
    org_number = models.CharField("org.nr", max_length=20, blank=True, default="", db_index=True)
    is_active = models.BooleanField("aktiv", default=True)

    class Meta:
        verbose_name = "salong"
        verbose_name_plural = "salonger"
        ordering = ["name"]

    def save(self, *args, **kwargs):
        # Org numbers are matched without whitespace.
        self.org_number = "".join((self.org_number or "").split())
        if self.member_number is not None:
            self.member_number = self.member_number.strip() or None
        super().save(*args, **kwargs)

    def __str__(self):
        if self.member_number:
            return f"{self.name} ({self.member_number})"
        return self.name
