import uuid

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ("bonus", "0001_initial"),
        ("salons", "0001_initial"),
        ("suppliers", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="GrowthBaselineOverride",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("year", models.PositiveIntegerField(db_index=True)),
                ("override_turnover", models.DecimalField(decimal_places=2, max_digits=16)),
                ("note", models.TextField(blank=True, default="")),
                (
                    "salon",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="growth_baseline_overrides",
                        to="salons.salon",
                    ),
                ),
                (
                    "supplier",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="growth_baseline_overrides",
                        to="suppliers.supplier",
                    ),
                ),
            ],
            options={
                "verbose_name": "vekstbaseline",
                "verbose_name_plural": "vekstbaselines",
                "ordering": ["-year"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("salon", "supplier", "year"),
                        name="uniq_growth_override_salon_supplier_year",
                    ),
                ],
            },
        ),
    ]
