import uuid
from decimal import Decimal

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("salons", "0001_initial"),
        ("suppliers", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="ImportBatch",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("period", models.CharField(db_index=True, max_length=7)),
                ("file_name", models.CharField(blank=True, default="", max_length=255)),
                (
                    "status",
                    models.CharField(
                        choices=[("pending", "Venter"), ("completed", "Fullfort"), ("error", "Feil")],
                        db_index=True,
                        default="pending",
                        max_length=20,
                    ),
                ),
                ("row_count", models.PositiveIntegerField(default=0)),
                ("matched_count", models.PositiveIntegerField(default=0)),
                ("error_count", models.PositiveIntegerField(default=0)),
                ("notes", models.TextField(blank=True, default="")),
                ("processed_at", models.DateTimeField(blank=True, null=True)),
                (
                    "imported_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="bonus_import_batches",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "supplier",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="import_batches",
                        to="suppliers.supplier",
                    ),
                ),
            ],
            options={
                "verbose_name": "importbatch",
                "verbose_name_plural": "importbatcher",
                "ordering": ["-period", "supplier__name"],
                "indexes": [
                    models.Index(fields=["supplier", "period"], name="bonus_batch_supplier_period"),
                ],
            },
        ),
        migrations.CreateModel(
            name="ImportedSale",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("reported_period", models.CharField(db_index=True, max_length=7)),
                ("reported_value", models.DecimalField(decimal_places=4, max_digits=16)),
                ("cumulative_value", models.DecimalField(blank=True, decimal_places=4, max_digits=16, null=True)),
                ("brand", models.CharField(blank=True, default="", max_length=255)),
                ("product_group", models.CharField(blank=True, default="", max_length=100)),
                ("raw_identifier", models.CharField(db_index=True, max_length=100)),
                ("raw_name", models.CharField(blank=True, default="", max_length=255)),
                (
                    "match_status",
                    models.CharField(
                        choices=[
                            ("matched", "Matchet"),
                            ("unmatched", "Umatchet"),
                            ("manual_override", "Manuelt matchet"),
                            ("error", "Feil"),
                        ],
                        db_index=True,
                        default="unmatched",
                        max_length=20,
                    ),
                ),
                ("match_confidence", models.PositiveSmallIntegerField(default=0)),
                (
                    "match_method",
                    models.CharField(
                        choices=[("identifier", "Identifikator"), ("manual", "Manuell"), ("none", "Ingen")],
                        default="none",
                        max_length=20,
                    ),
                ),
                (
                    "batch",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="sales",
                        to="bonus.importbatch",
                    ),
                ),
                (
                    "matched_salon",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="imported_sales",
                        to="salons.salon",
                    ),
                ),
                (
                    "supplier",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="imported_sales",
                        to="suppliers.supplier",
                    ),
                ),
            ],
            options={
                "verbose_name": "importert salg",
                "verbose_name_plural": "importerte salg",
                "ordering": ["raw_identifier", "brand", "product_group"],
                "indexes": [
                    models.Index(fields=["reported_period", "supplier"], name="bonus_sale_period_supplier"),
                    models.Index(fields=["batch", "match_status"], name="bonus_sale_batch_status"),
                ],
            },
        ),
        migrations.CreateModel(
            name="CumulativeBaseline",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("period", models.CharField(db_index=True, max_length=7)),
                ("cumulative_value", models.DecimalField(decimal_places=4, max_digits=16)),
                ("note", models.TextField(blank=True, default="")),
                (
                    "salon",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="cumulative_baselines",
                        to="salons.salon",
                    ),
                ),
                (
                    "supplier",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="cumulative_baselines",
                        to="suppliers.supplier",
                    ),
                ),
            ],
            options={
                "verbose_name": "kumulativ baseline",
                "verbose_name_plural": "kumulative baselines",
                "ordering": ["-period"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("salon", "supplier", "period"),
                        name="uniq_baseline_salon_supplier_period",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="BonusRule",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "rule_type",
                    models.CharField(
                        choices=[("loyalty", "Lojalitetsbonus"), ("return_commission", "Returprovisjon")],
                        max_length=30,
                    ),
                ),
                (
                    "percentage",
                    models.DecimalField(decimal_places=2, help_text="Prosentsats, 5.00 = 5 %.", max_digits=6),
                ),
                ("is_active", models.BooleanField(db_index=True, default=True)),
                ("valid_from", models.DateField(blank=True, null=True)),
                ("valid_until", models.DateField(blank=True, null=True)),
                ("description", models.CharField(blank=True, default="", max_length=255)),
                (
                    "brand",
                    models.ForeignKey(
                        blank=True,
                        help_text="Tom = gjelder alle merker hos leverandoren.",
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="bonus_rules",
                        to="suppliers.brand",
                    ),
                ),
                (
                    "supplier",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="bonus_rules",
                        to="suppliers.supplier",
                    ),
                ),
            ],
            options={
                "verbose_name": "bonusregel",
                "verbose_name_plural": "bonusregler",
                "ordering": ["created_at"],
            },
        ),
        migrations.CreateModel(
            name="BonusCalculation",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("period", models.CharField(db_index=True, max_length=7)),
                ("total_turnover", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=16)),
                (
                    "loyalty_bonus_amount",
                    models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=16),
                ),
                (
                    "return_commission_amount",
                    models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=16),
                ),
                ("applied_rule_ids", models.JSONField(blank=True, default=list)),
                ("calculation_details", models.JSONField(blank=True, default=dict)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("paid", "Utbetalt"),
                            ("approved", "Godkjent"),
                            ("calculated", "Beregnet"),
                            ("pending", "Venter"),
                            ("unmatched", "Umatchet"),
                        ],
                        db_index=True,
                        default="calculated",
                        max_length=20,
                    ),
                ),
                ("calculated_at", models.DateTimeField(blank=True, null=True)),
                ("approved_at", models.DateTimeField(blank=True, null=True)),
                (
                    "approved_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="bonus_calculations_approved",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "calculated_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="bonus_calculations_run",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "salon",
                    models.ForeignKey(
                        blank=True,
                        help_text="Tom = umatchede salg for leverandoren.",
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="bonus_calculations",
                        to="salons.salon",
                    ),
                ),
                (
                    "supplier",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="bonus_calculations",
                        to="suppliers.supplier",
                    ),
                ),
            ],
            options={
                "verbose_name": "bonusberegning",
                "verbose_name_plural": "bonusberegninger",
                "ordering": ["-period", "supplier__name"],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("salon__isnull", False)),
                        fields=("salon", "supplier", "period"),
                        name="uniq_calc_salon_supplier_period",
                    ),
                    models.UniqueConstraint(
                        condition=models.Q(("salon__isnull", True)),
                        fields=("supplier", "period"),
                        name="uniq_calc_unmatched_supplier_period",
                    ),
                ],
            },
        ),
    ]
