import uuid

import django.db.models.deletion
import django.db.models.functions.text
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("salons", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Supplier",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("name", models.CharField(max_length=255, unique=True, verbose_name="navn")),
                ("is_active", models.BooleanField(default=True, verbose_name="aktiv")),
                (
                    "cumulative_reporting",
                    models.BooleanField(
                        default=False,
                        help_text="Leverandoren rapporterer hittil-i-ar tall hver maned.",
                        verbose_name="kumulativ rapportering",
                    ),
                ),
                (
                    "feed_layout",
                    models.CharField(
                        default="generic",
                        help_text="Nokkel i parserregisteret (bonus.parsers).",
                        max_length=50,
                        verbose_name="importformat",
                    ),
                ),
                (
                    "identifier_type",
                    models.CharField(
                        choices=[("member_number", "Medlemsnummer"), ("org_number", "Organisasjonsnummer")],
                        default="member_number",
                        max_length=20,
                        verbose_name="identifikatortype",
                    ),
                ),
            ],
            options={
                "verbose_name": "leverandor",
                "verbose_name_plural": "leverandorer",
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="Brand",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("name", models.CharField(max_length=255, verbose_name="navn")),
                (
                    "supplier",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="brands",
                        to="suppliers.supplier",
                        verbose_name="leverandor",
                    ),
                ),
            ],
            options={
                "verbose_name": "merke",
                "verbose_name_plural": "merker",
                "ordering": ["name"],
            },
        ),
        migrations.AddConstraint(
            model_name="brand",
            constraint=models.UniqueConstraint(
                models.F("supplier"),
                django.db.models.functions.text.Lower("name"),
                name="uniq_brand_name_per_supplier",
            ),
        ),
        migrations.CreateModel(
            name="SupplierIdentifier",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("customer_number", models.CharField(max_length=100, verbose_name="kundenummer")),
                (
                    "identifier_type",
                    models.CharField(
                        choices=[("manual_match", "Manuell match"), ("auto", "Automatisk")],
                        default="manual_match",
                        max_length=20,
                    ),
                ),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="supplier_identifiers_created",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "salon",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="supplier_identifiers",
                        to="salons.salon",
                    ),
                ),
                (
                    "supplier",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="identifiers",
                        to="suppliers.supplier",
                    ),
                ),
            ],
            options={
                "verbose_name": "leverandor-kundenummer",
                "verbose_name_plural": "leverandor-kundenumre",
                "ordering": ["supplier__name", "customer_number"],
            },
        ),
        migrations.AddConstraint(
            model_name="supplieridentifier",
            constraint=models.UniqueConstraint(
                fields=("supplier", "customer_number"),
                name="uniq_supplier_customer_number",
            ),
        ),
    ]
