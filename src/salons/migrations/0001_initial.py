import uuid

from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Salon",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("name", models.CharField(max_length=255, verbose_name="navn")),
                (
                    "member_number",
                    models.CharField(blank=True, max_length=50, null=True, unique=True, verbose_name="medlemsnummer"),
                ),
                ("org_number", models.CharField(blank=True, db_index=True, default="", max_length=20, verbose_name="org.nr")),
                ("is_active", models.BooleanField(default=True, verbose_name="aktiv")),
            ],
            options={
                "verbose_name": "salong",
                "verbose_name_plural": "salonger",
                "ordering": ["name"],
            },
        ),
    ]
