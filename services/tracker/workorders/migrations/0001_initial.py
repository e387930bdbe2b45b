# Generated manually for initial schema.
from __future__ import annotations

import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("accounts", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="WorkOrder",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at_time", models.DateTimeField(default=django.utils.timezone.now)),
                ("completed_at_time", models.DateTimeField(blank=True, null=True)),
                ("canceled", models.BooleanField(default=False)),
                ("active", models.BooleanField(default=False)),
                ("complete", models.BooleanField(default=False)),
                ("description", models.TextField()),
                (
                    "stage",
                    models.PositiveSmallIntegerField(
                        default=0,
                        validators=[django.core.validators.MaxValueValidator(255)],
                    ),
                ),
                (
                    "assigned_to",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="assigned_work_orders",
                        to="accounts.user",
                    ),
                ),
                (
                    "created_by",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="created_work_orders",
                        to="accounts.user",
                    ),
                ),
            ],
            options={
                "db_table": "work_order",
                "ordering": ["id"],
                "indexes": [models.Index(fields=["active"], name="index_work_order_1")],
            },
        ),
    ]
