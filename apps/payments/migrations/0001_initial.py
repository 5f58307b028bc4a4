import django.db.models.deletion
from decimal import Decimal

from django.db import migrations, models

OUTCOME_CHOICES = [
    ("processing", "Processing"),
    ("success", "Success"),
    ("cancelled_by_user", "Cancelled by payer"),
    ("pin_error", "Wrong PIN"),
    ("generic_failure", "Failed"),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("bookings", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Payment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("reference", models.CharField(max_length=100, unique=True)),
                ("method", models.CharField(max_length=20)),
                ("provider", models.CharField(blank=True, max_length=50)),
                ("amount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=14)),
                ("currency", models.CharField(default="KES", max_length=3)),
                ("phone", models.CharField(blank=True, max_length=32)),
                ("checkout_url", models.URLField(blank=True)),
                ("outcome", models.CharField(choices=OUTCOME_CHOICES, default="processing", max_length=20)),
                ("result_code", models.CharField(blank=True, max_length=20)),
                ("result_description", models.CharField(blank=True, max_length=255)),
                ("metadata", models.JSONField(blank=True, default=dict)),
                ("completed_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "booking",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="payments",
                        to="bookings.booking",
                    ),
                ),
            ],
            options={
                "verbose_name": "Payment",
                "verbose_name_plural": "Payments",
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="PaymentEvent",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("status", models.CharField(blank=True, max_length=32)),
                ("result_code", models.CharField(blank=True, max_length=20)),
                ("payload", models.JSONField(blank=True, default=dict)),
                ("applied", models.BooleanField(default=False)),
                ("outcome_after", models.CharField(choices=OUTCOME_CHOICES, max_length=20)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "payment",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="provider_events",
                        to="payments.payment",
                    ),
                ),
            ],
            options={
                "verbose_name": "Payment event",
                "verbose_name_plural": "Payment events",
                "ordering": ["created_at", "id"],
            },
        ),
    ]
