import django.core.validators
import django.db.models.deletion
from decimal import Decimal

from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Listing",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "item_type",
                    models.CharField(
                        choices=[
                            ("trip", "Trip"),
                            ("event", "Event"),
                            ("hotel", "Hotel"),
                            ("attraction", "Attraction"),
                            ("adventure_place", "Adventure Place"),
                        ],
                        max_length=32,
                    ),
                ),
                ("name", models.CharField(max_length=255)),
                ("slug", models.SlugField(blank=True, max_length=255)),
                ("description", models.TextField(blank=True)),
                ("location", models.CharField(blank=True, max_length=255)),
                (
                    "entrance_type",
                    models.CharField(
                        choices=[("free", "Free entrance"), ("paid", "Paid entrance")],
                        default="paid",
                        max_length=10,
                    ),
                ),
                (
                    "price_adult",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        max_digits=12,
                        validators=[django.core.validators.MinValueValidator(Decimal("0.00"))],
                    ),
                ),
                (
                    "price_child",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        max_digits=12,
                        validators=[django.core.validators.MinValueValidator(Decimal("0.00"))],
                    ),
                ),
                ("currency", models.CharField(default="KES", max_length=3)),
                (
                    "facilities",
                    models.JSONField(
                        blank=True,
                        default=list,
                        help_text='Per-day rentals: [{"name": "Campsite", "price": "1500", "capacity": 4}]',
                    ),
                ),
                (
                    "activities",
                    models.JSONField(
                        blank=True,
                        default=list,
                        help_text='Per-person activities: [{"name": "Kayaking", "price": "800"}]',
                    ),
                ),
                (
                    "fixed_date",
                    models.DateField(
                        blank=True,
                        help_text="Trips and events run on one date; the guest does not pick it.",
                        null=True,
                    ),
                ),
                ("skip_date_selection", models.BooleanField(default=False)),
                ("skip_add_ons", models.BooleanField(default=False)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "host",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="listings",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Listing",
                "verbose_name_plural": "Listings",
                "ordering": ["name"],
                "indexes": [models.Index(fields=["item_type", "is_active"], name="listing_type_active_idx")],
            },
        ),
    ]
