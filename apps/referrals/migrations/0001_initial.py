import django.core.validators
import django.db.models.deletion
from decimal import Decimal

from django.conf import settings
from django.db import migrations, models


def rate_field(help_text):
    return models.DecimalField(
        blank=True,
        decimal_places=2,
        help_text=help_text,
        max_digits=5,
        null=True,
        validators=[
            django.core.validators.MinValueValidator(Decimal("0")),
            django.core.validators.MaxValueValidator(Decimal("100")),
        ],
    )


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ("bookings", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="ReferralSettings",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("trip_service_fee", rate_field("Platform service fee on trips")),
                ("trip_commission_rate", rate_field("Referrer share of the trip service fee")),
                ("event_service_fee", rate_field("Platform service fee on events")),
                ("event_commission_rate", rate_field("Referrer share of the event service fee")),
                ("hotel_service_fee", rate_field("Platform service fee on hotels")),
                ("hotel_commission_rate", rate_field("Referrer share of the hotel service fee")),
                ("attraction_service_fee", rate_field("Platform service fee on attractions")),
                ("attraction_commission_rate", rate_field("Referrer share of the attraction service fee")),
                ("adventure_place_service_fee", rate_field("Platform service fee on adventure places")),
                ("adventure_place_commission_rate", rate_field("Referrer share of the adventure place service fee")),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "verbose_name": "Referral settings",
                "verbose_name_plural": "Referral settings",
            },
        ),
        migrations.CreateModel(
            name="ReferralTracking",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "referral_type",
                    models.CharField(
                        choices=[("booking", "Booking"), ("host", "Host sign-up")],
                        default="booking",
                        max_length=10,
                    ),
                ),
                ("item_id", models.CharField(blank=True, max_length=64)),
                ("item_type", models.CharField(blank=True, max_length=32)),
                (
                    "status",
                    models.CharField(
                        choices=[("pending", "Pending"), ("converted", "Converted")],
                        default="pending",
                        max_length=10,
                    ),
                ),
                ("converted_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "referred_user",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="referred_by",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "referrer",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="referral_clicks",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Referral click",
                "verbose_name_plural": "Referral clicks",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["referrer", "status"], name="tracking_referrer_status_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Withdrawal",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("amount_requested", models.DecimalField(decimal_places=4, max_digits=16)),
                ("amount_consumed", models.DecimalField(decimal_places=4, max_digits=16)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "referrer",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="referral_withdrawals",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Commission withdrawal",
                "verbose_name_plural": "Commission withdrawals",
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="CommissionEntry",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "commission_type",
                    models.CharField(
                        choices=[("host", "Host referral"), ("booking", "Booking referral")],
                        default="booking",
                        max_length=10,
                    ),
                ),
                ("booking_amount", models.DecimalField(decimal_places=2, max_digits=14)),
                ("service_fee_rate", models.DecimalField(decimal_places=2, max_digits=5)),
                ("base_amount", models.DecimalField(decimal_places=4, max_digits=16)),
                ("rate", models.DecimalField(decimal_places=2, max_digits=5)),
                ("commission_amount", models.DecimalField(decimal_places=4, max_digits=16)),
                (
                    "status",
                    models.CharField(
                        choices=[("pending", "Pending"), ("paid", "Paid")],
                        default="pending",
                        max_length=10,
                    ),
                ),
                ("paid_at", models.DateTimeField(blank=True, null=True)),
                ("withdrawn_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "booking",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="referral_commissions",
                        to="bookings.booking",
                    ),
                ),
                (
                    "referred_user",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "referrer",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="referral_commissions",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "tracking",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="commission",
                        to="referrals.referraltracking",
                    ),
                ),
                (
                    "withdrawal",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="entries",
                        to="referrals.withdrawal",
                    ),
                ),
            ],
            options={
                "verbose_name": "Referral commission",
                "verbose_name_plural": "Referral commissions",
                "ordering": ["paid_at", "id"],
                "indexes": [
                    models.Index(fields=["referrer", "status", "withdrawn_at"], name="commission_balance_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(commission_amount__gte=0),
                        name="commission_amount_not_negative",
                    ),
                ],
            },
        ),
    ]
