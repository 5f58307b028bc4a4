"""Serializers for the referral program."""

from __future__ import annotations

from decimal import Decimal

from rest_framework import serializers  # type: ignore

from apps.bookings.domain.selection import ItemType

from .models import CommissionEntry, ReferralTracking, Withdrawal

ITEM_TYPE_CHOICES = [t.value for t in ItemType] + ["adventure"]


class WithdrawSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=16, decimal_places=4, min_value=Decimal("0.0001"))


class WithdrawalSerializer(serializers.ModelSerializer):
    entries = serializers.PrimaryKeyRelatedField(many=True, read_only=True)

    class Meta:
        model = Withdrawal
        fields = ["id", "amount_requested", "amount_consumed", "entries", "created_at"]
        read_only_fields = fields


class ReferralLinkQuerySerializer(serializers.Serializer):
    item_id = serializers.CharField()
    item_type = serializers.ChoiceField(choices=ITEM_TYPE_CHOICES)
    item_slug = serializers.CharField(required=False, allow_blank=True)


class TrackClickSerializer(serializers.Serializer):
    ref = serializers.CharField(max_length=150)
    item_id = serializers.CharField(required=False, allow_blank=True)
    item_type = serializers.ChoiceField(choices=ITEM_TYPE_CHOICES, required=False)
    referral_type = serializers.ChoiceField(
        choices=ReferralTracking.ReferralType.choices,
        default=ReferralTracking.ReferralType.BOOKING,
    )


class CommissionEntrySerializer(serializers.ModelSerializer):
    class Meta:
        model = CommissionEntry
        fields = [
            "id",
            "booking",
            "commission_type",
            "booking_amount",
            "service_fee_rate",
            "base_amount",
            "rate",
            "commission_amount",
            "status",
            "paid_at",
            "withdrawn_at",
        ]
        read_only_fields = fields
