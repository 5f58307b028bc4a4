"""Serializers for payment attempts."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from .models import Payment


class PaymentSerializer(serializers.ModelSerializer):
    booking_code = serializers.CharField(source="booking.booking_code", read_only=True)
    booking_status = serializers.CharField(source="booking.status", read_only=True)
    message = serializers.CharField(read_only=True)
    is_terminal = serializers.SerializerMethodField()

    class Meta:
        model = Payment
        fields = [
            "reference",
            "booking_code",
            "booking_status",
            "method",
            "amount",
            "currency",
            "checkout_url",
            "outcome",
            "message",
            "is_terminal",
            "result_code",
            "completed_at",
            "created_at",
        ]
        read_only_fields = fields

    def get_is_terminal(self, obj: Payment) -> bool:
        return obj.status.is_terminal
