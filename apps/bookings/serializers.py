"""Serializers for the booking domain."""

from __future__ import annotations

from django.utils import timezone  # type: ignore
from rest_framework import serializers  # type: ignore

from apps.listings.models import Listing

from .domain.form_state import BookingFormState
from .domain.selection import PaymentDetails, PaymentMethod
from .models import Booking

PAYMENT_METHOD_CHOICES = [m.value for m in PaymentMethod]


class FacilityChoiceSerializer(serializers.Serializer):
    name = serializers.CharField()
    start_date = serializers.DateField(required=False, allow_null=True)
    end_date = serializers.DateField(required=False, allow_null=True)


class ActivityChoiceSerializer(serializers.Serializer):
    name = serializers.CharField()
    people = serializers.IntegerField(min_value=1, default=1)


class GuestContactSerializer(serializers.Serializer):
    name = serializers.CharField(allow_blank=True, default="")
    email = serializers.EmailField(allow_blank=True, default="")
    phone = serializers.CharField(allow_blank=True, default="")


class PaymentDetailsSerializer(serializers.Serializer):
    method = serializers.ChoiceField(choices=PAYMENT_METHOD_CHOICES, required=False, allow_blank=True)
    phone = serializers.CharField(required=False, allow_blank=True, default="")
    card_number = serializers.CharField(required=False, allow_blank=True, default="")
    card_expiry = serializers.CharField(required=False, allow_blank=True, default="")
    card_cvv = serializers.CharField(required=False, allow_blank=True, default="", write_only=True)

    def to_details(self) -> PaymentDetails:
        data = self.validated_data
        method = data.get("method")
        return PaymentDetails(
            method=PaymentMethod(method) if method else None,
            phone=data.get("phone", ""),
            card_number=data.get("card_number", ""),
            card_expiry=data.get("card_expiry", ""),
            card_cvv=data.get("card_cvv", ""),
        )


class BookingSubmitSerializer(serializers.Serializer):
    """
    Complete wizard draft posted in one request.

    The draft is replayed through ``BookingFormState`` so the server applies
    the same step validation and pricing as the client.
    """

    listing = serializers.PrimaryKeyRelatedField(queryset=Listing.objects.filter(is_active=True))
    visit_date = serializers.DateField(required=False, allow_null=True)
    adults = serializers.IntegerField(min_value=0, default=1)
    children = serializers.IntegerField(min_value=0, default=0)
    facilities = FacilityChoiceSerializer(many=True, required=False, default=list)
    activities = ActivityChoiceSerializer(many=True, required=False, default=list)
    guest = GuestContactSerializer(required=False)
    payment = PaymentDetailsSerializer(required=False)
    referral_tracking_id = serializers.IntegerField(required=False, allow_null=True)

    def build_form(self) -> BookingFormState:
        data = self.validated_data
        request = self.context.get("request")
        user = getattr(request, "user", None)
        form = BookingFormState.open(data["listing"].to_bookable_item(), user, today=timezone.localdate)

        try:
            if data.get("visit_date") is not None:
                form.set_visit_date(data["visit_date"])
            form.set_party_size(data["adults"], data["children"])
            for facility in data["facilities"]:
                form.toggle_facility(facility["name"])
                form.update_facility_dates(facility["name"], facility.get("start_date"), facility.get("end_date"))
            for activity in data["activities"]:
                form.toggle_activity(activity["name"])
                form.update_activity_people(activity["name"], activity["people"])
            if form.is_guest and data.get("guest"):
                guest = data["guest"]
                form.set_guest_identity(guest["name"], guest["email"], guest["phone"])
        except ValueError as e:
            raise serializers.ValidationError({"detail": str(e)})

        payment = data.get("payment") or {}
        form.set_payment_method(
            payment.get("method") or None,
            phone=payment.get("phone", ""),
            card_number=payment.get("card_number", ""),
            card_expiry=payment.get("card_expiry", ""),
            card_cvv=payment.get("card_cvv", ""),
        )
        form.go_to(form.sequencer.last)
        return form


class BookingSerializer(serializers.ModelSerializer):
    can_retry_payment = serializers.BooleanField(read_only=True)

    class Meta:
        model = Booking
        fields = [
            "id",
            "booking_code",
            "item_id",
            "item_type",
            "item_name",
            "visit_date",
            "slots_booked",
            "total_amount",
            "currency",
            "booking_details",
            "is_guest_booking",
            "guest_name",
            "guest_email",
            "guest_phone",
            "payment_method",
            "status",
            "failure_reason",
            "can_retry_payment",
            "paid_at",
            "cancelled_at",
            "created_at",
        ]
        read_only_fields = fields


class CancelBookingSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="", max_length=255)
