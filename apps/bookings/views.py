"""API views for the booking domain."""

from __future__ import annotations

import logging

from rest_framework import mixins, permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore

from apps.payments.serializers import PaymentSerializer

from .application.command_handlers import (
    CancelBookingCommand,
    CancelBookingHandler,
    RetryBookingPaymentCommand,
    RetryBookingPaymentHandler,
    SubmitBookingCommand,
    SubmitBookingHandler,
)
from .cache import get_user_bookings
from .domain.exceptions import BookingStateError, BookingValidationError, CheckoutFailed
from .models import Booking
from .serializers import (
    BookingSerializer,
    BookingSubmitSerializer,
    CancelBookingSerializer,
    PaymentDetailsSerializer,
)

logger = logging.getLogger(__name__)


class IsBookingOwner(permissions.BasePermission):
    """Account bookings belong to their user; guest bookings are reached by booking code."""

    def has_object_permission(self, request, view, obj: Booking):  # type: ignore
        if obj.user_id is None:
            return True
        user = request.user
        if not user.is_authenticated:
            return False
        return user.is_staff or obj.user_id == user.id


def _submit_response(result, http_status=status.HTTP_201_CREATED) -> Response:
    data = {"booking": BookingSerializer(result.booking).data}
    if result.payment is not None:
        data["payment"] = PaymentSerializer(result.payment).data
    return Response(data, status=http_status)


class BookingViewSet(mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    """Submit bookings, list your own, retry failed payments and cancel."""

    queryset = Booking.objects.all()
    serializer_class = BookingSerializer
    permission_classes = [permissions.AllowAny, IsBookingOwner]
    lookup_field = "booking_code"

    def get_serializer_class(self):  # type: ignore
        if self.action == "create":
            return BookingSubmitSerializer
        return BookingSerializer

    def list(self, request):  # type: ignore
        user = request.user
        if not user.is_authenticated:
            return Response(status=status.HTTP_401_UNAUTHORIZED)

        def build():
            qs = Booking.objects.filter(user=user).order_by("-created_at")
            return BookingSerializer(qs, many=True).data

        return Response(get_user_bookings(user.id, build))

    def create(self, request, *args, **kwargs):  # type: ignore
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        form = serializer.build_form()

        handler = SubmitBookingHandler()
        try:
            result = handler.handle(SubmitBookingCommand(
                form=form,
                referral_tracking_id=serializer.validated_data.get("referral_tracking_id"),
            ))
        except BookingValidationError as e:
            return Response({"errors": list(e.errors)}, status=status.HTTP_400_BAD_REQUEST)
        except CheckoutFailed as e:
            return Response(
                {
                    "detail": "The payment provider is unavailable. Your booking was saved; please retry the payment.",
                    "booking": BookingSerializer(e.booking).data,
                },
                status=status.HTTP_502_BAD_GATEWAY,
            )
        return _submit_response(result)

    @action(detail=True, methods=["post"], url_path="retry-payment")
    def retry_payment(self, request, booking_code=None):  # type: ignore
        booking: Booking = self.get_object()  # type: ignore
        serializer = PaymentDetailsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            result = RetryBookingPaymentHandler().handle(RetryBookingPaymentCommand(
                booking_id=booking.pk,
                payment=serializer.to_details(),
            ))
        except BookingValidationError as e:
            return Response({"errors": list(e.errors)}, status=status.HTTP_400_BAD_REQUEST)
        except BookingStateError as e:
            return Response({"detail": str(e)}, status=status.HTTP_409_CONFLICT)
        except CheckoutFailed as e:
            return Response(
                {
                    "detail": "The payment provider is unavailable. Please try again later.",
                    "booking": BookingSerializer(e.booking).data,
                },
                status=status.HTTP_502_BAD_GATEWAY,
            )
        return _submit_response(result, http_status=status.HTTP_200_OK)

    @action(detail=True, methods=["post"])
    def cancel(self, request, booking_code=None):  # type: ignore
        booking: Booking = self.get_object()  # type: ignore
        serializer = CancelBookingSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            booking = CancelBookingHandler().handle(CancelBookingCommand(
                booking_id=booking.pk,
                reason=serializer.validated_data["reason"],
            ))
        except BookingStateError as e:
            return Response({"detail": str(e)}, status=status.HTTP_409_CONFLICT)
        return Response(BookingSerializer(booking).data)
