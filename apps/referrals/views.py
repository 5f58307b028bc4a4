"""API views for the referral program."""

from __future__ import annotations

from rest_framework import permissions, status  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import APIView  # type: ignore

from .exceptions import InsufficientBalance, InvalidWithdrawalAmount
from .ledger import ledger
from .links import check_referral_eligibility, generate_referral_link, track_referral_click
from .models import CommissionEntry
from .serializers import (
    CommissionEntrySerializer,
    ReferralLinkQuerySerializer,
    TrackClickSerializer,
    WithdrawSerializer,
    WithdrawalSerializer,
)


class IsVerifiedHost(permissions.BasePermission):
    """The referral dashboard is limited to approved hosts."""

    def has_permission(self, request, view) -> bool:  # type: ignore
        eligibility = check_referral_eligibility(request.user)
        if not eligibility.is_eligible:
            self.message = eligibility.reason
            return False
        return True


class ReferralStatsView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsVerifiedHost]

    def get(self, request):  # type: ignore
        stats = ledger.stats(request.user.id)
        recent = CommissionEntry.objects.filter(referrer=request.user).order_by("-paid_at", "-id")[:20]
        data = stats.to_dict()
        data["recent_commissions"] = CommissionEntrySerializer(recent, many=True).data
        return Response(data)


class WithdrawView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsVerifiedHost]

    def post(self, request):  # type: ignore
        serializer = WithdrawSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            withdrawal = ledger.withdraw(request.user.id, serializer.validated_data["amount"])
        except InsufficientBalance as e:
            return Response(
                {"detail": str(e), "withdrawable_balance": str(e.available)},
                status=status.HTTP_400_BAD_REQUEST,
            )
        except InvalidWithdrawalAmount as e:
            return Response({"detail": str(e)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(WithdrawalSerializer(withdrawal).data, status=status.HTTP_201_CREATED)


class ReferralLinkView(APIView):
    permission_classes = [permissions.AllowAny]

    def get(self, request):  # type: ignore
        serializer = ReferralLinkQuerySerializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        link = generate_referral_link(
            request.user,
            data["item_id"],
            data["item_type"],
            data.get("item_slug") or None,
        )
        eligibility = check_referral_eligibility(request.user)
        return Response({"link": link, "is_eligible": eligibility.is_eligible, "reason": eligibility.reason})


class TrackClickView(APIView):
    permission_classes = [permissions.AllowAny]

    def post(self, request):  # type: ignore
        serializer = TrackClickSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        tracking = track_referral_click(
            data["ref"],
            item_id=data.get("item_id") or None,
            item_type=data.get("item_type"),
            referred_user=request.user if request.user.is_authenticated else None,
            referral_type=data["referral_type"],
        )
        if tracking is None:
            return Response({"tracking_id": None}, status=status.HTTP_200_OK)
        return Response({"tracking_id": tracking.pk}, status=status.HTTP_201_CREATED)
