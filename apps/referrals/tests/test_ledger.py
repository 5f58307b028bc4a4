from decimal import Decimal
from unittest import mock

import pytest
from django.contrib.auth import get_user_model

from apps.bookings.application.command_handlers import ConfirmBookingPaymentCommand, ConfirmBookingPaymentHandler
from apps.bookings.models import Booking
from apps.referrals.exceptions import InsufficientBalance, InvalidWithdrawalAmount
from apps.referrals.ledger import ledger
from apps.referrals.models import CommissionEntry, ReferralSettings, ReferralTracking, Withdrawal
from apps.referrals.rates import CommissionRates, get_rates

User = get_user_model()


@pytest.fixture
def referrer(db):
    return User.objects.create_user(username="wanjiru", email="wanjiru@example.com", password="pass")


@pytest.fixture
def referred(db):
    return User.objects.create_user(username="otieno", email="otieno@example.com", password="pass")


def make_booking(amount="10000.00", item_type="trip", **extra):
    return Booking.objects.create(
        item_id="1",
        item_type=item_type,
        item_name="Safari",
        total_amount=Decimal(amount),
        **extra,
    )


def make_tracking(referrer, referred=None, item_type="trip"):
    return ReferralTracking.objects.create(referrer=referrer, referred_user=referred, item_id="1", item_type=item_type)


def credit(referrer, amount, item_type="trip"):
    tracking = make_tracking(referrer, item_type=item_type)
    booking = make_booking(amount, item_type)
    return ledger.record_conversion(tracking.pk, booking.pk, booking.total_amount)


def test_commission_is_a_share_of_the_service_fee():
    service_fee, commission = CommissionRates(Decimal("20"), Decimal("5")).split(Decimal("10000"))
    assert service_fee.amount == Decimal("2000")
    assert commission.amount == Decimal("100")


@pytest.mark.django_db
def test_rates_fall_back_per_field():
    ReferralSettings.objects.create(trip_service_fee=Decimal("10"), adventure_place_commission_rate=Decimal("8"))

    assert get_rates("trip") == CommissionRates(Decimal("10"), Decimal("5"))
    assert get_rates("adventure") == CommissionRates(Decimal("20"), Decimal("8"))
    assert get_rates("hotel") == CommissionRates.defaults()
    assert get_rates(None) == CommissionRates.defaults()


@pytest.mark.django_db
def test_record_conversion_credits_once(referrer, referred):
    tracking = make_tracking(referrer, referred)
    booking = make_booking()

    entry = ledger.record_conversion(tracking.pk, booking.pk, Decimal("10000.00"))

    assert entry.base_amount == Decimal("2000")
    assert entry.commission_amount == Decimal("100")
    assert entry.service_fee_rate == Decimal("20")
    assert entry.rate == Decimal("5")
    assert entry.status == CommissionEntry.Status.PAID
    assert entry.referred_user == referred
    tracking.refresh_from_db()
    assert tracking.is_converted
    assert tracking.converted_at is not None

    assert ledger.record_conversion(tracking.pk, booking.pk, Decimal("10000.00")) is None
    assert CommissionEntry.objects.count() == 1


@pytest.mark.django_db
def test_record_conversion_uses_item_rates(referrer):
    ReferralSettings.objects.create(event_service_fee=Decimal("15"), event_commission_rate=Decimal("10"))

    entry = credit(referrer, "4000.00", "event")

    assert entry.base_amount == Decimal("600")
    assert entry.commission_amount == Decimal("60")


@pytest.mark.django_db
def test_unknown_tracking_is_ignored():
    booking = make_booking()
    assert ledger.record_conversion(999, booking.pk, Decimal("100")) is None
    assert not CommissionEntry.objects.exists()


@pytest.mark.django_db
def test_withdraw_consumes_oldest_entries_first(referrer):
    first = credit(referrer, "10000.00")   # 100
    second = credit(referrer, "5000.00")   # 50
    third = credit(referrer, "3000.00")    # 30

    withdrawal = ledger.withdraw(referrer.pk, Decimal("120"))

    assert withdrawal.amount_requested == Decimal("120")
    assert withdrawal.amount_consumed == Decimal("150")
    assert set(withdrawal.entries.values_list("pk", flat=True)) == {first.pk, second.pk}
    third.refresh_from_db()
    assert third.is_withdrawable
    assert ledger.withdrawable_balance(referrer.pk) == Decimal("30")
    assert ledger.lifetime_earnings(referrer.pk) == Decimal("180")


@pytest.mark.django_db
def test_withdraw_more_than_available(referrer):
    credit(referrer, "3000.00")

    with pytest.raises(InsufficientBalance) as excinfo:
        ledger.withdraw(referrer.pk, Decimal("40"))

    assert excinfo.value.available == Decimal("30")
    assert not Withdrawal.objects.exists()
    assert not CommissionEntry.objects.filter(withdrawn_at__isnull=False).exists()
    assert not CommissionEntry.objects.filter(withdrawal__isnull=False).exists()
    assert ledger.withdrawable_balance(referrer.pk) == Decimal("30")
    with pytest.raises(InvalidWithdrawalAmount):
        ledger.withdraw(referrer.pk, Decimal("0"))


@pytest.mark.django_db
def test_stats(referrer, referred):
    tracking = make_tracking(referrer, referred)
    ledger.record_conversion(tracking.pk, make_booking().pk, Decimal("10000.00"))
    credit(referrer, "5000.00")
    ledger.withdraw(referrer.pk, Decimal("100"))

    stats = ledger.stats(referrer.pk)

    assert stats.total_referred == 1
    assert stats.total_bookings == 2
    assert stats.booking_earnings == Decimal("150")
    assert stats.host_earnings == Decimal("0")
    assert stats.lifetime_earnings == Decimal("150")
    assert stats.withdrawable_balance == Decimal("50")
    assert stats.total_booking_amount == Decimal("15000")
    assert stats.to_dict()["withdrawable_balance"] == str(stats.withdrawable_balance)


@pytest.mark.django_db
def test_paid_referred_booking_credits_referrer(referrer, referred, django_capture_on_commit_callbacks):
    tracking = make_tracking(referrer, referred, item_type="")
    booking = make_booking("8000.00", "hotel", referral_tracking=tracking, user=referred)

    with django_capture_on_commit_callbacks(execute=True):
        ConfirmBookingPaymentHandler().handle(ConfirmBookingPaymentCommand(booking.pk))

    entry = CommissionEntry.objects.get()
    assert entry.booking == booking
    assert entry.referrer == referrer
    assert entry.commission_amount == Decimal("80")


@pytest.mark.django_db
def test_fractional_rates_are_stored_as_computed(referrer):
    ReferralSettings.objects.create(trip_service_fee=Decimal("12.5"), trip_commission_rate=Decimal("7.5"))

    entry = credit(referrer, "333.33")
    stored = CommissionEntry.objects.get(pk=entry.pk)

    assert entry.base_amount == stored.base_amount == Decimal("41.6663")
    assert entry.commission_amount == stored.commission_amount == Decimal("3.1250")
    assert (stored.base_amount * stored.rate / 100).quantize(Decimal("0.0001")) == stored.commission_amount
    assert ledger.withdrawable_balance(referrer.pk) == Decimal("3.1250")

    with pytest.raises(InsufficientBalance):
        ledger.withdraw(referrer.pk, Decimal("3.1251"))

    withdrawal = ledger.withdraw(referrer.pk, Decimal("3.1250"))
    assert withdrawal.amount_consumed == Decimal("3.1250")
    assert ledger.withdrawable_balance(referrer.pk) == Decimal("0")


@pytest.mark.django_db
def test_failed_conversion_leaves_no_entry(referrer, referred):
    tracking = make_tracking(referrer, referred)
    booking = make_booking()

    with mock.patch.object(ReferralTracking, "save", side_effect=RuntimeError("database unavailable")):
        with pytest.raises(RuntimeError):
            ledger.record_conversion(tracking.pk, booking.pk, Decimal("10000.00"))

    assert not CommissionEntry.objects.exists()
    tracking.refresh_from_db()
    assert tracking.status == ReferralTracking.Status.PENDING
    assert tracking.converted_at is None

    # the row can still be credited once the failure clears
    assert ledger.record_conversion(tracking.pk, booking.pk, Decimal("10000.00")) is not None
