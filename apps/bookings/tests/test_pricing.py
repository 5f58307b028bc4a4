"""Pricing rules for entrance fees, facilities and activities."""

from datetime import date
from decimal import Decimal

from apps.bookings.domain.pricing import PricingCalculator
from apps.bookings.domain.selection import ActivitySelection, EntranceType, FacilitySelection


def test_entrance_fee_sums_adults_and_children():
    fee = PricingCalculator.entrance_fee(2, 3, Decimal("1000"), Decimal("500"), EntranceType.PAID)
    assert fee == Decimal("3500")


def test_free_entrance_costs_nothing():
    assert PricingCalculator.entrance_fee(4, 2, Decimal("1000"), Decimal("500"), "free") == 0


def test_facility_same_day_charges_one_day():
    facility = FacilitySelection("Campsite", Decimal("1500"), start_date=date(2026, 12, 1), end_date=date(2026, 12, 1))
    assert PricingCalculator.facility_cost(facility) == Decimal("1500")


def test_facility_charges_per_day():
    facility = FacilitySelection("Campsite", Decimal("1500"), start_date=date(2026, 12, 1), end_date=date(2026, 12, 4))
    charge = PricingCalculator.facility_charge(facility)
    assert charge.quantity == 3
    assert charge.amount == Decimal("4500")
    assert charge.amount >= facility.unit_price


def test_facility_without_dates_is_flagged_not_charged():
    missing = FacilitySelection("Hall", Decimal("8000"))
    inverted = FacilitySelection("Boat", Decimal("300"), start_date=date(2026, 12, 5), end_date=date(2026, 12, 1))

    breakdown = PricingCalculator.breakdown(
        adults=1,
        children=0,
        price_adult=Decimal("100"),
        price_child=Decimal("0"),
        entrance_type=EntranceType.PAID,
        facilities=[missing, inverted],
    )

    assert breakdown.facilities_total == 0
    assert breakdown.invalid_facilities == ("Hall", "Boat")
    assert not breakdown.is_complete


def test_activity_people_are_clamped_to_one():
    assert PricingCalculator.activity_cost(ActivitySelection("Kayaking", Decimal("800"), people_count=0)) == Decimal("800")


def test_tripling_people_triples_only_that_activity():
    kayak = ActivitySelection("Kayaking", Decimal("800"), people_count=1)
    hike = ActivitySelection("Hike", Decimal("250"), people_count=2)
    kwargs = dict(
        adults=2,
        children=1,
        price_adult=Decimal("1000"),
        price_child=Decimal("400"),
        entrance_type=EntranceType.PAID,
        facilities=[FacilitySelection("Campsite", Decimal("1500"), start_date=date(2026, 12, 1), end_date=date(2026, 12, 3))],
    )

    before = PricingCalculator.breakdown(activities=[kayak, hike], **kwargs)
    kayak.people_count = 3
    after = PricingCalculator.breakdown(activities=[kayak, hike], **kwargs)

    assert before.total == before.entrance_fee + before.facilities_total + before.activities_total
    assert after.total - before.total == Decimal("1600")
    assert after.activities[0].amount == 3 * before.activities[0].amount
    assert after.activities[1].amount == before.activities[1].amount


def test_amounts_are_not_rounded():
    total = PricingCalculator.total(
        adults=1,
        children=0,
        price_adult="99.995",
        price_child=0,
        entrance_type=EntranceType.PAID,
    )
    assert total == Decimal("99.995")
