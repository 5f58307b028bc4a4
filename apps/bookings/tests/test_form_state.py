"""Wizard session behaviour: seeding, mutations, navigation and submission."""

from datetime import date, timedelta
from decimal import Decimal
from types import SimpleNamespace

import pytest

from apps.bookings.domain.exceptions import BookingValidationError
from apps.bookings.domain.form_state import BookingFormState
from apps.bookings.domain.selection import (
    AuthenticatedRef,
    BookableItem,
    EntranceType,
    OfferedActivity,
    OfferedFacility,
)
from apps.bookings.domain.steps import Step

TODAY = date(2026, 10, 19)


def make_item(**overrides):
    values = dict(
        item_id="42",
        item_type="adventure_place",
        name="Lake Camp",
        host_id=3,
        price_adult=Decimal("1000"),
        price_child=Decimal("500"),
        facilities=(OfferedFacility("Campsite", Decimal("1500"), capacity=4),),
        activities=(OfferedActivity("Kayaking", Decimal("800")),),
    )
    values.update(overrides)
    return BookableItem(**values)


def make_form(item=None, identity=None):
    return BookingFormState(item or make_item(), identity, today=lambda: TODAY)


def fill_guest_booking(form):
    form.set_visit_date(TODAY + timedelta(days=3))
    form.set_party_size(2, 1)
    form.set_guest_identity("Amina", "amina@example.com", "+254700000001")
    form.set_payment_method("mobile_money", phone="+254700000001")


def test_guest_wizard_starts_at_visit_date():
    form = make_form()
    assert form.is_guest
    assert form.current_step == Step.VISIT_DATE
    assert form.selection.party_adults == 1
    assert [d.step for d in form.steps] == list(Step)


def test_fixed_date_is_prefilled_and_step_skipped():
    fixed = TODAY + timedelta(days=10)
    form = make_form(make_item(fixed_date=fixed))
    assert form.selection.visit_date == fixed
    assert form.current_step == Step.PARTY_SIZE


def test_open_prefills_signed_in_user_from_profile():
    user = SimpleNamespace(
        pk=9,
        is_authenticated=True,
        email="host@example.com",
        profile=SimpleNamespace(name="Wanjiru", phone="+254711000000"),
        get_full_name=lambda: "",
        get_username=lambda: "wanjiru",
    )
    form = BookingFormState.open(make_item(), user, today=lambda: TODAY)

    assert form.selection.identity == AuthenticatedRef(
        user_id=9, name="Wanjiru", email="host@example.com", phone="+254711000000",
    )
    assert Step.GUEST_IDENTITY not in form.sequencer


def test_toggle_facility_starts_without_dates():
    form = make_form()
    assert form.toggle_facility("Campsite") is True
    facility = form.selection.find_facility("Campsite")
    assert facility.start_date is None and facility.end_date is None
    assert form.toggle_facility("Campsite") is False
    assert form.selection.selected_facilities == []


def test_unknown_add_on_is_rejected():
    form = make_form()
    with pytest.raises(ValueError):
        form.toggle_activity("Paragliding")


def test_activity_people_default_and_clamp():
    form = make_form()
    form.toggle_activity("Kayaking")
    assert form.selection.find_activity("Kayaking").people_count == 1
    form.update_activity_people("Kayaking", 0)
    assert form.selection.find_activity("Kayaking").people_count == 1


def test_advance_is_blocked_until_facility_dates_are_valid():
    form = make_form()
    form.set_visit_date(TODAY + timedelta(days=1))
    assert form.advance()
    assert form.advance()
    assert form.current_step == Step.ADD_ONS

    form.toggle_facility("Campsite")
    assert not form.advance()
    assert form.current_step == Step.ADD_ONS
    assert not form.advance()
    assert form.current_step == Step.ADD_ONS
    assert form.last_result.errors

    form.update_facility_dates("Campsite", TODAY + timedelta(days=1), TODAY + timedelta(days=2))
    assert form.advance()
    assert form.current_step == Step.GUEST_IDENTITY


def test_retreat_skips_absent_steps():
    form = make_form(make_item(facilities=(), activities=(), fixed_date=TODAY + timedelta(days=5)))
    form.set_guest_identity("Amina", "amina@example.com", "+254700000001")
    assert form.advance()
    assert form.current_step == Step.GUEST_IDENTITY
    assert form.retreat()
    assert form.current_step == Step.PARTY_SIZE
    assert not form.retreat()


def test_payment_step_disappears_when_total_drops_to_zero():
    item = make_item(entrance_type=EntranceType.FREE, facilities=(), activities=())
    form = make_form(item)
    assert Step.PAYMENT not in form.sequencer

    form = make_form()
    form.go_to(Step.PAYMENT)
    assert form.current_step == Step.PAYMENT
    form.set_party_size(0, 0)
    form.validate_step()
    assert form.current_step == Step.GUEST_IDENTITY


def test_busy_blocks_navigation_and_submit():
    form = make_form()
    fill_guest_booking(form)
    form.go_to(Step.REVIEW)
    assert form.can_submit()

    with form.busy():
        assert not form.advance()
        assert not form.retreat()
        assert not form.can_submit()
        with pytest.raises(RuntimeError):
            with form.busy():
                pass

    assert form.can_submit()


def test_submission_snapshot():
    form = make_form()
    fill_guest_booking(form)
    form.toggle_facility("Campsite")
    form.update_facility_dates("Campsite", TODAY + timedelta(days=3), TODAY + timedelta(days=5))
    form.toggle_activity("Kayaking")
    form.update_activity_people("Kayaking", 3)
    form.set_payment_method("card", card_number="4111111111111111", card_expiry="12/28", card_cvv="123")

    submission = form.to_submission()

    assert submission.total == Decimal("2500") + Decimal("3000") + Decimal("2400")
    assert submission.slots_booked == 3
    assert submission.is_guest_booking
    assert submission.contact.email == "amina@example.com"
    assert submission.facilities[0]["days"] == 2
    assert submission.activities[0]["people"] == 3
    details = submission.details()
    assert details["payment"] == {"method": "card", "card_last4": "1111"}
    assert "123" not in str(details)


def test_submission_refused_while_incomplete():
    form = make_form()
    form.set_visit_date(TODAY + timedelta(days=1))
    with pytest.raises(BookingValidationError) as excinfo:
        form.to_submission()
    assert excinfo.value.errors


def test_free_booking_drops_payment_details():
    item = make_item(entrance_type=EntranceType.FREE, facilities=(), activities=())
    form = make_form(item, AuthenticatedRef(user_id=5, name="Otieno", email="o@example.com", phone="+254700000009"))
    form.set_visit_date(TODAY)
    form.set_payment_method("card", card_number="4111111111111111")

    submission = form.to_submission()

    assert submission.total == 0
    assert not submission.is_paid
    assert submission.payment.method is None
    assert submission.user_id == 5
