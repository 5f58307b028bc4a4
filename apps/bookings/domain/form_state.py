"""
Booking Form State

Owns one wizard session: the BookingSelection draft plus the current step
pointer. Mutations go through the setters; navigation delegates to
StepSequencer with the live validators and totals to PricingCalculator.
One instance belongs to exactly one wizard session and is discarded on
submit or close.
"""

from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Callable, Optional, Tuple

from apps.bookings.domain.exceptions import BookingValidationError
from apps.bookings.domain.pricing import PriceBreakdown, PricingCalculator
from apps.bookings.domain.selection import (
    ActivitySelection,
    AuthenticatedRef,
    BookableItem,
    BookingSelection,
    FacilitySelection,
    GuestIdentity,
    PaymentDetails,
    PaymentMethod,
)
from apps.bookings.domain.steps import (
    BookingCapabilities,
    Step,
    StepDescriptor,
    StepSequencer,
    ValidationResult,
    validate_review,
    validate_step,
)


@dataclass(frozen=True)
class BookingSubmission:
    """Immutable payload a BookingRecord is created from"""
    item_id: str
    item_type: str
    item_name: str
    host_id: Any
    total: Decimal
    currency: str
    slots_booked: int
    visit_date: Optional[date]
    adults: int
    children: int
    facilities: Tuple[dict, ...] = ()
    activities: Tuple[dict, ...] = ()
    user_id: Any = None
    contact: GuestIdentity = field(default_factory=GuestIdentity)
    payment: PaymentDetails = field(default_factory=PaymentDetails)

    @property
    def is_paid(self) -> bool:
        return self.total > 0

    @property
    def is_guest_booking(self) -> bool:
        return self.user_id is None

    def details(self) -> dict:
        """JSON-safe snapshot of the selection stored with the booking"""
        return {
            'item_name': self.item_name,
            'adults': self.adults,
            'children': self.children,
            'facilities': list(self.facilities),
            'activities': list(self.activities),
            'payment': self.payment.public_fields(),
        }


class BookingFormState:
    def __init__(
        self,
        item: BookableItem,
        identity=None,
        *,
        today: Callable[[], date] = date.today,
    ):
        self.item = item
        self._today = today
        self.selection = BookingSelection(
            identity=identity if identity is not None else GuestIdentity(),
            visit_date=item.fixed_date,
        )
        self._busy = False
        self.last_result = ValidationResult.valid()
        self.current_step = self.sequencer.first

    @classmethod
    def open(
        cls,
        item: BookableItem,
        user=None,
        *,
        today: Callable[[], date] = date.today,
    ) -> 'BookingFormState':
        """
        Start a wizard session

        Signed-in users get an AuthenticatedRef pre-filled from their account
        (and ``profile`` when the user model carries one); guests start empty.
        """
        identity = None
        if user is not None and getattr(user, 'is_authenticated', False):
            profile = getattr(user, 'profile', None)
            identity = AuthenticatedRef(
                user_id=user.pk,
                name=getattr(profile, 'name', '') or user.get_full_name() or user.get_username(),
                email=user.email or '',
                phone=getattr(profile, 'phone', '') or '',
            )
        return cls(item, identity, today=today)

    # ------------------------------------------------------------------
    # Derived state
    # ------------------------------------------------------------------
    @property
    def is_guest(self) -> bool:
        return self.selection.is_guest

    @property
    def is_busy(self) -> bool:
        return self._busy

    def price_breakdown(self) -> PriceBreakdown:
        return PricingCalculator.breakdown(
            adults=self.selection.party_adults,
            children=self.selection.party_children,
            price_adult=self.item.price_adult,
            price_child=self.item.price_child,
            entrance_type=self.item.entrance_type,
            facilities=self.selection.selected_facilities,
            activities=self.selection.selected_activities,
        )

    def compute_total(self) -> Decimal:
        return self.price_breakdown().total

    def capabilities(self) -> BookingCapabilities:
        return BookingCapabilities(
            has_facilities_or_activities=self.item.has_add_ons,
            is_guest_user=self.is_guest,
            is_paid_booking=self.compute_total() > 0,
            skip_date_selection=self.item.skips_date_selection,
        )

    @property
    def sequencer(self) -> StepSequencer:
        return StepSequencer(self.capabilities())

    @property
    def steps(self) -> list[StepDescriptor]:
        return self.sequencer.steps

    def _sync_step(self, sequencer: StepSequencer) -> Step:
        self.current_step = sequencer.nearest(self.current_step)
        return self.current_step

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------
    def set_visit_date(self, visit_date: Optional[date]) -> None:
        self.selection.visit_date = visit_date

    def set_party_size(self, adults: int, children: int = 0) -> None:
        self.selection.party_adults = max(int(adults), 0)
        self.selection.party_children = max(int(children), 0)

    def toggle_facility(self, name: str) -> bool:
        """Add or remove a facility; returns True when it is now selected"""
        existing = self.selection.find_facility(name)
        if existing is not None:
            self.selection.selected_facilities.remove(existing)
            return False
        offered = self.item.facility(name)
        self.selection.selected_facilities.append(
            FacilitySelection(name=offered.name, unit_price=offered.price, capacity=offered.capacity)
        )
        return True

    def toggle_activity(self, name: str) -> bool:
        """Add or remove an activity; returns True when it is now selected"""
        existing = self.selection.find_activity(name)
        if existing is not None:
            self.selection.selected_activities.remove(existing)
            return False
        offered = self.item.activity(name)
        self.selection.selected_activities.append(
            ActivitySelection(name=offered.name, unit_price=offered.price, people_count=1)
        )
        return True

    def update_facility_dates(self, name: str, start_date: Optional[date], end_date: Optional[date]) -> None:
        facility = self.selection.find_facility(name)
        if facility is None:
            raise ValueError(f"Facility '{name}' is not selected")
        facility.start_date = start_date
        facility.end_date = end_date

    def update_activity_people(self, name: str, people_count: int) -> None:
        activity = self.selection.find_activity(name)
        if activity is None:
            raise ValueError(f"Activity '{name}' is not selected")
        activity.people_count = max(int(people_count), 1)

    def set_guest_identity(self, name: str, email: str, phone: str) -> None:
        if not self.is_guest:
            raise ValueError("Signed-in users book under their account")
        self.selection.identity = GuestIdentity(name=name.strip(), email=email.strip(), phone=phone.strip())

    def set_payment_method(
        self,
        method,
        *,
        phone: str = '',
        card_number: str = '',
        card_expiry: str = '',
        card_cvv: str = '',
    ) -> None:
        self.selection.payment = PaymentDetails(
            method=PaymentMethod(method) if method else None,
            phone=phone,
            card_number=card_number,
            card_expiry=card_expiry,
            card_cvv=card_cvv,
        )

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------
    def validate_step(self, step: Optional[Step] = None) -> ValidationResult:
        sequencer = self.sequencer
        return validate_step(
            step or self._sync_step(sequencer),
            self.selection,
            capabilities=sequencer.capabilities,
            total=self.compute_total(),
            today=self._today(),
        )

    def advance(self) -> bool:
        """Move to the next step; False (and no move) when the step is invalid"""
        if self._busy:
            return False
        sequencer = self.sequencer
        transition = sequencer.advance(self._sync_step(sequencer), self.validate_step)
        self.last_result = transition.result
        self.current_step = transition.step
        return transition.moved

    def retreat(self) -> bool:
        if self._busy:
            return False
        sequencer = self.sequencer
        transition = sequencer.retreat(self._sync_step(sequencer))
        self.last_result = ValidationResult.valid()
        self.current_step = transition.step
        return transition.moved

    def go_to(self, step: Step) -> None:
        self.current_step = self.sequencer.nearest(step)

    @contextmanager
    def busy(self):
        """Mark a mutating call outstanding; navigation and submit are refused meanwhile"""
        if self._busy:
            raise RuntimeError("A booking request is already in progress")
        self._busy = True
        try:
            yield self
        finally:
            self._busy = False

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------
    def validate_for_submission(self) -> ValidationResult:
        sequencer = self.sequencer
        return validate_review(self.selection, sequencer.capabilities, self.compute_total(), self._today())

    def can_submit(self) -> bool:
        if self._busy:
            return False
        sequencer = self.sequencer
        if self._sync_step(sequencer) != sequencer.last:
            return False
        return self.validate_for_submission().ok

    def to_submission(self) -> BookingSubmission:
        result = self.validate_for_submission()
        if not result.ok:
            raise BookingValidationError(result.errors)

        breakdown = self.price_breakdown()
        selection = self.selection
        identity = selection.identity
        is_paid = breakdown.total > 0

        return BookingSubmission(
            item_id=str(self.item.item_id),
            item_type=self.item.item_type,
            item_name=self.item.name,
            host_id=self.item.host_id,
            total=breakdown.total,
            currency=self.item.currency,
            slots_booked=selection.party_size,
            visit_date=selection.visit_date or self.item.fixed_date,
            adults=selection.party_adults,
            children=selection.party_children,
            facilities=tuple(
                {
                    'name': line.name,
                    'price': str(line.unit_price),
                    'start_date': facility.start_date.isoformat(),
                    'end_date': facility.end_date.isoformat(),
                    'days': line.quantity,
                    'amount': str(line.amount),
                }
                for facility, line in zip(selection.selected_facilities, breakdown.facilities)
            ),
            activities=tuple(
                {
                    'name': line.name,
                    'price': str(line.unit_price),
                    'people': line.quantity,
                    'amount': str(line.amount),
                }
                for line in breakdown.activities
            ),
            user_id=None if isinstance(identity, GuestIdentity) else identity.user_id,
            contact=identity if isinstance(identity, GuestIdentity) else GuestIdentity(
                name=identity.name, email=identity.email, phone=identity.phone,
            ),
            payment=selection.payment if is_paid else PaymentDetails(),
        )
