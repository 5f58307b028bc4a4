"""
Booking Wizard Steps

The wizard is a variable-length sequence drawn from a fixed superset:

    VISIT_DATE -> PARTY_SIZE -> ADD_ONS -> GUEST_IDENTITY -> PAYMENT -> REVIEW

StepSequencer filters the superset with a capability descriptor and walks
only the filtered list, so "previous" from the step after ADD_ONS lands on
PARTY_SIZE when both VISIT_DATE and ADD_ONS are absent. Advancing is gated
by the per-step validators below. Submission is not a step: it is invoked
from REVIEW outside the sequencer.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Callable, List, Optional, Tuple

from apps.bookings.domain.selection import BookingSelection, GuestIdentity, PaymentDetails, PaymentMethod


class Step(str, Enum):
    VISIT_DATE = 'visit_date'
    PARTY_SIZE = 'party_size'
    ADD_ONS = 'add_ons'
    GUEST_IDENTITY = 'guest_identity'
    PAYMENT = 'payment'
    REVIEW = 'review'


STEP_ORDER: Tuple[Step, ...] = tuple(Step)

STEP_TITLES = {
    Step.VISIT_DATE: 'Select Date',
    Step.PARTY_SIZE: 'Travelers',
    Step.ADD_ONS: 'Extras',
    Step.GUEST_IDENTITY: 'Your Details',
    Step.PAYMENT: 'Payment',
    Step.REVIEW: 'Review',
}


@dataclass(frozen=True)
class BookingCapabilities:
    has_facilities_or_activities: bool
    is_guest_user: bool
    is_paid_booking: bool
    skip_date_selection: bool

    def includes(self, step: Step) -> bool:
        if step == Step.VISIT_DATE:
            return not self.skip_date_selection
        if step == Step.ADD_ONS:
            return self.has_facilities_or_activities
        if step == Step.GUEST_IDENTITY:
            return self.is_guest_user
        if step == Step.PAYMENT:
            return self.is_paid_booking
        return True


@dataclass(frozen=True)
class StepDescriptor:
    """A present step with its 1-based position, for renderers to dispatch on"""
    step: Step
    number: int
    title: str


@dataclass(frozen=True)
class ValidationResult:
    errors: Tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.errors

    def __bool__(self) -> bool:
        return self.ok

    @classmethod
    def valid(cls) -> 'ValidationResult':
        return cls()

    @classmethod
    def invalid(cls, *errors: str) -> 'ValidationResult':
        return cls(tuple(errors))

    def merge(self, other: 'ValidationResult') -> 'ValidationResult':
        return ValidationResult(self.errors + other.errors)


@dataclass(frozen=True)
class Transition:
    step: Step
    moved: bool
    result: ValidationResult = ValidationResult()


class StepSequencer:
    """Ordered, filtered wizard steps for one capability descriptor"""

    def __init__(self, capabilities: BookingCapabilities):
        self.capabilities = capabilities
        self._steps: Tuple[Step, ...] = tuple(s for s in STEP_ORDER if capabilities.includes(s))

    @property
    def steps(self) -> List[StepDescriptor]:
        return [
            StepDescriptor(step=step, number=index, title=STEP_TITLES[step])
            for index, step in enumerate(self._steps, start=1)
        ]

    @property
    def step_ids(self) -> Tuple[Step, ...]:
        return self._steps

    @property
    def first(self) -> Step:
        return self._steps[0]

    @property
    def last(self) -> Step:
        return self._steps[-1]

    def __contains__(self, step: Step) -> bool:
        return step in self._steps

    def __len__(self) -> int:
        return len(self._steps)

    def index_of(self, step: Step) -> int:
        try:
            return self._steps.index(step)
        except ValueError:
            raise ValueError(f"Step {step.value} is not part of this booking flow") from None

    def progress(self, step: Step) -> Tuple[int, int]:
        return self.index_of(step) + 1, len(self._steps)

    def next(self, current: Step) -> Optional[Step]:
        index = self.index_of(current)
        if index + 1 < len(self._steps):
            return self._steps[index + 1]
        return None

    def previous(self, current: Step) -> Optional[Step]:
        index = self.index_of(current)
        if index > 0:
            return self._steps[index - 1]
        return None

    def nearest(self, step: Step) -> Step:
        """
        Map a step onto this flow

        Used when the capabilities change under a live wizard (the total
        dropped to zero and PAYMENT disappeared): a missing step snaps to the
        closest present step before it in the superset order.
        """
        if step in self._steps:
            return step
        position = STEP_ORDER.index(step)
        for candidate in reversed(STEP_ORDER[:position]):
            if candidate in self._steps:
                return candidate
        return self.first

    def advance(self, current: Step, validate: Callable[[Step], ValidationResult]) -> Transition:
        result = validate(current)
        if not result.ok:
            return Transition(step=current, moved=False, result=result)
        following = self.next(current)
        if following is None:
            return Transition(step=current, moved=False, result=result)
        return Transition(step=following, moved=True, result=result)

    def retreat(self, current: Step) -> Transition:
        preceding = self.previous(current)
        if preceding is None:
            return Transition(step=current, moved=False)
        return Transition(step=preceding, moved=True)


# ----------------------------------------------------------------------
# Per-step validators
# ----------------------------------------------------------------------

def validate_visit_date(selection: BookingSelection, today: date) -> ValidationResult:
    if selection.visit_date is None:
        return ValidationResult.invalid('Please select a visit date.')
    if selection.visit_date < today:
        return ValidationResult.invalid('The visit date cannot be in the past.')
    return ValidationResult.valid()


def validate_party_size(selection: BookingSelection) -> ValidationResult:
    if selection.party_adults < 0 or selection.party_children < 0:
        return ValidationResult.invalid('Party size cannot be negative.')
    if selection.party_size < 1:
        return ValidationResult.invalid('At least one traveler is required.')
    return ValidationResult.valid()


def validate_add_ons(selection: BookingSelection) -> ValidationResult:
    errors = [
        f"Select valid start and end dates for {facility.name}."
        for facility in selection.selected_facilities
        if not facility.has_valid_dates
    ]
    return ValidationResult(tuple(errors))


def validate_guest_identity(selection: BookingSelection) -> ValidationResult:
    identity = selection.identity
    if not isinstance(identity, GuestIdentity):
        return ValidationResult.valid()
    missing = identity.missing_fields()
    if missing:
        return ValidationResult.invalid(f"Please enter your {', '.join(missing)}.")
    return ValidationResult.valid()


def validate_payment(selection: BookingSelection) -> ValidationResult:
    return validate_payment_details(selection.payment)


def validate_payment_details(payment: PaymentDetails) -> ValidationResult:
    if payment.method is None:
        return ValidationResult.invalid('Please choose a payment method.')
    if payment.method == PaymentMethod.MOBILE_MONEY and not payment.phone.strip():
        return ValidationResult.invalid('A phone number is required for mobile money payments.')
    if payment.method == PaymentMethod.CARD:
        missing = [
            label for label, value in (
                ('card number', payment.card_number),
                ('expiry date', payment.card_expiry),
                ('CVV', payment.card_cvv),
            )
            if not value.strip()
        ]
        if missing:
            return ValidationResult.invalid(f"Please enter the {', '.join(missing)}.")
    return ValidationResult.valid()


def validate_review(
    selection: BookingSelection,
    capabilities: BookingCapabilities,
    total: Decimal,
    today: date,
) -> ValidationResult:
    """Final gate: every present step must still hold and the total be non-negative"""
    result = ValidationResult.valid()
    if total < 0:
        result = result.merge(ValidationResult.invalid('The booking total cannot be negative.'))
    if capabilities.includes(Step.VISIT_DATE):
        result = result.merge(validate_visit_date(selection, today))
    result = result.merge(validate_party_size(selection))
    result = result.merge(validate_add_ons(selection))
    if capabilities.includes(Step.GUEST_IDENTITY):
        result = result.merge(validate_guest_identity(selection))
    if capabilities.includes(Step.PAYMENT):
        result = result.merge(validate_payment(selection))
    return result


def validate_step(
    step: Step,
    selection: BookingSelection,
    *,
    capabilities: BookingCapabilities,
    total: Decimal,
    today: date,
) -> ValidationResult:
    if step == Step.VISIT_DATE:
        return validate_visit_date(selection, today)
    if step == Step.PARTY_SIZE:
        return validate_party_size(selection)
    if step == Step.ADD_ONS:
        return validate_add_ons(selection)
    if step == Step.GUEST_IDENTITY:
        return validate_guest_identity(selection)
    if step == Step.PAYMENT:
        return validate_payment(selection)
    return validate_review(selection, capabilities, total, today)
