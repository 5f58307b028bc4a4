"""
Booking Selection Types

What the wizard is booking (BookableItem and its offerings) and the mutable
draft the guest builds while walking through the steps (BookingSelection).
The draft is never persisted directly; only the submission derived from it is.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, List, Optional, Tuple, Union

from shared.domain.value_objects import DateRange


def to_decimal(value) -> Decimal:
    """Convert prices coming from JSON/forms into Decimal without float noise"""
    if isinstance(value, Decimal):
        return value
    if value is None or value == '':
        return Decimal('0')
    return Decimal(str(value))


class ItemType(str, Enum):
    """Bookable item categories; each has its own referral rates"""
    TRIP = 'trip'
    EVENT = 'event'
    HOTEL = 'hotel'
    ATTRACTION = 'attraction'
    ADVENTURE_PLACE = 'adventure_place'

    @classmethod
    def normalize(cls, value: str) -> str:
        """``adventure`` is accepted as an alias of ``adventure_place``"""
        if value == 'adventure':
            return cls.ADVENTURE_PLACE.value
        return value


class EntranceType(str, Enum):
    FREE = 'free'
    PAID = 'paid'


class PaymentMethod(str, Enum):
    MOBILE_MONEY = 'mobile_money'
    CARD = 'card'
    CASH = 'cash'


@dataclass(frozen=True)
class OfferedFacility:
    """A facility the item rents out per day (campsite, hall, boat...)"""
    name: str
    price: Decimal
    capacity: Optional[int] = None


@dataclass(frozen=True)
class OfferedActivity:
    """A per-person add-on activity"""
    name: str
    price: Decimal


@dataclass(frozen=True)
class BookableItem:
    """
    Capability descriptor of the item being booked

    Built from a listing; decides which wizard steps exist and what the
    entrance fee and add-ons cost.
    """
    item_id: str
    item_type: str
    name: str = ''
    host_id: Any = None
    price_adult: Decimal = Decimal('0')
    price_child: Decimal = Decimal('0')
    entrance_type: EntranceType = EntranceType.PAID
    facilities: Tuple[OfferedFacility, ...] = ()
    activities: Tuple[OfferedActivity, ...] = ()
    fixed_date: Optional[date] = None
    skip_date_selection: bool = False
    skip_add_ons: bool = False
    currency: str = 'KES'

    @property
    def has_add_ons(self) -> bool:
        return not self.skip_add_ons and bool(self.facilities or self.activities)

    @property
    def skips_date_selection(self) -> bool:
        return self.skip_date_selection or self.fixed_date is not None

    def facility(self, name: str) -> OfferedFacility:
        for offered in self.facilities:
            if offered.name == name:
                return offered
        raise ValueError(f"Facility '{name}' is not offered by {self.item_type} {self.item_id}")

    def activity(self, name: str) -> OfferedActivity:
        for offered in self.activities:
            if offered.name == name:
                return offered
        raise ValueError(f"Activity '{name}' is not offered by {self.item_type} {self.item_id}")


@dataclass
class FacilitySelection:
    """A selected facility; dates start empty and must be entered explicitly"""
    name: str
    unit_price: Decimal
    capacity: Optional[int] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @property
    def has_valid_dates(self) -> bool:
        return DateRange.is_valid(self.start_date, self.end_date)

    @property
    def period(self) -> Optional[DateRange]:
        if not self.has_valid_dates:
            return None
        return DateRange(self.start_date, self.end_date)


@dataclass
class ActivitySelection:
    name: str
    unit_price: Decimal
    people_count: int = 1


@dataclass(frozen=True)
class GuestIdentity:
    """Contact details typed in by a guest who is not signed in"""
    name: str = ''
    email: str = ''
    phone: str = ''

    def missing_fields(self) -> List[str]:
        return [
            label for label, value in (('name', self.name), ('email', self.email), ('phone', self.phone))
            if not (value or '').strip()
        ]


@dataclass(frozen=True)
class AuthenticatedRef:
    """Reference to a signed-in user, with contacts pre-filled from the profile"""
    user_id: Any
    name: str = ''
    email: str = ''
    phone: str = ''


Identity = Union[GuestIdentity, AuthenticatedRef]


@dataclass(frozen=True)
class PaymentDetails:
    method: Optional[PaymentMethod] = None
    phone: str = ''
    card_number: str = ''
    card_expiry: str = ''
    card_cvv: str = ''

    def public_fields(self) -> dict:
        """Payment data that may be stored with the booking (no card secrets)"""
        data = {'method': self.method.value if self.method else None}
        if self.method == PaymentMethod.MOBILE_MONEY:
            data['phone'] = self.phone
        elif self.method == PaymentMethod.CARD and self.card_number:
            data['card_last4'] = self.card_number.strip()[-4:]
        return data


@dataclass
class BookingSelection:
    """The in-progress wizard draft"""
    identity: Identity
    visit_date: Optional[date] = None
    party_adults: int = 1
    party_children: int = 0
    selected_facilities: List[FacilitySelection] = field(default_factory=list)
    selected_activities: List[ActivitySelection] = field(default_factory=list)
    payment: PaymentDetails = field(default_factory=PaymentDetails)

    @property
    def party_size(self) -> int:
        return self.party_adults + self.party_children

    @property
    def is_guest(self) -> bool:
        return isinstance(self.identity, GuestIdentity)

    def find_facility(self, name: str) -> Optional[FacilitySelection]:
        return next((f for f in self.selected_facilities if f.name == name), None)

    def find_activity(self, name: str) -> Optional[ActivitySelection]:
        return next((a for a in self.selected_activities if a.name == name), None)
