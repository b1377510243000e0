"""Immutable canonical records for the air booking layer.

All records are frozen dataclasses with slots. They are produced by the
response normalizer, owned by the caller, and never mutated afterwards.
Date and time fields keep the vendor's string representation so that a
record re-encoded into a raw document normalizes back to itself.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional


class CouponStatus(Enum):
    """Coupon status, reduced to the values the workflows act upon."""

    OPEN = "O"
    VOID = "V"
    REFUNDED = "R"
    OTHER = "*"

    @classmethod
    def from_code(cls, code: Optional[str]) -> CouponStatus:
        """Map a vendor status code, anything unknown becomes OTHER."""
        for status in (cls.OPEN, cls.VOID, cls.REFUNDED):
            if code == status.value:
                return status
        return cls.OTHER


@dataclass(frozen=True, slots=True)
class Passenger:
    """A traveler attached to a booking or ticket."""

    first_name: str
    last_name: str
    age_category: Optional[str] = None
    birth_date: Optional[str] = None
    gender: Optional[str] = None
    uapi_passenger_ref: Optional[str] = None


@dataclass(frozen=True, slots=True)
class Baggage:
    """Free baggage allowance for one fare component.

    Attributes:
        units: 'piece' or the weight unit reported by the vendor
        amount: Number of pieces or weight value
    """

    units: str
    amount: float


@dataclass(frozen=True, slots=True)
class Segment:
    """A booked air segment.

    Attributes:
        index: 1-based position in the booking, shared with service segments
        group: Leg group tag used to build directions
    """

    index: int
    origin: str
    destination: str
    departure: Optional[str] = None
    arrival: Optional[str] = None
    airline: Optional[str] = None
    flight_number: Optional[str] = None
    group: Optional[int] = None
    status: Optional[str] = None
    service_class: Optional[str] = None
    booking_class: Optional[str] = None
    plane: Optional[str] = None
    duration: Optional[str] = None
    uapi_segment_ref: Optional[str] = None


@dataclass(frozen=True, slots=True)
class ServiceSegment:
    """A passive service segment (ancillary fee) parsed from its remark."""

    index: int
    carrier: Optional[str]
    airport: Optional[str]
    date: Optional[str]
    rfi_code: str
    rfi_subcode: str
    fee_description: str
    currency: str
    amount: float
    name: Optional[str] = None
    uapi_segment_ref: Optional[str] = None


@dataclass(frozen=True, slots=True)
class TaxDetail:
    airport: Optional[str]
    value: Optional[str]


@dataclass(frozen=True, slots=True)
class TaxInfo:
    type: Optional[str]
    value: Optional[str]
    details: tuple[TaxDetail, ...] = field(default_factory=tuple)


@dataclass(frozen=True, slots=True)
class FareCalculation:
    """A parsed fare-calculation line.

    Attributes:
        fare_calculation: Line content before the END marker
        first_origin: Leading three-letter origin code, if present
        roe: Rate of exchange, if present
    """

    fare_calculation: str
    first_origin: Optional[str] = None
    roe: Optional[str] = None


@dataclass(frozen=True, slots=True)
class Commission:
    """Normalized commission: 'Z' for a percentage, 'ZA' for an amount."""

    type: str
    value: float


@dataclass(frozen=True, slots=True)
class PricingPassenger:
    uapi_passenger_ref: str
    is_ticketed: bool
    ticket_number: Optional[str] = None


@dataclass(frozen=True, slots=True)
class PricingInfo:
    """One pricing record of a fare quote."""

    uapi_pricing_info_ref: str
    uapi_pricing_info_group: Optional[str]
    passengers: tuple[PricingPassenger, ...]
    fare_pricing_method: Optional[str]
    fare_pricing_type: Optional[str]
    total_price: Optional[str]
    base_price: Optional[str]
    equivalent_base_price: Optional[str]
    taxes: Optional[str]
    passengers_count: Dict[str, int]
    taxes_info: tuple[TaxInfo, ...]
    baggage: tuple[Baggage, ...]
    time_to_reprice: Optional[str]
    fare_calculation: FareCalculation


@dataclass(frozen=True, slots=True)
class FareQuote:
    """Pricing records sharing one pricing-info group.

    Attributes:
        index: 1-based display index after sorting by effective date
    """

    index: int
    pricing_infos: tuple[PricingInfo, ...]
    uapi_passenger_refs: tuple[str, ...]
    uapi_segment_refs: tuple[str, ...]
    effective_date: Optional[str] = None
    endorsement: Optional[str] = None
    tour_code: Optional[str] = None
    plating_carrier: Optional[str] = None


@dataclass(frozen=True, slots=True)
class BookingTicket:
    """A ticket reference listed on a booking."""

    number: str
    passengers: tuple[Passenger, ...]
    uapi_passenger_ref: Optional[str] = None
    uapi_pricing_info_ref: Optional[str] = None


@dataclass(frozen=True, slots=True)
class Email:
    index: int
    email: str


@dataclass(frozen=True, slots=True)
class Remark:
    text: str
    category: Optional[str] = None


@dataclass(frozen=True, slots=True)
class SupplierLocator:
    create_date: Optional[str]
    supplier_code: Optional[str]
    locator_code: Optional[str]


@dataclass(frozen=True, slots=True)
class ResponseMessage:
    text: str
    code: Optional[str] = None
    type: Optional[str] = None


@dataclass(frozen=True, slots=True)
class CanonicalBooking:
    """One provider reservation of a universal record."""

    pnr: str
    uapi_ur_locator: str
    uapi_reservation_locator: Optional[str]
    version: int
    created_at: Optional[str] = None
    modified_at: Optional[str] = None
    host_created_at: Optional[str] = None
    booking_pcc: Optional[str] = None
    airline_locator_info: tuple[SupplierLocator, ...] = field(default_factory=tuple)
    passengers: tuple[Passenger, ...] = field(default_factory=tuple)
    segments: tuple[Segment, ...] = field(default_factory=tuple)
    service_segments: tuple[ServiceSegment, ...] = field(default_factory=tuple)
    fare_quotes: tuple[FareQuote, ...] = field(default_factory=tuple)
    tickets: tuple[BookingTicket, ...] = field(default_factory=tuple)
    emails: tuple[Email, ...] = field(default_factory=tuple)
    remarks: tuple[Remark, ...] = field(default_factory=tuple)
    split_bookings: tuple[str, ...] = field(default_factory=tuple)
    messages: tuple[ResponseMessage, ...] = field(default_factory=tuple)

    @property
    def first_total_price(self) -> Optional[str]:
        """Total price of the first pricing record of the first fare quote."""
        if not self.fare_quotes or not self.fare_quotes[0].pricing_infos:
            return None
        return self.fare_quotes[0].pricing_infos[0].total_price


@dataclass(frozen=True, slots=True)
class Coupon:
    """One flight coupon of an issued ticket."""

    ticket_number: str
    coupon_number: str
    origin: str
    destination: str
    departure: Optional[str]
    status: CouponStatus
    status_code: Optional[str] = None
    airline: Optional[str] = None
    flight_number: Optional[str] = None
    fare_basis_code: Optional[str] = None
    booking_class: Optional[str] = None
    service_class: Optional[str] = None
    not_valid_before: Optional[str] = None
    not_valid_after: Optional[str] = None
    stopover: bool = True


@dataclass(frozen=True, slots=True)
class TicketDocument:
    """One document of a (possibly conjunction) ticket."""

    ticket_number: str
    coupons: tuple[Coupon, ...]


@dataclass(frozen=True, slots=True)
class CanonicalTicket:
    """An issued ticket (electronic ticket record).

    ``coupons`` flattens the coupons of every document in ``documents``,
    so a successfully parsed ticket always has at least one coupon.
    """

    ticket_number: str
    pnr: Optional[str]
    passengers: tuple[Passenger, ...]
    coupons: tuple[Coupon, ...]
    documents: tuple[TicketDocument, ...] = field(default_factory=tuple)
    taxes_info: tuple[TaxInfo, ...] = field(default_factory=tuple)
    commission: Optional[Commission] = None
    total_price: Optional[str] = None
    base_price: Optional[str] = None
    equivalent_base_price: Optional[str] = None
    tour_code: Optional[str] = None
    exchanged_tickets: tuple[str, ...] = field(default_factory=tuple)
    uapi_ur_locator: Optional[str] = None
    uapi_reservation_locator: Optional[str] = None
    plating_carrier: Optional[str] = None
    ticketing_pcc: Optional[str] = None
    issued_at: Optional[str] = None
    fare_pricing_method: Optional[str] = None
    fare_pricing_type: Optional[str] = None
    price_info_available: bool = False
    price_info_details_available: bool = False
    taxes: Optional[str] = None
    iata_number: Optional[str] = None
    form_of_payment: tuple[str, ...] = field(default_factory=tuple)
    no_adc: bool = False
    is_conjunction_ticket: bool = False
    fare_calculation: Optional[FareCalculation] = None

    @property
    def open_coupons(self) -> tuple[Coupon, ...]:
        return tuple(c for c in self.coupons if c.status is CouponStatus.OPEN)

    @property
    def has_open_coupons(self) -> bool:
        return bool(self.open_coupons)


@dataclass(frozen=True, slots=True)
class Direction:
    """An itinerary leg: segments sharing one leg group tag."""

    origin: str
    destination: str
    plating_carrier: Optional[str]
    segments: tuple[Segment, ...]


@dataclass(frozen=True, slots=True)
class PricedItinerary:
    """The chosen pricing solution of a price response."""

    uapi_pricing_info_ref: Optional[str]
    uapi_pricing_info_group: Optional[str]
    plating_carrier: str
    total_price: Optional[str]
    base_price: Optional[str]
    equivalent_base_price: Optional[str]
    taxes: Optional[str]
    directions: tuple[Direction, ...]
    passenger_counts: Dict[str, int]
    taxes_info: tuple[TaxInfo, ...] = field(default_factory=tuple)
    time_to_reprice: Optional[str] = None


class ImportStage(Enum):
    """Stages of the terminal-driven PNR import."""

    START = "start"
    OPENED = "opened"
    SEGMENT_ADDED = "segment_added"
    SAVED = "saved"
    CONFIRMED = "confirmed"
    RETRIEVED = "retrieved"


@dataclass
class ImportState:
    """Call-local progress of one PNR import.

    Attributes:
        pnr: Booking locator being imported
        added_segment_line: Confirmation line expected after the segment add
        retrieval_attempts: Universal record retrievals done after the save
    """

    pnr: str
    stage: ImportStage = ImportStage.START
    added_segment_line: Optional[str] = None
    retrieval_attempts: int = 0
    bookings: list[CanonicalBooking] = field(default_factory=list)
