"""Domain layer - Canonical records and typed errors.

This module contains the immutable canonical records produced by the
response normalizer and the error taxonomy shared by every layer.
No external dependencies.
"""

from .errors import (
    AirBookingError,
    ConfigurationError,
    ErrorKind,
    ParsingError,
    TicketingError,
    UnhandledError,
    VendorError,
    WorkflowError,
)
from .models import (
    CanonicalBooking,
    CanonicalTicket,
    Commission,
    Coupon,
    CouponStatus,
    Direction,
    FareCalculation,
    FareQuote,
    ImportStage,
    ImportState,
    Passenger,
    PricedItinerary,
    PricingInfo,
    Segment,
    ServiceSegment,
)

__all__ = [
    # Models
    "CanonicalBooking",
    "CanonicalTicket",
    "Commission",
    "Coupon",
    "CouponStatus",
    "Direction",
    "FareCalculation",
    "FareQuote",
    "ImportStage",
    "ImportState",
    "Passenger",
    "PricedItinerary",
    "PricingInfo",
    "Segment",
    "ServiceSegment",
    # Errors
    "AirBookingError",
    "ErrorKind",
    "ParsingError",
    "VendorError",
    "TicketingError",
    "WorkflowError",
    "UnhandledError",
    "ConfigurationError",
]
