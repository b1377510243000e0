"""ResponseNormalizer - one entry point per vendor response kind.

The normalizer is a pure function of its inputs: it never calls the
vendor, it only reads documents and raises typed errors. Documents that
encode a vendor failure instead of success data are handed to the
ErrorClassifier.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from ..classification.classifier import ErrorClassifier
from ..domain.models import CanonicalBooking, CanonicalTicket, PricedItinerary
from .bookings import parse_bookings
from .encoding import encode_bookings
from .fields import ParseContext
from .pricing import parse_passengers_per_reservation, parse_price
from .tickets import (
    parse_booking_cancelled,
    parse_queue_placed,
    parse_ticket,
    parse_ticket_cancelled,
    parse_ticketing_result,
    parse_tickets,
)

RawDocument = Mapping[str, Any]


@dataclass
class ResponseNormalizer:
    """Normalize raw vendor documents into canonical records.

    Attributes:
        context: Schema version and parsing options
        classifier: Fault classifier, built from the context when omitted
    """

    context: ParseContext = field(default_factory=ParseContext)
    classifier: Optional[ErrorClassifier] = None

    def __post_init__(self) -> None:
        if self.classifier is None:
            self.classifier = ErrorClassifier(self.context.schema_version)

    @property
    def _classifier(self) -> ErrorClassifier:
        assert self.classifier is not None
        return self.classifier

    def with_options(self, allow_no_provider_locator: bool) -> ResponseNormalizer:
        if allow_no_provider_locator:
            context = self.context.permissive()
        else:
            context = ParseContext(self.context.schema_version)
        return ResponseNormalizer(context=context, classifier=self.classifier)

    def bookings(self, document: RawDocument) -> List[CanonicalBooking]:
        return parse_bookings(document, self.context)

    def ticket(self, document: RawDocument) -> Union[CanonicalTicket, List[CanonicalTicket]]:
        return parse_ticket(document, self.context, self._classifier)

    def tickets(self, document: RawDocument) -> List[CanonicalTicket]:
        return parse_tickets(document, self.context, self._classifier)

    def ticketing_result(self, document: RawDocument) -> bool:
        return parse_ticketing_result(document, self.context.fields)

    def ticket_cancelled(self, document: RawDocument) -> bool:
        return parse_ticket_cancelled(document)

    def booking_cancelled(self, document: RawDocument) -> bool:
        return parse_booking_cancelled(document, self.context.fields)

    def queue_placed(self, document: RawDocument) -> bool:
        return parse_queue_placed(document, self.context.fields)

    def price(self, document: RawDocument) -> PricedItinerary:
        return parse_price(document, self.context.fields)

    def passengers_per_reservation(self, document: RawDocument) -> Dict[str, Dict[str, int]]:
        return parse_passengers_per_reservation(document)

    def encode(self, bookings: Sequence[CanonicalBooking]) -> Dict[str, Any]:
        """Re-encode bookings into the document shape ``bookings`` reads."""
        return encode_bookings(bookings, self.context.schema_version)
