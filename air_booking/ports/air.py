"""Air service port - Normalized air operations the workflows build on.

Every method returns canonical records or raises a typed error from
``domain.errors``; raw documents never cross this boundary.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Mapping, Optional, Protocol, Union

if TYPE_CHECKING:
    from ..domain.models import CanonicalBooking, CanonicalTicket, PricedItinerary


class AirServicePort(Protocol):
    """Port for the single-request air operations.

    Implementation: adapters/uapi/gateway.py
    """

    def get_universal_record_by_pnr(self, pnr: str) -> list[CanonicalBooking]:
        """Retrieve (importing on the vendor side) the record for a PNR.

        Raises:
            NoReservationToImport: The host has no record the vendor can import.
        """
        ...

    def ticket(
        self,
        reservation_locator: str,
        currency: str,
        **options: Any,
    ) -> bool:
        """Issue tickets for a provider reservation."""
        ...

    def foid(self, booking: CanonicalBooking) -> bool:
        """Add a form of identification to every passenger of the booking."""
        ...

    def get_ticket(
        self,
        ticket_number: str,
        allow_no_provider_locator: bool = False,
    ) -> Union[CanonicalTicket, list[CanonicalTicket]]:
        """Retrieve one ticket by number.

        Raises:
            DuplicateTicketFound: Several records share the number.
            TicketInfoIncomplete: The record has no provider locator.
        """
        ...

    def get_tickets(self, reservation_locator: str) -> list[CanonicalTicket]:
        """Retrieve every ticket of a provider reservation."""
        ...

    def cancel_ticket(self, ticket: CanonicalTicket) -> bool:
        """Void a ticket."""
        ...

    def cancel_booking(self, booking: CanonicalBooking) -> bool:
        """Cancel the itinerary of a booking."""
        ...

    def price_pricing_solution(self, params: Mapping[str, Any]) -> PricedItinerary:
        """Price the requested segments and passengers."""
        ...

    def create_reservation(
        self,
        itinerary: PricedItinerary,
        params: Mapping[str, Any],
    ) -> list[CanonicalBooking]:
        """Create a reservation from a priced itinerary."""
        ...

    def cancel_universal_record(
        self,
        ur_locator: str,
        version: Optional[int] = None,
    ) -> bool:
        """Cancel a whole universal record."""
        ...

    def place_in_queue(self, pnr: str, queue: str, pcc: str) -> bool:
        """Place a booking on a host queue."""
        ...
