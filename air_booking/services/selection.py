"""Pick records out of normalized vendor results."""

from __future__ import annotations

from typing import Iterable, Optional, Sequence, Union

from ..domain.errors import ReservationsMissing
from ..domain.models import CanonicalBooking, CanonicalTicket


def first_booking(bookings: Sequence[CanonicalBooking], pnr: Optional[str] = None) -> CanonicalBooking:
    """The booking the vendor lists first.

    Raises:
        ReservationsMissing: If the record holds no booking at all.
    """
    if not bookings:
        raise ReservationsMissing(f"No booking found for {pnr}", missing="booking")
    return bookings[0]


def primary_booking(bookings: Sequence[CanonicalBooking], pnr: Optional[str] = None) -> CanonicalBooking:
    """The booking for ``pnr``, or the first one when none matches.

    Raises:
        ReservationsMissing: If the record holds no booking at all.
    """
    first = first_booking(bookings, pnr)
    for booking in bookings:
        if pnr is not None and booking.pnr == pnr:
            return booking
    return first


def matching_ticket(
    tickets: Union[CanonicalTicket, Iterable[CanonicalTicket]],
    ticket_number: str,
) -> Optional[CanonicalTicket]:
    """Find a ticket by number, conjunction documents included."""
    if isinstance(tickets, CanonicalTicket):
        tickets = [tickets]
    for ticket in tickets:
        if ticket.ticket_number == ticket_number:
            return ticket
        if any(document.ticket_number == ticket_number for document in ticket.documents):
            return ticket
    return None
