"""Air workflow service - Main orchestrator.

Sequences the multi-step air operations on top of the single-request
AirServicePort: booking retrieval with terminal import fallback,
ticketing, cancellation, ticket lookup by number and booking with
compensation of partially created records.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional, Union

from ..config import AppConfig, get_config
from ..domain.errors import (
    DuplicateTicketFound,
    FailedToCancelTicket,
    NoAgreement,
    NoReservationToImport,
    NoValidFare,
    ParseTicketPNRError,
    SegmentBookingFailed,
    SegmentWaitlisted,
    TicketInfoIncomplete,
    UnableToRetrieveTickets,
    VendorError,
)
from ..domain.models import CanonicalBooking, CanonicalTicket
from ..ports.air import AirServicePort
from ..ports.terminal import TerminalFactory, terminal_session
from ..terminal.screen_parser import ticket_pnr
from .cancellation import CancellationMachine
from .pnr_import import PnrImportMachine
from .selection import matching_ticket, primary_booking
from .ticketing import TicketingMachine

# Booking failures that may leave a partially created universal record.
COMPENSATED_ERRORS = (NoValidFare, SegmentBookingFailed, SegmentWaitlisted)

TICKET_DISPLAY_COMMAND = "*TE/{ticket_number}"


def universal_record_locator(error: VendorError) -> Optional[str]:
    """Locator of the universal record a failed booking left behind."""
    document = error.document or {}
    record = document.get("universal:UniversalRecord")
    if not isinstance(record, Mapping):
        return None
    locator = record.get("LocatorCode")
    return None if locator is None else str(locator)


@dataclass
class AirWorkflowService:
    """Main service for multi-step air operations.

    Attributes:
        air: Single-request air operations
        terminal_factory: Opens host terminal sessions
        config: Application configuration
    """

    air: AirServicePort
    terminal_factory: TerminalFactory
    config: AppConfig = field(default_factory=get_config)

    _logger: logging.Logger = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._logger = logging.getLogger(__name__)

    @property
    def importer(self) -> PnrImportMachine:
        return PnrImportMachine(self.air, self.terminal_factory, self.config.pnr_import)

    def get_booking(self, pnr: str) -> List[CanonicalBooking]:
        """Retrieve the bookings of a PNR, importing it through the terminal if needed.

        Raises:
            UnableToImportPnr: The terminal import failed.
        """
        try:
            return self.air.get_universal_record_by_pnr(pnr)
        except NoReservationToImport:
            self._logger.warning("No reservation to import, falling back to terminal", extra={"pnr": pnr})
            return self.importer.run(pnr)

    def ticket(self, pnr: str, **options: Any) -> bool:
        machine = TicketingMachine(self.air, self.get_booking, self.config.ticketing)
        return machine.run(pnr, **options)

    def cancel_booking(self, pnr: str, cancel_tickets: bool = False) -> bool:
        """Cancel a booking.

        Args:
            pnr: Booking locator.
            cancel_tickets: Void open tickets first instead of refusing.

        Raises:
            FailedToCancelPnr: Wrapping the reason the booking was not cancelled.
        """
        machine = CancellationMachine(self.air, self.get_booking, self.get_tickets)
        return machine.run(pnr, cancel_tickets=cancel_tickets)

    def get_tickets(self, pnr: str) -> List[CanonicalTicket]:
        """Retrieve every ticket of a PNR.

        Raises:
            NoAgreement: The agency has no agreement with the booking's PCC.
            UnableToRetrieveTickets: Anything else went wrong.
        """
        try:
            booking = primary_booking(self.get_booking(pnr), pnr)
            return self.air.get_tickets(booking.uapi_reservation_locator)
        except NoAgreement:
            raise
        except Exception as e:
            raise UnableToRetrieveTickets(f"Unable to retrieve tickets for {pnr}", cause=e, pnr=pnr) from e

    def get_pnr_by_ticket_number(self, ticket_number: str) -> str:
        """Read the PNR a ticket belongs to from the host ticket display.

        Raises:
            ParseTicketPNRError: The display shows no booking locator.
        """
        with terminal_session(self.terminal_factory) as session:
            screen = session.execute_command(TICKET_DISPLAY_COMMAND.format(ticket_number=ticket_number))
            pnr = ticket_pnr(screen)
            if pnr is None:
                raise ParseTicketPNRError(f"No PNR found for ticket {ticket_number}")
        return pnr

    def get_ticket(self, ticket_number: str) -> Union[CanonicalTicket, List[CanonicalTicket]]:
        """Retrieve a ticket by number.

        Several records sharing the number are resolved through the
        owning PNR's ticket list. A record without a provider locator is
        retrieved again once the PNR has been imported.

        Raises:
            UnableToRetrieveTickets: The owning PNR's tickets could not be listed.
        """
        try:
            return self._retrieve_ticket(ticket_number)
        except TicketInfoIncomplete:
            self._logger.warning(
                "Ticket info incomplete, importing owning PNR",
                extra={"ticket_number": ticket_number},
            )
            pnr = self.get_pnr_by_ticket_number(ticket_number)
            self.get_booking(pnr)
            return self._retrieve_ticket(ticket_number, allow_no_provider_locator=True)

    def _retrieve_ticket(
        self, ticket_number: str, **options: Any
    ) -> Union[CanonicalTicket, List[CanonicalTicket]]:
        try:
            return self.air.get_ticket(ticket_number, **options)
        except DuplicateTicketFound:
            self._logger.warning("Duplicate ticket, looking up owning PNR", extra={"ticket_number": ticket_number})
            return self._ticket_from_pnr(ticket_number)

    def _ticket_from_pnr(self, ticket_number: str) -> CanonicalTicket:
        try:
            pnr = self.get_pnr_by_ticket_number(ticket_number)
            tickets = self.get_tickets(pnr)
        except UnableToRetrieveTickets:
            raise
        except Exception as e:
            raise UnableToRetrieveTickets(
                f"Unable to retrieve tickets for ticket {ticket_number}",
                cause=e,
            ) from e

        ticket = matching_ticket(tickets, ticket_number)
        if ticket is None:
            raise UnableToRetrieveTickets(f"Ticket {ticket_number} not found in PNR {pnr}", pnr=pnr)
        return ticket

    def cancel_ticket(self, ticket_number: str) -> bool:
        """Void a ticket.

        Raises:
            FailedToCancelTicket: Wrapping the reason the ticket was not voided.
        """
        try:
            try:
                found = self.air.get_ticket(ticket_number)
            except TicketInfoIncomplete:
                self._logger.warning(
                    "Ticket info incomplete, resolving ticket through PNR",
                    extra={"ticket_number": ticket_number},
                )
                found = self._ticket_from_pnr(ticket_number)
            ticket = matching_ticket(found, ticket_number)
            if ticket is None:
                raise UnableToRetrieveTickets(f"Ticket {ticket_number} not found")
            return self.air.cancel_ticket(ticket)
        except Exception as e:
            raise FailedToCancelTicket(f"Failed to cancel ticket {ticket_number}", cause=e) from e

    def book(self, params: Mapping[str, Any]) -> List[CanonicalBooking]:
        """Price and reserve an itinerary.

        With ``allow_waitlist`` set, a reservation that failed on fares or
        segments is cancelled before the error is raised again.
        """
        itinerary = self.air.price_pricing_solution(params)
        reservation_params = dict(params, action_status_type="TAU")
        try:
            return self.air.create_reservation(itinerary, reservation_params)
        except COMPENSATED_ERRORS as e:
            if params.get("allow_waitlist"):
                self._compensate(e)
            raise

    def _compensate(self, error: VendorError) -> None:
        locator = universal_record_locator(error)
        if locator is None:
            self._logger.warning("Failed booking left no record locator", extra={"kind": error.kind.value})
            return
        self._logger.warning(
            "Cancelling partially created record",
            extra={"ur_locator": locator, "kind": error.kind.value},
        )
        try:
            self.air.cancel_universal_record(locator)
        except VendorError:
            self._logger.exception("Compensating cancel failed", extra={"ur_locator": locator})
