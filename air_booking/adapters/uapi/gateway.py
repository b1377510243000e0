"""Air service gateway adapter.

One method per vendor operation: send the request through the
transport, then normalize the success document or classify the fault.
Nothing here retries or sequences calls; that belongs to the workflow
services.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Union

from ...classification.classifier import ErrorClassifier
from ...domain.models import CanonicalBooking, CanonicalTicket, PricedItinerary
from ...parsing.normalizer import ResponseNormalizer
from ...ports.transport import Operation, RawDocument, TransportFault, TransportPort


@dataclass
class UapiAirGateway:
    """AirServicePort implementation over a TransportPort.

    Attributes:
        transport: Sends operations and returns decoded documents
        normalizer: Turns success documents into canonical records
    """

    transport: TransportPort
    normalizer: ResponseNormalizer = field(default_factory=ResponseNormalizer)

    _logger: logging.Logger = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._logger = logging.getLogger(__name__)

    @property
    def classifier(self) -> ErrorClassifier:
        assert self.normalizer.classifier is not None
        return self.normalizer.classifier

    def _call(self, operation: Operation, payload: Mapping[str, Any]) -> RawDocument:
        self._logger.debug("Calling vendor", extra={"operation": operation.value})
        try:
            return self.transport.call(operation, payload)
        except TransportFault as fault:
            self._logger.info("Vendor fault", extra={"operation": operation.value})
            raise self.classifier.error_for(fault.document) from fault

    def get_universal_record_by_pnr(self, pnr: str) -> List[CanonicalBooking]:
        document = self._call(Operation.UNIVERSAL_RECORD_IMPORT, {"pnr": pnr})
        return self.normalizer.bookings(document)

    def ticket(self, reservation_locator: str, currency: str, **options: Any) -> bool:
        payload = dict(options, ReservationLocator=reservation_locator, currency=currency)
        document = self._call(Operation.AIR_TICKETING, payload)
        return self.normalizer.ticketing_result(document)

    def foid(self, booking: CanonicalBooking) -> bool:
        payload = {
            "pnr": booking.pnr,
            "ur_locator": booking.uapi_ur_locator,
            "reservation_locator": booking.uapi_reservation_locator,
            "version": booking.version,
            "passengers": [p.uapi_passenger_ref for p in booking.passengers],
        }
        self._call(Operation.FOID, payload)
        return True

    def get_ticket(
        self,
        ticket_number: str,
        allow_no_provider_locator: bool = False,
    ) -> Union[CanonicalTicket, List[CanonicalTicket]]:
        payload = {
            "ticketNumber": ticket_number,
            "allowNoProviderLocatorCodeRetrieval": allow_no_provider_locator,
        }
        document = self._call(Operation.GET_TICKET, payload)
        return self.normalizer.with_options(allow_no_provider_locator).ticket(document)

    def get_tickets(self, reservation_locator: str) -> List[CanonicalTicket]:
        """Retrieve the tickets of a reservation.

        A fault saying the reservation has no tickets yields an empty list.
        """
        payload = {"reservationLocator": reservation_locator}
        try:
            document = self.transport.call(Operation.GET_TICKETS, payload)
        except TransportFault as fault:
            tickets = self.classifier.classify_tickets_fault(fault.document)
            self._logger.info(
                "Reservation has no tickets",
                extra={"reservation_locator": reservation_locator},
            )
            return tickets
        return self.normalizer.tickets(document)

    def cancel_ticket(self, ticket: CanonicalTicket) -> bool:
        payload = {"ticketNumber": ticket.ticket_number, "pnr": ticket.pnr}
        document = self._call(Operation.TICKET_CANCEL, payload)
        return self.normalizer.ticket_cancelled(document)

    def cancel_booking(self, booking: CanonicalBooking) -> bool:
        payload = {
            "pnr": booking.pnr,
            "ur_locator": booking.uapi_ur_locator,
            "reservation_locator": booking.uapi_reservation_locator,
            "version": booking.version,
        }
        document = self._call(Operation.AIR_CANCEL_PNR, payload)
        return self.normalizer.booking_cancelled(document)

    def price_pricing_solution(self, params: Mapping[str, Any]) -> PricedItinerary:
        document = self._call(Operation.AIR_PRICE, params)
        return self.normalizer.price(document)

    def create_reservation(
        self,
        itinerary: PricedItinerary,
        params: Mapping[str, Any],
    ) -> List[CanonicalBooking]:
        payload: Dict[str, Any] = dict(params)
        payload["itinerary"] = itinerary
        document = self._call(Operation.AIR_CREATE_RESERVATION, payload)
        return self.normalizer.bookings(document)

    def cancel_universal_record(self, ur_locator: str, version: Optional[int] = None) -> bool:
        self._call(Operation.UNIVERSAL_RECORD_CANCEL, {"LocatorCode": ur_locator, "version": version})
        return True

    def place_in_queue(self, pnr: str, queue: str, pcc: str) -> bool:
        document = self._call(Operation.QUEUE_PLACE, {"pnr": pnr, "queue": queue, "pcc": pcc})
        return self.normalizer.queue_placed(document)
