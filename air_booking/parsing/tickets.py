"""Electronic ticket records and single-purpose acknowledgement documents."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any, List, Mapping, Optional, Union

from ..domain.errors import (
    CancelResponseNotFound,
    DuplicateTicketFound,
    MissingRequiredField,
    PlacingInQueueError,
    PlacingInQueueMessageMissing,
    TicketCancelResultUnknown,
    TicketInfoIncomplete,
    TicketingCreditCardRejected,
    TicketingFailed,
    TicketingFoidRequired,
    TicketingFopUnavailable,
    TicketingPnrBusy,
    TicketingResponseMissing,
    TicketingTicketsMissing,
)
from ..domain.models import CanonicalTicket, Coupon, CouponStatus, Passenger, TicketDocument
from .fields import ParseContext, SchemaFields
from .helpers import (
    first_value,
    is_fare_calculation,
    parse_commission,
    parse_fare_calculation,
    parse_taxes,
    response_messages,
    values_of,
    zero_price_like,
)

if TYPE_CHECKING:
    from ..classification.classifier import ErrorClassifier

DUPLICATE_TICKET_CODE = "3273"
TICKETS_NOT_ISSUED_CODE = "12009"
PNR_BUSY_CODE = "3979"
HOST_TICKETING_ERROR_CODE = "12008"
FOID_REQUIRED_PATTERN = re.compile(r"VALID\sFORM\sOF\sID\s\sFOID\s\sREQUIRED")
QUEUE_PLACED_PATTERN = re.compile(r"^Booking successfully placed")
TICKET_ISSUED_MESSAGE = "OK:Ticket issued"
ITINERARY_CANCELLED_MESSAGE = "Itinerary Cancelled"


def parse_ticket(
    document: Mapping[str, Any],
    context: ParseContext,
    classifier: ErrorClassifier,
) -> Union[CanonicalTicket, List[CanonicalTicket]]:
    """Normalize a get-ticket response.

    Returns a list when the document holds several ETR records.

    Raises:
        DuplicateTicketFound: Several records share the ticket number.
        TicketInfoIncomplete: The record has no provider locator.
        VendorError: Any other failure, as classified from the messages.
    """
    failure = document.get("air:DocumentFailureInfo")
    if failure:
        if failure.get("Code") == DUPLICATE_TICKET_CODE:
            raise DuplicateTicketFound(
                failure.get("Message") or "Duplicate ticket found",
                vendor_code=DUPLICATE_TICKET_CODE,
                document=document,
            )
        raise classifier.message_error(document, "Unable to retrieve ticket")

    messages = response_messages(document, context.fields)
    if any(m.get("Type") == "Error" and m.get("Code") != TICKETS_NOT_ISSUED_CODE for m in messages):
        raise classifier.message_error(document, "Unable to retrieve ticket")

    etr = document.get("air:ETR")
    if not etr:
        raise classifier.message_error(document, "Unable to retrieve ticket")

    if _holds_several_records(etr):
        return [_ticket_from_etr(record, document, context) for record in values_of(etr)]
    return _ticket_from_etr(etr, document, context)


def _holds_several_records(etr: Any) -> bool:
    """An ETR node keyed by record rather than a single record."""
    first = first_value(etr)
    return isinstance(first, Mapping) and "air:Ticket" in first


def parse_tickets(
    document: Mapping[str, Any],
    context: ParseContext,
    classifier: ErrorClassifier,
) -> List[CanonicalTicket]:
    """Normalize a get-tickets response, always as a list."""
    if classifier.has_no_tickets(document):
        return []
    tickets = parse_ticket(document, context, classifier)
    return tickets if isinstance(tickets, list) else [tickets]


def _passenger_name(traveler: Mapping[str, Any], fields: SchemaFields) -> Passenger:
    name = traveler.get(fields.booking_traveler_name) or {}
    return Passenger(
        first_name=name.get("First", "") + name.get("Prefix", ""),
        last_name=name.get("Last", ""),
    )


def _form_of_payment(fop: Mapping[str, Any], fields: SchemaFields) -> str:
    fop_type = str(fop.get("Type", ""))
    card = fop.get(fields.common("CreditCard"))
    if fop_type == "Credit" and card:
        number = str(card.get("Number", ""))
        return f"CC{card.get('Type', '')}{'X' * max(len(number) - 4, 0)}{number[-4:]}"
    return fop_type.upper()


def _ticket_from_etr(
    etr: Mapping[str, Any],
    document: Mapping[str, Any],
    context: ParseContext,
) -> CanonicalTicket:
    fields = context.fields
    if not context.allow_no_provider_locator and not etr.get("ProviderLocatorCode"):
        raise TicketInfoIncomplete("Ticket record has no provider locator", document=dict(etr))

    pricing_info = first_value(etr.get("air:AirPricingInfo"))
    fare_infos: Mapping[str, Any] = (pricing_info or {}).get("air:FareInfo") or {}
    fare_info = first_value(fare_infos)

    raw_tickets = values_of(etr.get("air:Ticket"))
    if not raw_tickets:
        raise MissingRequiredField(missing="air:Ticket")

    raw_coupons = [(t, c) for t in raw_tickets for c in values_of(t.get("air:Coupon"))]
    if not raw_coupons:
        raise MissingRequiredField(missing="air:Coupon")

    coupons: List[Coupon] = []
    for position, (ticket, coupon) in enumerate(raw_coupons):
        following = raw_coupons[position + 1][1] if position + 1 < len(raw_coupons) else None
        coupons.append(
            Coupon(
                ticket_number=ticket.get("TicketNumber", ""),
                coupon_number=coupon.get("CouponNumber", ""),
                origin=coupon.get("Origin", ""),
                destination=coupon.get("Destination", ""),
                departure=coupon.get("DepartureTime"),
                status=CouponStatus.from_code(coupon.get("Status")),
                status_code=coupon.get("Status"),
                airline=coupon.get("MarketingCarrier"),
                flight_number=coupon.get("MarketingFlightNumber"),
                fare_basis_code=coupon.get("FareBasis"),
                booking_class=coupon.get("BookingClass"),
                service_class=_service_class(pricing_info, fare_infos, coupon.get("FareBasis")),
                not_valid_before=coupon.get("NotValidBefore"),
                not_valid_after=coupon.get("NotValidAfter"),
                stopover=following.get("StopoverCode") == "true" if following is not None else True,
            )
        )

    documents = tuple(
        TicketDocument(
            ticket_number=t.get("TicketNumber", ""),
            coupons=tuple(c for c in coupons if c.ticket_number == t.get("TicketNumber", "")),
        )
        for t in raw_tickets
    )
    exchanged = tuple(
        info.get("Number", "")
        for t in raw_tickets
        for info in values_of(t.get("air:ExchangedTicketInfo"))
    )

    price_source = pricing_info or etr
    price_info_available = price_source.get("BasePrice") is not None
    commission = etr.get(fields.commission) or (fare_info or {}).get(fields.commission)

    fare_calc_line = etr.get("air:FareCalc")
    if not is_fare_calculation(fare_calc_line) and pricing_info is not None:
        fare_calc_line = pricing_info.get("air:FareCalc")

    total_price: Optional[str] = None
    if price_info_available:
        total_price = price_source.get("TotalPrice") or zero_price_like(
            price_source.get("EquivalentBasePrice") or price_source["BasePrice"]
        )

    return CanonicalTicket(
        ticket_number=raw_tickets[0].get("TicketNumber", ""),
        pnr=etr.get("ProviderLocatorCode"),
        passengers=tuple(_passenger_name(t, fields) for t in values_of(etr.get(fields.booking_traveler))),
        coupons=tuple(coupons),
        documents=documents,
        taxes_info=parse_taxes((pricing_info or {}).get("air:TaxInfo"), fields),
        commission=parse_commission(commission) if commission else None,
        total_price=total_price,
        base_price=price_source.get("BasePrice") if price_info_available else None,
        equivalent_base_price=price_source.get("EquivalentBasePrice") if price_info_available else None,
        tour_code=etr.get("TourCode"),
        exchanged_tickets=exchanged,
        uapi_ur_locator=document.get("UniversalRecordLocatorCode"),
        uapi_reservation_locator=etr.get("air:AirReservationLocatorCode"),
        plating_carrier=etr.get("PlatingCarrier"),
        ticketing_pcc=etr.get("PseudoCityCode"),
        issued_at=etr.get("IssuedDate"),
        fare_pricing_method=pricing_info.get("PricingMethod") if pricing_info else None,
        fare_pricing_type=pricing_info.get("PricingType") if pricing_info else None,
        price_info_available=price_info_available,
        price_info_details_available=pricing_info is not None,
        taxes=price_source.get("Taxes"),
        iata_number=etr.get("IATANumber"),
        form_of_payment=tuple(_form_of_payment(f, fields) for f in values_of(etr.get(fields.form_of_payment))),
        no_adc=not etr.get("TotalPrice"),
        is_conjunction_ticket=len(raw_tickets) > 1,
        fare_calculation=parse_fare_calculation(fare_calc_line) if fare_calc_line else None,
    )


def _service_class(
    pricing_info: Optional[Mapping[str, Any]],
    fare_infos: Mapping[str, Any],
    fare_basis: Optional[str],
) -> Optional[str]:
    """Cabin class of the booking info pointing at the coupon's fare."""
    if not pricing_info:
        return None
    cabin = None
    booking_infos = values_of(pricing_info.get("air:BookingInfo"))
    for fare_key, fare in fare_infos.items():
        if fare.get("FareBasis") != fare_basis:
            continue
        info = next((b for b in booking_infos if b.get("FareInfoRef") == fare_key), None)
        if info is not None:
            cabin = info.get("CabinClass")
    return cabin


# ---------------------------------------------------------------------------
# Acknowledgements
# ---------------------------------------------------------------------------


def parse_ticketing_result(document: Mapping[str, Any], fields: SchemaFields) -> bool:
    """Check a ticket-issue response.

    Returns True when every returned ETR carries ticket numbers, False
    when the vendor acknowledged the request without returning ETRs.

    Raises:
        TicketingFoidRequired: A form of identification must be added first.
        TicketingPnrBusy: The reservation is being modified elsewhere.
        TicketingFopUnavailable: The form of payment is not accepted by the carrier.
        TicketingCreditCardRejected: The card issuer refused the charge.
        TicketingFailed: Any other ticketing failure.
        TicketingResponseMissing: No ticket-issued acknowledgement.
        TicketingTicketsMissing: An ETR without ticket numbers.
    """
    failure = document.get("air:TicketFailureInfo")
    if failure:
        message = failure.get("Message") or ""
        code = failure.get("Code")
        details = dict(vendor_code=code, document=document)
        if FOID_REQUIRED_PATTERN.search(message):
            raise TicketingFoidRequired(message, **details)
        if code == PNR_BUSY_CODE:
            raise TicketingPnrBusy(message, **details)
        if code == HOST_TICKETING_ERROR_CODE:
            if "FOP SELECTED NOT AUTHORIZED" in message:
                raise TicketingFopUnavailable(message, **details)
            if "REFUSE CREDIT" in message:
                raise TicketingCreditCardRejected(message, **details)
        raise TicketingFailed(message or "Ticketing failed", **details)

    if not any(m.get("_") == TICKET_ISSUED_MESSAGE for m in response_messages(document, fields)):
        raise TicketingResponseMissing(document=document)

    etrs = document.get("air:ETR")
    if not etrs:
        return False
    records = values_of(etrs) if _holds_several_records(etrs) else [etrs]
    for etr in records:
        if not isinstance(etr, Mapping):
            raise TicketingTicketsMissing(document=document)
        for ticket in values_of(etr.get("air:Ticket")):
            if not isinstance(ticket, Mapping) or not ticket.get("TicketNumber"):
                raise TicketingTicketsMissing(document=document)
    return True


def parse_ticket_cancelled(document: Mapping[str, Any]) -> bool:
    result = document.get("air:VoidResultInfo")
    if not result or result.get("ResultType") != "Success":
        raise TicketCancelResultUnknown(document=document)
    return True


def parse_booking_cancelled(document: Mapping[str, Any], fields: SchemaFields) -> bool:
    if any(m.get("_") == ITINERARY_CANCELLED_MESSAGE for m in response_messages(document, fields)):
        return True
    raise CancelResponseNotFound(missing=ITINERARY_CANCELLED_MESSAGE)


def parse_queue_placed(document: Mapping[str, Any], fields: SchemaFields) -> bool:
    messages = response_messages(document, fields)
    if not messages:
        raise PlacingInQueueError(document=document)
    text = messages[0].get("_") or ""
    if not QUEUE_PLACED_PATTERN.match(text):
        raise PlacingInQueueMessageMissing(text or "Queue placement message missing", document=document)
    return True
