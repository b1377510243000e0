"""Universal record documents -> CanonicalBooking records.

One CanonicalBooking is produced per air reservation of the record, or
per provider reservation when the record carries no air reservation.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Mapping, Optional

from ..dates import chronological_key
from ..domain.errors import (
    MissingRequiredField,
    NoValidFare,
    ReservationProviderInfoMissing,
    ReservationsMissing,
    SegmentBookingFailed,
    ServiceSegmentRemarkInvalid,
    TravelersListError,
    UniversalRecordDataCouldBeStale,
)
from ..domain.models import (
    BookingTicket,
    CanonicalBooking,
    Email,
    FareQuote,
    Passenger,
    PricingInfo,
    PricingPassenger,
    Remark,
    Segment,
    ServiceSegment,
    SupplierLocator,
)
from .fields import ParseContext, SchemaFields
from .helpers import (
    build_passenger,
    build_segment,
    count_histogram,
    first_value,
    parse_baggage,
    parse_fare_calculation,
    parse_taxes,
    response_messages,
    to_messages,
    values_of,
)

logger = logging.getLogger(__name__)

NO_VALID_FARE_PATTERN = re.compile(r"NO VALID FARE FOR INPUT CRITERIA")
STALE_DATA_PATTERN = re.compile(r"failed refresh|data may be stale", re.IGNORECASE)
STALE_DATA_CODE = "1301"
SPLIT_REMARK_PATTERN = re.compile(r"^SPLIT\s.*([A-Z0-9]{6})$")
SERVICE_REMARK_PATTERN = re.compile(
    r"^([A-Z0-9])/([A-Z0-9]{3})/([A-Z]{3})(\d+(?:\.\d+)?)/([^/]+?)(?:/NM-(\d+\.\d+))?$"
)


def parse_bookings(document: Mapping[str, Any], context: ParseContext) -> List[CanonicalBooking]:
    """Normalize a universal record retrieve, import or create response.

    Raises:
        NoValidFare: A response message reports no valid fare.
        UniversalRecordDataCouldBeStale: The vendor failed to refresh the record.
        SegmentBookingFailed: The document carries a segment sell failure.
        ReservationsMissing: The record has neither travelers nor air reservations.
        ReservationProviderInfoMissing: An air reservation references no provider info.
        TravelersListError: An air reservation references an unknown traveler.
    """
    fields = context.fields
    messages = response_messages(document, fields)
    _check_messages(messages, document)

    if document.get("air:AirSegmentSellFailureInfo"):
        raise SegmentBookingFailed("Segment sell failed", document=document)

    record = document.get("universal:UniversalRecord")
    if not isinstance(record, Mapping):
        raise MissingRequiredField(missing="universal:UniversalRecord")

    travelers: Mapping[str, Any] = record.get(fields.booking_traveler) or {}
    reservations = values_of(record.get("air:AirReservation"))
    if not travelers and not reservations:
        raise ReservationsMissing(missing="air:AirReservation")

    provider_infos: Mapping[str, Any] = record.get("universal:ProviderReservationInfo") or {}
    remarks = _remarks_by_provider(record, fields)
    common: Dict[str, Any] = dict(
        uapi_ur_locator=record.get("LocatorCode", ""),
        version=int(record.get("Version", 0)),
        messages=to_messages(messages),
    )

    if not reservations:
        passengers = tuple(build_passenger(t, fields) for t in values_of(travelers))
        return [
            CanonicalBooking(
                pnr=info.get("LocatorCode", ""),
                uapi_reservation_locator=None,
                passengers=passengers,
                remarks=tuple(_to_remark(r, fields) for r in remarks.get(info.get("Key"), [])),
                **_provider_dates(info),
                **common,
            )
            for info in values_of(provider_infos)
        ]

    return [
        _parse_reservation(reservation, record, travelers, provider_infos, remarks, fields, common)
        for reservation in reservations
    ]


def _check_messages(messages: List[Mapping[str, Any]], document: Mapping[str, Any]) -> None:
    for message in messages:
        text = message.get("_") or ""
        if NO_VALID_FARE_PATTERN.search(text):
            raise NoValidFare(text, document=document)
        if STALE_DATA_PATTERN.search(text) or str(message.get("Code")) == STALE_DATA_CODE:
            raise UniversalRecordDataCouldBeStale(
                text or "Universal record data could be stale",
                vendor_code=message.get("Code"),
                document=document,
            )


def _provider_dates(info: Mapping[str, Any]) -> Dict[str, Any]:
    return dict(
        created_at=info.get("CreateDate"),
        modified_at=info.get("ModifiedDate"),
        host_created_at=info.get("HostCreateDate"),
        booking_pcc=info.get("OwningPCC"),
    )


def _remarks_by_provider(record: Mapping[str, Any], fields: SchemaFields) -> Dict[Any, List[Mapping[str, Any]]]:
    grouped: Dict[Any, List[Mapping[str, Any]]] = {}
    for remark in values_of(record.get(fields.general_remark)):
        grouped.setdefault(remark.get("ProviderReservationInfoRef"), []).append(remark)
    return grouped


def _to_remark(raw: Mapping[str, Any], fields: SchemaFields) -> Remark:
    return Remark(text=raw.get(fields.remark_data, ""), category=raw.get("Category"))


def _parse_reservation(
    reservation: Mapping[str, Any],
    record: Mapping[str, Any],
    travelers: Mapping[str, Any],
    provider_infos: Mapping[str, Any],
    remarks: Dict[Any, List[Mapping[str, Any]]],
    fields: SchemaFields,
    common: Dict[str, Any],
) -> CanonicalBooking:
    provider_info = provider_infos.get(reservation.get(fields.provider_reservation_info_ref))
    if not provider_info:
        raise ReservationProviderInfoMissing(missing="universal:ProviderReservationInfo")
    provider_key = provider_info.get("Key")

    passengers: List[Passenger] = []
    emails: List[Email] = []
    for ref in values_of(reservation.get(fields.booking_traveler_ref)):
        traveler = travelers.get(ref)
        if not traveler:
            raise TravelersListError(f"Traveler {ref} is missing from the record")
        passengers.append(build_passenger(traveler, fields))
        for email in values_of(traveler.get(fields.email)):
            linked = email.get(fields.provider_reservation_info_ref)
            if linked == provider_key and str(email.get("Type", "To")).upper() == "TO":
                emails.append(Email(index=len(emails) + 1, email=email.get("EmailID", "").lower()))

    provider_remarks = remarks.get(provider_key, [])
    split_bookings: List[str] = []
    details = provider_info.get("universal:ProviderReservationDetails") or {}
    if details.get("DivideDetails") == "true":
        for remark in provider_remarks:
            match = SPLIT_REMARK_PATTERN.match(remark.get(fields.remark_data, ""))
            if match:
                split_bookings.append(match.group(1))

    passive = next(
        (
            p
            for p in values_of(record.get("passive:PassiveReservation"))
            if p.get("ProviderReservationInfoRef") == provider_key
        ),
        None,
    )
    segments, service_segments = _index_segments(reservation, passive)

    tickets = tuple(_parse_booking_ticket(t, fields) for t in values_of((reservation.get("air:DocumentInfo") or {}).get("air:TicketInfo")))

    return CanonicalBooking(
        pnr=provider_info.get("LocatorCode", ""),
        uapi_reservation_locator=reservation.get("LocatorCode"),
        airline_locator_info=tuple(
            SupplierLocator(
                create_date=s.get("CreateDateTime"),
                supplier_code=s.get("SupplierCode"),
                locator_code=s.get("SupplierLocatorCode"),
            )
            for s in values_of(reservation.get(fields.supplier_locator))
        ),
        passengers=tuple(passengers),
        segments=segments,
        service_segments=service_segments,
        fare_quotes=_parse_fare_quotes(reservation, tickets, fields),
        tickets=tickets,
        emails=tuple(emails),
        remarks=tuple(_to_remark(r, fields) for r in provider_remarks),
        split_bookings=tuple(split_bookings),
        **_provider_dates(provider_info),
        **common,
    )


def _parse_booking_ticket(raw: Mapping[str, Any], fields: SchemaFields) -> BookingTicket:
    name = raw.get(fields.name) or {}
    return BookingTicket(
        number=raw.get("Number", ""),
        passengers=(Passenger(first_name=name.get("First", ""), last_name=name.get("Last", "")),),
        uapi_passenger_ref=raw.get("BookingTravelerRef"),
        uapi_pricing_info_ref=raw.get("AirPricingInfoRef"),
    )


# ---------------------------------------------------------------------------
# Segments
# ---------------------------------------------------------------------------


def parse_service_segment(raw: Mapping[str, Any], remark: Optional[Mapping[str, Any]], index: int) -> ServiceSegment:
    """Build a service segment from its passive remark.

    Remark format: ``RFIC/RFISC/<CUR><AMOUNT>/<DESCRIPTION>[/NM-<n.n>]``.

    Raises:
        ServiceSegmentRemarkInvalid: If the remark does not follow the format.
    """
    text = (remark or {}).get("passive:Text", "")
    match = SERVICE_REMARK_PATTERN.match(text)
    if match is None:
        raise ServiceSegmentRemarkInvalid(f"Passive remark is not a service segment: {text!r}")
    rfic, rfisc, currency, amount, description, name = match.groups()
    return ServiceSegment(
        index=index,
        carrier=raw.get("SupplierCode"),
        airport=raw.get("Origin"),
        date=raw.get("StartDate"),
        rfi_code=rfic,
        rfi_subcode=rfisc,
        fee_description=description,
        currency=currency,
        amount=float(amount),
        name=name,
        uapi_segment_ref=raw.get("Key"),
    )


def _index_segments(
    reservation: Mapping[str, Any],
    passive: Optional[Mapping[str, Any]],
) -> tuple[tuple[Segment, ...], tuple[ServiceSegment, ...]]:
    """Index air and service segments in one sequence ordered by travel order.

    Passive segments whose remark is not a service segment are dropped
    before indexing, so the indices stay contiguous.
    """
    air = values_of(reservation.get("air:AirSegment"))
    if passive is None:
        return tuple(build_segment(s, i) for i, s in enumerate(air, start=1)), ()

    remarks = values_of(passive.get("passive:PassiveRemark"))
    valid_passive = []
    for segment in values_of(passive.get("passive:PassiveSegment")):
        remark = next((r for r in remarks if r.get("PassiveSegmentRef") == segment.get("Key")), None)
        try:
            parse_service_segment(segment, remark, 0)
        except ServiceSegmentRemarkInvalid as e:
            logger.warning("Dropping passive segment", extra={"segment": segment.get("Key"), "reason": str(e)})
            continue
        valid_passive.append((segment, remark))

    ordered = [(s, None) for s in air] + valid_passive
    ordered.sort(key=lambda item: int(item[0].get("TravelOrder", 0)))

    segments: List[Segment] = []
    service_segments: List[ServiceSegment] = []
    for index, (raw, remark) in enumerate(ordered, start=1):
        if remark is None:
            segments.append(build_segment(raw, index))
        else:
            service_segments.append(parse_service_segment(raw, remark, index))
    return tuple(segments), tuple(service_segments)


# ---------------------------------------------------------------------------
# Fare quotes
# ---------------------------------------------------------------------------


def _parse_fare_quotes(
    reservation: Mapping[str, Any],
    tickets: tuple[BookingTicket, ...],
    fields: SchemaFields,
) -> tuple[FareQuote, ...]:
    modifiers: Mapping[str, Any] = reservation.get("air:TicketingModifiers") or {}
    grouped: Dict[Any, List[PricingInfo]] = {}
    quote_common: Dict[Any, Dict[str, Any]] = {}

    for key, raw in (reservation.get("air:AirPricingInfo") or {}).items():
        fare_infos = raw.get("air:FareInfo") or {}
        first_fare = first_value(fare_infos)
        modifier_key = next(iter(raw.get("air:TicketingModifiersRef") or {}), None)
        modifier = modifiers.get(modifier_key) if modifier_key else None
        endorsements = values_of(first_fare.get(fields.endorsement)) if first_fare else []

        group = raw.get("AirPricingInfoGroup")
        quote_common[group] = dict(
            uapi_segment_refs=tuple(b.get("SegmentRef") for b in values_of(raw.get("air:BookingInfo"))),
            effective_date=first_fare.get("EffectiveDate") if first_fare else None,
            endorsement=" ".join(e.get("Value", "") for e in endorsements) if endorsements else None,
            tour_code=(first_fare.get("TourCode") or None) if first_fare else None,
            plating_carrier=modifier.get("PlatingCarrier") if modifier else None,
        )

        passengers = []
        for ref in values_of(raw.get(fields.booking_traveler_ref)):
            ticket = next(
                (t for t in tickets if t.uapi_passenger_ref == ref and t.uapi_pricing_info_ref == key),
                None,
            )
            passengers.append(
                PricingPassenger(
                    uapi_passenger_ref=ref,
                    is_ticketed=ticket is not None,
                    ticket_number=ticket.number if ticket else None,
                )
            )

        grouped.setdefault(group, []).append(
            PricingInfo(
                uapi_pricing_info_ref=key,
                uapi_pricing_info_group=group,
                passengers=tuple(passengers),
                fare_pricing_method=raw.get("PricingMethod"),
                fare_pricing_type=raw.get("PricingType"),
                total_price=raw.get("TotalPrice"),
                base_price=raw.get("BasePrice"),
                equivalent_base_price=raw.get("EquivalentBasePrice"),
                taxes=raw.get("Taxes"),
                passengers_count=count_histogram(values_of(raw.get("air:PassengerType"))),
                taxes_info=parse_taxes(raw.get("air:TaxInfo"), fields),
                baggage=tuple(parse_baggage(f.get("air:BaggageAllowance")) for f in values_of(fare_infos)),
                time_to_reprice=raw.get("LatestTicketingTime"),
                fare_calculation=parse_fare_calculation(raw.get("air:FareCalc")),
            )
        )

    ordered = sorted(grouped, key=lambda g: chronological_key(quote_common[g]["effective_date"]))
    return tuple(
        FareQuote(
            index=index,
            pricing_infos=tuple(grouped[group]),
            uapi_passenger_refs=tuple(p.uapi_passenger_ref for pi in grouped[group] for p in pi.passengers),
            **quote_common[group],
        )
        for index, group in enumerate(ordered, start=1)
    )
