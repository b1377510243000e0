"""Canonical bookings -> universal-record shaped raw documents.

The encoder is the inverse of ``parse_bookings``: normalizing its output
yields the bookings it was given. It is used to persist canonical records
in the vendor's shape and to check normalization for idempotence.
"""

from __future__ import annotations

from typing import Any, Dict, List, Sequence

from ..domain.models import (
    Baggage,
    CanonicalBooking,
    FareCalculation,
    FareQuote,
    Passenger,
    PricingInfo,
    Segment,
    ServiceSegment,
    TaxInfo,
)
from .fields import SchemaFields
from .helpers import ROE_PATTERN


def _attrs(**values: Any) -> Dict[str, Any]:
    """Attribute mapping without unset values."""
    return {key: value for key, value in values.items() if value is not None}


def format_fare_calculation(calculation: FareCalculation) -> str:
    """Rebuild a fare-calculation line that parses back to ``calculation``.

    Parsing turns the first parenthesis into a period. When the parsed
    text still holds a parenthesis, the last period before it that does
    not follow whitespace is turned back into one.
    """
    body = calculation.fare_calculation
    paren = body.find("(")
    if paren != -1:
        roe = ROE_PATTERN.search(body)
        protected = range(*roe.span()) if roe else range(0)
        for pos in range(paren - 1, -1, -1):
            if body[pos] != "." or pos in protected:
                continue
            if pos == 0 or not body[pos - 1].isspace():
                body = f"{body[:pos]}({body[pos + 1:]}"
                break

    line = f"{body}END"
    if calculation.roe is not None:
        found = ROE_PATTERN.search(line)
        if found is None or found.group(1) != calculation.roe:
            line = f"{line} ROE{calculation.roe}"
    return line


def _traveler(passenger: Passenger, fields: SchemaFields) -> Dict[str, Any]:
    return _attrs(
        Key=passenger.uapi_passenger_ref,
        TravelerType=passenger.age_category,
        DOB=passenger.birth_date,
        Gender=passenger.gender,
        **{fields.booking_traveler_name: {"First": passenger.first_name, "Last": passenger.last_name}},
    )


def _air_segment(segment: Segment) -> Dict[str, Any]:
    return _attrs(
        Key=segment.uapi_segment_ref,
        TravelOrder=str(segment.index),
        Group=str(segment.group) if segment.group is not None else None,
        Origin=segment.origin,
        Destination=segment.destination,
        DepartureTime=segment.departure,
        ArrivalTime=segment.arrival,
        Carrier=segment.airline,
        FlightNumber=segment.flight_number,
        Status=segment.status,
        CabinClass=segment.service_class,
        ClassOfService=segment.booking_class,
        Equipment=segment.plane,
        FlightTime=segment.duration,
    )


def _service_remark(segment: ServiceSegment) -> str:
    text = f"{segment.rfi_code}/{segment.rfi_subcode}/{segment.currency}{segment.amount}/{segment.fee_description}"
    if segment.name is not None:
        text += f"/NM-{segment.name}"
    return text


def _passive_reservation(provider_key: str, segments: Sequence[ServiceSegment]) -> Dict[str, Any]:
    passive_segments: List[Dict[str, Any]] = []
    remarks: List[Dict[str, Any]] = []
    for segment in segments:
        key = segment.uapi_segment_ref or f"PS_{provider_key}_{segment.index}"
        passive_segments.append(
            _attrs(
                Key=key,
                TravelOrder=str(segment.index),
                SupplierCode=segment.carrier,
                Origin=segment.airport,
                StartDate=segment.date,
            )
        )
        remarks.append({"PassiveSegmentRef": key, "passive:Text": _service_remark(segment)})
    return {
        "ProviderReservationInfoRef": provider_key,
        "passive:PassiveSegment": passive_segments,
        "passive:PassiveRemark": remarks,
    }


def _taxes(taxes: Sequence[TaxInfo], fields: SchemaFields) -> Dict[str, Any]:
    encoded: Dict[str, Any] = {}
    for n, tax in enumerate(taxes, start=1):
        entry = _attrs(Category=tax.type, Amount=tax.value)
        if tax.details:
            entry[fields.tax_detail] = [_attrs(OriginAirport=d.airport, Amount=d.value) for d in tax.details]
        encoded[f"TI_{n}"] = entry
    return encoded


def _baggage(baggage: Baggage) -> Dict[str, Any]:
    if baggage.units == "piece":
        return {"air:NumberOfPieces": str(baggage.amount)}
    return {"air:MaxWeight": {"Value": str(baggage.amount), "Unit": baggage.units}}


def _fare_infos(quote: FareQuote, info: PricingInfo, fields: SchemaFields) -> Dict[str, Any]:
    fares: Dict[str, Any] = {}
    allowances = list(info.baggage)
    has_common = any(v is not None for v in (quote.effective_date, quote.tour_code, quote.endorsement))
    if not allowances and has_common:
        allowances = [Baggage(units="piece", amount=0.0)]
    for n, baggage in enumerate(allowances, start=1):
        fare: Dict[str, Any] = {"air:BaggageAllowance": _baggage(baggage)}
        if n == 1:
            fare.update(_attrs(EffectiveDate=quote.effective_date, TourCode=quote.tour_code))
            if quote.endorsement is not None:
                fare[fields.endorsement] = [{"Value": quote.endorsement}]
        fares[f"{info.uapi_pricing_info_ref}_F{n}"] = fare
    return fares


def _pricing_info(
    quote: FareQuote,
    info: PricingInfo,
    modifier_key: str,
    fields: SchemaFields,
) -> Dict[str, Any]:
    encoded = _attrs(
        Key=info.uapi_pricing_info_ref,
        AirPricingInfoGroup=info.uapi_pricing_info_group,
        PricingMethod=info.fare_pricing_method,
        PricingType=info.fare_pricing_type,
        TotalPrice=info.total_price,
        BasePrice=info.base_price,
        EquivalentBasePrice=info.equivalent_base_price,
        Taxes=info.taxes,
        LatestTicketingTime=info.time_to_reprice,
    )
    encoded["air:FareCalc"] = format_fare_calculation(info.fare_calculation)
    encoded[fields.booking_traveler_ref] = [p.uapi_passenger_ref for p in info.passengers]
    encoded["air:PassengerType"] = [
        {"Code": code} for code, count in info.passengers_count.items() for _ in range(count)
    ]
    encoded["air:BookingInfo"] = [{"SegmentRef": ref} for ref in quote.uapi_segment_refs]
    if info.taxes_info:
        encoded["air:TaxInfo"] = _taxes(info.taxes_info, fields)
    fares = _fare_infos(quote, info, fields)
    if fares:
        encoded["air:FareInfo"] = fares
    if quote.plating_carrier is not None:
        encoded["air:TicketingModifiersRef"] = {modifier_key: {"Key": modifier_key}}
    return encoded


class _RecordEncoder:
    """Accumulates the shared record nodes while bookings are encoded."""

    def __init__(self, fields: SchemaFields) -> None:
        self.fields = fields
        self.travelers: Dict[str, Dict[str, Any]] = {}
        self.provider_infos: Dict[str, Dict[str, Any]] = {}
        self.remarks: Dict[str, Dict[str, Any]] = {}
        self.passive: List[Dict[str, Any]] = []

    def traveler_key(self, passenger: Passenger) -> str:
        key = passenger.uapi_passenger_ref or f"BT_{len(self.travelers) + 1}"
        if key not in self.travelers:
            self.travelers[key] = _traveler(passenger, self.fields)
        return key

    def provider(self, booking: CanonicalBooking) -> str:
        key = f"PRI_{len(self.provider_infos) + 1}"
        info = _attrs(
            Key=key,
            LocatorCode=booking.pnr,
            CreateDate=booking.created_at,
            ModifiedDate=booking.modified_at,
            HostCreateDate=booking.host_created_at,
            OwningPCC=booking.booking_pcc,
        )
        if booking.split_bookings:
            info["universal:ProviderReservationDetails"] = {"DivideDetails": "true"}
        self.provider_infos[key] = info
        for remark in booking.remarks:
            self.remarks[f"GR_{len(self.remarks) + 1}"] = _attrs(
                ProviderReservationInfoRef=key,
                Category=remark.category,
                **{self.fields.remark_data: remark.text},
            )
        if booking.service_segments:
            self.passive.append(_passive_reservation(key, booking.service_segments))
        return key

    def reservation(self, booking: CanonicalBooking, provider_key: str) -> Dict[str, Any]:
        fields = self.fields
        traveler_keys = [self.traveler_key(p) for p in booking.passengers]
        if booking.emails and traveler_keys:
            emails = self.travelers[traveler_keys[0]].setdefault(fields.email, [])
            emails.extend(
                {"EmailID": e.email, "Type": "To", fields.provider_reservation_info_ref: provider_key}
                for e in booking.emails
            )

        reservation: Dict[str, Any] = _attrs(LocatorCode=booking.uapi_reservation_locator)
        reservation[fields.provider_reservation_info_ref] = provider_key
        reservation[fields.booking_traveler_ref] = traveler_keys
        if booking.airline_locator_info:
            reservation[fields.supplier_locator] = [
                _attrs(
                    CreateDateTime=s.create_date,
                    SupplierCode=s.supplier_code,
                    SupplierLocatorCode=s.locator_code,
                )
                for s in booking.airline_locator_info
            ]
        reservation["air:AirSegment"] = [_air_segment(s) for s in sorted(booking.segments, key=lambda s: s.index)]

        if booking.tickets:
            reservation["air:DocumentInfo"] = {
                "air:TicketInfo": [
                    _attrs(
                        Number=t.number,
                        BookingTravelerRef=t.uapi_passenger_ref,
                        AirPricingInfoRef=t.uapi_pricing_info_ref,
                        **{fields.name: _ticket_name(t.passengers)},
                    )
                    for t in booking.tickets
                ]
            }

        pricing: Dict[str, Any] = {}
        modifiers: Dict[str, Any] = {}
        for quote in booking.fare_quotes:
            modifier_key = f"TM_{provider_key}_{quote.index}"
            if quote.plating_carrier is not None:
                modifiers[modifier_key] = {"Key": modifier_key, "PlatingCarrier": quote.plating_carrier}
            for info in quote.pricing_infos:
                pricing[info.uapi_pricing_info_ref] = _pricing_info(quote, info, modifier_key, fields)
        if pricing:
            reservation["air:AirPricingInfo"] = pricing
        if modifiers:
            reservation["air:TicketingModifiers"] = modifiers
        return reservation


def _ticket_name(passengers: Sequence[Passenger]) -> Dict[str, str]:
    if not passengers:
        return {"First": "", "Last": ""}
    return {"First": passengers[0].first_name, "Last": passengers[0].last_name}


def encode_bookings(bookings: Sequence[CanonicalBooking], schema_version: str = "v47_0") -> Dict[str, Any]:
    """Encode bookings of one universal record into a retrieve-response document.

    Bookings without air data (no reservation locator, segments, fare
    quotes or tickets) are encoded as bare provider reservations.
    """
    fields = SchemaFields(schema_version)
    encoder = _RecordEncoder(fields)
    first = bookings[0] if bookings else None

    bare = all(
        b.uapi_reservation_locator is None and not (b.segments or b.fare_quotes or b.tickets)
        for b in bookings
    )
    reservations: List[Dict[str, Any]] = []
    if bare and first is not None:
        for passenger in first.passengers:
            encoder.traveler_key(passenger)
        for booking in bookings:
            encoder.provider(booking)
    else:
        for booking in bookings:
            reservations.append(encoder.reservation(booking, encoder.provider(booking)))

    record: Dict[str, Any] = {
        "LocatorCode": first.uapi_ur_locator if first else "",
        "Version": str(first.version if first else 0),
        fields.booking_traveler: encoder.travelers,
        "universal:ProviderReservationInfo": encoder.provider_infos,
    }
    if reservations:
        record["air:AirReservation"] = reservations
    if encoder.remarks:
        record[fields.general_remark] = encoder.remarks
    if encoder.passive:
        record["passive:PassiveReservation"] = encoder.passive

    document: Dict[str, Any] = {"universal:UniversalRecord": record}
    if first is not None and first.messages:
        document[fields.response_message] = [
            _attrs(_=m.text, Code=m.code, Type=m.type) for m in first.messages
        ]
    return document
