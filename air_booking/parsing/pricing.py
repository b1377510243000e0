"""Price responses -> PricedItinerary."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping

from ..domain.errors import MissingRequiredField, PlatingCarrierNotSet
from ..domain.models import Direction, PricedItinerary, Segment
from .fields import SchemaFields
from .helpers import (
    amount_of,
    build_segment,
    count_histogram,
    group_segments,
    parse_taxes,
    values_of,
)

logger = logging.getLogger(__name__)


def _pricing_solutions(document: Mapping[str, Any]) -> List[Mapping[str, Any]]:
    result = document.get("air:AirPriceResult") or {}
    solutions = values_of(result.get("air:AirPricingSolution"))
    if not solutions:
        raise MissingRequiredField(missing="air:AirPricingSolution")
    return solutions


def parse_price(document: Mapping[str, Any], fields: SchemaFields) -> PricedItinerary:
    """Normalize a price response, picking the cheapest solution.

    Raises:
        MissingRequiredField: No pricing solution or itinerary.
        PlatingCarrierNotSet: The first pricing info has no plating carrier.
    """
    solutions = _pricing_solutions(document)
    solution = solutions[0]
    if len(solutions) > 1:
        logger.info("Several pricing solutions, keeping the cheapest", extra={"solutions": len(solutions)})
        solution = min(solutions, key=lambda s: amount_of(s.get("TotalPrice")))

    pricing_infos = values_of(solution.get("air:AirPricingInfo"))
    if not pricing_infos:
        raise MissingRequiredField(missing="air:AirPricingInfo")
    fare = pricing_infos[0]
    plating_carrier = fare.get("PlatingCarrier")
    if not plating_carrier:
        raise PlatingCarrierNotSet(missing="PlatingCarrier")

    itinerary = document.get("air:AirItinerary") or {}
    raw_segments = values_of(itinerary.get("air:AirSegment"))
    if not raw_segments:
        raise MissingRequiredField(missing="air:AirSegment")

    booking_infos = values_of(fare.get("air:BookingInfo"))
    segments: List[Segment] = []
    for index, raw in enumerate(raw_segments, start=1):
        info = next((b for b in booking_infos if b.get("SegmentRef") == raw.get("Key")), {})
        segments.append(
            build_segment(
                raw,
                index,
                service_class=info.get("CabinClass"),
                booking_class=info.get("BookingCode"),
            )
        )

    directions = tuple(
        Direction(
            origin=leg[0].origin,
            destination=leg[-1].destination,
            plating_carrier=plating_carrier,
            segments=tuple(leg),
        )
        for leg in group_segments(segments, key=lambda s: s.group)
    )

    passenger_counts: Dict[str, int] = {}
    for info in pricing_infos:
        for code, count in count_histogram(values_of(info.get("air:PassengerType"))).items():
            passenger_counts[code] = passenger_counts.get(code, 0) + count

    return PricedItinerary(
        uapi_pricing_info_ref=solution.get("Key"),
        uapi_pricing_info_group=fare.get("AirPricingInfoGroup"),
        plating_carrier=plating_carrier,
        total_price=solution.get("TotalPrice"),
        base_price=solution.get("BasePrice"),
        equivalent_base_price=solution.get("EquivalentBasePrice"),
        taxes=solution.get("Taxes"),
        directions=directions,
        passenger_counts=passenger_counts,
        taxes_info=parse_taxes(fare.get("air:TaxInfo"), fields),
        time_to_reprice=fare.get("LatestTicketingTime"),
    )


def parse_passengers_per_reservation(document: Mapping[str, Any]) -> Dict[str, Dict[str, int]]:
    """Passenger-type histogram per pricing info of the first solution.

    Raises:
        HistogramTypeInvalid: A pricing info's passenger types are not a list.
    """
    solution = _pricing_solutions(document)[0]
    pricing = solution.get("air:AirPricingInfo") or {}
    return {key: count_histogram(info.get("air:PassengerType")) for key, info in pricing.items()}
