"""Small pure helpers shared by the document parsers."""

from __future__ import annotations

import re
from typing import Any, Callable, Dict, Hashable, Iterable, List, Mapping, Optional, Sequence, TypeVar

from ..domain.errors import FareCalculationInvalid, HistogramTypeInvalid, InvalidPrice
from ..domain.models import (
    Baggage,
    Commission,
    FareCalculation,
    Passenger,
    ResponseMessage,
    Segment,
    TaxDetail,
    TaxInfo,
)
from .fields import SchemaFields

T = TypeVar("T")

FARE_CALCULATION_PATTERN = re.compile(r"^([\s\S]+)END($|\s)")
FIRST_ORIGIN_PATTERN = re.compile(r"^(?:s-)?(?:\d{2}[a-z]{3}\d{2}\s+)?([a-z]{3})", re.IGNORECASE)
ROE_PATTERN = re.compile(r"ROE((?:\d+\.)?\d+)")
PARENTHESIS_PATTERN = re.compile(r"\s*\(")
CURRENCY_PATTERN = re.compile(r"^([A-Z]{3})")
PCC_PATTERN = re.compile(r"PCC\s*[:\-]?\s*([A-Z0-9]{3,4})\b", re.IGNORECASE)


# ---------------------------------------------------------------------------
# Node access
# ---------------------------------------------------------------------------


def values_of(node: Any) -> List[Any]:
    """Children of a keyed mapping or a list node, in document order."""
    if node is None:
        return []
    if isinstance(node, Mapping):
        return list(node.values())
    if isinstance(node, (list, tuple)):
        return list(node)
    return [node]


def first_value(node: Any) -> Optional[Any]:
    values = values_of(node)
    return values[0] if values else None


def response_messages(document: Mapping[str, Any], fields: SchemaFields) -> List[Mapping[str, Any]]:
    return values_of(document.get(fields.response_message))


def to_messages(raw: Iterable[Mapping[str, Any]]) -> tuple[ResponseMessage, ...]:
    return tuple(
        ResponseMessage(text=m.get("_", ""), code=m.get("Code"), type=m.get("Type"))
        for m in raw
    )


# ---------------------------------------------------------------------------
# Algorithms
# ---------------------------------------------------------------------------


def count_histogram(items: Any) -> Dict[Any, int]:
    """Count equal values by sorting then counting adjacent runs.

    Mapping items are reduced to their ``Code`` first. Items without a
    code are counted under ``None`` and sort after every code.

    >>> count_histogram(["ADT", "CNN", "ADT"])
    {'ADT': 2, 'CNN': 1}

    Raises:
        HistogramTypeInvalid: If items is not a list or tuple.
    """
    if not isinstance(items, (list, tuple)):
        raise HistogramTypeInvalid(missing="passenger type list")

    codes = [item.get("Code") if isinstance(item, Mapping) else item for item in items]
    codes.sort(key=lambda code: (code is None, str(code)))

    histogram: Dict[Any, int] = {}
    previous: Any = object()
    for code in codes:
        if code != previous:
            histogram[code] = 1
        else:
            histogram[code] += 1
        previous = code
    return histogram


def group_segments(items: Sequence[T], key: Callable[[T], Hashable]) -> List[List[T]]:
    """Partition items by key, keeping first-seen group order and item order."""
    groups: Dict[Hashable, List[T]] = {}
    for item in items:
        groups.setdefault(key(item), []).append(item)
    return list(groups.values())


def parse_fare_calculation(line: Optional[str]) -> FareCalculation:
    """Parse a fare-calculation line ending with the END marker.

    The first parenthesis (with the whitespace before it) becomes a period.

    Raises:
        FareCalculationInvalid: If the line does not match the pattern.
    """
    match = FARE_CALCULATION_PATTERN.match(line) if isinstance(line, str) else None
    if match is None:
        raise FareCalculationInvalid(f"Fare calculation line is invalid: {line!r}")

    first_origin = FIRST_ORIGIN_PATTERN.match(line)
    roe = ROE_PATTERN.search(line)
    return FareCalculation(
        fare_calculation=PARENTHESIS_PATTERN.sub(".", match.group(1), count=1),
        first_origin=first_origin.group(1) if first_origin else None,
        roe=roe.group(1) if roe else None,
    )


def is_fare_calculation(line: Any) -> bool:
    return isinstance(line, str) and FARE_CALCULATION_PATTERN.match(line) is not None


def parse_commission(raw: Mapping[str, Any]) -> Commission:
    """Percent-of-base commissions become 'Z', anything else 'ZA'."""
    if raw.get("Type") == "PercentBase":
        return Commission(type="Z", value=float(raw["Percentage"]))
    return Commission(type="ZA", value=float(raw["Amount"][3:]))


# ---------------------------------------------------------------------------
# Prices
# ---------------------------------------------------------------------------


def currency_of(price: Optional[str]) -> str:
    """Three-letter currency prefix of a price string.

    Raises:
        InvalidPrice: If the price is missing or has no currency prefix.
    """
    match = CURRENCY_PATTERN.match(price) if isinstance(price, str) else None
    if match is None:
        raise InvalidPrice(f"Price has no currency prefix: {price!r}")
    return match.group(1)


def amount_of(price: str) -> float:
    currency_of(price)
    try:
        return float(price[3:])
    except ValueError as e:
        raise InvalidPrice(f"Price has no numeric amount: {price!r}", cause=e) from e


def zero_price_like(sibling: str) -> str:
    """A zero amount in the currency of a sibling price."""
    return f"{sibling[:3]}0"


def extract_pcc(text: Optional[str]) -> Optional[str]:
    """Pseudo city code mentioned in a fault message, if any."""
    if not text:
        return None
    match = PCC_PATTERN.search(text)
    return match.group(1).upper() if match else None


# ---------------------------------------------------------------------------
# Record builders
# ---------------------------------------------------------------------------


def build_passenger(traveler: Mapping[str, Any], fields: SchemaFields) -> Passenger:
    name = traveler.get(fields.booking_traveler_name) or {}
    return Passenger(
        first_name=name.get("First", "") + name.get("Prefix", ""),
        last_name=name.get("Last", ""),
        age_category=traveler.get("TravelerType"),
        birth_date=traveler.get("DOB"),
        gender=traveler.get("Gender"),
        uapi_passenger_ref=traveler.get("Key"),
    )


def build_segment(raw: Mapping[str, Any], index: int, **overrides: Any) -> Segment:
    group = raw.get("Group")
    values: Dict[str, Any] = dict(
        index=index,
        origin=raw.get("Origin", ""),
        destination=raw.get("Destination", ""),
        departure=raw.get("DepartureTime"),
        arrival=raw.get("ArrivalTime"),
        airline=raw.get("Carrier"),
        flight_number=raw.get("FlightNumber"),
        group=int(group) if group is not None else None,
        status=raw.get("Status"),
        service_class=raw.get("CabinClass"),
        booking_class=raw.get("ClassOfService"),
        plane=raw.get("Equipment"),
        duration=raw.get("FlightTime"),
        uapi_segment_ref=raw.get("Key"),
    )
    values.update(overrides)
    return Segment(**values)


def parse_taxes(node: Any, fields: SchemaFields) -> tuple[TaxInfo, ...]:
    return tuple(
        TaxInfo(
            type=tax.get("Category"),
            value=tax.get("Amount"),
            details=tuple(
                TaxDetail(airport=d.get("OriginAirport"), value=d.get("Amount"))
                for d in values_of(tax.get(fields.tax_detail))
            ),
        )
        for tax in values_of(node)
    )


def parse_baggage(allowance: Optional[Mapping[str, Any]]) -> Baggage:
    """Free allowance as pieces or weight; no allowance means zero pieces."""
    allowance = allowance or {}
    if allowance.get("air:NumberOfPieces") is not None:
        return Baggage(units="piece", amount=float(allowance["air:NumberOfPieces"]))
    weight = allowance.get("air:MaxWeight")
    if weight and weight.get("Value") is not None:
        return Baggage(units=str(weight.get("Unit", "kilograms")).lower(), amount=float(weight["Value"]))
    return Baggage(units="piece", amount=0.0)
