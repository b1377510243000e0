"""Read host terminal screens.

Screens are plain text; some commands are acknowledged with a boolean
instead. Every reader accepts either and treats non-text as "nothing
found".
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, List, Optional

BOOKING_PNR_PATTERN = re.compile(r"^([A-Z0-9]{6})/", re.MULTILINE)
TICKET_PNR_PATTERN = re.compile(r"RLOC\s+[A-Z0-9]{2}\s+([A-Z0-9]{6})")
ADDED_SEGMENT_PATTERN = re.compile(
    r"^\s*(\d+)\.\s+([A-Z0-9]{2})\s+OPEN\s+([A-Z])\s+(\d{2}[A-Z]{3})\s+([A-Z]{3})([A-Z]{3})\s+(.+?)\s*$",
    re.MULTILINE | re.IGNORECASE,
)


@dataclass(frozen=True)
class AddedSegment:
    """An open segment line as echoed by the host.

    Equality ignores the ordinal: the host renumbers segments freely.
    """

    carrier: str
    booking_class: str
    date: str
    origin: str
    destination: str
    remark: str
    ordinal: int = 1

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AddedSegment):
            return NotImplemented
        return self._identity() == other._identity()

    def __hash__(self) -> int:
        return hash(self._identity())

    def _identity(self) -> tuple[str, ...]:
        return (self.carrier, self.booking_class, self.date, self.origin, self.destination, self.remark)

    @property
    def command(self) -> str:
        """Host command that sells this open segment."""
        return f"0{self.carrier}OPEN{self.booking_class}{self.date}{self.origin}{self.destination}{self.remark}"


def booking_pnr(screen: Any) -> Optional[str]:
    """Locator of the booking displayed on the screen."""
    if not isinstance(screen, str):
        return None
    match = BOOKING_PNR_PATTERN.search(screen)
    return match.group(1) if match else None


def ticket_pnr(screen: Any) -> Optional[str]:
    """Locator shown on a ticket display (``RLOC <host> <PNR>``)."""
    if not isinstance(screen, str):
        return None
    match = TICKET_PNR_PATTERN.search(screen)
    return match.group(1) if match else None


def added_segments(screen: Any) -> List[AddedSegment]:
    if not isinstance(screen, str):
        return []
    return [
        AddedSegment(
            ordinal=int(ordinal),
            carrier=carrier.upper(),
            booking_class=booking_class.upper(),
            date=date.upper(),
            origin=origin.upper(),
            destination=destination.upper(),
            remark=remark.upper(),
        )
        for ordinal, carrier, booking_class, date, origin, destination, remark in ADDED_SEGMENT_PATTERN.findall(screen)
    ]


def has_segment(screen: Any, expected: AddedSegment) -> bool:
    return expected in added_segments(screen)


def format_segment_line(segment: AddedSegment) -> str:
    """Confirmation line the host prints after selling the segment."""
    return (
        f"{segment.ordinal}. {segment.carrier} OPEN {segment.booking_class}  "
        f"{segment.date} {segment.origin}{segment.destination} {segment.remark}"
    ).upper()
