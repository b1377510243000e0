"""Terminal layer - Host screen reading."""

from .screen_parser import (
    AddedSegment,
    added_segments,
    booking_pnr,
    format_segment_line,
    has_segment,
    ticket_pnr,
)

__all__ = [
    "AddedSegment",
    "added_segments",
    "booking_pnr",
    "format_segment_line",
    "has_segment",
    "ticket_pnr",
]
