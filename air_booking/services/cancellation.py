"""Booking cancellation with ticket eligibility checks.

Coupon statuses across every ticket of the booking decide the path:

- only void or refunded coupons (or no tickets): cancel the booking
- open coupons and nothing else: cancel the tickets first when allowed,
  otherwise refuse with PNRHasOpenTickets
- any other status: refuse with UnableToCancelTicketStatusNotOpen

Every failure reaches the caller as FailedToCancelPnr.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, FrozenSet, List, Optional

from ..domain.errors import (
    FailedToCancelPnr,
    PNRHasOpenTickets,
    UnableToCancelTicketStatusNotOpen,
)
from ..domain.models import CanonicalBooking, CanonicalTicket, CouponStatus
from ..ports.air import AirServicePort
from .selection import primary_booking

BookingFetcher = Callable[[str], List[CanonicalBooking]]
TicketsFetcher = Callable[[str], List[CanonicalTicket]]

CLOSED_STATUSES = frozenset({CouponStatus.VOID, CouponStatus.REFUNDED})


class CancellationStage(Enum):
    FETCH_BOOKING = "fetch_booking"
    FETCH_TICKETS = "fetch_tickets"
    DECIDE = "decide"
    CANCEL_TICKETS = "cancel_tickets"
    REFETCH_BOOKING = "refetch_booking"
    CANCEL_BOOKING = "cancel_booking"
    DONE = "done"


class CouponVerdict(Enum):
    """What the coupon statuses of a booking allow."""

    CLOSED = "closed"
    OPEN = "open"
    OTHER = "other"


def coupon_verdict(statuses: FrozenSet[CouponStatus]) -> CouponVerdict:
    if CouponStatus.OTHER in statuses:
        return CouponVerdict.OTHER
    if CouponStatus.OPEN in statuses:
        return CouponVerdict.OPEN
    return CouponVerdict.CLOSED


@dataclass
class CancellationState:
    pnr: str
    cancel_tickets: bool = False
    stage: CancellationStage = CancellationStage.FETCH_BOOKING
    booking: Optional[CanonicalBooking] = None
    tickets: List[CanonicalTicket] = field(default_factory=list)
    cancelled_tickets: List[str] = field(default_factory=list)


@dataclass
class CancellationMachine:
    """Cancel a booking, voiding its open tickets first when asked to.

    Attributes:
        air: Air service used to void tickets and cancel the booking
        fetch_booking: Booking retrieval
        fetch_tickets: Ticket list retrieval by PNR
    """

    air: AirServicePort
    fetch_booking: BookingFetcher
    fetch_tickets: TicketsFetcher

    _logger: logging.Logger = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._logger = logging.getLogger(__name__)

    def run(self, pnr: str, cancel_tickets: bool = False) -> bool:
        """Cancel the booking and return True.

        Raises:
            FailedToCancelPnr: Wrapping whatever stopped the cancellation.
        """
        state = CancellationState(pnr=pnr, cancel_tickets=cancel_tickets)
        try:
            while state.stage is not CancellationStage.DONE:
                state = self.step(state)
        except Exception as e:
            self._logger.error(
                "Booking cancellation failed",
                extra={"pnr": pnr, "stage": state.stage.value, "error": str(e)},
            )
            raise FailedToCancelPnr(f"Failed to cancel PNR {pnr}", cause=e, pnr=pnr) from e

        self._logger.info(
            "Booking cancelled",
            extra={"pnr": pnr, "cancelled_tickets": state.cancelled_tickets},
        )
        return True

    def step(self, state: CancellationState) -> CancellationState:
        self._logger.debug("Cancellation step", extra={"pnr": state.pnr, "stage": state.stage.value})
        if state.stage is CancellationStage.FETCH_BOOKING:
            state.booking = primary_booking(self.fetch_booking(state.pnr), state.pnr)
            state.stage = CancellationStage.FETCH_TICKETS
        elif state.stage is CancellationStage.FETCH_TICKETS:
            state.tickets = list(self.fetch_tickets(state.pnr))
            state.stage = CancellationStage.DECIDE
        elif state.stage is CancellationStage.DECIDE:
            state.stage = self._decide(state)
        elif state.stage is CancellationStage.CANCEL_TICKETS:
            for ticket in state.tickets:
                if ticket.has_open_coupons:
                    self.air.cancel_ticket(ticket)
                    state.cancelled_tickets.append(ticket.ticket_number)
            state.stage = CancellationStage.REFETCH_BOOKING
        elif state.stage is CancellationStage.REFETCH_BOOKING:
            state.booking = primary_booking(self.fetch_booking(state.pnr), state.pnr)
            state.stage = CancellationStage.CANCEL_BOOKING
        elif state.stage is CancellationStage.CANCEL_BOOKING:
            assert state.booking is not None
            self.air.cancel_booking(state.booking)
            state.stage = CancellationStage.DONE
        return state

    def _decide(self, state: CancellationState) -> CancellationStage:
        statuses = frozenset(c.status for ticket in state.tickets for c in ticket.coupons)
        verdict = coupon_verdict(statuses)
        if verdict is CouponVerdict.OTHER:
            raise UnableToCancelTicketStatusNotOpen(
                f"PNR {state.pnr} has tickets with coupons that are not open",
                pnr=state.pnr,
            )
        if verdict is CouponVerdict.OPEN:
            if not state.cancel_tickets:
                raise PNRHasOpenTickets(f"PNR {state.pnr} has open tickets", pnr=state.pnr)
            return CancellationStage.CANCEL_TICKETS
        return CancellationStage.REFETCH_BOOKING
