"""Ticket issuance with bounded retries.

The machine resolves the ticketing currency from the booking, issues the
tickets and recovers from the two retryable host conditions:

- FOID required: add a form of identification, re-fetch the booking,
  issue again
- PNR busy: re-fetch the booking for a fresh reservation locator, issue
  again

Each condition is retried at most ``retries_per_condition`` times and
ticket issuance is attempted at most ``max_attempts`` times in total.
Once a bound is reached the vendor error propagates unchanged.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from ..config import TicketingConfig, get_config
from ..domain.errors import (
    CouldNotRetrieveCurrency,
    ErrorKind,
    InvalidPrice,
    TicketingError,
    TicketingFoidRequired,
    TicketingPnrBusy,
)
from ..domain.models import CanonicalBooking
from ..parsing.helpers import currency_of
from ..ports.air import AirServicePort
from .selection import first_booking

BookingFetcher = Callable[[str], List[CanonicalBooking]]


class TicketingStage(Enum):
    FETCH_CURRENCY = "fetch_currency"
    ISSUE = "issue"
    APPLY_FOID = "apply_foid"
    REFETCH = "refetch"
    DONE = "done"


@dataclass
class TicketingState:
    """Call-local progress of one ticketing run."""

    pnr: str
    options: Dict[str, Any] = field(default_factory=dict)
    stage: TicketingStage = TicketingStage.FETCH_CURRENCY
    booking: Optional[CanonicalBooking] = None
    currency: Optional[str] = None
    attempts: int = 0
    retries: Counter = field(default_factory=Counter)
    result: Optional[bool] = None


@dataclass
class TicketingMachine:
    """Issue tickets for a PNR.

    Attributes:
        air: Air service the machine issues, fetches and applies FOID with
        fetch_booking: Booking retrieval, defaults to the air service's
        config: Retry bounds
    """

    air: AirServicePort
    fetch_booking: Optional[BookingFetcher] = None
    config: TicketingConfig = field(default_factory=lambda: get_config().ticketing)

    _logger: logging.Logger = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._logger = logging.getLogger(__name__)
        if self.fetch_booking is None:
            self.fetch_booking = self.air.get_universal_record_by_pnr

    def run(self, pnr: str, **options: Any) -> bool:
        """Issue tickets and return the vendor's ticketing result.

        Raises:
            CouldNotRetrieveCurrency: The booking has no priced total.
            TicketingError: A ticketing failure that is not retryable or
                ran out of retries.
        """
        state = TicketingState(pnr=pnr, options=options)
        while state.stage is not TicketingStage.DONE:
            state = self.step(state)
        self._logger.info("Tickets issued", extra={"pnr": pnr, "attempts": state.attempts})
        return bool(state.result)

    def step(self, state: TicketingState) -> TicketingState:
        self._logger.debug("Ticketing step", extra={"pnr": state.pnr, "stage": state.stage.value})
        if state.stage is TicketingStage.FETCH_CURRENCY:
            state.booking = self._fetch(state.pnr)
            state.currency = self._currency(state.booking)
            state.stage = TicketingStage.ISSUE
        elif state.stage is TicketingStage.ISSUE:
            self._issue(state)
        elif state.stage is TicketingStage.APPLY_FOID:
            assert state.booking is not None
            self.air.foid(state.booking)
            state.stage = TicketingStage.REFETCH
        elif state.stage is TicketingStage.REFETCH:
            state.booking = self._fetch(state.pnr)
            state.stage = TicketingStage.ISSUE
        return state

    def _fetch(self, pnr: str) -> CanonicalBooking:
        assert self.fetch_booking is not None
        return first_booking(self.fetch_booking(pnr), pnr)

    def _currency(self, booking: CanonicalBooking) -> str:
        price = booking.first_total_price
        try:
            return currency_of(price)
        except InvalidPrice as e:
            raise CouldNotRetrieveCurrency(
                f"Could not retrieve currency from {price!r}",
                cause=e,
                pnr=booking.pnr,
            ) from e

    def _issue(self, state: TicketingState) -> None:
        assert state.booking is not None and state.currency is not None
        state.attempts += 1
        try:
            state.result = self.air.ticket(
                state.booking.uapi_reservation_locator,
                state.currency,
                **state.options,
            )
        except (TicketingFoidRequired, TicketingPnrBusy) as e:
            self._check_retry(state, e)
            if isinstance(e, TicketingFoidRequired):
                state.stage = TicketingStage.APPLY_FOID
            else:
                state.stage = TicketingStage.REFETCH
            return
        state.stage = TicketingStage.DONE

    def _check_retry(self, state: TicketingState, error: TicketingError) -> None:
        kind: ErrorKind = error.kind
        if state.retries[kind] >= self.config.retries_per_condition:
            self._logger.warning(
                "Ticketing condition repeated, giving up",
                extra={"pnr": state.pnr, "kind": kind.value},
            )
            raise error
        if state.attempts >= self.config.max_attempts:
            self._logger.warning(
                "Ticketing attempts exhausted",
                extra={"pnr": state.pnr, "attempts": state.attempts},
            )
            raise error
        state.retries[kind] += 1
        self._logger.warning(
            "Retrying ticketing",
            extra={"pnr": state.pnr, "kind": kind.value, "attempt": state.attempts},
        )
