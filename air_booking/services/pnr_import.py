"""PNR import through the host terminal.

When the vendor cannot import a PNR directly, adding a placeholder open
segment to the booking on the host makes it importable. The machine
opens the PNR, sells the segment, saves the booking, checks the saved
screen and then retrieves the record until it has propagated.

Stage failures are wrapped in UnableToImportPnr with the stage error as
the cause. The terminal session is closed exactly once; an error while
closing it propagates as is.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional

from .. import dates
from ..config import ImportConfig, get_config
from ..domain.errors import (
    UnableToAddExtraSegment,
    UnableToImportPnr,
    UnableToOpenPNRInTerminal,
    UnableToSaveBookingWithExtraSegment,
)
from ..domain.models import CanonicalBooking, ImportStage, ImportState
from ..ports.air import AirServicePort
from ..ports.terminal import TerminalFactory, TerminalSessionPort, managed_session
from ..terminal.screen_parser import AddedSegment, booking_pnr, format_segment_line, has_segment

SAVE_COMMAND = "ER"
REDISPLAY_COMMAND = "*R"


@dataclass
class PnrImportMachine:
    """Make a host PNR importable and retrieve it.

    Attributes:
        air: Air service the record is retrieved with
        terminal_factory: Opens host terminal sessions
        config: Placeholder segment and retrieval policy
        today: Reference date for the placeholder segment, today when unset
    """

    air: AirServicePort
    terminal_factory: TerminalFactory
    config: ImportConfig = field(default_factory=lambda: get_config().pnr_import)
    today: Optional[date] = None

    _logger: logging.Logger = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._logger = logging.getLogger(__name__)

    def placeholder_segment(self) -> AddedSegment:
        day = dates.days_from_today(self.config.days_ahead, self.today)
        return AddedSegment(
            carrier=self.config.carrier.upper(),
            booking_class=self.config.booking_class.upper(),
            date=dates.terminal_date(day),
            origin=self.config.origin.upper(),
            destination=self.config.destination.upper(),
            remark=self.config.remark.upper(),
        )

    def run(self, pnr: str) -> List[CanonicalBooking]:
        """Import a PNR and return its bookings.

        Raises:
            UnableToImportPnr: A stage failed; the cause names which one.
        """
        state = ImportState(pnr=pnr)
        expected = self.placeholder_segment()
        self._logger.info("Importing PNR through terminal", extra={"pnr": pnr})

        try:
            opened = self.terminal_factory()
        except Exception as e:
            raise self._failure(state, e) from e

        with managed_session(opened) as session:
            try:
                while state.stage is not ImportStage.CONFIRMED:
                    state = self.step(state, expected, session)
            except Exception as e:
                raise self._failure(state, e) from e

        try:
            while state.stage is not ImportStage.RETRIEVED:
                state = self.step(state, expected)
        except Exception as e:
            raise self._failure(state, e) from e

        self._logger.info(
            "PNR imported",
            extra={"pnr": pnr, "retrievals": state.retrieval_attempts},
        )
        return state.bookings

    def step(
        self,
        state: ImportState,
        expected: AddedSegment,
        session: Optional[TerminalSessionPort] = None,
    ) -> ImportState:
        self._logger.debug("Import step", extra={"pnr": state.pnr, "stage": state.stage.value})
        if state.stage is ImportStage.CONFIRMED:
            state.bookings = self.air.get_universal_record_by_pnr(state.pnr)
            state.retrieval_attempts += 1
            if state.retrieval_attempts >= self.config.confirmation_retrievals:
                state.stage = ImportStage.RETRIEVED
            return state

        assert session is not None
        if state.stage is ImportStage.START:
            screen = session.execute_command(f"*{state.pnr}")
            if booking_pnr(screen) != state.pnr:
                raise UnableToOpenPNRInTerminal(f"Unable to open PNR {state.pnr}", pnr=state.pnr)
            state.stage = ImportStage.OPENED
        elif state.stage is ImportStage.OPENED:
            screen = session.execute_command(expected.command)
            if not has_segment(screen, expected):
                raise UnableToAddExtraSegment(f"Unable to add segment to {state.pnr}", pnr=state.pnr)
            state.added_segment_line = format_segment_line(expected)
            state.stage = ImportStage.SEGMENT_ADDED
        elif state.stage is ImportStage.SEGMENT_ADDED:
            session.execute_command(f"R:{self.config.received_from}")
            session.execute_command(SAVE_COMMAND)
            state.stage = ImportStage.SAVED
        elif state.stage is ImportStage.SAVED:
            screen = session.execute_command(REDISPLAY_COMMAND)
            if booking_pnr(screen) != state.pnr or not has_segment(screen, expected):
                raise UnableToSaveBookingWithExtraSegment(
                    f"Booking {state.pnr} was not saved with the extra segment",
                    pnr=state.pnr,
                )
            state.stage = ImportStage.CONFIRMED
        return state

    def _failure(self, state: ImportState, error: Exception) -> UnableToImportPnr:
        self._logger.warning(
            "PNR import failed",
            extra={"pnr": state.pnr, "stage": state.stage.value, "error": type(error).__name__},
        )
        return UnableToImportPnr(f"Unable to import PNR {state.pnr}", cause=error, pnr=state.pnr)
