"""Tests for the terminal-driven PNR import."""

from datetime import date

import pytest

from air_booking.config import ImportConfig
from air_booking.domain.errors import (
    UnableToAddExtraSegment,
    UnableToImportPnr,
    UnableToOpenPNRInTerminal,
    UnableToRetrieve,
    UnableToSaveBookingWithExtraSegment,
)
from air_booking.domain.models import ImportStage, ImportState
from air_booking.services import PnrImportMachine

TODAY = date(2026, 1, 12)
SEGMENT_COMMAND = "0OKOPENY23FEBDOHODMNO1"
SEGMENT_LINE = "1. OK OPEN Y  23FEB DOHODM NO1"
SUCCESS_SCREENS = ["PNR001/", SEGMENT_LINE, True, True, "PNR001/\n" + SEGMENT_LINE]


@pytest.fixture
def bookings(booking_factory):
    return [booking_factory()]


@pytest.fixture
def build_machine(air, bookings, terminal_factory):
    air.get_universal_record_by_pnr.return_value = bookings

    def build(screens, close_error=None, config=None):
        factory, terminal = terminal_factory(screens, close_error)
        machine = PnrImportMachine(air, factory, config or ImportConfig(), today=TODAY)
        return machine, terminal

    return build


class TestPnrImport:
    """Test suite for PnrImportMachine.run."""

    def test_success(self, build_machine, air, bookings):
        machine, terminal = build_machine(SUCCESS_SCREENS)
        assert machine.run("PNR001") == bookings
        assert terminal.commands == ["*PNR001", SEGMENT_COMMAND, "R:UAPI", "ER", "*R"]
        assert terminal.closed == 1
        assert air.get_universal_record_by_pnr.call_count == 2

    def test_session_is_closed_before_retrieval(self, build_machine, air, bookings):
        machine, terminal = build_machine(SUCCESS_SCREENS)
        closed_at_retrieval = []

        def retrieve(pnr):
            closed_at_retrieval.append(terminal.closed)
            return bookings

        air.get_universal_record_by_pnr.side_effect = retrieve
        machine.run("PNR001")
        assert closed_at_retrieval == [1, 1]

    def test_confirmation_retrievals_are_configurable(self, build_machine, air):
        machine, _ = build_machine(SUCCESS_SCREENS, config=ImportConfig(confirmation_retrievals=1))
        machine.run("PNR001")
        assert air.get_universal_record_by_pnr.call_count == 1

    def test_placeholder_segment(self, build_machine):
        machine, _ = build_machine([])
        segment = machine.placeholder_segment()
        assert segment.date == "23FEB"
        assert segment.command == SEGMENT_COMMAND

    def test_placeholder_follows_config(self, build_machine):
        config = ImportConfig(carrier="ps", origin="kbp", destination="lhr", days_ahead=1)
        machine, _ = build_machine([], config=config)
        assert machine.placeholder_segment().command == "0PSOPENY13JANKBPLHRNO1"


class TestPnrImportFailures:
    """Every stage failure is wrapped and the session is closed once."""

    @pytest.mark.parametrize(
        "screens, stage_error",
        [
            (["NO SUCH PNR"], UnableToOpenPNRInTerminal),
            (["PNR002/"], UnableToOpenPNRInTerminal),
            ([True], UnableToOpenPNRInTerminal),
            (["PNR001/", "UNABLE TO SELL"], UnableToAddExtraSegment),
            (["PNR001/", SEGMENT_LINE, True, True, "PNR001/\n"], UnableToSaveBookingWithExtraSegment),
            (["PNR001/", SEGMENT_LINE, True, True, SEGMENT_LINE], UnableToSaveBookingWithExtraSegment),
        ],
    )
    def test_stage_failure(self, build_machine, air, screens, stage_error):
        machine, terminal = build_machine(screens)
        with pytest.raises(UnableToImportPnr) as exc_info:
            machine.run("PNR001")
        assert isinstance(exc_info.value.caused_by, stage_error)
        assert exc_info.value.pnr == "PNR001"
        assert terminal.closed == 1
        air.get_universal_record_by_pnr.assert_not_called()

    def test_terminal_error_is_wrapped(self, build_machine):
        machine, terminal = build_machine([ConnectionError("session lost")])
        with pytest.raises(UnableToImportPnr) as exc_info:
            machine.run("PNR001")
        assert isinstance(exc_info.value.caused_by, ConnectionError)
        assert terminal.closed == 1

    def test_session_open_failure_is_wrapped(self, air):
        error = ConnectionError("no terminal available")

        def factory():
            raise error

        machine = PnrImportMachine(air, factory, ImportConfig(), today=TODAY)
        with pytest.raises(UnableToImportPnr) as exc_info:
            machine.run("PNR001")
        assert exc_info.value.caused_by is error
        assert exc_info.value.pnr == "PNR001"
        air.get_universal_record_by_pnr.assert_not_called()

    def test_retrieval_failure_is_wrapped(self, build_machine, air):
        air.get_universal_record_by_pnr.side_effect = UnableToRetrieve("UNABLE TO RETRIEVE")
        machine, terminal = build_machine(SUCCESS_SCREENS)
        with pytest.raises(UnableToImportPnr) as exc_info:
            machine.run("PNR001")
        assert isinstance(exc_info.value.caused_by, UnableToRetrieve)
        assert terminal.closed == 1

    def test_close_error_propagates(self, build_machine, air):
        machine, terminal = build_machine(SUCCESS_SCREENS, close_error=RuntimeError("close failed"))
        with pytest.raises(RuntimeError, match="close failed"):
            machine.run("PNR001")
        assert terminal.closed == 1
        air.get_universal_record_by_pnr.assert_not_called()

    def test_close_error_keeps_stage_error_as_context(self, build_machine):
        machine, terminal = build_machine(["NO SUCH PNR"], close_error=RuntimeError("close failed"))
        with pytest.raises(RuntimeError) as exc_info:
            machine.run("PNR001")
        assert isinstance(exc_info.value.__context__, UnableToImportPnr)
        assert terminal.closed == 1


def test_step_records_added_segment_line(build_machine):
    machine, terminal = build_machine([SEGMENT_LINE])
    state = ImportState(pnr="PNR001", stage=ImportStage.OPENED)
    state = machine.step(state, machine.placeholder_segment(), terminal)
    assert state.stage is ImportStage.SEGMENT_ADDED
    assert state.added_segment_line == SEGMENT_LINE
