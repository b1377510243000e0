"""Tests for host terminal screen reading."""

import pytest

from air_booking.terminal.screen_parser import (
    AddedSegment,
    added_segments,
    booking_pnr,
    format_segment_line,
    has_segment,
    ticket_pnr,
)

BOOKING_SCREEN = """PNR001/WS QSBYC DPBVWS  AG 99999992 10JAN
  1.1DOE/JOHNMR
 1 PS 101Y 01MAR KBPAMS HK1   800A 1000A O*         SU   E  1
 2. OK OPEN Y  23FEB DOHODM NO1
"""

TICKET_SCREEN = """TKT: 566 0000 000001     NAME: DOE/JOHNMR
 ISSUED: 10JAN26          FOP:CASH
 PSEUDO: 7J8J  PLATING CARRIER: PS  ISO: UA  IATA: 99999992
   USE  CR FLT  CLS  DATE BRDOFF TIME  ST F/B        FARE   CPN
   OPEN PS 101   Y  01MAR KBPAMS 0800  OK YOW               1
RLOC 1G PNR001    PS ABC123
"""

NON_IATA_TICKET_SCREEN = """TKT: 566 0000 000002     NAME: DOE/JANE
 PSEUDO: 7J8J  PLATING CARRIER: PS  ISO: UA  IATA: NON IATA
RLOC 1G PNR002
"""


@pytest.fixture
def segment():
    return AddedSegment(carrier="OK", booking_class="Y", date="23FEB", origin="DOH", destination="ODM", remark="NO1")


class TestBookingPnr:
    def test_reads_locator(self):
        assert booking_pnr(BOOKING_SCREEN) == "PNR001"

    def test_locator_on_later_line(self):
        assert booking_pnr("> *PNR001\nPNR001/WS QSBYC\n") == "PNR001"

    @pytest.mark.parametrize("screen", [True, False, None, "", "NO SUCH BOOKING"])
    def test_nothing_found(self, screen):
        assert booking_pnr(screen) is None


class TestTicketPnr:
    """Test suite for ticket display reading."""

    def test_reads_rloc(self):
        assert ticket_pnr(TICKET_SCREEN) == "PNR001"

    def test_non_iata_screen(self):
        assert ticket_pnr(NON_IATA_TICKET_SCREEN) == "PNR002"

    @pytest.mark.parametrize("screen", [True, None, "TICKET NUMBER NOT FOUND"])
    def test_nothing_found(self, screen):
        assert ticket_pnr(screen) is None


class TestAddedSegments:
    def test_reads_open_segment(self, segment):
        found = added_segments(BOOKING_SCREEN)
        assert found == [segment]
        assert found[0].ordinal == 2

    def test_has_segment_ignores_ordinal(self, segment):
        assert has_segment(" 7. OK OPEN Y  23FEB DOHODM NO1", segment)

    def test_has_segment_is_case_insensitive(self, segment):
        assert has_segment("1. ok open y  23feb dohodm no1", segment)

    def test_other_date_does_not_match(self, segment):
        assert not has_segment("1. OK OPEN Y  24FEB DOHODM NO1", segment)

    def test_boolean_screen_has_no_segments(self, segment):
        assert added_segments(True) == []
        assert not has_segment(True, segment)

    def test_command(self, segment):
        assert segment.command == "0OKOPENY23FEBDOHODMNO1"

    def test_format_round_trips(self, segment):
        line = format_segment_line(segment)
        assert line == "1. OK OPEN Y  23FEB DOHODM NO1"
        assert has_segment(line, segment)

    def test_equality_and_hash_ignore_ordinal(self, segment):
        renumbered = AddedSegment("OK", "Y", "23FEB", "DOH", "ODM", "NO1", ordinal=5)
        assert renumbered == segment
        assert hash(renumbered) == hash(segment)
