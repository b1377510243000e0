"""Tests for ticket records and acknowledgement documents."""

import pytest

from air_booking.domain.errors import (
    CancelResponseNotFound,
    DuplicateTicketFound,
    MissingRequiredField,
    PlacingInQueueError,
    PlacingInQueueMessageMissing,
    TicketCancelResultUnknown,
    TicketInfoIncomplete,
    TicketingCreditCardRejected,
    TicketingFailed,
    TicketingFoidRequired,
    TicketingFopUnavailable,
    TicketingPnrBusy,
    TicketingResponseMissing,
    TicketingTicketsMissing,
    UnableToRetrieveTicket,
    UnhandledError,
    VendorServiceError,
)
from air_booking.domain.models import Commission, CouponStatus, Passenger
from air_booking.parsing.normalizer import ResponseNormalizer

MESSAGES = "common_v47_0:ResponseMessage"
TICKET_NUMBER = "5660000000001"


@pytest.fixture
def normalizer():
    return ResponseNormalizer()


class TestTicket:
    """Test suite for ResponseNormalizer.ticket."""

    def test_ticket_fields(self, normalizer, ticket_document):
        ticket = normalizer.ticket(ticket_document)
        assert ticket.ticket_number == TICKET_NUMBER
        assert ticket.pnr == "PNR001"
        assert ticket.passengers == (Passenger("JOHNMR", "DOE"),)
        assert ticket.uapi_ur_locator == "UR0001"
        assert ticket.uapi_reservation_locator == "RES001"
        assert ticket.plating_carrier == "PS"
        assert ticket.ticketing_pcc == "7J8J"
        assert ticket.iata_number == "99999992"
        assert ticket.tour_code == "TC01"
        assert ticket.is_conjunction_ticket is False

    def test_prices(self, normalizer, ticket_document):
        ticket = normalizer.ticket(ticket_document)
        assert ticket.price_info_available is True
        assert ticket.price_info_details_available is True
        assert ticket.total_price == "UAH1500.00"
        assert ticket.base_price == "EUR40.00"
        assert ticket.taxes == "UAH300.00"
        assert ticket.no_adc is False
        assert ticket.commission == Commission("Z", 1.0)
        assert ticket.fare_pricing_method == "Guaranteed"

    def test_form_of_payment_is_masked(self, normalizer, ticket_document):
        ticket = normalizer.ticket(ticket_document)
        assert ticket.form_of_payment == ("CCVIXXXXXXXXXXXX1111",)

    def test_coupons(self, normalizer, ticket_document):
        coupons = normalizer.ticket(ticket_document).coupons
        assert [c.coupon_number for c in coupons] == ["1", "2"]
        first = coupons[0]
        assert (first.origin, first.destination) == ("KBP", "AMS")
        assert first.status is CouponStatus.OPEN
        assert first.status_code == "O"
        assert first.airline == "PS"
        assert first.flight_number == "101"
        assert first.fare_basis_code == "YOW"
        assert first.service_class == "Economy"
        assert first.ticket_number == TICKET_NUMBER

    def test_stopover_comes_from_following_coupon(self, normalizer, ticket_document):
        coupons = ticket_document["air:ETR"]["air:Ticket"][TICKET_NUMBER]["air:Coupon"]
        coupons["CPN2"]["StopoverCode"] = "false"
        parsed = normalizer.ticket(ticket_document).coupons
        assert parsed[0].stopover is False
        assert parsed[1].stopover is True

    def test_unknown_status_is_other(self, normalizer, etr_factory):
        ticket = normalizer.ticket({"air:ETR": etr_factory(statuses=("O", "A"))})
        assert [c.status for c in ticket.coupons] == [CouponStatus.OPEN, CouponStatus.OTHER]
        assert ticket.coupons[1].status_code == "A"
        assert ticket.has_open_coupons

    def test_fare_calculation(self, normalizer, ticket_document):
        calc = normalizer.ticket(ticket_document).fare_calculation
        assert calc.fare_calculation == "IEV PS AMS 40.00NUC40.00"
        assert calc.first_origin == "IEV"

    def test_fare_calculation_falls_back_to_pricing_info(self, normalizer, ticket_document):
        etr = ticket_document["air:ETR"]
        etr["air:FareCalc"] = "NOT A FARE CALC"
        etr["air:AirPricingInfo"]["API1"]["air:FareCalc"] = "KBP PS LHR 90.00NUC90.00END"
        assert normalizer.ticket(ticket_document).fare_calculation.first_origin == "KBP"

    def test_without_pricing_info(self, normalizer, ticket_document):
        etr = ticket_document["air:ETR"]
        del etr["air:AirPricingInfo"]
        ticket = normalizer.ticket(ticket_document)
        assert ticket.price_info_available is False
        assert ticket.price_info_details_available is False
        assert ticket.total_price is None
        assert ticket.coupons[0].service_class is None

    def test_missing_total_becomes_zero_price(self, normalizer, ticket_document):
        del ticket_document["air:ETR"]["air:AirPricingInfo"]["API1"]["TotalPrice"]
        assert normalizer.ticket(ticket_document).total_price == "UAH0"

    def test_no_adc_without_total(self, normalizer, ticket_document):
        del ticket_document["air:ETR"]["TotalPrice"]
        assert normalizer.ticket(ticket_document).no_adc is True

    def test_exchanged_tickets(self, normalizer, ticket_document):
        ticket = ticket_document["air:ETR"]["air:Ticket"][TICKET_NUMBER]
        ticket["air:ExchangedTicketInfo"] = [{"Number": "5669999999999"}]
        assert normalizer.ticket(ticket_document).exchanged_tickets == ("5669999999999",)

    def test_conjunction_ticket(self, normalizer, etr_factory):
        etr = etr_factory(statuses=("O", "O", "O", "O"))
        coupons = list(etr["air:Ticket"][TICKET_NUMBER]["air:Coupon"].values())
        etr["air:Ticket"] = {
            TICKET_NUMBER: {"TicketNumber": TICKET_NUMBER, "air:Coupon": coupons[:2]},
            "5660000000002": {"TicketNumber": "5660000000002", "air:Coupon": coupons[2:]},
        }
        ticket = normalizer.ticket({"air:ETR": etr})
        assert ticket.is_conjunction_ticket is True
        assert ticket.ticket_number == TICKET_NUMBER
        assert [d.ticket_number for d in ticket.documents] == [TICKET_NUMBER, "5660000000002"]
        assert [c.ticket_number for c in ticket.coupons] == [TICKET_NUMBER] * 2 + ["5660000000002"] * 2

    def test_several_records(self, normalizer, etr_factory):
        document = {"air:ETR": {"E1": etr_factory(), "E2": etr_factory("5660000000009")}}
        tickets = normalizer.ticket(document)
        assert [t.ticket_number for t in tickets] == [TICKET_NUMBER, "5660000000009"]

    def test_ticket_without_coupons(self, normalizer, ticket_document):
        ticket_document["air:ETR"]["air:Ticket"][TICKET_NUMBER]["air:Coupon"] = {}
        with pytest.raises(MissingRequiredField):
            normalizer.ticket(ticket_document)

    def test_tickets_not_issued_message_is_tolerated(self, normalizer, ticket_document):
        ticket_document[MESSAGES] = [{"_": "Tickets not issued", "Code": "12009", "Type": "Error"}]
        assert normalizer.ticket(ticket_document).ticket_number == TICKET_NUMBER


class TestTicketErrors:
    def test_duplicate_ticket(self, normalizer):
        document = {"air:DocumentFailureInfo": {"Code": "3273", "Message": "Duplicate ticket number"}}
        with pytest.raises(DuplicateTicketFound) as exc_info:
            normalizer.ticket(document)
        assert exc_info.value.vendor_code == "3273"

    def test_other_document_failure(self, normalizer):
        document = {"air:DocumentFailureInfo": {"Code": "1", "Message": "HOST ERROR DURING TICKET RETRIEVE"}}
        with pytest.raises(UnableToRetrieveTicket):
            normalizer.ticket(document)

    def test_error_message(self, normalizer, ticket_document):
        ticket_document[MESSAGES] = [{"_": "Ticket not found", "Code": "1", "Type": "Error"}]
        with pytest.raises(VendorServiceError):
            normalizer.ticket(ticket_document)

    def test_no_record(self, normalizer):
        with pytest.raises(UnhandledError):
            normalizer.ticket({})

    def test_missing_provider_locator(self, normalizer, etr_factory):
        with pytest.raises(TicketInfoIncomplete):
            normalizer.ticket({"air:ETR": etr_factory(provider_locator=None)})

    def test_missing_provider_locator_allowed(self, normalizer, etr_factory):
        """A permissive normalizer accepts records without a PNR."""
        ticket = normalizer.with_options(True).ticket({"air:ETR": etr_factory(provider_locator=None)})
        assert ticket.pnr is None

    def test_with_options_keeps_classifier(self, normalizer):
        assert normalizer.with_options(True).classifier is normalizer.classifier
        assert normalizer.with_options(False).context.allow_no_provider_locator is False


class TestTickets:
    def test_single_record_becomes_list(self, normalizer, ticket_document):
        tickets = normalizer.tickets(ticket_document)
        assert [t.ticket_number for t in tickets] == [TICKET_NUMBER]

    def test_has_no_tickets(self, normalizer):
        document = {"faultcode": "Server.Business", "faultstring": "Reservation RES001 has no tickets"}
        assert normalizer.tickets(document) == []


class TestTicketingResult:
    """Test suite for ticket issuance responses."""

    @pytest.fixture
    def issued(self, etr_factory):
        return {MESSAGES: [{"_": "OK:Ticket issued", "Type": "Info"}], "air:ETR": etr_factory()}

    def test_issued(self, normalizer, issued):
        assert normalizer.ticketing_result(issued) is True

    def test_acknowledged_without_records(self, normalizer, issued):
        del issued["air:ETR"]
        assert normalizer.ticketing_result(issued) is False

    def test_record_without_ticket_number(self, normalizer, issued):
        issued["air:ETR"]["air:Ticket"] = {"T1": {"TicketNumber": ""}}
        with pytest.raises(TicketingTicketsMissing):
            normalizer.ticketing_result(issued)

    def test_missing_acknowledgement(self, normalizer, issued):
        issued[MESSAGES] = [{"_": "Something else", "Type": "Info"}]
        with pytest.raises(TicketingResponseMissing):
            normalizer.ticketing_result(issued)

    @pytest.mark.parametrize(
        "code, message, expected",
        [
            ("1", "VALID FORM OF ID  FOID  REQUIRED", TicketingFoidRequired),
            ("3979", "PNR BUSY", TicketingPnrBusy),
            ("12008", "FOP SELECTED NOT AUTHORIZED FOR CARRIER", TicketingFopUnavailable),
            ("12008", "CARD ISSUER REFUSE CREDIT", TicketingCreditCardRejected),
            ("12008", "UNKNOWN HOST ERROR", TicketingFailed),
            ("2", "SOMETHING ELSE", TicketingFailed),
        ],
    )
    def test_failures(self, normalizer, code, message, expected):
        document = {"air:TicketFailureInfo": {"Code": code, "Message": message}}
        with pytest.raises(expected) as exc_info:
            normalizer.ticketing_result(document)
        assert type(exc_info.value) is expected
        assert exc_info.value.vendor_code == code


class TestAcknowledgements:
    def test_ticket_cancelled(self, normalizer):
        assert normalizer.ticket_cancelled({"air:VoidResultInfo": {"ResultType": "Success"}}) is True

    @pytest.mark.parametrize("document", [{}, {"air:VoidResultInfo": {"ResultType": "Failure"}}])
    def test_ticket_cancel_unknown(self, normalizer, document):
        with pytest.raises(TicketCancelResultUnknown):
            normalizer.ticket_cancelled(document)

    def test_booking_cancelled(self, normalizer):
        document = {MESSAGES: [{"_": "Warning"}, {"_": "Itinerary Cancelled"}]}
        assert normalizer.booking_cancelled(document) is True

    def test_booking_cancel_message_missing(self, normalizer):
        with pytest.raises(CancelResponseNotFound):
            normalizer.booking_cancelled({MESSAGES: [{"_": "Warning"}]})

    def test_queue_placed(self, normalizer):
        document = {MESSAGES: [{"_": "Booking successfully placed in queue 50"}]}
        assert normalizer.queue_placed(document) is True

    def test_queue_without_messages(self, normalizer):
        with pytest.raises(PlacingInQueueError):
            normalizer.queue_placed({})

    def test_queue_unexpected_message(self, normalizer):
        with pytest.raises(PlacingInQueueMessageMissing):
            normalizer.queue_placed({MESSAGES: [{"_": "Queue is full"}]})
