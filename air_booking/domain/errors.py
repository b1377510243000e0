"""Typed domain errors for the air booking layer.

Every failure the layer can surface is a subclass of AirBookingError and
carries an ErrorKind tag, so callers can branch on ``error.kind`` or on the
class itself. Wrapping errors keep the original exception in ``cause``
(exposed as ``caused_by``) and never discard it.

Families:
- ParsingError: a success document is structurally malformed
- VendorError: the vendor reported a failure (classified fault)
- WorkflowError: a multi-step operation could not complete
- UnhandledError: an unrecognized failure
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Mapping, Optional


class ErrorKind(Enum):
    """Closed taxonomy of failure kinds."""

    # Parsing
    PARSING = "parsing"
    MISSING_REQUIRED_FIELD = "missing_required_field"
    HISTOGRAM_TYPE_INVALID = "histogram_type_invalid"
    RESERVATION_PROVIDER_INFO_MISSING = "reservation_provider_info_missing"
    RESERVATIONS_MISSING = "reservations_missing"
    PLATING_CARRIER_NOT_SET = "plating_carrier_not_set"
    FARE_CALCULATION_INVALID = "fare_calculation_invalid"
    INVALID_PRICE = "invalid_price"
    CANCEL_RESPONSE_NOT_FOUND = "cancel_response_not_found"
    SERVICE_SEGMENT_REMARK_INVALID = "service_segment_remark_invalid"

    # Vendor faults
    VENDOR_SERVICE_ERROR = "vendor_service_error"
    NO_SEATS_AVAILABLE = "no_seats_available"
    NO_AGREEMENT = "no_agreement"
    UNABLE_TO_RETRIEVE = "unable_to_retrieve"
    UNABLE_TO_RETRIEVE_TICKET = "unable_to_retrieve_ticket"
    ACCESSED_BY_ANOTHER_TRANSACTION = "accessed_by_another_transaction"
    NO_RESIDUAL_VALUE = "no_residual_value"
    TICKETS_NOT_ISSUED = "tickets_not_issued"
    NO_RESERVATION_TO_IMPORT = "no_reservation_to_import"
    INVALID_REQUEST_DATA = "invalid_request_data"
    TICKET_INFO_INCOMPLETE = "ticket_info_incomplete"
    SEGMENT_WAITLISTED = "segment_waitlisted"
    SEGMENT_BOOKING_FAILED = "segment_booking_failed"
    NO_RESULTS_FOUND = "no_results_found"
    NO_VALID_FARE = "no_valid_fare"
    UNIVERSAL_RECORD_DATA_COULD_BE_STALE = "universal_record_data_could_be_stale"
    TRAVELERS_LIST_ERROR = "travelers_list_error"
    DUPLICATE_TICKET_FOUND = "duplicate_ticket_found"
    TICKET_CANCEL_RESULT_UNKNOWN = "ticket_cancel_result_unknown"
    PLACING_IN_QUEUE_ERROR = "placing_in_queue_error"
    PLACING_IN_QUEUE_MESSAGE_MISSING = "placing_in_queue_message_missing"

    # Ticketing
    TICKETING_FOID_REQUIRED = "ticketing_foid_required"
    TICKETING_PNR_BUSY = "ticketing_pnr_busy"
    TICKETING_FOP_UNAVAILABLE = "ticketing_fop_unavailable"
    TICKETING_CREDIT_CARD_REJECTED = "ticketing_credit_card_rejected"
    TICKETING_FAILED = "ticketing_failed"
    TICKETING_RESPONSE_MISSING = "ticketing_response_missing"
    TICKETING_TICKETS_MISSING = "ticketing_tickets_missing"

    # Workflows
    COULD_NOT_RETRIEVE_CURRENCY = "could_not_retrieve_currency"
    PNR_HAS_OPEN_TICKETS = "pnr_has_open_tickets"
    UNABLE_TO_CANCEL_TICKET_STATUS_NOT_OPEN = "unable_to_cancel_ticket_status_not_open"
    FAILED_TO_CANCEL_PNR = "failed_to_cancel_pnr"
    FAILED_TO_CANCEL_TICKET = "failed_to_cancel_ticket"
    UNABLE_TO_IMPORT_PNR = "unable_to_import_pnr"
    UNABLE_TO_OPEN_PNR_IN_TERMINAL = "unable_to_open_pnr_in_terminal"
    UNABLE_TO_ADD_EXTRA_SEGMENT = "unable_to_add_extra_segment"
    UNABLE_TO_SAVE_BOOKING_WITH_EXTRA_SEGMENT = "unable_to_save_booking_with_extra_segment"
    UNABLE_TO_RETRIEVE_TICKETS = "unable_to_retrieve_tickets"
    PARSE_TICKET_PNR_ERROR = "parse_ticket_pnr_error"

    UNHANDLED = "unhandled"
    CONFIGURATION = "configuration"


@dataclass
class AirBookingError(Exception):
    """Base error for the air booking domain.

    Attributes:
        message: Human-readable error description
        cause: Optional underlying exception that caused this error
    """

    kind: ClassVar[ErrorKind] = ErrorKind.UNHANDLED

    message: str = ""
    cause: Optional[Exception] = field(default=None, repr=False)

    def __str__(self) -> str:
        if self.cause:
            return f"{self.message}: {self.cause}"
        return self.message

    def __post_init__(self) -> None:
        if not self.message:
            self.message = self.kind.value.replace("_", " ").capitalize()
        super().__init__(self.message)

    @property
    def caused_by(self) -> Optional[Exception]:
        """The wrapped failure, if any."""
        return self.cause


@dataclass
class UnhandledError(AirBookingError):
    """Fallback wrapping a failure nothing else recognized."""

    kind: ClassVar[ErrorKind] = ErrorKind.UNHANDLED


@dataclass
class ConfigurationError(AirBookingError):
    """Invalid or missing configuration.

    Attributes:
        setting_name: Name of the problematic setting
    """

    kind: ClassVar[ErrorKind] = ErrorKind.CONFIGURATION

    setting_name: str = ""


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


@dataclass
class ParsingError(AirBookingError):
    """A success document is missing structurally required nodes.

    Attributes:
        missing: Name of the missing or malformed node, if known
    """

    kind: ClassVar[ErrorKind] = ErrorKind.PARSING

    missing: str = ""


class MissingRequiredField(ParsingError):
    kind = ErrorKind.MISSING_REQUIRED_FIELD


class HistogramTypeInvalid(ParsingError):
    kind = ErrorKind.HISTOGRAM_TYPE_INVALID


class ReservationProviderInfoMissing(ParsingError):
    kind = ErrorKind.RESERVATION_PROVIDER_INFO_MISSING


class ReservationsMissing(ParsingError):
    kind = ErrorKind.RESERVATIONS_MISSING


class PlatingCarrierNotSet(ParsingError):
    kind = ErrorKind.PLATING_CARRIER_NOT_SET


class FareCalculationInvalid(ParsingError):
    kind = ErrorKind.FARE_CALCULATION_INVALID


class InvalidPrice(ParsingError):
    kind = ErrorKind.INVALID_PRICE


class CancelResponseNotFound(ParsingError):
    kind = ErrorKind.CANCEL_RESPONSE_NOT_FOUND


class ServiceSegmentRemarkInvalid(ParsingError):
    kind = ErrorKind.SERVICE_SEGMENT_REMARK_INVALID


# ---------------------------------------------------------------------------
# Vendor faults
# ---------------------------------------------------------------------------


@dataclass
class VendorError(AirBookingError):
    """A failure reported by the vendor and classified by kind.

    Attributes:
        vendor_code: Structured vendor error code, when one was present
        pcc: Pseudo city code extracted from the fault text
        document: The raw fault (or failure) document
    """

    kind: ClassVar[ErrorKind] = ErrorKind.VENDOR_SERVICE_ERROR

    vendor_code: Optional[str] = None
    pcc: Optional[str] = None
    document: Optional[Mapping[str, Any]] = field(default=None, repr=False)


class VendorServiceError(VendorError):
    """Generic vendor service error carrying the raw fault text."""

    kind = ErrorKind.VENDOR_SERVICE_ERROR


class NoSeatsAvailable(VendorError):
    kind = ErrorKind.NO_SEATS_AVAILABLE


class NoAgreement(VendorError):
    kind = ErrorKind.NO_AGREEMENT


class UnableToRetrieve(VendorError):
    kind = ErrorKind.UNABLE_TO_RETRIEVE


class UnableToRetrieveTicket(VendorError):
    kind = ErrorKind.UNABLE_TO_RETRIEVE_TICKET


class AccessedByAnotherTransaction(VendorError):
    kind = ErrorKind.ACCESSED_BY_ANOTHER_TRANSACTION


class NoResidualValue(VendorError):
    kind = ErrorKind.NO_RESIDUAL_VALUE


class TicketsNotIssued(VendorError):
    kind = ErrorKind.TICKETS_NOT_ISSUED


class NoReservationToImport(VendorError):
    kind = ErrorKind.NO_RESERVATION_TO_IMPORT


class InvalidRequestData(VendorError):
    kind = ErrorKind.INVALID_REQUEST_DATA


class TicketInfoIncomplete(VendorError):
    kind = ErrorKind.TICKET_INFO_INCOMPLETE


class SegmentWaitlisted(VendorError):
    kind = ErrorKind.SEGMENT_WAITLISTED


class SegmentBookingFailed(VendorError):
    kind = ErrorKind.SEGMENT_BOOKING_FAILED


class NoResultsFound(VendorError):
    kind = ErrorKind.NO_RESULTS_FOUND


class NoValidFare(VendorError):
    kind = ErrorKind.NO_VALID_FARE


class UniversalRecordDataCouldBeStale(VendorError):
    kind = ErrorKind.UNIVERSAL_RECORD_DATA_COULD_BE_STALE


class TravelersListError(VendorError):
    kind = ErrorKind.TRAVELERS_LIST_ERROR


class DuplicateTicketFound(VendorError):
    kind = ErrorKind.DUPLICATE_TICKET_FOUND


class TicketCancelResultUnknown(VendorError):
    kind = ErrorKind.TICKET_CANCEL_RESULT_UNKNOWN


class PlacingInQueueError(VendorError):
    kind = ErrorKind.PLACING_IN_QUEUE_ERROR


class PlacingInQueueMessageMissing(VendorError):
    kind = ErrorKind.PLACING_IN_QUEUE_MESSAGE_MISSING


class TicketingError(VendorError):
    """Base for failures reported by the ticket-issue operation."""

    kind = ErrorKind.TICKETING_FAILED


class TicketingFoidRequired(TicketingError):
    """Form of identification must be added before ticketing."""

    kind = ErrorKind.TICKETING_FOID_REQUIRED


class TicketingPnrBusy(TicketingError):
    """The provider reservation is being modified elsewhere."""

    kind = ErrorKind.TICKETING_PNR_BUSY


class TicketingFopUnavailable(TicketingError):
    kind = ErrorKind.TICKETING_FOP_UNAVAILABLE


class TicketingCreditCardRejected(TicketingError):
    kind = ErrorKind.TICKETING_CREDIT_CARD_REJECTED


class TicketingFailed(TicketingError):
    kind = ErrorKind.TICKETING_FAILED


class TicketingResponseMissing(TicketingError):
    kind = ErrorKind.TICKETING_RESPONSE_MISSING


class TicketingTicketsMissing(TicketingError):
    kind = ErrorKind.TICKETING_TICKETS_MISSING


# ---------------------------------------------------------------------------
# Workflows
# ---------------------------------------------------------------------------


@dataclass
class WorkflowError(AirBookingError):
    """A multi-step operation could not complete.

    Attributes:
        pnr: Booking locator the workflow was running for, if known
    """

    kind: ClassVar[ErrorKind] = ErrorKind.UNHANDLED

    pnr: Optional[str] = None


class CouldNotRetrieveCurrency(WorkflowError):
    kind = ErrorKind.COULD_NOT_RETRIEVE_CURRENCY


class PNRHasOpenTickets(WorkflowError):
    kind = ErrorKind.PNR_HAS_OPEN_TICKETS


class UnableToCancelTicketStatusNotOpen(WorkflowError):
    kind = ErrorKind.UNABLE_TO_CANCEL_TICKET_STATUS_NOT_OPEN


class FailedToCancelPnr(WorkflowError):
    kind = ErrorKind.FAILED_TO_CANCEL_PNR


class FailedToCancelTicket(WorkflowError):
    kind = ErrorKind.FAILED_TO_CANCEL_TICKET


class UnableToImportPnr(WorkflowError):
    kind = ErrorKind.UNABLE_TO_IMPORT_PNR


class UnableToOpenPNRInTerminal(WorkflowError):
    kind = ErrorKind.UNABLE_TO_OPEN_PNR_IN_TERMINAL


class UnableToAddExtraSegment(WorkflowError):
    kind = ErrorKind.UNABLE_TO_ADD_EXTRA_SEGMENT


class UnableToSaveBookingWithExtraSegment(WorkflowError):
    kind = ErrorKind.UNABLE_TO_SAVE_BOOKING_WITH_EXTRA_SEGMENT


class UnableToRetrieveTickets(WorkflowError):
    kind = ErrorKind.UNABLE_TO_RETRIEVE_TICKETS


class ParseTicketPNRError(WorkflowError):
    kind = ErrorKind.PARSE_TICKET_PNR_ERROR
