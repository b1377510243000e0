"""Ordered decision tables for vendor fault classification.

Each table is a tuple of ClassificationRule evaluated top to bottom; the
first rule whose predicate holds builds the error. Tables are data, so
the priority order can be read, tested and extended rule by rule.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Optional

from ..domain.errors import (
    AccessedByAnotherTransaction,
    AirBookingError,
    InvalidRequestData,
    NoAgreement,
    NoReservationToImport,
    NoResidualValue,
    NoResultsFound,
    NoSeatsAvailable,
    SegmentBookingFailed,
    SegmentWaitlisted,
    TicketInfoIncomplete,
    TicketsNotIssued,
    UnableToRetrieve,
    UnableToRetrieveTicket,
    VendorError,
    VendorServiceError,
)
from ..parsing.fields import SchemaFields
from ..parsing.helpers import extract_pcc, values_of

NO_AGREEMENT_PATTERN = re.compile(r"NO AGENCY AGREEMENT", re.IGNORECASE)
UNABLE_TO_RETRIEVE_PATTERN = re.compile(r"UNABLE TO RETRIEVE", re.IGNORECASE)
TICKET_RETRIEVE_ERROR_PATTERN = re.compile(r"HOST ERROR DURING TICKET RETRIEVE", re.IGNORECASE)
ACCESSED_BY_ANOTHER_TRANSACTION_PATTERN = re.compile(r"ACCESSED BY ANOTHER TRANSACTION", re.IGNORECASE)
HAS_NO_TICKETS_PATTERN = re.compile(r"has no tickets")

TICKET_INFO_INCOMPLETE_FAULT = (
    "At least one valid locator code or ticket number or tcr number "
    "or service fee info should have been specified"
)
WAITLISTED_SEGMENT_MESSAGE = "Booking is not complete due to waitlisted segment"
DEFAULT_FAULT_MESSAGE = "Vendor service resulted in an error"


@dataclass(frozen=True)
class FaultView:
    """The parts of a fault document the rules look at.

    Attributes:
        code: Structured error code, None when the detail block is absent
        description: Host screen text of the structured error
        faultstring: Raw fault string
        message: Best free-text message (fault string, response message
            or document failure message)
        segment_errors: Messages of the per-segment errors
    """

    document: Mapping[str, Any] = field(repr=False)
    code: Optional[str] = None
    description: Optional[str] = None
    faultstring: Optional[str] = None
    faultcode: Optional[str] = None
    message: Optional[str] = None
    segment_errors: tuple[str, ...] = ()

    @property
    def pcc(self) -> Optional[str]:
        return extract_pcc(self.faultstring)

    @property
    def message_pcc(self) -> Optional[str]:
        return extract_pcc(self.message)

    @classmethod
    def from_document(
        cls,
        document: Mapping[str, Any],
        fields: SchemaFields,
        fallback: str = DEFAULT_FAULT_MESSAGE,
    ) -> FaultView:
        detail = document.get("detail")
        info: Mapping[str, Any] = {}
        if isinstance(detail, Mapping):
            info = detail.get(fields.error_info) or detail.get("air:AvailabilityErrorInfo") or {}

        return cls(
            document=document,
            code=info.get(fields.code),
            description=info.get(fields.description),
            faultstring=document.get("faultstring"),
            faultcode=document.get("faultcode"),
            message=_best_message(document, fields, fallback),
            segment_errors=tuple(
                e.get("air:ErrorMessage", "") for e in values_of(info.get("air:AirSegmentError"))
            ),
        )


def _best_message(document: Mapping[str, Any], fields: SchemaFields, fallback: str) -> Optional[str]:
    if document.get("faultstring"):
        return document["faultstring"]
    messages = values_of(document.get(fields.response_message))
    if messages:
        return messages[0].get("_") or fallback
    failure = document.get("air:DocumentFailureInfo")
    if failure:
        return failure.get("Message") or fallback
    return None


@dataclass(frozen=True)
class ClassificationRule:
    """One row of a decision table."""

    name: str
    predicate: Callable[[FaultView], bool]
    build: Callable[[FaultView], AirBookingError]


def _vendor(cls: type[VendorError]) -> Callable[[FaultView], AirBookingError]:
    def build(view: FaultView) -> AirBookingError:
        return cls(
            view.faultstring or view.description or "",
            vendor_code=view.code,
            pcc=view.pcc,
            document=view.document,
        )

    return build


def _code(*codes: str) -> Callable[[FaultView], bool]:
    return lambda view: view.code in codes


def _no_agreement(view: FaultView) -> AirBookingError:
    return NoAgreement(vendor_code=view.code, pcc=view.pcc, document=view.document)


def _screen_error(view: FaultView) -> AirBookingError:
    return VendorServiceError(view.description or view.faultstring or "", vendor_code=view.code, document=view.document)


CODE_RULES: tuple[ClassificationRule, ...] = (
    ClassificationRule("no-seats", _code("20"), _vendor(NoSeatsAvailable)),
    ClassificationRule("no-agreement", lambda v: v.code in ("345", "1512") and v.pcc is not None, _no_agreement),
    ClassificationRule("unable-to-retrieve", _code("345", "1512"), _vendor(UnableToRetrieve)),
    ClassificationRule("host-system-error", _code("6207", "6119"), _screen_error),
    ClassificationRule("no-residual-value", _code("4454"), _vendor(NoResidualValue)),
    ClassificationRule("tickets-not-issued", _code("12009"), _vendor(TicketsNotIssued)),
    ClassificationRule("no-reservation-to-import", _code("13003"), _vendor(NoReservationToImport)),
    ClassificationRule("invalid-request-data", _code("3003"), _vendor(InvalidRequestData)),
    ClassificationRule(
        "ticket-info-incomplete",
        lambda v: v.code == "3000" and v.faultstring == TICKET_INFO_INCOMPLETE_FAULT,
        _vendor(TicketInfoIncomplete),
    ),
    ClassificationRule(
        "segment-waitlisted",
        lambda v: v.code == "3000" and WAITLISTED_SEGMENT_MESSAGE in v.segment_errors,
        _vendor(SegmentWaitlisted),
    ),
    ClassificationRule("segment-booking-failed", _code("3000"), _vendor(SegmentBookingFailed)),
    ClassificationRule("no-results", _code("2602", "3037"), _vendor(NoResultsFound)),
)


def _text(cls: type[VendorError]) -> Callable[[FaultView], AirBookingError]:
    def build(view: FaultView) -> AirBookingError:
        return cls(
            (view.message or "").upper(),
            vendor_code=view.code,
            pcc=view.message_pcc,
            document=view.document,
        )

    return build


def _matches(pattern: re.Pattern[str]) -> Callable[[FaultView], bool]:
    return lambda view: bool(view.message and pattern.search(view.message))


TEXT_RULES: tuple[ClassificationRule, ...] = (
    ClassificationRule(
        "no-agreement",
        _matches(NO_AGREEMENT_PATTERN),
        lambda v: NoAgreement(vendor_code=v.code, pcc=v.message_pcc, document=v.document),
    ),
    ClassificationRule("unable-to-retrieve", _matches(UNABLE_TO_RETRIEVE_PATTERN), _text(UnableToRetrieve)),
    ClassificationRule(
        "unable-to-retrieve-ticket",
        _matches(TICKET_RETRIEVE_ERROR_PATTERN),
        _text(UnableToRetrieveTicket),
    ),
    ClassificationRule(
        "accessed-by-another-transaction",
        _matches(ACCESSED_BY_ANOTHER_TRANSACTION_PATTERN),
        _text(AccessedByAnotherTransaction),
    ),
    ClassificationRule("vendor-service-error", lambda v: bool(v.message), _text(VendorServiceError)),
)

TICKETS_CODE_RULES: tuple[ClassificationRule, ...] = (
    ClassificationRule("no-agreement", _code("345"), _no_agreement),
)

PNR_LIST_CODE_RULES: tuple[ClassificationRule, ...] = TICKETS_CODE_RULES


def has_no_tickets(view: FaultView) -> bool:
    """Fault telling that the reservation simply has no tickets."""
    return bool(
        view.faultcode is not None
        and view.faultstring is not None
        and HAS_NO_TICKETS_PATTERN.search(view.faultstring)
    )


def first_match(rules: tuple[ClassificationRule, ...], view: FaultView) -> Optional[ClassificationRule]:
    return next((rule for rule in rules if rule.predicate(view)), None)
