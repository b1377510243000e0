"""Transport port - Abstraction over the vendor request/response exchange.

Request building and wire encoding live behind this port. The layer only
sees already-decoded raw documents: nested mappings and lists keyed by
the vendor's namespaced tag names.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Protocol

RawDocument = Mapping[str, Any]


class Operation(str, Enum):
    """Vendor operations the gateway invokes."""

    UNIVERSAL_RECORD_IMPORT = "universal_record_import"
    UNIVERSAL_RECORD_CANCEL = "universal_record_cancel"
    AIR_PRICE = "air_price"
    AIR_CREATE_RESERVATION = "air_create_reservation"
    AIR_TICKETING = "air_ticketing"
    FOID = "foid"
    GET_TICKET = "get_ticket"
    GET_TICKETS = "get_tickets"
    TICKET_CANCEL = "ticket_cancel"
    AIR_CANCEL_PNR = "air_cancel_pnr"
    QUEUE_PLACE = "queue_place"


@dataclass
class TransportFault(Exception):
    """The vendor answered with a fault envelope.

    Attributes:
        operation: Operation that faulted
        document: Decoded fault document
    """

    operation: Operation
    document: RawDocument = field(default_factory=dict, repr=False)

    def __post_init__(self) -> None:
        super().__init__(f"Vendor fault on {self.operation.value}")


class TransportPort(Protocol):
    """Port for sending one operation and getting its decoded response.

    Implementation: adapters/transport/fixture_transport.py
    """

    def call(self, operation: Operation, payload: Mapping[str, Any]) -> RawDocument:
        """Send an operation and return the decoded response document.

        Args:
            operation: The vendor operation to invoke.
            payload: Operation parameters.

        Returns:
            The decoded success document.

        Raises:
            TransportFault: If the vendor answered with a fault.
        """
        ...
