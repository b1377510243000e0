"""Vendor fault classification.

Structured error codes are resolved first through CODE_RULES. Faults
without a resolvable code, or with an unknown one, fall back to the
free-text chain in TEXT_RULES. A document with no text to classify at
all becomes an UnhandledError.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, List, Mapping, NoReturn

from ..domain.errors import AirBookingError, UnhandledError, VendorServiceError
from ..parsing.fields import SchemaFields
from .rules import (
    CODE_RULES,
    DEFAULT_FAULT_MESSAGE,
    PNR_LIST_CODE_RULES,
    TEXT_RULES,
    TICKETS_CODE_RULES,
    ClassificationRule,
    FaultView,
    first_match,
    has_no_tickets,
)


@dataclass
class ErrorClassifier:
    """Turns raw fault documents into typed errors.

    Attributes:
        schema_version: Version token used to locate the error info block
    """

    schema_version: str = "v47_0"

    _fields: SchemaFields = field(init=False, repr=False)
    _logger: logging.Logger = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._fields = SchemaFields(self.schema_version)
        self._logger = logging.getLogger(__name__)

    def view(self, document: Mapping[str, Any], fallback: str = DEFAULT_FAULT_MESSAGE) -> FaultView:
        return FaultView.from_document(document, self._fields, fallback)

    def _resolve(
        self,
        view: FaultView,
        code_rules: tuple[ClassificationRule, ...],
    ) -> AirBookingError:
        rule = first_match(code_rules, view) if view.code is not None else None
        if rule is None:
            rule = first_match(TEXT_RULES, view)
        if rule is None:
            self._logger.warning("Unclassifiable vendor document", extra={"keys": sorted(view.document)})
            return UnhandledError(
                "Unhandled vendor error",
                cause=VendorServiceError(DEFAULT_FAULT_MESSAGE, document=view.document),
            )
        error = rule.build(view)
        self._logger.debug(
            "Vendor fault classified",
            extra={"rule": rule.name, "code": view.code, "kind": error.kind.value},
        )
        return error

    def error_for(self, document: Mapping[str, Any]) -> AirBookingError:
        """Classify a fault document and return the error."""
        return self._resolve(self.view(document), CODE_RULES)

    def message_error(
        self,
        document: Mapping[str, Any],
        fallback: str = DEFAULT_FAULT_MESSAGE,
    ) -> AirBookingError:
        """Classify a document by its free text only."""
        return self._resolve(self.view(document, fallback), ())

    def classify(self, document: Mapping[str, Any]) -> NoReturn:
        """Raise the typed error for a fault document."""
        raise self.error_for(document)

    def classify_message(self, document: Mapping[str, Any]) -> NoReturn:
        raise self.message_error(document)

    def has_no_tickets(self, document: Mapping[str, Any]) -> bool:
        return has_no_tickets(self.view(document))

    def classify_tickets_fault(self, document: Mapping[str, Any]) -> List[Any]:
        """Classify a get-tickets fault.

        Returns:
            An empty list when the fault only says the reservation has no
            tickets.

        Raises:
            NoAgreement: On code 345.
            VendorError: Anything else, through the free-text chain.
        """
        view = self.view(document)
        if view.code == "3000" and has_no_tickets(view):
            return []
        raise self._resolve(view, TICKETS_CODE_RULES)

    def classify_pnr_list_fault(self, document: Mapping[str, Any]) -> NoReturn:
        raise self._resolve(self.view(document), PNR_LIST_CODE_RULES)
