"""Typed accessor for version-qualified vendor tag names.

Vendor documents key shared nodes by a schema-qualified namespace, e.g.
``common_v47_0:BookingTraveler``. SchemaFields builds those names from a
single version token so parsers never concatenate tags by hand.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class SchemaFields:
    """Tag names of the ``common_<version>`` namespace."""

    version: str = "v47_0"

    def common(self, tag: str) -> str:
        return f"common_{self.version}:{tag}"

    @property
    def booking_traveler(self) -> str:
        return self.common("BookingTraveler")

    @property
    def booking_traveler_name(self) -> str:
        return self.common("BookingTravelerName")

    @property
    def booking_traveler_ref(self) -> str:
        return self.common("BookingTravelerRef")

    @property
    def provider_reservation_info_ref(self) -> str:
        return self.common("ProviderReservationInfoRef")

    @property
    def response_message(self) -> str:
        return self.common("ResponseMessage")

    @property
    def general_remark(self) -> str:
        return self.common("GeneralRemark")

    @property
    def remark_data(self) -> str:
        return self.common("RemarkData")

    @property
    def email(self) -> str:
        return self.common("Email")

    @property
    def supplier_locator(self) -> str:
        return self.common("SupplierLocator")

    @property
    def tax_detail(self) -> str:
        return self.common("TaxDetail")

    @property
    def endorsement(self) -> str:
        return self.common("Endorsement")

    @property
    def commission(self) -> str:
        return self.common("Commission")

    @property
    def form_of_payment(self) -> str:
        return self.common("FormOfPayment")

    @property
    def name(self) -> str:
        return self.common("Name")

    @property
    def error_info(self) -> str:
        return self.common("ErrorInfo")

    @property
    def code(self) -> str:
        return self.common("Code")

    @property
    def description(self) -> str:
        return self.common("Description")


@dataclass(frozen=True)
class ParseContext:
    """Per-call parsing options.

    Attributes:
        schema_version: Version token used to build tag names
        allow_no_provider_locator: Accept tickets whose record has no PNR
    """

    schema_version: str = "v47_0"
    allow_no_provider_locator: bool = False
    fields: SchemaFields = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "fields", SchemaFields(self.schema_version))

    def permissive(self) -> ParseContext:
        """Same context, tolerating tickets without a provider locator."""
        return ParseContext(self.schema_version, allow_no_provider_locator=True)
