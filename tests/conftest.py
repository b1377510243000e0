"""Shared fixtures: raw vendor documents and fake collaborators."""

from __future__ import annotations

from typing import Any, Dict, List
from unittest.mock import MagicMock

import pytest

from air_booking.config import AppConfig, reset_config
from air_booking.domain.models import (
    CanonicalBooking,
    CanonicalTicket,
    Coupon,
    CouponStatus,
    FareCalculation,
    FareQuote,
    PricingInfo,
)
from air_booking.parsing.fields import SchemaFields

FIELDS = SchemaFields("v47_0")
C = FIELDS.common


@pytest.fixture(autouse=True)
def _fresh_config():
    reset_config()
    yield
    reset_config()


@pytest.fixture
def config() -> AppConfig:
    return AppConfig()


def _pricing_info(
    key: str,
    group: str,
    traveler: str,
    passenger_type: str,
    effective_date: str,
    total: str,
) -> Dict[str, Any]:
    return {
        "Key": key,
        "AirPricingInfoGroup": group,
        "PricingMethod": "Guaranteed",
        "PricingType": "StoredFare",
        "TotalPrice": total,
        "BasePrice": "EUR40.00",
        "EquivalentBasePrice": "UAH1200.00",
        "Taxes": "UAH300.00",
        "LatestTicketingTime": "2026-01-20T23:59:00.000+02:00",
        "air:FareCalc": "IEV PS AMS 40.00NUC40.00END ROE1.0",
        C("BookingTravelerRef"): [traveler],
        "air:PassengerType": [{"Code": passenger_type}],
        "air:BookingInfo": [{"SegmentRef": "SEG1"}, {"SegmentRef": "SEG2"}],
        "air:TaxInfo": {
            "TI1": {
                "Category": "UA",
                "Amount": "UAH100.00",
                C("TaxDetail"): [{"OriginAirport": "KBP", "Amount": "UAH100.00"}],
            },
            "TI2": {"Category": "YK", "Amount": "UAH200.00"},
        },
        "air:FareInfo": {
            f"{key}_F1": {
                "EffectiveDate": effective_date,
                "TourCode": "TC01",
                C("Endorsement"): [{"Value": "NONREF"}],
                "air:BaggageAllowance": {"air:NumberOfPieces": "1"},
            },
            f"{key}_F2": {
                "air:BaggageAllowance": {"air:MaxWeight": {"Value": "20", "Unit": "Kilograms"}},
            },
        },
        "air:TicketingModifiersRef": {"TM1": {"Key": "TM1"}},
    }


@pytest.fixture
def universal_record() -> Dict[str, Any]:
    """A universal record with one air reservation, two travelers, two fare quotes."""
    return {
        C("ResponseMessage"): [{"_": "Record retrieved", "Code": "0", "Type": "Info"}],
        "universal:UniversalRecord": {
            "LocatorCode": "UR0001",
            "Version": "3",
            C("BookingTraveler"): {
                "BT1": {
                    "Key": "BT1",
                    "TravelerType": "ADT",
                    "DOB": "1980-01-01",
                    "Gender": "M",
                    C("BookingTravelerName"): {"First": "JOHN", "Last": "DOE", "Prefix": "MR"},
                    C("Email"): [
                        {"EmailID": "John.Doe@Example.com", "Type": "To", C("ProviderReservationInfoRef"): "PRI1"},
                        {"EmailID": "agent@example.com", "Type": "Cc", C("ProviderReservationInfoRef"): "PRI1"},
                    ],
                },
                "BT2": {
                    "Key": "BT2",
                    "TravelerType": "CNN",
                    "DOB": "2018-05-05",
                    "Gender": "F",
                    C("BookingTravelerName"): {"First": "JANE", "Last": "DOE"},
                },
            },
            "universal:ProviderReservationInfo": {
                "PRI1": {
                    "Key": "PRI1",
                    "LocatorCode": "PNR001",
                    "CreateDate": "2026-01-01T10:00:00.000+00:00",
                    "ModifiedDate": "2026-01-02T10:00:00.000+00:00",
                    "HostCreateDate": "2026-01-01",
                    "OwningPCC": "7J8J",
                    "universal:ProviderReservationDetails": {"DivideDetails": "true"},
                },
            },
            C("GeneralRemark"): {
                "GR1": {
                    "ProviderReservationInfoRef": "PRI1",
                    "Category": "FREETEXT",
                    C("RemarkData"): "SPLIT PTY/04JAN/HNAG/BRQ/0T780B",
                },
            },
            "air:AirReservation": [
                {
                    "LocatorCode": "RES001",
                    C("ProviderReservationInfoRef"): "PRI1",
                    C("BookingTravelerRef"): ["BT1", "BT2"],
                    C("SupplierLocator"): [
                        {"CreateDateTime": "2026-01-01T10:01:00", "SupplierCode": "PS", "SupplierLocatorCode": "ABC123"},
                    ],
                    "air:AirSegment": {
                        "SEG1": {
                            "Key": "SEG1",
                            "TravelOrder": "1",
                            "Group": "0",
                            "Origin": "KBP",
                            "Destination": "AMS",
                            "DepartureTime": "2026-03-01T08:00:00.000+02:00",
                            "ArrivalTime": "2026-03-01T10:00:00.000+01:00",
                            "Carrier": "PS",
                            "FlightNumber": "101",
                            "Status": "HK",
                            "CabinClass": "Economy",
                            "ClassOfService": "Y",
                            "Equipment": "738",
                            "FlightTime": "180",
                        },
                        "SEG2": {
                            "Key": "SEG2",
                            "TravelOrder": "2",
                            "Group": "1",
                            "Origin": "AMS",
                            "Destination": "KBP",
                            "DepartureTime": "2026-03-08T12:00:00.000+01:00",
                            "ArrivalTime": "2026-03-08T16:00:00.000+02:00",
                            "Carrier": "PS",
                            "FlightNumber": "102",
                            "Status": "HK",
                            "CabinClass": "Economy",
                            "ClassOfService": "Y",
                            "Equipment": "738",
                            "FlightTime": "180",
                        },
                    },
                    "air:DocumentInfo": {
                        "air:TicketInfo": [
                            {
                                "Number": "5660000000001",
                                "BookingTravelerRef": "BT1",
                                "AirPricingInfoRef": "API1",
                                C("Name"): {"First": "JOHN", "Last": "DOE"},
                            },
                        ],
                    },
                    "air:TicketingModifiers": {"TM1": {"Key": "TM1", "PlatingCarrier": "PS"}},
                    "air:AirPricingInfo": {
                        "API1": _pricing_info(
                            "API1", "2", "BT1", "ADT", "2026-02-01T10:00:00.000+02:00", "UAH1500.00"
                        ),
                        "API2": _pricing_info(
                            "API2", "1", "BT2", "CNN", "2026-01-15T10:00:00.000+02:00", "UAH900.00"
                        ),
                    },
                },
            ],
        },
    }


@pytest.fixture
def passive_record(universal_record) -> Dict[str, Any]:
    """The universal record with passive service segments interleaved by travel order."""
    record = universal_record["universal:UniversalRecord"]
    record["air:AirReservation"][0]["air:AirSegment"]["SEG2"]["TravelOrder"] = "3"
    record["passive:PassiveReservation"] = [
        {
            "ProviderReservationInfoRef": "PRI1",
            "passive:PassiveSegment": [
                {"Key": "PS1", "TravelOrder": "2", "SupplierCode": "PS", "Origin": "AMS", "StartDate": "2026-03-01"},
                {"Key": "PS2", "TravelOrder": "4", "SupplierCode": "PS", "Origin": "KBP", "StartDate": "2026-03-08"},
            ],
            "passive:PassiveRemark": [
                {"PassiveSegmentRef": "PS1", "passive:Text": "C/0CC/UAH550.5/PRE RESERVED SEAT/NM-1.1"},
                {"PassiveSegmentRef": "PS2", "passive:Text": "NOT A SERVICE REMARK"},
            ],
        },
    ]
    return universal_record


def make_etr(
    ticket_number: str = "5660000000001",
    statuses: tuple[str, ...] = ("O", "O"),
    provider_locator: str | None = "PNR001",
) -> Dict[str, Any]:
    coupons = {
        f"CPN{n}": {
            "CouponNumber": str(n),
            "Origin": origin,
            "Destination": destination,
            "DepartureTime": f"2026-03-0{n}T08:00:00.000+02:00",
            "Status": status,
            "MarketingCarrier": "PS",
            "MarketingFlightNumber": f"10{n}",
            "FareBasis": "YOW",
            "BookingClass": "Y",
            "NotValidBefore": "2026-03-01",
            "NotValidAfter": "2026-03-01",
            "StopoverCode": "true" if n > 1 else "false",
        }
        for n, (status, (origin, destination)) in enumerate(
            zip(statuses, [("KBP", "AMS"), ("AMS", "KBP"), ("KBP", "LHR"), ("LHR", "KBP")]), start=1
        )
    }
    etr: Dict[str, Any] = {
        "air:AirReservationLocatorCode": "RES001",
        "PlatingCarrier": "PS",
        "PseudoCityCode": "7J8J",
        "IssuedDate": "2026-01-10T12:00:00.000+02:00",
        "IATANumber": "99999992",
        "TourCode": "TC01",
        "TotalPrice": "UAH1500.00",
        "air:FareCalc": "IEV PS AMS 40.00NUC40.00END ROE1.0",
        C("BookingTraveler"): {
            "BT1": {C("BookingTravelerName"): {"First": "JOHN", "Last": "DOE", "Prefix": "MR"}},
        },
        C("FormOfPayment"): {
            "FOP1": {"Type": "Credit", C("CreditCard"): {"Type": "VI", "Number": "4111111111111111"}},
        },
        C("Commission"): {"Type": "PercentBase", "Percentage": "1.00"},
        "air:AirPricingInfo": {
            "API1": {
                "TotalPrice": "UAH1500.00",
                "BasePrice": "EUR40.00",
                "EquivalentBasePrice": "UAH1200.00",
                "Taxes": "UAH300.00",
                "PricingMethod": "Guaranteed",
                "PricingType": "StoredFare",
                "air:FareCalc": "IEV PS AMS 40.00NUC40.00END ROE1.0",
                "air:TaxInfo": {"TI1": {"Category": "UA", "Amount": "UAH100.00"}},
                "air:FareInfo": {"FI1": {"FareBasis": "YOW"}},
                "air:BookingInfo": [{"FareInfoRef": "FI1", "CabinClass": "Economy"}],
            },
        },
        "air:Ticket": {
            ticket_number: {"TicketNumber": ticket_number, "air:Coupon": coupons},
        },
    }
    if provider_locator is not None:
        etr["ProviderLocatorCode"] = provider_locator
    return etr


@pytest.fixture
def ticket_document() -> Dict[str, Any]:
    return {"UniversalRecordLocatorCode": "UR0001", "air:ETR": make_etr()}


@pytest.fixture
def etr_factory():
    return make_etr


def make_ticket(ticket_number: str, *statuses: str, pnr: str = "PNR001") -> CanonicalTicket:
    coupons = tuple(
        Coupon(
            ticket_number=ticket_number,
            coupon_number=str(n),
            origin="KBP",
            destination="AMS",
            departure=None,
            status=CouponStatus.from_code(status),
            status_code=status,
        )
        for n, status in enumerate(statuses, start=1)
    )
    return CanonicalTicket(ticket_number=ticket_number, pnr=pnr, passengers=(), coupons=coupons)


def make_booking(pnr: str = "PNR001", total_price: str | None = "UAH1500.00") -> CanonicalBooking:
    quotes: tuple[FareQuote, ...] = ()
    if total_price is not None:
        info = PricingInfo(
            uapi_pricing_info_ref="API1",
            uapi_pricing_info_group="1",
            passengers=(),
            fare_pricing_method=None,
            fare_pricing_type=None,
            total_price=total_price,
            base_price=None,
            equivalent_base_price=None,
            taxes=None,
            passengers_count={"ADT": 1},
            taxes_info=(),
            baggage=(),
            time_to_reprice=None,
            fare_calculation=FareCalculation("IEV PS AMS 40.00NUC40.00"),
        )
        quotes = (FareQuote(index=1, pricing_infos=(info,), uapi_passenger_refs=(), uapi_segment_refs=()),)
    return CanonicalBooking(
        pnr=pnr,
        uapi_ur_locator="UR0001",
        uapi_reservation_locator="RES001",
        version=1,
        fare_quotes=quotes,
    )


@pytest.fixture
def booking_factory():
    return make_booking


@pytest.fixture
def ticket_factory():
    return make_ticket


class FakeTerminal:
    """Terminal session replaying canned screens, recording every command."""

    def __init__(self, screens: List[Any], close_error: Exception | None = None) -> None:
        self.screens = list(screens)
        self.close_error = close_error
        self.commands: List[str] = []
        self.closed = 0

    def execute_command(self, command: str) -> Any:
        self.commands.append(command)
        if not self.screens:
            raise RuntimeError(f"Unexpected command {command}")
        screen = self.screens.pop(0)
        if isinstance(screen, Exception):
            raise screen
        return screen

    def close_session(self) -> None:
        self.closed += 1
        if self.close_error is not None:
            raise self.close_error


@pytest.fixture
def terminal_factory():
    """Build a (factory, terminal) pair from canned screens."""

    def build(screens: List[Any], close_error: Exception | None = None):
        terminal = FakeTerminal(screens, close_error)
        return (lambda: terminal), terminal

    return build


@pytest.fixture
def air() -> MagicMock:
    return MagicMock(name="air")
