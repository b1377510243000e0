"""Services layer - Multi-step air workflows.

Services orchestrate the single-request air operations and the host
terminal, and hold the explicit state machines:
- TicketingMachine: ticket issuance with bounded retries
- CancellationMachine: coupon-status driven booking cancellation
- PnrImportMachine: terminal fallback when a PNR cannot be imported
- AirWorkflowService: entry point tying them together
"""

from .air_workflow import AirWorkflowService
from .cancellation import CancellationMachine, CancellationStage, CouponVerdict, coupon_verdict
from .pnr_import import PnrImportMachine
from .ticketing import TicketingMachine, TicketingStage

__all__ = [
    "AirWorkflowService",
    "CancellationMachine",
    "CancellationStage",
    "CouponVerdict",
    "coupon_verdict",
    "PnrImportMachine",
    "TicketingMachine",
    "TicketingStage",
]
