"""Ports layer - Abstract interfaces (Protocols) for the application.

Ports define the contracts between the workflows and the outside world:
the vendor transport, the host terminal and the normalized air service.
"""

from .air import AirServicePort
from .terminal import TerminalFactory, TerminalSessionPort, managed_session, terminal_session
from .transport import Operation, RawDocument, TransportFault, TransportPort

__all__ = [
    # Transport
    "Operation",
    "RawDocument",
    "TransportFault",
    "TransportPort",
    # Terminal
    "TerminalFactory",
    "TerminalSessionPort",
    "managed_session",
    "terminal_session",
    # Air
    "AirServicePort",
]
