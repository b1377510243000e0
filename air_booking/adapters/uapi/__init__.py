"""Vendor air service adapters.

Available implementations:
- UapiAirGateway: AirServicePort over a transport, the normalizer and
  the fault classifier
"""

from .gateway import UapiAirGateway

__all__ = ["UapiAirGateway"]
