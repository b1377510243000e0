"""Transport adapters - Implementations of TransportPort.

Available implementations:
- FixtureTransport: Replays decoded vendor documents stored as JSON
"""

from .fixture_transport import FixtureTransport

__all__ = ["FixtureTransport"]
