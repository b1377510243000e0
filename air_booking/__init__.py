"""Top-level package for the air booking normalization layer.

The package turns raw vendor documents of a SOAP-style air booking API
into canonical bookings and tickets, classifies vendor faults into typed
errors, reads terminal screens and drives the multi-step workflows
(ticketing, cancellation, PNR import) on top of those pieces.
"""

__version__ = "0.1.0"
