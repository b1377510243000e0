"""Adapters layer - Concrete implementations of ports.

This module contains implementations of the port interfaces,
connecting the workflows to the vendor:
- Transport (JSON fixtures replayed per operation)
- Air service gateway (transport + normalizer + classifier)
"""
