"""Parsing layer - Raw vendor documents to canonical records.

Import the parsers from their modules, or use the ResponseNormalizer
facade in ``parsing.normalizer``.
"""
