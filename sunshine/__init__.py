"""Sunshine forecast data layer.

Subpackages:
- ingestion: Forecast parsing, storage schema, upsert gateway and sync entry points.
- tests: Unit tests for the sunshine package.
"""

__all__ = [
    "ingestion",
]
