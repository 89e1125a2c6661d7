"""Convenience re-exports for cache data models."""

from .catalog import CatalogReference, DetailRecord, PopulationRequest

__all__ = [
    "CatalogReference",
    "DetailRecord",
    "PopulationRequest",
]
