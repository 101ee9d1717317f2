"""Hydration package for fleetmatch.

Provides DetailHydrator for bounded concurrent detail fetching.
"""

from .detail_hydrator import CANCELLED_ERROR, DetailHydrator

__all__ = ["CANCELLED_ERROR", "DetailHydrator"]
