"""Facility location services."""

from .clustering import GeodesicKMeans, geodesic_centroid
from .gravity import GravityAllocator, gravity_score
from .reconciler import ExistingSiteReconciler
from .service import optimize_locations

__all__ = [
    "GravityAllocator",
    "gravity_score",
    "GeodesicKMeans",
    "geodesic_centroid",
    "ExistingSiteReconciler",
    "optimize_locations",
]
