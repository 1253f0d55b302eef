"""Geospatial helper functions."""

from __future__ import annotations

import math
from typing import Literal, Sequence

import numpy as np

EARTH_RADIUS_KM = 6371.0
MILES_PER_KM = 0.621371

DistanceUnit = Literal["km", "mile"]


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Compute distance between two coordinates using the Haversine formula."""

    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def haversine_matrix_km(lats1, lons1, lats2, lons2) -> np.ndarray:
    """Pairwise great-circle distances between two coordinate arrays.

    Returns an array shaped ``(len(lats1), len(lats2))``.
    """

    phi1 = np.radians(np.asarray(lats1, dtype=float))[:, None]
    phi2 = np.radians(np.asarray(lats2, dtype=float))[None, :]
    lambda1 = np.radians(np.asarray(lons1, dtype=float))[:, None]
    lambda2 = np.radians(np.asarray(lons2, dtype=float))[None, :]

    a = np.sin((phi2 - phi1) / 2) ** 2 + np.cos(phi1) * np.cos(phi2) * np.sin((lambda2 - lambda1) / 2) ** 2
    a = np.clip(a, 0.0, 1.0)
    return EARTH_RADIUS_KM * 2 * np.arctan2(np.sqrt(a), np.sqrt(1 - a))


def km_to_miles(distance_km: float) -> float:
    return distance_km * MILES_PER_KM


def miles_to_km(distance_miles: float) -> float:
    return distance_miles / MILES_PER_KM


def convert_distance(distance_km: float, unit: DistanceUnit = "km") -> float:
    """Express a kilometre distance in the requested unit."""

    match unit:
        case "km":
            return distance_km
        case "mile":
            return km_to_miles(distance_km)
        case _:
            raise ValueError(f"Unknown distance unit '{unit}'.")


def validate_coordinate(lat: float, lon: float) -> None:
    if not -90.0 <= lat <= 90.0:
        raise ValueError(f"Latitude {lat} is outside the range -90..90.")
    if not -180.0 <= lon <= 180.0:
        raise ValueError(f"Longitude {lon} is outside the range -180..180.")


def coordinates_match(
    lat1: float, lon1: float, lat2: float, lon2: float, *, threshold_km: float
) -> bool:
    return haversine_km(lat1, lon1, lat2, lon2) < threshold_km


def nearest(lat: float, lon: float, candidates: Sequence[tuple[float, float]]) -> tuple[int, float]:
    """Return the index of the nearest (lat, lon) candidate and its distance in km.

    The first candidate wins ties. Raises ``ValueError`` when there are no
    candidates.
    """

    if not candidates:
        raise ValueError("nearest() requires at least one candidate.")
    best_index = 0
    best_distance = math.inf
    for index, (cand_lat, cand_lon) in enumerate(candidates):
        distance = haversine_km(lat, lon, cand_lat, cand_lon)
        if distance < best_distance:
            best_distance = distance
            best_index = index
    return best_index, best_distance
