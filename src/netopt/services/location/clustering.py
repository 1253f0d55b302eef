"""Geodesic k-means clustering of customers into new facility locations."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Sequence

import numpy as np
from sklearn.utils import check_random_state

from ...config import settings
from ...models.domain import ClusterStatus, DemandPoint, DistributionCenter
from ..geospatial import haversine_km, haversine_matrix_km


@dataclass(slots=True)
class ClusteringResult:
    centers: list[DistributionCenter]
    iterations: int
    status: ClusterStatus


def geodesic_centroid(
    latitudes: Sequence[float],
    longitudes: Sequence[float],
    weights: Sequence[float],
    *,
    max_iterations: int | None = None,
    tolerance: float | None = None,
    coincidence_km: float | None = None,
) -> tuple[float, float]:
    """Approximate the point minimising weighted great-circle distance.

    Starts at the weighted mean of the coordinates and refines it with
    Weiszfeld-style relocation, weighting each point by ``weight / distance``.
    A point closer than ``coincidence_km`` to the current estimate is returned
    as the centroid. Zero total weight falls back to equal weights.
    """

    max_iterations = settings.centroid_max_iterations if max_iterations is None else max_iterations
    tolerance = settings.centroid_tolerance_degrees if tolerance is None else tolerance
    coincidence_km = settings.centroid_coincidence_km if coincidence_km is None else coincidence_km

    lats = np.asarray(latitudes, dtype=float)
    lons = np.asarray(longitudes, dtype=float)
    if len(lats) == 0:
        raise ValueError("geodesic_centroid() requires at least one point.")
    if len(lats) == 1:
        return float(lats[0]), float(lons[0])

    w = np.asarray(weights, dtype=float)
    if w.sum() <= 0:
        w = np.ones(len(lats))

    lat = float(np.average(lats, weights=w))
    lon = float(np.average(lons, weights=w))

    for _ in range(max_iterations):
        distances = haversine_matrix_km(lats, lons, [lat], [lon])[:, 0]
        coincident = np.flatnonzero(distances < coincidence_km)
        if len(coincident):
            index = int(coincident[0])
            return float(lats[index]), float(lons[index])

        relocation = w / distances
        new_lat = float((relocation * lats).sum() / relocation.sum())
        new_lon = float((relocation * lons).sum() / relocation.sum())
        change = math.hypot(new_lat - lat, new_lon - lon)
        lat, lon = new_lat, new_lon
        if change < tolerance:
            break

    return lat, lon


class GeodesicKMeans:
    """Spherical analogue of k-means using great-circle distance.

    Initial centers are ``k`` distinct customers drawn from ``random_state``
    (``None``, a seed, or a ``numpy.random.RandomState``). Each center is then
    moved to the demand-weighted geodesic centroid of its customers until no
    center moves more than ``convergence_km`` or ``max_iterations`` passes.
    """

    def __init__(
        self,
        *,
        random_state=None,
        max_iterations: int | None = None,
        convergence_km: float | None = None,
    ) -> None:
        self.random_state = random_state
        self.max_iterations = settings.kmeans_max_iterations if max_iterations is None else max_iterations
        self.convergence_km = settings.kmeans_convergence_km if convergence_km is None else convergence_km

    def fit(self, customers: Sequence[DemandPoint], k: int) -> ClusteringResult:
        if k < 1:
            raise ValueError("k must be >= 1")
        if not customers:
            raise ValueError("At least one customer is required for clustering.")

        effective_k = min(k, len(customers))
        if effective_k < k:
            logging.info(f"Requested {k} sites for {len(customers)} customers; clustering into {effective_k}")

        rng = check_random_state(self.random_state)
        lats = np.array([customer.latitude for customer in customers], dtype=float)
        lons = np.array([customer.longitude for customer in customers], dtype=float)
        demand = np.array([customer.total_demand for customer in customers], dtype=float)

        seeds = rng.choice(len(customers), size=effective_k, replace=False)
        centers = np.column_stack([lats[seeds], lons[seeds]])
        labels = np.zeros(len(customers), dtype=int)

        status = ClusterStatus.ITERATION_CAP_REACHED
        iterations = 0
        for iteration in range(self.max_iterations):
            iterations = iteration + 1
            labels = haversine_matrix_km(lats, lons, centers[:, 0], centers[:, 1]).argmin(axis=1)

            max_movement = 0.0
            for j in range(effective_k):
                members = labels == j
                if not members.any():
                    continue
                old_lat, old_lon = centers[j]
                new_lat, new_lon = geodesic_centroid(lats[members], lons[members], demand[members])
                centers[j] = (new_lat, new_lon)
                max_movement = max(max_movement, haversine_km(old_lat, old_lon, new_lat, new_lon))

            if max_movement < self.convergence_km:
                status = ClusterStatus.CONVERGED
                break

        if status is ClusterStatus.ITERATION_CAP_REACHED:
            logging.warning(f"Geodesic k-means stopped at the iteration cap ({self.max_iterations}).")

        result_centers: list[DistributionCenter] = []
        for j in range(effective_k):
            members = [customer for customer, label in zip(customers, labels) if label == j]
            if not members:
                continue
            result_centers.append(
                DistributionCenter(
                    site_id=f"DC-{j + 1}",
                    latitude=float(centers[j, 0]),
                    longitude=float(centers[j, 1]),
                    assigned_customers=members,
                )
            )

        logging.info(
            f"Geodesic k-means finished: {len(result_centers)} sites, {iterations} iterations, status={status.value}"
        )
        return ClusteringResult(centers=result_centers, iterations=iterations, status=status)
