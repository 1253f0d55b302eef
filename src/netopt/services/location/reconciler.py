"""Decide between reusing existing sites, opening new ones, or a blend."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Literal, Optional, Sequence

from ...models.domain import ClusterStatus, CostBreakdown, DemandPoint, DistributionCenter, Site
from ..costing import compute_cost_breakdown
from ..geospatial import DistanceUnit, nearest
from .clustering import GeodesicKMeans

ExistingSitesMode = Literal["always", "potential", "use-existing-subset"]


@dataclass(slots=True)
class ReconcileResult:
    dcs: list[DistributionCenter]
    strategy: str
    cluster_status: Optional[ClusterStatus] = None
    compared_costs: dict[str, CostBreakdown] = field(default_factory=dict)


def existing_site_centers(existing_sites: Sequence[Site], limit: int | None = None) -> list[DistributionCenter]:
    sites = existing_sites if limit is None else existing_sites[:limit]
    return [
        DistributionCenter(
            site_id=site.site_id,
            latitude=site.latitude,
            longitude=site.longitude,
            is_existing=True,
            capacity=site.total_capacity,
        )
        for site in sites
    ]


def rename_new_sites(dcs: Sequence[DistributionCenter], taken: set[str]) -> list[DistributionCenter]:
    """Number new sites ``DC-1``, ``DC-2``, ... skipping ids already in ``taken``."""

    used = set(taken)
    counter = 0
    for dc in dcs:
        counter += 1
        while f"DC-{counter}" in used:
            counter += 1
        dc.site_id = f"DC-{counter}"
        used.add(dc.site_id)
    return list(dcs)


def assign_to_nearest(
    customers: Sequence[DemandPoint], dcs: Sequence[DistributionCenter]
) -> list[DistributionCenter]:
    """Reassign every customer to its nearest site and drop sites left empty.

    Returns new records; the inputs are not modified.
    """

    if not dcs:
        return []
    fresh = [
        DistributionCenter(
            site_id=dc.site_id,
            latitude=dc.latitude,
            longitude=dc.longitude,
            is_existing=dc.is_existing,
            capacity=dc.capacity,
        )
        for dc in dcs
    ]
    locations = [(dc.latitude, dc.longitude) for dc in fresh]
    for customer in customers:
        index, _ = nearest(customer.latitude, customer.longitude, locations)
        fresh[index].assigned_customers.append(customer)
    return [dc for dc in fresh if dc.assigned_customers]


class ExistingSiteReconciler:
    """Build site configurations from existing sites and clustered new sites."""

    def __init__(
        self,
        *,
        clusterer: GeodesicKMeans,
        rate: float,
        facility_cost: float,
        distance_unit: DistanceUnit = "km",
        match_threshold_km: float | None = None,
    ) -> None:
        self.clusterer = clusterer
        self.rate = rate
        self.facility_cost = facility_cost
        self.distance_unit = distance_unit
        self.match_threshold_km = match_threshold_km

    def score(self, dcs: Sequence[DistributionCenter], existing_sites: Sequence[Site]) -> CostBreakdown:
        return compute_cost_breakdown(
            dcs,
            rate=self.rate,
            facility_cost=self.facility_cost,
            distance_unit=self.distance_unit,
            existing_sites=existing_sites,
            match_threshold_km=self.match_threshold_km,
        )

    def build_configuration(
        self,
        customers: Sequence[DemandPoint],
        num_new_sites: int,
        existing_sites: Sequence[Site],
        mode: Literal["always", "use-existing-subset"],
    ) -> ReconcileResult:
        if mode == "use-existing-subset":
            candidates = existing_site_centers(existing_sites, limit=num_new_sites)
            return ReconcileResult(dcs=assign_to_nearest(customers, candidates), strategy="existing-subset")

        candidates = existing_site_centers(existing_sites)
        cluster_status = None
        if num_new_sites > 0:
            clustered = self.clusterer.fit(customers, num_new_sites)
            candidates.extend(rename_new_sites(clustered.centers, {dc.site_id for dc in candidates}))
            cluster_status = clustered.status
        strategy = "existing-plus-new" if num_new_sites > 0 else "existing-only"
        return ReconcileResult(
            dcs=assign_to_nearest(customers, candidates), strategy=strategy, cluster_status=cluster_status
        )

    def reconcile(
        self,
        customers: Sequence[DemandPoint],
        existing_sites: Sequence[Site],
        target: int,
        mode: ExistingSitesMode,
    ) -> ReconcileResult:
        if target < 1:
            raise ValueError("target number of sites must be >= 1")

        match mode:
            case "always":
                num_new = max(0, target - len(existing_sites))
                return self.build_configuration(customers, num_new, existing_sites, "always")
            case "use-existing-subset":
                return self.build_configuration(customers, target, existing_sites, "use-existing-subset")
            case "potential":
                clustered = self.clusterer.fit(customers, target)
                reuse = self.build_configuration(customers, target, existing_sites, "use-existing-subset")
                new_cost = self.score(clustered.centers, existing_sites)
                reuse_cost = self.score(reuse.dcs, existing_sites)
                logging.info(
                    f"Comparing site strategies: new sites cost {new_cost.total_cost:.2f}, "
                    f"existing subset cost {reuse_cost.total_cost:.2f}"
                )
                compared = {"new-sites": new_cost, "existing-subset": reuse_cost}
                if reuse_cost.total_cost < new_cost.total_cost:
                    return ReconcileResult(dcs=reuse.dcs, strategy="existing-subset", compared_costs=compared)
                return ReconcileResult(
                    dcs=clustered.centers,
                    strategy="new-sites",
                    cluster_status=clustered.status,
                    compared_costs=compared,
                )
            case _:
                raise ValueError(f"Unknown existing sites mode '{mode}'.")
