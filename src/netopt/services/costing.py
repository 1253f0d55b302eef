"""Transportation and facility cost model shared by the location solvers."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from ..config import settings
from ..models.domain import Assignment, CostBreakdown, DemandPoint, DistributionCenter, Site
from .geospatial import DistanceUnit, convert_distance, coordinates_match, haversine_km


@dataclass(slots=True)
class LocationKPIs:
    total_demand: float
    served_demand: float
    unmet_demand: float
    service_level: float
    avg_distance: float
    max_distance: float


@dataclass(slots=True)
class AllocationKPIs:
    total_cost: float
    transport_cost: float
    fixed_cost: float
    facilities_used: int
    total_distance: float
    avg_distance: float
    service_level: float
    total_demand: float
    allocated_demand: float
    unmet_demand: float


def transport_cost(
    distance_km: float,
    quantity: float,
    rate: float,
    *,
    unit: DistanceUnit = "km",
    conversion_factor: float = 1.0,
) -> float:
    """Cost of moving ``quantity`` over ``distance_km`` at ``rate`` per unit per distance unit."""

    return convert_distance(distance_km, unit) * quantity * conversion_factor * rate


def is_existing_location(
    latitude: float,
    longitude: float,
    existing_sites: Sequence[Site],
    *,
    threshold_km: float | None = None,
) -> bool:
    threshold = settings.existing_site_match_km if threshold_km is None else threshold_km
    return any(
        coordinates_match(latitude, longitude, site.latitude, site.longitude, threshold_km=threshold)
        for site in existing_sites
    )


def count_new_sites(
    dcs: Sequence[DistributionCenter],
    existing_sites: Sequence[Site] | None,
    *,
    threshold_km: float | None = None,
) -> int:
    """Count sites that do not coincide with any existing site."""

    if not existing_sites:
        return len(dcs)
    reused = sum(
        1
        for dc in dcs
        if is_existing_location(dc.latitude, dc.longitude, existing_sites, threshold_km=threshold_km)
    )
    return len(dcs) - reused


def compute_cost_breakdown(
    dcs: Sequence[DistributionCenter],
    *,
    rate: float,
    facility_cost: float,
    distance_unit: DistanceUnit = "km",
    existing_sites: Sequence[Site] | None = None,
    match_threshold_km: float | None = None,
) -> CostBreakdown:
    transportation = 0.0
    for dc in dcs:
        for customer in dc.assigned_customers:
            distance_km = haversine_km(dc.latitude, dc.longitude, customer.latitude, customer.longitude)
            transportation += transport_cost(
                distance_km,
                customer.total_demand,
                rate,
                unit=distance_unit,
                conversion_factor=customer.conversion_factor,
            )

    new_sites = count_new_sites(dcs, existing_sites, threshold_km=match_threshold_km)
    fixed = new_sites * facility_cost
    logging.debug(
        f"Cost breakdown: transportation={transportation:.2f}, facility={fixed:.2f}, "
        f"new_sites={new_sites}, total_sites={len(dcs)}"
    )
    return CostBreakdown(
        total_cost=transportation + fixed,
        transportation_cost=transportation,
        facility_cost=fixed,
        num_sites=len(dcs),
        num_new_sites=new_sites,
    )


def compute_location_kpis(
    dcs: Sequence[DistributionCenter],
    customers: Sequence[DemandPoint],
    *,
    distance_unit: DistanceUnit = "km",
) -> LocationKPIs:
    total_demand = sum(customer.total_demand for customer in customers)
    served = 0.0
    weighted_distance = 0.0
    max_distance = 0.0
    for dc in dcs:
        for customer in dc.assigned_customers:
            distance = convert_distance(
                haversine_km(dc.latitude, dc.longitude, customer.latitude, customer.longitude), distance_unit
            )
            served += customer.total_demand
            weighted_distance += distance * customer.total_demand
            max_distance = max(max_distance, distance)

    return LocationKPIs(
        total_demand=total_demand,
        served_demand=served,
        unmet_demand=max(0.0, total_demand - served),
        service_level=(served / total_demand * 100) if total_demand > 0 else 0.0,
        avg_distance=(weighted_distance / served) if served > 0 else 0.0,
        max_distance=max_distance,
    )


def compute_allocation_kpis(
    assignments: Sequence[Assignment],
    *,
    total_demand: float,
    fixed_cost_per_facility: float,
    charged_facilities: set[str],
) -> AllocationKPIs:
    """Aggregate a gravity allocation.

    ``charged_facilities`` lists the used facilities that incur the fixed
    opening cost; existing facilities are left out by the caller.
    """

    transport = sum(item.transport_cost for item in assignments)
    allocated = sum(item.quantity for item in assignments)
    total_distance = sum(item.distance * item.quantity for item in assignments)
    used = {item.site_id for item in assignments}
    fixed = len(charged_facilities & used) * fixed_cost_per_facility

    return AllocationKPIs(
        total_cost=transport + fixed,
        transport_cost=transport,
        fixed_cost=fixed,
        facilities_used=len(used),
        total_distance=total_distance,
        avg_distance=(total_distance / allocated) if allocated > 0 else 0.0,
        service_level=(allocated / total_demand * 100) if total_demand > 0 else 0.0,
        total_demand=total_demand,
        allocated_demand=allocated,
        unmet_demand=max(0.0, total_demand - allocated),
    )
