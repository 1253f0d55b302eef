"""High-level orchestration for facility location requests."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Literal, Sequence

from ...config import settings
from ...models.domain import CostBreakdown, DemandPoint, DistributionCenter, Product, Site
from ...schemas.gravity import (
    AllocationKPIModel,
    AllocationModel,
    AllocationSummaryModel,
    FacilityUsageModel,
    GravityRequest,
    GravityResponse,
    UtilizationModel,
)
from ...schemas.location import (
    AssignedCustomerModel,
    CostBreakdownModel,
    DistributionCenterModel,
    LocationKPIModel,
    LocationRequest,
    LocationResponse,
)
from ..costing import LocationKPIs, compute_cost_breakdown, compute_location_kpis
from ..geospatial import DistanceUnit, validate_coordinate
from ..outputs.overlays import service_area_overlays
from .clustering import GeodesicKMeans
from .gravity import GravityAllocator
from .reconciler import ExistingSiteReconciler, ExistingSitesMode, ReconcileResult


@dataclass(slots=True)
class LocationResult:
    dcs: list[DistributionCenter]
    feasible: bool
    warnings: list[str]
    cost_breakdown: CostBreakdown
    status: str
    strategy: str
    kpis: LocationKPIs
    metadata: dict = field(default_factory=dict)


def check_capacity(dcs: Sequence[DistributionCenter], dc_capacity: float = 0.0) -> list[str]:
    """Warn for every site whose assigned demand exceeds its capacity.

    A site's own declared capacity takes precedence over the blanket
    ``dc_capacity``; a capacity of zero or less disables the check.
    """

    warnings: list[str] = []
    for dc in dcs:
        capacity = dc.capacity if dc.capacity and dc.capacity > 0 else dc_capacity
        if capacity and capacity > 0 and dc.total_demand > capacity:
            warnings.append(f"DC {dc.site_id} exceeds capacity: {dc.total_demand:.2f} > {capacity:g}")
    return warnings


def optimize_locations(
    customers: Sequence[DemandPoint],
    existing_sites: Sequence[Site] = (),
    *,
    mode: Literal["sites", "cost"] = "sites",
    num_dcs: int | None = None,
    dc_capacity: float = 0.0,
    rate: float | None = None,
    facility_cost: float | None = None,
    distance_unit: DistanceUnit = "km",
    include_existing_sites: bool = False,
    existing_sites_mode: ExistingSitesMode = "always",
    random_state=None,
    match_threshold_km: float | None = None,
) -> LocationResult:
    if not customers:
        raise ValueError("No customers provided for optimization")
    for customer in customers:
        validate_coordinate(customer.latitude, customer.longitude)

    target = settings.default_num_dcs if num_dcs is None else num_dcs
    rate = settings.default_transport_rate if rate is None else rate
    facility_cost = settings.default_facility_cost if facility_cost is None else facility_cost

    clusterer = GeodesicKMeans(random_state=random_state)
    reconciler = ExistingSiteReconciler(
        clusterer=clusterer,
        rate=rate,
        facility_cost=facility_cost,
        distance_unit=distance_unit,
        match_threshold_km=match_threshold_km,
    )

    logging.info(
        f"Facility location request: {len(customers)} customers, {len(existing_sites)} existing sites, "
        f"mode={mode}, target={target}"
    )

    if include_existing_sites and existing_sites:
        if mode == "sites":
            outcome = reconciler.reconcile(customers, existing_sites, target, existing_sites_mode)
        else:
            outcome = reconciler.build_configuration(customers, 0, existing_sites, "always")
    else:
        clustered = clusterer.fit(customers, target)
        outcome = ReconcileResult(dcs=clustered.centers, strategy="new-sites", cluster_status=clustered.status)

    cost_breakdown = compute_cost_breakdown(
        outcome.dcs,
        rate=rate,
        facility_cost=facility_cost,
        distance_unit=distance_unit,
        existing_sites=existing_sites,
        match_threshold_km=match_threshold_km,
    )
    kpis = compute_location_kpis(outcome.dcs, customers, distance_unit=distance_unit)

    warnings = check_capacity(outcome.dcs, dc_capacity)
    for warning in warnings:
        logging.warning(warning)

    metadata: dict = {}
    if outcome.compared_costs:
        metadata["compared_costs"] = {
            name: {
                "total_cost": breakdown.total_cost,
                "transportation_cost": breakdown.transportation_cost,
                "facility_cost": breakdown.facility_cost,
                "num_sites": breakdown.num_sites,
                "num_new_sites": breakdown.num_new_sites,
            }
            for name, breakdown in outcome.compared_costs.items()
        }
    if settings.include_service_areas:
        overlays = service_area_overlays(outcome.dcs)
        if overlays:
            metadata["map_overlays"] = {"polygons": overlays}

    status = outcome.cluster_status.value if outcome.cluster_status else "not_applicable"
    logging.info(
        f"Facility location finished: {len(outcome.dcs)} sites ({outcome.strategy}), "
        f"total cost {cost_breakdown.total_cost:.2f}, feasible={not warnings}"
    )
    return LocationResult(
        dcs=outcome.dcs,
        feasible=not warnings,
        warnings=warnings,
        cost_breakdown=cost_breakdown,
        status=status,
        strategy=outcome.strategy,
        kpis=kpis,
        metadata=metadata,
    )


def _dc_to_model(dc: DistributionCenter) -> DistributionCenterModel:
    return DistributionCenterModel(
        id=dc.site_id,
        latitude=dc.latitude,
        longitude=dc.longitude,
        assigned_customers=[
            AssignedCustomerModel(
                id=customer.customer_id,
                name=customer.name,
                latitude=customer.latitude,
                longitude=customer.longitude,
                demand=customer.total_demand,
                conversion_factor=customer.conversion_factor,
            )
            for customer in dc.assigned_customers
        ],
        total_demand=dc.total_demand,
        is_existing=dc.is_existing,
        capacity=dc.capacity,
    )


def process_location_request(payload: LocationRequest) -> LocationResponse:
    customers = [
        DemandPoint(
            customer_id=item.id,
            latitude=item.latitude,
            longitude=item.longitude,
            demand=item.demand_by_product(),
            conversion_factor=item.conversion_factor,
            name=item.name,
        )
        for item in payload.customers
    ]
    existing_sites = [
        Site(
            site_id=item.id,
            latitude=item.latitude,
            longitude=item.longitude,
            is_existing=True,
            total_capacity=item.capacity,
            name=item.name,
        )
        for item in payload.existing_sites
    ]
    options = payload.settings

    result = optimize_locations(
        customers,
        existing_sites,
        mode=options.mode,
        num_dcs=options.num_dcs,
        dc_capacity=options.dc_capacity,
        rate=options.transportation_cost_per_mile_per_unit,
        facility_cost=options.facility_cost,
        distance_unit=options.distance_unit,
        include_existing_sites=options.include_existing_sites,
        existing_sites_mode=options.existing_sites_mode,
        random_state=options.random_seed,
    )

    breakdown = result.cost_breakdown
    return LocationResponse(
        dcs=[_dc_to_model(dc) for dc in result.dcs],
        feasible=result.feasible,
        warnings=result.warnings,
        cost_breakdown=CostBreakdownModel(
            total_cost=breakdown.total_cost,
            transportation_cost=breakdown.transportation_cost,
            facility_cost=breakdown.facility_cost,
            num_sites=breakdown.num_sites,
            num_new_sites=breakdown.num_new_sites,
        ),
        status=result.status,
        strategy=result.strategy,
        kpis=LocationKPIModel(
            total_demand=result.kpis.total_demand,
            served_demand=result.kpis.served_demand,
            unmet_demand=result.kpis.unmet_demand,
            service_level=result.kpis.service_level,
            avg_distance=result.kpis.avg_distance,
            max_distance=result.kpis.max_distance,
        ),
        metadata=result.metadata,
    )


def process_gravity_request(payload: GravityRequest) -> GravityResponse:
    customers = [
        DemandPoint(
            customer_id=item.id,
            latitude=item.latitude,
            longitude=item.longitude,
            demand=dict(item.demand),
            conversion_factor=item.conversion_factor,
            name=item.name,
        )
        for item in payload.customers
    ]
    facilities = [
        Site(
            site_id=item.id,
            latitude=item.latitude,
            longitude=item.longitude,
            capacity=dict(item.capacity),
            is_existing=item.is_existing,
            name=item.name,
        )
        for item in payload.facilities
    ]
    products = [Product(product_id=item.id, name=item.name) for item in payload.products]

    allocator = GravityAllocator(
        transport_cost_per_distance_unit=payload.settings.transport_cost_per_distance_unit,
        fixed_cost_per_facility=payload.settings.fixed_cost_per_facility,
        distance_unit=payload.settings.distance_unit,
    )
    result = allocator.allocate(customers, facilities, products)

    customer_names = {customer.customer_id: customer.name for customer in customers}
    facility_names = {facility.site_id: facility.name for facility in facilities}
    kpis = result.kpis
    return GravityResponse(
        allocation=[
            AllocationModel(
                customer_id=item.customer_id,
                customer_name=customer_names.get(item.customer_id),
                facility_id=item.site_id,
                facility_name=facility_names.get(item.site_id),
                product_id=item.product_id,
                quantity=item.quantity,
                distance=item.distance,
                transport_cost=item.transport_cost,
            )
            for item in result.assignments
        ],
        kpis=AllocationKPIModel(
            total_cost=kpis.total_cost,
            transport_cost=kpis.transport_cost,
            fixed_cost=kpis.fixed_cost,
            facilities_used=kpis.facilities_used,
            total_distance=kpis.total_distance,
            avg_distance=kpis.avg_distance,
            service_level=kpis.service_level,
            total_demand=kpis.total_demand,
            allocated_demand=kpis.allocated_demand,
            unmet_demand=kpis.unmet_demand,
        ),
        facility_usage=[
            FacilityUsageModel(
                id=usage.site_id,
                name=usage.name,
                customers_served=len(usage.customers),
                utilization=[UtilizationModel(**row) for row in usage.utilization()],
            )
            for usage in result.usage
        ],
        summary=AllocationSummaryModel(
            total_allocations=len(result.assignments),
            customers_served=result.customers_served,
            facilities_used=kpis.facilities_used,
        ),
    )
