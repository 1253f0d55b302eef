"""Gravity-score greedy allocation of demand to capacity-constrained facilities."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Sequence

from ...config import settings
from ...models.domain import Assignment, DemandPoint, Product, Site
from ..costing import AllocationKPIs, compute_allocation_kpis, transport_cost
from ..geospatial import DistanceUnit, convert_distance, haversine_km


@dataclass(slots=True)
class FacilityUsage:
    site_id: str
    name: str | None
    capacity: dict[str, float]
    used: dict[str, float] = field(default_factory=dict)
    customers: list[str] = field(default_factory=list)

    def utilization(self) -> list[dict]:
        rows = []
        for product_id, capacity in self.capacity.items():
            used = self.used.get(product_id, 0.0)
            percentage = (used / capacity * 100) if capacity > 0 and not math.isinf(capacity) else 0.0
            rows.append({"product": product_id, "used": used, "capacity": capacity, "percentage": percentage})
        return rows


@dataclass(slots=True)
class AllocationResult:
    assignments: list[Assignment]
    kpis: AllocationKPIs
    usage: list[FacilityUsage]

    @property
    def customers_served(self) -> int:
        return len({item.customer_id for item in self.assignments})


def gravity_score(capacity: float, demand: float, distance_km: float) -> float:
    """Attractiveness of a facility: ``capacity * demand / distance**2``.

    A facility at zero distance scores infinity.
    """

    if distance_km == 0:
        return math.inf
    return (capacity * demand) / distance_km**2


class GravityAllocator:
    """Assign each (customer, product) demand to the highest-scoring facility.

    Demand is split across facilities when the preferred one runs out of
    capacity. There is no backtracking: demand left over once every facility
    is exhausted stays unmet.
    """

    def __init__(
        self,
        *,
        transport_cost_per_distance_unit: float | None = None,
        fixed_cost_per_facility: float | None = None,
        distance_unit: DistanceUnit = "km",
    ) -> None:
        self.rate = (
            settings.default_transport_rate
            if transport_cost_per_distance_unit is None
            else transport_cost_per_distance_unit
        )
        self.fixed_cost = (
            settings.default_facility_cost if fixed_cost_per_facility is None else fixed_cost_per_facility
        )
        self.distance_unit = distance_unit

    @staticmethod
    def _declared_capacity(facility: Site, product_id: str) -> float:
        value = facility.capacity_for(product_id)
        return 0.0 if value is None else float(value)

    def allocate(
        self,
        customers: Sequence[DemandPoint],
        facilities: Sequence[Site],
        products: Sequence[Product],
    ) -> AllocationResult:
        if not customers:
            raise ValueError("At least one customer is required for gravity allocation.")
        if not facilities:
            raise ValueError("At least one facility is required for gravity allocation.")
        if not products:
            raise ValueError("At least one product is required for gravity allocation.")

        remaining_capacity: dict[tuple[str, str], float] = {
            (facility.site_id, product.product_id): self._declared_capacity(facility, product.product_id)
            for facility in facilities
            for product in products
        }
        usage = {
            facility.site_id: FacilityUsage(
                site_id=facility.site_id,
                name=facility.name,
                capacity={
                    product.product_id: self._declared_capacity(facility, product.product_id) for product in products
                },
                used={product.product_id: 0.0 for product in products},
            )
            for facility in facilities
        }

        assignments: list[Assignment] = []
        total_demand = 0.0
        for customer in customers:
            distances = [
                haversine_km(facility.latitude, facility.longitude, customer.latitude, customer.longitude)
                for facility in facilities
            ]
            for product in products:
                demand = customer.demand_for(product.product_id) or 0.0
                if demand <= 0:
                    continue
                total_demand += demand
                remaining = demand

                while remaining > 0:
                    best_index = None
                    best_key: tuple[float, float] | None = None
                    for index, facility in enumerate(facilities):
                        if remaining_capacity[(facility.site_id, product.product_id)] <= 0:
                            continue
                        score = gravity_score(
                            self._declared_capacity(facility, product.product_id), remaining, distances[index]
                        )
                        key = (score, -distances[index])
                        if best_key is None or key > best_key:
                            best_key = key
                            best_index = index

                    if best_index is None:
                        break

                    facility = facilities[best_index]
                    capacity_key = (facility.site_id, product.product_id)
                    quantity = min(remaining, remaining_capacity[capacity_key])
                    distance = convert_distance(distances[best_index], self.distance_unit)
                    assignments.append(
                        Assignment(
                            customer_id=customer.customer_id,
                            site_id=facility.site_id,
                            product_id=product.product_id,
                            quantity=quantity,
                            distance=distance,
                            transport_cost=transport_cost(
                                distances[best_index],
                                quantity,
                                self.rate,
                                unit=self.distance_unit,
                                conversion_factor=customer.conversion_factor,
                            ),
                        )
                    )
                    remaining -= quantity
                    remaining_capacity[capacity_key] -= quantity
                    facility_usage = usage[facility.site_id]
                    facility_usage.used[product.product_id] += quantity
                    if customer.customer_id not in facility_usage.customers:
                        facility_usage.customers.append(customer.customer_id)

                if remaining > 0:
                    logging.warning(
                        f"Unmet demand of {remaining:.2f} {product.product_id} for customer "
                        f"{customer.customer_id}: no facility has remaining capacity"
                    )

        kpis = compute_allocation_kpis(
            assignments,
            total_demand=total_demand,
            fixed_cost_per_facility=self.fixed_cost,
            charged_facilities={facility.site_id for facility in facilities if not facility.is_existing},
        )
        logging.info(
            f"Gravity allocation finished: {len(assignments)} assignments across {kpis.facilities_used} facilities, "
            f"service level {kpis.service_level:.1f}%, total cost {kpis.total_cost:.2f}"
        )
        return AllocationResult(assignments=assignments, kpis=kpis, usage=list(usage.values()))
