"""Domain models for demand points, sites and solver outputs."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class SolverStatus(str, Enum):
    """Outcome of a linear programming run."""

    OPTIMAL = "optimal"
    ITERATION_CAP_REACHED = "iteration_cap_reached"
    UNBOUNDED = "unbounded"
    INFEASIBLE = "infeasible"


class ClusterStatus(str, Enum):
    """Outcome of a clustering run."""

    CONVERGED = "converged"
    ITERATION_CAP_REACHED = "iteration_cap_reached"


@dataclass(slots=True, frozen=True)
class Product:
    product_id: str
    name: Optional[str] = None


@dataclass(slots=True, frozen=True)
class Supplier:
    supplier_id: str
    name: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None


@dataclass(slots=True, frozen=True)
class DemandPoint:
    """A customer location with per-product demand.

    A demand value of ``None`` marks the quantity as unknown; solvers decide
    how to treat it.
    """

    customer_id: str
    latitude: float
    longitude: float
    demand: dict[str, Optional[float]] = field(default_factory=dict)
    conversion_factor: float = 1.0
    name: Optional[str] = None

    @property
    def total_demand(self) -> float:
        return sum(value for value in self.demand.values() if value is not None)

    def demand_for(self, product_id: str) -> Optional[float]:
        return self.demand.get(product_id)


@dataclass(slots=True, frozen=True)
class Site:
    """A facility, either already built or a candidate location.

    ``capacity`` maps product ids to capacity; a missing key or ``None`` means
    the capacity was not declared and ``math.inf`` means unbounded.
    ``total_capacity`` is the product-independent throughput limit used by the
    facility location capacity check.
    """

    site_id: str
    latitude: float
    longitude: float
    capacity: dict[str, Optional[float]] = field(default_factory=dict)
    is_existing: bool = False
    total_capacity: Optional[float] = None
    name: Optional[str] = None

    def capacity_for(self, product_id: str) -> Optional[float]:
        return self.capacity.get(product_id)


@dataclass(slots=True, frozen=True)
class ArcDistance:
    from_id: str
    to_id: str
    distance: Optional[float]


@dataclass(slots=True)
class Assignment:
    customer_id: str
    site_id: str
    product_id: str
    quantity: float
    distance: float
    transport_cost: float = 0.0


@dataclass(slots=True)
class DistributionCenter:
    """A chosen site together with the customers it serves in one run."""

    site_id: str
    latitude: float
    longitude: float
    assigned_customers: list[DemandPoint] = field(default_factory=list)
    is_existing: bool = False
    capacity: Optional[float] = None

    @property
    def total_demand(self) -> float:
        return sum(customer.total_demand for customer in self.assigned_customers)


@dataclass(slots=True)
class CostBreakdown:
    total_cost: float
    transportation_cost: float
    facility_cost: float
    num_sites: int
    num_new_sites: int
