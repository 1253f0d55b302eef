"""Build the multi-echelon flow linear program from network topology."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Literal, Optional, Sequence

import numpy as np

from ...config import settings
from ...models.domain import ArcDistance, DemandPoint, Product, Site, Supplier

ObjectiveType = Literal["cost", "time"]


class MissingDataError(ValueError):
    """Raised when a required quantity is absent and the policy rejects defaults."""


class MissingValuePolicy(str, Enum):
    DEFAULT = "default"
    REJECT = "reject"


@dataclass(slots=True, frozen=True)
class FlowVariable:
    product_id: str
    from_id: str
    to_id: str
    kind: Literal["inbound", "outbound"]

    @property
    def name(self) -> str:
        return f"flow_{self.product_id}_{self.from_id}_{self.to_id}"


@dataclass(slots=True)
class Placeholders:
    """Substitutes for missing inputs, read from settings when constructed."""

    demand: float = field(default_factory=lambda: settings.default_missing_demand)
    capacity: float = field(default_factory=lambda: settings.default_missing_capacity)
    supplier_distance: float = field(default_factory=lambda: settings.default_supplier_distance)
    customer_distance: float = field(default_factory=lambda: settings.default_customer_distance)


@dataclass(slots=True)
class NetworkModel:
    c: np.ndarray
    A: np.ndarray
    b: np.ndarray
    variables: list[FlowVariable]
    row_labels: list[str]
    warnings: list[str] = field(default_factory=list)

    def index_of(self, product_id: str, from_id: str, to_id: str) -> int:
        for index, variable in enumerate(self.variables):
            if (variable.product_id, variable.from_id, variable.to_id) == (product_id, from_id, to_id):
                return index
        raise KeyError(f"No flow variable for {product_id} {from_id}->{to_id}")


class _Resolver:
    """Apply the missing-value policy and collect substitution warnings."""

    def __init__(self, policy: MissingValuePolicy, placeholders: Placeholders) -> None:
        self.policy = policy
        self.placeholders = placeholders
        self.warnings: list[str] = []

    def resolve(self, value: Optional[float], placeholder: float, description: str) -> float:
        if value is not None:
            return float(value)
        if self.policy is MissingValuePolicy.REJECT:
            raise MissingDataError(f"Missing {description}.")
        message = f"Missing {description}; using placeholder {placeholder:g}."
        logging.warning(message)
        self.warnings.append(message)
        return placeholder


def _arc_weight(distance: float, *, objective: ObjectiveType, rate: float, speed_kmh: float) -> float:
    match objective:
        case "cost":
            return rate * distance
        case "time":
            return distance / speed_kmh
        case _:
            raise ValueError(f"Unknown objective type '{objective}'.")


def build_network_model(
    *,
    suppliers: Sequence[Supplier],
    facilities: Sequence[Site],
    customers: Sequence[DemandPoint],
    products: Sequence[Product],
    distances: Sequence[ArcDistance],
    transportation_rate: float,
    objective: ObjectiveType = "cost",
    policy: MissingValuePolicy | str | None = None,
    placeholders: Placeholders | None = None,
    enforce_supply_balance: bool | None = None,
    speed_kmh: float | None = None,
) -> NetworkModel:
    """Lay out one flow variable per product and arc, plus the constraint rows.

    Variables are ordered by product, then supplier->facility arcs, then
    facility->customer arcs. A supplier->facility arc exists only when the
    distance table lists it; every facility->customer arc exists. Rows are the
    demand family (product, customer), the capacity family (product, facility)
    and, when enabled, the supply balance family (product, facility) that
    limits inbound flow to what the facility ships out.
    """

    policy = MissingValuePolicy(policy or settings.missing_value_policy)
    resolver = _Resolver(policy, placeholders or Placeholders())
    if enforce_supply_balance is None:
        enforce_supply_balance = settings.enforce_supply_balance
    if speed_kmh is None:
        speed_kmh = settings.assumed_speed_kmh
    if objective == "time" and speed_kmh <= 0:
        raise ValueError("Assumed speed must be positive for the time objective.")

    distance_lookup: dict[tuple[str, str], Optional[float]] = {}
    for arc in distances:
        distance_lookup.setdefault((arc.from_id, arc.to_id), arc.distance)

    variables: list[FlowVariable] = []
    for product in products:
        for supplier in suppliers:
            for facility in facilities:
                if (supplier.supplier_id, facility.site_id) not in distance_lookup:
                    continue
                variables.append(FlowVariable(product.product_id, supplier.supplier_id, facility.site_id, "inbound"))
        for facility in facilities:
            for customer in customers:
                variables.append(FlowVariable(product.product_id, facility.site_id, customer.customer_id, "outbound"))
    index = {(v.product_id, v.from_id, v.to_id): i for i, v in enumerate(variables)}

    c = np.zeros(len(variables), dtype=float)
    weights_by_arc: dict[tuple[str, str], float] = {}
    for i, variable in enumerate(variables):
        arc = (variable.from_id, variable.to_id)
        if arc not in weights_by_arc:
            placeholder = (
                resolver.placeholders.supplier_distance
                if variable.kind == "inbound"
                else resolver.placeholders.customer_distance
            )
            distance = resolver.resolve(
                distance_lookup.get(arc), placeholder, f"distance {variable.from_id}->{variable.to_id}"
            )
            weights_by_arc[arc] = _arc_weight(
                distance, objective=objective, rate=transportation_rate, speed_kmh=speed_kmh
            )
        c[i] = weights_by_arc[arc]

    rows: list[np.ndarray] = []
    rhs: list[float] = []
    labels: list[str] = []

    for product in products:
        for customer in customers:
            row = np.zeros(len(variables), dtype=float)
            for facility in facilities:
                row[index[(product.product_id, facility.site_id, customer.customer_id)]] = 1.0
            rows.append(row)
            rhs.append(
                resolver.resolve(
                    customer.demand_for(product.product_id),
                    resolver.placeholders.demand,
                    f"demand of {product.product_id} at {customer.customer_id}",
                )
            )
            labels.append(f"demand_{product.product_id}_{customer.customer_id}")

    for product in products:
        for facility in facilities:
            capacity = resolver.resolve(
                facility.capacity_for(product.product_id),
                resolver.placeholders.capacity,
                f"capacity of {product.product_id} at {facility.site_id}",
            )
            # Unbounded capacity adds no row.
            if math.isinf(capacity):
                continue
            row = np.zeros(len(variables), dtype=float)
            for customer in customers:
                row[index[(product.product_id, facility.site_id, customer.customer_id)]] = 1.0
            rows.append(row)
            rhs.append(capacity)
            labels.append(f"capacity_{product.product_id}_{facility.site_id}")

    if enforce_supply_balance and suppliers:
        for product in products:
            for facility in facilities:
                inbound = [
                    index[key]
                    for key in (
                        (product.product_id, supplier.supplier_id, facility.site_id) for supplier in suppliers
                    )
                    if key in index
                ]
                # A facility without supplier arcs has nothing to balance.
                if not inbound:
                    continue
                row = np.zeros(len(variables), dtype=float)
                row[inbound] = 1.0
                for customer in customers:
                    row[index[(product.product_id, facility.site_id, customer.customer_id)]] = -1.0
                rows.append(row)
                rhs.append(0.0)
                labels.append(f"balance_{product.product_id}_{facility.site_id}")

    A = np.vstack(rows) if rows else np.zeros((0, len(variables)), dtype=float)
    return NetworkModel(
        c=c,
        A=A,
        b=np.asarray(rhs, dtype=float),
        variables=variables,
        row_labels=labels,
        warnings=resolver.warnings,
    )
