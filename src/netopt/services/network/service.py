"""High-level orchestration for network flow optimization requests."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Sequence

from ...config import settings
from ...models.domain import ArcDistance, DemandPoint, Product, Site, SolverStatus, Supplier
from ...schemas.network import FlowModel, NetworkRequest, NetworkResponse
from .backends import get_backend
from .builder import MissingValuePolicy, ObjectiveType, build_network_model


@dataclass(slots=True)
class Flow:
    product_id: str
    from_id: str
    to_id: str
    quantity: float


@dataclass(slots=True)
class NetworkResult:
    flows: list[Flow]
    objective_value: float
    iterations: int
    status: SolverStatus
    warnings: list[str] = field(default_factory=list)


def solve_network(
    *,
    suppliers: Sequence[Supplier],
    facilities: Sequence[Site],
    customers: Sequence[DemandPoint],
    products: Sequence[Product],
    distances: Sequence[ArcDistance],
    transportation_rate: float | None = None,
    objective: ObjectiveType = "cost",
    backend: str | None = None,
    policy: MissingValuePolicy | str | None = None,
    enforce_supply_balance: bool | None = None,
    noise_threshold: float | None = None,
) -> NetworkResult:
    if not facilities:
        raise ValueError("At least one facility is required for network optimization.")
    if not customers:
        raise ValueError("At least one customer is required for network optimization.")
    if not products:
        raise ValueError("At least one product is required for network optimization.")

    rate = settings.default_transport_rate if transportation_rate is None else transportation_rate
    threshold = settings.flow_noise_threshold if noise_threshold is None else noise_threshold

    model = build_network_model(
        suppliers=suppliers,
        facilities=facilities,
        customers=customers,
        products=products,
        distances=distances,
        transportation_rate=rate,
        objective=objective,
        policy=policy,
        enforce_supply_balance=enforce_supply_balance,
    )
    logging.info(
        f"Built network model with {len(model.variables)} flow variables and {len(model.b)} constraints "
        f"({len(products)} products, {len(suppliers)} suppliers, {len(facilities)} facilities, "
        f"{len(customers)} customers)"
    )

    solver = get_backend(backend or settings.lp_backend)
    result = solver.solve(model.c, model.A, model.b)

    flows = [
        Flow(
            product_id=variable.product_id,
            from_id=variable.from_id,
            to_id=variable.to_id,
            quantity=float(value),
        )
        for variable, value in zip(model.variables, result.solution)
        if value > threshold
    ]

    warnings = list(model.warnings)
    if result.status is not SolverStatus.OPTIMAL:
        warnings.append(f"Solver finished with status '{result.status.value}' after {result.iterations} iterations.")

    logging.info(
        f"Network optimization finished: status={result.status.value}, iterations={result.iterations}, "
        f"objective={result.objective_value:.2f}, flows={len(flows)}"
    )
    return NetworkResult(
        flows=flows,
        objective_value=result.objective_value,
        iterations=result.iterations,
        status=result.status,
        warnings=warnings,
    )


def process_network_request(payload: NetworkRequest) -> NetworkResponse:
    suppliers = [
        Supplier(supplier_id=item.id, name=item.name, latitude=item.latitude, longitude=item.longitude)
        for item in payload.suppliers
    ]
    facilities = [
        Site(
            site_id=item.id,
            latitude=item.latitude,
            longitude=item.longitude,
            capacity=dict(item.capacity),
            name=item.name,
        )
        for item in payload.facilities
    ]
    customers = [
        DemandPoint(
            customer_id=item.id,
            latitude=item.latitude,
            longitude=item.longitude,
            demand=dict(item.demand),
            name=item.name,
        )
        for item in payload.customers
    ]
    products = [Product(product_id=item.id, name=item.name) for item in payload.products]
    distances = [ArcDistance(from_id=item.from_, to_id=item.to, distance=item.distance) for item in payload.distances]

    result = solve_network(
        suppliers=suppliers,
        facilities=facilities,
        customers=customers,
        products=products,
        distances=distances,
        transportation_rate=payload.costs.transportation,
        objective=payload.settings.objective_type,
        backend=payload.settings.backend,
        policy=payload.settings.missing_value_policy,
        enforce_supply_balance=payload.settings.enforce_supply_balance,
    )

    return NetworkResponse(
        flows=[
            FlowModel(product=flow.product_id, from_=flow.from_id, to=flow.to_id, quantity=flow.quantity)
            for flow in result.flows
        ],
        objective_value=result.objective_value,
        iterations=result.iterations,
        status=result.status.value,
        warnings=result.warnings,
    )
