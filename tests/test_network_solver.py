import math

import numpy as np
import pytest

from src.netopt.config import settings
from src.netopt.models.domain import ArcDistance, DemandPoint, Product, Site, SolverStatus, Supplier
from src.netopt.services.network import MissingDataError, SimplexSolver, build_network_model, solve_network
from src.netopt.services.network.builder import Placeholders


def _customer(customer_id: str, **demand) -> DemandPoint:
    return DemandPoint(customer_id=customer_id, latitude=0.0, longitude=0.0, demand=demand)


def _facility(site_id: str, **capacity) -> Site:
    return Site(site_id=site_id, latitude=0.0, longitude=0.0, capacity=capacity)


def _flows_by_arc(result):
    return {(flow.product_id, flow.from_id, flow.to_id): flow.quantity for flow in result.flows}


def test_single_arc_ships_customer_demand():
    result = solve_network(
        suppliers=[],
        facilities=[_facility("F1", P1=120.0)],
        customers=[_customer("C1", P1=80.0)],
        products=[Product("P1")],
        distances=[ArcDistance("F1", "C1", 10.0)],
        transportation_rate=2.0,
    )

    assert result.status is SolverStatus.OPTIMAL
    assert _flows_by_arc(result) == {("P1", "F1", "C1"): pytest.approx(80.0)}
    assert result.objective_value == pytest.approx(2.0 * 10.0 * 80.0)
    assert result.warnings == []


def test_single_arc_is_limited_by_capacity():
    result = solve_network(
        suppliers=[],
        facilities=[_facility("F1", P1=120.0)],
        customers=[_customer("C1", P1=200.0)],
        products=[Product("P1")],
        distances=[ArcDistance("F1", "C1", 10.0)],
        transportation_rate=1.0,
    )

    assert _flows_by_arc(result) == {("P1", "F1", "C1"): pytest.approx(120.0)}


def test_supplier_inbound_mirrors_outbound_flow():
    result = solve_network(
        suppliers=[Supplier("S1")],
        facilities=[_facility("F1", P1=120.0)],
        customers=[_customer("C1", P1=80.0)],
        products=[Product("P1")],
        distances=[ArcDistance("S1", "F1", 5.0), ArcDistance("F1", "C1", 10.0)],
        transportation_rate=2.0,
    )

    flows = _flows_by_arc(result)
    assert result.status is SolverStatus.OPTIMAL
    assert flows[("P1", "S1", "F1")] == pytest.approx(80.0)
    assert flows[("P1", "F1", "C1")] == pytest.approx(80.0)
    assert result.objective_value == pytest.approx(2.0 * (5.0 + 10.0) * 80.0)


def test_single_listed_arc_with_a_supplier_ships_one_flow():
    result = solve_network(
        suppliers=[Supplier("S1")],
        facilities=[_facility("F1", P1=120.0)],
        customers=[_customer("C1", P1=80.0)],
        products=[Product("P1")],
        distances=[ArcDistance("F1", "C1", 10.0)],
        transportation_rate=2.0,
    )

    assert result.status is SolverStatus.OPTIMAL
    assert _flows_by_arc(result) == {("P1", "F1", "C1"): pytest.approx(80.0)}
    assert result.objective_value == pytest.approx(2.0 * 10.0 * 80.0)


def test_two_suppliers_feeding_one_facility_report_consistent_flows():
    suppliers = [Supplier("S1"), Supplier("S2")]
    facilities = [_facility("F1", P1=100.0)]
    customers = [_customer("C1", P1=70.0)]
    distances = [ArcDistance("S1", "F1", 5.0), ArcDistance("S2", "F1", 8.0), ArcDistance("F1", "C1", 10.0)]

    result = solve_network(
        suppliers=suppliers,
        facilities=facilities,
        customers=customers,
        products=[Product("P1")],
        distances=distances,
        transportation_rate=2.0,
    )

    flows = _flows_by_arc(result)
    inbound = sum(quantity for (_, source, _), quantity in flows.items() if source in {"S1", "S2"})
    assert result.status is SolverStatus.OPTIMAL
    assert flows[("P1", "F1", "C1")] == pytest.approx(70.0)
    assert inbound == pytest.approx(70.0)

    weights = {(arc.from_id, arc.to_id): 2.0 * arc.distance for arc in distances}
    expected = sum(weights[(source, target)] * quantity for (_, source, target), quantity in flows.items())
    assert result.objective_value == pytest.approx(expected)


def test_network_solution_satisfies_every_constraint_row():
    model = build_network_model(
        suppliers=[Supplier("S1"), Supplier("S2")],
        facilities=[_facility("F1", P1=100.0), _facility("F2", P1=80.0)],
        customers=[_customer("C1", P1=70.0), _customer("C2", P1=90.0)],
        products=[Product("P1")],
        distances=[
            ArcDistance("S1", "F1", 12.0),
            ArcDistance("S1", "F2", 30.0),
            ArcDistance("S2", "F1", 25.0),
            ArcDistance("S2", "F2", 8.0),
            ArcDistance("F1", "C1", 5.0),
            ArcDistance("F1", "C2", 14.0),
            ArcDistance("F2", "C1", 11.0),
            ArcDistance("F2", "C2", 6.0),
        ],
        transportation_rate=1.5,
    )

    result = SimplexSolver().solve(model.c, model.A, model.b)

    assert result.objective_value == pytest.approx(float(model.c @ result.solution))
    assert np.all(model.A @ result.solution <= model.b + 1e-6)
    assert np.all(result.solution >= -1e-9)


def test_supplier_arc_listed_without_distance_takes_placeholder():
    result = solve_network(
        suppliers=[Supplier("S1")],
        facilities=[_facility("F1", P1=120.0)],
        customers=[_customer("C1", P1=80.0)],
        products=[Product("P1")],
        distances=[ArcDistance("S1", "F1", None), ArcDistance("F1", "C1", 10.0)],
        transportation_rate=1.0,
    )

    assert _flows_by_arc(result)[("P1", "S1", "F1")] == pytest.approx(80.0)
    assert "Missing distance S1->F1; using placeholder 100." in result.warnings


def test_placeholders_follow_current_settings(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(settings, "default_missing_demand", 7.0)

    result = solve_network(
        suppliers=[],
        facilities=[_facility("F1", P1=100.0)],
        customers=[_customer("C1")],
        products=[Product("P1")],
        distances=[ArcDistance("F1", "C1", 10.0)],
        transportation_rate=1.0,
    )

    assert Placeholders().demand == 7.0
    assert _flows_by_arc(result) == {("P1", "F1", "C1"): pytest.approx(7.0)}


def test_supplier_arcs_without_balance_rows_are_unbounded():
    result = solve_network(
        suppliers=[Supplier("S1")],
        facilities=[_facility("F1", P1=120.0)],
        customers=[_customer("C1", P1=80.0)],
        products=[Product("P1")],
        distances=[ArcDistance("S1", "F1", 5.0), ArcDistance("F1", "C1", 10.0)],
        transportation_rate=2.0,
        enforce_supply_balance=False,
    )

    assert result.status is SolverStatus.UNBOUNDED
    assert any("unbounded" in warning for warning in result.warnings)


def test_time_objective_uses_assumed_speed():
    result = solve_network(
        suppliers=[],
        facilities=[_facility("F1", P1=100.0)],
        customers=[_customer("C1", P1=30.0)],
        products=[Product("P1")],
        distances=[ArcDistance("F1", "C1", 120.0)],
        transportation_rate=5.0,
        objective="time",
    )

    # 120 km at 60 km/h is two hours per unit; the rate plays no part.
    assert result.objective_value == pytest.approx(2.0 * 30.0)


def test_flows_respect_demand_and_capacity_limits():
    products = [Product("P1"), Product("P2")]
    facilities = [_facility("F1", P1=100.0, P2=50.0), _facility("F2", P1=80.0, P2=60.0)]
    customers = [
        _customer("C1", P1=70.0, P2=20.0),
        _customer("C2", P1=60.0, P2=40.0),
        _customer("C3", P1=90.0, P2=30.0),
    ]
    distances = [
        ArcDistance(facility.site_id, customer.customer_id, float(10 + 7 * i + 3 * j))
        for i, facility in enumerate(facilities)
        for j, customer in enumerate(customers)
    ]

    result = solve_network(
        suppliers=[],
        facilities=facilities,
        customers=customers,
        products=products,
        distances=distances,
        transportation_rate=1.0,
    )

    assert result.status is SolverStatus.OPTIMAL
    for flow in result.flows:
        assert flow.quantity > 0

    for product in products:
        for customer in customers:
            shipped = sum(
                flow.quantity
                for flow in result.flows
                if flow.product_id == product.product_id and flow.to_id == customer.customer_id
            )
            assert shipped <= customer.demand_for(product.product_id) + 1e-6
        for facility in facilities:
            shipped = sum(
                flow.quantity
                for flow in result.flows
                if flow.product_id == product.product_id and flow.from_id == facility.site_id
            )
            assert shipped <= facility.capacity_for(product.product_id) + 1e-6

    weights = {(arc.from_id, arc.to_id): arc.distance for arc in distances}
    expected = sum(weights[(flow.from_id, flow.to_id)] * flow.quantity for flow in result.flows)
    assert result.objective_value == pytest.approx(expected, abs=0.5)


def test_simplex_and_glop_backends_agree_on_network():
    kwargs = dict(
        suppliers=[Supplier("S1"), Supplier("S2")],
        facilities=[_facility("F1", P1=100.0), _facility("F2", P1=80.0)],
        customers=[_customer("C1", P1=70.0), _customer("C2", P1=90.0)],
        products=[Product("P1")],
        distances=[
            ArcDistance("S1", "F1", 12.0),
            ArcDistance("S1", "F2", 30.0),
            ArcDistance("S2", "F1", 25.0),
            ArcDistance("S2", "F2", 8.0),
            ArcDistance("F1", "C1", 5.0),
            ArcDistance("F1", "C2", 14.0),
            ArcDistance("F2", "C1", 11.0),
            ArcDistance("F2", "C2", 6.0),
        ],
        transportation_rate=1.5,
    )

    simplex = solve_network(backend="simplex", **kwargs)
    glop = solve_network(backend="glop", **kwargs)

    assert simplex.status is SolverStatus.OPTIMAL
    assert glop.status is SolverStatus.OPTIMAL
    assert simplex.objective_value == pytest.approx(glop.objective_value, rel=1e-6)


def test_missing_values_fall_back_to_placeholders_with_warnings():
    result = solve_network(
        suppliers=[],
        facilities=[_facility("F1", P1=1000.0)],
        customers=[_customer("C1")],
        products=[Product("P1")],
        distances=[],
        transportation_rate=1.0,
    )

    assert _flows_by_arc(result) == {("P1", "F1", "C1"): pytest.approx(100.0)}
    assert result.objective_value == pytest.approx(100.0 * 50.0)
    assert "Missing demand of P1 at C1; using placeholder 100." in result.warnings
    assert "Missing distance F1->C1; using placeholder 50." in result.warnings


def test_explicit_zero_demand_is_not_replaced():
    result = solve_network(
        suppliers=[],
        facilities=[_facility("F1", P1=100.0)],
        customers=[_customer("C1", P1=0.0)],
        products=[Product("P1")],
        distances=[ArcDistance("F1", "C1", 10.0)],
        transportation_rate=1.0,
    )

    assert result.flows == []
    assert result.objective_value == 0.0
    assert result.warnings == []


def test_reject_policy_raises_on_missing_data():
    with pytest.raises(MissingDataError, match="capacity of P1 at F1"):
        solve_network(
            suppliers=[],
            facilities=[_facility("F1")],
            customers=[_customer("C1", P1=10.0)],
            products=[Product("P1")],
            distances=[ArcDistance("F1", "C1", 10.0)],
            policy="reject",
        )


@pytest.mark.parametrize(
    "facilities, customers, products",
    [
        ([], [_customer("C1", P1=1.0)], [Product("P1")]),
        ([_facility("F1", P1=1.0)], [], [Product("P1")]),
        ([_facility("F1", P1=1.0)], [_customer("C1", P1=1.0)], []),
    ],
)
def test_solve_network_requires_facilities_customers_and_products(facilities, customers, products):
    with pytest.raises(ValueError):
        solve_network(
            suppliers=[],
            facilities=facilities,
            customers=customers,
            products=products,
            distances=[],
        )


def test_builder_orders_variables_and_constraint_rows():
    model = build_network_model(
        suppliers=[Supplier("S1")],
        facilities=[_facility("F1", P1=10.0), _facility("F2", P1=20.0)],
        customers=[_customer("C1", P1=5.0)],
        products=[Product("P1")],
        distances=[
            ArcDistance("S1", "F1", 1.0),
            ArcDistance("S1", "F2", 2.0),
            ArcDistance("F1", "C1", 3.0),
            ArcDistance("F2", "C1", 4.0),
        ],
        transportation_rate=2.0,
    )

    assert [variable.name for variable in model.variables] == [
        "flow_P1_S1_F1",
        "flow_P1_S1_F2",
        "flow_P1_F1_C1",
        "flow_P1_F2_C1",
    ]
    assert model.c.tolist() == [2.0, 4.0, 6.0, 8.0]
    assert model.row_labels == [
        "demand_P1_C1",
        "capacity_P1_F1",
        "capacity_P1_F2",
        "balance_P1_F1",
        "balance_P1_F2",
    ]
    assert model.b.tolist() == [5.0, 10.0, 20.0, 0.0, 0.0]
    assert model.A[3].tolist() == [1.0, 0.0, -1.0, 0.0]
    assert model.index_of("P1", "F2", "C1") == 3


def test_builder_skips_rows_for_unbounded_capacity():
    model = build_network_model(
        suppliers=[],
        facilities=[_facility("F1", P1=math.inf)],
        customers=[_customer("C1", P1=5.0)],
        products=[Product("P1")],
        distances=[ArcDistance("F1", "C1", 3.0)],
        transportation_rate=1.0,
    )

    assert model.row_labels == ["demand_P1_C1"]
