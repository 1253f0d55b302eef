import numpy as np
import pytest

from src.netopt.models.domain import ClusterStatus, DemandPoint
from src.netopt.services.geospatial import haversine_km
from src.netopt.services.location.clustering import GeodesicKMeans, geodesic_centroid


def _customer(customer_id: str, lat: float, lon: float, demand: float = 10.0) -> DemandPoint:
    return DemandPoint(customer_id=customer_id, latitude=lat, longitude=lon, demand={"default": demand})


def _two_groups() -> list[DemandPoint]:
    return [
        _customer("C1", 10.0, 10.0),
        _customer("C2", 10.05, 10.0),
        _customer("C3", 10.0, 10.05),
        _customer("C4", 20.0, 20.0),
        _customer("C5", 20.05, 20.0),
        _customer("C6", 20.0, 20.05),
    ]


def test_centroid_of_symmetric_points_is_their_center():
    lat, lon = geodesic_centroid([10.1, 9.9, 10.0, 10.0], [20.0, 20.0, 20.1, 19.9], [1.0, 1.0, 1.0, 1.0])

    assert lat == pytest.approx(10.0, abs=1e-6)
    assert lon == pytest.approx(20.0, abs=1e-6)


def test_centroid_snaps_to_a_coincident_point():
    assert geodesic_centroid([0.0, 0.0, 0.0], [0.0, 1.0, -1.0], [1.0, 1.0, 1.0]) == (0.0, 0.0)


def test_centroid_with_zero_weights_uses_equal_weights():
    assert geodesic_centroid([0.0, 0.0, 0.0], [0.0, 1.0, -1.0], [0.0, 0.0, 0.0]) == (0.0, 0.0)


def test_centroid_is_pulled_towards_heavy_points():
    lat, lon = geodesic_centroid([0.0, 0.0], [0.0, 1.0], [10.0, 1.0])

    assert lat == pytest.approx(0.0, abs=1e-9)
    assert abs(lon) < 0.01


def test_centroid_of_single_point_is_the_point():
    assert geodesic_centroid([45.0], [7.0], [3.0]) == (45.0, 7.0)


def test_centroid_requires_points():
    with pytest.raises(ValueError):
        geodesic_centroid([], [], [])


def test_kmeans_separates_distant_groups():
    customers = _two_groups()

    result = GeodesicKMeans(random_state=0).fit(customers, 2)

    assert result.status is ClusterStatus.CONVERGED
    groups = sorted(sorted(c.customer_id for c in dc.assigned_customers) for dc in result.centers)
    assert groups == [["C1", "C2", "C3"], ["C4", "C5", "C6"]]
    for dc in result.centers:
        for customer in dc.assigned_customers:
            assert haversine_km(dc.latitude, dc.longitude, customer.latitude, customer.longitude) < 10.0


def test_kmeans_is_reproducible_with_a_seed():
    customers = _two_groups()

    first = GeodesicKMeans(random_state=42).fit(customers, 2)
    second = GeodesicKMeans(random_state=42).fit(customers, 2)

    assert [(dc.latitude, dc.longitude) for dc in first.centers] == [
        (dc.latitude, dc.longitude) for dc in second.centers
    ]
    assert first.iterations == second.iterations


def test_kmeans_accepts_an_injected_random_state():
    customers = _two_groups()

    first = GeodesicKMeans(random_state=np.random.RandomState(5)).fit(customers, 2)
    second = GeodesicKMeans(random_state=np.random.RandomState(5)).fit(customers, 2)

    assert [dc.site_id for dc in first.centers] == [dc.site_id for dc in second.centers]
    assert [(dc.latitude, dc.longitude) for dc in first.centers] == [
        (dc.latitude, dc.longitude) for dc in second.centers
    ]


def test_kmeans_caps_k_at_customer_count():
    customers = [_customer("C1", 1.0, 1.0), _customer("C2", 2.0, 2.0)]

    result = GeodesicKMeans(random_state=0).fit(customers, 5)

    assert len(result.centers) == 2
    assert sum(len(dc.assigned_customers) for dc in result.centers) == 2


def test_kmeans_drops_empty_clusters():
    customers = [_customer("C1", 3.0, 3.0), _customer("C2", 3.0, 3.0)]

    result = GeodesicKMeans(random_state=0).fit(customers, 2)

    assert len(result.centers) == 1
    assert result.centers[0].site_id == "DC-1"
    assert len(result.centers[0].assigned_customers) == 2


def test_kmeans_reports_iteration_cap():
    result = GeodesicKMeans(random_state=0, max_iterations=1).fit(_two_groups(), 2)

    assert result.status is ClusterStatus.ITERATION_CAP_REACHED
    assert result.iterations == 1


def test_kmeans_rejects_invalid_input():
    with pytest.raises(ValueError):
        GeodesicKMeans().fit(_two_groups(), 0)
    with pytest.raises(ValueError):
        GeodesicKMeans().fit([], 2)
