"""Map overlays describing the area each site serves."""

from __future__ import annotations

from typing import Sequence

from shapely.geometry import MultiPoint

from ...models.domain import DistributionCenter


def service_area_overlays(dcs: Sequence[DistributionCenter]) -> list[dict]:
    """Convex hull around each site and its customers, as closed [lat, lon] rings.

    Sites whose points are collinear or fewer than three produce no overlay.
    """

    overlays: list[dict] = []
    for dc in dcs:
        points = {(customer.longitude, customer.latitude) for customer in dc.assigned_customers}
        points.add((dc.longitude, dc.latitude))
        if len(points) < 3:
            continue

        hull = MultiPoint(sorted(points)).convex_hull
        if hull.is_empty or hull.geom_type != "Polygon":
            continue

        overlays.append(
            {
                "site_id": dc.site_id,
                "coordinates": [[lat, lon] for lon, lat in hull.exterior.coords],
                "centroid": [hull.centroid.y, hull.centroid.x],
                "source": "convex_hull",
            }
        )
    return overlays
