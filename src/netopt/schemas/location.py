"""Pydantic request/response models for facility location endpoints."""

from __future__ import annotations

from typing import Literal, Optional, Union

from pydantic import Field, field_validator

from .common import CamelModel


class LocationCustomerModel(CamelModel):
    """Customer row as supplied by the data-loading layer.

    ``demand`` may be a single quantity (optionally tagged with ``product``)
    or a mapping of product id to quantity.
    """

    id: str
    name: Optional[str] = None
    latitude: float = Field(..., ge=-90.0, le=90.0)
    longitude: float = Field(..., ge=-180.0, le=180.0)
    demand: Union[float, dict[str, float]] = 0.0
    product: Optional[str] = None
    conversion_factor: float = Field(default=1.0, gt=0.0)

    @field_validator("demand")
    @classmethod
    def validate_demand(cls, value: Union[float, dict[str, float]]) -> Union[float, dict[str, float]]:
        quantities = value.values() if isinstance(value, dict) else [value]
        if any(quantity < 0 for quantity in quantities):
            raise ValueError("demand must be non-negative")
        return value

    def demand_by_product(self) -> dict[str, float]:
        if isinstance(self.demand, dict):
            return dict(self.demand)
        return {self.product or "default": float(self.demand)}


class ExistingSiteModel(CamelModel):
    id: str
    name: Optional[str] = None
    latitude: float = Field(..., ge=-90.0, le=90.0)
    longitude: float = Field(..., ge=-180.0, le=180.0)
    capacity: Optional[float] = Field(default=None, ge=0.0)


class LocationSettingsModel(CamelModel):
    mode: Literal["sites", "cost"] = "sites"
    num_dcs: Optional[int] = Field(default=None, ge=1, alias="numDCs")
    dc_capacity: float = Field(default=0.0, ge=0.0)
    transportation_cost_per_mile_per_unit: Optional[float] = Field(default=None, ge=0.0)
    facility_cost: Optional[float] = Field(default=None, ge=0.0)
    distance_unit: Literal["km", "mile"] = "km"
    include_existing_sites: bool = False
    existing_sites_mode: Literal["always", "potential", "use-existing-subset"] = "always"
    random_seed: Optional[int] = Field(default=None, ge=0, description="Seed for the initial cluster centers.")


class LocationRequest(CamelModel):
    customers: list[LocationCustomerModel]
    existing_sites: list[ExistingSiteModel] = Field(default_factory=list)
    settings: LocationSettingsModel = Field(default_factory=LocationSettingsModel)


class AssignedCustomerModel(CamelModel):
    id: str
    name: Optional[str] = None
    latitude: float
    longitude: float
    demand: float
    conversion_factor: float = 1.0


class DistributionCenterModel(CamelModel):
    id: str
    latitude: float
    longitude: float
    assigned_customers: list[AssignedCustomerModel]
    total_demand: float
    is_existing: bool = False
    capacity: Optional[float] = None


class CostBreakdownModel(CamelModel):
    total_cost: float
    transportation_cost: float
    facility_cost: float
    num_sites: int
    num_new_sites: int


class LocationKPIModel(CamelModel):
    total_demand: float
    served_demand: float
    unmet_demand: float
    service_level: float
    avg_distance: float
    max_distance: float


class LocationResponse(CamelModel):
    dcs: list[DistributionCenterModel]
    feasible: bool
    warnings: list[str]
    cost_breakdown: CostBreakdownModel
    status: Literal["converged", "iteration_cap_reached", "not_applicable"]
    strategy: str
    kpis: LocationKPIModel
    metadata: dict = Field(default_factory=dict)
