"""Pydantic request/response models for the gravity allocation endpoint."""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import Field

from .common import CamelModel
from .network import ProductModel


class GravityCustomerModel(CamelModel):
    id: str
    name: Optional[str] = None
    latitude: float = Field(..., ge=-90.0, le=90.0)
    longitude: float = Field(..., ge=-180.0, le=180.0)
    demand: dict[str, float] = Field(default_factory=dict)
    conversion_factor: float = Field(default=1.0, gt=0.0)


class GravityFacilityModel(CamelModel):
    id: str
    name: Optional[str] = None
    latitude: float = Field(..., ge=-90.0, le=90.0)
    longitude: float = Field(..., ge=-180.0, le=180.0)
    capacity: dict[str, Optional[float]] = Field(default_factory=dict)
    is_existing: bool = False


class GravitySettingsModel(CamelModel):
    transport_cost_per_distance_unit: Optional[float] = Field(default=None, ge=0.0)
    fixed_cost_per_facility: Optional[float] = Field(default=None, ge=0.0)
    distance_unit: Literal["km", "mile"] = "km"


class GravityRequest(CamelModel):
    customers: list[GravityCustomerModel]
    facilities: list[GravityFacilityModel]
    products: list[ProductModel]
    settings: GravitySettingsModel = Field(default_factory=GravitySettingsModel)


class AllocationModel(CamelModel):
    customer_id: str
    customer_name: Optional[str] = None
    facility_id: str
    facility_name: Optional[str] = None
    product_id: str
    quantity: float
    distance: float
    transport_cost: float


class AllocationKPIModel(CamelModel):
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


class UtilizationModel(CamelModel):
    product: str
    used: float
    capacity: float
    percentage: float


class FacilityUsageModel(CamelModel):
    id: str
    name: Optional[str] = None
    customers_served: int
    utilization: list[UtilizationModel]


class AllocationSummaryModel(CamelModel):
    total_allocations: int
    customers_served: int
    facilities_used: int


class GravityResponse(CamelModel):
    allocation: list[AllocationModel]
    kpis: AllocationKPIModel
    facility_usage: list[FacilityUsageModel]
    summary: AllocationSummaryModel
