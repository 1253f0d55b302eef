"""Pydantic request/response models for the network flow endpoint."""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import Field

from .common import CamelModel


class ProductModel(CamelModel):
    id: str
    name: Optional[str] = None


class SupplierModel(CamelModel):
    id: str
    name: Optional[str] = None
    latitude: Optional[float] = Field(default=None, ge=-90.0, le=90.0)
    longitude: Optional[float] = Field(default=None, ge=-180.0, le=180.0)


class FacilityModel(CamelModel):
    id: str
    name: Optional[str] = None
    latitude: float = Field(default=0.0, ge=-90.0, le=90.0)
    longitude: float = Field(default=0.0, ge=-180.0, le=180.0)
    capacity: dict[str, Optional[float]] = Field(
        default_factory=dict, description="Capacity per product id; omitted products are treated as missing."
    )


class NetworkCustomerModel(CamelModel):
    id: str
    name: Optional[str] = None
    latitude: float = Field(default=0.0, ge=-90.0, le=90.0)
    longitude: float = Field(default=0.0, ge=-180.0, le=180.0)
    demand: dict[str, Optional[float]] = Field(
        default_factory=dict, description="Demand per product id; omitted products are treated as missing."
    )


class DistanceModel(CamelModel):
    from_: str = Field(..., alias="from")
    to: str
    distance: Optional[float] = Field(default=None, ge=0.0)


class CostsModel(CamelModel):
    transportation: Optional[float] = Field(default=None, ge=0.0, description="Cost per unit per distance unit.")


class NetworkSettingsModel(CamelModel):
    objective_type: Literal["cost", "time"] = "cost"
    backend: Optional[Literal["simplex", "glop"]] = None
    missing_value_policy: Optional[Literal["default", "reject"]] = None
    enforce_supply_balance: Optional[bool] = None


class NetworkRequest(CamelModel):
    suppliers: list[SupplierModel] = Field(default_factory=list)
    facilities: list[FacilityModel]
    customers: list[NetworkCustomerModel]
    products: list[ProductModel]
    distances: list[DistanceModel] = Field(default_factory=list)
    costs: CostsModel = Field(default_factory=CostsModel)
    settings: NetworkSettingsModel = Field(default_factory=NetworkSettingsModel)


class FlowModel(CamelModel):
    product: str
    from_: str = Field(..., alias="from")
    to: str
    quantity: float


class NetworkResponse(CamelModel):
    flows: list[FlowModel]
    objective_value: float
    iterations: int
    status: Literal["optimal", "iteration_cap_reached", "unbounded", "infeasible"]
    warnings: list[str] = Field(default_factory=list)
