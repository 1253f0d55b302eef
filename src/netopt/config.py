"""Application configuration and settings management."""

from typing import Any, Literal

import json
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="NETOPT_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "Supply Chain Network Optimizer API"
    api_prefix: str = "/api"
    frontend_allowed_origins: tuple[str, ...] = Field(
        default=(
            "http://localhost:5173",
            "http://127.0.0.1:5173",
            "http://localhost:8080",
            "http://127.0.0.1:8080",
        ),
        description="Permitted web origins for browser clients (CORS).",
    )

    # LP flow solver
    lp_backend: Literal["simplex", "glop"] = Field(
        default="simplex",
        description="Linear programming backend used by the network flow solver.",
    )
    simplex_max_iterations: int = Field(default=1000, ge=1)
    simplex_pivot_tolerance: float = Field(default=1e-10, gt=0.0)
    simplex_basis_tolerance: float = Field(default=1e-6, gt=0.0)
    flow_noise_threshold: float = Field(
        default=0.01,
        ge=0.0,
        description="Solved flows below this quantity are dropped as numerical noise.",
    )
    assumed_speed_kmh: float = Field(default=60.0, gt=0.0)
    enforce_supply_balance: bool = Field(
        default=True,
        description="Bound supplier inbound flow by facility outbound flow per product.",
    )
    missing_value_policy: Literal["default", "reject"] = Field(
        default="default",
        description="How the model builder treats missing demand, capacity or distance values.",
    )
    default_missing_demand: float = Field(default=100.0, ge=0.0)
    default_missing_capacity: float = Field(default=1000.0, ge=0.0)
    default_supplier_distance: float = Field(default=100.0, ge=0.0)
    default_customer_distance: float = Field(default=50.0, ge=0.0)

    # Facility location
    kmeans_max_iterations: int = Field(default=100, ge=1)
    kmeans_convergence_km: float = Field(default=0.01, ge=0.0)
    centroid_max_iterations: int = Field(default=100, ge=1)
    centroid_tolerance_degrees: float = Field(default=1e-4, ge=0.0)
    centroid_coincidence_km: float = Field(default=0.001, ge=0.0)
    existing_site_match_km: float = Field(
        default=1.0,
        ge=0.0,
        description="Sites within this distance of an existing site incur no fixed cost.",
    )
    default_num_dcs: int = Field(default=3, ge=1)
    default_transport_rate: float = Field(default=0.5, ge=0.0)
    default_facility_cost: float = Field(default=100000.0, ge=0.0)
    include_service_areas: bool = Field(
        default=True,
        description="Attach convex-hull service areas for each site to location results.",
    )

    @field_validator("frontend_allowed_origins", mode="before")
    @classmethod
    def _parse_str_tuple_from_env(cls, value: Any) -> tuple[str, ...]:
        """Parse string tuple from environment variable (comma-separated or JSON array)."""
        if isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(str(item) for item in value)
        if isinstance(value, str):
            try:
                parsed = json.loads(value)
                if isinstance(parsed, list):
                    return tuple(str(item) for item in parsed)
            except (json.JSONDecodeError, TypeError):
                pass
            if "," in value:
                return tuple(item.strip() for item in value.split(",") if item.strip())
            if value.strip():
                return (value.strip(),)
        return tuple()


settings = Settings()
