"""Health endpoints."""

from __future__ import annotations

from fastapi import APIRouter, status

from ...config import settings

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root() -> dict:
    """Simple health check endpoint that doesn't require any dependencies."""
    return {"status": "ok"}


@router.get("/health/solvers", status_code=status.HTTP_200_OK)
def health_solvers() -> dict:
    """Report which LP backends can be constructed."""
    from ...services.network.backends import get_backend

    backends: dict[str, bool | str] = {}
    for name in ("simplex", "glop"):
        try:
            get_backend(name)
            backends[name] = True
        except Exception as exc:
            backends[name] = str(exc)
    return {"default_backend": settings.lp_backend, "backends": backends}
