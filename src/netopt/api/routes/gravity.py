"""API routes for gravity-based facility allocation."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status

from ...schemas.gravity import GravityRequest, GravityResponse
from ...services.location.service import process_gravity_request

router = APIRouter(prefix="/gravity", tags=["gravity"])


@router.post("/allocate", response_model=GravityResponse, status_code=status.HTTP_200_OK)
def allocate(payload: GravityRequest) -> GravityResponse:
    try:
        return process_gravity_request(payload)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        logging.exception(f"Error running gravity allocation: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to allocate demand: {str(exc)}",
        ) from exc
