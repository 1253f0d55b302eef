"""API routes for facility location optimization."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status

from ...schemas.location import LocationRequest, LocationResponse
from ...services.location.service import process_location_request

router = APIRouter(prefix="/locations", tags=["locations"])


@router.post("/optimize", response_model=LocationResponse, status_code=status.HTTP_200_OK)
def optimize_locations(payload: LocationRequest) -> LocationResponse:
    """Place distribution centers for the given customers.

    Capacity overruns do not fail the request; they come back as warnings
    with ``feasible`` set to false.
    """
    try:
        return process_location_request(payload)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        logging.exception(f"Error optimizing facility locations: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to optimize facility locations: {str(exc)}",
        ) from exc
