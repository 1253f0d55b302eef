"""API routes for multi-echelon network flow optimization."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status

from ...schemas.network import NetworkRequest, NetworkResponse
from ...services.network.service import process_network_request

router = APIRouter(prefix="/network", tags=["network"])


@router.post(
    "/optimize",
    response_model=NetworkResponse,
    status_code=status.HTTP_200_OK,
)
def optimize_network(payload: NetworkRequest) -> NetworkResponse:
    """Solve the supplier -> facility -> customer flow program."""
    try:
        return process_network_request(payload)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        logging.exception(f"Error optimizing network: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to optimize network: {str(exc)}",
        ) from exc
