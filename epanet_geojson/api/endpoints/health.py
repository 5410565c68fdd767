"""
Health check endpoint.
"""

from fastapi import APIRouter
from pydantic import BaseModel

from epanet_geojson.core.constants import API_VERSION

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    version: str


@router.get("/health", response_model=HealthResponse)
def health_check() -> HealthResponse:
    """
    Check system health.

    Returns
    -------
    HealthResponse
        Service status and version
    """
    return HealthResponse(status="healthy", version=API_VERSION)
