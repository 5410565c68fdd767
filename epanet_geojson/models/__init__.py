"""
Pydantic models for API schemas.
"""

from epanet_geojson.models.schemas import (
    ConvertRequest,
    ConvertResponse,
    ParseErrorModel,
    ProjectionSearchResponse,
    PumpCurveRequest,
    PumpCurveResponse,
)

__all__ = [
    "ConvertRequest",
    "ConvertResponse",
    "ParseErrorModel",
    "ProjectionSearchResponse",
    "PumpCurveRequest",
    "PumpCurveResponse",
]
