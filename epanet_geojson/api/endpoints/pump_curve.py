"""
Pump curve endpoints.

Fits the EPANET power-law pump curve to 1-point or 3-point definitions
and validates 3-point input.
"""

import logging

from fastapi import APIRouter, HTTPException

from epanet_geojson.core.config import get_settings
from epanet_geojson.core.pump_curve import (
    PumpCurveError,
    fit_pump_curve,
    validate_three_point_curve,
)
from epanet_geojson.models.schemas import (
    CurvePoint,
    PumpCurveRequest,
    PumpCurveResponse,
    ThreePointCurveRequest,
    ValidationResponse,
)

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/pump-curve", response_model=PumpCurveResponse)
def fit_curve(request: PumpCurveRequest) -> PumpCurveResponse:
    """
    Fit ``h = A - B * q^C`` to the given pump points.

    Returns
    -------
    PumpCurveResponse
        Coefficients, equation and sampled curve
    """
    num_points = request.num_points or get_settings().pump_curve_points
    try:
        fit = fit_pump_curve(
            request.n_points,
            request.flows,
            request.heads,
            num_generated_points=num_points,
        )
    except PumpCurveError as e:
        logger.info(f"Pump curve fit rejected: {e}")
        raise HTTPException(status_code=400, detail=str(e)) from e
    except Exception as e:
        logger.error(f"Error fitting pump curve: {e}", exc_info=True)
        raise HTTPException(
            status_code=500,
            detail="Internal server error during pump curve fitting",
        ) from e

    return PumpCurveResponse(
        a=fit.a,
        b=fit.b,
        c=fit.c,
        equation=fit.equation,
        curve_points=[CurvePoint(flow=q, head=h) for q, h in fit.curve_points],
    )


@router.post("/pump-curve/validate", response_model=ValidationResponse)
def validate_curve(request: ThreePointCurveRequest) -> ValidationResponse:
    """Validate a 3-point pump definition."""
    errors = validate_three_point_curve(
        request.shutoff_head,
        request.design_flow,
        request.design_head,
        request.max_flow,
        request.max_head,
    )
    return ValidationResponse(is_valid=not errors, errors=errors)
