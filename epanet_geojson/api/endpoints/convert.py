"""
Network conversion endpoint.

Parses EPANET network text into a GeoJSON FeatureCollection with the
accompanying parse errors, optionally reprojecting the geometry to WGS84.
"""

import logging

from fastapi import APIRouter, HTTPException

from epanet_geojson.core.config import get_settings
from epanet_geojson.core.inp_parser import parse_inp
from epanet_geojson.core.network import Link, Node
from epanet_geojson.models.schemas import (
    ConvertRequest,
    ConvertResponse,
    ParseErrorModel,
)
from epanet_geojson.utils.geometry import (
    approximate_reproject,
    is_likely_lat_lng,
    network_to_geojson,
    reproject_features,
)

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/convert", response_model=ConvertResponse)
def convert_network(request: ConvertRequest) -> ConvertResponse:
    """
    Convert EPANET network text to GeoJSON.

    Parse errors never fail the request: the best-effort network is
    returned together with every error found.

    Parameters
    ----------
    request : ConvertRequest
        Network text and optional reprojection settings

    Returns
    -------
    ConvertResponse
        GeoJSON FeatureCollection, parse errors and feature counts
    """
    settings = get_settings()

    try:
        if len(request.inp) > settings.max_inp_chars:
            raise HTTPException(
                status_code=413,
                detail=(
                    f"Network text too large: {len(request.inp):,} characters "
                    f"(limit {settings.max_inp_chars:,})"
                ),
            )

        graph = parse_inp(request.inp)
        features = graph.features
        reprojection = "none"

        if request.source_crs:
            features = reproject_features(features, request.source_crs)
            reprojection = "precise"
        elif request.approximate:
            origin = (
                (request.origin[0], request.origin[1])
                if request.origin
                else (settings.approx_origin_lon, settings.approx_origin_lat)
            )
            features = approximate_reproject(
                features,
                units=request.units or settings.approx_units,
                origin=origin,
            )
            reprojection = "approximate"

        logger.info(
            f"Network converted: {len(features)} features, "
            f"{len(graph.errors)} errors, reprojection={reprojection}"
        )

        return ConvertResponse(
            geojson=network_to_geojson(features),
            errors=[ParseErrorModel(**error.to_dict()) for error in graph.errors],
            node_count=sum(isinstance(f, Node) for f in features),
            link_count=sum(isinstance(f, Link) for f in features),
            reprojection=reprojection,
            likely_lat_lng=is_likely_lat_lng(features),
        )

    except HTTPException:
        raise
    except ValueError as e:
        # Unknown CRS or unsupported units
        logger.error(f"Validation error in network conversion: {e}")
        raise HTTPException(status_code=400, detail=str(e)) from e
    except Exception as e:
        logger.error(f"Error converting network: {e}", exc_info=True)
        raise HTTPException(
            status_code=500,
            detail="Internal server error during network conversion",
        ) from e
