"""
Projection search endpoint.

Backs the source-CRS picker with a paginated search over EPSG entries.
"""

import logging

from fastapi import APIRouter, HTTPException, Query

from epanet_geojson.core.config import get_settings
from epanet_geojson.core.projections import ProjectionError, search_projections
from epanet_geojson.models.schemas import ProjectionInfo, ProjectionSearchResponse

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/projections", response_model=ProjectionSearchResponse)
def list_projections(
    q: str = Query("", max_length=200, description="Name or code filter"),
    page: int = Query(1, ge=1, description="1-based page number"),
) -> ProjectionSearchResponse:
    """
    Search coordinate reference systems by name or EPSG code.

    Returns
    -------
    ProjectionSearchResponse
        One page of matches with a flag for further pages
    """
    settings = get_settings()
    try:
        result = search_projections(q, page=page, limit=settings.projection_page_size)
    except ProjectionError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except Exception as e:
        logger.error(f"Error searching projections: {e}", exc_info=True)
        raise HTTPException(
            status_code=500,
            detail="Internal server error during projection search",
        ) from e

    return ProjectionSearchResponse(
        items=[
            ProjectionInfo(id=item.id, name=item.name, code=item.code)
            for item in result.items
        ],
        has_more=result.has_more,
        total=result.total,
    )
