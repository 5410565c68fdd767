"""
Coordinate reference system catalogue.

Searches the EPSG entries of the PROJ database bundled with pyproj, used
to pick the source CRS of a network model before precise reprojection.
"""

import logging
from dataclasses import dataclass, field
from functools import lru_cache

from pyproj.database import query_crs_info

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 10


class ProjectionError(ValueError):
    """Raised for unknown CRS identifiers or invalid projection arguments."""


@dataclass(frozen=True)
class ProjectionItem:
    """
    One selectable CRS.

    Attributes
    ----------
    id : str
        Lower-case identifier, e.g. ``"epsg:4326"``
    name : str
        Human-readable name, e.g. ``"WGS 84"``
    code : str
        Authority code usable by pyproj, e.g. ``"EPSG:4326"``
    """

    id: str
    name: str
    code: str


@dataclass
class ProjectionPage:
    items: list[ProjectionItem] = field(default_factory=list)
    has_more: bool = False
    total: int = 0


def _code_sort_key(code: str) -> tuple[int, str]:
    return (int(code), "") if code.isdigit() else (10**9, code)


@lru_cache()
def get_projection_catalogue() -> tuple[ProjectionItem, ...]:
    """
    Load non-deprecated EPSG coordinate reference systems.

    Returns
    -------
    tuple[ProjectionItem, ...]
        Catalogue sorted by numeric EPSG code
    """
    infos = [
        info
        for info in query_crs_info(auth_name="EPSG")
        if not info.deprecated
    ]
    infos.sort(key=lambda info: _code_sort_key(info.code))

    catalogue = tuple(
        ProjectionItem(
            id=f"epsg:{info.code}",
            name=info.name,
            code=f"EPSG:{info.code}",
        )
        for info in infos
    )
    logger.info(f"Projection catalogue loaded: {len(catalogue):,} EPSG entries")
    return catalogue


def search_projections(
    query: str = "",
    page: int = 1,
    limit: int = DEFAULT_PAGE_SIZE,
) -> ProjectionPage:
    """
    Search the CRS catalogue by name or code.

    Parameters
    ----------
    query : str, optional
        Case-insensitive substring matched against name and code;
        empty returns the whole catalogue
    page : int, optional
        1-based page number, default 1
    limit : int, optional
        Page size, default 10

    Returns
    -------
    ProjectionPage
        Matching items for the page, whether more pages exist, and the
        total match count

    Raises
    ------
    ProjectionError
        If page or limit is smaller than 1

    Examples
    --------
    >>> result = search_projections("epsg:4326")
    >>> result.items[0].name
    'WGS 84'
    """
    if page < 1:
        raise ProjectionError(f"Page must be >= 1, got {page}")
    if limit < 1:
        raise ProjectionError(f"Limit must be >= 1, got {limit}")

    needle = query.strip().lower()
    catalogue = get_projection_catalogue()
    if needle:
        matches = [
            item
            for item in catalogue
            if needle in item.name.lower() or needle in item.id
        ]
    else:
        matches = list(catalogue)

    start = (page - 1) * limit
    end = start + limit
    return ProjectionPage(
        items=matches[start:end],
        has_more=len(matches) > end,
        total=len(matches),
    )
