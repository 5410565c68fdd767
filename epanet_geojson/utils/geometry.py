"""
Geometry utilities for parsed network features.

Provides GeoJSON export, precise reprojection between coordinate
reference systems (pyproj), an approximate local-offset reprojection for
models with unknown CRS, and a lat/lon plausibility check.
"""

import dataclasses
import logging
import math
from collections.abc import Iterable, Iterator
from functools import lru_cache
from typing import Any

from pyproj import Transformer
from pyproj.exceptions import CRSError, ProjError
from shapely.geometry import MultiPoint, box

from epanet_geojson.core.constants import (
    CRS_WGS84,
    METERS_PER_DEGREE,
    METERS_PER_FOOT,
    VALID_UNITS,
)
from epanet_geojson.core.network import Coordinate, Feature, NetworkGraph, Node
from epanet_geojson.core.projections import ProjectionError

logger = logging.getLogger(__name__)

# Valid lon/lat extent (EPSG:4326)
_LAT_LNG_BOX = box(-180.0, -90.0, 180.0, 90.0)


@lru_cache(maxsize=32)
def get_transformer(source_crs: str, target_crs: str = CRS_WGS84) -> Transformer:
    """
    Get cached transformer between two coordinate reference systems.

    Parameters
    ----------
    source_crs : str
        Source CRS in any form pyproj accepts, e.g. ``"EPSG:2180"``
    target_crs : str, optional
        Target CRS, default WGS84

    Returns
    -------
    Transformer
        PyProj transformer with (x, y) / (lon, lat) axis order

    Raises
    ------
    ProjectionError
        If either CRS is not recognized
    """
    try:
        return Transformer.from_crs(source_crs, target_crs, always_xy=True)
    except CRSError as e:
        raise ProjectionError(
            f"Unknown coordinate reference system: {source_crs} -> {target_crs}"
        ) from e


def _features(features: NetworkGraph | Iterable[Feature]) -> list[Feature]:
    if isinstance(features, NetworkGraph):
        return features.features
    return list(features)


def _iter_coordinates(features: Iterable[Feature]) -> Iterator[Coordinate]:
    for feature in features:
        if isinstance(feature, Node):
            yield feature.geometry
        else:
            yield from feature.geometry


def _map_geometry(feature: Feature, convert) -> Feature:
    if isinstance(feature, Node):
        return dataclasses.replace(feature, geometry=convert(feature.geometry))
    return dataclasses.replace(
        feature, geometry=tuple(convert(coord) for coord in feature.geometry)
    )


def feature_to_geojson(feature: Feature) -> dict[str, Any]:
    """
    Convert a network feature to a GeoJSON Feature.

    Nodes become Points, links become LineStrings. The feature id is the
    kind-prefixed sequence id (``"node-0"``, ``"link-0"``), unique across
    nodes and links. A link whose endpoints did not resolve keeps
    only its vertices, so its coordinate list may hold fewer than two
    positions.

    Parameters
    ----------
    feature : Feature
        Parsed node or link

    Returns
    -------
    dict
        GeoJSON Feature dictionary
    """
    if isinstance(feature, Node):
        geometry = {"type": "Point", "coordinates": list(feature.geometry)}
    else:
        geometry = {
            "type": "LineString",
            "coordinates": [list(coord) for coord in feature.geometry],
        }
    return {
        "type": "Feature",
        "id": f"{feature.kind.value.lower()}-{feature.sequence_id}",
        "geometry": geometry,
        "properties": feature.properties(),
    }


def network_to_geojson(
    features: NetworkGraph | Iterable[Feature],
) -> dict[str, Any]:
    """
    Convert parsed features to a GeoJSON FeatureCollection.

    Examples
    --------
    >>> from epanet_geojson.core.inp_parser import parse_inp
    >>> collection = network_to_geojson(parse_inp("[JUNCTIONS]\\nJ1 100"))
    >>> collection["features"][0]["properties"]["category"]
    'Junction'
    """
    return {
        "type": "FeatureCollection",
        "features": [feature_to_geojson(f) for f in _features(features)],
    }


def network_bounds(
    features: NetworkGraph | Iterable[Feature],
) -> tuple[float, float, float, float] | None:
    """
    Bounding box of every node position and link vertex.

    Returns
    -------
    tuple[float, float, float, float] | None
        (min_x, min_y, max_x, max_y), or None when there are no coordinates
    """
    coords = list(_iter_coordinates(_features(features)))
    if not coords:
        return None
    return MultiPoint(coords).bounds


def reproject_features(
    features: NetworkGraph | Iterable[Feature],
    source_crs: str,
    target_crs: str = CRS_WGS84,
) -> list[Feature]:
    """
    Precisely reproject feature geometry between coordinate systems.

    Parameters
    ----------
    features : NetworkGraph | Iterable[Feature]
        Parsed features in ``source_crs`` units
    source_crs : str
        CRS of the model coordinates, e.g. ``"EPSG:2180"``
    target_crs : str, optional
        Output CRS, default WGS84

    Returns
    -------
    list[Feature]
        New features with transformed geometry, same order

    Raises
    ------
    ProjectionError
        If a CRS is not recognized or a coordinate does not transform to
        a finite position
    """
    transformer = get_transformer(source_crs, target_crs)
    items = _features(features)

    def convert(coord: Coordinate) -> Coordinate:
        try:
            x, y = transformer.transform(coord[0], coord[1], errcheck=True)
        except ProjError as e:
            raise ProjectionError(
                f"Coordinate ({coord[0]}, {coord[1]}) cannot be transformed "
                f"from {source_crs} to {target_crs}"
            ) from e
        # Points outside the CRS area of use come back as inf
        if not (math.isfinite(x) and math.isfinite(y)):
            raise ProjectionError(
                f"Coordinate ({coord[0]}, {coord[1]}) is outside the valid "
                f"area of {source_crs}"
            )
        return float(x), float(y)

    logger.debug(f"Reprojecting {len(items)} features {source_crs} -> {target_crs}")
    return [_map_geometry(feature, convert) for feature in items]


def approximate_reproject(
    features: NetworkGraph | Iterable[Feature],
    units: str = "meters",
    origin: tuple[float, float] = (0.0, 0.0),
) -> list[Feature]:
    """
    Place a model with unknown CRS near a lon/lat origin.

    Every coordinate is shifted by the global minimum x/y, converted to
    meters and scaled by an equatorial meters-per-degree factor, then
    offset from ``origin``. Shapes are preserved only approximately.

    Parameters
    ----------
    features : NetworkGraph | Iterable[Feature]
        Parsed features in local model units
    units : str, optional
        ``"meters"`` or ``"feet"``, default meters
    origin : tuple[float, float], optional
        (longitude, latitude) of the model's lower-left corner

    Returns
    -------
    list[Feature]
        New features with approximate lon/lat geometry

    Raises
    ------
    ProjectionError
        If units are not supported
    """
    if units not in VALID_UNITS:
        raise ProjectionError(
            f"Invalid units: {units}. Must be one of {sorted(VALID_UNITS)}"
        )

    items = _features(features)
    bounds = network_bounds(items)
    if bounds is None:
        return items

    min_x, min_y = bounds[0], bounds[1]
    to_meters = METERS_PER_FOOT if units == "feet" else 1.0
    origin_lon, origin_lat = origin

    def convert(coord: Coordinate) -> Coordinate:
        lon_offset = (coord[0] - min_x) * to_meters / METERS_PER_DEGREE
        lat_offset = (coord[1] - min_y) * to_meters / METERS_PER_DEGREE
        return origin_lon + lon_offset, origin_lat + lat_offset

    return [_map_geometry(feature, convert) for feature in items]


def is_likely_lat_lng(features: NetworkGraph | Iterable[Feature]) -> bool:
    """
    Check whether every coordinate falls within lon/lat ranges.

    Returns
    -------
    bool
        True if all coordinates lie in [-180, 180] x [-90, 90];
        False when there are no coordinates at all
    """
    coords = list(_iter_coordinates(_features(features)))
    if not coords:
        return False
    return bool(_LAT_LNG_BOX.covers(MultiPoint(coords)))
