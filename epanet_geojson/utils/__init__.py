"""
Utility functions for epanet-geojson.
"""

from epanet_geojson.utils.geometry import (
    approximate_reproject,
    feature_to_geojson,
    is_likely_lat_lng,
    network_bounds,
    network_to_geojson,
    reproject_features,
)

__all__ = [
    "approximate_reproject",
    "feature_to_geojson",
    "is_likely_lat_lng",
    "network_bounds",
    "network_to_geojson",
    "reproject_features",
]
