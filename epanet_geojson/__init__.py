"""
EPANET network model to GeoJSON conversion.
"""

from epanet_geojson.core.inp_parser import parse_inp, parse_inp_file
from epanet_geojson.core.network import NetworkGraph, ParseError

__version__ = "1.0.0"

__all__ = [
    "NetworkGraph",
    "ParseError",
    "parse_inp",
    "parse_inp_file",
]
