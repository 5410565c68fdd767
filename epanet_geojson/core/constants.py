"""
Project-wide constants.

Centralizes column counts, parsing defaults and coordinate reference system
identifiers used across modules.
"""

# Coordinate Reference Systems
CRS_WGS84 = "EPSG:4326"

# Approximate reprojection
METERS_PER_DEGREE = 111_320.0
METERS_PER_FOOT = 0.3048
VALID_UNITS = frozenset(["meters", "feet"])

# Comment marker in the network text format
COMMENT_MARKER = ";"

# Minimum column counts per record kind
MIN_COLUMNS_JUNCTION = 2
MIN_COLUMNS_RESERVOIR = 2
MIN_COLUMNS_TANK = 7
MIN_COLUMNS_PIPE = 6
MIN_COLUMNS_VALVE = 6
MIN_COLUMNS_PUMP = 3
MIN_COLUMNS_POSITION = 3

# Pump keyword pairs consumed after ID, start node, end node
PUMP_MAX_KEYWORD_PAIRS = 4

# Default node position until a [COORDINATES] record sets it
DEFAULT_NODE_POSITION = (0.0, 0.0)

# Line number used for errors raised after the line fold
POST_PASS_LINE = 0

API_VERSION = "1.0.0"
