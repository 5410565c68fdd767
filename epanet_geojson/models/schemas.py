"""
Pydantic models for API request/response schemas.

Defines data structures for network conversion, projection search and
pump curve API endpoints.
"""

from typing import Any

from pydantic import BaseModel, Field

# ===================== CONVERSION MODELS =====================


class ConvertRequest(BaseModel):
    """
    Request model for network conversion.

    Attributes
    ----------
    inp : str
        Full text of an EPANET .inp file
    source_crs : str, optional
        CRS of the model coordinates; triggers precise reprojection to WGS84
    approximate : bool, optional
        Place the model near ``origin`` when no CRS is known
    units : str, optional
        Model length units for approximate reprojection
    origin : list[float], optional
        [longitude, latitude] anchor for approximate reprojection
    """

    inp: str = Field(
        ...,
        description="EPANET network text",
        examples=["[JUNCTIONS]\nJ1 100\n[COORDINATES]\nJ1 10 20\n"],
    )
    source_crs: str | None = Field(
        None,
        description="Source coordinate reference system",
        examples=["EPSG:2180"],
    )
    approximate: bool = Field(
        False, description="Use approximate reprojection when CRS is unknown"
    )
    units: str | None = Field(
        None,
        pattern=r"^(meters|feet)$",
        description="Model length units for approximate reprojection",
    )
    origin: list[float] | None = Field(
        None,
        min_length=2,
        max_length=2,
        description="[longitude, latitude] anchor for approximate reprojection",
    )


class ParseErrorModel(BaseModel):
    """Single non-fatal parse error."""

    line: int = Field(..., ge=0, description="1-based line number, 0 after parse")
    section: str = Field(..., description="Active section header")
    message: str = Field(..., description="Error description")
    kind: str = Field(..., description="structural, field or reference")


class ConvertResponse(BaseModel):
    """Network conversion result."""

    geojson: dict[str, Any] = Field(
        ..., description="Network as GeoJSON FeatureCollection"
    )
    errors: list[ParseErrorModel] = Field(
        ..., description="Parse errors in discovery order"
    )
    node_count: int = Field(..., ge=0, description="Number of node features")
    link_count: int = Field(..., ge=0, description="Number of link features")
    reprojection: str = Field(
        ..., description="Reprojection applied: none, precise or approximate"
    )
    likely_lat_lng: bool = Field(
        ..., description="Whether output coordinates look like lon/lat"
    )


# ===================== PROJECTION MODELS =====================


class ProjectionInfo(BaseModel):
    """Selectable coordinate reference system."""

    id: str = Field(..., description="Identifier", examples=["epsg:4326"])
    name: str = Field(..., description="CRS name", examples=["WGS 84"])
    code: str = Field(..., description="Authority code", examples=["EPSG:4326"])


class ProjectionSearchResponse(BaseModel):
    """One page of projection search results."""

    items: list[ProjectionInfo] = Field(..., description="Matching projections")
    has_more: bool = Field(..., description="Whether more pages exist")
    total: int = Field(..., ge=0, description="Total number of matches")


# ===================== PUMP CURVE MODELS =====================


class PumpCurveRequest(BaseModel):
    """
    Request model for pump curve fitting.

    Attributes
    ----------
    n_points : int
        Number of defining points, 1 or 3
    flows : list[float]
        [q_design] or [0, q_design, q_max]
    heads : list[float]
        [h_design] or [h_shutoff, h_design, h_max]
    num_points : int, optional
        Number of sampled points on the fitted curve
    """

    n_points: int = Field(..., description="Number of defining points (1 or 3)")
    flows: list[float] = Field(..., description="Flow values", examples=[[10.0]])
    heads: list[float] = Field(..., description="Head values", examples=[[30.0]])
    num_points: int | None = Field(
        None, ge=2, le=1000, description="Sampled curve points"
    )


class CurvePoint(BaseModel):
    """Single point on a pump curve."""

    flow: float = Field(..., description="Flow")
    head: float = Field(..., ge=0, description="Head")


class PumpCurveResponse(BaseModel):
    """Fitted pump curve h = a - b * q^c."""

    a: float = Field(..., description="Shutoff head A")
    b: float = Field(..., ge=0, description="Coefficient B")
    c: float = Field(..., gt=0, le=20, description="Exponent C")
    equation: str = Field(..., description="Formatted equation")
    curve_points: list[CurvePoint] = Field(..., description="Sampled curve")


class ThreePointCurveRequest(BaseModel):
    """3-point pump definition to validate."""

    shutoff_head: float | None = Field(None, description="Head at zero flow")
    design_flow: float | None = Field(None, description="Design flow")
    design_head: float | None = Field(None, description="Design head")
    max_flow: float | None = Field(None, description="Max operating flow")
    max_head: float | None = Field(None, description="Max operating head")


class ValidationResponse(BaseModel):
    """Validation outcome."""

    is_valid: bool = Field(..., description="Whether the input is valid")
    errors: list[str] = Field(..., description="Validation messages")
