"""
Network entity schema.

Typed node and link records built from an EPANET network description,
the structured parse error record, and the transient state threaded
through a single parse.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar

from epanet_geojson.core.constants import DEFAULT_NODE_POSITION

Coordinate = tuple[float, float]


class ErrorKind(str, Enum):
    """Category of a non-fatal parse error."""

    STRUCTURAL = "structural"
    FIELD = "field"
    REFERENCE = "reference"


class FeatureKind(str, Enum):
    NODE = "Node"
    LINK = "Link"


class NodeCategory(str, Enum):
    JUNCTION = "Junction"
    TANK = "Tank"
    RESERVOIR = "Reservoir"


class LinkCategory(str, Enum):
    PIPE = "Pipe"
    VALVE = "Valve"
    PUMP = "Pump"


class PipeStatus(str, Enum):
    """Initial pipe status column ([PIPES] 8th column)."""

    OPEN = "Open"
    CLOSED = "Closed"
    CHECK_VALVE = "CV"


class ValveType(str, Enum):
    """EPANET valve types ([VALVES] 5th column)."""

    PRV = "PRV"
    PSV = "PSV"
    PBV = "PBV"
    FCV = "FCV"
    TCV = "TCV"
    GPV = "GPV"


class Section(Enum):
    """
    Recognized section headers of the network text format.

    Values are the upper-cased header text; lookup is case-insensitive.
    """

    JUNCTIONS = "[JUNCTIONS]"
    RESERVOIRS = "[RESERVOIRS]"
    TANKS = "[TANKS]"
    PIPES = "[PIPES]"
    VALVES = "[VALVES]"
    PUMPS = "[PUMPS]"
    COORDINATES = "[COORDINATES]"
    VERTICES = "[VERTICES]"

    @classmethod
    def from_header(cls, header: str) -> "Section | None":
        """
        Resolve a verbatim header to a section.

        Parameters
        ----------
        header : str
            Header text as it appeared in the file, e.g. ``"[Junctions]"``

        Returns
        -------
        Section | None
            Matching section, or None if the header is not recognized
        """
        try:
            return cls(header.upper())
        except ValueError:
            return None


@dataclass(frozen=True)
class ParseError:
    """
    Structured, non-fatal parse error.

    Attributes
    ----------
    line : int
        1-based line number, 0 for errors found after the line fold
    section : str
        Verbatim header of the active section, or empty string
    message : str
        Human-readable description
    kind : ErrorKind
        Structural, field or reference error
    """

    line: int
    section: str
    message: str
    kind: ErrorKind = ErrorKind.STRUCTURAL

    def to_dict(self) -> dict[str, Any]:
        return {
            "line": self.line,
            "section": self.section,
            "message": self.message,
            "kind": self.kind.value,
        }


# ===========================================================================
# NODES
# ===========================================================================


@dataclass(frozen=True, kw_only=True)
class Node:
    """
    Base node record.

    Attributes
    ----------
    sequence_id : int
        Build order within the node namespace, starting at 0
    identifier : str
        User-supplied node ID
    geometry : Coordinate
        (x, y) in native model units, (0, 0) until [COORDINATES] sets it
    comment : str | None
        Trailing ``;`` comment of the defining line
    """

    kind: ClassVar[FeatureKind] = FeatureKind.NODE
    category: ClassVar[NodeCategory]

    sequence_id: int
    identifier: str
    geometry: Coordinate = DEFAULT_NODE_POSITION
    comment: str | None = None

    def properties(self) -> dict[str, Any]:
        """Flat property mapping (GeoJSON ``properties``), None values omitted."""
        props: dict[str, Any] = {
            "kind": self.kind.value,
            "category": self.category.value,
            "id": self.identifier,
        }
        props.update(
            (name, value)
            for name, value in self._category_properties().items()
            if value is not None
        )
        if self.comment:
            props["comment"] = self.comment
        return props

    def _category_properties(self) -> dict[str, Any]:
        return {}


@dataclass(frozen=True, kw_only=True)
class Junction(Node):
    category: ClassVar[NodeCategory] = NodeCategory.JUNCTION

    elevation: float
    demand: float | None = None
    pattern: str | None = None

    def _category_properties(self) -> dict[str, Any]:
        return {
            "elevation": self.elevation,
            "demand": self.demand,
            "pattern": self.pattern,
        }


@dataclass(frozen=True, kw_only=True)
class Tank(Node):
    category: ClassVar[NodeCategory] = NodeCategory.TANK

    elevation: float
    init_level: float
    min_level: float
    max_level: float
    diameter: float
    min_volume: float
    volume_curve_id: str = ""
    overflow: bool | None = None

    def _category_properties(self) -> dict[str, Any]:
        return {
            "elevation": self.elevation,
            "init_level": self.init_level,
            "min_level": self.min_level,
            "max_level": self.max_level,
            "diameter": self.diameter,
            "min_volume": self.min_volume,
            "volume_curve_id": self.volume_curve_id,
            "overflow": self.overflow,
        }


@dataclass(frozen=True, kw_only=True)
class Reservoir(Node):
    category: ClassVar[NodeCategory] = NodeCategory.RESERVOIR

    head: float
    pattern: str | None = None

    def _category_properties(self) -> dict[str, Any]:
        return {"head": self.head, "pattern": self.pattern}


# ===========================================================================
# LINKS
# ===========================================================================


@dataclass(frozen=True, kw_only=True)
class Link:
    """
    Base link record.

    Attributes
    ----------
    sequence_id : int
        Build order within the link namespace, starting at 0
    identifier : str
        User-supplied link ID
    start_node_id : str
        Upstream node ID
    end_node_id : str
        Downstream node ID
    geometry : tuple[Coordinate, ...]
        Intermediate vertices while parsing; full polyline after assembly
    comment : str | None
        Trailing ``;`` comment of the defining line
    """

    kind: ClassVar[FeatureKind] = FeatureKind.LINK
    category: ClassVar[LinkCategory]

    sequence_id: int
    identifier: str
    start_node_id: str
    end_node_id: str
    geometry: tuple[Coordinate, ...] = ()
    comment: str | None = None

    def properties(self) -> dict[str, Any]:
        """Flat property mapping (GeoJSON ``properties``), None values omitted."""
        props: dict[str, Any] = {
            "kind": self.kind.value,
            "category": self.category.value,
            "id": self.identifier,
            "start_node_id": self.start_node_id,
            "end_node_id": self.end_node_id,
        }
        props.update(
            (name, value)
            for name, value in self._category_properties().items()
            if value is not None
        )
        if self.comment:
            props["comment"] = self.comment
        return props

    def _category_properties(self) -> dict[str, Any]:
        return {}


@dataclass(frozen=True, kw_only=True)
class Pipe(Link):
    category: ClassVar[LinkCategory] = LinkCategory.PIPE

    length: float
    diameter: float
    roughness: float
    minor_loss: float = 0.0
    status: PipeStatus | None = None

    def _category_properties(self) -> dict[str, Any]:
        return {
            "length": self.length,
            "diameter": self.diameter,
            "roughness": self.roughness,
            "minor_loss": self.minor_loss,
            "status": self.status.value if self.status else None,
        }


@dataclass(frozen=True, kw_only=True)
class Valve(Link):
    """
    Valve link.

    For GPV valves the setting column names a head-loss curve; it is kept
    in ``curve_reference`` and ``setting`` stays 0.
    """

    category: ClassVar[LinkCategory] = LinkCategory.VALVE

    diameter: float
    valve_type: ValveType
    setting: float
    minor_loss: float = 0.0
    curve_reference: str | None = None

    def _category_properties(self) -> dict[str, Any]:
        return {
            "diameter": self.diameter,
            "valve_type": self.valve_type.value,
            "setting": self.setting,
            "minor_loss": self.minor_loss,
            "curve_reference": self.curve_reference,
        }


@dataclass(frozen=True)
class PowerMode:
    """Constant-power pump."""

    name: ClassVar[str] = "Power"

    power: float


@dataclass(frozen=True)
class HeadMode:
    """Pump described by a head curve."""

    name: ClassVar[str] = "Head"

    curve_reference: str


PumpMode = PowerMode | HeadMode


@dataclass(frozen=True, kw_only=True)
class Pump(Link):
    category: ClassVar[LinkCategory] = LinkCategory.PUMP

    mode: PumpMode
    speed: float | None = None
    pattern_id: str | None = None
    extra: dict[str, str] = field(default_factory=dict)

    def _category_properties(self) -> dict[str, Any]:
        props: dict[str, Any] = {"mode": self.mode.name}
        if isinstance(self.mode, PowerMode):
            props["power"] = self.mode.power
        else:
            props["curve_reference"] = self.mode.curve_reference
        props["speed"] = self.speed
        props["pattern"] = self.pattern_id
        if self.extra:
            props["extra"] = dict(self.extra)
        return props


Feature = Node | Link


# ===========================================================================
# PARSE STATE AND RESULT
# ===========================================================================


@dataclass
class ParseState:
    """
    Transient state threaded through one parse.

    Created per call and discarded once the feature graph is extracted.
    Tables keep first-seen insertion order; a redefined identifier keeps
    its original position and takes the newest entity.
    """

    current_section: str = ""
    node_counter: int = 0
    link_counter: int = 0
    errors: list[ParseError] = field(default_factory=list)
    nodes: dict[str, Node] = field(default_factory=dict)
    links: dict[str, Link] = field(default_factory=dict)

    def add_error(
        self,
        line: int,
        message: str,
        kind: ErrorKind = ErrorKind.STRUCTURAL,
    ) -> "ParseState":
        self.errors.append(
            ParseError(
                line=line,
                section=self.current_section,
                message=message,
                kind=kind,
            )
        )
        return self

    def register_node(self, node: Node, line: int) -> "ParseState":
        """Insert a built node, flagging a redefined identifier."""
        if node.identifier in self.nodes:
            self.add_error(
                line,
                f'Duplicate node ID "{node.identifier}" redefines an earlier node',
            )
        self.nodes[node.identifier] = node
        self.node_counter += 1
        return self

    def register_link(self, link: Link, line: int) -> "ParseState":
        """Insert a built link, flagging a redefined identifier."""
        if link.identifier in self.links:
            self.add_error(
                line,
                f'Duplicate link ID "{link.identifier}" redefines an earlier link',
            )
        self.links[link.identifier] = link
        self.link_counter += 1
        return self


@dataclass
class NetworkGraph:
    """
    Parse result: node features first, then link features, plus errors.

    ``errors`` is always present and empty on a clean parse.
    """

    features: list[Feature] = field(default_factory=list)
    errors: list[ParseError] = field(default_factory=list)

    @property
    def nodes(self) -> list[Node]:
        return [f for f in self.features if isinstance(f, Node)]

    @property
    def links(self) -> list[Link]:
        return [f for f in self.features if isinstance(f, Link)]

    def get(self, identifier: str, kind: FeatureKind) -> Feature | None:
        for feature in self.features:
            if feature.kind is kind and feature.identifier == identifier:
                return feature
        return None
