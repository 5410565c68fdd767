"""
EPANET network text format (.inp) parser.

Converts the bracketed-section network description into typed node and
link entities with resolved geometry. Parsing is a single forward pass
over the lines (sections route each line to a record builder), followed
by a geometry assembly pass that stitches every link's polyline from its
endpoint nodes and intermediate vertices.

Malformed content never raises: every problem is recorded as a
``ParseError`` and the best-effort feature graph is always returned.
"""

import dataclasses
import logging
import math
from collections.abc import Callable, Sequence
from pathlib import Path

from epanet_geojson.core.constants import (
    COMMENT_MARKER,
    MIN_COLUMNS_JUNCTION,
    MIN_COLUMNS_PIPE,
    MIN_COLUMNS_POSITION,
    MIN_COLUMNS_PUMP,
    MIN_COLUMNS_RESERVOIR,
    MIN_COLUMNS_TANK,
    MIN_COLUMNS_VALVE,
    POST_PASS_LINE,
    PUMP_MAX_KEYWORD_PAIRS,
)
from epanet_geojson.core.network import (
    ErrorKind,
    HeadMode,
    Junction,
    Link,
    NetworkGraph,
    Node,
    ParseError,
    ParseState,
    Pipe,
    PipeStatus,
    PowerMode,
    Pump,
    Reservoir,
    Section,
    Tank,
    Valve,
    ValveType,
)

logger = logging.getLogger(__name__)

Builder = Callable[[ParseState, Sequence[str], int, str | None], ParseState]

PIPE_STATUS_TOKENS = {
    "OPEN": PipeStatus.OPEN,
    "CLOSED": PipeStatus.CLOSED,
    "CV": PipeStatus.CHECK_VALVE,
}

OVERFLOW_TOKENS = {
    "TRUE": True,
    "YES": True,
    "FALSE": False,
    "NO": False,
}

DEFAULT_VALVE_TYPE = ValveType.TCV


# ===========================================================================
# LINE NORMALIZER / SECTION TRACKER
# ===========================================================================


def normalize_line(raw_line: str) -> tuple[str, str | None]:
    """
    Split a raw line into normalized content and trailing comment.

    Everything after the first ``;`` is comment. The content has runs of
    whitespace collapsed to a single space and is trimmed.

    Parameters
    ----------
    raw_line : str
        One physical line of the input

    Returns
    -------
    tuple[str, str | None]
        (content, comment); content is empty for blank or comment-only
        lines, comment is None when absent or blank

    Examples
    --------
    >>> normalize_line("  J1\\t 100   ; main junction ")
    ('J1 100', 'main junction')
    """
    content, marker, comment = raw_line.partition(COMMENT_MARKER)
    content = " ".join(content.split())
    comment = comment.strip() if marker else ""
    return content, comment or None


def is_section_header(content: str) -> bool:
    return content.startswith("[") and content.endswith("]")


# ===========================================================================
# FIELD HELPERS
# ===========================================================================


def _token_at(tokens: Sequence[str], index: int) -> str | None:
    return tokens[index] if index < len(tokens) else None


def _to_float(token: str) -> float | None:
    # float() also takes digit separators and non-ASCII digits
    if "_" in token or not token.isascii():
        return None
    try:
        value = float(token)
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def _required_float(
    state: ParseState, token: str, description: str, line_number: int
) -> float:
    """Parse a required number; on failure record a field error and use 0."""
    value = _to_float(token)
    if value is None:
        state.add_error(
            line_number,
            f'Could not parse {description} as float: "{token}"',
            ErrorKind.FIELD,
        )
        return 0.0
    return value


def _optional_float(
    state: ParseState, token: str | None, description: str, line_number: int
) -> float | None:
    """Parse an optional number; absent stays None without an error."""
    if token is None:
        return None
    value = _to_float(token)
    if value is None:
        state.add_error(
            line_number,
            f'Could not parse {description} as float: "{token}"',
            ErrorKind.FIELD,
        )
    return value


def _has_columns(
    state: ParseState,
    tokens: Sequence[str],
    required: int,
    label: str,
    columns: str,
    line_number: int,
) -> bool:
    if len(tokens) >= required:
        return True
    state.add_error(
        line_number,
        f"{label} requires at least {required} columns ({columns}). "
        f'Got: "{" ".join(tokens)}"',
    )
    return False


# ===========================================================================
# NODE BUILDERS
# ===========================================================================


def build_junction(
    state: ParseState,
    tokens: Sequence[str],
    line_number: int,
    comment: str | None = None,
) -> ParseState:
    """[JUNCTIONS] ID Elevation [Demand] [Pattern]"""
    if not _has_columns(
        state, tokens, MIN_COLUMNS_JUNCTION, "Junction", "ID, Elevation", line_number
    ):
        return state

    junction = Junction(
        sequence_id=state.node_counter,
        identifier=tokens[0],
        elevation=_required_float(state, tokens[1], "JUNCTION elevation", line_number),
        demand=_optional_float(
            state, _token_at(tokens, 2), "JUNCTION demand", line_number
        ),
        pattern=_token_at(tokens, 3),
        comment=comment,
    )
    return state.register_node(junction, line_number)


def build_reservoir(
    state: ParseState,
    tokens: Sequence[str],
    line_number: int,
    comment: str | None = None,
) -> ParseState:
    """[RESERVOIRS] ID Head [Pattern]"""
    if not _has_columns(
        state, tokens, MIN_COLUMNS_RESERVOIR, "Reservoir", "ID, Head", line_number
    ):
        return state

    reservoir = Reservoir(
        sequence_id=state.node_counter,
        identifier=tokens[0],
        head=_required_float(state, tokens[1], "RESERVOIR head", line_number),
        pattern=_token_at(tokens, 2),
        comment=comment,
    )
    return state.register_node(reservoir, line_number)


def build_tank(
    state: ParseState,
    tokens: Sequence[str],
    line_number: int,
    comment: str | None = None,
) -> ParseState:
    """[TANKS] ID Elev InitLvl MinLvl MaxLvl Diam MinVol [VolCurve] [Overflow]"""
    if not _has_columns(
        state,
        tokens,
        MIN_COLUMNS_TANK,
        "Tank",
        "ID, Elevation, InitLevel, MinLevel, MaxLevel, Diameter, MinVolume",
        line_number,
    ):
        return state

    numbers = [
        _required_float(state, token, f"TANK {name}", line_number)
        for token, name in zip(
            tokens[1:7],
            [
                "elevation",
                "initLevel",
                "minLevel",
                "maxLevel",
                "diameter",
                "minVolume",
            ],
            strict=True,
        )
    ]

    overflow = None
    overflow_token = _token_at(tokens, 8)
    if overflow_token is not None:
        overflow = OVERFLOW_TOKENS.get(overflow_token.upper())
        if overflow is None:
            state.add_error(
                line_number,
                f'Could not parse TANK overflow flag: "{overflow_token}"',
                ErrorKind.FIELD,
            )

    tank = Tank(
        sequence_id=state.node_counter,
        identifier=tokens[0],
        elevation=numbers[0],
        init_level=numbers[1],
        min_level=numbers[2],
        max_level=numbers[3],
        diameter=numbers[4],
        min_volume=numbers[5],
        volume_curve_id=_token_at(tokens, 7) or "",
        overflow=overflow,
        comment=comment,
    )
    return state.register_node(tank, line_number)


# ===========================================================================
# LINK BUILDERS
# ===========================================================================


def build_pipe(
    state: ParseState,
    tokens: Sequence[str],
    line_number: int,
    comment: str | None = None,
) -> ParseState:
    """[PIPES] ID Node1 Node2 Length Diameter Roughness [MinorLoss] [Status]"""
    if not _has_columns(
        state,
        tokens,
        MIN_COLUMNS_PIPE,
        "Pipe",
        "ID, Node1, Node2, Length, Diameter, Roughness",
        line_number,
    ):
        return state

    length = _required_float(state, tokens[3], "PIPE length", line_number)
    diameter = _required_float(state, tokens[4], "PIPE diameter", line_number)
    roughness = _required_float(state, tokens[5], "PIPE roughness", line_number)
    minor_loss = _optional_float(
        state, _token_at(tokens, 6), "PIPE minorLoss", line_number
    )

    status = None
    status_token = _token_at(tokens, 7)
    if status_token is not None:
        status = PIPE_STATUS_TOKENS.get(status_token.upper())
        if status is None:
            state.add_error(
                line_number,
                f'Unrecognized PIPE status: "{status_token}"',
                ErrorKind.FIELD,
            )

    pipe = Pipe(
        sequence_id=state.link_counter,
        identifier=tokens[0],
        start_node_id=tokens[1],
        end_node_id=tokens[2],
        length=length,
        diameter=diameter,
        roughness=roughness,
        minor_loss=minor_loss or 0.0,
        status=status,
        comment=comment,
    )
    return state.register_link(pipe, line_number)


def build_valve(
    state: ParseState,
    tokens: Sequence[str],
    line_number: int,
    comment: str | None = None,
) -> ParseState:
    """[VALVES] ID Node1 Node2 Diameter Type Setting [MinorLoss]"""
    if not _has_columns(
        state,
        tokens,
        MIN_COLUMNS_VALVE,
        "Valve",
        "ID, Node1, Node2, Diameter, Type, Setting",
        line_number,
    ):
        return state

    diameter = _required_float(state, tokens[3], "VALVE diameter", line_number)

    try:
        valve_type = ValveType(tokens[4].upper())
    except ValueError:
        state.add_error(
            line_number,
            f'Unrecognized VALVE type: "{tokens[4]}", '
            f"using {DEFAULT_VALVE_TYPE.value}",
            ErrorKind.FIELD,
        )
        valve_type = DEFAULT_VALVE_TYPE

    # GPV setting is the ID of a head-loss curve
    curve_reference = None
    if valve_type is ValveType.GPV and _to_float(tokens[5]) is None:
        curve_reference = tokens[5]
        setting = 0.0
    else:
        setting = _required_float(state, tokens[5], "VALVE setting", line_number)

    minor_loss = _optional_float(
        state, _token_at(tokens, 6), "VALVE minorLoss", line_number
    )

    valve = Valve(
        sequence_id=state.link_counter,
        identifier=tokens[0],
        start_node_id=tokens[1],
        end_node_id=tokens[2],
        diameter=diameter,
        valve_type=valve_type,
        setting=setting,
        minor_loss=minor_loss or 0.0,
        curve_reference=curve_reference,
        comment=comment,
    )
    return state.register_link(valve, line_number)


def build_pump(
    state: ParseState,
    tokens: Sequence[str],
    line_number: int,
    comment: str | None = None,
) -> ParseState:
    """
    [PUMPS] ID Node1 Node2 [KEYWORD value] ...

    Up to four keyword/value pairs follow the node columns. Keywords are
    matched case-insensitively against HEAD, POWER, SPEED and PATTERN;
    anything else is kept verbatim in ``extra``. POWER takes precedence
    over HEAD when choosing the pump mode.
    """
    if not _has_columns(
        state, tokens, MIN_COLUMNS_PUMP, "Pump", "ID, Node1, Node2", line_number
    ):
        return state

    pairs = tokens[3:]
    if len(pairs) > 2 * PUMP_MAX_KEYWORD_PAIRS:
        logger.debug(
            f"Pump {tokens[0]} (line {line_number}): ignoring tokens beyond "
            f"{PUMP_MAX_KEYWORD_PAIRS} keyword pairs"
        )
        pairs = pairs[: 2 * PUMP_MAX_KEYWORD_PAIRS]

    power: float | None = None
    head_curve: str | None = None
    speed: float | None = None
    pattern_id: str | None = None
    extra: dict[str, str] = {}

    for index in range(0, len(pairs), 2):
        key = pairs[index]
        value = _token_at(pairs, index + 1)
        if value is None:
            state.add_error(
                line_number,
                f'PUMP keyword "{key}" has no value',
                ErrorKind.FIELD,
            )
            break

        keyword = key.upper()
        if keyword == "POWER":
            power = _optional_float(state, value, "PUMP power", line_number)
        elif keyword == "HEAD":
            head_curve = value
        elif keyword == "SPEED":
            speed = _optional_float(state, value, "PUMP speed", line_number)
        elif keyword == "PATTERN":
            pattern_id = value
        else:
            extra[key] = value

    if power is not None:
        mode = PowerMode(power=power)
    elif head_curve is not None:
        mode = HeadMode(curve_reference=head_curve)
    else:
        state.add_error(
            line_number,
            f'PUMP "{tokens[0]}" is missing HEAD or POWER, assuming POWER 0',
            ErrorKind.FIELD,
        )
        mode = PowerMode(power=0.0)

    pump = Pump(
        sequence_id=state.link_counter,
        identifier=tokens[0],
        start_node_id=tokens[1],
        end_node_id=tokens[2],
        mode=mode,
        speed=speed,
        pattern_id=pattern_id,
        extra=extra,
        comment=comment,
    )
    return state.register_link(pump, line_number)


# ===========================================================================
# COORDINATE / VERTEX RESOLVERS
# ===========================================================================


def _parse_position(
    state: ParseState, tokens: Sequence[str], label: str, line_number: int
) -> tuple[float, float] | None:
    x = _to_float(tokens[1])
    y = _to_float(tokens[2])
    if x is None or y is None:
        state.add_error(
            line_number,
            f'{label} invalid X/Y: "{tokens[1]}", "{tokens[2]}"',
            ErrorKind.FIELD,
        )
        return None
    return x, y


def apply_coordinates(
    state: ParseState,
    tokens: Sequence[str],
    line_number: int,
    comment: str | None = None,
) -> ParseState:
    """[COORDINATES] NodeID X Y - sets the position of an existing node."""
    if not _has_columns(
        state, tokens, MIN_COLUMNS_POSITION, "COORDINATES", "NodeID, X, Y", line_number
    ):
        return state

    node = state.nodes.get(tokens[0])
    if node is None:
        return state.add_error(
            line_number,
            f'COORDINATES references unknown node "{tokens[0]}"',
            ErrorKind.REFERENCE,
        )

    position = _parse_position(state, tokens, "COORDINATES", line_number)
    if position is None:
        return state

    state.nodes[node.identifier] = dataclasses.replace(node, geometry=position)
    return state


def apply_vertex(
    state: ParseState,
    tokens: Sequence[str],
    line_number: int,
    comment: str | None = None,
) -> ParseState:
    """[VERTICES] LinkID X Y - appends an intermediate vertex to a link."""
    if not _has_columns(
        state, tokens, MIN_COLUMNS_POSITION, "VERTICES", "LinkID, X, Y", line_number
    ):
        return state

    link = state.links.get(tokens[0])
    if link is None:
        return state.add_error(
            line_number,
            f'VERTICES references unknown link "{tokens[0]}"',
            ErrorKind.REFERENCE,
        )

    position = _parse_position(state, tokens, "VERTICES", line_number)
    if position is None:
        return state

    state.links[link.identifier] = dataclasses.replace(
        link, geometry=(*link.geometry, position)
    )
    return state


# ===========================================================================
# DISPATCH
# ===========================================================================

SECTION_BUILDERS: dict[Section, Builder] = {
    Section.JUNCTIONS: build_junction,
    Section.RESERVOIRS: build_reservoir,
    Section.TANKS: build_tank,
    Section.PIPES: build_pipe,
    Section.VALVES: build_valve,
    Section.PUMPS: build_pump,
    Section.COORDINATES: apply_coordinates,
    Section.VERTICES: apply_vertex,
}


def parse_line(state: ParseState, raw_line: str, line_number: int) -> ParseState:
    """
    Process one input line against the current parse state.

    Parameters
    ----------
    state : ParseState
        State threaded through the fold
    raw_line : str
        Physical line as read from the input
    line_number : int
        1-based line number

    Returns
    -------
    ParseState
        The updated state
    """
    content, comment = normalize_line(raw_line)
    if not content:
        return state

    if is_section_header(content):
        state.current_section = content
        if Section.from_header(content) is None:
            logger.debug(f"Line {line_number}: entering unrecognized section {content}")
        return state

    section = Section.from_header(state.current_section)
    builder = SECTION_BUILDERS.get(section) if section is not None else None
    if builder is None:
        return state.add_error(
            line_number,
            f'Unrecognized section: "{state.current_section}". Line: "{content}"',
        )

    return builder(state, content.split(" "), line_number, comment)


# ===========================================================================
# GEOMETRY ASSEMBLY
# ===========================================================================


def assemble_links(
    nodes: dict[str, Node],
    links: dict[str, Link],
) -> tuple[list[Link], list[ParseError]]:
    """
    Stitch final link geometry from endpoint nodes and vertices.

    A link whose endpoints both resolve gets
    ``[start, *vertices, end]``. A link with a missing endpoint keeps its
    raw vertices and is reported; it is never dropped.

    Parameters
    ----------
    nodes : dict[str, Node]
        Node table keyed by identifier
    links : dict[str, Link]
        Link table keyed by identifier

    Returns
    -------
    tuple[list[Link], list[ParseError]]
        Assembled links in table order and the reference errors found
    """
    assembled: list[Link] = []
    errors: list[ParseError] = []

    for link_id, link in links.items():
        start = nodes.get(link.start_node_id)
        end = nodes.get(link.end_node_id)

        if start is None or end is None:
            missing = [
                node_id
                for node_id, node in (
                    (link.start_node_id, start),
                    (link.end_node_id, end),
                )
                if node is None
            ]
            missing_str = ", ".join(f'"{node_id}"' for node_id in missing)
            errors.append(
                ParseError(
                    line=POST_PASS_LINE,
                    section="",
                    message=f'Link "{link_id}" references missing node(s): {missing_str}',
                    kind=ErrorKind.REFERENCE,
                )
            )
            assembled.append(link)
            continue

        assembled.append(
            dataclasses.replace(
                link, geometry=(start.geometry, *link.geometry, end.geometry)
            )
        )

    if errors:
        logger.warning(f"{len(errors)} link(s) reference missing nodes")

    return assembled, errors


# ===========================================================================
# DRIVER
# ===========================================================================


def parse_inp(text: str) -> NetworkGraph:
    """
    Parse EPANET network text into a typed feature graph.

    Parameters
    ----------
    text : str
        Full contents of an .inp file

    Returns
    -------
    NetworkGraph
        Node features (table order) then link features, plus every
        parse error in discovery order

    Examples
    --------
    >>> graph = parse_inp("[JUNCTIONS]\\nJ1 100\\n[COORDINATES]\\nJ1 10 20\\n")
    >>> graph.features[0].geometry
    (10.0, 20.0)
    >>> graph.errors
    []
    """
    state = ParseState()
    for line_number, raw_line in enumerate(text.split("\n"), start=1):
        state = parse_line(state, raw_line, line_number)

    links, link_errors = assemble_links(state.nodes, state.links)
    state.errors.extend(link_errors)

    graph = NetworkGraph(
        features=[*state.nodes.values(), *links],
        errors=state.errors,
    )
    logger.info(
        f"Parsed network: {len(state.nodes)} nodes, {len(links)} links, "
        f"{len(graph.errors)} errors"
    )
    return graph


def parse_inp_file(filepath: str | Path) -> NetworkGraph:
    """
    Read a UTF-8 .inp file and parse it.

    Raises
    ------
    FileNotFoundError
        If the file does not exist
    """
    filepath = Path(filepath)
    if not filepath.exists():
        raise FileNotFoundError(f"Network file not found: {filepath}")

    logger.info(f"Reading network file: {filepath}")
    return parse_inp(filepath.read_text(encoding="utf-8"))
