"""
Unit tests for network module.
"""

import dataclasses

import pytest

from epanet_geojson.core.network import (
    ErrorKind,
    FeatureKind,
    HeadMode,
    Junction,
    NetworkGraph,
    ParseError,
    ParseState,
    Pipe,
    PipeStatus,
    PowerMode,
    Pump,
    Section,
    Tank,
    Valve,
    ValveType,
)


def _pipe(identifier="P1", **kwargs):
    return Pipe(
        sequence_id=0,
        identifier=identifier,
        start_node_id="A",
        end_node_id="B",
        length=10.0,
        diameter=100.0,
        roughness=120.0,
        **kwargs,
    )


class TestSection:
    """Tests for Section.from_header."""

    @pytest.mark.parametrize(
        "header,expected",
        [
            ("[JUNCTIONS]", Section.JUNCTIONS),
            ("[Pipes]", Section.PIPES),
            ("[coordinates]", Section.COORDINATES),
            ("[vertices]", Section.VERTICES),
        ],
    )
    def test_known_headers(self, header, expected):
        """Test recognized headers resolve case-insensitively."""
        assert Section.from_header(header) is expected

    @pytest.mark.parametrize("header", ["[OPTIONS]", "[FOO]", "", "JUNCTIONS"])
    def test_unknown_headers(self, header):
        """Test unknown headers resolve to None."""
        assert Section.from_header(header) is None


class TestParseError:
    """Tests for ParseError record."""

    def test_default_kind_is_structural(self):
        """Test errors default to structural."""
        error = ParseError(line=3, section="[FOO]", message="bad")
        assert error.kind is ErrorKind.STRUCTURAL

    def test_to_dict(self):
        """Test serialization uses plain values."""
        error = ParseError(
            line=2, section="[PIPES]", message="oops", kind=ErrorKind.FIELD
        )
        assert error.to_dict() == {
            "line": 2,
            "section": "[PIPES]",
            "message": "oops",
            "kind": "field",
        }

    def test_is_immutable(self):
        """Test errors are frozen."""
        error = ParseError(line=1, section="", message="x")
        with pytest.raises(dataclasses.FrozenInstanceError):
            error.line = 5


class TestNodeProperties:
    """Tests for node property mappings."""

    def test_junction_properties(self):
        """Test junction properties carry kind, category and values."""
        junction = Junction(
            sequence_id=0, identifier="J1", elevation=100.0, demand=2.0
        )
        assert junction.properties() == {
            "kind": "Node",
            "category": "Junction",
            "id": "J1",
            "elevation": 100.0,
            "demand": 2.0,
        }

    def test_comment_included_when_present(self):
        """Test a comment appears in properties."""
        junction = Junction(
            sequence_id=0, identifier="J1", elevation=1.0, comment="main"
        )
        assert junction.properties()["comment"] == "main"

    def test_tank_properties(self):
        """Test tank properties include levels and volume curve."""
        tank = Tank(
            sequence_id=0,
            identifier="T1",
            elevation=1.0,
            init_level=2.0,
            min_level=0.5,
            max_level=3.0,
            diameter=10.0,
            min_volume=0.0,
            overflow=False,
        )
        props = tank.properties()
        assert props["category"] == "Tank"
        assert props["max_level"] == 3.0
        assert props["volume_curve_id"] == ""
        assert props["overflow"] is False

    def test_default_geometry(self):
        """Test nodes start at the origin."""
        junction = Junction(sequence_id=0, identifier="J1", elevation=0.0)
        assert junction.geometry == (0.0, 0.0)
        assert junction.kind is FeatureKind.NODE


class TestLinkProperties:
    """Tests for link property mappings."""

    def test_pipe_properties(self):
        """Test pipe properties include endpoints and status."""
        props = _pipe(status=PipeStatus.CHECK_VALVE).properties()
        assert props["kind"] == "Link"
        assert props["category"] == "Pipe"
        assert props["start_node_id"] == "A"
        assert props["end_node_id"] == "B"
        assert props["status"] == "CV"
        assert props["minor_loss"] == 0.0

    def test_pipe_without_status(self):
        """Test an absent status is omitted."""
        assert "status" not in _pipe().properties()

    def test_valve_properties(self):
        """Test valve type is serialized by value."""
        valve = Valve(
            sequence_id=0,
            identifier="V1",
            start_node_id="A",
            end_node_id="B",
            diameter=100.0,
            valve_type=ValveType.FCV,
            setting=12.0,
        )
        props = valve.properties()
        assert props["valve_type"] == "FCV"
        assert "curve_reference" not in props

    def test_power_pump_properties(self):
        """Test power pump properties expose the power value."""
        pump = Pump(
            sequence_id=0,
            identifier="PU1",
            start_node_id="A",
            end_node_id="B",
            mode=PowerMode(power=5.0),
        )
        props = pump.properties()
        assert props["mode"] == "Power"
        assert props["power"] == 5.0
        assert "curve_reference" not in props
        assert "extra" not in props

    def test_head_pump_properties(self):
        """Test head pump properties expose the curve and extras."""
        pump = Pump(
            sequence_id=0,
            identifier="PU1",
            start_node_id="A",
            end_node_id="B",
            mode=HeadMode(curve_reference="C1"),
            speed=1.1,
            extra={"PRICE": "0.2"},
        )
        props = pump.properties()
        assert props["mode"] == "Head"
        assert props["curve_reference"] == "C1"
        assert props["speed"] == 1.1
        assert props["extra"] == {"PRICE": "0.2"}


class TestParseState:
    """Tests for ParseState bookkeeping."""

    def test_add_error_uses_current_section(self):
        """Test errors pick up the active section header."""
        state = ParseState(current_section="[Tanks]")
        state.add_error(7, "bad", ErrorKind.FIELD)
        assert state.errors == [
            ParseError(line=7, section="[Tanks]", message="bad", kind=ErrorKind.FIELD)
        ]

    def test_counters_increment_per_namespace(self):
        """Test node and link counters are independent."""
        state = ParseState()
        state.register_node(Junction(sequence_id=0, identifier="J1", elevation=0), 1)
        state.register_node(Junction(sequence_id=1, identifier="J2", elevation=0), 2)
        state.register_link(_pipe(), 3)
        assert state.node_counter == 2
        assert state.link_counter == 1

    def test_duplicate_link_flagged(self):
        """Test redefining a link replaces it and records an error."""
        state = ParseState(current_section="[PIPES]")
        state.register_link(_pipe(), 1)
        state.register_link(dataclasses.replace(_pipe(), length=99.0), 2)
        assert state.links["P1"].length == 99.0
        assert len(state.errors) == 1
        assert "Duplicate link" in state.errors[0].message
        assert state.errors[0].line == 2


class TestNetworkGraph:
    """Tests for NetworkGraph accessors."""

    def test_nodes_and_links_split(self, sample_graph):
        """Test features split by kind."""
        assert all(n.kind is FeatureKind.NODE for n in sample_graph.nodes)
        assert all(link.kind is FeatureKind.LINK for link in sample_graph.links)

    def test_get_by_kind(self):
        """Test lookup honours the namespace."""
        junction = Junction(sequence_id=0, identifier="X", elevation=0.0)
        pipe = _pipe(identifier="X")
        graph = NetworkGraph(features=[junction, pipe])
        assert graph.get("X", FeatureKind.NODE) is junction
        assert graph.get("X", FeatureKind.LINK) is pipe
        assert graph.get("Y", FeatureKind.NODE) is None

    def test_empty_graph(self):
        """Test a default graph has no features or errors."""
        graph = NetworkGraph()
        assert graph.features == []
        assert graph.errors == []
