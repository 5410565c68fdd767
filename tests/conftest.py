"""
Shared test fixtures for pytest.

Provides sample network texts and parsed networks used across unit and
integration tests.
"""

import pytest

from epanet_geojson.core.inp_parser import parse_inp

SAMPLE_INP = """\
[TITLE]
[JUNCTIONS]
;ID              Elev        Demand      Pattern
 J1              100         10          PAT1        ; first junction
 J2              95          5
 J3              90

[RESERVOIRS]
 R1              120

[TANKS]
 T1              110         5           1           10          20          0           *

[PIPES]
 P1              R1          J1          1000        300         100         0           Open
 P2              J1          J2          500         200         100
 P3              J2          J3          400         150         100         0           CV

[VALVES]
 V1              J3          T1          150         PRV         50          0

[PUMPS]
 PU1             J1          T1          HEAD        C1

[COORDINATES]
 J1              10          20
 J2              30          20
 J3              30          40
 R1              0           20
 T1              50          40

[VERTICES]
 P2              15          25
 P2              20          25

[END]
"""


@pytest.fixture
def sample_inp():
    """Small clean network touching every supported section."""
    return SAMPLE_INP


@pytest.fixture
def sample_graph(sample_inp):
    """Parsed sample network."""
    return parse_inp(sample_inp)


@pytest.fixture
def projected_inp():
    """Two junctions and a pipe in PL-1992 (EPSG:2180) coordinates."""
    return (
        "[JUNCTIONS]\n"
        "J1 100\n"
        "J2 95\n"
        "[PIPES]\n"
        "P1 J1 J2 100 200 100\n"
        "[COORDINATES]\n"
        "J1 639139 486706\n"
        "J2 639239 486806\n"
    )
