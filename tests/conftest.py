# tests/conftest.py
import os
import sys

import pytest

# Add the project root directory to sys.path so that "import safewalk" works
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)


def line_feature(link_id, coords, **props):
    """
    GeoJSON LineString feature with the given (lon, lat) vertices.
    """
    return {
        "type": "Feature",
        "geometry": {"type": "LineString", "coordinates": [list(c) for c in coords]},
        "properties": {"link_id": link_id, **props},
    }


# Four junctions near Yeoksam station:
#
#        D
#      /   \
#     A--B--C        E--F   (separate, unconnected pair)
#
# A-B-C is short but dark, narrow and unwatched.
# A-D-C is longer but lit, wide and covered by cameras.
A = (127.000, 37.500)
B = (127.001, 37.500)
C = (127.002, 37.500)
D = (127.001, 37.501)
E = (127.010, 37.510)
F = (127.011, 37.510)


@pytest.fixture
def sample_collection():
    return {
        "type": "FeatureCollection",
        "features": [
            line_feature("ab", [A, B], F_NODE="A", T_NODE="B", LENGTH=100, width=3),
            line_feature("bc", [B, C], F_NODE="B", T_NODE="C", LENGTH=100, width=3),
            line_feature(
                "ad",
                [A, (127.0005, 37.5008), D],
                F_NODE="A",
                T_NODE="D",
                LENGTH=150,
                width=8,
                cctv_cnt=3,
                lamp_cnt=3,
            ),
            line_feature(
                "dc",
                [D, (127.0015, 37.5008), C],
                F_NODE="D",
                T_NODE="C",
                LENGTH=150,
                width=8,
                cctv_cnt=3,
                lamp_cnt=3,
            ),
            line_feature("ef", [E, F], F_NODE="E", T_NODE="F", LENGTH=120),
        ],
    }


@pytest.fixture
def sample_manager(sample_collection):
    from safewalk.services.graph_manager import GraphManager
    from safewalk.services.network_builder import IngestConfig

    manager = GraphManager(config=IngestConfig())
    manager.merge_geojson(sample_collection)
    return manager
