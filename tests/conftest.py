"""Pytest configuration and shared fixtures."""

import pytest
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

DATA_DIR = Path(__file__).parent / "data"

# Beacons seen by both scanners of the two-scanner scenario, in the first
# scanner's frame
SHARED_BEACONS = [
    (10, 20, 30),
    (-150, 42, 310),
    (233, -410, 17),
    (-320, -280, -90),
    (405, 120, -260),
    (-77, 390, 145),
    (180, -35, -420),
    (-440, 66, 205),
    (299, 301, -12),
    (-12, -199, 444),
    (61, -360, -333),
    (350, -250, 90),
]

FIRST_ONLY = [
    (-900, -900, -900),
    (870, -810, 640),
    (-700, 820, -560),
    (910, 905, -880),
    (-850, 15, 930),
]

SECOND_ONLY = [
    (777, -666, 555),
    (-612, 743, -811),
    (903, 118, -27),
    (-45, -932, 688),
]

# Maps the second scanner's frame into the first scanner's frame
TWO_SCANNER_ROTATION = 5
TWO_SCANNER_TRANSLATION = (500, -300, 250)


@pytest.fixture
def example_fleet_path():
    """Canonical five-scanner report file."""
    return DATA_DIR / "example_fleet.txt"


@pytest.fixture
def example_fleet_text(example_fleet_path):
    return example_fleet_path.read_text()


@pytest.fixture
def example_scanners(example_fleet_text):
    """Fresh, unposed scanners from the canonical report."""
    from reconstruction.report import parse_reports
    return parse_reports(example_fleet_text)


@pytest.fixture
def two_scanners():
    """Two scanners sharing exactly 12 beacons under a known transform."""
    from reconstruction.pose import Pose3D
    from reconstruction.report import Scanner, as_point_array

    transform = Pose3D(TWO_SCANNER_ROTATION, TWO_SCANNER_TRANSLATION)
    shared_local = transform.inverse().apply(as_point_array(SHARED_BEACONS))

    first = Scanner(0, SHARED_BEACONS + FIRST_ONLY)
    second = Scanner(1, shared_local.tolist() + SECOND_ONLY)
    return first, second


@pytest.fixture
def triangle_truth():
    """Ground-truth poses of three scanners that all see the same beacons."""
    from reconstruction.pose import Pose3D
    return [
        Pose3D(),
        Pose3D(13, (88, 113, -104)),
        Pose3D(18, (-150, 60, 200)),
    ]


@pytest.fixture
def make_triangle(triangle_truth):
    """Factory for fresh scanners observing SHARED_BEACONS from the truth poses."""
    from reconstruction.report import Scanner, as_point_array

    def factory():
        beacons = as_point_array(SHARED_BEACONS)
        return [
            Scanner(i, pose.inverse().apply(beacons))
            for i, pose in enumerate(triangle_truth)
        ]
    return factory


@pytest.fixture
def sample_config_dict():
    """Sample configuration as dictionary."""
    return {
        "matcher": {
            "threshold": 12,
            "strict": True,
            "workers": 4,
        },
        "graph": {
            "anchor": None,
            "traversal": "bfs",
        },
        "output": {
            "write_beacons": True,
            "write_scanners": True,
            "write_summary": True,
        },
    }
