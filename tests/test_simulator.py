import json
import os
import tempfile

from reconstruction.report import load_reports
from simulation.generate_synthetic import FleetConfig, SyntheticFleet, make_fleet


def test_make_fleet_creates_files():
    td = tempfile.mkdtemp(prefix="fleet_test_")
    make_fleet(td, n_scanners=3, seed=11)
    # basic assertions
    assert os.path.exists(os.path.join(td, "reports.txt"))
    assert os.path.exists(os.path.join(td, "ground_truth.json"))

    scanners = load_reports(os.path.join(td, "reports.txt"))
    assert [s.scanner_id for s in scanners] == [0, 1, 2]

    with open(os.path.join(td, "ground_truth.json")) as f:
        truth = json.load(f)
    assert len(truth["scanners"]) == 3
    assert truth["seed"] == 11


def test_consecutive_scanners_share_beacons():
    config = FleetConfig(shared_beacons=13, extra_beacons=0)
    fleet = SyntheticFleet(config=config, seed=5)
    fleet.place_scanners_chain(4)
    fleet.scatter_beacons()

    for prev, cur in zip(fleet.scanners, fleet.scanners[1:]):
        shared = [
            b for b in fleet.beacons
            if prev.sees(b, config.sensor_range) and cur.sees(b, config.sensor_range)
        ]
        assert len(shared) >= 13


def test_same_seed_same_fleet():
    a = SyntheticFleet(seed=42)
    b = SyntheticFleet(seed=42)
    scanners_a = a.build_scanners()
    scanners_b = b.build_scanners()
    assert a.ground_truth() == b.ground_truth()
    assert all((x.points == y.points).all() for x, y in zip(scanners_a, scanners_b))
