"""Synthetic fleet generator.

This module generates synthetic scanner fleets for development, testing, and
CI purposes. The generated reports can be processed by the full pipeline and
come with the ground truth needed to check the result.

Features:
- Chain placement: each scanner within sensor range of the previous one
- Guaranteed overlap between consecutive scanners
- Random proper rotation per scanner (scanner 0 defines the global frame)
- Seeded, reproducible output

Usage:
    python -m simulation.generate_synthetic --out fleets/synthetic --scanners 6
"""
from __future__ import annotations

import argparse
import json
import random
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import List, Optional, Dict, Any

from reconstruction.beacons import max_manhattan_distance
from reconstruction.pose import Pose3D
from reconstruction.report import Point3, Scanner, as_point_array, format_reports
from reconstruction.rotations import ROTATION_COUNT


@dataclass
class PlacedScanner:
    """Scanner placement in the global frame."""
    position: Point3
    rotation: int  # local -> global rotation id

    @property
    def pose(self) -> Pose3D:
        return Pose3D(self.rotation, self.position)

    def sees(self, beacon: Point3, sensor_range: int) -> bool:
        return all(abs(b - p) <= sensor_range for b, p in zip(beacon, self.position))


@dataclass
class FleetConfig:
    """Fleet simulation parameters."""
    sensor_range: int = 1000  # per-axis visibility around a scanner
    max_step: int = 1100  # per-axis offset limit between consecutive scanners
    shared_beacons: int = 14  # beacons placed in each consecutive pair's shared volume
    extra_beacons: int = 12  # beacons scattered through each scanner's own volume


@dataclass
class SyntheticFleet:
    """Generator for synthetic scanner fleets."""

    config: FleetConfig = field(default_factory=FleetConfig)
    seed: Optional[int] = None
    scanners: List[PlacedScanner] = field(default_factory=list)
    beacons: List[Point3] = field(default_factory=list)

    def __post_init__(self):
        self.rng = random.Random(self.seed)
        self._beacon_set: set[Point3] = set(self.beacons)

    def place_scanners_chain(self, n_scanners: int = 5) -> None:
        """Place scanners in a random walk, each overlapping the previous one."""
        self.scanners.clear()
        self.scanners.append(PlacedScanner(position=Point3(0, 0, 0), rotation=0))

        step = self.config.max_step
        for _ in range(1, n_scanners):
            prev = self.scanners[-1].position
            offset = [self.rng.randint(-step, step) for _ in range(3)]
            position = Point3(*(p + o for p, o in zip(prev, offset)))
            rotation = self.rng.randrange(ROTATION_COUNT)
            self.scanners.append(PlacedScanner(position=position, rotation=rotation))

    def _add_beacon_in(self, low: List[int], high: List[int]) -> None:
        while True:
            beacon = Point3(*(self.rng.randint(lo, hi) for lo, hi in zip(low, high)))
            if beacon not in self._beacon_set:
                self._beacon_set.add(beacon)
                self.beacons.append(beacon)
                return

    def scatter_beacons(self) -> None:
        """Place beacons so consecutive scanners share enough of them."""
        r = self.config.sensor_range

        for prev, cur in zip(self.scanners, self.scanners[1:]):
            # Intersection of the two visibility cubes
            low = [max(a, b) - r for a, b in zip(prev.position, cur.position)]
            high = [min(a, b) + r for a, b in zip(prev.position, cur.position)]
            for _ in range(self.config.shared_beacons):
                self._add_beacon_in(low, high)

        for scanner in self.scanners:
            low = [p - r for p in scanner.position]
            high = [p + r for p in scanner.position]
            for _ in range(self.config.extra_beacons):
                self._add_beacon_in(low, high)

    def observe(self, index: int) -> Scanner:
        """Report of scanner ``index``: every visible beacon in its local frame."""
        placed = self.scanners[index]
        visible = [b for b in self.beacons if placed.sees(b, self.config.sensor_range)]
        local = placed.pose.inverse().apply(as_point_array(visible))
        return Scanner(index, local)

    def build_scanners(self) -> List[Scanner]:
        if not self.scanners:
            self.place_scanners_chain()
        if not self.beacons:
            self.scatter_beacons()
        return [self.observe(i) for i in range(len(self.scanners))]

    def ground_truth(self) -> Dict[str, Any]:
        positions = [s.position for s in self.scanners]
        return {
            "scanners": [
                {
                    "index": i,
                    "position": list(s.position),
                    "rotation": s.rotation,
                }
                for i, s in enumerate(self.scanners)
            ],
            "beacon_count": len(self.beacons),
            "max_scanner_distance": max_manhattan_distance(positions),
        }

    def generate_fleet(self, output_dir: Path | str) -> Dict[str, Any]:
        """Generate report and ground-truth files.

        Args:
            output_dir: Output directory path

        Returns:
            Summary dictionary
        """
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)

        scanners = self.build_scanners()

        with open(output_dir / "reports.txt", "w") as f:
            f.write(format_reports(scanners))

        truth = self.ground_truth()
        truth["seed"] = self.seed
        truth["config"] = asdict(self.config)
        with open(output_dir / "ground_truth.json", "w") as f:
            json.dump(truth, f, indent=2)

        summary = {
            "status": "ok",
            "fleet_dir": str(output_dir),
            "scanners": len(scanners),
            "readings": sum(len(s) for s in scanners),
            "beacons": len(self.beacons),
        }

        print(json.dumps(summary))
        return summary


def make_fleet(outdir: str, n_scanners: int = 5, seed: Optional[int] = None) -> Dict[str, Any]:
    """Generate a fleet with default parameters."""
    fleet = SyntheticFleet(seed=seed)
    fleet.place_scanners_chain(n_scanners)
    fleet.scatter_beacons()
    return fleet.generate_fleet(outdir)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(
        description="Generate synthetic scanner fleet for testing"
    )
    parser.add_argument(
        "--out",
        required=True,
        help="Output directory"
    )
    parser.add_argument(
        "--scanners",
        type=int,
        default=5,
        help="Number of scanners (default: 5)"
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed (default: unseeded)"
    )
    parser.add_argument(
        "--range",
        type=int,
        default=1000,
        help="Sensor range per axis (default: 1000)"
    )
    parser.add_argument(
        "--shared",
        type=int,
        default=14,
        help="Beacons shared by consecutive scanners (default: 14)"
    )

    args = parser.parse_args()

    config = FleetConfig(
        sensor_range=args.range,
        max_step=int(args.range * 1.1),
        shared_beacons=args.shared,
    )

    fleet = SyntheticFleet(config=config, seed=args.seed)
    fleet.place_scanners_chain(args.scanners)
    fleet.scatter_beacons()
    fleet.generate_fleet(args.out)
