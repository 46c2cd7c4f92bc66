"""Beacon set assembly and fleet metrics."""
from __future__ import annotations

import logging
from dataclasses import dataclass, asdict
from typing import Iterable, Iterator, Sequence

import numpy as np
from scipy.spatial.distance import pdist

from .report import Point3, Scanner, as_point_array

logger = logging.getLogger(__name__)


class BeaconSet:
    """Deduplicated beacons in absolute coordinates."""

    def __init__(self, points: Iterable = ()):
        self._points: set[Point3] = set()
        for p in points:
            self.add(p)

    def add(self, point) -> None:
        self._points.add(Point3(*(int(v) for v in point)))

    def add_points(self, points: np.ndarray) -> None:
        self._points.update(Point3(*p) for p in as_point_array(points).tolist())

    def add_scanner(self, scanner: Scanner) -> None:
        """Add a scanner's readings through its resolved pose."""
        self.add_points(scanner.absolute_points())

    def __len__(self) -> int:
        return len(self._points)

    def __contains__(self, point) -> bool:
        return Point3(*point) in self._points

    def __iter__(self) -> Iterator[Point3]:
        return iter(self._points)

    def to_array(self) -> np.ndarray:
        """Beacons as a sorted Nx3 array."""
        return as_point_array(sorted(self._points))


def assemble_beacons(scanners: Iterable[Scanner]) -> BeaconSet:
    """Union every posed scanner's readings into one beacon set."""
    beacons = BeaconSet()
    total = 0
    for scanner in scanners:
        beacons.add_scanner(scanner)
        total += len(scanner)
    logger.info(f"Assembled {len(beacons)} distinct beacons from {total} readings")
    return beacons


def max_manhattan_distance(positions: Sequence) -> int:
    """Largest Manhattan distance between any two positions."""
    if len(positions) < 2:
        return 0
    return int(pdist(as_point_array(positions), metric="cityblock").max())


@dataclass
class FleetMetrics:
    """Summary figures for a reconstructed fleet."""
    beacon_count: int = 0
    scanner_count: int = 0
    overlap_count: int = 0
    max_scanner_distance: int = 0

    @classmethod
    def compute(cls, beacons: BeaconSet, positions: Sequence[Point3], overlap_count: int = 0) -> 'FleetMetrics':
        return cls(
            beacon_count=len(beacons),
            scanner_count=len(positions),
            overlap_count=overlap_count,
            max_scanner_distance=max_manhattan_distance(positions),
        )

    def to_dict(self) -> dict:
        return asdict(self)
