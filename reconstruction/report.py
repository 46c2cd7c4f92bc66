"""Scanner reports: the per-scanner sets of locally observed beacons.

Reports are plain text, one block per scanner separated by blank lines:

    --- scanner 0 ---
    404,-588,-901
    528,-643,409

Coordinates are relative to the scanner, in a frame of unknown orientation.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Iterable, NamedTuple, Optional

import numpy as np

from .errors import PoseAlreadyResolvedError, ReportFormatError, UnresolvedPoseError

if TYPE_CHECKING:
    from .pose import Pose3D

logger = logging.getLogger(__name__)

HEADER_RE = re.compile(r"^---\s*scanner\s+(\d+)\s*---$")


class Point3(NamedTuple):
    """Integer point in 3-space."""
    x: int
    y: int
    z: int

    def manhattan(self, other: 'Point3') -> int:
        return abs(self.x - other.x) + abs(self.y - other.y) + abs(self.z - other.z)


ORIGIN = Point3(0, 0, 0)


def as_point_array(points: Iterable) -> np.ndarray:
    """Convert points to an Nx3 int64 array."""
    if not isinstance(points, np.ndarray):
        points = list(points)
    arr = np.asarray(points, dtype=np.int64)
    if arr.size == 0:
        return np.zeros((0, 3), dtype=np.int64)
    if arr.ndim != 2 or arr.shape[1] != 3:
        raise ValueError(f"expected Nx3 points, got shape {arr.shape}")
    return arr


@dataclass(eq=False)
class Scanner:
    """A scanner and its local beacon readings.

    ``points`` is stored as a read-only Nx3 array with duplicate readings
    removed (first occurrence kept). The pose is written once, during graph
    propagation, and read by everything downstream.
    """

    scanner_id: int
    points: np.ndarray
    _pose: Optional['Pose3D'] = field(default=None, repr=False, compare=False)

    def __post_init__(self):
        points = as_point_array(self.points)
        if len(points):
            _, first = np.unique(points, axis=0, return_index=True)
            if len(first) != len(points):
                logger.warning(
                    f"Scanner {self.scanner_id}: dropped {len(points) - len(first)} duplicate readings"
                )
                points = points[np.sort(first)]
        points = np.array(points, dtype=np.int64)
        points.setflags(write=False)
        self.points = points

    def __len__(self) -> int:
        return len(self.points)

    @property
    def pose(self) -> 'Pose3D':
        if self._pose is None:
            raise UnresolvedPoseError(f"Scanner {self.scanner_id} has no resolved pose")
        return self._pose

    @property
    def is_resolved(self) -> bool:
        return self._pose is not None

    def resolve(self, pose: 'Pose3D') -> None:
        """Assign the absolute pose. May only be called once."""
        if self._pose is not None:
            raise PoseAlreadyResolvedError(f"Scanner {self.scanner_id} is already posed")
        self._pose = pose

    def local_points(self) -> list[Point3]:
        return [Point3(*p) for p in self.points.tolist()]

    def absolute_points(self) -> np.ndarray:
        """Readings expressed in the anchor frame."""
        return self.pose.apply(self.points)


def parse_reports(text: str) -> list[Scanner]:
    """Parse report text into scanners, in input order.

    Raises:
        ReportFormatError: on malformed headers, coordinates or repeated ids
    """
    scanners: list[Scanner] = []
    seen: set[int] = set()
    current_id: Optional[int] = None
    current_points: list[tuple[int, int, int]] = []

    def flush():
        if current_id is not None:
            scanners.append(Scanner(current_id, current_points))

    for line_number, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line:
            continue

        header = HEADER_RE.match(line)
        if header:
            flush()
            current_id = int(header.group(1))
            if current_id in seen:
                raise ReportFormatError(f"duplicate scanner {current_id}", line_number)
            seen.add(current_id)
            current_points = []
            continue

        if current_id is None:
            raise ReportFormatError(f"coordinates before any scanner header: {line!r}", line_number)

        parts = line.split(",")
        if len(parts) != 3:
            raise ReportFormatError(f"expected x,y,z but got {line!r}", line_number)
        try:
            current_points.append(tuple(int(p) for p in parts))
        except ValueError:
            raise ReportFormatError(f"non-integer coordinate in {line!r}", line_number) from None

    flush()
    logger.debug(f"Parsed {len(scanners)} scanner reports")
    return scanners


def load_reports(path: Path | str) -> list[Scanner]:
    """Load scanner reports from a text file."""
    path = Path(path)
    return parse_reports(path.read_text())


def format_reports(scanners: Iterable[Scanner]) -> str:
    """Render scanners back into report text."""
    blocks = []
    for scanner in scanners:
        lines = [f"--- scanner {scanner.scanner_id} ---"]
        lines.extend(f"{x},{y},{z}" for x, y, z in scanner.points.tolist())
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks) + "\n"
