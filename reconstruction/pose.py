"""Rigid transforms between scanner frames.

A pose is a proper rotation from the catalog followed by an integer
translation. Everything stays in exact integer arithmetic.
"""
from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from .report import ORIGIN, Point3
from .rotations import CATALOG, IDENTITY


@dataclass(frozen=True)
class Pose3D:
    """3D pose (rotation id + translation).

    Maps a local point ``p`` to ``rotate(rotation, p) + translation``.
    """
    rotation: int = IDENTITY
    translation: Point3 = ORIGIN

    def __post_init__(self):
        if not 0 <= self.rotation < len(CATALOG):
            raise ValueError(f"Invalid rotation id: {self.rotation}")
        object.__setattr__(self, "translation", Point3(*(int(v) for v in self.translation)))

    def to_matrix(self) -> np.ndarray:
        """Convert to 4x4 homogeneous transformation matrix."""
        T = np.eye(4, dtype=np.int64)
        T[:3, :3] = CATALOG.matrix(self.rotation)
        T[:3, 3] = self.translation
        return T

    @classmethod
    def from_matrix(cls, T: np.ndarray) -> 'Pose3D':
        """Create from 4x4 homogeneous transformation matrix."""
        rotation = CATALOG.identify(T[:3, :3])
        return cls(rotation=rotation, translation=Point3(*T[:3, 3].tolist()))

    def compose(self, other: 'Pose3D') -> 'Pose3D':
        """Compose two poses: self * other (apply ``other`` first)."""
        rotated = CATALOG.rotate(self.rotation, other.translation)
        return Pose3D(
            rotation=CATALOG.compose(self.rotation, other.rotation),
            translation=Point3(*(r + t for r, t in zip(rotated, self.translation))),
        )

    def inverse(self) -> 'Pose3D':
        """Return the inverse pose."""
        inv = CATALOG.inverse(self.rotation)
        x, y, z = CATALOG.rotate(inv, self.translation)
        return Pose3D(rotation=inv, translation=Point3(-x, -y, -z))

    def apply(self, points: np.ndarray) -> np.ndarray:
        """Transform an Nx3 array of points by this pose."""
        if len(points) == 0:
            return np.zeros((0, 3), dtype=np.int64)
        return CATALOG.rotate_points(self.rotation, points) + np.asarray(self.translation, dtype=np.int64)

    def apply_point(self, point) -> Point3:
        x, y, z = CATALOG.rotate(self.rotation, point)
        tx, ty, tz = self.translation
        return Point3(x + tx, y + ty, z + tz)

    @property
    def position(self) -> Point3:
        return self.translation
