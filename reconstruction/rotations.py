"""The 24 proper rotations of the axis-aligned cube.

Each rotation permutes the three axes and flips some of their signs such that
the resulting matrix has determinant +1. The remaining 24 signed permutations
would mirror the coordinate system and are excluded.

Rotations are referred to by their integer id in a fixed canonical order:
axis permutations in lexicographic order, and within each permutation the sign
triples from (+, +, +) to (-, -, -). Id 0 is the identity.
"""
from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from typing import Iterator, Sequence

import numpy as np

from .report import Point3

ROTATION_COUNT = 24
IDENTITY = 0


def _signed_permutations() -> Iterator[np.ndarray]:
    for perm in itertools.permutations(range(3)):
        for signs in itertools.product((1, -1), repeat=3):
            m = np.zeros((3, 3), dtype=np.int64)
            for row, (axis, sign) in enumerate(zip(perm, signs)):
                m[row, axis] = sign
            yield m


@dataclass(frozen=True, eq=False)
class RotationCatalog:
    """Read-only table of the proper rotations with composition lookups.

    Build once via ``RotationCatalog.build()``; the module-level ``CATALOG``
    is the shared instance used by the rest of the package.
    """

    matrices: tuple[np.ndarray, ...]
    _compose: np.ndarray = field(repr=False)
    _inverse: tuple[int, ...] = field(repr=False)
    _index: dict = field(repr=False)

    @classmethod
    def build(cls) -> 'RotationCatalog':
        matrices = []
        for m in _signed_permutations():
            if round(np.linalg.det(m)) == 1:
                m.setflags(write=False)
                matrices.append(m)
        if len(matrices) != ROTATION_COUNT:
            raise RuntimeError(f"expected {ROTATION_COUNT} rotations, found {len(matrices)}")

        index = {m.tobytes(): i for i, m in enumerate(matrices)}

        compose = np.empty((ROTATION_COUNT, ROTATION_COUNT), dtype=np.int64)
        for a, ma in enumerate(matrices):
            for b, mb in enumerate(matrices):
                compose[a, b] = index[(ma @ mb).tobytes()]
        compose.setflags(write=False)

        # Rotation matrices are orthogonal: the inverse is the transpose
        inverse = tuple(index[np.ascontiguousarray(m.T).tobytes()] for m in matrices)

        return cls(
            matrices=tuple(matrices),
            _compose=compose,
            _inverse=inverse,
            _index=index,
        )

    def __len__(self) -> int:
        return len(self.matrices)

    def __iter__(self) -> Iterator[tuple[int, np.ndarray]]:
        return iter(enumerate(self.matrices))

    def matrix(self, rotation: int) -> np.ndarray:
        """Return the read-only 3x3 integer matrix for a rotation id."""
        return self.matrices[rotation]

    def rotate(self, rotation: int, point: Sequence[int]) -> Point3:
        """Rotate a single point."""
        return Point3(*(self.matrices[rotation] @ np.asarray(point, dtype=np.int64)).tolist())

    def rotate_points(self, rotation: int, points: np.ndarray) -> np.ndarray:
        """Rotate an Nx3 array of points."""
        if len(points) == 0:
            return np.zeros((0, 3), dtype=np.int64)
        return points @ self.matrices[rotation].T

    def compose(self, a: int, b: int) -> int:
        """Rotation equivalent to applying ``b`` first, then ``a``."""
        return int(self._compose[a, b])

    def inverse(self, rotation: int) -> int:
        return self._inverse[rotation]

    def identify(self, matrix: np.ndarray) -> int:
        """Look up the id of a 3x3 rotation matrix.

        Raises:
            ValueError: if the matrix is not one of the proper rotations
        """
        m = np.ascontiguousarray(np.asarray(matrix, dtype=np.int64))
        try:
            return self._index[m.tobytes()]
        except KeyError:
            raise ValueError(f"not a proper axis-aligned rotation:\n{m}") from None


CATALOG = RotationCatalog.build()


def rotate(rotation: int, point: Sequence[int]) -> Point3:
    return CATALOG.rotate(rotation, point)


def rotate_points(rotation: int, points: np.ndarray) -> np.ndarray:
    return CATALOG.rotate_points(rotation, points)


def compose(a: int, b: int) -> int:
    return CATALOG.compose(a, b)


def inverse(rotation: int) -> int:
    return CATALOG.inverse(rotation)
