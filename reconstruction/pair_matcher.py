"""Pairwise overlap detection between scanner reports.

Two scanners overlap when, under one of the 24 proper rotations, at least
``threshold`` of their readings are related by the same translation. For each
rotation, every (a, rotated b) pair votes for the offset ``a - rotated_b``;
an offset collecting ``threshold`` votes is the alignment.
"""
from __future__ import annotations

import itertools
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

from .errors import AmbiguousMatchError
from .pose import Pose3D
from .report import Point3, Scanner
from .rotations import CATALOG

logger = logging.getLogger(__name__)

EVIDENCE_THRESHOLD = 12


@dataclass(frozen=True)
class MatchResult:
    """Alignment found between two scanners.

    ``transform`` maps the second scanner's local points into the first
    scanner's local frame.
    """
    first: int  # scanner id of the reference frame
    second: int  # scanner id of the aligned scanner
    transform: Pose3D
    votes: int

    @property
    def rotation(self) -> int:
        return self.transform.rotation

    @property
    def translation(self) -> Point3:
        return self.transform.translation


def count_agreement(a: np.ndarray, b: np.ndarray, transform: Pose3D) -> int:
    """Count points of ``a`` that coincide with a point of ``b`` under ``transform``."""
    if len(a) == 0 or len(b) == 0:
        return 0
    moved = {tuple(p) for p in transform.apply(b).tolist()}
    return sum(1 for p in a.tolist() if tuple(p) in moved)


@dataclass
class PairMatcher:
    """Overlap detector for scanner pairs.

    Parameters:
        threshold: Minimum number of coinciding readings to declare an overlap
        strict: Search every rotation and raise on more than one alignment;
            otherwise the first rotation in catalog order that clears the
            threshold wins
        workers: Thread pool size for ``match_fleet`` (1 = sequential)
    """

    threshold: int = EVIDENCE_THRESHOLD
    strict: bool = True
    workers: int = 4

    @classmethod
    def from_config(cls, config) -> 'PairMatcher':
        return cls(threshold=config.threshold, strict=config.strict, workers=config.workers)

    def tally(self, a: np.ndarray, rotated_b: np.ndarray) -> list[tuple[Point3, int]]:
        """Offsets between ``a`` and ``rotated_b`` that reach the threshold.

        Returns:
            (offset, votes) pairs, strongest first
        """
        offsets = (a[:, None, :] - rotated_b[None, :, :]).reshape(-1, 3)
        values, counts = np.unique(offsets, axis=0, return_counts=True)
        hits = np.flatnonzero(counts >= self.threshold)
        if len(hits) == 0:
            return []
        # Stable sort keeps ties in offset order
        hits = hits[np.argsort(-counts[hits], kind="stable")]
        return [(Point3(*values[i].tolist()), int(counts[i])) for i in hits]

    def match(self, scanner_a: Scanner, scanner_b: Scanner) -> Optional[MatchResult]:
        """Find the transform that maps ``scanner_b`` into ``scanner_a``'s frame.

        Returns:
            MatchResult, or None when the scanners do not overlap

        Raises:
            AmbiguousMatchError: in strict mode, when several alignments
                clear the threshold
        """
        pair = (scanner_a.scanner_id, scanner_b.scanner_id)
        a, b = scanner_a.points, scanner_b.points

        if len(a) < self.threshold or len(b) < self.threshold:
            logger.debug(f"Pair {pair}: too few readings ({len(a)}, {len(b)}) to overlap")
            return None

        candidates: list[MatchResult] = []
        for rotation, _ in CATALOG:
            hits = self.tally(a, CATALOG.rotate_points(rotation, b))
            if not hits:
                continue

            if not self.strict:
                translation, votes = hits[0]
                logger.debug(f"Pair {pair}: rotation {rotation}, offset {translation}, {votes} votes")
                return MatchResult(pair[0], pair[1], Pose3D(rotation, translation), votes)

            candidates.extend(
                MatchResult(pair[0], pair[1], Pose3D(rotation, translation), votes)
                for translation, votes in hits
            )

        if not candidates:
            logger.debug(f"Pair {pair}: no overlap")
            return None

        if len(candidates) > 1:
            raise AmbiguousMatchError(pair, candidates)

        result = candidates[0]
        logger.debug(
            f"Pair {pair}: rotation {result.rotation}, offset {result.translation}, {result.votes} votes"
        )
        return result

    def match_fleet(self, scanners: Sequence[Scanner]) -> list[MatchResult]:
        """Match every unordered pair of scanners.

        Pairs are independent, so they are fanned out over a thread pool.
        Results come back in lexicographic pair order (by input position).
        """
        pairs = list(itertools.combinations(range(len(scanners)), 2))

        def run(pair):
            i, j = pair
            return self.match(scanners[i], scanners[j])

        if self.workers > 1 and len(pairs) > 1:
            with ThreadPoolExecutor(max_workers=self.workers) as executor:
                results = list(executor.map(run, pairs))
        else:
            results = [run(pair) for pair in pairs]

        matches = [r for r in results if r is not None]
        logger.info(f"Matched {len(matches)} overlapping pairs out of {len(pairs)}")
        return matches

    def validate_match(self, result: MatchResult, scanner_a: Scanner, scanner_b: Scanner) -> dict:
        """Re-check a match against the raw readings.

        Returns:
            Dict with validation status and details
        """
        agreement = count_agreement(scanner_a.points, scanner_b.points, result.transform)
        issues = []
        if agreement < self.threshold:
            issues.append(f"Only {agreement} coinciding readings (threshold {self.threshold})")
        if agreement != result.votes:
            issues.append(f"Vote count {result.votes} disagrees with {agreement} coinciding readings")

        return {
            'valid': len(issues) == 0,
            'agreement': agreement,
            'votes': result.votes,
            'issues': issues,
        }


def match_scanners(scanners: Sequence[Scanner], threshold: int = EVIDENCE_THRESHOLD) -> list[MatchResult]:
    """Match all pairs with a default-configured matcher."""
    return PairMatcher(threshold=threshold).match_fleet(scanners)
