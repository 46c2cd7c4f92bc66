"""Overlap graph and absolute pose propagation.

Nodes are scanners, edges are successful pairwise matches. The anchor scanner
defines the global frame; every other scanner's pose is the composition of
edge transforms along a path from the anchor.
"""
from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Optional, Sequence

import numpy as np
from scipy.sparse import lil_matrix
from scipy.sparse.csgraph import connected_components

from .errors import ConfigurationError, DisconnectedFleetError
from .pair_matcher import MatchResult
from .pose import Pose3D
from .report import Point3, Scanner

logger = logging.getLogger(__name__)

TRAVERSALS = ("bfs", "dfs")


@dataclass(frozen=True)
class OverlapEdge:
    """Edge in the overlap graph.

    ``transform`` expresses ``to_node``'s local points in ``from_node``'s frame.
    """
    from_node: int
    to_node: int
    transform: Pose3D
    votes: int = 0

    @classmethod
    def from_match(cls, result: MatchResult) -> 'OverlapEdge':
        return cls(
            from_node=result.first,
            to_node=result.second,
            transform=result.transform,
            votes=result.votes,
        )

    def reversed(self) -> 'OverlapEdge':
        """The same overlap seen from the other endpoint."""
        return OverlapEdge(
            from_node=self.to_node,
            to_node=self.from_node,
            transform=self.transform.inverse(),
            votes=self.votes,
        )


@dataclass
class ScannerGraph:
    """Scanner overlap graph.

    Scanners are addressed by their scanner id. Each edge is stored in both
    directions so traversal can leave a node through any of its overlaps.
    """

    scanners: list[Scanner] = field(default_factory=list)
    edges: list[OverlapEdge] = field(default_factory=list)
    _index: dict[int, int] = field(default_factory=dict, repr=False)
    _adjacency: dict[int, list[OverlapEdge]] = field(default_factory=dict, repr=False)

    def add_scanner(self, scanner: Scanner) -> int:
        """Add a node and return its position."""
        if scanner.scanner_id in self._index:
            raise ValueError(f"Duplicate scanner id: {scanner.scanner_id}")
        idx = len(self.scanners)
        self.scanners.append(scanner)
        self._index[scanner.scanner_id] = idx
        self._adjacency[scanner.scanner_id] = []
        return idx

    def add_edge(self, edge: OverlapEdge) -> None:
        """Add an overlap and its reverse."""
        for node in (edge.from_node, edge.to_node):
            if node not in self._index:
                raise KeyError(f"Unknown scanner id: {node}")
        self.edges.append(edge)
        self._adjacency[edge.from_node].append(edge)
        self._adjacency[edge.to_node].append(edge.reversed())

    def neighbors(self, scanner_id: int) -> list[OverlapEdge]:
        """Outgoing edges of a scanner, each oriented away from it."""
        return list(self._adjacency[scanner_id])

    def scanner(self, scanner_id: int) -> Scanner:
        return self.scanners[self._index[scanner_id]]

    def count_components(self) -> int:
        """Number of connected groups of scanners."""
        n = len(self.scanners)
        if n == 0:
            return 0
        adjacency = lil_matrix((n, n), dtype=np.int8)
        for edge in self.edges:
            adjacency[self._index[edge.from_node], self._index[edge.to_node]] = 1
        count, _ = connected_components(adjacency.tocsr(), directed=False)
        return int(count)

    def propagate(self, anchor: Optional[int] = None, traversal: str = "bfs") -> list[Pose3D]:
        """Resolve the absolute pose of every scanner.

        Args:
            anchor: Scanner id whose frame becomes the global frame
                (default: first scanner in input order)
            traversal: "bfs" or "dfs"; affects only the order poses are assigned

        Returns:
            Absolute poses in input order

        Raises:
            ConfigurationError: on an unknown traversal or anchor id
            DisconnectedFleetError: if any scanner is unreachable from the anchor
        """
        if traversal not in TRAVERSALS:
            raise ConfigurationError(
                f"Unknown traversal: {traversal!r} (expected one of {', '.join(TRAVERSALS)})"
            )
        if not self.scanners:
            return []

        if anchor is None:
            anchor = self.scanners[0].scanner_id
        elif anchor not in self._index:
            raise ConfigurationError(f"Anchor {anchor} is not a scanner id")
        self.scanner(anchor).resolve(Pose3D())

        pending = deque([anchor])
        while pending:
            parent_id = pending.popleft() if traversal == "bfs" else pending.pop()
            parent_pose = self.scanner(parent_id).pose

            for edge in self._adjacency[parent_id]:
                child = self.scanner(edge.to_node)
                if child.is_resolved:
                    continue
                child.resolve(parent_pose.compose(edge.transform))
                logger.debug(f"Scanner {child.scanner_id} posed via {parent_id}: {child.pose}")
                pending.append(child.scanner_id)

        unposed = [s.scanner_id for s in self.scanners if not s.is_resolved]
        if unposed:
            components = self.count_components()
            logger.error(f"{len(unposed)} scanner(s) unreachable from anchor {anchor}")
            raise DisconnectedFleetError(unposed, components)

        logger.info(f"Resolved {len(self.scanners)} scanner poses from anchor {anchor}")
        return [s.pose for s in self.scanners]

    def positions(self) -> list[Point3]:
        """Absolute scanner positions in input order."""
        return [s.pose.position for s in self.scanners]


def build_scanner_graph(scanners: Sequence[Scanner], matches: Sequence[MatchResult]) -> ScannerGraph:
    """Build an overlap graph from pairwise match results.

    Args:
        scanners: All scanners, in input order
        matches: Successful pairwise matches

    Returns:
        ScannerGraph ready for pose propagation
    """
    graph = ScannerGraph()

    for scanner in scanners:
        graph.add_scanner(scanner)

    for result in matches:
        graph.add_edge(OverlapEdge.from_match(result))

    return graph
