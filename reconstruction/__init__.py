"""Scanner fleet reconstruction package.

This package reconstructs the absolute positions of a fleet of scanners and
the beacons they observe from each scanner's local, unoriented report.

Modules:
- pipeline: Main reconstruction orchestration
- report: Scanner report model and parsing
- rotations: The 24 proper axis-aligned rotations
- pose: Rigid transforms between scanner frames
- pair_matcher: Pairwise overlap detection
- scanner_graph: Overlap graph and pose propagation
- beacons: Beacon set assembly and fleet metrics
- config: JSON-backed configuration
"""

from .pipeline import ReconstructionPipeline, PipelineResult, Reconstruction, reconstruct, run
from .report import Point3, Scanner, parse_reports, load_reports, format_reports
from .rotations import RotationCatalog, CATALOG, rotate, compose, inverse
from .pose import Pose3D
from .pair_matcher import PairMatcher, MatchResult, match_scanners
from .scanner_graph import ScannerGraph, OverlapEdge, build_scanner_graph
from .beacons import BeaconSet, FleetMetrics, assemble_beacons, max_manhattan_distance
from .config import ReconstructionConfig, load_config
from .errors import (
    ReconstructionError,
    ReportFormatError,
    ConfigurationError,
    DisconnectedFleetError,
    AmbiguousMatchError,
    PoseAlreadyResolvedError,
    UnresolvedPoseError,
)

__all__ = [
    # Pipeline
    "ReconstructionPipeline",
    "PipelineResult",
    "Reconstruction",
    "reconstruct",
    "run",
    # Reports
    "Point3",
    "Scanner",
    "parse_reports",
    "load_reports",
    "format_reports",
    # Rotations and poses
    "RotationCatalog",
    "CATALOG",
    "rotate",
    "compose",
    "inverse",
    "Pose3D",
    # Matching
    "PairMatcher",
    "MatchResult",
    "match_scanners",
    # Graph
    "ScannerGraph",
    "OverlapEdge",
    "build_scanner_graph",
    # Beacons
    "BeaconSet",
    "FleetMetrics",
    "assemble_beacons",
    "max_manhattan_distance",
    # Config
    "ReconstructionConfig",
    "load_config",
    # Errors
    "ReconstructionError",
    "ReportFormatError",
    "ConfigurationError",
    "DisconnectedFleetError",
    "AmbiguousMatchError",
    "PoseAlreadyResolvedError",
    "UnresolvedPoseError",
]
