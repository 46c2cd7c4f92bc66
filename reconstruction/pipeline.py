"""Reconstruction pipeline for scanner fleets.

This module runs the complete reconstruction:
1. Load scanner reports
2. Match every pair of scanners for overlap
3. Propagate absolute poses through the overlap graph
4. Assemble the deduplicated beacon set
5. Compute fleet metrics
6. Export results

Usage:
    python -m reconstruction.pipeline --reports reports.txt --out artifacts/output

A disconnected fleet (or, in strict mode, an ambiguous overlap) fails the run
and nothing is exported.
"""
from __future__ import annotations

import argparse
import csv
import json
import logging
import sys
import time
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import List, Optional, Dict, Any, Sequence

import numpy as np

from .beacons import BeaconSet, FleetMetrics, assemble_beacons
from .config import ReconstructionConfig, load_config
from .errors import ReconstructionError
from .pair_matcher import MatchResult, PairMatcher
from .report import Scanner, load_reports
from .scanner_graph import ScannerGraph, build_scanner_graph

logger = logging.getLogger(__name__)


@dataclass
class Reconstruction:
    """Outcome of reconstructing a fleet."""
    scanners: List[Scanner]
    matches: List[MatchResult]
    graph: ScannerGraph
    beacons: BeaconSet
    metrics: FleetMetrics

    @property
    def beacon_count(self) -> int:
        return self.metrics.beacon_count

    @property
    def max_scanner_distance(self) -> int:
        return self.metrics.max_scanner_distance


def reconstruct(scanners: Sequence[Scanner], config: ReconstructionConfig | None = None) -> Reconstruction:
    """Reconstruct beacon and scanner positions from raw reports.

    Poses are written into ``scanners``; each scanner can only be
    reconstructed once.

    Raises:
        DisconnectedFleetError: if the overlap graph is not connected
        AmbiguousMatchError: in strict mode, if a pair aligns more than one way
    """
    config = config or ReconstructionConfig()
    scanners = list(scanners)

    matches = PairMatcher.from_config(config.matcher).match_fleet(scanners)
    graph = build_scanner_graph(scanners, matches)
    graph.propagate(anchor=config.graph.anchor, traversal=config.graph.traversal)

    beacons = assemble_beacons(scanners)
    metrics = FleetMetrics.compute(beacons, graph.positions(), overlap_count=len(matches))

    return Reconstruction(
        scanners=scanners,
        matches=matches,
        graph=graph,
        beacons=beacons,
        metrics=metrics,
    )


@dataclass
class PipelineResult:
    """Result of the reconstruction pipeline."""

    success: bool
    reports_path: str
    output_path: str

    # Fleet stats
    num_scanners: int = 0
    num_readings: int = 0
    num_overlaps: int = 0
    num_beacons: int = 0
    max_scanner_distance: int = 0

    # Per-overlap records
    overlaps: List[Dict[str, Any]] = field(default_factory=list)

    # Issues and warnings
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    # Timing
    processing_time_sec: float = 0.0

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        def convert_value(v):
            """Convert numpy types to Python native types."""
            if isinstance(v, (np.bool_, np.integer)):
                return int(v)
            elif isinstance(v, np.floating):
                return float(v)
            elif isinstance(v, np.ndarray):
                return v.tolist()
            elif isinstance(v, dict):
                return {k: convert_value(vv) for k, vv in v.items()}
            elif isinstance(v, (list, tuple)):
                return [convert_value(vv) for vv in v]
            return v

        d = asdict(self)
        return convert_value(d)


@dataclass
class ReconstructionPipeline:
    """Main pipeline for reconstructing a scanner fleet.

    The pipeline processes a report file through:
    1. Report loading
    2. Pair matching
    3. Pose propagation
    4. Beacon assembly
    5. Metrics
    6. Export
    """

    config: ReconstructionConfig = field(default_factory=ReconstructionConfig)

    # Data
    scanners: List[Scanner] = field(default_factory=list)
    matches: List[MatchResult] = field(default_factory=list)
    graph: Optional[ScannerGraph] = None
    beacons: Optional[BeaconSet] = None
    metrics: Optional[FleetMetrics] = None

    # Result tracking
    result: PipelineResult = field(default_factory=lambda: PipelineResult(
        success=False, reports_path="", output_path=""
    ))

    def __post_init__(self):
        self.matcher = PairMatcher.from_config(self.config.matcher)

    def load_reports(self, reports_path: Path | str) -> bool:
        """Load scanner reports from a text file.

        Returns:
            True if loading successful
        """
        reports_path = Path(reports_path)
        self.result.reports_path = str(reports_path)

        if not reports_path.exists():
            self.result.errors.append(f"Report file not found: {reports_path}")
            return False

        self.scanners = load_reports(reports_path)

        if len(self.scanners) == 0:
            self.result.errors.append("No scanner reports found")
            return False

        self.result.num_scanners = len(self.scanners)
        self.result.num_readings = sum(len(s) for s in self.scanners)

        threshold = self.config.matcher.threshold
        for scanner in self.scanners:
            if len(scanner) < threshold:
                message = (
                    f"Scanner {scanner.scanner_id} has only {len(scanner)} readings "
                    f"(overlap needs {threshold})"
                )
                logger.warning(message)
                self.result.warnings.append(message)

        return True

    def match_pairs(self) -> bool:
        """Detect overlaps between every pair of scanners.

        Returns:
            True if every overlap passed validation
        """
        self.matches = self.matcher.match_fleet(self.scanners)
        self.result.num_overlaps = len(self.matches)

        all_valid = True
        by_id = {s.scanner_id: s for s in self.scanners}

        for match in self.matches:
            validation = self.matcher.validate_match(match, by_id[match.first], by_id[match.second])
            self.result.overlaps.append({
                "first": match.first,
                "second": match.second,
                "rotation": match.rotation,
                "translation": list(match.translation),
                "votes": match.votes,
                "valid": validation["valid"],
                "issues": validation["issues"],
            })

            if not validation["valid"]:
                self.result.warnings.append(
                    f"Overlap {match.first}-{match.second}: " + "; ".join(validation["issues"])
                )
                all_valid = False

        return all_valid

    def resolve_poses(self) -> bool:
        """Propagate absolute poses from the anchor scanner."""
        self.graph = build_scanner_graph(self.scanners, self.matches)
        self.graph.propagate(
            anchor=self.config.graph.anchor,
            traversal=self.config.graph.traversal,
        )
        return True

    def assemble_beacons(self) -> bool:
        """Merge every scanner's readings into the anchor frame."""
        self.beacons = assemble_beacons(self.scanners)
        self.result.num_beacons = len(self.beacons)
        return len(self.beacons) > 0

    def compute_metrics(self) -> bool:
        self.metrics = FleetMetrics.compute(
            self.beacons,
            self.graph.positions(),
            overlap_count=len(self.matches),
        )
        self.result.max_scanner_distance = self.metrics.max_scanner_distance
        return True

    def export_results(self, output_dir: Path | str) -> bool:
        """Export all results to output directory.

        Args:
            output_dir: Output directory path

        Returns:
            True if export successful
        """
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        self.result.output_path = str(output_dir)
        output = self.config.output

        if output.write_beacons and self.beacons is not None:
            with open(output_dir / "beacons.csv", "w", newline="") as f:
                writer = csv.writer(f)
                writer.writerow(["x", "y", "z"])
                writer.writerows(self.beacons.to_array().tolist())

        if output.write_scanners:
            with open(output_dir / "scanners.csv", "w", newline="") as f:
                writer = csv.writer(f)
                writer.writerow(["scanner", "x", "y", "z", "rotation"])
                for scanner in self.scanners:
                    pose = scanner.pose
                    writer.writerow([scanner.scanner_id, *pose.translation, pose.rotation])

        if output.write_summary:
            summary = self.result.to_dict()
            if self.metrics is not None:
                summary["metrics"] = self.metrics.to_dict()
            with open(output_dir / "summary.json", "w") as f:
                json.dump(summary, f, indent=2)

        return True

    def run(self, reports_path: Path | str, output_dir: Path | str | None = None) -> PipelineResult:
        """Run the complete reconstruction pipeline.

        Args:
            reports_path: Path to the scanner report file
            output_dir: Optional output directory; nothing is written when None

        Returns:
            PipelineResult with processing outcomes
        """
        start_time = time.time()

        self.result = PipelineResult(
            success=False,
            reports_path=str(reports_path),
            output_path=str(output_dir) if output_dir is not None else "",
        )

        try:
            logger.info(f"Loading reports from {reports_path}")
            if not self.load_reports(reports_path):
                return self.result
            logger.info(f"Found {self.result.num_scanners} scanners, {self.result.num_readings} readings")

            logger.info("Matching scanner pairs")
            if not self.match_pairs():
                logger.warning("Some overlaps failed validation")

            logger.info("Resolving scanner poses")
            self.resolve_poses()

            logger.info("Assembling beacons")
            if not self.assemble_beacons():
                self.result.warnings.append("No beacons observed")

            self.compute_metrics()
        except ReconstructionError as e:
            logger.error(f"Reconstruction failed: {e}")
            self.result.errors.append(str(e))
            self.result.processing_time_sec = time.time() - start_time
            return self.result

        if output_dir is not None:
            logger.info(f"Exporting results to {output_dir}")
            self.export_results(output_dir)

        self.result.processing_time_sec = time.time() - start_time
        self.result.success = len(self.result.errors) == 0

        return self.result


def run(reports_path: str, outdir: str | None = None, config_path: str | None = None) -> PipelineResult:
    """Run the pipeline with configuration from ``config_path`` or the defaults."""
    pipeline = ReconstructionPipeline(config=load_config(config_path))
    return pipeline.run(reports_path, outdir)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Reconstruct scanner and beacon positions from scanner reports"
    )
    parser.add_argument(
        "--reports",
        required=True,
        help="Path to scanner report file"
    )
    parser.add_argument(
        "--out",
        help="Path to output directory (optional)"
    )
    parser.add_argument(
        "--config",
        help="Path to JSON configuration file"
    )
    parser.add_argument(
        "--workers",
        type=int,
        help="Thread pool size for pair matching"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose output"
    )

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    config = load_config(args.config)
    if args.workers is not None:
        config.matcher.workers = args.workers

    pipeline = ReconstructionPipeline(config=config)
    result = pipeline.run(args.reports, args.out)

    # Print summary
    print("\n" + "=" * 60)
    print("RECONSTRUCTION SUMMARY")
    print("=" * 60)
    print(f"Status: {'SUCCESS' if result.success else 'FAILED'}")
    print(f"Scanners: {result.num_scanners}")
    print(f"Overlaps: {result.num_overlaps}")
    print(f"Beacons: {result.num_beacons}")
    print(f"Max scanner distance: {result.max_scanner_distance}")
    print(f"Time: {result.processing_time_sec:.2f}s")

    if result.warnings:
        print(f"\nWarnings ({len(result.warnings)}):")
        for w in result.warnings:
            print(f"  - {w}")

    if result.errors:
        print(f"\nErrors ({len(result.errors)}):")
        for e in result.errors:
            print(f"  - {e}")

    return 0 if result.success else 1


if __name__ == "__main__":
    sys.exit(main())
