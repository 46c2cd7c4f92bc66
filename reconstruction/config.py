"""Configuration settings for fleet reconstruction."""

from dataclasses import dataclass, field
from typing import Optional
import json
import os


@dataclass
class MatcherConfig:
    """Pairwise overlap detection."""
    threshold: int = 12  # coinciding readings required for an overlap
    strict: bool = True  # raise on ambiguous alignments instead of taking the first
    workers: int = 4  # thread pool size for pair matching (1 = sequential)


@dataclass
class GraphConfig:
    """Pose propagation."""
    anchor: Optional[int] = None  # scanner id of the global frame; None = first scanner
    traversal: str = "bfs"  # "bfs" or "dfs"


@dataclass
class OutputConfig:
    """Result export."""
    write_beacons: bool = True
    write_scanners: bool = True
    write_summary: bool = True


@dataclass
class ReconstructionConfig:
    """Main reconstruction configuration."""
    matcher: MatcherConfig = field(default_factory=MatcherConfig)
    graph: GraphConfig = field(default_factory=GraphConfig)
    output: OutputConfig = field(default_factory=OutputConfig)

    @classmethod
    def from_file(cls, path: str) -> "ReconstructionConfig":
        """Load configuration from JSON file."""
        with open(path) as f:
            data = json.load(f)
        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict) -> "ReconstructionConfig":
        config = cls()
        for section in ("matcher", "graph", "output"):
            target = getattr(config, section)
            for k, v in data.get(section, {}).items():
                if hasattr(target, k):
                    setattr(target, k, v)
        return config

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "matcher": {
                "threshold": self.matcher.threshold,
                "strict": self.matcher.strict,
                "workers": self.matcher.workers,
            },
            "graph": {
                "anchor": self.graph.anchor,
                "traversal": self.graph.traversal,
            },
            "output": {
                "write_beacons": self.output.write_beacons,
                "write_scanners": self.output.write_scanners,
                "write_summary": self.output.write_summary,
            },
        }

    def save(self, path: str):
        """Save configuration to JSON file."""
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.to_dict(), f, indent=2)


# Default config file locations
DEFAULT_CONFIG_PATHS = [
    "/etc/beacon-fleet/reconstruction.json",
    os.path.expanduser("~/.config/beacon-fleet/reconstruction.json"),
    "./reconstruction_config.json",
]


def load_config(path: Optional[str] = None) -> ReconstructionConfig:
    """Load configuration from file or return defaults."""
    if path and os.path.exists(path):
        return ReconstructionConfig.from_file(path)

    for p in DEFAULT_CONFIG_PATHS:
        if os.path.exists(p):
            return ReconstructionConfig.from_file(p)

    return ReconstructionConfig()
