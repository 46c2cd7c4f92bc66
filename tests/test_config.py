"""Tests for reconstruction configuration module."""

import json
import os
import tempfile
import pytest

from reconstruction.config import (
    ReconstructionConfig,
    MatcherConfig,
    GraphConfig,
    OutputConfig,
    load_config,
)
from reconstruction.pair_matcher import PairMatcher


class TestMatcherConfig:
    """Tests for MatcherConfig dataclass."""

    def test_default_values(self):
        config = MatcherConfig()
        assert config.threshold == 12
        assert config.strict is True
        assert config.workers == 4

    def test_custom_values(self):
        config = MatcherConfig(threshold=6, strict=False, workers=1)
        assert config.threshold == 6
        assert config.strict is False
        assert config.workers == 1

    def test_applied_to_matcher(self):
        matcher = PairMatcher.from_config(MatcherConfig(threshold=3, strict=False, workers=2))
        assert matcher.threshold == 3
        assert matcher.strict is False
        assert matcher.workers == 2


class TestGraphConfig:
    """Tests for GraphConfig dataclass."""

    def test_default_values(self):
        config = GraphConfig()
        assert config.anchor is None
        assert config.traversal == "bfs"


class TestReconstructionConfig:
    """Tests for ReconstructionConfig dataclass."""

    def test_default_nested_configs(self):
        config = ReconstructionConfig()
        assert isinstance(config.matcher, MatcherConfig)
        assert isinstance(config.graph, GraphConfig)
        assert isinstance(config.output, OutputConfig)

    def test_to_dict(self, sample_config_dict):
        assert ReconstructionConfig().to_dict() == sample_config_dict

    def test_from_dict_ignores_unknown_keys(self):
        config = ReconstructionConfig.from_dict({
            "matcher": {"threshold": 10, "bogus": 1},
            "unknown_section": {"x": 1},
        })
        assert config.matcher.threshold == 10
        assert not hasattr(config.matcher, "bogus")

    def test_from_file(self):
        with tempfile.NamedTemporaryFile(mode="w", suffix=".json", delete=False) as f:
            json.dump({
                "matcher": {"threshold": 8, "workers": 1},
                "graph": {"traversal": "dfs"},
            }, f)
            f.flush()

            config = ReconstructionConfig.from_file(f.name)

            assert config.matcher.threshold == 8
            assert config.matcher.workers == 1
            assert config.graph.traversal == "dfs"
            # Defaults should still be set for unspecified values
            assert config.matcher.strict is True
            assert config.output.write_summary is True

        os.unlink(f.name)

    def test_save_and_load_roundtrip(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            config_path = os.path.join(tmpdir, "nested", "config.json")

            original = ReconstructionConfig()
            original.matcher.strict = False
            original.graph.anchor = 3
            original.save(config_path)

            loaded = ReconstructionConfig.from_file(config_path)

            assert loaded.matcher.strict is False
            assert loaded.graph.anchor == 3


class TestLoadConfig:
    """Tests for load_config function."""

    def test_load_nonexistent_returns_defaults(self):
        config = load_config("/nonexistent/path.json")
        assert isinstance(config, ReconstructionConfig)
        assert config.matcher.threshold == 12

    def test_load_existing_file(self):
        with tempfile.NamedTemporaryFile(mode="w", suffix=".json", delete=False) as f:
            json.dump({"matcher": {"workers": 7}}, f)
            f.flush()

            config = load_config(f.name)
            assert config.matcher.workers == 7

        os.unlink(f.name)
