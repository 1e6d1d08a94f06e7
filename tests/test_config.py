"""
Tests for trackheat.yml loading and validation.
"""

from pathlib import Path

import pytest
import yaml

from trackheat.common.config import (
    TrackheatSettings,
    get_config_dir,
    load_config,
    load_settings,
)
from trackheat.core.color.interpolation import heatmap_color_for_count
from trackheat.core.models import ColorThreshold
from trackheat.utils.error_handling import ValidationError

REPO_CONFIG = Path(__file__).resolve().parents[1] / "config" / "trackheat.yml"


def write_yaml(path, data):
    path.write_text(yaml.safe_dump(data), encoding="utf-8")
    return path


class TestLoadConfig:
    """Test raw YAML loading."""

    def test_repo_config_loads(self):
        config = load_config(REPO_CONFIG)
        assert config["version"] == "1"
        assert config["intersections"]["cell_size"] == 0.01

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "missing.yml")

    def test_empty_file_is_empty_dict(self, tmp_path):
        path = tmp_path / "trackheat.yml"
        path.write_text("", encoding="utf-8")
        assert load_config(path) == {}

    def test_env_override_for_config_dir(self, tmp_path, monkeypatch):
        write_yaml(tmp_path / "trackheat.yml", {"version": "7"})
        monkeypatch.setenv("TRACKHEAT_CONFIG_DIR", str(tmp_path))
        assert get_config_dir() == tmp_path
        assert load_config()["version"] == "7"

    def test_default_config_dir(self, monkeypatch):
        monkeypatch.delenv("TRACKHEAT_CONFIG_DIR", raising=False)
        assert get_config_dir() == Path("config")


class TestLoadSettings:
    """Test schema validation of trackheat.yml."""

    def test_repo_config_matches_defaults(self):
        settings = load_settings(REPO_CONFIG)
        defaults = TrackheatSettings()
        assert settings.heatmap.line_thickness == defaults.heatmap.line_thickness
        assert settings.intersections.proximity_threshold == defaults.intersections.proximity_threshold
        assert settings.regions.grid_size == defaults.regions.grid_size
        assert settings.heatmap_thresholds() == defaults.heatmap_thresholds()

    def test_builtin_defaults_are_validated_entries(self):
        settings = TrackheatSettings()
        heatmap = settings.heatmap_thresholds()
        regions = settings.region_thresholds()
        assert all(isinstance(t, ColorThreshold) for t in heatmap + regions)
        assert heatmap[0] == ColorThreshold(threshold=1.0, color=(139, 0, 0))
        assert [t.threshold for t in heatmap] == [1, 2, 10, 25, 50, 150]
        assert regions[0].color == (34, 197, 94)

    def test_builtin_defaults_color_a_count(self):
        table = TrackheatSettings().heatmap_thresholds()
        assert heatmap_color_for_count(2, line_thickness=1, thresholds=table) == (139, 0, 0)

    def test_heatmap_thresholds_as_color_table(self):
        table = load_settings(REPO_CONFIG).heatmap_thresholds()
        assert table[0].threshold == 1.0
        assert table[0].color == (139, 0, 0)
        assert [t.threshold for t in table] == [1, 2, 10, 25, 50, 150]

    def test_region_thresholds_as_color_table(self):
        table = load_settings(REPO_CONFIG).region_thresholds()
        assert table[0].color == (34, 197, 94)

    def test_partial_file_uses_defaults(self, tmp_path):
        path = write_yaml(tmp_path / "trackheat.yml", {"heatmap": {"line_thickness": 4}})
        settings = load_settings(path)
        assert settings.heatmap.line_thickness == 4
        assert settings.intersections.cell_size == 0.01

    def test_unsorted_thresholds_rejected(self, tmp_path):
        path = write_yaml(tmp_path / "trackheat.yml", {
            "heatmap": {"color_thresholds": [
                {"threshold": 5, "color": [0, 0, 0]},
                {"threshold": 1, "color": [255, 255, 255]},
            ]}
        })
        with pytest.raises(ValidationError):
            load_settings(path)

    def test_empty_thresholds_rejected(self, tmp_path):
        path = write_yaml(tmp_path / "trackheat.yml", {"regions": {"visit_thresholds": []}})
        with pytest.raises(ValidationError):
            load_settings(path)

    def test_out_of_range_channel_rejected(self, tmp_path):
        path = write_yaml(tmp_path / "trackheat.yml", {
            "heatmap": {"color_thresholds": [{"threshold": 1, "color": [0, 300, 0]}]}
        })
        with pytest.raises(ValidationError):
            load_settings(path)

    def test_cell_smaller_than_threshold_rejected(self, tmp_path):
        path = write_yaml(tmp_path / "trackheat.yml", {
            "intersections": {"cell_size": 0.0005, "proximity_threshold": 0.001}
        })
        with pytest.raises(ValidationError):
            load_settings(path)

    def test_non_positive_grid_size_rejected(self, tmp_path):
        path = write_yaml(tmp_path / "trackheat.yml", {"regions": {"grid_size": 0}})
        with pytest.raises(ValidationError):
            load_settings(path)

    def test_zero_line_thickness_rejected(self, tmp_path):
        path = write_yaml(tmp_path / "trackheat.yml", {"heatmap": {"line_thickness": 0}})
        with pytest.raises(ValidationError):
            load_settings(path)
