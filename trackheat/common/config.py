"""
Configuration Loader for trackheat

Loads config/trackheat.yml and validates it into a TrackheatSettings model.
The YAML file is the single place to tune grid sizes, proximity thresholds,
brush thickness and color palettes; constants.py only supplies defaults for
keys the file leaves out.
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError as PydanticValidationError,
    field_validator,
    model_validator,
)

from trackheat.core.color.interpolation import build_thresholds
from trackheat.core.models import ColorThreshold
from trackheat.utils.constants import (
    CONFIG_DIR_ENV,
    CONFIG_FILENAME,
    DEFAULT_INTERSECTION_CELL_SIZE,
    DEFAULT_LINE_THICKNESS,
    DEFAULT_PIXEL_DENSITY,
    DEFAULT_PROXIMITY_THRESHOLD,
    DEFAULT_REGION_GRID_SIZE,
    DEFAULT_ZOOM_LEVEL,
    HEATMAP_COLOR_THRESHOLDS,
    REGION_VISIT_THRESHOLDS,
)
from trackheat.utils.error_handling import ValidationError

logger = logging.getLogger(__name__)

CONFIG_DIR = Path("config")


def _default_table(pairs) -> List[Dict[str, Any]]:
    return [{"threshold": t, "color": list(c)} for t, c in pairs]


class ColorThresholdEntry(BaseModel):
    threshold: float
    color: List[int] = Field(..., min_length=3, max_length=3)

    @field_validator("color")
    @classmethod
    def validate_channels(cls, v: List[int]) -> List[int]:
        """Channels must be 0-255."""
        if any(c < 0 or c > 255 for c in v):
            raise ValueError(f"color channels must be in [0, 255], got {v}")
        return v


def _check_sorted(entries: List[ColorThresholdEntry]) -> List[ColorThresholdEntry]:
    if not entries:
        raise ValueError("color threshold table must not be empty")
    keys = [e.threshold for e in entries]
    if keys != sorted(keys):
        raise ValueError(f"color thresholds must be sorted ascending, got {keys}")
    return entries


class HeatmapSettings(BaseModel):
    # default tables go through the same validators as file content
    model_config = ConfigDict(validate_default=True)

    line_thickness: int = Field(default=DEFAULT_LINE_THICKNESS, ge=1)
    zoom_level: float = Field(default=DEFAULT_ZOOM_LEVEL, ge=0)
    pixel_density: float = Field(default=DEFAULT_PIXEL_DENSITY, gt=0)
    color_thresholds: List[ColorThresholdEntry] = Field(
        default_factory=lambda: _default_table(HEATMAP_COLOR_THRESHOLDS)
    )

    @field_validator("color_thresholds")
    @classmethod
    def validate_sorted(cls, v: List[ColorThresholdEntry]) -> List[ColorThresholdEntry]:
        return _check_sorted(v)


class IntersectionSettings(BaseModel):
    cell_size: float = Field(default=DEFAULT_INTERSECTION_CELL_SIZE, gt=0)
    proximity_threshold: float = Field(default=DEFAULT_PROXIMITY_THRESHOLD, gt=0)

    @model_validator(mode="after")
    def validate_cell_covers_threshold(self) -> "IntersectionSettings":
        """The 3x3 neighborhood only covers the threshold if cells are at least as large."""
        if self.cell_size < self.proximity_threshold:
            raise ValueError(
                f"cell_size ({self.cell_size}) must be >= proximity_threshold "
                f"({self.proximity_threshold})"
            )
        return self


class RegionSettings(BaseModel):
    model_config = ConfigDict(validate_default=True)

    grid_size: float = Field(default=DEFAULT_REGION_GRID_SIZE, gt=0)
    visit_thresholds: List[ColorThresholdEntry] = Field(
        default_factory=lambda: _default_table(REGION_VISIT_THRESHOLDS)
    )

    @field_validator("visit_thresholds")
    @classmethod
    def validate_sorted(cls, v: List[ColorThresholdEntry]) -> List[ColorThresholdEntry]:
        return _check_sorted(v)


class TrackheatSettings(BaseModel):
    """Validated contents of trackheat.yml."""
    version: str = "1"
    heatmap: HeatmapSettings = Field(default_factory=HeatmapSettings)
    intersections: IntersectionSettings = Field(default_factory=IntersectionSettings)
    regions: RegionSettings = Field(default_factory=RegionSettings)

    def heatmap_thresholds(self) -> List[ColorThreshold]:
        return build_thresholds([(e.threshold, e.color) for e in self.heatmap.color_thresholds])

    def region_thresholds(self) -> List[ColorThreshold]:
        return build_thresholds([(e.threshold, e.color) for e in self.regions.visit_thresholds])


def get_config_dir() -> Path:
    """Config directory: $TRACKHEAT_CONFIG_DIR if set, else ./config."""
    override = os.environ.get(CONFIG_DIR_ENV)
    return Path(override) if override else CONFIG_DIR


def load_config(path: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
    """
    Load trackheat.yml as a plain dict.

    Args:
        path: Explicit config file; defaults to <config dir>/trackheat.yml

    Returns:
        dict: Parsed YAML (empty dict for an empty file)

    Raises:
        FileNotFoundError: If the config file does not exist
        yaml.YAMLError: If YAML parsing fails

    Example:
        >>> config = load_config()
        >>> config["intersections"]["cell_size"]
        0.01
    """
    config_path = Path(path) if path is not None else get_config_dir() / CONFIG_FILENAME
    logger.info(f"Loading config from: {config_path.absolute()}")

    if not config_path.exists():
        logger.error(f"{config_path.name} not found at {config_path.absolute()}")
        raise FileNotFoundError(
            f"{config_path.name} not found at {config_path}. "
            f"Ensure the config directory exists or set {CONFIG_DIR_ENV}."
        )

    with config_path.open("r", encoding="utf-8") as f:
        config = yaml.safe_load(f) or {}
    logger.info(f"Successfully loaded config with version: {config.get('version', 'unknown')}")
    return config


def load_settings(path: Optional[Union[str, Path]] = None) -> TrackheatSettings:
    """
    Load and validate trackheat.yml.

    Raises:
        FileNotFoundError: If the config file does not exist
        ValidationError: If the file does not match the settings schema
    """
    raw = load_config(path)
    try:
        return TrackheatSettings.model_validate(raw)
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid trackheat config: {e}") from e
