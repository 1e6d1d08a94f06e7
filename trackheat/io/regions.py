"""
Region Boundary Loader

Reads administrative boundaries from a GeoJSON FeatureCollection. The
document is validated with pydantic models before any Region is built, so
malformed files fail with a single RegionLoadError instead of deep inside
the analyzer.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field, ValidationError as PydanticValidationError, field_validator

from trackheat.core.models import Region
from trackheat.utils.error_handling import RegionLoadError

logger = logging.getLogger(__name__)

SUPPORTED_GEOMETRY_TYPES = ("Polygon", "MultiPolygon")


class GeoJSONGeometry(BaseModel):
    type: str
    coordinates: List[Any]

    @field_validator("type")
    @classmethod
    def validate_type(cls, v: str) -> str:
        if v not in SUPPORTED_GEOMETRY_TYPES:
            raise ValueError(f"Unsupported geometry type {v!r}; expected one of {SUPPORTED_GEOMETRY_TYPES}")
        return v


class GeoJSONFeature(BaseModel):
    type: Literal["Feature"]
    id: Optional[Union[str, int]] = None
    properties: Dict[str, Any] = Field(default_factory=dict)
    geometry: Optional[GeoJSONGeometry] = None

    @field_validator("properties", mode="before")
    @classmethod
    def validate_properties(cls, v):
        return v if v is not None else {}


class GeoJSONFeatureCollection(BaseModel):
    type: Literal["FeatureCollection"]
    features: List[GeoJSONFeature]


def feature_to_region(
    feature: GeoJSONFeature,
    index: int,
    id_property: str = "id",
    name_property: str = "name"
) -> Region:
    """
    Build a Region from a validated feature.

    The id comes from properties[id_property], then the feature id, then the
    feature's position in the collection.
    """
    props = feature.properties
    raw_id = props.get(id_property)
    if raw_id is None:
        raw_id = feature.id if feature.id is not None else index
    region_id = str(raw_id)

    admin_level = props.get("admin_level", 0)
    try:
        admin_level = int(admin_level)
    except (TypeError, ValueError):
        admin_level = 0

    return Region(
        id=region_id,
        name=str(props.get(name_property) or region_id),
        geometry=feature.geometry.model_dump() if feature.geometry is not None else None,
        country=str(props.get("country", "")),
        admin_level=admin_level,
        properties=dict(props),
    )


def parse_regions(
    document: Dict[str, Any],
    id_property: str = "id",
    name_property: str = "name"
) -> List[Region]:
    """
    Convert a GeoJSON FeatureCollection dict into Regions.

    Raises:
        RegionLoadError: If the document is not a valid FeatureCollection
    """
    try:
        collection = GeoJSONFeatureCollection.model_validate(document)
    except PydanticValidationError as e:
        raise RegionLoadError(f"Invalid region GeoJSON: {e}") from e

    regions = [
        feature_to_region(feature, i, id_property, name_property)
        for i, feature in enumerate(collection.features)
    ]
    missing = sum(1 for r in regions if r.geometry is None)
    if missing:
        logger.warning(f"{missing} region(s) have no geometry and will never be visited")
    return regions


def load_regions(
    path: Union[str, Path],
    id_property: str = "id",
    name_property: str = "name"
) -> List[Region]:
    """
    Load regions from a GeoJSON file.

    Args:
        path: GeoJSON FeatureCollection file
        id_property: Feature property holding the region id
        name_property: Feature property holding the display name

    Returns:
        Regions in file order

    Raises:
        FileNotFoundError: If the file does not exist
        RegionLoadError: If the file is not valid JSON or not a FeatureCollection
    """
    filepath = Path(path)
    if not filepath.exists():
        raise FileNotFoundError(f"Region file not found: {filepath}")

    try:
        with filepath.open("r", encoding="utf-8") as f:
            document = json.load(f)
    except json.JSONDecodeError as e:
        raise RegionLoadError(f"Region file {filepath} is not valid JSON: {e}") from e

    regions = parse_regions(document, id_property, name_property)
    logger.info(f"Loaded {len(regions)} regions from {filepath}")
    return regions
