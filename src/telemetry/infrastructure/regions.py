"""
Region boundary loading.
"""
import json
from pathlib import Path
from typing import Dict, List, Union

from shapely.geometry import shape, MultiPolygon, Polygon

from ..domain.entities import Region, RegionSet
from ...common.exceptions import FatalInputError, RegionError
from ...common.logging import setup_logger

logger = setup_logger(__name__)

def _ring(coords) -> tuple:
    return tuple((float(x), float(y)) for x, y, *_ in coords)

def region_from_geometry(name: str, geometry: Union[Polygon, MultiPolygon]) -> Region:
    if isinstance(geometry, MultiPolygon):
        # Choropleths draw one outline per region; keep the dominant part.
        parts = sorted(geometry.geoms, key=lambda g: g.area, reverse=True)
        logger.debug(f"Region {name} is a MultiPolygon, keeping largest of {len(parts)} parts")
        geometry = parts[0]
    if not isinstance(geometry, Polygon):
        raise RegionError(f"Region {name} is a {geometry.geom_type}, expected Polygon")

    return Region(
        name=name,
        exterior=_ring(geometry.exterior.coords),
        holes=tuple(_ring(interior.coords) for interior in geometry.interiors)
    )

def load_regions_geojson(path: Union[str, Path], name_field: str = "name") -> RegionSet:
    """
    Loads a GeoJSON FeatureCollection into a RegionSet, preserving feature order.
    """
    path = Path(path)
    if not path.exists():
        raise FatalInputError(f"Region file not found: {path}")

    with open(path, 'r', encoding='utf-8') as f:
        collection = json.load(f)

    regions = []
    for position, feature in enumerate(collection.get('features', [])):
        properties = feature.get('properties') or {}
        if name_field not in properties:
            raise RegionError(f"Feature {position} in {path} has no '{name_field}' property")
        name = str(properties[name_field])
        regions.append(region_from_geometry(name, shape(feature['geometry'])))

    logger.info(f"Loaded {len(regions)} regions from {path}")
    return RegionSet(regions)

def regions_from_mapping(mapping: Dict[str, List[List[float]]]) -> RegionSet:
    """
    Builds a RegionSet from a {name: [[x, y], ...]} mapping, as written in config files.
    Integer coordinates are accepted.
    """
    regions = []
    for name, points in mapping.items():
        try:
            exterior = _ring(points)
        except (TypeError, ValueError) as e:
            raise RegionError(f"Region {name} has malformed vertices: {e}") from e
        regions.append(Region(name=str(name), exterior=exterior))
    return RegionSet(regions)
