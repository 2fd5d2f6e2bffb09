"""
Infrastructure module initialization.
"""
from .timestamps import TimestampNormalizer
from .spatial import SpatialAssigner
from .regions import load_regions_geojson, regions_from_mapping
from .sources import ObservationTable
from .repositories import CSVGridRepository, CSVObservationStore

__all__ = [
    "TimestampNormalizer",
    "SpatialAssigner",
    "load_regions_geojson",
    "regions_from_mapping",
    "ObservationTable",
    "CSVGridRepository",
    "CSVObservationStore"
]
