"""
Point-in-polygon region assignment backed by shapely.
"""
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Sequence

from shapely.geometry import Point, Polygon
from shapely.prepared import prep
from shapely.strtree import STRtree

from ..domain.entities import AssignedObservation, Observation, Region, RegionSet
from ..domain.protocols import RegionLocator
from ...common.config.models import FIRST_MATCH, LAST_MATCH, TIE_BREAKS
from ...common.exceptions import ConfigurationError, RegionError
from ...common.logging import setup_logger, log_execution_time

logger = setup_logger(__name__)

def region_polygon(region: Region) -> Polygon:
    polygon = Polygon(region.exterior, holes=list(region.holes))
    if polygon.is_empty or polygon.area == 0:
        raise RegionError(f"Region {region.name} has an empty boundary")
    if not polygon.is_valid:
        # Self-touching rings from shapefile exports are common; buffer(0) repairs them.
        polygon = polygon.buffer(0)
    return polygon

class SpatialAssigner(RegionLocator):
    """
    Maps each observation to at most one region of an immutable RegionSet.

    Points on a boundary count as inside. When several polygons contain a
    point, the tie-break decides: FIRST_MATCH keeps the earliest region in
    region-set order, LAST_MATCH the latest.
    """
    def __init__(
        self,
        regions: RegionSet,
        tie_break: str = FIRST_MATCH,
        use_index: bool = True,
        workers: int = 1,
        chunk_size: int = 5000
    ):
        if tie_break not in TIE_BREAKS:
            raise ConfigurationError(f"Unknown tie-break: {tie_break}")
        if workers < 1 or chunk_size < 1:
            raise ConfigurationError("workers and chunk_size must be positive")

        self.regions = regions
        self.tie_break = tie_break
        self.workers = workers
        self.chunk_size = chunk_size
        self.names = regions.names

        self.polygons = [region_polygon(r) for r in regions]
        self.prepared = [prep(p) for p in self.polygons]
        self.index: Optional[STRtree] = STRtree(self.polygons) if use_index else None

    def _candidates(self, point: Point) -> Sequence[int]:
        if self.index is None:
            return range(len(self.polygons))
        return sorted(int(i) for i in self.index.query(point))

    def locate(self, x: float, y: float) -> Optional[str]:
        point = Point(x, y)
        candidates = self._candidates(point)
        if self.tie_break == LAST_MATCH:
            candidates = reversed(candidates)

        for i in candidates:
            if self.prepared[i].covers(point):
                return self.names[i]
        return None

    def _assign_chunk(self, chunk: Sequence[Observation]) -> List[AssignedObservation]:
        return [
            AssignedObservation(observation=obs, region=self.locate(obs.longitude, obs.latitude))
            for obs in chunk
        ]

    @log_execution_time(logger)
    def assign(self, observations: Sequence[Observation]) -> List[AssignedObservation]:
        """
        Assigns every observation; misses keep region=None.
        Output order always matches input order.
        """
        observations = list(observations)
        if self.workers == 1 or len(observations) <= self.chunk_size:
            assigned = self._assign_chunk(observations)
        else:
            chunks = [
                observations[i:i + self.chunk_size]
                for i in range(0, len(observations), self.chunk_size)
            ]
            assigned = []
            with ThreadPoolExecutor(max_workers=self.workers) as executor:
                for part in executor.map(self._assign_chunk, chunks):
                    assigned.extend(part)

        misses = sum(1 for a in assigned if a.region is None)
        logger.info(
            f"Assigned {len(assigned) - misses}/{len(assigned)} observations "
            f"to {len(self.regions)} regions ({misses} outside every region)"
        )
        return assigned
