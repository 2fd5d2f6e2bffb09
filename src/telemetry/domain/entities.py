"""
Domain entities for the telemetry grid pipeline.
"""
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Iterable, Iterator, NamedTuple, Optional, Tuple

from ...common.exceptions import FatalInputError, RegionError

Vertex = Tuple[float, float]
Ring = Tuple[Vertex, ...]

@dataclass(frozen=True)
class Observation:
    """
    A single vehicle position log record.
    """
    instant: datetime
    longitude: float
    latitude: float
    speed: float
    deviation_minutes: float
    vehicle_id: str
    playback_instant: Optional[datetime] = None

@dataclass(frozen=True)
class Region:
    """
    Named polygon boundary. Identity is the name.
    """
    name: str
    exterior: Ring
    holes: Tuple[Ring, ...] = ()

    @property
    def vertices(self) -> Ring:
        """Exterior ring vertices in rendering order."""
        return self.exterior

@dataclass(frozen=True)
class AssignedObservation:
    """
    Observation plus the region enclosing it (None when outside every region).
    """
    observation: Observation
    region: Optional[str] = None

    @property
    def is_assigned(self) -> bool:
        return self.region is not None

    def with_speed(self, speed: Optional[float]) -> 'AssignedObservation':
        return replace(self, observation=replace(self.observation, speed=speed))

class CellKey(NamedTuple):
    """Composite join key of the region/time grid."""
    region: str
    time_bucket: datetime

class VehicleBucketKey(NamedTuple):
    time_bucket: datetime
    vehicle_id: str

@dataclass(frozen=True)
class AggregateCell:
    key: CellKey
    value: Optional[float]

@dataclass(frozen=True)
class PositionSnapshot:
    time_bucket: datetime
    vehicle_id: str
    longitude: float
    latitude: float

@dataclass(frozen=True, order=True)
class Bin:
    """
    Ordered category covering [lower, upper), or [lower, upper] when closed_right.
    Ordering is by lower bound.
    """
    lower: float
    upper: float
    index: int = field(compare=False)
    label: str = field(compare=False)
    closed_right: bool = field(default=False, compare=False)

    def contains(self, value: float) -> bool:
        if self.closed_right:
            return self.lower <= value <= self.upper
        return self.lower <= value < self.upper

@dataclass(frozen=True)
class DenseGridRow:
    """
    One (region, time bucket) pair of the full cross product.
    value and bin are None when the cell has no data.
    """
    time_bucket: datetime
    region: str
    value: Optional[float] = None
    bin: Optional[Bin] = None

    @property
    def key(self) -> CellKey:
        return CellKey(self.region, self.time_bucket)

@dataclass(frozen=True)
class VertexGridRow:
    """
    Dense grid row repeated for one boundary vertex of its region.
    """
    time_bucket: datetime
    region: str
    vertex_order: int
    x: float
    y: float
    value: Optional[float] = None
    bin: Optional[Bin] = None

    @property
    def bin_label(self) -> Optional[str]:
        return self.bin.label if self.bin else None

class RegionSet:
    """
    Immutable, ordered collection of regions loaded once per run.
    Iteration order is the load order and drives both the assignment
    tie-break and the dense grid emission order.
    """
    def __init__(self, regions: Iterable[Region]):
        regions = tuple(regions)
        if not regions:
            raise FatalInputError("Region set is empty")

        names = set()
        for region in regions:
            if region.name in names:
                raise RegionError(f"Duplicate region name: {region.name}")
            if len(region.exterior) < 3:
                raise RegionError(f"Region {region.name} has fewer than 3 vertices")
            names.add(region.name)

        self._regions = regions
        self._by_name = {r.name: r for r in regions}

    def __iter__(self) -> Iterator[Region]:
        return iter(self._regions)

    def __len__(self) -> int:
        return len(self._regions)

    def __getitem__(self, name: str) -> Region:
        return self._by_name[name]

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    @property
    def names(self) -> Tuple[str, ...]:
        return tuple(r.name for r in self._regions)

    def vertex_count(self) -> int:
        return sum(len(r.vertices) for r in self._regions)

    def __repr__(self):
        return f"RegionSet({len(self)} regions)"
