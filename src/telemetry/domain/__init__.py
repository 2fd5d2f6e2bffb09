"""
Domain module initialization.
"""
from .entities import (
    Observation,
    Region,
    RegionSet,
    AssignedObservation,
    CellKey,
    VehicleBucketKey,
    AggregateCell,
    PositionSnapshot,
    Bin,
    DenseGridRow,
    VertexGridRow
)
from .protocols import (
    RegionLocator,
    InstantParser,
    ObservationSource
)
from .repositories import GridRepository, ObservationStore
