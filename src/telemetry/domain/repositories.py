"""
Domain repositories for the telemetry grid pipeline.
"""
from typing import Iterable, List, Protocol
from .entities import AssignedObservation, PositionSnapshot, VertexGridRow

class GridRepository(Protocol):
    """
    Abstract sink for the three derived products.
    """
    def save_positions(self, rows: Iterable[PositionSnapshot]):
        ...

    def save_grid(self, name: str, value_column: str, bin_column: str, rows: Iterable[VertexGridRow]):
        ...

class ObservationStore(Protocol):
    """
    Persists the assigned observation set between ingestion and aggregation.
    """
    def save(self, observations: Iterable[AssignedObservation]):
        ...

    def load(self) -> List[AssignedObservation]:
        ...
