"""
Domain protocols for the telemetry grid pipeline.
"""
from datetime import datetime
from typing import Iterable, List, Optional, Protocol, Sequence
from .entities import AssignedObservation, Observation

class RegionLocator(Protocol):
    """
    Protocol for point-in-polygon region lookup.
    """
    def locate(self, x: float, y: float) -> Optional[str]:
        ...

    def assign(self, observations: Sequence[Observation]) -> List[AssignedObservation]:
        ...

class InstantParser(Protocol):
    """
    Protocol for raw timestamp normalisation.
    """
    def parse(self, raw: str) -> datetime:
        ...

class ObservationSource(Protocol):
    """
    Protocol for anything yielding normalised observations.
    """
    def __iter__(self) -> Iterable[Observation]:
        ...
