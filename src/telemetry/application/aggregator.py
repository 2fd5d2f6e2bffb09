"""
Groups bucketed, region-assigned observations and reduces them to statistics.
"""
from collections import defaultdict
from typing import Callable, Dict, List, Optional, Sequence

import numpy as np

from .bucketing import TemporalBucketer
from ..domain.entities import AssignedObservation, CellKey, PositionSnapshot, VehicleBucketKey
from ...common.config.models import DEFAULT_SPEED_UPPER_BOUND
from ...common.logging import setup_logger, log_execution_time

logger = setup_logger(__name__)

Reducer = Callable[[Sequence[float]], float]

def mean(values: Sequence[float]) -> float:
    return float(np.mean(values))

def median(values: Sequence[float]) -> float:
    return float(np.median(values))

class TelemetryAggregator:
    """
    Sparse (time bucket, region) aggregation. Only groups with at least one
    member appear in the output; density is restored by the DenseGridBuilder.
    """
    def __init__(self, bucketer: TemporalBucketer):
        self.bucketer = bucketer

    def aggregate(
        self,
        observations: Sequence[AssignedObservation],
        field: str,
        reducer: Reducer
    ) -> Dict[CellKey, Optional[float]]:
        """
        Reduces `field` of each observation per CellKey.
        None members are skipped; a group made only of None reduces to None.
        """
        groups: Dict[CellKey, List[Optional[float]]] = defaultdict(list)
        for obs in observations:
            if obs.region is None:
                continue
            key = CellKey(obs.region, self.bucketer.bucket(obs.observation.instant))
            groups[key].append(getattr(obs.observation, field))

        cells: Dict[CellKey, Optional[float]] = {}
        for key, values in groups.items():
            present = [v for v in values if v is not None]
            cells[key] = reducer(present) if present else None
        return cells

    @log_execution_time(logger)
    def median_deviation(self, observations: Sequence[AssignedObservation]) -> Dict[CellKey, Optional[float]]:
        return self.aggregate(observations, 'deviation_minutes', median)

    @log_execution_time(logger)
    def mean_speed(self, observations: Sequence[AssignedObservation]) -> Dict[CellKey, Optional[float]]:
        return self.aggregate(observations, 'speed', mean)

    @log_execution_time(logger)
    def positions(self, observations: Sequence[AssignedObservation]) -> List[PositionSnapshot]:
        """
        One mean position per vehicle per bucket, sorted by bucket then vehicle.
        """
        groups: Dict[VehicleBucketKey, List[tuple]] = defaultdict(list)
        for obs in observations:
            if obs.region is None:
                continue
            o = obs.observation
            key = VehicleBucketKey(self.bucketer.bucket(o.instant), o.vehicle_id)
            groups[key].append((o.longitude, o.latitude))

        snapshots = []
        for key in sorted(groups):
            coords = np.asarray(groups[key], dtype=float)
            lon, lat = coords.mean(axis=0)
            snapshots.append(PositionSnapshot(
                time_bucket=key.time_bucket,
                vehicle_id=key.vehicle_id,
                longitude=float(lon),
                latitude=float(lat)
            ))
        return snapshots

def drop_at_or_above(
    cells: Dict[CellKey, Optional[float]],
    upper_bound: Optional[float] = DEFAULT_SPEED_UPPER_BOUND
) -> Dict[CellKey, Optional[float]]:
    """
    Discards aggregates >= upper_bound. None disables the filter.
    Cells already None are kept.
    """
    if upper_bound is None:
        return dict(cells)

    kept = {k: v for k, v in cells.items() if v is None or v < upper_bound}
    dropped = len(cells) - len(kept)
    if dropped:
        logger.info(f"Discarded {dropped} aggregates >= {upper_bound}")
    return kept
