"""
Observation table ingestion (pandas) into normalised Observation records.
"""
from pathlib import Path
from typing import Iterator, List, Optional, Union

import pandas as pd
from pydantic import ValidationError

from .timestamps import TimestampNormalizer
from ..domain.entities import Observation
from ..domain.protocols import ObservationSource
from ...common.exceptions import FatalInputError, ParseError
from ...common.metrics import MetricsCollector, SOURCE_COUNTERS
from ...common.schemas.telemetry import ObservationRecord
from ...common.logging import setup_logger

logger = setup_logger(__name__)

REQUIRED_COLUMNS = [
    "longitude",
    "latitude",
    "average_speed",
    "predicted_deviation",
    "vehicle_id",
]

class ObservationTable(ObservationSource):
    """
    Wraps a vehicle position log table. Iterating yields one Observation per
    row whose timestamps parse and whose fields validate; other rows are
    logged, counted in the metrics collector and skipped.
    """
    def __init__(
        self,
        frame: pd.DataFrame,
        normalizer: TimestampNormalizer,
        observation_field: str = "vehicle_position_date_time",
        playback_field: Optional[str] = None,
        metrics_collector: Optional[MetricsCollector] = None
    ):
        required = REQUIRED_COLUMNS + [observation_field]
        missing = [c for c in required if c not in frame.columns]
        if missing:
            raise FatalInputError(f"Observation table is missing columns: {missing}")
        if playback_field and playback_field not in frame.columns:
            raise FatalInputError(f"Observation table is missing playback column: {playback_field}")

        self.frame = frame
        self.normalizer = normalizer
        self.observation_field = observation_field
        self.playback_field = playback_field
        self.metrics_collector = metrics_collector or MetricsCollector()

    @classmethod
    def from_csv(cls, path: Union[str, Path], normalizer: TimestampNormalizer, **kwargs) -> 'ObservationTable':
        path = Path(path)
        if not path.exists():
            raise FatalInputError(f"Observation file not found: {path}")
        frame = pd.read_csv(path, dtype={"vehicle_id": str})
        logger.info(f"Read {len(frame)} rows from {path}")
        return cls(frame, normalizer, **kwargs)

    def __iter__(self) -> Iterator[Observation]:
        self.metrics_collector.reset(SOURCE_COUNTERS)
        for position, row in enumerate(self.frame.to_dict(orient="records")):
            self.metrics_collector.record_read()
            try:
                instant = self.normalizer.parse(row[self.observation_field])
                playback = (
                    self.normalizer.parse_optional(row[self.playback_field])
                    if self.playback_field else None
                )
            except ParseError as e:
                self.metrics_collector.record_parse_error()
                logger.warning(f"Dropping row {position}: {e}")
                continue

            try:
                record = ObservationRecord(
                    instant=instant,
                    playback_instant=playback,
                    longitude=row["longitude"],
                    latitude=row["latitude"],
                    speed=row["average_speed"],
                    deviation_minutes=row["predicted_deviation"],
                    vehicle_id=row["vehicle_id"]
                )
            except ValidationError as e:
                self.metrics_collector.record_invalid()
                logger.warning(f"Dropping row {position}: {e.error_count()} invalid field(s)")
                continue

            yield Observation(**record.model_dump())

    def read(self) -> List[Observation]:
        observations = list(self)
        logger.info(
            f"Normalised {len(observations)}/{len(self.frame)} rows "
            f"({self.metrics_collector.parse_errors} parse errors, "
            f"{self.metrics_collector.invalid_records} invalid)"
        )
        return observations
