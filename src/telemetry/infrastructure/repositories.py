import os
import csv
from datetime import datetime
from typing import Iterable, List, Optional
from zoneinfo import ZoneInfo

from ..domain import (
    AssignedObservation, GridRepository, Observation, ObservationStore,
    PositionSnapshot, VertexGridRow
)
from ...common.exceptions import FatalInputError
from ...common.schemas.telemetry import GridRow, PositionRow

def _format_float(value: Optional[float]) -> str:
    return "" if value is None else repr(float(value))

def _parse_float(text: str) -> Optional[float]:
    return None if text == "" else float(text)

class CSVGridRepository(GridRepository):
    """
    Writes the derived products to CSV files in one output directory.
    Null values are written as empty fields.
    """
    POSITION_HEADER = ["time_bucket", "vehicle_id", "longitude", "latitude"]

    def __init__(self, output_dir: str):
        self.output_dir = output_dir
        os.makedirs(self.output_dir, exist_ok=True)

    def _path(self, name: str) -> str:
        return os.path.join(self.output_dir, f"{name}.csv")

    def save_positions(self, rows: Iterable[PositionSnapshot]) -> str:
        filename = self._path("positions")
        with open(filename, mode='w', newline='') as f:
            writer = csv.writer(f)
            writer.writerow(self.POSITION_HEADER)
            for row in rows:
                record = PositionRow(
                    time_bucket=row.time_bucket,
                    vehicle_id=row.vehicle_id,
                    longitude=row.longitude,
                    latitude=row.latitude
                )
                writer.writerow([
                    record.time_bucket.isoformat(),
                    record.vehicle_id,
                    f"{record.longitude:.6f}",
                    f"{record.latitude:.6f}"
                ])
        return filename

    def save_grid(self, name: str, value_column: str, bin_column: str, rows: Iterable[VertexGridRow]) -> str:
        filename = self._path(name)
        with open(filename, mode='w', newline='') as f:
            writer = csv.writer(f)
            writer.writerow(["time_bucket", "region", "vertex_order", "x", "y", value_column, bin_column])
            for row in rows:
                record = GridRow(
                    time_bucket=row.time_bucket,
                    region=row.region,
                    vertex_order=row.vertex_order,
                    x=row.x,
                    y=row.y,
                    value=row.value,
                    bin=row.bin_label
                )
                writer.writerow([
                    record.time_bucket.isoformat(),
                    record.region,
                    record.vertex_order,
                    record.x,
                    record.y,
                    "" if record.value is None else f"{record.value:.6f}",
                    record.bin or ""
                ])
        return filename

class CSVObservationStore(ObservationStore):
    """
    Round-trips the assigned observation set through a CSV file.
    Instants keep their UTC offset on disk and are restored in `timezone`.
    """
    HEADER = [
        "instant", "playback_instant", "longitude", "latitude",
        "speed", "deviation_minutes", "vehicle_id", "region"
    ]

    def __init__(self, path: str, timezone: str = "America/Los_Angeles"):
        self.path = path
        self.tz = ZoneInfo(timezone)

    def save(self, observations: Iterable[AssignedObservation]):
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        with open(self.path, mode='w', newline='') as f:
            writer = csv.writer(f)
            writer.writerow(self.HEADER)
            for item in observations:
                obs = item.observation
                writer.writerow([
                    obs.instant.isoformat(),
                    obs.playback_instant.isoformat() if obs.playback_instant else "",
                    _format_float(obs.longitude),
                    _format_float(obs.latitude),
                    _format_float(obs.speed),
                    _format_float(obs.deviation_minutes),
                    obs.vehicle_id,
                    item.region or ""
                ])

    def _instant(self, text: str) -> Optional[datetime]:
        if not text:
            return None
        return datetime.fromisoformat(text).astimezone(self.tz)

    def load(self) -> List[AssignedObservation]:
        if not os.path.exists(self.path):
            raise FatalInputError(f"Intermediate dataset not found: {self.path}")

        loaded = []
        with open(self.path, mode='r', newline='') as f:
            for row in csv.DictReader(f):
                observation = Observation(
                    instant=self._instant(row["instant"]),
                    playback_instant=self._instant(row["playback_instant"]),
                    longitude=float(row["longitude"]),
                    latitude=float(row["latitude"]),
                    speed=_parse_float(row["speed"]),
                    deviation_minutes=float(row["deviation_minutes"]),
                    vehicle_id=row["vehicle_id"]
                )
                loaded.append(AssignedObservation(observation=observation, region=row["region"] or None))
        return loaded
