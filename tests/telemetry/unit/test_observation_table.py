import pytest
import pandas as pd
from src.common.exceptions import FatalInputError
from src.common.metrics import MetricsCollector
from src.telemetry.infrastructure.sources import ObservationTable
from src.telemetry.infrastructure.timestamps import TimestampNormalizer

COLUMNS = [
    "vehicle_position_date_time", "vehicle_id", "longitude",
    "latitude", "average_speed", "predicted_deviation"
]

def frame(rows, columns=COLUMNS):
    return pd.DataFrame(rows, columns=columns)

def test_reads_valid_rows(at):
    table = ObservationTable(
        frame([("03/12/2019 10:02:00 AM -0800", 3001, -122.6, 45.5, 21.5, -1.25)]),
        TimestampNormalizer()
    )
    observations = table.read()

    assert len(observations) == 1
    obs = observations[0]
    assert obs.instant == at(10, 2)
    assert obs.vehicle_id == "3001"
    assert obs.speed == 21.5
    assert obs.deviation_minutes == -1.25
    assert obs.playback_instant is None

def test_malformed_and_invalid_rows_are_dropped():
    collector = MetricsCollector()
    table = ObservationTable(
        frame([
            ("03/12/2019 10:02:00 AM -0800", 1, -122.6, 45.5, 21.5, 0.0),
            ("12-03-2019 10:02", 1, -122.6, 45.5, 21.5, 0.0),
            ("03/12/2019 10:04:00 AM -0800", 1, float("nan"), 45.5, 21.5, 0.0),
            ("03/12/2019 10:05:00 AM -0800", None, -122.6, 45.5, 21.5, 0.0),
        ]),
        TimestampNormalizer(),
        metrics_collector=collector
    )
    observations = table.read()

    assert len(observations) == 1
    assert collector.records_read == 4
    assert collector.parse_errors == 1
    assert collector.invalid_records == 2
    assert collector.get_metrics().records_dropped == 3

def test_playback_field_normalized_identically(at):
    columns = COLUMNS + ["playback_date_time"]
    table = ObservationTable(
        frame([
            ("03/12/2019 10:02:00 AM -0800", 1, 0.0, 0.0, 1.0, 0.0, "03/12/2019 10:02:30 AM -0800"),
            ("03/12/2019 10:03:00 AM -0800", 1, 0.0, 0.0, 1.0, 0.0, "bad"),
        ], columns=columns),
        TimestampNormalizer(),
        playback_field="playback_date_time"
    )
    observations = table.read()

    assert len(observations) == 1
    assert observations[0].playback_instant == at(10, 2, 30)

def test_missing_columns_are_fatal():
    with pytest.raises(FatalInputError):
        ObservationTable(frame([], columns=COLUMNS[:-1]), TimestampNormalizer())
    with pytest.raises(FatalInputError):
        ObservationTable(frame([]), TimestampNormalizer(), playback_field="playback_date_time")

def test_missing_file_is_fatal(tmp_path):
    with pytest.raises(FatalInputError):
        ObservationTable.from_csv(tmp_path / "missing.csv", TimestampNormalizer())

def test_reading_again_recounts():
    collector = MetricsCollector()
    table = ObservationTable(
        frame([
            ("03/12/2019 10:02:00 AM -0800", 1, -122.6, 45.5, 21.5, 0.0),
            ("bad", 1, -122.6, 45.5, 21.5, 0.0),
        ]),
        TimestampNormalizer(),
        metrics_collector=collector
    )
    table.read()
    table.read()

    assert collector.records_read == 2
    assert collector.parse_errors == 1
