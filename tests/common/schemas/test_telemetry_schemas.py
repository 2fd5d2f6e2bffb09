import pytest
from datetime import datetime
from zoneinfo import ZoneInfo
from pydantic import ValidationError
from src.common.schemas import ObservationRecord, PositionRow, GridRow

TZ = ZoneInfo("America/Los_Angeles")
NOW = datetime(2019, 3, 12, 10, 2, tzinfo=TZ)

def record(**overrides):
    fields = dict(
        instant=NOW, longitude=-122.6, latitude=45.5,
        speed=20.0, deviation_minutes=-1.0, vehicle_id="3001"
    )
    fields.update(overrides)
    return ObservationRecord(**fields)

# --- Observation Tests ---
def test_observation_valid():
    obs = record()
    assert obs.vehicle_id == "3001"
    assert obs.playback_instant is None

def test_observation_vehicle_id_coerced():
    assert record(vehicle_id=3001).vehicle_id == "3001"
    assert record(vehicle_id=3001.0).vehicle_id == "3001"
    assert record(vehicle_id=" 0042 ").vehicle_id == "0042"

def test_observation_missing_vehicle_id():
    with pytest.raises(ValidationError):
        record(vehicle_id=float("nan"))
    with pytest.raises(ValidationError):
        record(vehicle_id="  ")

def test_observation_naive_instant():
    with pytest.raises(ValidationError):
        record(instant=datetime(2019, 3, 12, 10, 2))

def test_observation_non_finite_values():
    with pytest.raises(ValidationError):
        record(longitude=float("nan"))
    with pytest.raises(ValidationError):
        record(speed=float("inf"))

# --- Output Row Tests ---
def test_position_row_valid():
    row = PositionRow(time_bucket=NOW, vehicle_id="1", longitude=1.0, latitude=2.0)
    assert row.latitude == 2.0

def test_grid_row_allows_null_value():
    row = GridRow(time_bucket=NOW, region="A", vertex_order=0, x=0.0, y=0.0)
    assert row.value is None
    assert row.bin is None

def test_grid_row_invalid_vertex_order():
    with pytest.raises(ValidationError):
        GridRow(time_bucket=NOW, region="A", vertex_order=-1, x=0.0, y=0.0)
