import pytest
from datetime import datetime
from zoneinfo import ZoneInfo
from src.telemetry.domain.entities import AssignedObservation, Observation, Region, RegionSet

TZ = ZoneInfo("America/Los_Angeles")

def square(x0, y0, size=10.0):
    return (
        (x0, y0), (x0 + size, y0), (x0 + size, y0 + size), (x0, y0 + size), (x0, y0)
    )

@pytest.fixture
def tz():
    return TZ

@pytest.fixture
def at():
    """Builds instants on the service day: at(10, 2) -> 2019-03-12 10:02 local."""
    def _at(hour, minute=0, second=0, microsecond=0):
        return datetime(2019, 3, 12, hour, minute, second, microsecond, tzinfo=TZ)
    return _at

@pytest.fixture
def regions():
    """Two adjacent 10x10 squares sharing the edge x=10."""
    return RegionSet([
        Region(name="A", exterior=square(0.0, 0.0)),
        Region(name="B", exterior=square(10.0, 0.0)),
    ])

@pytest.fixture
def make_observation(at):
    def _make(hour, minute=0, x=5.0, y=5.0, speed=20.0, deviation=0.0, vehicle_id="1", region=None):
        observation = Observation(
            instant=at(hour, minute),
            longitude=x,
            latitude=y,
            speed=speed,
            deviation_minutes=deviation,
            vehicle_id=vehicle_id
        )
        if region is None:
            return observation
        return AssignedObservation(observation=observation, region=region)
    return _make
