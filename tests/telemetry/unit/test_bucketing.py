import pytest
from datetime import timedelta
from src.telemetry.application.bucketing import TemporalBucketer, FIVE_MINUTES, ONE_HOUR
from src.common.exceptions import ConfigurationError

def test_hourly_rounds_to_nearest(at):
    bucketer = TemporalBucketer(ONE_HOUR)
    assert bucketer.bucket(at(10, 2)) == at(10)
    assert bucketer.bucket(at(10, 29, 59)) == at(10)
    assert bucketer.bucket(at(10, 31)) == at(11)

def test_ties_round_up(at):
    assert TemporalBucketer(ONE_HOUR).bucket(at(10, 30)) == at(11)
    assert TemporalBucketer(FIVE_MINUTES).bucket(at(10, 2, 30)) == at(10, 5)

def test_five_minute_buckets(at):
    bucketer = TemporalBucketer(FIVE_MINUTES)
    assert bucketer.bucket(at(10, 2, 29)) == at(10, 0)
    assert bucketer.bucket(at(10, 3)) == at(10, 5)
    assert bucketer.bucket(at(10, 7, 29, 999999)) == at(10, 5)

def test_rounding_past_midnight(at, tz):
    bucket = TemporalBucketer(ONE_HOUR).bucket(at(23, 40))
    assert bucket.day == 13
    assert bucket.hour == 0
    assert bucket.tzinfo is tz

@pytest.mark.parametrize("interval", [FIVE_MINUTES, ONE_HOUR])
def test_bucketing_is_idempotent(at, interval):
    bucketer = TemporalBucketer(interval)
    for minute in range(0, 60, 7):
        once = bucketer.bucket(at(14, minute, 13))
        assert bucketer.bucket(once) == once

def test_distinct_buckets_sorted(at):
    bucketer = TemporalBucketer.minutes(60)
    instants = [at(12, 10), at(10, 2), at(10, 20), at(12, 5)]
    assert bucketer.distinct_buckets(instants) == [at(10), at(12)]

@pytest.mark.parametrize("interval", [timedelta(0), timedelta(minutes=-5), timedelta(minutes=7)])
def test_invalid_interval(interval):
    with pytest.raises(ConfigurationError):
        TemporalBucketer(interval)
