"""
Temporal bucketing: round instants to the nearest interval boundary.
"""
from datetime import datetime, timedelta
from typing import Iterable, List

from ...common.exceptions import ConfigurationError

FIVE_MINUTES = timedelta(minutes=5)
ONE_HOUR = timedelta(hours=1)
ONE_DAY = timedelta(days=1)

class TemporalBucketer:
    """
    Rounds instants to the nearest multiple of `interval` counted from local
    midnight. Ties (exactly half an interval) go to the later boundary.
    """
    def __init__(self, interval: timedelta):
        if interval <= timedelta(0) or ONE_DAY % interval != timedelta(0):
            raise ConfigurationError(f"Interval {interval} must be positive and divide a day evenly")
        self.interval = interval

    @classmethod
    def minutes(cls, minutes: int) -> 'TemporalBucketer':
        return cls(timedelta(minutes=minutes))

    def bucket(self, instant: datetime) -> datetime:
        midnight = instant.replace(hour=0, minute=0, second=0, microsecond=0)
        elapsed = instant - midnight
        # floor((elapsed + interval / 2) / interval) is round-half-up on timedeltas
        steps = (elapsed + self.interval / 2) // self.interval
        return midnight + steps * self.interval

    def distinct_buckets(self, instants: Iterable[datetime]) -> List[datetime]:
        """Sorted distinct buckets actually produced by `instants`."""
        return sorted({self.bucket(i) for i in instants})

    def __repr__(self):
        return f"TemporalBucketer(interval={self.interval})"
