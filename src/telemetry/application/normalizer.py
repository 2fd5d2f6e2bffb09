"""
Per-region speed normalisation against the full-day regional mean.
"""
import math
from collections import defaultdict
from typing import Dict, List, Optional, Sequence

import numpy as np

from ..domain.entities import AssignedObservation
from ...common.logging import setup_logger, log_execution_time

logger = setup_logger(__name__)

class RegionSpeedNormalizer:
    """
    Replaces each observation's speed with (speed - region_mean) / region_mean,
    where region_mean is taken over the region's observations for the whole day.

    A region whose mean is zero (or not finite), or whose speeds are all equal,
    is degenerate: all of its values become None and the region is reported in
    `degenerate_regions`. A single-observation region counts as all-equal.
    """
    def __init__(self):
        self.region_means: Dict[str, Optional[float]] = {}
        self.degenerate_regions: List[str] = []

    def fit(self, observations: Sequence[AssignedObservation]) -> Dict[str, Optional[float]]:
        speeds = defaultdict(list)
        for obs in observations:
            if obs.region is None:
                continue
            speeds[obs.region].append(obs.observation.speed)

        self.region_means = {}
        self.degenerate_regions = []
        for region, values in speeds.items():
            mean = float(np.mean(values))
            if mean == 0 or not math.isfinite(mean) or np.ptp(values) == 0:
                logger.warning(
                    f"Region {region} is degenerate (mean speed {mean}, spread {np.ptp(values)} "
                    f"over {len(values)} observations); normalised speed is undefined"
                )
                self.degenerate_regions.append(region)
                self.region_means[region] = None
            else:
                self.region_means[region] = mean
        return self.region_means

    def transform(self, observations: Sequence[AssignedObservation]) -> List[AssignedObservation]:
        normalized = []
        for obs in observations:
            if obs.region is None:
                continue
            mean = self.region_means.get(obs.region)
            if mean is None:
                normalized.append(obs.with_speed(None))
            else:
                normalized.append(obs.with_speed((obs.observation.speed - mean) / mean))
        return normalized

    @log_execution_time(logger)
    def fit_transform(self, observations: Sequence[AssignedObservation]) -> List[AssignedObservation]:
        """
        Normalises assigned observations; unassigned ones are dropped since
        they belong to no regional baseline.
        """
        self.fit(observations)
        return self.transform(observations)
