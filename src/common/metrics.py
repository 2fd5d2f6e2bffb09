from dataclasses import dataclass, asdict
from typing import Dict, Tuple
import time

@dataclass
class PipelineMetrics:
    """Counts of records dropped or nulled along the pipeline"""
    records_read: int
    parse_errors: int
    invalid_records: int
    assignment_misses: int
    degenerate_regions: int
    filtered_cells: int
    empty_cells: int
    elapsed_seconds: float

    @property
    def records_dropped(self) -> int:
        return self.parse_errors + self.invalid_records + self.assignment_misses

    def to_dict(self) -> Dict:
        data = asdict(self)
        data['records_dropped'] = self.records_dropped
        return data


# Counted while reading the observation table
SOURCE_COUNTERS = ("records_read", "parse_errors", "invalid_records")
# Counted by a pipeline run over already-read observations
STAGE_COUNTERS = ("assignment_misses", "degenerate_regions", "filtered_cells", "empty_cells")

class MetricsCollector:
    """Collects per-run counters"""

    def __init__(self):
        self.reset()

    def reset(self, counters: Tuple[str, ...] = SOURCE_COUNTERS + STAGE_COUNTERS):
        """Zeroes the given counters and restarts the clock."""
        for name in counters:
            setattr(self, name, 0)
        self.start_time = time.time()

    def record_read(self, count: int = 1):
        self.records_read += count

    def record_parse_error(self, count: int = 1):
        self.parse_errors += count

    def record_invalid(self, count: int = 1):
        self.invalid_records += count

    def record_assignment_miss(self, count: int = 1):
        self.assignment_misses += count

    def record_degenerate_region(self, count: int = 1):
        self.degenerate_regions += count

    def record_filtered_cell(self, count: int = 1):
        self.filtered_cells += count

    def record_empty_cell(self, count: int = 1):
        self.empty_cells += count

    def get_metrics(self) -> PipelineMetrics:
        return PipelineMetrics(
            records_read=self.records_read,
            parse_errors=self.parse_errors,
            invalid_records=self.invalid_records,
            assignment_misses=self.assignment_misses,
            degenerate_regions=self.degenerate_regions,
            filtered_cells=self.filtered_cells,
            empty_cells=self.empty_cells,
            elapsed_seconds=time.time() - self.start_time
        )
