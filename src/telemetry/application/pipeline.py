from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from .aggregator import TelemetryAggregator, drop_at_or_above
from .binning import OrdinalBinner
from .bucketing import TemporalBucketer
from .dense_grid import DenseGridBuilder, empty_cell_count
from .normalizer import RegionSpeedNormalizer
from ..domain import (
    AssignedObservation, Bin, DenseGridRow, GridRepository, Observation,
    ObservationStore, PositionSnapshot, RegionLocator, RegionSet, VertexGridRow
)
from ...common.config.models import DEFAULT_SPEED_UPPER_BOUND
from ...common.exceptions import FatalInputError
from ...common.metrics import MetricsCollector, PipelineMetrics, STAGE_COUNTERS
from ...common.logging import setup_logger, log_execution_time

logger = setup_logger(__name__)

@dataclass
class GridProducts:
    """
    The three derived products of one operating day.
    """
    positions: List[PositionSnapshot]
    deviation_grid: List[DenseGridRow]
    speed_grid: List[DenseGridRow]
    deviation_vertices: List[VertexGridRow]
    speed_vertices: List[VertexGridRow]
    deviation_bins: List[Bin]
    speed_bins: List[Bin]
    time_buckets: List[datetime]
    metrics: Optional[PipelineMetrics] = None
    files: List[str] = field(default_factory=list)

class TelemetryGridPipeline:
    """
    Orchestrates the batch pass:
    Observations -> Assignment -> Bucketing -> (Normalisation) -> Aggregation
    -> Dense grid -> Binning
    """
    def __init__(
        self,
        regions: RegionSet,
        assigner: RegionLocator,
        snapshot_bucketer: TemporalBucketer,
        grid_bucketer: TemporalBucketer,
        binner: OrdinalBinner,
        speed_upper_bound: Optional[float] = DEFAULT_SPEED_UPPER_BOUND,
        metrics_collector: Optional[MetricsCollector] = None,
        store: Optional[ObservationStore] = None,
        repository: Optional[GridRepository] = None
    ):
        self.regions = regions
        self.assigner = assigner
        self.snapshot_aggregator = TelemetryAggregator(snapshot_bucketer)
        self.grid_aggregator = TelemetryAggregator(grid_bucketer)
        self.grid_bucketer = grid_bucketer
        self.dense_grid = DenseGridBuilder(regions)
        self.binner = binner
        self.speed_upper_bound = speed_upper_bound
        self.metrics_collector = metrics_collector or MetricsCollector()
        self.store = store
        self.repository = repository

    @log_execution_time(logger)
    def assign(self, observations: Sequence[Observation]) -> List[AssignedObservation]:
        """
        Assigns regions and keeps only observations inside some region.
        """
        if not observations:
            raise FatalInputError("Observation set is empty")

        assigned = self.assigner.assign(observations)
        kept = [a for a in assigned if a.region is not None]
        self.metrics_collector.record_assignment_miss(len(assigned) - len(kept))

        if not kept:
            raise FatalInputError(
                f"None of {len(assigned)} observations falls inside the {len(self.regions)} regions"
            )
        if self.store is not None:
            self.store.save(kept)
        return kept

    def run(self, observations: Sequence[Observation]) -> GridProducts:
        """
        Runs assignment and aggregation. Read counters from the observation
        table are kept; stage counters start from zero on every run.
        """
        self.metrics_collector.reset(STAGE_COUNTERS)
        return self.aggregate(self.assign(observations))

    def run_from_store(self) -> GridProducts:
        """Resumes from the persisted assigned observation set."""
        if self.store is None:
            raise FatalInputError("No observation store configured")
        self.metrics_collector.reset()
        kept = [a for a in self.store.load() if a.region is not None]
        if not kept:
            raise FatalInputError("Intermediate dataset holds no assigned observations")
        return self.aggregate(kept)

    def _grid(self, buckets: List[datetime], cells) -> Tuple[List[DenseGridRow], List[Bin]]:
        rows = list(self.dense_grid.build(buckets, cells))
        bins = self.binner.fit(row.value for row in rows)
        self.metrics_collector.record_empty_cell(empty_cell_count(rows))
        return self.binner.bin_rows(rows, bins), bins

    @log_execution_time(logger)
    def aggregate(self, assigned: Sequence[AssignedObservation]) -> GridProducts:
        positions = self.snapshot_aggregator.positions(assigned)
        buckets = self.grid_bucketer.distinct_buckets(a.observation.instant for a in assigned)

        deviation_cells = self.grid_aggregator.median_deviation(assigned)

        normalizer = RegionSpeedNormalizer()
        normalized = normalizer.fit_transform(assigned)
        self.metrics_collector.record_degenerate_region(len(normalizer.degenerate_regions))

        speed_cells = self.grid_aggregator.mean_speed(normalized)
        kept_speed_cells = drop_at_or_above(speed_cells, self.speed_upper_bound)
        self.metrics_collector.record_filtered_cell(len(speed_cells) - len(kept_speed_cells))

        deviation_grid, deviation_bins = self._grid(buckets, deviation_cells)
        speed_grid, speed_bins = self._grid(buckets, kept_speed_cells)

        products = GridProducts(
            positions=positions,
            deviation_grid=deviation_grid,
            speed_grid=speed_grid,
            deviation_vertices=list(self.dense_grid.expand_vertices(deviation_grid)),
            speed_vertices=list(self.dense_grid.expand_vertices(speed_grid)),
            deviation_bins=deviation_bins,
            speed_bins=speed_bins,
            time_buckets=buckets
        )

        if self.repository is not None:
            products.files = [
                self.repository.save_positions(products.positions),
                self.repository.save_grid(
                    "deviation_grid", "median_deviation", "deviation_bin", products.deviation_vertices
                ),
                self.repository.save_grid(
                    "speed_grid", "normalized_speed", "speed_bin", products.speed_vertices
                ),
            ]

        products.metrics = self.metrics_collector.get_metrics()
        logger.info(
            f"Built {len(positions)} position snapshots and "
            f"{len(deviation_grid)} region/hour cells over {len(buckets)} buckets "
            f"({products.metrics.empty_cells} empty cells)"
        )
        return products
