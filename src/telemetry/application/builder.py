from omegaconf import DictConfig, OmegaConf
from typing import Optional, Dict

from ..domain import RegionSet
from ..infrastructure.regions import load_regions_geojson, regions_from_mapping
from ..infrastructure.spatial import SpatialAssigner
from ..infrastructure.sources import ObservationTable
from ..infrastructure.timestamps import TimestampNormalizer
from ..infrastructure.repositories import CSVGridRepository, CSVObservationStore
from .binning import OrdinalBinner
from .bucketing import TemporalBucketer
from .pipeline import TelemetryGridPipeline
from ...common.exceptions import FatalInputError
from ...common.metrics import MetricsCollector
from ...common.logging import setup_logger

logger = setup_logger(__name__)

class GridPipelineBuilder:
    """
    Builder pattern for constructing the telemetry grid pipeline.
    Centralises component instantiation and wiring from configuration.
    """

    def __init__(self, config: DictConfig):
        self.config = config
        self.metrics_collector = MetricsCollector()

        # Components
        self.regions: Optional[RegionSet] = None
        self.normalizer: Optional[TimestampNormalizer] = None
        self.assigner: Optional[SpatialAssigner] = None
        self.snapshot_bucketer: Optional[TemporalBucketer] = None
        self.grid_bucketer: Optional[TemporalBucketer] = None
        self.binner: Optional[OrdinalBinner] = None
        self.store: Optional[CSVObservationStore] = None
        self.repository: Optional[CSVGridRepository] = None
        self.source: Optional[ObservationTable] = None
        self.pipeline: Optional[TelemetryGridPipeline] = None

    def build_regions(self, regions: Optional[RegionSet] = None) -> 'GridPipelineBuilder':
        input_cfg = self.config.input
        if regions is not None:
            self.regions = regions
        elif input_cfg.get('regions'):
            logger.info("Loading regions from config...")
            self.regions = regions_from_mapping(OmegaConf.to_container(input_cfg.regions, resolve=True))
        elif input_cfg.get('regions_path'):
            logger.info(f"Loading regions: {input_cfg.regions_path}...")
            self.regions = load_regions_geojson(input_cfg.regions_path, input_cfg.region_name_field)
        else:
            raise FatalInputError("No regions configured (input.regions or input.regions_path)")
        return self

    def build_timestamps(self) -> 'GridPipelineBuilder':
        ts_cfg = self.config.timestamps
        self.normalizer = TimestampNormalizer(
            suffix_length=ts_cfg.suffix_length,
            fmt=ts_cfg.format,
            timezone=ts_cfg.timezone
        )
        return self

    def build_assigner(self) -> 'GridPipelineBuilder':
        if self.regions is None:
            self.build_regions()
        spatial_cfg = self.config.spatial
        self.assigner = SpatialAssigner(
            self.regions,
            tie_break=spatial_cfg.tie_break,
            use_index=spatial_cfg.use_index,
            workers=spatial_cfg.workers,
            chunk_size=spatial_cfg.chunk_size
        )
        return self

    def build_bucketers(self) -> 'GridPipelineBuilder':
        self.snapshot_bucketer = TemporalBucketer.minutes(self.config.buckets.snapshot_minutes)
        self.grid_bucketer = TemporalBucketer.minutes(self.config.buckets.grid_minutes)
        return self

    def build_binner(self) -> 'GridPipelineBuilder':
        self.binner = OrdinalBinner(
            n_bins=self.config.binning.n_bins,
            label_digits=self.config.binning.label_digits
        )
        return self

    def build_persistence(self) -> 'GridPipelineBuilder':
        output_cfg = self.config.get('output', {})
        if output_cfg.get('intermediate_path'):
            logger.info(f"Intermediate dataset: {output_cfg.intermediate_path}")
            self.store = CSVObservationStore(
                output_cfg.intermediate_path,
                timezone=self.config.timestamps.timezone
            )
        if output_cfg.get('output_dir'):
            self.repository = CSVGridRepository(output_dir=output_cfg.output_dir)
        return self

    def build_source(self) -> 'GridPipelineBuilder':
        if not self.normalizer:
            self.build_timestamps()
        path = self.config.input.get('observations_path')
        if not path:
            raise FatalInputError("No observation table configured (input.observations_path)")
        logger.info(f"Opening observations: {path}...")
        self.source = ObservationTable.from_csv(
            path,
            self.normalizer,
            observation_field=self.config.timestamps.observation_field,
            playback_field=self.config.timestamps.playback_field,
            metrics_collector=self.metrics_collector
        )
        return self

    def build_pipeline(self) -> TelemetryGridPipeline:
        if not self.assigner:
            self.build_assigner()
        if not self.grid_bucketer:
            self.build_bucketers()
        if not self.binner:
            self.build_binner()

        self.pipeline = TelemetryGridPipeline(
            regions=self.regions,
            assigner=self.assigner,
            snapshot_bucketer=self.snapshot_bucketer,
            grid_bucketer=self.grid_bucketer,
            binner=self.binner,
            speed_upper_bound=self.config.speed.upper_bound,
            metrics_collector=self.metrics_collector,
            store=self.store,
            repository=self.repository
        )
        return self.pipeline

    def get_components(self) -> Dict:
        """Returns built components for external use (e.g. rendering)"""
        return {
            'regions': self.regions,
            'normalizer': self.normalizer,
            'assigner': self.assigner,
            'snapshot_bucketer': self.snapshot_bucketer,
            'grid_bucketer': self.grid_bucketer,
            'binner': self.binner,
            'store': self.store,
            'repository': self.repository,
            'metrics_collector': self.metrics_collector
        }
