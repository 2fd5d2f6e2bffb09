from dataclasses import dataclass, field
from typing import Any, Dict, Optional

# First region in region-set order wins when a point lies in several polygons.
FIRST_MATCH = "first"
LAST_MATCH = "last"
TIE_BREAKS = (FIRST_MATCH, LAST_MATCH)

# Normalised-speed aggregates at or above this ratio are discarded before binning.
DEFAULT_SPEED_UPPER_BOUND = 1.0

@dataclass
class TimestampConfig:
    observation_field: str = "vehicle_position_date_time"
    playback_field: Optional[str] = None
    suffix_length: int = 6
    format: str = "%m/%d/%Y %I:%M:%S %p"
    timezone: str = "America/Los_Angeles"

@dataclass
class SpatialConfig:
    tie_break: str = FIRST_MATCH
    use_index: bool = True
    workers: int = 1
    chunk_size: int = 5000

@dataclass
class BucketConfig:
    snapshot_minutes: int = 5
    grid_minutes: int = 60

@dataclass
class BinningConfig:
    n_bins: int = 7
    label_digits: int = 3

@dataclass
class SpeedConfig:
    upper_bound: Optional[float] = DEFAULT_SPEED_UPPER_BOUND

@dataclass
class InputConfig:
    observations_path: Optional[str] = None
    regions_path: Optional[str] = None
    region_name_field: str = "name"
    # {name: [[x, y], ...]}; coordinates may be ints or floats
    regions: Dict[str, Any] = field(default_factory=dict)

@dataclass
class OutputConfig:
    output_dir: Optional[str] = "data/grids"
    intermediate_path: Optional[str] = None

@dataclass
class PipelineConfig:
    timestamps: TimestampConfig = field(default_factory=TimestampConfig)
    spatial: SpatialConfig = field(default_factory=SpatialConfig)
    buckets: BucketConfig = field(default_factory=BucketConfig)
    binning: BinningConfig = field(default_factory=BinningConfig)
    speed: SpeedConfig = field(default_factory=SpeedConfig)
    input: InputConfig = field(default_factory=InputConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
