from omegaconf import DictConfig, OmegaConf
from omegaconf.errors import OmegaConfBaseException
from pathlib import Path
from typing import Optional

from .models import PipelineConfig, TIE_BREAKS
from ..exceptions import ConfigurationError

class ConfigManager:
    """Centralises loading and validation of pipeline configuration"""

    REQUIRED_KEYS = ['timestamps', 'spatial', 'buckets', 'binning']

    def __init__(self, config_dir: Path = Path("conf")):
        self.config_dir = config_dir

    @staticmethod
    def defaults() -> DictConfig:
        return OmegaConf.structured(PipelineConfig)

    def load_pipeline_config(self, profile: str = "default") -> DictConfig:
        """Loads a pipeline profile and merges it over the structured defaults"""
        config_path = self.config_dir / "pipeline" / f"{profile}.yaml"

        if not config_path.exists():
            raise ConfigurationError(f"Config not found: {config_path}")

        try:
            cfg = OmegaConf.merge(self.defaults(), OmegaConf.load(config_path))
        except OmegaConfBaseException as e:
            raise ConfigurationError(f"Invalid config {config_path}: {e}") from e

        return self.validate(cfg)

    @classmethod
    def from_dict(cls, overrides: Optional[dict] = None) -> DictConfig:
        cfg = cls.defaults()
        if overrides:
            try:
                cfg = OmegaConf.merge(cfg, OmegaConf.create(overrides))
            except OmegaConfBaseException as e:
                raise ConfigurationError(f"Invalid config overrides: {e}") from e
        return cls.validate(cfg)

    @classmethod
    def validate(cls, cfg: DictConfig) -> DictConfig:
        for key in cls.REQUIRED_KEYS:
            if key not in cfg:
                raise ConfigurationError(f"Missing required config key: {key}")

        if cfg.binning.n_bins < 1:
            raise ConfigurationError("binning.n_bins must be at least 1")
        if cfg.spatial.tie_break not in TIE_BREAKS:
            raise ConfigurationError(
                f"spatial.tie_break must be one of {TIE_BREAKS}, got {cfg.spatial.tie_break!r}"
            )
        if cfg.spatial.workers < 1:
            raise ConfigurationError("spatial.workers must be at least 1")
        for name in ('snapshot_minutes', 'grid_minutes'):
            minutes = cfg.buckets[name]
            if minutes <= 0 or (24 * 60) % minutes != 0:
                raise ConfigurationError(
                    f"buckets.{name}={minutes} must be positive and divide a day evenly"
                )
        return cfg
