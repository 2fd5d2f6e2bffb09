import os
import sys
import hydra
from omegaconf import DictConfig, OmegaConf

# Add src to path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from src.common.config.manager import ConfigManager
from src.common.exceptions import TelemetryError
from src.common.logging import setup_logger
from src.telemetry.application.builder import GridPipelineBuilder

logger = setup_logger("run_pipeline")

@hydra.main(version_base=None, config_path="../conf", config_name="config")
def main(cfg: DictConfig):
    pipeline_cfg = ConfigManager.validate(
        OmegaConf.merge(ConfigManager.defaults(), cfg.pipeline)
    )
    logger.info(f"Configuration:\n{OmegaConf.to_yaml(pipeline_cfg)}")

    builder = GridPipelineBuilder(pipeline_cfg)
    try:
        pipeline = (
            builder
            .build_regions()
            .build_timestamps()
            .build_assigner()
            .build_bucketers()
            .build_binner()
            .build_persistence()
            .build_source()
            .build_pipeline()
        )
        products = pipeline.run(builder.source.read())
    except TelemetryError as e:
        logger.error(f"Run aborted: {e}")
        sys.exit(1)

    for path in products.files:
        logger.info(f"Wrote {path}")
    logger.info(f"Metrics: {products.metrics.to_dict()}")

if __name__ == "__main__":
    main()
