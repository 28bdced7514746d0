from .loader import load_config, load_config_with_overrides
from .schema import (
    PipelineConfig,
    EnsemblConfig,
    BiomartConfig,
    IndexConfig,
    OrthologConfig,
)

__all__ = [
    "load_config",
    "load_config_with_overrides",
    "PipelineConfig",
    "EnsemblConfig",
    "BiomartConfig",
    "IndexConfig",
    "OrthologConfig",
]
