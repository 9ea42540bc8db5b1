"""End-to-end pipelines for the two walkthroughs."""

from .artifacts import ArtifactStore
from .config import (
    PipelineConfig,
    PathsConfig,
    SplitConfig,
    RaceConfig,
    AustinHousingConfig,
    NetflixTitlesConfig,
    load_config,
    get_default_config,
)
from .austin_housing import (
    AustinHousingPipeline,
    AustinHousingResult,
    WordSignals,
    run_austin_housing,
)
from .netflix_titles import (
    NetflixTitlesPipeline,
    NetflixTitlesResult,
    run_netflix_titles,
)

__all__ = [
    # Config
    "PipelineConfig",
    "PathsConfig",
    "SplitConfig",
    "RaceConfig",
    "AustinHousingConfig",
    "NetflixTitlesConfig",
    "load_config",
    "get_default_config",
    # Artifacts
    "ArtifactStore",
    # Austin housing
    "AustinHousingPipeline",
    "AustinHousingResult",
    "WordSignals",
    "run_austin_housing",
    # Netflix titles
    "NetflixTitlesPipeline",
    "NetflixTitlesResult",
    "run_netflix_titles",
]
