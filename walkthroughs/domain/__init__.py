"""Domain layer: entities and protocols."""

from .entities import (
    PRICE_RANGES,
    BoostedTreeConfig,
    LinearSvmConfig,
    RaceControl,
    ResampleResult,
    RaceResult,
    LastFitResult,
    summarize_fold_metrics,
)

from .protocols import (
    IMetric,
    IClassifier,
)

__all__ = [
    "PRICE_RANGES",
    "BoostedTreeConfig",
    "LinearSvmConfig",
    "RaceControl",
    "ResampleResult",
    "RaceResult",
    "LastFitResult",
    "summarize_fold_metrics",
    "IMetric",
    "IClassifier",
]
