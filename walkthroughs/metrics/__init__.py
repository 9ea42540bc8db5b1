"""Metrics module for model evaluation."""

from .metrics import (
    AccuracyMetric,
    PrecisionMetric,
    RecallMetric,
    LogLossMetric,
    RocAucMetric,
    CustomMetric,
    align_proba,
    compute_all_metrics,
    compute_baseline_metrics,
    confusion_matrix_table,
    metric_set,
    resampled_confusion_matrix,
    roc_curve_table,
)

__all__ = [
    "AccuracyMetric",
    "PrecisionMetric",
    "RecallMetric",
    "LogLossMetric",
    "RocAucMetric",
    "CustomMetric",
    "align_proba",
    "compute_all_metrics",
    "compute_baseline_metrics",
    "confusion_matrix_table",
    "metric_set",
    "resampled_confusion_matrix",
    "roc_curve_table",
]
