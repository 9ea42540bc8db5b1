"""Metric implementations for classification walkthroughs.

Provides class-based metrics (accuracy, precision, recall, multinomial log
loss, ROC AUC), metric sets by name and tidy confusion-matrix and ROC tables.
"""

from dataclasses import dataclass
from typing import Any, Callable

import numpy as np
import polars as pl
from sklearn.metrics import (
    accuracy_score,
    confusion_matrix,
    log_loss,
    precision_score,
    recall_score,
    roc_auc_score,
    roc_curve,
)

from walkthroughs.domain.protocols import IMetric


def _classes(y_true: np.ndarray, classes: list[Any] | None) -> list[Any]:
    if classes is not None:
        return list(classes)
    return np.unique(y_true).tolist()


def _require_proba(name: str, y_proba: np.ndarray | None) -> np.ndarray:
    if y_proba is None:
        raise ValueError(f"Metric '{name}' needs class probabilities")
    return np.asarray(y_proba, dtype=np.float64)


@dataclass(frozen=True)
class AccuracyMetric:
    """Share of correctly classified rows."""

    @property
    def name(self) -> str:
        return "accuracy"

    @property
    def direction(self) -> str:
        return "maximize"

    @property
    def needs_proba(self) -> bool:
        return False

    def compute(self, y_true, y_pred, y_proba=None, classes=None) -> float:
        return float(accuracy_score(y_true, y_pred))


@dataclass(frozen=True)
class PrecisionMetric:
    """Precision for the event class (macro averaged beyond two classes).

    The event class defaults to the first class, as in the walkthroughs.
    """

    event_level: str | None = None

    @property
    def name(self) -> str:
        return "precision"

    @property
    def direction(self) -> str:
        return "maximize"

    @property
    def needs_proba(self) -> bool:
        return False

    def compute(self, y_true, y_pred, y_proba=None, classes=None) -> float:
        labels = _classes(y_true, classes)
        if len(labels) > 2:
            return float(precision_score(y_true, y_pred, labels=labels, average="macro", zero_division=0))
        event = self.event_level if self.event_level is not None else labels[0]
        return float(precision_score(y_true, y_pred, pos_label=event, zero_division=0))


@dataclass(frozen=True)
class RecallMetric:
    """Recall (sensitivity) for the event class (macro averaged beyond two classes)."""

    event_level: str | None = None

    @property
    def name(self) -> str:
        return "recall"

    @property
    def direction(self) -> str:
        return "maximize"

    @property
    def needs_proba(self) -> bool:
        return False

    def compute(self, y_true, y_pred, y_proba=None, classes=None) -> float:
        labels = _classes(y_true, classes)
        if len(labels) > 2:
            return float(recall_score(y_true, y_pred, labels=labels, average="macro", zero_division=0))
        event = self.event_level if self.event_level is not None else labels[0]
        return float(recall_score(y_true, y_pred, pos_label=event, zero_division=0))


@dataclass(frozen=True)
class LogLossMetric:
    """Mean multinomial log loss of the predicted class probabilities."""

    @property
    def name(self) -> str:
        return "mn_log_loss"

    @property
    def direction(self) -> str:
        return "minimize"

    @property
    def needs_proba(self) -> bool:
        return True

    def compute(self, y_true, y_pred, y_proba=None, classes=None) -> float:
        proba = _require_proba(self.name, y_proba)
        return float(log_loss(y_true, proba, labels=_classes(y_true, classes)))


@dataclass(frozen=True)
class RocAucMetric:
    """Area under the ROC curve.

    Binary outcomes score the event class; multiclass outcomes use the
    Hand-Till one-vs-one average.
    """

    event_level: str | None = None

    @property
    def name(self) -> str:
        return "roc_auc"

    @property
    def direction(self) -> str:
        return "maximize"

    @property
    def needs_proba(self) -> bool:
        return True

    def compute(self, y_true, y_pred, y_proba=None, classes=None) -> float:
        proba = _require_proba(self.name, y_proba)
        labels = _classes(y_true, classes)
        y_true = np.asarray(y_true)
        if len(labels) == 2:
            event = self.event_level if self.event_level is not None else labels[0]
            idx = labels.index(event)
            return float(roc_auc_score(y_true == event, proba[:, idx]))
        return float(roc_auc_score(y_true, proba, multi_class="ovo", labels=labels))


@dataclass
class CustomMetric:
    """Wrapper for user-defined metric functions of ``(y_true, y_pred)``."""

    metric_name: str
    compute_fn: Callable[[np.ndarray, np.ndarray], float]
    metric_direction: str = "maximize"

    @property
    def name(self) -> str:
        return self.metric_name

    @property
    def direction(self) -> str:
        return self.metric_direction

    @property
    def needs_proba(self) -> bool:
        return False

    def compute(self, y_true, y_pred, y_proba=None, classes=None) -> float:
        return float(self.compute_fn(y_true, y_pred))


METRIC_FACTORIES: dict[str, Callable[..., Any]] = {
    "accuracy": lambda event_level=None: AccuracyMetric(),
    "precision": lambda event_level=None: PrecisionMetric(event_level),
    "recall": lambda event_level=None: RecallMetric(event_level),
    "mn_log_loss": lambda event_level=None: LogLossMetric(),
    "roc_auc": lambda event_level=None: RocAucMetric(event_level),
}


def metric_set(*names: str, event_level: str | None = None) -> list[IMetric]:
    """Build metric instances by name.

    Raises:
        ValueError: If a name is not a known metric
    """
    unknown = [n for n in names if n not in METRIC_FACTORIES]
    if unknown:
        raise ValueError(
            f"Unknown metric(s): {', '.join(unknown)}. Known: {', '.join(sorted(METRIC_FACTORIES))}"
        )
    return [METRIC_FACTORIES[n](event_level=event_level) for n in names]


def compute_all_metrics(
    y_true: np.ndarray,
    y_pred: np.ndarray,
    metrics: list[IMetric] | None = None,
    y_proba: np.ndarray | None = None,
    classes: list[Any] | None = None,
) -> dict[str, float]:
    """Compute all specified metrics.

    Args:
        y_true: Actual classes
        y_pred: Predicted classes
        metrics: Metric instances. If None, accuracy, precision and recall.
        y_proba: Class probabilities (columns follow ``classes``)
        classes: Class order; inferred from ``y_true`` when omitted

    Returns:
        Dictionary mapping metric names to computed values
    """
    if metrics is None:
        metrics = metric_set("accuracy", "precision", "recall")
    return {
        metric.name: metric.compute(y_true, y_pred, y_proba, classes)
        for metric in metrics
    }


def compute_baseline_metrics(
    y_test: np.ndarray,
    y_train: np.ndarray,
    classes: list[Any] | None = None,
) -> dict[str, float]:
    """Null-model metrics: predict the training majority class and shares.

    Useful for comparison against trained model performance.
    """
    labels = _classes(np.concatenate([np.asarray(y_train), np.asarray(y_test)]), classes)
    y_train = np.asarray(y_train)
    shares = np.array([np.mean(y_train == c) for c in labels], dtype=np.float64)
    majority = labels[int(np.argmax(shares))]

    baseline_pred = np.full(len(y_test), majority, dtype=object)
    baseline_proba = np.tile(np.clip(shares, 1e-15, 1.0), (len(y_test), 1))

    return {
        "baseline_accuracy": float(accuracy_score(np.asarray(y_test, dtype=object), baseline_pred)),
        "baseline_mn_log_loss": float(log_loss(y_test, baseline_proba, labels=labels)),
    }


def align_proba(proba: np.ndarray, fitted_classes: list[Any], classes: list[Any]) -> np.ndarray:
    """Reorder probability columns to ``classes``, zero-filling absent ones."""
    aligned = np.zeros((proba.shape[0], len(classes)), dtype=np.float64)
    position = {c: i for i, c in enumerate(classes)}
    for j, c in enumerate(fitted_classes):
        aligned[:, position[c]] = proba[:, j]
    return aligned


def confusion_matrix_table(
    y_true: np.ndarray,
    y_pred: np.ndarray,
    classes: list[Any] | None = None,
) -> pl.DataFrame:
    """Long confusion matrix with one row per (truth, prediction) cell."""
    labels = _classes(np.concatenate([np.asarray(y_true), np.asarray(y_pred)]), classes)
    matrix = confusion_matrix(y_true, y_pred, labels=labels)
    return pl.DataFrame({
        "truth": [t for t in labels for _ in labels],
        "prediction": [p for _ in labels for p in labels],
        "n": matrix.reshape(-1).astype(np.float64),
    })


def resampled_confusion_matrix(
    predictions: pl.DataFrame,
    classes: list[Any] | None = None,
) -> pl.DataFrame:
    """Mean confusion-matrix cell counts across resampling folds.

    Expects ``fold``, ``truth`` and ``prediction`` columns.
    """
    labels = classes or sorted(predictions["truth"].unique().to_list())
    per_fold = [
        confusion_matrix_table(part["truth"].to_numpy(), part["prediction"].to_numpy(), labels)
        .with_columns(pl.lit(fold).alias("fold"))
        for (fold,), part in predictions.group_by(["fold"], maintain_order=True)
    ]
    return (
        pl.concat(per_fold)
        .group_by(["truth", "prediction"], maintain_order=True)
        .agg(pl.col("n").mean())
    )


def roc_curve_table(
    y_true: np.ndarray,
    y_proba: np.ndarray,
    classes: list[Any],
) -> pl.DataFrame:
    """One-vs-rest ROC curves with ``class, threshold, sensitivity, specificity``."""
    y_true = np.asarray(y_true)
    y_proba = np.asarray(y_proba, dtype=np.float64)
    frames = []
    for idx, cls in enumerate(classes):
        positives = y_true == cls
        if positives.all() or not positives.any():
            continue
        fpr, tpr, thresholds = roc_curve(positives, y_proba[:, idx])
        frames.append(pl.DataFrame({
            "class": [str(cls)] * len(fpr),
            "threshold": thresholds.astype(np.float64),
            "sensitivity": tpr.astype(np.float64),
            "specificity": (1.0 - fpr).astype(np.float64),
        }))
    if not frames:
        raise ValueError("ROC curves need at least one class with both positives and negatives")
    return pl.concat(frames)
