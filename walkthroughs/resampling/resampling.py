"""Data splitting and resampled model fitting.

Covers the resampling half of both walkthroughs:
1. A stratified train/test split
2. Stratified v-fold cross-validation on the training set
3. Fitting a model on each fold and scoring it on the held-out rows
4. A final fit on all training rows, scored once on the test set
"""

import logging
from typing import Any

import numpy as np
import polars as pl
import scipy.sparse as sp
from joblib import Parallel, delayed
from sklearn.base import clone
from sklearn.model_selection import StratifiedKFold, train_test_split

from walkthroughs.domain.entities import LastFitResult, ResampleResult
from walkthroughs.domain.protocols import IClassifier, IMetric
from walkthroughs.metrics.metrics import align_proba, compute_all_metrics


logger = logging.getLogger(__name__)

Split = tuple[np.ndarray, np.ndarray]


def take_rows(X: Any, idx: np.ndarray) -> Any:
    """Select rows from a polars frame, sparse matrix, array or list."""
    idx = np.asarray(idx, dtype=np.int64)
    if isinstance(X, pl.DataFrame):
        return X.select(pl.all().gather(idx))
    if isinstance(X, pl.Series):
        return X.gather(idx)
    if sp.issparse(X):
        return X[idx]
    if isinstance(X, list):
        return [X[i] for i in idx]
    return np.asarray(X)[idx]


def model_name_of(estimator: Any) -> str:
    """Readable name for an estimator or the final step of a pipeline."""
    final = estimator.steps[-1][1] if hasattr(estimator, "steps") else estimator
    return getattr(final, "model_name", type(final).__name__)


def initial_split(
    df: pl.DataFrame,
    strata: str | None = None,
    prop: float = 0.75,
    seed: int = 123,
) -> tuple[pl.DataFrame, pl.DataFrame]:
    """Split rows into training (``prop``) and testing sets.

    Args:
        df: Full dataset
        strata: Optional column to stratify on
        prop: Share of rows used for training
        seed: Random seed

    Returns:
        Tuple of (train, test) frames
    """
    if not 0 < prop < 1:
        raise ValueError(f"prop must be in (0, 1), got {prop}")
    if strata is not None and strata not in df.columns:
        raise ValueError(f"Stratification column '{strata}' not found")

    stratify = df[strata].to_numpy() if strata is not None else None
    train_idx, test_idx = train_test_split(
        np.arange(df.height),
        train_size=prop,
        random_state=seed,
        stratify=stratify,
    )
    return take_rows(df, np.sort(train_idx)), take_rows(df, np.sort(test_idx))


def vfold_cv(
    y: np.ndarray,
    v: int = 10,
    seed: int = 123,
) -> list[Split]:
    """Stratified v-fold splits as ``(analysis_idx, assessment_idx)`` pairs."""
    if v < 2:
        raise ValueError(f"v must be at least 2, got {v}")
    y = np.asarray(y)
    splitter = StratifiedKFold(n_splits=v, shuffle=True, random_state=seed)
    return list(splitter.split(np.zeros(len(y)), y))


def fold_id(index: int) -> str:
    return f"Fold{index + 1:02d}"


def prediction_frame(
    row_ids: np.ndarray,
    truth: np.ndarray,
    prediction: np.ndarray,
    proba: np.ndarray | None,
    classes: list[Any],
    fold: str | None = None,
) -> pl.DataFrame:
    """Tidy predictions with one ``pred_<class>`` column per class probability."""
    data: dict[str, Any] = {
        "row": np.asarray(row_ids, dtype=np.int64),
        "truth": [str(t) for t in truth],
        "prediction": [str(p) for p in prediction],
    }
    if proba is not None:
        for idx, cls in enumerate(classes):
            data[f"pred_{cls}"] = proba[:, idx].astype(np.float64)
    frame = pl.DataFrame(data)
    if fold is not None:
        frame = frame.with_columns(pl.lit(fold).alias("fold"))
    return frame


def _predict(model: Any, X: Any, metrics: list[IMetric], classes: list[Any], want_proba: bool):
    prediction = model.predict(X)
    proba = None
    needs_proba = any(m.needs_proba for m in metrics)
    if (needs_proba or want_proba) and hasattr(model, "predict_proba"):
        proba = align_proba(model.predict_proba(X), list(model.classes_), classes)
    elif needs_proba:
        raise ValueError(f"{model_name_of(model)} does not produce class probabilities")
    return prediction, proba


def fit_fold(
    estimator: IClassifier,
    X: Any,
    y: np.ndarray,
    split: Split,
    metrics: list[IMetric],
    classes: list[Any],
    fold: str,
    save_pred: bool = False,
) -> tuple[list[dict[str, Any]], pl.DataFrame | None]:
    """Fit a clone on the analysis rows and score it on the assessment rows."""
    analysis_idx, assess_idx = split
    model = clone(estimator)
    model.fit(take_rows(X, analysis_idx), y[analysis_idx])

    prediction, proba = _predict(model, take_rows(X, assess_idx), metrics, classes, save_pred)
    scores = compute_all_metrics(y[assess_idx], prediction, metrics, proba, classes)
    rows = [{"fold": fold, "metric": name, "estimate": value} for name, value in scores.items()]

    predictions = None
    if save_pred:
        predictions = prediction_frame(assess_idx, y[assess_idx], prediction, proba, classes, fold)
    return rows, predictions


def fit_resamples(
    estimator: IClassifier,
    X: Any,
    y: np.ndarray,
    folds: list[Split],
    metrics: list[IMetric],
    n_jobs: int = 1,
    save_pred: bool = False,
    classes: list[Any] | None = None,
) -> ResampleResult:
    """Fit and score ``estimator`` on every fold.

    Args:
        estimator: Unfitted scikit-learn compatible estimator or pipeline
        X: Predictors (frame, matrix or text array)
        y: Outcome classes
        folds: Splits from :func:`vfold_cv`
        metrics: Metric instances
        n_jobs: Parallel workers across folds
        save_pred: Keep out-of-fold predictions
        classes: Class order; inferred from ``y`` when omitted

    Returns:
        ResampleResult with per-fold metrics and optional predictions
    """
    y = np.asarray(y)
    classes = list(classes) if classes is not None else np.unique(y).tolist()
    name = model_name_of(estimator)
    logger.info("Resampling %s over %d folds", name, len(folds))

    outputs = Parallel(n_jobs=n_jobs)(
        delayed(fit_fold)(estimator, X, y, split, metrics, classes, fold_id(i), save_pred)
        for i, split in enumerate(folds)
    )

    rows = [row for fold_rows, _ in outputs for row in fold_rows]
    predictions = None
    if save_pred:
        predictions = pl.concat([p for _, p in outputs if p is not None])

    return ResampleResult(
        fold_metrics=pl.DataFrame(rows),
        model_name=name,
        predictions=predictions,
        classes=[str(c) for c in classes],
    )


def last_fit(
    estimator: IClassifier,
    X_train: Any,
    y_train: np.ndarray,
    X_test: Any,
    y_test: np.ndarray,
    metrics: list[IMetric],
    classes: list[Any] | None = None,
) -> LastFitResult:
    """Fit on the whole training set and evaluate once on the test set."""
    y_train = np.asarray(y_train)
    y_test = np.asarray(y_test)
    if classes is None:
        classes = np.unique(np.concatenate([y_train, y_test])).tolist()

    model = clone(estimator)
    model.fit(X_train, y_train)
    prediction, proba = _predict(model, X_test, metrics, classes, want_proba=True)
    scores = compute_all_metrics(y_test, prediction, metrics, proba, classes)

    logger.info("Final fit of %s: %s", model_name_of(model), scores)
    return LastFitResult(
        metrics=scores,
        predictions=prediction_frame(np.arange(len(y_test)), y_test, prediction, proba, classes),
        estimator=model,
        model_name=model_name_of(model),
        classes=[str(c) for c in classes],
    )
