"""Train/test splitting, cross-validation and resampled fitting."""

from .resampling import (
    fit_fold,
    fit_resamples,
    fold_id,
    initial_split,
    last_fit,
    model_name_of,
    prediction_frame,
    take_rows,
    vfold_cv,
)

__all__ = [
    "fit_fold",
    "fit_resamples",
    "fold_id",
    "initial_split",
    "last_fit",
    "model_name_of",
    "prediction_frame",
    "take_rows",
    "vfold_cv",
]
