"""Domain entities for the walkthrough pipelines."""

from dataclasses import dataclass, field
from typing import Any

import numpy as np
import polars as pl


PRICE_RANGES = [
    "0-250000",
    "250000-350000",
    "350000-450000",
    "450000-650000",
    "650000+",
]


@dataclass(frozen=True)
class BoostedTreeConfig:
    """Hyperparameters for the boosted tree classifier.

    Names follow the model-agnostic vocabulary used in the walkthroughs:
    ``trees`` boosting rounds, ``min_n`` minimum child weight, ``mtry``
    columns sampled per split, ``sample_size`` row subsample fraction.
    """
    trees: int = 1000
    tree_depth: int = 6
    min_n: int = 1
    mtry: int | None = None
    sample_size: float = 1.0
    learn_rate: float = 0.3
    random_state: int = 42


@dataclass(frozen=True)
class LinearSvmConfig:
    """Configuration for the TF-IDF + SMOTE + linear SVM workflow."""
    max_tokens: int = 1000
    cost: float = 1.0
    smote_neighbors: int = 5
    random_state: int = 42


@dataclass(frozen=True)
class RaceControl:
    """Control options for ANOVA racing."""
    burn_in: int = 3
    num_ties: int = 10
    alpha: float = 0.05
    randomize: bool = True
    verbose_elim: bool = True

    def __post_init__(self) -> None:
        if self.burn_in < 2:
            raise ValueError(f"burn_in must be at least 2, got {self.burn_in}")
        if not 0 < self.alpha < 1:
            raise ValueError(f"alpha must be in (0, 1), got {self.alpha}")
        if self.num_ties < 1:
            raise ValueError(f"num_ties must be positive, got {self.num_ties}")


@dataclass
class ResampleResult:
    """Per-fold metrics (and optionally predictions) from cross-validation."""
    fold_metrics: pl.DataFrame
    model_name: str
    predictions: pl.DataFrame | None = None
    classes: list[str] = field(default_factory=list)

    def collect_metrics(self) -> pl.DataFrame:
        """Summarize fold metrics as mean, count and standard error."""
        return summarize_fold_metrics(self.fold_metrics, ["metric"])

    def summary(self) -> str:
        lines = [f"Resampling Results for: {self.model_name}", "-" * 50]
        for row in self.collect_metrics().iter_rows(named=True):
            lines.append(
                f"{row['metric']}: {row['mean']:.6f} (std_err {row['std_err']:.6f}, n={row['n']})"
            )
        return "\n".join(lines)


@dataclass
class RaceResult:
    """Outcome of a racing hyperparameter search.

    ``results`` holds one row per evaluated (candidate, fold) pair and
    ``history`` one row per (stage, candidate) still in the race, with the
    running mean over the folds seen so far.
    """
    results: pl.DataFrame
    candidates: pl.DataFrame
    history: pl.DataFrame
    eliminations: list[dict[str, Any]]
    metric_name: str
    direction: str
    n_folds: int

    @property
    def param_names(self) -> list[str]:
        return [c for c in self.candidates.columns if c != "candidate"]

    @property
    def survivors(self) -> list[str]:
        eliminated = {e["candidate"] for e in self.eliminations}
        return [c for c in self.candidates["candidate"].to_list() if c not in eliminated]

    def collect_metrics(self) -> pl.DataFrame:
        """Mean metric per candidate over the folds it was evaluated on."""
        summary = summarize_fold_metrics(self.results, ["candidate"])
        return self.candidates.join(summary, on="candidate", how="left").with_columns(
            pl.lit(self.metric_name).alias("metric")
        )

    def show_best(self, n: int = 5) -> pl.DataFrame:
        """Top ``n`` candidates that were evaluated on every fold."""
        complete = self.collect_metrics().filter(pl.col("n") == self.n_folds)
        return complete.sort("mean", descending=self.direction == "maximize").head(n)

    def select_best(self) -> dict[str, Any]:
        """Parameters of the best fully-resampled candidate."""
        best = self.show_best(1)
        if best.height == 0:
            raise RuntimeError("No candidate was evaluated on every resample")
        row = best.row(0, named=True)
        return {name: _to_python(row[name]) for name in self.param_names}


@dataclass
class LastFitResult:
    """A model fitted on the full training set and evaluated once on the test set."""
    metrics: dict[str, float]
    predictions: pl.DataFrame
    estimator: Any
    model_name: str
    classes: list[str] = field(default_factory=list)

    def summary(self) -> str:
        lines = [f"Final Fit for: {self.model_name}", "-" * 50]
        for metric_name, value in self.metrics.items():
            lines.append(f"{metric_name}: {value:.6f}")
        return "\n".join(lines)


def summarize_fold_metrics(frame: pl.DataFrame, by: list[str]) -> pl.DataFrame:
    """Aggregate a long ``estimate`` column into mean / n / std_err by group."""
    return (
        frame.group_by(by, maintain_order=True)
        .agg([
            pl.col("estimate").mean().alias("mean"),
            pl.col("estimate").count().alias("n"),
            pl.col("estimate").std().alias("std"),
        ])
        .with_columns(
            (pl.col("std").fill_null(0.0) / pl.col("n").cast(pl.Float64).sqrt()).alias("std_err")
        )
        .drop("std")
    )


def _to_python(value: Any) -> Any:
    if isinstance(value, np.generic):
        return value.item()
    return value
