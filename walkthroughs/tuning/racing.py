"""ANOVA racing for hyperparameter search.

Every candidate is resampled on a few burn-in folds. After that, each new
fold is only spent on candidates that are not already clearly worse than
the current leader. "Clearly worse" comes from a linear model of the metric
on candidate and fold (folds act as blocks), with the leader as reference:
a candidate is dropped when the one-sided ``1 - alpha`` upper bound of its
difference to the leader is still on the losing side of zero.
"""

import logging
from typing import Any

import numpy as np
import polars as pl
import statsmodels.api as sm
from joblib import Parallel, delayed
from scipy import stats
from sklearn.base import clone

from walkthroughs.domain.entities import RaceControl, RaceResult
from walkthroughs.domain.protocols import IClassifier, IMetric
from walkthroughs.resampling.resampling import Split, fit_fold, fold_id, model_name_of


logger = logging.getLogger(__name__)


def _score_candidate(
    estimator: IClassifier,
    params: dict[str, Any],
    X: Any,
    y: np.ndarray,
    split: Split,
    metric: IMetric,
    classes: list[Any],
    fold: str,
) -> float:
    configured = clone(estimator).set_params(**params)
    rows, _ = fit_fold(configured, X, y, split, [metric], classes, fold)
    return rows[0]["estimate"]


def race_differences(
    scores: pl.DataFrame,
    direction: str,
    alpha: float,
) -> pl.DataFrame:
    """Compare every candidate against the leader with a blocked linear model.

    Args:
        scores: Long frame with ``candidate, fold, estimate`` where every
            candidate has been scored on the same folds
        direction: ``"maximize"`` or ``"minimize"``
        alpha: One-sided significance level

    Returns:
        Frame with ``candidate, mean, reference, difference, std_error,
        upper, keep`` where ``reference`` marks the leader.
        ``difference`` is on the "larger is better" scale, so non-leaders
        have ``difference <= 0``; ``keep`` is False for eliminated ones.
    """
    sign = 1.0 if direction == "maximize" else -1.0
    means = (
        scores.group_by("candidate", maintain_order=True)
        .agg(pl.col("estimate").mean().alias("mean"))
        .with_columns((pl.col("mean") * sign).alias("score"))
    )
    leader = means.sort("score", descending=True, maintain_order=True)["candidate"][0]
    score_of = dict(zip(means["candidate"].to_list(), means["score"].to_list()))
    others = [c for c in means["candidate"].to_list() if c != leader]
    folds = sorted(scores["fold"].unique().to_list())

    if not others:
        return means.select("candidate", "mean").with_columns(
            pl.lit(True).alias("reference"),
            pl.lit(0.0).alias("difference"),
            pl.lit(0.0).alias("std_error"),
            pl.lit(0.0).alias("upper"),
            pl.lit(True).alias("keep"),
        )

    candidate_col = scores["candidate"].to_numpy()
    fold_col = scores["fold"].to_numpy()
    response = scores["estimate"].to_numpy().astype(np.float64) * sign

    design = np.column_stack(
        [np.ones(len(response))]
        + [(candidate_col == c).astype(np.float64) for c in others]
        + [(fold_col == f).astype(np.float64) for f in folds[1:]]
    )
    fit = sm.OLS(response, design).fit()

    rows = [{
        "candidate": leader,
        "reference": True,
        "difference": 0.0,
        "std_error": 0.0,
        "upper": 0.0,
        "keep": True,
    }]
    if fit.df_resid <= 0:
        # no residual degrees of freedom: nothing can be eliminated yet
        rows.extend(
            {
                "candidate": c,
                "reference": False,
                "difference": score_of[c] - score_of[leader],
                "std_error": float("nan"),
                "upper": float("nan"),
                "keep": True,
            }
            for c in others
        )
    else:
        critical = stats.t.ppf(1.0 - alpha, fit.df_resid)
        for i, c in enumerate(others):
            # balanced design: the candidate effect is the difference in means
            difference = score_of[c] - score_of[leader]
            std_error = float(fit.bse[1 + i])
            upper = difference + critical * std_error
            rows.append({
                "candidate": c,
                "reference": False,
                "difference": difference,
                "std_error": std_error,
                "upper": upper,
                "keep": bool(upper >= 0.0),
            })

    return means.select("candidate", "mean").join(
        pl.DataFrame(rows), on="candidate", how="left"
    )


def tune_race_anova(
    estimator: IClassifier,
    X: Any,
    y: np.ndarray,
    folds: list[Split],
    grid: pl.DataFrame,
    metric: IMetric,
    control: RaceControl | None = None,
    n_jobs: int = 1,
    param_prefix: str = "",
    classes: list[Any] | None = None,
    seed: int | None = None,
) -> RaceResult:
    """Race the candidates in ``grid`` over ``folds`` on a single metric.

    Args:
        estimator: Unfitted estimator or pipeline
        X: Predictors
        y: Outcome classes
        folds: Resampling splits
        grid: Candidates, one column per parameter (plus optional ``candidate``)
        metric: Metric instance to race on
        control: Burn-in, tie and significance settings
        n_jobs: Parallel workers for model fits
        param_prefix: Prepended to grid column names for ``set_params``
            (e.g. ``"model__"`` for a pipeline step)
        classes: Class order; inferred from ``y`` when omitted
        seed: Seed for the fold order when ``control.randomize``

    Returns:
        RaceResult with every evaluated score and the race history
    """
    control = control or RaceControl()
    y = np.asarray(y)
    classes = list(classes) if classes is not None else np.unique(y).tolist()

    if control.burn_in > len(folds):
        raise ValueError(
            f"burn_in ({control.burn_in}) exceeds the number of resamples ({len(folds)})"
        )
    if grid.height == 0:
        raise ValueError("Grid has no candidates")
    if "candidate" not in grid.columns:
        ids = [f"Model{i + 1:02d}" for i in range(grid.height)]
        grid = grid.insert_column(0, pl.Series("candidate", ids))

    param_names = [c for c in grid.columns if c != "candidate"]
    params_by_candidate = {
        row["candidate"]: {f"{param_prefix}{k}": row[k] for k in param_names}
        for row in grid.iter_rows(named=True)
    }

    order = np.arange(len(folds))
    if control.randomize:
        order = np.random.default_rng(seed).permutation(len(folds))
    fold_names = [fold_id(int(i)) for i in order]

    logger.info(
        "Racing %d candidates of %s to %s %s over %d resamples",
        grid.height, model_name_of(estimator), metric.direction, metric.name, len(folds),
    )

    results: list[dict[str, Any]] = []
    history: list[dict[str, Any]] = []
    eliminations: list[dict[str, Any]] = []

    def evaluate(candidates: list[str], positions: list[int]) -> None:
        tasks = [(c, p) for p in positions for c in candidates]
        scores = Parallel(n_jobs=n_jobs)(
            delayed(_score_candidate)(
                estimator, params_by_candidate[c], X, y, folds[order[p]], metric, classes, fold_names[p],
            )
            for c, p in tasks
        )
        results.extend(
            {"candidate": c, "fold": fold_names[p], "stage": p + 1, "estimate": s}
            for (c, p), s in zip(tasks, scores)
        )

    def record(stage: int, candidates: list[str]) -> None:
        frame = pl.DataFrame(results).filter(pl.col("candidate").is_in(candidates))
        for row in frame.group_by("candidate", maintain_order=True).agg(
            pl.col("estimate").mean().alias("mean"), pl.len().alias("n")
        ).iter_rows(named=True):
            history.append({"stage": stage, **row})

    alive = grid["candidate"].to_list()
    evaluate(alive, list(range(control.burn_in)))
    record(control.burn_in, alive)

    ties = 0
    for position in range(control.burn_in, len(folds)):
        if len(alive) > 1:
            completed = pl.DataFrame(results).filter(pl.col("candidate").is_in(alive))
            comparison = race_differences(
                completed.select("candidate", "fold", "estimate"), metric.direction, control.alpha
            )
            dropped = comparison.filter(~pl.col("keep"))
            reason = "anova"

            if dropped.height == 0 and len(alive) == 2:
                ties += 1
                if ties >= control.num_ties:
                    dropped = comparison.filter(~pl.col("reference")).sort("difference").head(1)
                    reason = "tie"

            for row in dropped.iter_rows(named=True):
                eliminations.append({
                    "candidate": row["candidate"],
                    "stage": position,
                    "mean": row["mean"],
                    "difference": row["difference"],
                    "reason": reason,
                })
            alive = [c for c in alive if c not in set(dropped["candidate"].to_list())]

            if control.verbose_elim:
                logger.info(
                    "%s: %d eliminated; %d candidates remain",
                    fold_names[position - 1], dropped.height, len(alive),
                )

        evaluate(alive, [position])
        record(position + 1, alive)

    return RaceResult(
        results=pl.DataFrame(results),
        candidates=grid,
        history=pl.DataFrame(history),
        eliminations=eliminations,
        metric_name=metric.name,
        direction=metric.direction,
        n_folds=len(folds),
    )
