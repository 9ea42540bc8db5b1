"""Figures for tuning and model evaluation."""

import matplotlib.pyplot as plt
import numpy as np
import polars as pl
import seaborn as sns
from matplotlib.figure import Figure

from walkthroughs.domain.entities import RaceResult


def plot_race(result: RaceResult) -> Figure:
    """Running mean of every candidate over the race stages.

    Lines stop at the stage where a candidate was eliminated; survivors
    run to the final fold.
    """
    history = result.history
    if history.height == 0:
        raise ValueError("Race history is empty")

    survivors = set(result.survivors)
    fig, (ax, ax_count) = plt.subplots(
        2, 1, figsize=(10, 8), sharex=True, gridspec_kw={"height_ratios": [3, 1]}
    )
    for (candidate,), part in history.group_by(["candidate"], maintain_order=True):
        part = part.sort("stage")
        alive = candidate in survivors
        ax.plot(
            part["stage"].to_numpy(),
            part["mean"].to_numpy(),
            marker="o",
            markersize=3,
            linewidth=1.8 if alive else 0.8,
            alpha=1.0 if alive else 0.4,
            label=candidate if alive else None,
        )
    ax.set_ylabel(f"mean {result.metric_name}")
    ax.set_title(f"Race on {result.metric_name} ({result.direction})")
    if survivors:
        ax.legend(title="survivors", fontsize=8)

    remaining = history.group_by("stage").agg(pl.len().alias("candidates")).sort("stage")
    ax_count.step(remaining["stage"].to_numpy(), remaining["candidates"].to_numpy(), where="mid")
    ax_count.set_xlabel("resamples evaluated")
    ax_count.set_ylabel("candidates")
    fig.tight_layout()
    return fig


def plot_confusion_matrix(table: pl.DataFrame, title: str = "Confusion matrix") -> Figure:
    """Heatmap of a ``truth, prediction, n`` confusion table."""
    labels = table["truth"].unique(maintain_order=True).to_list()
    index = {label: i for i, label in enumerate(labels)}
    counts = np.zeros((len(labels), len(labels)))
    for row in table.iter_rows(named=True):
        counts[index[row["prediction"]], index[row["truth"]]] = row["n"]

    fig, ax = plt.subplots(figsize=(1.4 * len(labels) + 3, 1.2 * len(labels) + 2))
    whole = np.allclose(counts, np.round(counts))
    sns.heatmap(
        counts,
        annot=True,
        fmt=".0f" if whole else ".1f",
        cmap="Blues",
        xticklabels=labels,
        yticklabels=labels,
        cbar=False,
        ax=ax,
    )
    ax.set_xlabel("Truth")
    ax.set_ylabel("Prediction")
    ax.set_title(title)
    fig.tight_layout()
    return fig


def plot_roc_curves(roc: pl.DataFrame, title: str = "ROC curves") -> Figure:
    """One-vs-rest ROC curves from ``roc_curve_table``."""
    fig, ax = plt.subplots(figsize=(7, 6))
    for (cls,), part in roc.group_by(["class"], maintain_order=True):
        ax.plot(1 - part["specificity"].to_numpy(), part["sensitivity"].to_numpy(), label=str(cls))
    ax.plot([0, 1], [0, 1], color="grey", linestyle="--", linewidth=1)
    ax.set_xlabel("1 - specificity")
    ax.set_ylabel("sensitivity")
    ax.set_xlim(0, 1)
    ax.set_ylim(0, 1)
    ax.set_aspect("equal")
    ax.legend(title="class", fontsize=8)
    ax.set_title(title)
    fig.tight_layout()
    return fig


def plot_feature_importance(
    importance: dict[str, float] | list[tuple[str, float]],
    top_n: int = 20,
) -> Figure:
    """Dot plot of the ``top_n`` most important features by gain."""
    items = importance.items() if isinstance(importance, dict) else importance
    ranked = sorted(items, key=lambda kv: kv[1], reverse=True)[:top_n]
    if not ranked:
        raise ValueError("No feature importances to plot")
    names = [name for name, _ in ranked]
    values = [value for _, value in ranked]

    fig, ax = plt.subplots(figsize=(8, 0.35 * len(names) + 1.5))
    y_pos = np.arange(len(names))
    ax.hlines(y_pos, 0, values, color="lightgrey")
    ax.scatter(values, y_pos, color="steelblue", zorder=3)
    ax.set_yticks(y_pos)
    ax.set_yticklabels(names)
    ax.invert_yaxis()
    ax.set_xlabel("Feature Importance (Gain)")
    ax.set_title(f"Top {len(names)} Feature Importance")
    fig.tight_layout()
    return fig


def plot_svm_coefficients(top: pl.DataFrame) -> Figure:
    """Largest linear SVM coefficients, one panel per sign.

    ``top`` is the output of ``top_coefficients``.
    """
    signs = top["sign"].unique(maintain_order=True).sort().to_list()
    fig, axes = plt.subplots(1, len(signs), figsize=(6 * len(signs), 6), squeeze=False)
    palette = sns.color_palette("husl", len(signs))

    for ax, sign, color in zip(axes[0], signs, palette):
        part = top.filter(pl.col("sign") == sign).with_columns(
            pl.col("estimate").abs().alias("magnitude")
        ).sort("magnitude")
        ax.barh(part["term"].to_list(), part["magnitude"].to_numpy(), color=color, edgecolor="black")
        ax.set_title(sign)
        ax.set_xlabel("|coefficient|")

    fig.suptitle("Which words are more likely in each class?")
    fig.tight_layout()
    return fig
