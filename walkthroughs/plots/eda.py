"""Exploratory figures: maps, word counts and word trends."""

import matplotlib.pyplot as plt
import numpy as np
import polars as pl
import seaborn as sns
from matplotlib.figure import Figure

from .common import facet_axes


def plot_hex_map(
    df: pl.DataFrame,
    value: str,
    x: str = "longitude",
    y: str = "latitude",
    gridsize: int = 50,
    title: str | None = None,
) -> Figure:
    """Mean of ``value`` over hexagonal bins of the coordinates."""
    data = df.select(x, y, value).drop_nulls()
    if data.height == 0:
        raise ValueError(f"No rows with {x}, {y} and {value} present")

    fig, ax = plt.subplots(figsize=(8, 7))
    hexes = ax.hexbin(
        data[x].to_numpy(),
        data[y].to_numpy(),
        C=data[value].cast(pl.Float64).to_numpy(),
        reduce_C_function=np.mean,
        gridsize=gridsize,
        cmap="viridis",
        mincnt=1,
    )
    fig.colorbar(hexes, ax=ax, label=f"mean {value}")
    ax.set_xlabel(x)
    ax.set_ylabel(y)
    ax.set_aspect("equal", adjustable="datalim")
    ax.set_title(title or f"Mean {value} by location")
    fig.tight_layout()
    return fig


def plot_top_words(top: pl.DataFrame, group: str, ncols: int = 3) -> Figure:
    """Horizontal word-count bars, one panel per level of ``group``.

    ``top`` is the output of ``top_words_by_group``.
    """
    levels = top[group].unique(maintain_order=True).to_list()
    fig, axes = facet_axes(len(levels), ncols=ncols, panel_size=(4.5, 4.5))
    palette = sns.color_palette("husl", len(levels))

    for ax, level, color in zip(axes, levels, palette):
        part = top.filter(pl.col(group) == level).sort("n")
        ax.barh(part["word"].to_list(), part["n"].to_numpy(), color=color, edgecolor="black")
        ax.set_title(str(level))
        ax.set_xlabel("n")

    fig.suptitle(f"Most common words by {group}")
    fig.tight_layout()
    return fig


def plot_word_trends(
    freqs: pl.DataFrame,
    words: list[str],
    x: str,
    ncols: int = 4,
) -> Figure:
    """Word share against ``x``, one panel per word.

    ``freqs`` is a ``word_frequencies`` frame with a numeric ``x`` column.
    """
    if not words:
        raise ValueError("No words to plot")
    fig, axes = facet_axes(len(words), ncols=ncols, panel_size=(3.5, 2.8), sharex=True)

    for ax, word in zip(axes, words):
        part = freqs.filter(pl.col("word") == word).sort(x)
        ax.plot(part[x].to_numpy(), part["proportion"].to_numpy(), marker="o", color="steelblue")
        ax.set_title(word)
        ax.yaxis.set_major_formatter(plt.FuncFormatter(lambda v, _: f"{v:.1%}"))

    for ax in axes:
        ax.set_xlabel(x)
    fig.suptitle(f"Word frequency by {x}")
    fig.tight_layout()
    return fig


def plot_word_volcano(trends: pl.DataFrame, alpha: float = 0.05, label_top: int = 10) -> Figure:
    """Effect size against adjusted significance for every word trend."""
    data = trends.drop_nulls(["estimate", "p_value"]).with_columns(
        (-pl.col("p_value").clip(lower_bound=1e-300).log10()).alias("neg_log_p"),
        (pl.col("p_value") < alpha).alias("significant"),
    )
    fig, ax = plt.subplots(figsize=(9, 6))
    sns.scatterplot(
        x=data["estimate"].to_numpy(),
        y=data["neg_log_p"].to_numpy(),
        hue=data["significant"].to_list(),
        palette={True: "firebrick", False: "grey"},
        alpha=0.7,
        ax=ax,
    )
    ax.axhline(-np.log10(alpha), color="black", linestyle="--", linewidth=1)
    ax.axvline(0, color="black", linewidth=0.5)

    labelled = data.filter(pl.col("significant")).sort("neg_log_p", descending=True).head(label_top)
    for row in labelled.iter_rows(named=True):
        ax.annotate(row["word"], (row["estimate"], row["neg_log_p"]), fontsize=8, alpha=0.8)

    ax.set_xlabel("Estimate (log-odds change per unit)")
    ax.set_ylabel("-log10 adjusted p-value")
    ax.set_title("Word trends")
    fig.tight_layout()
    return fig
