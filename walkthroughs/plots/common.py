"""Shared figure helpers."""

import math
from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np
from matplotlib.figure import Figure


def facet_axes(
    n_panels: int,
    ncols: int = 3,
    panel_size: tuple[float, float] = (4.5, 3.5),
    sharex: bool = False,
    sharey: bool = False,
) -> tuple[Figure, list]:
    """Grid of axes for ``n_panels`` facets; unused trailing axes are hidden."""
    if n_panels < 1:
        raise ValueError("Nothing to plot")
    ncols = min(ncols, n_panels)
    nrows = math.ceil(n_panels / ncols)
    fig, axes = plt.subplots(
        nrows,
        ncols,
        figsize=(panel_size[0] * ncols, panel_size[1] * nrows),
        sharex=sharex,
        sharey=sharey,
        squeeze=False,
    )
    flat = list(np.asarray(axes).reshape(-1))
    for ax in flat[n_panels:]:
        ax.set_visible(False)
    return fig, flat[:n_panels]


def save_figure(fig: Figure, path: Path | str, dpi: int = 150) -> Path:
    """Write ``fig`` as PNG and release it."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(path, dpi=dpi, bbox_inches="tight")
    plt.close(fig)
    return path
