"""Hyperparameter grids.

``max_entropy_grid`` spreads candidates over the search space with an
optimized Latin hypercube, so a small grid still covers every range.
"""

from dataclasses import dataclass
import itertools

import numpy as np
import polars as pl
from scipy.stats import qmc


@dataclass(frozen=True)
class ParamRange:
    """Closed range for one hyperparameter.

    With ``log10=True`` the bounds are exponents: ``ParamRange(-2, -1,
    log10=True)`` spans 0.01 to 0.1.
    """
    low: float
    high: float
    kind: str = "float"
    log10: bool = False

    def __post_init__(self) -> None:
        if self.kind not in ("int", "float"):
            raise ValueError(f"kind must be 'int' or 'float', got {self.kind!r}")
        if self.low > self.high:
            raise ValueError(f"low ({self.low}) must not exceed high ({self.high})")

    def scale(self, unit: np.ndarray) -> list:
        """Map values in [0, 1] onto the range."""
        values = self.low + np.asarray(unit, dtype=np.float64) * (self.high - self.low)
        if self.log10:
            values = np.power(10.0, values)
        if self.kind == "int":
            return [int(v) for v in np.rint(values)]
        return [float(v) for v in values]

    def levels(self, n: int) -> list:
        """``n`` evenly spaced values across the range."""
        return list(dict.fromkeys(self.scale(np.linspace(0.0, 1.0, n))))


def _with_candidate_ids(rows: list[dict], names: list[str]) -> pl.DataFrame:
    if not rows:
        raise ValueError("Grid is empty")
    grid = pl.DataFrame(rows).select(names).unique(maintain_order=True)
    width = max(2, len(str(grid.height)))
    ids = [f"Model{i + 1:0{width}d}" for i in range(grid.height)]
    return grid.insert_column(0, pl.Series("candidate", ids))


def max_entropy_grid(
    ranges: dict[str, ParamRange],
    size: int = 20,
    seed: int | None = None,
) -> pl.DataFrame:
    """Space-filling grid of ``size`` candidates (fewer if rounding collides).

    Returns:
        Frame with a ``candidate`` id column and one column per parameter
    """
    if not ranges:
        raise ValueError("At least one parameter range is required")
    if size < 1:
        raise ValueError(f"size must be positive, got {size}")

    names = list(ranges)
    sampler = qmc.LatinHypercube(
        d=len(names),
        optimization="random-cd" if len(names) > 1 else None,
        rng=np.random.default_rng(seed),
    )
    unit = sampler.random(n=size)
    columns = {name: ranges[name].scale(unit[:, j]) for j, name in enumerate(names)}
    rows = [{name: columns[name][i] for name in names} for i in range(size)]
    return _with_candidate_ids(rows, names)


def regular_grid(ranges: dict[str, ParamRange], levels: int = 3) -> pl.DataFrame:
    """Full factorial grid with ``levels`` values per parameter."""
    if levels < 1:
        raise ValueError(f"levels must be positive, got {levels}")
    names = list(ranges)
    values = [ranges[name].levels(levels) for name in names]
    rows = [dict(zip(names, combo)) for combo in itertools.product(*values)]
    return _with_candidate_ids(rows, names)
