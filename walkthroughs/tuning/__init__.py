"""Hyperparameter grids and ANOVA racing."""

from .grid import ParamRange, max_entropy_grid, regular_grid
from .racing import race_differences, tune_race_anova

__all__ = [
    "ParamRange",
    "max_entropy_grid",
    "race_differences",
    "regular_grid",
    "tune_race_anova",
]
