"""Preprocessing recipe for the Austin housing listings.

Turns a raw listings frame into a numeric model matrix:
- Numeric predictors passed through (nulls become NaN for xgboost)
- Regex indicator features over the listing description
- Nominal predictors with rare and unseen levels pooled into ``other``
- Dummy encoding with the first retained level as reference
"""

import re

import numpy as np
import polars as pl
from sklearn.base import BaseEstimator, TransformerMixin

from walkthroughs.data.loading import HOUSING_NOMINAL_COLUMNS, HOUSING_NUMERIC_COLUMNS


UNKNOWN_LEVEL = "unknown"
OTHER_LEVEL = "other"


def _clean_level(level: str) -> str:
    return re.sub(r"\W+", "_", level).strip("_").lower() or "blank"


class HousingRecipe(TransformerMixin, BaseEstimator):
    """Fitted preprocessing for listings frames.

    Args:
        patterns: Mapping of indicator name to regex, matched against
            ``text_column``. A listing gets 1 when the pattern matches.
        numeric_columns: Columns passed through as floats
        nominal_columns: Columns pooled and dummy encoded
        text_column: Free-text column used by ``patterns`` and then dropped
        other_threshold: Levels rarer than this training share are pooled
        ignore_case: Match ``patterns`` case-insensitively
    """

    def __init__(
        self,
        patterns: dict[str, str] | None = None,
        numeric_columns: list[str] | None = None,
        nominal_columns: list[str] | None = None,
        text_column: str = "description",
        other_threshold: float = 0.05,
        ignore_case: bool = False,
    ) -> None:
        self.patterns = patterns
        self.numeric_columns = numeric_columns
        self.nominal_columns = nominal_columns
        self.text_column = text_column
        self.other_threshold = other_threshold
        self.ignore_case = ignore_case

    def _numeric(self) -> list[str]:
        return list(HOUSING_NUMERIC_COLUMNS if self.numeric_columns is None else self.numeric_columns)

    def _nominal(self) -> list[str]:
        return list(HOUSING_NOMINAL_COLUMNS if self.nominal_columns is None else self.nominal_columns)

    def _required(self) -> list[str]:
        required = self._numeric() + self._nominal()
        if self.patterns:
            required.append(self.text_column)
        return required

    def fit(self, X: pl.DataFrame, y=None) -> "HousingRecipe":
        missing = [c for c in self._required() if c not in X.columns]
        if missing:
            raise ValueError(f"Recipe input is missing columns: {', '.join(missing)}")
        if not 0 <= self.other_threshold < 1:
            raise ValueError(f"other_threshold must be in [0, 1), got {self.other_threshold}")

        self.levels_: dict[str, list[str]] = {}
        for col in self._nominal():
            shares = (
                X.select(pl.col(col).cast(pl.String).fill_null(UNKNOWN_LEVEL))
                .to_series()
                .value_counts(normalize=True, name="share")
            )
            kept = sorted(
                shares.filter(pl.col("share") >= self.other_threshold)[col].to_list()
            )
            # a level spelled like the pool shares its dummy column, so it joins the pool
            kept = [level for level in kept if _clean_level(level) != OTHER_LEVEL]
            cleaned: dict[str, str] = {}
            for level in kept:
                clash = cleaned.setdefault(_clean_level(level), level)
                if clash != level:
                    raise ValueError(
                        f"Levels {clash!r} and {level!r} of {col} both encode as "
                        f"{col}_{_clean_level(level)}"
                    )
            self.levels_[col] = kept + [OTHER_LEVEL]

        names = self._numeric() + list((self.patterns or {}).keys())
        for col, levels in self.levels_.items():
            names.extend(f"{col}_{_clean_level(level)}" for level in levels[1:])
        self.feature_names_out_ = np.asarray(names, dtype=object)
        return self

    def _check_fitted(self) -> None:
        if not hasattr(self, "levels_"):
            raise RuntimeError("Recipe must be fitted before transform")

    def _pooled(self, col: str) -> pl.Expr:
        kept = self.levels_[col][:-1]
        value = pl.col(col).cast(pl.String).fill_null(UNKNOWN_LEVEL)
        return pl.when(value.is_in(pl.Series(kept, dtype=pl.String))).then(value).otherwise(pl.lit(OTHER_LEVEL))

    def transform(self, X: pl.DataFrame) -> np.ndarray:
        self._check_fitted()
        missing = [c for c in self._required() if c not in X.columns]
        if missing:
            raise ValueError(f"Recipe input is missing columns: {', '.join(missing)}")

        exprs = [pl.col(c).cast(pl.Float64) for c in self._numeric()]

        flags = "(?i)" if self.ignore_case else ""
        for name, pattern in (self.patterns or {}).items():
            exprs.append(
                pl.col(self.text_column)
                .fill_null("")
                .str.contains(f"{flags}{pattern}")
                .cast(pl.Float64)
                .alias(name)
            )

        for col, levels in self.levels_.items():
            pooled = self._pooled(col)
            for level in levels[1:]:
                exprs.append(
                    (pooled == level).cast(pl.Float64).alias(f"{col}_{_clean_level(level)}")
                )

        matrix = X.select(exprs).to_numpy().astype(np.float64)
        return matrix

    def get_feature_names_out(self, input_features=None) -> np.ndarray:
        self._check_fitted()
        return self.feature_names_out_.copy()

    def pooled_levels(self, X: pl.DataFrame) -> pl.DataFrame:
        """Nominal columns after unknown / other pooling, for inspection."""
        self._check_fitted()
        return X.select([self._pooled(col).alias(col) for col in self.levels_])
