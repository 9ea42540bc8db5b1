"""Text features from free-text description columns.

Implements the word-level exploration used by both walkthroughs:
- Tokenization into one row per lowercase word
- Stop-word removal
- Word counts overall and per group
- Binomial trend models of word frequency against a numeric group value
  (used to find words that become more or less common as price rises)
"""

import re

import numpy as np
import polars as pl
import statsmodels.api as sm
from scipy import stats
from sklearn.feature_extraction.text import ENGLISH_STOP_WORDS
from statsmodels.stats.multitest import multipletests


TOKEN_PATTERN = r"[a-z0-9']+"

STOP_WORDS = frozenset(ENGLISH_STOP_WORDS)


def tokenize(df: pl.DataFrame, column: str = "description") -> pl.DataFrame:
    """Unnest a text column into one lowercase ``word`` per row.

    Punctuation is dropped, leading/trailing apostrophes are trimmed and
    the remaining columns of each row are repeated for its tokens.
    """
    return (
        df.with_columns(
            pl.col(column)
            .fill_null("")
            .str.to_lowercase()
            .str.extract_all(TOKEN_PATTERN)
            .alias("word")
        )
        .drop(column)
        .explode("word")
        .with_columns(pl.col("word").str.strip_chars("'"))
        .filter(pl.col("word").is_not_null() & (pl.col("word") != ""))
    )


def remove_stop_words(
    tokens: pl.DataFrame,
    extra: list[str] | None = None,
) -> pl.DataFrame:
    """Drop English stop words (and any ``extra`` words) from a token frame."""
    stop_words = set(STOP_WORDS)
    if extra:
        stop_words.update(extra)
    return tokens.filter(~pl.col("word").is_in(sorted(stop_words)))


def count_words(tokens: pl.DataFrame, by: list[str] | None = None) -> pl.DataFrame:
    """Count tokens per word (and per ``by`` columns), most frequent first."""
    keys = [*(by or []), "word"]
    return (
        tokens.group_by(keys)
        .agg(pl.len().alias("n"))
        .sort(["n", *keys], descending=[True] + [False] * len(keys))
    )


def top_words(
    tokens: pl.DataFrame,
    n: int = 100,
    exclude: list[str] | None = None,
) -> list[str]:
    """The ``n`` most frequent words overall, ties at the cutoff included."""
    counts = count_words(tokens)
    if exclude:
        counts = counts.filter(~pl.col("word").is_in(exclude))
    counts = counts.with_columns(pl.col("n").rank("min", descending=True).alias("rank"))
    return counts.filter(pl.col("rank") <= n)["word"].to_list()


def top_words_by_group(tokens: pl.DataFrame, group: str, n: int = 15) -> pl.DataFrame:
    """The ``n`` most frequent words within each level of ``group``."""
    return (
        count_words(tokens, [group])
        .with_columns(
            pl.col("n").rank("min", descending=True).over(group).alias("rank")
        )
        .filter(pl.col("rank") <= n)
        .drop("rank")
        .sort([group, "n"], descending=[False, True])
    )


def word_frequencies(
    tokens: pl.DataFrame,
    group: str,
    words: list[str] | None = None,
) -> pl.DataFrame:
    """Per-group word counts on a completed word x group grid.

    Every word/group combination is present (absent ones with ``n = 0``).
    ``total`` is the token count of the group over all words, and
    ``proportion = n / total``. When ``words`` is given, only those words
    are returned; totals still count every token.
    """
    counts = count_words(tokens, [group])
    grid = (
        counts.select("word").unique()
        .join(counts.select(group).unique(), how="cross")
        .join(counts, on=["word", group], how="left")
        .with_columns(pl.col("n").fill_null(0))
    )
    grid = grid.with_columns(
        pl.col("n").sum().over(group).alias("total")
    ).with_columns(
        (pl.col("n") / pl.col("total")).alias("proportion")
    )
    if words is not None:
        grid = grid.filter(pl.col("word").is_in(words))
    return grid.sort(["word", group])


def fit_binomial_trend(
    x: np.ndarray,
    successes: np.ndarray,
    failures: np.ndarray,
) -> tuple[float, float]:
    """Binomial GLM slope of ``successes`` against ``failures`` on ``x``.

    The response is the two-column count matrix ``[successes, failures]``,
    so for word trends ``n`` is weighed against the group's ``total``.
    Returns ``(estimate, std_error)`` of the ``x`` coefficient.
    """
    x = np.asarray(x, dtype=float)
    successes = np.asarray(successes, dtype=float)
    failures = np.asarray(failures, dtype=float)

    keep = (successes + failures) > 0
    x, successes, failures = x[keep], successes[keep], failures[keep]
    if x.size < 2 or np.ptp(x) == 0:
        return float("nan"), float("nan")

    fit = sm.GLM(
        np.column_stack([successes, failures]),
        sm.add_constant(x, has_constant="add"),
        family=sm.families.Binomial(),
    ).fit()
    return float(fit.params[1]), float(fit.bse[1])


def holm_adjust(p_values: np.ndarray) -> np.ndarray:
    """Holm step-down adjustment for multiple comparisons."""
    p = np.asarray(p_values, dtype=float)
    if p.size == 0:
        return p
    return multipletests(p, method="holm")[1]


def fit_word_trends(freqs: pl.DataFrame, x: str) -> pl.DataFrame:
    """Fit one binomial trend model per word against numeric column ``x``.

    Args:
        freqs: Output of :func:`word_frequencies` with a numeric ``x`` column
        x: Column holding the numeric group value (e.g. price)

    Returns:
        Frame with ``word, estimate, std_error, statistic, p_value`` where
        ``p_value`` is Holm-adjusted, sorted by descending ``estimate``
    """
    rows = []
    for (word,), part in freqs.group_by(["word"], maintain_order=True):
        n = part["n"].to_numpy()
        total = part["total"].to_numpy()
        estimate, std_error = fit_binomial_trend(part[x].to_numpy(), n, total)
        rows.append({"word": word, "estimate": estimate, "std_error": std_error})

    schema = {"word": pl.String, "estimate": pl.Float64, "std_error": pl.Float64}
    trends = pl.DataFrame(rows, schema=schema).filter(
        pl.col("estimate").is_not_nan() & pl.col("std_error").is_not_nan()
    )
    if trends.height == 0:
        return trends.with_columns(
            pl.lit(None, dtype=pl.Float64).alias("statistic"),
            pl.lit(None, dtype=pl.Float64).alias("p_value"),
        )

    statistic = trends["estimate"].to_numpy() / trends["std_error"].to_numpy()
    raw_p = 2 * stats.norm.sf(np.abs(statistic))
    return trends.with_columns(
        pl.Series("statistic", statistic),
        pl.Series("p_value", holm_adjust(raw_p)),
    ).sort("estimate", descending=True)


def split_signal_words(
    trends: pl.DataFrame,
    n: int = 12,
    alpha: float = 0.05,
) -> tuple[list[str], list[str]]:
    """Words whose frequency rises (first list) or falls (second) with ``x``.

    Only trends with adjusted ``p_value < alpha`` qualify; each list holds at
    most ``n`` words ordered by effect size.
    """
    significant = trends.filter(pl.col("p_value") < alpha)
    higher = (
        significant.filter(pl.col("estimate") > 0)
        .sort("estimate", descending=True)
        .head(n)["word"]
        .to_list()
    )
    lower = (
        significant.filter(pl.col("estimate") < 0)
        .sort("estimate")
        .head(n)["word"]
        .to_list()
    )
    return higher, lower


def regex_pattern(words: list[str]) -> str:
    """Alternation pattern matching any of ``words``."""
    if not words:
        raise ValueError("Cannot build a pattern from an empty word list")
    return "|".join(re.escape(w) for w in words)
