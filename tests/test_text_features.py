import numpy as np
import polars as pl
import pytest

from walkthroughs.data.loading import price_expr
from walkthroughs.features.text import (
    count_words,
    fit_binomial_trend,
    fit_word_trends,
    holm_adjust,
    regex_pattern,
    remove_stop_words,
    split_signal_words,
    tokenize,
    top_words,
    top_words_by_group,
    word_frequencies,
)


def _price_tokens(housing_df: pl.DataFrame) -> pl.DataFrame:
    return remove_stop_words(
        tokenize(
            housing_df.select("uid", "priceRange", "description").with_columns(
                price_expr().alias("price")
            )
        )
    )


def test_tokenize_lowercases_and_strips_punctuation() -> None:
    df = pl.DataFrame({"id": [1, 2], "description": ["Hello, World! It's 'great'.", None]})
    tokens = tokenize(df)

    assert tokens["word"].to_list() == ["hello", "world", "it's", "great"]
    assert tokens["id"].to_list() == [1, 1, 1, 1]
    assert "description" not in tokens.columns


def test_remove_stop_words_keeps_content_words() -> None:
    tokens = pl.DataFrame({"word": ["the", "kitchen", "and", "pool", "extra"]})
    kept = remove_stop_words(tokens, extra=["extra"])
    assert kept["word"].to_list() == ["kitchen", "pool"]


def test_count_words_by_group_sorted_by_count() -> None:
    tokens = pl.DataFrame({"g": ["a", "a", "a", "b"], "word": ["x", "x", "y", "x"]})
    counts = count_words(tokens, ["g"])
    assert counts.row(0, named=True) == {"g": "a", "word": "x", "n": 2}
    assert counts["n"].sum() == 4


def test_top_words_keeps_ties_at_cutoff() -> None:
    tokens = pl.DataFrame({"word": ["a"] * 3 + ["b"] * 2 + ["c"] * 2 + ["d"]})
    assert sorted(top_words(tokens, n=2)) == ["a", "b", "c"]
    assert sorted(top_words(tokens, n=1, exclude=["a"])) == ["b", "c"]


def test_top_words_by_group_limits_each_group() -> None:
    tokens = pl.DataFrame({
        "g": ["a"] * 4 + ["b"] * 3,
        "word": ["x", "x", "y", "z", "q", "q", "r"],
    })
    top = top_words_by_group(tokens, "g", n=1)
    assert top.filter(pl.col("g") == "a")["word"].to_list() == ["x"]
    assert top.filter(pl.col("g") == "b")["word"].to_list() == ["q"]


def test_word_frequencies_completes_grid_with_zeros() -> None:
    tokens = pl.DataFrame({"g": [1, 1, 1, 2], "word": ["x", "y", "y", "x"]})
    freqs = word_frequencies(tokens, "g")

    assert freqs.height == 4
    missing = freqs.filter((pl.col("word") == "y") & (pl.col("g") == 2)).row(0, named=True)
    assert missing["n"] == 0
    assert missing["total"] == 1
    assert missing["proportion"] == 0.0

    only_x = word_frequencies(tokens, "g", words=["x"])
    assert only_x["word"].unique().to_list() == ["x"]
    assert only_x.filter(pl.col("g") == 1)["total"].item() == 3


def test_binomial_trend_sign_follows_share() -> None:
    x = np.array([1.0, 2.0, 3.0, 4.0])
    totals = np.full(4, 200.0)

    rising, rising_se = fit_binomial_trend(x, np.array([2.0, 6.0, 12.0, 20.0]), totals)
    falling, _ = fit_binomial_trend(x, np.array([20.0, 12.0, 6.0, 2.0]), totals)

    assert rising > 0
    assert falling < 0
    assert rising_se > 0


def test_binomial_trend_weighs_counts_against_totals() -> None:
    x = np.array([0.0, 1.0, 2.0, 3.0])
    totals = np.full(4, 1000.0)
    # log(n / total) is exactly linear in x, so the fitted slope is exact
    counts = totals * np.exp(-2.0 + 0.5 * x)

    estimate, std_error = fit_binomial_trend(x, counts, totals)

    assert estimate == pytest.approx(0.5, rel=1e-6)
    assert std_error > 0


def test_binomial_trend_degenerate_x_is_nan() -> None:
    estimate, std_error = fit_binomial_trend(np.ones(3), np.array([1.0, 2.0, 3.0]), np.full(3, 10.0))
    assert np.isnan(estimate)
    assert np.isnan(std_error)


def test_holm_adjust_values_and_never_lowers() -> None:
    p = np.array([0.01, 0.04, 0.03])
    adjusted = holm_adjust(p)
    np.testing.assert_allclose(adjusted, [0.03, 0.06, 0.06])
    assert np.all(adjusted >= p)
    assert np.all(holm_adjust(np.array([0.5, 0.9])) <= 1.0)


def test_word_trends_find_price_words(housing_df: pl.DataFrame) -> None:
    tokens = _price_tokens(housing_df)
    freqs = word_frequencies(tokens, "price", top_words(tokens, 20))
    trends = fit_word_trends(freqs, "price")

    assert trends.columns == ["word", "estimate", "std_error", "statistic", "p_value"]
    assert trends["estimate"].to_list() == sorted(trends["estimate"].to_list(), reverse=True)

    by_word = {row["word"]: row for row in trends.iter_rows(named=True)}
    assert by_word["luxury"]["estimate"] > 0
    assert by_word["fixer"]["estimate"] < 0

    higher, lower = split_signal_words(trends, n=12, alpha=0.05)
    assert "luxury" in higher
    assert "fixer" in lower


def test_split_signal_words_respects_alpha_and_n() -> None:
    trends = pl.DataFrame({
        "word": ["a", "b", "c", "d", "e"],
        "estimate": [3.0, 2.0, 1.0, -1.0, -2.0],
        "std_error": [1.0] * 5,
        "statistic": [3.0, 2.0, 1.0, -1.0, -2.0],
        "p_value": [0.001, 0.01, 0.5, 0.2, 0.001],
    })
    higher, lower = split_signal_words(trends, n=1, alpha=0.05)
    assert higher == ["a"]
    assert lower == ["e"]


def test_regex_pattern_escapes_words() -> None:
    assert regex_pattern(["pool", "a.c"]) == r"pool|a\.c"
    with pytest.raises(ValueError):
        regex_pattern([])
