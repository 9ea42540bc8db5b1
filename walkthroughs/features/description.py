"""TF-IDF features from title descriptions."""

import numpy as np
import polars as pl
from sklearn.feature_extraction.text import TfidfVectorizer

from walkthroughs.features.text import TOKEN_PATTERN


def make_tfidf_vectorizer(
    max_tokens: int = 1000,
    stop_words: str | list[str] | None = "english",
) -> TfidfVectorizer:
    """TF-IDF over lowercase word tokens, keeping the ``max_tokens`` most frequent.

    Rows are L1 normalized so that weights are term shares of a description.
    """
    if max_tokens < 1:
        raise ValueError(f"max_tokens must be positive, got {max_tokens}")
    return TfidfVectorizer(
        lowercase=True,
        token_pattern=TOKEN_PATTERN,
        stop_words=stop_words,
        max_features=max_tokens,
        norm="l1",
        smooth_idf=True,
    )


def description_array(df: pl.DataFrame, column: str = "description") -> np.ndarray:
    """Text column as an object array, the input the vectorizer expects."""
    return df[column].fill_null("").to_numpy()
