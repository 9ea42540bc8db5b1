"""Feature engineering: word-level text features and model recipes."""

from .description import description_array, make_tfidf_vectorizer
from .housing import HousingRecipe
from .text import (
    STOP_WORDS,
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

__all__ = [
    "description_array",
    "make_tfidf_vectorizer",
    "HousingRecipe",
    "STOP_WORDS",
    "count_words",
    "fit_binomial_trend",
    "fit_word_trends",
    "holm_adjust",
    "regex_pattern",
    "remove_stop_words",
    "split_signal_words",
    "tokenize",
    "top_words",
    "top_words_by_group",
    "word_frequencies",
]
