"""Matplotlib / seaborn figures for exploration and evaluation."""

from .common import facet_axes, save_figure
from .eda import plot_hex_map, plot_top_words, plot_word_trends, plot_word_volcano
from .evaluation import (
    plot_confusion_matrix,
    plot_feature_importance,
    plot_race,
    plot_roc_curves,
    plot_svm_coefficients,
)

__all__ = [
    "facet_axes",
    "save_figure",
    "plot_hex_map",
    "plot_top_words",
    "plot_word_trends",
    "plot_word_volcano",
    "plot_confusion_matrix",
    "plot_feature_importance",
    "plot_race",
    "plot_roc_curves",
    "plot_svm_coefficients",
]
