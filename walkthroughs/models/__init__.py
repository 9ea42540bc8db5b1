"""Model implementations."""

from .boosted_tree import BoostedTreeClassifier
from .linear_svm import build_svm_workflow, svm_coefficients, top_coefficients

__all__ = [
    "BoostedTreeClassifier",
    "build_svm_workflow",
    "svm_coefficients",
    "top_coefficients",
]
