"""Linear SVM workflow for classifying titles from their descriptions.

The workflow tokenizes descriptions, weights the most frequent tokens with
TF-IDF, scales each token column, rebalances the outcome with SMOTE and fits
a linear support vector machine. SMOTE is an imbalanced-learn sampler, so it
only runs while fitting; predictions are made on the original rows.
"""

import numpy as np
import polars as pl
from imblearn.over_sampling import SMOTE
from imblearn.pipeline import Pipeline
from sklearn.preprocessing import StandardScaler
from sklearn.svm import LinearSVC

from walkthroughs.domain.entities import LinearSvmConfig
from walkthroughs.features.description import make_tfidf_vectorizer


def build_svm_workflow(config: LinearSvmConfig | None = None) -> Pipeline:
    """TF-IDF -> scale -> SMOTE -> linear SVM."""
    config = config or LinearSvmConfig()
    return Pipeline([
        ("tfidf", make_tfidf_vectorizer(config.max_tokens)),
        ("normalize", StandardScaler(with_mean=False)),
        ("smote", SMOTE(k_neighbors=config.smote_neighbors, random_state=config.random_state)),
        ("svm", LinearSVC(C=config.cost, random_state=config.random_state)),
    ])


def svm_coefficients(workflow: Pipeline) -> pl.DataFrame:
    """Per-token coefficients of a fitted binary workflow.

    Positive estimates push a description towards the second class in
    ``classes_`` and negative ones towards the first.
    """
    svm = workflow.named_steps["svm"]
    if not hasattr(svm, "coef_"):
        raise RuntimeError("Workflow must be fitted before reading coefficients")
    if svm.coef_.shape[0] != 1:
        raise ValueError("Coefficients are only tabulated for binary outcomes")

    terms = workflow.named_steps["tfidf"].get_feature_names_out()
    return pl.DataFrame({
        "term": terms.tolist(),
        "estimate": svm.coef_[0].astype(np.float64),
    })


def top_coefficients(
    coefs: pl.DataFrame,
    classes: list[str],
    n: int = 15,
) -> pl.DataFrame:
    """The ``n`` largest-magnitude terms on each side of the decision boundary.

    Adds a ``sign`` column reading ``"More from <class>"``.
    """
    if len(classes) != 2:
        raise ValueError(f"Expected two classes, got {len(classes)}")

    labelled = coefs.with_columns(
        pl.when(pl.col("estimate") > 0)
        .then(pl.lit(f"More from {classes[1]}"))
        .otherwise(pl.lit(f"More from {classes[0]}"))
        .alias("sign"),
        pl.col("estimate").abs().alias("magnitude"),
    )
    return (
        labelled.sort("magnitude", descending=True)
        .group_by("sign", maintain_order=True)
        .head(n)
        .drop("magnitude")
        .sort(["sign", "estimate"])
    )
