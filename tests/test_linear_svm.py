import numpy as np
import polars as pl
import pytest
from sklearn.feature_extraction.text import TfidfVectorizer

from walkthroughs.domain.entities import LinearSvmConfig
from walkthroughs.features.description import description_array, make_tfidf_vectorizer
from walkthroughs.models.linear_svm import build_svm_workflow, svm_coefficients, top_coefficients
from walkthroughs.resampling.resampling import initial_split


def test_tfidf_vectorizer_settings() -> None:
    vectorizer = make_tfidf_vectorizer(max_tokens=25)
    assert isinstance(vectorizer, TfidfVectorizer)
    assert vectorizer.max_features == 25
    assert vectorizer.norm == "l1"
    assert vectorizer.stop_words == "english"
    with pytest.raises(ValueError):
        make_tfidf_vectorizer(max_tokens=0)


def test_vectorizer_caps_vocabulary_and_drops_stop_words(netflix_df: pl.DataFrame) -> None:
    vectorizer = make_tfidf_vectorizer(max_tokens=5)
    matrix = vectorizer.fit_transform(description_array(netflix_df))
    vocabulary = vectorizer.get_feature_names_out().tolist()

    assert matrix.shape == (netflix_df.height, 5)
    assert "a" not in vocabulary
    row_sums = np.asarray(matrix.sum(axis=1)).ravel()
    np.testing.assert_allclose(row_sums[row_sums > 0], 1.0)


def test_workflow_steps_in_order() -> None:
    workflow = build_svm_workflow(LinearSvmConfig(max_tokens=100, cost=0.5, smote_neighbors=3))
    assert [name for name, _ in workflow.steps] == ["tfidf", "normalize", "smote", "svm"]
    assert workflow.named_steps["svm"].C == 0.5
    assert workflow.named_steps["smote"].k_neighbors == 3


def test_smote_only_affects_training(netflix_df: pl.DataFrame) -> None:
    train, test = initial_split(netflix_df, strata="type", seed=1)
    workflow = build_svm_workflow(LinearSvmConfig(max_tokens=50))
    workflow.fit(description_array(train), train["type"].to_numpy())

    predictions = workflow.predict(description_array(test))
    assert len(predictions) == test.height
    assert set(predictions) <= {"Movie", "TV Show"}
    assert np.mean(predictions == test["type"].to_numpy()) > 0.8


def test_coefficients_point_towards_each_class(netflix_df: pl.DataFrame) -> None:
    workflow = build_svm_workflow(LinearSvmConfig(max_tokens=50))
    workflow.fit(description_array(netflix_df), netflix_df["type"].to_numpy())

    coefs = svm_coefficients(workflow)
    assert coefs.columns == ["term", "estimate"]
    assert coefs.height == len(workflow.named_steps["tfidf"].get_feature_names_out())

    estimates = dict(zip(coefs["term"].to_list(), coefs["estimate"].to_list()))
    # positive weights favour the second class, "TV Show"
    assert estimates["series"] > 0
    assert estimates["film"] < 0

    classes = [str(c) for c in workflow.classes_]
    top = top_coefficients(coefs, classes, n=3)
    assert set(top["sign"].to_list()) == {"More from Movie", "More from TV Show"}
    assert top.group_by("sign").len()["len"].to_list() == [3, 3]
    assert "series" in top.filter(pl.col("sign") == "More from TV Show")["term"].to_list()


def test_coefficients_need_fitted_workflow() -> None:
    with pytest.raises(RuntimeError):
        svm_coefficients(build_svm_workflow())


def test_top_coefficients_need_two_classes() -> None:
    coefs = pl.DataFrame({"term": ["a"], "estimate": [1.0]})
    with pytest.raises(ValueError):
        top_coefficients(coefs, ["only"])
