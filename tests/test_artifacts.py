from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np
import polars as pl
import pytest
from sklearn.linear_model import LogisticRegression

from walkthroughs.pipelines.artifacts import ArtifactStore


@pytest.fixture
def store(tmp_path: Path) -> ArtifactStore:
    return ArtifactStore(tmp_path / "run")


def test_table_round_trip_with_metadata(store: ArtifactStore) -> None:
    df = pl.DataFrame({"truth": ["a", "b"], "prediction": ["a", "a"], "n": [3.0, 1.0]})

    path = store.save_table(df, "confusion_matrix", {"metrics": {"accuracy": 0.75}})

    assert path == store.root / "tables" / "confusion_matrix" / "table.parquet"
    assert store.load_table("confusion_matrix").equals(df)
    metadata = store.load_metadata("confusion_matrix")
    assert metadata["n_rows"] == 2
    assert metadata["columns"] == ["truth", "prediction", "n"]
    assert metadata["metrics"] == {"accuracy": 0.75}


def test_list_and_exists(store: ArtifactStore) -> None:
    assert store.list_tables() == []

    store.save_table(pl.DataFrame({"x": [1]}), "b_table")
    store.save_table(pl.DataFrame({"x": [2]}), "a_table")

    assert store.list_tables() == ["a_table", "b_table"]
    assert store.table_exists("a_table")
    assert not store.table_exists("missing")


def test_missing_items_raise(store: ArtifactStore) -> None:
    with pytest.raises(FileNotFoundError):
        store.load_table("missing")
    with pytest.raises(FileNotFoundError):
        store.load_metadata("missing")
    with pytest.raises(FileNotFoundError):
        store.load_estimator("missing")


def test_figure_is_written_and_closed(store: ArtifactStore) -> None:
    fig, ax = plt.subplots()
    ax.plot([0, 1], [1, 0])

    path = store.save_figure(fig, "line")

    assert path == store.root / "figures" / "line.png"
    assert path.stat().st_size > 0
    assert not plt.fignum_exists(fig.number)


def test_estimator_round_trip(store: ArtifactStore) -> None:
    X = np.array([[0.0], [1.0], [2.0], [3.0]])
    y = np.array(["no", "no", "yes", "yes"])
    model = LogisticRegression().fit(X, y)

    store.save_estimator(model, "logistic")
    loaded = store.load_estimator("logistic")

    assert loaded.predict(X).tolist() == model.predict(X).tolist()
