from pathlib import Path

import polars as pl
import pytest

from walkthroughs.data.loading import prepare_austin_housing, prepare_netflix_titles
from walkthroughs.pipelines import (
    ArtifactStore,
    AustinHousingPipeline,
    NetflixTitlesPipeline,
    run_austin_housing,
    run_netflix_titles,
)


@pytest.fixture
def housing(housing_df: pl.DataFrame) -> pl.DataFrame:
    return prepare_austin_housing(housing_df)


@pytest.fixture
def titles(netflix_df: pl.DataFrame) -> pl.DataFrame:
    return prepare_netflix_titles(netflix_df)


def test_word_signals_find_price_words(small_config, housing) -> None:
    pipeline = AustinHousingPipeline(config=small_config)

    signals = pipeline.word_signals(housing)

    assert "luxury" in signals.higher
    assert "fixer" in signals.lower
    assert set(signals.patterns()) == {"high_price_words", "low_price_words"}
    assert signals.trends["p_value"].max() <= 1.0


def test_austin_housing_run_without_artifacts(small_config, housing) -> None:
    result = AustinHousingPipeline(config=small_config).run(housing)

    assert result.grid.height == 3
    assert set(result.best_params) == {"tree_depth", "min_n", "mtry", "sample_size", "learn_rate"}
    assert set(result.final.metrics) == {"mn_log_loss", "accuracy", "roc_auc"}
    assert result.final.predictions.height == result.metadata["test_samples"] == 50
    assert result.confusion["n"].sum() == 50
    assert result.feature_importance
    assert "Best parameters:" in result.summary()


def test_austin_housing_saves_artifacts(small_config, housing, tmp_path: Path) -> None:
    output_dir = tmp_path / "austin"

    AustinHousingPipeline(config=small_config, output_dir=output_dir).run(housing)

    store = ArtifactStore(output_dir)
    for table in ("word_trends", "grid", "race_results", "race_history", "test_predictions",
                  "confusion_matrix", "roc_curves", "feature_importance"):
        assert store.table_exists(table)
    for figure in ("price_map", "top_words", "race", "confusion_matrix", "roc_curves", "feature_importance"):
        assert (output_dir / "figures" / f"{figure}.png").exists()
    assert "best_params" in store.load_metadata("test_predictions")
    workflow = store.load_estimator("austin_housing_workflow")
    assert workflow.predict(housing.head(3)).shape == (3,)


def test_netflix_titles_run(small_config, titles, tmp_path: Path) -> None:
    output_dir = tmp_path / "netflix"

    result = NetflixTitlesPipeline(config=small_config, output_dir=output_dir).run(titles)

    collected = result.resamples.collect_metrics()
    assert collected["metric"].to_list() == ["accuracy", "recall", "precision"]
    assert collected["n"].to_list() == [3, 3, 3]
    assert result.final.metrics["accuracy"] > 0.8
    assert result.resampled_confusion["n"].sum() == pytest.approx(30.0)
    assert set(result.top_terms["sign"].unique()) == {"More from Movie", "More from TV Show"}
    assert "Event level: Movie" in result.summary()

    store = ArtifactStore(output_dir)
    assert store.table_exists("resample_metrics")
    assert store.table_exists("svm_coefficients")
    assert (output_dir / "figures" / "svm_coefficients.png").exists()
    assert (output_dir / "models" / "netflix_titles_workflow.joblib").exists()


def test_netflix_titles_rejects_unknown_event_level(small_config, titles) -> None:
    config = small_config.with_overrides(netflix_titles={"event_level": "Podcast"})

    with pytest.raises(ValueError, match="Podcast"):
        NetflixTitlesPipeline(config=config).run(titles)


def test_netflix_titles_requires_two_classes(small_config, titles) -> None:
    with pytest.raises(ValueError, match="exactly two classes"):
        NetflixTitlesPipeline(config=small_config).run(titles.filter(pl.col("type") == "Movie"))


def test_run_netflix_titles_from_csv(small_config, netflix_csv: Path, tmp_path: Path) -> None:
    result = run_netflix_titles(data=netflix_csv, output_dir=tmp_path / "out", config=small_config)

    assert result.metadata["train_samples"] == 90
    assert (tmp_path / "out" / "tables" / "confusion_matrix" / "table.parquet").exists()


def test_run_austin_housing_reads_the_configured_file(
    small_config, housing_csv: Path, tmp_path: Path
) -> None:
    config = small_config.with_overrides(
        paths={"data_dir": housing_csv.parent, "austin_housing_file": housing_csv.name}
    )

    result = run_austin_housing(output_dir=tmp_path / "out", config=config)

    assert result.metadata["test_samples"] == 50
    assert (tmp_path / "out" / "figures" / "race.png").exists()
