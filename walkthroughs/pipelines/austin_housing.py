"""Austin housing price-range pipeline.

Orchestrates the complete study:
1. Stratified train/test split on the price range
2. Word trend models over the training descriptions
3. Regex features for words that rise or fall with price
4. Housing recipe + boosted tree workflow
5. ANOVA race over a space-filling hyperparameter grid
6. Final fit of the best candidate and evaluation on the test set
7. Artifact persistence
"""

from dataclasses import dataclass, field
import logging
from pathlib import Path
from typing import Any

import numpy as np
import polars as pl
from sklearn.base import clone
from sklearn.pipeline import Pipeline

from walkthroughs.data.loading import load_austin_housing, price_expr, resolve_source
from walkthroughs.domain.entities import LastFitResult, RaceResult
from walkthroughs.features.housing import HousingRecipe
from walkthroughs.features.text import (
    fit_word_trends,
    regex_pattern,
    remove_stop_words,
    split_signal_words,
    tokenize,
    top_words,
    top_words_by_group,
    word_frequencies,
)
from walkthroughs.metrics.metrics import (
    LogLossMetric,
    compute_baseline_metrics,
    confusion_matrix_table,
    metric_set,
    roc_curve_table,
)
from walkthroughs.models.boosted_tree import BoostedTreeClassifier
from walkthroughs.pipelines.artifacts import ArtifactStore
from walkthroughs.pipelines.config import PipelineConfig, get_default_config, load_config
from walkthroughs.plots import (
    plot_confusion_matrix,
    plot_feature_importance,
    plot_hex_map,
    plot_race,
    plot_roc_curves,
    plot_top_words,
    plot_word_trends,
    plot_word_volcano,
)
from walkthroughs.resampling.resampling import initial_split, last_fit, vfold_cv
from walkthroughs.tuning.grid import max_entropy_grid
from walkthroughs.tuning.racing import tune_race_anova


logger = logging.getLogger(__name__)

OUTCOME = "priceRange"
FINAL_METRICS = ("mn_log_loss", "accuracy", "roc_auc")


@dataclass
class WordSignals:
    """Words whose share of listing descriptions moves with price."""
    tokens: pl.DataFrame
    frequencies: pl.DataFrame
    trends: pl.DataFrame
    higher: list[str]
    lower: list[str]

    def patterns(self) -> dict[str, str]:
        """Regex indicators for the recipe; empty word lists are skipped."""
        patterns = {}
        if self.higher:
            patterns["high_price_words"] = regex_pattern(self.higher)
        if self.lower:
            patterns["low_price_words"] = regex_pattern(self.lower)
        return patterns


@dataclass
class AustinHousingResult:
    """Everything the housing study produces."""
    signals: WordSignals
    grid: pl.DataFrame
    race: RaceResult
    best_params: dict[str, Any]
    final: LastFitResult
    baseline: dict[str, float]
    confusion: pl.DataFrame
    roc: pl.DataFrame
    feature_importance: list[tuple[str, float]]
    metadata: dict[str, Any] = field(default_factory=dict)

    def summary(self) -> str:
        lines = [
            "Austin housing price ranges",
            "=" * 50,
            f"Train rows: {self.metadata.get('train_samples')}, "
            f"test rows: {self.metadata.get('test_samples')}",
            f"Higher-price words: {', '.join(self.signals.higher) or '(none)'}",
            f"Lower-price words: {', '.join(self.signals.lower) or '(none)'}",
            f"Candidates raced: {self.grid.height}, survivors: {len(self.race.survivors)}",
            "Best parameters:",
        ]
        lines.extend(f"  {name}: {value}" for name, value in self.best_params.items())
        lines.append(self.final.summary())
        lines.extend(f"{name}: {value:.6f}" for name, value in self.baseline.items())
        lines.append("Top features:")
        lines.extend(f"  {name}: {gain:.4f}" for name, gain in self.feature_importance[:10])
        return "\n".join(lines)


@dataclass
class AustinHousingPipeline:
    """Pipeline for tuning and evaluating the price-range classifier.

    Artifacts are written only when ``output_dir`` is given.
    """

    config: PipelineConfig = field(default_factory=get_default_config)
    output_dir: Path | None = None

    _store: ArtifactStore | None = field(default=None, init=False)

    def __post_init__(self) -> None:
        if self.output_dir is not None:
            self.output_dir = Path(self.output_dir)
            self._store = ArtifactStore(self.output_dir)

    def word_signals(self, train: pl.DataFrame) -> WordSignals:
        """Fit word trend models on the training descriptions."""
        settings = self.config.austin_housing
        tokens = remove_stop_words(
            tokenize(
                train.select("uid", OUTCOME, "description").with_columns(
                    price_expr(OUTCOME).alias("price")
                ),
                "description",
            )
        )
        words = top_words(tokens, settings.n_top_words)
        frequencies = word_frequencies(tokens, "price", words)
        trends = fit_word_trends(frequencies, "price")
        higher, lower = split_signal_words(trends, settings.n_signal_words, settings.signal_alpha)
        logger.info(
            "%d words trend with price (%d higher, %d lower)",
            len(higher) + len(lower), len(higher), len(lower),
        )
        return WordSignals(tokens, frequencies, trends, higher, lower)

    def build_workflow(self, signals: WordSignals) -> Pipeline:
        """Housing recipe followed by the boosted tree, tuned as ``model__*``."""
        recipe = HousingRecipe(
            patterns=signals.patterns(),
            other_threshold=self.config.austin_housing.other_threshold,
        )
        model = BoostedTreeClassifier.from_config(self.config.to_boosted_tree_config())
        return Pipeline([("recipe", recipe), ("model", model)])

    def run(self, df: pl.DataFrame) -> AustinHousingResult:
        """Execute the complete study on a prepared listings frame."""
        settings = self.config.austin_housing
        seed = self.config.split.seed

        train, test = initial_split(df, strata=OUTCOME, prop=self.config.split.prop, seed=seed)
        y_train = train[OUTCOME].to_numpy()
        y_test = test[OUTCOME].to_numpy()
        classes = np.unique(df[OUTCOME].to_numpy()).tolist()
        if len(classes) < 2:
            raise ValueError(f"{OUTCOME} needs at least two classes, found {classes}")

        signals = self.word_signals(train)
        workflow = self.build_workflow(signals)

        folds = vfold_cv(y_train, v=settings.folds, seed=seed)
        grid = max_entropy_grid(settings.param_ranges(), size=settings.grid_size, seed=seed)
        race = tune_race_anova(
            workflow,
            train,
            y_train,
            folds,
            grid,
            LogLossMetric(),
            control=self.config.to_race_control(),
            n_jobs=settings.n_jobs,
            param_prefix="model__",
            classes=classes,
            seed=seed,
        )

        best_params = race.select_best()
        best_workflow = clone(workflow).set_params(
            **{f"model__{name}": value for name, value in best_params.items()}
        )
        final = last_fit(
            best_workflow, train, y_train, test, y_test,
            metric_set(*FINAL_METRICS), classes,
        )

        proba = final.predictions.select([f"pred_{c}" for c in classes]).to_numpy()
        confusion = confusion_matrix_table(y_test, final.predictions["prediction"].to_numpy(), classes)
        roc = roc_curve_table(y_test, proba, classes)

        fitted = final.estimator
        feature_names = fitted.named_steps["recipe"].get_feature_names_out().tolist()
        importance = fitted.named_steps["model"].get_top_features(
            n=len(feature_names), feature_names=feature_names
        )

        result = AustinHousingResult(
            signals=signals,
            grid=grid,
            race=race,
            best_params=best_params,
            final=final,
            baseline=compute_baseline_metrics(y_test, y_train, classes),
            confusion=confusion,
            roc=roc,
            feature_importance=importance,
            metadata={
                "train_samples": train.height,
                "test_samples": test.height,
                "n_features": len(feature_names),
                "classes": classes,
                "folds": settings.folds,
                "seed": seed,
            },
        )

        if self._store is not None:
            self._save_artifacts(df, result)
        return result

    def _save_artifacts(self, df: pl.DataFrame, result: AustinHousingResult) -> None:
        """Save all study artifacts to disk."""
        store = self._store
        race = result.race

        store.save_table(result.signals.trends, "word_trends")
        store.save_table(result.grid, "grid")
        store.save_table(race.results, "race_results", {"metric": race.metric_name})
        store.save_table(race.history, "race_history")
        store.save_table(race.collect_metrics(), "race_metrics")
        store.save_table(
            result.final.predictions, "test_predictions",
            {"metrics": result.final.metrics, "best_params": result.best_params},
        )
        store.save_table(result.confusion, "confusion_matrix")
        store.save_table(result.roc, "roc_curves")
        store.save_table(
            pl.DataFrame(result.feature_importance, schema=["feature", "gain"], orient="row"),
            "feature_importance",
        )
        store.save_estimator(result.final.estimator, "austin_housing_workflow")

        store.save_figure(
            plot_hex_map(df.with_columns(price_expr(OUTCOME).alias("price")), "price"),
            "price_map",
        )
        store.save_figure(
            plot_top_words(top_words_by_group(result.signals.tokens, OUTCOME, 15), OUTCOME),
            "top_words",
        )
        if result.signals.trends.height > 0:
            store.save_figure(plot_word_volcano(result.signals.trends), "word_trends")
        for name, words in (("higher_words", result.signals.higher), ("lower_words", result.signals.lower)):
            if words:
                store.save_figure(plot_word_trends(result.signals.frequencies, words, "price"), name)
        store.save_figure(plot_race(race), "race")
        store.save_figure(plot_confusion_matrix(result.confusion), "confusion_matrix")
        store.save_figure(plot_roc_curves(result.roc), "roc_curves")
        store.save_figure(plot_feature_importance(result.feature_importance), "feature_importance")
        logger.info("Saved artifacts to %s", store.root)


def run_austin_housing(
    data: Path | str | None = None,
    output_dir: Path | str | None = None,
    config_path: Path | str | None = None,
    config: PipelineConfig | None = None,
) -> AustinHousingResult:
    """Convenience function to load the listings and run the study.

    Args:
        data: CSV path or URL (overrides the configured data file)
        output_dir: Artifact directory (overrides the configured one)
        config_path: Path to YAML configuration file
        config: Already-loaded configuration (takes precedence over config_path)

    Returns:
        AustinHousingResult
    """
    if config is None:
        config = load_config(config_path) if config_path is not None else get_default_config()
    df = load_austin_housing(resolve_source(data, config.paths.austin_housing_path))
    logger.info("Loaded %d listings", df.height)
    pipeline = AustinHousingPipeline(
        config=config,
        output_dir=Path(output_dir) if output_dir is not None else config.paths.output_dir / "austin_housing",
    )
    return pipeline.run(df)
