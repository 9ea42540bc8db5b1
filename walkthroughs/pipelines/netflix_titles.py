"""Netflix title-type pipeline.

Predicts whether a title is a movie or a TV show from its description:
1. Stratified train/test split on ``type``
2. Stratified v-fold resampling of the TF-IDF + SMOTE + linear SVM workflow
3. Resampled confusion matrix from the out-of-fold predictions
4. Final fit on the training set, evaluated once on the test set
5. The description terms that weigh most towards each type
"""

from dataclasses import dataclass, field
import logging
from pathlib import Path
from typing import Any

import numpy as np
import polars as pl

from walkthroughs.data.loading import load_netflix_titles, resolve_source
from walkthroughs.domain.entities import LastFitResult, ResampleResult
from walkthroughs.features.description import description_array
from walkthroughs.features.text import remove_stop_words, tokenize, top_words_by_group
from walkthroughs.metrics.metrics import (
    compute_baseline_metrics,
    confusion_matrix_table,
    metric_set,
    resampled_confusion_matrix,
)
from walkthroughs.models.linear_svm import build_svm_workflow, svm_coefficients, top_coefficients
from walkthroughs.pipelines.artifacts import ArtifactStore
from walkthroughs.pipelines.config import PipelineConfig, get_default_config, load_config
from walkthroughs.plots import plot_confusion_matrix, plot_svm_coefficients, plot_top_words
from walkthroughs.resampling.resampling import fit_resamples, initial_split, last_fit, vfold_cv


logger = logging.getLogger(__name__)

OUTCOME = "type"
RESAMPLE_METRICS = ("accuracy", "recall", "precision")


@dataclass
class NetflixTitlesResult:
    """Everything the title-type study produces."""
    top_words: pl.DataFrame
    resamples: ResampleResult
    resampled_confusion: pl.DataFrame
    final: LastFitResult
    baseline: dict[str, float]
    confusion: pl.DataFrame
    coefficients: pl.DataFrame
    top_terms: pl.DataFrame
    metadata: dict[str, Any] = field(default_factory=dict)

    def summary(self) -> str:
        lines = [
            "Netflix title types",
            "=" * 50,
            f"Train rows: {self.metadata.get('train_samples')}, "
            f"test rows: {self.metadata.get('test_samples')}",
            f"Event level: {self.metadata.get('event_level')}",
            self.resamples.summary(),
            self.final.summary(),
        ]
        lines.extend(f"{name}: {value:.6f}" for name, value in self.baseline.items())
        for (sign,), part in self.top_terms.group_by(["sign"], maintain_order=True):
            lines.append(f"{sign}: {', '.join(part['term'].to_list())}")
        return "\n".join(lines)


@dataclass
class NetflixTitlesPipeline:
    """Pipeline for resampling and evaluating the title-type classifier.

    Artifacts are written only when ``output_dir`` is given.
    """

    config: PipelineConfig = field(default_factory=get_default_config)
    output_dir: Path | None = None

    _store: ArtifactStore | None = field(default=None, init=False)

    def __post_init__(self) -> None:
        if self.output_dir is not None:
            self.output_dir = Path(self.output_dir)
            self._store = ArtifactStore(self.output_dir)

    def run(self, df: pl.DataFrame) -> NetflixTitlesResult:
        """Execute the complete study on a prepared titles frame."""
        settings = self.config.netflix_titles
        seed = self.config.split.seed

        classes = np.unique(df[OUTCOME].to_numpy()).tolist()
        if len(classes) != 2:
            raise ValueError(f"{OUTCOME} must have exactly two classes, found {classes}")
        if settings.event_level not in classes:
            raise ValueError(f"Event level {settings.event_level!r} is not one of {classes}")

        train, test = initial_split(df, strata=OUTCOME, prop=self.config.split.prop, seed=seed)
        X_train, y_train = description_array(train), train[OUTCOME].to_numpy()
        X_test, y_test = description_array(test), test[OUTCOME].to_numpy()

        tokens = remove_stop_words(tokenize(train.select("show_id", OUTCOME, "description")))
        common = top_words_by_group(tokens, OUTCOME, settings.n_top_terms)

        workflow = build_svm_workflow(self.config.to_linear_svm_config())
        metrics = metric_set(*RESAMPLE_METRICS, event_level=settings.event_level)
        folds = vfold_cv(y_train, v=settings.folds, seed=seed)

        resamples = fit_resamples(
            workflow, X_train, y_train, folds, metrics,
            n_jobs=settings.n_jobs, save_pred=True, classes=classes,
        )
        resampled_confusion = resampled_confusion_matrix(resamples.predictions, classes)

        final = last_fit(workflow, X_train, y_train, X_test, y_test, metrics, classes)
        confusion = confusion_matrix_table(y_test, final.predictions["prediction"].to_numpy(), classes)

        svm_classes = [str(c) for c in final.estimator.classes_]
        coefficients = svm_coefficients(final.estimator)
        top_terms = top_coefficients(coefficients, svm_classes, settings.n_top_terms)

        result = NetflixTitlesResult(
            top_words=common,
            resamples=resamples,
            resampled_confusion=resampled_confusion,
            final=final,
            baseline=compute_baseline_metrics(y_test, y_train, classes),
            confusion=confusion,
            coefficients=coefficients,
            top_terms=top_terms,
            metadata={
                "train_samples": train.height,
                "test_samples": test.height,
                "classes": classes,
                "event_level": settings.event_level,
                "folds": settings.folds,
                "seed": seed,
            },
        )

        if self._store is not None:
            self._save_artifacts(result)
        return result

    def _save_artifacts(self, result: NetflixTitlesResult) -> None:
        """Save all study artifacts to disk."""
        store = self._store

        store.save_table(result.top_words, "top_words")
        store.save_table(result.resamples.fold_metrics, "fold_metrics")
        store.save_table(result.resamples.collect_metrics(), "resample_metrics")
        store.save_table(result.resamples.predictions, "resample_predictions")
        store.save_table(result.resampled_confusion, "resampled_confusion_matrix")
        store.save_table(result.final.predictions, "test_predictions", {"metrics": result.final.metrics})
        store.save_table(result.confusion, "confusion_matrix")
        store.save_table(result.coefficients, "svm_coefficients")
        store.save_estimator(result.final.estimator, "netflix_titles_workflow")

        store.save_figure(plot_top_words(result.top_words, OUTCOME), "top_words")
        store.save_figure(
            plot_confusion_matrix(result.resampled_confusion, "Resampled confusion matrix"),
            "resampled_confusion_matrix",
        )
        store.save_figure(plot_confusion_matrix(result.confusion, "Test confusion matrix"), "confusion_matrix")
        store.save_figure(plot_svm_coefficients(result.top_terms), "svm_coefficients")
        logger.info("Saved artifacts to %s", store.root)


def run_netflix_titles(
    data: Path | str | None = None,
    output_dir: Path | str | None = None,
    config_path: Path | str | None = None,
    config: PipelineConfig | None = None,
) -> NetflixTitlesResult:
    """Convenience function to load the titles and run the study.

    Args:
        data: CSV path or URL (overrides the configured data file)
        output_dir: Artifact directory (overrides the configured one)
        config_path: Path to YAML configuration file
        config: Already-loaded configuration (takes precedence over config_path)

    Returns:
        NetflixTitlesResult
    """
    if config is None:
        config = load_config(config_path) if config_path is not None else get_default_config()
    df = load_netflix_titles(resolve_source(data, config.paths.netflix_titles_path))
    logger.info("Loaded %d titles", df.height)
    pipeline = NetflixTitlesPipeline(
        config=config,
        output_dir=Path(output_dir) if output_dir is not None else config.paths.output_dir / "netflix_titles",
    )
    return pipeline.run(df)
