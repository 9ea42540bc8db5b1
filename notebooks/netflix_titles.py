# /// script
# requires-python = ">=3.10"
# dependencies = [
#     "marimo",
#     "polars>=1.37.1",
#     "matplotlib>=3.10.8",
#     "seaborn>=0.13.0",
#     "scikit-learn>=1.5.0",
#     "imbalanced-learn>=0.12.0",
#     "numpy>=1.24.0",
# ]
# ///

import marimo

__generated_with = "0.19.4"
app = marimo.App(width="full")


@app.cell
def _():
    import marimo as mo
    import polars as pl
    import matplotlib.pyplot as plt
    import seaborn as sns

    from walkthroughs.data import load_netflix_titles
    from walkthroughs.features import description_array, remove_stop_words, tokenize, top_words_by_group
    from walkthroughs.metrics import confusion_matrix_table, metric_set, resampled_confusion_matrix
    from walkthroughs.models import build_svm_workflow, svm_coefficients, top_coefficients
    from walkthroughs.pipelines import get_default_config
    from walkthroughs.plots import plot_confusion_matrix, plot_svm_coefficients, plot_top_words
    from walkthroughs.resampling import fit_resamples, initial_split, last_fit, vfold_cv

    plt.style.use('seaborn-v0_8-whitegrid')
    sns.set_palette("husl")

    mo.md("""
    # Movie or TV Show? Netflix Descriptions

    Can the short description of a Netflix title tell us whether it is a
    movie or a TV show?

    ## Steps
    1. **Explore** the most common description words for each type
    2. **Workflow** - TF-IDF on the top 1000 tokens, scaling, SMOTE, linear SVM
    3. **Resample** - 10-fold cross-validation with accuracy, recall and precision
    4. **Evaluate** - a final fit scored once on the test set
    5. **Explain** - the words that push a description towards each type
    """)
    return (
        build_svm_workflow,
        confusion_matrix_table,
        description_array,
        fit_resamples,
        get_default_config,
        initial_split,
        last_fit,
        load_netflix_titles,
        metric_set,
        mo,
        pl,
        plot_confusion_matrix,
        plot_svm_coefficients,
        plot_top_words,
        remove_stop_words,
        resampled_confusion_matrix,
        svm_coefficients,
        tokenize,
        top_coefficients,
        top_words_by_group,
        vfold_cv,
    )


@app.cell
def _(mo):
    mo.md("""
    ## 1. Data Loading

    The catalog comes straight from the TidyTuesday repository and is cached
    locally after the first download.
    """)
    return


@app.cell
def _(get_default_config, load_netflix_titles, pl):
    config = get_default_config()
    titles = load_netflix_titles()

    print(f"Titles: {titles.shape}")
    print(titles.group_by("type").agg(pl.len().alias("n")))
    titles.select("show_id", "type", "title", "description").head(5)
    return config, titles


@app.cell
def _(mo):
    mo.md("""
    ## 2. Exploration

    Words like *series*, *docuseries* and *life* show up for TV shows;
    movies lean on *young*, *woman* and *love*.
    """)
    return


@app.cell
def _(config, initial_split, titles):
    titles_train, titles_test = initial_split(
        titles, strata="type", prop=config.split.prop, seed=config.split.seed
    )
    print(f"Train: {titles_train.shape}, test: {titles_test.shape}")
    return titles_test, titles_train


@app.cell
def _(plot_top_words, remove_stop_words, titles_train, tokenize, top_words_by_group):
    _tokens = remove_stop_words(tokenize(titles_train.select("show_id", "type", "description")))
    plot_top_words(top_words_by_group(_tokens, "type", 15), "type")
    return


@app.cell
def _(mo):
    mo.md("""
    ## 3. Resampling the Workflow

    There are about twice as many movies as shows, so SMOTE creates
    synthetic shows while fitting. It never touches the rows we predict on.
    """)
    return


@app.cell
def _(
    build_svm_workflow,
    config,
    description_array,
    fit_resamples,
    metric_set,
    titles_train,
    vfold_cv,
):
    workflow = build_svm_workflow(config.to_linear_svm_config())
    X_train = description_array(titles_train)
    y_train = titles_train["type"].to_numpy()
    classes = sorted(set(y_train.tolist()))

    metrics = metric_set("accuracy", "recall", "precision", event_level=config.netflix_titles.event_level)
    folds = vfold_cv(y_train, v=config.netflix_titles.folds, seed=config.split.seed)
    resamples = fit_resamples(workflow, X_train, y_train, folds, metrics, save_pred=True, classes=classes)
    resamples.collect_metrics()
    return X_train, classes, metrics, resamples, workflow, y_train


@app.cell
def _(classes, plot_confusion_matrix, resampled_confusion_matrix, resamples):
    plot_confusion_matrix(
        resampled_confusion_matrix(resamples.predictions, classes), "Resampled confusion matrix"
    )
    return


@app.cell
def _(mo):
    mo.md("""
    ## 4. Final Fit
    """)
    return


@app.cell
def _(
    X_train,
    classes,
    confusion_matrix_table,
    description_array,
    last_fit,
    metrics,
    plot_confusion_matrix,
    titles_test,
    workflow,
    y_train,
):
    y_test = titles_test["type"].to_numpy()
    final = last_fit(workflow, X_train, y_train, description_array(titles_test), y_test, metrics, classes)
    print(final.summary())

    plot_confusion_matrix(
        confusion_matrix_table(y_test, final.predictions["prediction"].to_numpy(), classes),
        "Test confusion matrix",
    )
    return (final,)


@app.cell
def _(mo):
    mo.md("""
    ## 5. Which Words Matter?

    The linear SVM has one coefficient per token. Positive ones push a
    description towards *TV Show*, negative ones towards *Movie*.
    """)
    return


@app.cell
def _(config, final, plot_svm_coefficients, svm_coefficients, top_coefficients):
    _coefs = svm_coefficients(final.estimator)
    _top = top_coefficients(_coefs, [str(c) for c in final.estimator.classes_], config.netflix_titles.n_top_terms)
    plot_svm_coefficients(_top)
    return


if __name__ == "__main__":
    app.run()
