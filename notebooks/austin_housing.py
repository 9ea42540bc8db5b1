# /// script
# requires-python = ">=3.10"
# dependencies = [
#     "marimo",
#     "polars>=1.37.1",
#     "matplotlib>=3.10.8",
#     "seaborn>=0.13.0",
#     "scipy>=1.15.3",
#     "scikit-learn>=1.5.0",
#     "xgboost>=2.0.0",
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
    import numpy as np
    import matplotlib.pyplot as plt
    import seaborn as sns
    from pathlib import Path
    from sklearn.base import clone

    from walkthroughs.data import load_austin_housing, price_expr
    from walkthroughs.features import top_words_by_group
    from walkthroughs.metrics import (
        LogLossMetric,
        compute_baseline_metrics,
        confusion_matrix_table,
        metric_set,
        roc_curve_table,
    )
    from walkthroughs.pipelines import AustinHousingPipeline, get_default_config
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
    from walkthroughs.resampling import initial_split, last_fit, vfold_cv
    from walkthroughs.tuning import max_entropy_grid, tune_race_anova

    plt.style.use('seaborn-v0_8-whitegrid')
    sns.set_palette("husl")

    mo.md("""
    # Predicting Austin Home Price Ranges

    Listings in Austin, TX come with a bucketed `priceRange` rather than a
    price. This notebook predicts the bucket from location, size, schools and
    the words used in the listing description:

    ## Steps
    1. **Explore** where prices are high and what the descriptions say
    2. **Word trends** - binomial models of word frequency against price
    3. **Recipe** - regex features for price-signalling words, pooled city and home type
    4. **Race** - a boosted tree tuned with ANOVA racing over a space-filling grid
    5. **Evaluate** - log loss, accuracy, ROC AUC and the confusion matrix on the test set
    """)
    return (
        AustinHousingPipeline,
        LogLossMetric,
        Path,
        clone,
        compute_baseline_metrics,
        confusion_matrix_table,
        get_default_config,
        initial_split,
        last_fit,
        load_austin_housing,
        max_entropy_grid,
        metric_set,
        mo,
        np,
        pl,
        plot_confusion_matrix,
        plot_feature_importance,
        plot_hex_map,
        plot_race,
        plot_roc_curves,
        plot_top_words,
        plot_word_trends,
        plot_word_volcano,
        price_expr,
        roc_curve_table,
        top_words_by_group,
        tune_race_anova,
        vfold_cv,
    )


@app.cell
def _(mo):
    mo.md("""
    ## 1. Data Loading
    """)
    return


@app.cell
def _(Path, get_default_config, load_austin_housing):
    config = get_default_config(Path(".."))
    housing = load_austin_housing(config.paths.austin_housing_path)

    print(f"Listings: {housing.shape}")
    housing.head(5)
    return config, housing


@app.cell
def _(housing, pl):
    housing.group_by("priceRange").agg(pl.len().alias("n")).sort("priceRange")
    return


@app.cell
def _(mo):
    mo.md("""
    ## 2. Exploration

    Price is clearly spatial: the west side of the city and the lake are
    expensive, the east side much less so. Each hexagon shows the mean
    (parsed) price of the listings in it.
    """)
    return


@app.cell
def _(housing, plot_hex_map, price_expr):
    housing_price = housing.with_columns(price_expr().alias("price"))
    plot_hex_map(housing_price, "price")
    return


@app.cell
def _(housing, plot_hex_map):
    plot_hex_map(housing, "yearBuilt")
    return


@app.cell
def _(mo):
    mo.md("""
    ## 3. Word Trends

    Split first, so the words we pick never see the test set. Then ask, for
    each of the most common description words, whether its share of the
    words in a price bucket goes up or down with price.
    """)
    return


@app.cell
def _(AustinHousingPipeline, config, housing, initial_split):
    pipeline = AustinHousingPipeline(config=config)
    housing_train, housing_test = initial_split(
        housing, strata="priceRange", prop=config.split.prop, seed=config.split.seed
    )
    signals = pipeline.word_signals(housing_train)

    print(f"Train: {housing_train.shape}, test: {housing_test.shape}")
    print(f"Higher-price words: {signals.higher}")
    print(f"Lower-price words: {signals.lower}")
    return housing_test, housing_train, pipeline, signals


@app.cell
def _(plot_top_words, signals, top_words_by_group):
    plot_top_words(top_words_by_group(signals.tokens, "priceRange", 15), "priceRange")
    return


@app.cell
def _(plot_word_volcano, signals):
    plot_word_volcano(signals.trends)
    return


@app.cell
def _(plot_word_trends, signals):
    plot_word_trends(signals.frequencies, signals.higher, "price")
    return


@app.cell
def _(plot_word_trends, signals):
    plot_word_trends(signals.frequencies, signals.lower, "price")
    return


@app.cell
def _(mo):
    mo.md("""
    ## 4. Tuning With a Race

    The recipe turns the two word lists into indicator features, pools rare
    cities and home types into `other` and dummy encodes them. The boosted
    tree uses 1000 trees; five more hyperparameters are searched over a
    20-point maximum-entropy grid.

    Instead of fitting every candidate on every fold, the race fits all of
    them on three folds and then drops candidates that are already
    significantly worse than the leader on log loss.
    """)
    return


@app.cell
def _(
    LogLossMetric,
    config,
    housing_train,
    max_entropy_grid,
    np,
    pipeline,
    signals,
    tune_race_anova,
    vfold_cv,
):
    workflow = pipeline.build_workflow(signals)
    y_train = housing_train["priceRange"].to_numpy()
    classes = np.unique(y_train).tolist()

    folds = vfold_cv(y_train, v=config.austin_housing.folds, seed=config.split.seed)
    grid = max_entropy_grid(
        config.austin_housing.param_ranges(),
        size=config.austin_housing.grid_size,
        seed=config.split.seed,
    )
    race = tune_race_anova(
        workflow,
        housing_train,
        y_train,
        folds,
        grid,
        LogLossMetric(),
        control=config.to_race_control(),
        param_prefix="model__",
        classes=classes,
        seed=config.split.seed,
    )
    grid
    return classes, race, workflow, y_train


@app.cell
def _(plot_race, race):
    plot_race(race)
    return


@app.cell
def _(race):
    race.show_best(5)
    return


@app.cell
def _(mo):
    mo.md("""
    ## 5. Final Fit

    Fit the best candidate on the whole training set and evaluate it once
    on the test set.
    """)
    return


@app.cell
def _(
    classes,
    clone,
    compute_baseline_metrics,
    housing_test,
    housing_train,
    last_fit,
    metric_set,
    race,
    workflow,
    y_train,
):
    best_params = race.select_best()
    best_workflow = clone(workflow).set_params(
        **{f"model__{name}": value for name, value in best_params.items()}
    )
    y_test = housing_test["priceRange"].to_numpy()
    final = last_fit(
        best_workflow, housing_train, y_train, housing_test, y_test,
        metric_set("mn_log_loss", "accuracy", "roc_auc"), classes,
    )

    print(best_params)
    print(final.summary())
    print(compute_baseline_metrics(y_test, y_train, classes))
    return final, y_test


@app.cell
def _(classes, confusion_matrix_table, final, plot_confusion_matrix, y_test):
    confusion = confusion_matrix_table(y_test, final.predictions["prediction"].to_numpy(), classes)
    plot_confusion_matrix(confusion)
    return


@app.cell
def _(classes, final, plot_roc_curves, roc_curve_table, y_test):
    _proba = final.predictions.select([f"pred_{c}" for c in classes]).to_numpy()
    plot_roc_curves(roc_curve_table(y_test, _proba, classes))
    return


@app.cell
def _(final, plot_feature_importance):
    _names = final.estimator.named_steps["recipe"].get_feature_names_out().tolist()
    plot_feature_importance(
        final.estimator.named_steps["model"].get_feature_importance(_names), top_n=20
    )
    return


@app.cell
def _(mo):
    mo.md("""
    ## Summary

    Location dominates: latitude and longitude carry most of the gain, with
    school rating, bathrooms and lot size behind them. The word indicators
    add a little on top. Most mistakes are between neighbouring buckets,
    which is what we would expect from an ordered outcome treated as
    nominal.
    """)
    return


if __name__ == "__main__":
    app.run()
