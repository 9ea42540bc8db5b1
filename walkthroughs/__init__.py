"""Exploratory analysis and supervised learning walkthroughs.

Two studies share the same pipeline pattern: load, explore, engineer
features, resample, tune, fit a final model, evaluate.

- Austin housing: price range classification with racing-tuned xgboost.
- Netflix titles: movie vs TV show from descriptions with TF-IDF, SMOTE
  and a linear SVM.
"""

__version__ = "0.1.0"
