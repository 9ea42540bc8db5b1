"""Boosted tree classifier for the Austin housing price ranges.

A scikit-learn compatible wrapper around ``xgboost.train`` so the model can
sit at the end of a preprocessing pipeline, be cloned per resample and have
its hyperparameters set by the tuning grid.
"""

import numpy as np
import xgboost as xgb
from sklearn.base import BaseEstimator, ClassifierMixin

from walkthroughs.domain.entities import BoostedTreeConfig


class BoostedTreeClassifier(ClassifierMixin, BaseEstimator):
    """Gradient boosted trees for binary or multiclass outcomes.

    Args:
        trees: Number of boosting rounds
        tree_depth: Maximum tree depth
        min_n: Minimum sum of instance weight in a child
        mtry: Number of columns sampled at each split (None for all)
        sample_size: Fraction of rows sampled per tree
        learn_rate: Shrinkage applied to each tree
        random_state: Seed for row and column sampling
        n_jobs: Threads used by xgboost
    """

    def __init__(
        self,
        trees: int = 1000,
        tree_depth: int = 6,
        min_n: int = 1,
        mtry: int | None = None,
        sample_size: float = 1.0,
        learn_rate: float = 0.3,
        random_state: int = 42,
        n_jobs: int = 1,
    ) -> None:
        self.trees = trees
        self.tree_depth = tree_depth
        self.min_n = min_n
        self.mtry = mtry
        self.sample_size = sample_size
        self.learn_rate = learn_rate
        self.random_state = random_state
        self.n_jobs = n_jobs

    @classmethod
    def from_config(cls, config: BoostedTreeConfig, n_jobs: int = 1) -> "BoostedTreeClassifier":
        return cls(
            trees=config.trees,
            tree_depth=config.tree_depth,
            min_n=config.min_n,
            mtry=config.mtry,
            sample_size=config.sample_size,
            learn_rate=config.learn_rate,
            random_state=config.random_state,
            n_jobs=n_jobs,
        )

    @property
    def model_name(self) -> str:
        return f"BoostedTree_trees{self.trees}_depth{self.tree_depth}"

    @property
    def is_fitted(self) -> bool:
        return hasattr(self, "booster_")

    def _colsample(self, n_features: int) -> float:
        if self.mtry is None or n_features == 0:
            return 1.0
        return float(min(1.0, max(1, int(self.mtry)) / n_features))

    def _xgb_params(self, n_features: int, n_classes: int) -> dict:
        params = {
            "max_depth": int(self.tree_depth),
            "learning_rate": float(self.learn_rate),
            "min_child_weight": float(self.min_n),
            "subsample": float(self.sample_size),
            "colsample_bynode": self._colsample(n_features),
            "seed": int(self.random_state),
            "nthread": int(self.n_jobs),
            "tree_method": "hist",
        }
        if n_classes > 2:
            params.update({"objective": "multi:softprob", "num_class": n_classes, "eval_metric": "mlogloss"})
        else:
            params.update({"objective": "binary:logistic", "eval_metric": "logloss"})
        return params

    def fit(
        self,
        X: np.ndarray,
        y: np.ndarray,
        sample_weight: np.ndarray | None = None,
        feature_names: list[str] | None = None,
    ) -> "BoostedTreeClassifier":
        """Train the booster.

        Args:
            X: Feature matrix (n_samples, n_features), NaN for missing
            y: Class labels
            sample_weight: Optional per-row weights
            feature_names: Optional names used by feature importance

        Returns:
            self for method chaining
        """
        X = np.asarray(X, dtype=np.float64)
        self.classes_, encoded = np.unique(np.asarray(y), return_inverse=True)
        if len(self.classes_) < 2:
            raise ValueError("Training data must contain at least two classes")

        self.n_features_in_ = X.shape[1]
        self.feature_names_ = list(feature_names) if feature_names is not None else None

        dtrain = xgb.DMatrix(X, label=encoded, weight=sample_weight, missing=np.nan)
        self.booster_ = xgb.train(
            self._xgb_params(X.shape[1], len(self.classes_)),
            dtrain,
            num_boost_round=int(self.trees),
            verbose_eval=False,
        )
        return self

    def predict_proba(self, X: np.ndarray) -> np.ndarray:
        """Class probabilities, columns ordered as ``classes_``."""
        if not self.is_fitted:
            raise RuntimeError("Model must be fitted before prediction")

        dmatrix = xgb.DMatrix(np.asarray(X, dtype=np.float64), missing=np.nan)
        raw = self.booster_.predict(dmatrix)
        if len(self.classes_) == 2:
            raw = np.column_stack([1.0 - raw, raw])
        return raw.reshape(-1, len(self.classes_))

    def predict(self, X: np.ndarray) -> np.ndarray:
        return self.classes_[np.argmax(self.predict_proba(X), axis=1)]

    def get_feature_importance(self, feature_names: list[str] | None = None) -> dict[str, float]:
        """Gain importance per feature, zero for features never split on."""
        if not self.is_fitted:
            raise RuntimeError("Model must be fitted to get feature importance")

        names = list(feature_names) if feature_names is not None else self.feature_names_
        importance_dict = self.booster_.get_score(importance_type="gain")
        if not names:
            return dict(importance_dict)

        return {name: float(importance_dict.get(f"f{idx}", 0.0)) for idx, name in enumerate(names)}

    def get_top_features(
        self,
        n: int = 10,
        feature_names: list[str] | None = None,
    ) -> list[tuple[str, float]]:
        """Top ``n`` features by gain, most important first."""
        importance = self.get_feature_importance(feature_names)
        sorted_features = sorted(importance.items(), key=lambda x: x[1], reverse=True)
        return sorted_features[:n]
