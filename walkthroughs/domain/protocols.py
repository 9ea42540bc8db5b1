"""Protocol interfaces for walkthrough pipeline components."""

from typing import Any, Protocol, runtime_checkable

import numpy as np


@runtime_checkable
class IMetric(Protocol):
    """Interface for evaluation metrics.

    ``direction`` is ``"maximize"`` or ``"minimize"``. Metrics that score
    class probabilities set ``needs_proba`` and read ``y_proba``, whose
    columns follow ``classes``.
    """

    @property
    def name(self) -> str:
        ...

    @property
    def direction(self) -> str:
        ...

    @property
    def needs_proba(self) -> bool:
        ...

    def compute(
        self,
        y_true: np.ndarray,
        y_pred: np.ndarray,
        y_proba: np.ndarray | None = None,
        classes: list[Any] | None = None,
    ) -> float:
        ...


@runtime_checkable
class IClassifier(Protocol):
    """The slice of the scikit-learn classifier API the pipelines rely on."""

    def fit(self, X: Any, y: np.ndarray) -> Any:
        ...

    def predict(self, X: Any) -> np.ndarray:
        ...

    def get_params(self, deep: bool = True) -> dict[str, Any]:
        ...

    def set_params(self, **params: Any) -> Any:
        ...

