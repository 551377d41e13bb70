"""
scikit-learn compatible cross-validated Ridge and Lasso estimators.

These expose the same attributes users know from scikit-learn's own CV
estimators (``alpha_``, ``alphas_``, ``mse_path_``, ``coef_``,
``intercept_``) while keeping the full path available as ``cv_path_``.
"""

from typing import Any

import numpy as np
import pandas as pd
from sklearn.base import BaseEstimator, RegressorMixin
from sklearn.utils.validation import check_array, check_is_fitted, check_X_y

from alphacv.config.settings import SelectionRule
from alphacv.modeling.crossval import (
    cross_validate_alphas,
    make_folds,
    refit,
    select_alpha,
    unscaled_coefficients,
)
from alphacv.modeling.models import MODEL_REGISTRY, compute_alpha_grid, normalize_alphas
from alphacv.utils.logging import get_logger

log = get_logger(__name__)


class RegularizedCVRegressor(RegressorMixin, BaseEstimator):
    """
    Linear regression with an L1 or L2 penalty chosen by K-fold CV.

    Args:
        penalty: "ridge" or "lasso".
        alphas: Candidate alphas. If None, a log-spaced grid of ``n_alphas``
            values is derived from the data.
        n_alphas: Grid size when ``alphas`` is None.
        eps: alpha_min / alpha_max for the derived grid.
        cv: Number of folds, or a splitter with a ``split`` method.
        shuffle: Shuffle rows before building folds (int ``cv`` only).
        random_state: Seed for fold shuffling.
        standardize: Scale features inside every training fold.
        fit_intercept: Whether to fit an intercept.
        selection: "min" or "one_se".
        max_iter: Maximum solver iterations.
        tol: Solver tolerance.
    """

    def __init__(
        self,
        penalty: str = "ridge",
        alphas: Any = None,
        n_alphas: int = 100,
        eps: float = 1e-3,
        cv: Any = 5,
        shuffle: bool = True,
        random_state: int | None = None,
        standardize: bool = True,
        fit_intercept: bool = True,
        selection: str = "min",
        max_iter: int = 10_000,
        tol: float = 1e-4,
    ) -> None:
        self.penalty = penalty
        self.alphas = alphas
        self.n_alphas = n_alphas
        self.eps = eps
        self.cv = cv
        self.shuffle = shuffle
        self.random_state = random_state
        self.standardize = standardize
        self.fit_intercept = fit_intercept
        self.selection = selection
        self.max_iter = max_iter
        self.tol = tol

    def _folds(self, X: np.ndarray) -> list[tuple[np.ndarray, np.ndarray]]:
        if hasattr(self.cv, "split"):
            return list(self.cv.split(X))
        return make_folds(
            X.shape[0],
            int(self.cv),
            shuffle=self.shuffle,
            random_state=self.random_state,
        )

    def fit(self, X: Any, y: Any) -> "RegularizedCVRegressor":
        """
        Cross-validate the alpha grid, select an alpha and refit on all rows.

        Args:
            X: Feature matrix (array-like or DataFrame).
            y: Target vector.

        Returns:
            self
        """
        if self.penalty not in MODEL_REGISTRY:
            available = ", ".join(MODEL_REGISTRY.keys())
            msg = f"Unknown penalty '{self.penalty}'. Available: {available}"
            raise ValueError(msg)

        feature_names = (
            np.asarray(X.columns, dtype=object) if isinstance(X, pd.DataFrame) else None
        )
        X_arr, y_arr = check_X_y(X, y, dtype=float, y_numeric=True)

        if self.alphas is None:
            grid = compute_alpha_grid(
                self.penalty,
                X_arr,
                y_arr,
                n_alphas=self.n_alphas,
                eps=self.eps,
                standardize=self.standardize,
                fit_intercept=self.fit_intercept,
            )
        else:
            grid = normalize_alphas(self.alphas)

        model_kwargs = {"max_iter": self.max_iter, "tol": self.tol}
        path = cross_validate_alphas(
            self.penalty,
            X_arr,
            y_arr,
            grid,
            folds=self._folds(X_arr),
            standardize=self.standardize,
            fit_intercept=self.fit_intercept,
            **model_kwargs,
        )
        chosen = select_alpha(path, SelectionRule(self.selection))

        self.best_estimator_ = refit(
            self.penalty,
            X_arr,
            y_arr,
            chosen.alpha,
            standardize=self.standardize,
            fit_intercept=self.fit_intercept,
            **model_kwargs,
        )
        self.coef_, self.intercept_ = unscaled_coefficients(self.best_estimator_)

        self.cv_path_ = path
        self.selection_ = chosen
        self.alpha_ = chosen.alpha
        self.alphas_ = path.alphas
        self.mse_path_ = path.fold_errors
        self.n_features_in_ = X_arr.shape[1]
        if feature_names is not None:
            self.feature_names_in_ = feature_names

        return self

    def predict(self, X: Any) -> np.ndarray:
        """Predict with the estimator refit on the selected alpha."""
        check_is_fitted(self, "best_estimator_")
        X_arr = check_array(X, dtype=float)
        if X_arr.shape[1] != self.n_features_in_:
            msg = (
                f"X has {X_arr.shape[1]} features, but the model was fit "
                f"with {self.n_features_in_}"
            )
            raise ValueError(msg)
        return self.best_estimator_.predict(X_arr)


class RidgeCVRegressor(RegularizedCVRegressor):
    """Ridge (L2) regression with alpha chosen by K-fold CV."""

    def __init__(
        self,
        alphas: Any = None,
        n_alphas: int = 100,
        eps: float = 1e-3,
        cv: Any = 5,
        shuffle: bool = True,
        random_state: int | None = None,
        standardize: bool = True,
        fit_intercept: bool = True,
        selection: str = "min",
        max_iter: int = 10_000,
        tol: float = 1e-4,
    ) -> None:
        super().__init__(
            penalty="ridge",
            alphas=alphas,
            n_alphas=n_alphas,
            eps=eps,
            cv=cv,
            shuffle=shuffle,
            random_state=random_state,
            standardize=standardize,
            fit_intercept=fit_intercept,
            selection=selection,
            max_iter=max_iter,
            tol=tol,
        )


class LassoCVRegressor(RegularizedCVRegressor):
    """Lasso (L1) regression with alpha chosen by K-fold CV."""

    def __init__(
        self,
        alphas: Any = None,
        n_alphas: int = 100,
        eps: float = 1e-3,
        cv: Any = 5,
        shuffle: bool = True,
        random_state: int | None = None,
        standardize: bool = True,
        fit_intercept: bool = True,
        selection: str = "min",
        max_iter: int = 10_000,
        tol: float = 1e-4,
    ) -> None:
        super().__init__(
            penalty="lasso",
            alphas=alphas,
            n_alphas=n_alphas,
            eps=eps,
            cv=cv,
            shuffle=shuffle,
            random_state=random_state,
            standardize=standardize,
            fit_intercept=fit_intercept,
            selection=selection,
            max_iter=max_iter,
            tol=tol,
        )
