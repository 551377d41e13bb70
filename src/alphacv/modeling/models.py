"""
Model registry and alpha grids.

The solvers are scikit-learn's own Ridge and Lasso; this module only
decides how they are constructed and which alphas they are tried with.
"""

from typing import Any

import numpy as np
import pandas as pd
from sklearn.base import BaseEstimator
from sklearn.linear_model import Lasso, Ridge
from sklearn.pipeline import Pipeline
from sklearn.preprocessing import StandardScaler

from alphacv.utils.logging import get_logger

log = get_logger(__name__)


# Model configurations: penalty -> (class, default_kwargs)
MODEL_REGISTRY: dict[str, tuple[type[BaseEstimator], dict[str, Any]]] = {
    "ridge": (Ridge, {}),
    "lasso": (Lasso, {"max_iter": 10_000, "tol": 1e-4}),
}

# Parameters each estimator accepts on top of alpha/fit_intercept
_SOLVER_PARAMS: dict[str, set[str]] = {
    "ridge": {"solver", "tol", "max_iter", "random_state"},
    "lasso": {"max_iter", "tol", "selection", "random_state", "warm_start"},
}

# Used for ridge when no feature correlates with the target
RIDGE_FALLBACK_GRID = (1e-3, 1e3)


def get_model(name: str, **kwargs: Any) -> BaseEstimator:
    """
    Get an estimator instance by penalty name.

    Args:
        name: Penalty name from the registry ("ridge" or "lasso").
        **kwargs: Override default parameters.

    Returns:
        Unfitted estimator.

    Raises:
        KeyError: If the penalty is not registered.
    """
    if name not in MODEL_REGISTRY:
        available = ", ".join(MODEL_REGISTRY.keys())
        msg = f"Unknown penalty '{name}'. Available: {available}"
        raise KeyError(msg)

    model_class, default_kwargs = MODEL_REGISTRY[name]
    params = {**default_kwargs, **kwargs}

    log.debug("Creating model", name=name, params=params)
    return model_class(**params)


def list_models() -> list[str]:
    """List all available penalty names."""
    return list(MODEL_REGISTRY.keys())


def solver_kwargs(name: str, **kwargs: Any) -> dict[str, Any]:
    """Keep only the keyword arguments that ``name``'s estimator accepts."""
    allowed = _SOLVER_PARAMS.get(name, set())
    return {k: v for k, v in kwargs.items() if k in allowed and v is not None}


def build_pipeline(
    name: str,
    alpha: float,
    *,
    standardize: bool = True,
    fit_intercept: bool = True,
    **kwargs: Any,
) -> Pipeline:
    """
    Build an (optionally scaled) regularized regression pipeline.

    The scaler is part of the pipeline, so it is refit on every training
    fold and never sees held-out rows.

    Args:
        name: Penalty name.
        alpha: Regularization strength.
        standardize: Prepend a StandardScaler.
        fit_intercept: Whether the estimator fits an intercept.
        **kwargs: Extra estimator parameters (filtered per penalty).

    Returns:
        Unfitted Pipeline with a final step named "model".
    """
    model = get_model(
        name,
        alpha=alpha,
        fit_intercept=fit_intercept,
        **solver_kwargs(name, **kwargs),
    )
    steps: list[tuple[str, Any]] = []
    if standardize:
        steps.append(("scaler", StandardScaler()))
    steps.append(("model", model))
    return Pipeline(steps=steps)


def normalize_alphas(values: Any) -> np.ndarray:
    """
    Turn user-supplied alphas into a valid grid.

    Returns a unique, strictly positive array sorted from strongest to
    weakest penalty.

    Raises:
        ValueError: If the grid is empty or holds a non-positive or
            non-finite value.
    """
    alphas = np.asarray(values, dtype=float).ravel()
    if alphas.size == 0:
        msg = "Alpha grid must not be empty"
        raise ValueError(msg)
    if not np.all(np.isfinite(alphas)) or np.any(alphas <= 0):
        bad = alphas[~np.isfinite(alphas) | (alphas <= 0)].tolist()
        msg = f"Alphas must be finite and > 0, got: {bad}"
        raise ValueError(msg)
    return np.unique(alphas)[::-1].copy()


def _max_correlation(
    X: pd.DataFrame | np.ndarray,
    y: pd.Series | np.ndarray,
    *,
    standardize: bool,
    fit_intercept: bool,
) -> float:
    """Largest absolute inner product between a feature column and y."""
    X_arr = np.asarray(X, dtype=float)
    y_arr = np.asarray(y, dtype=float).ravel()

    if fit_intercept or standardize:
        X_arr = X_arr - X_arr.mean(axis=0)
        y_arr = y_arr - y_arr.mean()
    if standardize:
        scale = X_arr.std(axis=0)
        scale[scale == 0] = 1.0
        X_arr = X_arr / scale

    return float(np.max(np.abs(X_arr.T @ y_arr)))


def compute_alpha_grid(
    name: str,
    X: pd.DataFrame | np.ndarray,
    y: pd.Series | np.ndarray,
    *,
    n_alphas: int = 100,
    eps: float = 1e-3,
    standardize: bool = True,
    fit_intercept: bool = True,
) -> np.ndarray:
    """
    Compute a data-driven, log-spaced alpha grid.

    For lasso, ``alpha_max = max|X^T y| / n`` is the smallest alpha at which
    every coefficient is zero; the grid runs from there down to
    ``eps * alpha_max``. Ridge has no such cut-off and its loss is not
    divided by n, so the same quantity without the 1/n factor anchors its
    grid.

    Args:
        name: Penalty name.
        X: Feature matrix.
        y: Target vector.
        n_alphas: Number of grid points.
        eps: Ratio alpha_min / alpha_max.
        standardize: Whether features will be standardized before fitting.
        fit_intercept: Whether the estimator centers the data.

    Returns:
        Descending alpha grid.

    Raises:
        KeyError: If the penalty is not registered.
        ValueError: For lasso when no feature correlates with the target.
    """
    if name not in MODEL_REGISTRY:
        available = ", ".join(MODEL_REGISTRY.keys())
        msg = f"Unknown penalty '{name}'. Available: {available}"
        raise KeyError(msg)

    n_samples = len(y)
    max_corr = _max_correlation(
        X, y, standardize=standardize, fit_intercept=fit_intercept
    )

    if name == "lasso":
        alpha_max = max_corr / n_samples
        if alpha_max <= 0:
            msg = "Cannot build a lasso alpha grid: no feature correlates with y"
            raise ValueError(msg)
    elif max_corr > 0:
        alpha_max = max_corr
    else:
        log.warning("Ridge grid falls back to fixed range", range=RIDGE_FALLBACK_GRID)
        low, high = RIDGE_FALLBACK_GRID
        return normalize_alphas(np.geomspace(high, low, num=n_alphas))

    grid = np.geomspace(alpha_max, alpha_max * eps, num=n_alphas)
    log.debug(
        "Computed alpha grid",
        penalty=name,
        alpha_max=alpha_max,
        alpha_min=float(grid[-1]),
        n_alphas=n_alphas,
    )
    return normalize_alphas(grid)
