"""
K-fold alpha search for regularized linear regression.

The procedure, step by step:

1. Partition the rows into K folds.
2. For every candidate alpha and every fold, fit on the other K-1 folds
   and record the mean squared error on the held-out fold.
3. Average the held-out errors per alpha.
4. Select the alpha with the smallest average (or apply the one standard
   error rule).
5. Refit on all rows with the selected alpha.
"""

import time
from dataclasses import dataclass, field
from typing import Any

import numpy as np
import pandas as pd
from sklearn.metrics import mean_squared_error
from sklearn.model_selection import KFold
from sklearn.pipeline import Pipeline

from alphacv.config.settings import AlphaCVConfig, SelectionRule
from alphacv.evaluation.metrics import RegressionMetrics, compute_metrics
from alphacv.modeling.models import build_pipeline, compute_alpha_grid, normalize_alphas
from alphacv.schemas.frames import CVPathSchema
from alphacv.utils.logging import get_logger, log_context

log = get_logger(__name__)

Fold = tuple[np.ndarray, np.ndarray]


@dataclass(frozen=True)
class CVPath:
    """
    Held-out errors for every (alpha, fold) pair.

    Attributes:
        penalty: Penalty name.
        alphas: Candidate alphas, strongest penalty first.
        fold_errors: Held-out MSE, shape (n_alphas, n_folds).
        n_samples: Number of rows cross-validated.
    """

    penalty: str
    alphas: np.ndarray
    fold_errors: np.ndarray
    n_samples: int

    @property
    def n_folds(self) -> int:
        """Number of folds."""
        return int(self.fold_errors.shape[1])

    @property
    def mean_errors(self) -> np.ndarray:
        """Held-out MSE averaged over folds, one value per alpha."""
        return self.fold_errors.mean(axis=1)

    @property
    def std_errors(self) -> np.ndarray:
        """Standard deviation of held-out MSE over folds."""
        return self.fold_errors.std(axis=1)

    def to_frame(self) -> pd.DataFrame:
        """Tabulate the path: alpha, mean_mse, std_mse, fold_0..fold_k."""
        df = pd.DataFrame(
            {
                "alpha": self.alphas,
                "mean_mse": self.mean_errors,
                "std_mse": self.std_errors,
            }
        )
        for i in range(self.n_folds):
            df[f"fold_{i}"] = self.fold_errors[:, i]
        return CVPathSchema.validate(df)


@dataclass(frozen=True)
class AlphaSelection:
    """The alpha picked from a CV path."""

    alpha: float
    index: int
    mean_error: float
    rule: str


@dataclass
class CVFitResult:
    """
    Outcome of a full cross-validated fit for one penalty.

    Attributes:
        penalty: Penalty name.
        path: CV errors for every alpha.
        selection: Selected alpha.
        estimator: Pipeline refit on all rows with the selected alpha.
        coef: Coefficients on the original feature scale.
        intercept: Intercept on the original feature scale.
        metrics: In-sample metrics of the refit estimator.
        settings: CV settings used (for persistence and tracking).
    """

    penalty: str
    path: CVPath
    selection: AlphaSelection
    estimator: Pipeline
    coef: pd.Series
    intercept: float
    metrics: RegressionMetrics
    settings: dict[str, Any] = field(default_factory=dict)
    fit_time_s: float = 0.0

    @property
    def alpha(self) -> float:
        """Selected alpha."""
        return self.selection.alpha

    @property
    def n_nonzero(self) -> int:
        """Number of non-zero coefficients."""
        return int(np.count_nonzero(self.coef.to_numpy()))


def make_folds(
    n_samples: int,
    n_folds: int = 5,
    *,
    shuffle: bool = True,
    random_state: int | None = None,
) -> list[Fold]:
    """
    Partition row indices into K train/test folds.

    Args:
        n_samples: Number of rows.
        n_folds: Number of folds (K).
        shuffle: Shuffle rows before partitioning.
        random_state: Seed for shuffling; equal seeds give equal folds.

    Returns:
        List of (train_indices, test_indices) tuples.

    Raises:
        ValueError: If K < 2 or K exceeds the number of rows.
    """
    if n_folds < 2:
        msg = f"n_folds must be at least 2, got {n_folds}"
        raise ValueError(msg)
    if n_folds > n_samples:
        msg = f"n_folds={n_folds} exceeds the number of samples ({n_samples})"
        raise ValueError(msg)

    kfold = KFold(
        n_splits=n_folds,
        shuffle=shuffle,
        random_state=random_state if shuffle else None,
    )
    return list(kfold.split(np.arange(n_samples)))


def _take(data: pd.DataFrame | pd.Series | np.ndarray, idx: np.ndarray) -> Any:
    if isinstance(data, (pd.DataFrame, pd.Series)):
        return data.iloc[idx]
    return data[idx]


def cross_validate_alphas(
    name: str,
    X: pd.DataFrame | np.ndarray,
    y: pd.Series | np.ndarray,
    alphas: Any,
    *,
    folds: list[Fold],
    standardize: bool = True,
    fit_intercept: bool = True,
    **model_kwargs: Any,
) -> CVPath:
    """
    Record the held-out MSE of every alpha on every fold.

    Args:
        name: Penalty name.
        X: Feature matrix.
        y: Target vector.
        alphas: Candidate alphas (normalized to a descending grid).
        folds: Train/test index pairs, e.g. from make_folds.
        standardize: Scale features inside each training fold.
        fit_intercept: Whether the estimator fits an intercept.
        **model_kwargs: Extra estimator parameters.

    Returns:
        CVPath with shape (n_alphas, n_folds) errors.
    """
    if not folds:
        msg = "At least one fold is required"
        raise ValueError(msg)

    grid = normalize_alphas(alphas)
    fold_errors = np.empty((len(grid), len(folds)), dtype=float)

    log.info(
        "Cross-validating alphas",
        penalty=name,
        n_alphas=len(grid),
        n_folds=len(folds),
    )

    for j, (train_idx, test_idx) in enumerate(folds):
        X_train, X_test = _take(X, train_idx), _take(X, test_idx)
        y_train, y_test = _take(y, train_idx), _take(y, test_idx)

        with log_context(penalty=name, fold=j):
            for i, alpha in enumerate(grid):
                pipeline = build_pipeline(
                    name,
                    float(alpha),
                    standardize=standardize,
                    fit_intercept=fit_intercept,
                    **model_kwargs,
                )
                pipeline.fit(X_train, y_train)
                fold_errors[i, j] = mean_squared_error(
                    y_test, pipeline.predict(X_test)
                )

            best = int(np.argmin(fold_errors[:, j]))
            log.debug(
                "Fold done",
                n_train=len(train_idx),
                n_test=len(test_idx),
                best_alpha=float(grid[best]),
                best_mse=float(fold_errors[best, j]),
            )

    return CVPath(
        penalty=name,
        alphas=grid,
        fold_errors=fold_errors,
        n_samples=len(y),
    )


def select_alpha(
    path: CVPath,
    rule: SelectionRule | str = SelectionRule.MIN,
) -> AlphaSelection:
    """
    Pick an alpha from a CV path.

    ``min`` takes the smallest mean error; ties go to the first alpha in the
    grid, which is the stronger penalty. ``one_se`` takes the strongest
    penalty whose mean error is within one standard error
    (std / sqrt(n_folds)) of that minimum.

    Args:
        path: CV path.
        rule: Selection rule.

    Returns:
        AlphaSelection.
    """
    rule = SelectionRule(rule)
    means = path.mean_errors
    best = int(np.argmin(means))

    if rule is SelectionRule.ONE_SE:
        se = path.std_errors[best] / np.sqrt(path.n_folds)
        threshold = means[best] + se
        # Alphas are descending, so the first candidate is the strongest penalty
        index = int(np.flatnonzero(means <= threshold)[0])
    else:
        index = best

    selection = AlphaSelection(
        alpha=float(path.alphas[index]),
        index=index,
        mean_error=float(means[index]),
        rule=rule.value,
    )
    log.info(
        "Selected alpha",
        penalty=path.penalty,
        alpha=selection.alpha,
        mean_mse=selection.mean_error,
        rule=selection.rule,
    )
    return selection


def refit(
    name: str,
    X: pd.DataFrame | np.ndarray,
    y: pd.Series | np.ndarray,
    alpha: float,
    *,
    standardize: bool = True,
    fit_intercept: bool = True,
    **model_kwargs: Any,
) -> Pipeline:
    """Fit the pipeline on all rows with the selected alpha."""
    pipeline = build_pipeline(
        name,
        alpha,
        standardize=standardize,
        fit_intercept=fit_intercept,
        **model_kwargs,
    )
    pipeline.fit(X, y)
    log.debug("Refit on all rows", penalty=name, alpha=alpha, n_samples=len(y))
    return pipeline


def unscaled_coefficients(pipeline: Pipeline) -> tuple[np.ndarray, float]:
    """
    Express a fitted pipeline's coefficients on the original feature scale.

    Returns:
        Tuple of (coef, intercept).
    """
    model = pipeline.named_steps["model"]
    coef = np.asarray(model.coef_, dtype=float).ravel()
    intercept = float(np.asarray(model.intercept_, dtype=float))

    scaler = pipeline.named_steps.get("scaler")
    if scaler is None:
        return coef, intercept

    scale = np.asarray(scaler.scale_, dtype=float)
    raw_coef = coef / scale
    raw_intercept = intercept - float(np.dot(raw_coef, scaler.mean_))
    return raw_coef, raw_intercept


def run_cv(
    name: str,
    X: pd.DataFrame,
    y: pd.Series,
    config: AlphaCVConfig,
) -> CVFitResult:
    """
    Run the full procedure for one penalty: grid, folds, path, selection, refit.

    Args:
        name: Penalty name.
        X: Feature matrix.
        y: Target vector.
        config: Run configuration.

    Returns:
        CVFitResult.
    """
    start = time.perf_counter()
    model_cfg = config.model
    model_kwargs = {"max_iter": model_cfg.max_iter, "tol": model_cfg.tol}

    if config.alphas.values is not None:
        alphas = normalize_alphas(config.alphas.values)
    else:
        alphas = compute_alpha_grid(
            name,
            X,
            y,
            n_alphas=config.alphas.n_alphas,
            eps=config.alphas.eps,
            standardize=model_cfg.standardize,
            fit_intercept=model_cfg.fit_intercept,
        )

    folds = make_folds(
        len(y),
        config.cv.n_folds,
        shuffle=config.cv.shuffle,
        random_state=config.cv.random_state,
    )

    path = cross_validate_alphas(
        name,
        X,
        y,
        alphas,
        folds=folds,
        standardize=model_cfg.standardize,
        fit_intercept=model_cfg.fit_intercept,
        **model_kwargs,
    )
    selection = select_alpha(path, config.selection.rule)

    estimator = refit(
        name,
        X,
        y,
        selection.alpha,
        standardize=model_cfg.standardize,
        fit_intercept=model_cfg.fit_intercept,
        **model_kwargs,
    )
    coef, intercept = unscaled_coefficients(estimator)
    feature_names = list(X.columns) if isinstance(X, pd.DataFrame) else None
    metrics = compute_metrics(np.asarray(y), estimator.predict(X))

    fit_time_s = time.perf_counter() - start
    log.info(
        "Cross-validated fit complete",
        penalty=name,
        alpha=selection.alpha,
        r2=f"{metrics.r2:.4f}",
        n_nonzero=int(np.count_nonzero(coef)),
        seconds=f"{fit_time_s:.2f}",
    )

    return CVFitResult(
        penalty=name,
        path=path,
        selection=selection,
        estimator=estimator,
        coef=pd.Series(coef, index=feature_names, name="coef"),
        intercept=intercept,
        metrics=metrics,
        settings={
            "n_folds": config.cv.n_folds,
            "shuffle": config.cv.shuffle,
            "random_state": config.cv.random_state,
            "standardize": model_cfg.standardize,
            "fit_intercept": model_cfg.fit_intercept,
            "selection_rule": selection.rule,
            "n_alphas": len(path.alphas),
        },
        fit_time_s=fit_time_s,
    )
