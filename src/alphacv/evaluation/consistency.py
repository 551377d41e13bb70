"""
Consistency checks for cross-validation results.

Two questions are answered here:

- Does a published alpha/error table actually have its minimum at the
  alpha the surrounding text claims?
- Does the transparent K-fold loop pick the same alpha as scikit-learn's
  built-in RidgeCV / LassoCV on the same folds?
"""

from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import numpy as np
import pandas as pd
from sklearn.linear_model import LassoCV, RidgeCV
from sklearn.preprocessing import StandardScaler

from alphacv.config.settings import SelectionRule
from alphacv.modeling.crossval import (
    CVPath,
    Fold,
    cross_validate_alphas,
    select_alpha,
)
from alphacv.modeling.models import MODEL_REGISTRY, normalize_alphas
from alphacv.schemas.frames import AlphaTableSchema
from alphacv.utils.logging import get_logger

log = get_logger(__name__)


@dataclass(frozen=True)
class ConsistencyReport:
    """
    Result of checking a claimed minimum against an alpha/error table.

    Attributes:
        consistent: True if the claimed alpha has the minimal error.
        claimed_alpha: Alpha the narrative names as the minimum.
        actual_alpha: Alpha with the minimal error in the table.
        claimed_error: Error listed for the claimed alpha (None if absent).
        min_error: Minimal error in the table.
        message: Human-readable verdict.
    """

    consistent: bool
    claimed_alpha: float
    actual_alpha: float
    claimed_error: float | None
    min_error: float
    message: str


@dataclass(frozen=True)
class ReferenceComparison:
    """
    Min-rule alpha of the K-fold loop vs. scikit-learn's CV estimator.

    ``alpha`` is always the plain minimizer of the mean held-out error, which
    can differ from the alpha a ``one_se`` run ends up using.
    """

    penalty: str
    alpha: float
    reference_alpha: float
    mean_mse: float
    reference_mse: float
    approximate: bool

    @property
    def agree(self) -> bool:
        """True when both selected the same alpha."""
        return bool(np.isclose(self.alpha, self.reference_alpha, rtol=1e-9, atol=0.0))


def _to_table(table: Mapping[float, float] | pd.DataFrame) -> pd.DataFrame:
    if isinstance(table, pd.DataFrame):
        df = table.loc[:, ["alpha", "error"]]
    else:
        df = pd.DataFrame(
            {"alpha": list(table.keys()), "error": list(table.values())}
        )
    if df.empty:
        msg = "Alpha table is empty"
        raise ValueError(msg)
    validated = AlphaTableSchema.validate(df)
    return validated.sort_values("alpha", ascending=False).reset_index(drop=True)


def load_alpha_table(path: Path) -> pd.DataFrame:
    """
    Read a two-column ``alpha,error`` CSV.

    Raises:
        FileNotFoundError: If the file does not exist.
        pandera.errors.SchemaError: If the table is malformed.
    """
    path = Path(path)
    if not path.exists():
        msg = f"Alpha table not found: {path}"
        raise FileNotFoundError(msg)
    df = pd.read_csv(path)
    df.columns = [str(c).strip().lower() for c in df.columns]
    return _to_table(df)


def check_claimed_minimum(
    table: Mapping[float, float] | pd.DataFrame,
    claimed_alpha: float,
    *,
    rtol: float = 1e-9,
) -> ConsistencyReport:
    """
    Check that ``claimed_alpha`` has the smallest error in ``table``.

    Ties within ``rtol`` count as consistent. When several alphas share the
    minimum, ``actual_alpha`` is the strongest of them.

    Args:
        table: Mapping alpha -> error, or a DataFrame with those columns.
        claimed_alpha: Alpha claimed to be the minimum.
        rtol: Relative tolerance for matching alphas and comparing errors.

    Returns:
        ConsistencyReport.
    """
    df = _to_table(table)
    alphas = df["alpha"].to_numpy(dtype=float)
    errors = df["error"].to_numpy(dtype=float)

    # Rows are sorted by descending alpha, so the first tied row is the strongest
    tied = np.isclose(errors, errors.min(), rtol=rtol, atol=0.0)
    best = int(np.flatnonzero(tied)[0])
    actual_alpha = float(alphas[best])
    min_error = float(errors[best])

    matches = np.flatnonzero(np.isclose(alphas, claimed_alpha, rtol=rtol, atol=0.0))
    if matches.size == 0:
        report = ConsistencyReport(
            consistent=False,
            claimed_alpha=float(claimed_alpha),
            actual_alpha=actual_alpha,
            claimed_error=None,
            min_error=min_error,
            message=(
                f"alpha={claimed_alpha:g} is not in the table; "
                f"the minimum is at alpha={actual_alpha:g} (error {min_error:g})"
            ),
        )
    else:
        claimed_error = float(errors[matches[0]])
        consistent = bool(
            np.isclose(claimed_error, min_error, rtol=rtol, atol=0.0)
            or claimed_error <= min_error
        )
        if consistent:
            message = (
                f"alpha={claimed_alpha:g} has the minimal error ({claimed_error:g})"
            )
        else:
            message = (
                f"alpha={claimed_alpha:g} has error {claimed_error:g}, but "
                f"alpha={actual_alpha:g} is lower ({min_error:g})"
            )
        report = ConsistencyReport(
            consistent=consistent,
            claimed_alpha=float(claimed_alpha),
            actual_alpha=actual_alpha,
            claimed_error=claimed_error,
            min_error=min_error,
            message=message,
        )

    log.info(
        "Checked claimed minimum",
        claimed_alpha=report.claimed_alpha,
        actual_alpha=report.actual_alpha,
        consistent=report.consistent,
    )
    return report


def compare_with_reference(
    name: str,
    X: pd.DataFrame | np.ndarray,
    y: pd.Series | np.ndarray,
    alphas: Any,
    folds: list[Fold],
    *,
    standardize: bool = False,
    fit_intercept: bool = True,
    max_iter: int = 10_000,
    tol: float = 1e-4,
    path: CVPath | None = None,
) -> ReferenceComparison:
    """
    Run the K-fold loop and scikit-learn's own CV estimator on the same folds.

    RidgeCV is scored by MSE so both sides minimize the same quantity. Both
    sklearn estimators take the plain minimum, so our side is always selected
    with the ``min`` rule, whatever rule the run was configured with.
    scikit-learn's estimators cannot scale inside folds, so with
    ``standardize`` the reference sees globally scaled features and the
    comparison is flagged as approximate.

    Args:
        name: Penalty name.
        X: Feature matrix.
        y: Target vector.
        alphas: Candidate alphas.
        folds: Train/test index pairs shared by both runs.
        standardize: Scale features (inside folds for the K-fold loop).
        fit_intercept: Whether to fit an intercept.
        max_iter: Lasso solver iterations.
        tol: Lasso solver tolerance.
        path: Path already computed on ``folds``. Its alphas replace
            ``alphas`` and the K-fold loop is not run again.

    Returns:
        ReferenceComparison.
    """
    if name not in MODEL_REGISTRY:
        available = ", ".join(MODEL_REGISTRY.keys())
        msg = f"Unknown penalty '{name}'. Available: {available}"
        raise KeyError(msg)

    X_arr = np.asarray(X, dtype=float)
    y_arr = np.asarray(y, dtype=float).ravel()

    if path is None:
        grid = normalize_alphas(alphas)
        path = cross_validate_alphas(
            name,
            X_arr,
            y_arr,
            grid,
            folds=folds,
            standardize=standardize,
            fit_intercept=fit_intercept,
            max_iter=max_iter,
            tol=tol,
        )
    else:
        if path.penalty != name:
            msg = f"CV path is for '{path.penalty}', not '{name}'"
            raise ValueError(msg)
        if path.n_folds != len(folds) or path.n_samples != len(y_arr):
            msg = (
                f"CV path has {path.n_folds} folds over {path.n_samples} rows, "
                f"expected {len(folds)} folds over {len(y_arr)} rows"
            )
            raise ValueError(msg)
        grid = path.alphas
    selection = select_alpha(path, SelectionRule.MIN)

    X_ref = StandardScaler().fit_transform(X_arr) if standardize else X_arr

    if name == "ridge":
        reference = RidgeCV(
            alphas=grid,
            cv=folds,
            scoring="neg_mean_squared_error",
            fit_intercept=fit_intercept,
        ).fit(X_ref, y_arr)
        reference_mse = float(-reference.best_score_)
    else:
        reference = LassoCV(
            alphas=grid,
            cv=folds,
            fit_intercept=fit_intercept,
            max_iter=max_iter,
            tol=tol,
        ).fit(X_ref, y_arr)
        ref_index = int(np.argmin(np.abs(reference.alphas_ - reference.alpha_)))
        reference_mse = float(reference.mse_path_.mean(axis=1)[ref_index])

    comparison = ReferenceComparison(
        penalty=name,
        alpha=selection.alpha,
        reference_alpha=float(reference.alpha_),
        mean_mse=selection.mean_error,
        reference_mse=reference_mse,
        approximate=standardize,
    )
    log.info(
        "Compared with reference estimator",
        penalty=name,
        alpha=comparison.alpha,
        reference_alpha=comparison.reference_alpha,
        agree=comparison.agree,
        approximate=comparison.approximate,
    )
    return comparison
