"""Pytest configuration and shared fixtures."""

from pathlib import Path

import numpy as np
import pandas as pd
import pytest

from alphacv.config import AlphaCVConfig
from alphacv.modeling.crossval import CVFitResult, run_cv

# Features x3 and x4 carry no signal; x2 lives on a much larger scale
TRUE_COEF = np.array([3.0, -0.2, 0.0, 0.0, 1.5])


@pytest.fixture
def regression_frame() -> pd.DataFrame:
    """Synthetic linear data with two irrelevant features and one wide-scale one."""
    rng = np.random.default_rng(42)
    n_samples = 120
    X = rng.normal(size=(n_samples, 5))
    X[:, 1] *= 10.0
    y = 4.0 + X @ TRUE_COEF + rng.normal(scale=1.0, size=n_samples)
    df = pd.DataFrame(X, columns=[f"x{i}" for i in range(1, 6)])
    df["y"] = y
    return df


@pytest.fixture
def regression_data(regression_frame: pd.DataFrame) -> tuple[pd.DataFrame, pd.Series]:
    """Feature matrix and target from the synthetic frame."""
    return regression_frame.drop(columns="y"), regression_frame["y"]


@pytest.fixture
def data_csv(tmp_path: Path, regression_frame: pd.DataFrame) -> Path:
    """Synthetic data written as CSV."""
    path = tmp_path / "data.csv"
    regression_frame.to_csv(path, index=False)
    return path


@pytest.fixture
def config_file(tmp_path: Path, data_csv: Path) -> Path:
    """A small run configuration pointing at the synthetic CSV."""
    path = tmp_path / "run.yaml"
    path.write_text(
        f"""
project: synthetic

data:
  path: {data_csv.name}
  target: y

alphas:
  n_alphas: 15

cv:
  n_folds: 5
  random_state: 7

output:
  root: "{(tmp_path / 'output').as_posix()}"
""",
        encoding="utf-8",
    )
    return path


@pytest.fixture
def lasso_result(regression_data: tuple[pd.DataFrame, pd.Series]) -> CVFitResult:
    """A small cross-validated lasso fit."""
    X, y = regression_data
    config = AlphaCVConfig(
        alphas={"n_alphas": 12}, cv={"n_folds": 4, "random_state": 0}
    )
    return run_cv("lasso", X, y, config)
