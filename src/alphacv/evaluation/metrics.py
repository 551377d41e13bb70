"""
Evaluation metrics for regression models.
"""

from dataclasses import dataclass

import numpy as np
from sklearn.metrics import (
    max_error as sklearn_max_error,
)
from sklearn.metrics import (
    mean_absolute_error,
    mean_squared_error,
    r2_score,
)

from alphacv.utils.logging import get_logger

log = get_logger(__name__)


@dataclass(frozen=True)
class RegressionMetrics:
    """
    Standard regression metrics.

    Attributes:
        r2: R² (coefficient of determination)
        rmse: Root Mean Squared Error
        mae: Mean Absolute Error
        max_error: Maximum absolute error
        n_samples: Number of samples
    """

    r2: float
    rmse: float
    mae: float
    max_error: float
    n_samples: int

    @property
    def mse(self) -> float:
        """Mean Squared Error."""
        return self.rmse**2

    def to_dict(self) -> dict[str, float]:
        """Convert to dictionary."""
        return {
            "r2": self.r2,
            "rmse": self.rmse,
            "mae": self.mae,
            "max_error": self.max_error,
            "n_samples": self.n_samples,
        }

    def __str__(self) -> str:
        """String representation."""
        return (
            f"R²={self.r2:.4f}, RMSE={self.rmse:.4g}, "
            f"MAE={self.mae:.4g}, MaxErr={self.max_error:.4g}"
        )


def compute_metrics(
    y_true: np.ndarray,
    y_pred: np.ndarray,
) -> RegressionMetrics:
    """
    Compute regression metrics.

    Args:
        y_true: True values.
        y_pred: Predicted values.

    Returns:
        RegressionMetrics object.
    """
    y_true = np.asarray(y_true, dtype=float).ravel()
    y_pred = np.asarray(y_pred, dtype=float).ravel()

    if len(y_true) == 0 or len(y_pred) == 0:
        log.warning("Empty arrays provided for metrics")
        return RegressionMetrics(
            r2=0.0,
            rmse=0.0,
            mae=0.0,
            max_error=0.0,
            n_samples=0,
        )

    # R² is undefined for a single sample
    r2 = float(r2_score(y_true, y_pred)) if len(y_true) > 1 else 0.0

    metrics = RegressionMetrics(
        r2=r2,
        rmse=float(np.sqrt(mean_squared_error(y_true, y_pred))),
        mae=float(mean_absolute_error(y_true, y_pred)),
        max_error=float(sklearn_max_error(y_true, y_pred)),
        n_samples=len(y_true),
    )

    log.debug("Computed metrics", **metrics.to_dict())
    return metrics


def compute_residual_stats(
    y_true: np.ndarray,
    y_pred: np.ndarray,
) -> dict[str, float]:
    """
    Compute residual statistics.

    Args:
        y_true: True values.
        y_pred: Predicted values.

    Returns:
        Dictionary with residual statistics.
    """
    residuals = np.asarray(y_true, dtype=float) - np.asarray(y_pred, dtype=float)

    if residuals.size == 0:
        msg = "Cannot compute residual statistics of empty arrays"
        raise ValueError(msg)

    return {
        "residual_mean": float(np.mean(residuals)),
        "residual_std": float(np.std(residuals)),
        "residual_median": float(np.median(residuals)),
        "residual_min": float(np.min(residuals)),
        "residual_max": float(np.max(residuals)),
    }
