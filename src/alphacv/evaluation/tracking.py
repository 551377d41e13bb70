"""
MLflow experiment tracking for cross-validated fits.
"""

from datetime import datetime
from pathlib import Path
from typing import Any

import mlflow

from alphacv import __version__
from alphacv.config.settings import AlphaCVConfig
from alphacv.evaluation.metrics import RegressionMetrics
from alphacv.modeling.crossval import CVFitResult
from alphacv.utils.logging import get_logger

log = get_logger(__name__)


class CVExperiment:
    """
    One MLflow experiment per project; one run per cross-validated fit.

    Per-alpha mean MSE is logged as a stepped metric so the CV curve can
    be inspected in the MLflow UI.
    """

    def __init__(self, config: AlphaCVConfig) -> None:
        """
        Initialize experiment.

        Args:
            config: Run configuration.
        """
        self.config = config
        self._run_id: str | None = None

    def setup(self) -> None:
        """Set tracking URI and experiment."""
        mlflow.set_tracking_uri(self.config.mlflow.tracking_uri)
        mlflow.set_experiment(self.config.experiment_name)

        log.info(
            "Experiment setup",
            name=self.config.experiment_name,
            tracking_uri=self.config.mlflow.tracking_uri,
        )

    def start_run(
        self,
        run_name: str | None = None,
        tags: dict[str, str] | None = None,
    ) -> str:
        """Start an MLflow run and return its id."""
        run = mlflow.start_run(
            run_name=run_name,
            tags={"alphacv_version": __version__, **(tags or {})},
        )
        self._run_id = run.info.run_id
        log.info("Started MLflow run", run_id=self._run_id)
        return self._run_id

    def end_run(self) -> None:
        """End the current MLflow run."""
        mlflow.end_run()
        log.info("Ended MLflow run", run_id=self._run_id)

    def log_params(self, params: dict[str, Any]) -> None:
        """Log parameters."""
        mlflow.log_params(params)

    def log_metrics(
        self, metrics: RegressionMetrics | dict[str, float], step: int | None = None
    ) -> None:
        """Log metrics."""
        if isinstance(metrics, RegressionMetrics):
            metrics = metrics.to_dict()
        mlflow.log_metrics(metrics, step=step)

    def log_artifact(self, path: Path, artifact_path: str | None = None) -> None:
        """Log an artifact."""
        mlflow.log_artifact(str(path), artifact_path)

    def log_result(
        self,
        result: CVFitResult,
        *,
        plot_path: Path | None = None,
        log_model: bool = False,
    ) -> str:
        """
        Log a complete cross-validated fit as one run.

        Args:
            result: Fit result.
            plot_path: Optional CV path plot to attach.
            log_model: Also log the refit pipeline with mlflow.sklearn.

        Returns:
            Run ID.
        """
        self.setup()
        run_id = self.start_run(
            run_name=f"{result.penalty}-cv-{datetime.now():%Y%m%d-%H%M%S}",
            tags={"penalty": result.penalty},
        )
        try:
            self.log_params(
                {
                    "penalty": result.penalty,
                    "n_samples": result.path.n_samples,
                    "n_features": len(result.coef),
                    **result.settings,
                }
            )
            for step, (alpha, mse) in enumerate(
                zip(result.path.alphas, result.path.mean_errors, strict=True)
            ):
                self.log_metrics(
                    {"cv_mean_mse": float(mse), "alpha": float(alpha)}, step
                )

            self.log_metrics(
                {
                    "selected_alpha": result.alpha,
                    "selected_cv_mse": result.selection.mean_error,
                    "n_nonzero_coef": float(result.n_nonzero),
                    **{
                        f"train_{k}": float(v)
                        for k, v in result.metrics.to_dict().items()
                    },
                }
            )

            if plot_path is not None:
                self.log_artifact(plot_path, "plots")
            if log_model:
                mlflow.sklearn.log_model(result.estimator, artifact_path="model")
        finally:
            self.end_run()

        return run_id
