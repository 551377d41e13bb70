"""
Typed configuration models using Pydantic.

Every knob of the cross-validation run lives here: which data to read,
which penalties to try, how alphas are generated, how folds are drawn
and how the winning alpha is picked.
"""

import math
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Penalty(str, Enum):
    """Supported regularization penalties."""

    RIDGE = "ridge"  # L2
    LASSO = "lasso"  # L1


class SelectionRule(str, Enum):
    """How the alpha is picked from the averaged CV errors."""

    MIN = "min"
    ONE_SE = "one_se"  # largest alpha within one standard error of the minimum


class DataConfig(BaseModel):
    """Input data configuration."""

    model_config = ConfigDict(frozen=True)

    path: Path | None = Field(default=None, description="Path to the input CSV")
    target: str = Field(default="y", description="Target column name")
    features: list[str] | None = Field(
        default=None,
        description="Feature columns (default: every other numeric column)",
    )
    separator: str = Field(default=",", description="CSV field separator")

    @field_validator("features")
    @classmethod
    def validate_features(cls, v: list[str] | None) -> list[str] | None:
        """Reject empty or duplicated feature lists."""
        if v is None:
            return v
        if not v:
            msg = "features must not be empty (omit it to use all numeric columns)"
            raise ValueError(msg)
        if len(set(v)) != len(v):
            msg = f"features contain duplicates: {v}"
            raise ValueError(msg)
        return v


class AlphaGridConfig(BaseModel):
    """Candidate regularization strengths.

    Either an explicit list of values, or a data-driven log-spaced grid of
    ``n_alphas`` points spanning ``eps`` ratio below the largest useful alpha.
    """

    model_config = ConfigDict(frozen=True)

    values: list[float] | None = Field(
        default=None, description="Explicit alpha values (overrides the grid)"
    )
    n_alphas: int = Field(default=100, ge=1, le=1000)
    eps: float = Field(default=1e-3, gt=0, lt=1)

    @field_validator("values")
    @classmethod
    def validate_values(cls, v: list[float] | None) -> list[float] | None:
        """Alphas must be finite and strictly positive."""
        if v is None:
            return v
        if not v:
            msg = "alphas.values must not be empty"
            raise ValueError(msg)
        bad = [a for a in v if not math.isfinite(a) or a <= 0]
        if bad:
            msg = f"alphas must be finite and > 0, got: {bad}"
            raise ValueError(msg)
        return v


class CVConfig(BaseModel):
    """K-fold cross-validation configuration."""

    model_config = ConfigDict(frozen=True)

    n_folds: int = Field(default=5, ge=2, le=50)
    shuffle: bool = Field(default=True)
    random_state: int | None = Field(default=1337)


class ModelConfig(BaseModel):
    """Estimator configuration shared by all penalties."""

    model_config = ConfigDict(frozen=True)

    penalties: list[Penalty] = Field(
        default_factory=lambda: [Penalty.RIDGE, Penalty.LASSO],
        description="Penalties to cross-validate",
    )
    standardize: bool = Field(
        default=True, description="Scale features inside every training fold"
    )
    fit_intercept: bool = Field(default=True)
    max_iter: int = Field(default=10_000, ge=1, description="Lasso solver iterations")
    tol: float = Field(default=1e-4, gt=0)

    @field_validator("penalties")
    @classmethod
    def validate_penalties(cls, v: list[Penalty]) -> list[Penalty]:
        """Require at least one penalty and drop repeats, keeping order."""
        if not v:
            msg = "model.penalties must name at least one penalty"
            raise ValueError(msg)
        return list(dict.fromkeys(v))


class SelectionConfig(BaseModel):
    """Alpha selection configuration."""

    model_config = ConfigDict(frozen=True)

    rule: SelectionRule = Field(default=SelectionRule.MIN)


class MLflowConfig(BaseModel):
    """MLflow experiment tracking configuration."""

    model_config = ConfigDict(frozen=True)

    enabled: bool = Field(default=False)
    tracking_uri: str = Field(default="http://127.0.0.1:5000")
    # experiment_name is optional; derived from project if not set
    experiment_name: str | None = Field(default=None)


class OutputConfig(BaseModel):
    """Output paths configuration.

    Structure: ./output/{project}/models, ./output/{project}/plots.
    """

    model_config = ConfigDict(frozen=True)

    root: Path = Field(default=Path("./output"))


class AlphaCVConfig(BaseModel):
    """Complete run configuration."""

    model_config = ConfigDict(frozen=True)

    project: str = Field(default="alphacv", min_length=1)
    data: DataConfig = Field(default_factory=DataConfig)
    alphas: AlphaGridConfig = Field(default_factory=AlphaGridConfig)
    cv: CVConfig = Field(default_factory=CVConfig)
    model: ModelConfig = Field(default_factory=ModelConfig)
    selection: SelectionConfig = Field(default_factory=SelectionConfig)
    mlflow: MLflowConfig = Field(default_factory=MLflowConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)

    @property
    def experiment_name(self) -> str:
        """MLflow experiment name (derived from project if not set)."""
        return self.mlflow.experiment_name or self.project

    @property
    def models_dir(self) -> Path:
        """Directory for saved models."""
        return self.output.root / self.project / "models"

    @property
    def plots_dir(self) -> Path:
        """Directory for CV path plots."""
        return self.output.root / self.project / "plots"
