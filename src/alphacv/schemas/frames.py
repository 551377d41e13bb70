"""
Pandera schemas for modeling inputs and cross-validation outputs.
"""

import numpy as np
import pandas as pd
import pandera.pandas as pa
from pandera.typing import Series


def _all_finite(series: pd.Series) -> pd.Series:
    return pd.Series(np.isfinite(series.to_numpy(dtype=float)), index=series.index)


def build_modeling_schema(columns: list[str]) -> pa.DataFrameSchema:
    """
    Build a schema for a numeric modeling frame.

    The column set depends on the dataset, so the schema is assembled at
    runtime: every listed column must be present, coercible to float, non-null
    and finite.

    Args:
        columns: Feature columns plus the target column.

    Returns:
        DataFrameSchema that validates the given columns.
    """
    finite = pa.Check(_all_finite, error="values must be finite")
    return pa.DataFrameSchema(
        {
            col: pa.Column(float, checks=finite, nullable=False, coerce=True)
            for col in columns
        },
        strict=False,
        name="ModelingFrameSchema",
    )


class CVPathSchema(pa.DataFrameModel):
    """
    Schema for a cross-validation path table.

    One row per alpha, strongest penalty first. Per-fold columns
    (fold_0, fold_1, ...) are allowed as extra columns.
    """

    alpha: Series[float] = pa.Field(
        gt=0, unique=True, description="Regularization strength"
    )
    mean_mse: Series[float] = pa.Field(
        ge=0, description="Held-out MSE averaged over folds"
    )
    std_mse: Series[float] = pa.Field(
        ge=0, description="Std of held-out MSE over folds"
    )

    @pa.check("mean_mse", "std_mse")
    def finite_errors(cls, series: Series[float]) -> Series[bool]:
        """Errors must be finite."""
        return _all_finite(series)

    @pa.dataframe_check
    def alphas_descending(cls, df: pd.DataFrame) -> bool:
        """Rows are ordered from strongest to weakest penalty."""
        return bool(df["alpha"].is_monotonic_decreasing)

    class Config:
        """Schema configuration."""

        name = "CVPathSchema"
        strict = False
        coerce = True


class AlphaTableSchema(pa.DataFrameModel):
    """
    Schema for an alpha/error table, as quoted in a report or narrative.
    """

    alpha: Series[float] = pa.Field(
        gt=0, unique=True, description="Regularization strength"
    )
    error: Series[float] = pa.Field(ge=0, description="Reported average CV error")

    @pa.check("error")
    def finite_error(cls, series: Series[float]) -> Series[bool]:
        """Errors must be finite."""
        return _all_finite(series)

    class Config:
        """Schema configuration."""

        name = "AlphaTableSchema"
        strict = True
        coerce = True
