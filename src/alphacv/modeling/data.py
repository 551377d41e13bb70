"""
Dataset loading and preparation.

Reads a CSV, picks the target and feature columns and validates the
result so the cross-validation loop only ever sees finite numbers.
"""

from pathlib import Path

import pandas as pd

from alphacv.config.settings import AlphaCVConfig
from alphacv.schemas.frames import build_modeling_schema
from alphacv.utils.logging import get_logger

log = get_logger(__name__)


def split_features_target(
    df: pd.DataFrame,
    target: str,
    features: list[str] | None = None,
) -> tuple[pd.DataFrame, pd.Series]:
    """
    Split a frame into a validated feature matrix and target vector.

    Args:
        df: Input frame.
        target: Target column name.
        features: Feature columns. If None, every numeric column except the
            target is used.

    Returns:
        Tuple of (X, y) with float columns.

    Raises:
        KeyError: If the target or a requested feature is missing.
        ValueError: If no feature columns remain.
        pandera.errors.SchemaError: If values are null, non-numeric or infinite.
    """
    if target not in df.columns:
        msg = f"Target column '{target}' not found. Available: {list(df.columns)}"
        raise KeyError(msg)

    if features is None:
        features = [
            col
            for col in df.select_dtypes(include="number").columns
            if col != target
        ]
    else:
        missing = [col for col in features if col not in df.columns]
        if missing:
            msg = f"Feature columns not found: {missing}"
            raise KeyError(msg)
        if target in features:
            msg = f"Target column '{target}' cannot also be a feature"
            raise ValueError(msg)

    if not features:
        msg = "No numeric feature columns available"
        raise ValueError(msg)

    schema = build_modeling_schema([*features, target])
    validated = schema.validate(df[[*features, target]])

    X = validated[features].astype(float)
    y = validated[target].astype(float)

    log.info(
        "Prepared modeling data",
        n_samples=len(X),
        n_features=len(features),
        target=target,
    )
    return X, y


def read_csv(path: Path, separator: str = ",") -> pd.DataFrame:
    """Read a CSV file, failing clearly when it does not exist."""
    path = Path(path)
    if not path.exists():
        msg = f"Data file not found: {path}"
        raise FileNotFoundError(msg)
    df = pd.read_csv(path, sep=separator)
    log.debug("Read CSV", path=str(path), rows=len(df), columns=len(df.columns))
    return df


def load_dataset(
    config: AlphaCVConfig,
    path: Path | None = None,
) -> tuple[pd.DataFrame, pd.Series]:
    """
    Load the configured dataset.

    Args:
        config: Run configuration.
        path: Optional override for ``config.data.path``.

    Returns:
        Tuple of (X, y).
    """
    data_path = path or config.data.path
    if data_path is None:
        msg = "No data path given (set data.path in the config or pass --data)"
        raise ValueError(msg)

    df = read_csv(data_path, config.data.separator)
    return split_features_target(df, config.data.target, config.data.features)
