"""
Model persistence (save/load).

A saved model is two files next to each other:
    - {base}.model.joblib: the fitted pipeline
    - {base}.model.json: human-readable metadata (alpha, coefficients, metrics)
"""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import joblib
from sklearn.pipeline import Pipeline

from alphacv.modeling.crossval import CVFitResult
from alphacv.utils.logging import get_logger

log = get_logger(__name__)

MODEL_SUFFIX = ".model.joblib"
METADATA_SUFFIX = ".model.json"


def _base_path(path: Path) -> Path:
    """Strip a known model/metadata suffix from ``path``."""
    name = path.name
    for suffix in (MODEL_SUFFIX, METADATA_SUFFIX):
        if name.endswith(suffix):
            return path.with_name(name[: -len(suffix)])
    return path


def build_metadata(result: CVFitResult) -> dict[str, Any]:
    """Collect JSON-serializable metadata for a fitted result."""
    return {
        "penalty": result.penalty,
        "alpha": result.alpha,
        "selection_rule": result.selection.rule,
        "cv_mean_mse": result.selection.mean_error,
        "intercept": result.intercept,
        "coefficients": {str(k): float(v) for k, v in result.coef.items()},
        "n_nonzero": result.n_nonzero,
        "n_samples": result.path.n_samples,
        "alphas": [float(a) for a in result.path.alphas],
        "mean_mse_path": [float(e) for e in result.path.mean_errors],
        "metrics": result.metrics.to_dict(),
        "settings": result.settings,
        "saved_at": datetime.now(timezone.utc).isoformat(),
    }


def save_model(result: CVFitResult, output_path: Path) -> tuple[Path, Path]:
    """
    Save a fitted model and its metadata.

    Args:
        result: Cross-validated fit result.
        output_path: Base output path (suffixes are added).

    Returns:
        Tuple of (model_path, metadata_path).
    """
    base = _base_path(Path(output_path))
    base.parent.mkdir(parents=True, exist_ok=True)

    model_path = base.with_name(base.name + MODEL_SUFFIX)
    metadata_path = base.with_name(base.name + METADATA_SUFFIX)

    joblib.dump(result.estimator, model_path)
    log.info("Saved model", path=str(model_path))

    with open(metadata_path, "w", encoding="utf-8") as f:
        json.dump(build_metadata(result), f, indent=2)
    log.info("Saved model metadata", path=str(metadata_path))

    return model_path, metadata_path


def load_model(path: Path) -> tuple[Pipeline, dict[str, Any]]:
    """
    Load a model and its metadata.

    Accepts the joblib file, the json file or the shared base path.

    Args:
        path: Any of the three paths.

    Returns:
        Tuple of (pipeline, metadata).

    Raises:
        FileNotFoundError: If either file is missing.
    """
    base = _base_path(Path(path))
    model_path = base.with_name(base.name + MODEL_SUFFIX)
    metadata_path = base.with_name(base.name + METADATA_SUFFIX)

    for required in (model_path, metadata_path):
        if not required.exists():
            msg = f"Model file not found: {required}"
            raise FileNotFoundError(msg)

    pipeline = joblib.load(model_path)
    with open(metadata_path, encoding="utf-8") as f:
        metadata = json.load(f)

    log.info(
        "Loaded model",
        path=str(model_path),
        penalty=metadata.get("penalty"),
        alpha=metadata.get("alpha"),
    )
    return pipeline, metadata
