"""
Configuration management with typed Pydantic models.
"""

from alphacv.config.loader import load_config
from alphacv.config.settings import (
    AlphaCVConfig,
    AlphaGridConfig,
    CVConfig,
    DataConfig,
    MLflowConfig,
    ModelConfig,
    OutputConfig,
    Penalty,
    SelectionConfig,
    SelectionRule,
)

__all__ = [
    "AlphaCVConfig",
    "AlphaGridConfig",
    "CVConfig",
    "DataConfig",
    "MLflowConfig",
    "ModelConfig",
    "OutputConfig",
    "Penalty",
    "SelectionConfig",
    "SelectionRule",
    "load_config",
]
