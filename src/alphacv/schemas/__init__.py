"""
Schema definitions using Pandera for data validation.

Covers the modeling frame (features + target), the cross-validation
path table and the two-column alpha/error tables quoted in reports.
"""

from alphacv.schemas.frames import (
    AlphaTableSchema,
    CVPathSchema,
    build_modeling_schema,
)

__all__ = [
    "AlphaTableSchema",
    "CVPathSchema",
    "build_modeling_schema",
]
