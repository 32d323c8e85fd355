"""Typing and shaping of unpacked Druid results.

Turns an UnpackedResult into presentation-ready output:

- **Inference**: per-column type election from sampled cells (inference.py)
- **Normalizer**: coercion of every cell into its column type (normalizer.py)
- **Layout**: long, wide and log output frames (layout.py)
- **Variables**: (value, text) options for template variables (variables.py)
- **Config**: sample size and reserved column names (import from .config)

Public API:
    infer_types: Build a typed ResultTable from an UnpackedResult
    normalize_table: Coerce a ResultTable into a typed DataFrame
    shape_frame: Arrange a normalized table into the requested layout
    project_variables: Flatten a ResultTable into MetricFindValue options
    MetricFindValue: A single variable option

Usage:
    >>> from druid_frames.normalization import infer_types, normalize_table, shape_frame
    >>> table = infer_types(unpacked)
    >>> frame = shape_frame(normalize_table(table))
"""

from __future__ import annotations

from .inference import infer_column_type, infer_types
from .layout import shape_frame
from .normalizer import normalize_table
from .variables import MetricFindValue, project_variables

__all__ = [
    # Inference
    "infer_types",
    "infer_column_type",
    # Normalization
    "normalize_table",
    # Output
    "shape_frame",
    "project_variables",
    "MetricFindValue",
]
