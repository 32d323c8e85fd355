"""druid-frames: typed, uniformly shaped tables from Apache Druid results.

Druid returns a different JSON shape per query type and no column schema.
This package unpacks every shape into rows, infers a stable type per column
by sampling, coerces cells into pandas dtypes and arranges the result in a
long, wide or log layout.
"""

__all__ = [
    "__version__",
]

__version__ = "0.1.0"
