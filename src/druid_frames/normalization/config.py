"""Normalization configuration constants.

This module centralizes the tunables and reserved names used by inference,
normalization and layout shaping.
"""

from __future__ import annotations

from druid_frames.core.enums import ColumnType

# ============================================================================
# INFERENCE
# ============================================================================

# Maximum number of evenly spaced rows sampled per column
SAMPLE_SIZE = 5

# Seed bucket of the vote tally; never elected since it never gets a vote
NIL_VOTE = "nil"

# Numeric cells are timestamps (epoch millis) in these columns
TIME_COLUMN_NAME = "__time"
TIME_COLUMN_MARKER = "time_"

# Type used when a column receives no votes at all
DEFAULT_COLUMN_TYPE = ColumnType.STRING


# ============================================================================
# NORMALIZATION
# ============================================================================

# Cell emitted for every row of a null-typed column
NULL_MARKER = "nil"


# ============================================================================
# LAYOUT
# ============================================================================

# Source column and synthetic column of the log layout
LOG_MESSAGE_COLUMN = "message"
LOG_MESSAGE_FIELD = "____message"

# Frame attribute carrying the preferred visualization
PREFERRED_VISUALIZATION_ATTR = "preferred_visualization"
LOGS_VISUALIZATION = "logs"


__all__ = [
    "SAMPLE_SIZE",
    "NIL_VOTE",
    "TIME_COLUMN_NAME",
    "TIME_COLUMN_MARKER",
    "DEFAULT_COLUMN_TYPE",
    "NULL_MARKER",
    "LOG_MESSAGE_COLUMN",
    "LOG_MESSAGE_FIELD",
    "PREFERRED_VISUALIZATION_ATTR",
    "LOGS_VISUALIZATION",
]
