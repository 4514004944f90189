"""
Input validation utilities for event logs.

These checks run once, when an event log is loaded, so that the window
extraction and measurement engines can assume well-formed data.
"""

from datetime import date, datetime, timedelta
from typing import Any, List
import warnings

import polars as pl

from .exceptions import ValidationError, ConfigurationError

EVENT_COLUMNS: List[str] = ["source", "target", "weight", "timestamp"]


def validate_event_frame(
    df: pl.DataFrame,
    source_col: str = "source",
    target_col: str = "target",
    weight_col: str = "weight",
    timestamp_col: str = "timestamp"
) -> None:
    """
    Validate an event log DataFrame.

    Parameters
    ----------
    df : pl.DataFrame
        Event log with endpoint, weight and timestamp columns
    source_col, target_col, weight_col, timestamp_col : str
        Column names of the four event fields

    Raises
    ------
    ValidationError
        If the DataFrame fails any validation check

    Examples
    --------
    >>> df = pl.DataFrame({
    ...     "source": ["A", "B"],
    ...     "target": ["B", "C"],
    ...     "weight": [1.0, 2.0],
    ...     "timestamp": [1, 2],
    ... })
    >>> validate_event_frame(df)

    Notes
    -----
    - Endpoint columns must be non-null
    - Weights must be numeric, non-null and non-negative
    - Timestamps must be non-null and totally ordered (datetime, date or numeric)
    - Self-referencing events are allowed but reported with a warning
    """
    if df.is_empty():
        raise ValidationError("Event log is empty", field="dataframe")

    required_cols = [source_col, target_col, weight_col, timestamp_col]
    missing_cols = [col for col in required_cols if col not in df.columns]
    if missing_cols:
        raise ValidationError(
            f"Missing required columns: {missing_cols}",
            field="columns",
            details={"available_columns": df.columns, "missing": missing_cols}
        )

    for col in (source_col, target_col):
        null_count = df[col].null_count()
        if null_count > 0:
            raise ValidationError(
                f"Column contains {null_count} null values",
                field=col,
                details={"null_count": null_count, "total_rows": len(df)}
            )

    if df[source_col].dtype != df[target_col].dtype:
        raise ValidationError(
            f"Endpoint columns have different types: "
            f"{df[source_col].dtype} and {df[target_col].dtype}",
            field=target_col,
            expected=str(df[source_col].dtype)
        )

    weights = df[weight_col]
    if not weights.dtype.is_numeric():
        raise ValidationError(
            f"Weight column must be numeric, got {weights.dtype}",
            field=weight_col,
            details={"dtype": str(weights.dtype)}
        )

    null_count = weights.null_count()
    if null_count > 0:
        raise ValidationError(
            f"Weight column contains {null_count} null values",
            field=weight_col,
            details={"null_count": null_count}
        )

    min_weight = weights.min()
    if min_weight is not None and min_weight < 0:
        negative_count = int((weights < 0).sum())
        raise ValidationError(
            f"Weight column contains {negative_count} negative values. "
            f"Minimum weight: {min_weight}",
            field=weight_col,
            details={"min_weight": min_weight, "negative_count": negative_count}
        )

    validate_timestamps(df[timestamp_col], column_name=timestamp_col)

    self_loops = int((df[source_col] == df[target_col]).sum())
    if self_loops > 0:
        warnings.warn(
            f"Event log contains {self_loops} self-referencing events. "
            "These events cannot be permuted without creating self-loops."
        )


def validate_timestamps(
    timestamps: pl.Series,
    column_name: str = "timestamp"
) -> None:
    """
    Validate an already-parsed timestamp column.

    Raises
    ------
    ValidationError
        If the column is empty, contains nulls, or is not orderable
        with duration arithmetic (temporal or numeric)
    """
    if timestamps.is_empty():
        raise ValidationError("Timestamp series is empty", field=column_name)

    null_count = timestamps.null_count()
    if null_count > 0:
        raise ValidationError(
            f"Column contains {null_count} null timestamps",
            field=column_name,
            details={"null_count": null_count}
        )

    if not (timestamps.dtype.is_temporal() or timestamps.dtype.is_numeric()):
        raise ValidationError(
            f"Timestamps must be temporal or numeric, got {timestamps.dtype}",
            field=column_name,
            expected="datetime, date or numeric"
        )

    if timestamps.dtype.is_float() and timestamps.is_nan().any():
        raise ValidationError("Column contains NaN timestamps", field=column_name)


def check_window_parameters(window_size: Any, window_shift: Any, sample_time: Any) -> None:
    """
    Check that window size and shift are positive and compatible with the timestamps.

    Parameters
    ----------
    window_size, window_shift
        Durations (``timedelta`` for temporal logs, numbers for numeric logs)
    sample_time
        Any timestamp of the log, used to check that durations can be added

    Raises
    ------
    ValidationError
        If a duration cannot be added to a timestamp
    ConfigurationError
        If a duration is zero or negative, or not a whole number of days for
        date timestamps
    """
    for name, value in (("window_size", window_size), ("window_shift", window_shift)):
        try:
            sample_time + value
        except TypeError as e:
            raise ValidationError(
                f"{name} of type {type(value).__name__} cannot be added to "
                f"timestamps of type {type(sample_time).__name__}",
                field=name,
                cause=e
            )
        if value <= value * 0:
            raise ConfigurationError(
                f"Parameter '{name}' must be positive, got {value}",
                parameter=name,
                value=value
            )
        # date + timedelta ignores hours and smaller units
        if isinstance(sample_time, date) and not isinstance(sample_time, datetime) \
                and isinstance(value, timedelta) and value % timedelta(days=1):
            raise ConfigurationError(
                f"Parameter '{name}' must be a whole number of days for date "
                f"timestamps, got {value}",
                parameter=name,
                value=value
            )
