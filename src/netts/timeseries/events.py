"""
Event log loading and window subsetting.

An event log is a table of relational events with four fields in fixed
order: the two interacting parties, the weight of the interaction, and its
timestamp. ``EventLog`` normalizes those fields to the columns
``source``, ``target``, ``weight`` and ``timestamp``, validates them once,
and then serves read-only window subsets and per-node observation spans.
"""

from pathlib import Path
from typing import Any, Optional, Union

import polars as pl

from netts.common.exceptions import DataFormatError, ValidationError
from netts.common.validators import EVENT_COLUMNS, validate_event_frame
from netts.common.logging_config import get_logger

logger = get_logger(__name__)


class EventLog:
    """
    Read-only, validated event log.

    Parameters
    ----------
    data : Union[str, Path, pl.DataFrame, EventLog]
        Path to a CSV file or a DataFrame whose first four columns are
        ``[endpoint A, endpoint B, weight, timestamp]``. Column names are
        ignored; additional columns are dropped.

    Raises
    ------
    DataFormatError
        If the file cannot be read or the timestamps cannot be parsed
    ValidationError
        If the events fail validation (nulls, negative weights, ...)

    Examples
    --------
    >>> events = EventLog(pl.DataFrame({
    ...     "from": ["A", "A", "B"],
    ...     "to": ["B", "B", "C"],
    ...     "w": [1, 1, 2],
    ...     "t": [1, 5, 20],
    ... }))
    >>> events.min_time, events.max_time
    (1, 20)
    >>> len(events.window(0, 10))
    2
    """

    def __init__(self, data: Union[str, Path, pl.DataFrame, "EventLog"]) -> None:
        if isinstance(data, EventLog):
            self._frame = data.frame
            self._spans = data._spans
            return

        self._frame = _prepare_frame(_load_frame(data))
        self._spans: Optional[pl.DataFrame] = None

        logger.debug("Loaded %d events from %s to %s",
                     len(self._frame), self.min_time, self.max_time)

    @property
    def frame(self) -> pl.DataFrame:
        """The normalized event table."""
        return self._frame

    @property
    def min_time(self) -> Any:
        return self._frame["timestamp"].min()

    @property
    def max_time(self) -> Any:
        return self._frame["timestamp"].max()

    @property
    def n_events(self) -> int:
        return len(self._frame)

    def __len__(self) -> int:
        return len(self._frame)

    def window(self, start: Any, end: Any) -> pl.DataFrame:
        """Events with ``start <= timestamp < end``."""
        return window_events(self._frame, start, end)

    def node_spans(self) -> pl.DataFrame:
        """
        First and last observation time of every identifier over the whole log.

        Returns
        -------
        pl.DataFrame
            Columns ``node``, ``first_seen``, ``last_seen``; computed once
            and cached.
        """
        if self._spans is None:
            self._spans = compute_node_spans(self._frame)
        return self._spans

    def __repr__(self) -> str:
        return (f"EventLog(n_events={self.n_events}, "
                f"min_time={self.min_time}, max_time={self.max_time})")


def window_events(frame: pl.DataFrame, start: Any, end: Any) -> pl.DataFrame:
    """Subset a normalized event frame to the half-open window ``[start, end)``."""
    return frame.filter(
        (pl.col("timestamp") >= pl.lit(start)) &
        (pl.col("timestamp") < pl.lit(end))
    )


def compute_node_spans(frame: pl.DataFrame) -> pl.DataFrame:
    """Per-identifier first/last timestamp, counting both endpoint columns."""
    appearances = pl.concat([
        frame.select(pl.col("source").alias("node"), pl.col("timestamp")),
        frame.select(pl.col("target").alias("node"), pl.col("timestamp")),
    ])
    return (
        appearances
        .group_by("node")
        .agg(
            pl.col("timestamp").min().alias("first_seen"),
            pl.col("timestamp").max().alias("last_seen"),
        )
        .sort("node")
    )


def _load_frame(data: Union[str, Path, pl.DataFrame]) -> pl.DataFrame:
    if isinstance(data, (str, Path)):
        file_path = Path(data)
        if not file_path.exists():
            raise DataFormatError(
                f"Event log file not found: {data}",
                format_type="CSV",
                file_path=str(data)
            )
        try:
            logger.debug("Loading event log from file: %s", data)
            return pl.read_csv(file_path)
        except Exception as e:
            raise DataFormatError(
                f"Failed to parse CSV file: {str(e)}",
                format_type="CSV",
                file_path=str(data),
                cause=e
            )

    if isinstance(data, pl.DataFrame):
        return data

    raise DataFormatError(
        f"Invalid event log type: {type(data)}. Expected str, Path or pl.DataFrame",
        format_type="DataFrame"
    )


def _prepare_frame(df: pl.DataFrame) -> pl.DataFrame:
    """Rename the first four columns, parse string timestamps and validate."""
    if df.width < 4:
        raise ValidationError(
            f"Event log needs four columns [source, target, weight, timestamp], "
            f"got {df.width}",
            field="columns",
            details={"available_columns": df.columns}
        )

    frame = df.select(df.columns[:4])
    frame = frame.rename(dict(zip(frame.columns, EVENT_COLUMNS)))

    if frame["timestamp"].dtype == pl.Utf8:
        try:
            frame = frame.with_columns(pl.col("timestamp").str.to_datetime())
        except Exception as e:
            raise DataFormatError(
                f"Failed to parse timestamp column: {e}",
                format_type="datetime",
                cause=e
            )

    validate_event_frame(frame)
    return frame
