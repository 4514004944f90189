"""
Dyad time series: a pairwise measure for every edge of every window.
"""

from typing import Any, Optional, Union

import polars as pl

from netts.common.exceptions import ConfigurationError
from netts.common.logging_config import get_logger, log_function_entry
from netts.network.aggregation import aggregate_edges
from netts.network.dyads import DyadMeasure, get_dyad_measure
from netts.timeseries.events import EventLog
from netts.timeseries.extraction import ProgressCallback, extract_networks
from netts.timeseries.measures import apply_measure, measures_to_frame

logger = get_logger(__name__)


def dyad_ts(
    events: Union[str, pl.DataFrame, EventLog],
    window_size: Any,
    window_shift: Any,
    measure: Union[str, DyadMeasure] = "proportion",
    directed: bool = True,
    threshold: int = 30,
    trim: bool = False,
    n_jobs: int = 1,
    start_time: Optional[Any] = None,
    end_time: Optional[Any] = None,
    progress: Optional[ProgressCallback] = None
) -> pl.DataFrame:
    """
    Extract a time series of pairwise measures using a moving window.

    Parameters
    ----------
    events : Union[str, pl.DataFrame, EventLog]
        Event log
    window_size, window_shift
        Window length and offset
    measure : Union[str, DyadMeasure], default "proportion"
        Name of an entry of ``DYAD_MEASURES`` or a strategy instance
    directed : bool, default True
        Whether events are directed
    threshold : int, default 30
        Windows with at most this many events give a row of missing values
    trim : bool, default False
        Drop edges of nodes not observed across the whole window
    n_jobs : int, default 1
        Worker processes for snapshot extraction
    start_time, end_time : optional
        Override the schedule's first window start and latest window end
    progress : Callable[[str, int, int], None], optional
        Observer passed to the extraction loop

    Returns
    -------
    pl.DataFrame
        One column per pair ``"<source>_<target>"`` of the whole event log,
        null where the pair is absent or the window is masked, followed by
        ``n_events``, ``window_start`` and ``window_end``

    Examples
    --------
    >>> result = dyad_ts(events, 10, 10, measure="weight", threshold=0)
    >>> result.columns
    ['A_B', 'B_C', 'n_events', 'window_start', 'window_end']
    """
    strategy = measure if isinstance(measure, DyadMeasure) else get_dyad_measure(measure)
    if isinstance(threshold, bool) or not isinstance(threshold, int) or threshold < 0:
        raise ConfigurationError(
            f"threshold must be a non-negative integer, got {threshold!r}",
            parameter="threshold",
            value=threshold
        )
    log_function_entry("dyad_ts", measure=strategy.name, directed=directed, threshold=threshold)

    event_log = events if isinstance(events, EventLog) else EventLog(events)
    # columns cover every pair of the whole log, measured or not
    pairs = aggregate_edges(event_log.frame, directed=directed).select(["source", "target"])

    snapshots = extract_networks(
        event_log, window_size, window_shift,
        directed=directed, trim=trim, n_jobs=n_jobs,
        start_time=start_time, end_time=end_time, progress=progress
    )

    values = []
    for snapshot in snapshots:
        if snapshot.n_events > threshold:
            values.append(apply_measure(strategy, snapshot, window_index=snapshot.index))
        else:
            values.append(None)

    skipped = sum(value is None for value in values)
    if skipped:
        logger.debug("%d of %d windows at or below the event threshold", skipped, len(values))

    return measures_to_frame(values, snapshots, mapping=True, keys=pairs.rows())
