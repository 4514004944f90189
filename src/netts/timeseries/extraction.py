"""
Network time series extraction.

This module turns an event log into an ordered list of graph snapshots, one
per scheduled window, either sequentially or with a bounded pool of worker
processes.

In parallel mode every worker receives the immutable event table and node
spans once, through the pool initializer; each task then computes the edge
list of a single window from its index and bounds. No task writes shared
state, so no locking is needed. Results are gathered by window index, not by
completion order, before the snapshots are materialized.
"""

from typing import Any, Callable, List, Optional, Tuple, Union
from concurrent.futures import ProcessPoolExecutor, as_completed
import multiprocessing
import warnings

import polars as pl

from netts.common.exceptions import (
    ComputationError,
    ConfigurationError,
    UnsupportedCombinationWarning
)
from netts.common.logging_config import get_logger, log_function_entry, LoggingTimer
from netts.network.aggregation import build_edge_list
from netts.network.construction import GraphSnapshot, build_snapshot
from netts.timeseries.events import EventLog, window_events
from netts.timeseries.windows import Window, WindowScheduler

logger = get_logger(__name__)

ProgressCallback = Callable[[str, int, int], None]

# Per-process state installed by the pool initializer
_WORKER_FRAME: Optional[pl.DataFrame] = None
_WORKER_SPANS: Optional[pl.DataFrame] = None


def extract_networks(
    events: Union[str, pl.DataFrame, EventLog],
    window_size: Any,
    window_shift: Any,
    directed: bool = False,
    trim: bool = False,
    ratio_index: bool = False,
    n_jobs: int = 1,
    start_time: Optional[Any] = None,
    end_time: Optional[Any] = None,
    progress: Optional[ProgressCallback] = None
) -> List[GraphSnapshot]:
    """
    Create a time series of graph snapshots using a moving window.

    Parameters
    ----------
    events : Union[str, pl.DataFrame, EventLog]
        Event log (see ``EventLog``)
    window_size
        Length of each window (``timedelta`` for temporal logs, number otherwise)
    window_shift
        Offset between consecutive windows
    directed : bool, default False
        Whether events are directed
    trim : bool, default False
        Remove edges of nodes whose global observation span does not cover
        the window
    ratio_index : bool, default False
        Convert edge weights to the simple ratio index. Not supported with
        ``n_jobs != 1``; downgraded to sum aggregation with a warning.
    n_jobs : int, default 1
        Number of worker processes. 1 runs sequentially, -1 uses all cores.
    start_time, end_time : optional
        Override the schedule's first window start and latest window end
    progress : Callable[[str, int, int], None], optional
        Observer called with ``("extract", windows_done, windows_total)``

    Returns
    -------
    List[GraphSnapshot]
        One snapshot per scheduled window, in schedule order. Empty if the
        window size exceeds the observed range.

    Raises
    ------
    ConfigurationError
        If window or worker parameters are invalid

    Examples
    --------
    >>> from datetime import timedelta
    >>> snapshots = extract_networks(events, timedelta(days=30), timedelta(days=1))
    >>> [s.number_of_edges for s in snapshots[:3]]
    [12, 12, 13]
    """
    log_function_entry("extract_networks", directed=directed, trim=trim,
                       ratio_index=ratio_index, n_jobs=n_jobs)

    event_log = events if isinstance(events, EventLog) else EventLog(events)
    n_workers = _resolve_workers(n_jobs)
    parallel = n_jobs != 1

    if ratio_index and parallel:
        message = ("Ratio index is not available for parallel extraction; "
                   "using sum aggregation instead")
        logger.warning(message)
        warnings.warn(message, UnsupportedCombinationWarning, stacklevel=2)
        ratio_index = False

    scheduler = WindowScheduler(
        event_log.min_time, event_log.max_time, window_size, window_shift,
        start_time=start_time, end_time=end_time
    )
    windows = scheduler.windows()

    with LoggingTimer("extract_networks", {"windows": len(windows), "workers": n_workers}):
        if parallel and windows:
            snapshots = _extract_parallel(event_log, windows, directed, trim,
                                          n_workers, progress)
        else:
            snapshots = _extract_sequential(event_log, windows, directed, trim,
                                            ratio_index, progress)

    logger.info("%d networks extracted", len(snapshots))
    return snapshots


def extract_window(
    event_log: EventLog,
    window: Window,
    directed: bool = False,
    trim: bool = False,
    ratio_index: bool = False
) -> GraphSnapshot:
    """Build the snapshot of a single window."""
    return snapshot_from_events(
        event_log.window(window.start, window.end),
        window,
        directed=directed,
        ratio_index=ratio_index,
        node_spans=event_log.node_spans() if trim else None
    )


def snapshot_from_events(
    window_frame: pl.DataFrame,
    window: Window,
    directed: bool = False,
    ratio_index: bool = False,
    node_spans: Optional[pl.DataFrame] = None,
    n_events: Optional[int] = None
) -> GraphSnapshot:
    """
    Aggregate a set of window events into a snapshot.

    Used for observed windows as well as for permuted and subsampled event
    sets, which carry the raw event count of the observed window in
    ``n_events``.
    """
    edges = build_edge_list(
        window_frame,
        directed=directed,
        ratio_index=ratio_index,
        node_spans=node_spans,
        window_start=window.start,
        window_end=window.end
    )
    if n_events is None:
        n_events = len(window_frame)
    return build_snapshot(edges, directed, n_events,
                          window.start, window.end, index=window.index)


def _extract_sequential(
    event_log: EventLog,
    windows: List[Window],
    directed: bool,
    trim: bool,
    ratio_index: bool,
    progress: Optional[ProgressCallback]
) -> List[GraphSnapshot]:
    snapshots = []
    for window in windows:
        snapshots.append(extract_window(event_log, window, directed, trim, ratio_index))
        if progress is not None:
            progress("extract", window.index + 1, len(windows))
    return snapshots


def _extract_parallel(
    event_log: EventLog,
    windows: List[Window],
    directed: bool,
    trim: bool,
    n_workers: int,
    progress: Optional[ProgressCallback]
) -> List[GraphSnapshot]:
    logger.debug("Extracting %d windows with %d worker processes", len(windows), n_workers)

    spans = event_log.node_spans() if trim else None
    results: List[Optional[Tuple[pl.DataFrame, int]]] = [None] * len(windows)

    # spawn avoids forking a process that already runs Polars threads
    context = multiprocessing.get_context("spawn")
    with ProcessPoolExecutor(max_workers=min(n_workers, len(windows)),
                             mp_context=context,
                             initializer=_init_worker,
                             initargs=(event_log.frame, spans)) as executor:
        future_to_index = {
            executor.submit(_window_edges_worker, window.start, window.end, directed, trim): window.index
            for window in windows
        }

        done = 0
        for future in as_completed(future_to_index):
            index = future_to_index[future]
            try:
                results[index] = future.result()
            except Exception as e:
                raise ComputationError(
                    f"Failed to extract window {index} in parallel: {str(e)}",
                    operation="extract_window_parallel",
                    window_index=index,
                    cause=e
                )
            done += 1
            if progress is not None:
                progress("extract", done, len(windows))

    snapshots = []
    for window, (edges, n_events) in zip(windows, results):
        snapshots.append(build_snapshot(edges, directed, n_events,
                                        window.start, window.end, index=window.index))
    return snapshots


def _init_worker(frame: pl.DataFrame, spans: Optional[pl.DataFrame]) -> None:
    global _WORKER_FRAME, _WORKER_SPANS
    _WORKER_FRAME = frame
    _WORKER_SPANS = spans


def _window_edges_worker(
    window_start: Any,
    window_end: Any,
    directed: bool,
    trim: bool
) -> Tuple[pl.DataFrame, int]:
    """Edge list and raw event count of one window, computed in a worker process."""
    window_frame = window_events(_WORKER_FRAME, window_start, window_end)
    edges = build_edge_list(
        window_frame,
        directed=directed,
        node_spans=_WORKER_SPANS if trim else None,
        window_start=window_start,
        window_end=window_end
    )
    return edges, len(window_frame)


def _resolve_workers(n_jobs: int) -> int:
    if isinstance(n_jobs, bool) or not isinstance(n_jobs, int):
        raise ConfigurationError(
            f"n_jobs must be an integer, got {n_jobs!r}",
            parameter="n_jobs",
            value=n_jobs
        )
    if n_jobs == -1:
        return multiprocessing.cpu_count()
    if n_jobs < 1:
        raise ConfigurationError(
            f"n_jobs must be a positive integer or -1, got {n_jobs}",
            parameter="n_jobs",
            value=n_jobs
        )
    max_cores = multiprocessing.cpu_count()
    if n_jobs > max_cores:
        warnings.warn(
            f"Requested {n_jobs} workers but only {max_cores} cores available. "
            f"Using {max_cores} workers."
        )
        return max_cores
    return n_jobs
