"""
Network time series entry point.

``graph_ts`` chains the whole pipeline: event log -> window schedule ->
per-window snapshots -> measure series, optionally extended by permutation
confidence intervals and the sample-size convergence diagnostic.
"""

from typing import Any, Optional, Union

import numpy as np
import polars as pl

from netts.common.exceptions import ConfigurationError, require_positive
from netts.common.logging_config import get_logger, log_function_entry, LoggingTimer
from netts.timeseries.convergence import check_sample_floor, convergence_check
from netts.timeseries.events import EventLog
from netts.timeseries.extraction import ProgressCallback, extract_networks
from netts.timeseries.measures import (
    WINDOW_COLUMNS,
    MeasureFunction,
    extract_lagged_measures,
    extract_measures,
    resolve_measure
)
from netts.timeseries.permutation import check_confidence, permutation_graph_values
from netts.timeseries.windows import Window

logger = get_logger(__name__)


def graph_ts(
    events: Union[str, pl.DataFrame, EventLog],
    window_size: Any,
    window_shift: Any,
    measure_fn: MeasureFunction = "degree_mean",
    directed: bool = False,
    lagged: bool = False,
    lag: int = 1,
    first_net_only: bool = False,
    n_jobs: int = 1,
    n_perm: int = 0,
    confidence: float = 0.95,
    check_convergence: bool = False,
    sample_floor: int = 30,
    trim: bool = False,
    ratio_index: bool = False,
    start_time: Optional[Any] = None,
    end_time: Optional[Any] = None,
    seed: Optional[Union[int, np.random.Generator]] = None,
    max_retries: int = 1000,
    progress: Optional[ProgressCallback] = None
) -> pl.DataFrame:
    """
    Extract a time series of network measures using a moving window.

    Parameters
    ----------
    events : Union[str, pl.DataFrame, EventLog]
        Event log whose first four columns are
        ``[endpoint A, endpoint B, weight, timestamp]``
    window_size
        Length of each window (``timedelta`` for temporal logs, number otherwise)
    window_shift
        Offset between consecutive windows
    measure_fn : Union[str, Callable], default "degree_mean"
        Measure applied to every snapshot. Direct measures take one
        snapshot; lagged measures take ``(earlier, current)``. Names refer
        to ``MEASURES`` or ``LAGGED_MEASURES``.
    directed : bool, default False
        Whether events are directed
    lagged : bool, default False
        Compare each snapshot with an earlier one
    lag : int, default 1
        Distance in windows between compared snapshots (lagged mode)
    first_net_only : bool, default False
        Compare every snapshot with the first one (lagged mode)
    n_jobs : int, default 1
        Worker processes for snapshot extraction; 1 is sequential, -1 uses
        all cores
    n_perm : int, default 0
        Permutation iterations per window; 0 disables confidence intervals
    confidence : float, default 0.95
        Confidence level of permutation intervals
    check_convergence : bool, default False
        Add the sample-size convergence slope of every window
    sample_floor : int, default 30
        Number of subsample sizes evaluated by the convergence check
    trim : bool, default False
        Drop edges of nodes not observed across the whole window
    ratio_index : bool, default False
        Use simple ratio index edge weights (sequential extraction only)
    start_time, end_time : optional
        Override the schedule's first window start and latest window end
    seed : Union[int, np.random.Generator], optional
        Seed or generator for permutation and convergence sampling
    max_retries : int, default 1000
        Retry budget of each self-loop-free permutation swap
    progress : Callable[[str, int, int], None], optional
        Observer called with ``(stage, done, total)``

    Returns
    -------
    pl.DataFrame
        One row per window. Columns: the measure column(s), ``ci_low`` and
        ``ci_high`` when ``n_perm > 0``, ``n_events``, ``window_start``,
        ``window_end``, and ``convergence`` when ``check_convergence``.

    Raises
    ------
    MeasureFunctionError
        If the measure function cannot be resolved
    ConfigurationError
        If options are invalid or incompatible
    PermutationRetryError
        If a permutation swap exhausts its retry budget

    Examples
    --------
    >>> from datetime import timedelta
    >>> result = graph_ts(events, timedelta(days=10), timedelta(days=10),
    ...                   measure_fn="edge_count")
    >>> result["measure"].to_list()
    [1.0, 1.0]
    """
    log_function_entry("graph_ts", directed=directed, lagged=lagged, lag=lag,
                       n_jobs=n_jobs, n_perm=n_perm, check_convergence=check_convergence,
                       trim=trim, ratio_index=ratio_index)

    resolve_measure(measure_fn, lagged=lagged)
    _check_options(lagged, n_perm, confidence, check_convergence, sample_floor, max_retries)

    event_log = events if isinstance(events, EventLog) else EventLog(events)

    with LoggingTimer("graph_ts", {"n_events": event_log.n_events}):
        snapshots = extract_networks(
            event_log, window_size, window_shift,
            directed=directed, trim=trim, ratio_index=ratio_index, n_jobs=n_jobs,
            start_time=start_time, end_time=end_time, progress=progress
        )

        if lagged:
            result = extract_lagged_measures(snapshots, measure_fn, lag=lag,
                                             first_net_only=first_net_only)
        else:
            result = extract_measures(snapshots, measure_fn)

        measure_columns = [c for c in result.columns if c not in WINDOW_COLUMNS]
        columns = list(measure_columns)

        if n_perm > 0 or check_convergence:
            windows = [Window(s.index, s.window_start, s.window_end) for s in snapshots]
            rng = np.random.default_rng(seed)
            # parallel extraction falls back to sum aggregation
            diagnostic_ratio = ratio_index and n_jobs == 1

        if n_perm > 0:
            intervals = permutation_graph_values(
                event_log, windows, measure_fn, n_perm, rng,
                directed=directed, confidence=confidence, ratio_index=diagnostic_ratio,
                trim=trim, max_retries=max_retries, progress=progress
            )
            result = result.with_columns(
                pl.Series("ci_low", [low for low, _ in intervals], dtype=pl.Float64),
                pl.Series("ci_high", [high for _, high in intervals], dtype=pl.Float64)
            )
            columns += ["ci_low", "ci_high"]

        columns += WINDOW_COLUMNS

        if check_convergence:
            slopes = convergence_check(
                event_log, windows, measure_fn, rng,
                directed=directed, sample_floor=sample_floor, ratio_index=diagnostic_ratio,
                trim=trim, progress=progress
            )
            result = result.with_columns(pl.Series("convergence", slopes, dtype=pl.Float64))
            columns.append("convergence")

    logger.info("Network time series with %d windows computed", len(result))
    return result.select(columns)


def _check_options(
    lagged: bool,
    n_perm: Any,
    confidence: Any,
    check_convergence: bool,
    sample_floor: Any,
    max_retries: Any
) -> None:
    if isinstance(n_perm, bool) or not isinstance(n_perm, int) or n_perm < 0:
        raise ConfigurationError(
            f"n_perm must be a non-negative integer, got {n_perm!r}",
            parameter="n_perm",
            value=n_perm
        )

    if lagged and (n_perm > 0 or check_convergence):
        raise ConfigurationError(
            "Permutation intervals and convergence checks are only available "
            "for direct (non-lagged) measures",
            parameter="lagged",
            value=lagged
        )

    if n_perm > 0:
        check_confidence(confidence)
        if isinstance(max_retries, bool) or not isinstance(max_retries, int):
            raise ConfigurationError(
                f"max_retries must be an integer, got {max_retries!r}",
                parameter="max_retries",
                value=max_retries
            )
        require_positive(max_retries, "max_retries")

    if check_convergence:
        check_sample_floor(sample_floor)
