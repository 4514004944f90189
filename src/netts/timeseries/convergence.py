"""
Sample-size convergence diagnostic.

For a window with ``N`` events and sample floor ``F`` the measure is
recomputed on random subsamples of ``j`` events for every ``j`` from
``max(N - F, 1)`` to ``N``. The slope of the least-squares line of measure
value on ``j`` tells whether the measure still depends on how many events
were aggregated; a slope close to 0 suggests the window is large enough.
"""

from collections.abc import Mapping
from typing import Any, List, Optional, Sequence

import numpy as np
import polars as pl
from scipy import stats

from netts.common.exceptions import ConfigurationError
from netts.common.logging_config import get_logger, log_function_entry, LoggingTimer
from netts.timeseries.events import EventLog
from netts.timeseries.extraction import ProgressCallback, snapshot_from_events
from netts.timeseries.measures import MeasureFunction, apply_measure, resolve_measure, to_float
from netts.timeseries.windows import Window

logger = get_logger(__name__)


def convergence_slope(
    window_frame: pl.DataFrame,
    window: Window,
    measure_fn: MeasureFunction,
    rng: np.random.Generator,
    directed: bool = False,
    sample_floor: int = 30,
    ratio_index: bool = False,
    node_spans: Optional[pl.DataFrame] = None
) -> Optional[float]:
    """
    Slope of a measure against subsample size for one window.

    Parameters
    ----------
    window_frame : pl.DataFrame
        Observed events of the window
    window : Window
        The window the events belong to
    measure_fn : Union[str, Callable]
        Direct measure returning a scalar
    rng : np.random.Generator
        Random generator used to draw subsamples
    directed : bool, default False
        Whether events are directed
    sample_floor : int, default 30
        Number of subsample sizes below ``N`` to evaluate
    ratio_index : bool, default False
        Build subsample graphs with ratio index weights
    node_spans : pl.DataFrame, optional
        Global node spans; when given, subsample graphs are trimmed

    Returns
    -------
    Optional[float]
        The regression slope, or None when the window has at most one
        event or fewer than two distinct subsample sizes give a value

    Raises
    ------
    ConfigurationError
        If the measure returns a mapping
    """
    fn = resolve_measure(measure_fn)
    n_events = len(window_frame)

    if n_events <= 1:
        logger.debug("Window %s has %d events; no convergence value", window.index, n_events)
        return None

    sizes: List[int] = []
    values: List[float] = []
    for j in range(max(n_events - sample_floor, 1), n_events + 1):
        rows = np.sort(rng.choice(n_events, size=j, replace=False))
        subsample = window_frame[rows.tolist()]
        snapshot = snapshot_from_events(subsample, window, directed=directed,
                                        ratio_index=ratio_index, node_spans=node_spans,
                                        n_events=n_events)

        value = apply_measure(fn, snapshot, window_index=window.index)
        if isinstance(value, Mapping):
            raise ConfigurationError(
                "Convergence checks require a measure returning a scalar",
                parameter="measure_fn",
                value=measure_fn
            )
        value = to_float(value, window.index)
        if value is not None:
            sizes.append(j)
            values.append(value)

    if len(set(sizes)) < 2:
        return None

    slope = stats.linregress(sizes, values).slope
    return None if np.isnan(slope) else float(slope)


def convergence_check(
    event_log: EventLog,
    windows: Sequence[Window],
    measure_fn: MeasureFunction,
    rng: np.random.Generator,
    directed: bool = False,
    sample_floor: int = 30,
    ratio_index: bool = False,
    trim: bool = False,
    progress: Optional[ProgressCallback] = None
) -> List[Optional[float]]:
    """
    Convergence slope of every window, in window order.

    ``progress`` is called with ``("convergence", windows_done, windows_total)``.

    Examples
    --------
    >>> rng = np.random.default_rng(7)
    >>> convergence_check(events, windows, "edge_count", rng, sample_floor=10)
    [0.21, 0.18, None]
    """
    check_sample_floor(sample_floor)
    fn = resolve_measure(measure_fn)
    log_function_entry("convergence_check", n_windows=len(windows), sample_floor=sample_floor)

    node_spans = event_log.node_spans() if trim else None
    slopes = []

    with LoggingTimer("convergence_check", {"windows": len(windows), "sample_floor": sample_floor}):
        for done, window in enumerate(windows, start=1):
            slopes.append(convergence_slope(
                event_log.window(window.start, window.end),
                window,
                fn,
                rng,
                directed=directed,
                sample_floor=sample_floor,
                ratio_index=ratio_index,
                node_spans=node_spans
            ))
            if progress is not None:
                progress("convergence", done, len(windows))

    return slopes


def check_sample_floor(sample_floor: Any) -> None:
    """Require a non-negative integer sample floor."""
    if isinstance(sample_floor, bool) or not isinstance(sample_floor, int) or sample_floor < 0:
        raise ConfigurationError(
            f"sample_floor must be a non-negative integer, got {sample_floor!r}",
            parameter="sample_floor",
            value=sample_floor
        )
