"""
Permutation null model for scalar network measures.

For every window the observed events are perturbed ``n_perm`` times. Each
iteration picks the source or the target column with equal probability and
swaps the values of two distinct rows in it, rejecting swaps that would
leave any row with identical endpoints. Swaps accumulate: every iteration
starts from the arrangement left by the previous one, so the samples form a
chain of single-swap neighbours of the observed events. Event count and
per-event weights are preserved.

The measure of every permuted arrangement is collected and the two-sided
empirical quantile interval at the requested confidence level is reported.
"""

from collections.abc import Mapping
from typing import Any, List, Optional, Sequence, Tuple

import numpy as np
import polars as pl

from netts.common.exceptions import ConfigurationError, PermutationRetryError
from netts.common.logging_config import get_logger, log_function_entry, LoggingTimer
from netts.timeseries.events import EventLog
from netts.timeseries.extraction import ProgressCallback, snapshot_from_events
from netts.timeseries.measures import MeasureFunction, apply_measure, resolve_measure, to_float
from netts.timeseries.windows import Window

logger = get_logger(__name__)

Interval = Tuple[Optional[float], Optional[float]]

SWAP_COLUMNS = ("source", "target")


def permute_events(
    sources: np.ndarray,
    targets: np.ndarray,
    column: str,
    rng: np.random.Generator,
    max_retries: int = 1000
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Swap the values of two distinct rows in one endpoint column.

    Parameters
    ----------
    sources, targets : np.ndarray
        Current endpoint arrangement
    column : str
        ``"source"`` or ``"target"``
    rng : np.random.Generator
        Random generator
    max_retries : int, default 1000
        Number of rejected draws after which the swap is abandoned

    Returns
    -------
    Tuple[np.ndarray, np.ndarray]
        New ``(sources, targets)`` arrays; the inputs are not modified.
        No row of the result has identical endpoints.

    Raises
    ------
    PermutationRetryError
        If no acceptable swap is found within ``max_retries`` draws
    """
    n = len(sources)
    if column == "source":
        swapped, fixed = sources, targets
    elif column == "target":
        swapped, fixed = targets, sources
    else:
        raise ConfigurationError(
            f"Invalid permutation column: {column}",
            parameter="column",
            value=column,
            valid_options=list(SWAP_COLUMNS)
        )

    if n >= 2:
        for _ in range(max_retries):
            i, j = rng.choice(n, size=2, replace=False)
            candidate = swapped.copy()
            candidate[i], candidate[j] = swapped[j], swapped[i]
            if not np.any(candidate == fixed):
                if column == "source":
                    return candidate, targets
                return sources, candidate

    raise PermutationRetryError(
        f"No swap in the {column} column avoids self-loops after {max_retries} "
        f"attempts ({n} events)",
        max_retries=max_retries,
        n_events=n
    )


def permutation_interval(
    window_frame: pl.DataFrame,
    window: Window,
    measure_fn: MeasureFunction,
    n_perm: int,
    rng: np.random.Generator,
    directed: bool = False,
    confidence: float = 0.95,
    ratio_index: bool = False,
    node_spans: Optional[pl.DataFrame] = None,
    max_retries: int = 1000
) -> Interval:
    """
    Empirical confidence interval of a measure under endpoint permutation.

    Parameters
    ----------
    window_frame : pl.DataFrame
        Observed events of the window
    window : Window
        The window the events belong to
    measure_fn : Union[str, Callable]
        Direct measure returning a scalar
    n_perm : int
        Number of permutation iterations
    rng : np.random.Generator
        Random generator
    directed : bool, default False
        Whether events are directed
    confidence : float, default 0.95
        Confidence level of the interval
    ratio_index : bool, default False
        Rebuild permuted graphs with ratio index weights
    node_spans : pl.DataFrame, optional
        Global node spans; when given, permuted graphs are trimmed
    max_retries : int, default 1000
        Retry budget of each swap

    Returns
    -------
    Tuple[Optional[float], Optional[float]]
        ``(ci_low, ci_high)``; ``(None, None)`` for windows with fewer than
        two events or without any defined permuted value

    Raises
    ------
    ConfigurationError
        If the measure returns a mapping
    PermutationRetryError
        If a swap exhausts its retry budget
    """
    fn = resolve_measure(measure_fn)
    n_events = len(window_frame)

    if n_events < 2:
        logger.debug("Window %s has %d events; no permutation interval", window.index, n_events)
        return None, None

    sources = window_frame["source"].to_numpy().copy()
    targets = window_frame["target"].to_numpy().copy()
    source_dtype = window_frame["source"].dtype
    target_dtype = window_frame["target"].dtype

    values: List[float] = []
    for _ in range(n_perm):
        column = SWAP_COLUMNS[int(rng.random() < 0.5)]
        sources, targets = permute_events(sources, targets, column, rng, max_retries)

        permuted = window_frame.with_columns(
            pl.Series("source", sources, dtype=source_dtype),
            pl.Series("target", targets, dtype=target_dtype)
        )
        snapshot = snapshot_from_events(permuted, window, directed=directed,
                                        ratio_index=ratio_index, node_spans=node_spans)

        value = apply_measure(fn, snapshot, window_index=window.index)
        if isinstance(value, Mapping):
            raise ConfigurationError(
                "Permutation intervals require a measure returning a scalar",
                parameter="measure_fn",
                value=measure_fn
            )
        value = to_float(value, window.index)
        if value is not None:
            values.append(value)

    if not values:
        return None, None

    alpha = (1 - confidence) / 2
    low, high = np.quantile(values, [alpha, 1 - alpha])
    return float(low), float(high)


def permutation_graph_values(
    event_log: EventLog,
    windows: Sequence[Window],
    measure_fn: MeasureFunction,
    n_perm: int,
    rng: np.random.Generator,
    directed: bool = False,
    confidence: float = 0.95,
    ratio_index: bool = False,
    trim: bool = False,
    max_retries: int = 1000,
    progress: Optional[ProgressCallback] = None
) -> List[Interval]:
    """
    Permutation interval of every window, in window order.

    See ``permutation_interval`` for the parameters. ``progress`` is called
    with ``("permutation", windows_done, windows_total)``.

    Examples
    --------
    >>> rng = np.random.default_rng(42)
    >>> permutation_graph_values(events, windows, "degree_mean", n_perm=100, rng=rng)
    [(0.8, 1.2), (1.0, 1.33)]
    """
    check_confidence(confidence)
    fn = resolve_measure(measure_fn)
    log_function_entry("permutation_graph_values", n_windows=len(windows),
                       n_perm=n_perm, confidence=confidence)

    node_spans = event_log.node_spans() if trim else None
    intervals = []

    with LoggingTimer("permutation_graph_values", {"windows": len(windows), "n_perm": n_perm}):
        for done, window in enumerate(windows, start=1):
            intervals.append(permutation_interval(
                event_log.window(window.start, window.end),
                window,
                fn,
                n_perm,
                rng,
                directed=directed,
                confidence=confidence,
                ratio_index=ratio_index,
                node_spans=node_spans,
                max_retries=max_retries
            ))
            if progress is not None:
                progress("permutation", done, len(windows))

    return intervals


def check_confidence(confidence: Any) -> None:
    """Require a confidence level strictly between 0 and 1."""
    if isinstance(confidence, bool) or not isinstance(confidence, (int, float)) \
            or not 0 < confidence < 1:
        raise ConfigurationError(
            f"confidence must lie strictly between 0 and 1, got {confidence!r}",
            parameter="confidence",
            value=confidence
        )
