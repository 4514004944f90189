"""
Measure engine: apply a measure function to every snapshot of a series.

A measure is any callable taking one ``GraphSnapshot`` (direct mode) or an
earlier and a current snapshot (lagged mode), or the name of a built-in
measure. It may return a scalar, a mapping keyed by node or by
``(source, target)`` pair, or ``None`` for an undefined value. Results are
collected into one row per window.
"""

from collections.abc import Mapping
from typing import Any, Callable, Dict, List, Optional, Sequence, Union
import math
import numbers

import polars as pl

from netts.common.exceptions import (
    ComputationError,
    ConfigurationError,
    MeasureFunctionError,
    NetworkAnalysisError
)
from netts.common.logging_config import get_logger, log_function_entry
from netts.network.construction import GraphSnapshot
from netts.network.measures import MEASURES, LAGGED_MEASURES

logger = get_logger(__name__)

MeasureFunction = Union[str, Callable[..., Any]]

WINDOW_COLUMNS = ["n_events", "window_start", "window_end"]


def resolve_measure(measure_fn: MeasureFunction, lagged: bool = False) -> Callable[..., Any]:
    """
    Turn a measure name or callable into a callable.

    Parameters
    ----------
    measure_fn : Union[str, Callable]
        Callable, or the name of an entry of ``MEASURES`` (direct mode) or
        ``LAGGED_MEASURES`` (lagged mode)
    lagged : bool, default False
        Whether the measure compares two snapshots

    Raises
    ------
    MeasureFunctionError
        If the measure is missing, unknown or not callable
    """
    registry = LAGGED_MEASURES if lagged else MEASURES

    if measure_fn is None:
        raise MeasureFunctionError(
            "A measure function is required",
            parameter="measure_fn",
            value=None,
            valid_options=sorted(registry)
        )

    if isinstance(measure_fn, str):
        if measure_fn not in registry:
            raise MeasureFunctionError(
                f"Measure function '{measure_fn}' was not found",
                parameter="measure_fn",
                value=measure_fn,
                valid_options=sorted(registry)
            )
        return registry[measure_fn]

    if not callable(measure_fn):
        raise MeasureFunctionError(
            f"Measure function must be callable, got {type(measure_fn).__name__}",
            parameter="measure_fn",
            value=measure_fn
        )

    return measure_fn


def apply_measure(fn: Callable[..., Any], *snapshots: GraphSnapshot,
                  window_index: Optional[int] = None) -> Any:
    """Call ``fn`` on the given snapshots, attributing failures to a window."""
    try:
        return fn(*snapshots)
    except NetworkAnalysisError:
        raise
    except Exception as e:
        raise ComputationError(
            f"Measure function failed on window {window_index}: {str(e)}",
            operation="measure",
            window_index=window_index,
            cause=e
        )


def extract_measures(
    snapshots: Sequence[GraphSnapshot],
    measure_fn: MeasureFunction
) -> pl.DataFrame:
    """
    Apply a direct measure to every snapshot.

    The measure is called for every window, including windows without
    events, so that the series keeps one row per window.

    Parameters
    ----------
    snapshots : Sequence[GraphSnapshot]
        Snapshots in window order
    measure_fn : Union[str, Callable]
        Measure taking one snapshot

    Returns
    -------
    pl.DataFrame
        Measure column(s) followed by ``n_events``, ``window_start`` and
        ``window_end``

    Examples
    --------
    >>> extract_measures(snapshots, "edge_count").columns
    ['measure', 'n_events', 'window_start', 'window_end']
    """
    fn = resolve_measure(measure_fn)
    log_function_entry("extract_measures", n_snapshots=len(snapshots))

    values = [
        apply_measure(fn, snapshot, window_index=_window_index(snapshot, i))
        for i, snapshot in enumerate(snapshots)
    ]
    return measures_to_frame(values, snapshots)


def extract_lagged_measures(
    snapshots: Sequence[GraphSnapshot],
    measure_fn: MeasureFunction,
    lag: int = 1,
    first_net_only: bool = False
) -> pl.DataFrame:
    """
    Apply a lagged measure comparing each snapshot with an earlier one.

    Parameters
    ----------
    snapshots : Sequence[GraphSnapshot]
        Snapshots in window order
    measure_fn : Union[str, Callable]
        Measure taking ``(earlier, current)``
    lag : int, default 1
        Distance in windows between the compared snapshots
    first_net_only : bool, default False
        Compare every snapshot with the first one instead of the one
        ``lag`` windows earlier

    Returns
    -------
    pl.DataFrame
        Same layout as ``extract_measures``. Windows without a reference
        snapshot (``i < lag``) get a missing value.

    Raises
    ------
    ConfigurationError
        If lag is not a positive integer
    """
    if isinstance(lag, bool) or not isinstance(lag, int) or lag < 1:
        raise ConfigurationError(
            f"lag must be a positive integer, got {lag!r}",
            parameter="lag",
            value=lag
        )

    fn = resolve_measure(measure_fn, lagged=True)
    log_function_entry("extract_lagged_measures", n_snapshots=len(snapshots),
                       lag=lag, first_net_only=first_net_only)

    values: List[Any] = []
    for i, snapshot in enumerate(snapshots):
        if first_net_only:
            reference = snapshots[0]
        elif i - lag >= 0:
            reference = snapshots[i - lag]
        else:
            values.append(None)
            continue
        values.append(apply_measure(fn, reference, snapshot,
                                    window_index=_window_index(snapshot, i)))

    return measures_to_frame(values, snapshots)


def measures_to_frame(
    values: Sequence[Any],
    snapshots: Sequence[GraphSnapshot],
    mapping: Optional[bool] = None,
    keys: Optional[Sequence[Any]] = None
) -> pl.DataFrame:
    """
    Assemble per-window measure values into a result table.

    Scalar values become a single ``measure`` column. Mapping values are
    spread over one column per key, using the union of keys in the order
    they first appear; keys missing from a window are null. Pair keys are
    named ``"<source>_<target>"``.

    Parameters
    ----------
    values : Sequence[Any]
        One value per snapshot (scalar, mapping or None)
    snapshots : Sequence[GraphSnapshot]
        The snapshots the values were measured on
    mapping : bool, optional
        Force mapping (True) or scalar (False) layout. Inferred from the
        values when omitted.
    keys : Sequence, optional
        Mapping keys that get a column even when no window reports them.
        They come first, in the given order.

    Raises
    ------
    ComputationError
        If scalar and mapping values are mixed, a value is not numeric, or
        two keys map to the same column name or to a window column
    """
    if mapping is None:
        mapping = any(isinstance(value, Mapping) for value in values)

    columns: Dict[str, pl.Series] = {}

    if mapping:
        all_keys: Dict[Any, None] = dict.fromkeys(keys or ())
        for i, value in enumerate(values):
            if value is None:
                continue
            if not isinstance(value, Mapping):
                raise ComputationError(
                    "Measure returned a scalar where a mapping was expected",
                    operation="measures_to_frame",
                    window_index=i
                )
            for key in value:
                all_keys.setdefault(key, None)

        named: Dict[str, Any] = {}
        for key in all_keys:
            name = column_name(key)
            if name in WINDOW_COLUMNS or name in named:
                clash = f"window column '{name}'" if name in WINDOW_COLUMNS else repr(named[name])
                raise ComputationError(
                    f"Measure key {key!r} and {clash} share the column name '{name}'",
                    operation="measures_to_frame",
                    details={"column": name}
                )
            named[name] = key

        for name, key in named.items():
            columns[name] = pl.Series(
                name,
                [to_float(value.get(key) if value is not None else None, i)
                 for i, value in enumerate(values)],
                dtype=pl.Float64
            )
    else:
        columns["measure"] = pl.Series(
            "measure",
            [to_float(value, i) for i, value in enumerate(values)],
            dtype=pl.Float64
        )

    columns["n_events"] = pl.Series("n_events", [s.n_events for s in snapshots], dtype=pl.Int64)
    columns["window_start"] = pl.Series("window_start", [s.window_start for s in snapshots])
    columns["window_end"] = pl.Series("window_end", [s.window_end for s in snapshots])

    return pl.DataFrame(list(columns.values()))


def to_float(value: Any, window_index: Optional[int] = None) -> Optional[float]:
    """Coerce a scalar measure value to float; None and NaN become None."""
    if value is None:
        return None
    if isinstance(value, Mapping):
        raise ComputationError(
            "Measure returned a mapping where a scalar was expected",
            operation="measures_to_frame",
            window_index=window_index
        )
    if not isinstance(value, numbers.Real):
        raise ComputationError(
            f"Measure returned a non-numeric value of type {type(value).__name__}",
            operation="measures_to_frame",
            window_index=window_index
        )
    value = float(value)
    return None if math.isnan(value) else value


def column_name(key: Any) -> str:
    if isinstance(key, tuple):
        return "_".join(str(part) for part in key)
    return str(key)


def _window_index(snapshot: GraphSnapshot, position: int) -> int:
    return position if snapshot.index is None else snapshot.index
