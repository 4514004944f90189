"""
Network time series module.

This module provides the windowed extraction-and-measurement pipeline:
- Event log loading and window subsetting
- Moving-window scheduling
- Sequential and parallel snapshot extraction
- Direct and lagged measure series
- Permutation confidence intervals and the convergence diagnostic
- Dyad (pairwise) time series
"""

from .events import EventLog, compute_node_spans, window_events
from .windows import Window, WindowScheduler
from .extraction import extract_networks, extract_window, snapshot_from_events

from .measures import (
    resolve_measure,
    extract_measures,
    extract_lagged_measures,
    measures_to_frame
)

from .permutation import (
    permute_events,
    permutation_interval,
    permutation_graph_values
)

from .convergence import convergence_slope, convergence_check
from .graph_ts import graph_ts
from .dyads import dyad_ts
