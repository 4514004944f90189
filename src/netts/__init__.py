"""
netts - Network time series from relational event logs.

This package turns a timestamped event log (who interacted with whom, with
what weight, when) into a series of graph snapshots over moving windows and
derives graph, node and pair level measures from them.

Modules:
    common: Exceptions, ID mapping, validation and logging
    network: Edge aggregation, graph snapshots and built-in measures
    timeseries: Window scheduling, extraction and measure series
"""

__version__ = "0.1.0"

from .common import setup_logging
from .network import MEASURES, LAGGED_MEASURES, DYAD_MEASURES, GraphSnapshot
from .timeseries import EventLog, extract_networks, graph_ts, dyad_ts
