"""
Network construction and measurement module.

This module provides the per-window graph layer:
- Edge aggregation from raw events (sum, simple ratio index, trimming)
- Graph snapshot construction with NetworkIt
- Built-in graph, node, pair and lagged measures
- Pairwise (dyad) measure strategies
"""

from .aggregation import (
    aggregate_edges,
    apply_ratio_index,
    trim_edges,
    build_edge_list
)

from .construction import (
    GraphSnapshot,
    build_snapshot
)

from .measures import (
    MEASURES,
    LAGGED_MEASURES
)

from .dyads import (
    DyadMeasure,
    DYAD_MEASURES,
    get_dyad_measure
)
