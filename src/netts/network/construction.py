"""
Graph snapshot construction for windowed network analysis.

This module materializes a ``GraphSnapshot`` from the edge list of one time
window: a weighted NetworkIt graph whose nodes are exactly the endpoints of
the edge list, an ``IDMapper`` back to the original identifiers, and the
window metadata (raw event count and window bounds) so that measure,
permutation and convergence code never has to recompute it.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import polars as pl
import networkit as nk

from netts.common.id_mapper import IDMapper
from netts.common.exceptions import GraphConstructionError, ValidationError
from netts.common.logging_config import get_logger
from netts.network.aggregation import EDGE_COLUMNS

logger = get_logger(__name__)


@dataclass(eq=False)
class GraphSnapshot:
    """
    One graph of a network time series.

    Attributes
    ----------
    graph : nk.Graph
        Weighted NetworkIt graph (directed or undirected)
    id_mapper : IDMapper
        Mapping between original node identifiers and graph node IDs
    edges : pl.DataFrame
        The edge list the graph was built from (``source``, ``target``, ``weight``)
    directed : bool
        Whether edges are ordered pairs
    n_events : int
        Number of raw events in the window, counted before trimming
    window_start, window_end
        Half-open bounds ``[window_start, window_end)`` of the window
    index : int, optional
        Position of the window in the schedule

    Examples
    --------
    >>> snapshot = build_snapshot(edges, directed=False, n_events=3,
    ...                           window_start=0, window_end=10)
    >>> snapshot.number_of_edges
    2
    >>> snapshot.metadata
    {'n_events': 3, 'window_start': 0, 'window_end': 10}
    """

    graph: nk.Graph
    id_mapper: IDMapper
    edges: pl.DataFrame
    directed: bool
    n_events: int
    window_start: Any
    window_end: Any
    index: Optional[int] = None

    @property
    def nodes(self) -> List[Any]:
        """Original node identifiers, ordered by graph node ID."""
        return self.id_mapper.original_ids()

    @property
    def number_of_nodes(self) -> int:
        return self.graph.numberOfNodes()

    @property
    def number_of_edges(self) -> int:
        return self.graph.numberOfEdges()

    @property
    def is_empty(self) -> bool:
        return self.graph.numberOfNodes() == 0

    @property
    def metadata(self) -> Dict[str, Any]:
        return {
            "n_events": self.n_events,
            "window_start": self.window_start,
            "window_end": self.window_end,
        }

    def edge_weights(self) -> Dict[Tuple[Any, Any], float]:
        """Edge weights keyed by ``(source, target)`` in original identifiers."""
        return {
            (source, target): weight
            for source, target, weight in self.edges.select(EDGE_COLUMNS).iter_rows()
        }

    def __repr__(self) -> str:
        return (f"GraphSnapshot(index={self.index}, nodes={self.number_of_nodes}, "
                f"edges={self.number_of_edges}, directed={self.directed}, "
                f"window=[{self.window_start}, {self.window_end}))")


def build_snapshot(
    edges: pl.DataFrame,
    directed: bool,
    n_events: int,
    window_start: Any,
    window_end: Any,
    index: Optional[int] = None
) -> GraphSnapshot:
    """
    Build a graph snapshot from a deduplicated edge list.

    Parameters
    ----------
    edges : pl.DataFrame
        Edge list with unique ``(source, target)`` keys
    directed : bool
        Whether to build a directed graph
    n_events : int
        Raw (pre-trim) number of events in the window
    window_start, window_end
        Window bounds stored as snapshot metadata
    index : int, optional
        Position of the window in the schedule

    Returns
    -------
    GraphSnapshot
        Snapshot whose node set is the union of edge endpoints. An empty
        edge list yields a valid snapshot with zero nodes.

    Raises
    ------
    ValidationError
        If the edge list lacks required columns or has duplicate keys
    GraphConstructionError
        If NetworkIt graph construction fails
    """
    missing = [col for col in EDGE_COLUMNS if col not in edges.columns]
    if missing:
        raise ValidationError(
            f"Missing required columns: {missing}",
            field="columns",
            details={"available_columns": edges.columns}
        )

    if edges.select(["source", "target"]).is_duplicated().any():
        raise ValidationError(
            "Edge list contains duplicate (source, target) keys",
            field="edges",
            details={"window_start": window_start, "window_end": window_end}
        )

    id_mapper = IDMapper.from_ids(
        edges["source"].to_list() + edges["target"].to_list()
    )

    try:
        graph = nk.Graph(id_mapper.size(), weighted=True, directed=directed)

        for source, target, weight in edges.select(EDGE_COLUMNS).iter_rows():
            graph.addEdge(
                id_mapper.get_internal(source),
                id_mapper.get_internal(target),
                float(weight)
            )

    except Exception as e:
        raise GraphConstructionError(
            f"Failed to construct NetworkIt graph: {str(e)}",
            operation="construct_graph",
            node_count=id_mapper.size(),
            edge_count=len(edges),
            cause=e
        )

    logger.debug("Snapshot [%s, %s): %d events -> %d nodes, %d edges",
                 window_start, window_end, n_events,
                 graph.numberOfNodes(), graph.numberOfEdges())

    return GraphSnapshot(
        graph=graph,
        id_mapper=id_mapper,
        edges=edges,
        directed=directed,
        n_events=n_events,
        window_start=window_start,
        window_end=window_end,
        index=index
    )
