"""
Tests for graph snapshot construction.
"""

import pytest
import polars as pl

from netts.common.exceptions import ValidationError
from netts.network.construction import GraphSnapshot, build_snapshot


def _edges(rows):
    return pl.DataFrame(rows, schema=["source", "target", "weight"], orient="row")


class TestBuildSnapshot:
    """Test building NetworkIt snapshots from edge lists."""

    def setup_method(self):
        """Set up test fixtures."""
        self.edges = _edges([("A", "B", 2.0), ("B", "C", 1.5)])

    def test_undirected_snapshot(self):
        """Test node and edge counts and weights."""
        snapshot = build_snapshot(self.edges, directed=False, n_events=4,
                                  window_start=0, window_end=10, index=3)

        assert isinstance(snapshot, GraphSnapshot)
        assert snapshot.number_of_nodes == 3
        assert snapshot.number_of_edges == 2
        assert not snapshot.graph.isDirected()
        assert snapshot.graph.isWeighted()
        assert snapshot.nodes == ["A", "B", "C"]
        assert snapshot.index == 3

        a = snapshot.id_mapper.get_internal("A")
        b = snapshot.id_mapper.get_internal("B")
        assert snapshot.graph.weight(a, b) == 2.0
        assert snapshot.graph.weight(b, a) == 2.0

    def test_directed_snapshot(self):
        """Test edge direction is preserved."""
        snapshot = build_snapshot(self.edges, directed=True, n_events=2,
                                  window_start=0, window_end=10)

        a = snapshot.id_mapper.get_internal("A")
        b = snapshot.id_mapper.get_internal("B")
        assert snapshot.graph.isDirected()
        assert snapshot.graph.hasEdge(a, b)
        assert not snapshot.graph.hasEdge(b, a)

    def test_metadata(self):
        """Test window metadata is carried on the snapshot."""
        snapshot = build_snapshot(self.edges, directed=False, n_events=7,
                                  window_start=5, window_end=15)

        assert snapshot.metadata == {"n_events": 7, "window_start": 5, "window_end": 15}

    def test_edge_weights(self):
        """Test edge weights keyed by original identifiers."""
        snapshot = build_snapshot(self.edges, directed=False, n_events=2,
                                  window_start=0, window_end=10)

        assert snapshot.edge_weights() == {("A", "B"): 2.0, ("B", "C"): 1.5}

    def test_empty_edge_list(self):
        """Test an empty window gives a valid empty snapshot."""
        empty = self.edges.clear()
        snapshot = build_snapshot(empty, directed=False, n_events=0,
                                  window_start=0, window_end=10)

        assert snapshot.is_empty
        assert snapshot.number_of_nodes == 0
        assert snapshot.number_of_edges == 0
        assert snapshot.edge_weights() == {}

    def test_integer_node_identifiers(self):
        """Test integer identifiers map back unchanged."""
        snapshot = build_snapshot(_edges([(10, 20, 1.0)]), directed=False, n_events=1,
                                  window_start=0, window_end=1)

        assert snapshot.nodes == [10, 20]

    def test_duplicate_keys_rejected(self):
        """Test duplicate (source, target) keys are rejected."""
        edges = _edges([("A", "B", 1.0), ("A", "B", 2.0)])
        with pytest.raises(ValidationError, match="duplicate"):
            build_snapshot(edges, directed=False, n_events=2, window_start=0, window_end=1)

    def test_missing_columns_rejected(self):
        """Test an edge list without weights is rejected."""
        with pytest.raises(ValidationError, match="Missing required columns"):
            build_snapshot(self.edges.drop("weight"), directed=False, n_events=2,
                           window_start=0, window_end=1)

    def test_repr(self):
        """Test the snapshot representation."""
        snapshot = build_snapshot(self.edges, directed=False, n_events=2,
                                  window_start=0, window_end=10, index=0)

        assert repr(snapshot) == (
            "GraphSnapshot(index=0, nodes=3, edges=2, directed=False, window=[0, 10))"
        )
