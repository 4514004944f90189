"""
Built-in measure functions for graph snapshots.

Direct measures take one ``GraphSnapshot`` and return a scalar, a mapping
keyed by node, or a mapping keyed by ``(source, target)`` pair. Lagged
measures take two snapshots, the earlier one first, and return a scalar.

Measures return ``None`` where the value is undefined (e.g. the mean degree
of a graph without nodes) so that the series keeps one row per window.

The registries ``MEASURES`` and ``LAGGED_MEASURES`` let callers select a
measure by name.
"""

from typing import Any, Callable, Dict, Optional, Tuple
import math

from netts.network.construction import GraphSnapshot


def edge_count(snapshot: GraphSnapshot) -> int:
    """Number of edges in the snapshot."""
    return snapshot.graph.numberOfEdges()


def node_count(snapshot: GraphSnapshot) -> int:
    """Number of nodes in the snapshot."""
    return snapshot.graph.numberOfNodes()


def node_degree(snapshot: GraphSnapshot) -> Dict[Any, int]:
    """
    Degree of every node.

    For directed snapshots the degree is the sum of in- and out-degree.
    """
    graph = snapshot.graph
    degrees = {}
    for v in graph.iterNodes():
        if graph.isDirected():
            degree = graph.degreeIn(v) + graph.degreeOut(v)
        else:
            degree = graph.degree(v)
        degrees[snapshot.id_mapper.get_original(v)] = degree
    return degrees


def node_strength(snapshot: GraphSnapshot) -> Dict[Any, float]:
    """
    Weighted degree (strength) of every node.

    For directed snapshots the strength is the sum of incoming and
    outgoing edge weights.
    """
    graph = snapshot.graph
    strengths = {}
    for v in graph.iterNodes():
        strength = graph.weightedDegree(v)
        if graph.isDirected():
            strength += graph.weightedDegreeIn(v)
        strengths[snapshot.id_mapper.get_original(v)] = float(strength)
    return strengths


def edge_weight(snapshot: GraphSnapshot) -> Dict[Tuple[Any, Any], float]:
    """Weight of every edge keyed by ``(source, target)``."""
    return snapshot.edge_weights()


def degree_mean(snapshot: GraphSnapshot) -> Optional[float]:
    """Mean node degree, or None for a snapshot without nodes."""
    degrees = node_degree(snapshot)
    if not degrees:
        return None
    return sum(degrees.values()) / len(degrees)


def strength_mean(snapshot: GraphSnapshot) -> Optional[float]:
    """Mean node strength, or None for a snapshot without nodes."""
    strengths = node_strength(snapshot)
    if not strengths:
        return None
    return sum(strengths.values()) / len(strengths)


def max_degree(snapshot: GraphSnapshot) -> Optional[int]:
    """Largest node degree, or None for a snapshot without nodes."""
    degrees = node_degree(snapshot)
    if not degrees:
        return None
    return max(degrees.values())


def density(snapshot: GraphSnapshot) -> Optional[float]:
    """
    Edge density: edges present over edges possible between distinct nodes.

    Returns None for snapshots with fewer than two nodes.
    """
    n = snapshot.graph.numberOfNodes()
    if n < 2:
        return None
    possible = n * (n - 1)
    if not snapshot.graph.isDirected():
        possible /= 2
    return snapshot.graph.numberOfEdges() / possible


# Lagged measures (earlier snapshot first, current snapshot second)

def edge_jaccard(earlier: GraphSnapshot, current: GraphSnapshot) -> Optional[float]:
    """
    Jaccard similarity of the two snapshots' edge sets.

    Returns None when both snapshots have no edges.
    """
    earlier_pairs = set(earlier.edge_weights())
    current_pairs = set(current.edge_weights())
    union = earlier_pairs | current_pairs
    if not union:
        return None
    return len(earlier_pairs & current_pairs) / len(union)


def cosine_between_graphs(earlier: GraphSnapshot, current: GraphSnapshot) -> Optional[float]:
    """
    Cosine similarity of the snapshots' weighted edge vectors.

    Both snapshots are represented as weight vectors over the union of their
    pairs, absent pairs having weight 0. Returns None if either vector is zero.
    """
    earlier_weights = earlier.edge_weights()
    current_weights = current.edge_weights()
    pairs = set(earlier_weights) | set(current_weights)

    dot = sum(earlier_weights.get(p, 0.0) * current_weights.get(p, 0.0) for p in pairs)
    norm_earlier = math.sqrt(sum(w * w for w in earlier_weights.values()))
    norm_current = math.sqrt(sum(w * w for w in current_weights.values()))

    if norm_earlier == 0 or norm_current == 0:
        return None
    return dot / (norm_earlier * norm_current)


MEASURES: Dict[str, Callable[[GraphSnapshot], Any]] = {
    "edge_count": edge_count,
    "node_count": node_count,
    "degree_mean": degree_mean,
    "strength_mean": strength_mean,
    "max_degree": max_degree,
    "density": density,
    "node_degree": node_degree,
    "node_strength": node_strength,
    "edge_weight": edge_weight,
}

LAGGED_MEASURES: Dict[str, Callable[[GraphSnapshot, GraphSnapshot], Any]] = {
    "edge_jaccard": edge_jaccard,
    "cosine_between_graphs": cosine_between_graphs,
}
