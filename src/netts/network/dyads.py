"""
Pairwise (dyad-level) measures.

A dyad measure maps every edge of a snapshot to one value. The available
measures form a closed set of named strategies sharing the ``DyadMeasure``
interface; a strategy is chosen once, by name, when a dyad time series is
configured:

- ``weight``: the aggregated edge weight
- ``sum``: in directed snapshots, the summed weight of both directions when
  the edge is reciprocated; otherwise the edge weight
- ``mean``: in directed snapshots, the mean weight of both directions when
  reciprocated; otherwise the edge weight
- ``diff``: in directed snapshots, the absolute weight difference between
  both directions when reciprocated; otherwise 0
- ``proportion``: the share of the endpoints' total weight carried by the
  edge. Undirected: the mean of ``w / strength(a)`` and ``w / strength(b)``.
  Directed: ``w / out_strength(a)``.
"""

from typing import Any, Dict, Optional, Tuple

from netts.common.exceptions import validate_parameter
from netts.network.construction import GraphSnapshot

Pair = Tuple[Any, Any]


class DyadMeasure:
    """Base class for pairwise measure strategies."""

    name: str = ""

    def __call__(self, snapshot: GraphSnapshot) -> Dict[Pair, Optional[float]]:
        weights = snapshot.edge_weights()
        return {
            pair: self.value(pair, weight, weights, snapshot)
            for pair, weight in weights.items()
        }

    def value(
        self,
        pair: Pair,
        weight: float,
        weights: Dict[Pair, float],
        snapshot: GraphSnapshot
    ) -> Optional[float]:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


def _reciprocal_weight(
    pair: Pair,
    weights: Dict[Pair, float],
    snapshot: GraphSnapshot
) -> Optional[float]:
    """Weight of the reverse edge in a directed snapshot, if it exists."""
    source, target = pair
    if not snapshot.directed or source == target:
        return None
    return weights.get((target, source))


class WeightMeasure(DyadMeasure):
    name = "weight"

    def value(self, pair, weight, weights, snapshot):
        return weight


class SumMeasure(DyadMeasure):
    name = "sum"

    def value(self, pair, weight, weights, snapshot):
        reverse = _reciprocal_weight(pair, weights, snapshot)
        return weight if reverse is None else weight + reverse


class MeanMeasure(DyadMeasure):
    name = "mean"

    def value(self, pair, weight, weights, snapshot):
        reverse = _reciprocal_weight(pair, weights, snapshot)
        return weight if reverse is None else (weight + reverse) / 2


class DiffMeasure(DyadMeasure):
    name = "diff"

    def value(self, pair, weight, weights, snapshot):
        reverse = _reciprocal_weight(pair, weights, snapshot)
        return 0.0 if reverse is None else abs(weight - reverse)


class ProportionMeasure(DyadMeasure):
    name = "proportion"

    def __call__(self, snapshot: GraphSnapshot) -> Dict[Pair, Optional[float]]:
        weights = snapshot.edge_weights()
        out_strength: Dict[Any, float] = {}
        strength: Dict[Any, float] = {}
        for (source, target), weight in weights.items():
            out_strength[source] = out_strength.get(source, 0.0) + weight
            strength[source] = strength.get(source, 0.0) + weight
            if source != target:
                strength[target] = strength.get(target, 0.0) + weight

        values = {}
        for (source, target), weight in weights.items():
            if snapshot.directed:
                values[(source, target)] = _ratio(weight, out_strength[source])
            else:
                left = _ratio(weight, strength[source])
                right = _ratio(weight, strength[target])
                values[(source, target)] = (
                    None if left is None or right is None else (left + right) / 2
                )
        return values


def _ratio(numerator: float, denominator: float) -> Optional[float]:
    if denominator == 0:
        return None
    return numerator / denominator


DYAD_MEASURES: Dict[str, DyadMeasure] = {
    measure.name: measure
    for measure in (WeightMeasure(), SumMeasure(), MeanMeasure(),
                    DiffMeasure(), ProportionMeasure())
}


def get_dyad_measure(name: str) -> DyadMeasure:
    """
    Look up a dyad measure strategy by name.

    Raises
    ------
    ConfigurationError
        If ``name`` is not one of ``DYAD_MEASURES``
    """
    validate_parameter(name, sorted(DYAD_MEASURES), "measure", "get_dyad_measure")
    return DYAD_MEASURES[name]
