"""
Edge aggregation for windowed event logs.

This module turns the raw events of one time window into a deduplicated,
weighted edge list. Three steps are applied in order:

1. Sum aggregation: events are grouped by endpoint pair (ordered when
   directed, unordered otherwise) and their weights summed.
2. Ratio index (optional): each aggregated weight is replaced by the
   simple ratio index ``Nab / (Nab + Na + Nb)``.
3. Trimming (optional): edges incident to nodes whose global observation
   span does not cover the whole window are dropped.

Edge lists are Polars DataFrames with columns ``source``, ``target`` and
``weight`` (Float64), sorted by ``(source, target)``.
"""

from typing import Any, Optional

import polars as pl

from netts.common.exceptions import ValidationError
from netts.common.logging_config import get_logger

logger = get_logger(__name__)

EDGE_COLUMNS = ["source", "target", "weight"]


def aggregate_edges(events: pl.DataFrame, directed: bool = False) -> pl.DataFrame:
    """
    Group events by endpoint pair and sum their weights.

    Parameters
    ----------
    events : pl.DataFrame
        Window events with at least ``source``, ``target`` and ``weight`` columns
    directed : bool, default False
        If False, ``(a, b)`` and ``(b, a)`` are the same pair. The pair is
        stored with the endpoint whose string form sorts first as ``source``.

    Returns
    -------
    pl.DataFrame
        Edge list with one row per pair, sorted by ``(source, target)``

    Examples
    --------
    >>> events = pl.DataFrame({
    ...     "source": ["A", "B", "A"],
    ...     "target": ["B", "A", "C"],
    ...     "weight": [1.0, 2.0, 1.0],
    ... })
    >>> aggregate_edges(events)["weight"].to_list()
    [3.0, 1.0]

    Notes
    -----
    Summation is commutative and associative, so the result does not depend
    on the order of the input events.
    """
    missing = [col for col in EDGE_COLUMNS if col not in events.columns]
    if missing:
        raise ValidationError(
            f"Missing required columns: {missing}",
            field="columns",
            details={"available_columns": events.columns}
        )

    pairs = events.select(EDGE_COLUMNS)
    if not directed:
        pairs = _canonical_pairs(pairs)

    edges = (
        pairs
        .group_by(["source", "target"])
        .agg(pl.col("weight").sum())
        .with_columns(pl.col("weight").cast(pl.Float64))
        .sort(["source", "target"])
    )

    logger.debug("Aggregated %d events into %d edges (directed=%s)",
                 len(events), len(edges), directed)
    return edges


def apply_ratio_index(edges: pl.DataFrame, directed: bool = False) -> pl.DataFrame:
    """
    Replace aggregated weights with the simple ratio index.

    For each pair ``(a, b)`` the new weight is ``Nab / (Nab + Na + Nb)``
    where ``Nab`` is the aggregated weight of the pair and:

    - directed: ``Na`` is the weight ``a`` sends to parties other than
      ``b`` and ``Nb`` the weight ``b`` receives from parties other than ``a``
    - undirected: ``Na`` and ``Nb`` are the weights each endpoint shares
      with parties other than its partner, in either direction

    Parameters
    ----------
    edges : pl.DataFrame
        Output of ``aggregate_edges`` for the same directedness
    directed : bool, default False
        Whether the edge list is directed

    Returns
    -------
    pl.DataFrame
        Edge list with weights in ``[0, 1]``. Pairs whose denominator is
        zero have an undefined ratio and are omitted rather than set to 0.

    Notes
    -----
    The ratio is not additive across windows; it must be computed from the
    raw events of each window.
    """
    if directed:
        out_strength = edges.group_by("source").agg(
            pl.col("weight").sum().alias("strength_a")
        )
        in_strength = edges.group_by("target").agg(
            pl.col("weight").sum().alias("strength_b")
        )
        joined = (
            edges
            .join(out_strength, on="source", how="left")
            .join(in_strength, on="target", how="left")
        )
    else:
        strength = _undirected_strength(edges)
        joined = (
            edges
            .join(strength.rename({"node": "source", "strength": "strength_a"}),
                  on="source", how="left")
            .join(strength.rename({"node": "target", "strength": "strength_b"}),
                  on="target", how="left")
        )

    nab = pl.col("weight")
    na = pl.col("strength_a") - nab
    nb = pl.col("strength_b") - nab

    ratios = (
        joined
        .with_columns((nab + na + nb).alias("denominator"))
        .filter(pl.col("denominator") > 0)
        .with_columns((nab / pl.col("denominator")).clip(0.0, 1.0).alias("weight"))
        .select(EDGE_COLUMNS)
        .sort(["source", "target"])
    )

    dropped = len(edges) - len(ratios)
    if dropped:
        logger.debug("Omitted %d edges with undefined ratio index", dropped)

    return ratios


def trim_edges(
    edges: pl.DataFrame,
    node_spans: pl.DataFrame,
    window_start: Any,
    window_end: Any
) -> pl.DataFrame:
    """
    Drop edges incident to nodes not observed across the whole window.

    A node is kept only if its first observation over the entire event log
    is at or before ``window_start`` and its last observation is at or after
    ``window_end``. Every edge touching a node that fails this test is
    removed.

    Parameters
    ----------
    edges : pl.DataFrame
        Edge list of the window
    node_spans : pl.DataFrame
        Global spans with columns ``node``, ``first_seen`` and ``last_seen``
        (see ``EventLog.node_spans``)
    window_start, window_end
        Bounds of the window

    Returns
    -------
    pl.DataFrame
        Trimmed edge list (unchanged if every node spans the window)
    """
    covering = node_spans.filter(
        (pl.col("first_seen") <= pl.lit(window_start)) &
        (pl.col("last_seen") >= pl.lit(window_end))
    )["node"]

    trimmed = edges.filter(
        pl.col("source").is_in(covering) & pl.col("target").is_in(covering)
    )

    removed = len(edges) - len(trimmed)
    if removed:
        logger.debug("Trimmed %d edges of partially observed nodes from window [%s, %s)",
                     removed, window_start, window_end)

    return trimmed


def build_edge_list(
    events: pl.DataFrame,
    directed: bool = False,
    ratio_index: bool = False,
    node_spans: Optional[pl.DataFrame] = None,
    window_start: Any = None,
    window_end: Any = None
) -> pl.DataFrame:
    """
    Run aggregation, the optional ratio index and optional trimming.

    Parameters
    ----------
    events : pl.DataFrame
        Raw events of one window
    directed : bool, default False
        Whether pairs are ordered
    ratio_index : bool, default False
        Whether to convert weights to the simple ratio index
    node_spans : pl.DataFrame, optional
        Global node spans. Trimming is applied only when given.
    window_start, window_end
        Window bounds, required when ``node_spans`` is given

    Returns
    -------
    pl.DataFrame
        The window's edge list, possibly empty
    """
    edges = aggregate_edges(events, directed=directed)

    if ratio_index:
        edges = apply_ratio_index(edges, directed=directed)

    if node_spans is not None:
        if window_start is None or window_end is None:
            raise ValidationError(
                "window_start and window_end are required for trimming",
                field="window_start"
            )
        edges = trim_edges(edges, node_spans, window_start, window_end)

    return edges


def _canonical_pairs(pairs: pl.DataFrame) -> pl.DataFrame:
    """Order each pair so that the endpoint with the smaller string form is the source."""
    swap = pl.col("source").cast(pl.Utf8) > pl.col("target").cast(pl.Utf8)
    return pairs.with_columns(
        pl.when(swap).then(pl.col("target")).otherwise(pl.col("source")).alias("source"),
        pl.when(swap).then(pl.col("source")).otherwise(pl.col("target")).alias("target"),
    )


def _undirected_strength(edges: pl.DataFrame) -> pl.DataFrame:
    """Total weight incident to each node, counting self-pairs once."""
    endpoints = pl.concat([
        edges.select(pl.col("source").alias("node"), pl.col("weight")),
        edges.filter(pl.col("source") != pl.col("target"))
             .select(pl.col("target").alias("node"), pl.col("weight")),
    ])
    return endpoints.group_by("node").agg(pl.col("weight").sum().alias("strength"))
