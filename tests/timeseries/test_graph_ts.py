"""
Tests for the graph_ts entry point.
"""

from datetime import datetime, timedelta
from unittest.mock import MagicMock

import numpy as np
import pytest
import polars as pl

from netts.common.exceptions import (
    ComputationError,
    ConfigurationError,
    ConfigurationWarning,
    MeasureFunctionError,
    UnsupportedCombinationWarning
)
from netts.timeseries.events import EventLog
from netts.timeseries.graph_ts import graph_ts

DAY1 = datetime(2024, 1, 1)
TEN_DAYS = timedelta(days=10)


def day(n):
    return DAY1 + timedelta(days=n - 1)


def scenario_events():
    return pl.DataFrame({
        "source": ["A", "A", "B"],
        "target": ["B", "B", "C"],
        "weight": [1, 1, 2],
        "timestamp": [day(1), day(5), day(20)],
    })


def busy_events(n=60):
    nodes = ["A", "B", "C", "D", "E"]
    return pl.DataFrame({
        "source": [nodes[i % 5] for i in range(n)],
        "target": [nodes[(i * 2 + 1) % 5] if (i * 2 + 1) % 5 != i % 5 else nodes[(i + 1) % 5]
                   for i in range(n)],
        "weight": [float(1 + i % 3) for i in range(n)],
        "timestamp": list(range(n)),
    })


class TestScenario:
    """Test the reference scenario."""

    def test_edge_count_series(self):
        """Test edge counts of the two ten-day windows."""
        result = graph_ts(scenario_events(), TEN_DAYS, TEN_DAYS, measure_fn="edge_count",
                          end_time=day(21))

        assert result.columns == ["measure", "n_events", "window_start", "window_end"]
        assert result["measure"].to_list() == [1.0, 1.0]
        assert result["n_events"].to_list() == [2, 1]
        assert result["window_start"].to_list() == [day(1), day(11)]
        assert result["window_end"].to_list() == [day(11), day(21)]

    def test_default_schedule(self):
        """Test the default schedule stops at the last event."""
        result = graph_ts(scenario_events(), TEN_DAYS, TEN_DAYS, measure_fn="edge_count")

        assert result["measure"].to_list() == [1.0]

    def test_ratio_index_weight(self):
        """Test the undirected ratio index of the first window."""
        result = graph_ts(scenario_events(), TEN_DAYS, TEN_DAYS, measure_fn="edge_weight",
                          ratio_index=True)

        assert result["A_B"].to_list() == [1.0]

    def test_callable_measure(self):
        """Test user measures receive snapshots."""
        result = graph_ts(scenario_events(), TEN_DAYS, TEN_DAYS,
                          measure_fn=lambda s: s.edges["weight"].sum(), end_time=day(21))

        assert result["measure"].to_list() == [2.0, 2.0]

    def test_accepts_event_log(self):
        """Test an EventLog instance can be passed directly."""
        result = graph_ts(EventLog(scenario_events()), TEN_DAYS, TEN_DAYS,
                          measure_fn="node_count")

        assert result["measure"].to_list() == [2.0]


class TestColumnOrder:
    """Test optional diagnostic columns."""

    def test_permutation_and_convergence_columns(self):
        """Test the full column order with both diagnostics."""
        result = graph_ts(busy_events(), 20, 10, measure_fn="degree_mean",
                          n_perm=20, check_convergence=True, sample_floor=5, seed=1)

        assert result.columns == [
            "measure", "ci_low", "ci_high", "n_events",
            "window_start", "window_end", "convergence"
        ]
        assert len(result) == 4
        assert (result["ci_low"] <= result["ci_high"]).all()

    def test_permutation_only(self):
        """Test intervals without convergence."""
        result = graph_ts(busy_events(), 20, 10, n_perm=10, seed=2)

        assert result.columns == ["measure", "ci_low", "ci_high", "n_events",
                                  "window_start", "window_end"]

    def test_convergence_only(self):
        """Test convergence without intervals."""
        result = graph_ts(busy_events(), 20, 10, check_convergence=True, seed=3)

        assert result.columns == ["measure", "n_events", "window_start",
                                  "window_end", "convergence"]
        assert result["convergence"].dtype == pl.Float64

    def test_mapping_measure_columns(self):
        """Test node-level measures expand before the window columns."""
        result = graph_ts(scenario_events(), TEN_DAYS, TEN_DAYS, measure_fn="node_degree",
                          end_time=day(21))

        assert result.columns == ["A", "B", "C", "n_events", "window_start", "window_end"]
        assert result["C"].to_list() == [None, 1.0]

    def test_ambiguous_edge_names_rejected(self):
        """Test edges whose column names coincide raise instead of overwriting."""
        events = pl.DataFrame({
            "source": ["a_b", "a"],
            "target": ["c", "b_c"],
            "weight": [1.0, 2.0],
            "timestamp": [0, 1],
        })

        with pytest.raises(ComputationError, match="a_b_c"):
            graph_ts(events, 10, 10, measure_fn="edge_weight", end_time=10)

    def test_node_named_like_window_column_rejected(self):
        """Test a node called n_events cannot replace the event count column."""
        events = pl.DataFrame({
            "source": ["n_events", "x"],
            "target": ["x", "y"],
            "weight": [1.0, 1.0],
            "timestamp": [0, 1],
        })

        with pytest.raises(ComputationError, match="n_events"):
            graph_ts(events, 10, 10, measure_fn="node_degree", end_time=10)

    def test_seed_reproducibility(self):
        """Test the same seed gives the same diagnostics."""
        kwargs = dict(measure_fn="strength_mean", n_perm=15, check_convergence=True,
                      sample_floor=4, seed=7)
        first = graph_ts(busy_events(), 20, 10, **kwargs)
        second = graph_ts(busy_events(), 20, 10, **kwargs)

        assert first.equals(second)

    def test_generator_as_seed(self):
        """Test a numpy generator can be passed as seed."""
        result = graph_ts(busy_events(), 20, 10, n_perm=5, seed=np.random.default_rng(0))

        assert result["ci_low"].null_count() == 0


class TestLaggedMode:
    """Test lagged measures through the entry point."""

    def test_lagged_jaccard(self):
        """Test consecutive windows compared with edge Jaccard."""
        result = graph_ts(scenario_events(), TEN_DAYS, TEN_DAYS, measure_fn="edge_jaccard",
                          lagged=True, end_time=day(21))

        assert result["measure"].to_list() == [None, 0.0]

    def test_first_net_only(self):
        """Test the first row compares the first snapshot with itself."""
        result = graph_ts(scenario_events(), TEN_DAYS, TEN_DAYS, measure_fn="edge_jaccard",
                          lagged=True, first_net_only=True, end_time=day(21))

        assert result["measure"].to_list() == [1.0, 0.0]

    def test_lagged_with_diagnostics_rejected(self):
        """Test diagnostics require a direct measure."""
        with pytest.raises(ConfigurationError, match="non-lagged"):
            graph_ts(scenario_events(), TEN_DAYS, TEN_DAYS, measure_fn="edge_jaccard",
                     lagged=True, n_perm=10)


class TestConfiguration:
    """Test option validation and warnings."""

    def test_unresolvable_measure_aborts(self):
        """Test the run fails before any extraction."""
        with pytest.raises(MeasureFunctionError):
            graph_ts(scenario_events(), TEN_DAYS, TEN_DAYS, measure_fn=None)

    @pytest.mark.parametrize("n_perm", [-1, 2.5])
    def test_invalid_n_perm(self, n_perm):
        """Test n_perm must be a non-negative integer."""
        with pytest.raises(ConfigurationError, match="n_perm"):
            graph_ts(scenario_events(), TEN_DAYS, TEN_DAYS, n_perm=n_perm)

    def test_invalid_confidence(self):
        """Test confidence is checked when intervals are requested."""
        with pytest.raises(ConfigurationError, match="confidence"):
            graph_ts(scenario_events(), TEN_DAYS, TEN_DAYS, n_perm=5, confidence=1.0)

    def test_invalid_max_retries(self):
        """Test the retry budget must be positive."""
        with pytest.raises(ConfigurationError, match="max_retries"):
            graph_ts(scenario_events(), TEN_DAYS, TEN_DAYS, n_perm=5, max_retries=0)

    def test_window_larger_than_range(self):
        """Test an empty schedule returns an empty table with a warning."""
        with pytest.warns(ConfigurationWarning):
            result = graph_ts(scenario_events(), timedelta(days=365), TEN_DAYS,
                              n_perm=5, check_convergence=True)

        assert result.is_empty()
        assert result.columns == ["measure", "ci_low", "ci_high", "n_events",
                                  "window_start", "window_end", "convergence"]

    def test_parallel_ratio_index_downgrade(self):
        """Test ratio index with parallel extraction warns and uses sums."""
        with pytest.warns(UnsupportedCombinationWarning):
            result = graph_ts(scenario_events(), TEN_DAYS, TEN_DAYS, measure_fn="edge_weight",
                              ratio_index=True, n_jobs=2)

        assert result["A_B"].to_list() == [2.0]

    def test_progress_stages(self):
        """Test the observer is called for every stage."""
        progress = MagicMock()
        graph_ts(busy_events(), 20, 10, n_perm=3, check_convergence=True,
                 sample_floor=2, seed=0, progress=progress)

        stages = [c.args[0] for c in progress.call_args_list]
        assert stages == ["extract"] * 4 + ["permutation"] * 4 + ["convergence"] * 4
