"""
Tests for the sample-size convergence diagnostic.
"""

import numpy as np
import pytest
import polars as pl

from netts.common.exceptions import ConfigurationError
from netts.timeseries.convergence import convergence_check, convergence_slope
from netts.timeseries.events import EventLog
from netts.timeseries.windows import Window


def _log(n):
    nodes = ["A", "B", "C", "D", "E", "F"]
    return EventLog(pl.DataFrame({
        "source": [nodes[i % 6] for i in range(n)],
        "target": [nodes[(i + 1) % 6] for i in range(n)],
        "weight": [1.0] * n,
        "timestamp": list(range(n)),
    }))


class TestConvergenceSlope:
    """Test the per-window slope."""

    def test_subsample_sizes_with_large_floor(self):
        """Test N=5 with floor 30 evaluates sizes 1 through 5."""
        frame = _log(5).frame
        sizes = []

        def record(snapshot):
            sizes.append(snapshot.edges["weight"].sum())
            return snapshot.number_of_edges

        convergence_slope(frame, Window(0, 0, 5), record, np.random.default_rng(0),
                          sample_floor=30)

        assert sizes == [1.0, 2.0, 3.0, 4.0, 5.0]

    def test_subsample_sizes_with_small_floor(self):
        """Test sizes start at N - floor."""
        frame = _log(10).frame
        sizes = []

        def record(snapshot):
            sizes.append(int(snapshot.edges["weight"].sum()))
            return 1.0

        convergence_slope(frame, Window(0, 0, 10), record, np.random.default_rng(0),
                          sample_floor=3)

        assert sizes == [7, 8, 9, 10]

    def test_snapshots_keep_window_event_count(self):
        """Test subsample snapshots report the observed event count."""
        frame = _log(6).frame
        counts = []

        def record(snapshot):
            counts.append(snapshot.n_events)
            return 0.0

        convergence_slope(frame, Window(2, 0, 6), record, np.random.default_rng(1))

        assert set(counts) == {6}

    def test_slope_of_linear_measure(self):
        """Test the slope of a measure proportional to the sample size."""
        frame = _log(12).frame
        slope = convergence_slope(
            frame, Window(0, 0, 12),
            lambda snapshot: 2.0 * snapshot.edges["weight"].sum(),
            np.random.default_rng(2), directed=True
        )

        assert slope == pytest.approx(2.0)

    def test_constant_measure_has_zero_slope(self):
        """Test a measure independent of sample size."""
        slope = convergence_slope(_log(8).frame, Window(0, 0, 8), lambda s: 3.0,
                                  np.random.default_rng(3))

        assert slope == pytest.approx(0.0)

    @pytest.mark.parametrize("n_events", [0, 1])
    def test_degenerate_window(self, n_events):
        """Test windows with at most one event are missing, not zero."""
        frame = _log(5).frame.head(n_events)
        assert convergence_slope(frame, Window(0, 0, 5), "edge_count",
                                 np.random.default_rng(0)) is None

    def test_single_usable_size(self):
        """Test fewer than two usable sizes give a missing value."""
        frame = _log(6).frame

        def only_full(snapshot):
            return 1.0 if snapshot.edges["weight"].sum() == 6 else None

        assert convergence_slope(frame, Window(0, 0, 6), only_full,
                                 np.random.default_rng(0)) is None

    def test_zero_floor(self):
        """Test a floor of zero evaluates only the full window."""
        assert convergence_slope(_log(6).frame, Window(0, 0, 6), "edge_count",
                                 np.random.default_rng(0), sample_floor=0) is None

    def test_mapping_measure_rejected(self):
        """Test node-level measures are not supported."""
        with pytest.raises(ConfigurationError, match="scalar"):
            convergence_slope(_log(4).frame, Window(0, 0, 4), "node_degree",
                              np.random.default_rng(0))


class TestConvergenceCheck:
    """Test slopes across windows."""

    def test_one_value_per_window(self):
        """Test the result follows the window list."""
        log = _log(20)
        windows = [Window(0, 0, 10), Window(1, 10, 20), Window(2, 30, 40)]
        slopes = convergence_check(log, windows, "edge_count", np.random.default_rng(0))

        assert len(slopes) == 3
        assert slopes[0] is not None
        assert slopes[2] is None

    @pytest.mark.parametrize("sample_floor", [-1, 2.5, True])
    def test_invalid_sample_floor(self, sample_floor):
        """Test the sample floor must be a non-negative integer."""
        with pytest.raises(ConfigurationError, match="sample_floor"):
            convergence_check(_log(4), [Window(0, 0, 4)], "edge_count",
                              np.random.default_rng(0), sample_floor=sample_floor)
