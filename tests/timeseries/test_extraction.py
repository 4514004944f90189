"""
Tests for sequential and parallel snapshot extraction.
"""

from datetime import datetime, timedelta
from unittest.mock import MagicMock
import random

import pytest
import polars as pl
from polars.testing import assert_frame_equal

from netts.common.exceptions import (
    ConfigurationError,
    ConfigurationWarning,
    UnsupportedCombinationWarning
)
from netts.timeseries.events import EventLog
from netts.timeseries.extraction import extract_networks, extract_window
from netts.timeseries.windows import Window

DAY1 = datetime(2024, 1, 1)


def day(n):
    return DAY1 + timedelta(days=n - 1)


def scenario_events():
    return pl.DataFrame({
        "source": ["A", "A", "B"],
        "target": ["B", "B", "C"],
        "weight": [1, 1, 2],
        "timestamp": [day(1), day(5), day(20)],
    })


def random_events(n=120, seed=3):
    rng = random.Random(seed)
    nodes = [f"n{i}" for i in range(8)]
    rows = []
    for _ in range(n):
        source, target = rng.sample(nodes, 2)
        rows.append((source, target, float(rng.randint(1, 4)), rng.randint(0, 99)))
    return pl.DataFrame(rows, schema=["source", "target", "weight", "timestamp"], orient="row")


class TestSequentialExtraction:
    """Test sequential extraction."""

    def test_scenario_windows(self):
        """Test the two ten-day windows of the reference scenario."""
        snapshots = extract_networks(scenario_events(), timedelta(days=10), timedelta(days=10),
                                     end_time=day(21))

        assert len(snapshots) == 2
        assert snapshots[0].edge_weights() == {("A", "B"): 2.0}
        assert snapshots[1].edge_weights() == {("B", "C"): 2.0}
        assert [s.n_events for s in snapshots] == [2, 1]
        assert [(s.window_start, s.window_end) for s in snapshots] == [
            (day(1), day(11)), (day(11), day(21))
        ]
        assert [s.index for s in snapshots] == [0, 1]

    def test_default_schedule_ends_at_last_event(self):
        """Test windows may not pass the last observed timestamp by default."""
        snapshots = extract_networks(scenario_events(), timedelta(days=10), timedelta(days=10))

        assert len(snapshots) == 1

    def test_ratio_index_scenario(self):
        """Test the undirected ratio index of an isolated pair is 1."""
        snapshots = extract_networks(scenario_events(), timedelta(days=10), timedelta(days=10),
                                     ratio_index=True)

        assert snapshots[0].edge_weights() == {("A", "B"): 1.0}

    def test_trim_keeps_event_count(self):
        """Test trimming removes edges but not the raw event count."""
        snapshots = extract_networks(scenario_events(), timedelta(days=10), timedelta(days=10),
                                     trim=True, end_time=day(21))

        # A is last seen on day 5 and C first seen on day 20
        assert snapshots[0].number_of_edges == 0
        assert snapshots[0].n_events == 2
        assert snapshots[1].number_of_edges == 0

    def test_window_too_large(self):
        """Test an empty schedule gives no snapshots and a warning."""
        with pytest.warns(ConfigurationWarning):
            snapshots = extract_networks(scenario_events(), timedelta(days=100),
                                         timedelta(days=1))

        assert snapshots == []

    def test_extract_window(self):
        """Test extraction of a single window."""
        log = EventLog(scenario_events())
        snapshot = extract_window(log, Window(3, day(1), day(6)), directed=True)

        assert snapshot.index == 3
        assert snapshot.directed
        assert snapshot.edge_weights() == {("A", "B"): 2.0}

    def test_progress_observer(self):
        """Test the progress callback sees every window in order."""
        progress = MagicMock()
        extract_networks(scenario_events(), timedelta(days=10), timedelta(days=10),
                         end_time=day(21), progress=progress)

        assert [c.args for c in progress.call_args_list] == [("extract", 1, 2), ("extract", 2, 2)]


class TestParallelExtraction:
    """Test parallel extraction against the sequential result."""

    def test_parallel_matches_sequential(self):
        """Test index-identical snapshots for both execution modes."""
        events = random_events()
        sequential = extract_networks(events, 20, 7, directed=True)
        parallel = extract_networks(events, 20, 7, directed=True, n_jobs=2)

        assert len(parallel) == len(sequential)
        for seq, par in zip(sequential, parallel):
            assert par.index == seq.index
            assert par.n_events == seq.n_events
            assert (par.window_start, par.window_end) == (seq.window_start, seq.window_end)
            assert_frame_equal(par.edges, seq.edges)

    def test_parallel_trim_matches_sequential(self):
        """Test trimming in worker processes."""
        events = random_events(seed=11)
        sequential = extract_networks(events, 30, 15, trim=True)
        parallel = extract_networks(events, 30, 15, trim=True, n_jobs=2)

        for seq, par in zip(sequential, parallel):
            assert_frame_equal(par.edges, seq.edges)

    def test_ratio_index_is_downgraded(self):
        """Test ratio index with parallel extraction falls back to sums."""
        events = random_events()
        with pytest.warns(UnsupportedCombinationWarning, match="sum aggregation"):
            parallel = extract_networks(events, 20, 7, ratio_index=True, n_jobs=2)
        sequential = extract_networks(events, 20, 7)

        for seq, par in zip(sequential, parallel):
            assert_frame_equal(par.edges, seq.edges)

    @pytest.mark.parametrize("n_jobs", [0, -2, 1.5, True])
    def test_invalid_worker_count(self, n_jobs):
        """Test invalid n_jobs values are rejected."""
        with pytest.raises(ConfigurationError, match="n_jobs"):
            extract_networks(scenario_events(), timedelta(days=10), timedelta(days=10),
                             n_jobs=n_jobs)
